"""Substitution catalog accessors.

The catalog maps an original ingredient to candidate substitutes. Two
implementations share one async read, ``fetch_substitutions(name)``:

- InMemorySubstitutionCatalog: seeded records, used in tests and local runs
- RestSubstitutionCatalog: PostgREST / Supabase REST table read over aiohttp,
  with per-request timeout and retry with backoff

Accessors return raw row dicts; coercion into SubstitutionRecord happens in
the matcher so one malformed row never aborts a lookup. Failures surface as
CatalogUnavailableError.
"""

import asyncio
from typing import Any, Dict, Iterable, List, Optional

import aiohttp

from src.utils.config import Config
from src.utils.logger import logger


class CatalogUnavailableError(ConnectionError):
    """The substitution catalog could not be read."""


class SubstitutionCatalog:
    """Read-only access to substitution records."""

    async def fetch_substitutions(self, ingredient_name: str) -> List[Dict[str, Any]]:
        """Return raw records whose original ingredient matches, case-insensitively.

        Raises:
            CatalogUnavailableError: If the backing store can't be read.
        """
        raise NotImplementedError

    async def close(self) -> None:
        return None


class InMemorySubstitutionCatalog(SubstitutionCatalog):
    """Catalog backed by a list of row dicts."""

    def __init__(self, records: Optional[Iterable[Dict[str, Any]]] = None) -> None:
        self._records: List[Dict[str, Any]] = [dict(record) for record in (records or [])]

    @classmethod
    def seeded(cls) -> "InMemorySubstitutionCatalog":
        return cls(SEED_SUBSTITUTIONS)

    def add(self, record: Dict[str, Any]) -> None:
        self._records.append(dict(record))

    def __len__(self) -> int:
        return len(self._records)

    async def fetch_substitutions(self, ingredient_name: str) -> List[Dict[str, Any]]:
        name = (ingredient_name or "").strip().lower()
        if not name:
            return []
        matches = [
            dict(record)
            for record in self._records
            if isinstance(record.get("original_ingredient"), str)
            and record["original_ingredient"].strip().lower() == name
        ]
        logger.debug(f"In-memory catalog: {len(matches)} records for {name!r}")
        return matches


class RestSubstitutionCatalog(SubstitutionCatalog):
    """Catalog read from a PostgREST / Supabase REST table.

    Issues ``GET {base_url}/{table}?original_ingredient=ilike.<name>&order=success_rate.desc``
    with ``apikey`` and bearer headers. Transient failures are retried with
    backoff; after the last attempt a CatalogUnavailableError is raised.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        table: str = "ingredient_substitutions",
        timeout_seconds: float = 5.0,
        max_retries: int = 2,
        retry_delays: Optional[list[float]] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """Initialize the REST catalog.

        Args:
            base_url: REST root, e.g. https://<project>.supabase.co/rest/v1
            api_key: Sent as the ``apikey`` header and as a bearer token.
            table: Table holding substitution rows.
            timeout_seconds: Total timeout per request.
            max_retries: Attempts per read (at least 1).
            retry_delays: Delays in seconds between attempts. Defaults to [0.5, 1, 2].
            session: Optional shared aiohttp session. When omitted, a session
                is opened lazily and closed by ``close()``.

        Raises:
            ValueError: If base_url is empty.
        """
        if not base_url:
            raise ValueError("CATALOG_URL is required for the REST catalog")

        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.table = table
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.max_retries = max(1, max_retries)
        self.retry_delays = retry_delays or [0.5, 1, 2]
        self._session = session
        self._owns_session = session is None

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.table}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def _get(self, params: Dict[str, str]) -> List[Dict[str, Any]]:
        session = self._get_session()
        async with session.get(self.url, params=params, headers=self._headers(), timeout=self.timeout) as response:
            if response.status >= 400:
                body = await response.text()
                raise CatalogUnavailableError(f"Catalog returned HTTP {response.status}: {body[:200]}")
            payload = await response.json()
        if payload is None:
            raise CatalogUnavailableError("Catalog returned no data")
        if not isinstance(payload, list):
            raise CatalogUnavailableError(f"Catalog returned unexpected payload: {type(payload).__name__}")
        return [row for row in payload if isinstance(row, dict)]

    async def fetch_substitutions(self, ingredient_name: str) -> List[Dict[str, Any]]:
        # '*' and '%' are dropped and '_' is escaped so ilike is an exact case-insensitive match
        name = (ingredient_name or "").replace("*", "").replace("%", "").strip()
        if not name:
            return []
        pattern = name.replace("\\", "\\\\").replace("_", "\\_")

        params = {
            "select": "*",
            "original_ingredient": f"ilike.{pattern}",
            "order": "success_rate.desc",
        }

        last_exception: Optional[Exception] = None
        for attempt in range(self.max_retries):
            try:
                logger.debug(f"Catalog read attempt {attempt + 1}/{self.max_retries} for {name!r}")
                rows = await self._get(params)
                logger.debug(f"Catalog returned {len(rows)} records for {name!r}")
                return rows

            except (aiohttp.ClientError, asyncio.TimeoutError, CatalogUnavailableError, ValueError) as e:
                last_exception = e
                logger.debug(f"Catalog read attempt {attempt + 1} failed: {e}")

                if attempt < self.max_retries - 1:
                    delay = self.retry_delays[attempt] if attempt < len(self.retry_delays) else self.retry_delays[-1]
                    logger.warning(
                        f"Catalog read failed, retrying in {delay}s... (attempt {attempt + 1}/{self.max_retries})",
                        extra={"ingredient": name},
                    )
                    await asyncio.sleep(delay)

        error_msg = f"Failed to read substitutions for {name!r} after {self.max_retries} attempts"
        logger.error(f"{error_msg}: {last_exception}", extra={"ingredient": name})
        raise CatalogUnavailableError(error_msg)

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "RestSubstitutionCatalog":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


def build_catalog(config: Config) -> SubstitutionCatalog:
    """Pick the catalog implementation for a configuration.

    REST when CATALOG_URL is set, otherwise the in-memory catalog (seeded
    unless SEED_CATALOG is false).
    """
    if config.CATALOG_URL:
        logger.info(f"Using REST substitution catalog at {config.CATALOG_URL}")
        return RestSubstitutionCatalog(
            base_url=config.CATALOG_URL,
            api_key=config.CATALOG_API_KEY,
            table=config.CATALOG_TABLE,
            timeout_seconds=config.CATALOG_TIMEOUT_SECONDS,
            max_retries=config.CATALOG_MAX_RETRIES,
        )
    if config.SEED_CATALOG:
        logger.info(f"Using in-memory substitution catalog ({len(SEED_SUBSTITUTIONS)} seed records)")
        return InMemorySubstitutionCatalog.seeded()
    logger.info("Using empty in-memory substitution catalog")
    return InMemorySubstitutionCatalog()


def _seed(
    id: str,
    original: str,
    substitute: str,
    reasons: List[str],
    success_rate: float,
    ratio: float = 1.0,
    flavor: float = 1.0,
    texture: float = 1.0,
    nutrition: Optional[Dict[str, float]] = None,
    tags: Optional[List[str]] = None,
    ratings: tuple = (0, 0.0),
) -> Dict[str, Any]:
    return {
        "id": id,
        "original_ingredient": original,
        "substitute_ingredient": substitute,
        "substitution_ratio": ratio,
        "context_tags": tags or [],
        "dietary_reasons": reasons,
        "flavor_impact": flavor,
        "texture_impact": texture,
        "nutritional_impact": nutrition or {},
        "success_rate": success_rate,
        "user_ratings": {"count": ratings[0], "average": ratings[1]},
    }


SEED_SUBSTITUTIONS: List[Dict[str, Any]] = [
    _seed("sub-001", "chicken", "tofu", ["vegetarian", "vegan"], 0.85, flavor=2, texture=3,
          nutrition={"protein": -10, "fat": -3}, tags=["stir_fry", "curry"], ratings=(212, 4.3)),
    _seed("sub-002", "chicken", "chickpeas", ["vegetarian", "vegan"], 0.78, flavor=3, texture=3,
          nutrition={"protein": -12, "fiber": 6}, tags=["curry", "salad"], ratings=(98, 4.1)),
    _seed("sub-003", "chicken", "turkey", [], 0.9, flavor=1, texture=1, tags=["roast", "saute"], ratings=(64, 4.4)),
    _seed("sub-004", "beef", "lentils", ["vegetarian", "vegan"], 0.8, flavor=3, texture=3,
          nutrition={"fat": -12, "fiber": 8}, tags=["stew", "bolognese"], ratings=(150, 4.2)),
    _seed("sub-005", "beef", "mushrooms", ["vegetarian", "vegan"], 0.75, flavor=3, texture=2,
          nutrition={"protein": -18}, tags=["burger", "stew"], ratings=(88, 4.0)),
    _seed("sub-006", "heavy cream", "coconut milk", ["dairy_free", "vegan"], 0.82, flavor=3, texture=2,
          nutrition={"fat": -4}, tags=["curry", "soup", "sauce"], ratings=(301, 4.4)),
    _seed("sub-007", "heavy cream", "cashew cream", ["dairy_free", "vegan"], 0.8, flavor=2, texture=1,
          tags=["sauce", "soup"], ratings=(120, 4.5)),
    _seed("sub-008", "butter", "olive oil", ["dairy_free", "vegan"], 0.85, ratio=0.75, flavor=2, texture=2,
          nutrition={"saturated_fat": -5}, tags=["saute", "roast"], ratings=(240, 4.2)),
    _seed("sub-009", "butter", "coconut oil", ["dairy_free", "vegan"], 0.8, flavor=2, texture=1,
          tags=["baking"], ratings=(180, 4.0)),
    _seed("sub-010", "milk", "oat milk", ["dairy_free", "vegan"], 0.92, flavor=1, texture=1,
          tags=["baking", "sauce"], ratings=(410, 4.6)),
    _seed("sub-011", "milk", "almond milk", ["dairy_free", "vegan"], 0.88, flavor=2, texture=1,
          tags=["baking", "smoothie"], ratings=(350, 4.3)),
    _seed("sub-012", "parmesan", "nutritional yeast", ["dairy_free", "vegan"], 0.7, flavor=3, texture=3,
          tags=["pasta", "topping"], ratings=(140, 3.9)),
    _seed("sub-013", "eggs", "flax eggs", ["vegan", "egg_free"], 0.72, flavor=2, texture=3,
          tags=["baking"], ratings=(200, 3.8)),
    _seed("sub-014", "all-purpose flour", "gluten-free flour blend", ["gluten_free"], 0.8, flavor=1, texture=3,
          tags=["baking"], ratings=(260, 4.0)),
    _seed("sub-015", "pasta", "rice noodles", ["gluten_free"], 0.83, flavor=2, texture=2,
          tags=["stir_fry", "soup"], ratings=(115, 4.2)),
    _seed("sub-016", "soy sauce", "coconut aminos", ["gluten_free", "soy_free"], 0.86, flavor=2, texture=1,
          tags=["stir_fry", "marinade"], ratings=(175, 4.3)),
    _seed("sub-017", "soy sauce", "tamari", ["gluten_free"], 0.9, flavor=1, texture=1,
          tags=["stir_fry", "marinade"], ratings=(190, 4.6)),
    _seed("sub-018", "almonds", "sunflower seeds", ["nut_free"], 0.78, flavor=2, texture=2,
          tags=["baking", "salad"], ratings=(70, 4.0)),
    _seed("sub-019", "peanut butter", "sunflower seed butter", ["nut_free"], 0.84, flavor=2, texture=1,
          tags=["baking", "sauce"], ratings=(130, 4.2)),
    _seed("sub-020", "walnuts", "pumpkin seeds", ["nut_free"], 0.76, flavor=2, texture=2,
          tags=["baking", "salad"], ratings=(55, 3.9)),
    _seed("sub-021", "honey", "maple syrup", ["vegan"], 0.9, flavor=2, texture=1,
          tags=["baking", "dressing"], ratings=(160, 4.5)),
    _seed("sub-022", "mushrooms", "zucchini", [], 0.74, flavor=3, texture=2,
          tags=["saute", "pasta"], ratings=(45, 3.8)),
    _seed("sub-023", "mushrooms", "eggplant", [], 0.7, flavor=3, texture=2,
          tags=["stew", "roast"], ratings=(38, 3.7)),
    _seed("sub-024", "shrimp", "king oyster mushrooms", ["vegetarian", "vegan", "shellfish_free"], 0.68,
          flavor=4, texture=3, tags=["stir_fry", "pasta"], ratings=(40, 3.6)),
    _seed("sub-025", "fish sauce", "soy sauce", ["vegetarian", "vegan"], 0.8, flavor=2, texture=1,
          tags=["stir_fry", "dressing"], ratings=(85, 4.1)),
    _seed("sub-026", "bacon", "smoked tempeh", ["vegetarian", "vegan"], 0.65, flavor=4, texture=4,
          tags=["breakfast", "salad"], ratings=(60, 3.5)),
    _seed("sub-027", "cilantro", "flat-leaf parsley", [], 0.82, flavor=3, texture=1,
          tags=["garnish", "salsa"], ratings=(95, 4.1)),
    _seed("sub-028", "sour cream", "greek yogurt", [], 0.88, flavor=2, texture=1,
          nutrition={"protein": 4, "fat": -6}, tags=["dip", "topping"], ratings=(220, 4.5)),
]
