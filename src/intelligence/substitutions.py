"""Substitution matcher.

Finds ranked, explained substitutes for the ingredients a cook can't or
won't use. An ingredient is considered only when it conflicts with the
profile (allergy, dietary restriction, dislike, or a catalog record
declaring a dietary reason the cook follows); everything else is skipped.

Catalog reads for the distinct ingredient names run concurrently. A failed
read costs that ingredient its suggestion and nothing else.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from src.catalog.substitutions import CatalogUnavailableError, SubstitutionCatalog
from src.intelligence.rules import (
    fold,
    matches_name,
    matching_allergies,
    restriction_label,
    violated_restrictions,
)
from src.models.models import (
    CookingProfile,
    Ingredient,
    SubstituteOption,
    SubstitutionImpact,
    SubstitutionRecord,
    SubstitutionSuggestion,
    clamp,
)
from src.utils.config import Config
from src.utils.logger import logger


IMPACT_LEVELS = ["minimal", "slight", "moderate", "significant", "major"]

LOVED_BONUS = 0.1
BEGINNER_IMPACT_PENALTY = 0.2
# Flavor/texture impact (0-5) from which a swap is considered hard for beginners
HIGH_IMPACT = 4
MIN_MATCH_SCORE = 0.1


@dataclass(frozen=True)
class IngredientConflict:
    """Why an ingredient can't be used as written."""

    allergies: Tuple[str, ...] = ()
    restrictions: Tuple[str, ...] = ()
    disliked: bool = False
    catalog_reasons: Tuple[str, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return bool(self.allergies or self.restrictions or self.disliked or self.catalog_reasons)


def coerce_ingredients(ingredients: Any) -> List[Ingredient]:
    """Coerce a list of ingredient dicts/strings/models, dropping unusable entries."""
    if not isinstance(ingredients, (list, tuple)):
        return []
    result: List[Ingredient] = []
    for item in ingredients:
        if isinstance(item, Ingredient):
            result.append(item)
            continue
        if not isinstance(item, (dict, str)):
            continue
        try:
            result.append(Ingredient.model_validate(item))
        except ValidationError:
            logger.debug(f"Skipping malformed ingredient: {item!r}")
    return result


def lookup_key(name: str) -> str:
    """Catalog key for an ingredient name: lowercased, accents kept."""
    return name.strip().lower()


def find_conflict(name: str, profile: CookingProfile) -> IngredientConflict:
    """Rule-based conflict between an ingredient name and a profile."""
    return IngredientConflict(
        allergies=tuple(matching_allergies(name, profile.allergies)),
        restrictions=tuple(violated_restrictions(name, profile.dietary_restrictions)),
        disliked=any(matches_name(name, disliked) for disliked in profile.ingredient_preferences.disliked),
    )


def assess_impact(record: SubstitutionRecord) -> SubstitutionImpact:
    """Describe a substitution's impact in plain words."""

    def level(impact: float) -> str:
        index = int(clamp(round(impact) - 1, 0, len(IMPACT_LEVELS) - 1))
        return IMPACT_LEVELS[index]

    return SubstitutionImpact(
        flavor=level(record.flavor_impact),
        texture=level(record.texture_impact),
        nutrition="moderate" if any(v for v in record.nutritional_impact.values()) else "minimal",
        difficulty="minimal" if record.substitution_ratio == 1.0 else "slight",
    )


class SubstitutionMatcher:
    """Matches conflicting ingredients to ranked catalog substitutes."""

    def __init__(self, catalog: SubstitutionCatalog, config: Config) -> None:
        self.catalog = catalog
        self.config = config

    async def _fetch(self, name: str, user_id: Optional[str]) -> List[SubstitutionRecord]:
        try:
            rows = await self.catalog.fetch_substitutions(name)
        except CatalogUnavailableError as e:
            logger.warning(f"Substitution catalog unavailable for {name!r}: {e}", extra={"user_id": user_id})
            return []

        if not isinstance(rows, list):
            logger.warning(f"Substitution catalog returned no data for {name!r}", extra={"user_id": user_id})
            return []
        return [SubstitutionRecord.model_validate(row) for row in rows if isinstance(row, (dict, SubstitutionRecord))]

    async def _fetch_all(self, names: List[str], user_id: Optional[str]) -> Dict[str, List[SubstitutionRecord]]:
        results = await asyncio.gather(*(self._fetch(name, user_id) for name in names), return_exceptions=True)

        records: Dict[str, List[SubstitutionRecord]] = {}
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                logger.warning(
                    f"Substitution lookup failed for {name!r}: {type(result).__name__}: {result}",
                    extra={"user_id": user_id},
                )
                records[name] = []
            else:
                records[name] = result
        return records

    def _is_safe_substitute(self, substitute: str, profile: CookingProfile) -> bool:
        """A substitute must not itself break the profile's constraints."""
        return not find_conflict(substitute, profile)

    def _reasons(
        self,
        ingredient: str,
        record: SubstitutionRecord,
        conflict: IngredientConflict,
        profile: CookingProfile,
    ) -> List[str]:
        reasons: List[str] = []
        if conflict.allergies:
            reasons.append(f"Avoids your known allergies ({', '.join(conflict.allergies)})")
        if conflict.restrictions:
            labels = ", ".join(restriction_label(r) for r in conflict.restrictions)
            reasons.append(f"Keeps the recipe {labels}")
        if conflict.disliked:
            reasons.append(f"Replaces {ingredient}, which you prefer to avoid")
        overlap = sorted((set(record.dietary_reasons) & profile.dietary_restrictions) - set(conflict.restrictions))
        if overlap:
            reasons.append(f"Matches your {', '.join(restriction_label(r) for r in overlap)} dietary preferences")
        loved = {fold(name) for name in profile.ingredient_preferences.loved}
        if fold(record.substitute_ingredient) in loved:
            reasons.append(f"Uses {record.substitute_ingredient}, one of your favorite ingredients")
        return reasons

    def _match_score(self, record: SubstitutionRecord, profile: CookingProfile) -> float:
        score = record.success_rate
        loved = {fold(name) for name in profile.ingredient_preferences.loved}
        if fold(record.substitute_ingredient) in loved:
            score += LOVED_BONUS
        if profile.skill_level <= self.config.BEGINNER_SKILL_LEVEL and (
            record.flavor_impact >= HIGH_IMPACT or record.texture_impact >= HIGH_IMPACT
        ):
            score -= BEGINNER_IMPACT_PENALTY
        return round(clamp(score, MIN_MATCH_SCORE, 1.0), 4)

    def _rank(
        self,
        ingredient: Ingredient,
        records: Iterable[SubstitutionRecord],
        conflict: IngredientConflict,
        profile: CookingProfile,
    ) -> List[SubstituteOption]:
        name = fold(ingredient.name).strip()
        options: List[SubstituteOption] = []
        seen = set()
        for record in records:
            substitute = fold(record.substitute_ingredient).strip()
            original = fold(record.original_ingredient).strip()
            if not substitute or substitute == name or substitute in seen:
                continue
            # Unusable original names are trusted to the catalog's own name filter
            if original and original != name:
                continue
            if not self._is_safe_substitute(record.substitute_ingredient, profile):
                logger.debug(f"Dropping substitute {substitute!r} for {name!r}: conflicts with profile")
                continue
            reasons = self._reasons(ingredient.name, record, conflict, profile)
            if not reasons:
                continue
            seen.add(substitute)
            options.append(
                SubstituteOption(
                    substitute=record,
                    reasons_for_suggestion=reasons,
                    match_score=self._match_score(record, profile),
                    impact_assessment=assess_impact(record),
                )
            )

        options.sort(key=lambda o: (-o.substitute.success_rate, -o.substitute.user_ratings.average))
        return options[: self.config.MAX_SUBSTITUTIONS]

    def _needs_catalog(self, profile: CookingProfile) -> bool:
        return bool(profile.allergies or profile.dietary_restrictions or profile.ingredient_preferences.disliked)

    async def get_smart_substitutions(self, ingredients: Any, profile: Any) -> List[SubstitutionSuggestion]:
        """Suggest substitutes for each conflicting ingredient.

        Args:
            ingredients: Ingredient models, dicts or plain names.
            profile: CookingProfile or its dict form.

        Returns:
            One suggestion per conflicting ingredient with at least one
            usable substitute, in input order. Never raises for catalog
            failures or malformed input.
        """
        profile = CookingProfile.coerce(profile)
        items = coerce_ingredients(ingredients)
        if not items or not self._needs_catalog(profile):
            return []

        conflicts: List[Tuple[Ingredient, IngredientConflict]] = []
        for item in items:
            if not item.name:
                continue
            conflicts.append((item, find_conflict(item.name, profile)))

        # Rule conflicts always need a read. Ingredients the rules pass can still be
        # flagged by a catalog record's dietary reasons, so they're read too when
        # the cook follows any restriction.
        lookup = [
            item for item, conflict in conflicts if conflict or profile.dietary_restrictions
        ]
        names = list(dict.fromkeys(lookup_key(item.name) for item in lookup))
        logger.debug(
            f"Looking up substitutions for {len(names)} of {len(items)} ingredients",
            extra={"user_id": profile.id},
        )
        records = await self._fetch_all(names, profile.id)

        suggestions: List[SubstitutionSuggestion] = []
        for item, conflict in conflicts:
            candidates = records.get(lookup_key(item.name), [])
            if not candidates:
                continue
            if not conflict:
                declared = {r for record in candidates for r in record.dietary_reasons}
                catalog_reasons = tuple(sorted(declared & profile.dietary_restrictions))
                if not catalog_reasons:
                    continue
                conflict = IngredientConflict(catalog_reasons=catalog_reasons)
            options = self._rank(item, candidates, conflict, profile)
            if options:
                suggestions.append(SubstitutionSuggestion(original=item, substitutes=options))

        logger.info(
            f"Found substitutions for {len(suggestions)} ingredients",
            extra={"user_id": profile.id},
        )
        return suggestions
