"""Configuration management for the Cooking Intelligence engine.

Loads environment variables from system environment and .env file.
Priority order: system environment > .env file > hardcoded defaults

The thresholds below encode product policy (how much help a cook gets, how
difficulty is weighted) and are expected to change, so every one of them is
overridable. Engine components receive a Config through their constructors;
the module-level instance is only for entry points.
"""

import os
from typing import Optional

from dotenv import load_dotenv


# Load .env file (if exists, silently continues if missing)
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Config:
    """Engine configuration loaded from environment variables."""

    def __init__(self) -> None:
        """Initialize configuration from environment variables."""
        # Skill Buffer: how far a technique's required skill may exceed the user's
        # skill while still being surfaced (with simpler alternatives). Default: 2
        self.SKILL_BUFFER: int = int(os.getenv("SKILL_BUFFER", "2"))
        # Needs-help threshold: instructions are rewritten only for target skill
        # levels at or below this value. Default: 5
        self.NEEDS_HELP_THRESHOLD: int = int(os.getenv("NEEDS_HELP_THRESHOLD", "5"))
        # Safety threshold: safety clauses and safety insights are emitted for
        # skill levels at or below this value. Default: 4
        self.SAFETY_SKILL_THRESHOLD: int = int(os.getenv("SAFETY_SKILL_THRESHOLD", "4"))
        # Beginner level: extra explanations, mise en place tips. Default: 3
        self.BEGINNER_SKILL_LEVEL: int = int(os.getenv("BEGINNER_SKILL_LEVEL", "3"))
        # Maximum number of substitutes returned per ingredient. Default: 3
        self.MAX_SUBSTITUTIONS: int = int(os.getenv("MAX_SUBSTITUTIONS", "3"))
        # Timing margin: a recipe counts as "too long" once its total time exceeds
        # the preferred cooking time by more than this fraction. Default: 0.25 (25%)
        self.TIMING_MARGIN: float = float(os.getenv("TIMING_MARGIN", "0.25"))
        # Difficulty blend weights (must sum to 1.0)
        # Default: 40% technique, 30% preparation, 30% equipment
        self.TECHNIQUE_WEIGHT: float = float(os.getenv("TECHNIQUE_WEIGHT", "0.4"))
        self.PREPARATION_WEIGHT: float = float(os.getenv("PREPARATION_WEIGHT", "0.3"))
        self.EQUIPMENT_WEIGHT: float = float(os.getenv("EQUIPMENT_WEIGHT", "0.3"))
        # Minimum confidence (0.0 - 1.0) for an insight to be returned. Default: 0.7
        self.MIN_INSIGHT_CONFIDENCE: float = float(os.getenv("MIN_INSIGHT_CONFIDENCE", "0.7"))

        # Substitution catalog (PostgREST / Supabase REST endpoint)
        # CATALOG_URL: base REST URL, e.g. https://<project>.supabase.co/rest/v1
        # When unset, the in-memory seeded catalog is used.
        self.CATALOG_URL: Optional[str] = os.getenv("CATALOG_URL")
        # CATALOG_API_KEY: sent as both apikey and bearer token
        self.CATALOG_API_KEY: str = os.getenv("CATALOG_API_KEY", "")
        # CATALOG_TABLE: table holding substitution records
        self.CATALOG_TABLE: str = os.getenv("CATALOG_TABLE", "ingredient_substitutions")
        # Per-request timeout in seconds for catalog reads. Default: 5
        self.CATALOG_TIMEOUT_SECONDS: float = float(os.getenv("CATALOG_TIMEOUT_SECONDS", "5"))
        # Number of attempts per catalog read (exponential backoff between them). Default: 2
        self.CATALOG_MAX_RETRIES: int = int(os.getenv("CATALOG_MAX_RETRIES", "2"))
        # Whether the in-memory catalog is seeded with the bundled records
        self.SEED_CATALOG: bool = _env_bool("SEED_CATALOG", "true")

    def validate(self) -> None:
        """Validate configuration.

        Raises:
            ValueError: If a threshold or weight is out of range.
        """
        for name in ("SKILL_BUFFER", "NEEDS_HELP_THRESHOLD", "SAFETY_SKILL_THRESHOLD", "BEGINNER_SKILL_LEVEL"):
            value = getattr(self, name)
            if not (0 <= value <= 10):
                raise ValueError(f"{name} must be between 0 and 10, got: {value}")
        if self.MAX_SUBSTITUTIONS < 1:
            raise ValueError(
                f"MAX_SUBSTITUTIONS must be at least 1, got: {self.MAX_SUBSTITUTIONS}"
            )
        if self.TIMING_MARGIN < 0:
            raise ValueError(
                f"TIMING_MARGIN must be non-negative, got: {self.TIMING_MARGIN}"
            )
        weights = (self.TECHNIQUE_WEIGHT, self.PREPARATION_WEIGHT, self.EQUIPMENT_WEIGHT)
        if any(w < 0 for w in weights) or abs(sum(weights) - 1.0) > 1e-6:
            raise ValueError(
                "TECHNIQUE_WEIGHT, PREPARATION_WEIGHT and EQUIPMENT_WEIGHT must be "
                f"non-negative and sum to 1.0, got: {weights}"
            )
        if not (0.0 <= self.MIN_INSIGHT_CONFIDENCE <= 1.0):
            raise ValueError(
                f"MIN_INSIGHT_CONFIDENCE must be between 0.0 and 1.0, got: {self.MIN_INSIGHT_CONFIDENCE}"
            )
        if self.CATALOG_URL and not self.CATALOG_URL.startswith(("http://", "https://")):
            raise ValueError(
                f"CATALOG_URL must be an http(s) URL, got: {self.CATALOG_URL}"
            )
        if self.CATALOG_TIMEOUT_SECONDS <= 0:
            raise ValueError(
                f"CATALOG_TIMEOUT_SECONDS must be positive, got: {self.CATALOG_TIMEOUT_SECONDS}"
            )
        if self.CATALOG_MAX_RETRIES < 1:
            raise ValueError(
                f"CATALOG_MAX_RETRIES must be at least 1, got: {self.CATALOG_MAX_RETRIES}"
            )


# Create module-level config instance and validate immediately
config = Config()
config.validate()
