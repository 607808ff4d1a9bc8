"""Data models and schemas for the Cooking Intelligence engine.

Defines Pydantic models for engine inputs (profiles, recipes, catalog records)
and outputs (suggestions, adjustments, assessments, insights).
All models use Pydantic v2.

Inputs come from the platform as camelCase JSON and from the database as
snake_case rows, so every model accepts both spellings. Outputs dump to
camelCase with ``model_dump(by_alias=True)``.

Inputs are coerced rather than rejected: a malformed number falls back to a
safe default, a non-list tag field becomes empty, a skill level outside 1-10
is clamped. Callers feed these straight into UI, so a bad field must never
turn into an exception.
"""

import math
from typing import Any, Dict, List, Literal, Optional, Tuple, Annotated

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from src.utils.logger import logger


MIN_SKILL_LEVEL = 1
MAX_SKILL_LEVEL = 10

AdjustmentType = Literal["technique_explanation", "safety_added", "vagueness_resolved"]
InsightType = Literal["technique_tip", "equipment_recommendation", "timing_adjustment", "safety_warning"]


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce value to a finite float, falling back to default."""
    if isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def to_int(value: Any, default: int = 0) -> int:
    """Coerce value to an int (rounding floats), falling back to default."""
    return int(round(to_float(value, default)))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clamp_skill(value: Any, default: int = MIN_SKILL_LEVEL) -> int:
    """Clamp a skill level into 1-10. Garbage becomes the default."""
    return int(clamp(to_int(value, default), MIN_SKILL_LEVEL, MAX_SKILL_LEVEL))


def normalize_key(value: str) -> str:
    """Normalize a tag-like name: 'Dairy-Free' -> 'dairy_free'."""
    return "_".join(value.strip().lower().replace("-", " ").split())


def to_name_list(value: Any, normalize=None) -> List[str]:
    """Coerce a string, iterable or garbage into a list of clean lowercase names."""
    if value is None:
        return []
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = value
    else:
        return []

    names: List[str] = []
    for item in items:
        if item is None or isinstance(item, (dict, list)):
            continue
        name = str(item).strip().lower()
        if not name:
            continue
        names.append(normalize(name) if normalize else name)
    return names


def to_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class EngineModel(BaseModel):
    """Base model: camelCase aliases, snake_case accepted."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class FrozenModel(EngineModel):
    """Immutable value object passed into every engine call."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------

class IngredientPreferences(FrozenModel):
    """Ingredients the cook loves, dislikes, or has never tried."""

    loved: Annotated[frozenset[str], Field(default_factory=frozenset)]
    disliked: Annotated[frozenset[str], Field(default_factory=frozenset)]
    never_tried: Annotated[frozenset[str], Field(default_factory=frozenset)]

    @field_validator("loved", "disliked", "never_tried", mode="before")
    @classmethod
    def coerce_names(cls, v: Any) -> frozenset[str]:
        return frozenset(to_name_list(v))


class SuccessHistory(FrozenModel):
    """Counts of past cooking attempts."""

    attempts: Annotated[int, Field(0, ge=0)]
    successes: Annotated[int, Field(0, ge=0)]
    failures: Annotated[int, Field(0, ge=0)]

    @field_validator("attempts", "successes", "failures", mode="before")
    @classmethod
    def coerce_count(cls, v: Any) -> int:
        return max(0, to_int(v, 0))

    @property
    def success_rate(self) -> Optional[float]:
        if self.attempts <= 0:
            return None
        return clamp(self.successes / self.attempts, 0.0, 1.0)


class CookingProfile(FrozenModel):
    """A cook's profile snapshot. Never mutated by the engine."""

    id: Annotated[Optional[str], Field(None, description="User identifier (logging only)")]
    skill_level: Annotated[int, Field(MIN_SKILL_LEVEL, ge=MIN_SKILL_LEVEL, le=MAX_SKILL_LEVEL)]
    cooking_experience_years: Annotated[float, Field(0.0, ge=0)]
    preferred_cooking_time_minutes: Annotated[
        int,
        Field(
            30,
            ge=0,
            serialization_alias="preferredCookingTimeMinutes",
            validation_alias=AliasChoices(
                "preferred_cooking_time_minutes",
                "preferredCookingTimeMinutes",
                "preferredCookingTime",
                "preferred_cooking_time",
            ),
        ),
    ]
    equipment_available: Annotated[frozenset[str], Field(default_factory=frozenset)]
    dietary_restrictions: Annotated[frozenset[str], Field(default_factory=frozenset)]
    allergies: Annotated[frozenset[str], Field(default_factory=frozenset)]
    spice_tolerance: Annotated[int, Field(3, ge=0, le=5)]
    cooking_goals: Annotated[frozenset[str], Field(default_factory=frozenset)]
    ingredient_preferences: Annotated[IngredientPreferences, Field(default_factory=IngredientPreferences)]
    success_history: Annotated[SuccessHistory, Field(default_factory=SuccessHistory)]

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Optional[str]:
        return str(v) if v is not None else None

    @field_validator("skill_level", mode="before")
    @classmethod
    def coerce_skill(cls, v: Any) -> int:
        return clamp_skill(v)

    @field_validator("cooking_experience_years", mode="before")
    @classmethod
    def coerce_years(cls, v: Any) -> float:
        return max(0.0, to_float(v, 0.0))

    @field_validator("preferred_cooking_time_minutes", mode="before")
    @classmethod
    def coerce_preferred_time(cls, v: Any) -> int:
        minutes = to_int(v, 30)
        return minutes if minutes > 0 else 30

    @field_validator("spice_tolerance", mode="before")
    @classmethod
    def coerce_spice(cls, v: Any) -> int:
        return int(clamp(to_int(v, 3), 0, 5))

    @field_validator("equipment_available", "dietary_restrictions", "cooking_goals", mode="before")
    @classmethod
    def coerce_keys(cls, v: Any) -> frozenset[str]:
        return frozenset(to_name_list(v, normalize=normalize_key))

    @field_validator("allergies", mode="before")
    @classmethod
    def coerce_allergies(cls, v: Any) -> frozenset[str]:
        return frozenset(to_name_list(v))

    @field_validator("ingredient_preferences", "success_history", mode="before")
    @classmethod
    def coerce_nested(cls, v: Any) -> Any:
        return v if isinstance(v, (dict, BaseModel)) else {}

    @classmethod
    def coerce(cls, value: Any) -> "CookingProfile":
        """Build a profile from a model, dict or garbage without raising."""
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            try:
                return cls.model_validate(value)
            except ValidationError as e:
                logger.warning(f"Profile failed validation, using defaults: {e.error_count()} errors")
        return cls()


class Ingredient(FrozenModel):
    """One recipe ingredient line."""

    name: Annotated[str, Field("", max_length=200)]
    amount: Annotated[float, Field(0.0)]
    unit: Annotated[str, Field("")]
    notes: Annotated[str, Field("")]

    @model_validator(mode="before")
    @classmethod
    def accept_plain_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data}
        return data

    @field_validator("name", "unit", "notes", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return to_text(v)[:200]

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> float:
        return to_float(v, 0.0)


class Recipe(FrozenModel):
    """A recipe as stored by the platform."""

    id: Annotated[Optional[str], Field(None)]
    title: Annotated[str, Field("")]
    ingredients: Annotated[List[Ingredient], Field(default_factory=list)]
    instructions: Annotated[List[str], Field(default_factory=list)]
    nutrition: Annotated[Dict[str, Any], Field(default_factory=dict)]
    servings: Annotated[int, Field(1, ge=1)]
    prep_time_minutes: Annotated[int, Field(0, ge=0)]
    cook_time_minutes: Annotated[int, Field(0, ge=0)]
    total_time_minutes: Annotated[int, Field(0, ge=0)]
    difficulty_level: Annotated[str, Field("medium")]
    tags: Annotated[List[str], Field(default_factory=list)]

    @model_validator(mode="before")
    @classmethod
    def derive_total_time(cls, data: Any) -> Any:
        """Fill total time from prep + cook when it is missing or malformed."""
        if not isinstance(data, dict):
            return data
        total = data.get("total_time_minutes", data.get("totalTimeMinutes"))
        if to_int(total, 0) <= 0:
            prep = max(0, to_int(data.get("prep_time_minutes", data.get("prepTimeMinutes")), 0))
            cook = max(0, to_int(data.get("cook_time_minutes", data.get("cookTimeMinutes")), 0))
            data = {k: v for k, v in data.items() if k not in ("total_time_minutes", "totalTimeMinutes")}
            data["total_time_minutes"] = prep + cook
        return data

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Optional[str]:
        return str(v) if v is not None else None

    @field_validator("title", "difficulty_level", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        return to_text(v)

    @field_validator("difficulty_level")
    @classmethod
    def lower_difficulty(cls, v: str) -> str:
        return v.lower() or "medium"

    @field_validator("ingredients", mode="before")
    @classmethod
    def coerce_ingredients(cls, v: Any) -> List[Any]:
        if not isinstance(v, (list, tuple)):
            return []
        return [item for item in v if isinstance(item, (dict, str, Ingredient))]

    @field_validator("instructions", mode="before")
    @classmethod
    def coerce_instructions(cls, v: Any) -> List[str]:
        if isinstance(v, str):
            v = v.splitlines()
        if not isinstance(v, (list, tuple)):
            return []
        return [str(step) for step in v if step is not None]

    @field_validator("nutrition", mode="before")
    @classmethod
    def coerce_nutrition(cls, v: Any) -> Dict[str, Any]:
        return v if isinstance(v, dict) else {}

    @field_validator("servings", mode="before")
    @classmethod
    def coerce_servings(cls, v: Any) -> int:
        return max(1, to_int(v, 1))

    @field_validator("prep_time_minutes", "cook_time_minutes", "total_time_minutes", mode="before")
    @classmethod
    def coerce_minutes(cls, v: Any) -> int:
        return max(0, to_int(v, 0))

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v: Any) -> List[str]:
        return to_name_list(v)

    @classmethod
    def coerce(cls, value: Any) -> "Recipe":
        """Build a recipe from a model, dict or garbage without raising."""
        if isinstance(value, cls):
            return value
        if isinstance(value, dict):
            try:
                return cls.model_validate(value)
            except ValidationError as e:
                logger.warning(f"Recipe failed validation, using empty recipe: {e.error_count()} errors")
        return cls()


class UserRatings(EngineModel):
    count: Annotated[int, Field(0, ge=0)]
    average: Annotated[float, Field(0.0, ge=0)]

    @field_validator("count", mode="before")
    @classmethod
    def coerce_count(cls, v: Any) -> int:
        return max(0, to_int(v, 0))

    @field_validator("average", mode="before")
    @classmethod
    def coerce_average(cls, v: Any) -> float:
        return max(0.0, to_float(v, 0.0))


class SubstitutionRecord(EngineModel):
    """A catalog entry mapping one ingredient to an alternative.

    Catalog rows are curated by hand and occasionally malformed; every field
    coerces to a safe default so one bad row cannot abort a lookup.
    """

    id: Annotated[Optional[str], Field(None)]
    original_ingredient: Annotated[str, Field("")]
    substitute_ingredient: Annotated[str, Field("")]
    substitution_ratio: Annotated[float, Field(1.0, ge=0)]
    context_tags: Annotated[List[str], Field(default_factory=list)]
    dietary_reasons: Annotated[List[str], Field(default_factory=list)]
    flavor_impact: Annotated[float, Field(0.0, ge=0, le=5)]
    texture_impact: Annotated[float, Field(0.0, ge=0, le=5)]
    nutritional_impact: Annotated[Dict[str, float], Field(default_factory=dict)]
    success_rate: Annotated[float, Field(0.0, ge=0, le=1)]
    user_ratings: Annotated[UserRatings, Field(default_factory=UserRatings)]

    @model_validator(mode="before")
    @classmethod
    def require_mapping(cls, data: Any) -> Any:
        return data if isinstance(data, (dict, BaseModel)) else {}

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Optional[str]:
        return str(v) if v is not None else None

    @field_validator("original_ingredient", "substitute_ingredient", mode="before")
    @classmethod
    def coerce_name(cls, v: Any) -> str:
        return to_text(v).lower() if isinstance(v, (str, int, float)) else ""

    @field_validator("substitution_ratio", mode="before")
    @classmethod
    def coerce_ratio(cls, v: Any) -> float:
        ratio = to_float(v, 1.0)
        return ratio if ratio > 0 else 1.0

    @field_validator("context_tags", mode="before")
    @classmethod
    def coerce_tags(cls, v: Any) -> List[str]:
        return to_name_list(v) if isinstance(v, (list, tuple)) else []

    @field_validator("dietary_reasons", mode="before")
    @classmethod
    def coerce_reasons(cls, v: Any) -> List[str]:
        return to_name_list(v, normalize=normalize_key) if isinstance(v, (list, tuple)) else []

    @field_validator("flavor_impact", "texture_impact", mode="before")
    @classmethod
    def coerce_impact(cls, v: Any) -> float:
        return clamp(to_float(v, 0.0), 0.0, 5.0)

    @field_validator("nutritional_impact", mode="before")
    @classmethod
    def coerce_nutrition(cls, v: Any) -> Dict[str, float]:
        if not isinstance(v, dict):
            return {}
        return {str(k): to_float(val, 0.0) for k, val in v.items()}

    @field_validator("success_rate", mode="before")
    @classmethod
    def coerce_success_rate(cls, v: Any) -> float:
        return clamp(to_float(v, 0.0), 0.0, 1.0)

    @field_validator("user_ratings", mode="before")
    @classmethod
    def coerce_ratings(cls, v: Any) -> Any:
        return v if isinstance(v, (dict, UserRatings)) else {}


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------

class SubstitutionImpact(EngineModel):
    """Plain-language impact levels: minimal, slight, moderate, significant, major."""

    flavor: str
    texture: str
    nutrition: str
    difficulty: str


class SubstituteOption(EngineModel):
    substitute: SubstitutionRecord
    reasons_for_suggestion: Annotated[List[str], Field(min_length=1)]
    match_score: Annotated[float, Field(ge=0, le=1)]
    impact_assessment: SubstitutionImpact


class SubstitutionSuggestion(EngineModel):
    """Ranked substitutes for one original ingredient."""

    original: Ingredient
    substitutes: Annotated[List[SubstituteOption], Field(default_factory=list)]


class InstructionAdjustment(EngineModel):
    step_number: Annotated[int, Field(ge=1)]
    original_instruction: str
    adjusted_instruction: str
    skill_level: Annotated[int, Field(ge=MIN_SKILL_LEVEL, le=MAX_SKILL_LEVEL)]
    adjustment_type: AdjustmentType


class TechniqueEntry(EngineModel):
    """A named culinary technique from the knowledge base."""

    name: str
    description: str = ""
    required_skill_level: Annotated[int, Field(ge=MIN_SKILL_LEVEL, le=MAX_SKILL_LEVEL)]
    tips: Annotated[List[str], Field(default_factory=list)]
    common_mistakes: Annotated[List[str], Field(default_factory=list)]
    alternatives: Annotated[List[str], Field(default_factory=list)]
    explanation: Annotated[Optional[str], Field(None, description="Plain-language explanation for beginners")]
    aliases: Annotated[List[str], Field(default_factory=list)]


class SkillGap(EngineModel):
    technique: str
    required_level: int
    user_level: int
    recommendation: str


class DifficultyAssessment(EngineModel):
    overall_difficulty: Annotated[int, Field(ge=MIN_SKILL_LEVEL, le=MAX_SKILL_LEVEL)]
    preparation_complexity: Annotated[float, Field(ge=1, le=10)]
    equipment_complexity: Annotated[float, Field(ge=1, le=10)]
    technique_complexity: Annotated[float, Field(ge=1, le=10)]
    skill_gaps: Annotated[List[SkillGap], Field(default_factory=list)]
    missing_equipment: Annotated[List[str], Field(default_factory=list)]
    recommendations: Annotated[List[str], Field(default_factory=list)]


class Insight(EngineModel):
    insight_type: InsightType
    insight_content: str
    skill_level_target: Annotated[List[int], Field(default_factory=list)]
    context_conditions: Annotated[Dict[str, Any], Field(default_factory=dict)]
    confidence_score: Annotated[float, Field(0.8, ge=0, le=1)]


class SuccessPrediction(EngineModel):
    success_score: Annotated[float, Field(ge=0.1, le=1.0)]
    confidence_interval: Tuple[float, float]
    risk_factors: Annotated[List[str], Field(default_factory=list)]
    recommendations: Annotated[List[str], Field(default_factory=list)]


class RecipeAdaptation(EngineModel):
    """A recipe rewritten for one cook, with everything that went into it."""

    adapted_recipe: Recipe
    adaptation_types: Annotated[List[str], Field(default_factory=list)]
    adjustments: Annotated[List[InstructionAdjustment], Field(default_factory=list)]
    substitutions: Annotated[List[SubstitutionSuggestion], Field(default_factory=list)]
    insights: Annotated[List[Insight], Field(default_factory=list)]
    difficulty: DifficultyAssessment
    prediction: SuccessPrediction
    confidence_score: Annotated[float, Field(ge=0, le=1)]
