"""Shared fixtures for unit tests.

Profiles and recipes are given in the platform's camelCase JSON shape so the
tests exercise the same input path as production callers.
"""

import pytest

from src.catalog.substitutions import InMemorySubstitutionCatalog
from src.catalog.techniques import TechniqueKnowledgeBase
from src.models.models import CookingProfile, Recipe
from src.utils.config import Config


CONFIG_ENV_VARS = [
    "SKILL_BUFFER",
    "NEEDS_HELP_THRESHOLD",
    "SAFETY_SKILL_THRESHOLD",
    "BEGINNER_SKILL_LEVEL",
    "MAX_SUBSTITUTIONS",
    "TIMING_MARGIN",
    "TECHNIQUE_WEIGHT",
    "PREPARATION_WEIGHT",
    "EQUIPMENT_WEIGHT",
    "MIN_INSIGHT_CONFIDENCE",
    "CATALOG_URL",
    "SEED_CATALOG",
]


@pytest.fixture
def config(monkeypatch) -> Config:
    """Default configuration, independent of the developer's environment."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    cfg = Config()
    cfg.validate()
    return cfg


@pytest.fixture
def knowledge_base(config) -> TechniqueKnowledgeBase:
    return TechniqueKnowledgeBase(config)


@pytest.fixture
def seeded_catalog() -> InMemorySubstitutionCatalog:
    return InMemorySubstitutionCatalog.seeded()


@pytest.fixture
def profile_data() -> dict:
    return {
        "id": "test-user-id",
        "skillLevel": 3,
        "cookingExperienceYears": 1,
        "preferredCookingTime": 30,
        "equipmentAvailable": ["oven", "stovetop", "microwave"],
        "dietaryRestrictions": ["vegetarian"],
        "allergies": ["nuts"],
        "spiceTolerance": 2,
        "cookingGoals": ["healthy_eating"],
        "successHistory": {"attempts": 10, "successes": 7, "failures": 3},
        "ingredientPreferences": {
            "loved": ["basil", "tomatoes"],
            "disliked": ["mushrooms"],
            "neverTried": ["quinoa"],
        },
    }


@pytest.fixture
def profile(profile_data) -> CookingProfile:
    return CookingProfile.model_validate(profile_data)


@pytest.fixture
def recipe_data() -> dict:
    return {
        "id": "test-recipe-id",
        "title": "Creamy Chicken",
        "ingredients": [
            {"name": "chicken", "amount": 1, "unit": "lb", "notes": ""},
            {"name": "mushrooms", "amount": 8, "unit": "oz", "notes": ""},
            {"name": "heavy cream", "amount": 1, "unit": "cup", "notes": ""},
        ],
        "instructions": [
            "Heat oil in a large pan",
            "Sauté the chicken until golden brown",
            "Add mushrooms and cook for 5 minutes",
            "Pour in cream and simmer",
        ],
        "nutrition": {"calories": 450, "protein": 35, "fat": 25, "carbs": 10},
        "servings": 4,
        "prepTimeMinutes": 15,
        "cookTimeMinutes": 25,
        "totalTimeMinutes": 40,
        "difficultyLevel": "medium",
        "tags": ["main-course", "comfort-food"],
    }


@pytest.fixture
def recipe(recipe_data) -> Recipe:
    return Recipe.model_validate(recipe_data)


def make_profile(**overrides) -> CookingProfile:
    """Build a profile with sensible defaults; keyword names are snake_case."""
    data = {
        "id": "user-1",
        "skill_level": 5,
        "preferred_cooking_time_minutes": 30,
        "equipment_available": ["oven", "stovetop"],
    }
    data.update(overrides)
    return CookingProfile.model_validate(data)


def make_recipe(instructions, **overrides) -> Recipe:
    data = {"id": "recipe-1", "title": "Test", "instructions": list(instructions)}
    data.update(overrides)
    return Recipe.model_validate(data)


@pytest.fixture
def profile_factory():
    return make_profile


@pytest.fixture
def recipe_factory():
    return make_recipe
