"""Unit tests for the substitution matcher."""

import re

import pytest
from unittest.mock import AsyncMock

from src.catalog.substitutions import CatalogUnavailableError, InMemorySubstitutionCatalog
from src.intelligence.substitutions import (
    IngredientConflict,
    SubstitutionMatcher,
    assess_impact,
    coerce_ingredients,
    find_conflict,
)
from src.models.models import SubstitutionRecord


def record(original: str, substitute: str, success_rate: float = 0.8, **extra) -> dict:
    row = {
        "id": f"{original}-{substitute}",
        "original_ingredient": original,
        "substitute_ingredient": substitute,
        "success_rate": success_rate,
    }
    row.update(extra)
    return row


def substitutes_for(suggestions, name: str):
    for suggestion in suggestions:
        if suggestion.original.name == name:
            return [option.substitute.substitute_ingredient for option in suggestion.substitutes]
    return None


@pytest.fixture
def matcher(seeded_catalog, config) -> SubstitutionMatcher:
    return SubstitutionMatcher(seeded_catalog, config)


class TestFindConflict:
    """Tests for rule-based ingredient conflicts."""

    def test_allergy_restriction_and_dislike(self, profile):
        assert find_conflict("almonds", profile).allergies == ("nuts",)
        assert find_conflict("chicken", profile).restrictions == ("vegetarian",)
        assert find_conflict("shiitake mushrooms", profile).disliked is True

    def test_no_conflict_is_falsy(self, profile):
        assert not find_conflict("heavy cream", profile)

    def test_catalog_reasons_make_conflict_truthy(self):
        assert IngredientConflict(catalog_reasons=("vegan",))

    def test_dislike_matches_whole_words_only(self, profile_factory):
        profile = profile_factory(ingredient_preferences={"disliked": ["ham"]})

        assert not find_conflict("champagne vinegar", profile)
        assert find_conflict("smoked ham", profile).disliked


class TestHelpers:
    def test_coerce_ingredients_drops_garbage(self):
        items = coerce_ingredients(["tofu", {"name": "milk", "amount": "2"}, None, 42, ["x"]])

        assert [item.name for item in items] == ["tofu", "milk"]

    def test_coerce_ingredients_non_list(self):
        assert coerce_ingredients("tofu") == []
        assert coerce_ingredients(None) == []

    @pytest.mark.parametrize(
        "flavor,texture,expected_flavor,expected_texture",
        [(0, 1, "minimal", "minimal"), (2, 3, "slight", "moderate"), (4.4, 5, "significant", "major")],
    )
    def test_assess_impact_levels(self, flavor, texture, expected_flavor, expected_texture):
        impact = assess_impact(SubstitutionRecord(flavor_impact=flavor, texture_impact=texture))

        assert impact.flavor == expected_flavor
        assert impact.texture == expected_texture

    def test_assess_impact_ratio_and_nutrition(self):
        impact = assess_impact(SubstitutionRecord(substitution_ratio=0.75, nutritional_impact={"fat": -5}))

        assert impact.difficulty == "slight"
        assert impact.nutrition == "moderate"


class TestGetSmartSubstitutions:
    """Tests for get_smart_substitutions against the seeded catalog."""

    @pytest.mark.asyncio
    async def test_vegetarian_profile_swaps_chicken(self, matcher, recipe, profile):
        suggestions = await matcher.get_smart_substitutions(recipe.ingredients, profile)

        assert substitutes_for(suggestions, "chicken") == ["tofu", "chickpeas"]
        chicken = suggestions[0]
        for option in chicken.substitutes:
            assert any(re.search("vegetarian", reason, re.I) for reason in option.reasons_for_suggestion)

    @pytest.mark.asyncio
    async def test_disliked_ingredient_is_replaced(self, matcher, recipe, profile):
        suggestions = await matcher.get_smart_substitutions(recipe.ingredients, profile)

        assert substitutes_for(suggestions, "mushrooms") == ["zucchini", "eggplant"]
        option = suggestions[1].substitutes[0]
        assert "Replaces mushrooms, which you prefer to avoid" in option.reasons_for_suggestion

    @pytest.mark.asyncio
    async def test_ingredient_without_conflict_is_skipped(self, matcher, recipe, profile):
        suggestions = await matcher.get_smart_substitutions(recipe.ingredients, profile)

        assert substitutes_for(suggestions, "heavy cream") is None

    @pytest.mark.asyncio
    async def test_meat_substitute_is_not_offered_to_vegetarians(self, matcher, recipe, profile):
        suggestions = await matcher.get_smart_substitutions(recipe.ingredients, profile)

        assert "turkey" not in substitutes_for(suggestions, "chicken")

    @pytest.mark.asyncio
    async def test_allergy_reason(self, matcher, profile_factory):
        profile = profile_factory(allergies=["nuts"])

        suggestions = await matcher.get_smart_substitutions(["almonds"], profile)

        option = suggestions[0].substitutes[0]
        assert option.substitute.substitute_ingredient == "sunflower seeds"
        assert any(re.search("allerg", reason, re.I) for reason in option.reasons_for_suggestion)

    @pytest.mark.asyncio
    async def test_substitute_triggering_allergy_is_dropped(self, matcher, profile_factory):
        profile = profile_factory(dietary_restrictions=["dairy_free"], allergies=["nuts"])

        suggestions = await matcher.get_smart_substitutions(["milk"], profile)

        assert substitutes_for(suggestions, "milk") == ["oat milk"]

    @pytest.mark.asyncio
    async def test_output_preserves_input_order(self, matcher, profile):
        suggestions = await matcher.get_smart_substitutions(["mushrooms", "heavy cream", "chicken"], profile)

        assert [s.original.name for s in suggestions] == ["mushrooms", "chicken"]

    @pytest.mark.asyncio
    async def test_profile_as_dict(self, matcher, recipe_data, profile_data):
        suggestions = await matcher.get_smart_substitutions(recipe_data["ingredients"], profile_data)

        assert substitutes_for(suggestions, "chicken") == ["tofu", "chickpeas"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ingredients", [None, [], "chicken", [None, 5]])
    async def test_unusable_ingredients(self, matcher, profile, ingredients):
        assert await matcher.get_smart_substitutions(ingredients, profile) == []


class TestRanking:
    """Tests for ranking, scoring and record filtering."""

    @pytest.mark.asyncio
    async def test_ranked_by_success_rate_then_rating(self, config, profile_factory):
        catalog = InMemorySubstitutionCatalog(
            [
                record("chicken", "seitan", 0.7),
                record("chicken", "tofu", 0.9, user_ratings={"count": 10, "average": 3.0}),
                record("chicken", "tempeh", 0.9, user_ratings={"count": 10, "average": 4.5}),
            ]
        )
        matcher = SubstitutionMatcher(catalog, config)

        suggestions = await matcher.get_smart_substitutions(
            ["chicken"], profile_factory(dietary_restrictions=["vegetarian"])
        )

        assert substitutes_for(suggestions, "chicken") == ["tempeh", "tofu", "seitan"]

    @pytest.mark.asyncio
    async def test_capped_at_max_substitutions(self, config, profile_factory):
        config.MAX_SUBSTITUTIONS = 1
        catalog = InMemorySubstitutionCatalog([record("chicken", "tofu", 0.8), record("chicken", "tempeh", 0.9)])
        matcher = SubstitutionMatcher(catalog, config)

        suggestions = await matcher.get_smart_substitutions(
            ["chicken"], profile_factory(dietary_restrictions=["vegetarian"])
        )

        assert substitutes_for(suggestions, "chicken") == ["tempeh"]

    @pytest.mark.asyncio
    async def test_loved_substitute_gets_bonus_and_reason(self, matcher, profile_factory):
        profile = profile_factory(
            dietary_restrictions=["vegetarian"], ingredient_preferences={"loved": ["tofu"]}
        )

        suggestions = await matcher.get_smart_substitutions(["chicken"], profile)

        tofu = suggestions[0].substitutes[0]
        assert tofu.match_score == pytest.approx(0.95)
        assert "Uses tofu, one of your favorite ingredients" in tofu.reasons_for_suggestion

    @pytest.mark.asyncio
    async def test_beginner_penalty_for_high_impact_swap(self, matcher, profile_factory):
        profile = profile_factory(skill_level=2, dietary_restrictions=["vegetarian"])

        suggestions = await matcher.get_smart_substitutions(["bacon"], profile)

        assert suggestions[0].substitutes[0].match_score == pytest.approx(0.45)

    @pytest.mark.asyncio
    async def test_malformed_records_are_filtered(self, config, profile_factory):
        catalog = AsyncMock()
        catalog.fetch_substitutions.return_value = [
            record("chicken", ""),
            record("chicken", "chicken"),
            record("beef", "lentils"),
            record("chicken", "tofu", "high"),
            record("chicken", "tofu", 0.9),
            {"substitute_ingredient": "seitan", "success_rate": 0.5},
            "not a row",
        ]
        matcher = SubstitutionMatcher(catalog, config)

        suggestions = await matcher.get_smart_substitutions(
            ["chicken"], profile_factory(dietary_restrictions=["vegetarian"])
        )

        options = suggestions[0].substitutes
        assert [o.substitute.substitute_ingredient for o in options] == ["seitan", "tofu"]
        assert options[1].substitute.success_rate == 0.0

    @pytest.mark.asyncio
    async def test_catalog_declared_reason_flags_ingredient(self, config, profile_factory):
        catalog = InMemorySubstitutionCatalog(
            [record("gummy bears", "fruit leather", 0.8, dietary_reasons=["vegetarian"])]
        )
        matcher = SubstitutionMatcher(catalog, config)

        suggestions = await matcher.get_smart_substitutions(
            ["gummy bears"], profile_factory(dietary_restrictions=["vegetarian"])
        )

        reasons = suggestions[0].substitutes[0].reasons_for_suggestion
        assert reasons == ["Matches your vegetarian dietary preferences"]


class TestCatalogFailures:
    """Tests for degraded catalog behavior."""

    @pytest.mark.asyncio
    async def test_catalog_unavailable_returns_empty(self, config, profile):
        catalog = AsyncMock()
        catalog.fetch_substitutions.side_effect = CatalogUnavailableError("down")
        matcher = SubstitutionMatcher(catalog, config)

        assert await matcher.get_smart_substitutions(["chicken"], profile) == []

    @pytest.mark.asyncio
    async def test_catalog_returns_none(self, config, profile):
        catalog = AsyncMock()
        catalog.fetch_substitutions.return_value = None
        matcher = SubstitutionMatcher(catalog, config)

        assert await matcher.get_smart_substitutions(["chicken"], profile) == []

    @pytest.mark.asyncio
    async def test_partial_failure_keeps_other_ingredients(self, seeded_catalog, config, profile):
        async def flaky(name):
            if name == "chicken":
                raise RuntimeError("boom")
            return await seeded_catalog.fetch_substitutions(name)

        catalog = AsyncMock()
        catalog.fetch_substitutions.side_effect = flaky
        matcher = SubstitutionMatcher(catalog, config)

        suggestions = await matcher.get_smart_substitutions(["chicken", "mushrooms"], profile)

        assert [s.original.name for s in suggestions] == ["mushrooms"]

    @pytest.mark.asyncio
    async def test_profile_without_concerns_skips_catalog(self, config, profile_factory):
        catalog = AsyncMock()
        matcher = SubstitutionMatcher(catalog, config)

        assert await matcher.get_smart_substitutions(["chicken", "butter"], profile_factory()) == []
        catalog.fetch_substitutions.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_duplicate_names_are_read_once(self, seeded_catalog, config, profile):
        catalog = AsyncMock()
        catalog.fetch_substitutions.side_effect = seeded_catalog.fetch_substitutions
        matcher = SubstitutionMatcher(catalog, config)

        suggestions = await matcher.get_smart_substitutions(["chicken", "Chicken"], profile)

        assert catalog.fetch_substitutions.await_count == 1
        assert len(suggestions) == 2


class TestAccentedNames:
    """Tests for ingredient names with accents."""

    @pytest.mark.asyncio
    async def test_allergen_with_accents_finds_its_record(self, config, profile_factory):
        catalog = InMemorySubstitutionCatalog(
            [record("crème fraîche", "coconut yogurt", 0.8, dietary_reasons=["dairy_free"])]
        )
        matcher = SubstitutionMatcher(catalog, config)

        suggestions = await matcher.get_smart_substitutions(
            ["Crème Fraîche"], profile_factory(allergies=["crème fraîche"])
        )

        assert substitutes_for(suggestions, "Crème Fraîche") == ["coconut yogurt"]

    @pytest.mark.asyncio
    async def test_catalog_is_queried_with_accents_kept(self, config, profile_factory):
        catalog = AsyncMock()
        catalog.fetch_substitutions.return_value = [record("jalapeño", "bell pepper", 0.8)]
        matcher = SubstitutionMatcher(catalog, config)

        suggestions = await matcher.get_smart_substitutions(
            ["Jalapeño"], profile_factory(ingredient_preferences={"disliked": ["jalapeno"]})
        )

        catalog.fetch_substitutions.assert_awaited_once_with("jalapeño")
        assert substitutes_for(suggestions, "Jalapeño") == ["bell pepper"]
