"""Unit tests for the insight generator."""

import pytest

from src.intelligence.insights import InsightGenerator, levels_between


@pytest.fixture
def generator(knowledge_base, config) -> InsightGenerator:
    return InsightGenerator(knowledge_base, config)


def of_type(insights, insight_type):
    return [i for i in insights if i.insight_type == insight_type]


class TestGenerateCookingInsights:
    """Tests for generate_cooking_insights."""

    def test_mock_recipe_for_beginner(self, generator, recipe, profile):
        insights = generator.generate_cooking_insights(recipe, profile)

        tips = of_type(insights, "technique_tip")
        assert "Prep all ingredients" in tips[0].insight_content
        assert [tip.context_conditions.get("technique") for tip in tips[1:]] == ["saute", "simmer"]
        assert tips[1].insight_content.startswith("Sauté tip:")
        assert tips[1].skill_level_target == [1, 2, 3]

        timing = of_type(insights, "timing_adjustment")
        assert len(timing) == 1
        assert "40 minutes" in timing[0].insight_content
        assert "30 minutes" in timing[0].insight_content

        safety = of_type(insights, "safety_warning")
        assert [s.context_conditions["hazard"] for s in safety] == ["hot_oil"]
        assert safety[0].confidence_score == 0.95

    def test_step_up_technique(self, generator, recipe_factory, profile_factory):
        recipe = recipe_factory(["Sear the steak on both sides"])

        insights = generator.generate_cooking_insights(recipe, profile_factory(skill_level=2))

        tip = of_type(insights, "technique_tip")[1]
        assert tip.insight_content.startswith("Sear is a step up from your current level.")
        assert tip.confidence_score == 0.9
        assert tip.skill_level_target == [1, 2, 3]

    def test_techniques_far_from_level_are_skipped(self, generator, recipe_factory, profile_factory):
        recipe = recipe_factory(["Flambé the pan", "Chop the parsley"])

        insights = generator.generate_cooking_insights(recipe, profile_factory(skill_level=5))

        assert of_type(insights, "technique_tip") == []

    def test_missing_equipment(self, generator, recipe_factory, profile_factory):
        recipe = recipe_factory(["Blend until smooth"])

        insights = generator.generate_cooking_insights(recipe, profile_factory(equipment_available=[]))

        equipment = of_type(insights, "equipment_recommendation")
        assert len(equipment) == 1
        assert "blender" in equipment[0].insight_content
        assert equipment[0].skill_level_target == list(range(1, 11))

    def test_timing_within_margin_is_quiet(self, generator, recipe_factory, profile_factory):
        recipe = recipe_factory(["Serve"], total_time_minutes=37)

        insights = generator.generate_cooking_insights(recipe, profile_factory(preferred_cooking_time_minutes=30))

        assert of_type(insights, "timing_adjustment") == []

    def test_many_steps(self, generator, recipe_factory, profile_factory):
        recipe = recipe_factory([f"Step {n}" for n in range(10)])

        insights = generator.generate_cooking_insights(recipe, profile_factory(skill_level=4))

        assert "This recipe has 10 steps" in of_type(insights, "timing_adjustment")[0].insight_content

    def test_one_safety_insight_per_hazard(self, generator, recipe_factory, profile_factory):
        recipe = recipe_factory(["Heat the oil", "Fry the onions", "Slice the bread", "Bring water to a boil"])

        insights = generator.generate_cooking_insights(recipe, profile_factory(skill_level=2))

        hazards = [s.context_conditions["hazard"] for s in of_type(insights, "safety_warning")]
        assert hazards == ["hot_oil", "boiling_liquid", "sharp_tools"]

    def test_experienced_cook_gets_no_safety_or_beginner_tips(self, generator, recipe, profile_factory):
        insights = generator.generate_cooking_insights(recipe, profile_factory(skill_level=9))

        assert of_type(insights, "safety_warning") == []
        assert all("Prep all ingredients" not in i.insight_content for i in insights)

    def test_confidence_threshold(self, knowledge_base, config, recipe, profile):
        config.MIN_INSIGHT_CONFIDENCE = 0.8
        generator = InsightGenerator(knowledge_base, config)

        insights = generator.generate_cooking_insights(recipe, profile)

        assert all(i.confidence_score >= 0.8 for i in insights)
        assert not any(i.insight_content.startswith("Sauté tip:") for i in insights)

    def test_garbage_inputs(self, generator):
        insights = generator.generate_cooking_insights(None, "nope")

        assert [i.insight_type for i in insights] == ["technique_tip"]


class TestLevelsBetween:
    @pytest.mark.parametrize("low,high,expected", [(-1, 2, [1, 2]), (9, 12, [9, 10]), (5, 4, [])])
    def test_levels_between(self, low, high, expected):
        assert levels_between(low, high) == expected
