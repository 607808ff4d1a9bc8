"""Unit tests for the success predictor."""

import pytest

from src.intelligence.prediction import SuccessPredictor, difficulty_value


@pytest.fixture
def predictor(config) -> SuccessPredictor:
    return SuccessPredictor(config)


class TestDifficultyValue:
    @pytest.mark.parametrize("level,expected", [("easy", 3), ("medium", 6), ("hard", 9), ("7", 7), ("15", 10), ("", 6), ("bogus", 6)])
    def test_difficulty_value(self, level, expected):
        assert difficulty_value(level) == expected


class TestPredictCookingSuccess:
    """Tests for predict_cooking_success."""

    def test_mock_recipe(self, predictor, recipe, profile):
        prediction = predictor.predict_cooking_success(recipe, profile)

        assert prediction.success_score == pytest.approx(0.625)
        assert prediction.confidence_interval == pytest.approx((0.525, 0.725))
        assert prediction.risk_factors == ["Recipe difficulty significantly exceeds your current skill level"]

    def test_skilled_cook_without_history(self, predictor, recipe_factory, profile_factory):
        recipe = recipe_factory([], difficulty_level="easy")

        prediction = predictor.predict_cooking_success(recipe, profile_factory(skill_level=10))

        assert prediction.success_score == pytest.approx(0.8)
        assert prediction.risk_factors == []
        assert "Take photos of your progress to track improvement" in prediction.recommendations

    def test_short_on_time(self, predictor, recipe, profile):
        prediction = predictor.predict_cooking_success(recipe, profile, available_time_minutes=20)

        assert prediction.success_score == pytest.approx(0.475)

    def test_enough_time_has_no_penalty(self, predictor, recipe, profile):
        prediction = predictor.predict_cooking_success(recipe, profile, available_time_minutes=60)

        assert prediction.success_score == pytest.approx(0.625)

    def test_stress_penalty(self, predictor, recipe, profile):
        prediction = predictor.predict_cooking_success(recipe, profile, stress_level=5)

        assert prediction.success_score == pytest.approx(0.525)

    @pytest.mark.parametrize("stress", [1, 3, "abc", None])
    def test_calm_or_unknown_stress(self, predictor, recipe, profile, stress):
        prediction = predictor.predict_cooking_success(recipe, profile, stress_level=stress)

        assert prediction.success_score == pytest.approx(0.625)

    def test_score_is_floored(self, predictor, recipe_factory, profile_factory):
        recipe = recipe_factory([], difficulty_level="hard", total_time_minutes=120)
        profile = profile_factory(skill_level=1, success_history={"attempts": 10, "successes": 0})

        prediction = predictor.predict_cooking_success(recipe, profile, available_time_minutes=30, stress_level=5)

        assert prediction.success_score == 0.1
        assert prediction.confidence_interval == pytest.approx((0.0, 0.2))

    def test_long_cook_time_risk(self, predictor, recipe_factory, profile_factory):
        recipe = recipe_factory([], cook_time_minutes=60)

        prediction = predictor.predict_cooking_success(recipe, profile_factory(preferred_cooking_time_minutes=30))

        assert "Cooking time is much longer than your preferred duration" in prediction.risk_factors

    def test_missing_equipment_risk(self, predictor, recipe_factory, profile_factory):
        recipe = recipe_factory(["Blend until smooth"])

        prediction = predictor.predict_cooking_success(recipe, profile_factory())

        assert "Missing required equipment: blender" in prediction.risk_factors

    def test_accepts_dicts(self, predictor, recipe_data, profile_data):
        assert predictor.predict_cooking_success(recipe_data, profile_data).success_score == pytest.approx(0.625)
