"""Success predictor: how likely a cook is to pull a recipe off."""

from typing import Any, List, Optional

from src.intelligence.rules import detect_equipment, missing_equipment
from src.models.models import CookingProfile, Recipe, SuccessPrediction, clamp, clamp_skill, to_float
from src.utils.config import Config
from src.utils.logger import logger


DIFFICULTY_LEVELS = {"easy": 3, "medium": 6, "hard": 9}
DEFAULT_DIFFICULTY = 6

BASE_SCORE = 0.7
# Rate assumed for cooks with no history
DEFAULT_SUCCESS_RATE = 0.7
SKILL_BONUS_PER_LEVEL = 0.03
MAX_SKILL_BONUS = 0.2
SKILL_PENALTY_PER_LEVEL = 0.05
MAX_SKILL_PENALTY = 0.3
TIME_PENALTY = 0.15
STRESS_PENALTY_PER_POINT = 0.05
CALM_STRESS_LEVEL = 3
INTERVAL = 0.1

# Risk thresholds
MAX_DIFFICULTY_GAP = 2
LONG_COOK_FACTOR = 1.5
# Cooks with fewer attempts than this get the progress-tracking tip
NEW_COOK_ATTEMPTS = 5


def difficulty_value(level: str) -> int:
    """Map a declared difficulty ('easy', 'hard', '7') onto the 1-10 scale."""
    if level in DIFFICULTY_LEVELS:
        return DIFFICULTY_LEVELS[level]
    if level.strip().isdigit():
        return clamp_skill(level)
    return DEFAULT_DIFFICULTY


class SuccessPredictor:
    """Estimates the chance a cook succeeds with a recipe."""

    def __init__(self, config: Config) -> None:
        self.config = config

    def predict_cooking_success(
        self,
        recipe: Any,
        profile: Any,
        available_time_minutes: Optional[Any] = None,
        stress_level: Optional[Any] = None,
    ) -> SuccessPrediction:
        """Predict cooking success.

        Args:
            recipe: Recipe or its dict form.
            profile: CookingProfile or its dict form.
            available_time_minutes: Time the cook has, if known.
            stress_level: Self-reported stress on a 1-5 scale, if known.

        Returns:
            SuccessPrediction with a score in [0.1, 1.0], a +/-0.1 interval,
            risk factors and recommendations.
        """
        recipe = Recipe.coerce(recipe)
        profile = CookingProfile.coerce(profile)

        difficulty = difficulty_value(recipe.difficulty_level)
        gap = profile.skill_level - difficulty

        score = BASE_SCORE
        if gap >= 0:
            score += min(MAX_SKILL_BONUS, gap * SKILL_BONUS_PER_LEVEL)
        else:
            score -= min(MAX_SKILL_PENALTY, abs(gap) * SKILL_PENALTY_PER_LEVEL)

        history_rate = profile.success_history.success_rate
        score = (score + (history_rate if history_rate is not None else DEFAULT_SUCCESS_RATE)) / 2

        if available_time_minutes is not None:
            available = to_float(available_time_minutes, -1)
            if 0 <= available < recipe.total_time_minutes:
                score -= TIME_PENALTY

        if stress_level is not None:
            stress = to_float(stress_level, CALM_STRESS_LEVEL)
            if stress > CALM_STRESS_LEVEL:
                score -= (stress - CALM_STRESS_LEVEL) * STRESS_PENALTY_PER_POINT

        score = round(clamp(score, 0.1, 1.0), 4)
        interval = (round(clamp(score - INTERVAL, 0.0, 1.0), 4), round(clamp(score + INTERVAL, 0.0, 1.0), 4))

        risks: List[str] = []
        recommendations: List[str] = []
        if difficulty - profile.skill_level > MAX_DIFFICULTY_GAP:
            risks.append("Recipe difficulty significantly exceeds your current skill level")
            recommendations.append("Consider practicing the key techniques with simpler recipes first")

        if recipe.cook_time_minutes > profile.preferred_cooking_time_minutes * LONG_COOK_FACTOR:
            risks.append("Cooking time is much longer than your preferred duration")
            recommendations.append("Plan ahead and make sure you have enough uninterrupted time")

        missing = missing_equipment(detect_equipment(recipe.instructions), profile.equipment_available)
        if missing:
            labels = ", ".join(rule.label for rule in missing)
            risks.append(f"Missing required equipment: {labels}")
            recommendations.append(f"Find alternatives for: {labels}")

        if profile.success_history.attempts < NEW_COOK_ATTEMPTS:
            recommendations.append("Take photos of your progress to track improvement")

        logger.debug(
            f"Predicted success {score} (difficulty={difficulty}, skill={profile.skill_level}, risks={len(risks)})",
            extra={"user_id": profile.id, "recipe_id": recipe.id},
        )
        return SuccessPrediction(
            success_score=score,
            confidence_interval=interval,
            risk_factors=risks,
            recommendations=recommendations,
        )
