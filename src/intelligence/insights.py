"""Insight generator: short, targeted tips for cooking a recipe.

Insight kinds:
- technique_tip: one per detected technique near the cook's level, plus a
  mise en place tip for beginners
- equipment_recommendation: one per missing piece of equipment
- timing_adjustment: recipe runs well past the cook's usual time, or has
  many steps for a less experienced cook
- safety_warning: one per hazard category for low skill levels

Insights below MIN_INSIGHT_CONFIDENCE are dropped.
"""

from typing import Any, List

from src.catalog.techniques import TechniqueKnowledgeBase
from src.intelligence.rules import count_techniques, detect_equipment, detect_recipe_hazards, missing_equipment
from src.models.models import MAX_SKILL_LEVEL, MIN_SKILL_LEVEL, CookingProfile, Insight, Recipe
from src.utils.config import Config
from src.utils.logger import logger


# Recipes with more steps than this get an organization note
MANY_STEPS = 8

ALL_LEVELS = list(range(MIN_SKILL_LEVEL, MAX_SKILL_LEVEL + 1))


def levels_between(low: int, high: int) -> List[int]:
    return list(range(max(MIN_SKILL_LEVEL, low), min(MAX_SKILL_LEVEL, high) + 1))


class InsightGenerator:
    """Builds cooking insights for one recipe and one cook."""

    def __init__(self, knowledge_base: TechniqueKnowledgeBase, config: Config) -> None:
        self.knowledge_base = knowledge_base
        self.config = config

    def _skill_insights(self, recipe: Recipe, profile: CookingProfile) -> List[Insight]:
        insights: List[Insight] = []
        skill = profile.skill_level

        if skill <= self.config.BEGINNER_SKILL_LEVEL:
            insights.append(
                Insight(
                    insight_type="technique_tip",
                    insight_content=(
                        "Read through the entire recipe before starting. Prep all ingredients "
                        "(wash, chop, measure) before you begin cooking."
                    ),
                    skill_level_target=levels_between(MIN_SKILL_LEVEL, self.config.BEGINNER_SKILL_LEVEL),
                    context_conditions={"tip": "mise_en_place"},
                    confidence_score=0.9,
                )
            )

        if len(recipe.instructions) > MANY_STEPS and skill <= self.config.NEEDS_HELP_THRESHOLD:
            insights.append(
                Insight(
                    insight_type="timing_adjustment",
                    insight_content=(
                        f"This recipe has {len(recipe.instructions)} steps. Consider breaking it into "
                        "stages, or prep some components ahead of time."
                    ),
                    skill_level_target=levels_between(MIN_SKILL_LEVEL, self.config.NEEDS_HELP_THRESHOLD),
                    context_conditions={"steps": len(recipe.instructions)},
                    confidence_score=0.8,
                )
            )

        for name in count_techniques(recipe.instructions):
            entry = self.knowledge_base.get_cooking_technique(name, skill)
            if entry is None or abs(entry.required_skill_level - skill) > self.config.SKILL_BUFFER:
                continue
            required = entry.required_skill_level
            tip = entry.tips[0] if entry.tips else entry.description
            if required > skill:
                content = f"{entry.name} is a step up from your current level. {tip}."
                if entry.alternatives:
                    content += f" If it feels like too much: {entry.alternatives[0]}."
                confidence = 0.9
            else:
                content = f"{entry.name} tip: {tip}."
                confidence = 0.75
            insights.append(
                Insight(
                    insight_type="technique_tip",
                    insight_content=content,
                    skill_level_target=levels_between(required - self.config.SKILL_BUFFER, max(required, skill)),
                    context_conditions={"technique": name, "requiredSkillLevel": required},
                    confidence_score=confidence,
                )
            )
        return insights

    def _equipment_insights(self, recipe: Recipe, profile: CookingProfile) -> List[Insight]:
        required = detect_equipment(recipe.instructions)
        return [
            Insight(
                insight_type="equipment_recommendation",
                insight_content=(
                    f"This recipe calls for a {rule.label}, which isn't in your kitchen. "
                    f"Alternative: {rule.alternative}."
                ),
                skill_level_target=ALL_LEVELS,
                context_conditions={"missingEquipment": rule.key},
                confidence_score=0.85,
            )
            for rule in missing_equipment(required, profile.equipment_available)
        ]

    def _timing_insights(self, recipe: Recipe, profile: CookingProfile) -> List[Insight]:
        total = recipe.total_time_minutes
        preferred = profile.preferred_cooking_time_minutes
        if total <= preferred * (1 + self.config.TIMING_MARGIN):
            return []
        return [
            Insight(
                insight_type="timing_adjustment",
                insight_content=(
                    f"This recipe takes {total} minutes, which is longer than your usual {preferred} minutes. "
                    "Consider making it on a weekend or prepping ingredients ahead."
                ),
                skill_level_target=ALL_LEVELS,
                context_conditions={"totalTimeMinutes": total, "preferredCookingTimeMinutes": preferred},
                confidence_score=0.8,
            )
        ]

    def _safety_insights(self, recipe: Recipe, profile: CookingProfile) -> List[Insight]:
        if profile.skill_level > self.config.SAFETY_SKILL_THRESHOLD:
            return []
        return [
            Insight(
                insight_type="safety_warning",
                insight_content=rule.insight,
                skill_level_target=levels_between(MIN_SKILL_LEVEL, self.config.SAFETY_SKILL_THRESHOLD),
                context_conditions={"hazard": rule.category},
                confidence_score=0.95,
            )
            for rule in detect_recipe_hazards(recipe.instructions)
        ]

    def generate_cooking_insights(self, recipe: Any, profile: Any) -> List[Insight]:
        """Generate insights for cooking a recipe.

        Args:
            recipe: Recipe or its dict form.
            profile: CookingProfile or its dict form.

        Returns:
            Insights at or above MIN_INSIGHT_CONFIDENCE, grouped by kind.
        """
        recipe = Recipe.coerce(recipe)
        profile = CookingProfile.coerce(profile)

        insights = (
            self._skill_insights(recipe, profile)
            + self._equipment_insights(recipe, profile)
            + self._timing_insights(recipe, profile)
            + self._safety_insights(recipe, profile)
        )
        kept = [i for i in insights if i.confidence_score >= self.config.MIN_INSIGHT_CONFIDENCE]

        logger.debug(
            f"Generated {len(kept)} insights ({len(insights) - len(kept)} below confidence threshold)",
            extra={"user_id": profile.id, "recipe_id": recipe.id},
        )
        return kept
