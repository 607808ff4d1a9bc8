"""Difficulty assessor: scores a recipe against one cook.

Three complexity axes, each on a 1-10 scale:
- technique: 0.7 * occurrence-weighted mean + 0.3 * max required skill of the
  detected techniques (1 when none are detected)
- preparation: ingredients / 3 + instructions / 2 + total_minutes / 30 +
  distinct sub-techniques
- equipment: 1 + 8 * (missing / detected) + 0.5 * missing ** 1.5, or 1 when
  nothing is missing

Overall difficulty blends the axes with the configured weights.
"""

from typing import Any, Dict, List

from src.catalog.techniques import TechniqueKnowledgeBase
from src.intelligence.rules import EquipmentRule, count_sub_techniques, count_techniques, detect_equipment, missing_equipment
from src.models.models import (
    MAX_SKILL_LEVEL,
    MIN_SKILL_LEVEL,
    CookingProfile,
    DifficultyAssessment,
    Recipe,
    SkillGap,
    TechniqueEntry,
    clamp,
)
from src.utils.config import Config
from src.utils.logger import logger


# Equipment complexity above which missing equipment gets its own recommendation
EQUIPMENT_ALERT_LEVEL = 5
# More skill gaps than this and a simpler recipe is suggested
MAX_SKILL_GAPS = 2


def _scale(value: float) -> float:
    return round(clamp(value, MIN_SKILL_LEVEL, MAX_SKILL_LEVEL), 1)


def technique_complexity(levels: Dict[str, int], counts: Dict[str, int]) -> float:
    """Blend the occurrence-weighted mean and the peak of required skill levels."""
    if not levels:
        return float(MIN_SKILL_LEVEL)
    occurrences = sum(counts[name] for name in levels)
    weighted_mean = sum(level * counts[name] for name, level in levels.items()) / occurrences
    return _scale(0.7 * weighted_mean + 0.3 * max(levels.values()))


def preparation_complexity(recipe: Recipe) -> float:
    raw = (
        len(recipe.ingredients) / 3
        + len(recipe.instructions) / 2
        + recipe.total_time_minutes / 30
        + count_sub_techniques(recipe.instructions)
    )
    return _scale(raw)


def equipment_complexity(detected: int, missing: int) -> float:
    if missing <= 0 or detected <= 0:
        return float(MIN_SKILL_LEVEL)
    return _scale(1 + 8 * (missing / detected) + 0.5 * missing**1.5)


class DifficultyAssessor:
    """Scores how hard a recipe will be for a particular cook."""

    def __init__(self, knowledge_base: TechniqueKnowledgeBase, config: Config) -> None:
        self.knowledge_base = knowledge_base
        self.config = config

    def _detected_techniques(self, recipe: Recipe) -> Dict[str, TechniqueEntry]:
        entries: Dict[str, TechniqueEntry] = {}
        for name in count_techniques(recipe.instructions):
            entry = self.knowledge_base.fetch_technique(name)
            if entry is not None:
                entries[name] = entry
        return entries

    def _skill_gaps(self, entries: Dict[str, TechniqueEntry], skill: int) -> List[SkillGap]:
        gaps: List[SkillGap] = []
        for entry in entries.values():
            if entry.required_skill_level <= skill:
                continue
            recommendation = f"Practice {entry.name.lower()} with simpler recipes first"
            if entry.alternatives:
                recommendation += f", or try this instead: {entry.alternatives[0]}"
            gaps.append(
                SkillGap(
                    technique=entry.name,
                    required_level=entry.required_skill_level,
                    user_level=skill,
                    recommendation=recommendation,
                )
            )
        return gaps

    def _recommendations(
        self,
        gaps: List[SkillGap],
        missing: List[EquipmentRule],
        equipment_score: float,
        profile: CookingProfile,
    ) -> List[str]:
        recommendations: List[str] = []
        if len(gaps) > MAX_SKILL_GAPS:
            recommendations.append("Consider starting with a simpler recipe to build foundational skills")
        for gap in gaps:
            recommendations.append(f"Practice {gap.technique.lower()} with simpler recipes first")

        if missing and equipment_score > EQUIPMENT_ALERT_LEVEL:
            alternatives = "; ".join(f"for the {rule.label}, use {rule.alternative}" for rule in missing)
            recommendations.append(
                f"You're missing key equipment. Look for equipment alternatives before you start: {alternatives}"
            )
        elif missing:
            labels = ", ".join(rule.label for rule in missing)
            recommendations.append(f"Consider alternatives for: {labels}")

        if profile.skill_level <= self.config.BEGINNER_SKILL_LEVEL:
            recommendations.append("Take your time with prep work - mise en place is key")
        return recommendations

    def assess_recipe_difficulty(self, recipe: Any, profile: Any) -> DifficultyAssessment:
        """Assess how difficult a recipe is for a cook.

        Args:
            recipe: Recipe or its dict form.
            profile: CookingProfile or its dict form.

        Returns:
            DifficultyAssessment with per-axis complexity, skill gaps,
            missing equipment and recommendations.
        """
        recipe = Recipe.coerce(recipe)
        profile = CookingProfile.coerce(profile)

        counts = count_techniques(recipe.instructions)
        entries = self._detected_techniques(recipe)
        levels = {name: entry.required_skill_level for name, entry in entries.items()}
        technique_score = technique_complexity(levels, counts)

        preparation_score = preparation_complexity(recipe)

        required = detect_equipment(recipe.instructions)
        missing = missing_equipment(required, profile.equipment_available)
        equipment_score = equipment_complexity(len(required), len(missing))

        overall = round(
            self.config.TECHNIQUE_WEIGHT * technique_score
            + self.config.PREPARATION_WEIGHT * preparation_score
            + self.config.EQUIPMENT_WEIGHT * equipment_score
        )
        overall = int(clamp(overall, MIN_SKILL_LEVEL, MAX_SKILL_LEVEL))

        gaps = self._skill_gaps(entries, profile.skill_level)

        logger.debug(
            f"Difficulty {overall}: technique={technique_score} preparation={preparation_score} "
            f"equipment={equipment_score} gaps={len(gaps)} missing={len(missing)}",
            extra={"user_id": profile.id, "recipe_id": recipe.id},
        )

        return DifficultyAssessment(
            overall_difficulty=overall,
            preparation_complexity=preparation_score,
            equipment_complexity=equipment_score,
            technique_complexity=technique_score,
            skill_gaps=gaps,
            missing_equipment=[rule.label for rule in missing],
            recommendations=self._recommendations(gaps, missing, equipment_score, profile),
        )
