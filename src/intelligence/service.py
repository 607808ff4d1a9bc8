"""Cooking intelligence service.

Single entry point over the engine components. Wires the catalog, the
technique knowledge base and the configuration into each component, and
adds whole-recipe adaptation on top.

Example:
    service = CookingIntelligenceService.from_config(config)
    suggestions = await service.get_smart_substitutions(recipe.ingredients, profile)
    adaptation = await service.adapt_recipe(recipe, profile, portion_multiplier=2)
"""

import math
from statistics import mean
from typing import Any, List, Optional

from src.catalog.substitutions import SubstitutionCatalog, build_catalog
from src.catalog.techniques import TechniqueKnowledgeBase
from src.intelligence.difficulty import DifficultyAssessor
from src.intelligence.insights import InsightGenerator
from src.intelligence.instructions import InstructionAdapter
from src.intelligence.prediction import SuccessPredictor
from src.intelligence.substitutions import SubstitutionMatcher
from src.models.models import (
    CookingProfile,
    DifficultyAssessment,
    Insight,
    InstructionAdjustment,
    Recipe,
    RecipeAdaptation,
    SubstitutionSuggestion,
    SuccessPrediction,
    TechniqueEntry,
    clamp,
    clamp_skill,
    to_float,
)
from src.utils.config import Config
from src.utils.logger import logger


# Simplifying below the cook's own level slows prep down by this factor
SIMPLIFIED_PREP_FACTOR = 1.2


class CookingIntelligenceService:
    """Facade over substitution matching, instruction adaptation and recipe analysis."""

    def __init__(
        self,
        config: Config,
        catalog: Optional[SubstitutionCatalog] = None,
        knowledge_base: Optional[TechniqueKnowledgeBase] = None,
    ) -> None:
        self.config = config
        self.catalog = catalog if catalog is not None else build_catalog(config)
        self.knowledge_base = knowledge_base or TechniqueKnowledgeBase(config)

        self.matcher = SubstitutionMatcher(self.catalog, config)
        self.adapter = InstructionAdapter(self.knowledge_base, config)
        self.assessor = DifficultyAssessor(self.knowledge_base, config)
        self.insight_generator = InsightGenerator(self.knowledge_base, config)
        self.predictor = SuccessPredictor(config)

    @classmethod
    def from_config(cls, config: Config) -> "CookingIntelligenceService":
        return cls(config)

    async def close(self) -> None:
        await self.catalog.close()

    async def get_smart_substitutions(self, ingredients: Any, profile: Any) -> List[SubstitutionSuggestion]:
        return await self.matcher.get_smart_substitutions(ingredients, profile)

    def adjust_instructions_for_skill_level(
        self,
        instructions: Any,
        target_skill_level: Any,
        profile: Any = None,
        recipe: Any = None,
    ) -> List[InstructionAdjustment]:
        return self.adapter.adjust_instructions_for_skill_level(instructions, target_skill_level, profile, recipe)

    def get_cooking_technique(self, name: Any, user_skill_level: Any) -> Optional[TechniqueEntry]:
        return self.knowledge_base.get_cooking_technique(name, user_skill_level)

    def generate_cooking_insights(self, recipe: Any, profile: Any) -> List[Insight]:
        return self.insight_generator.generate_cooking_insights(recipe, profile)

    def assess_recipe_difficulty(self, recipe: Any, profile: Any) -> DifficultyAssessment:
        return self.assessor.assess_recipe_difficulty(recipe, profile)

    def predict_cooking_success(
        self,
        recipe: Any,
        profile: Any,
        available_time_minutes: Optional[Any] = None,
        stress_level: Optional[Any] = None,
    ) -> SuccessPrediction:
        return self.predictor.predict_cooking_success(recipe, profile, available_time_minutes, stress_level)

    async def adapt_recipe(
        self,
        recipe: Any,
        profile: Any,
        target_skill_level: Optional[Any] = None,
        portion_multiplier: Any = 1.0,
    ) -> RecipeAdaptation:
        """Rewrite a recipe for one cook.

        Applies skill adjustments to the steps, scales portions, and attaches
        substitutions, insights, a difficulty assessment and a success
        prediction computed on the adapted recipe.

        Args:
            recipe: Recipe or its dict form.
            profile: CookingProfile or its dict form.
            target_skill_level: Level to write for. Defaults to the cook's own.
            portion_multiplier: Scale factor for amounts and servings.
                Non-positive or malformed values leave portions unchanged.

        Returns:
            RecipeAdaptation. The input recipe is never modified.
        """
        recipe = Recipe.coerce(recipe)
        profile = CookingProfile.coerce(profile)
        target = clamp_skill(target_skill_level if target_skill_level is not None else profile.skill_level)

        adaptation_types: List[str] = []
        update: dict = {}

        adjustments = self.adjust_instructions_for_skill_level(recipe.instructions, target, profile, recipe)
        if adjustments:
            instructions = list(recipe.instructions)
            for adjustment in adjustments:
                instructions[adjustment.step_number - 1] = adjustment.adjusted_instruction
            update["instructions"] = instructions
            adaptation_types.append("skill_adjusted")

        if target < profile.skill_level and recipe.prep_time_minutes:
            prep = math.ceil(recipe.prep_time_minutes * SIMPLIFIED_PREP_FACTOR)
            update["prep_time_minutes"] = prep
            update["total_time_minutes"] = recipe.total_time_minutes + (prep - recipe.prep_time_minutes)
            if "skill_adjusted" not in adaptation_types:
                adaptation_types.append("skill_adjusted")

        multiplier = to_float(portion_multiplier, 1.0)
        if multiplier > 0 and multiplier != 1.0:
            update["ingredients"] = [
                ingredient.model_copy(update={"amount": round(ingredient.amount * multiplier, 2)})
                for ingredient in recipe.ingredients
            ]
            update["servings"] = max(1, math.ceil(recipe.servings * multiplier))
            adaptation_types.append("portion_scaled")

        substitutions = await self.get_smart_substitutions(recipe.ingredients, profile)
        if substitutions:
            adaptation_types.append("ingredient_substituted")

        adapted = recipe.model_copy(update=update)
        # Analysis reads the original steps; added explanations would trip the detectors
        analyzed = recipe.model_copy(update={k: v for k, v in update.items() if k != "instructions"})
        insights = self.generate_cooking_insights(analyzed, profile)
        difficulty = self.assess_recipe_difficulty(analyzed, profile)
        prediction = self.predict_cooking_success(analyzed, profile)

        top_scores = [suggestion.substitutes[0].match_score for suggestion in substitutions if suggestion.substitutes]
        if top_scores:
            confidence = (mean(top_scores) + prediction.success_score) / 2
        else:
            confidence = prediction.success_score

        logger.info(
            f"Adapted recipe for skill {target}: {', '.join(adaptation_types) or 'no changes'}",
            extra={"user_id": profile.id, "recipe_id": recipe.id},
        )
        return RecipeAdaptation(
            adapted_recipe=adapted,
            adaptation_types=adaptation_types,
            adjustments=adjustments,
            substitutions=substitutions,
            insights=insights,
            difficulty=difficulty,
            prediction=prediction,
            confidence_score=round(clamp(confidence, 0.0, 1.0), 4),
        )
