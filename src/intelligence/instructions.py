"""Instruction adapter: rewrites recipe steps for a target skill level.

Three rule families can touch a step:
- vagueness: "to taste", "until done", "as needed" get concrete guidance inline
- technique: plain-language explanations for techniques above the cook's level
  (or any explained technique for beginners)
- safety: one "Safety:" clause per hazard category for low skill levels

Each instruction yields at most one adjustment. All clauses that fire are
combined, and the adjustment is typed by the highest-priority rule:
safety_added > technique_explanation > vagueness_resolved.
"""

from typing import Any, List, Optional

from src.catalog.techniques import TechniqueKnowledgeBase
from src.intelligence.rules import detect_hazards, detect_techniques, resolve_vagueness
from src.models.models import CookingProfile, InstructionAdjustment, clamp_skill
from src.utils.config import Config
from src.utils.logger import logger


class InstructionAdapter:
    """Rewrites instructions so a cook at a given level can follow them."""

    def __init__(self, knowledge_base: TechniqueKnowledgeBase, config: Config) -> None:
        self.knowledge_base = knowledge_base
        self.config = config

    def _explanations(self, instruction: str, skill: int) -> List[str]:
        notes: List[str] = []
        for technique in detect_techniques(instruction):
            entry = self.knowledge_base.fetch_technique(technique)
            if entry is None or not entry.explanation:
                continue
            if entry.required_skill_level > skill or skill <= self.config.BEGINNER_SKILL_LEVEL:
                notes.append(entry.explanation)
        return notes

    def _safety_notes(self, instruction: str, skill: int) -> List[str]:
        if skill > self.config.SAFETY_SKILL_THRESHOLD:
            return []
        return [rule.safety_note for rule in detect_hazards(instruction)]

    def adjust_instruction(self, step_number: int, instruction: str, skill: int) -> Optional[InstructionAdjustment]:
        """Adjust a single instruction, or return None when nothing applies."""
        adjusted, vague = resolve_vagueness(instruction)
        explanations = self._explanations(instruction, skill)
        safety = self._safety_notes(instruction, skill)

        if safety:
            adjustment_type = "safety_added"
        elif explanations:
            adjustment_type = "technique_explanation"
        elif vague:
            adjustment_type = "vagueness_resolved"
        else:
            return None

        parts = [adjusted, *explanations]
        if safety:
            parts.append("⚠️ Safety: " + " ".join(safety))

        return InstructionAdjustment(
            step_number=step_number,
            original_instruction=instruction,
            adjusted_instruction="\n\n".join(parts),
            skill_level=skill,
            adjustment_type=adjustment_type,
        )

    def adjust_instructions_for_skill_level(
        self,
        instructions: Any,
        target_skill_level: Any,
        profile: Any = None,
        recipe: Any = None,
    ) -> List[InstructionAdjustment]:
        """Rewrite instructions for a target skill level.

        Args:
            instructions: Recipe steps in order.
            target_skill_level: Skill level to write for. Garbage or values
                below 1 are treated as 1 (maximum assistance).
            profile: Optional CookingProfile (used for log context).
            recipe: Optional Recipe (used for log context).

        Returns:
            Sparse list of adjustments, one per changed step, with 1-based
            step numbers. Empty when the target skill is above
            NEEDS_HELP_THRESHOLD or nothing needs changing.
        """
        if isinstance(instructions, str):
            instructions = [instructions]
        if not isinstance(instructions, (list, tuple)) or not instructions:
            return []

        skill = clamp_skill(target_skill_level)
        if skill > self.config.NEEDS_HELP_THRESHOLD:
            return []

        adjustments: List[InstructionAdjustment] = []
        for step_number, instruction in enumerate(instructions, start=1):
            if not isinstance(instruction, str) or not instruction.strip():
                continue
            adjustment = self.adjust_instruction(step_number, instruction, skill)
            if adjustment is not None:
                adjustments.append(adjustment)

        user_id = profile.id if isinstance(profile, CookingProfile) else None
        recipe_id = getattr(recipe, "id", None)
        logger.debug(
            f"Adjusted {len(adjustments)} of {len(instructions)} instructions for skill {skill}",
            extra={"user_id": user_id, "recipe_id": recipe_id},
        )
        return adjustments
