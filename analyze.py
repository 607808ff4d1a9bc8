#!/usr/bin/env python3
"""Ad hoc recipe analysis runner for the Cooking Intelligence engine.

Adapt a recipe for a cook straight from JSON files, without any service.

Usage:
    python analyze.py --profile profile.json --recipe recipe.json
    python analyze.py --profile profile.json --recipe recipe.json --skill 2
    python analyze.py --profile profile.json --recipe recipe.json --portions 2
    python analyze.py --profile profile.json --recipe recipe.json --debug  # Full JSON

Features:
- Full adaptation via CookingIntelligenceService.adapt_recipe()
- Readable markdown summary (difficulty, substitutions, adjusted steps, insights)
- Debug mode to display the complete JSON result
- Uses the REST catalog when CATALOG_URL is set, the seeded catalog otherwise
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, List, Optional

from rich.console import Console
from rich.markdown import Markdown

from src.intelligence.service import CookingIntelligenceService
from src.models.models import RecipeAdaptation
from src.utils.config import config
from src.utils.logger import logger

console = Console()


def load_json(path: str) -> Any:
    """Load a JSON document from disk.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file isn't valid JSON.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    with open(file_path, encoding="utf-8") as f:
        try:
            return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e


def render_summary(adaptation: RecipeAdaptation) -> str:
    """Render an adaptation as markdown."""
    recipe = adaptation.adapted_recipe
    difficulty = adaptation.difficulty
    prediction = adaptation.prediction
    lines: List[str] = [f"# {recipe.title or 'Untitled recipe'}", ""]

    lines.append(
        f"**Difficulty:** {difficulty.overall_difficulty}/10 "
        f"(technique {difficulty.technique_complexity}, preparation {difficulty.preparation_complexity}, "
        f"equipment {difficulty.equipment_complexity})  "
    )
    lines.append(f"**Predicted success:** {prediction.success_score:.0%}  ")
    lines.append(f"**Serves:** {recipe.servings} · **Total time:** {recipe.total_time_minutes} min")
    lines.append("")

    if difficulty.skill_gaps:
        lines.append("## Skill gaps")
        for gap in difficulty.skill_gaps:
            lines.append(f"- **{gap.technique}** (level {gap.required_level}, you're {gap.user_level}): {gap.recommendation}")
        lines.append("")

    if adaptation.substitutions:
        lines.append("## Substitutions")
        for suggestion in adaptation.substitutions:
            options = ", ".join(
                f"{option.substitute.substitute_ingredient} ({option.match_score:.0%})"
                for option in suggestion.substitutes
            )
            reason = suggestion.substitutes[0].reasons_for_suggestion[0]
            lines.append(f"- **{suggestion.original.name}** → {options}: {reason}")
        lines.append("")

    lines.append("## Ingredients")
    for ingredient in recipe.ingredients:
        amount = f"{ingredient.amount:g} {ingredient.unit}".strip() if ingredient.amount else ""
        lines.append(f"- {amount} {ingredient.name}" if amount else f"- {ingredient.name}")
    lines.append("")

    lines.append("## Steps")
    for number, step in enumerate(recipe.instructions, start=1):
        # Indent continuation paragraphs so they stay inside the list item
        lines.append(f"{number}. " + step.replace("\n\n", "\n\n   "))
    lines.append("")

    if adaptation.insights:
        lines.append("## Tips")
        for insight in adaptation.insights:
            lines.append(f"- *{insight.insight_type.replace('_', ' ')}*: {insight.insight_content}")
        lines.append("")

    if difficulty.recommendations or prediction.recommendations:
        lines.append("## Recommendations")
        for recommendation in dict.fromkeys(difficulty.recommendations + prediction.recommendations):
            lines.append(f"- {recommendation}")

    return "\n".join(lines)


async def analyze(
    profile_data: Any,
    recipe_data: Any,
    skill: Optional[int] = None,
    portions: float = 1.0,
) -> RecipeAdaptation:
    service = CookingIntelligenceService.from_config(config)
    try:
        return await service.adapt_recipe(
            recipe_data, profile_data, target_skill_level=skill, portion_multiplier=portions
        )
    finally:
        await service.close()


def run_analysis(
    profile_path: str,
    recipe_path: str,
    skill: Optional[int] = None,
    portions: float = 1.0,
    debug: bool = False,
) -> None:
    """Adapt a recipe for a cook and print the result.

    Args:
        profile_path: Path to the cooking profile JSON.
        recipe_path: Path to the recipe JSON.
        skill: Target skill level (defaults to the profile's own).
        portions: Portion multiplier.
        debug: If True, display the full JSON result.
    """
    try:
        profile_data = load_json(profile_path)
        recipe_data = load_json(recipe_path)

        logger.info(f"Analyzing recipe from {recipe_path} for profile {profile_path}")
        adaptation = asyncio.run(analyze(profile_data, recipe_data, skill, portions))

        console.print()
        if debug:
            console.print("[bold cyan]Debug Mode: Full Result[/bold cyan]")
            console.print("[dim]" + "=" * 60 + "[/dim]")
            console.print_json(data=adaptation.model_dump(mode="json", by_alias=True))
            console.print("[dim]" + "=" * 60 + "[/dim]")
            console.print()

        console.print(Markdown(render_summary(adaptation)))

    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("\nAnalysis interrupted by user.")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Analysis failed: {e}", exc_info=True)
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Adapt a recipe to a cook's skill, diet and kitchen.")
    parser.add_argument("--profile", required=True, help="Path to the cooking profile JSON")
    parser.add_argument("--recipe", required=True, help="Path to the recipe JSON")
    parser.add_argument("--skill", type=int, default=None, help="Target skill level 1-10 (default: profile's)")
    parser.add_argument("--portions", type=float, default=1.0, help="Portion multiplier (default: 1.0)")
    parser.add_argument("--debug", action="store_true", help="Print the full JSON result")
    return parser


if __name__ == "__main__":
    args = build_parser().parse_args()
    run_analysis(args.profile, args.recipe, skill=args.skill, portions=args.portions, debug=args.debug)
