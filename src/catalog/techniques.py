"""Technique knowledge base.

A static, seeded catalog of culinary techniques keyed by canonical name
(the same keys the technique rules in ``src.intelligence.rules`` emit).

Two reads:
- ``fetch_technique(name)``: raw lookup, no visibility rules
- ``get_cooking_technique(name, user_skill_level)``: the view a given cook
  gets. Techniques more than SKILL_BUFFER levels above the cook are hidden;
  techniques inside the buffer come with simpler alternatives.
"""

from typing import Any, Dict, List, Optional

from src.intelligence.rules import fold
from src.models.models import TechniqueEntry, clamp_skill
from src.utils.config import Config
from src.utils.logger import logger


BEGINNER_TIPS = [
    "Take your time - speed comes with practice",
    "Watch tutorial videos if you're unsure",
]

# Skill level at or below which the extra encouragement tips are added
ENCOURAGEMENT_SKILL_LEVEL = 2


TECHNIQUES: Dict[str, Dict[str, Any]] = {
    "saute": {
        "name": "Sauté",
        "aliases": ["sauteing", "sauteed", "pan fry", "pan-fry"],
        "description": "Cook food quickly in a small amount of fat over fairly high heat, keeping it moving.",
        "required_skill_level": 2,
        "explanation": (
            'Sautéing means "to jump" in French - you want to keep the ingredients moving '
            "in the hot pan so they brown without burning."
        ),
        "tips": [
            "Heat the pan before adding oil",
            "Don't overcrowd the pan or the food will steam instead of brown",
            "Cut ingredients to the same size so they cook evenly",
        ],
        "common_mistakes": ["Adding food to a cold pan", "Stirring constantly so nothing browns"],
        "alternatives": ["Stir the ingredients in a non-stick pan over medium heat", "Roast on a sheet pan instead"],
    },
    "sear": {
        "name": "Sear",
        "aliases": ["searing", "seared"],
        "description": "Brown the surface of meat or fish over very high heat to build a crust.",
        "required_skill_level": 3,
        "explanation": "Searing means browning the outside over high heat. Leave the food alone until it releases from the pan.",
        "tips": ["Pat the surface dry first", "Let the pan get properly hot before the food goes in"],
        "common_mistakes": ["Moving the food too early", "Searing wet meat"],
        "alternatives": ["Brown gently over medium heat", "Finish under the broiler for color"],
    },
    "fold": {
        "name": "Fold",
        "aliases": ["folding", "folded", "fold in"],
        "description": "Combine a light, airy mixture with a heavier one without knocking out the air.",
        "required_skill_level": 3,
        "explanation": "Folding preserves air in the mixture. Use a spatula to gently lift and turn the ingredients.",
        "tips": ["Cut down through the middle and sweep up the side", "Stop as soon as no streaks remain"],
        "common_mistakes": ["Stirring vigorously", "Overmixing"],
        "alternatives": ["Stir gently with a spoon in a few slow strokes"],
    },
    "whisk": {
        "name": "Whisk",
        "aliases": ["whisking", "whisked"],
        "description": "Beat ingredients together with a whisk to blend them or add air.",
        "required_skill_level": 1,
        "explanation": "Whisking means beating quickly in small circles to mix ingredients smoothly.",
        "tips": ["Put a damp towel under the bowl so it doesn't slide"],
        "common_mistakes": ["Using a bowl that is too small"],
        "alternatives": ["Shake the ingredients in a jar with a tight lid"],
    },
    "whip": {
        "name": "Whip",
        "aliases": ["whipping", "whipped"],
        "description": "Beat cream or egg whites until they hold peaks.",
        "required_skill_level": 3,
        "explanation": "Whipping means beating air into cream or egg whites until they thicken and hold their shape.",
        "tips": ["Start with a cold bowl for cream", "Stop at soft peaks if you'll fold it later"],
        "common_mistakes": ["Overwhipping cream into butter", "Grease in the bowl for egg whites"],
        "alternatives": ["Use a hand mixer", "Buy ready-whipped cream"],
    },
    "knead": {
        "name": "Knead",
        "aliases": ["kneading", "kneaded"],
        "description": "Work dough by pressing, folding and turning to develop gluten.",
        "required_skill_level": 3,
        "explanation": "Kneading means pushing the dough away with the heel of your hand, folding it back and turning it.",
        "tips": ["The dough is ready when it springs back when poked"],
        "common_mistakes": ["Adding too much flour", "Stopping too early"],
        "alternatives": ["Use a no-knead dough with a long rest", "Let a stand mixer with a dough hook do it"],
    },
    "chop": {
        "name": "Chop",
        "aliases": ["chopping", "chopped"],
        "description": "Cut food into rough, roughly even pieces.",
        "required_skill_level": 1,
        "explanation": "Chopping means cutting into bite-sized pieces. They don't need to be perfect, just similar in size.",
        "tips": ["Use a sharp knife - dull knives slip", "Keep your fingers curled under"],
        "common_mistakes": ["Using a dull knife"],
        "alternatives": ["Buy pre-chopped vegetables", "Use kitchen scissors for herbs"],
    },
    "dice": {
        "name": "Dice",
        "aliases": ["dicing", "diced"],
        "description": "Cut food into small, uniform cubes.",
        "required_skill_level": 2,
        "explanation": "Dicing means cutting into small, uniform cubes. Keep your fingers curled under for safety.",
        "tips": ["Square off round vegetables first so they sit flat", "Cut planks, then sticks, then cubes"],
        "common_mistakes": ["Uneven sizes that cook at different rates"],
        "alternatives": ["Chop roughly instead", "Buy pre-diced vegetables"],
    },
    "mince": {
        "name": "Mince",
        "aliases": ["mincing", "minced"],
        "description": "Chop food very finely.",
        "required_skill_level": 2,
        "explanation": "Mincing means chopping very finely - the pieces should be smaller than a grain of rice.",
        "tips": ["Rock the knife back and forth with your other hand flat on the spine"],
        "common_mistakes": ["Crushing instead of cutting with a dull blade"],
        "alternatives": ["Use a garlic press or microplane", "Use jarred minced garlic"],
    },
    "julienne": {
        "name": "Julienne",
        "aliases": ["julienned", "matchstick cut"],
        "description": "Cut food into long, thin matchsticks.",
        "required_skill_level": 5,
        "explanation": "Julienne means cutting into thin matchsticks about 3mm wide and 5cm long.",
        "tips": ["Cut thin planks first, stack them, then slice into sticks"],
        "common_mistakes": ["Planks that are too thick"],
        "alternatives": ["Use a julienne peeler", "Grate on the large holes of a box grater", "Slice thinly"],
    },
    "brunoise": {
        "name": "Brunoise",
        "aliases": ["brunoised"],
        "description": "A very fine dice made from julienned vegetables.",
        "required_skill_level": 7,
        "explanation": "A brunoise is a tiny 3mm dice made by cutting julienned matchsticks crosswise.",
        "tips": ["Julienne first, then line up the sticks and cut across"],
        "common_mistakes": ["Inconsistent cube size"],
        "alternatives": ["Dice as finely as you comfortably can", "Pulse briefly in a food processor"],
    },
    "chiffonade": {
        "name": "Chiffonade",
        "aliases": ["chiffonaded"],
        "description": "Slice leafy herbs or greens into thin ribbons.",
        "required_skill_level": 4,
        "explanation": "Chiffonade means stacking leaves, rolling them into a tight cigar and slicing across into ribbons.",
        "tips": ["Use a very sharp knife so the leaves don't bruise"],
        "common_mistakes": ["Bruising the leaves with a dull blade"],
        "alternatives": ["Tear the leaves by hand", "Snip with kitchen scissors"],
    },
    "simmer": {
        "name": "Simmer",
        "aliases": ["simmering", "simmered"],
        "description": "Cook liquid just below boiling, with small bubbles breaking the surface.",
        "required_skill_level": 1,
        "explanation": "Simmering means cooking with small, gentle bubbles - lower the heat once it starts to boil.",
        "tips": ["Adjust the heat so you see a few lazy bubbles"],
        "common_mistakes": ["Letting it boil hard"],
        "alternatives": ["Use the lowest burner setting with the lid ajar"],
    },
    "steam": {
        "name": "Steam",
        "aliases": ["steaming", "steamed"],
        "description": "Cook food over boiling water without it touching the water.",
        "required_skill_level": 1,
        "explanation": "Steaming means cooking food in the steam above simmering water, usually in a covered basket.",
        "tips": ["Keep the water below the basket", "Don't lift the lid too often"],
        "common_mistakes": ["Letting the pot boil dry"],
        "alternatives": ["Microwave in a covered bowl with a splash of water"],
    },
    "blanch": {
        "name": "Blanch",
        "aliases": ["blanching", "blanched"],
        "description": "Briefly boil food, then stop the cooking in ice water.",
        "required_skill_level": 3,
        "explanation": "Blanching means a quick dip in boiling water followed by ice water to keep color and crunch.",
        "tips": ["Have the ice bath ready before you start"],
        "common_mistakes": ["Leaving vegetables in too long"],
        "alternatives": ["Steam briefly instead", "Microwave for a minute and rinse under cold water"],
    },
    "poach": {
        "name": "Poach",
        "aliases": ["poaching", "poached"],
        "description": "Cook food gently in liquid held below a simmer.",
        "required_skill_level": 4,
        "explanation": "Poaching means cooking gently in barely moving liquid - no visible bubbles.",
        "tips": ["Use a thermometer: 70-80°C is the target range"],
        "common_mistakes": ["Liquid too hot so the food toughens"],
        "alternatives": ["Bake covered in a little liquid", "Simmer gently and check often"],
    },
    "roast": {
        "name": "Roast",
        "aliases": ["roasting", "roasted"],
        "description": "Cook food uncovered in a hot oven with dry heat.",
        "required_skill_level": 2,
        "explanation": "Roasting means cooking in a hot oven so the outside browns while the inside cooks through.",
        "tips": ["Spread food in a single layer", "Preheat the oven fully"],
        "common_mistakes": ["Crowding the tray"],
        "alternatives": ["Cook in an air fryer", "Pan-fry and finish covered"],
    },
    "grill": {
        "name": "Grill",
        "aliases": ["grilling", "grilled", "barbecue"],
        "description": "Cook food over direct, high radiant heat.",
        "required_skill_level": 3,
        "explanation": "Grilling means cooking over direct heat. Oil the food, not the grates, and turn only once.",
        "tips": ["Clean and preheat the grates", "Use two heat zones: hot and cooler"],
        "common_mistakes": ["Flipping too often", "Pressing juices out with the spatula"],
        "alternatives": ["Use a grill pan on the stovetop", "Broil in the oven"],
    },
    "braise": {
        "name": "Braise",
        "aliases": ["braising", "braised"],
        "description": "Brown food, then cook it slowly covered in a little liquid.",
        "required_skill_level": 5,
        "explanation": "Braising means browning first, then cooking slowly in a covered pot with some liquid until tender.",
        "tips": ["Brown in batches", "Keep the liquid at a bare simmer"],
        "common_mistakes": ["Too much liquid", "Cooking at too high a temperature"],
        "alternatives": ["Use a slow cooker", "Simmer in a covered pot on low heat"],
    },
    "caramelize": {
        "name": "Caramelize",
        "aliases": ["caramelise", "caramelizing", "caramelized"],
        "description": "Cook sugars (in onions, fruit or sugar itself) slowly until deep golden.",
        "required_skill_level": 4,
        "explanation": "Caramelizing means cooking slowly until natural sugars turn golden brown and sweet.",
        "tips": ["Keep the heat medium-low", "Be patient - onions take 30-40 minutes"],
        "common_mistakes": ["Rushing with high heat so they burn"],
        "alternatives": ["Cook until soft and lightly golden", "Add a pinch of sugar to speed browning"],
    },
    "deglaze": {
        "name": "Deglaze",
        "aliases": ["deglazing", "deglazed"],
        "description": "Loosen browned bits from a pan with liquid to make a sauce.",
        "required_skill_level": 5,
        "explanation": "Deglazing means pouring liquid into a hot pan and scraping up the browned bits for flavor.",
        "tips": ["Pull the pan off the heat before adding wine", "Scrape with a wooden spoon"],
        "common_mistakes": ["Adding cold liquid to a smoking pan"],
        "alternatives": ["Add a splash of stock and stir well", "Skip it and use a ready-made sauce"],
    },
    "emulsify": {
        "name": "Emulsify",
        "aliases": ["emulsifying", "emulsified", "emulsion"],
        "description": "Combine fat and water into a stable, creamy mixture.",
        "required_skill_level": 6,
        "explanation": "Emulsifying means whisking fat slowly into a liquid so they blend into a smooth, creamy sauce.",
        "tips": ["Add the oil drop by drop at first", "Keep everything at room temperature"],
        "common_mistakes": ["Adding the oil too fast so the sauce breaks"],
        "alternatives": ["Shake the dressing in a jar", "Use an immersion blender", "Use a store-bought mayonnaise base"],
    },
    "tempering": {
        "name": "Tempering",
        "aliases": ["temper", "tempered"],
        "description": "Raise the temperature of a delicate ingredient gradually, or set chocolate to a precise crystal structure.",
        "required_skill_level": 7,
        "explanation": "Tempering means warming something delicate gradually so it doesn't seize or curdle.",
        "tips": ["Use a thermometer", "Add hot liquid to eggs a ladle at a time"],
        "common_mistakes": ["Adding eggs straight to hot liquid", "Overheating chocolate"],
        "alternatives": ["Use compound (coating) chocolate that needs no tempering", "Melt chocolate gently for a ganache"],
    },
    "flambe": {
        "name": "Flambé",
        "aliases": ["flambeed", "flambeing"],
        "description": "Ignite alcohol in a pan to burn it off and add flavor.",
        "required_skill_level": 8,
        "explanation": "Flambéing means lighting the alcohol in the pan so it burns off quickly.",
        "tips": ["Take the pan off the heat before adding alcohol", "Use a long lighter"],
        "common_mistakes": ["Pouring from the bottle over a flame"],
        "alternatives": ["Simmer the alcohol for a few minutes until it reduces", "Leave it out entirely"],
    },
}


class TechniqueKnowledgeBase:
    """Read-only technique lookup with accent- and alias-insensitive keys."""

    def __init__(self, config: Config, techniques: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
        self.config = config
        self._entries: Dict[str, TechniqueEntry] = {}
        self._index: Dict[str, str] = {}

        for key, data in (techniques if techniques is not None else TECHNIQUES).items():
            entry = TechniqueEntry.model_validate(data)
            self._entries[key] = entry
            for alias in [key, entry.name, *entry.aliases]:
                self._index.setdefault(fold(alias).strip(), key)

    def keys(self) -> List[str]:
        return list(self._entries)

    def resolve(self, name: Any) -> Optional[str]:
        """Map a technique name or alias to its canonical key."""
        if not isinstance(name, str):
            return None
        return self._index.get(" ".join(fold(name).split()))

    def fetch_technique(self, name: Any) -> Optional[TechniqueEntry]:
        """Raw lookup without visibility rules. Returns a copy."""
        key = self.resolve(name)
        if key is None:
            return None
        return self._entries[key].model_copy(deep=True)

    def get_cooking_technique(self, name: Any, user_skill_level: Any) -> Optional[TechniqueEntry]:
        """Look up a technique as a cook at the given skill level should see it.

        Args:
            name: Technique name or alias (case- and accent-insensitive).
            user_skill_level: Cook's skill; clamped into 1-10.

        Returns:
            The entry, or None if unknown or more than SKILL_BUFFER levels
            above the cook. Alternatives are only kept when the technique is
            above the cook's level. Beginners get extra encouragement tips.
        """
        entry = self.fetch_technique(name)
        if entry is None:
            logger.debug(f"Unknown technique: {name!r}")
            return None

        skill = clamp_skill(user_skill_level)
        if entry.required_skill_level > skill + self.config.SKILL_BUFFER:
            logger.debug(
                f"Technique {entry.name} (level {entry.required_skill_level}) hidden for skill {skill}"
            )
            return None

        update: Dict[str, Any] = {}
        if entry.required_skill_level <= skill:
            update["alternatives"] = []
        if skill <= ENCOURAGEMENT_SKILL_LEVEL:
            update["tips"] = entry.tips + [tip for tip in BEGINNER_TIPS if tip not in entry.tips]
        return entry.model_copy(update=update) if update else entry
