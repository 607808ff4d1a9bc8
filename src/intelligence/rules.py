"""Declarative text rules for reading recipe instructions.

Every detector in the engine is a table of rules dispatched by one loop:

- TECHNIQUE_RULES: culinary technique keywords (keys match the knowledge base)
- HAZARD_RULES: safety-relevant actions, one entry per hazard category
- VAGUENESS_RULES: vague phrases and the concrete guidance that resolves them
- EQUIPMENT_RULES: equipment implied by an instruction
- SUB_TECHNIQUE_PATTERNS: fiddly preparation work that adds prep complexity
- RESTRICTION_RULES / ALLERGEN_FAMILIES: ingredient name checks for diets and allergies

Matching runs on "folded" text (lowercase, accents stripped) so that
"Sauté", "saute" and "sautéed" all hit the same pattern.

Adding a rule means adding a row; no detector needs to change.
"""

import re
import unicodedata
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Pattern, Tuple


def fold(text: str) -> str:
    """Lowercase and strip accents: 'Sautéed' -> 'sauteed'."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()


def _compile(pattern: str) -> Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


@dataclass(frozen=True)
class TechniqueRule:
    technique: str
    pattern: Pattern[str]


@dataclass(frozen=True)
class HazardRule:
    category: str
    label: str
    pattern: Pattern[str]
    safety_note: str
    insight: str


@dataclass(frozen=True)
class VaguenessRule:
    phrase: str
    pattern: Pattern[str]
    guidance: str


@dataclass(frozen=True)
class EquipmentRule:
    key: str
    label: str
    pattern: Pattern[str]
    alternative: str
    satisfied_by: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class RestrictionRule:
    restriction: str
    label: str
    keywords: Tuple[str, ...]
    exclusions: Tuple[str, ...] = field(default_factory=tuple)
    includes: Tuple[str, ...] = field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Techniques
# ---------------------------------------------------------------------------

TECHNIQUE_RULES: List[TechniqueRule] = [
    TechniqueRule("saute", _compile(r"\bsaute\w*")),
    TechniqueRule("sear", _compile(r"\bsear(s|ed|ing)?\b")),
    TechniqueRule("fold", _compile(r"\bfold(s|ed|ing)?\b")),
    TechniqueRule("whisk", _compile(r"\bwhisk(s|ed|ing)?\b")),
    TechniqueRule("whip", _compile(r"\bwhip(s|ped|ping)?\b")),
    TechniqueRule("knead", _compile(r"\bknead\w*")),
    TechniqueRule("chop", _compile(r"\bchop(s|ped|ping)?\b")),
    TechniqueRule("dice", _compile(r"\bdic(e|es|ed|ing)\b")),
    TechniqueRule("mince", _compile(r"\bminc(e|es|ed|ing)\b")),
    TechniqueRule("julienne", _compile(r"\bjulienne\w*")),
    TechniqueRule("brunoise", _compile(r"\bbrunoise\b")),
    TechniqueRule("chiffonade", _compile(r"\bchiffonade\b")),
    TechniqueRule("simmer", _compile(r"\bsimmer\w*")),
    TechniqueRule("steam", _compile(r"\bsteam(s|ed|ing)?\b")),
    TechniqueRule("blanch", _compile(r"\bblanch\w*")),
    TechniqueRule("poach", _compile(r"\bpoach\w*")),
    TechniqueRule("roast", _compile(r"\broast(s|ed|ing)?\b")),
    TechniqueRule("grill", _compile(r"\bgrill(s|ed|ing)?\b")),
    TechniqueRule("braise", _compile(r"\bbrais\w*")),
    TechniqueRule("caramelize", _compile(r"\bcarameli[sz]\w*")),
    TechniqueRule("deglaze", _compile(r"\bdeglaz\w*")),
    TechniqueRule("emulsify", _compile(r"\bemulsi\w*")),
    TechniqueRule("tempering", _compile(r"\btemper(s|ed|ing)?\b")),
    TechniqueRule("flambe", _compile(r"\bflambe\w*")),
]


def count_techniques(instructions: Iterable[str]) -> Dict[str, int]:
    """Count technique mentions across instructions, in rule order."""
    counts: Counter = Counter()
    for instruction in instructions:
        text = fold(instruction)
        for rule in TECHNIQUE_RULES:
            hits = len(rule.pattern.findall(text))
            if hits:
                counts[rule.technique] += hits
    return {rule.technique: counts[rule.technique] for rule in TECHNIQUE_RULES if counts[rule.technique]}


def detect_techniques(instruction: str) -> List[str]:
    """Distinct techniques mentioned in one instruction, in rule order."""
    return list(count_techniques([instruction]))


# ---------------------------------------------------------------------------
# Hazards
# ---------------------------------------------------------------------------

HAZARD_RULES: List[HazardRule] = [
    HazardRule(
        category="hot_oil",
        label="hot oil",
        pattern=_compile(
            r"\bhot\b[^.]*\boil\b|\boil\b[^.]*\b(hot|smok\w*)\b|\bheat\w*\b[^.]*\boil\b"
            r"|\bsmok(e|es|ing)\b|\b(deep[- ]?)?fr(y|ying|ies)\b|\bsplatter\w*"
        ),
        safety_note="Hot oil can splatter. Keep a lid nearby and work carefully.",
        insight=(
            "This recipe involves hot oil. Always heat oil gradually and keep a lid nearby "
            "to cover the pan if it spatters."
        ),
    ),
    HazardRule(
        category="open_flame",
        label="open flame",
        pattern=_compile(r"\bflam(e|es|ing)\b|\bflambe\w*|\bignit\w*|\b(blow|kitchen )torch\w*"),
        safety_note="Keep sleeves, towels and hair away from the flame and have a lid ready to smother it.",
        insight=(
            "This recipe uses an open flame. Clear the area around the stove, turn off the extractor fan "
            "before igniting, and keep a lid ready to smother flare-ups."
        ),
    ),
    HazardRule(
        category="boiling_liquid",
        label="boiling liquid",
        pattern=_compile(r"\bboil(s|ed|ing)?\b|\brolling boil\b"),
        safety_note="Be careful around boiling water - use pot holders and keep pot handles turned inward.",
        insight=(
            "This recipe involves boiling liquid. Lower food in gently, use pot holders, "
            "and keep pot handles turned inward."
        ),
    ),
    HazardRule(
        category="sharp_tools",
        label="sharp tools",
        pattern=_compile(
            r"\bknife\b|\bknives\b|\bcut(s|ting)?\b|\bchop(s|ped|ping)?\b|\bslic(e|es|ed|ing)\b"
            r"|\bdic(e|es|ed|ing)\b|\bminc(e|es|ed|ing)\b|\bjulienne\w*|\bbrunoise\b|\bmandoline\b"
        ),
        safety_note="Keep your fingers curled under when cutting and work slowly.",
        insight=(
            "This recipe requires knife skills. Keep your fingers curled under and cut away "
            "from your body. Take your time."
        ),
    ),
    HazardRule(
        category="hot_surface",
        label="hot oven and pans",
        pattern=_compile(
            r"\b(very )?hot (pan|skillet|pot|wok|tray|oven|baking (sheet|dish))\b"
            r"|\bbroil\w*|\b(out of|from) the oven\b"
        ),
        safety_note="Use oven mitts and treat every pan and tray as hot until proven otherwise.",
        insight=(
            "This recipe moves hot pans in and out of the oven. Keep oven mitts within reach "
            "and clear a landing spot before you open the door."
        ),
    ),
]


def detect_hazards(instruction: str) -> List[HazardRule]:
    """Hazard categories present in one instruction, in rule order."""
    text = fold(instruction)
    return [rule for rule in HAZARD_RULES if rule.pattern.search(text)]


def detect_recipe_hazards(instructions: Iterable[str]) -> List[HazardRule]:
    """Distinct hazard categories across a whole recipe."""
    found = set()
    for instruction in instructions:
        found.update(rule.category for rule in detect_hazards(instruction))
    return [rule for rule in HAZARD_RULES if rule.category in found]


# ---------------------------------------------------------------------------
# Vague phrases
# ---------------------------------------------------------------------------

VAGUENESS_RULES: List[VaguenessRule] = [
    VaguenessRule(
        phrase="to taste",
        pattern=_compile(r"\bto taste\b"),
        guidance="(start with a pinch and taste, then adjust a little at a time)",
    ),
    VaguenessRule(
        phrase="until done",
        pattern=_compile(r"\buntil (done|cooked|ready)\b"),
        guidance=(
            "(check doneness: meat should reach a safe internal temperature, "
            "vegetables should be tender when pierced with a fork)"
        ),
    ),
    VaguenessRule(
        phrase="as needed",
        pattern=_compile(r"\bas (needed|necessary|required)\b"),
        guidance="(add about a tablespoon at a time and check before adding more)",
    ),
]


def resolve_vagueness(instruction: str) -> Tuple[str, List[VaguenessRule]]:
    """Insert concrete guidance right after each vague phrase.

    Returns the rewritten instruction and the rules that fired.
    """
    text = instruction
    fired: List[VaguenessRule] = []
    for rule in VAGUENESS_RULES:
        match = rule.pattern.search(text)
        if not match:
            continue
        text = f"{text[:match.end()]} {rule.guidance}{text[match.end():]}"
        fired.append(rule)
    return text, fired


# ---------------------------------------------------------------------------
# Equipment
# ---------------------------------------------------------------------------

EQUIPMENT_RULES: List[EquipmentRule] = [
    EquipmentRule(
        "oven", "oven", _compile(r"\boven\b|\bbak(e|es|ed|ing)\b|\broast(s|ed|ing)?\b|\bbroil\w*"),
        "a toaster oven for small batches, or a covered pan on the stovetop",
        ("toaster_oven", "range"),
    ),
    EquipmentRule(
        "stovetop", "stovetop", _compile(r"\bstove(top)?\b|\bburner\b|\bsaute\w*|\bboil\w*|\bsimmer\w*"),
        "an electric skillet or a portable induction burner",
        ("stove", "cooktop", "hob", "range", "induction_burner"),
    ),
    EquipmentRule(
        "grill", "grill", _compile(r"\bgrill(s|ed|ing)?\b|\bbarbecue\b|\bbbq\b"),
        "a grill pan or the oven broiler",
        ("grill_pan", "barbecue"),
    ),
    EquipmentRule(
        "blender", "blender", _compile(r"\bblend(s|ed|ing)?\b|\bblender\b|\bpuree\w*"),
        "an immersion blender, or mash and press through a sieve",
        ("immersion_blender", "food_processor"),
    ),
    EquipmentRule(
        "food_processor", "food processor", _compile(r"\bfood processor\b|\bpulse\b"),
        "a sharp knife and some patience, or a blender in short pulses",
        ("blender",),
    ),
    EquipmentRule(
        "stand_mixer", "stand mixer", _compile(r"\bstand mixer\b|\belectric mixer\b|\bmixer\b"),
        "a hand mixer, or a whisk and a bit of elbow grease",
        ("mixer", "hand_mixer", "electric_mixer"),
    ),
    EquipmentRule(
        "thermometer", "thermometer", _compile(r"\bthermometer\b|\binternal temperature\b|\bsoft[- ]ball stage\b"),
        "visual cues: clear juices for meat, a steady shimmer for oil",
        ("meat_thermometer", "probe_thermometer", "instant_read_thermometer"),
    ),
    EquipmentRule(
        "kitchen_scale", "kitchen scale", _compile(r"\bweigh(s|ed|ing)?\b|\bkitchen scale\b"),
        "measuring cups with a conversion chart",
        ("scale",),
    ),
    EquipmentRule(
        "microwave", "microwave", _compile(r"\bmicrowav\w*"),
        "a small saucepan over low heat",
    ),
    EquipmentRule(
        "slow_cooker", "slow cooker", _compile(r"\bslow cooker\b|\bcrock ?pot\b"),
        "a heavy covered pot in a low oven",
        ("crockpot", "dutch_oven"),
    ),
    EquipmentRule(
        "pressure_cooker", "pressure cooker", _compile(r"\bpressure cooker\b|\binstant pot\b"),
        "a heavy pot on the stovetop with a longer simmer",
        ("instant_pot", "multicooker"),
    ),
    EquipmentRule(
        "kitchen_torch", "kitchen torch", _compile(r"\b(blow|kitchen )torch\w*"),
        "a few minutes under a hot broiler",
        ("blowtorch",),
    ),
]


def detect_equipment(instructions: Iterable[str]) -> List[EquipmentRule]:
    """Distinct equipment implied by a recipe's instructions, in rule order."""
    text = " ".join(fold(instruction) for instruction in instructions)
    return [rule for rule in EQUIPMENT_RULES if rule.pattern.search(text)]


def missing_equipment(required: Iterable[EquipmentRule], available: Iterable[str]) -> List[EquipmentRule]:
    """Required equipment the cook doesn't have (or a listed stand-in for)."""
    have = set(available)
    return [rule for rule in required if rule.key not in have and not have.intersection(rule.satisfied_by)]


# ---------------------------------------------------------------------------
# Preparation sub-techniques
# ---------------------------------------------------------------------------

SUB_TECHNIQUE_PATTERNS: List[Pattern[str]] = [
    _compile(r"\btemper(s|ed|ing)?\b"),
    _compile(r"\bbrunoise\b"),
    _compile(r"\bemulsi\w*"),
    _compile(r"\bjulienne\w*"),
    _compile(r"\bchiffonade\b"),
    _compile(r"\bclarif\w*"),
    _compile(r"\blaminat\w*"),
    _compile(r"\bproof(s|ed|ing)?\b"),
    _compile(r"\bdebon\w*|\bfillet(s|ed|ing)?\b"),
    _compile(r"\bspatchcock\w*"),
    _compile(r"\bflambe\w*"),
]


def count_sub_techniques(instructions: Iterable[str]) -> int:
    """Number of distinct sub-techniques mentioned anywhere in the recipe."""
    text = " ".join(fold(instruction) for instruction in instructions)
    return sum(1 for pattern in SUB_TECHNIQUE_PATTERNS if pattern.search(text))


# ---------------------------------------------------------------------------
# Diets and allergies
# ---------------------------------------------------------------------------

DAIRY_KEYWORDS = ("milk", "cheese", "butter", "cream", "yogurt", "yoghurt", "ghee", "whey", "parmesan", "mozzarella")
DAIRY_EXCLUSIONS = (
    "coconut", "almond", "oat", "soy", "rice milk", "cashew", "peanut butter", "nut butter",
    "cocoa butter", "seed butter", "cream of tartar", "vegan",
)
MEAT_KEYWORDS = (
    "meat", "chicken", "beef", "pork", "lamb", "bacon", "ham", "turkey", "veal", "sausage",
    "prosciutto", "duck", "gelatin", "lard",
)
FISH_KEYWORDS = (
    "fish", "shellfish", "salmon", "tuna", "cod", "anchov", "shrimp", "prawn", "crab", "lobster",
    "clam", "mussel", "oyster", "scallop", "squid",
)
GLUTEN_KEYWORDS = ("flour", "bread", "pasta", "wheat", "barley", "rye", "couscous", "noodle", "breadcrumb", "panko")
GLUTEN_EXCLUSIONS = ("gluten free", "gluten-free", "rice flour", "almond flour", "coconut flour", "rice noodle", "buckwheat")
TREE_NUT_KEYWORDS = (
    "almond", "cashew", "walnut", "pecan", "pistachio", "hazelnut", "macadamia", "brazil nut", "pine nut",
)

RESTRICTION_RULES: List[RestrictionRule] = [
    RestrictionRule("dairy_free", "dairy-free", DAIRY_KEYWORDS, DAIRY_EXCLUSIONS),
    RestrictionRule("gluten_free", "gluten-free", GLUTEN_KEYWORDS, GLUTEN_EXCLUSIONS),
    RestrictionRule("vegetarian", "vegetarian", MEAT_KEYWORDS + FISH_KEYWORDS),
    RestrictionRule("pescatarian", "pescatarian", MEAT_KEYWORDS),
    RestrictionRule(
        "vegan", "vegan", ("egg", "honey", "mayonnaise"), DAIRY_EXCLUSIONS + ("eggplant",),
        includes=("dairy_free", "vegetarian"),
    ),
    RestrictionRule("nut_free", "nut-free", TREE_NUT_KEYWORDS + ("peanut", "nut butter"), ("nutmeg", "coconut")),
    RestrictionRule(
        "low_carb", "low-carb", ("sugar", "rice", "pasta", "bread", "potato", "flour", "noodle"),
        ("cauliflower rice",),
    ),
]

_RESTRICTIONS_BY_KEY: Dict[str, RestrictionRule] = {rule.restriction: rule for rule in RESTRICTION_RULES}

ALLERGEN_FAMILIES: Dict[str, Tuple[str, ...]] = {
    "nuts": TREE_NUT_KEYWORDS,
    "tree_nuts": TREE_NUT_KEYWORDS,
    "peanuts": ("peanut",),
    "dairy": DAIRY_KEYWORDS,
    "milk": DAIRY_KEYWORDS,
    "lactose": DAIRY_KEYWORDS,
    "eggs": ("egg", "mayonnaise", "meringue"),
    "shellfish": ("shrimp", "prawn", "crab", "lobster", "clam", "mussel", "oyster", "scallop"),
    "fish": ("fish", "salmon", "tuna", "cod", "anchov", "halibut", "trout", "sardine"),
    "soy": ("soy", "tofu", "edamame", "tempeh", "miso"),
    "gluten": GLUTEN_KEYWORDS,
    "wheat": GLUTEN_KEYWORDS,
    "sesame": ("sesame", "tahini"),
}

_ALLERGEN_EXCLUSIONS: Dict[str, Tuple[str, ...]] = {
    "dairy": DAIRY_EXCLUSIONS,
    "milk": DAIRY_EXCLUSIONS,
    "lactose": DAIRY_EXCLUSIONS,
    "eggs": ("eggplant",),
    "gluten": GLUTEN_EXCLUSIONS,
    "wheat": GLUTEN_EXCLUSIONS,
    "nuts": ("nutmeg", "coconut"),
    "tree_nuts": ("nutmeg", "coconut"),
}


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    """Whether any keyword starts a word in text ('ham' hits 'ham hock', not 'champagne')."""
    return any(re.search(rf"\b{re.escape(keyword)}", text) for keyword in keywords)


def violates_restriction(ingredient: str, restriction: str) -> bool:
    """Whether an ingredient name breaks a dietary restriction.

    Known restrictions use the keyword table; unknown ones fall back to a
    plain substring check ('no_cilantro' style restrictions still work on
    their own words).
    """
    name = fold(ingredient).strip()
    if not name:
        return False
    rule = _RESTRICTIONS_BY_KEY.get(restriction)
    if rule is None:
        words = restriction.replace("_", " ").replace("no ", "").replace(" free", "").strip()
        return bool(words) and words in name
    if _contains_any(name, rule.keywords) and not _contains_any(name, rule.exclusions):
        return True
    return any(violates_restriction(ingredient, included) for included in rule.includes)


def restriction_label(restriction: str) -> str:
    rule = _RESTRICTIONS_BY_KEY.get(restriction)
    return rule.label if rule else restriction.replace("_", " ")


def _stem(word: str) -> str:
    if word.endswith("ies") and len(word) > 4:
        return word[:-3] + "y"
    return word[:-1] if word.endswith("s") and len(word) > 3 else word


def _word_forms(stem: str) -> str:
    """Regex matching a stem and its plurals: berry, berries; nut, nuts."""
    escaped = re.escape(stem)
    if stem.endswith("y"):
        return rf"\b({escaped}|{re.escape(stem[:-1])}ies)\b"
    return rf"\b{escaped}(s|es)?\b"


def matches_name(ingredient: str, name: str) -> bool:
    """Whether an ingredient mentions a name as a word, singular or plural."""
    folded, target = fold(ingredient).strip(), fold(name).strip()
    if not folded or not target:
        return False
    return bool(re.search(_word_forms(_stem(target)), folded))


def matches_allergy(ingredient: str, allergy: str) -> bool:
    """Whether an ingredient name hits an allergy, directly or via its allergen family."""
    name = fold(ingredient).strip()
    allergen = fold(allergy).strip()
    if not name or not allergen:
        return False
    if matches_name(name, allergen):
        return True
    family_key = "_".join(allergen.split())
    if family_key not in ALLERGEN_FAMILIES:
        family_key += "s"
    family = ALLERGEN_FAMILIES.get(family_key)
    if not family:
        return False
    return _contains_any(name, family) and not _contains_any(name, _ALLERGEN_EXCLUSIONS.get(family_key, ()))


def matching_allergies(ingredient: str, allergies: Iterable[str]) -> List[str]:
    return sorted(allergy for allergy in allergies if matches_allergy(ingredient, allergy))


def violated_restrictions(ingredient: str, restrictions: Iterable[str]) -> List[str]:
    return sorted(restriction for restriction in restrictions if violates_restriction(ingredient, restriction))


def equipment_label(key: str) -> Optional[str]:
    for rule in EQUIPMENT_RULES:
        if rule.key == key:
            return rule.label
    return None
