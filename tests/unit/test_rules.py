"""Unit tests for the declarative instruction and ingredient rules."""

import pytest

from src.catalog.techniques import TECHNIQUES
from src.intelligence.rules import (
    EQUIPMENT_RULES,
    HAZARD_RULES,
    TECHNIQUE_RULES,
    count_sub_techniques,
    count_techniques,
    detect_equipment,
    detect_hazards,
    detect_recipe_hazards,
    detect_techniques,
    fold,
    matches_allergy,
    missing_equipment,
    resolve_vagueness,
    violates_restriction,
)


class TestFold:
    def test_fold_strips_accents_and_case(self):
        assert fold("Sautéed Crème Brûlée") == "sauteed creme brulee"

    def test_fold_handles_none(self):
        assert fold(None) == ""


class TestTechniqueDetection:
    """Tests for technique keyword rules."""

    def test_every_rule_has_a_knowledge_base_entry(self):
        assert {rule.technique for rule in TECHNIQUE_RULES} <= set(TECHNIQUES)

    @pytest.mark.parametrize(
        "instruction,technique",
        [
            ("Sauté the onions", "saute"),
            ("Saute the onions", "saute"),
            ("Add the sautéed garlic", "saute"),
            ("Gently fold in the egg whites", "fold"),
            ("Dice the carrots", "dice"),
            ("Temper the eggs with hot milk", "tempering"),
            ("Caramelise the onions slowly", "caramelize"),
            ("Cut the vegetables into brunoise", "brunoise"),
        ],
    )
    def test_detects_technique(self, instruction, technique):
        assert technique in detect_techniques(instruction)

    def test_count_techniques_counts_occurrences(self):
        counts = count_techniques(["Whisk the eggs", "Whisk in the sugar", "Fold in the flour"])

        assert counts == {"fold": 1, "whisk": 2}

    def test_no_false_positive_on_unfold(self):
        assert "fold" not in detect_techniques("Unfold the parchment")


class TestHazardDetection:
    """Tests for hazard rules."""

    @pytest.mark.parametrize(
        "instruction,category",
        [
            ("Heat oil in pan until very hot and smoking", "hot_oil"),
            ("Deep fry the chicken", "hot_oil"),
            ("Flambé the bananas with rum", "open_flame"),
            ("Bring a large pot of water to a boil", "boiling_liquid"),
            ("Carefully slice the tomatoes", "sharp_tools"),
            ("Remove the tray from the oven", "hot_surface"),
        ],
    )
    def test_detects_hazard(self, instruction, category):
        assert category in [rule.category for rule in detect_hazards(instruction)]

    def test_safe_instruction_has_no_hazard(self):
        assert detect_hazards("Stir the salad dressing") == []

    def test_preheat_is_not_hot_oil(self):
        assert detect_hazards("Preheat oven to 350°F") == []

    def test_recipe_hazards_are_distinct(self):
        hazards = detect_recipe_hazards(["Heat the oil", "Fry the onions in hot oil", "Slice the bread"])

        assert [rule.category for rule in hazards] == ["hot_oil", "sharp_tools"]

    def test_every_hazard_has_note_and_insight(self):
        for rule in HAZARD_RULES:
            assert rule.safety_note
            assert rule.insight


class TestVagueness:
    """Tests for vague phrase resolution."""

    def test_to_taste_gets_concrete_guidance(self):
        text, fired = resolve_vagueness("Season to taste")

        assert "start with a pinch" in text
        assert text.startswith("Season to taste (")
        assert [rule.phrase for rule in fired] == ["to taste"]

    def test_until_done_and_as_needed(self):
        text, fired = resolve_vagueness("Cook until done, adding water as needed")

        assert "fork" in text
        assert "tablespoon" in text
        assert len(fired) == 2

    def test_case_insensitive(self):
        _, fired = resolve_vagueness("SEASON TO TASTE")

        assert len(fired) == 1

    def test_specific_instruction_is_untouched(self):
        text, fired = resolve_vagueness("Bake for 25 minutes at 180°C")

        assert text == "Bake for 25 minutes at 180°C"
        assert fired == []


class TestEquipment:
    """Tests for equipment rules."""

    def test_detects_equipment(self):
        keys = [rule.key for rule in detect_equipment(["Preheat oven to 350°F", "Blend until smooth"])]

        assert keys == ["oven", "blender"]

    def test_room_temperature_does_not_need_thermometer(self):
        assert detect_equipment(["Bring the butter to room temperature"]) == []

    def test_missing_equipment_honors_stand_ins(self):
        required = detect_equipment(["Simmer the sauce", "Whip with a stand mixer"])

        assert missing_equipment(required, {"stove", "hand_mixer"}) == []
        assert [rule.key for rule in missing_equipment(required, set())] == ["stovetop", "stand_mixer"]

    def test_every_rule_has_an_alternative(self):
        for rule in EQUIPMENT_RULES:
            assert rule.alternative


class TestSubTechniques:
    def test_counts_distinct_sub_techniques(self):
        count = count_sub_techniques(
            ["Temper the chocolate", "Julienne the carrots", "Temper again", "Emulsify the dressing"]
        )

        assert count == 3

    def test_plain_recipe_has_none(self):
        assert count_sub_techniques(["Mix everything", "Serve"]) == 0


class TestRestrictions:
    """Tests for dietary restriction checks."""

    @pytest.mark.parametrize(
        "ingredient,restriction,expected",
        [
            ("chicken", "vegetarian", True),
            ("chicken broth", "vegetarian", True),
            ("tofu", "vegetarian", False),
            ("salmon", "pescatarian", False),
            ("heavy cream", "dairy_free", True),
            ("coconut milk", "dairy_free", False),
            ("peanut butter", "dairy_free", False),
            ("butter", "vegan", True),
            ("honey", "vegan", True),
            ("eggplant", "vegan", False),
            ("all-purpose flour", "gluten_free", True),
            ("almond flour", "gluten_free", False),
            ("fresh cilantro", "no_cilantro", True),
            ("parsley", "no_cilantro", False),
            ("", "vegetarian", False),
        ],
    )
    def test_violates_restriction(self, ingredient, restriction, expected):
        assert violates_restriction(ingredient, restriction) is expected


class TestAllergies:
    """Tests for allergy matching."""

    @pytest.mark.parametrize(
        "ingredient,allergy,expected",
        [
            ("almonds", "nuts", True),
            ("cashews", "tree nuts", True),
            ("pine nuts", "nuts", True),
            ("nutmeg", "nuts", False),
            ("coconut milk", "nuts", False),
            ("peanut butter", "peanuts", True),
            ("shrimp", "shellfish", True),
            ("egg whites", "eggs", True),
            ("eggplant", "eggs", False),
            ("butter", "dairy", True),
            ("strawberries", "strawberry", True),
            ("bread", "", False),
        ],
    )
    def test_matches_allergy(self, ingredient, allergy, expected):
        assert matches_allergy(ingredient, allergy) is expected
