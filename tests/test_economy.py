"""Unit tests for sales.economy and sales.elements."""

import pytest

from helpers import make_character
from sales.config import DEFAULT_SALES_CONFIG
from sales.economy import (
    apply_con_resilience,
    body_language_shift,
    calculate_budget_scale,
    calculate_starting_money,
    closing_bonus,
    pitch_modifier,
    setback_loss,
    shift_body_language_roll,
)
from sales.elements import ELEMENT_RULES, check_bonus, deal_bonus, phase_income, setback_reduction
from sales.modifiers import make_modifier
from sales.types import ModifierEffect, ModifierSource


class TestStartingMoney:
    def test_reference_scenario(self):
        character = make_character(cha=2, int_=1, wis=1)
        assert calculate_starting_money(character) == 15_500

    def test_average_character_gets_base(self):
        assert calculate_starting_money(make_character()) == 10_000

    def test_minimum_applies(self):
        character = make_character(cha=-5, int_=-5, wis=-5)
        assert calculate_starting_money(character) == DEFAULT_SALES_CONFIG.minimum_money


class TestBudgetScale:
    def test_ratio_above_floor_is_exact(self):
        assert calculate_budget_scale(15_500) == pytest.approx(1.55)
        assert calculate_budget_scale(5_000) == pytest.approx(0.5)

    def test_floor(self):
        assert calculate_budget_scale(3_000) == 0.5

    @pytest.mark.parametrize("money", [3_000, 4_999, 5_000, 10_000, 27_500])
    def test_never_below_half(self, money):
        scale = calculate_budget_scale(money)
        assert scale >= 0.5
        if money / 10_000 >= 0.5:
            assert scale == pytest.approx(money / 10_000)


class TestConResilience:
    def test_all_in_scenario(self):
        assert apply_con_resilience(3_000, make_character(con=2)) == 2_800

    def test_negative_con_never_increases_a_loss(self):
        assert apply_con_resilience(3_000, make_character(con=-3)) == 3_000

    def test_loss_never_becomes_gain(self):
        assert apply_con_resilience(100, make_character(con=5)) == 0

    def test_clamp_laws(self):
        for con in range(-5, 6):
            character = make_character(con=con)
            for loss in (0, 50, 100, 150, 499, 500, 3_000):
                actual = apply_con_resilience(loss, character)
                assert 0 <= actual <= loss
                assert actual == max(0, loss - max(0, con) * 100)


class TestSetbackLoss:
    def test_earth_reduces_before_con(self):
        character = make_character(con=1, element="Earth")
        assert setback_loss(1_500, character) == 1_200

    def test_earth_floors_at_zero(self):
        assert setback_loss(150, make_character(element="Earth")) == 0

    def test_other_elements_only_use_con(self):
        assert setback_loss(400, make_character(con=1, element="Fire")) == 300

    def test_zero_loss(self):
        assert setback_loss(0, make_character(con=3)) == 0


class TestPitchModifier:
    def test_favored_stat_beats_cha(self):
        character = make_character(cha=1, int_=3)
        assert pitch_modifier(character, "tech", (), 1) == 3

    def test_int_pattern_recognition_from_round_two(self):
        character = make_character(cha=1, int_=3)
        assert pitch_modifier(character, "tech", (), 2) == 6
        assert pitch_modifier(character, "retail", (), 2) == 4

    def test_negative_int_hurts_later_rounds(self):
        character = make_character(cha=2, int_=-2)
        assert pitch_modifier(character, "retail", (), 1) == 2
        assert pitch_modifier(character, "retail", (), 3) == 0

    def test_pitch_buffs_are_added(self):
        buff = make_modifier(
            "Well Rested", value=2, source=ModifierSource.TRAVEL, effect=ModifierEffect.PITCH_BONUS, phases=2
        )
        other = make_modifier(
            "Research", value=2, source=ModifierSource.RESEARCH, effect=ModifierEffect.LISTEN_BONUS, phases=99
        )
        assert pitch_modifier(make_character(), "finance", (buff, other), 1) == 2

    def test_whale_only_buffs_need_the_whale(self):
        hunt = make_modifier(
            "Hunt Success",
            value=4,
            source=ModifierSource.HUNT,
            effect=ModifierEffect.PITCH_BONUS,
            phases=99,
            whale_only=True,
        )
        character = make_character()
        assert pitch_modifier(character, "tech", (hunt,), 1) == 0
        assert pitch_modifier(character, "tech", (hunt,), 1, whale=True) == 4

    def test_water_adds_to_checks(self):
        assert pitch_modifier(make_character(element="Water"), "tech", (), 1) == 1


class TestBodyLanguageShift:
    def test_dex_shift(self):
        assert body_language_shift(make_character(dex=3), 1) == 1
        assert body_language_shift(make_character(dex=-1), 1) == -1

    def test_wis_joins_from_round_two(self):
        character = make_character(dex=2, wis=2)
        assert body_language_shift(character, 1) == 1
        assert body_language_shift(character, 2) == 2

    def test_shifted_roll_is_clamped(self):
        assert shift_body_language_roll(6, make_character(dex=4), 1) == 6
        assert shift_body_language_roll(1, make_character(dex=-3), 1) == 1
        assert shift_body_language_roll(3, make_character(dex=2), 1) == 4


def test_closing_bonus_may_be_negative():
    assert closing_bonus(make_character(str_=3)) == 300
    assert closing_bonus(make_character(str_=-2)) == -200


class TestElements:
    def test_every_element_has_a_rule(self):
        assert set(ELEMENT_RULES) == {"Fire", "Water", "Earth", "Air", "Wood", "Metal"}

    @pytest.mark.parametrize(
        "element,first,later",
        [("Fire", 500, 500), ("Metal", 200, 200), ("Air", 300, 0), ("Water", 0, 0), ("Earth", 0, 0), ("Wood", 0, 0)],
    )
    def test_deal_bonus(self, element, first, later):
        assert deal_bonus(element, 1_000, first_deal=True) == first
        assert deal_bonus(element, 1_000, first_deal=False) == later

    def test_no_deal_bonus_without_a_deal(self):
        assert deal_bonus("Fire", 0, first_deal=True) == 0

    def test_passives(self):
        assert setback_reduction("Earth") == 200
        assert phase_income("Wood") == 100
        assert check_bonus("Water") == 1
        assert phase_income("Fire") == 0

    def test_unknown_element(self):
        with pytest.raises(ValueError):
            setback_reduction("Lightning")
