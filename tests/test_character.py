"""Unit tests for rolls.character and rolls.verification."""

import threading
from dataclasses import replace

import pytest

from rolls import (
    ELEMENTS,
    SEXES,
    SPIRIT_ANIMALS,
    STAT_NAMES,
    EntropySource,
    EntropyUnavailable,
    InMemoryEntropySource,
    StatRoll,
    calculate_modifier,
    character_from_payload,
    combine_seed,
    derive_roll,
    roll_character,
    verify_character,
)
from rolls.character import stat_labels

BLOCK_HEIGHT = 3_141_592
BLOCK_HASH = "000000000000000000b1c2d3e4f5a6b7c8d9e0f1a2b3c4d5e6f7a8b9c0d1e2f3"
CLIENT_SEED = "9e" * 32


@pytest.fixture
def rolled():
    return roll_character("Morgan", BLOCK_HEIGHT, BLOCK_HASH, CLIENT_SEED)


@pytest.mark.parametrize(
    "total,expected",
    [(4, -5), (8, -3), (11, -1), (12, -1), (13, 0), (14, 0), (15, 1), (18, 2), (24, 5)],
)
def test_calculate_modifier(total, expected):
    assert calculate_modifier(total) == expected


class TestRollCharacter:
    def test_is_deterministic(self, rolled):
        again = roll_character("Morgan", BLOCK_HEIGHT, BLOCK_HASH, CLIENT_SEED)
        assert again == rolled

    def test_stats_use_labelled_d6_rolls(self, rolled):
        combined = combine_seed(BLOCK_HASH, CLIENT_SEED)
        for stat in STAT_NAMES:
            expected = tuple(derive_roll(combined, label, 6) for label in stat_labels(stat))
            roll = rolled.stats[stat]
            assert roll.dice == expected
            assert roll.total == sum(expected)
            assert 4 <= roll.total <= 24
            assert roll.modifier == calculate_modifier(roll.total)

    def test_traits_come_from_their_tables(self, rolled):
        combined = combine_seed(BLOCK_HASH, CLIENT_SEED)
        assert rolled.element == ELEMENTS[derive_roll(combined, "element", 6) - 1]
        assert rolled.spirit_animal == SPIRIT_ANIMALS[derive_roll(combined, "spirit_animal", 12) - 1]
        assert rolled.sex in SEXES

    def test_verification_block_is_kept(self, rolled):
        assert rolled.roll_block_height == BLOCK_HEIGHT
        assert rolled.verification.block_hash == BLOCK_HASH
        assert rolled.verification.client_seed == CLIENT_SEED


class TestCharacterPayload:
    def test_payload_parses_back(self, rolled):
        assert character_from_payload(rolled.to_payload()) == rolled

    def test_rejects_total_that_does_not_match_dice(self, rolled):
        payload = rolled.to_payload()
        payload["stats"]["str"]["total"] = payload["stats"]["str"]["total"] + 1
        with pytest.raises(ValueError):
            character_from_payload(payload)

    def test_rejects_unknown_element(self, rolled):
        payload = rolled.to_payload()
        payload["traits"]["element"] = "Lightning"
        with pytest.raises(ValueError):
            character_from_payload(payload)

    def test_rejects_non_mapping(self):
        with pytest.raises(TypeError):
            character_from_payload(["not", "a", "character"])


class TestVerifyCharacter:
    def test_valid_character(self, rolled):
        source = InMemoryEntropySource({BLOCK_HEIGHT: BLOCK_HASH})
        result = verify_character(rolled, source)
        assert result.valid
        assert result.block_hash_valid
        assert result.stats_match and result.traits_match
        assert result.computed == rolled

    def test_tampered_stats_are_detected(self, rolled):
        stats = dict(rolled.stats)
        stats["cha"] = StatRoll(dice=(6, 6, 6, 6), total=24, modifier=5)
        tampered = replace(rolled, stats=stats)
        result = verify_character(tampered, InMemoryEntropySource({BLOCK_HEIGHT: BLOCK_HASH}))
        assert not result.valid
        assert result.block_hash_valid
        assert not result.stats_match

    def test_wrong_block_hash(self, rolled):
        source = InMemoryEntropySource({BLOCK_HEIGHT: "ff" * 32})
        result = verify_character(rolled, source)
        assert not result.valid
        assert not result.block_hash_valid
        assert result.error

    def test_unavailable_block_is_reported_not_raised(self, rolled):
        result = verify_character(rolled, InMemoryEntropySource())
        assert not result.valid
        assert "not available" in result.error
        assert result.to_payload()["valid"] is False

    def test_waits_for_a_late_block(self, rolled):
        source = InMemoryEntropySource()
        timer = threading.Timer(0.05, source.add, args=(BLOCK_HEIGHT, BLOCK_HASH))
        timer.start()
        try:
            result = verify_character(rolled, source, timeout=5.0)
        finally:
            timer.cancel()
        assert result.valid


class TestInMemoryEntropySource:
    def test_satisfies_the_protocol(self):
        assert isinstance(InMemoryEntropySource(), EntropySource)

    def test_current_height(self):
        source = InMemoryEntropySource()
        assert source.current_height() == 0
        source.add(10, "aa" * 32)
        source.add(12, "bb" * 32)
        assert source.current_height() == 12
        assert source.block_hash(10) == "aa" * 32

    def test_missing_block(self):
        with pytest.raises(EntropyUnavailable):
            InMemoryEntropySource().block_hash(5)

    def test_wait_returns_immediately_when_present(self):
        source = InMemoryEntropySource({7: "cc" * 32})
        assert source.wait_for_height(7, timeout=0) == "cc" * 32

    def test_wait_is_woken_by_add(self):
        source = InMemoryEntropySource()
        seen = []
        waiter = threading.Thread(target=lambda: seen.append(source.wait_for_height(99, timeout=5.0)))
        waiter.start()
        source.add(98, "00" * 32)
        source.add(99, "dd" * 32)
        waiter.join(timeout=5.0)
        assert seen == ["dd" * 32]

    def test_wait_times_out(self):
        with pytest.raises(EntropyUnavailable):
            InMemoryEntropySource().wait_for_height(3, timeout=0.01)
