"""Integration tests for sales.service: a whole game from entropy blocks."""

import pytest

from helpers import make_blocks
from rolls import EntropyBlock, commit_client_seed, derive, roll_character
from sales import service
from sales.errors import GAME_NOT_FOUND, PRECONDITION_VIOLATION, WRONG_PHASE, SalesGameError
from sales.types import TIERS

CHARACTER = roll_character("Jordan", 777, "c0ffee" * 10 + "beef", "ab" * 32)


def _drain(session_id):
    """Pitch until the current client walks away."""
    out = service.get_game(session_id)
    slot = out["state"]["phase"]
    client_key = "first_client" if slot == "first_client" else "whale_client"
    for _ in range(20):
        out = service.take_action(session_id, "pitch")
        if not out["state"][client_key]["active"]:
            return out
    raise AssertionError("negotiation did not finish")


def _play(blocks, *, travel="drive", crossroads="hunt", vp="stretch", investment="research"):
    sid = service.start_game(CHARACTER)["session_id"]
    service.run_assignment(sid, blocks[0])
    service.advance(sid)
    service.choose_travel(sid, travel)
    service.advance(sid)
    service.start_first_client(sid, blocks[1])
    _drain(sid)
    service.settle_negotiation(sid)
    service.advance(sid)
    service.resolve_crossroads(sid, crossroads, blocks[2])
    service.advance(sid)
    service.resolve_quarter_event(sid)
    service.advance(sid)
    service.choose_vp(sid, vp)
    service.advance(sid)
    service.invest_in_whale(sid, investment)
    service.roll_lucky_item(sid)
    service.advance(sid)
    service.start_whale(sid, blocks[3])
    _drain(sid)
    service.settle_negotiation(sid)
    service.advance(sid)
    return sid, service.finish_game(sid)


def test_full_game(blocks):
    sid, out = _play(blocks)
    state = out["state"]
    assert state["phase"] == "quarter_end"
    assert state["tier"] in TIERS
    assert out["tier"]["storable"] == (state["tier"] in ("promotion", "legendary"))

    labels = [r["label"] for r in state["rolls"]]
    for label in ("territory", "journey", "drive", "client1_select", "client1_r1_pitch", "client1_r1_body",
                  "crossroads", "quarter_event", "lucky", "whale_select", "whale_r1_pitch", "whale_r1_body"):
        assert label in labels
    assert set(out["blocks"]) == {"assignment", "first_client", "crossroads", "whale"}


def test_rolls_are_derived_from_their_labels(blocks):
    sid, out = _play(blocks)
    by_block = {b.height: b for b in blocks}
    for roll in out["state"]["rolls"]:
        block = by_block[roll["block_height"]]
        assert roll["result"] == derive(block.block_hash, block.client_seed, roll["label"], roll["die_size"])
        assert roll["roll_seed_hash"] == block.client_seed_hash


def test_same_blocks_and_choices_replay_the_same_game(blocks):
    _, first = _play(blocks)
    _, second = _play(make_blocks())
    assert first["state"]["money"] == second["state"]["money"]
    assert first["state"]["rolls"] == second["state"]["rolls"]
    assert first["state"]["tier"] == second["state"]["tier"]


def test_achievement_follows_the_tier(blocks):
    sid, out = _play(blocks)
    if out["state"]["tier"] in ("promotion", "legendary"):
        record = service.achievement_for(sid, timestamp=1)
        assert record["final_money"] == out["state"]["money"]
        assert len(record["blocks"]) == 4
    else:
        with pytest.raises(SalesGameError):
            service.achievement_for(sid, timestamp=1)


def test_unknown_session():
    with pytest.raises(SalesGameError) as exc:
        service.get_game("missing")
    assert exc.value.code == GAME_NOT_FOUND


def test_failed_operation_leaves_the_session_untouched(blocks):
    sid = service.start_game(CHARACTER)["session_id"]
    before = service.get_game(sid)
    with pytest.raises(SalesGameError) as exc:
        service.advance(sid)
    assert exc.value.code == PRECONDITION_VIOLATION
    assert service.get_game(sid)["state"] == before["state"]


def test_actions_need_a_negotiation_phase(blocks):
    sid = service.start_game(CHARACTER)["session_id"]
    with pytest.raises(SalesGameError) as exc:
        service.take_action(sid, "pitch")
    assert exc.value.code == WRONG_PHASE


def test_commitment_must_match(blocks):
    sid = service.start_game(CHARACTER)["session_id"]
    bad = EntropyBlock(blocks[0].height, blocks[0].block_hash, "22" * 32, commit_client_seed("11" * 32))
    with pytest.raises(SalesGameError) as exc:
        service.run_assignment(sid, bad)
    assert exc.value.code == PRECONDITION_VIOLATION


def test_first_client_block_cannot_be_swapped(blocks):
    sid = service.start_game(CHARACTER)["session_id"]
    service.run_assignment(sid, blocks[0])
    service.advance(sid)
    service.choose_travel(sid, "train")
    service.advance(sid)
    service.start_first_client(sid, blocks[1])
    with pytest.raises(SalesGameError):
        service.start_first_client(sid, blocks[2])


def test_ability_and_concede_need_no_rolls(blocks):
    sid = service.start_game(CHARACTER)["session_id"]
    service.run_assignment(sid, blocks[0])
    service.advance(sid)
    service.choose_travel(sid, "fly")
    service.advance(sid)
    service.start_first_client(sid, blocks[1])
    rolls_before = len(service.get_game(sid)["state"]["rolls"])

    out = service.take_action(sid, "ability")
    assert out["result"]["action"] == "ability"
    out = service.take_action(sid, "concede")
    assert out["outcome"] in ("closed", "lost")
    assert len(out["state"]["rolls"]) == rolls_before

    settled = service.settle_negotiation(sid)
    assert settled["state"]["first_client_settled"]
