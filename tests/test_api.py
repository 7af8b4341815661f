"""HTTP tests for the FastAPI host (app.main)."""

import pytest
from fastapi.testclient import TestClient

from app.main import app
from helpers import make_blocks
from rolls import commit_client_seed


@pytest.fixture
def client():
    return TestClient(app)


def _block(b):
    return {
        "height": b.height,
        "block_hash": b.block_hash,
        "client_seed": b.client_seed,
        "client_seed_hash": b.client_seed_hash,
    }


def _rolled(client):
    resp = client.post(
        "/api/characters/roll",
        json={"name": "Avery", "block_height": 42, "block_hash": "ab" * 32, "client_seed": "cd" * 32},
    )
    assert resp.status_code == 200
    return resp.json()


def test_commitment(client):
    body = client.get("/api/characters/commitment").json()
    assert commit_client_seed(body["client_seed"]) == body["client_seed_hash"]


def test_roll_and_verify_character(client):
    rolled = _rolled(client)
    assert rolled["client_seed_hash"] == commit_client_seed("cd" * 32)
    assert set(rolled["character"]["stats"]) == {"str", "dex", "con", "int", "wis", "cha"}

    recorded = client.post("/api/entropy/blocks", json={"height": 42, "block_hash": "ab" * 32})
    assert recorded.status_code == 200
    assert recorded.json()["current_height"] >= 42

    ok = client.post("/api/characters/verify", json={"character": rolled["character"]})
    assert ok.status_code == 200
    assert ok.json()["valid"] is True


def test_verify_ignores_hashes_the_host_has_not_seen(client):
    forged = client.post(
        "/api/characters/roll",
        json={"name": "Avery", "block_height": 4242, "block_hash": "ee" * 32, "client_seed": "cd" * 32},
    ).json()["character"]
    client.post("/api/entropy/blocks", json={"height": 4242, "block_hash": "ab" * 32})

    body = client.post("/api/characters/verify", json={"character": forged}).json()
    assert body["valid"] is False
    assert body["block_hash_valid"] is False

    unseen = client.post(
        "/api/characters/roll",
        json={"name": "Avery", "block_height": 777_777, "block_hash": "ee" * 32, "client_seed": "cd" * 32},
    ).json()["character"]
    body = client.post("/api/characters/verify", json={"character": unseen, "wait_seconds": 0.01}).json()
    assert body["valid"] is False
    assert "not available" in body["error"]


def test_game_flow_start(client):
    character = _rolled(client)["character"]
    started = client.post("/api/games/start", json={"character": character})
    assert started.status_code == 200
    sid = started.json()["session_id"]
    assert started.json()["state"]["phase"] == "assignment"

    blocks = make_blocks()
    assigned = client.post(f"/api/games/{sid}/assignment", json={"block": _block(blocks[0])})
    assert assigned.status_code == 200
    assert assigned.json()["roll"]["label"] == "territory"
    assert assigned.json()["state"]["territory"] in ("tech", "retail", "finance")

    advanced = client.post(f"/api/games/{sid}/advance")
    assert advanced.json()["state"]["phase"] == "first_trip"

    travel = client.post(f"/api/games/{sid}/travel", json={"choice": "train"})
    assert travel.status_code == 200
    assert travel.json()["state"]["journey_event"]

    fetched = client.get(f"/api/games/{sid}")
    assert fetched.json()["state"]["travel_choice"] == "train"


def test_error_mapping(client):
    assert client.get("/api/games/nope").status_code == 404

    character = _rolled(client)["character"]
    sid = client.post("/api/games/start", json={"character": character}).json()["session_id"]

    resp = client.post(f"/api/games/{sid}/advance")
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "PRECONDITION_VIOLATION"

    resp = client.post(f"/api/games/{sid}/action", json={"action": "pitch"})
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "WRONG_PHASE"

    broken = dict(character, traits={"element": "Plasma", "spirit_animal": "Wolf", "sex": "Male"})
    assert client.post("/api/games/start", json={"character": broken}).status_code == 400


def test_admin_token_guard(client, monkeypatch):
    monkeypatch.setenv("SALES_ADMIN_TOKEN", "s3cret")
    payload = {"name": "Avery", "block_height": 42, "block_hash": "ab" * 32}

    assert client.post("/api/characters/roll", json=payload).status_code == 401
    assert client.post("/api/characters/roll", json=payload, headers={"X-Admin-Token": "s3cret"}).status_code == 200
    block = {"height": 42, "block_hash": "ab" * 32}
    assert client.post("/api/entropy/blocks", json=block).status_code == 401
    assert client.post("/api/entropy/blocks", json=block, headers={"X-Admin-Token": "wrong"}).status_code == 401
    # Reads stay open.
    assert client.get("/api/characters/commitment").status_code == 200
