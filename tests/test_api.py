from conftest import ZERO_SEED, ZERO_SEED_HASH
from provably_fair.services import games
from provably_fair.services.errors import DrawLimitExceededError
from provably_fair.services.hashing import sha256
from provably_fair.services.payouts import PLINKO_ROWS


def test_root_and_health(client):
    assert client.get("/healthz").json() == {"ok": True}
    assert client.get("/", follow_redirects=False).status_code in (302, 307)


def test_active_pair_hides_seed(client):
    body = client.get("/seeds/p1").json()
    assert body["server_seed"] is None
    assert body["is_active"] is True
    assert body["nonce"] == 0
    assert client.get("/seeds/p1").json()["server_seed_hash"] == body["server_seed_hash"]


def test_bets_consume_nonces_in_order(client):
    first = client.post("/games/dice", json={"player_id": "p1", "target": 50, "is_over": True})
    second = client.post("/games/limbo", json={"player_id": "p1", "target": 2})
    assert first.status_code == 200, first.text
    assert [first.json()["nonce"], second.json()["nonce"]] == [0, 1]
    assert client.get("/seeds/p1").json()["nonce"] == 2


def test_bet_then_rotate_then_verify(client):
    pair = client.get("/seeds/p1").json()
    bet = client.post("/games/plinko", json={"player_id": "p1", "risk": "high", "rows": 8}).json()
    assert bet["server_seed_hash"] == pair["server_seed_hash"]
    assert len(bet["result"]["path"]) == 8

    rotated = client.post("/seeds/p1/rotate", json={"client_seed": "next"}).json()
    revealed = rotated["revealed"]
    assert revealed["server_seed"] is not None
    assert sha256(revealed["server_seed"]) == pair["server_seed_hash"]
    assert rotated["new"]["client_seed"] == "next"
    assert rotated["new"]["server_seed"] is None

    check = client.post("/verify", json={
        "server_seed": revealed["server_seed"],
        "server_seed_hash": revealed["server_seed_hash"],
        "client_seed": bet["client_seed"],
        "nonce": bet["nonce"],
        "params": {"game": "plinko", "rows": 8},
        "expected_outcome": bet["result"]["final_slot"],
    }).json()
    assert check["is_valid"] is True
    assert check["outcome"]["path"] == bet["result"]["path"]

    history = client.get("/seeds/p1/history").json()
    assert [h["server_seed_hash"] for h in history] == [pair["server_seed_hash"]]


def test_rotate_without_body(client):
    assert client.post("/seeds/p1/rotate").status_code == 200


def test_mines_bet_pays_only_without_a_hit(client):
    bet = client.post("/games/mines", json={"player_id": "p1", "mines_count": 3, "picks": [0, 1]}).json()
    mines = set(bet["result"]["mine_positions"])
    assert len(mines) == 3
    if mines & {0, 1}:
        assert bet["multiplier"] == 0
    else:
        assert bet["multiplier"] > 1


def test_crash_bet(client):
    bet = client.post("/games/crash", json={"player_id": "p1", "cashout": 1.5}).json()
    assert bet["multiplier"] == (1.5 if bet["result"]["crash_point"] >= 1.5 else 0)


def test_invalid_bets_do_not_consume_nonces(client):
    assert client.post("/games/dice", json={"player_id": "p1", "target": 100}).status_code == 422
    assert client.post("/games/mines", json={"player_id": "p1", "mines_count": 3, "picks": [1, 1]}).status_code == 422
    assert client.post("/games/plinko", json={"player_id": "p1", "rows": 9}).status_code == 422
    assert client.get("/seeds/p1").json()["nonce"] == 0


def test_verify_golden_vector(client):
    check = client.post("/verify", json={
        "server_seed": ZERO_SEED,
        "server_seed_hash": ZERO_SEED_HASH,
        "client_seed": "test",
        "nonce": 0,
        "params": {"game": "dice", "target": 50, "is_over": True},
        "expected_outcome": 42.8,
    }).json()
    assert check["is_valid"] is True
    assert check["details"] == "Roll: 42.8, Expected: 42.8"


def test_verify_reports_wrong_hash(client):
    check = client.post("/verify", json={
        "server_seed": ZERO_SEED,
        "server_seed_hash": "ab" * 32,
        "client_seed": "test",
        "nonce": 0,
        "params": {"game": "mines", "mines_count": 3},
        "expected_outcome": [2, 18, 21],
    })
    assert check.status_code == 200
    assert check.json()["server_seed_match"] is False


def test_verify_rejects_malformed_seed(client):
    resp = client.post("/verify", json={
        "server_seed": "hello",
        "server_seed_hash": ZERO_SEED_HASH,
        "client_seed": "test",
        "nonce": 0,
        "params": {"game": "crash"},
        "expected_outcome": 1.73,
    })
    assert resp.status_code == 400


def test_hash_and_hmac_calculators(client):
    assert client.post("/verify/hash", json={"value": ZERO_SEED}).json() == {"hash": ZERO_SEED_HASH}
    body = client.post("/verify/hmac", json={"server_seed": ZERO_SEED, "client_seed": "test", "nonce": 0}).json()
    assert body["hash"].startswith("6d8fdb28cd4a8")
    assert 0.42 < body["float"] < 0.43


def test_verify_non_ascii_hash_reports_mismatch(client):
    resp = client.post("/verify", json={
        "server_seed": ZERO_SEED,
        "server_seed_hash": "é" * 64,
        "client_seed": "test",
        "nonce": 0,
        "params": {"game": "crash"},
        "expected_outcome": 1.73,
    })
    assert resp.status_code == 200
    assert resp.json()["server_seed_match"] is False


def test_oversized_mines_board_is_rejected_before_betting(client):
    resp = client.post("/games/mines", json={
        "player_id": "p1", "mines_count": 9_999_999, "grid_size": 10_000_000, "picks": [0],
    })
    assert resp.status_code == 422
    assert client.post("/verify", json={
        "server_seed": ZERO_SEED,
        "server_seed_hash": ZERO_SEED_HASH,
        "client_seed": "test",
        "nonce": 0,
        "params": {"game": "mines", "mines_count": 3, "grid_size": 10_000_000},
        "expected_outcome": [2, 18, 21],
    }).status_code == 422
    assert client.get("/seeds/p1").json()["nonce"] == 0


def test_failed_draw_reports_the_consumed_nonce(client, monkeypatch, caplog):
    def exhausted(*args):
        raise DrawLimitExceededError("placed 1 of 3 mines in 2500 draws")

    monkeypatch.setattr(games, "generate_mine_positions", exhausted)
    resp = client.post("/games/mines", json={"player_id": "p1", "mines_count": 3, "picks": [0]})
    assert resp.status_code == 409
    assert "nonce 0" in resp.json()["detail"]
    assert "nonce 0" in caplog.text
    assert client.get("/seeds/p1").json()["nonce"] == 1


def test_plinko_accepts_every_row_count_with_a_table(client):
    for rows in PLINKO_ROWS:
        bet = client.post("/games/plinko", json={"player_id": "p1", "rows": rows})
        assert bet.status_code == 200, bet.text
        assert len(bet.json()["result"]["path"]) == rows
