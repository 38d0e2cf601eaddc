import hmac
import logging
from typing import Optional, Sequence, Union

from pydantic import BaseModel

from provably_fair.services.errors import InvalidParameterError
from provably_fair.services.games import GameParams, GameType, Outcome, generate_outcome
from provably_fair.services.hashing import sha256, validate_server_seed

FLOAT_TOLERANCE = 0.01

ExpectedOutcome = Union[float, int, Sequence[int]]


class VerificationResult(BaseModel):
    game: GameType
    is_valid: bool
    server_seed_match: bool
    outcome_match: bool
    details: str
    outcome: Optional[Outcome] = None


def verify_server_seed(server_seed: str, server_seed_hash: str) -> bool:
    validate_server_seed(server_seed)
    # bytes, so a non-ASCII hash is a mismatch rather than a TypeError
    computed = sha256(server_seed).encode()
    return hmac.compare_digest(computed, server_seed_hash.strip().lower().encode("utf-8"))


def _close(result: Outcome, expected: ExpectedOutcome) -> bool:
    return abs(result.outcome - float(expected)) < FLOAT_TOLERANCE


def _same_positions(result: Outcome, expected: ExpectedOutcome) -> bool:
    return result.outcome == sorted(int(p) for p in expected)


def _same_slot(result: Outcome, expected: ExpectedOutcome) -> bool:
    return result.outcome == expected


def _fmt(values) -> str:
    return "[" + ", ".join(str(v) for v in values) + "]"


_MATCHERS = {
    GameType.DICE: (_close, lambda r, e: f"Roll: {r.roll}, Expected: {e}"),
    GameType.CRASH: (_close, lambda r, e: f"Crash: {r.crash_point}, Expected: {e}"),
    GameType.MINES: (_same_positions, lambda r, e: f"Mines: {_fmt(r.mine_positions)}, Expected: {_fmt(e)}"),
    GameType.LIMBO: (_close, lambda r, e: f"Result: {r.result}, Expected: {e}"),
    GameType.PLINKO: (
        _same_slot,
        lambda r, e: f"Slot: {r.final_slot}, Expected: {e}, Path: [{''.join(map(str, r.path))}]",
    ),
}


def _check_expected(game: GameType, expected: ExpectedOutcome) -> None:
    many = isinstance(expected, (list, tuple))
    if (game is GameType.MINES) != many:
        kind = "a list of positions" if game is GameType.MINES else "a number"
        raise InvalidParameterError(f"expected outcome for {game.value} must be {kind}")
    if isinstance(expected, bool):
        raise InvalidParameterError("expected outcome must be numeric")


def verify_bet(server_seed: str, server_seed_hash: str, client_seed: str, nonce: int,
               params: GameParams, expected_outcome: ExpectedOutcome) -> VerificationResult:
    """Recompute a revealed bet and compare it with the outcome that was shown.

    A wrong seed or outcome is reported in the result; only malformed input
    raises ``InvalidParameterError``.
    """
    game = GameType(params.game)
    _check_expected(game, expected_outcome)

    if not verify_server_seed(server_seed, server_seed_hash):
        logging.info(f"Verification of {game.value} bet failed: seed does not match {server_seed_hash}")
        return VerificationResult(
            game=game,
            is_valid=False,
            server_seed_match=False,
            outcome_match=False,
            details="Server seed does not match the provided hash",
        )

    result = generate_outcome(server_seed, client_seed, nonce, params)
    matches, describe = _MATCHERS[game]
    outcome_match = matches(result, expected_outcome)
    logging.info(
        f"Verified {game.value} bet {server_seed_hash}:{nonce}, outcome match: {outcome_match}"
    )
    return VerificationResult(
        game=game,
        is_valid=outcome_match,
        server_seed_match=True,
        outcome_match=outcome_match,
        details=describe(result, expected_outcome),
        outcome=result,
    )
