"""Per-game outcome generators.

Every generator is a pure function of ``(server_seed, client_seed, nonce)``
plus its game parameters. The HMAC of ``"{client_seed}:{nonce}"`` keyed by the
server seed is converted to a unit float and transformed per game.
"""
import math
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Annotated, Callable, Literal, Union

from pydantic import BaseModel, Field, model_validator

from provably_fair.services.errors import DrawLimitExceededError, InvalidParameterError
from provably_fair.services.hashing import (
    UNIT_DIVISOR, UNIT_HEX_CHARS, hash_to_unit_float, hmac_sha256, validate_server_seed,
)

HOUSE_EDGE = Decimal("0.01")
PAYOUT_RATIO = float(1 - HOUSE_EDGE)
INSTANT_CRASH_CHANCE = 0.01
MAX_CRASH_POINT = PAYOUT_RATIO * UNIT_DIVISOR
DEFAULT_GRID_SIZE = 25
MINE_DRAW_FACTOR = 100
MAX_GRID_SIZE = 100
MAX_PLINKO_ROWS = 32    # one digest byte per row


class GameType(str, Enum):
    DICE = "dice"
    CRASH = "crash"
    MINES = "mines"
    LIMBO = "limbo"
    PLINKO = "plinko"


class DiceParams(BaseModel):
    game: Literal["dice"] = "dice"
    target: float = Field(gt=0, lt=100)
    is_over: bool = True


class CrashParams(BaseModel):
    game: Literal["crash"] = "crash"


class MinesParams(BaseModel):
    game: Literal["mines"] = "mines"
    mines_count: int = Field(ge=1)
    grid_size: int = Field(default=DEFAULT_GRID_SIZE, ge=2, le=MAX_GRID_SIZE)

    @model_validator(mode="after")
    def _fits_grid(self):
        if self.mines_count >= self.grid_size:
            raise ValueError("mines_count must be smaller than grid_size")
        return self


class LimboParams(BaseModel):
    game: Literal["limbo"] = "limbo"


class PlinkoParams(BaseModel):
    game: Literal["plinko"] = "plinko"
    rows: int = Field(ge=1, le=MAX_PLINKO_ROWS)


GameParams = Annotated[
    Union[DiceParams, CrashParams, MinesParams, LimboParams, PlinkoParams],
    Field(discriminator="game"),
]


class DiceResult(BaseModel):
    roll: float
    target: float
    is_over: bool
    win: bool
    multiplier: float
    hash: str

    @property
    def outcome(self) -> float:
        return self.roll


class CrashResult(BaseModel):
    crash_point: float
    hash: str

    @property
    def outcome(self) -> float:
        return self.crash_point


class MinesResult(BaseModel):
    mine_positions: list[int]
    mines_count: int
    grid_size: int
    hash: str

    @property
    def outcome(self) -> list[int]:
        return self.mine_positions


class LimboResult(BaseModel):
    result: float
    hash: str

    @property
    def outcome(self) -> float:
        return self.result


class PlinkoResult(BaseModel):
    path: list[int]
    final_slot: int
    hash: str

    @property
    def outcome(self) -> int:
        return self.final_slot


Outcome = Union[DiceResult, CrashResult, MinesResult, LimboResult, PlinkoResult]


def round_half_up(value: float | Decimal, places: int) -> float:
    # Decimal(float) is the exact binary value, so ties round the same way everywhere
    exp = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(exp, rounding=ROUND_HALF_UP))


def bet_message(client_seed: str, nonce: int) -> str:
    return f"{client_seed}:{nonce}"


def _check_bet(server_seed: str, client_seed: str, nonce: int) -> None:
    validate_server_seed(server_seed)
    if not isinstance(client_seed, str) or not client_seed:
        raise InvalidParameterError("client seed must be a non-empty string")
    if isinstance(nonce, bool) or not isinstance(nonce, int) or nonce < 0:
        raise InvalidParameterError(f"nonce must be a non-negative integer, got {nonce!r}")


def generate_dice_result(server_seed: str, client_seed: str, nonce: int,
                         target: float, is_over: bool) -> DiceResult:
    _check_bet(server_seed, client_seed, nonce)
    if not 0 < target < 100:
        raise InvalidParameterError(f"dice target must be strictly between 0 and 100, got {target}")

    digest = hmac_sha256(server_seed, bet_message(client_seed, nonce))
    roll = round_half_up(hash_to_unit_float(digest) * 100, 2)
    win = roll > target if is_over else roll < target

    exact_target = Decimal(str(target))
    win_chance = 100 - exact_target if is_over else exact_target
    multiplier = round_half_up((1 - HOUSE_EDGE) * 100 / win_chance, 4) if win else 0.0

    return DiceResult(roll=roll, target=target, is_over=is_over, win=win,
                      multiplier=multiplier, hash=digest)


def generate_crash_point(server_seed: str, client_seed: str, nonce: int) -> CrashResult:
    _check_bet(server_seed, client_seed, nonce)
    digest = hmac_sha256(server_seed, bet_message(client_seed, nonce))
    unit = hash_to_unit_float(digest)
    # the instant-crash roll comes from the next 52 bits of the same digest
    instant = hash_to_unit_float(digest[UNIT_HEX_CHARS:UNIT_HEX_CHARS * 2]) < INSTANT_CRASH_CHANCE

    if instant:
        crash_point = 1.0
    elif unit >= 1.0:
        crash_point = MAX_CRASH_POINT
    else:
        crash_point = PAYOUT_RATIO / (1 - unit)

    return CrashResult(crash_point=max(1.0, round_half_up(crash_point, 2)), hash=digest)


def generate_mine_positions(server_seed: str, client_seed: str, nonce: int,
                            mines_count: int, grid_size: int = DEFAULT_GRID_SIZE) -> MinesResult:
    _check_bet(server_seed, client_seed, nonce)
    if not 2 <= grid_size <= MAX_GRID_SIZE:
        raise InvalidParameterError(f"grid_size must be between 2 and {MAX_GRID_SIZE}, got {grid_size}")
    if not 1 <= mines_count < grid_size:
        raise InvalidParameterError(
            f"mines_count must be between 1 and {grid_size - 1}, got {mines_count}"
        )

    positions: list[int] = []
    max_draws = grid_size * MINE_DRAW_FACTOR
    for sub_index in range(max_draws):
        digest = hmac_sha256(server_seed, f"{bet_message(client_seed, nonce)}:{sub_index}")
        # a unit of exactly 1.0 would land one past the last cell
        position = min(math.floor(hash_to_unit_float(digest) * grid_size), grid_size - 1)
        if position not in positions:
            positions.append(position)
            if len(positions) == mines_count:
                break
    else:
        raise DrawLimitExceededError(
            f"placed {len(positions)} of {mines_count} mines in {max_draws} draws"
        )

    fingerprint = hmac_sha256(server_seed, bet_message(client_seed, nonce))
    return MinesResult(mine_positions=sorted(positions), mines_count=mines_count,
                       grid_size=grid_size, hash=fingerprint)


def generate_limbo_result(server_seed: str, client_seed: str, nonce: int) -> LimboResult:
    _check_bet(server_seed, client_seed, nonce)
    digest = hmac_sha256(server_seed, bet_message(client_seed, nonce))
    unit = hash_to_unit_float(digest)

    result = 1.0 if unit < INSTANT_CRASH_CHANCE else PAYOUT_RATIO / unit
    return LimboResult(result=max(1.0, round_half_up(result, 2)), hash=digest)


def generate_plinko_path(server_seed: str, client_seed: str, nonce: int, rows: int) -> PlinkoResult:
    _check_bet(server_seed, client_seed, nonce)
    if not 1 <= rows <= MAX_PLINKO_ROWS:
        raise InvalidParameterError(f"rows must be between 1 and {MAX_PLINKO_ROWS}, got {rows}")

    digest = hmac_sha256(server_seed, bet_message(client_seed, nonce))
    path = [int(digest[i * 2:i * 2 + 2], 16) % 2 for i in range(rows)]
    return PlinkoResult(path=path, final_slot=sum(path), hash=digest)


_GENERATORS: dict[GameType, Callable[..., Outcome]] = {
    GameType.DICE: lambda s, c, n, p: generate_dice_result(s, c, n, p.target, p.is_over),
    GameType.CRASH: lambda s, c, n, p: generate_crash_point(s, c, n),
    GameType.MINES: lambda s, c, n, p: generate_mine_positions(s, c, n, p.mines_count, p.grid_size),
    GameType.LIMBO: lambda s, c, n, p: generate_limbo_result(s, c, n),
    GameType.PLINKO: lambda s, c, n, p: generate_plinko_path(s, c, n, p.rows),
}


def generate_outcome(server_seed: str, client_seed: str, nonce: int, params: GameParams) -> Outcome:
    return _GENERATORS[GameType(params.game)](server_seed, client_seed, nonce, params)
