"""Payout rules applied by the betting routes on top of generated outcomes."""
from decimal import Decimal
from typing import Literal

from provably_fair.services.errors import InvalidParameterError
from provably_fair.services.games import DEFAULT_GRID_SIZE, HOUSE_EDGE, round_half_up

Risk = Literal["low", "medium", "high"]

PAYOUT = {
    "low": {
        8: [5.6, 2.1, 1.1, 1, 0.5, 1, 1.1, 2.1, 5.6],
        10: [8.9, 3, 1.4, 1.1, 1, 0.5, 1, 1.1, 1.4, 3, 8.9],
        12: [10, 3, 1.6, 1.4, 1.1, 1, 0.5, 1, 1.1, 1.4, 1.6, 3, 10],
        14: [16, 4, 2.2, 1.6, 1.3, 1.1, 1, 0.5, 1, 1.1, 1.3, 1.6, 2.2, 4, 16],
        16: [16, 9, 2, 1.4, 1.4, 1.2, 1.1, 1, 0.5, 1, 1.1, 1.2, 1.4, 1.4, 2, 9, 16],
    },
    "medium": {
        8: [13, 3, 1.3, 0.7, 0.4, 0.7, 1.3, 3, 13],
        10: [22, 5, 2, 1.4, 0.6, 0.4, 0.6, 1.4, 2, 5, 22],
        12: [33, 11, 4, 2, 1.1, 0.6, 0.3, 0.6, 1.1, 2, 4, 11, 33],
        14: [43, 13, 6, 3, 1.3, 0.7, 0.4, 0.2, 0.4, 0.7, 1.3, 3, 6, 13, 43],
        16: [110, 41, 10, 5, 3, 1.5, 1, 0.5, 0.3, 0.5, 1, 1.5, 3, 5, 10, 41, 110],
    },
    "high": {
        8: [29, 4, 1.5, 0.3, 0.2, 0.3, 1.5, 4, 29],
        10: [76, 10, 3, 0.9, 0.3, 0.2, 0.3, 0.9, 3, 10, 76],
        12: [170, 24, 8.1, 2, 0.7, 0.2, 0.2, 0.2, 0.7, 2, 8.1, 24, 170],
        14: [420, 56, 18, 5, 1.9, 0.3, 0.2, 0.2, 0.2, 0.3, 1.9, 5, 18, 56, 420],
        16: [1000, 130, 26, 9, 4, 2, 0.2, 0.2, 0.2, 0.2, 0.2, 2, 4, 9, 26, 130, 1000],
    },
}
PLINKO_ROWS = sorted(PAYOUT["medium"])


def plinko_multiplier(risk: str, rows: int, slot: int) -> float:
    try:
        table = PAYOUT[risk][rows]
    except KeyError:
        raise InvalidParameterError(f"no plinko payout table for risk={risk!r} rows={rows}") from None
    if not 0 <= slot < len(table):
        raise InvalidParameterError(f"slot {slot} outside 0..{len(table) - 1}")
    return float(table[slot])


def limbo_multiplier(result: float, target: float) -> float:
    if target <= 1:
        raise InvalidParameterError(f"limbo target must be above 1.00, got {target}")
    return float(target) if result >= target else 0.0


def crash_multiplier(crash_point: float, cashout: float) -> float:
    if cashout <= 1:
        raise InvalidParameterError(f"cashout must be above 1.00, got {cashout}")
    return float(cashout) if crash_point >= cashout else 0.0


def mines_multiplier(mines_count: int, gems_revealed: int, grid_size: int = DEFAULT_GRID_SIZE) -> float:
    """Cash-out multiplier after revealing ``gems_revealed`` safe tiles."""
    safe = grid_size - mines_count
    if not 1 <= mines_count < grid_size:
        raise InvalidParameterError(f"mines_count must be between 1 and {grid_size - 1}")
    if not 0 <= gems_revealed <= safe:
        raise InvalidParameterError(f"gems_revealed must be between 0 and {safe}")
    if gems_revealed == 0:
        return 1.0

    survive = Decimal(1)
    for i in range(gems_revealed):
        survive *= Decimal(safe - i) / Decimal(grid_size - i)
    return round_half_up((1 - HOUSE_EDGE) / survive, 4)
