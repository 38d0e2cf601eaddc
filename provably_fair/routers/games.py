import logging
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator, model_validator

from provably_fair.deps.store import get_manager
from provably_fair.services import games, payouts
from provably_fair.services.errors import (
    FairnessError, InvalidParameterError, NonceReuseError, PairInactiveError,
)
from provably_fair.services.games import GameType, Outcome
from provably_fair.services.seeds import SeedPairManager

router = APIRouter(prefix="/games", tags=["games"])


class BetIn(BaseModel):
    player_id: str = Field(min_length=1, max_length=64)


class DiceBetIn(BetIn):
    target: float = Field(gt=0, lt=100)
    is_over: bool = True


class CrashBetIn(BetIn):
    cashout: float = Field(gt=1)


class MinesBetIn(BetIn):
    mines_count: int = Field(ge=1)
    grid_size: int = Field(default=games.DEFAULT_GRID_SIZE, ge=2, le=games.MAX_GRID_SIZE)
    picks: list[int] = Field(min_length=1)

    @model_validator(mode="after")
    def _check_board(self):
        if self.mines_count >= self.grid_size:
            raise ValueError("mines_count must be smaller than grid_size")
        if len(set(self.picks)) != len(self.picks):
            raise ValueError("picks must be distinct")
        if any(not 0 <= p < self.grid_size for p in self.picks):
            raise ValueError("picks must be cells of the grid")
        if len(self.picks) > self.grid_size - self.mines_count:
            raise ValueError("more picks than safe cells")
        return self


class LimboBetIn(BetIn):
    target: float = Field(gt=1)


class PlinkoBetIn(BetIn):
    risk: payouts.Risk = "medium"
    rows: int = 16

    @field_validator("rows")
    @classmethod
    def _has_payout_table(cls, rows):
        if rows not in payouts.PLINKO_ROWS:
            raise ValueError(f"rows must be one of {payouts.PLINKO_ROWS}")
        return rows


class BetOut(BaseModel):
    game: GameType
    nonce: int
    server_seed_hash: str
    client_seed: str
    multiplier: float
    result: Outcome


def _place(game: GameType, player_id: str, manager: SeedPairManager,
           generate: Callable[[str, str, int], Outcome], payout: Callable[[Outcome], float]) -> BetOut:
    try:
        pair, nonce = manager.next_nonce(player_id)
    except (NonceReuseError, PairInactiveError) as e:
        raise HTTPException(409, str(e))
    try:
        result = generate(pair.server_seed.get_secret_value(), pair.client_seed, nonce)
        multiplier = payout(result)
    except FairnessError as e:
        logging.warning(
            f"{game.value} bet of player {player_id} failed, nonce {nonce} of {pair.server_seed_hash} is void: {e}"
        )
        status = 400 if isinstance(e, InvalidParameterError) else 409
        raise HTTPException(status, f"{e} (nonce {nonce} was consumed)")
    return BetOut(game=game, nonce=nonce, server_seed_hash=pair.server_seed_hash,
                  client_seed=pair.client_seed, multiplier=multiplier, result=result)


@router.post("/dice", response_model=BetOut)
def dice(b: DiceBetIn, manager: SeedPairManager = Depends(get_manager)):
    return _place(
        GameType.DICE, b.player_id, manager,
        lambda s, c, n: games.generate_dice_result(s, c, n, b.target, b.is_over),
        lambda r: r.multiplier,
    )

@router.post("/crash", response_model=BetOut)
def crash(b: CrashBetIn, manager: SeedPairManager = Depends(get_manager)):
    return _place(
        GameType.CRASH, b.player_id, manager,
        games.generate_crash_point,
        lambda r: payouts.crash_multiplier(r.crash_point, b.cashout),
    )

@router.post("/mines", response_model=BetOut)
def mines(b: MinesBetIn, manager: SeedPairManager = Depends(get_manager)):
    def payout(r):
        if set(b.picks) & set(r.mine_positions):
            return 0.0
        return payouts.mines_multiplier(b.mines_count, len(b.picks), b.grid_size)

    return _place(
        GameType.MINES, b.player_id, manager,
        lambda s, c, n: games.generate_mine_positions(s, c, n, b.mines_count, b.grid_size),
        payout,
    )

@router.post("/limbo", response_model=BetOut)
def limbo(b: LimboBetIn, manager: SeedPairManager = Depends(get_manager)):
    return _place(
        GameType.LIMBO, b.player_id, manager,
        games.generate_limbo_result,
        lambda r: payouts.limbo_multiplier(r.result, b.target),
    )

@router.post("/plinko", response_model=BetOut)
def plinko(b: PlinkoBetIn, manager: SeedPairManager = Depends(get_manager)):
    return _place(
        GameType.PLINKO, b.player_id, manager,
        lambda s, c, n: games.generate_plinko_path(s, c, n, b.rows),
        lambda r: payouts.plinko_multiplier(b.risk, b.rows, r.final_slot),
    )
