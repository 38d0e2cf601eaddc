from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from provably_fair.deps.store import get_manager
from provably_fair.services.errors import PairInactiveError
from provably_fair.services.seeds import SeedPairManager, SeedPairView

router = APIRouter(prefix="/seeds", tags=["seeds"])


class RotateIn(BaseModel):
    client_seed: Optional[str] = Field(default=None, max_length=64)


class RotateOut(BaseModel):
    revealed: SeedPairView
    new: SeedPairView


@router.get("/{player_id}", response_model=SeedPairView)
def active_pair(player_id: str, manager: SeedPairManager = Depends(get_manager)):
    return manager.active_pair(player_id).public()

@router.post("/{player_id}/rotate", response_model=RotateOut)
def rotate(player_id: str, body: Optional[RotateIn] = None, manager: SeedPairManager = Depends(get_manager)):
    try:
        rotated = manager.rotate(player_id, body.client_seed if body else None)
    except PairInactiveError as e:
        raise HTTPException(409, str(e))
    return RotateOut(revealed=rotated.revealed.public(), new=rotated.new.public())

@router.get("/{player_id}/history", response_model=list[SeedPairView])
def history(player_id: str, manager: SeedPairManager = Depends(get_manager)):
    return [pair.public() for pair in manager.history(player_id)]
