from typing import Union

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from provably_fair.services.errors import FairnessError
from provably_fair.services.games import GameParams, bet_message
from provably_fair.services.hashing import hash_to_unit_float, hmac_sha256, sha256
from provably_fair.services.verifier import VerificationResult, verify_bet

router = APIRouter(prefix="/verify", tags=["verify"])


class VerifyIn(BaseModel):
    server_seed: str
    server_seed_hash: str
    client_seed: str = Field(min_length=1)
    nonce: int = Field(ge=0)
    params: GameParams
    expected_outcome: Union[list[int], float]


class HashIn(BaseModel):
    value: str


class HmacIn(BaseModel):
    server_seed: str = Field(min_length=1)
    client_seed: str = Field(min_length=1)
    nonce: int = Field(ge=0)


@router.post("", response_model=VerificationResult)
def verify(v: VerifyIn):
    try:
        return verify_bet(v.server_seed, v.server_seed_hash, v.client_seed, v.nonce,
                          v.params, v.expected_outcome)
    except FairnessError as e:
        raise HTTPException(400, str(e))

@router.post("/hash")
def hash_value(h: HashIn):
    return {"hash": sha256(h.value)}

@router.post("/hmac")
def hmac_value(h: HmacIn):
    digest = hmac_sha256(h.server_seed, bet_message(h.client_seed, h.nonce))
    return {"hash": digest, "float": hash_to_unit_float(digest)}
