import logging
from datetime import datetime, timezone
from typing import NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator

from provably_fair.services.errors import NonceReuseError, PairInactiveError
from provably_fair.services.hashing import generate_client_seed, generate_server_seed, sha256


class SeedPair(BaseModel):
    """A committed server seed together with the player's client seed.

    ``server_seed`` is a ``SecretStr`` so it stays masked in reprs, logs and
    dumps until the pair is revealed. Nonces are zero-based: the first bet
    placed on a fresh pair uses nonce 0.
    """
    model_config = ConfigDict(frozen=True)

    server_seed: SecretStr
    server_seed_hash: str
    client_seed: str
    nonce: int = Field(default=0, ge=0)
    created_at: datetime
    revealed_at: Optional[datetime] = None
    is_active: bool = True

    @model_validator(mode="after")
    def _revealed_iff_inactive(self):
        if self.is_active != (self.revealed_at is None):
            raise ValueError("a pair is revealed exactly when it is no longer active")
        return self

    @property
    def revealed_server_seed(self) -> Optional[str]:
        if self.is_active:
            return None
        return self.server_seed.get_secret_value()

    def public(self) -> "SeedPairView":
        return SeedPairView(
            server_seed=self.revealed_server_seed,
            server_seed_hash=self.server_seed_hash,
            client_seed=self.client_seed,
            nonce=self.nonce,
            created_at=self.created_at,
            revealed_at=self.revealed_at,
            is_active=self.is_active,
        )


class SeedPairView(BaseModel):
    server_seed: Optional[str] = None
    server_seed_hash: str
    client_seed: str
    nonce: int
    created_at: datetime
    revealed_at: Optional[datetime] = None
    is_active: bool


class RotatedSeedPair(NamedTuple):
    revealed: SeedPair
    new: SeedPair


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_seed_pair(client_seed: Optional[str] = None) -> SeedPair:
    server_seed = generate_server_seed()
    return SeedPair(
        server_seed=SecretStr(server_seed),
        server_seed_hash=sha256(server_seed),
        client_seed=client_seed or generate_client_seed(),
        nonce=0,
        created_at=_now(),
    )


def next_nonce(pair: SeedPair) -> tuple[SeedPair, int]:
    """Return the pair advanced by one bet and the nonce that bet uses."""
    if not pair.is_active:
        raise PairInactiveError(f"seed pair {pair.server_seed_hash} was revealed")
    return pair.model_copy(update={"nonce": pair.nonce + 1}), pair.nonce


def reveal_seed_pair(pair: SeedPair) -> SeedPair:
    if not pair.is_active:
        raise PairInactiveError(f"seed pair {pair.server_seed_hash} was already revealed")
    return pair.model_copy(update={"revealed_at": _now(), "is_active": False})


def rotate_seed_pair(pair: SeedPair, new_client_seed: Optional[str] = None) -> RotatedSeedPair:
    return RotatedSeedPair(revealed=reveal_seed_pair(pair), new=create_seed_pair(new_client_seed))


class SeedPairManager:
    """Seed pair lifecycle on top of a ``SeedPairStore``.

    The store's compare-and-swap is the only way a nonce advances, so two
    bets racing on one pair can never be handed the same nonce.
    """

    def __init__(self, store):
        self.store = store

    def active_pair(self, player_id: str) -> SeedPair:
        pair = self.store.load(player_id)
        if pair is None:
            pair = self.store.add(player_id, create_seed_pair())
            logging.info(f"Committed seed pair {pair.server_seed_hash} for player {player_id}")
        return pair

    def next_nonce(self, player_id: str) -> tuple[SeedPair, int]:
        pair = self.active_pair(player_id)
        advanced, nonce = next_nonce(pair)
        if not self.store.compare_and_swap_nonce(pair, nonce, advanced.nonce):
            current = self.store.get(pair.server_seed_hash)
            if current is None or not current.is_active:
                raise PairInactiveError(f"seed pair {pair.server_seed_hash} was revealed")
            raise NonceReuseError(
                f"nonce {nonce} of seed pair {pair.server_seed_hash} was already consumed"
            )
        logging.info(f"Player {player_id} consumed nonce {nonce} of {pair.server_seed_hash}")
        return advanced, nonce

    def rotate(self, player_id: str, new_client_seed: Optional[str] = None) -> RotatedSeedPair:
        while True:
            current = self.active_pair(player_id)
            rotated = rotate_seed_pair(current, new_client_seed)
            if self.store.replace_active(player_id, rotated.revealed, rotated.new):
                break
            latest = self.store.get(current.server_seed_hash)
            if latest is not None and not latest.is_active:
                raise PairInactiveError(f"seed pair {current.server_seed_hash} was already revealed")
            # a bet advanced the nonce in between; reveal the newer state
        logging.info(
            f"Revealed seed pair {rotated.revealed.server_seed_hash} for player {player_id} "
            f"after {rotated.revealed.nonce} bets, committed {rotated.new.server_seed_hash}"
        )
        return rotated

    def history(self, player_id: str) -> list[SeedPair]:
        return self.store.history(player_id)
