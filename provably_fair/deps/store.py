import threading
from abc import ABC, abstractmethod
from typing import Optional

from fastapi import Depends, Request

from provably_fair.services.seeds import SeedPair, SeedPairManager


class SeedPairStore(ABC):
    """Persistence seam for seed pairs.

    Pairs are addressed by ``server_seed_hash``; each player has at most one
    active pair. Revealed pairs are kept forever so old bets stay verifiable.
    """

    @abstractmethod
    def load(self, player_id: str) -> Optional[SeedPair]:
        """Active pair of ``player_id``, or None."""

    @abstractmethod
    def get(self, server_seed_hash: str) -> Optional[SeedPair]:
        ...

    @abstractmethod
    def add(self, player_id: str, pair: SeedPair) -> SeedPair:
        """Store ``pair`` as active unless the player already has one; return the active pair."""

    @abstractmethod
    def compare_and_swap_nonce(self, pair: SeedPair, expected_nonce: int, new_nonce: int) -> bool:
        """Set the nonce only if the stored pair is active and still at ``expected_nonce``."""

    @abstractmethod
    def replace_active(self, player_id: str, revealed: SeedPair, new: SeedPair) -> bool:
        """Swap the active pair for ``new`` if it is unchanged since ``revealed`` was derived."""

    @abstractmethod
    def history(self, player_id: str) -> list[SeedPair]:
        """Revealed pairs, newest first."""


class InMemorySeedPairStore(SeedPairStore):
    def __init__(self):
        self._lock = threading.Lock()
        self._pairs: dict[str, SeedPair] = {}
        self._active: dict[str, str] = {}
        self._revealed: dict[str, list[str]] = {}

    def load(self, player_id):
        with self._lock:
            key = self._active.get(player_id)
            return self._pairs[key] if key else None

    def get(self, server_seed_hash):
        with self._lock:
            return self._pairs.get(server_seed_hash)

    def add(self, player_id, pair):
        with self._lock:
            key = self._active.get(player_id)
            if key:
                return self._pairs[key]
            self._pairs[pair.server_seed_hash] = pair
            self._active[player_id] = pair.server_seed_hash
            return pair

    def compare_and_swap_nonce(self, pair, expected_nonce, new_nonce):
        with self._lock:
            current = self._pairs.get(pair.server_seed_hash)
            if current is None or not current.is_active or current.nonce != expected_nonce:
                return False
            self._pairs[pair.server_seed_hash] = current.model_copy(update={"nonce": new_nonce})
            return True

    def replace_active(self, player_id, revealed, new):
        with self._lock:
            key = self._active.get(player_id)
            current = self._pairs.get(key) if key else None
            if (current is None or not current.is_active
                    or current.server_seed_hash != revealed.server_seed_hash
                    or current.nonce != revealed.nonce):
                return False
            self._pairs[revealed.server_seed_hash] = revealed
            self._pairs[new.server_seed_hash] = new
            self._active[player_id] = new.server_seed_hash
            self._revealed.setdefault(player_id, []).append(revealed.server_seed_hash)
            return True

    def history(self, player_id):
        with self._lock:
            return [self._pairs[key] for key in reversed(self._revealed.get(player_id, []))]


def get_store(request: Request) -> SeedPairStore:
    return request.app.state.store


def get_manager(store: SeedPairStore = Depends(get_store)) -> SeedPairManager:
    return SeedPairManager(store)
