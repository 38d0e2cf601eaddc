import pytest
from fastapi.testclient import TestClient

from provably_fair.deps.store import InMemorySeedPairStore, get_store
from provably_fair.main import app
from provably_fair.services.seeds import SeedPairManager

ZERO_SEED = "00" * 32
ZERO_SEED_HASH = "60e05bd1b195af2f94112fa7197a5c88289058840ce7c6df9693756bc6250f55"
# HMAC-SHA256(key=ZERO_SEED, msg="test:0")
ZERO_DIGEST = "6d8fdb28cd4a820dd3c97113e82e252b796c29a2abf95b8cafa64cf866e0b8ae"


@pytest.fixture
def store():
    return InMemorySeedPairStore()


@pytest.fixture
def manager(store):
    return SeedPairManager(store)


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
