from __future__ import annotations

import os
import random
from collections.abc import Generator

import fakeredis
import pytest
from fastapi.testclient import TestClient


class FixedRandom(random.Random):
    """random() always returns `value`; choice/randint then pick deterministically from it."""

    def __init__(self, value: float) -> None:
        self.value = value
        super().__init__(0)

    def random(self) -> float:
        return self.value


@pytest.fixture(scope="session", autouse=True)
def _init_packaged_catalog() -> None:
    """Initialize the catalog from the packaged CSVs with the built-in fallback disabled.

    Tests assert on real catalog content (titles, ids, unlock days), so a silent
    fallback would only hide a broken CSV.
    """

    os.environ.pop("MARANZA_ASSETS_FALLBACK", None)
    os.environ.pop("MARANZA_ASSETS_DIR", None)

    from maranza.assets.catalog import init_assets, reset_assets_for_tests
    from maranza.assets.registry import DEFAULT_DATA_DIR

    reset_assets_for_tests()
    init_assets(data_dir=DEFAULT_DATA_DIR)


@pytest.fixture()
def redis_client() -> fakeredis.FakeRedis:
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture()
def seeded_redis(redis_client: fakeredis.FakeRedis) -> fakeredis.FakeRedis:
    from maranza.assets.catalog import get_assets
    from maranza.game_store import ensure_catalog

    ensure_catalog(r=redis_client, assets=get_assets())
    return redis_client


@pytest.fixture()
def client_and_redis(
    redis_client: fakeredis.FakeRedis,
) -> Generator[tuple[TestClient, fakeredis.FakeRedis], None, None]:
    """FastAPI TestClient wired to fakeredis and a seeded random source."""

    from maranza.api.deps import get_redis, get_rng
    from maranza.main import app

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield redis_client

    app.dependency_overrides[get_redis] = _override
    app.dependency_overrides[get_rng] = lambda: random.Random(1234)
    with TestClient(app) as c:
        yield c, redis_client
    app.dependency_overrides.clear()


@pytest.fixture()
def client(client_and_redis: tuple[TestClient, fakeredis.FakeRedis]) -> TestClient:
    return client_and_redis[0]


@pytest.fixture()
def fixed_random() -> type[FixedRandom]:
    return FixedRandom
