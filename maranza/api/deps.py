from __future__ import annotations

import logging
import random
from collections.abc import Generator

import redis
from fastapi import Depends, Header, HTTPException, status

from maranza.assets.catalog import get_assets
from maranza.core.tables import ResolverTables
from maranza.game_store import ensure_catalog
from maranza.infra.redis_client import create_redis


logger = logging.getLogger(__name__)

DEFAULT_USER_ID = 1


def get_redis() -> Generator[redis.Redis, None, None]:
    client = create_redis()
    try:
        yield client
    finally:
        try:
            client.close()
        except Exception:
            # Some redis client versions don't require explicit close.
            pass


def get_game_redis(r: redis.Redis = Depends(get_redis)) -> redis.Redis:
    """Redis client with the static catalog guaranteed to be present."""

    try:
        ensure_catalog(r=r, assets=get_assets())
    except redis.RedisError as e:
        logger.exception("Failed to seed catalog")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load game catalog",
        ) from e
    return r


def get_user_id(x_user_id: int = Header(default=DEFAULT_USER_ID, ge=1)) -> int:
    """The acting user. Only one user is exercised today, but every call carries the id."""

    return x_user_id


def get_rng() -> random.Random:
    return random.Random()


def get_tables() -> ResolverTables:
    return get_assets().resolver_tables()
