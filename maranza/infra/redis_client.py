from __future__ import annotations

import os

import redis


DEFAULT_REDIS_URL = "redis://localhost:6379/0"


def get_redis_url() -> str:
    return os.environ.get("REDIS_URL") or DEFAULT_REDIS_URL


def create_redis(url: str | None = None) -> redis.Redis:
    """Client for game state.

    Rows are JSON documents, so responses are decoded to str. A short connect
    timeout makes an unreachable server fail the request instead of hanging it.
    """

    return redis.Redis.from_url(
        url or get_redis_url(),
        decode_responses=True,
        socket_connect_timeout=float(os.environ.get("MARANZA_REDIS_CONNECT_TIMEOUT", "2")),
        health_check_interval=30,
    )
