from __future__ import annotations

import os
import time
from contextlib import contextmanager

import redis

from maranza.errors import ConflictError


def default_lock_ttl_ms() -> int:
    return int(os.environ.get("MARANZA_LOCK_TTL_MS", "5000"))


@contextmanager
def user_game_lock(*, r: redis.Redis, user_id: int, ttl_ms: int | None = None):
    """Best-effort lock around one user's read-modify-write of character + clock.

    Good enough for a single API process; a second concurrent request is refused
    rather than silently overwriting the first one's stat updates.
    """

    key = f"lock:maranza:user:{user_id}"
    acquired = r.set(key, "1", nx=True, px=ttl_ms or default_lock_ttl_ms())
    if not acquired:
        raise ConflictError("Game is busy")
    try:
        yield
    finally:
        # Only safe in our single-holder scenario.
        r.delete(key)
        time.sleep(0)
