from __future__ import annotations

import fakeredis
import pytest

from maranza.errors import ConflictError
from maranza.lock import user_game_lock


def test_lock_is_released_after_use(redis_client: fakeredis.FakeRedis) -> None:
    with user_game_lock(r=redis_client, user_id=1):
        assert redis_client.exists("lock:maranza:user:1")
        assert 0 < redis_client.pttl("lock:maranza:user:1") <= 5000
    assert not redis_client.exists("lock:maranza:user:1")


def test_lock_is_released_on_error(redis_client: fakeredis.FakeRedis) -> None:
    with pytest.raises(RuntimeError):
        with user_game_lock(r=redis_client, user_id=1):
            raise RuntimeError("boom")
    assert not redis_client.exists("lock:maranza:user:1")


def test_held_lock_refuses_second_holder(redis_client: fakeredis.FakeRedis) -> None:
    with user_game_lock(r=redis_client, user_id=1):
        with pytest.raises(ConflictError) as e:
            with user_game_lock(r=redis_client, user_id=1):
                pass
        assert str(e.value) == "Game is busy"

        # Locks are per user.
        with user_game_lock(r=redis_client, user_id=2):
            pass


def test_ttl_from_environment(redis_client: fakeredis.FakeRedis, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MARANZA_LOCK_TTL_MS", "60000")
    with user_game_lock(r=redis_client, user_id=1):
        assert redis_client.pttl("lock:maranza:user:1") > 5000
