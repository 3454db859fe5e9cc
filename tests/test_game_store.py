from __future__ import annotations

import fakeredis
import pytest

from maranza.api.models import (
    Activity,
    Character,
    CharacterCreateRequest,
    ContactDraft,
    GameClock,
    Item,
    StatEffects,
)
from maranza.assets.catalog import get_assets
from maranza.game_store import (
    CATALOG_SEEDED_KEY,
    add_item_to_character,
    add_skill_to_character,
    create_activity,
    create_character,
    create_contact,
    create_item,
    create_skill,
    create_user,
    ensure_catalog,
    ensure_clock,
    ensure_user,
    get_available_activities,
    get_character,
    get_character_by_user,
    get_character_item,
    get_character_items,
    get_character_skill,
    get_character_skills,
    get_clock,
    get_contacts,
    get_sub_activities,
    get_user_by_username,
    list_activities,
    list_items,
    reset_game,
    save_clock,
    update_character,
    update_character_item,
    update_character_skill,
)
from maranza.errors import NotFoundError


def _new_character(r: fakeredis.FakeRedis, *, user_id: int = 1) -> Character:
    payload = CharacterCreateRequest(name="Tony", look="firmato", personality="carismatico", avatar_id=2)
    return create_character(r=r, user_id=user_id, payload=payload)


def test_catalog_is_seeded_once(redis_client: fakeredis.FakeRedis) -> None:
    ensure_catalog(r=redis_client, assets=get_assets())
    assert redis_client.exists(CATALOG_SEEDED_KEY)

    # Editing a seeded row survives a second ensure.
    redis_client.delete("maranza:activity:1")
    ensure_catalog(r=redis_client, assets=get_assets())
    assert [a.id for a in list_activities(r=redis_client)][0] == 2


def test_available_activities_follow_unlock_day(seeded_redis: fakeredis.FakeRedis) -> None:
    day1 = get_available_activities(r=seeded_redis, day=1)
    assert [a.id for a in day1] == [1, 2, 3, 4, 5, 6, 7, 10]

    day3 = get_available_activities(r=seeded_redis, day=3)
    assert 8 in {a.id for a in day3}
    assert 9 not in {a.id for a in day3}

    assert len(get_available_activities(r=seeded_redis, day=5)) == 10


def test_sub_activities(seeded_redis: fakeredis.FakeRedis) -> None:
    assert [a.id for a in get_sub_activities(r=seeded_redis, parent_id=3)] == [11, 12]
    assert get_sub_activities(r=seeded_redis, parent_id=1) == []


def test_create_activity_and_item_get_fresh_ids(seeded_redis: fakeredis.FakeRedis) -> None:
    activity = create_activity(
        r=seeded_redis,
        activity=Activity(
            id=0,
            title="Karaoke",
            description="",
            duration=2,
            effects=StatEffects(reputation=5, energy=-10),
            category="nightlife",
            color="info",
        ),
    )
    assert activity.id == 15

    item = create_item(r=seeded_redis, item=Item(id=0, name="Catena", description="", price=60, category="accessory"))
    assert item.id == 7
    assert item.id in {i.id for i in list_items(r=seeded_redis)}

    skill = create_skill(r=seeded_redis, name="Parcheggio", description="")
    assert skill.id == 6


def test_character_crud(redis_client: fakeredis.FakeRedis) -> None:
    c = _new_character(redis_client)

    assert (c.id, c.money, c.style, c.avatar_id) == (1, 250, 60, 2)
    assert get_character_by_user(r=redis_client, user_id=1) == c
    assert get_character_by_user(r=redis_client, user_id=2) is None

    update_character(r=redis_client, character=c.model_copy(update={"money": 10}))
    stored = get_character(r=redis_client, character_id=c.id)
    assert stored is not None and stored.money == 10


def test_update_missing_character_raises(redis_client: fakeredis.FakeRedis) -> None:
    ghost = Character(id=99, user_id=1, name="Ghost", personality="audace", look="casual")
    with pytest.raises(NotFoundError):
        update_character(r=redis_client, character=ghost)


def test_character_items_only_lists_acquired(seeded_redis: fakeredis.FakeRedis) -> None:
    c = _new_character(seeded_redis)
    add_item_to_character(r=seeded_redis, character_id=c.id, item_id=3, acquired_day=1)
    wish = add_item_to_character(r=seeded_redis, character_id=c.id, item_id=2, acquired=False)

    assert [i.id for i in get_character_items(r=seeded_redis, character_id=c.id)] == [3]

    update_character_item(r=seeded_redis, link=wish.model_copy(update={"acquired": True, "acquired_day": 2}))
    assert [i.id for i in get_character_items(r=seeded_redis, character_id=c.id)] == [3, 2]

    link = get_character_item(r=seeded_redis, character_id=c.id, item_id=2)
    assert link is not None and link.acquired_day == 2


def test_character_skills_join_definitions(seeded_redis: fakeredis.FakeRedis) -> None:
    c = _new_character(seeded_redis)
    add_skill_to_character(r=seeded_redis, character_id=c.id, skill_id=4, level=2, progress=30)

    update_character_skill(r=seeded_redis, character_id=c.id, skill_id=4, level=3, progress=1)

    (view,) = get_character_skills(r=seeded_redis, character_id=c.id)
    assert (view.name, view.level, view.progress, view.max_level) == ("Ballo", 3, 1, 100)

    with pytest.raises(NotFoundError):
        update_character_skill(r=seeded_redis, character_id=c.id, skill_id=1, level=1, progress=0)


def test_users(redis_client: fakeredis.FakeRedis) -> None:
    player = ensure_user(r=redis_client, user_id=1)
    assert player.username == "player"
    assert ensure_user(r=redis_client, user_id=1) == player

    other = create_user(r=redis_client, username="tony")
    assert other.id == 2
    assert get_user_by_username(r=redis_client, username="tony") == other

    with pytest.raises(ValueError):
        create_user(r=redis_client, username="tony")


def test_clock_is_per_user(redis_client: fakeredis.FakeRedis) -> None:
    assert get_clock(r=redis_client, user_id=1) is None

    clock = ensure_clock(r=redis_client, user_id=1)
    save_clock(r=redis_client, clock=clock.model_copy(update={"day": 4}))

    assert ensure_clock(r=redis_client, user_id=1).day == 4
    assert ensure_clock(r=redis_client, user_id=2).day == 1


def test_reset_clears_character_rows_and_keeps_catalog(seeded_redis: fakeredis.FakeRedis) -> None:
    mine = _new_character(seeded_redis, user_id=1)
    theirs = _new_character(seeded_redis, user_id=2)
    for c in (mine, theirs):
        add_item_to_character(r=seeded_redis, character_id=c.id, item_id=3)
        add_skill_to_character(r=seeded_redis, character_id=c.id, skill_id=1)
        create_contact(
            r=seeded_redis,
            character_id=c.id,
            draft=ContactDraft(
                name="Luca King",
                type="Amico di amici",
                respect="medio",
                meet_day=1,
                avatar_initials="LK",
                avatar_color="info",
            ),
        )
    save_clock(
        r=seeded_redis,
        clock=GameClock(user_id=1, day=6, time="19:00", hours_left=5, game_started=True, character_id=mine.id),
    )

    fresh = reset_game(r=seeded_redis, user_id=1)

    assert (fresh.day, fresh.time, fresh.hours_left, fresh.game_started, fresh.character_id) == (
        1,
        "08:00",
        16,
        False,
        None,
    )
    assert get_clock(r=seeded_redis, user_id=1) == fresh
    assert get_character(r=seeded_redis, character_id=mine.id) is None
    assert get_character_items(r=seeded_redis, character_id=mine.id) == []
    assert get_character_skill(r=seeded_redis, character_id=mine.id, skill_id=1) is None
    assert get_contacts(r=seeded_redis, character_id=mine.id) == []

    # Other users and the catalog are untouched.
    assert get_character(r=seeded_redis, character_id=theirs.id) is not None
    assert len(get_contacts(r=seeded_redis, character_id=theirs.id)) == 1
    assert len(list_activities(r=seeded_redis)) == 14
    assert len(list_items(r=seeded_redis)) == 6
