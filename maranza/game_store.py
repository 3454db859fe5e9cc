"""Redis persistence gateway.

Every entity is one JSON document under `maranza:{kind}:{id}`, written with a
single SET (inside a MULTI with its index updates). Ids come from per-kind INCR
counters. Character-scoped rows are also indexed per character so the reset
cascade and the aggregate queries never scan the whole keyspace.
"""

from __future__ import annotations

import logging
from typing import TypeVar

import redis
from pydantic import BaseModel

from maranza.api.models import (
    Activity,
    Character,
    CharacterCreateRequest,
    CharacterItem,
    CharacterSkill,
    Contact,
    ContactDraft,
    GameClock,
    Item,
    Skill,
    SkillView,
    User,
)
from maranza.assets.registry import GameAssets
from maranza.core.clock import initial_clock
from maranza.errors import NotFoundError


logger = logging.getLogger(__name__)

KEY_PREFIX = "maranza:"

USER = "user"
CHARACTER = "character"
ITEM = "item"
CHARACTER_ITEM = "character_item"
SKILL = "skill"
CHARACTER_SKILL = "character_skill"
CONTACT = "contact"
ACTIVITY = "activity"

USERNAMES_KEY = f"{KEY_PREFIX}usernames"  # hash username -> user id
CATALOG_SEEDED_KEY = f"{KEY_PREFIX}catalog:seeded"

M = TypeVar("M", bound=BaseModel)


def _key(kind: str, id: int) -> str:
    return f"{KEY_PREFIX}{kind}:{id}"


def _ids_key(kind: str) -> str:
    return f"{KEY_PREFIX}{kind}:ids"


def _seq_key(kind: str) -> str:
    return f"{KEY_PREFIX}seq:{kind}"


def _clock_key(user_id: int) -> str:
    return f"{KEY_PREFIX}clock:{user_id}"


def _owned_key(character_id: int, kind: str) -> str:
    return f"{KEY_PREFIX}{CHARACTER}:{character_id}:{kind}"


def _next_id(r: redis.Redis, kind: str) -> int:
    return int(r.incr(_seq_key(kind)))


def _bump_seq(r: redis.Redis, kind: str, at_least: int) -> None:
    current = int(r.get(_seq_key(kind)) or 0)
    if current < at_least:
        r.set(_seq_key(kind), at_least)


def _put(r: redis.Redis, kind: str, row: BaseModel, *, owner_character_id: int | None = None) -> None:
    row_id: int = row.id  # type: ignore[attr-defined]
    pipe = r.pipeline(transaction=True)
    pipe.set(_key(kind, row_id), row.model_dump_json())
    pipe.sadd(_ids_key(kind), row_id)
    if owner_character_id is not None:
        pipe.sadd(_owned_key(owner_character_id, kind), row_id)
    pipe.execute()


def _get(r: redis.Redis, kind: str, id: int, model: type[M]) -> M | None:
    raw = r.get(_key(kind, id))
    if not raw:
        return None
    return model.model_validate_json(raw)


def _get_many(r: redis.Redis, kind: str, ids: set[str] | list[str], model: type[M]) -> list[M]:
    ordered = sorted(int(i) for i in ids)
    if not ordered:
        return []
    raws = r.mget([_key(kind, i) for i in ordered])
    return [model.model_validate_json(raw) for raw in raws if raw]


def _all(r: redis.Redis, kind: str, model: type[M]) -> list[M]:
    return _get_many(r, kind, r.smembers(_ids_key(kind)), model)


def _owned(r: redis.Redis, character_id: int, kind: str, model: type[M]) -> list[M]:
    return _get_many(r, kind, r.smembers(_owned_key(character_id, kind)), model)


def _require_exists(r: redis.Redis, kind: str, id: int) -> None:
    if not r.exists(_key(kind, id)):
        raise NotFoundError(f"{kind.replace('_', ' ').capitalize()} with id {id} not found")


# ---- Users ----


def get_user(*, r: redis.Redis, user_id: int) -> User | None:
    return _get(r, USER, user_id, User)


def get_user_by_username(*, r: redis.Redis, username: str) -> User | None:
    uid = r.hget(USERNAMES_KEY, username)
    if uid is None:
        return None
    return get_user(r=r, user_id=int(uid))


def create_user(*, r: redis.Redis, username: str, user_id: int | None = None) -> User:
    if get_user_by_username(r=r, username=username) is not None:
        raise ValueError(f"Username already taken: {username}")
    if user_id is None:
        user_id = _next_id(r, USER)
    else:
        _bump_seq(r, USER, user_id)
    user = User(id=user_id, username=username)
    _put(r, USER, user)
    r.hset(USERNAMES_KEY, username, user_id)
    return user


def ensure_user(*, r: redis.Redis, user_id: int) -> User:
    user = get_user(r=r, user_id=user_id)
    if user is not None:
        return user
    username = "player" if user_id == 1 else f"player{user_id}"
    return create_user(r=r, username=username, user_id=user_id)


# ---- Characters ----


def get_character(*, r: redis.Redis, character_id: int) -> Character | None:
    return _get(r, CHARACTER, character_id, Character)


def get_character_by_user(*, r: redis.Redis, user_id: int) -> Character | None:
    return next((c for c in _all(r, CHARACTER, Character) if c.user_id == user_id), None)


def create_character(*, r: redis.Redis, user_id: int, payload: CharacterCreateRequest) -> Character:
    character = Character(id=_next_id(r, CHARACTER), user_id=user_id, **payload.model_dump())
    _put(r, CHARACTER, character)
    return character


def update_character(*, r: redis.Redis, character: Character) -> Character:
    _require_exists(r, CHARACTER, character.id)
    _put(r, CHARACTER, character)
    return character


def delete_character(*, r: redis.Redis, character_id: int) -> None:
    _delete_character_cascade(r.pipeline(transaction=True), r=r, character_id=character_id).execute()


# ---- Items ----


def list_items(*, r: redis.Redis) -> list[Item]:
    return _all(r, ITEM, Item)


def get_item(*, r: redis.Redis, item_id: int) -> Item | None:
    return _get(r, ITEM, item_id, Item)


def create_item(*, r: redis.Redis, item: Item) -> Item:
    """Store a new catalog item; the id on `item` is ignored and a fresh one assigned."""

    created = item.model_copy(update={"id": _next_id(r, ITEM)})
    _put(r, ITEM, created)
    return created


def get_character_item(*, r: redis.Redis, character_id: int, item_id: int) -> CharacterItem | None:
    return next(
        (ci for ci in _owned(r, character_id, CHARACTER_ITEM, CharacterItem) if ci.item_id == item_id),
        None,
    )


def get_character_items(*, r: redis.Redis, character_id: int) -> list[Item]:
    """Items the character has actually acquired."""

    links = [ci for ci in _owned(r, character_id, CHARACTER_ITEM, CharacterItem) if ci.acquired]
    out: list[Item] = []
    for ci in links:
        item = get_item(r=r, item_id=ci.item_id)
        if item is not None:
            out.append(item)
    return out


def add_item_to_character(
    *,
    r: redis.Redis,
    character_id: int,
    item_id: int,
    acquired: bool = True,
    acquired_day: int | None = None,
) -> CharacterItem:
    link = CharacterItem(
        id=_next_id(r, CHARACTER_ITEM),
        character_id=character_id,
        item_id=item_id,
        acquired=acquired,
        acquired_day=acquired_day,
    )
    _put(r, CHARACTER_ITEM, link, owner_character_id=character_id)
    return link


def update_character_item(*, r: redis.Redis, link: CharacterItem) -> CharacterItem:
    _require_exists(r, CHARACTER_ITEM, link.id)
    _put(r, CHARACTER_ITEM, link, owner_character_id=link.character_id)
    return link


# ---- Skills ----


def list_skills(*, r: redis.Redis) -> list[Skill]:
    return _all(r, SKILL, Skill)


def get_skill(*, r: redis.Redis, skill_id: int) -> Skill | None:
    return _get(r, SKILL, skill_id, Skill)


def create_skill(*, r: redis.Redis, name: str, description: str) -> Skill:
    skill = Skill(id=_next_id(r, SKILL), name=name, description=description)
    _put(r, SKILL, skill)
    return skill


def get_character_skill(*, r: redis.Redis, character_id: int, skill_id: int) -> CharacterSkill | None:
    return next(
        (cs for cs in _owned(r, character_id, CHARACTER_SKILL, CharacterSkill) if cs.skill_id == skill_id),
        None,
    )


def get_character_skills(*, r: redis.Redis, character_id: int) -> list[SkillView]:
    """Skill definitions joined with the character's level/progress."""

    out: list[SkillView] = []
    for cs in _owned(r, character_id, CHARACTER_SKILL, CharacterSkill):
        skill = get_skill(r=r, skill_id=cs.skill_id)
        if skill is None:
            continue
        out.append(SkillView(**skill.model_dump(), level=cs.level, progress=cs.progress, max_level=cs.max_level))
    return out


def add_skill_to_character(
    *,
    r: redis.Redis,
    character_id: int,
    skill_id: int,
    level: int = 1,
    progress: int = 0,
    max_level: int = 100,
) -> CharacterSkill:
    link = CharacterSkill(
        id=_next_id(r, CHARACTER_SKILL),
        character_id=character_id,
        skill_id=skill_id,
        level=level,
        progress=progress,
        max_level=max_level,
    )
    _put(r, CHARACTER_SKILL, link, owner_character_id=character_id)
    return link


def update_character_skill(
    *,
    r: redis.Redis,
    character_id: int,
    skill_id: int,
    level: int,
    progress: int,
) -> CharacterSkill:
    link = get_character_skill(r=r, character_id=character_id, skill_id=skill_id)
    if link is None:
        raise NotFoundError(f"CharacterSkill with characterId {character_id} and skillId {skill_id} not found")
    updated = link.model_copy(update={"level": level, "progress": progress})
    _put(r, CHARACTER_SKILL, updated, owner_character_id=character_id)
    return updated


# ---- Contacts ----


def get_contacts(*, r: redis.Redis, character_id: int) -> list[Contact]:
    return _owned(r, character_id, CONTACT, Contact)


def create_contact(*, r: redis.Redis, character_id: int, draft: ContactDraft) -> Contact:
    contact = Contact(id=_next_id(r, CONTACT), character_id=character_id, **draft.model_dump())
    _put(r, CONTACT, contact, owner_character_id=character_id)
    return contact


# ---- Activities ----


def list_activities(*, r: redis.Redis) -> list[Activity]:
    return _all(r, ACTIVITY, Activity)


def get_activity(*, r: redis.Redis, activity_id: int) -> Activity | None:
    return _get(r, ACTIVITY, activity_id, Activity)


def create_activity(*, r: redis.Redis, activity: Activity) -> Activity:
    created = activity.model_copy(update={"id": _next_id(r, ACTIVITY)})
    _put(r, ACTIVITY, created)
    return created


def get_available_activities(*, r: redis.Redis, day: int) -> list[Activity]:
    """Top-level activities unlocked on or before `day`."""

    return [
        a
        for a in list_activities(r=r)
        if a.parent_id is None and (a.unlock_day is None or a.unlock_day <= day)
    ]


def get_sub_activities(*, r: redis.Redis, parent_id: int) -> list[Activity]:
    return [a for a in list_activities(r=r) if a.parent_id == parent_id]


# ---- Game clock ----


def get_clock(*, r: redis.Redis, user_id: int) -> GameClock | None:
    raw = r.get(_clock_key(user_id))
    if not raw:
        return None
    return GameClock.model_validate_json(raw)


def save_clock(*, r: redis.Redis, clock: GameClock) -> GameClock:
    r.set(_clock_key(clock.user_id), clock.model_dump_json())
    return clock


def create_clock(*, r: redis.Redis, user_id: int) -> GameClock:
    return save_clock(r=r, clock=initial_clock(user_id=user_id))


def ensure_clock(*, r: redis.Redis, user_id: int) -> GameClock:
    clock = get_clock(r=r, user_id=user_id)
    if clock is None:
        clock = create_clock(r=r, user_id=user_id)
    return clock


# ---- Reset ----


def _delete_character_cascade(pipe, *, r: redis.Redis, character_id: int):  # type: ignore[no-untyped-def]
    for kind in (CHARACTER_SKILL, CHARACTER_ITEM, CONTACT):
        owned_key = _owned_key(character_id, kind)
        for sid in r.smembers(owned_key):
            pipe.delete(_key(kind, int(sid)))
            pipe.srem(_ids_key(kind), sid)
        pipe.delete(owned_key)
    pipe.delete(_key(CHARACTER, character_id))
    pipe.srem(_ids_key(CHARACTER), character_id)
    return pipe


def reset_game(*, r: redis.Redis, user_id: int) -> GameClock:
    """Delete the user's character(s) with every character-scoped row, then reinitialize the clock.

    All deletes and the clock write go out in one MULTI/EXEC, so either the whole
    reset lands or none of it does. The static catalog is untouched.
    """

    clock = get_clock(r=r, user_id=user_id)
    character_ids = {c.id for c in _all(r, CHARACTER, Character) if c.user_id == user_id}
    if clock is not None and clock.character_id is not None:
        character_ids.add(clock.character_id)

    fresh = initial_clock(user_id=user_id)
    pipe = r.pipeline(transaction=True)
    for cid in sorted(character_ids):
        _delete_character_cascade(pipe, r=r, character_id=cid)
    pipe.set(_clock_key(user_id), fresh.model_dump_json())
    pipe.execute()

    logger.info("Reset game for user %s (deleted characters: %s)", user_id, sorted(character_ids))
    return fresh


# ---- Catalog ----


def seed_catalog(*, r: redis.Redis, assets: GameAssets) -> None:
    """Write the static catalog under its canonical ids. Idempotent; safe on every startup."""

    pipe = r.pipeline(transaction=True)
    for kind, rows in ((ACTIVITY, assets.activities), (ITEM, assets.items), (SKILL, assets.skills)):
        for row in rows:
            pipe.set(_key(kind, row.id), row.model_dump_json())
            pipe.sadd(_ids_key(kind), row.id)
    pipe.execute()

    for kind, rows in ((ACTIVITY, assets.activities), (ITEM, assets.items), (SKILL, assets.skills)):
        if rows:
            _bump_seq(r, kind, max(row.id for row in rows))


def ensure_catalog(*, r: redis.Redis, assets: GameAssets) -> None:
    """Seed the catalog the first time this Redis database is used."""

    if r.exists(CATALOG_SEEDED_KEY):
        return
    seed_catalog(r=r, assets=assets)
    r.set(CATALOG_SEEDED_KEY, "1")
    logger.info("Seeded catalog into Redis")
