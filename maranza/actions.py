"""Game actions: load -> validate -> compute -> persist.

Routes stay thin and call into here; the rules themselves live in `maranza.core`.
"""

from __future__ import annotations

import logging
import random

import redis

from maranza.api.models import (
    Activity,
    ActivityResult,
    Character,
    CharacterCreateRequest,
    GameClock,
    GameStateResponse,
    PurchaseResponse,
    ShopItem,
    Stat,
)
from maranza.assets.catalog import get_assets
from maranza.core.clock import advance_clock, refill_energy_on_rollover
from maranza.core.resolver import resolve_activity
from maranza.core.shop import resolve_purchase
from maranza.core.tables import ResolverTables
from maranza.errors import NoCharacterError, NotFoundError
from maranza.fsm import SessionFSM
from maranza.game_store import (
    add_item_to_character,
    add_skill_to_character,
    create_character,
    create_contact,
    ensure_clock,
    ensure_user,
    get_activity,
    get_available_activities,
    get_character,
    get_character_item,
    get_character_items,
    get_character_skills,
    get_contacts,
    get_item,
    get_sub_activities,
    list_items,
    list_skills,
    reset_game,
    save_clock,
    update_character,
    update_character_item,
    update_character_skill,
)
from maranza.lock import user_game_lock
from maranza.rules.validators import ActionSubject, ValidationContext, pipeline_for_action


logger = logging.getLogger(__name__)

# Initial skill rolls for a new character: level in [1, 3], progress in [10, 49].
STARTING_SKILL_LEVEL = (1, 3)
STARTING_SKILL_PROGRESS = (10, 49)


def _active_character(*, r: redis.Redis, clock: GameClock) -> Character | None:
    if clock.character_id is None:
        return None
    return get_character(r=r, character_id=clock.character_id)


def get_game_state(*, r: redis.Redis, user_id: int) -> GameStateResponse:
    ensure_user(r=r, user_id=user_id)
    clock = ensure_clock(r=r, user_id=user_id)
    character = _active_character(r=r, clock=clock)

    return GameStateResponse(
        day=clock.day,
        time=clock.time,
        game_started=clock.game_started,
        hours_left=clock.hours_left,
        character=character,
        available_activities=get_available_activities(r=r, day=clock.day),
        inventory=get_character_items(r=r, character_id=character.id) if character else [],
        skills=get_character_skills(r=r, character_id=character.id) if character else [],
        contacts=get_contacts(r=r, character_id=character.id) if character else [],
    )


def create_new_character(
    *,
    r: redis.Redis,
    user_id: int,
    payload: CharacterCreateRequest,
    rng: random.Random,
) -> Character:
    ensure_user(r=r, user_id=user_id)
    with user_game_lock(r=r, user_id=user_id):
        clock = ensure_clock(r=r, user_id=user_id)
        fsm = SessionFSM(clock)
        fsm.fire("character_created")

        character = create_character(r=r, user_id=user_id, payload=payload)

        for item_id in get_assets().starter_item_ids:
            add_item_to_character(r=r, character_id=character.id, item_id=item_id, acquired_day=clock.day)

        for skill in list_skills(r=r):
            add_skill_to_character(
                r=r,
                character_id=character.id,
                skill_id=skill.id,
                level=rng.randint(*STARTING_SKILL_LEVEL),
                progress=rng.randint(*STARTING_SKILL_PROGRESS),
            )

        clock = fsm.sync_to_clock().model_copy(update={"character_id": character.id})
        save_clock(r=r, clock=clock)

    logger.info("User %s created character %s (%s)", user_id, character.id, character.name)
    return character


def _effective_unlock_day(*, r: redis.Redis, activity: Activity) -> int | None:
    # A sub-activity is never available before its parent.
    days = [activity.unlock_day]
    if activity.parent_id is not None:
        parent = get_activity(r=r, activity_id=activity.parent_id)
        if parent is not None:
            days.append(parent.unlock_day)
    known = [d for d in days if d is not None]
    return max(known) if known else None


def perform_activity(
    *,
    r: redis.Redis,
    user_id: int,
    activity_id: int,
    tables: ResolverTables,
    rng: random.Random,
) -> ActivityResult:
    activity = get_activity(r=r, activity_id=activity_id)
    if activity is None:
        raise NotFoundError("Activity not found")

    with user_game_lock(r=r, user_id=user_id):
        clock = ensure_clock(r=r, user_id=user_id)
        character = _active_character(r=r, clock=clock)

        pipeline_for_action("activity").validate(
            ctx=ValidationContext(user_id=user_id, action="activity", target_id=activity_id),
            subject=ActionSubject(
                clock=clock,
                character=character,
                unlock_day=_effective_unlock_day(r=r, activity=activity),
            ),
        )
        if character is None:
            raise NoCharacterError()

        resolution = resolve_activity(
            character=character,
            activity=activity,
            clock=clock,
            skills=get_character_skills(r=r, character_id=character.id),
            tables=tables,
            rng=rng,
        )

        update_character(r=r, character=resolution.character)
        save_clock(r=r, clock=resolution.clock)

        contact = None
        if resolution.contact is not None:
            contact = create_contact(r=r, character_id=character.id, draft=resolution.contact)

        if resolution.skill_update is not None:
            update_character_skill(
                r=r,
                character_id=character.id,
                skill_id=resolution.skill_update.skill_id,
                level=resolution.skill_update.level,
                progress=resolution.skill_update.progress,
            )

    logger.info(
        "User %s did '%s': day %s %s, %sh left%s",
        user_id,
        activity.title,
        resolution.clock.day,
        resolution.clock.time,
        resolution.clock.hours_left,
        " (new day)" if resolution.advance.rolled_over else "",
    )

    changes = resolution.changes
    return ActivityResult(
        text=resolution.text,
        money_change=changes.get(Stat.money, 0),
        reputation_change=changes.get(Stat.reputation, 0),
        style_change=changes.get(Stat.style, 0),
        energy_change=changes.get(Stat.energy, 0),
        respect_change=changes.get(Stat.respect, 0),
        new_contact=contact,
        skill_progress=resolution.skill_progress,
    )


def list_sub_activities(*, r: redis.Redis, activity_id: int) -> list[Activity]:
    if get_activity(r=r, activity_id=activity_id) is None:
        raise NotFoundError("Activity not found")
    return get_sub_activities(r=r, parent_id=activity_id)


def advance_time(*, r: redis.Redis, user_id: int, hours: int) -> GameClock:
    with user_game_lock(r=r, user_id=user_id):
        clock = ensure_clock(r=r, user_id=user_id)
        advance = advance_clock(clock, hours)
        save_clock(r=r, clock=advance.clock)

        if advance.rolled_over:
            character = _active_character(r=r, clock=clock)
            if character is not None:
                update_character(r=r, character=refill_energy_on_rollover(character, advance))
            logger.info("User %s reached day %s", user_id, advance.clock.day)

    return advance.clock


def reset(*, r: redis.Redis, user_id: int) -> GameClock:
    with user_game_lock(r=r, user_id=user_id):
        clock = ensure_clock(r=r, user_id=user_id)
        SessionFSM(clock).fire("reset")
        return reset_game(r=r, user_id=user_id)


def list_shop(*, r: redis.Redis, user_id: int) -> list[ShopItem]:
    """Items unlocked by the current day, flagged with the active character's ownership."""

    clock = ensure_clock(r=r, user_id=user_id)
    character = _active_character(r=r, clock=clock)
    owned = {i.id for i in get_character_items(r=r, character_id=character.id)} if character else set()

    return [
        ShopItem(**item.model_dump(), is_owned=item.id in owned)
        for item in list_items(r=r)
        if item.unlock_day is None or item.unlock_day <= clock.day
    ]


def purchase_item(*, r: redis.Redis, user_id: int, item_id: int) -> PurchaseResponse:
    item = get_item(r=r, item_id=item_id)
    if item is None:
        raise NotFoundError("Item not found")

    with user_game_lock(r=r, user_id=user_id):
        clock = ensure_clock(r=r, user_id=user_id)
        character = _active_character(r=r, clock=clock)

        pipeline_for_action("purchase").validate(
            ctx=ValidationContext(user_id=user_id, action="purchase", target_id=item_id),
            subject=ActionSubject(clock=clock, character=character, unlock_day=item.unlock_day),
        )
        if character is None:
            raise NoCharacterError()

        link = get_character_item(r=r, character_id=character.id, item_id=item_id)
        resolution = resolve_purchase(
            character=character,
            item=item,
            already_owned=link is not None and link.acquired,
            day=clock.day,
        )

        update_character(r=r, character=resolution.character)
        if link is None:
            add_item_to_character(r=r, character_id=character.id, item_id=item_id, acquired_day=clock.day)
        else:
            update_character_item(
                r=r,
                link=link.model_copy(update={"acquired": True, "acquired_day": clock.day}),
            )

    logger.info("User %s bought '%s' for %s", user_id, item.name, item.price)
    return PurchaseResponse(
        success=True,
        message=resolution.message,
        new_money=resolution.character.money,
        item=item,
    )
