from __future__ import annotations

import random
from dataclasses import dataclass, field

from maranza.api.models import (
    STAT_MAX,
    STAT_MIN,
    Activity,
    Character,
    ContactDraft,
    GameClock,
    SkillProgress,
    SkillView,
    Stat,
)
from maranza.core.clock import ClockAdvance, advance_clock, refill_energy_on_rollover
from maranza.core.tables import ResolverTables
from maranza.errors import InsufficientHoursError, InsufficientResourceError


def clamp_stat(value: int) -> int:
    return max(STAT_MIN, min(STAT_MAX, value))


def apply_stat_delta(character: Character, stat: Stat, delta: int) -> Character:
    """Money moves by the exact delta; every other stat is clamped to [0, 100]."""

    current = character.stat(stat)
    new_value = current + delta if stat == Stat.money else clamp_stat(current + delta)
    return character.model_copy(update={stat.value: new_value})


@dataclass(frozen=True, slots=True)
class SkillUpdate:
    skill_id: int
    level: int
    progress: int


@dataclass(frozen=True, slots=True)
class ActivityResolution:
    """Everything an activity changed, before anything is persisted.

    `changes` holds the raw effect values (not the post-clamp difference).
    """

    character: Character
    advance: ClockAdvance
    text: str
    changes: dict[Stat, int] = field(default_factory=dict)
    contact: ContactDraft | None = None
    skill_update: SkillUpdate | None = None
    skill_progress: SkillProgress | None = None

    @property
    def clock(self) -> GameClock:
        return self.advance.clock


def check_activity_preconditions(
    *,
    character: Character,
    activity: Activity,
    clock: GameClock,
    tables: ResolverTables,
) -> None:
    if clock.hours_left < activity.duration:
        raise InsufficientHoursError()

    for stat, delta in activity.effects.items():
        if delta < 0 and character.stat(stat) + delta < 0:
            raise InsufficientResourceError(tables.shortage_message(stat, activity.title), stat=stat.value)


def draw_contact(*, day: int, tables: ResolverTables, rng: random.Random) -> ContactDraft:
    first = rng.choice(tables.first_names)
    last = rng.choice(tables.last_names)
    return ContactDraft(
        name=f"{first} {last}",
        type=rng.choice(tables.contact_types),
        respect=rng.choice(tables.respect_tiers),
        meet_day=day,
        avatar_initials=f"{first[0]}{last[0]}",
        avatar_color=rng.choice(tables.contact_colors),
    )


def draw_skill_progress(
    *,
    title: str,
    skills: list[SkillView],
    tables: ResolverTables,
    rng: random.Random,
) -> tuple[SkillUpdate, SkillProgress] | None:
    relevant = tables.skills_for(title)
    if not relevant or rng.random() >= tables.skill_chance:
        return None

    skill_name = rng.choice(relevant)
    skill = next((s for s in skills if s.name == skill_name), None)
    if skill is None:
        return None

    gain = rng.randint(tables.skill_gain_min, tables.skill_gain_max)
    progress = skill.progress + gain
    level = skill.level
    leveled_up = False
    if progress >= skill.max_level and level < tables.skill_level_cap:
        progress -= skill.max_level
        level += 1
        leveled_up = True

    update = SkillUpdate(skill_id=skill.id, level=level, progress=progress)
    event = SkillProgress(skill_id=skill.id, value=gain, level=level, progress=progress, leveled_up=leveled_up)
    return update, event


def resolve_activity(
    *,
    character: Character,
    activity: Activity,
    clock: GameClock,
    skills: list[SkillView],
    tables: ResolverTables,
    rng: random.Random,
) -> ActivityResolution:
    """Apply one activity to a character and move the clock.

    Raises InsufficientHoursError / InsufficientResourceError before touching anything.
    """

    check_activity_preconditions(character=character, activity=activity, clock=clock, tables=tables)

    updated = character
    changes: dict[Stat, int] = {}
    for stat, delta in activity.effects.items():
        updated = apply_stat_delta(updated, stat, delta)
        changes[stat] = delta

    advance = advance_clock(clock, activity.duration)
    updated = refill_energy_on_rollover(updated, advance)

    contact = None
    if rng.random() < tables.contact_chance:
        contact = draw_contact(day=clock.day, tables=tables, rng=rng)

    text = rng.choice(tables.narrative_pool(activity.title))

    skill_update = None
    skill_progress = None
    drawn = draw_skill_progress(title=activity.title, skills=skills, tables=tables, rng=rng)
    if drawn is not None:
        skill_update, skill_progress = drawn

    return ActivityResolution(
        character=updated,
        advance=advance,
        text=text,
        changes=changes,
        contact=contact,
        skill_update=skill_update,
        skill_progress=skill_progress,
    )
