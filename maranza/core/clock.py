from __future__ import annotations

from dataclasses import dataclass

from maranza.api.models import Character, GameClock


HOURS_PER_DAY = 24
INITIAL_DAY = 1
INITIAL_TIME = "08:00"
INITIAL_HOURS_LEFT = 16


def initial_clock(*, user_id: int) -> GameClock:
    return GameClock(
        user_id=user_id,
        day=INITIAL_DAY,
        time=INITIAL_TIME,
        hours_left=INITIAL_HOURS_LEFT,
        game_started=False,
        character_id=None,
    )


def parse_time(value: str) -> tuple[int, int]:
    try:
        hour_s, minute_s = value.split(":")
        hour, minute = int(hour_s), int(minute_s)
    except ValueError as e:
        raise ValueError(f"Invalid clock time: {value!r}") from e
    if not (0 <= hour < HOURS_PER_DAY and 0 <= minute < 60):
        raise ValueError(f"Invalid clock time: {value!r}")
    return hour, minute


def format_time(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}"


def hours_left_at(hour: int, minute: int) -> int:
    return max(0, HOURS_PER_DAY - hour - (1 if minute > 0 else 0))


@dataclass(frozen=True, slots=True)
class ClockAdvance:
    clock: GameClock
    days_passed: int

    @property
    def rolled_over(self) -> bool:
        return self.days_passed > 0


def advance_clock(clock: GameClock, hours: int) -> ClockAdvance:
    """Move the clock forward by `hours`.

    Every crossing of 24:00 bumps the day by one. The caller is responsible for
    refilling the active character's energy when `rolled_over` is set.
    """

    if hours < 0:
        raise ValueError("hours must be >= 0")

    hour, minute = parse_time(clock.time)
    hour += hours

    days_passed = 0
    while hour >= HOURS_PER_DAY:
        hour -= HOURS_PER_DAY
        days_passed += 1

    advanced = clock.model_copy(
        update={
            "time": format_time(hour, minute),
            "day": clock.day + days_passed,
            "hours_left": hours_left_at(hour, minute),
        }
    )
    return ClockAdvance(clock=advanced, days_passed=days_passed)


FULL_ENERGY = 100


def refill_energy_on_rollover(character: Character, advance: ClockAdvance) -> Character:
    if not advance.rolled_over:
        return character
    return character.model_copy(update={"energy": FULL_ENERGY})
