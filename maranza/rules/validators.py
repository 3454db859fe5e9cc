from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from maranza.api.models import Character, GameClock
from maranza.errors import NoCharacterError


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Inputs available to validators.

    Keep this tight and serializable-ish so we can safely log it.
    """

    user_id: int
    action: str
    target_id: int | None = None


@dataclass(frozen=True, slots=True)
class ActionSubject:
    clock: GameClock
    character: Character | None
    # unlock gate of the activity/item being acted on
    unlock_day: int | None = None


class ActionValidator(ABC):
    """A small, composable validation unit for an incoming action."""

    @abstractmethod
    def validate(self, *, ctx: ValidationContext, subject: ActionSubject) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class CharacterValidator(ActionValidator):
    """The game must be started and the clock must point at an existing character."""

    def validate(self, *, ctx: ValidationContext, subject: ActionSubject) -> None:
        clock = subject.clock
        if not clock.game_started or clock.character_id is None:
            raise NoCharacterError()
        if subject.character is None or subject.character.id != clock.character_id:
            raise NoCharacterError("Character not found")


@dataclass(frozen=True, slots=True)
class UnlockDayValidator(ActionValidator):
    message: str

    def validate(self, *, ctx: ValidationContext, subject: ActionSubject) -> None:
        if subject.unlock_day is not None and subject.unlock_day > subject.clock.day:
            raise ValueError(f"{self.message} (day {subject.unlock_day})")


@dataclass(frozen=True, slots=True)
class ValidatorPipeline:
    validators: tuple[ActionValidator, ...]

    def validate(self, *, ctx: ValidationContext, subject: ActionSubject) -> None:
        for v in self.validators:
            v.validate(ctx=ctx, subject=subject)


DEFAULT_ACTION_PIPELINES: dict[str, ValidatorPipeline] = {
    "activity": ValidatorPipeline(
        validators=(
            CharacterValidator(),
            UnlockDayValidator(message="Questa attività non è ancora sbloccata"),
        )
    ),
    "purchase": ValidatorPipeline(
        validators=(
            CharacterValidator(),
            UnlockDayValidator(message="Questo oggetto non è ancora disponibile"),
        )
    ),
}


def pipeline_for_action(action: str) -> ValidatorPipeline:
    pipe = DEFAULT_ACTION_PIPELINES.get(action)
    if pipe is None:
        raise ValueError(f"Unknown action: {action}")
    return pipe
