from __future__ import annotations

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from maranza.api.models import GameClock
from maranza.errors import ConflictError


IDLE = "idle"
PLAYING = "playing"


class SessionFSM(StateMachine):
    """Guards the game_started lifecycle of one user's clock.

    - idle: no character yet (fresh clock or right after a reset).
    - playing: a character exists and activities/shop are open.
    The clock itself cycles forever; only character creation and reset move this machine.
    """

    idle = State(IDLE, value=IDLE, initial=True)
    playing = State(PLAYING, value=PLAYING)

    character_created = idle.to(playing)
    reset = playing.to(idle) | idle.to.itself()

    def __init__(self, clock: GameClock):
        self.clock = clock
        super().__init__(start_value=PLAYING if clock.game_started else IDLE)

    def fire(self, event: str) -> None:
        try:
            self.send(event)
        except TransitionNotAllowed as e:
            if event == "character_created":
                raise ConflictError("A character already exists; reset the game first") from e
            raise ConflictError(f"Cannot {event.replace('_', ' ')} while {self.current_state.value}") from e

    def sync_to_clock(self) -> GameClock:
        self.clock = self.clock.model_copy(update={"game_started": self.current_state.value == PLAYING})
        return self.clock
