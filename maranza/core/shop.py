from __future__ import annotations

from dataclasses import dataclass

from maranza.api.models import Character, Item
from maranza.core.resolver import apply_stat_delta
from maranza.errors import PurchaseError


ALREADY_OWNED_MESSAGE = "Hai già questo oggetto"
NOT_ENOUGH_MONEY_MESSAGE = "Non hai abbastanza soldi per comprare questo oggetto"


@dataclass(frozen=True, slots=True)
class PurchaseResolution:
    character: Character
    item: Item
    acquired_day: int

    @property
    def message(self) -> str:
        return f"Hai comprato {self.item.name}!"


def resolve_purchase(*, character: Character, item: Item, already_owned: bool, day: int) -> PurchaseResolution:
    """Charge the price and apply the item's first listed effect right away."""

    if already_owned:
        raise PurchaseError(ALREADY_OWNED_MESSAGE)
    if character.money < item.price:
        raise PurchaseError(NOT_ENOUGH_MONEY_MESSAGE)

    updated = character.model_copy(update={"money": character.money - item.price})
    if item.effects:
        first = item.effects[0]
        updated = apply_stat_delta(updated, first.type, first.value)

    return PurchaseResolution(character=updated, item=item, acquired_day=day)
