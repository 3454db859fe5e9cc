from __future__ import annotations

from collections.abc import Iterator
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Bounds for every stat except money, which is unbounded.
STAT_MIN = 0
STAT_MAX = 100


class CamelModel(BaseModel):
    # The web client speaks camelCase (hoursLeft, avatarId, ...); Redis keeps field names.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Stat(StrEnum):
    money = "money"
    reputation = "reputation"
    style = "style"
    energy = "energy"
    respect = "respect"


class Personality(StrEnum):
    audace = "audace"
    ribelle = "ribelle"
    carismatico = "carismatico"


class Look(StrEnum):
    casual = "casual"
    sportivo = "sportivo"
    firmato = "firmato"


class ItemCategory(StrEnum):
    clothing = "clothing"
    accessory = "accessory"
    consumable = "consumable"
    special = "special"


class RespectTier(StrEnum):
    basso = "basso"
    medio = "medio"
    alto = "alto"


class StatEffects(CamelModel):
    """Signed deltas keyed by the five known stats. Unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid")

    money: int | None = None
    reputation: int | None = None
    style: int | None = None
    energy: int | None = None
    respect: int | None = None

    def items(self) -> Iterator[tuple[Stat, int]]:
        for stat in Stat:
            value = getattr(self, stat.value)
            if value is not None:
                yield stat, value


class User(CamelModel):
    id: int
    username: str


class Character(CamelModel):
    id: int
    user_id: int
    name: str
    personality: Personality
    look: Look
    style: int = Field(default=60, ge=STAT_MIN, le=STAT_MAX)
    money: int = 250
    reputation: int = Field(default=50, ge=STAT_MIN, le=STAT_MAX)
    energy: int = Field(default=100, ge=STAT_MIN, le=STAT_MAX)
    respect: int = Field(default=30, ge=STAT_MIN, le=STAT_MAX)
    avatar_id: int = Field(default=1, ge=1, le=5)

    def stat(self, stat: Stat) -> int:
        return int(getattr(self, stat.value))


class Activity(CamelModel):
    id: int
    title: str
    description: str
    image: str = ""
    duration: int = Field(..., ge=1)
    effects: StatEffects = Field(default_factory=StatEffects)
    unlock_day: int | None = None
    category: str
    color: str
    possible_outcomes: list[str] = Field(default_factory=list)

    # Set on sub-activities: micro-actions offered inside another activity's detail view.
    parent_id: int | None = None


class ItemEffect(CamelModel):
    type: Stat
    value: int
    is_debuff: bool = False


class Item(CamelModel):
    id: int
    name: str
    description: str
    effects: list[ItemEffect] = Field(default_factory=list)
    price: int = Field(..., ge=0)
    image: str = ""
    category: ItemCategory
    unlock_day: int | None = None


class ShopItem(Item):
    is_owned: bool = False


class CharacterItem(CamelModel):
    id: int
    character_id: int
    item_id: int
    acquired: bool = True
    acquired_day: int | None = None


class Skill(CamelModel):
    id: int
    name: str
    description: str


class CharacterSkill(CamelModel):
    id: int
    character_id: int
    skill_id: int
    level: int = 1
    progress: int = 0
    max_level: int = 100


class SkillView(Skill):
    """Skill definition joined with one character's progress."""

    level: int
    progress: int
    max_level: int


class ContactDraft(CamelModel):
    name: str
    type: str
    respect: RespectTier
    meet_day: int
    avatar_initials: str
    avatar_color: str


class Contact(ContactDraft):
    id: int
    character_id: int


class GameClock(CamelModel):
    user_id: int
    day: int = Field(default=1, ge=1)
    time: str = "08:00"
    hours_left: int = Field(default=16, ge=0)
    game_started: bool = False
    character_id: int | None = None


class CharacterCreateRequest(CamelModel):
    name: str
    look: Look
    personality: Personality
    avatar_id: int = Field(..., ge=1, le=5)
    money: int = 250
    reputation: int = Field(default=50, ge=STAT_MIN, le=STAT_MAX)
    energy: int = Field(default=100, ge=STAT_MIN, le=STAT_MAX)
    respect: int = Field(default=30, ge=STAT_MIN, le=STAT_MAX)
    style: int = Field(default=60, ge=STAT_MIN, le=STAT_MAX)

    @field_validator("name")
    @classmethod
    def _name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class AdvanceTimeRequest(CamelModel):
    hours: int = Field(..., ge=1, le=12)


class PurchaseRequest(CamelModel):
    item_id: int


class SkillProgress(CamelModel):
    skill_id: int
    value: int
    level: int
    progress: int
    leveled_up: bool = False


class ActivityResult(CamelModel):
    text: str
    money_change: int = 0
    reputation_change: int = 0
    style_change: int = 0
    energy_change: int = 0
    respect_change: int = 0
    new_contact: Contact | None = None
    skill_progress: SkillProgress | None = None


class PurchaseResponse(CamelModel):
    success: bool
    message: str
    new_money: int | None = None
    item: Item | None = None


class MessageResponse(CamelModel):
    message: str


class GameStateResponse(CamelModel):
    day: int
    time: str
    game_started: bool
    hours_left: int
    character: Character | None = None
    available_activities: list[Activity] = Field(default_factory=list)
    inventory: list[Item] = Field(default_factory=list)
    skills: list[SkillView] = Field(default_factory=list)
    contacts: list[Contact] = Field(default_factory=list)
