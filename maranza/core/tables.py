from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from maranza.api.models import RespectTier, Stat


FALLBACK_RESULT_TEXT = "Hai completato l'attività con successo!"

CONTACT_FIRST_NAMES: tuple[str, ...] = (
    "Marco",
    "Luca",
    "Sara",
    "Giulia",
    "Alessandro",
    "Matteo",
    "Federico",
    "Simone",
    "Manuel",
    "Lorenzo",
)
CONTACT_LAST_NAMES: tuple[str, ...] = (
    "Bello",
    "Furioso",
    "Diva",
    "Style",
    "Bomber",
    "King",
    "Cool",
    "Top",
    "Ferro",
    "Boss",
)
CONTACT_TYPES: tuple[str, ...] = (
    "Amico d'infanzia",
    "Conosciuto in discoteca",
    "Compagno di palestra",
    "Amico di amici",
    "Conosciuto al raduno",
)
CONTACT_COLORS: tuple[str, ...] = ("primary", "secondary", "info", "amber-400", "green-500")

# (stat, activity title) -> refusal text. A None title is the per-stat default.
SHORTAGE_MESSAGES: Mapping[tuple[Stat, str | None], str] = MappingProxyType(
    {
        (Stat.money, "Shopping al Centro"): (
            "Non hai abbastanza soldi per andare a fare shopping. Prova a fare un lavoretto part-time!"
        ),
        (Stat.money, "Serata in Discoteca"): "Non puoi permetterti di andare in discoteca. Trovati un lavoretto prima!",
        (Stat.money, None): "Non hai abbastanza soldi per questa attività. Devi guadagnare un po' di cash!",
        (Stat.energy, "Palestra"): "Sei troppo stanco per allenarti. Riposati un po' prima!",
        (Stat.energy, "Serata in Discoteca"): (
            "Non hai abbastanza energia per una serata in discoteca. Fatti una dormita prima!"
        ),
        (Stat.energy, "Lavoretto Part-time"): "Sei troppo esausto per lavorare. Riposati a casa e riprova dopo!",
        (Stat.energy, "Vai a Scuola"): "Sei troppo stanco per andare a scuola. Recupera le forze prima!",
        (Stat.energy, None): "Non hai abbastanza energia per questa attività. Riposati un po'!",
        (Stat.respect, None): (
            "Non hai abbastanza rispetto tra i maranza per questa attività. Guadagnati una reputazione!"
        ),
        (Stat.reputation, None): (
            "La tua reputazione è troppo bassa per questa attività. Fatti conoscere di più in giro!"
        ),
    }
)


@dataclass(frozen=True, slots=True)
class ResolverTables:
    """Tuning knobs and content pools for activity resolution.

    Built from the loaded catalog (narratives, skill map) and injected into the
    resolver, so tests can swap any of them.
    """

    narratives: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    relevant_skills: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    contact_chance: float = 0.5
    skill_chance: float = 0.7
    # randint bounds, inclusive: [5, 20) as integers.
    skill_gain_min: int = 5
    skill_gain_max: int = 19
    skill_level_cap: int = 5

    fallback_text: str = FALLBACK_RESULT_TEXT
    first_names: tuple[str, ...] = CONTACT_FIRST_NAMES
    last_names: tuple[str, ...] = CONTACT_LAST_NAMES
    contact_types: tuple[str, ...] = CONTACT_TYPES
    respect_tiers: tuple[RespectTier, ...] = (RespectTier.basso, RespectTier.medio, RespectTier.alto)
    contact_colors: tuple[str, ...] = CONTACT_COLORS
    shortage_messages: Mapping[tuple[Stat, str | None], str] = field(default_factory=lambda: SHORTAGE_MESSAGES)

    def narrative_pool(self, title: str) -> tuple[str, ...]:
        return self.narratives.get(title) or (self.fallback_text,)

    def skills_for(self, title: str) -> tuple[str, ...]:
        return self.relevant_skills.get(title, ())

    def shortage_message(self, stat: Stat, title: str) -> str:
        msg = self.shortage_messages.get((stat, title)) or self.shortage_messages.get((stat, None))
        if msg is None:
            return f"Non hai abbastanza {stat.value} per questa attività."
        return msg
