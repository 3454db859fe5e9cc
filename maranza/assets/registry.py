from __future__ import annotations

import csv
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from pydantic import ValidationError

from maranza.api.models import Activity, Item, ItemEffect, Skill, StatEffects
from maranza.core.tables import ResolverTables


logger = logging.getLogger(__name__)

# Shipped as package data next to this module.
DEFAULT_DATA_DIR = Path(__file__).resolve().parent / "data"

STAT_COLUMNS = ("money", "reputation", "style", "energy", "respect")


class AssetLoadError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class GameAssets:
    """Static catalog: activities, shop items, skills and the narrative tables.

    Ids are canonical (shared with Redis); titles and names are for display and lookups.
    """

    activities: tuple[Activity, ...]
    items: tuple[Item, ...]
    skills: tuple[Skill, ...]
    starter_item_ids: tuple[int, ...]
    narratives: dict[str, tuple[str, ...]]
    relevant_skills: dict[str, tuple[str, ...]]

    def activity(self, id: int) -> Activity | None:
        return next((a for a in self.activities if a.id == id), None)

    def item(self, id: int) -> Item | None:
        return next((i for i in self.items if i.id == id), None)

    def resolver_tables(self) -> ResolverTables:
        return ResolverTables(narratives=self.narratives, relevant_skills=self.relevant_skills)


def _read_csv_rows(path: Path, *, header: tuple[str, ...]) -> list[dict[str, str]]:
    try:
        raw = path.read_text(encoding="utf-8-sig")
    except FileNotFoundError as e:
        raise AssetLoadError(f"Asset file not found: {path}") from e

    rows = [row for row in csv.reader(raw.splitlines()) if any(cell.strip() for cell in row)]
    if not rows:
        raise AssetLoadError(f"Empty CSV: {path}")

    found = tuple(c.strip().casefold() for c in rows[0])
    if found[: len(header)] != header:
        raise AssetLoadError(f"Unexpected header in {path}: {rows[0]}")

    out: list[dict[str, str]] = []
    for row in rows[1:]:
        padded = [c.strip() for c in row] + [""] * (len(found) - len(row))
        out.append(dict(zip(found, padded)))
    return out


def _opt_int(value: str) -> int | None:
    return int(value) if value else None


def _check_unique(ids: list[int], *, what: str) -> None:
    seen: set[int] = set()
    for i in ids:
        if i in seen:
            raise AssetLoadError(f"Duplicate {what} id: {i}")
        seen.add(i)


def load_activities_csv(path: Path) -> tuple[Activity, ...]:
    header = (
        "id",
        "title",
        "description",
        "image",
        "duration",
        *STAT_COLUMNS,
        "unlock_day",
        "category",
        "color",
        "parent_id",
        "possible_outcomes",
    )
    out: list[Activity] = []
    for row in _read_csv_rows(path, header=header):
        try:
            effects = StatEffects(**{stat: _opt_int(row[stat]) for stat in STAT_COLUMNS})
            out.append(
                Activity(
                    id=int(row["id"]),
                    title=row["title"],
                    description=row["description"],
                    image=row["image"],
                    duration=int(row["duration"]),
                    effects=effects,
                    unlock_day=_opt_int(row["unlock_day"]),
                    category=row["category"],
                    color=row["color"],
                    parent_id=_opt_int(row["parent_id"]),
                    possible_outcomes=[s.strip() for s in row["possible_outcomes"].split("|") if s.strip()],
                )
            )
        except (ValueError, ValidationError) as e:
            raise AssetLoadError(f"Bad activity row in {path}: {row}") from e

    _check_unique([a.id for a in out], what="activity")
    known = {a.id for a in out}
    for a in out:
        if a.parent_id is not None and a.parent_id not in known:
            raise AssetLoadError(f"Activity {a.id} references unknown parent {a.parent_id}")
    return tuple(out)


def load_items_csv(path: Path) -> tuple[tuple[Item, ...], tuple[int, ...]]:
    """Rows sharing an id add further effects to the same item; the first row wins for the rest."""

    header = (
        "id",
        "name",
        "description",
        "price",
        "image",
        "category",
        "unlock_day",
        "starter",
        "effect_type",
        "effect_value",
        "is_debuff",
    )
    by_id: dict[int, Item] = {}
    starters: list[int] = []
    for row in _read_csv_rows(path, header=header):
        try:
            iid = int(row["id"])
            effect = None
            if row["effect_type"]:
                effect = ItemEffect(
                    type=row["effect_type"],
                    value=int(row["effect_value"]),
                    is_debuff=row["is_debuff"] in {"1", "true", "yes"},
                )
            if iid not in by_id:
                by_id[iid] = Item(
                    id=iid,
                    name=row["name"],
                    description=row["description"],
                    price=int(row["price"]),
                    image=row["image"],
                    category=row["category"],
                    unlock_day=_opt_int(row["unlock_day"]),
                )
                if row["starter"] in {"1", "true", "yes"}:
                    starters.append(iid)
            if effect is not None:
                by_id[iid].effects.append(effect)
        except (ValueError, ValidationError) as e:
            raise AssetLoadError(f"Bad item row in {path}: {row}") from e

    return tuple(by_id.values()), tuple(starters)


def load_skills_csv(path: Path) -> tuple[Skill, ...]:
    out: list[Skill] = []
    for row in _read_csv_rows(path, header=("id", "name", "description")):
        try:
            out.append(Skill(id=int(row["id"]), name=row["name"], description=row["description"]))
        except (ValueError, ValidationError) as e:
            raise AssetLoadError(f"Bad skill row in {path}: {row}") from e
    _check_unique([s.id for s in out], what="skill")
    return tuple(out)


def _load_grouped_csv(path: Path, *, header: tuple[str, str]) -> dict[str, tuple[str, ...]]:
    key_col, value_col = header
    grouped: dict[str, list[str]] = {}
    for row in _read_csv_rows(path, header=header):
        if not row[key_col] or not row[value_col]:
            continue
        grouped.setdefault(row[key_col], []).append(row[value_col])
    return {k: tuple(v) for k, v in grouped.items()}


def load_narratives_csv(path: Path) -> dict[str, tuple[str, ...]]:
    return _load_grouped_csv(path, header=("activity_title", "text"))


def load_skill_map_csv(path: Path) -> dict[str, tuple[str, ...]]:
    return _load_grouped_csv(path, header=("activity_title", "skill_name"))


def _fallback_game_assets() -> GameAssets:
    """Tiny built-in catalog for running without the packaged CSVs."""

    activities = (
        Activity(
            id=1,
            title="Giro in Piazza",
            description="Fai un giro nella piazza principale.",
            duration=1,
            effects=StatEffects(reputation=15, energy=-10),
            category="social",
            color="primary",
            possible_outcomes=["Possibile incontro con altri maranza"],
        ),
        Activity(
            id=2,
            title="Riposo a Casa",
            description="Resta a casa per recuperare energia.",
            duration=2,
            effects=StatEffects(energy=40),
            category="rest",
            color="secondary",
        ),
    )
    items = (
        Item(
            id=1,
            name="Cappellino con Visiera",
            description="Un cappellino con logo ben visibile",
            effects=[ItemEffect(type="style", value=8)],
            price=40,
            category="accessory",
        ),
    )
    skills = (
        Skill(id=1, name="Parlata Slang", description="Il gergo maranza"),
        Skill(id=2, name="Carisma Sociale", description="Farsi nuovi amici"),
    )
    return GameAssets(
        activities=activities,
        items=items,
        skills=skills,
        starter_item_ids=(),
        narratives={},
        relevant_skills={"Giro in Piazza": ("Parlata Slang", "Carisma Sociale")},
    )


def _fallback_requested() -> bool:
    return os.getenv("MARANZA_ASSETS_FALLBACK", "").strip().lower() in {"1", "true", "yes"}


def load_game_assets(*, data_dir: Path = DEFAULT_DATA_DIR, allow_fallback: bool | None = None) -> GameAssets:
    """Load the catalog CSVs from `data_dir`.

    A missing or broken catalog is fatal. The tiny built-in catalog is only used
    when explicitly requested (`allow_fallback=True` or MARANZA_ASSETS_FALLBACK=1).
    """

    if allow_fallback is None:
        allow_fallback = _fallback_requested()

    try:
        items, starters = load_items_csv(data_dir / "items.csv")
        assets = GameAssets(
            activities=load_activities_csv(data_dir / "activities.csv"),
            items=items,
            skills=load_skills_csv(data_dir / "skills.csv"),
            starter_item_ids=starters,
            narratives=load_narratives_csv(data_dir / "narratives.csv"),
            relevant_skills=load_skill_map_csv(data_dir / "skill_map.csv"),
        )
    except AssetLoadError:
        if not allow_fallback:
            raise
        logger.warning("Catalog missing or invalid under %s; using built-in catalog", data_dir)
        return _fallback_game_assets()

    logger.info(
        "Loaded catalog from %s: %d activities, %d items, %d skills",
        data_dir,
        len(assets.activities),
        len(assets.items),
        len(assets.skills),
    )
    return assets
