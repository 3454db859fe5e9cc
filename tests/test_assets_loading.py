from __future__ import annotations

from pathlib import Path

import pytest

from maranza.api.models import Stat
from maranza.assets.catalog import catalog_data_dir, get_assets
from maranza.assets.registry import DEFAULT_DATA_DIR, AssetLoadError, load_activities_csv, load_game_assets


def test_catalog_loads_from_packaged_csvs() -> None:
    assets = get_assets()

    assert len(assets.activities) == 14
    assert [a.id for a in assets.activities if a.parent_id is None] == list(range(1, 11))
    assert len(assets.items) == 6
    assert [s.name for s in assets.skills] == [
        "Stile nel Vestire",
        "Parlata Slang",
        "Contrattazione",
        "Ballo",
        "Carisma Sociale",
    ]
    assert assets.starter_item_ids == (3, 6)


def test_activity_effects_are_typed() -> None:
    palestra = get_assets().activity(3)

    assert palestra is not None
    assert palestra.title == "Palestra"
    assert palestra.duration == 3
    assert dict(palestra.effects.items()) == {Stat.energy: -30, Stat.respect: 25}
    assert palestra.unlock_day is None


def test_unlock_days_and_sub_activities() -> None:
    assets = get_assets()

    tuning = assets.activity(8)
    assert tuning is not None and tuning.unlock_day == 3
    assert [a.id for a in assets.activities if a.parent_id == 3] == [11, 12]


def test_item_rows_sharing_an_id_merge_effects() -> None:
    drink = get_assets().item(6)

    assert drink is not None
    assert [(e.type, e.value, e.is_debuff) for e in drink.effects] == [
        (Stat.energy, 25, False),
        (Stat.respect, -2, True),
    ]


def test_narratives_and_skill_map() -> None:
    assets = get_assets()

    assert len(assets.narratives["Palestra"]) == 3
    assert assets.relevant_skills["Serata in Discoteca"] == ("Ballo", "Carisma Sociale")

    tables = assets.resolver_tables()
    assert tables.skills_for("Riposo a Casa") == ()
    assert tables.narrative_pool("Sfida di Ballo") == (tables.fallback_text,)


def test_packaged_catalog_sits_inside_the_package() -> None:
    import maranza.assets.registry as registry

    assert DEFAULT_DATA_DIR == Path(registry.__file__).resolve().parent / "data"
    for name in ("activities.csv", "items.csv", "skills.csv", "narratives.csv", "skill_map.csv"):
        assert (DEFAULT_DATA_DIR / name).is_file()


def test_missing_catalog_is_fatal_by_default(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MARANZA_ASSETS_FALLBACK", raising=False)

    with pytest.raises(AssetLoadError):
        load_game_assets(data_dir=tmp_path)


def test_fallback_only_when_requested(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MARANZA_ASSETS_FALLBACK", "1")

    assets = load_game_assets(data_dir=tmp_path)

    assert [a.title for a in assets.activities] == ["Giro in Piazza", "Riposo a Casa"]
    assert assets.starter_item_ids == ()

    with pytest.raises(AssetLoadError):
        load_game_assets(data_dir=tmp_path, allow_fallback=False)


def test_catalog_dir_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MARANZA_ASSETS_DIR", str(tmp_path))
    assert catalog_data_dir() == tmp_path

    monkeypatch.delenv("MARANZA_ASSETS_DIR")
    assert catalog_data_dir() == DEFAULT_DATA_DIR


def test_bad_header_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "activities.csv"
    path.write_text("id,name\n1,Palestra\n", encoding="utf-8")

    with pytest.raises(AssetLoadError) as e:
        load_activities_csv(path)
    assert "Unexpected header" in str(e.value)


def test_unknown_parent_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "activities.csv"
    path.write_text(
        "id,title,description,image,duration,money,reputation,style,energy,respect,"
        "unlock_day,category,color,parent_id,possible_outcomes\n"
        "1,Orfana,,,1,,,,-1,,,social,primary,42,\n",
        encoding="utf-8",
    )

    with pytest.raises(AssetLoadError) as e:
        load_activities_csv(path)
    assert "unknown parent 42" in str(e.value)


def test_zero_duration_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "activities.csv"
    path.write_text(
        "id,title,description,image,duration,money,reputation,style,energy,respect,"
        "unlock_day,category,color,parent_id,possible_outcomes\n"
        "1,Niente,,,0,,,,,,,social,primary,,\n",
        encoding="utf-8",
    )

    with pytest.raises(AssetLoadError):
        load_activities_csv(path)
