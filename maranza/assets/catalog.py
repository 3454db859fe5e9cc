"""Process-wide game catalog.

Loaded once at app startup and read by request dependencies; the catalog is
immutable after loading.
"""

from __future__ import annotations

import os
from pathlib import Path

from maranza.assets.registry import DEFAULT_DATA_DIR, GameAssets, load_game_assets


_CATALOG: GameAssets | None = None


def catalog_data_dir() -> Path:
    """Packaged CSVs, unless MARANZA_ASSETS_DIR points at a custom catalog."""

    override = os.environ.get("MARANZA_ASSETS_DIR", "").strip()
    return Path(override) if override else DEFAULT_DATA_DIR


def init_assets(*, data_dir: Path | None = None) -> GameAssets:
    """Load the catalog if needed; later calls return the cached one."""

    global _CATALOG
    if _CATALOG is None:
        _CATALOG = load_game_assets(data_dir=data_dir or catalog_data_dir())
    return _CATALOG


def reset_assets_for_tests() -> None:
    global _CATALOG
    _CATALOG = None


def get_assets() -> GameAssets:
    if _CATALOG is None:
        raise RuntimeError("Game catalog not loaded; init_assets() runs at app startup")
    return _CATALOG
