from __future__ import annotations

import json
import logging
from pathlib import Path

from viewkit.config import ViewConfig
from viewkit.preferences import PreferenceStore


def test_store_round_trips_through_file(tmp_path: Path) -> None:
    path = tmp_path / "prefs" / "preferences.json"
    store = PreferenceStore(path)
    store.set("xFeat", "temp_mean")
    store.set_json("swatchState", {"flood": 1})

    reopened = PreferenceStore(path)
    assert reopened.get("xFeat") == "temp_mean"
    assert reopened.get_json("swatchState") == {"flood": 1}

    reopened.remove("xFeat")
    assert PreferenceStore(path).get("xFeat") is None


def test_corrupt_file_reads_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "preferences.json"
    path.write_text("{not json", encoding="utf-8")

    store = PreferenceStore(path)

    assert store.get("xFeat") is None


def test_non_string_values_are_dropped(tmp_path: Path) -> None:
    path = tmp_path / "preferences.json"
    path.write_text(json.dumps({"xFeat": 3, "yFeat": "leaf_drop_doy"}), encoding="utf-8")

    store = PreferenceStore(path)

    assert store.get("xFeat") is None
    assert store.get("yFeat") == "leaf_drop_doy"


def test_invalid_json_value_returns_default() -> None:
    store = PreferenceStore()
    store.set("swatchState", "{oops")
    assert store.get_json("swatchState", default={}) == {}


def test_failed_write_is_logged_not_raised(tmp_path: Path, caplog) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("", encoding="utf-8")
    store = PreferenceStore(blocker / "preferences.json")

    with caplog.at_level(logging.WARNING, logger="viewkit.preferences"):
        store.set("xFeat", "year")

    assert store.get("xFeat") == "year"
    assert "Could not persist preferences" in caplog.text


def test_config_from_env_overrides_paths(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("VIEWKIT_PREFS", str(tmp_path / "p.json"))
    monkeypatch.setenv("VIEWKIT_WORLD_GEOJSON", "/data/world.geojson")

    config = ViewConfig.from_env()

    assert config.prefs_path == tmp_path / "p.json"
    assert config.world_geojson_url == "/data/world.geojson"


def test_config_from_env_keeps_explicit_overrides(monkeypatch) -> None:
    monkeypatch.setenv("VIEWKIT_WORLD_GEOJSON", "/data/world.geojson")

    config = ViewConfig.from_env(world_geojson_url="local.geojson")

    assert config.world_geojson_url == "local.geojson"
    assert config.zoom_extent == (1.0, 8.0)
