from __future__ import annotations

import json

from game.settings import JsonSettingsStore, MemorySettingsStore


def test_memory_store_defaults_and_types():
    store = MemorySettingsStore({"flag": 3, "count": True})

    assert store.get_bool("missing") is False
    assert store.get_bool("missing", True) is True
    assert store.get_bool("flag") is False
    assert store.get_int("count", 7) == 7

    store.set_bool("flag", True)
    store.set_int("count", 12)
    assert store.get_bool("flag") is True
    assert store.get_int("count") == 12


def test_json_store_writes_through(tmp_path):
    path = tmp_path / "settings.json"
    store = JsonSettingsStore(path)
    store.set_bool("tutorial_completed", True)
    store.set_int("player_level", 3)

    assert json.loads(path.read_text()) == {"player_level": 3, "tutorial_completed": True}

    reloaded = JsonSettingsStore(path)
    assert reloaded.get_bool("tutorial_completed") is True
    assert reloaded.get_int("player_level") == 3


def test_json_store_ignores_unreadable_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json")

    store = JsonSettingsStore(path)

    assert store.values == {}


def test_json_store_drops_non_scalar_values(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"player_level": 2, "name": "x", "nested": {"a": 1}}))

    store = JsonSettingsStore(path)

    assert store.values == {"player_level": 2}
