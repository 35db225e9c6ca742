from __future__ import annotations

from pathlib import Path

import pytest

from config import DEFAULT_HOTKEY, DEFAULT_LANGUAGE, DEFAULT_MODEL, JsonConfigStore, resolve_api_key


def test_config_read_write(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    store = JsonConfigStore(path=path)

    assert store.get_api_key() == ""
    assert store.get_language() == DEFAULT_LANGUAGE
    assert store.get_hotkey() == DEFAULT_HOTKEY
    assert store.get_model() == DEFAULT_MODEL

    store.set_api_key("abc")
    store.set_language("Korean")
    store.set_hotkey("Key.f10")

    reloaded = JsonConfigStore(path=path)
    assert reloaded.get_api_key() == "abc"
    assert reloaded.get_language() == "Korean"
    assert reloaded.get_hotkey() == "Key.f10"


def test_config_invalid_json_fallback(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{invalid", encoding="utf-8")

    store = JsonConfigStore(path=path)
    assert store.get_api_key() == ""
    assert store.get_language() == DEFAULT_LANGUAGE


def test_unsupported_language_is_rejected(tmp_path: Path) -> None:
    store = JsonConfigStore(path=tmp_path / "config.json")
    with pytest.raises(ValueError):
        store.set_language("Elvish")


def test_api_key_prefers_environment(tmp_path: Path, monkeypatch) -> None:  # noqa: ANN001
    store = JsonConfigStore(path=tmp_path / "config.json")
    store.set_api_key("from-config")

    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    assert resolve_api_key(store) == "from-env"

    monkeypatch.delenv("GEMINI_API_KEY")
    assert resolve_api_key(store) == "from-config"
    assert resolve_api_key(None) == ""
