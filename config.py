"""Simple JSON-based config store and credential resolution."""

from __future__ import annotations

import json
import os
from pathlib import Path

from interfaces import ConfigStore

API_KEY_ENV = "GEMINI_API_KEY"

DEFAULT_LANGUAGE = "English"
DEFAULT_HOTKEY = "Key.f9"
DEFAULT_MODEL = "gemini-2.0-flash-exp"

SUPPORTED_LANGUAGES = (
    "English",
    "Spanish",
    "French",
    "German",
    "Italian",
    "Portuguese",
    "Japanese",
    "Korean",
    "Chinese",
    "Hindi",
    "Arabic",
)

DATA_DIR = Path.home() / ".local" / "share" / "lyricscribe"
RECORDINGS_DIR = DATA_DIR / "recordings"
JOURNAL_PATH = DATA_DIR / "journal.json"
JOURNAL_AUDIO_DIR = DATA_DIR / "journal_audio"


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "lyricscribe" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def get_api_key(self) -> str:
        return str(self._read_all().get("api_key", ""))

    def set_api_key(self, key: str) -> None:
        self._update(api_key=key)

    def get_language(self) -> str:
        language = str(self._read_all().get("language", DEFAULT_LANGUAGE))
        return language if language in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE

    def set_language(self, language: str) -> None:
        if language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"unsupported language: {language}")
        self._update(language=language)

    def get_hotkey(self) -> str:
        return str(self._read_all().get("hotkey", DEFAULT_HOTKEY))

    def set_hotkey(self, hotkey: str) -> None:
        self._update(hotkey=hotkey)

    def get_model(self) -> str:
        return str(self._read_all().get("model", DEFAULT_MODEL))

    def _update(self, **values: str) -> None:
        data = self._read_all()
        data.update(values)
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def resolve_api_key(config_store: ConfigStore | None = None) -> str:
    """Environment variable first, then the configured key; empty when neither is set."""
    key = os.getenv(API_KEY_ENV, "").strip()
    if key:
        return key
    if config_store is None:
        return ""
    return config_store.get_api_key().strip()
