"""Protocol interfaces used by PipelineController and the app shell."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Protocol

from models import JournalEntry, Recording, RemoteFileHandle, ShareResult


class AudioSession(Protocol):
    def request_capture_permission(self) -> bool: ...

    def start(self) -> Recording: ...

    def stop(self) -> Recording: ...

    def read_bytes(self, recording: Recording) -> bytes: ...

    def play(self, recording: Recording) -> None: ...

    def stop_playback(self) -> None: ...

    def discard(self, recording: Recording) -> None: ...


class TranscriptionClient(Protocol):
    def upload(self, data: bytes, mime_type: str) -> RemoteFileHandle: ...

    def generate(self, handle: RemoteFileHandle, language: str) -> str: ...

    def transcribe(self, data: bytes, mime_type: str, language: str) -> str: ...


class JournalStore(Protocol):
    def save(self, entry: JournalEntry, audio_path: Path | None = None) -> None: ...

    def get(self, entry_id: str) -> JournalEntry | None: ...

    def list_entries(self) -> list[JournalEntry]: ...

    def search(self, query: str) -> list[JournalEntry]: ...

    def update(
        self, entry_id: str, tags: Iterable[str] | None = None, notes: str | None = None
    ) -> JournalEntry | None: ...

    def delete(self, entry_id: str) -> bool: ...



class ShareService(Protocol):
    def share_entry(self, entry: JournalEntry) -> ShareResult: ...


class ConfigStore(Protocol):
    def get_api_key(self) -> str: ...

    def set_api_key(self, key: str) -> None: ...

    def get_language(self) -> str: ...

    def set_language(self, language: str) -> None: ...

    def get_hotkey(self) -> str: ...

    def set_hotkey(self, hotkey: str) -> None: ...

    def get_model(self) -> str: ...
