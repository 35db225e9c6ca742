"""JSON-file journal of finished transcripts.

The journal keeps its own copy of each entry's audio under ``audio_dir`` so the
capture side can discard its recordings freely.
"""

from __future__ import annotations

import json
import logging
import os
import shutil
import threading
from pathlib import Path
from typing import Iterable

from config import JOURNAL_AUDIO_DIR, JOURNAL_PATH
from errors import STORAGE_FAILED, PipelineError
from models import JournalEntry

logger = logging.getLogger(__name__)


def normalize_tags(tags: Iterable[str]) -> list[str]:
    """Strip blanks and drop repeats, keeping first-seen order."""
    result: list[str] = []
    for tag in tags:
        tag = tag.strip().lstrip("#").strip()
        if tag and tag not in result:
            result.append(tag)
    return result


class JsonJournalStore:
    def __init__(self, path: Path | None = None, audio_dir: Path | None = None) -> None:
        self._path = path or JOURNAL_PATH
        self.audio_dir = audio_dir or JOURNAL_AUDIO_DIR
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def save(self, entry: JournalEntry, audio_path: Path | None = None) -> None:
        with self._lock:
            entries = [e for e in self._read_all() if e.id != entry.id]
            if audio_path is not None:
                entry.audio_file_reference = self._copy_audio(entry, audio_path)
            entries.append(entry)
            self._write_all(entries)
        logger.info("Saved journal entry %s (%s)", entry.id, entry.title)

    def get(self, entry_id: str) -> JournalEntry | None:
        with self._lock:
            return next((e for e in self._read_all() if e.id == entry_id), None)

    def audio_path(self, entry: JournalEntry) -> Path | None:
        if not entry.audio_file_reference:
            return None
        return self.audio_dir / entry.audio_file_reference

    def list_entries(self) -> list[JournalEntry]:
        """All entries, newest recording first."""
        with self._lock:
            entries = self._read_all()
        return sorted(entries, key=lambda e: e.recording_timestamp, reverse=True)

    def search(self, query: str) -> list[JournalEntry]:
        needle = query.strip().lower()
        entries = self.list_entries()
        if not needle:
            return entries
        return [e for e in entries if _matches(e, needle)]

    def update(self, entry_id: str, tags: Iterable[str] | None = None, notes: str | None = None) -> JournalEntry | None:
        with self._lock:
            entries = self._read_all()
            entry = next((e for e in entries if e.id == entry_id), None)
            if entry is None:
                return None
            if tags is not None:
                entry.tags = normalize_tags(tags)
            if notes is not None:
                entry.notes = notes
            self._write_all(entries)
            return entry

    def delete(self, entry_id: str) -> bool:
        with self._lock:
            entries = self._read_all()
            removed = next((e for e in entries if e.id == entry_id), None)
            if removed is None:
                return False
            self._write_all([e for e in entries if e.id != entry_id])
        audio = self.audio_path(removed)
        if audio is not None:
            audio.unlink(missing_ok=True)
        logger.info("Deleted journal entry %s", entry_id)
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _copy_audio(self, entry: JournalEntry, audio_path: Path) -> str:
        self.audio_dir.mkdir(parents=True, exist_ok=True)
        target = self.audio_dir / f"{entry.id}{audio_path.suffix}"
        try:
            shutil.copy2(audio_path, target)
        except OSError as exc:
            raise PipelineError(STORAGE_FAILED, f"could not keep audio: {exc}") from exc
        return target.name

    def _read_all(self) -> list[JournalEntry]:
        """Load every readable entry.

        Raises:
            PipelineError: ``STORAGE_FAILED`` when the file exists but is not a
                JSON list; writing over it would lose the earlier entries.
        """
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.error("Journal at %s is unreadable: %s", self._path, exc)
            raise PipelineError(STORAGE_FAILED, f"journal file is unreadable: {exc}") from exc
        if not isinstance(data, list):
            logger.error("Journal at %s is not a list", self._path)
            raise PipelineError(STORAGE_FAILED, "journal file is not a list of entries")

        entries = []
        for index, item in enumerate(data):
            try:
                entries.append(JournalEntry.from_dict(item))
            except (KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping journal item %d: %r", index, exc)
        return entries

    def _write_all(self, entries: list[JournalEntry]) -> None:
        payload = json.dumps([e.to_dict() for e in entries], ensure_ascii=False, indent=2)
        temp_path = self._path.with_suffix(".tmp")
        try:
            temp_path.write_text(payload, encoding="utf-8")
            os.replace(temp_path, self._path)
        except OSError as exc:
            temp_path.unlink(missing_ok=True)
            raise PipelineError(STORAGE_FAILED, f"could not write journal: {exc}") from exc


def _matches(entry: JournalEntry, needle: str) -> bool:
    fields = (entry.title, entry.lyrics, entry.notes)
    if any(needle in value.lower() for value in fields):
        return True
    return any(needle in tag.lower() for tag in entry.tags)


def parse_tags(text: str) -> list[str]:
    """Split a comma separated tag field typed by the user."""
    return normalize_tags(text.split(","))
