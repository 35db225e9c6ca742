from __future__ import annotations

from datetime import datetime
from unittest.mock import MagicMock

import share
from models import JournalEntry
from share import ClipboardShareService, format_entry


def _entry(title: str = "Title", lyrics: str = "line 1\nline 2") -> JournalEntry:
    return JournalEntry(
        title=title,
        lyrics=lyrics,
        language="English",
        recording_timestamp=datetime(2026, 3, 1, 21, 5),
    )


PLAIN_TEXT = "\N{MUSICAL NOTE} Title\n\nLanguage: English\nDate: Mar 01, 2026 21:05\n\nLyrics:\nline 1\nline 2"


def test_format_entry() -> None:
    assert format_entry(_entry()) == PLAIN_TEXT


def test_format_entry_includes_tags_and_notes() -> None:
    entry = _entry()
    entry.tags = ["rock", "demo"]
    entry.notes = "Capo 3"

    assert format_entry(entry) == (
        "\N{MUSICAL NOTE} Title\n\n"
        "Language: English\nDate: Mar 01, 2026 21:05\n\n"
        "Tags: #rock #demo\n\n"
        "Notes:\nCapo 3\n\n"
        "Lyrics:\nline 1\nline 2"
    )


def test_share_copies_to_clipboard(monkeypatch) -> None:  # noqa: ANN001
    fake = MagicMock()
    monkeypatch.setattr(share, "pyperclip", fake)

    result = ClipboardShareService().share_entry(_entry())

    assert result.success is True
    fake.copy.assert_called_once_with(PLAIN_TEXT)


def test_share_returns_failure_when_dependency_missing(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(share, "pyperclip", None)

    result = ClipboardShareService().share_entry(_entry())

    assert result.success is False


def test_share_returns_failure_on_empty_text() -> None:
    result = ClipboardShareService().share_entry(_entry(title=" ", lyrics=""))
    assert result.success is False
    assert result.reason == "empty text"
