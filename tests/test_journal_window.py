from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtWidgets = pytest.importorskip("PySide6.QtWidgets")

import journal_window  # noqa: E402
from journal_store import JsonJournalStore  # noqa: E402
from journal_window import JournalWindow  # noqa: E402
from models import JournalEntry, ShareResult  # noqa: E402


@pytest.fixture(scope="module")
def qapp():  # noqa: ANN201
    return QtWidgets.QApplication.instance() or QtWidgets.QApplication([])


def _window(tmp_path: Path) -> tuple[JournalWindow, JsonJournalStore, MagicMock, list[JournalEntry]]:
    store = JsonJournalStore(path=tmp_path / "journal.json", audio_dir=tmp_path / "journal_audio")
    older = JournalEntry(title="Older", lyrics="la la", language="English", recording_timestamp=datetime(2026, 1, 1))
    newer = JournalEntry(title="Newer", lyrics="na na", language="English", recording_timestamp=datetime(2026, 2, 1))
    store.save(older)
    store.save(newer)
    share_service = MagicMock()
    share_service.share_entry.return_value = ShareResult(success=True, reason="ok")
    window = JournalWindow(store, share_service)
    window.refresh()
    return window, store, share_service, [newer, older]


def test_lists_newest_first_and_filters(qapp, tmp_path: Path) -> None:  # noqa: ANN001
    window, _store, _share, _entries = _window(tmp_path)

    assert window._list.count() == 2
    assert window._list.item(0).text().startswith("Newer")

    window._search.setText("la la")

    assert window._list.count() == 1
    assert window._list.item(0).text().startswith("Older")


def test_save_edits_writes_tags_and_notes(qapp, tmp_path: Path) -> None:  # noqa: ANN001
    window, store, _share, (newer, _older) = _window(tmp_path)

    window._tags.setText("rock, demo, rock")
    window._notes.setPlainText("Capo 3")
    window._save_edits()

    saved = store.get(newer.id)
    assert saved.tags == ["rock", "demo"]
    assert saved.notes == "Capo 3"
    assert window._current_entry().id == newer.id


def test_copy_uses_share_service(qapp, tmp_path: Path) -> None:  # noqa: ANN001
    window, _store, share_service, (newer, _older) = _window(tmp_path)

    window._copy_entry()

    assert share_service.share_entry.call_args.args[0].id == newer.id
    assert window._status.text() == "Copied to clipboard."


def test_delete_after_confirmation(qapp, tmp_path: Path, monkeypatch) -> None:  # noqa: ANN001
    window, store, _share, (newer, older) = _window(tmp_path)
    dialog = MagicMock()
    dialog.question.return_value = dialog.Yes
    monkeypatch.setattr(journal_window, "QMessageBox", dialog)

    window._delete_entry()

    assert [e.id for e in store.list_entries()] == [older.id]
    assert window._list.count() == 1
