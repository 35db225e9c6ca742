"""Journal browser: search past transcripts, edit tags and notes, copy or delete."""

from __future__ import annotations

import logging
from typing import Optional

from errors import PipelineError
from interfaces import JournalStore, ShareService
from journal_store import parse_tags
from models import JournalEntry

try:
    from PySide6.QtWidgets import (
        QHBoxLayout,
        QLabel,
        QLineEdit,
        QListWidget,
        QMessageBox,
        QPlainTextEdit,
        QPushButton,
        QVBoxLayout,
        QWidget,
    )
except Exception:  # pragma: no cover
    QWidget = object  # type: ignore
    QLabel = None  # type: ignore

logger = logging.getLogger(__name__)

HEADER_STYLE = "font-size: 16px; font-weight: bold;"
STATUS_STYLE = "color: #888888;"
ERROR_STYLE = "color: #FF6B6B;"


class JournalWindow(QWidget):
    def __init__(self, store: JournalStore, share_service: ShareService) -> None:
        if QLabel is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowTitle("LyricScribe Journal")
        self.resize(760, 520)
        self._store = store
        self._share_service = share_service
        self._entries: list[JournalEntry] = []

        self._search = QLineEdit()
        self._search.setPlaceholderText("Search title, lyrics, tags or notes")
        self._search.textChanged.connect(lambda _text: self.refresh())
        self._list = QListWidget()
        self._list.currentRowChanged.connect(self._show_entry)

        self._header = QLabel("")
        self._header.setStyleSheet(HEADER_STYLE)
        self._details = QLabel("")
        self._details.setStyleSheet(STATUS_STYLE)
        self._lyrics = QPlainTextEdit()
        self._lyrics.setReadOnly(True)
        self._tags = QLineEdit()
        self._tags.setPlaceholderText("Tags, comma separated")
        self._notes = QPlainTextEdit()
        self._notes.setPlaceholderText("Notes")
        self._status = QLabel("")

        self._save_button = QPushButton("Save")
        self._save_button.clicked.connect(self._save_edits)
        self._copy_button = QPushButton("Copy")
        self._copy_button.clicked.connect(self._copy_entry)
        self._delete_button = QPushButton("Delete")
        self._delete_button.clicked.connect(self._delete_entry)

        left = QVBoxLayout()
        left.addWidget(self._search)
        left.addWidget(self._list)

        buttons = QHBoxLayout()
        buttons.addWidget(self._save_button)
        buttons.addWidget(self._copy_button)
        buttons.addStretch(1)
        buttons.addWidget(self._delete_button)

        right = QVBoxLayout()
        right.addWidget(self._header)
        right.addWidget(self._details)
        right.addWidget(self._lyrics, 3)
        right.addWidget(QLabel("Tags"))
        right.addWidget(self._tags)
        right.addWidget(QLabel("Notes"))
        right.addWidget(self._notes, 1)
        right.addLayout(buttons)
        right.addWidget(self._status)

        layout = QHBoxLayout()
        layout.addLayout(left, 2)
        layout.addLayout(right, 3)
        self.setLayout(layout)

    def present(self) -> None:
        self.refresh()
        self.show()
        self.raise_()
        self.activateWindow()

    def refresh(self, select_id: Optional[str] = None) -> None:
        """Reload the list for the current search text, newest first."""
        if select_id is None:
            current = self._current_entry()
            select_id = current.id if current else None
        try:
            self._entries = self._store.search(self._search.text())
        except PipelineError as exc:
            logger.error("Could not load journal: %s", exc)
            self._entries = []
            self._set_status(exc.message, error=True)

        self._list.blockSignals(True)
        self._list.clear()
        for entry in self._entries:
            self._list.addItem(f"{entry.title}  ·  {entry.recording_timestamp:%Y-%m-%d %H:%M}")
        self._list.blockSignals(False)

        row = next((i for i, e in enumerate(self._entries) if e.id == select_id), 0)
        self._list.setCurrentRow(row if self._entries else -1)
        self._show_entry(self._list.currentRow())

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _current_entry(self) -> Optional[JournalEntry]:
        row = self._list.currentRow()
        if 0 <= row < len(self._entries):
            return self._entries[row]
        return None

    def _show_entry(self, row: int) -> None:
        entry = self._entries[row] if 0 <= row < len(self._entries) else None
        for widget in (self._save_button, self._copy_button, self._delete_button, self._tags, self._notes):
            widget.setEnabled(entry is not None)
        if entry is None:
            self._header.setText("No transcripts yet" if not self._search.text() else "No matches")
            self._details.setText("")
            self._lyrics.setPlainText("")
            self._tags.setText("")
            self._notes.setPlainText("")
            return
        self._header.setText(entry.title)
        self._details.setText(f"{entry.language}  ·  {entry.recording_timestamp:%b %d, %Y %H:%M}")
        self._lyrics.setPlainText(entry.lyrics)
        self._tags.setText(", ".join(entry.tags))
        self._notes.setPlainText(entry.notes)

    def _save_edits(self) -> None:
        entry = self._current_entry()
        if entry is None:
            return
        try:
            updated = self._store.update(
                entry.id,
                tags=parse_tags(self._tags.text()),
                notes=self._notes.toPlainText(),
            )
        except PipelineError as exc:
            self._set_status(exc.message, error=True)
            return
        if updated is None:
            self._set_status("This entry no longer exists.", error=True)
        else:
            self._set_status("Saved.")
        self.refresh(select_id=entry.id)

    def _copy_entry(self) -> None:
        entry = self._current_entry()
        if entry is None:
            return
        result = self._share_service.share_entry(entry)
        if result.success:
            self._set_status("Copied to clipboard.")
        else:
            self._set_status(f"Copy failed: {result.reason}", error=True)

    def _delete_entry(self) -> None:
        entry = self._current_entry()
        if entry is None:
            return
        answer = QMessageBox.question(self, "Delete", f"Delete “{entry.title}” and its audio?")
        if answer != QMessageBox.Yes:
            return
        try:
            self._store.delete(entry.id)
        except PipelineError as exc:
            self._set_status(exc.message, error=True)
            return
        self._set_status("Deleted.")
        self.refresh()

    def _set_status(self, text: str, error: bool = False) -> None:
        self._status.setStyleSheet(ERROR_STYLE if error else STATUS_STYLE)
        self._status.setText(text)
