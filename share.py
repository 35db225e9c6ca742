"""Share a transcript by placing it on the clipboard."""

from __future__ import annotations

import logging

from models import JournalEntry, ShareResult

try:
    import pyperclip
except Exception:  # pragma: no cover
    pyperclip = None  # type: ignore

logger = logging.getLogger(__name__)


def format_entry(entry: JournalEntry) -> str:
    """Render an entry as the plain text placed on the clipboard."""
    sections = [
        f"\N{MUSICAL NOTE} {entry.title}",
        f"Language: {entry.language}\nDate: {entry.recording_timestamp:%b %d, %Y %H:%M}",
    ]
    if entry.tags:
        sections.append("Tags: " + " ".join(f"#{tag}" for tag in entry.tags))
    if entry.notes.strip():
        sections.append(f"Notes:\n{entry.notes}")
    sections.append(f"Lyrics:\n{entry.lyrics}")
    return "\n\n".join(sections)


class ClipboardShareService:
    def share_entry(self, entry: JournalEntry) -> ShareResult:
        if not (entry.title.strip() or entry.lyrics.strip()):
            return ShareResult(success=False, reason="empty text")
        if pyperclip is None:
            return ShareResult(success=False, reason="clipboard dependency missing")
        text = format_entry(entry)
        try:
            pyperclip.copy(text)
        except pyperclip.PyperclipException as exc:
            logger.warning("Clipboard copy failed: %s", exc)
            return ShareResult(success=False, reason=str(exc))
        return ShareResult(success=True, reason="ok")
