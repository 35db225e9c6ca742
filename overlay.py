"""Overlay window showing recording time, progress and the transcript."""

from __future__ import annotations

try:
    from PySide6.QtCore import Qt, QTimer
    from PySide6.QtWidgets import QApplication, QLabel, QVBoxLayout, QWidget
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QTimer = None  # type: ignore
    QApplication = None  # type: ignore
    QLabel = object  # type: ignore
    QWidget = object  # type: ignore
    QVBoxLayout = object  # type: ignore

_BASE_STYLE = "font-size: 16px; padding: 16px; background: rgba(0,0,0,190); border-radius: 12px;"
TITLE_STYLE = "color: white; font-weight: bold;" + _BASE_STYLE
BODY_STYLE = "color: #DDDDDD;" + _BASE_STYLE
ERROR_STYLE = "color: #FF6B6B;" + _BASE_STYLE

LYRICS_PREVIEW_LINES = 12


class OverlayWindow(QWidget):
    def __init__(self) -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowFlags(Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool)
        self.setAttribute(Qt.WA_TranslucentBackground, True)
        self.setFixedWidth(520)

        self._title = QLabel("")
        self._title.setStyleSheet(TITLE_STYLE)
        self._body = QLabel("")
        self._body.setWordWrap(True)
        self._body.setStyleSheet(BODY_STYLE)

        layout = QVBoxLayout()
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(4)
        layout.addWidget(self._title)
        layout.addWidget(self._body)
        self.setLayout(layout)

        self._hide_timer: QTimer | None = None

    def show_status(self, title: str, body: str = "") -> None:
        self._cancel_hide_timer()
        self._title.setText(title)
        self._body.setStyleSheet(BODY_STYLE)
        self._body.setText(body)
        self._body.setVisible(bool(body))
        self._place_top_right()
        self.show()

    def show_transcript(self, title: str, lyrics: str) -> None:
        lines = lyrics.splitlines()
        preview = "\n".join(lines[:LYRICS_PREVIEW_LINES])
        if len(lines) > LYRICS_PREVIEW_LINES:
            preview += "\n…"
        self.show_status(title, preview)

    def show_error(self, text: str, hide_after_ms: int = 4000) -> None:
        self.show_status("Transcription problem")
        self._body.setStyleSheet(ERROR_STYLE)
        self._body.setText(text)
        self._body.setVisible(True)
        self.hide_with_delay(hide_after_ms)

    def hide_with_delay(self, delay_ms: int = 400) -> None:
        self._cancel_hide_timer()
        if QTimer is not None:
            self._hide_timer = QTimer()
            self._hide_timer.setSingleShot(True)
            self._hide_timer.timeout.connect(self.hide)
            self._hide_timer.start(delay_ms)

    def _place_top_right(self) -> None:
        if QApplication is None:
            return
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        geom = screen.availableGeometry()
        self.adjustSize()
        self.move(geom.x() + geom.width() - self.width() - 24, geom.y() + 40)

    def _cancel_hide_timer(self) -> None:
        if self._hide_timer is not None:
            self._hide_timer.stop()
            self._hide_timer = None
