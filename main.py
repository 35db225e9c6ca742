"""Application entrypoint."""

from __future__ import annotations

import logging
import os
import sys
import threading

from audio_session import SoundDeviceAudioSession, format_elapsed
from config import SUPPORTED_LANGUAGES, JsonConfigStore, resolve_api_key
from errors import DEVICE_UNAVAILABLE, ERROR_MESSAGES
from gemini_client import GeminiTranscriptionClient
from hotkey import ToggleHotkey
from interfaces import ConfigStore, JournalStore, ShareService
from journal_store import JsonJournalStore
from journal_window import JournalWindow
from models import Capturing, Failed, Idle, PipelineState, Recorded, Transcribed, Transcribing
from overlay import OverlayWindow
from pipeline_controller import PipelineController
from share import ClipboardShareService

try:
    from PySide6.QtCore import QObject, QSize, Signal
    from PySide6.QtGui import QAction, QActionGroup, QBrush, QColor, QIcon, QPainter, QPixmap
    from PySide6.QtWidgets import QApplication, QInputDialog, QMenu, QMessageBox, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)


def _create_icon(color: str = "#888888", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


ICON_IDLE = "#888888"      # grey
ICON_RECORDING = "#FF4444"  # red
ICON_BUSY = "#4488FF"      # blue
ICON_DONE = "#44BB66"      # green
ICON_ERROR = "#FF8800"     # orange


class UIBridge(QObject):
    state_signal = Signal(object)
    error_signal = Signal(str, str)  # code, message
    tick_signal = Signal(float)
    playback_signal = Signal()


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.config_store: ConfigStore = JsonConfigStore()
        self.overlay = OverlayWindow()
        self.ui = UIBridge()
        self.ui.state_signal.connect(self._on_state_change_ui)
        self.ui.error_signal.connect(self._on_error_ui)
        self.ui.tick_signal.connect(self._on_tick_ui)

        self.journal: JournalStore = JsonJournalStore()
        self.share_service: ShareService = ClipboardShareService()
        self.journal_window = JournalWindow(self.journal, self.share_service)
        self.audio = SoundDeviceAudioSession(
            on_tick=self.ui.tick_signal.emit,
            on_playback_finished=self.ui.playback_signal.emit,
        )
        self.controller = PipelineController(
            audio_session=self.audio,
            client=self._build_client(),
            journal_store=self.journal,
            language=self.config_store.get_language(),
            on_state_change=lambda _old, new: self.ui.state_signal.emit(new),
            on_error=self.ui.error_signal.emit,
        )
        self.hotkey = ToggleHotkey(hotkey_name=self.config_store.get_hotkey())

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_IDLE))
        self.tray.setToolTip("LyricScribe — Ready")
        self._setup_menu()
        self.tray.show()

    def _build_client(self) -> GeminiTranscriptionClient:
        return GeminiTranscriptionClient(
            api_key=resolve_api_key(self.config_store),
            model=self.config_store.get_model(),
        )

    def _setup_menu(self) -> None:
        menu = QMenu()

        self.record_action = QAction("Start Recording", menu)
        self.record_action.triggered.connect(self._toggle_recording)
        menu.addAction(self.record_action)

        self.transcribe_action = QAction("Transcribe", menu)
        self.transcribe_action.triggered.connect(self._transcribe)
        menu.addAction(self.transcribe_action)

        self.play_action = QAction("Play Recording", menu)
        self.play_action.triggered.connect(self._toggle_playback)
        self.ui.playback_signal.connect(lambda: self.play_action.setText("Play Recording"))
        menu.addAction(self.play_action)

        self.copy_action = QAction("Copy Lyrics", menu)
        self.copy_action.triggered.connect(self._copy_lyrics)
        menu.addAction(self.copy_action)

        reset_action = QAction("Discard / New Recording", menu)
        reset_action.triggered.connect(self._reset)
        menu.addAction(reset_action)

        journal_action = QAction("Journal…", menu)
        journal_action.triggered.connect(self.journal_window.present)
        menu.addAction(journal_action)

        menu.addSeparator()
        language_menu = menu.addMenu("Language")
        group = QActionGroup(language_menu)
        for language in SUPPORTED_LANGUAGES:
            action = QAction(language, language_menu, checkable=True)
            action.setChecked(language == self.controller.language)
            action.triggered.connect(lambda _checked=False, lang=language: self._set_language(lang))
            group.addAction(action)
            language_menu.addAction(action)

        api_action = QAction("Set API Key", menu)
        api_action.triggered.connect(self._set_api_key)
        menu.addAction(api_action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.tray.setContextMenu(menu)
        self._refresh_actions(Idle())

    # ------------------------------------------------------------------
    # Menu handlers
    # ------------------------------------------------------------------

    def _toggle_recording(self) -> None:
        if isinstance(self.controller.state, Capturing):
            self._on_hotkey_deactivate()
        else:
            self._on_hotkey_activate()

    def _transcribe(self) -> None:
        # transcribe() blocks on the network; keep it off the Qt main thread
        threading.Thread(target=self.controller.transcribe, daemon=True).start()

    def _toggle_playback(self) -> None:
        if self.audio.is_playing:
            self.controller.stop_playback()
            self.play_action.setText("Play Recording")
        elif self.controller.play_recording():
            self.play_action.setText("Stop Playback")

    def _copy_lyrics(self) -> None:
        state = self.controller.state
        if not isinstance(state, Transcribed):
            return
        result = self.share_service.share_entry(state.entry)
        if result.success:
            self.tray.showMessage("LyricScribe", "Lyrics copied to clipboard")
        else:
            self.overlay.show_error(result.reason)

    def _reset(self) -> None:
        self.controller.reset()
        self.hotkey.sync(False)

    def _set_language(self, language: str) -> None:
        self.controller.language = language
        self.config_store.set_language(language)

    def _set_api_key(self) -> None:
        value, ok = QInputDialog.getText(None, "API Key", "Gemini API Key")
        if not ok:
            return
        self.config_store.set_api_key(value)
        self.controller.replace_client(self._build_client())
        QMessageBox.information(None, "Saved", "API Key saved and applied.")

    # ------------------------------------------------------------------
    # Hotkey handlers
    # ------------------------------------------------------------------

    def _on_hotkey_activate(self) -> None:
        state = self.controller.state
        if not isinstance(state, Idle):
            self.controller.reset()
        if not self.controller.request_permissions():
            self.ui.error_signal.emit(DEVICE_UNAVAILABLE, "Microphone access is not available.")
            self.hotkey.sync(False)
            return
        self.controller.start()
        self.hotkey.sync(isinstance(self.controller.state, Capturing))

    def _on_hotkey_deactivate(self) -> None:
        self.hotkey.sync(False)
        if self.controller.stop():
            self._transcribe()

    # ------------------------------------------------------------------
    # UI thread handlers (safe for Qt)
    # ------------------------------------------------------------------

    def _on_tick_ui(self, seconds: float) -> None:
        if isinstance(self.controller.state, Capturing):
            self.overlay.show_status(f"Recording {format_elapsed(seconds)}")

    def _on_error_ui(self, code: str, message: str) -> None:
        text = ERROR_MESSAGES.get(code, message)
        if message and message != text:
            text = f"{text}\n{message}"
        self.overlay.show_error(text)

    def _on_state_change_ui(self, state: PipelineState) -> None:
        self._refresh_actions(state)
        if isinstance(state, Capturing):
            self.tray.setIcon(_create_icon(ICON_RECORDING))
            self.tray.setToolTip("LyricScribe — Recording...")
            self.overlay.show_status("Recording 00:00")
        elif isinstance(state, Recorded):
            self.tray.setIcon(_create_icon(ICON_IDLE))
            self.overlay.show_status("Recorded", format_elapsed(state.recording.duration_seconds))
        elif isinstance(state, Transcribing):
            self.tray.setIcon(_create_icon(ICON_BUSY))
            self.tray.setToolTip("LyricScribe — Transcribing...")
            self.overlay.show_status("Transcribing...", f"Language: {state.language}")
        elif isinstance(state, Transcribed):
            self.tray.setIcon(_create_icon(ICON_DONE))
            self.tray.setToolTip(f"LyricScribe — {state.result.title}")
            self.overlay.show_transcript(state.result.title, state.result.lyrics)
            if self.journal_window.isVisible():
                self.journal_window.refresh()
        elif isinstance(state, Failed):
            self.tray.setIcon(_create_icon(ICON_ERROR))
            self.tray.setToolTip("LyricScribe — Failed, choose Transcribe to retry")
        elif isinstance(state, Idle):
            self.tray.setIcon(_create_icon(ICON_IDLE))
            self.tray.setToolTip("LyricScribe — Ready")
            self.overlay.hide_with_delay(400)

    def _refresh_actions(self, state: PipelineState) -> None:
        self.record_action.setText("Stop Recording" if isinstance(state, Capturing) else "Start Recording")
        self.transcribe_action.setText("Retry Transcription" if isinstance(state, Failed) else "Transcribe")
        self.transcribe_action.setEnabled(isinstance(state, (Recorded, Failed)))
        self.play_action.setEnabled(isinstance(state, (Recorded, Transcribed, Failed)))
        self.copy_action.setEnabled(isinstance(state, Transcribed))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        try:
            self.hotkey.start(
                on_activate=self._on_hotkey_activate,
                on_deactivate=self._on_hotkey_deactivate,
            )
        except Exception as exc:
            logger.warning("Hotkey disabled: %s", exc)
            self.overlay.show_error(f"Hotkey disabled: {exc}")
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.stop()
        self.journal_window.close()
        if isinstance(self.controller.state, Capturing):
            self.controller.reset()
        self.controller.stop_playback()
        self.app.quit()


def main() -> int:
    logging.basicConfig(
        level=os.getenv("LYRICSCRIBE_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
