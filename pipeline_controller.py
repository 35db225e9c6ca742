"""State-machine based recording-to-transcript orchestration."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from config import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES
from errors import INVALID_TRANSITION, NO_ACTIVE_RECORDING, STORAGE_FAILED, PipelineError
from interfaces import AudioSession, JournalStore, TranscriptionClient
from models import (
    Capturing,
    Failed,
    Idle,
    JournalEntry,
    PipelineState,
    Recorded,
    Recording,
    Transcribed,
    Transcribing,
    TranscriptionResult,
)
from response_parser import parse_transcription

logger = logging.getLogger(__name__)

StateCallback = Callable[[PipelineState, PipelineState], None]
ErrorCallback = Callable[[str, str], None]


class PipelineController:
    def __init__(
        self,
        audio_session: AudioSession,
        client: TranscriptionClient,
        journal_store: Optional[JournalStore] = None,
        language: str = DEFAULT_LANGUAGE,
        on_state_change: Optional[StateCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._audio = audio_session
        self._client = client
        self._journal_store = journal_store
        self._on_state_change = on_state_change
        self._on_error = on_error
        self.language = language

        self._lock = threading.RLock()
        self._state: PipelineState = Idle()
        self._recording: Optional[Recording] = None
        self._session_id = 0

    @property
    def state(self) -> PipelineState:
        with self._lock:
            return self._state

    @property
    def recording(self) -> Optional[Recording]:
        with self._lock:
            return self._recording

    @property
    def language(self) -> str:
        return self._language

    @language.setter
    def language(self, value: str) -> None:
        if value not in SUPPORTED_LANGUAGES:
            raise ValueError(f"unsupported language: {value}")
        self._language = value

    def replace_client(self, client: TranscriptionClient) -> None:
        with self._lock:
            self._client = client

    def request_permissions(self) -> bool:
        return self._audio.request_capture_permission()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self) -> bool:
        with self._lock:
            if not isinstance(self._state, Idle):
                return self._reject("start")
            self._session_id += 1
            try:
                recording = self._audio.start()
            except PipelineError as exc:
                self._fail(exc.code, exc.message)
                return False
            self._recording = recording
            self._transition(Capturing(recording))
            return True

    def stop(self) -> bool:
        with self._lock:
            if not isinstance(self._state, Capturing):
                return self._reject("stop")
            try:
                recording = self._audio.stop()
            except PipelineError as exc:
                self._fail(exc.code, exc.message)
                return False
            self._recording = recording
            self._transition(Recorded(recording))
            return True

    def transcribe(self, language: Optional[str] = None) -> bool:
        """Run upload, generate and parse for the current recording.

        Blocks until the remote calls finish; the network I/O runs outside the
        lock so state stays observable. A call while another is in flight is
        rejected. Returns True when the result was applied.
        """
        with self._lock:
            if isinstance(self._state, Transcribing):
                return self._reject("transcribe", "a transcription is already in flight")
            if not isinstance(self._state, (Recorded, Failed)):
                return self._reject("transcribe")
            recording = self._recording
            if recording is None or not recording.is_finalized:
                self._fail(NO_ACTIVE_RECORDING, "No recording found")
                return False
            target_language = language or self.language
            session_id = self._session_id
            client = self._client
            self._transition(Transcribing(recording, target_language))

        try:
            data = self._audio.read_bytes(recording)
            raw_text = client.transcribe(data, recording.mime_type, target_language)
            result = parse_transcription(raw_text)
        except PipelineError as exc:
            with self._lock:
                if self._is_stale(session_id):
                    return False
                self._fail(exc.code, exc.message)
            return False

        with self._lock:
            if self._is_stale(session_id):
                return False
            return self._complete(recording, target_language, result)

    def retry(self) -> bool:
        with self._lock:
            if not isinstance(self._state, Failed):
                return self._reject("retry")
        return self.transcribe()

    def reset(self) -> None:
        """Return to Idle and discard the current audio file.

        A saved journal entry keeps its own copy of the audio, so the discard
        applies in every state.
        """
        with self._lock:
            self._session_id += 1
            state = self._state
            if isinstance(state, Capturing):
                try:
                    self._recording = self._audio.stop()
                except PipelineError as exc:
                    logger.warning("Stopping capture during reset failed: %s", exc)
            self._safe_stop_playback()
            if self._recording is not None:
                self._audio.discard(self._recording)
            self._recording = None
            self._transition(Idle())

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def play_recording(self) -> bool:
        with self._lock:
            recording = self._recording
            if recording is None or not recording.is_finalized:
                self._emit_error(NO_ACTIVE_RECORDING, "No recording found")
                return False
        try:
            self._audio.play(recording)
        except PipelineError as exc:
            self._emit_error(exc.code, exc.message)
            return False
        return True

    def stop_playback(self) -> None:
        self._safe_stop_playback()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _complete(self, recording: Recording, language: str, result: TranscriptionResult) -> bool:
        entry = JournalEntry(
            title=result.title,
            lyrics=result.lyrics,
            language=language,
            recording_timestamp=recording.created_at,
            audio_file_reference=recording.file_name,
        )
        if self._journal_store is not None:
            try:
                self._journal_store.save(entry, recording.file_path)
            except Exception as exc:
                logger.exception("Saving transcript failed")
                self._fail(STORAGE_FAILED, str(exc))
                return False
        logger.info("Transcribed %r (%d chars)", result.title, len(result.lyrics))
        self._transition(Transcribed(result, entry))
        return True

    def _is_stale(self, session_id: int) -> bool:
        if session_id != self._session_id:
            logger.info("Dropping transcription result from a reset session")
            return True
        return False

    def _reject(self, operation: str, reason: str = "") -> bool:
        message = reason or f"cannot {operation} while {self._state.stage.value}"
        logger.warning("Rejected %s: %s", operation, message)
        self._emit_error(INVALID_TRANSITION, message)
        return False

    def _fail(self, code: str, message: str) -> None:
        logger.error("Pipeline failed with %s: %s", code, message)
        recording = self._recording if self._recording and self._recording.is_finalized else None
        self._transition(Failed(code, message, recording))
        self._emit_error(code, message)

    def _emit_error(self, code: str, message: str) -> None:
        if self._on_error:
            self._on_error(code, message)

    def _safe_stop_playback(self) -> None:
        try:
            self._audio.stop_playback()
        except PipelineError as exc:  # pragma: no cover - defensive
            logger.warning("Stopping playback failed: %s", exc)

    def _transition(self, to_state: PipelineState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        logger.debug("State %s -> %s", from_state.stage.value, to_state.stage.value)
        if self._on_state_change:
            self._on_state_change(from_state, to_state)

