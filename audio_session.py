"""Microphone capture and playback session.

One recording at a time is written to an Ogg/Vorbis file (44.1 kHz stereo)
under a private recordings directory. Elapsed time is sampled on a fixed
cadence by a background thread and pushed through ``on_tick``; it is a display
value only.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import uuid
from pathlib import Path
from typing import Any, Callable, Optional

from config import RECORDINGS_DIR
from errors import DEVICE_UNAVAILABLE, NO_ACTIVE_RECORDING, PipelineError
from models import Recording, RecordingStatus

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

try:
    import soundfile as sf
except Exception:  # pragma: no cover
    sf = None  # type: ignore

logger = logging.getLogger(__name__)

SAMPLE_RATE = 44100
CHANNELS = 2
FILE_FORMAT = "OGG"
FILE_SUBTYPE = "VORBIS"
FILE_SUFFIX = ".ogg"
MIME_TYPE = "audio/ogg"
TICK_INTERVAL_S = 0.1
JOIN_TIMEOUT_S = 1.0

TickCallback = Callable[[float], None]
PlaybackCallback = Callable[[], None]


def format_elapsed(seconds: float) -> str:
    total = max(0, int(seconds))
    return f"{total // 60:02d}:{total % 60:02d}"


class SoundDeviceAudioSession:
    def __init__(
        self,
        recordings_dir: Path | None = None,
        sample_rate: int = SAMPLE_RATE,
        channels: int = CHANNELS,
        tick_interval_s: float = TICK_INTERVAL_S,
        on_tick: Optional[TickCallback] = None,
        on_playback_finished: Optional[PlaybackCallback] = None,
    ) -> None:
        self.recordings_dir = recordings_dir or RECORDINGS_DIR
        self.sample_rate = sample_rate
        self.channels = channels
        self.tick_interval_s = tick_interval_s
        self._on_tick = on_tick
        self._on_playback_finished = on_playback_finished

        self._lock = threading.Lock()
        self._permission: Optional[bool] = None
        self._stream: Any = None
        self._file: Any = None
        self._recording: Optional[Recording] = None
        self._frames_written = 0
        self._tick_stop = threading.Event()
        self._tick_thread: Optional[threading.Thread] = None
        self._playing = False
        self._playback_lock = threading.Lock()
        self._playback_generation = 0
        self._playback_thread: Optional[threading.Thread] = None

    @property
    def is_capturing(self) -> bool:
        return self._recording is not None

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def elapsed_seconds(self) -> float:
        return self._frames_written / float(self.sample_rate)

    def request_capture_permission(self) -> bool:
        """Check the default input device once; later calls return the cached answer."""
        with self._lock:
            if self._permission is not None:
                return self._permission
            if sd is None:
                self._permission = False
                return False
            try:
                sd.query_devices(kind="input")
                sd.check_input_settings(samplerate=self.sample_rate, channels=self.channels)
                self._permission = True
            except Exception as exc:
                logger.warning("Capture device unavailable: %s", exc)
                self._permission = False
            return self._permission

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    def start(self) -> Recording:
        with self._lock:
            if self._recording is not None:
                raise PipelineError(DEVICE_UNAVAILABLE, "a recording is already in progress")
            if sd is None or sf is None:
                raise PipelineError(DEVICE_UNAVAILABLE, "sounddevice/soundfile is not installed")
        if self._playing:
            self.stop_playback()

        with self._lock:
            self.recordings_dir.mkdir(parents=True, exist_ok=True)
            recording_id = uuid.uuid4().hex
            recording = Recording(
                id=recording_id,
                file_path=self.recordings_dir / f"{recording_id}{FILE_SUFFIX}",
                mime_type=MIME_TYPE,
            )
            self._frames_written = 0
            try:
                self._file = sf.SoundFile(
                    str(recording.file_path),
                    mode="w",
                    samplerate=self.sample_rate,
                    channels=self.channels,
                    format=FILE_FORMAT,
                    subtype=FILE_SUBTYPE,
                )
                self._stream = sd.InputStream(
                    samplerate=self.sample_rate,
                    channels=self.channels,
                    dtype="float32",
                    callback=self._on_audio,
                )
                self._recording = recording
                self._stream.start()
            except Exception as exc:
                logger.error("Could not start recording: %s", exc)
                self._close_devices()
                self._recording = None
                recording.file_path.unlink(missing_ok=True)
                raise PipelineError(DEVICE_UNAVAILABLE, f"could not open input device: {exc}") from exc

            self._start_ticker()
            logger.info("Recording started: %s", recording.file_name)
            return recording

    def stop(self) -> Recording:
        with self._lock:
            recording = self._recording
            if recording is None:
                raise PipelineError(NO_ACTIVE_RECORDING, "no recording in progress")
            self._stop_ticker()
            self._recording = None
            self._close_devices()
            finalized = dataclasses.replace(
                recording,
                duration_seconds=self.elapsed_seconds,
                status=RecordingStatus.FINALIZED,
            )
        logger.info("Recording finalized: %s (%.1fs)", finalized.file_name, finalized.duration_seconds)
        return finalized

    def read_bytes(self, recording: Recording) -> bytes:
        try:
            return recording.file_path.read_bytes()
        except OSError as exc:
            raise PipelineError(NO_ACTIVE_RECORDING, f"recording file unreadable: {exc}") from exc

    def discard(self, recording: Recording) -> None:
        recording.file_path.unlink(missing_ok=True)
        logger.debug("Discarded %s", recording.file_name)

    def _on_audio(self, indata: Any, frames: int, time_info: Any, status: Any) -> None:
        if status:
            logger.debug("Input stream status: %s", status)
        sound_file = self._file
        if self._recording is None or sound_file is None:
            return
        sound_file.write(indata)
        self._frames_written += frames

    def _close_devices(self) -> None:
        stream, self._stream = self._stream, None
        sound_file, self._file = self._file, None
        try:
            if stream is not None:
                stream.stop()
                stream.close()
        finally:
            if sound_file is not None:
                sound_file.close()

    # ------------------------------------------------------------------
    # Elapsed-time sampling
    # ------------------------------------------------------------------

    def _start_ticker(self) -> None:
        if self._on_tick is None:
            return
        # one stop event per ticker thread
        stop = threading.Event()
        self._tick_stop = stop
        self._tick_thread = threading.Thread(target=self._tick_loop, args=(stop,), daemon=True)
        self._tick_thread.start()

    def _stop_ticker(self) -> None:
        self._tick_stop.set()
        thread, self._tick_thread = self._tick_thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=JOIN_TIMEOUT_S)

    def _tick_loop(self, stop: threading.Event) -> None:
        while not stop.wait(self.tick_interval_s):
            if self._on_tick is not None:
                self._on_tick(self.elapsed_seconds)

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    def play(self, recording: Recording) -> None:
        """Play a finalized recording; a running playback is replaced.

        ``on_playback_finished`` fires once when the latest playback ends on
        its own, never for one that was stopped or replaced.
        """
        if self.is_capturing:
            raise PipelineError(DEVICE_UNAVAILABLE, "cannot play back while recording")
        if sd is None or sf is None:
            raise PipelineError(DEVICE_UNAVAILABLE, "sounddevice/soundfile is not installed")
        previous = self._playback_thread
        if previous is not None:
            self.stop_playback()
            if previous is not threading.current_thread():
                previous.join(timeout=JOIN_TIMEOUT_S)
        try:
            data, sample_rate = sf.read(str(recording.file_path), dtype="float32")
            sd.play(data, sample_rate)
        except Exception as exc:
            logger.error("Could not play %s: %s", recording.file_name, exc)
            raise PipelineError(DEVICE_UNAVAILABLE, f"could not play recording: {exc}") from exc
        with self._playback_lock:
            self._playback_generation += 1
            generation = self._playback_generation
            self._playing = True
            thread = threading.Thread(target=self._wait_for_playback, args=(generation,), daemon=True)
            self._playback_thread = thread
        thread.start()

    def stop_playback(self) -> None:
        with self._playback_lock:
            self._playback_generation += 1
            self._playing = False
        if sd is not None:
            sd.stop()

    def _wait_for_playback(self, generation: int) -> None:
        sd.wait()
        with self._playback_lock:
            if generation != self._playback_generation:
                return
            self._playing = False
            self._playback_thread = None
        if self._on_playback_finished is not None:
            self._on_playback_finished()

