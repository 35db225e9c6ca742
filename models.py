"""Core data models for the app."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import ClassVar, Optional, Union


class RecordingStatus(str, Enum):
    CAPTURING = "capturing"
    FINALIZED = "finalized"


class PipelineStage(str, Enum):
    IDLE = "IDLE"
    RECORDING = "RECORDING"
    RECORDED = "RECORDED"
    TRANSCRIBING = "TRANSCRIBING"
    TRANSCRIBED = "TRANSCRIBED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class Recording:
    id: str
    file_path: Path
    mime_type: str = "audio/ogg"
    duration_seconds: float = 0.0
    status: RecordingStatus = RecordingStatus.CAPTURING
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def file_name(self) -> str:
        return self.file_path.name

    @property
    def is_finalized(self) -> bool:
        return self.status == RecordingStatus.FINALIZED


@dataclass(frozen=True)
class RemoteFileHandle:
    """Reference to an uploaded blob; only valid for the following generate call."""

    uri: str
    mime_type: str


@dataclass(frozen=True)
class TranscriptionResult:
    title: str
    lyrics: str


@dataclass
class JournalEntry:
    title: str
    lyrics: str
    language: str
    recording_timestamp: datetime
    audio_file_reference: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    notes: str = ""
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "lyrics": self.lyrics,
            "language": self.language,
            "recording_timestamp": self.recording_timestamp.isoformat(),
            "audio_file_reference": self.audio_file_reference,
            "tags": list(self.tags),
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "JournalEntry":
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            lyrics=str(data.get("lyrics", "")),
            language=str(data.get("language", "")),
            recording_timestamp=datetime.fromisoformat(data["recording_timestamp"]),
            audio_file_reference=data.get("audio_file_reference"),
            tags=[str(tag) for tag in data.get("tags", [])],
            notes=str(data.get("notes", "")),
        )


@dataclass
class ShareResult:
    success: bool
    reason: str


# ----------------------------------------------------------------------
# Pipeline state: a tagged union, one frozen variant per stage.
# Consumers dispatch on ``state.stage`` or ``isinstance``.
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class Idle:
    stage: ClassVar[PipelineStage] = PipelineStage.IDLE


@dataclass(frozen=True)
class Capturing:
    recording: Recording
    stage: ClassVar[PipelineStage] = PipelineStage.RECORDING


@dataclass(frozen=True)
class Recorded:
    recording: Recording
    stage: ClassVar[PipelineStage] = PipelineStage.RECORDED


@dataclass(frozen=True)
class Transcribing:
    recording: Recording
    language: str
    stage: ClassVar[PipelineStage] = PipelineStage.TRANSCRIBING


@dataclass(frozen=True)
class Transcribed:
    result: TranscriptionResult
    entry: JournalEntry
    stage: ClassVar[PipelineStage] = PipelineStage.TRANSCRIBED


@dataclass(frozen=True)
class Failed:
    code: str
    message: str
    recording: Optional[Recording] = None
    stage: ClassVar[PipelineStage] = PipelineStage.FAILED


PipelineState = Union[Idle, Capturing, Recorded, Transcribing, Transcribed, Failed]
