"""Shared error codes, user-facing messages and the pipeline exception."""

from __future__ import annotations

DEVICE_UNAVAILABLE = "DEVICE_UNAVAILABLE"
CREDENTIAL_MISSING = "CREDENTIAL_MISSING"
NETWORK_FAILURE = "NETWORK_FAILURE"
EMPTY_RESPONSE = "EMPTY_RESPONSE"
MALFORMED_RESPONSE = "MALFORMED_RESPONSE"
NO_ACTIVE_RECORDING = "NO_ACTIVE_RECORDING"
INVALID_TRANSITION = "INVALID_TRANSITION"
STORAGE_FAILED = "STORAGE_FAILED"

ERROR_MESSAGES = {
    DEVICE_UNAVAILABLE: "Microphone or speaker could not be opened.",
    CREDENTIAL_MISSING: "API key not configured. Please add your Gemini API key.",
    NETWORK_FAILURE: "Network request failed, please retry.",
    EMPTY_RESPONSE: "The model returned no transcription.",
    MALFORMED_RESPONSE: "The model response could not be read as a transcript.",
    NO_ACTIVE_RECORDING: "No recording found.",
    INVALID_TRANSITION: "That action is not available right now.",
    STORAGE_FAILED: "The transcript could not be saved.",
}


class PipelineError(Exception):
    """Raised by pipeline components; ``code`` is one of the constants above."""

    def __init__(self, code: str, message: str = "") -> None:
        self.code = code
        self.message = message or ERROR_MESSAGES.get(code, code)
        super().__init__(f"{code}: {self.message}")
