"""Two-phase transcription client for the Gemini REST API.

Audio is first uploaded as a multipart body to ``/files``; the returned file
URI is then referenced from a ``generateContent`` request that asks the model
for a JSON object with ``title`` and ``lyrics``. The raw candidate text is
returned unparsed. No retries happen here.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Optional

import requests

from config import API_KEY_ENV, DEFAULT_MODEL
from errors import CREDENTIAL_MISSING, EMPTY_RESPONSE, MALFORMED_RESPONSE, NETWORK_FAILURE, PipelineError
from models import RemoteFileHandle

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TIMEOUT_S = 60.0
UNKNOWN_TITLE = "Unknown Song"

GENERATION_CONFIG = {
    "temperature": 0.4,
    "topK": 32,
    "topP": 1,
    "maxOutputTokens": 8192,
}

_FILE_EXTENSIONS = {
    "audio/ogg": ".ogg",
    "audio/mpeg": ".mp3",
    "audio/m4a": ".m4a",
    "audio/mp4": ".m4a",
    "audio/wav": ".wav",
    "audio/flac": ".flac",
}


def build_instruction(language: str) -> str:
    return (
        f"Please transcribe the lyrics of this song in {language}.\n"
        "Provide the transcription in the following JSON format:\n"
        "{\n"
        '    "title": "Song Title",\n'
        '    "lyrics": "Complete lyrics with line breaks"\n'
        "}\n\n"
        f'If you cannot detect the song title, use "{UNKNOWN_TITLE}".\n'
        "Maintain the structure and formatting of the lyrics as they appear in the song."
    )


class GeminiTranscriptionClient:
    def __init__(
        self,
        api_key: str = "",
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        request_timeout_s: float = DEFAULT_TIMEOUT_S,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._request_timeout_s = request_timeout_s
        self._session = session or requests.Session()

    def transcribe(self, data: bytes, mime_type: str, language: str) -> str:
        handle = self.upload(data, mime_type)
        return self.generate(handle, language)

    def upload(self, data: bytes, mime_type: str) -> RemoteFileHandle:
        api_key = self._require_api_key()
        file_name = "audio" + _FILE_EXTENSIONS.get(mime_type, "")
        logger.info("Uploading %d bytes of %s", len(data), mime_type)
        response = self._post(
            f"{self._base_url}/files",
            api_key,
            files={"file": (file_name, data, mime_type)},
        )
        payload = self._decode(response)
        file_info = payload.get("file")
        uri = file_info.get("uri") if isinstance(file_info, dict) else None
        if not isinstance(uri, str) or not uri:
            raise PipelineError(MALFORMED_RESPONSE, "upload response has no file uri")
        logger.debug("Upload stored as %s", uri)
        return RemoteFileHandle(uri=uri, mime_type=mime_type)

    def generate(self, handle: RemoteFileHandle, language: str) -> str:
        api_key = self._require_api_key()
        body = {
            "contents": [
                {
                    "parts": [
                        {"text": build_instruction(language)},
                        {"fileData": {"mimeType": handle.mime_type, "fileUri": handle.uri}},
                    ]
                }
            ],
            "generationConfig": dict(GENERATION_CONFIG),
        }
        logger.info("Requesting %s transcription from %s", language, self._model)
        response = self._post(
            f"{self._base_url}/models/{self._model}:generateContent",
            api_key,
            json=body,
        )
        text = self._extract_text(self._decode(response))
        if text is None:
            raise PipelineError(EMPTY_RESPONSE, "No response from API")
        return text

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _require_api_key(self) -> str:
        api_key = os.getenv(API_KEY_ENV, "").strip() or self._api_key.strip()
        if not api_key:
            raise PipelineError(CREDENTIAL_MISSING, "No API key configured")
        return api_key

    def _post(self, url: str, api_key: str, **kwargs: Any) -> requests.Response:
        try:
            response = self._session.post(
                url,
                params={"key": api_key},
                timeout=self._request_timeout_s,
                **kwargs,
            )
        except requests.Timeout as exc:
            logger.error("Request to %s timed out", url)
            raise PipelineError(NETWORK_FAILURE, "request timed out") from exc
        except requests.RequestException as exc:
            # Exception text may embed the keyed URL, so only the type is surfaced.
            logger.error("Request to %s failed: %s", url, type(exc).__name__)
            raise PipelineError(NETWORK_FAILURE, f"request failed ({type(exc).__name__})") from exc

        if not 200 <= response.status_code < 300:
            logger.error("Request to %s returned HTTP %s", url, response.status_code)
            raise PipelineError(NETWORK_FAILURE, f"HTTP {response.status_code}")
        return response

    def _decode(self, response: requests.Response) -> dict:
        try:
            payload = response.json()
        except ValueError as exc:
            raise PipelineError(MALFORMED_RESPONSE, "response body is not JSON") from exc
        if not isinstance(payload, dict):
            raise PipelineError(MALFORMED_RESPONSE, "response body is not a JSON object")
        return payload

    def _extract_text(self, payload: dict) -> str | None:
        """Return the first candidate's first text part, if any."""
        candidates = payload.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            return None
        first = candidates[0]
        if not isinstance(first, dict):
            return None
        content = first.get("content")
        if not isinstance(content, dict):
            return None
        parts = content.get("parts")
        if not isinstance(parts, list):
            return None
        for part in parts:
            if isinstance(part, dict) and isinstance(part.get("text"), str):
                return part["text"]
        return None
