"""Recover a structured transcript from freeform model output.

Models are asked for a bare JSON object but often wrap it in prose or in a
markdown fence. Candidate JSON is located in order of preference:

1. the body of a fenced block tagged ``json``;
2. the span from the first ``{`` to the last ``}``;
3. the whole text.
"""

from __future__ import annotations

import json
import logging

from errors import MALFORMED_RESPONSE, PipelineError
from models import TranscriptionResult

logger = logging.getLogger(__name__)

JSON_FENCE = "```json"
FENCE = "```"


def extract_json_candidate(text: str) -> str:
    fence_start = text.find(JSON_FENCE)
    if fence_start != -1:
        body_start = fence_start + len(JSON_FENCE)
        body_end = text.find(FENCE, body_start)
        if body_end != -1:
            return text[body_start:body_end]

    first_brace = text.find("{")
    last_brace = text.rfind("}")
    if first_brace != -1 and last_brace > first_brace:
        return text[first_brace : last_brace + 1]

    return text


def parse_transcription(text: str) -> TranscriptionResult:
    """Parse raw model text into a :class:`TranscriptionResult`.

    Raises:
        PipelineError: with ``MALFORMED_RESPONSE`` when no object carrying
            string ``title`` and ``lyrics`` fields can be decoded.
    """
    candidate = extract_json_candidate(text).strip()
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.warning("Model response is not JSON: %s", exc)
        raise PipelineError(MALFORMED_RESPONSE, f"response is not valid JSON: {exc.msg}") from exc

    if not isinstance(payload, dict):
        raise PipelineError(MALFORMED_RESPONSE, "response JSON is not an object")

    title = payload.get("title")
    lyrics = payload.get("lyrics")
    if not isinstance(title, str) or not isinstance(lyrics, str):
        raise PipelineError(MALFORMED_RESPONSE, "response lacks string 'title' and 'lyrics' fields")

    return TranscriptionResult(title=title, lyrics=lyrics)
