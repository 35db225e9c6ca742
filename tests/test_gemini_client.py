"""Tests for GeminiTranscriptionClient."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from errors import CREDENTIAL_MISSING, EMPTY_RESPONSE, MALFORMED_RESPONSE, NETWORK_FAILURE, PipelineError
from gemini_client import GENERATION_CONFIG, UNKNOWN_TITLE, GeminiTranscriptionClient, build_instruction
from models import RemoteFileHandle, TranscriptionResult
from response_parser import parse_transcription

BASE_URL = "https://example.test/v1beta"


# ---------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------

def _response(status_code: int = 200, payload: object = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


def _upload_ok(uri: str = "https://example.test/files/abc") -> MagicMock:
    return _response(200, {"file": {"uri": uri}})


def _generate_ok(text: str) -> MagicMock:
    return _response(200, {"candidates": [{"content": {"parts": [{"text": text}]}}]})


def _client(session: MagicMock, api_key: str = "test-key") -> GeminiTranscriptionClient:
    return GeminiTranscriptionClient(api_key=api_key, model="test-model", base_url=BASE_URL, session=session)


@pytest.fixture(autouse=True)
def _no_env_key(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)


# ---------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------

def test_transcribe_runs_upload_then_generate() -> None:
    session = MagicMock()
    session.post.side_effect = [_upload_ok(), _generate_ok('{"title":"T","lyrics":"L"}')]

    raw = _client(session).transcribe(b"audio-bytes", "audio/ogg", "Spanish")

    assert parse_transcription(raw) == TranscriptionResult(title="T", lyrics="L")
    assert session.post.call_count == 2

    upload_call, generate_call = session.post.call_args_list
    assert upload_call.args[0] == f"{BASE_URL}/files"
    assert upload_call.kwargs["params"] == {"key": "test-key"}
    name, data, mime = upload_call.kwargs["files"]["file"]
    assert (name, data, mime) == ("audio.ogg", b"audio-bytes", "audio/ogg")

    assert generate_call.args[0] == f"{BASE_URL}/models/test-model:generateContent"
    body = generate_call.kwargs["json"]
    parts = body["contents"][0]["parts"]
    assert "Spanish" in parts[0]["text"]
    assert parts[1] == {"fileData": {"mimeType": "audio/ogg", "fileUri": "https://example.test/files/abc"}}
    assert body["generationConfig"] == {"temperature": 0.4, "topK": 32, "topP": 1, "maxOutputTokens": 8192}


def test_requests_carry_a_timeout() -> None:
    session = MagicMock()
    session.post.return_value = _upload_ok()
    client = GeminiTranscriptionClient(api_key="k", base_url=BASE_URL, request_timeout_s=12.5, session=session)

    client.upload(b"x", "audio/ogg")

    assert session.post.call_args.kwargs["timeout"] == 12.5


def test_instruction_names_language_and_sentinel_title() -> None:
    text = build_instruction("Japanese")
    assert "Japanese" in text
    assert UNKNOWN_TITLE in text
    assert '"title"' in text and '"lyrics"' in text


def test_generation_config_is_not_shared_between_requests() -> None:
    session = MagicMock()
    session.post.return_value = _generate_ok("{}")
    _client(session).generate(RemoteFileHandle(uri="u", mime_type="audio/ogg"), "English")

    sent = session.post.call_args.kwargs["json"]["generationConfig"]
    assert sent == GENERATION_CONFIG
    assert sent is not GENERATION_CONFIG


# ---------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------

def test_missing_credential_fails_before_any_request() -> None:
    session = MagicMock()

    with pytest.raises(PipelineError) as info:
        _client(session, api_key="").transcribe(b"audio", "audio/ogg", "English")

    assert info.value.code == CREDENTIAL_MISSING
    session.post.assert_not_called()


@patch.dict("os.environ", {"GEMINI_API_KEY": "env-key"}, clear=False)
def test_environment_key_wins_over_configured_key() -> None:
    session = MagicMock()
    session.post.return_value = _upload_ok()

    _client(session, api_key="config-key").upload(b"x", "audio/ogg")

    assert session.post.call_args.kwargs["params"] == {"key": "env-key"}


# ---------------------------------------------------------------
# Failures
# ---------------------------------------------------------------

def test_upload_non_success_status_short_circuits() -> None:
    session = MagicMock()
    session.post.return_value = _response(503, {"error": "unavailable"})

    with pytest.raises(PipelineError) as info:
        _client(session).transcribe(b"audio", "audio/ogg", "English")

    assert info.value.code == NETWORK_FAILURE
    assert "503" in info.value.message
    assert session.post.call_count == 1


def test_generate_non_success_status() -> None:
    session = MagicMock()
    session.post.side_effect = [_upload_ok(), _response(429, {})]

    with pytest.raises(PipelineError) as info:
        _client(session).transcribe(b"audio", "audio/ogg", "English")

    assert info.value.code == NETWORK_FAILURE


def test_transport_error_maps_to_network_failure_without_leaking_key() -> None:
    session = MagicMock()
    session.post.side_effect = requests.ConnectionError("failed for https://x/files?key=secret-key")

    with pytest.raises(PipelineError) as info:
        _client(session, api_key="secret-key").upload(b"x", "audio/ogg")

    assert info.value.code == NETWORK_FAILURE
    assert "secret-key" not in str(info.value)


def test_timeout_maps_to_network_failure() -> None:
    session = MagicMock()
    session.post.side_effect = requests.Timeout()

    with pytest.raises(PipelineError) as info:
        _client(session).upload(b"x", "audio/ogg")

    assert info.value.code == NETWORK_FAILURE
    assert "timed out" in info.value.message


def test_upload_without_uri_is_malformed() -> None:
    session = MagicMock()
    session.post.return_value = _response(200, {"file": {}})

    with pytest.raises(PipelineError) as info:
        _client(session).upload(b"x", "audio/ogg")

    assert info.value.code == MALFORMED_RESPONSE


def test_undecodable_body_is_malformed() -> None:
    session = MagicMock()
    session.post.return_value = _response(200, ValueError("not json"))

    with pytest.raises(PipelineError) as info:
        _client(session).upload(b"x", "audio/ogg")

    assert info.value.code == MALFORMED_RESPONSE


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"candidates": []},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"content": {"parts": [{"inlineData": {}}]}}]},
        {"candidates": [{"finishReason": "SAFETY"}]},
    ],
)
def test_missing_candidate_text_is_empty_response(payload: dict) -> None:
    session = MagicMock()
    session.post.return_value = _response(200, payload)

    with pytest.raises(PipelineError) as info:
        _client(session).generate(RemoteFileHandle(uri="u", mime_type="audio/ogg"), "English")

    assert info.value.code == EMPTY_RESPONSE
