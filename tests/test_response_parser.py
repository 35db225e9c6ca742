from __future__ import annotations

import pytest

from errors import MALFORMED_RESPONSE, PipelineError
from models import TranscriptionResult
from response_parser import extract_json_candidate, parse_transcription


def test_fenced_json_block() -> None:
    text = 'Here:\n```json\n{"title":"T","lyrics":"L"}\n```\n'
    assert parse_transcription(text) == TranscriptionResult(title="T", lyrics="L")


def test_bare_json_with_surrounding_prose() -> None:
    text = 'preamble {"title":"A","lyrics":"B"} trailing'
    assert parse_transcription(text) == TranscriptionResult(title="A", lyrics="B")


def test_plain_json_document() -> None:
    text = '  {"title": "Song", "lyrics": "line one\\nline two"}  '
    result = parse_transcription(text)
    assert result.title == "Song"
    assert result.lyrics == "line one\nline two"


def test_no_json_fails_with_malformed_response() -> None:
    with pytest.raises(PipelineError) as info:
        parse_transcription("no json here")
    assert info.value.code == MALFORMED_RESPONSE


def test_last_closing_brace_keeps_nested_objects() -> None:
    text = 'Sure! {"title": "X", "lyrics": "Y", "meta": {"k": 1}} hope that helps'
    assert extract_json_candidate(text) == '{"title": "X", "lyrics": "Y", "meta": {"k": 1}}'
    assert parse_transcription(text) == TranscriptionResult(title="X", lyrics="Y")


def test_fence_takes_precedence_over_braces_outside_it() -> None:
    text = 'note {not json}\n```json\n{"title":"F","lyrics":"G"}\n```\nmore {text}'
    assert parse_transcription(text) == TranscriptionResult(title="F", lyrics="G")


def test_unterminated_fence_falls_back_to_braces() -> None:
    text = '```json\n{"title":"U","lyrics":"V"}'
    assert parse_transcription(text) == TranscriptionResult(title="U", lyrics="V")


def test_missing_field_fails() -> None:
    with pytest.raises(PipelineError) as info:
        parse_transcription('{"title": "only a title"}')
    assert info.value.code == MALFORMED_RESPONSE


def test_wrong_field_type_fails() -> None:
    with pytest.raises(PipelineError) as info:
        parse_transcription('{"title": "T", "lyrics": ["a", "b"]}')
    assert info.value.code == MALFORMED_RESPONSE


def test_non_object_json_fails() -> None:
    with pytest.raises(PipelineError) as info:
        parse_transcription("[1, 2, 3]")
    assert info.value.code == MALFORMED_RESPONSE
