"""Tests for parsing the model's structured reply."""

import pytest

from reelchat.core.errors import MalformedReply
from reelchat.core.service.reply import (
    parse_structured_reply,
    strip_code_fence,
)


class TestStripCodeFence:
    def test_plain_text_is_trimmed(self):
        assert strip_code_fence("  {}  ") == "{}"

    def test_json_fence(self):
        assert strip_code_fence('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_bare_fence(self):
        assert strip_code_fence("```\n{}\n```") == "{}"

    def test_idempotent(self):
        once = strip_code_fence('```json\n{"a": 1}\n```')
        assert strip_code_fence(once) == once

    def test_nested_fences(self):
        assert strip_code_fence("```\n```json\n{}\n```\n```") == "{}"


class TestParseStructuredReply:
    def test_canonical_shape(self):
        result = parse_structured_reply(
            '{"message": "Here you go", "movies": [{"id": "27205", "name": "Inception"}]}'
        )
        assert result.ok
        assert result.reply.message == "Here you go"
        assert result.reply.movie_ids() == ["27205"]
        assert result.reply.movies[0].name == "Inception"

    def test_fenced_reply(self):
        raw = '```json\n{"message": "hi", "movies": []}\n```'
        result = parse_structured_reply(raw)
        assert result.ok
        assert result.reply.message == "hi"
        assert result.reply.movies == []

    def test_legacy_keys_and_numeric_ids(self):
        raw = (
            '{"SystemMessage": "Found one", '
            '"MovieList": [{"MovieId": 603, "MovieName": "The Matrix"}]}'
        )
        reply = parse_structured_reply(raw).unwrap()
        assert reply.message == "Found one"
        assert reply.movie_ids() == ["603"]

    def test_null_movies_is_empty(self):
        reply = parse_structured_reply('{"message": "none", "movies": null}').unwrap()
        assert reply.movies == []

    def test_movies_may_be_omitted(self):
        reply = parse_structured_reply('{"message": "Tell me more."}').unwrap()
        assert reply.message == "Tell me more."
        assert reply.movies == []

    def test_json_surrounded_by_prose(self):
        raw = 'Sure! {"message": "ok", "movies": [{"id": "1"}]} Enjoy.'
        reply = parse_structured_reply(raw).unwrap()
        assert reply.movie_ids() == ["1"]

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "   ",
            "I could not find anything, sorry.",
            "[1, 2, 3]",
            '{"message": "x", "movies": [{"id": true}]}',
            '{"message": "x", "movies": "27205"}',
            "{}",
            '{"foo": 1}',
            '{"movies": []}',
            '{"message": null, "movies": []}',
        ],
    )
    def test_rejected(self, raw):
        result = parse_structured_reply(raw)
        assert not result.ok
        assert result.error
        with pytest.raises(MalformedReply):
            result.unwrap()
