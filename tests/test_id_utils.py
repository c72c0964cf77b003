"""Tests for chat session id generation."""

import re
from unittest.mock import patch

from reelchat.infra.id_utils import generate_session_id

_ID_RE = re.compile(r"^[A-Za-z0-9]{7}$")


class TestGenerateSessionId:
    def test_shape(self):
        for _ in range(200):
            assert _ID_RE.match(generate_session_id())

    def test_ids_differ(self):
        ids = {generate_session_id() for _ in range(200)}
        assert len(ids) > 190

    def test_redraws_when_encoding_has_url_unsafe_chars(self):
        # 0xfb 0xff ... encodes with "+" and "/"; the second draw is clean.
        draws = iter([b"\xfb\xff\xbf\xfb\xff", b"hello"])
        with patch(
            "reelchat.infra.id_utils.secrets.token_bytes",
            side_effect=lambda n: next(draws),
        ):
            assert generate_session_id() == "aGVsbG8"
