"""Chat session id generation.

Ids are five random bytes rendered as URL-safe base64 without padding,
i.e. seven characters.  Any draw whose encoding contains a character
outside ``[A-Za-z0-9]`` is discarded and redrawn, so every id can be
used verbatim in a URL path segment.
"""

import base64
import secrets

_ID_BYTES = 5
_PADDING = "="
_DISALLOWED = frozenset("-~")


def _encode(raw: bytes) -> str:
    text = base64.b64encode(raw).decode("ascii").rstrip(_PADDING)
    return text.replace("/", "~").replace("+", "-")


def generate_session_id() -> str:
    """Return a fresh 7-character alphanumeric session id."""
    while True:
        candidate = _encode(secrets.token_bytes(_ID_BYTES))
        if not _DISALLOWED.intersection(candidate):
            return candidate
