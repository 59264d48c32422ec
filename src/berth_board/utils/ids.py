# src/berth_board/utils/ids.py
"""Identifier helpers for persisted entities."""

from __future__ import annotations

import re
import secrets
import time

POST_ID_LENGTH = 24
_POST_ID_PATTERN = re.compile(rf"^[0-9a-f]{{{POST_ID_LENGTH}}}$")


def new_post_id() -> str:
    """Return a fresh 24-character hex identifier.

    The first four bytes are the big-endian creation second, the remaining
    eight are random, so identifiers sort roughly by creation time.
    """
    seconds = int(time.time()) & 0xFFFFFFFF
    return seconds.to_bytes(4, "big").hex() + secrets.token_hex(8)


def is_post_id(value: str) -> bool:
    """Return True if the value has the shape produced by `new_post_id`."""
    return bool(_POST_ID_PATTERN.match(value))
