"""Decoding of digit-reversed sensor tokens."""

from __future__ import annotations

import math
import re

from models.errors import MalformedTokenError, ReadingOutOfRangeError
from models.records import Reading

# Optional sign, then digits with an optional fraction, or a bare fraction.
_DECIMAL_PATTERN = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")


def reverse_token(token: str) -> str:
    """Reverse ``token`` end to end, sign and decimal point included."""
    chars = list(token)
    left, right = 0, len(chars) - 1
    while left < right:
        chars[left], chars[right] = chars[right], chars[left]
        left += 1
        right -= 1
    return "".join(chars)


class Decoder:
    """Turns reversed tokens such as ``"5.21"`` into readings (``12.5``)."""

    def decode(self, token: str, token_index: int = 0) -> Reading:
        candidate = reverse_token(token.strip())
        if not _DECIMAL_PATTERN.fullmatch(candidate):
            raise MalformedTokenError(token, token_index)

        value = float(candidate)
        underflowed = value == 0.0 and any(ch in "123456789" for ch in candidate)
        if not math.isfinite(value) or underflowed:
            raise ReadingOutOfRangeError(token, token_index)
        return Reading(value=value, token_index=token_index)
