"""Rough token estimation for prompt budgeting."""

from __future__ import annotations

import math
import re


_CJK_PATTERN = re.compile(r"[\u4e00-\u9fff]")


def estimate_tokens(text: str) -> int:
    """Estimate the token count of ``text``.

    CJK ideographs count as half a token each, everything else as a
    quarter; the sum is rounded up.

    Example:
        >>> estimate_tokens("abcd")
        1
    """
    if not text:
        return 0
    cjk = len(_CJK_PATTERN.findall(text))
    other = len(text) - cjk
    return math.ceil(cjk / 2 + other / 4)


__all__ = ["estimate_tokens"]
