"""
Length limiting for provider message fields.

Every provider caps how much text a single message may carry. Text over
the cap is cut and the cut is marked with "...". Which end survives is
configurable per provider: "end" keeps the beginning (default), "start"
keeps the tail, which is usually where a final answer lives.
"""

from __future__ import annotations

from typing import Literal

TruncationMode = Literal["start", "end"]

INDICATOR = "..."


def truncate(text: str, max_length: int, direction: TruncationMode = "end") -> str:
    """
    Bound text to max_length characters.

    Returns text unchanged when it already fits. When max_length cannot
    hold more than the indicator itself, the indicator alone is returned.
    """
    if len(text) <= max_length:
        return text
    if max_length <= len(INDICATOR):
        return INDICATOR
    keep = max_length - len(INDICATOR)
    if direction == "start":
        return INDICATOR + text[len(text) - keep:]
    return text[:keep] + INDICATOR
