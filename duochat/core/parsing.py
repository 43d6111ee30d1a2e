"""Backtick fencing for text embedded in prompts.

fence_block() wraps arbitrary text so it survives verbatim inside a prompt;
extract_fenced_blocks() is its inverse.
Pure string manipulation: no external dependencies.
"""

from __future__ import annotations

import re

MIN_FENCE_LENGTH = 3

_BACKTICK_RUN = re.compile(r"`+")
_FENCED_BLOCK = re.compile(r"^(`{3,})\n(.*?)\n\1$", re.MULTILINE | re.DOTALL)


def fence_for(text: str) -> str:
    """Return a backtick fence longer than any backtick run inside text.

    At least MIN_FENCE_LENGTH backticks, so plain text gets the usual ```.
    """
    longest = max((len(run) for run in _BACKTICK_RUN.findall(text)), default=0)
    return "`" * max(MIN_FENCE_LENGTH, longest + 1)


def fence_block(text: str) -> str:
    """Wrap text in a fence that cannot be closed by anything inside it."""
    fence = fence_for(text)
    return f"{fence}\n{text}\n{fence}"


def extract_fenced_blocks(raw: str) -> list[str]:
    """Extract the contents of every fenced block, in order.

    Handles:
    - Plain ``` fences
    - Longer fences wrapping text that itself contains ``` sequences
    - Empty blocks

    Each block's content is returned exactly as it was passed to fence_block().
    """
    return [match.group(2) for match in _FENCED_BLOCK.finditer(raw)]
