# wordref/ranges.py

"""
Numeric citation labels: compress index sets into "1-3,5,7,8" and read them
back out of bracketed text such as "[2][4, 6-8]".
"""

from __future__ import annotations

import re
from typing import Iterable, List

_BRACKET_RE = re.compile(r"\[(.*?)\]")
_INT_RE = re.compile(r"^\d+$")
_RANGE_RE = re.compile(r"^(\d+)\s*[-–]\s*(\d+)$")


def _runs(values: List[int]) -> List[List[int]]:
    runs: List[List[int]] = []
    for value in values:
        if runs and value == runs[-1][-1] + 1:
            runs[-1].append(value)
        else:
            runs.append([value])
    return runs


def compress(indices: Iterable[int]) -> str:
    """
    Collapse a set of integers into range notation.

    Runs of three or more consecutive values become "a-b", a run of two is
    written "a,b", singletons stay as they are.
    """
    values = sorted(set(indices))
    parts: List[str] = []
    for run in _runs(values):
        if len(run) >= 3:
            parts.append(f"{run[0]}-{run[-1]}")
        else:
            parts.extend(str(v) for v in run)
    return ",".join(parts)


def format_group(indices: Iterable[int]) -> str:
    return f"[{compress(indices)}]"


def parse(text: str) -> List[int]:
    """
    Collect every integer mentioned in the bracketed groups of `text`.

    Ranges are expanded inclusively whatever their direction; tokens that
    are neither integers nor ranges are ignored. Order follows the text and
    duplicates are kept.
    """
    found: List[int] = []
    for block in _BRACKET_RE.findall(text or ""):
        for token in block.split(","):
            token = token.strip()
            if not token:
                continue
            if _INT_RE.match(token):
                found.append(int(token))
                continue
            m = _RANGE_RE.match(token)
            if m:
                a, b = int(m.group(1)), int(m.group(2))
                found.extend(range(min(a, b), max(a, b) + 1))
    return found
