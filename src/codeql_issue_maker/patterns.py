"""Glob matching for include/exclude inputs.

Patterns follow the usual glob conventions used by workflow inputs:

    *       any run of characters except ``/``
    ?       exactly one character except ``/``
    **      any number of whole path segments, including none
    [abc]   character class (``[!abc]`` negates)

A pattern without a path separator is matched against the file's base name
only, so ``*.test.js`` excludes test files at any depth. A pattern with a
separator is matched against the whole relative path.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Iterable, Optional, Sequence, Union

PatternInput = Union[str, Sequence[str], None]


def split_patterns(text: Optional[str]) -> list[str]:
    """Split a comma-separated input into a list of non-empty patterns."""
    if not text:
        return []
    return [part.strip() for part in text.split(",") if part.strip()]


def _normalize(path: str) -> str:
    return path.replace("\\", "/")


def _translate_segment(segment: str) -> str:
    out: list[str] = []
    i = 0
    n = len(segment)
    while i < n:
        char = segment[i]
        if char == "*":
            # Collapse runs like "a**b" that appear inside a segment
            while i + 1 < n and segment[i + 1] == "*":
                i += 1
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        elif char == "[":
            end = segment.find("]", i + 1)
            if end == -1:
                out.append(re.escape(char))
            else:
                body = segment[i + 1 : end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                i = end
        else:
            out.append(re.escape(char))
        i += 1
    return "".join(out)


@lru_cache(maxsize=512)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a single glob into an anchored regular expression."""
    segments = _normalize(pattern).split("/")
    out: list[str] = []
    need_sep = False

    for index, segment in enumerate(segments):
        is_last = index == len(segments) - 1
        if segment == "**":
            if is_last:
                out.append("(?:/.*)?" if need_sep else ".*")
            else:
                out.append("/(?:.*/)?" if need_sep else "(?:.*/)?")
                need_sep = False
            continue
        if need_sep:
            out.append("/")
        out.append(_translate_segment(segment))
        need_sep = True

    return re.compile("".join(out), re.DOTALL)


def _matches_single(file_path: str, pattern: str) -> bool:
    pattern = pattern.strip()
    if not pattern:
        return False

    file_path = _normalize(file_path)
    if "/" not in _normalize(pattern):
        target = file_path.rsplit("/", 1)[-1]
    else:
        target = file_path

    return compile_pattern(pattern).fullmatch(target) is not None


def matches_pattern(file_path: str, pattern: PatternInput) -> bool:
    """Check whether ``file_path`` matches a pattern or any of several.

    Args:
        file_path: Path relative to the repository root
        pattern: One glob, a comma-separated list of globs, or a sequence

    Returns:
        True if any sub-pattern matches. Empty input never matches.
    """
    if pattern is None:
        return False

    if not isinstance(pattern, str):
        return any(matches_pattern(file_path, p) for p in pattern)

    if "," in pattern:
        return any(_matches_single(file_path, p) for p in pattern.split(","))

    return _matches_single(file_path, pattern)


def matches_any_pattern(file_path: str, patterns: Iterable[str]) -> bool:
    return any(matches_pattern(file_path, p) for p in patterns)


def filter_by_patterns(
    files: Sequence[str],
    include_patterns: Optional[Sequence[str]] = None,
    exclude_patterns: Optional[Sequence[str]] = None,
) -> list[str]:
    """Keep files matching an include pattern and no exclude pattern.

    No include patterns means everything is included. Exclusion always wins.
    """
    filtered = list(files)

    if include_patterns:
        filtered = [f for f in filtered if matches_any_pattern(f, include_patterns)]

    if exclude_patterns:
        filtered = [f for f in filtered if not matches_any_pattern(f, exclude_patterns)]

    return filtered
