# globfilter/core/matching.py
"""
Glob pattern matching for `/`-separated paths.

A pattern is split into segments. Each segment is one of three kinds:

- a literal, compared with `==`,
- a single-segment glob (`*`, `?`, `[...]`, `\\` escapes), compiled to a regex,
- exactly `**`, which matches zero or more whole path segments.

Matching is anchored and case-sensitive. An absolute pattern (leading `/`)
splits into a leading empty segment, so it only matches absolute paths.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple
import structlog

from globfilter.exceptions import PatternError

log = structlog.get_logger(__name__)

DOUBLE_STAR = "**"
SEPARATOR = "/"

# characters that make a segment a glob rather than a literal.
GLOB_META_CHARS = frozenset("*?[\\")


class SegmentKind(Enum):
    LITERAL = "literal"
    GLOB = "glob"
    DOUBLE_STAR = "double_star"


@dataclass(frozen=True)
class Segment:
    kind: SegmentKind
    text: str
    regex: Optional[re.Pattern] = None

    def matches(self, name: str) -> bool:
        if self.kind is SegmentKind.LITERAL:
            return name == self.text
        if self.kind is SegmentKind.GLOB and self.regex is not None:
            return self.regex.fullmatch(name) is not None
        raise ValueError(f"a {self.kind.value} segment does not match a single name")


@dataclass(frozen=True)
class CompiledPattern:
    source: str
    segments: Tuple[Segment, ...]

    @property
    def is_absolute(self) -> bool:
        return self.source.startswith(SEPARATOR)

    def match(self, path: str) -> bool:
        return _match_segments(self.segments, tuple(split_path(path)))


def is_literal_segment(segment: str) -> bool:
    return not any(c in GLOB_META_CHARS for c in segment)


def normalize_pattern(pattern: str) -> str:
    # a trailing slash is insignificant: "a/" is the same pattern as "a".
    stripped = pattern.rstrip(SEPARATOR)
    if not stripped and pattern:
        return SEPARATOR
    return stripped


def split_path(path: str) -> List[str]:
    return normalize_pattern(path).split(SEPARATOR)


def translate_segment(segment: str, pattern: Optional[str] = None) -> str:
    """
    Translate one glob segment into a regular expression for `fullmatch`.

    Dialect: `*` any run of characters, `?` one character, `[abc]`, `[a-z]`,
    `[!abc]` / `[^abc]` for negation, `]` first in a class is literal, and a
    backslash escapes the next character. None of these ever match `/`.
    Raises `PatternError` for an unterminated class, a reversed range, or a
    trailing backslash.
    """
    source = pattern if pattern is not None else segment
    i = 0
    n = len(segment)
    res = ""
    while i < n:
        c = segment[i]
        i += 1
        if c == "*":
            # runs of stars are equivalent to one.
            while i < n and segment[i] == "*":
                i += 1
            res += "[^/]*"
        elif c == "?":
            res += "[^/]"
        elif c == "\\":
            if i >= n:
                raise PatternError(source, "trailing backslash")
            res += re.escape(segment[i])
            i += 1
        elif c == "[":
            i, char_class = _translate_class(segment, i, source)
            res += char_class
        else:
            res += re.escape(c)
    return res


def _translate_class(segment: str, i: int, source: str) -> Tuple[int, str]:
    # i points just past the opening "[". returns (index past "]", regex class).
    n = len(segment)
    negate = False
    if i < n and segment[i] in "!^":
        negate = True
        i += 1

    items: List[str] = []
    first = True
    while True:
        if i >= n:
            raise PatternError(source, "unterminated character class")
        c = segment[i]
        if c == "]" and not first:
            i += 1
            break
        first = False
        i, lo = _class_char(segment, i, source)
        if i + 1 < n and segment[i] == "-" and segment[i + 1] != "]":
            i, hi = _class_char(segment, i + 1, source)
            if hi < lo:
                raise PatternError(source, f"reversed range {lo}-{hi} in character class")
            items.append(f"{re.escape(lo)}-{re.escape(hi)}")
        else:
            items.append(re.escape(lo))

    body = "".join(items)
    if negate:
        return i, f"[^/{body}]"
    return i, f"[{body}]"


def _class_char(segment: str, i: int, source: str) -> Tuple[int, str]:
    if segment[i] == "\\":
        if i + 1 >= len(segment):
            raise PatternError(source, "trailing backslash")
        return i + 2, segment[i + 1]
    return i + 1, segment[i]


def compile_segment(segment: str, pattern: Optional[str] = None) -> Segment:
    if segment == DOUBLE_STAR:
        return Segment(SegmentKind.DOUBLE_STAR, segment)
    if is_literal_segment(segment):
        return Segment(SegmentKind.LITERAL, segment)
    regex = re.compile(translate_segment(segment, pattern), re.DOTALL)
    return Segment(SegmentKind.GLOB, segment, regex)


def compile_pattern(pattern: str) -> CompiledPattern:
    """Parse a pattern into tagged segments. Raises `PatternError` if any segment is invalid."""
    normalized = normalize_pattern(pattern)
    segments: List[Segment] = []
    for raw in normalized.split(SEPARATOR):
        compiled = compile_segment(raw, pattern)
        # consecutive "**" segments match exactly what a single one does.
        if (
            compiled.kind is SegmentKind.DOUBLE_STAR
            and segments
            and segments[-1].kind is SegmentKind.DOUBLE_STAR
        ):
            continue
        segments.append(compiled)
    return CompiledPattern(source=normalized, segments=tuple(segments))


def compile_patterns(patterns: Optional[Iterable[str]]) -> Tuple[List[CompiledPattern], List[PatternError]]:
    # compiles a pattern set; invalid patterns are dropped (they match nothing) and reported.
    compiled: List[CompiledPattern] = []
    errors: List[PatternError] = []
    for pattern in patterns or ():
        try:
            compiled.append(compile_pattern(pattern))
        except PatternError as e:
            log.warning("invalid_pattern_ignored", pattern=pattern, reason=e.reason)
            errors.append(e)
    return compiled, errors


def matches(pattern: str, path: str) -> bool:
    """
    Report whether `path` matches `pattern`.

    >>> matches("**/*.go", "cmd/main.go")
    True
    >>> matches("foo", "sub/foo")
    False
    """
    return compile_pattern(pattern).match(path)


def match_any(patterns: Iterable[CompiledPattern], path: str) -> bool:
    return any(p.match(path) for p in patterns)


def _match_segments(segments: Tuple[Segment, ...], parts: Tuple[str, ...]) -> bool:
    # "**" matches any run of parts; every other segment consumes exactly one.
    # on a mismatch, backtrack to the latest "**" and let it swallow one more part.
    n_segments = len(segments)
    j = i = 0
    star_j = -1
    star_i = 0
    while i < len(parts):
        if j < n_segments and segments[j].kind is SegmentKind.DOUBLE_STAR:
            star_j, star_i = j, i
            j += 1
        elif j < n_segments and segments[j].matches(parts[i]):
            j += 1
            i += 1
        elif star_j >= 0:
            star_i += 1
            j, i = star_j + 1, star_i
        else:
            return False
    while j < n_segments and segments[j].kind is SegmentKind.DOUBLE_STAR:
        j += 1
    return j == n_segments
