# globfilter/core/base_paths.py
"""
Base path derivation: the literal directory prefix that must contain every
match of a pattern. Walks start at base paths instead of the walk root, so
subtrees outside every include pattern are never listed.
"""
from typing import Dict, Iterable, List, Optional

from globfilter.core.matching import SEPARATOR, is_literal_segment, normalize_pattern

CURRENT_DIR = "."


def base_path(pattern: str) -> str:
    """
    Return the base path of `pattern`.

    Leading literal segments are kept up to the first wildcard segment. A
    pattern with no wildcard matches a single file, so its base path is the
    parent directory. An empty prefix is "." for relative patterns and "/"
    for absolute ones.

    >>> base_path("test/foo*")
    'test'
    >>> base_path("/voing/**")
    '/voing'
    """
    normalized = normalize_pattern(pattern)
    segments = normalized.split(SEPARATOR)
    is_absolute = len(segments) > 1 and segments[0] == ""
    if is_absolute:
        segments = segments[1:]

    literal: List[str] = []
    for segment in segments:
        if not is_literal_segment(segment):
            break
        literal.append(segment)
    else:
        # every segment is literal: the last one is the file itself.
        literal = literal[:-1]

    prefix = SEPARATOR.join(literal)
    if is_absolute:
        return SEPARATOR + prefix
    return prefix or CURRENT_DIR


def get_base_paths(existing: Optional[Iterable[str]], patterns: Iterable[str]) -> List[str]:
    """
    Return `existing` followed by the base path of every pattern, without
    duplicates and in first-seen order. Only exact duplicates are dropped: a
    base path nested inside another one is kept, and absolute and relative
    base paths are never merged. `existing` is not modified.
    """
    # dict as an insertion-ordered set.
    ordered: Dict[str, None] = dict.fromkeys(existing or ())
    for pattern in patterns:
        ordered.setdefault(base_path(pattern), None)
    return list(ordered)
