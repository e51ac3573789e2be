# globfilter/core/filtering.py
import os
import posixpath
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple, Union
import structlog

from globfilter.core.base_paths import CURRENT_DIR, get_base_paths
from globfilter.core.matching import CompiledPattern, compile_patterns, match_any
from globfilter.exceptions import PatternError, WalkError

log = structlog.get_logger(__name__)


class Entry(NamedTuple):
    # one immediate child returned by a directory listing.
    name: str
    is_dir: bool


Lister = Callable[[str], Iterable[Entry]]


@dataclass
class Selection:
    # selected paths plus any invalid patterns that were treated as matching nothing.
    paths: List[str] = field(default_factory=list)
    errors: List[PatternError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def list_directory(path: str) -> List[Entry]:
    # default listing primitive: immediate entries sorted by name, symlinks not followed.
    with os.scandir(path) as it:
        entries = [Entry(e.name, e.is_dir(follow_symlinks=False)) for e in it]
    entries.sort(key=lambda e: e.name)
    return entries


def is_selected(path: str, include_set: Sequence[CompiledPattern], exclude_set: Sequence[CompiledPattern]) -> bool:
    # exclude wins over include; an empty include set selects nothing.
    if not match_any(include_set, path):
        return False
    return not match_any(exclude_set, path)


def files(
    paths: Iterable[str],
    includes: Optional[Iterable[str]],
    excludes: Optional[Iterable[str]],
) -> Selection:
    """
    Filter an explicit list of paths. No I/O is done.

    The output keeps the input order. Invalid patterns match nothing and are
    returned in `Selection.errors` so the caller can warn about them.
    """
    include_set, include_errors = compile_patterns(includes)
    exclude_set, exclude_errors = compile_patterns(excludes)
    selected = [p for p in paths if is_selected(p, include_set, exclude_set)]
    log.debug("paths_filtered", selected=len(selected), invalid_patterns=len(include_errors) + len(exclude_errors))
    return Selection(paths=selected, errors=include_errors + exclude_errors)


def find(
    root: Union[str, "os.PathLike[str]"],
    includes: Optional[Iterable[str]],
    excludes: Optional[Iterable[str]],
    lister: Optional[Lister] = None,
) -> Selection:
    """
    Walk the tree under `root` and return the files selected by the patterns.

    Only the base paths of the include patterns are walked. Results are
    `/`-separated paths relative to `root`, in depth-first walk order. A
    directory matching an exclude pattern is not descended into. Raises
    `WalkError` if any listing fails; nothing is returned in that case.
    """
    root_str = os.fspath(root)
    include_set, include_errors = compile_patterns(includes)
    exclude_set, exclude_errors = compile_patterns(excludes)
    bases = get_base_paths([], [p.source for p in include_set])
    log.debug("walk_started", root=root_str, base_paths=bases)

    walker = _TreeWalker(lister or list_directory, include_set, exclude_set)
    for base in bases:
        start = _resolve_base(root_str, base)
        if start is None:
            log.debug("base_path_outside_root_skipped", root=root_str, base_path=base)
            continue
        walker.walk(*start)

    log.info("walk_finished", root=root_str, selected=len(walker.found))
    return Selection(paths=list(walker.found), errors=include_errors + exclude_errors)


def _is_within(path: str, parent: str) -> bool:
    try:
        return os.path.commonpath([parent, path]) == parent
    except ValueError:
        return False


def _resolve_base(root: str, base: str) -> Optional[Tuple[str, str]]:
    # maps a base path to (filesystem path, candidate path), or None if it lies outside root.
    if base == CURRENT_DIR:
        return root, ""
    abs_root = os.path.abspath(root)
    if posixpath.isabs(base):
        abs_base = os.path.normpath(base)
        if _is_within(abs_base, abs_root):
            return abs_base, base
        if _is_within(abs_root, abs_base):
            # the base is an ancestor of root: walk root itself, with absolute candidates.
            return abs_root, abs_root.replace(os.sep, "/")
        return None
    fs_path = os.path.normpath(os.path.join(root, *base.split("/")))
    if not _is_within(os.path.abspath(fs_path), abs_root):
        return None
    return fs_path, base


class _TreeWalker:
    def __init__(self, lister: Lister, include_set: Sequence[CompiledPattern], exclude_set: Sequence[CompiledPattern]):
        self.lister = lister
        self.include_set = include_set
        self.exclude_set = exclude_set
        # insertion-ordered; overlapping base paths would otherwise report a file twice.
        self.found: Dict[str, None] = {}

    def walk(self, fs_path: str, rel: str):
        if rel and match_any(self.exclude_set, rel):
            return
        try:
            entries = list(self.lister(fs_path))
        except NotADirectoryError:
            # a base path naming a file is a candidate itself.
            if rel and match_any(self.include_set, rel):
                self.found.setdefault(rel)
            return
        except OSError as e:
            log.error("directory_listing_failed", path=fs_path, error=str(e))
            raise WalkError(fs_path, e) from e
        self._walk_entries(fs_path, rel, entries)

    def _walk_entries(self, fs_path: str, rel: str, entries: List[Entry]):
        # depth-first with an explicit stack of (fs path, candidate path, pending entries).
        stack: List[Tuple[str, str, Iterator[Entry]]] = [(fs_path, rel, iter(entries))]
        while stack:
            dir_fs, dir_rel, pending = stack[-1]
            entry = next(pending, None)
            if entry is None:
                stack.pop()
                continue
            child_rel = posixpath.join(dir_rel, entry.name)
            if match_any(self.exclude_set, child_rel):
                continue
            child_fs = os.path.join(dir_fs, entry.name)
            if entry.is_dir:
                stack.append((child_fs, child_rel, iter(self._list(child_fs))))
            elif match_any(self.include_set, child_rel):
                self.found.setdefault(child_rel)

    def _list(self, fs_path: str) -> List[Entry]:
        try:
            return list(self.lister(fs_path))
        except OSError as e:
            log.error("directory_listing_failed", path=fs_path, error=str(e))
            raise WalkError(fs_path, e) from e
