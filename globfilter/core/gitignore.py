# globfilter/core/gitignore.py
"""
Optional .gitignore post-filter used by the CLI.

This sits outside the include/exclude engine: it drops already-selected paths
that git would ignore, using the `.gitignore` files from the walk root down to
each path's directory.
"""
import posixpath
from pathlib import Path
from typing import Dict, List, Optional
import pathspec
import structlog

log = structlog.get_logger(__name__)


def load_gitignore_patterns_from_file(gitignore_file_path: Path) -> Optional[pathspec.PathSpec]:
    # loads and compiles .gitignore patterns from a given file.
    if not gitignore_file_path.is_file():
        return None
    try:
        with gitignore_file_path.open("r", encoding="utf-8", errors="ignore") as f_obj:
            return pathspec.PathSpec.from_lines("gitwildmatch", f_obj)
    except (OSError, ValueError) as e:
        log.warning("failed_to_parse_gitignore_file", path=str(gitignore_file_path), error=str(e))
    return None


class GitignoreFilter:
    """Checks root-relative `/`-separated paths against nested `.gitignore` files."""

    def __init__(self, root: Path):
        self.root = root
        self._specs_cache: Dict[str, Optional[pathspec.PathSpec]] = {}

    def _spec_for(self, rel_dir: str) -> Optional[pathspec.PathSpec]:
        if rel_dir not in self._specs_cache:
            directory = self.root / rel_dir if rel_dir else self.root
            self._specs_cache[rel_dir] = load_gitignore_patterns_from_file(directory / ".gitignore")
        return self._specs_cache[rel_dir]

    def is_ignored(self, rel_path: str) -> bool:
        # each .gitignore applies to paths relative to its own directory.
        parts = rel_path.split("/")
        for depth in range(len(parts)):
            rel_dir = "/".join(parts[:depth])
            spec = self._spec_for(rel_dir)
            if spec is None:
                continue
            remainder = "/".join(parts[depth:])
            if spec.match_file(remainder):
                return True
            # a path inside an ignored directory is ignored as well.
            for cut in range(depth + 1, len(parts)):
                if spec.match_file(posixpath.join(*parts[depth:cut]) + "/"):
                    return True
        return False

    def drop_ignored(self, rel_paths: List[str]) -> List[str]:
        kept = [p for p in rel_paths if posixpath.isabs(p) or not self.is_ignored(p)]
        if len(kept) != len(rel_paths):
            log.info("gitignored_paths_dropped", count=len(rel_paths) - len(kept))
        return kept
