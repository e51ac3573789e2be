"""globfilter: select file paths with include/exclude glob patterns and `**` support."""

__version__ = "0.3.0"

from globfilter.core import (
    Entry,
    Selection,
    base_path,
    compile_pattern,
    files,
    find,
    get_base_paths,
    list_directory,
    matches,
)
from globfilter.exceptions import GlobFilterError, PatternError, WalkError

__all__ = [
    "Entry",
    "GlobFilterError",
    "PatternError",
    "Selection",
    "WalkError",
    "__version__",
    "base_path",
    "compile_pattern",
    "files",
    "find",
    "get_base_paths",
    "list_directory",
    "matches",
]
