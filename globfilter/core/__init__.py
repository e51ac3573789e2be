# globfilter/core/__init__.py
"""
Pattern matching and path selection engine.

Three layers, leaves first: the pattern matcher (`matching`), the base path
deriver (`base_paths`) and the filter engine (`filtering`), which selects from
explicit path lists or drives directory walks.
"""
from .base_paths import base_path, get_base_paths
from .filtering import Entry, Selection, files, find, list_directory
from .matching import compile_pattern, matches

__all__ = [
    "Entry",
    "Selection",
    "base_path",
    "compile_pattern",
    "files",
    "find",
    "get_base_paths",
    "list_directory",
    "matches",
]
