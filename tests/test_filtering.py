import os
import sys
from pathlib import Path
from typing import Dict, List

import pytest

from globfilter.core.filtering import Entry, Selection, files, find, list_directory
from globfilter.exceptions import WalkError

SOURCE_FILES = ["main.cpp", "main.go", "main.h", "foo.go", "bar.py"]


@pytest.mark.parametrize(
    "includes, excludes, candidates, expected, has_error",
    [
        (None, ["*"], SOURCE_FILES, [], False),
        (["*"], None, SOURCE_FILES, SOURCE_FILES, False),
        (["*"], ["*.go"], SOURCE_FILES, ["main.cpp", "main.h", "bar.py"], False),
        # invalid patterns match nothing; the error is still reported.
        (["*"], ["[["], SOURCE_FILES, SOURCE_FILES, True),
        (["main.*"], ["*.cpp"], SOURCE_FILES, ["main.go", "main.h"], False),
        (None, None, SOURCE_FILES, [], False),
        (["**/*"], None, ["foo", "/test/foo", "/test/foo.go"], ["foo", "/test/foo", "/test/foo.go"], False),
        (["*"], None, ["foo", "/test/foo", "a/b"], ["foo"], False),
        ([], ["*.go"], SOURCE_FILES, [], False),
        (["[[", "*.go"], None, SOURCE_FILES, ["main.go", "foo.go"], True),
    ],
)
def test_files(includes, excludes, candidates, expected, has_error):
    selection = files(candidates, includes, excludes)
    assert selection.paths == expected
    assert selection.ok is not has_error


def test_files_reports_each_invalid_pattern_once():
    selection = files(SOURCE_FILES, ["[a", "*"], ["[["])
    assert [e.pattern for e in selection.errors] == ["[a", "[["]


def test_files_preserves_order_and_does_not_mutate_input():
    candidates = ["z.go", "a.go", "m.txt", "b.go"]
    snapshot = list(candidates)
    selection = files(candidates, ["*.go"], None)
    assert selection.paths == ["z.go", "a.go", "b.go"]
    assert candidates == snapshot


def test_exclude_always_wins():
    candidates = ["src/a.py", "src/b.py", "docs/c.md"]
    selection = files(candidates, ["**"], ["src/a.py", "**/*.md"])
    assert selection.paths == ["src/b.py"]


FIND_TREE = ["a/a.test1", "a/b.test2", "b/a.test1", "b/b.test2", "x", "x.test1"]


@pytest.fixture
def find_root(tmp_path: Path) -> Path:
    """Creates the sample tree used by the walk tests."""
    for rel in FIND_TREE:
        dst = tmp_path / rel
        dst.parent.mkdir(parents=True, exist_ok=True)
        dst.write_text("test")
    return tmp_path


@pytest.mark.parametrize(
    "includes, excludes, expected",
    [
        (["**"], [], FIND_TREE),
        (["**/*.test1"], [], ["a/a.test1", "b/a.test1", "x.test1"]),
        (["**"], ["*.test1"], ["a/a.test1", "a/b.test2", "b/a.test1", "b/b.test2", "x"]),
        (["**"], ["a"], ["b/a.test1", "b/b.test2", "x", "x.test1"]),
        (["**"], ["a/"], ["b/a.test1", "b/b.test2", "x", "x.test1"]),
        (["**"], ["**/*.test1", "**/*.test2"], ["x"]),
        (["b/*"], [], ["b/a.test1", "b/b.test2"]),
        (["x"], [], ["x"]),
        ([], [], []),
        (["a/**"], ["a"], []),
    ],
)
def test_find(find_root: Path, includes, excludes, expected):
    selection = find(find_root, includes, excludes)
    assert selection.paths == expected
    assert selection.ok


def test_find_accepts_string_root(find_root: Path):
    assert find(str(find_root), ["*.test1"], None).paths == ["x.test1"]


def test_find_reports_invalid_patterns_but_still_walks(find_root: Path):
    selection = find(find_root, ["**"], ["[["])
    assert selection.paths == FIND_TREE
    assert [e.pattern for e in selection.errors] == ["[["]


def test_find_overlapping_base_paths_report_each_file_once(find_root: Path):
    selection = find(find_root, ["b/**", "**"], None)
    assert selection.paths == ["b/a.test1", "b/b.test2", "a/a.test1", "a/b.test2", "x", "x.test1"]


def test_find_base_path_naming_a_file(find_root: Path):
    (find_root / "x.d").write_text("file, not a directory")
    assert find(find_root, ["x.d/*"], None).paths == []
    assert find(find_root, ["x.test1"], None).paths == ["x.test1"]


def test_find_missing_root_raises_walk_error(tmp_path: Path):
    missing = tmp_path / "nope"
    with pytest.raises(WalkError) as exc_info:
        find(missing, ["**"], None)
    assert exc_info.value.path == str(missing)
    assert isinstance(exc_info.value.__cause__, FileNotFoundError)


def test_find_missing_base_path_raises_walk_error(find_root: Path):
    with pytest.raises(WalkError):
        find(find_root, ["docs/**"], None)


def test_find_absolute_patterns_inside_root(find_root: Path):
    absolute_b = find_root.resolve().as_posix() + "/b"
    if os.sep != "/":
        pytest.skip("absolute `/` patterns are POSIX paths")
    selection = find(find_root.resolve(), [absolute_b + "/*.test1"], None)
    assert selection.paths == [absolute_b + "/a.test1"]


def test_find_absolute_base_outside_root_is_skipped(find_root: Path, tmp_path_factory):
    other = tmp_path_factory.mktemp("elsewhere")
    (other / "y").write_text("y")
    if os.sep != "/":
        pytest.skip("absolute `/` patterns are POSIX paths")
    selection = find(find_root, [other.as_posix() + "/**"], None)
    assert selection.paths == []


def test_find_absolute_base_containing_root_walks_root(tmp_path: Path):
    if os.sep != "/":
        pytest.skip("absolute `/` patterns are POSIX paths")
    parent = tmp_path.resolve()
    project = parent / "proj"
    (project / "src").mkdir(parents=True)
    (project / "src" / "a.py").write_text("a")
    (parent / "other").mkdir()
    (parent / "other" / "b.py").write_text("b")
    selection = find(project, [parent.as_posix() + "/*/src/*.py"], None)
    assert selection.paths == [project.as_posix() + "/src/a.py"]


def test_find_relative_base_leaving_root_is_skipped(tmp_path: Path):
    root = tmp_path / "root"
    (root / "b").mkdir(parents=True)
    (root / "b" / "ok.txt").write_text("ok")
    (tmp_path / "secret").mkdir()
    (tmp_path / "secret" / "key.pem").write_text("key")
    assert find(root, ["../secret/*"], None).paths == []
    assert find(root, ["b/../../secret/**"], None).paths == []
    assert find(root, ["**", "../secret/*"], None).paths == ["b/ok.txt"]


def test_find_relative_base_with_dot_dot_inside_root(find_root: Path):
    assert find(find_root, ["a/../b/*.test1"], None).paths == ["a/../b/a.test1"]


class FakeTree:
    """In-memory listing primitive that records every directory it lists."""

    def __init__(self, tree: Dict[str, List[Entry]]):
        self.tree = tree
        self.listed: List[str] = []

    def __call__(self, path: str) -> List[Entry]:
        key = path.replace(os.sep, "/")
        self.listed.append(key)
        if key not in self.tree:
            raise PermissionError(13, "Permission denied", path)
        return self.tree[key]


def test_find_only_lists_base_path_subtrees():
    lister = FakeTree(
        {
            "root/src": [Entry("app.py", False), Entry("pkg", True)],
            "root/src/pkg": [Entry("mod.py", False)],
        }
    )
    selection = find("root", ["src/**/*.py"], None, lister=lister)
    assert selection.paths == ["src/app.py", "src/pkg/mod.py"]
    assert lister.listed == ["root/src", "root/src/pkg"]


def test_find_listing_failure_aborts_and_discards_partial_results():
    lister = FakeTree(
        {
            "root": [Entry("a.txt", False), Entry("locked", True), Entry("z.txt", False)],
        }
    )
    with pytest.raises(WalkError) as exc_info:
        find("root", ["**"], None, lister=lister)
    assert exc_info.value.path.replace(os.sep, "/") == "root/locked"
    assert "Permission denied" in str(exc_info.value)


def test_find_does_not_descend_into_excluded_directory():
    lister = FakeTree(
        {
            "root": [Entry("keep", True), Entry("skip", True)],
            "root/keep": [Entry("f", False)],
        }
    )
    selection = find("root", ["**"], ["skip"], lister=lister)
    assert selection.paths == ["keep/f"]
    assert lister.listed == ["root", "root/keep"]


def test_find_descends_into_directories_that_do_not_match_includes():
    lister = FakeTree(
        {
            "root": [Entry("deep", True)],
            "root/deep": [Entry("er", True)],
            "root/deep/er": [Entry("x.py", False)],
        }
    )
    assert find("root", ["**/*.py"], None, lister=lister).paths == ["deep/er/x.py"]


def test_find_walks_trees_deeper_than_the_recursion_limit():
    depth = sys.getrecursionlimit() + 100
    tree: Dict[str, List[Entry]] = {}
    key = "root"
    for _ in range(depth):
        tree[key] = [Entry("d", True)]
        key += "/d"
    tree[key] = [Entry("leaf.py", False), Entry("leaf.txt", False)]
    lister = FakeTree(tree)
    selection = find("root", ["**/*.py"], None, lister=lister)
    assert selection.paths == ["d/" * depth + "leaf.py"]
    assert len(lister.listed) == depth + 1


def test_find_keeps_depth_first_order_across_siblings():
    lister = FakeTree(
        {
            "root": [Entry("a", True), Entry("m.py", False), Entry("z", True)],
            "root/a": [Entry("b", True), Entry("a.py", False)],
            "root/a/b": [Entry("b.py", False)],
            "root/z": [Entry("z.py", False)],
        }
    )
    selection = find("root", ["**/*.py"], None, lister=lister)
    assert selection.paths == ["a/b/b.py", "a/a.py", "m.py", "z/z.py"]


def test_list_directory_is_sorted_and_flags_directories(tmp_path: Path):
    (tmp_path / "b").write_text("b")
    (tmp_path / "a").mkdir()
    (tmp_path / "c").write_text("c")
    assert list_directory(str(tmp_path)) == [Entry("a", True), Entry("b", False), Entry("c", False)]


def test_selection_ok_without_errors():
    assert Selection().ok
    assert Selection(paths=["x"]).paths == ["x"]
