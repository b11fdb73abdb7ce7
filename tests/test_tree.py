"""Tests for path sorting and ASCII tree rendering."""

import random

import pytest

from ctxgen.document.models import TreeViewConfig
from ctxgen.tree import (
    AsciiTreeRenderer,
    FileTreeBuilder,
    TreeNode,
    format_size,
    normalize_path,
    sort_paths,
    sort_preserving_separators,
)


# ── sorter ─────────────────────────────────────────────────────────


class TestSortPaths:
    def test_empty(self):
        assert sort_paths([]) == []

    def test_single_item(self):
        assert sort_paths(["/path/to/dir"]) == ["/path/to/dir"]

    def test_depth_then_alphabetical(self):
        dirs = ["/c/deep/path", "/a", "/b/middle", "/a/child", "/b"]
        assert sort_paths(dirs) == ["/a", "/b", "/a/child", "/b/middle", "/c/deep/path"]

    def test_parents_before_children(self):
        dirs = ["/parent/child/grandchild", "/parent", "/parent/child", "/other"]
        assert sort_paths(dirs) == ["/other", "/parent", "/parent/child", "/parent/child/grandchild"]

    def test_windows_separators_normalized(self):
        assert sort_paths(["parent\\child", "parent", "other\\path"]) == [
            "other/path",
            "parent",
            "parent/child",
        ]

    def test_drive_letters_removed(self):
        assert sort_paths(["C:\\parent\\child", "C:\\parent", "D:\\other"]) == [
            "/other",
            "/parent",
            "/parent/child",
        ]

    def test_duplicates_removed(self):
        dirs = ["/path/one", "/path/two", "/path/one", "/path/three", "/path/two/"]
        assert sort_paths(dirs) == ["/path/one", "/path/three", "/path/two"]

    def test_accepts_iterators(self):
        assert sort_paths(iter(["/path/b", "/path/a"])) == ["/path/a", "/path/b"]


class TestSortPreservingSeparators:
    def test_keeps_original_spelling(self):
        dirs = ["windows\\path", "/unix/path", "windows\\another"]
        result = sort_preserving_separators(dirs)
        assert sorted(result) == sorted(dirs)
        assert result.index("windows\\another") < result.index("windows\\path")

    def test_keeps_drive_letters(self):
        dirs = ["C:\\windows\\path", "D:\\other\\path", "C:\\windows\\another"]
        assert set(sort_preserving_separators(dirs)) == set(dirs)


def test_normalize_path():
    assert normalize_path("C:\\a\\b\\") == "/a/b"
    assert normalize_path("a/b/") == "a/b"


# ── renderer ───────────────────────────────────────────────────────


class TestFormatSize:
    @pytest.mark.parametrize(
        "num,expected",
        [(0, "0.0 B"), (512, "512.0 B"), (2048, "2.0 KB"), (5 * 1024**2, "5.0 MB"), (3 * 1024**3, "3.0 GB")],
    )
    def test_units(self, num, expected):
        assert format_size(num) == expected


class TestAsciiTreeRenderer:
    def test_empty_tree_renders_empty_string(self):
        assert AsciiTreeRenderer().render(TreeNode(name="", is_dir=True)) == ""

    def test_glyphs_and_directories_first(self):
        tree = FileTreeBuilder().build_tree(
            ["/r/src/app.py", "/r/README.md", "/r/src/lib/util.py", "/r/docs/"], "/r"
        )
        assert tree == (
            "├── docs/\n"
            "├── src/\n"
            "│   ├── lib/\n"
            "│   │   └── util.py\n"
            "│   └── app.py\n"
            "└── README.md\n"
        )

    def test_max_depth(self):
        options = TreeViewConfig(max_depth=1)
        tree = FileTreeBuilder().build_tree(["/r/src/app.py", "/r/README.md"], "/r", options)
        assert tree == "├── src/\n└── README.md\n"

    def test_dirs_only(self):
        options = TreeViewConfig(include_files=False)
        tree = FileTreeBuilder().build_tree(["/r/src/app.py", "/r/README.md"], "/r", options)
        assert tree == "└── src/\n"

    def test_dir_context_annotation(self):
        options = TreeViewConfig(dir_context={"src": "application code"})
        tree = FileTreeBuilder().build_tree(["/r/src/app.py"], "/r", options)
        assert "src/ # application code" in tree

    def test_size_and_char_count_metadata(self, tmp_path):
        (tmp_path / "a.txt").write_text("x" * 1500)
        options = TreeViewConfig(show_size=True, show_char_count=True)
        tree = FileTreeBuilder().build_tree([str(tmp_path / "a.txt")], str(tmp_path), options)
        assert tree == "└── a.txt [1.5 KB, 1,500 chars]\n"

    def test_deterministic_under_permutation(self):
        paths = ["/r/a/b/c.py", "/r/a/d.py", "/r/e.py", "/r/a/b/f.py", "/r/g/h.py"]
        expected = FileTreeBuilder().build_tree(paths, "/r")
        for seed in range(5):
            shuffled = paths[:]
            random.Random(seed).shuffle(shuffled)
            assert FileTreeBuilder().build_tree(shuffled, "/r") == expected

    def test_windows_spellings_collapse(self):
        builder = FileTreeBuilder()
        assert builder.build_tree(["r\\a\\x.py", "r/a/x.py"], "r") == "└── a/\n    └── x.py\n"
