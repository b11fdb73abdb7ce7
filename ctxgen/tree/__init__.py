from .renderer import AsciiTreeRenderer, FileTreeBuilder, TreeNode, format_size
from .sorter import normalize_path, sort_paths, sort_preserving_separators

__all__ = [
    "AsciiTreeRenderer",
    "FileTreeBuilder",
    "TreeNode",
    "format_size",
    "normalize_path",
    "sort_paths",
    "sort_preserving_separators",
]
