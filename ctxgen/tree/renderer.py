"""ASCII directory tree rendering for file listings."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from ctxgen.document.models import TreeViewConfig
from ctxgen.tree.sorter import normalize_path, sort_paths

logger = logging.getLogger(__name__)

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "


@dataclass
class TreeNode:
    """One entry in the tree; ``path`` is the on-disk location used for metadata."""

    name: str
    is_dir: bool = False
    path: str | None = None
    children: dict[str, TreeNode] = field(default_factory=dict)

    def child(self, name: str) -> TreeNode:
        if name not in self.children:
            self.children[name] = TreeNode(name=name)
        return self.children[name]

    def ordered_children(self) -> list[TreeNode]:
        """Directories first, then files, each group sorted by name."""
        return sorted(self.children.values(), key=lambda n: (not n.is_dir, n.name))

    def files(self) -> Iterable[TreeNode]:
        for node in self.children.values():
            if node.is_dir:
                yield from node.files()
            elif node.path:
                yield node


def format_size(num_bytes: int) -> str:
    size = float(max(num_bytes, 0))
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def _file_size(path: str) -> int:
    try:
        return os.path.getsize(path)
    except OSError:
        return 0


def _file_mtime(path: str) -> float:
    try:
        return os.path.getmtime(path)
    except OSError:
        return 0.0


def _char_count(path: str) -> int:
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return len(f.read())
    except OSError:
        return 0


class AsciiTreeRenderer:
    """Draws a :class:`TreeNode` hierarchy with box-drawing glyphs."""

    def render(self, root: TreeNode, options: TreeViewConfig | None = None) -> str:
        options = options or TreeViewConfig()
        lines: list[str] = []
        self._render_children(root, "", "", 1, options, lines)
        if not lines:
            return ""
        return "\n".join(lines) + "\n"

    def _render_children(
        self,
        node: TreeNode,
        prefix: str,
        rel_path: str,
        depth: int,
        options: TreeViewConfig,
        lines: list[str],
    ) -> None:
        if options.max_depth and depth > options.max_depth:
            return
        visible = [
            c for c in node.ordered_children() if c.is_dir or options.include_files
        ]
        for index, child in enumerate(visible):
            is_last = index == len(visible) - 1
            child_rel = f"{rel_path}/{child.name}" if rel_path else child.name
            line = prefix + (LAST_BRANCH if is_last else BRANCH) + child.name
            if child.is_dir:
                line += "/"
            line += self._metadata(child, options)
            if child.is_dir and child_rel in options.dir_context:
                line += f" # {options.dir_context[child_rel]}"
            lines.append(line)
            if child.is_dir:
                self._render_children(
                    child,
                    prefix + (SPACE if is_last else PIPE),
                    child_rel,
                    depth + 1,
                    options,
                    lines,
                )

    def _metadata(self, node: TreeNode, options: TreeViewConfig) -> str:
        if not (options.show_size or options.show_last_modified or options.show_char_count):
            return ""
        files = [n.path for n in node.files()] if node.is_dir else [node.path] if node.path else []
        parts: list[str] = []
        if options.show_size:
            parts.append(format_size(sum(_file_size(p) for p in files)))
        if options.show_last_modified:
            latest = max((_file_mtime(p) for p in files), default=0.0)
            day = date.fromtimestamp(latest) if latest else date.today()
            parts.append(day.isoformat())
        if options.show_char_count:
            chars = sum(_char_count(p) for p in files)
            if chars > 0:
                parts.append(f"{chars:,} chars")
        return f" [{', '.join(parts)}]" if parts else ""


class FileTreeBuilder:
    """Turns a flat list of paths into a rendered tree relative to a base path."""

    def __init__(self, renderer: AsciiTreeRenderer | None = None) -> None:
        self._renderer = renderer or AsciiTreeRenderer()

    def build(self, paths: Iterable[str], base_path: str) -> TreeNode:
        # Several spellings can normalize to one path; pick deterministically.
        spellings: dict[str, list[str]] = {}
        for raw in paths:
            spellings.setdefault(normalize_path(raw), []).append(raw)

        base = normalize_path(base_path)
        root = TreeNode(name="", is_dir=True)
        for norm in sort_paths(spellings):
            originals = spellings[norm]
            rel = norm
            if base and (norm == base or norm.startswith(base + "/")):
                rel = norm[len(base):]
            parts = [p for p in rel.split("/") if p]
            if not parts:
                continue
            marked_dir = any(o.endswith(("/", "\\")) for o in originals)
            full_path = min(originals).rstrip("/\\")
            is_dir = marked_dir or os.path.isdir(full_path)

            node = root
            for part in parts[:-1]:
                node = node.child(part)
                node.is_dir = True
            leaf = node.child(parts[-1])
            leaf.is_dir = leaf.is_dir or is_dir
            if not leaf.is_dir:
                leaf.path = full_path
        return root

    def build_tree(
        self,
        paths: Iterable[str],
        base_path: str,
        options: TreeViewConfig | None = None,
    ) -> str:
        """Render *paths* as an ASCII tree. Empty input renders an empty string."""
        root = self.build(paths, base_path)
        logger.debug("rendering tree for %d top-level entries", len(root.children))
        return self._renderer.render(root, options)
