"""Multi-predicate file selection over directories and explicit files."""

from __future__ import annotations

import glob
import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from ctxgen.document.models import FilterSpec, TreeViewConfig
from ctxgen.errors import SourceFetchError
from ctxgen.finder.comparators import DateComparator, NumberComparator
from ctxgen.finder.patterns import contains_wildcard, match_content, match_name, match_path
from ctxgen.lib.cancel import CancelToken
from ctxgen.tree.renderer import FileTreeBuilder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileHandle:
    """A matched file: absolute location plus its path relative to the search root."""

    path: Path
    relative_path: str

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def extension(self) -> str:
        return self.path.suffix.lstrip(".")

    def read_text(self) -> str:
        return self.path.read_text(encoding="utf-8", errors="replace")


@dataclass
class FinderResult:
    files: list[FileHandle] = field(default_factory=list)
    tree_view: str = ""

    def __len__(self) -> int:
        return len(self.files)


class _Predicates:
    """Compiled form of a :class:`FilterSpec`, built once per find() call."""

    def __init__(self, spec: FilterSpec, now: datetime | None = None) -> None:
        self.spec = spec
        self.sizes = [NumberComparator.parse(s) for s in spec.size]
        self.dates = [DateComparator.parse(d, now) for d in spec.date]
        # Fail fast on malformed patterns rather than at first candidate.
        for pattern in spec.file_pattern:
            match_name(pattern, "")
        for pattern in [*spec.path, *spec.not_path]:
            match_path(pattern, "")

    def accepts(self, handle: FileHandle) -> bool:
        spec = self.spec
        if spec.file_pattern and not any(match_name(p, handle.name) for p in spec.file_pattern):
            return False
        if spec.path and not any(match_path(p, handle.relative_path) for p in spec.path):
            return False
        if any(match_path(p, handle.relative_path) for p in spec.not_path):
            return False
        if self.sizes or self.dates:
            try:
                st = handle.path.stat()
            except OSError:
                return False
            if not all(c.test(st.st_size) for c in self.sizes):
                return False
            if not all(c.test(st.st_mtime) for c in self.dates):
                return False
        if spec.contains or spec.not_contains:
            try:
                content = handle.read_text()
            except OSError:
                return False
            if spec.contains and not any(match_content(p, content) for p in spec.contains):
                return False
            if any(match_content(p, content) for p in spec.not_contains):
                return False
        return True


class FileMatcher:
    """Finds files under a set of roots and renders the tree of everything matched."""

    def __init__(
        self,
        tree_builder: FileTreeBuilder | None = None,
        cancel: CancelToken | None = None,
    ) -> None:
        self._tree_builder = tree_builder or FileTreeBuilder()
        self._cancel = cancel

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def find(
        self,
        spec: FilterSpec,
        directories: list[str | Path],
        files: list[str | Path] | None = None,
        base_path: str | Path = ".",
        tree_view: TreeViewConfig | None = None,
    ) -> FinderResult:
        """Enumerate, filter and order files.

        The tree view covers every match; ``spec.max_files`` only truncates
        the returned file list.
        """
        predicates = _Predicates(spec)
        base = Path(base_path)
        candidates: dict[Path, FileHandle] = {}

        for directory in directories:
            root = Path(directory)
            if not root.is_dir():
                raise SourceFetchError(f"Directory does not exist: {root}")
            for handle in self._walk(root, spec.ignore_unreadable_dirs):
                candidates.setdefault(handle.path.resolve(), handle)

        for file in files or []:
            path = Path(file)
            if not path.is_file():
                raise SourceFetchError(f"File does not exist: {path}")
            try:
                rel = path.resolve().relative_to(base.resolve()).as_posix()
            except ValueError:
                rel = path.name
            handle = FileHandle(path=path, relative_path=rel)
            candidates.setdefault(path.resolve(), handle)

        matched = self._filter(predicates, candidates.values())
        logger.debug("matched %d of %d candidate files", len(matched), len(candidates))

        view = tree_view or TreeViewConfig()
        rendered = ""
        if view.enabled and matched:
            rendered = self._tree_builder.build_tree(
                [str(h.path) for h in matched], str(base), view
            )

        if spec.max_files > 0:
            matched = matched[: spec.max_files]
        return FinderResult(files=matched, tree_view=rendered)

    def filter(self, spec: FilterSpec, handles: Iterable[FileHandle]) -> list[FileHandle]:
        """Apply *spec* to handles that are already known, ordered by path."""
        return self._filter(_Predicates(spec), handles)

    def find_in(
        self,
        spec: FilterSpec,
        source_paths: list[str],
        base_path: str | Path,
        tree_view: TreeViewConfig | None = None,
    ) -> FinderResult:
        """Split configured source paths into directories and files, then :meth:`find`.

        Relative paths resolve against *base_path*; glob expressions are expanded.
        """
        directories, files = self.split_paths(source_paths, base_path)
        return self.find(spec, directories, files, base_path, tree_view)

    @staticmethod
    def split_paths(source_paths: list[str], base_path: str | Path) -> tuple[list[Path], list[Path]]:
        base = Path(base_path)
        directories: list[Path] = []
        files: list[Path] = []
        for raw in source_paths:
            path = Path(raw) if Path(raw).is_absolute() else base / raw
            if contains_wildcard(raw):
                expanded = sorted(glob.glob(str(path), recursive=True))
                if not expanded:
                    raise SourceFetchError(f"No paths match {raw!r}")
                targets = [Path(p) for p in expanded]
            else:
                targets = [path]
            for target in targets:
                if target.is_dir():
                    directories.append(target)
                elif target.is_file():
                    files.append(target)
                else:
                    raise SourceFetchError(f"Path does not exist: {target}")
        return directories, files

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _filter(self, predicates: _Predicates, handles: Iterable[FileHandle]) -> list[FileHandle]:
        kept = []
        for handle in handles:
            if self._cancel is not None:
                self._cancel.check()
            if predicates.accepts(handle):
                kept.append(handle)
        return sorted(kept, key=lambda h: str(h.path))

    def _walk(self, root: Path, ignore_unreadable: bool):
        """Yield every file under *root*, following symlinks without looping."""
        visited: set[tuple[int, int]] = set()

        def on_error(err: OSError) -> None:
            if ignore_unreadable:
                logger.debug("skipping unreadable directory %s: %s", err.filename, err)
                return
            raise SourceFetchError(f"Cannot read directory {err.filename}: {err.strerror}") from err

        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error, followlinks=True):
            try:
                st = os.stat(dirpath)
            except OSError as e:
                on_error(e)
                dirnames[:] = []
                continue
            key = (st.st_dev, st.st_ino)
            if key in visited:
                dirnames[:] = []
                continue
            visited.add(key)
            dirnames.sort()
            for filename in sorted(filenames):
                full = Path(dirpath) / filename
                if not full.is_file():
                    continue
                rel = full.relative_to(root).as_posix()
                yield FileHandle(path=full, relative_path=rel)

