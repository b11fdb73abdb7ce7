"""Platform-neutral path ordering where parents always precede their descendants."""

from __future__ import annotations

import re
from collections.abc import Iterable

_DRIVE_RE = re.compile(r"^[A-Za-z]:/")


def normalize_path(path: str) -> str:
    """Forward slashes, no trailing slash, no drive letter (``C:\\a\\b`` -> ``/a/b``)."""
    path = path.replace("\\", "/").rstrip("/")
    if _DRIVE_RE.match(path):
        path = path[2:]
    return path


def _sort_key(path: str) -> tuple[str, int, str]:
    return path.split("/", 1)[0], path.count("/"), path


def sort_paths(paths: Iterable[str]) -> list[str]:
    """Normalize, dedupe and order paths by top-level segment, then depth, then name."""
    normalized = {normalize_path(p) for p in paths}
    return sorted(normalized, key=_sort_key)


def sort_preserving_separators(paths: Iterable[str]) -> list[str]:
    """Same ordering as :func:`sort_paths`, returning the first original spelling of each path."""
    originals: dict[str, str] = {}
    for path in paths:
        originals.setdefault(normalize_path(path), path)
    return [originals[p] for p in sorted(originals, key=_sort_key)]
