"""Installed-package discovery from a manifest and its lock file."""

from __future__ import annotations

import fnmatch
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from pydantic import BaseModel

from ctxgen.errors import SourceFetchError

logger = logging.getLogger(__name__)


class PackageAuthor(BaseModel):
    name: str = ""
    email: str = ""


class PackageInfo(BaseModel):
    """One installed package and where its sources live on disk."""

    name: str
    version: str = "unknown"
    path: str
    description: str = ""
    authors: list[PackageAuthor] = []
    license: list[str] = []
    homepage: str = ""
    source_dirs: list[str] = []

    def format_authors(self) -> str:
        parts = []
        for author in self.authors:
            if author.email:
                parts.append(f"{author.name} <{author.email}>")
            elif author.name:
                parts.append(author.name)
        return ", ".join(parts)


class PackageProvider(ABC):
    """Resolves a manifest directory to the packages installed for it."""

    name: str = ""

    @abstractmethod
    def packages(self, manifest_dir: Path, include_dev: bool = False) -> list[PackageInfo]:
        ...

    def filter(self, packages: list[PackageInfo], patterns: list[str]) -> list[PackageInfo]:
        """Keep packages whose name matches any glob; no patterns keeps everything."""
        if not patterns:
            return packages
        return [p for p in packages if any(fnmatch.fnmatch(p.name, pat) for pat in patterns)]


def _read_json(path: Path) -> dict:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise SourceFetchError(f"{path.name} not found in {path.parent}") from e
    except (json.JSONDecodeError, OSError) as e:
        raise SourceFetchError(f"Cannot read {path}: {e}") from e


class ComposerPackageProvider(PackageProvider):
    """PHP Composer: ``composer.json`` + ``composer.lock`` + vendor directory."""

    name = "composer"

    _FALLBACK_DIRS = ("src", "lib", "library")

    def packages(self, manifest_dir: Path, include_dev: bool = False) -> list[PackageInfo]:
        manifest = _read_json(manifest_dir / "composer.json")
        lock_path = manifest_dir / "composer.lock"
        lock = _read_json(lock_path) if lock_path.exists() else {}

        versions: dict[str, str] = {}
        for entry in [*lock.get("packages", []), *lock.get("packages-dev", [])]:
            if "name" in entry:
                versions[entry["name"]] = entry.get("version", "unknown")

        vendor = manifest_dir / manifest.get("config", {}).get("vendor-dir", "vendor")
        required = dict(manifest.get("require", {}))
        if include_dev:
            required.update(manifest.get("require-dev", {}))

        result: list[PackageInfo] = []
        for name in sorted(required):
            if name == "php" or name.startswith("ext-"):
                continue
            package_dir = vendor / name
            if not package_dir.is_dir():
                logger.warning("package %s is not installed at %s", name, package_dir)
                continue
            result.append(self._describe(name, package_dir, versions.get(name, required[name])))
        return result

    def _describe(self, name: str, package_dir: Path, version: str) -> PackageInfo:
        meta_path = package_dir / "composer.json"
        meta = _read_json(meta_path) if meta_path.exists() else {}
        license_ = meta.get("license", [])
        return PackageInfo(
            name=name,
            version=version,
            path=str(package_dir),
            description=meta.get("description", ""),
            authors=[PackageAuthor(**{k: a.get(k, "") for k in ("name", "email")}) for a in meta.get("authors", [])],
            license=[license_] if isinstance(license_, str) else list(license_),
            homepage=meta.get("homepage", ""),
            source_dirs=self._source_dirs(package_dir, meta.get("autoload", {})),
        )

    def _source_dirs(self, package_dir: Path, autoload: dict) -> list[str]:
        dirs: list[str] = []
        for key in ("psr-4", "psr-0"):
            for paths in autoload.get(key, {}).values():
                for p in [paths] if isinstance(paths, str) else paths:
                    dirs.append(p.rstrip("/") or ".")
        if not dirs:
            dirs = [p.rstrip("/") or "." for p in autoload.get("classmap", []) if isinstance(p, str)]
        if not dirs:
            dirs = [d for d in self._FALLBACK_DIRS if (package_dir / d).is_dir()][:1] or ["."]
        # dedupe, keep declaration order
        return list(dict.fromkeys(dirs))


PACKAGE_PROVIDERS: dict[str, type[PackageProvider]] = {
    "composer": ComposerPackageProvider,
}
