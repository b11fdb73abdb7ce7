"""Fetcher interface, per-run context and the kind -> fetcher registry."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from ctxgen.document.models import Source
from ctxgen.errors import ConfigurationError
from ctxgen.lib.cancel import CancelToken
from ctxgen.lib.git import RepositoryCache
from ctxgen.lib.variables import VariableResolver
from ctxgen.modifiers.base import ModifiersApplier

logger = logging.getLogger(__name__)

_LANGUAGES = {
    "py": "python",
    "pyi": "python",
    "php": "php",
    "js": "javascript",
    "mjs": "javascript",
    "jsx": "jsx",
    "ts": "typescript",
    "tsx": "tsx",
    "go": "go",
    "rs": "rust",
    "rb": "ruby",
    "java": "java",
    "kt": "kotlin",
    "cs": "csharp",
    "c": "c",
    "h": "c",
    "cpp": "cpp",
    "sh": "bash",
    "md": "markdown",
    "yml": "yaml",
    "yaml": "yaml",
    "json": "json",
    "toml": "toml",
    "xml": "xml",
    "html": "html",
    "css": "css",
    "sql": "sql",
}


def language_for(extension: str) -> str:
    ext = extension.lower().lstrip(".")
    return _LANGUAGES.get(ext, ext)


@dataclass(frozen=True)
class FetchContext:
    """Everything a fetcher needs beyond the source itself. One per compile run."""

    base_path: Path
    cancel: CancelToken = field(default_factory=CancelToken)
    repositories: RepositoryCache = field(default_factory=RepositoryCache)
    variables: VariableResolver = field(default_factory=VariableResolver)

    def resolve(self, path: str | Path) -> Path:
        p = Path(path)
        return p if p.is_absolute() else self.base_path / p

    def display_path(self, path: Path) -> str:
        """Path relative to the base path when possible, POSIX separators."""
        try:
            return path.resolve().relative_to(self.base_path.resolve()).as_posix()
        except ValueError:
            return path.as_posix()


class SourceFetcher(ABC):
    """Turns one source of a given kind into text.

    Only a source of the wrong kind raises :class:`ConfigurationError`;
    sub-item failures are reported inline in the returned text.
    """

    kind: str = ""
    source_type: type[Source] = Source

    def __init__(self, context: FetchContext) -> None:
        self.context = context

    def supports(self, source: Source) -> bool:
        return isinstance(source, self.source_type)

    def fetch(self, source: Source, applier: ModifiersApplier) -> str:
        if not self.supports(source):
            raise ConfigurationError(
                f"{type(self).__name__} cannot fetch a '{source.type}' source"
            )
        self.context.cancel.check()
        return self._fetch(source, applier)

    @abstractmethod
    def _fetch(self, source, applier: ModifiersApplier) -> str:
        ...

    def close(self) -> None:
        """Release resources this fetcher created itself."""


class SourceFetcherRegistry:
    def __init__(self, fetchers: list[SourceFetcher] | None = None) -> None:
        self._fetchers: dict[str, SourceFetcher] = {}
        for fetcher in fetchers or []:
            self.register(fetcher)

    def register(self, fetcher: SourceFetcher) -> None:
        self._fetchers[fetcher.kind] = fetcher

    def get(self, source: Source) -> SourceFetcher:
        fetcher = self._fetchers.get(source.type)
        if fetcher is None:
            raise ConfigurationError(f"No fetcher registered for source type '{source.type}'")
        return fetcher

    def kinds(self) -> list[str]:
        return sorted(self._fetchers)

    def close(self) -> None:
        for fetcher in self._fetchers.values():
            fetcher.close()

    def __enter__(self) -> SourceFetcherRegistry:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
