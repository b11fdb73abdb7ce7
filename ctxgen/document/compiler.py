"""DocumentCompiler: turns one Document into a file, isolating per-source failures."""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from ctxgen.document.models import Document, Source
from ctxgen.errors import CompilationCancelled, DocumentWriteError
from ctxgen.fetchers.base import FetchContext, SourceFetcherRegistry
from ctxgen.modifiers.base import ModifierRegistry, ModifiersApplier

logger = logging.getLogger(__name__)

SOURCE_SEPARATOR = "\n\n---\n\n"

_BLANK_LINE = re.compile(r"^[ \t]+$", re.MULTILINE)
_BLANK_RUN = re.compile(r"\n{3,}")


class CompileState(enum.Enum):
    SKIP = "skip"
    COMPILING = "compiling"
    DONE = "done"


# ------------------------------------------------------------------
# Results
# ------------------------------------------------------------------


@dataclass(frozen=True)
class SourceError:
    """A source that failed to fetch, and why."""

    source: Source
    cause: BaseException

    @property
    def message(self) -> str:
        return str(self.cause) or type(self.cause).__name__

    def __str__(self) -> str:
        label = self.source.description or self.source.type
        return f"{label}: {self.message}"


class ErrorCollection:
    """Append-only, ordered record of source failures for one compile."""

    def __init__(self) -> None:
        self._errors: list[SourceError] = []

    def add(self, source: Source, cause: BaseException) -> SourceError:
        error = SourceError(source=source, cause=cause)
        self._errors.append(error)
        return error

    def __iter__(self) -> Iterator[SourceError]:
        return iter(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def __getitem__(self, index: int) -> SourceError:
        return self._errors[index]


@dataclass
class CompiledDocument:
    content: str
    errors: ErrorCollection = field(default_factory=ErrorCollection)
    output_path: Path | None = None
    skipped: bool = False

    @property
    def state(self) -> CompileState:
        return CompileState.SKIP if self.skipped else CompileState.DONE


def normalize_content(text: str) -> str:
    """Empty whitespace-only lines and collapse blank-line runs to one."""
    return _BLANK_RUN.sub("\n\n", _BLANK_LINE.sub("", text))


# ------------------------------------------------------------------
# Compiler
# ------------------------------------------------------------------


class DocumentCompiler:
    """Compiles documents against a fetcher registry.

    One instance may compile many documents, including concurrently: all
    per-document state lives in :meth:`compile`.
    """

    def __init__(
        self,
        registry: SourceFetcherRegistry,
        modifier_registry: ModifierRegistry,
        context: FetchContext,
    ) -> None:
        self.registry = registry
        self.modifier_registry = modifier_registry
        self.context = context

    def output_path(self, document: Document) -> Path:
        return self.context.resolve(document.output_path)

    def compile(self, document: Document) -> CompiledDocument:
        """Compile *document* and write it.

        Source failures are recorded and reported inline. Only a failed
        write (:class:`DocumentWriteError`) or cancellation
        (:class:`CompilationCancelled`) escapes.
        """
        path = self.output_path(document)
        if not document.overwrite and path.exists():
            logger.warning("skipping '%s': %s exists and overwrite is off", document.description, path)
            return CompiledDocument(content="", output_path=path, skipped=True)

        logger.info("compiling '%s' (%d sources)", document.description, len(document.sources))
        errors = ErrorCollection()
        parts = [f"## DOCUMENT: {document.description}\n\n"]
        if document.tags:
            parts.append(f"TAGS: {', '.join(sorted(document.tags))}\n\n")

        for source in document.sources:
            self.context.cancel.check()
            parts.append(self._compile_source(document, source, errors))

        content = normalize_content("".join(parts))
        self._write(path, content)
        if errors:
            logger.warning("'%s' compiled with %d source error(s)", document.description, len(errors))
        return CompiledDocument(content=content, errors=errors, output_path=path)

    def _compile_source(self, document: Document, source: Source, errors: ErrorCollection) -> str:
        header = f"SOURCE: {source.description}\n" if source.description else ""
        applier = ModifiersApplier(self.modifier_registry, source.modifiers).with_modifiers(
            document.modifiers
        )
        try:
            fetcher = self.registry.get(source)
            body = fetcher.fetch(source, applier)
        except CompilationCancelled:
            raise
        except Exception as e:
            error = errors.add(source, e)
            logger.error("source '%s' in '%s' failed: %s", source.description or source.type, document.description, e)
            body = f"Error: {error.message}"
        return header + body + SOURCE_SEPARATOR

    @staticmethod
    def _write(path: Path, content: str) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise DocumentWriteError(str(path), e) from e
        logger.info("wrote %s (%d bytes)", path, len(content.encode("utf-8")))


# ------------------------------------------------------------------
# Batch compilation
# ------------------------------------------------------------------


@dataclass
class CompileReport:
    """Outcome of one document in a batch: a result, or the error that stopped it."""

    document: Document
    result: CompiledDocument | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status(self) -> str:
        if self.error is not None:
            return "cancelled" if isinstance(self.error, CompilationCancelled) else "failed"
        if self.result is not None and self.result.skipped:
            return "skipped"
        if self.result is not None and self.result.errors:
            return "partial"
        return "ok"


def compile_all(
    documents: list[Document],
    compiler: DocumentCompiler,
    max_workers: int = 4,
) -> list[CompileReport]:
    """Compile documents concurrently. Reports come back in input order.

    Cancellation goes through the compiler's context token, the same one the
    fetchers poll. If waiting is interrupted (``KeyboardInterrupt``), the token
    fires and queued documents are dropped; the exception propagates without
    waiting for in-flight work.
    """
    token = compiler.context.cancel

    def run(document: Document) -> CompileReport:
        try:
            token.check()
            return CompileReport(document=document, result=compiler.compile(document))
        except (DocumentWriteError, CompilationCancelled) as e:
            logger.error("document '%s' not written: %s", document.description, e)
            return CompileReport(document=document, error=e)

    if not documents:
        return []
    pool = ThreadPoolExecutor(max_workers=max(1, max_workers), thread_name_prefix="ctxgen")
    try:
        reports = list(pool.map(run, documents))
    except BaseException:
        token.cancel("interrupted")
        pool.shutdown(wait=False, cancel_futures=True)
        raise
    pool.shutdown()
    return reports
