"""Exception hierarchy for context compilation."""

from __future__ import annotations


class CtxgenError(Exception):
    """Base class for all ctxgen errors."""


class ConfigurationError(CtxgenError):
    """A source or filter is malformed, or was routed to the wrong fetcher."""


class SourceFetchError(CtxgenError):
    """Runtime failure while fetching a single source."""


class GitCommandError(SourceFetchError):
    """A git invocation exited non-zero or timed out."""

    def __init__(self, command: list[str], returncode: int | None, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr.strip()
        msg = f"git command failed ({' '.join(command)})"
        if returncode is None:
            msg += ": timed out"
        else:
            msg += f": exit {returncode}"
        if self.stderr:
            msg += f": {self.stderr}"
        super().__init__(msg)


class DocumentWriteError(CtxgenError):
    """Output directory or file could not be written. Fatal for the document."""

    def __init__(self, path: str, cause: OSError) -> None:
        self.path = path
        super().__init__(f"Cannot write {path}: {cause}")
        self.__cause__ = cause


class CompilationCancelled(CtxgenError):
    """The run-level cancel token fired while a document was compiling."""
