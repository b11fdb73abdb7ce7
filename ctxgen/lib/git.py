"""Git subprocess wrapper, repository-validity cache and commit range aliases."""

from __future__ import annotations

import logging
import re
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path

from ctxgen.config.models import GitConfig
from ctxgen.errors import GitCommandError

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Commit range aliases
# ------------------------------------------------------------------

COMMIT_RANGE_PRESETS: dict[str, str] = {
    "last": "HEAD~1..HEAD",
    "last-2": "HEAD~2..HEAD",
    "last-3": "HEAD~3..HEAD",
    "last-5": "HEAD~5..HEAD",
    "last-10": "HEAD~10..HEAD",
    "today": "HEAD@{0:00:00}..HEAD",
    "last-24h": "HEAD@{24.hours.ago}..HEAD",
    "yesterday": "HEAD@{1.days.ago}..HEAD@{0.days.ago}",
    "last-week": "HEAD@{1.week.ago}..HEAD",
    "last-2weeks": "HEAD@{2.weeks.ago}..HEAD",
    "last-month": "HEAD@{1.month.ago}..HEAD",
    "last-quarter": "HEAD@{3.months.ago}..HEAD",
    "last-year": "HEAD@{1.year.ago}..HEAD",
    "unstaged": "unstaged",
    "staged": "staged",
    "wip": "HEAD~1..HEAD",
    "main-diff": "main..HEAD",
    "master-diff": "master..HEAD",
    "develop-diff": "develop..HEAD",
    "stash": "stash@{0}",
    "stash-last": "stash@{0}",
    "stash-1": "stash@{1}",
    "stash-2": "stash@{2}",
    "stash-3": "stash@{3}",
}

_HASH = re.compile(r"^[0-9a-f]{7,40}$")
_HASH_WITH_PATH = re.compile(r"^([0-9a-f]{7,40}):(.+)$")
_TAG_OR_BRANCH = re.compile(r"^(?:tag|branch):(.+)$")
_RANGE = re.compile(r"^[^.]+\.\.[^.]+$")
_SINCE = re.compile(r"^since:(.+)$")
_STASH_REF = re.compile(r"^stash@\{.+\}$")
_STASH_INDEX = re.compile(r"^stash:(\d+)$")


class CommitRangeParser:
    """Resolves friendly aliases (``last``, ``staged``, ``abc1234``...) to git revision expressions."""

    def resolve(self, expression: str) -> str:
        expression = expression.strip()
        if expression in COMMIT_RANGE_PRESETS:
            return COMMIT_RANGE_PRESETS[expression]
        if _HASH.match(expression):
            return f"{expression}~1..{expression}"
        if m := _HASH_WITH_PATH.match(expression):
            return f"{m.group(1)} -- {m.group(2)}"
        if m := _TAG_OR_BRANCH.match(expression):
            return f"{m.group(1)}~1..{m.group(1)}"
        if _RANGE.match(expression) or _STASH_REF.match(expression):
            return expression
        if m := _SINCE.match(expression):
            return f"{m.group(1)}..HEAD"
        if m := _STASH_INDEX.match(expression):
            return f"stash@{{{m.group(1)}}}"
        # Let git judge anything else.
        return expression


@dataclass(frozen=True)
class RevisionSpec:
    """A resolved revision split into git diff arguments and an optional pathspec."""

    kind: str  # staged | unstaged | stash | range
    revision: str = ""
    pathspec: str = ""

    @classmethod
    def from_resolved(cls, resolved: str) -> RevisionSpec:
        if resolved == "staged":
            return cls(kind="staged")
        if resolved == "unstaged":
            return cls(kind="unstaged")
        revision, _, pathspec = resolved.partition(" -- ")
        if _STASH_REF.match(revision):
            return cls(kind="stash", revision=revision, pathspec=pathspec.strip())
        return cls(kind="range", revision=revision, pathspec=pathspec.strip())

    def diff_args(self) -> list[str]:
        if self.kind == "staged":
            return ["diff", "--cached"]
        if self.kind == "unstaged":
            return ["diff"]
        if self.kind == "stash":
            return ["diff", f"{self.revision}^1", self.revision]
        return ["diff", self.revision]


# ------------------------------------------------------------------
# Client
# ------------------------------------------------------------------


class RepositoryCache:
    """Memoizes repository validity. Owned by the caller and safe to share across threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._valid: dict[str, bool] = {}

    def get(self, repository: str) -> bool | None:
        with self._lock:
            return self._valid.get(repository)

    def set(self, repository: str, valid: bool) -> None:
        with self._lock:
            self._valid[repository] = valid

    def __len__(self) -> int:
        with self._lock:
            return len(self._valid)


class GitClient:
    """Runs git commands in a repository with a per-call timeout."""

    def __init__(self, config: GitConfig | None = None, cache: RepositoryCache | None = None) -> None:
        self.config = config or GitConfig()
        self.cache = cache if cache is not None else RepositoryCache()

    def run(self, repository: str | Path, args: list[str]) -> str:
        command = [self.config.binary, *args]
        logger.debug("git %s (in %s)", " ".join(args), repository)
        try:
            result = subprocess.run(
                command,
                cwd=str(repository),
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.config.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise GitCommandError(command, None, f"timed out after {self.config.timeout}s") from e
        except FileNotFoundError as e:
            raise GitCommandError(command, None, f"{self.config.binary} not found") from e
        if result.returncode != 0:
            raise GitCommandError(command, result.returncode, result.stderr)
        return result.stdout

    def is_valid_repository(self, repository: str | Path) -> bool:
        key = str(Path(repository).resolve())
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        valid = False
        if Path(repository).is_dir():
            try:
                valid = self.run(repository, ["rev-parse", "--is-inside-work-tree"]).strip() == "true"
            except GitCommandError as e:
                logger.debug("repository check failed for %s: %s", repository, e)
        self.cache.set(key, valid)
        return valid

    def changed_files(self, repository: str | Path, spec: RevisionSpec) -> list[str]:
        args = [*spec.diff_args(), "--name-only"]
        if spec.pathspec:
            args += ["--", spec.pathspec]
        out = self.run(repository, args)
        return [line.strip() for line in out.splitlines() if line.strip()]

    def file_diff(self, repository: str | Path, spec: RevisionSpec, path: str) -> str:
        return self.run(repository, [*spec.diff_args(), "--", path])

    def file_stats(self, repository: str | Path, spec: RevisionSpec, path: str) -> str:
        return self.run(repository, [*spec.diff_args(), "--stat", "--", path]).strip()
