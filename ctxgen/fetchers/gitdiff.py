"""Git diff sources: changed files between two revisions rendered as diff blocks."""

from __future__ import annotations

import logging
from pathlib import Path

from ctxgen.document.models import GitDiffSource, TreeViewConfig
from ctxgen.errors import SourceFetchError
from ctxgen.fetchers.base import FetchContext, SourceFetcher
from ctxgen.finder.matcher import FileHandle, FileMatcher
from ctxgen.finder.patterns import match_content
from ctxgen.lib.content import ContentBuilder
from ctxgen.lib.git import CommitRangeParser, GitClient, RevisionSpec
from ctxgen.modifiers.base import ModifiersApplier
from ctxgen.tree.renderer import FileTreeBuilder

logger = logging.getLogger(__name__)


class GitDiffSourceFetcher(SourceFetcher):
    kind = "git_diff"
    source_type = GitDiffSource

    def __init__(
        self,
        context: FetchContext,
        client: GitClient | None = None,
        parser: CommitRangeParser | None = None,
    ) -> None:
        super().__init__(context)
        self.client = client or GitClient(cache=context.repositories)
        self.parser = parser or CommitRangeParser()
        self.matcher = FileMatcher(cancel=context.cancel)

    def _fetch(self, source: GitDiffSource, applier: ModifiersApplier) -> str:
        repo = self.context.resolve(source.repository)
        if not self.client.is_valid_repository(repo):
            raise SourceFetchError(f'"{source.repository}" is not a valid Git repository')

        resolved = self.parser.resolve(source.commit)
        spec = RevisionSpec.from_resolved(resolved)
        logger.info("git diff %s resolved to %s in %s", source.commit, resolved, repo)

        changed = self.client.changed_files(repo, spec)
        # Size and date make no sense for files that may no longer exist.
        path_filters = source.filters().model_copy(
            update={"contains": [], "not_contains": [], "size": [], "date": []}
        )
        handles = self.matcher.filter(
            path_filters, (FileHandle(path=repo / name, relative_path=name) for name in changed)
        )

        # None marks a file whose diff could not be read; it is reported inline.
        diffs: dict[str, str | None] = {}
        failures: dict[str, str] = {}
        for handle in handles:
            self.context.cancel.check()
            name = handle.relative_path
            try:
                diff = self.client.file_diff(repo, spec, name)
            except SourceFetchError as e:
                logger.error("git diff for %s failed: %s", name, e)
                diffs[name] = None
                failures[name] = str(e)
                continue
            if source.contains and not any(match_content(p, diff) for p in source.contains):
                continue
            if any(match_content(p, diff) for p in source.not_contains):
                continue
            diffs[name] = diff

        builder = ContentBuilder()
        builder.add_title(f"Git Diff for Commit Range: {source.commit}", 1)
        if not diffs:
            builder.add_text("No changes found in this commit range.")
            return builder.build()

        builder.add_title("Summary of Changes", 2)
        tree = FileTreeBuilder().build_tree(
            [str(repo / name) for name in diffs], str(repo), TreeViewConfig()
        )
        builder.add_tree_view(tree)

        for name, diff in diffs.items():
            if diff is None:
                builder.add_title(f"Diff for {name}", 2)
                builder.add_text(f"Error: {failures[name]}")
                continue
            if source.show_stats:
                self._add_stats(builder, repo, spec, name)
            builder.add_title(f"Diff for {name}", 2)
            builder.add_code_block(applier.apply(diff, name), "diff")

        return builder.build()

    def _add_stats(self, builder: ContentBuilder, repo: Path, spec: RevisionSpec, name: str) -> None:
        self.context.cancel.check()
        try:
            stats = self.client.file_stats(repo, spec, name)
        except SourceFetchError as e:
            logger.error("git diff --stat for %s failed: %s", name, e)
            builder.add_title(f"Stats for {name}", 2)
            builder.add_text(f"Error: {e}")
            return
        if stats:
            builder.add_title(f"Stats for {name}", 2)
            builder.add_code_block(stats)
