"""Local file sources: matched files as fenced code blocks, optionally preceded by a tree."""

from __future__ import annotations

import logging

from ctxgen.document.models import FileSource
from ctxgen.fetchers.base import FetchContext, SourceFetcher, language_for
from ctxgen.finder.matcher import FileMatcher
from ctxgen.lib.content import ContentBuilder
from ctxgen.modifiers.base import ModifiersApplier

logger = logging.getLogger(__name__)


class FileSourceFetcher(SourceFetcher):
    kind = "file"
    source_type = FileSource

    def __init__(self, context: FetchContext, matcher: FileMatcher | None = None) -> None:
        super().__init__(context)
        self.matcher = matcher or FileMatcher(cancel=context.cancel)

    def _fetch(self, source: FileSource, applier: ModifiersApplier) -> str:
        result = self.matcher.find_in(
            source.filters(), source.source_paths, self.context.base_path, source.tree_view
        )
        logger.info("file source '%s': %d file(s)", source.description or source.source_paths[0], len(result))

        builder = ContentBuilder()
        if source.tree_view.enabled:
            builder.add_tree_view(result.tree_view)

        for handle in result.files:
            self.context.cancel.check()
            display = self.context.display_path(handle.path)
            try:
                content = handle.read_text()
            except OSError as e:
                logger.error("cannot read %s: %s", handle.path, e)
                builder.add_comment(f"Error: cannot read {display}: {e.strerror or e}")
                continue
            content = applier.apply(content, handle.name)
            builder.add_code_block(content, language_for(handle.extension), display)
        return builder.build()
