from __future__ import annotations

import logging

from ctxgen.document.models import TreeSource
from ctxgen.fetchers.base import FetchContext, SourceFetcher
from ctxgen.finder.matcher import FileMatcher
from ctxgen.lib.content import ContentBuilder
from ctxgen.modifiers.base import ModifiersApplier

logger = logging.getLogger(__name__)


class TreeSourceFetcher(SourceFetcher):
    """Directory structure only; file contents are never read."""

    kind = "tree"
    source_type = TreeSource

    def __init__(self, context: FetchContext, matcher: FileMatcher | None = None) -> None:
        super().__init__(context)
        self.matcher = matcher or FileMatcher(cancel=context.cancel)

    def _fetch(self, source: TreeSource, applier: ModifiersApplier) -> str:
        view = source.tree_view.model_copy(update={"enabled": True})
        result = self.matcher.find_in(source.filters(), source.source_paths, self.context.base_path, view)
        logger.debug("tree source: %d file(s)", len(result))
        return ContentBuilder().add_tree_view(result.tree_view).build()
