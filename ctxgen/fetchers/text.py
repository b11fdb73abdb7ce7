from ctxgen.document.models import TextSource
from ctxgen.fetchers.base import SourceFetcher
from ctxgen.modifiers.base import ModifiersApplier


class TextSourceFetcher(SourceFetcher):
    """Literal text. Unchanged unless the source or document configures modifiers."""

    kind = "text"
    source_type = TextSource

    def _fetch(self, source: TextSource, applier: ModifiersApplier) -> str:
        return applier.apply(source.content, "text")
