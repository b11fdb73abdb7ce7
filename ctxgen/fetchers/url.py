"""Remote pages: one delimited section per URL, failures reported inline."""

from __future__ import annotations

import logging

from ctxgen.document.models import UrlSource
from ctxgen.errors import SourceFetchError
from ctxgen.fetchers.base import FetchContext, SourceFetcher
from ctxgen.lib.content import ContentBuilder
from ctxgen.lib.html import clean_html, select_html
from ctxgen.lib.http import HttpClient
from ctxgen.modifiers.base import ModifiersApplier

logger = logging.getLogger(__name__)


class UrlSourceFetcher(SourceFetcher):
    kind = "url"
    source_type = UrlSource

    def __init__(self, context: FetchContext, client: HttpClient | None = None) -> None:
        """A passed-in *client* stays owned by the caller; a default one is closed by :meth:`close`."""
        super().__init__(context)
        self._owns_client = client is None
        self.client = client or HttpClient()

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def _fetch(self, source: UrlSource, applier: ModifiersApplier) -> str:
        builder = ContentBuilder()
        headers = self.context.variables.resolve_mapping(source.headers)
        selector = source.selector

        for raw_url in source.urls:
            self.context.cancel.check()
            url = self.context.variables.resolve(raw_url)
            try:
                response = self.client.get(url, headers)
            except SourceFetchError as e:
                logger.error("fetching %s failed: %s", url, e)
                self._error(builder, url, str(e))
                continue

            if not response.is_success:
                logger.error("fetching %s returned HTTP %d", url, response.status_code)
                self._error(builder, url, f"HTTP status code {response.status_code}")
                continue

            html = response.body
            if selector:
                selected = select_html(html, selector)
                if selected is None:
                    logger.warning("selector '%s' matched nothing on %s", selector, url)
                    builder.add_comment(f"URL: {url}")
                    builder.add_comment(f"Warning: Selector '{selector}' didn't match any content")
                else:
                    builder.add_comment(f"URL: {url} (selector: {selector})")
                    html = selected
            else:
                builder.add_comment(f"URL: {url}")

            builder.add_text(applier.apply(clean_html(html), url))
            builder.add_comment(f"END OF URL: {url}")
            builder.add_separator()
            logger.debug("fetched %s (%d bytes)", url, len(response.body))
        return builder.build()

    @staticmethod
    def _error(builder: ContentBuilder, url: str, message: str) -> None:
        builder.add_comment(f"URL: {url}")
        builder.add_comment(f"Error: {message}")
        builder.add_comment(f"END OF URL: {url}")
        builder.add_separator()
