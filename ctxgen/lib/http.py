"""Synchronous HTTP client used by url sources."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx

from ctxgen.config.models import HttpConfig
from ctxgen.errors import SourceFetchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    body: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class HttpClient:
    """Thin wrapper over :class:`httpx.Client` with a mandatory timeout.

    Transport failures surface as :class:`SourceFetchError`; non-2xx
    responses are returned, not raised, so callers can report them inline.
    """

    def __init__(
        self,
        config: HttpConfig | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config or HttpConfig()
        self._client = httpx.Client(
            timeout=self.config.timeout,
            follow_redirects=self.config.follow_redirects,
            transport=transport,
        )

    def default_headers(self) -> dict[str, str]:
        return {"User-Agent": self.config.user_agent, **self.config.default_headers}

    def get(self, url: str, headers: dict[str, str] | None = None) -> HttpResponse:
        merged = {**self.default_headers(), **(headers or {})}
        logger.debug("GET %s", url)
        try:
            resp = self._client.get(url, headers=merged)
        except httpx.HTTPError as e:
            raise SourceFetchError(f"Request to {url} failed: {e}") from e
        return HttpResponse(
            status_code=resp.status_code,
            body=resp.text,
            headers=dict(resp.headers),
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
