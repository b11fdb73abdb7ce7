from ctxgen.lib.git import GitClient
from ctxgen.lib.http import HttpClient
from ctxgen.lib.packages import PackageProvider

from .base import FetchContext, SourceFetcher, SourceFetcherRegistry, language_for
from .file import FileSourceFetcher
from .gitdiff import GitDiffSourceFetcher
from .package import PackageSourceFetcher
from .text import TextSourceFetcher
from .tree import TreeSourceFetcher
from .url import UrlSourceFetcher


def create_fetcher_registry(
    context: FetchContext,
    http_client: HttpClient | None = None,
    git_client: GitClient | None = None,
    providers: dict[str, type[PackageProvider]] | None = None,
) -> SourceFetcherRegistry:
    """Registry with one fetcher per built-in source kind, all sharing *context*.

    Clients passed in stay owned by the caller. Anything created here is
    released by the registry's ``close()`` (or by using it as a context manager).
    """
    file_fetcher = FileSourceFetcher(context)
    return SourceFetcherRegistry([
        file_fetcher,
        UrlSourceFetcher(context, http_client),
        TextSourceFetcher(context),
        PackageSourceFetcher(context, file_fetcher, providers),
        GitDiffSourceFetcher(context, git_client),
        TreeSourceFetcher(context),
    ])


__all__ = [
    "FetchContext",
    "FileSourceFetcher",
    "GitDiffSourceFetcher",
    "PackageSourceFetcher",
    "SourceFetcher",
    "SourceFetcherRegistry",
    "TextSourceFetcher",
    "TreeSourceFetcher",
    "UrlSourceFetcher",
    "create_fetcher_registry",
    "language_for",
]
