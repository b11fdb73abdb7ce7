from .cancel import CancelToken
from .content import ContentBuilder
from .git import COMMIT_RANGE_PRESETS, CommitRangeParser, GitClient, RepositoryCache, RevisionSpec
from .html import clean_html, select_html
from .http import HttpClient, HttpResponse
from .packages import ComposerPackageProvider, PackageInfo, PackageProvider
from .variables import VariableResolver

__all__ = [
    "COMMIT_RANGE_PRESETS",
    "CancelToken",
    "CommitRangeParser",
    "ComposerPackageProvider",
    "ContentBuilder",
    "GitClient",
    "HttpClient",
    "HttpResponse",
    "PackageInfo",
    "PackageProvider",
    "RepositoryCache",
    "RevisionSpec",
    "VariableResolver",
    "clean_html",
    "select_html",
]
