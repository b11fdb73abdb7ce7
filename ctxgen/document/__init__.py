from .models import (
    SOURCE_TYPES,
    Document,
    FileSource,
    FilterSpec,
    GitDiffSource,
    ModifierRef,
    PackageSource,
    Source,
    TextSource,
    TreeSource,
    TreeViewConfig,
    UrlSource,
    parse_source,
    register_source_type,
)

__all__ = [
    "SOURCE_TYPES",
    "Document",
    "FileSource",
    "FilterSpec",
    "GitDiffSource",
    "ModifierRef",
    "PackageSource",
    "Source",
    "TextSource",
    "TreeSource",
    "TreeViewConfig",
    "UrlSource",
    "parse_source",
    "register_source_type",
]
