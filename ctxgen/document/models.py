"""Pydantic models for documents and the sources they aggregate."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ctxgen.errors import ConfigurationError


class ConfigModel(BaseModel):
    """Immutable model that accepts both camelCase and snake_case keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


def _as_list(value: Any) -> Any:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return value


class TreeViewConfig(ConfigModel):
    enabled: bool = True
    show_size: bool = False
    show_last_modified: bool = False
    show_char_count: bool = False
    include_files: bool = True
    max_depth: int = Field(default=0, ge=0)
    dir_context: dict[str, str] = {}

    @model_validator(mode="before")
    @classmethod
    def _from_bool(cls, data: Any) -> Any:
        if isinstance(data, bool):
            return {"enabled": data}
        return data


class ModifierRef(ConfigModel):
    """A modifier identifier plus the options passed to it."""

    name: str = Field(min_length=1)
    options: dict[str, Any] = {}

    @model_validator(mode="before")
    @classmethod
    def _from_name(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data}
        return data


class Source(ConfigModel):
    """Common fields for every source kind."""

    type: str
    description: str = ""
    tags: frozenset[str] = frozenset()
    modifiers: list[ModifierRef] = []

    @property
    def kind(self) -> str:
        return self.type


class FilterSpec(ConfigModel):
    """Predicates shared by sources that select files. All present fields are ANDed."""

    file_pattern: list[str] = ["*"]
    path: list[str] = []
    not_path: list[str] = []
    contains: list[str] = []
    not_contains: list[str] = []
    size: list[str] = []
    date: list[str] = []
    max_files: int = Field(default=0, ge=0)
    ignore_unreadable_dirs: bool = False

    @field_validator(
        "file_pattern", "path", "not_path", "contains", "not_contains", "size", "date",
        mode="before",
    )
    @classmethod
    def _normalize_patterns(cls, value: Any) -> Any:
        return _as_list(value)

    def filters(self) -> FilterSpec:
        """Return just the predicate fields, detached from the owning source."""
        return FilterSpec.model_validate(self.model_dump(include=set(FilterSpec.model_fields)))


class FileSource(Source, FilterSpec):
    type: Literal["file"] = "file"
    source_paths: list[str] = Field(min_length=1)
    tree_view: TreeViewConfig = Field(default_factory=TreeViewConfig)

    @field_validator("source_paths", mode="before")
    @classmethod
    def _normalize_paths(cls, value: Any) -> Any:
        return _as_list(value)


class UrlSource(Source):
    type: Literal["url"] = "url"
    urls: list[str] = Field(min_length=1)
    headers: dict[str, str] = {}
    selector: str | None = None


class TextSource(Source):
    type: Literal["text"] = "text"
    content: str


class PackageSource(Source, FilterSpec):
    type: Literal["package"] = "package"
    provider: str = "composer"
    manifest_path: str = "."
    packages: list[str] = []
    file_pattern: list[str] = ["*.php"]
    not_path: list[str] = ["tests", "vendor", "examples"]
    include_dev_dependencies: bool = False
    tree_view: TreeViewConfig = Field(default_factory=TreeViewConfig)

    @field_validator("packages", mode="before")
    @classmethod
    def _normalize_packages(cls, value: Any) -> Any:
        return _as_list(value)


class GitDiffSource(Source, FilterSpec):
    type: Literal["git_diff"] = "git_diff"
    repository: str = "."
    commit: str = "staged"
    show_stats: bool = True


class TreeSource(Source, FilterSpec):
    type: Literal["tree"] = "tree"
    source_paths: list[str] = Field(min_length=1)
    ignore_unreadable_dirs: bool = True
    tree_view: TreeViewConfig = Field(default_factory=TreeViewConfig)

    @field_validator("source_paths", mode="before")
    @classmethod
    def _normalize_paths(cls, value: Any) -> Any:
        return _as_list(value)


# kind -> model; new source kinds register here instead of editing callers
SOURCE_TYPES: dict[str, type[Source]] = {
    "file": FileSource,
    "url": UrlSource,
    "text": TextSource,
    "package": PackageSource,
    "git_diff": GitDiffSource,
    "tree": TreeSource,
}


def register_source_type(kind: str, model: type[Source]) -> None:
    SOURCE_TYPES[kind] = model


def parse_source(data: Any) -> Source:
    """Build a typed source from a mapping using its ``type`` key."""
    if isinstance(data, Source):
        return data
    if not isinstance(data, dict):
        raise ConfigurationError(f"Source must be a mapping, got {type(data).__name__}")
    kind = data.get("type")
    if kind not in SOURCE_TYPES:
        raise ConfigurationError(f"Unknown source type: {kind!r}")
    return SOURCE_TYPES[kind].model_validate(data)


class Document(ConfigModel):
    """One compiled output artifact and the ordered sources that feed it."""

    description: str = Field(min_length=1)
    output_path: str = Field(min_length=1)
    overwrite: bool = True
    sources: list[Source] = []
    tags: frozenset[str] = frozenset()
    modifiers: list[ModifierRef] = []

    @field_validator("sources", mode="before")
    @classmethod
    def _parse_sources(cls, value: Any) -> Any:
        return [parse_source(item) for item in _as_list(value)]
