"""Tests for document/source models and the documents file loader."""

import pytest
from pydantic import ValidationError

from ctxgen.document.loader import load_documents
from ctxgen.document.models import (
    SOURCE_TYPES,
    Document,
    FileSource,
    GitDiffSource,
    PackageSource,
    Source,
    TextSource,
    TreeViewConfig,
    UrlSource,
    parse_source,
    register_source_type,
)
from ctxgen.errors import ConfigurationError


# ── models ─────────────────────────────────────────────────────────


class TestSourceModels:
    def test_parse_by_kind(self):
        source = parse_source({"type": "url", "urls": ["https://a.test"], "description": "Docs"})
        assert isinstance(source, UrlSource)
        assert source.kind == "url"

    def test_unknown_kind(self):
        with pytest.raises(ConfigurationError, match="Unknown source type"):
            parse_source({"type": "ftp"})

    def test_non_mapping(self):
        with pytest.raises(ConfigurationError):
            parse_source(["file"])

    def test_camel_and_snake_case(self):
        a = FileSource.model_validate({"sourcePaths": "src", "notPath": "tests", "maxFiles": 3})
        b = FileSource(source_paths=["src"], not_path=["tests"], max_files=3)
        assert a == b

    def test_string_fields_normalized_to_lists(self):
        source = FileSource(source_paths="src", file_pattern="*.py", contains="TODO")
        assert source.source_paths == ["src"]
        assert source.file_pattern == ["*.py"]
        assert source.contains == ["TODO"]

    def test_models_are_frozen(self):
        source = TextSource(content="x")
        with pytest.raises(ValidationError):
            source.content = "y"

    def test_file_source_requires_paths(self):
        with pytest.raises(ValidationError):
            FileSource(source_paths=[])

    def test_url_source_requires_urls(self):
        with pytest.raises(ValidationError):
            UrlSource(urls=[])

    def test_package_defaults(self):
        source = PackageSource()
        assert source.file_pattern == ["*.php"]
        assert source.not_path == ["tests", "vendor", "examples"]

    def test_git_diff_defaults(self):
        source = GitDiffSource()
        assert (source.repository, source.commit, source.show_stats) == (".", "staged", True)

    def test_filters_detached_from_source(self):
        spec = FileSource(source_paths=["src"], file_pattern="*.py").filters()
        assert type(spec).__name__ == "FilterSpec"
        assert spec.file_pattern == ["*.py"]

    def test_tree_view_from_bool(self):
        assert FileSource(source_paths=["."], tree_view=False).tree_view.enabled is False
        assert TreeViewConfig.model_validate(True).enabled is True

    def test_negative_max_depth_rejected(self):
        with pytest.raises(ValidationError):
            TreeViewConfig(max_depth=-1)

    def test_register_custom_kind(self, monkeypatch):
        monkeypatch.setitem(SOURCE_TYPES, "custom", Source)

        class CustomSource(Source):
            endpoint: str

        register_source_type("custom", CustomSource)
        source = parse_source({"type": "custom", "endpoint": "e"})
        assert isinstance(source, CustomSource)


class TestDocument:
    def test_requires_description_and_output(self):
        with pytest.raises(ValidationError):
            Document(description="", output_path="a.md")
        with pytest.raises(ValidationError):
            Document(description="A", output_path="")

    def test_sources_parsed_in_order(self):
        doc = Document.model_validate({
            "description": "D",
            "outputPath": "d.md",
            "sources": [{"type": "text", "content": "a"}, {"type": "tree", "sourcePaths": "src"}],
        })
        assert [s.kind for s in doc.sources] == ["text", "tree"]
        assert doc.overwrite is True

    def test_modifier_refs_accept_strings(self):
        doc = Document(description="D", output_path="d.md", modifiers=["sanitizer"])
        assert doc.modifiers[0].name == "sanitizer"
        assert doc.modifiers[0].options == {}


# ── loader ─────────────────────────────────────────────────────────


class TestLoadDocuments:
    def test_loads_documents(self, tmp_path):
        path = tmp_path / "context.yaml"
        path.write_text(
            "documents:\n"
            "  - description: API\n"
            "    outputPath: docs/api.md\n"
            "    overwrite: false\n"
            "    tags: [api]\n"
            "    sources:\n"
            "      - type: file\n"
            "        sourcePaths: [src]\n"
            "        filePattern: '*.py'\n"
            "      - type: text\n"
            "        content: notes\n"
        )
        (doc,) = load_documents(path)
        assert doc.description == "API"
        assert doc.overwrite is False
        assert doc.tags == frozenset({"api"})
        assert isinstance(doc.sources[0], FileSource)
        assert doc.sources[1].content == "notes"

    def test_empty_file(self, tmp_path):
        path = tmp_path / "context.yaml"
        path.write_text("")
        assert load_documents(path) == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_documents(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "context.yaml"
        path.write_text("documents: [\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_documents(path)

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "context.yaml"
        path.write_text("documents: nope\n")
        with pytest.raises(ConfigurationError, match="'documents' list"):
            load_documents(path)

    def test_invalid_document_names_its_position(self, tmp_path):
        path = tmp_path / "context.yaml"
        path.write_text("documents:\n  - description: A\n    outputPath: a.md\n  - description: B\n")
        with pytest.raises(ConfigurationError, match="document #2"):
            load_documents(path)

    def test_unknown_source_kind(self, tmp_path):
        path = tmp_path / "context.yaml"
        path.write_text(
            "documents:\n  - description: A\n    outputPath: a.md\n    sources:\n      - type: ftp\n"
        )
        with pytest.raises(ConfigurationError, match="document #1"):
            load_documents(path)
