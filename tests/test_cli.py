"""Tests for the ctxgen CLI (compile, tree, config)."""

from __future__ import annotations

import json
import logging
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from ctxgen.cli import JsonLogFormatter, _configure_logging, app

runner = CliRunner()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolate(tmp_path, monkeypatch):
    """No user/project settings leak in; root logger restored afterwards."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("pathlib.Path.home", lambda: tmp_path / "fakehome")
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def documents_file(project_dir):
    path = project_dir / "context.yaml"
    path.write_text(
        "documents:\n"
        "  - description: Sources\n"
        "    outputPath: out/sources.md\n"
        "    sources:\n"
        "      - type: file\n"
        "        sourcePaths: src\n"
        "        filePattern: '*.py'\n"
        "        treeView: false\n"
        "  - description: Notes\n"
        "    outputPath: out/notes.md\n"
        "    sources:\n"
        "      - type: text\n"
        "        content: remember the milk\n"
    )
    return path


# ---------------------------------------------------------------------------
# compile
# ---------------------------------------------------------------------------


class TestCompileCommand:
    def test_compiles_all_documents(self, project_dir, documents_file):
        result = runner.invoke(app, ["compile", str(documents_file), "--base-path", str(project_dir)])
        assert result.exit_code == 0, result.output
        sources = (project_dir / "out" / "sources.md").read_text()
        assert sources.startswith("## DOCUMENT: Sources\n\n```python\n// Path: src/app.py\n")
        assert (project_dir / "out" / "notes.md").read_text() == (
            "## DOCUMENT: Notes\n\nremember the milk\n\n---\n\n"
        )
        assert "Documents (2)" in result.output

    def test_documents_file_resolved_against_base_path(self, project_dir, documents_file):
        result = runner.invoke(app, ["compile", "--base-path", str(project_dir), "--workers", "1"])
        assert result.exit_code == 0, result.output
        assert (project_dir / "out" / "notes.md").exists()

    def test_source_errors_do_not_fail_the_run(self, project_dir):
        path = project_dir / "context.yaml"
        path.write_text(
            "documents:\n"
            "  - description: Broken\n"
            "    outputPath: broken.md\n"
            "    sources:\n"
            "      - type: file\n"
            "        sourcePaths: does-not-exist\n"
        )
        result = runner.invoke(app, ["compile", str(path), "--base-path", str(project_dir)])
        assert result.exit_code == 0, result.output
        assert "Error: Path does not exist" in (project_dir / "broken.md").read_text()

    def test_write_failure_exits_nonzero(self, project_dir):
        (project_dir / "blocker").write_text("x")
        path = project_dir / "context.yaml"
        path.write_text(
            "documents:\n"
            "  - description: Blocked\n"
            "    outputPath: blocker/out.md\n"
            "    sources:\n"
            "      - type: text\n"
            "        content: hi\n"
        )
        result = runner.invoke(app, ["compile", str(path), "--base-path", str(project_dir)])
        assert result.exit_code == 1

    def test_interrupt_exits_130(self, project_dir, documents_file):
        with patch("ctxgen.cli.compile_all", side_effect=KeyboardInterrupt):
            result = runner.invoke(app, ["compile", str(documents_file), "--base-path", str(project_dir)])
        assert result.exit_code == 130
        assert "Interrupted" in result.output

    def test_missing_documents_file(self, tmp_path):
        result = runner.invoke(app, ["compile", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 1
        assert "Documents file not found" in result.output

    def test_invalid_settings_file(self, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("log_level: shouting\n")
        result = runner.invoke(app, ["--config", str(bad), "tree", str(tmp_path)])
        assert result.exit_code == 1
        assert "Invalid config" in result.output


# ---------------------------------------------------------------------------
# tree
# ---------------------------------------------------------------------------


class TestTreeCommand:
    def test_renders_tree(self, project_dir):
        result = runner.invoke(app, ["tree", str(project_dir)])
        assert result.exit_code == 0, result.output
        assert "├── src/\n│   ├── models/\n│   │   └── user.py\n" in result.output
        assert result.output.endswith("└── README.md\n")

    def test_dirs_only(self, project_dir):
        result = runner.invoke(app, ["tree", str(project_dir), "--dirs-only"])
        assert result.exit_code == 0
        assert "README.md" not in result.output
        assert "models/" in result.output

    def test_max_depth(self, project_dir):
        result = runner.invoke(app, ["tree", str(project_dir), "--max-depth", "1"])
        assert result.exit_code == 0
        assert "src/" in result.output
        assert "app.py" not in result.output

    def test_not_a_directory(self, tmp_path):
        result = runner.invoke(app, ["tree", str(tmp_path / "nope")])
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_init_creates_file(self, tmp_path):
        result = runner.invoke(app, ["config", "init"])
        assert result.exit_code == 0
        assert (tmp_path / "ctxgen.yaml").read_text().startswith("# ctxgen.yaml")

    def test_init_refuses_to_overwrite(self, tmp_path):
        (tmp_path / "ctxgen.yaml").write_text("log_level: info\n")
        result = runner.invoke(app, ["config", "init"])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_init_force(self, tmp_path):
        (tmp_path / "ctxgen.yaml").write_text("log_level: info\n")
        result = runner.invoke(app, ["config", "init", "--force"])
        assert result.exit_code == 0
        assert "compiler:" in (tmp_path / "ctxgen.yaml").read_text()

    def test_show(self):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "max_workers" in result.output


# ---------------------------------------------------------------------------
# logging
# ---------------------------------------------------------------------------


class TestLogging:
    def test_levels(self):
        _configure_logging("warn", "text")
        assert logging.getLogger().level == logging.WARNING
        _configure_logging("debug", "text")
        assert logging.getLogger().level == logging.DEBUG

    def test_json_format(self):
        _configure_logging("info", "json")
        (handler,) = logging.getLogger().handlers
        assert isinstance(handler.formatter, JsonLogFormatter)

    def test_json_formatter_output(self):
        record = logging.LogRecord("ctxgen.test", logging.INFO, __file__, 1, "wrote %s", ("a.md",), None)
        payload = json.loads(JsonLogFormatter().format(record))
        assert payload["level"] == "info"
        assert payload["logger"] == "ctxgen.test"
        assert payload["message"] == "wrote a.md"
