"""Shared test fixtures for ctxgen."""

import pytest

from ctxgen.config.models import CtxgenConfig
from ctxgen.fetchers import FetchContext
from ctxgen.lib.cancel import CancelToken
from ctxgen.lib.variables import VariableResolver
from ctxgen.modifiers import ModifiersApplier, default_modifier_registry


@pytest.fixture
def sample_config():
    return CtxgenConfig()


@pytest.fixture
def project_dir(tmp_path):
    """A small project: python sources, docs, tests and a vendored dir."""
    root = tmp_path / "project"
    files = {
        "src/app.py": "import os\n\n\ndef main():\n    return os.getcwd()\n",
        "src/util.py": "def helper():\n    return 42\n",
        "src/models/user.py": "class User:\n    name = 'x'\n",
        "docs/guide.md": "# Guide\n\nSome TODO notes.\n",
        "tests/test_app.py": "def test_main():\n    assert True\n",
        "vendor/lib.py": "VENDORED = True\n",
        "README.md": "# Project\n",
    }
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def cancel_token():
    return CancelToken()


@pytest.fixture
def fetch_context(project_dir, cancel_token):
    return FetchContext(
        base_path=project_dir,
        cancel=cancel_token,
        variables=VariableResolver({"TOKEN": "s3cret"}, use_env=False),
    )


@pytest.fixture
def modifier_registry():
    return default_modifier_registry()


@pytest.fixture
def plain_applier(modifier_registry):
    return ModifiersApplier(modifier_registry)
