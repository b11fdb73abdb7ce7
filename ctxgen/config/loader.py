"""YAML settings loading with env var expansion."""

import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import CtxgenConfig


def load_config(cli_path: str | None = None) -> CtxgenConfig:
    """Load settings with resolution order: CLI > project-local > user-global > defaults."""
    config_paths = [
        Path(cli_path) if cli_path else None,
        Path("./ctxgen.yaml"),
        Path.home() / ".ctxgen" / "config.yaml",
    ]

    for path in config_paths:
        if path and path.exists():
            try:
                with open(path) as f:
                    raw = yaml.safe_load(f)
                if raw is None:
                    continue
                raw = _expand_env_vars(raw)
                return CtxgenConfig(**raw)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e
            except ValidationError as e:
                raise ValueError(f"Invalid config in {path}: {e}") from e

    return CtxgenConfig()


_ENV_REF = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} and ${VAR:-default} references in strings."""
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `ctxgen config init`
DEFAULT_CONFIG_TEMPLATE = """\
# ctxgen.yaml

# HTTP client used by url sources
http:
  timeout: 30                  # seconds, applies to every request
  follow_redirects: true
  # user_agent: "ctxgen"
  # default_headers:
  #   Accept-Language: "en-US"

# Git client used by git_diff sources
git:
  binary: "git"
  timeout: 60                  # seconds per git invocation

# Compilation
compiler:
  base_path: "."               # output paths and source paths resolve against this
  documents_file: "context.yaml"
  max_workers: 4               # documents compiled in parallel

# Values substituted into ${VAR} / {{VAR}} in url sources
# variables:
#   API_TOKEN: "${API_TOKEN}"

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
