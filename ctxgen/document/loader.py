"""Documents file loading (``context.yaml``)."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import ValidationError

from ctxgen.errors import ConfigurationError

from .models import Document


def load_documents(path: str | Path) -> list[Document]:
    """Parse a ``{documents: [...]}`` YAML file into Document models.

    Raises :class:`ConfigurationError` for a missing file, invalid YAML or
    an invalid document.
    """
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Documents file not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if raw is None:
        return []
    if not isinstance(raw, dict) or not isinstance(raw.get("documents", []), list):
        raise ConfigurationError(f"{path}: expected a mapping with a 'documents' list")

    documents = []
    for index, item in enumerate(raw.get("documents") or []):
        try:
            documents.append(Document.model_validate(item))
        except ValidationError as e:
            raise ConfigurationError(f"{path}: document #{index + 1} is invalid: {e}") from e
        except ConfigurationError as e:
            raise ConfigurationError(f"{path}: document #{index + 1}: {e}") from e
    return documents
