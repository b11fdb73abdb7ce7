"""``${VAR}`` / ``{{VAR}}`` interpolation for url sources."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping

_VARIABLE = re.compile(r"\$\{(\w+)\}|\{\{\s*(\w+)\s*\}\}")


class VariableResolver:
    """Substitutes configured variables, then environment variables.

    Unknown references are left untouched.
    """

    def __init__(self, variables: Mapping[str, str] | None = None, use_env: bool = True) -> None:
        self._variables = dict(variables or {})
        self._use_env = use_env

    def lookup(self, name: str) -> str | None:
        if name in self._variables:
            return self._variables[name]
        if self._use_env:
            return os.environ.get(name)
        return None

    def resolve(self, text: str) -> str:
        def replace(match: re.Match[str]) -> str:
            value = self.lookup(match.group(1) or match.group(2))
            return match.group(0) if value is None else value

        return _VARIABLE.sub(replace, text)

    def resolve_mapping(self, values: Mapping[str, str]) -> dict[str, str]:
        return {key: self.resolve(value) for key, value in values.items()}
