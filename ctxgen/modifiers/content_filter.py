"""Structural filtering: keep or drop declarations by name, pattern, kind and visibility.

Parsing is delegated to a per-language :class:`MemberParser`; the filter itself
only sees :class:`Member` records. Classes act as containers: name and
pattern includes select their members, while excludes and visibility can drop
the class as a whole.
"""

from __future__ import annotations

import ast
import copy
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from pathlib import PurePosixPath
from typing import Any

from pydantic.alias_generators import to_camel

from ctxgen.errors import ConfigurationError
from ctxgen.modifiers.base import Modifier

logger = logging.getLogger(__name__)


@dataclass
class Member:
    """One declaration in a source file."""

    name: str
    kind: str  # class | function | method | property | constant
    visibility: str = "public"
    body: str | None = None
    attributes: list[str] = field(default_factory=list)
    doc: str | None = None
    children: list[Member] = field(default_factory=list)
    node: Any = None

    @property
    def is_container(self) -> bool:
        return self.kind == "class"


@dataclass(frozen=True)
class FilterOptions:
    include_names: tuple[str, ...] = ()
    exclude_names: tuple[str, ...] = ()
    include_patterns: tuple[re.Pattern[str], ...] = ()
    exclude_patterns: tuple[re.Pattern[str], ...] = ()
    visibility: tuple[str, ...] = ()
    kinds: tuple[str, ...] = ()
    keep_bodies: bool = True
    body_placeholder: str = "..."
    keep_doc_comments: bool = True
    keep_attributes: bool = True

    @classmethod
    def from_options(cls, options: dict[str, Any]) -> FilterOptions:
        def get(key: str, default: Any = None) -> Any:
            return options.get(key, options.get(to_camel(key), default))

        def listed(key: str) -> tuple[str, ...]:
            value = get(key) or ()
            return (value,) if isinstance(value, str) else tuple(value)

        def compiled(key: str) -> tuple[re.Pattern[str], ...]:
            try:
                return tuple(re.compile(p) for p in listed(key))
            except re.error as e:
                raise ConfigurationError(f"Invalid {key} regex: {e}") from e

        return cls(
            include_names=listed("include_names"),
            exclude_names=listed("exclude_names"),
            include_patterns=compiled("include_patterns"),
            exclude_patterns=compiled("exclude_patterns"),
            visibility=listed("visibility"),
            kinds=listed("kinds"),
            keep_bodies=bool(get("keep_bodies", True)),
            body_placeholder=get("body_placeholder", "..."),
            keep_doc_comments=bool(get("keep_doc_comments", True)),
            keep_attributes=bool(get("keep_attributes", True)),
        )

    def keeps(self, member: Member) -> bool:
        if member.name in self.exclude_names:
            return False
        if any(p.search(member.name) for p in self.exclude_patterns):
            return False
        if self.visibility and member.visibility not in self.visibility:
            return False
        if member.is_container:
            return True
        if self.kinds and member.kind not in self.kinds:
            return False
        if self.include_names or self.include_patterns:
            return member.name in self.include_names or any(
                p.search(member.name) for p in self.include_patterns
            )
        return True


class MemberParser(ABC):
    """Language-specific parse/render pair used by :class:`ContentFilterModifier`."""

    extensions: tuple[str, ...] = ()
    comment_prefix: str = "//"

    @abstractmethod
    def parse(self, content: str) -> tuple[Any, list[Member]]:
        """Return an opaque parsed document plus its top-level members."""

    @abstractmethod
    def render(
        self, document: Any, members: list[Member], kept: list[Member], options: FilterOptions
    ) -> str:
        """Re-emit *document* with only the *kept* subset of *members*."""


# ── Python ─────────────────────────────────────────────────────────

_FUNCTION_NODES = (ast.FunctionDef, ast.AsyncFunctionDef)


def _python_visibility(name: str) -> str:
    if name.startswith("__") and not name.endswith("__"):
        return "private"
    if name.startswith("_"):
        return "protected"
    return "public"


def _assigned_name(node: ast.stmt) -> str | None:
    if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
        return node.target.id
    if isinstance(node, ast.Assign) and len(node.targets) == 1 and isinstance(node.targets[0], ast.Name):
        return node.targets[0].id
    return None


def _has_docstring(body: list[ast.stmt]) -> bool:
    return bool(
        body
        and isinstance(body[0], ast.Expr)
        and isinstance(body[0].value, ast.Constant)
        and isinstance(body[0].value.value, str)
    )


class PythonMemberParser(MemberParser):
    extensions = ("py", "pyi")
    comment_prefix = "#"

    def parse(self, content: str) -> tuple[ast.Module, list[Member]]:
        module = ast.parse(content)
        members = [m for m in (self._member(node, top_level=True) for node in module.body) if m]
        return module, members

    def _member(self, node: ast.stmt, top_level: bool) -> Member | None:
        if isinstance(node, ast.ClassDef):
            children = [m for m in (self._member(n, top_level=False) for n in node.body) if m]
            return Member(
                name=node.name,
                kind="class",
                visibility=_python_visibility(node.name),
                attributes=[ast.unparse(d) for d in node.decorator_list],
                doc=ast.get_docstring(node),
                children=children,
                node=node,
            )
        if isinstance(node, _FUNCTION_NODES):
            return Member(
                name=node.name,
                kind="function" if top_level else "method",
                visibility=_python_visibility(node.name),
                body="\n".join(ast.unparse(s) for s in node.body),
                attributes=[ast.unparse(d) for d in node.decorator_list],
                doc=ast.get_docstring(node),
                node=node,
            )
        name = _assigned_name(node)
        if name is None:
            return None
        if top_level and not name.isupper():
            return None
        return Member(
            name=name,
            kind="constant" if name.isupper() else "property",
            visibility=_python_visibility(name),
            node=node,
        )

    def render(
        self, document: ast.Module, members: list[Member], kept: list[Member], options: FilterOptions
    ) -> str:
        placeholder = self._placeholder(options.body_placeholder)
        keep_ids = {id(m.node) for m in self._flatten(kept)}
        member_ids = {id(m.node) for m in self._flatten(members)}

        def transform_body(body: list[ast.stmt], container: bool) -> list[ast.stmt]:
            out: list[ast.stmt] = []
            for index, stmt in enumerate(body):
                if index == 0 and _has_docstring(body) and not options.keep_doc_comments:
                    continue
                if id(stmt) in member_ids and id(stmt) not in keep_ids:
                    continue
                out.append(transform(stmt))
            if container and not out:
                out = copy.deepcopy(placeholder)
            return out

        def transform(stmt: ast.stmt) -> ast.stmt:
            if isinstance(stmt, ast.ClassDef):
                if not options.keep_attributes:
                    stmt.decorator_list = []
                stmt.body = transform_body(stmt.body, container=True)
            elif isinstance(stmt, _FUNCTION_NODES):
                if not options.keep_attributes:
                    stmt.decorator_list = []
                if options.keep_bodies:
                    stmt.body = transform_body(stmt.body, container=True)
                else:
                    doc = stmt.body[:1] if _has_docstring(stmt.body) and options.keep_doc_comments else []
                    stmt.body = doc + copy.deepcopy(placeholder)
            return stmt

        document.body = transform_body(document.body, container=False)
        return ast.unparse(ast.fix_missing_locations(document)) + "\n"

    def _flatten(self, members: list[Member]) -> list[Member]:
        out: list[Member] = []
        for m in members:
            out.append(m)
            out.extend(self._flatten(m.children))
        return out

    @staticmethod
    def _placeholder(text: str) -> list[ast.stmt]:
        try:
            stmts = ast.parse(text).body
        except SyntaxError:
            stmts = []
        return stmts or [ast.Expr(value=ast.Constant(value=...))]


# ── Modifier ───────────────────────────────────────────────────────


class ContentFilterModifier(Modifier):
    """``content-filter`` modifier: structural include/exclude over declarations."""

    identifier = "content-filter"

    def __init__(self, parsers: list[MemberParser] | None = None) -> None:
        self._parsers: dict[str, MemberParser] = {}
        for parser in parsers or [PythonMemberParser()]:
            for ext in parser.extensions:
                self._parsers[ext] = parser

    def _parser_for(self, content_type: str) -> MemberParser | None:
        ext = PurePosixPath(content_type).suffix.lstrip(".") or content_type
        return self._parsers.get(ext.lower())

    def supports(self, content_type: str) -> bool:
        return self._parser_for(content_type) is not None

    def modify(self, content: str, options: dict[str, Any], content_type: str = "") -> str:
        parser = self._parser_for(content_type)
        if parser is None:
            return content
        opts = FilterOptions.from_options(options)
        try:
            document, members = parser.parse(content)
        except (SyntaxError, ValueError) as e:
            logger.warning("content-filter could not parse %s: %s", content_type or "content", e)
            return f"{parser.comment_prefix} Error parsing file: {e}\n"
        kept = self._filter(members, opts)
        return parser.render(document, members, kept, opts)

    def _filter(self, members: list[Member], opts: FilterOptions) -> list[Member]:
        kept: list[Member] = []
        for member in members:
            if not opts.keeps(member):
                continue
            if member.is_container:
                member = replace(member, children=self._filter(member.children, opts))
            kept.append(member)
        return kept
