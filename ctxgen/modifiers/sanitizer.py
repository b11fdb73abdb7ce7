"""Rule-based redaction: keyword removal, regex replacement and comment insertion."""

from __future__ import annotations

import itertools
import logging
import re
from abc import ABC, abstractmethod
from typing import Any

from pydantic.alias_generators import to_camel

from ctxgen.errors import ConfigurationError
from ctxgen.finder.patterns import compile_delimited, is_regex
from ctxgen.modifiers.base import Modifier

logger = logging.getLogger(__name__)

PRESET_PATTERNS: dict[str, dict[str, str]] = {
    "credit-card": {
        r"\b(?:\d{4}[-\s]?){3}\d{4}\b|\b\d{16}\b": "[CREDIT_CARD_REMOVED]",
    },
    "email": {
        r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b": "[EMAIL_REMOVED]",
    },
    "api-key": {
        r"\b[A-Za-z0-9_-]{32,}\b"
        r"|\b[A-Za-z0-9]{8}-[A-Za-z0-9]{4}-[A-Za-z0-9]{4}-[A-Za-z0-9]{4}-[A-Za-z0-9]{12}\b": "[API_KEY_REMOVED]",
    },
    "ip-address": {
        r"\b(?:\d{1,3}\.){3}\d{1,3}\b": "[IP_ADDRESS_REMOVED]",
    },
    "jwt": {
        r"\beyJ[a-zA-Z0-9_-]{10,}\.[a-zA-Z0-9_-]{10,}\.[a-zA-Z0-9_-]{10,}\b": "[JWT_TOKEN_REMOVED]",
    },
    "phone-number": {
        r"\b(?:\+\d{1,3}[-\s]?)?\(?\d{3}\)?[-\s]?\d{3}[-\s]?\d{4}\b": "[PHONE_NUMBER_REMOVED]",
    },
    "password-field": {
        r"(?i)\b(?:password|passwd|pwd|secret)\s*=\s*[\"'].*?[\"']": "[PASSWORD_REMOVED]",
    },
    "url": {
        r"https?://(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
        r"(?:[-a-zA-Z0-9()@:%_+.~#?&/=]*)": "[URL_REMOVED]",
    },
    "social-security": {
        r"\b\d{3}-\d{2}-\d{4}\b": "[SSN_REMOVED]",
    },
    "aws-key": {
        r"\bAKIA[0-9A-Z]{16}\b": "[AWS_KEY_REMOVED]",
    },
    "private-key": {
        r"-----BEGIN (?:RSA |DSA |EC |OPENSSH )?PRIVATE KEY-----": "[PRIVATE_KEY_REMOVED]",
    },
    "database-conn": {
        r"(?:jdbc:(?:mysql|postgresql|oracle)://[^\s\"']+"
        r"|mongodb(?:\+srv)?://[^\s\"']+"
        r"|(?:postgres(?:ql)?|mysql|redis)://[^\s\"']+)": "[DATABASE_CONNECTION_REMOVED]",
    },
}


def _option(config: dict[str, Any], key: str, default: Any = None) -> Any:
    """Read *key* in snake_case or camelCase form."""
    if key in config:
        return config[key]
    return config.get(to_camel(key), default)


# ── Rules ──────────────────────────────────────────────────────────


class Rule(ABC):
    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    def apply(self, content: str) -> str:
        ...


class KeywordRemovalRule(Rule):
    """Replaces keywords inline, or every line containing one."""

    def __init__(
        self,
        name: str,
        keywords: list[str],
        replacement: str = "[REMOVED]",
        case_sensitive: bool = False,
        remove_lines: bool = True,
    ) -> None:
        super().__init__(name)
        self.keywords = [k for k in keywords if k]
        self.replacement = replacement
        self.remove_lines = remove_lines
        flags = 0 if case_sensitive else re.IGNORECASE
        self._pattern = (
            re.compile("|".join(re.escape(k) for k in self.keywords), flags) if self.keywords else None
        )

    def apply(self, content: str) -> str:
        if self._pattern is None:
            return content
        if not self.remove_lines:
            return self._pattern.sub(lambda _: self.replacement, content)
        lines = content.split("\n")
        return "\n".join(self.replacement if self._pattern.search(line) else line for line in lines)


class RegexReplacementRule(Rule):
    """Applies ``{regex: replacement}`` pairs in insertion order."""

    def __init__(self, name: str, patterns: dict[str, str]) -> None:
        super().__init__(name)
        self._compiled: list[tuple[re.Pattern[str], str]] = []
        for pattern, replacement in patterns.items():
            self._compiled.append((self._compile(pattern), replacement))

    @staticmethod
    def _compile(pattern: str) -> re.Pattern[str]:
        if is_regex(pattern):
            return compile_delimited(pattern)
        try:
            return re.compile(pattern)
        except re.error as e:
            raise ConfigurationError(f"Invalid regular expression {pattern!r}: {e}") from e

    def apply(self, content: str) -> str:
        for regex, replacement in self._compiled:
            content = regex.sub(lambda _, r=replacement: r, content)
        return content


_CLASS_RE = re.compile(r"^([ \t]*)((?:abstract\s+|final\s+|export\s+)*(?:class|interface|trait|enum|struct)\s+\w+)", re.M)
_METHOD_RE = re.compile(
    r"^([ \t]*)((?:(?:public|private|protected|static|async|export)\s+)*(?:function|def|fn|func)\s+\w+)", re.M
)


class CommentInsertionRule(Rule):
    """Inserts marker comments at the file head, before classes and methods, or every N lines.

    Periodic comments cycle through ``random_comments`` in order so output is
    reproducible.
    """

    def __init__(
        self,
        name: str,
        file_header_comment: str = "",
        class_comment: str = "",
        method_comment: str = "",
        frequency: int = 0,
        random_comments: list[str] | None = None,
        comment_prefix: str = "//",
    ) -> None:
        super().__init__(name)
        self.file_header_comment = file_header_comment
        self.class_comment = class_comment
        self.method_comment = method_comment
        self.frequency = frequency
        self.random_comments = list(random_comments or [])
        self.comment_prefix = comment_prefix

    def _comment(self, text: str, indent: str = "") -> str:
        return "\n".join(f"{indent}{self.comment_prefix} {line}" for line in text.split("\n"))

    def apply(self, content: str) -> str:
        if self.class_comment:
            content = _CLASS_RE.sub(
                lambda m: self._comment(self.class_comment, m.group(1)) + "\n" + m.group(0), content
            )
        if self.method_comment:
            content = _METHOD_RE.sub(
                lambda m: self._comment(self.method_comment, m.group(1)) + "\n" + m.group(0), content
            )
        if self.frequency > 0 and self.random_comments:
            cycle = itertools.cycle(self.random_comments)
            out: list[str] = []
            for i, line in enumerate(content.split("\n")):
                out.append(line)
                if i % self.frequency == 0 and line.strip():
                    indent = line[: len(line) - len(line.lstrip())]
                    out.append(self._comment(next(cycle), indent))
            content = "\n".join(out)
        if self.file_header_comment:
            content = self._comment(self.file_header_comment) + "\n\n" + content
        return content


# ── Factory & sanitizer ────────────────────────────────────────────


class RuleFactory:
    """Builds rules from ``{type: keyword|regex|comment, ...}`` mappings."""

    def __init__(self) -> None:
        self._counter = itertools.count(1)

    def create(self, config: dict[str, Any]) -> Rule:
        if not isinstance(config, dict) or "type" not in config:
            raise ConfigurationError('Rule configuration must include a "type" field')
        kind = config["type"]
        name = config.get("name") or f"{kind}-{next(self._counter)}"
        if kind == "keyword":
            keywords = config.get("keywords")
            if not isinstance(keywords, list):
                raise ConfigurationError('Keyword rule must include a "keywords" list')
            return KeywordRemovalRule(
                name=name,
                keywords=keywords,
                replacement=config.get("replacement", "[REMOVED]"),
                case_sensitive=bool(_option(config, "case_sensitive", False)),
                remove_lines=bool(_option(config, "remove_lines", True)),
            )
        if kind == "regex":
            patterns = config.get("patterns") or {}
            if not isinstance(patterns, dict):
                raise ConfigurationError('Regex rule "patterns" must be a mapping of regex to replacement')
            patterns = dict(patterns)
            for alias in _option(config, "use_patterns", []) or []:
                if alias not in PRESET_PATTERNS:
                    logger.warning("unknown sanitizer pattern preset '%s'", alias)
                    continue
                patterns.update(PRESET_PATTERNS[alias])
            if not patterns:
                raise ConfigurationError('Regex rule must include "patterns" or "usePatterns"')
            return RegexReplacementRule(name=name, patterns=patterns)
        if kind == "comment":
            return CommentInsertionRule(
                name=name,
                file_header_comment=_option(config, "file_header_comment", ""),
                class_comment=_option(config, "class_comment", ""),
                method_comment=_option(config, "method_comment", ""),
                frequency=int(_option(config, "frequency", 0)),
                random_comments=_option(config, "random_comments", []),
                comment_prefix=_option(config, "comment_prefix", "//"),
            )
        raise ConfigurationError(f"Unsupported rule type: {kind}")


class ContextSanitizer:
    """Ordered collection of rules, addressable by name."""

    def __init__(self, rules: list[Rule] | None = None) -> None:
        self._rules: dict[str, Rule] = {}
        for rule in rules or []:
            self.add_rule(rule)

    def add_rule(self, rule: Rule) -> None:
        self._rules[rule.name] = rule

    @property
    def rules(self) -> list[Rule]:
        return list(self._rules.values())

    def sanitize(self, content: str) -> str:
        for rule in self._rules.values():
            content = rule.apply(content)
        return content


class SanitizerModifier(Modifier):
    """``sanitizer`` modifier; options: ``{rules: [...]}``. Applies to every content type."""

    identifier = "sanitizer"

    def supports(self, content_type: str) -> bool:
        return True

    def modify(self, content: str, options: dict[str, Any], content_type: str = "") -> str:
        rules = options.get("rules") or []
        if not rules:
            return content
        factory = RuleFactory()
        sanitizer = ContextSanitizer([factory.create(rule) for rule in rules])
        return sanitizer.sanitize(content)
