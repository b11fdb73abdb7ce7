"""Pattern helpers shared by the file matcher: delimited regexes and globs."""

from __future__ import annotations

import re
from functools import lru_cache

from ctxgen.errors import ConfigurationError

_MODIFIERS = "imsxuADUn"
_BRACKET_PAIRS = (("{", "}"), ("(", ")"), ("[", "]"), ("<", ">"))
_WILDCARDS = ("*", "?", "[", "{")

_FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}


def _split_delimited(pattern: str) -> tuple[str, str] | None:
    """Return (body, modifiers) when *pattern* looks like ``/body/mods``."""
    stripped = pattern.rstrip(_MODIFIERS)
    # Modifier letters may also be the closing char of the body; back off one at a time.
    for cut in range(len(pattern), len(stripped) - 1, -1):
        head = pattern[:cut]
        mods = pattern[cut:]
        if len(head) < 3:
            continue
        start, end = head[0], head[-1]
        if start == end:
            if start.isalnum() or start in "*? \\":
                continue
            return head[1:-1], mods
        if (start, end) in _BRACKET_PAIRS:
            if start == "{" and _is_brace_alternation(head[1:-1]):
                continue
            return head[1:-1], mods
    return None


def _is_brace_alternation(body: str) -> bool:
    """True when *body* has a comma outside nested braces, so ``{foo,bar}`` stays a glob."""
    depth = 0
    for ch in body:
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
        elif ch == "," and depth == 0:
            return True
    return False


def is_regex(pattern: str) -> bool:
    """True for delimited regexes such as ``/foo/i``, ``#bar#`` or ``{baz}``."""
    return _split_delimited(pattern) is not None


def contains_wildcard(pattern: str) -> bool:
    return any(ch in pattern for ch in _WILDCARDS)


@lru_cache(maxsize=512)
def compile_delimited(pattern: str) -> re.Pattern[str]:
    """Compile a delimited regex into a Python pattern, honouring i/m/s/x modifiers."""
    parts = _split_delimited(pattern)
    if parts is None:
        raise ConfigurationError(f"Not a delimited regular expression: {pattern!r}")
    body, mods = parts
    flags = 0
    for mod in mods:
        flags |= _FLAG_MAP.get(mod, 0)
    try:
        return re.compile(body, flags)
    except re.error as e:
        raise ConfigurationError(f"Invalid regular expression {pattern!r}: {e}") from e


def glob_to_regex(glob: str) -> str:
    """Translate a glob into an anchored regex.

    ``*`` and ``?`` stop at ``/``, ``**`` crosses directories, ``[..]`` is a
    character class (``[!..]`` negated) and ``{a,b}`` is an alternation.
    """
    out = ["^"]
    i = 0
    in_class = False
    brace_depth = 0
    escaping = False
    while i < len(glob):
        ch = glob[i]
        if escaping:
            out.append(re.escape(ch))
            escaping = False
        elif ch == "\\":
            escaping = True
        elif in_class:
            if ch == "]":
                in_class = False
                out.append("]")
            elif ch == "!" and out[-1] == "[":
                out.append("^")
            else:
                out.append(ch)
        elif ch == "*":
            if glob[i + 1 : i + 2] == "*":
                i += 1
                # "**/" also matches zero directories
                if glob[i + 1 : i + 2] == "/":
                    i += 1
                    out.append("(?:.*/)?")
                else:
                    out.append(".*")
            else:
                out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        elif ch == "[":
            in_class = True
            out.append("[")
        elif ch == "{":
            brace_depth += 1
            out.append("(?:")
        elif ch == "}" and brace_depth:
            brace_depth -= 1
            out.append(")")
        elif ch == "," and brace_depth:
            out.append("|")
        else:
            out.append(re.escape(ch))
        i += 1
    if in_class or brace_depth:
        raise ConfigurationError(f"Unbalanced glob pattern: {glob!r}")
    out.append("$")
    return "".join(out)


@lru_cache(maxsize=512)
def compile_glob(glob: str) -> re.Pattern[str]:
    try:
        return re.compile(glob_to_regex(glob))
    except re.error as e:
        raise ConfigurationError(f"Invalid glob pattern {glob!r}: {e}") from e


def match_name(pattern: str, filename: str) -> bool:
    """Match a file's basename against a glob or delimited regex."""
    if is_regex(pattern):
        return compile_delimited(pattern).search(filename) is not None
    return compile_glob(pattern).match(filename) is not None


def match_path(pattern: str, relative_path: str) -> bool:
    """Match a root-relative path.

    Delimited regexes search the path, globs must match it whole (or a leading
    directory of it), anything else is a plain substring test.
    """
    relative_path = relative_path.replace("\\", "/")
    if is_regex(pattern):
        return compile_delimited(pattern).search(relative_path) is not None
    if contains_wildcard(pattern):
        regex = compile_glob(pattern.strip("/"))
        if regex.match(relative_path):
            return True
        parts = relative_path.split("/")
        return any(regex.match("/".join(parts[:n])) for n in range(1, len(parts)))
    return pattern.replace("\\", "/") in relative_path


def match_content(pattern: str, content: str) -> bool:
    """Substring test, or a regex search when the pattern is delimited."""
    if pattern in content:
        return True
    if is_regex(pattern):
        return compile_delimited(pattern).search(content) is not None
    return False
