"""HTML to text cleanup and CSS selector extraction."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

_NOISE_TAGS = ("script", "style", "noscript", "iframe", "svg", "head")
_BLANK_RUNS = re.compile(r"\n\s*\n+")


def clean_html(html: str) -> str:
    """Strip markup, scripts and styles, returning readable text."""
    soup = BeautifulSoup(html, "lxml")
    for tag in soup(_NOISE_TAGS):
        tag.decompose()
    text = soup.get_text("\n")
    lines = (line.strip() for line in text.splitlines())
    return _BLANK_RUNS.sub("\n\n", "\n".join(lines)).strip()


def select_html(html: str, selector: str) -> str | None:
    """Return the outer HTML of every element matching *selector*, or None if nothing matched."""
    soup = BeautifulSoup(html, "lxml")
    matches = soup.select(selector)
    if not matches:
        return None
    return "\n".join(str(el) for el in matches)
