"""Markdown-flavoured text assembly shared by the fetchers."""

from __future__ import annotations


class ContentBuilder:
    """Accumulates blocks and renders them as one string."""

    def __init__(self) -> None:
        self._blocks: list[str] = []

    def add_title(self, title: str, level: int = 1) -> ContentBuilder:
        if title:
            self._blocks.append(f"{'#' * level} {title}\n\n")
        return self

    def add_text(self, text: str) -> ContentBuilder:
        if text:
            self._blocks.append(text.rstrip("\n") + "\n\n")
        return self

    def add_description(self, description: str) -> ContentBuilder:
        return self.add_text(description)

    def add_comment(self, comment: str) -> ContentBuilder:
        self._blocks.append(f"// {comment}\n")
        return self

    def add_code_block(self, code: str, language: str = "", path: str | None = None) -> ContentBuilder:
        header = f"// Path: {path}\n" if path else ""
        code = code.rstrip("\n")
        self._blocks.append(f"```{language}\n{header}{code}\n```\n\n")
        return self

    def add_tree_view(self, tree_view: str) -> ContentBuilder:
        if tree_view:
            tree_view = tree_view.rstrip("\n")
            self._blocks.append(f"```\n{tree_view}\n```\n\n")
        return self

    def add_separator(self, char: str = "-", length: int = 60) -> ContentBuilder:
        self._blocks.append(char * length + "\n\n")
        return self

    def build(self) -> str:
        return "".join(self._blocks)

    def __str__(self) -> str:
        return self.build().rstrip("\n")
