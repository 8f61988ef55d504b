"""prompt_toolkit lexer coloring pill ids by category in the builder shell."""

from __future__ import annotations

import re
from typing import Callable, Optional

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .catalog import DEFAULT_CATALOG, Catalog, category_color
from .token_types import Category

# Palette color -> prompt_toolkit style string.
GROUP_STYLE = {
    "keyword": "bold ansibrightblack",
    "function": "bold ansimagenta",
    "condition": "ansiblue",
    "operator": "bold ansiblue",
    "variable": "ansiyellow",
    "muted": "",
    "command": "bold ansicyan",
    "number": "ansimagenta",
    "error": "bold ansired",
}

_WORD_RE = re.compile(r"\S+")


def style_for_category(category: Optional[Category]) -> str:
    return GROUP_STYLE.get(category_color(category), "")


def _word_style(word: str, first: bool, catalog: Catalog) -> str:
    if first and word.startswith("/"):
        return GROUP_STYLE["command"]

    spec = catalog.get(word)
    if spec is not None:
        return style_for_category(spec.category)

    if word.isdigit():
        return GROUP_STYLE["number"]

    return GROUP_STYLE["error"]


def _highlight_line(text: str, catalog: Catalog = DEFAULT_CATALOG) -> StyleAndTextTuples:
    """Split a line on whitespace and return styled fragments."""
    if not text:
        return [("", "")]

    result: StyleAndTextTuples = []
    pos = 0
    command = text.lstrip().startswith("/")

    for i, match in enumerate(_WORD_RE.finditer(text)):
        start, end = match.span()

        # Unstyled gap before word.
        if start > pos:
            result.append(("", text[pos:start]))

        word = match.group()
        # Arguments of slash commands stay plain unless they name a pill.
        if command and i > 0 and word not in catalog:
            result.append(("", word))
        else:
            result.append((_word_style(word, i == 0, catalog), word))
        pos = end

    if pos < len(text):
        result.append(("", text[pos:]))

    return result


class PillLexer(Lexer):
    """prompt_toolkit Lexer that colors pill ids typed into the shell."""

    def __init__(self, catalog: Catalog = DEFAULT_CATALOG):
        self.catalog = catalog

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno], self.catalog)
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
