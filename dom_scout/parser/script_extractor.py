# === FILE: dom_scout/parser/script_extractor.py ===
"""Inline ``<script>`` extraction for DomScout.

Only scripts carrying literal code are returned: a ``<script src="...">`` with
no body has no children and is skipped, so external scripts never reach the
pattern matcher.  Order follows the document (depth-first, pre-order).

The default ``html5lib`` backend builds the tree the way a browser with
JavaScript enabled does: ``<noscript>`` and ``<textarea>`` bodies are text, so a
``<script>`` spelled inside them is not a script.  bs4 always runs html5lib with
scripting disabled, hence html5lib is called directly here.  The bs4 backends
(``html.parser``, ``lxml``) do not know about raw-text elements at all, so
scripts nested under one of them are dropped after parsing.

Malformed markup is tolerated the way browsers tolerate it; :class:`ParseError`
is raised only when the parser refuses the input outright.
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Final, Literal

import html5lib
from bs4 import BeautifulSoup, Comment, NavigableString
from bs4.builder import ParserRejectedMarkup

from dom_scout.errors import ParseError

__all__: Sequence[str] = ("ScriptExtractor", "extract_scripts")

ParserName = Literal["html5lib", "html.parser", "lxml"]

# elements whose content a scripting browser treats as text, never as markup
RAW_TEXT_ELEMENTS: Final[list[str]] = [
    "iframe", "noembed", "noframes", "noscript", "plaintext",
    "style", "textarea", "title", "xmp",
]


class ScriptExtractor:
    """Pulls inline script bodies out of raw page markup."""

    def __init__(self, parser: ParserName = "html5lib") -> None:
        self.parser = parser

    def extract(self, markup: str) -> list[str]:
        if self.parser == "html5lib":
            return self._extract_html5(markup)
        return self._extract_soup(markup)

    @staticmethod
    def _extract_html5(markup: str) -> list[str]:
        root = html5lib.parse(
            markup, treebuilder="etree", namespaceHTMLElements=False, scripting=True
        )
        return [node.text for node in root.iter("script") if node.text]

    def _extract_soup(self, markup: str) -> list[str]:
        try:
            soup = BeautifulSoup(markup, self.parser)
        except ParserRejectedMarkup as exc:
            raise ParseError(f"failed to parse HTML: {exc}") from exc

        scripts: list[str] = []
        for tag in soup.find_all("script"):
            if tag.find_parent(RAW_TEXT_ELEMENTS) is not None:
                continue
            first = next(iter(tag.children), None)
            if isinstance(first, NavigableString) and not isinstance(first, Comment):
                scripts.append(str(first))
        return scripts


def extract_scripts(markup: str, parser: ParserName = "html5lib") -> list[str]:
    """Shortcut for ``ScriptExtractor(parser).extract(markup)``."""
    return ScriptExtractor(parser).extract(markup)
