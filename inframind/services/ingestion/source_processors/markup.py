"""Markup cleaning shared by the file and connector processors.

Retrieval works on prose, so markdown syntax and HTML tags are stripped
before chunking; link targets, emphasis markers and list bullets only add
noise to embeddings.
"""

from __future__ import annotations

import html
import re

from bs4 import BeautifulSoup

_MARKDOWN_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"^#{1,6}\s+", re.MULTILINE), ""),  # headers
    (re.compile(r"\*\*(.*?)\*\*"), r"\1"),  # bold
    (re.compile(r"\*(.*?)\*"), r"\1"),  # italic
    (re.compile(r"`{1,3}(.*?)`{1,3}"), r"\1"),  # inline code
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),  # links keep their text
    (re.compile(r"^\s*[-*+]\s+", re.MULTILINE), ""),  # bullets
    (re.compile(r"^\s*\d+\.\s+", re.MULTILINE), ""),  # numbered lists
]

_FIRST_HEADING = re.compile(r"^#\s+(.+)$", re.MULTILINE)
_CDATA = re.compile(r"<!\[CDATA\[(.*?)\]\]>", re.DOTALL)
_BLOCK_TAGS = [
    "address", "article", "blockquote", "br", "dd", "div", "dl", "dt", "h1", "h2", "h3",
    "h4", "h5", "h6", "hr", "li", "ol", "p", "pre", "section", "table", "td", "th", "tr", "ul",
    "ac:structured-macro", "ac:plain-text-body", "ac:rich-text-body",
]
_WHITESPACE = re.compile(r"\s+")


def clean_markdown(content: str) -> str:
    """Strip markdown syntax, keeping the readable text."""
    for pattern, replacement in _MARKDOWN_RULES:
        content = pattern.sub(replacement, content)
    return content.strip()


def first_heading(content: str) -> str | None:
    """Return the text of the first level-1 ``# `` heading, if any."""
    match = _FIRST_HEADING.search(content)
    return match.group(1).strip() if match else None


def strip_html(markup: str) -> str:
    """Return the visible text of *markup* with whitespace collapsed.

    Block-level elements are separated by whitespace while inline elements
    keep their text joined, so ``<p>a</p><p>b</p>`` becomes ``"a b"`` and
    ``<b>re</b>start`` stays ``"restart"``.  ``script`` / ``style`` bodies
    are dropped; CDATA sections (Confluence code macros) are kept as text.
    """
    markup = _CDATA.sub(lambda m: html.escape(m.group(1)), markup)
    soup = BeautifulSoup(markup, "html.parser")

    for tag in soup.find_all(["script", "style"]):
        tag.decompose()
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.insert_before(" ")
        tag.insert_after(" ")

    text = soup.get_text().replace("\xa0", " ")
    return _WHITESPACE.sub(" ", text).strip()


def file_extension(filename: str) -> str:
    """Return the lower-cased extension, or ``""`` for dotfiles / no extension."""
    last_dot = filename.rfind(".")
    return filename[last_dot + 1 :].lower() if last_dot > 0 else ""


def file_stem(filename: str) -> str:
    """Return *filename* without its extension (path components kept)."""
    last_dot = filename.rfind(".")
    return filename[:last_dot] if last_dot > 0 else filename
