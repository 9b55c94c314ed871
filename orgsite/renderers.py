"""Org markup to HTML conversion for orgsite.

This module implements the document converter on top of mistune. Org
constructs that differ from Markdown (keyword lines, star headlines,
``#+BEGIN_SRC`` blocks, quote blocks, ``[[...]]`` links and ``=verbatim=``
spans) are added as mistune plugins; everything else falls back to
mistune's own block and inline rules.

Conversion happens in two stages that callers may override:

- keyword handling: every ``#+KEY: VALUE`` line is passed to the keyword
  step, which by default records it for the document head.
- document assembly: the rendered body is passed to the template step,
  which by default wraps it in a complete HTML document.

Both steps can be replaced for the duration of a ``with intercept(...)``
block. Overrides live in thread-local state and are always restored when
the block exits, whether or not conversion succeeded.

Key names:
- org_to_html: Convert Org text to a complete HTML document.
- intercept: Temporarily override the keyword and template steps.
- OrgRenderer: mistune renderer with Pygments highlighting.
- ConversionError: Raised when the source cannot be converted.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import mistune
from markupsafe import escape

if TYPE_CHECKING:
    from mistune.block_parser import BlockParser
    from mistune.core import BlockState, InlineState
    from mistune.inline_parser import InlineParser

KeywordHook = Callable[[str, str], None]
TemplateHook = Callable[[str, dict[str, Any]], str]

KEYWORDS_ENV_KEY = "org_keywords"

ORG_KEYWORD_PATTERN = r"^#\+(?P<org_key>[A-Za-z0-9_-]+):(?P<org_value>[^\n]*)$"
ORG_HEADLINE_PATTERN = r"^(?P<org_stars>\*+)[ \t]+(?P<org_title>[^\n]*?)[ \t]*$"
ORG_SRC_PATTERN = r"^#\+(?i:begin_src)(?P<org_src_info>[ \t][^\n]*)?$"
ORG_QUOTE_PATTERN = r"^#\+(?i:begin_quote)[ \t]*$"
ORG_EXAMPLE_PATTERN = r"^#\+(?i:begin_example)[ \t]*$"
ORG_TABLE_PATTERN = r"^(?P<org_table_rows>[ \t]*\|[^\n]*(?:\n[ \t]*\|[^\n]*)*)$"
ORG_COMMENT_PATTERN = r"^#(?:[ \t][^\n]*)?$"
ORG_LINK_PATTERN = r"\[\[(?P<org_link_url>[^\]\n]+)\](?:\[(?P<org_link_text>[^\]\n]+)\])?\]"
ORG_CODE_PATTERN = (
    r"(?<![\w=~])(?P<org_code_mark>[=~])(?P<org_code_text>[^\s=~](?:[^\n]*?[^\s])?)"
    r"(?P=org_code_mark)(?!\w)"
)

ORG_EMPHASIS_PATTERN = (
    r"(?<![\w*/+_])(?P<org_em_mark>[*/+_])(?P<org_em_text>[^\s*/+_](?:[^\n]*?[^\s])?)"
    r"(?P=org_em_mark)(?!\w)"
)

EMPHASIS_TOKENS = {"*": "strong", "/": "emphasis", "+": "org_strike", "_": "org_underline"}

_SRC_END_RE = re.compile(r"^#\+(?i:end_src)[ \t]*$", re.M)
_QUOTE_END_RE = re.compile(r"^#\+(?i:end_quote)[ \t]*$", re.M)
_EXAMPLE_END_RE = re.compile(r"^#\+(?i:end_example)[ \t]*$", re.M)
_TABLE_RULE_RE = re.compile(r"^[ \t]*\|[ \t]*:?-[-+:| \t]*$")

DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8" />
<title>{title}</title>
</head>
<body>
{body}</body>
</html>
"""


class ConversionError(Exception):
    """Raised when Org source cannot be converted to HTML.

    Attributes:
        message: Human-readable description of the problem.
        line: 1-based line number where the problem starts, when known.
    """

    def __init__(self, message: str, line: int | None = None):
        self.message = message
        self.line = line
        location = f"line {line}: " if line is not None else ""
        super().__init__(f"{location}{message}")


class _Hooks(threading.local):
    """Per-thread override slots for the keyword and template steps."""

    def __init__(self) -> None:
        self.keyword: KeywordHook | None = None
        self.template: TemplateHook | None = None


_hooks = _Hooks()


@contextmanager
def intercept(
    template: TemplateHook | None = None,
    keyword: KeywordHook | None = None,
) -> Iterator[None]:
    """Override the document assembly and keyword steps inside a block.

    Args:
        template: Called with ``(body_html, info)`` instead of the default
            document assembly; its return value becomes the conversion result.
        keyword: Called with ``(key, value)`` for every keyword line, before
            the default keyword handling.

    Yields:
        None. The previous overrides are restored on exit.
    """
    previous = (_hooks.template, _hooks.keyword)
    _hooks.template = template
    _hooks.keyword = keyword
    try:
        yield
    finally:
        _hooks.template, _hooks.keyword = previous


def is_intercepted() -> bool:
    """Return True if any override is installed in the current thread."""
    return _hooks.template is not None or _hooks.keyword is not None


def handle_keyword(key: str, value: str, env: dict[str, Any]) -> None:
    """Keyword step: record a ``#+KEY: VALUE`` declaration.

    An installed keyword override sees the declaration first.
    """
    if _hooks.keyword is not None:
        _hooks.keyword(key, value)
    env.setdefault(KEYWORDS_ENV_KEY, {})[key.lower()] = value


def html_template(body: str, info: dict[str, Any]) -> str:
    """Document assembly step: wrap the body in a complete HTML document."""
    if _hooks.template is not None:
        return _hooks.template(body, info)
    title = info.get("title") or ""
    return DOCUMENT_TEMPLATE.format(title=escape(title), body=body)


def _line_of(src: str, pos: int) -> int:
    return src.count("\n", 0, pos) + 1


def parse_org_keyword(block: BlockParser, m: re.Match[str], state: BlockState) -> int:
    key = m.group("org_key")
    value = m.group("org_value").strip()
    handle_keyword(key, value, state.env)
    return m.end() + 1


def parse_org_comment(block: BlockParser, m: re.Match[str], state: BlockState) -> int:
    return m.end() + 1


def parse_org_headline(block: BlockParser, m: re.Match[str], state: BlockState) -> int:
    level = min(len(m.group("org_stars")), 6)
    text = m.group("org_title")
    state.append_token({"type": "heading", "text": text, "attrs": {"level": level}, "style": "org"})
    return m.end() + 1


def parse_org_src(block: BlockParser, m: re.Match[str], state: BlockState) -> int:
    end = _SRC_END_RE.search(state.src, m.end())
    if end is None:
        raise ConversionError("unterminated #+BEGIN_SRC block", _line_of(state.src, m.start()))
    code = state.src[m.end() + 1 : end.start()]
    info = (m.group("org_src_info") or "").strip()
    attrs = {"info": info.split(None, 1)[0]} if info else {}
    state.append_token({"type": "block_code", "raw": code, "attrs": attrs, "style": "org"})
    return end.end() + 1


def parse_org_quote(block: BlockParser, m: re.Match[str], state: BlockState) -> int:
    end = _QUOTE_END_RE.search(state.src, m.end())
    if end is None:
        raise ConversionError("unterminated #+BEGIN_QUOTE block", _line_of(state.src, m.start()))
    text = state.src[m.end() + 1 : end.start()]
    child = state.child_state(text)
    block.parse(child)
    state.append_token({"type": "block_quote", "children": child.tokens})
    return end.end() + 1


def parse_org_example(block: BlockParser, m: re.Match[str], state: BlockState) -> int:
    end = _EXAMPLE_END_RE.search(state.src, m.end())
    if end is None:
        raise ConversionError("unterminated #+BEGIN_EXAMPLE block", _line_of(state.src, m.start()))
    code = state.src[m.end() + 1 : end.start()]
    state.append_token({"type": "block_code", "raw": code, "attrs": {}, "style": "org"})
    return end.end() + 1


def _table_cells(line: str, head: bool) -> list[dict[str, Any]]:
    text = line.strip()[1:]
    if text.endswith("|"):
        text = text[:-1]
    return [
        {"type": "table_cell", "text": cell.strip(), "attrs": {"align": None, "head": head}}
        for cell in text.split("|")
    ]


def parse_org_table(block: BlockParser, m: re.Match[str], state: BlockState) -> int:
    """Parse an Org table.

    Rows above the first horizontal rule form the header; a table without
    a rule has no header.
    """
    lines = m.group("org_table_rows").split("\n")
    rules = [i for i, line in enumerate(lines) if _TABLE_RULE_RE.match(line)]
    head_end = rules[0] if rules and rules[0] > 0 else 0
    head_lines = [line for line in lines[:head_end] if not _TABLE_RULE_RE.match(line)]
    body_lines = [line for line in lines[head_end:] if not _TABLE_RULE_RE.match(line)]

    children = []
    if head_lines:
        # HTML allows a single header row; extra rows above the rule are joined into it.
        cells = _table_cells(head_lines[0], head=True)
        for line in head_lines[1:]:
            for cell, extra in zip(cells, _table_cells(line, head=True)):
                cell["text"] = f"{cell['text']} {extra['text']}".strip()
        children.append({"type": "table_head", "children": cells})
    rows = [{"type": "table_row", "children": _table_cells(line, head=False)} for line in body_lines]
    if rows:
        children.append({"type": "table_body", "children": rows})
    if children:
        state.append_token({"type": "table", "children": children})
    return m.end() + 1


def parse_org_link(inline: InlineParser, m: re.Match[str], state: InlineState) -> int:
    url = m.group("org_link_url")
    text = m.group("org_link_text") or url
    state.append_token(
        {
            "type": "link",
            "children": [{"type": "text", "raw": text}],
            "attrs": {"url": url},
        }
    )
    return m.end()


def parse_org_code(inline: InlineParser, m: re.Match[str], state: InlineState) -> int:
    state.append_token({"type": "codespan", "raw": m.group("org_code_text")})
    return m.end()


def parse_org_emphasis(inline: InlineParser, m: re.Match[str], state: InlineState) -> int:
    child = state.copy()
    child.src = m.group("org_em_text")
    children = inline.render(child)
    state.append_token({"type": EMPHASIS_TOKENS[m.group("org_em_mark")], "children": children})
    return m.end()


def org(md: mistune.Markdown) -> None:
    """mistune plugin adding the Org block and inline constructs."""
    md.block.register("org_src", ORG_SRC_PATTERN, parse_org_src, before="fenced_code")
    md.block.register("org_quote", ORG_QUOTE_PATTERN, parse_org_quote, before="fenced_code")
    md.block.register("org_example", ORG_EXAMPLE_PATTERN, parse_org_example, before="fenced_code")
    md.block.register("org_table", ORG_TABLE_PATTERN, parse_org_table, before="paragraph")
    md.block.register("org_keyword", ORG_KEYWORD_PATTERN, parse_org_keyword, before="fenced_code")
    md.block.register("org_comment", ORG_COMMENT_PATTERN, parse_org_comment, before="fenced_code")
    md.block.register("org_headline", ORG_HEADLINE_PATTERN, parse_org_headline, before="thematic_break")
    md.inline.register("org_link", ORG_LINK_PATTERN, parse_org_link, before="link")
    md.inline.register("org_code", ORG_CODE_PATTERN, parse_org_code, before="codespan")
    md.inline.register("org_emphasis", ORG_EMPHASIS_PATTERN, parse_org_emphasis, before="emphasis")


class OrgRenderer(mistune.HTMLRenderer):
    """HTML renderer with Pygments syntax highlighting for source blocks."""

    def __init__(self) -> None:
        super().__init__(escape=False)

    def org_strike(self, text: str) -> str:
        return "<del>" + text + "</del>"

    def org_underline(self, text: str) -> str:
        return '<span class="underline">' + text + "</span>"

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a source block, highlighted when the language is known.

        Args:
            code: The code content.
            info: Language identifier from ``#+BEGIN_SRC``.

        Returns:
            HTML string with highlighted code.
        """
        if info:
            try:
                from pygments import highlight
                from pygments.formatters import HtmlFormatter
                from pygments.lexers import get_lexer_by_name
                from pygments.util import ClassNotFound

                lexer = get_lexer_by_name(info, stripall=True)
                formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
                return highlight(code, lexer, formatter)
            except ClassNotFound:
                pass
        escaped = code.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
        lang_class = f' class="language-{info}"' if info else ""
        return f"<pre><code{lang_class}>{escaped}</code></pre>\n"


def create_markdown() -> mistune.Markdown:
    """Build a mistune instance configured for Org input."""
    return mistune.create_markdown(renderer=OrgRenderer(), plugins=[org, "table"])


def org_to_html(text: str) -> str:
    """Convert Org text to HTML.

    Args:
        text: Org source text.

    Returns:
        Output of the document assembly step, a complete HTML document
        unless an override is installed.

    Raises:
        ConversionError: If the source is malformed.
    """
    markdown = create_markdown()
    body, state = markdown.parse(text)
    keywords = state.env.get(KEYWORDS_ENV_KEY, {})
    info = {"title": keywords.get("title"), "keywords": keywords}
    return html_template(str(body), info)
