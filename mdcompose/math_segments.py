"""
Math segment extraction and restoration.

TeX notation is lifted out of the source before any Markdown parsing so the
prose parser can never mangle it (underscores read as emphasis, backslashes
eaten as escapes, `|` splitting table cells). Each expression is swapped for
an alphanumeric placeholder token; after the prose pass the tokens are
replaced by typeset markup.

Example:
    >>> result = extract("$x^2$ and $$y^2$$")
    >>> [s.display for s in result.segments]
    [False, True]
    >>> restore(result.text, result.segments, mathjax_markup)
"""

from __future__ import annotations

import html
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import NamedTuple

from mdcompose.exceptions import MathRenderError

logger = logging.getLogger(__name__)

# Letters and digits only: nothing markdown-it treats as syntax, nothing the
# HTML escaper or typographer rewrites.
TOKEN_PREFIX = "MDCMATH"
TOKEN_TERMINATOR = "X"

BLOCK_MATH_RE = re.compile(r"\$\$([\s\S]+?)\$\$")
INLINE_MATH_RE = re.compile(r"\$([^$\n]+?)\$")
# Code keeps its dollars: fenced blocks (closed by a matching fence or the end
# of input) and backtick spans that do not cross a blank line.
FENCE_RE = re.compile(
    r"^[ \t]{0,3}(`{3,}|~{3,})[^\n]*\n[\s\S]*?(?:^[ \t]{0,3}\1[`~]*[ \t]*$|\Z)",
    re.MULTILINE,
)
CODE_SPAN_RE = re.compile(r"(?<!`)(`+)(?!`)(?:(?!\n[ \t]*\n)[\s\S])+?(?<!`)\1(?!`)")

RenderMath = Callable[[str, bool], str]


@dataclass(frozen=True)
class MathSegment:
    token: str
    expression: str
    display: bool


class ExtractionResult(NamedTuple):
    text: str
    segments: list[MathSegment]


def _collision_free_prefix(source: str) -> str:
    """Grow the token prefix until it does not occur anywhere in the source."""
    prefix = TOKEN_PREFIX
    while prefix in source:
        prefix += "Q"
    return prefix


def _inline_spans(source: str, start: int, end: int) -> list[tuple[int, int, str, bool]]:
    return [
        (match.start(), match.end(), match.group(1), False)
        for match in INLINE_MATH_RE.finditer(source, start, end)
    ]


def _code_ranges(source: str) -> list[tuple[int, int]]:
    """Fenced blocks first, then code spans in what the fences leave over."""
    ranges: list[tuple[int, int]] = []
    cursor = 0
    for fence in FENCE_RE.finditer(source):
        ranges.extend(match.span() for match in CODE_SPAN_RE.finditer(source, cursor, fence.start()))
        ranges.append(fence.span())
        cursor = fence.end()
    ranges.extend(match.span() for match in CODE_SPAN_RE.finditer(source, cursor))
    return ranges


def _math_spans(source: str, start: int, end: int) -> list[tuple[int, int, str, bool]]:
    spans: list[tuple[int, int, str, bool]] = []
    cursor = start
    # Block math claims its ranges first; inline math is only searched in the
    # gaps so `$` pairs never straddle a block.
    for match in BLOCK_MATH_RE.finditer(source, start, end):
        spans.extend(_inline_spans(source, cursor, match.start()))
        spans.append((match.start(), match.end(), match.group(1), True))
        cursor = match.end()
    spans.extend(_inline_spans(source, cursor, end))
    return spans


def extract(source: str) -> ExtractionResult:
    """Replace every math expression outside code with a unique placeholder token."""
    spans: list[tuple[int, int, str, bool]] = []
    cursor = 0
    for code_start, code_end in _code_ranges(source):
        spans.extend(_math_spans(source, cursor, code_start))
        cursor = code_end
    spans.extend(_math_spans(source, cursor, len(source)))

    if not spans:
        return ExtractionResult(source, [])

    prefix = _collision_free_prefix(source)
    segments: list[MathSegment] = []
    pieces: list[str] = []
    cursor = 0
    for index, (start, end, expression, display) in enumerate(spans):
        token = f"{prefix}{index}{TOKEN_TERMINATOR}"
        segments.append(MathSegment(token=token, expression=expression, display=display))
        pieces.append(source[cursor:start])
        pieces.append(token)
        cursor = end
    pieces.append(source[cursor:])
    return ExtractionResult("".join(pieces), segments)


def mathjax_markup(expression: str, display: bool) -> str:
    """Emit TeX in MathJax delimiters; the page loader typesets it after mount."""
    escaped = html.escape(expression.strip(), quote=False)
    if display:
        return f"\\[{escaped}\\]"
    return f"\\({escaped}\\)"


def _wrap(rendered: str, display: bool) -> str:
    if display:
        return f'<div class="math-display" dir="ltr">{rendered}</div>'
    return f'<span class="math-inline" dir="ltr">{rendered}</span>'


def _error_markup(segment: MathSegment, reason: str) -> str:
    return (
        f'<span class="math-error" dir="ltr" title="{html.escape(reason)}">'
        f"{html.escape(segment.expression)}</span>"
    )


def render_segment(segment: MathSegment, render_math: RenderMath) -> str:
    """Typeset one segment, degrading to a visible error marker on failure."""
    try:
        rendered = render_math(segment.expression, segment.display)
        if not isinstance(rendered, str):
            raise MathRenderError(segment.expression, "renderer returned no markup")
    except Exception as exc:
        logger.warning("Math render failed for %r: %s", segment.expression, exc)
        return _error_markup(segment, str(exc) or exc.__class__.__name__)
    return _wrap(rendered, segment.display)


def restore(html_text: str, segments: list[MathSegment], render_math: RenderMath | None) -> str:
    """
    Replace every placeholder occurrence with typeset markup.

    Tokens may appear more than once (the TOC copies heading text), so each
    replacement is global. Without a renderer the text is returned unchanged.
    """
    if render_math is None:
        if segments:
            logger.warning("Math renderer unavailable; leaving %d placeholders", len(segments))
        return html_text

    for segment in segments:
        markup = render_segment(segment, render_math)
        if segment.display:
            # A paragraph holding only the block becomes the block itself.
            lone_paragraph = re.compile(rf"<p>\s*{re.escape(segment.token)}\s*</p>")
            html_text = lone_paragraph.sub(lambda _m: markup, html_text)
        html_text = html_text.replace(segment.token, markup)
    return html_text


def find_unresolved_tokens(html_text: str, segments: list[MathSegment]) -> list[str]:
    return [segment.token for segment in segments if segment.token in html_text]
