"""
Semantic block pre-processor.

Known block containers (`<div class="theory">...</div>` and friends) hold
Markdown that markdown-it would otherwise pass through as raw HTML. Their
bodies are parsed here, before the main pass, and substituted back as one
opaque HTML block. The inline `important` span needs no help.

Only one nesting level is supported: a known container inside another
container's body is not processed, and the outer container ends at the first
matching close tag.
"""

from __future__ import annotations

import html
import logging
import re
from collections.abc import Callable

logger = logging.getLogger(__name__)

BLOCK_CONTAINERS = frozenset(
    {
        "theory",
        "solution",
        "example",
        "proof",
        "warning",
        "code-snippet",
        "two-columns",
        "side-note",
        "inline-list",
        "compact-table",
        "lead",
        "text-center",
        "text-start",
        "text-end",
        "text-justify",
        "no-break",
    }
)
INLINE_CONTAINERS = frozenset({"important"})
CONTAINER_CLASSES = BLOCK_CONTAINERS | INLINE_CONTAINERS

OPEN_TAG_RE = re.compile(r"<(div|span)\b([^<>]*)>", re.IGNORECASE)
CLASS_ATTR_RE = re.compile(r"""\bclass\s*=\s*(?:"([^"]*)"|'([^']*)')""", re.IGNORECASE)

RenderFn = Callable[[str], str]


def container_class(attrs: str) -> str | None:
    """Return the first known container class named in a tag's attributes."""
    match = CLASS_ATTR_RE.search(attrs)
    if match is None:
        return None
    classes = (match.group(1) if match.group(1) is not None else match.group(2)).split()
    for name in classes:
        if name in CONTAINER_CLASSES:
            return name
    return None


def _seal_blank_lines(markup: str) -> str:
    """
    Fold blank lines into the following line via an encoded newline.

    A blank line would end markdown-it's HTML block early and hand the rest
    of the container back to the prose parser; `&#10;` keeps `<pre>` content
    byte-for-byte equivalent.
    """
    lines = markup.split("\n")
    sealed = [lines[0]]
    for line in lines[1:]:
        if not sealed[-1].strip():
            sealed[-1] = f"{sealed[-1]}&#10;{line}"
        else:
            sealed.append(line)
    return "\n".join(sealed)


def preprocess(source: str, render_block: RenderFn) -> str:
    """
    Parse the body of every known block container ahead of the main pass.

    Inline containers are only normalized onto one line: markdown-it already
    parses the prose between inline tags, so the main pass handles them once.
    """
    out: list[str] = []
    pos = 0
    search_from = 0
    while True:
        opener = OPEN_TAG_RE.search(source, search_from)
        if opener is None:
            break
        name = container_class(opener.group(2))
        if name is None:
            search_from = opener.end()
            continue

        tag = opener.group(1).lower()
        closer = re.compile(rf"</{tag}\s*>", re.IGNORECASE).search(source, opener.end())
        out.append(source[pos : opener.start()])
        if closer is None:
            # Unclosed: show the tag as literal text instead of letting the
            # browser swallow the rest of the document into it.
            logger.debug("Unclosed <%s class=%r> container rendered as text", tag, name)
            out.append(html.escape(opener.group(0)))
            pos = search_from = opener.end()
            continue

        inner = source[opener.end() : closer.start()]
        if tag == "div":
            body = _seal_blank_lines(render_block(inner))
            if not body.endswith("\n"):
                body += "\n"
            out.append(f"\n\n{opener.group(0)}\n{body}</div>\n\n")
        else:
            out.append(f"{opener.group(0)}{inner.strip()}</span>")
        pos = search_from = closer.end()

    out.append(source[pos:])
    return "".join(out)
