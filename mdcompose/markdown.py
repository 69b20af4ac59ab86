"""Prose parser adapter around markdown-it."""

from __future__ import annotations

import re
from collections import deque
from dataclasses import dataclass, field

from markdown_it import MarkdownIt
from mdit_py_plugins.tasklists import tasklists_plugin

from mdcompose.blocks import BLOCK_CONTAINERS, OPEN_TAG_RE, container_class

SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
SLUG_SPACE_RE = re.compile(r"[\s_-]+")
TOC_LEVELS = (1, 2)


@dataclass(frozen=True)
class HeadingEntry:
    id: str
    text: str  # rendered inline markup, may still hold math tokens
    level: int


@dataclass
class ParseState:
    """Per-render state threaded through markdown-it's `env`."""

    headings: list[HeadingEntry] = field(default_factory=list)
    heading_count: int = 0
    # Headings from pre-rendered container bodies, one list per container in
    # source order, waiting for the main pass to reach that container.
    pending_blocks: deque[list[HeadingEntry]] = field(default_factory=deque)

    def next_heading_id(self, text: str) -> str:
        # Counter suffix keeps ids unique for the whole render pass, including
        # headings parsed inside containers.
        self.heading_count += 1
        return f"{slugify(text)}-{self.heading_count}"

    def flush_pending(self) -> None:
        while self.pending_blocks:
            self.headings.extend(self.pending_blocks.popleft())


def slugify(text: str) -> str:
    slug = SLUG_STRIP_RE.sub("", text).strip().lower()
    slug = SLUG_SPACE_RE.sub("-", slug).strip("-")
    return slug or "section"


def is_container_block(markup: str) -> bool:
    """True when an HTML block opens with a known block container div."""
    match = OPEN_TAG_RE.match(markup.lstrip())
    if match is None or match.group(1).lower() != "div":
        return False
    return container_class(match.group(2)) in BLOCK_CONTAINERS


class ProseParser:
    """Converts block-structured text to HTML, assigning heading anchors."""

    def __init__(self) -> None:
        self._md = (
            MarkdownIt(
                "commonmark",
                {"html": True, "linkify": True, "typographer": True, "breaks": True},
            )
            .enable("table")
            .enable("strikethrough")
            .enable("linkify")
        )
        self._md.use(tasklists_plugin, enabled=False)

        default_render_token = self._md.renderer.renderToken
        default_html_block = self._md.renderer.rules["html_block"]
        default_html_inline = self._md.renderer.rules.get("html_inline")

        def custom_heading_open(tokens, idx, options, env):
            token = tokens[idx]
            state = env.get("state") if isinstance(env, dict) else None
            if state is None:
                return default_render_token(tokens, idx, options, env)

            inline = tokens[idx + 1] if idx + 1 < len(tokens) and tokens[idx + 1].type == "inline" else None
            heading_id = state.next_heading_id(inline.content if inline is not None else "")
            token.attrSet("id", heading_id)
            level = int(token.tag[1:])
            collected = env.get("collect_into")
            if collected is not None and level in TOC_LEVELS:
                text = self._md.renderer.renderInline(inline.children or [], options, env) if inline else ""
                collected.append(HeadingEntry(id=heading_id, text=text, level=level))
            return default_render_token(tokens, idx, options, env)

        def custom_html_block(tokens, idx, options, env):
            # A pre-rendered container reached by the main pass: its headings
            # join the TOC here, in document order.
            state = env.get("state") if isinstance(env, dict) else None
            if (
                state is not None
                and env.get("main_pass")
                and state.pending_blocks
                and is_container_block(tokens[idx].content)
            ):
                state.headings.extend(state.pending_blocks.popleft())
            return default_html_block(tokens, idx, options, env)

        def custom_html_inline(tokens, idx, options, env):
            # tasklists_plugin emits its checkbox as raw inline HTML; swap in
            # the themed, always-disabled control.
            content = tokens[idx].content
            if "task-list-item-checkbox" in content:
                checked = " checked" if "checked=" in content else ""
                return f'<input type="checkbox" class="task-checkbox" disabled{checked}>'
            if default_html_inline is not None:
                return default_html_inline(tokens, idx, options, env)
            return content

        self._md.renderer.rules["heading_open"] = custom_heading_open
        self._md.renderer.rules["html_block"] = custom_html_block
        self._md.renderer.rules["html_inline"] = custom_html_inline

    def parse(self, text: str, state: ParseState) -> str:
        """Full-document parse; level 1-2 headings are collected into `state`."""
        html = self._md.render(
            text,
            {"state": state, "collect_into": state.headings, "main_pass": True},
        )
        # Containers the main pass never reached as a block keep their
        # headings, appended after the rest.
        state.flush_pending()
        return html

    def parse_fragment(self, text: str, state: ParseState) -> str:
        """
        Parse a container body ahead of the main pass.

        Its headings take ids from the shared counter now and are queued until
        `parse` meets the container, so the TOC stays in document order.
        """
        collected: list[HeadingEntry] = []
        html = self._md.render(text, {"state": state, "collect_into": collected})
        state.pending_blocks.append(collected)
        return html
