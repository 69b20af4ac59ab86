"""Table-of-contents block built from collected heading entries."""

from __future__ import annotations

import html

from mdcompose.markdown import HeadingEntry

TOC_TITLES = {"ltr": "Contents", "rtl": "תוכן עניינים"}


def build_toc(entries: list[HeadingEntry], enabled: bool, direction: str = "ltr") -> str:
    """
    Render the navigation block, or "" when disabled or there are no headings.

    Entry text is the already-rendered heading markup, so math placeholders in
    a heading are copied here verbatim and resolved by the global restore pass.
    """
    if not enabled or not entries:
        return ""

    title = TOC_TITLES.get(direction, TOC_TITLES["ltr"])
    items = []
    for entry in entries:
        heading_id = html.escape(entry.id)
        items.append(
            f'<li class="toc-level-{entry.level}">'
            f'<a href="#{heading_id}" data-heading-id="{heading_id}">{entry.text}</a></li>'
        )
    return (
        '<nav class="doc-toc">\n'
        f'<div class="toc-title">{title}</div>\n'
        "<ul>\n" + "\n".join(items) + "\n</ul>\n"
        "</nav>\n"
    )
