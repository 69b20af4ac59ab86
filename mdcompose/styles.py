"""
Stylesheet generation from theme tokens and document settings.

`generate_stylesheet` is a pure function: identical inputs always produce an
identical stylesheet, so the host can regenerate and remount it whenever any
setting changes.
"""

from __future__ import annotations

from mdcompose.settings import DocumentSettings
from mdcompose.themes import ThemeTokens

BOX_CONTAINERS = (".theory", ".solution", ".example", ".proof", ".warning", ".code-snippet", ".side-note")


def _hex6(color: str) -> str:
    """Expand #rgb to #rrggbb so alpha suffixes can be appended."""
    if len(color) == 4 and color.startswith("#"):
        return "#" + "".join(ch * 2 for ch in color[1:])
    return color


def _tint(color: str, alpha_hex: str) -> str:
    return f"{_hex6(color)}{alpha_hex}"


def _num(value: float) -> str:
    return f"{value:g}"


def page_padding(settings: DocumentSettings) -> str:
    preset = settings.compression_preset
    if preset is not None:
        return preset.padding
    return f"{_num(settings.margins * 4)}px"


def text_alignment(tokens: ThemeTokens, settings: DocumentSettings) -> str:
    if tokens.justify:
        return "justify"
    return "right" if settings.direction == "rtl" else "left"


def accent_side(settings: DocumentSettings) -> str:
    """Visual start side: right in rtl documents, left in ltr."""
    return "right" if settings.direction == "rtl" else "left"


def _compression_css(settings: DocumentSettings) -> str:
    preset = settings.compression_preset
    if preset is None:
        return ""
    columns = settings.columns or preset.columns
    no_break = ", ".join(BOX_CONTAINERS + (".no-break", "table", "pre", ".math-display"))
    return f"""
      /* Compression: multi-column flow */
      .preview-content {{
        column-count: {columns};
        column-gap: 0.6cm;
        column-rule: 1px solid #e5e7eb;
      }}
      .preview-content .doc-header, .preview-content .doc-toc {{
        column-span: all;
        margin-bottom: 0.5em !important;
        padding-bottom: 0.5em !important;
      }}
      .preview-content h1, .preview-content h2, .preview-content h3 {{
        margin-top: {preset.heading_margin_top} !important;
        margin-bottom: {preset.heading_margin_bottom} !important;
        line-height: 1.1 !important;
      }}
      .preview-content h1 {{ font-size: 1.4em !important; }}
      .preview-content h2 {{ font-size: 1.2em !important; }}
      .preview-content h3 {{ font-size: 1.1em !important; }}
      .preview-content p, .preview-content ul, .preview-content ol {{
        margin-top: 0 !important;
        margin-bottom: {preset.paragraph_margin} !important;
      }}
      .preview-content table {{
        font-size: 0.9em;
        margin: 0.5em 0 !important;
      }}
      .preview-content td, .preview-content th {{
        padding: 2px 4px !important;
      }}
      .math-display {{
        margin: 0.3em 0 !important;
      }}
      {no_break} {{
        break-inside: avoid;
        page-break-inside: avoid;
      }}
"""


def generate_stylesheet(tokens: ThemeTokens, settings: DocumentSettings) -> str:
    """Derive the complete preview/print stylesheet."""
    preset = settings.compression_preset
    # Compression presets replace the manual slider values wholesale.
    font_size = f"{_num(preset.font_size)}px" if preset else f"{_num(settings.font_size)}px"
    line_height = _num(preset.line_height) if preset else _num(settings.line_height)
    padding = page_padding(settings)
    title_size = preset.title_font_size if preset else "2.2em"
    box_padding = preset.box_padding if preset else "1em"
    box_margin = "0.5em 0" if preset else "1.5em 0"

    align = text_alignment(tokens, settings)
    side = accent_side(settings)
    far_side = "left" if side == "right" else "right"
    accent = tokens.accent_color
    header_rule = (
        f"3px solid {accent}" if tokens.colorful else f"1px solid {tokens.border_color}"
    )
    theory_extra = (
        ""
        if tokens.colorful
        else f"font-style: italic; border: 1px solid {tokens.border_color}; border-{side}-width: 4px;"
    )
    zebra = "#f9fafb" if tokens.background_color.lower() == "#ffffff" else "rgba(0,0,0,0.02)"

    return f"""
      .preview-page {{
        box-sizing: border-box;
        width: 100%;
        max-width: 21cm;
        min-height: 29.7cm;
        margin: 0 auto;
        padding: {padding};
        background-color: {tokens.background_color};
        box-shadow: 0 10px 25px rgba(0,0,0,0.15);
        transform-origin: top center;
      }}

      .preview-content {{
        font-family: {tokens.body_font_family};
        line-height: {line_height};
        font-size: {font_size};
        color: {tokens.text_color};
        text-align: {align};
        background-color: {tokens.background_color};
        min-height: 100%;
        width: 100%;
        overflow-wrap: break-word;
        word-wrap: break-word;
      }}

      .doc-header {{
        text-align: center;
        width: 100%;
        margin-bottom: 2em;
        border-bottom: {header_rule};
        padding-bottom: 1em;
        unicode-bidi: isolate;
      }}
      .preview-content .doc-header h1.doc-title {{
        font-family: {tokens.header_font_family};
        text-align: center;
        font-size: {title_size};
        font-weight: 800;
        margin-top: 0;
        margin-bottom: 0.2rem;
        line-height: 1.2;
        color: {tokens.heading_color};
        border-bottom: none;
        padding-bottom: 0;
      }}
      .doc-header .doc-date {{
        text-align: center;
        font-size: 0.9em;
        color: #6b7280;
        font-family: {tokens.body_font_family};
        opacity: 0.8;
        margin: 0;
      }}

      /* Table of contents */
      .doc-toc {{
        border-{side}: 3px solid {accent};
        background-color: {_tint(accent, "0d")};
        padding: 0.6em 1em;
        margin: 0 0 1.5em 0;
        unicode-bidi: isolate;
      }}
      .doc-toc .toc-title {{
        font-family: {tokens.header_font_family};
        font-weight: 700;
        color: {tokens.heading_color};
        margin-bottom: 0.4em;
      }}
      .doc-toc ul {{
        list-style: none;
        margin: 0;
        padding: 0;
      }}
      .doc-toc li {{
        margin: 0.15em 0;
      }}
      .doc-toc li.toc-level-2 {{
        padding-inline-start: 1.2em;
        font-size: 0.95em;
      }}
      .doc-toc a {{
        color: {tokens.text_color};
        text-decoration: none;
      }}
      .doc-toc a.active {{
        color: {accent};
        font-weight: 700;
      }}

      /* Math is always typeset left-to-right, isolated from rtl flow */
      .math-inline, .math-display, mjx-container {{
        direction: ltr !important;
        unicode-bidi: isolate;
      }}
      .math-inline {{
        display: inline-block;
      }}
      .math-display {{
        display: block;
        text-align: center;
        margin: 1em 0;
        overflow: hidden;
      }}
      .math-error {{
        color: #dc2626;
        font-family: monospace;
        border-bottom: 1px dashed #dc2626;
      }}
      strong .math-inline, b .math-inline, h1 .math-inline, h2 .math-inline, h3 .math-inline, .important .math-inline {{
        font-weight: bold;
      }}

      /* Headings */
      .preview-content h1, .preview-content h2, .preview-content h3 {{
        font-family: {tokens.header_font_family};
        color: {tokens.heading_color};
        font-weight: 700;
        margin-top: 1.5em;
        margin-bottom: 0.8em;
        unicode-bidi: isolate;
      }}
      .preview-content h1 {{ font-size: 1.8em; border-bottom: 2px solid {tokens.border_color}; padding-bottom: 0.3em; }}
      .preview-content h2 {{ font-size: 1.5em; }}
      .preview-content h3 {{ font-size: 1.25em; color: {accent}; }}

      .preview-content p {{
        margin-bottom: 1em;
        unicode-bidi: isolate;
      }}
      .preview-content ul, .preview-content ol {{
        margin-bottom: 1em;
        padding-inline-start: 2em;
        unicode-bidi: isolate;
      }}
      .preview-content li {{
        margin-bottom: 0.5em;
        unicode-bidi: isolate;
      }}
      .preview-content ul li::marker {{
        color: {accent};
        font-size: 1.2em;
      }}
      .preview-content ol li::marker {{
        color: {accent};
        font-weight: bold;
        font-family: {tokens.header_font_family};
      }}
      .preview-content li.task-list-item {{
        list-style: none;
      }}
      .task-checkbox {{
        accent-color: {accent};
        margin-inline-end: 0.4em;
        vertical-align: middle;
        pointer-events: none;
      }}

      /* Tables */
      .preview-content table {{
        width: 100%;
        border-collapse: collapse;
        margin: 1.5em 0;
        font-size: 0.95em;
        color: {tokens.text_color};
        unicode-bidi: isolate;
      }}
      .preview-content th {{
        background-color: {_tint(accent, "15")};
        font-family: {tokens.header_font_family};
        font-weight: bold;
        border-bottom: 2px solid {accent};
        padding: 0.75em;
        text-align: {align};
        color: {tokens.heading_color};
      }}
      .preview-content td {{
        border-bottom: 1px solid {tokens.border_color};
        padding: 0.75em;
        text-align: {align};
      }}
      .preview-content tr:nth-child(even) {{
        background-color: {zebra};
      }}

      /* Semantic containers */
      {", ".join(BOX_CONTAINERS)} {{
        border-radius: 4px;
        padding: {box_padding};
        margin: {box_margin};
        unicode-bidi: isolate;
      }}
      .theory {{
        background-color: {_tint(accent, "10") if tokens.colorful else "transparent"};
        border-{side}: 4px solid {accent};
        {theory_extra}
      }}
      .solution {{
        background-color: #f0fdf4;
        border: 1px solid #86efac;
      }}
      .example {{
        background-color: {_tint(accent, "08")};
        border: 1px dashed {tokens.border_color};
      }}
      .proof {{
        border-{side}: 2px solid {tokens.border_color};
      }}
      .proof::after {{
        content: "\\220E";
        display: block;
        text-align: {far_side};
      }}
      .warning {{
        background-color: #fffbeb;
        border: 1px solid #fcd34d;
        border-{side}: 4px solid #d97706;
      }}
      .code-snippet {{
        background-color: #f3f4f6;
        border: 1px solid {tokens.border_color};
        font-family: "Noto Sans Mono", "DejaVu Sans Mono", monospace;
        font-size: 0.9em;
        direction: ltr;
        text-align: left;
      }}
      .side-note {{
        float: {far_side};
        width: 35%;
        margin-inline-start: 1em;
        font-size: 0.85em;
        background-color: {_tint(accent, "0d")};
        border-{side}: 2px solid {accent};
      }}
      .two-columns {{
        display: grid;
        grid-template-columns: 1fr 1fr;
        gap: 0 1.2em;
        margin: 1em 0;
      }}
      .inline-list ul, .inline-list ol {{
        padding: 0;
      }}
      .inline-list li {{
        display: inline;
        margin-inline-end: 1em;
      }}
      .compact-table table {{
        font-size: 0.85em;
        margin: 0.5em 0;
      }}
      .compact-table td, .compact-table th {{
        padding: 0.25em 0.4em;
      }}
      .lead {{
        font-size: 1.15em;
        color: {tokens.heading_color};
      }}
      .text-center {{ text-align: center; }}
      .text-start {{ text-align: start; }}
      .text-end {{ text-align: end; }}
      .text-justify {{ text-align: justify; }}
      .no-break {{
        break-inside: avoid;
        page-break-inside: avoid;
      }}
      .important {{
        background-color: {_tint(accent, "30")};
        color: {tokens.heading_color};
        padding: 0.1em 0.3em;
        border-radius: 2px;
        font-weight: 600;
        border-bottom: 2px solid {accent};
        unicode-bidi: isolate;
      }}

      @media print {{
        @page {{ size: A4; margin: 0; }}
        .preview-page {{
          transform: none !important;
          margin-bottom: 0 !important;
          box-shadow: none;
        }}
      }}
{_compression_css(settings)}"""
