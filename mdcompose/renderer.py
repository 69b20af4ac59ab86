"""
Document rendering pipeline.

    source -> extract math -> preprocess containers -> markdown-it parse
           -> TOC -> restore math -> header -> RenderedDocument

`DocumentRenderer.render` is a pure function of (source, settings, date): no
state survives between calls, so rendering the same input twice yields
byte-identical markup and stylesheet.
"""

from __future__ import annotations

import html
import json
import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from mdcompose.blocks import preprocess
from mdcompose.markdown import HeadingEntry, ParseState, ProseParser
from mdcompose.math_segments import RenderMath, extract, mathjax_markup, restore
from mdcompose.settings import DocumentSettings, mathjax_override_path
from mdcompose.styles import generate_stylesheet
from mdcompose.themes import get_theme
from mdcompose.toc import build_toc

logger = logging.getLogger(__name__)

MATHJAX_CDN_SOURCES = (
    "https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-svg.js",
    "https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js",
)
# SVG output first: it keeps glyph metrics stable for the auto-fit pass.
MATHJAX_BUNDLES = ("tex-svg.js", "tex-mml-chtml.js")
SYSTEM_MATHJAX_DIRS = (
    Path("/usr/share/javascript/mathjax"),
    Path("/usr/share/mathjax"),
    Path("/usr/share/nodejs/mathjax"),
)

ENGLISH_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)
HEBREW_MONTHS = (
    "ינואר", "פברואר", "מרץ", "אפריל", "מאי", "יוני",
    "יולי", "אוגוסט", "ספטמבר", "אוקטובר", "נובמבר", "דצמבר",
)


@dataclass(frozen=True)
class RenderedDocument:
    body_html: str
    stylesheet: str
    headings: tuple[HeadingEntry, ...] = ()
    math_count: int = 0


def format_document_date(day: date, direction: str) -> str:
    if direction == "rtl":
        return f"{day.day} ב{HEBREW_MONTHS[day.month - 1]} {day.year}"
    return f"{day.day} {ENGLISH_MONTHS[day.month - 1]} {day.year}"


def render_header(settings: DocumentSettings, today: date | None = None) -> str:
    """The date only ever appears under a title; untitled documents get no header."""
    if not settings.title:
        return ""
    date_html = ""
    if settings.show_date:
        day = today or date.today()
        date_html = f'<div class="doc-date">{format_document_date(day, settings.direction)}</div>'
    title_html = f'<h1 class="doc-title">{html.escape(settings.title)}</h1>'
    return f'<div class="doc-header">\n{title_html}\n{date_html}\n</div>\n'


class DocumentRenderer:
    """Turns hybrid markup plus settings into body markup and a stylesheet."""

    def __init__(self, render_math: RenderMath | None = mathjax_markup, parser: ProseParser | None = None) -> None:
        self.render_math = render_math
        self.parser = parser or ProseParser()

    def render(
        self,
        source: str,
        settings: DocumentSettings,
        today: date | None = None,
    ) -> RenderedDocument | None:
        """
        Render one pass. Returns None when no math typesetter is available;
        the host keeps its previous output and retries on the next change.
        """
        if self.render_math is None:
            logger.warning("Math typesetter not loaded; skipping render pass")
            return None

        state = ParseState()
        extraction = extract(source)
        prepared = preprocess(extraction.text, lambda text: self.parser.parse_fragment(text, state))
        body = self.parser.parse(prepared, state)
        toc = build_toc(state.headings, settings.show_toc, settings.direction)
        # One global restore over TOC + body so heading math resolves in both.
        content = restore(toc + body, extraction.segments, self.render_math)
        headings = tuple(
            HeadingEntry(id=entry.id, text=restore(entry.text, extraction.segments, self.render_math), level=entry.level)
            for entry in state.headings
        )

        stylesheet = generate_stylesheet(get_theme(settings.theme), settings)
        logger.debug(
            "Rendered %d chars, %d math segments, %d headings",
            len(source),
            len(extraction.segments),
            len(state.headings),
        )
        return RenderedDocument(
            body_html=render_header(settings, today) + content,
            stylesheet=stylesheet,
            headings=headings,
            math_count=len(extraction.segments),
        )


def resolve_local_mathjax_script(app_dir: Path | None = None) -> Path | None:
    """Environment override first, then a bundle beside the package, then distro copies."""
    override = mathjax_override_path()
    search_dirs = [(app_dir or Path(__file__).resolve().parent) / "mathjax", *SYSTEM_MATHJAX_DIRS]
    candidates = [override] if override is not None else []
    candidates += [directory / "es5" / name for name in MATHJAX_BUNDLES for directory in search_dirs]

    for candidate in candidates:
        try:
            if candidate.is_file():
                return candidate.resolve()
        except OSError:
            continue
    return None


def mathjax_script_sources(local_script: Path | None = None) -> list[str]:
    urls = [local_script.as_uri()] if local_script is not None else []
    return list(dict.fromkeys(urls + list(MATHJAX_CDN_SOURCES)))


def build_page(document: RenderedDocument, settings: DocumentSettings, mathjax_sources: list[str]) -> str:
    """Assemble a standalone HTML page for the preview surface."""
    lang = "he" if settings.direction == "rtl" else "en"
    escaped_title = html.escape(settings.title or "mdcompose")
    sources_json = json.dumps(mathjax_sources)
    return f"""<!doctype html>
<html lang="{lang}">
<head>
  <meta charset="utf-8"/>
  <meta name="viewport" content="width=device-width, initial-scale=1"/>
  <title>{escaped_title}</title>
  <style>
    html, body {{
      margin: 0;
      padding: 0;
      background: #f3f4f6;
    }}
    .preview-scroll {{
      padding: 2rem 1rem;
    }}
{document.stylesheet}
  </style>
  <script>
    window.MathJax = {{
      startup: {{ typeset: false }},
      tex: {{
        inlineMath: [['\\\\(', '\\\\)']],
        displayMath: [['\\\\[', '\\\\]']]
      }},
      svg: {{ fontCache: "global" }},
      options: {{ skipHtmlTags: ['script', 'noscript', 'style', 'textarea', 'pre', 'code'] }}
    }};

    // Each setHtml mounts a fresh page, so this runs once per render.
    window.__mdcomposeTypeset = async () => {{
      for (const src of {sources_json}) {{
        const loaded = await new Promise((resolve) => {{
          const script = document.createElement("script");
          script.src = src;
          script.onload = () => resolve(true);
          script.onerror = () => {{
            script.remove();
            resolve(false);
          }};
          document.head.appendChild(script);
        }});
        if (!loaded) {{
          console.warn("mdcompose: no MathJax at", src);
          continue;
        }}
        try {{
          await MathJax.startup.promise;
          await MathJax.typesetPromise();
          return true;
        }} catch (error) {{
          console.error("mdcompose: MathJax typeset failed", error);
          return false;
        }}
      }}
      return false;
    }};
  </script>
</head>
<body>
  <div class="preview-scroll">
    <div class="preview-page">
      <div class="preview-content" dir="{settings.direction}">
{document.body_html}
      </div>
    </div>
  </div>
  <script>
    window.addEventListener("DOMContentLoaded", () => window.__mdcomposeTypeset());
  </script>
</body>
</html>
"""
