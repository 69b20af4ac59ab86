"""
Document settings, compression presets, and host configuration lookup.

DocumentSettings is owned by the host window; the rendering pipeline treats
each instance as an immutable input for one render pass.

Example:
    >>> settings = DocumentSettings(title="Lab report", direction="ltr")
    >>> compact = settings.with_changes(compression=CompressionLevel.HIGH)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Literal

from mdcompose.exceptions import ConfigurationError
from mdcompose.themes import ThemeType

CONFIG_FILE_NAME = ".mdcompose.cfg"
MATHJAX_ENV_VAR = "MDCOMPOSE_MATHJAX_JS"

Direction = Literal["ltr", "rtl"]


class CompressionLevel(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class CompressionPreset:
    """Tight typographic values that replace the manual sliders."""

    font_size: float  # px
    line_height: float
    padding: str  # CSS length for the page padding
    columns: int
    heading_margin_top: str
    heading_margin_bottom: str
    paragraph_margin: str
    title_font_size: str
    box_padding: str


COMPRESSION_PRESETS: dict[CompressionLevel, CompressionPreset] = {
    CompressionLevel.LOW: CompressionPreset(
        font_size=13.0,
        line_height=1.35,
        padding="10mm",
        columns=2,
        heading_margin_top="0.9em",
        heading_margin_bottom="0.35em",
        paragraph_margin="0.6em",
        title_font_size="2em",
        box_padding="0.6em",
    ),
    CompressionLevel.MEDIUM: CompressionPreset(
        font_size=11.5,
        line_height=1.25,
        padding="7mm",
        columns=2,
        heading_margin_top="0.7em",
        heading_margin_bottom="0.25em",
        paragraph_margin="0.45em",
        title_font_size="1.9em",
        box_padding="0.5em",
    ),
    CompressionLevel.HIGH: CompressionPreset(
        font_size=10.5,
        line_height=1.15,
        padding="5mm",
        columns=3,
        heading_margin_top="0.6em",
        heading_margin_bottom="0.2em",
        paragraph_margin="0.4em",
        title_font_size="1.8em",
        box_padding="0.4em",
    ),
}


@dataclass(frozen=True)
class DocumentSettings:
    """
    Per-render document settings.

    Compression presets override font_size, line_height and margins whenever
    compression is not NONE; `columns` overrides only the preset column count.
    """

    title: str = ""
    show_date: bool = True
    show_toc: bool = False
    theme: ThemeType = ThemeType.ACADEMIC
    font_size: float = 16.0  # px
    margins: float = 10.0  # padding scale, page padding = margins * 4 px
    line_height: float = 1.5
    direction: Direction = "rtl"
    compression: CompressionLevel = CompressionLevel.NONE
    columns: int | None = None

    def __post_init__(self):
        """Validate and normalize enum-valued fields."""
        try:
            object.__setattr__(self, "theme", ThemeType(self.theme))
        except ValueError as exc:
            raise ConfigurationError(f"Unknown theme {self.theme!r}") from exc
        try:
            object.__setattr__(self, "compression", CompressionLevel(self.compression))
        except ValueError as exc:
            valid = tuple(level.value for level in CompressionLevel)
            raise ConfigurationError(
                f"compression must be one of {valid}, got {self.compression!r}"
            ) from exc

        if self.direction not in ("ltr", "rtl"):
            raise ConfigurationError(f"direction must be 'ltr' or 'rtl', got {self.direction!r}")
        if self.font_size <= 0:
            raise ConfigurationError(f"font_size must be > 0, got {self.font_size}")
        if self.line_height <= 0:
            raise ConfigurationError(f"line_height must be > 0, got {self.line_height}")
        if self.margins < 0:
            raise ConfigurationError(f"margins must be >= 0, got {self.margins}")
        if self.columns is not None and self.columns < 1:
            raise ConfigurationError(f"columns must be >= 1, got {self.columns}")

    @property
    def is_compressed(self) -> bool:
        return self.compression is not CompressionLevel.NONE

    @property
    def compression_preset(self) -> CompressionPreset | None:
        return COMPRESSION_PRESETS.get(self.compression)

    def with_changes(self, **changes) -> DocumentSettings:
        """Return a copy with the given fields replaced (re-validated)."""
        return replace(self, **changes)


DEFAULT_SETTINGS = DocumentSettings(
    title="דוח מעבדה: ניתוח מערכות לינאריות",
    show_date=True,
    show_toc=False,
    theme=ThemeType.ACADEMIC,
    font_size=16.0,
    margins=10.0,
    line_height=1.5,
    direction="rtl",
    compression=CompressionLevel.NONE,
)


DEFAULT_CONTENT = """<div class="theory">
**הגדרה:** מערכת לינארית היא מערכת המקיימת את עקרון הסופרפוזיציה.
עבור כניסות $x_1(t)$ ו-$x_2(t)$ ותגובות $y_1(t)$ ו-$y_2(t)$, מתקיים:
$$ T[a x_1(t) + b x_2(t)] = a y_1(t) + b y_2(t) $$
</div>

## 1. מבוא
בניסוי זה נחקור את התגובה של מעגל **RC** פשוט.
המשוואה הדיפרנציאלית המתארת את המעגל היא:

$$ RC \\frac{dV_{out}}{dt} + V_{out} = V_{in} $$

<span class="important">חשוב מאוד לדייק במדידות המתח!</span>

## 2. פתרון אנליטי
עבור כניסת מדרגה $V_{in}(t) = u(t)$, הפתרון הוא:

<div class="solution">
**פתרון:**
$$ V_{out}(t) = V_0 (1 - e^{-t/RC}) $$
כאשר $V_0$ הוא מתח המקור.
</div>

## 3. תוצאות ודיון
להלן טבלת מדידות שנערכה במעבדה:

| זמן (ms) | מתח מדוד (V) | מתח תיאורטי (V) |
|----------|-------------|-----------------|
| 0        | 0.0         | 0.0             |
| 10       | 3.2         | 3.15            |
| 20       | 5.1         | 5.20            |

## 4. מסקנות
- [x] אימות המודל התיאורטי
- [ ] חזרה על המדידה בתדר גבוה
"""


def config_file_path() -> Path:
    return Path.home() / CONFIG_FILE_NAME


def load_last_document_path(cfg_path: Path | None = None) -> Path | None:
    """Resolve the document to open when no CLI path is provided."""
    cfg_path = cfg_path or config_file_path()
    try:
        if not cfg_path.exists():
            return None
        raw = cfg_path.read_text(encoding="utf-8").strip()
        if not raw:
            return None
        candidate = Path(raw).expanduser()
        if candidate.is_file():
            return candidate.resolve()
    except OSError:
        # Any read/access issue falls back to the built-in sample document.
        pass
    return None


def save_last_document_path(path: Path, cfg_path: Path | None = None) -> bool:
    """Remember the opened document for the next launch. Returns success."""
    cfg_path = cfg_path or config_file_path()
    try:
        cfg_path.write_text(f"{path.resolve()}\n", encoding="utf-8")
    except OSError:
        return False
    return True


def mathjax_override_path() -> Path | None:
    value = os.environ.get(MATHJAX_ENV_VAR, "").strip()
    return Path(value).expanduser() if value else None
