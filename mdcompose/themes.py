"""Theme identifiers and their typographic/color token bundles."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from mdcompose.exceptions import ConfigurationError


class ThemeType(str, Enum):
    ACADEMIC = "academic"
    MODERN = "modern"
    TECH = "tech"
    STARTUP = "startup"
    NATURE = "nature"
    CLASSIC = "classic"
    CLEAN = "clean"
    ELEGANT = "elegant"
    BOLD = "bold"
    SOFT = "soft"
    NEWSPAPER = "newspaper"


@dataclass(frozen=True)
class ThemeTokens:
    """Fixed token set consumed by the style generator."""

    header_font_family: str
    body_font_family: str
    heading_color: str
    border_color: str
    background_color: str
    accent_color: str
    text_color: str = "#1f2937"
    # Colorful themes tint callouts and underline the title with the accent.
    colorful: bool = False
    # Document-like (serif) themes justify body text.
    justify: bool = False


THEME_TOKENS: dict[ThemeType, ThemeTokens] = {
    ThemeType.ACADEMIC: ThemeTokens(
        header_font_family='"David Libre", serif',
        body_font_family='"David Libre", serif',
        heading_color="#1a202c",
        border_color="#000",
        background_color="#ffffff",
        text_color="#1f2937",
        accent_color="#1a202c",
        justify=True,
    ),
    ThemeType.MODERN: ThemeTokens(
        header_font_family='"Assistant", sans-serif',
        body_font_family='"Assistant", sans-serif',
        heading_color="#1d4ed8",
        border_color="#e5e7eb",
        background_color="#ffffff",
        text_color="#374151",
        accent_color="#3b82f6",
        colorful=True,
    ),
    ThemeType.TECH: ThemeTokens(
        header_font_family='"Rubik", sans-serif',
        body_font_family='"Rubik", sans-serif',
        heading_color="#6d28d9",
        border_color="#ddd6fe",
        background_color="#ffffff",
        text_color="#111827",
        accent_color="#8b5cf6",
    ),
    ThemeType.STARTUP: ThemeTokens(
        header_font_family='"Heebo", sans-serif',
        body_font_family='"Heebo", sans-serif',
        heading_color="#be185d",
        border_color="#fbcfe8",
        background_color="#ffffff",
        text_color="#4b5563",
        accent_color="#ec4899",
    ),
    ThemeType.NATURE: ThemeTokens(
        header_font_family='"Alef", sans-serif',
        body_font_family='"Alef", sans-serif',
        heading_color="#15803d",
        border_color="#bbf7d0",
        background_color="#ffffff",
        text_color="#14532d",
        accent_color="#22c55e",
    ),
    ThemeType.CLASSIC: ThemeTokens(
        header_font_family='"Frank Ruhl Libre", serif',
        body_font_family='"Frank Ruhl Libre", serif',
        heading_color="#451a03",
        border_color="#d6d3d1",
        background_color="#ffffff",
        text_color="#292524",
        accent_color="#78350f",
        justify=True,
    ),
    ThemeType.CLEAN: ThemeTokens(
        header_font_family='"IBM Plex Sans Hebrew", sans-serif',
        body_font_family='"Assistant", sans-serif',
        heading_color="#0f172a",
        border_color="#94a3b8",
        background_color="#ffffff",
        text_color="#334155",
        accent_color="#64748b",
    ),
    ThemeType.ELEGANT: ThemeTokens(
        header_font_family='"Noto Serif Hebrew", serif',
        body_font_family='"Assistant", sans-serif',
        heading_color="#881337",
        border_color="#e2e8f0",
        background_color="#ffffff",
        text_color="#1e293b",
        accent_color="#be123c",
        colorful=True,
    ),
    ThemeType.BOLD: ThemeTokens(
        header_font_family='"Secular One", sans-serif',
        body_font_family='"Heebo", sans-serif',
        heading_color="#000000",
        border_color="#000000",
        background_color="#ffffff",
        text_color="#000000",
        accent_color="#f59e0b",
        colorful=True,
    ),
    ThemeType.SOFT: ThemeTokens(
        header_font_family='"Varela Round", sans-serif',
        body_font_family='"Rubik", sans-serif',
        heading_color="#4c1d95",
        border_color="#e9d5ff",
        background_color="#ffffff",
        text_color="#4b5563",
        accent_color="#a78bfa",
        colorful=True,
    ),
    ThemeType.NEWSPAPER: ThemeTokens(
        header_font_family='"Frank Ruhl Libre", serif',
        body_font_family='"Heebo", sans-serif',
        heading_color="#111827",
        border_color="#374151",
        background_color="#ffffff",
        text_color="#1f2937",
        accent_color="#dc2626",
        justify=True,
    ),
}


def get_theme(theme: ThemeType | str) -> ThemeTokens:
    """Look up the token bundle for a theme identifier."""
    try:
        key = ThemeType(theme)
    except ValueError as exc:
        valid = ", ".join(t.value for t in ThemeType)
        raise ConfigurationError(f"Unknown theme {theme!r}; expected one of: {valid}") from exc
    return THEME_TOKENS[key]
