"""
mdcompose: compose academic documents from Markdown, TeX math and semantic blocks.

Example:
    >>> from mdcompose import DocumentRenderer, DocumentSettings
    >>> renderer = DocumentRenderer()
    >>> doc = renderer.render("# Intro\\n\\n$E=mc^2$", DocumentSettings(direction="ltr"))
    >>> doc.headings[0].level
    1
"""

from mdcompose.autofit import AutoFitScaler, FitTransform, MathMeasurement, fit_scale
from mdcompose.blocks import CONTAINER_CLASSES, preprocess
from mdcompose.exceptions import ConfigurationError, MathRenderError, MdComposeError
from mdcompose.markdown import HeadingEntry, ParseState, ProseParser
from mdcompose.math_segments import MathSegment, extract, mathjax_markup, restore
from mdcompose.renderer import DocumentRenderer, RenderedDocument, build_page
from mdcompose.settings import (
    COMPRESSION_PRESETS,
    CompressionLevel,
    CompressionPreset,
    DocumentSettings,
)
from mdcompose.styles import generate_stylesheet
from mdcompose.themes import THEME_TOKENS, ThemeTokens, ThemeType, get_theme
from mdcompose.toc import build_toc

__version__ = "0.1.0"

__all__ = [
    # Pipeline
    "DocumentRenderer",
    "RenderedDocument",
    "build_page",
    "extract",
    "restore",
    "mathjax_markup",
    "MathSegment",
    "preprocess",
    "CONTAINER_CLASSES",
    "ProseParser",
    "ParseState",
    "HeadingEntry",
    "build_toc",
    "generate_stylesheet",
    # Auto-fit
    "AutoFitScaler",
    "FitTransform",
    "MathMeasurement",
    "fit_scale",
    # Configuration
    "DocumentSettings",
    "CompressionLevel",
    "CompressionPreset",
    "COMPRESSION_PRESETS",
    "ThemeType",
    "ThemeTokens",
    "THEME_TOKENS",
    "get_theme",
    # Exceptions
    "MdComposeError",
    "ConfigurationError",
    "MathRenderError",
]
