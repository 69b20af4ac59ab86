"""
Pytest configuration and fixtures for mdcompose tests.
"""

from datetime import date

import pytest


@pytest.fixture(scope="session")
def fixed_day() -> date:
    """Render date used wherever output must be reproducible."""
    return date(2026, 10, 19)


@pytest.fixture
def ltr_settings():
    """Plain left-to-right settings with no header."""
    from mdcompose import DocumentSettings

    return DocumentSettings(title="", show_date=False, direction="ltr")


@pytest.fixture
def parser():
    """Fresh prose parser."""
    from mdcompose import ProseParser

    return ProseParser()


@pytest.fixture
def identity_math():
    """Math renderer that passes the TeX source through untouched."""

    def render(expression: str, display: bool) -> str:
        return expression

    return render
