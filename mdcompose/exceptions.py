"""
Exception classes for mdcompose.

Rendering faults are recovered locally and never reach the host; these
exceptions cover invalid configuration and typesetter failures that the
pipeline logs before substituting degraded output.
"""


class MdComposeError(Exception):
    """Base exception for all mdcompose errors."""

    pass


class ConfigurationError(MdComposeError, ValueError):
    """
    Raised for invalid document settings.

    Example:
        >>> DocumentSettings(font_size=0)
        ConfigurationError: font_size must be > 0, got 0
    """

    pass


class MathRenderError(MdComposeError):
    """Raised (and caught by the restorer) when a math expression cannot be typeset."""

    def __init__(self, expression: str, reason: str = ""):
        self.expression = expression
        self.reason = reason
        message = f"Could not typeset {expression!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
