"""Output style rewriting."""

from apislice.core.styling.style import OpenApiStyle, apply_style

__all__ = ["OpenApiStyle", "apply_style"]
