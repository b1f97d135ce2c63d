"""WriteOnly: a minimal Markdown editor with live preview."""

__version__ = "0.3.0"
