"""render-md: terminal rendering for assistant markdown."""

__version__ = "0.3.0"
