"""Task management and productivity accounting."""

__version__ = "0.1.0"
