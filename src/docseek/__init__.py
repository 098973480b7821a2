"""docseek - local full-text search."""

__version__ = "0.1.0"
