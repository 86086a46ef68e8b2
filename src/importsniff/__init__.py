"""importsniff - unused and broken import detection for TypeScript/JavaScript."""

__version__ = "0.1.0"
