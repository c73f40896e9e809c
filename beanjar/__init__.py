"""A file-backed store for beans: Markdown issues with configuration, links, filters and search."""

__version__ = "0.1.0"
__all__ = ["config", "model", "links", "store", "filters"]