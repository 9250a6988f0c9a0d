"""manuscript-kb - entity discovery and cross-book mention tracking for fiction manuscripts."""

__version__ = "0.1.0"
