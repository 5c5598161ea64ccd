"""ASO Observatory simulation core."""

__version__ = "4.2.1"
