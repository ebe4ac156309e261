"""Maven repository connector."""

__version__ = "1.0.0"
