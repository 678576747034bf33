"""Family dashboard screen renderer."""

__version__ = "0.1.0"
