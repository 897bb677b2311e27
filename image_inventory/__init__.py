"""Local image inventory and transform service."""

__version__ = "0.1.0"
