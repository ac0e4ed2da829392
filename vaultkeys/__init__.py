"""Create or import keys in a cloud key vault."""

__version__ = "0.1.0"
