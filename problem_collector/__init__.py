"""Background problem collection service."""

__version__ = "0.3.0"
