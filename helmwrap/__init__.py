"""helmwrap — resilient helm CLI wrapper."""

__version__ = "0.1.0"
