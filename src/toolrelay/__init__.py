"""Tool-call redirection and edit preview engine."""

__version__ = "0.1.0"
