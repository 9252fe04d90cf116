"""Local file history for a workspace, correlated with git commits."""

__version__ = "0.1.0"
