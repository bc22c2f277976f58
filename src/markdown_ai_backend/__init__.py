"""AI-assisted markdown reformatting and rewriting."""

__version__ = "0.1.0"
