"""
markdown-ai CLI Package.

Command-line interface for reformatting, rewriting, chunking and analyzing
markdown documents.
"""

from .cli import app, cli_main

__all__ = ["app", "cli_main"]
