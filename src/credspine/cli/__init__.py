"""
CLI layer for cred-spine.

Provides a Typer application whose commands delegate to the operations
layer (``credspine.ops``). All business logic lives in ops; this package
handles only terminal transport: argument parsing, coloured output and
table formatting.

Entry point::

    credspine --help
"""

from credspine.cli.app import app

__all__ = ["app"]
