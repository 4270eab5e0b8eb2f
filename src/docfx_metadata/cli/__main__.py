"""
CLI entry point for docfx-metadata.

This module serves as the entry point when docfx_metadata.cli is executed as a
module with `python -m docfx_metadata.cli`.
"""

from .main import cli

if __name__ == "__main__":
    cli()
