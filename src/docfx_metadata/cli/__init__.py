"""
Command-line interface implementation.

The CLI exposes the project model and the metadata cache as the
``docfx-metadata`` command (files, topics, watch).
"""

from .main import cli, main

__all__ = [
    "cli",
    "main",
]
