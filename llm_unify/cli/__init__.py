"""Command-line interface."""

from .click_app import cli, main

__all__ = ["cli", "main"]
