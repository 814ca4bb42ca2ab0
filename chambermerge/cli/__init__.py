"""Command line interface."""

from chambermerge.cli.main import app

__all__ = ["app"]
