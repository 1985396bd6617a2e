"""
CLI module for dagview.

The command-line interface providing show, diff, log, roots and check commands.
"""

from cli.main import app

__all__ = ["app"]
