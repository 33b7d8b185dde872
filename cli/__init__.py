"""Command-line interface for schemascope"""

from schemascope import __version__

__all__ = ["__version__"]
