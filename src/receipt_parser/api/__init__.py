"""HTTP surface for the receipt parser."""

from .app import create_app

__all__ = ["create_app"]
