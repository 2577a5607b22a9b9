"""HTTP surface for the ldpathjson processors."""

from .app import create_app

__all__ = ["create_app"]
