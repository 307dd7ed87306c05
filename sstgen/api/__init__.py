"""REST API for sstgen."""

from .app import app

__all__ = ["app"]
