"""
Domain utilities module.

Provides identifier generation and time helpers for the domain layer
that remain independent of infrastructure concerns.
"""

from .clock import ensure_utc, utc_now
from .uuid7 import uuid7

__all__ = ["uuid7", "utc_now", "ensure_utc"]
