"""
Database init - Exports for routes
"""

from .base import Base, TimestampMixin, utcnow

__all__ = ["Base", "TimestampMixin", "utcnow"]
