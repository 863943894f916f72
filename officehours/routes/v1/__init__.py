"""
Versioned API routes (mounted under /api/v1).
"""

from . import admin_sync_outbox, availability, bookings, health, match

__all__ = ["admin_sync_outbox", "availability", "bookings", "health", "match"]
