"""Expiration module - TTL tracking and purging."""

from keelcache_core.expiration.manager import ExpirationManager, ExpirySweeper

__all__ = ["ExpirationManager", "ExpirySweeper"]
