"""Persistent session caching for wgsession.

This package provides :class:`SessionCacheStore`, which keeps one
negotiated :class:`~wgsession.models.AuthRecord` per server on disk
using :mod:`diskcache`, with a 24-hour expiry and explicit invalidation.

The store is consumed by :class:`~wgsession.facade.NegotiatedApiFacade`
and configured from the ``session`` section of the global configuration
(:class:`~wgsession.models.SessionConfig`).
"""

from wgsession.cache.session_cache import SessionCacheStore

__all__ = ["SessionCacheStore"]
