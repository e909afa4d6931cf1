"""Read-view caching."""

from fitteam.adapters.cache.query_cache import DEFAULT_TTL_SECONDS, QueryCache

__all__ = ["DEFAULT_TTL_SECONDS", "QueryCache"]
