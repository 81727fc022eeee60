# Infrastructure Cache Package
from .ttl_cache import NullResultCache, TTLResultCache

__all__ = ["NullResultCache", "TTLResultCache"]
