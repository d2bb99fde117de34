"""Result cache backends."""

from querystone.cache.manager import CacheManager

__all__ = ["CacheManager"]
