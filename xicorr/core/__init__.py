from .CacheManager import CacheManager

__all__ = ["CacheManager"]
