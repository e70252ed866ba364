"""
Serving Module
"""
from .cache import CacheManager, create_redis, close_redis

__all__ = [
    "CacheManager",
    "create_redis",
    "close_redis",
]
