# Cache
from .redis_cache import Cache, RedisManager

__all__ = ['Cache', 'RedisManager']
