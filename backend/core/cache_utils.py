"""
Caching helpers for expensive reads (store lists, reports).
Redis via django-redis when REDIS_URL is configured, process memory otherwise.
"""
from django.conf import settings
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger('backend.core')

# Cache TTLs (in seconds)
STORE_LIST_CACHE_TTL = 600  # 10 minutes
REPORTS_CACHE_TTL = 300  # 5 minutes

STORE_LIST_PREFIX = 'store_list'
REPORTS_PREFIX = 'reports'


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(cache_ttl=REPORTS_CACHE_TTL, key_prefix=REPORTS_PREFIX)
        def sales_summary(store_id, date_from, date_to):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            cache_key = make_cache_key(f"{key_prefix}:{func.__name__}", *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)
            cache.set(cache_key, result, cache_ttl)
            return result
        return wrapper
    return decorator


def invalidate_cache_pattern(pattern):
    """
    Invalidate all cache keys matching a pattern.
    Uses Redis SCAN when Redis is the cache; the local-memory cache is simply cleared.
    """
    if not getattr(settings, 'REDIS_URL', ''):
        cache.clear()
        logger.debug(f"Cleared local cache for pattern: {pattern}")
        return

    try:
        from django_redis import get_redis_connection
        redis_conn = get_redis_connection("default")

        keys = []
        cursor = 0
        while True:
            cursor, partial_keys = redis_conn.scan(cursor, match=f"*{pattern}*", count=100)
            keys.extend(partial_keys)
            if cursor == 0:
                break

        if keys:
            redis_conn.delete(*keys)
            logger.info(f"Invalidated {len(keys)} cache keys matching pattern: {pattern}")
    except Exception as e:
        logger.warning(f"Could not invalidate cache pattern {pattern}: {str(e)}")


def get_store_list_cache_key(scope='all'):
    return f"{STORE_LIST_PREFIX}:{scope}"


def invalidate_store_cache():
    invalidate_cache_pattern(STORE_LIST_PREFIX)


def invalidate_reports_cache():
    invalidate_cache_pattern(REPORTS_PREFIX)
