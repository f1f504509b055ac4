"""
Cache helpers for league read models

Reads are cached per league under a generation number. Bumping a league's
generation orphans every value cached for it, so invalidation needs no key
scans and behaves the same on SimpleCache and Redis.
"""

import functools
import logging

from flask import current_app

from pickem import cache

logger = logging.getLogger(__name__)


def _generation_key(scope, league_id):
    return f"gen:{scope}:{league_id}"


def league_generation(scope, league_id):
    """Current cache generation for one league and scope"""
    return cache.get(_generation_key(scope, league_id)) or 0


def cached_league_query(scope, timeout=None):
    """
    Decorator caching a league-scoped query

    The wrapped function takes the league id as its first argument and must
    return picklable data (plain dicts and lists), not ORM instances.
    """

    def decorator(f):
        @functools.wraps(f)
        def wrapped(league_id, *args):
            generation = league_generation(scope, league_id)
            cache_key = ":".join(
                [scope, f.__name__, str(league_id), f"v{generation}", *map(str, args)]
            )

            result = cache.get(cache_key)
            if result is not None:
                logger.debug(f"Query cache hit: {cache_key}")
                return result

            result = f(league_id, *args)
            cache.set(
                cache_key,
                result,
                timeout=timeout or current_app.config.get("CACHE_DEFAULT_TIMEOUT", 300),
            )
            logger.debug(f"Query cache set: {cache_key}")
            return result

        return wrapped

    return decorator


def invalidate_league_cache(scope, league_id):
    """Drop every cached value of one scope for a league"""
    try:
        # timeout=0 keeps the counter until the next bump
        cache.set(
            _generation_key(scope, league_id),
            league_generation(scope, league_id) + 1,
            timeout=0,
        )
        logger.debug(f"Cache generation bumped for {scope}/{league_id}")
    except Exception as e:
        # Cached values still expire after their timeout
        logger.error(f"Failed to invalidate {scope} cache for {league_id}: {e}")
