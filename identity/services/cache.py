"""
Cache-aside reads of user records.

User records are cached in a key-value store as JSON under ``user:<id>``, for
a fixed TTL. The cache is populated only when a read misses; nothing on the
write paths touches it, so an entry can be stale until it expires.

The cache is an optimization and never the source of truth: every failure of
the cache transport degrades to a plain read from the datastore.
"""

import logging
from typing import Optional, Union

import redis
from redis.exceptions import RedisError

from .. import domain
from ..exceptions import CacheError, SerializationError
from .users import UserRepository

logger = logging.getLogger(__name__)

KEY_PREFIX = 'user:'
DEFAULT_TTL = 600


def key_for(user_id: str) -> str:
    """Cache key for a user ID."""
    return KEY_PREFIX + user_id


class UserCache(object):
    """
    Manages a connection to Redis.

    The client is thread safe; connections are drawn from its pool when a
    command is executed, so one instance is shared by all requests.
    """

    def __init__(self, host: str, port: int, db: int = 0,
                 ttl: int = DEFAULT_TTL, cluster: bool = False,
                 socket_timeout: Optional[float] = 1.0) -> None:
        """Open the connection to Redis."""
        logger.debug('New Redis connection at %s, port %s', host, port)
        if cluster:
            self.r = redis.RedisCluster(host=host, port=port,
                                        socket_timeout=socket_timeout)
        else:
            self.r = redis.StrictRedis(host=host, port=port, db=db,
                                       socket_timeout=socket_timeout)
        self._ttl = ttl

    def get(self, user_id: str) -> Optional[Union[str, bytes]]:
        """
        Get the cached record for a user, or ``None`` on a miss.

        Raises
        ------
        :class:`.CacheError`
            If the cache cannot be reached.

        """
        try:
            value: Optional[Union[str, bytes]] = self.r.get(key_for(user_id))
        except RedisError as e:
            raise CacheError(f'Failed to read from cache: {e}') from e
        except Exception as e:
            raise CacheError(f'Failed to read: {e}') from e
        return value

    def set(self, user_id: str, value: str) -> None:
        """Cache the record for a user, replacing any existing entry."""
        try:
            self.r.set(key_for(user_id), value, ex=self._ttl)
        except RedisError as e:
            raise CacheError(f'Failed to write to cache: {e}') from e
        except Exception as e:
            raise CacheError(f'Failed to write: {e}') from e

    def close(self) -> None:
        """Close the connection pool."""
        self.r.close()


class CachedUserReader(object):
    """Reads users by ID through the cache, falling back to the datastore."""

    def __init__(self, users: UserRepository, cache: UserCache) -> None:
        self._users = users
        self._cache = cache

    def get_user_by_id(self, user_id: str) -> Optional[domain.User]:
        """
        Get a user by ID.

        A cached record is returned as-is, without checking the datastore.

        Returns
        -------
        :class:`.domain.User` or None
            ``None`` if the datastore has no such user.

        Raises
        ------
        :class:`.Unavailable`
            If the cache missed and the datastore could not be read.

        """
        cached = self._get_cached(user_id)
        if cached is not None:
            logger.debug('User %s fetched from cache', user_id)
            return cached

        user = self._users.get_user_by_id(user_id)
        if user is None:
            return None
        self._populate(user)
        return user

    def _get_cached(self, user_id: str) -> Optional[domain.User]:
        try:
            data = self._cache.get(user_id)
        except CacheError as e:
            logger.error('Error fetching user %s from cache: %s', user_id, e)
            return None
        if data is None:
            return None
        try:
            return domain.deserialize_user(data)
        except SerializationError as e:
            logger.error('Error deserializing cached user %s: %s',
                         user_id, e)
            return None

    def _populate(self, user: domain.User) -> None:
        """Write ``user`` to the cache; failures are logged, never raised."""
        try:
            self._cache.set(user.user_id, domain.serialize_user(user))
        except (CacheError, SerializationError) as e:
            logger.error('Error caching user %s: %s', user.user_id, e)
            return
        logger.debug('User %s cached', user.user_id)
