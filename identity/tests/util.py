"""Testing helpers."""

from typing import Dict, Optional, Tuple
from unittest import mock

from ..services.cache import UserCache
from ..services.passwords import PasswordHasher
from ..services.users import SQLUserRepository

# Cheap enough to hash many times in a test run.
FAST_HASHER = PasswordHasher(iterations=1000)


class FakeRedis(object):
    """Just enough of :class:`redis.StrictRedis` for the user cache."""

    def __init__(self) -> None:
        self.store: Dict[str, bytes] = {}
        self.expires: Dict[str, Optional[int]] = {}

    def get(self, key: str) -> Optional[bytes]:
        return self.store.get(key)

    def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self.store[key] = value.encode('utf-8')
        self.expires[key] = ex
        return True

    def close(self) -> None:
        pass


def fake_cache(ttl: int = 600) -> Tuple[UserCache, mock.MagicMock]:
    """Get a :class:`.UserCache` on an in-memory client, and the client."""
    backend = FakeRedis()
    connection = mock.MagicMock(wraps=backend)
    connection.backend = backend
    with mock.patch('identity.services.cache.redis') as mock_redis:
        mock_redis.StrictRedis.return_value = connection
        cache = UserCache('localhost', 6379, ttl=ttl)
    return cache, connection


def temporary_repository() -> SQLUserRepository:
    """Provide an in-memory sqlite datastore with tables created."""
    users = SQLUserRepository.from_uri('sqlite://')
    users.create_all()
    return users
