"""Integrations with the datastore, the cache, and other backends."""

from .cache import CachedUserReader, UserCache
from .passwords import PasswordHasher
from .pictures import PictureStore
from .users import SQLUserRepository, UserRepository
