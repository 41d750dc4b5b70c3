"""
Account operations: create, read, update, delete, and authenticate users.

Reads by ID go through the cache (see :mod:`.services.cache`). Every other
path, updates included, reads the datastore directly so that it observes the
latest state. None of the write paths refresh or invalidate the cache, so a
read shortly after an update or delete may return the old record until the
cache entry expires.
"""

import logging
import re
from typing import BinaryIO, List, Optional

from . import domain
from .exceptions import AuthenticationFailed, InternalError, NoSuchUser, \
    ValidationError
from .services import tokens
from .services.cache import CachedUserReader, UserCache
from .services.passwords import PasswordHasher
from .services.pictures import PictureStore, is_image
from .services.users import UserRepository

logger = logging.getLogger(__name__)

USERNAME = re.compile(r'[A-Za-z]+')
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 15

MISSING_FIELDS = 'all fields must be provided'
MISSING_ID = 'user ID must be provided'
BAD_USERNAME = 'username must contain only characters'
BAD_PASSWORD = (f'password must be between {PASSWORD_MIN_LENGTH} and '
                f'{PASSWORD_MAX_LENGTH} characters')
BAD_STATUS = 'invalid status value'
BAD_ROLE = 'invalid role value'
BAD_PICTURE = 'invalid file format, only images are allowed'
BAD_CREDENTIALS = 'invalid credentials'


def _check_username(username: str) -> None:
    if not USERNAME.fullmatch(username):
        raise ValidationError(BAD_USERNAME)


def _check_password(password: str) -> None:
    if not PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH:
        raise ValidationError(BAD_PASSWORD)


def _parse_status(value: str) -> domain.Status:
    try:
        return domain.Status(value)
    except ValueError:
        raise ValidationError(BAD_STATUS) from None


def _parse_role(value: str) -> domain.Role:
    try:
        return domain.Role(value)
    except ValueError:
        raise ValidationError(BAD_ROLE) from None


def _require_id(user_id: str) -> None:
    if not user_id:
        raise ValidationError(MISSING_ID)


class AccountService(object):
    """Orchestrates the datastore, cache, hasher, and token issuer."""

    def __init__(self, users: UserRepository, cache: UserCache,
                 secret: str, hasher: Optional[PasswordHasher] = None,
                 token_duration: int = tokens.DEFAULT_DURATION,
                 pictures: Optional[PictureStore] = None) -> None:
        self._users = users
        self._cache = cache
        self._reader = CachedUserReader(users, cache)
        self._secret = secret
        self._hasher = hasher or PasswordHasher()
        self._token_duration = token_duration
        self._pictures = pictures

    def close(self) -> None:
        """Close the datastore and cache handles."""
        self._users.close()
        self._cache.close()

    def create(self, data: domain.UserInput) -> domain.User:
        """
        Register a new user.

        Each rule is checked in turn, and the first one violated is reported.

        Raises
        ------
        :class:`.ValidationError`
            If the input is invalid, or the username is already taken
            (:class:`.UsernameTaken`).

        """
        if not data.full_name or not data.username or not data.password:
            raise ValidationError(MISSING_FIELDS)
        _check_username(data.username)
        _check_password(data.password)
        status = _parse_status(data.status)
        role = _parse_role(data.role)

        password_hash = self._hasher.hash(data.password)
        user = self._users.create_user(
            full_name=data.full_name,
            username=data.username,
            password_hash=password_hash,
            status=status,
            role=role
        )
        logger.info('Created user %s (%s)', user.user_id, user.username)
        return user

    def read(self, user_id: str) -> domain.User:
        """Get a user by ID, possibly from the cache."""
        _require_id(user_id)
        user = self._reader.get_user_by_id(user_id)
        if user is None:
            raise NoSuchUser(f'User {user_id} does not exist')
        return user

    def list(self) -> List[domain.User]:
        """Get all users from the datastore."""
        return self._users.get_all_users()

    def _get_current(self, user_id: str) -> domain.User:
        _require_id(user_id)
        user = self._users.get_user_by_id(user_id)
        if user is None:
            raise NoSuchUser(f'User {user_id} does not exist')
        return user

    def update(self, user_id: str, data: domain.UserUpdate) -> domain.User:
        """
        Apply a partial update to a user.

        Only fields present in ``data`` are validated and changed. The cached
        record, if any, is left alone.
        """
        user = self._get_current(user_id)
        changes = {}
        if data.full_name:
            changes['full_name'] = data.full_name
        if data.username:
            _check_username(data.username)
            changes['username'] = data.username
        if data.password:
            _check_password(data.password)
        if data.status:
            changes['status'] = _parse_status(data.status)
        if data.role:
            changes['role'] = _parse_role(data.role)
        if data.password:
            changes['password_hash'] = self._hasher.hash(data.password)

        updated = self._users.update_user(user.model_copy(update=changes))
        if updated is None:
            raise NoSuchUser(f'User {user_id} does not exist')
        logger.info('Updated user %s: %s', user_id,
                    ', '.join(sorted(changes)) or 'no changes')
        return updated

    def delete(self, user_id: str) -> None:
        """Delete a user. The cached record, if any, is left alone."""
        user = self._get_current(user_id)
        if not self._users.delete_user(user.user_id):
            raise NoSuchUser(f'User {user_id} does not exist')
        logger.info('Deleted user %s', user_id)

    def authenticate(self, username: str, password: str) -> str:
        """
        Verify a username and password, and issue a token.

        Raises
        ------
        :class:`.AuthenticationFailed`
            If there is no such user or the password is wrong. The two cases
            are indistinguishable to the caller.
        :class:`.TokenSigningFailed`
            If the token could not be signed.

        """
        user = self._users.get_user_by_username(username) \
            if username else None
        if user is None:
            logger.info('Authentication failed: no such user %r', username)
            raise AuthenticationFailed(BAD_CREDENTIALS)
        if not self._hasher.check(password, user.password_hash):
            logger.info('Authentication failed: wrong password for user %s',
                        user.user_id)
            raise AuthenticationFailed(BAD_CREDENTIALS)
        token = tokens.issue(user, self._secret, self._token_duration)
        logger.info('User %s authenticated', user.user_id)
        return token

    def update_profile_picture(self, user_id: str, filename: str,
                               stream: BinaryIO,
                               content_type: Optional[str] = None) \
            -> domain.User:
        """
        Store an uploaded image and make it the user's profile picture.

        The previous picture, if any, is removed once the user record points
        at the new one. If the record cannot be updated, the new file is
        removed instead.
        """
        if self._pictures is None:
            raise InternalError('Picture storage is not configured')
        user = self._get_current(user_id)
        if not filename or not is_image(filename, content_type):
            raise ValidationError(BAD_PICTURE)
        try:
            stored = self._pictures.save(user.user_id, filename, stream)
        except ValueError as e:
            raise ValidationError(BAD_PICTURE) from e
        try:
            updated = self._users.update_user(
                user.model_copy(update={'profile_picture': stored})
            )
        except Exception:
            self._discard_picture(stored, user)
            raise
        if updated is None:
            self._discard_picture(stored, user)
            raise NoSuchUser(f'User {user_id} does not exist')
        if user.profile_picture and user.profile_picture != stored:
            self._pictures.delete(user.profile_picture)
        return updated

    def _discard_picture(self, stored: str, user: domain.User) -> None:
        # Same name means the upload already replaced the current file.
        if self._pictures is not None and stored != user.profile_picture:
            self._pictures.delete(stored)

    def get_profile_picture(self, user_id: str) -> bytes:
        """Get the bytes of a user's profile picture."""
        if self._pictures is None:
            raise InternalError('Picture storage is not configured')
        user = self._get_current(user_id)
        if not user.profile_picture:
            raise NoSuchUser(f'User {user_id} has no profile picture')
        try:
            return self._pictures.load(user.profile_picture)
        except FileNotFoundError as e:
            logger.error('Picture %s for user %s is missing',
                         user.profile_picture, user_id)
            raise NoSuchUser(f'User {user_id} has no profile picture') from e
