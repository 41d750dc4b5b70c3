"""Defines user concepts for the identity service."""

from enum import Enum
from typing import Any, Dict, NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from .exceptions import SerializationError


class Status(str, Enum):
    """Account status."""

    ACTIVE = 'Active'
    INACTIVE = 'Inactive'


class Role(str, Enum):
    """Account role, carried in issued tokens."""

    ADMIN = 'Admin'
    OPERATOR = 'Operator'


class User(BaseModel):
    """An account record as held in the datastore."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    """Assigned by the datastore on creation."""

    full_name: str
    username: str

    password_hash: str
    """One-way hash of the password. Never the plaintext."""

    status: Status
    role: Role

    profile_picture: str = ''
    """Filename of the stored profile picture, if any."""

    def public(self) -> Dict[str, Any]:
        """Representation of the user that is safe to hand to callers."""
        return self.model_dump(mode='json', exclude={'password_hash'})


class UserInput(NamedTuple):
    """Caller-supplied data for a new account."""

    full_name: str = ''
    username: str = ''
    password: str = ''
    status: str = ''
    role: str = ''

    def __repr__(self) -> str:
        return (f'UserInput(full_name={self.full_name!r}, '
                f'username={self.username!r}, status={self.status!r}, '
                f'role={self.role!r})')


class UserUpdate(NamedTuple):
    """
    Partial update to an account.

    Fields that are ``None`` or empty are left unchanged.
    """

    full_name: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    status: Optional[str] = None
    role: Optional[str] = None

    def __repr__(self) -> str:
        return (f'UserUpdate(full_name={self.full_name!r}, '
                f'username={self.username!r}, status={self.status!r}, '
                f'role={self.role!r}, password_changed={bool(self.password)})')


def serialize_user(user: User) -> str:
    """
    Serialize a :class:`.User` for the cache.

    Field order is fixed by the model, so the same user always produces the
    same text.
    """
    try:
        return user.model_dump_json()
    except ValueError as e:
        raise SerializationError('Cannot serialize user') from e


def deserialize_user(data: Union[str, bytes]) -> User:
    """
    Load a :class:`.User` from its serialized form.

    Raises
    ------
    :class:`.SerializationError`
        If ``data`` is not a complete, valid user record.

    """
    try:
        return User.model_validate_json(data)
    except (PydanticValidationError, TypeError) as e:
        raise SerializationError('Malformed user record') from e
