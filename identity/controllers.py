"""
Request controllers for the identity service.

Controllers translate request data into calls on the
:class:`.accounts.AccountService`, and its outcomes into response data. Each
returns a ``(data, status, headers)`` tuple; failures are raised as
:mod:`werkzeug.exceptions` so that the application renders them uniformly.
"""

import logging
from functools import wraps
from http import HTTPStatus as status
from typing import Any, BinaryIO, Callable, Dict, Optional, Tuple

from werkzeug.exceptions import BadRequest, InternalServerError, NotFound, \
    Unauthorized

from . import domain
from .accounts import AccountService
from .exceptions import AuthenticationFailed, InternalError, NoSuchUser, \
    ValidationError

logger = logging.getLogger(__name__)

ResponseData = Tuple[dict, int, dict]

USER_FIELDS = ['full_name', 'username', 'password', 'status', 'role']


def handle_account_errors(func: Callable) -> Callable:
    """Map account exceptions onto HTTP exceptions."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except ValidationError as e:
            raise BadRequest(str(e)) from e
        except NoSuchUser as e:
            raise NotFound('User not found') from e
        except AuthenticationFailed as e:
            raise Unauthorized(str(e)) from e
        except InternalError as e:
            logger.error('%s in %s: %s', type(e).__name__, func.__name__, e)
            raise InternalServerError('internal error') from e
    return wrapper


def _fields(payload: Optional[Dict[str, Any]]) -> Dict[str, str]:
    if not isinstance(payload, dict):
        raise BadRequest('Expected a JSON object')
    fields = {}
    for name in USER_FIELDS:
        value = payload.get(name)
        if value is None:
            continue
        if not isinstance(value, str):
            raise BadRequest(f'{name} must be a string')
        fields[name] = value
    return fields


@handle_account_errors
def create_user(accounts: AccountService,
                payload: Optional[Dict[str, Any]]) -> ResponseData:
    """Register a new user."""
    user = accounts.create(domain.UserInput(**_fields(payload)))
    return user.public(), status.CREATED, {}


@handle_account_errors
def login(accounts: AccountService,
          payload: Optional[Dict[str, Any]]) -> ResponseData:
    """Authenticate with username and password, and issue a token."""
    fields = _fields(payload)
    token = accounts.authenticate(fields.get('username', ''),
                                  fields.get('password', ''))
    return {'token': token}, status.OK, {}


@handle_account_errors
def list_users(accounts: AccountService) -> ResponseData:
    """Get all users."""
    users = [user.public() for user in accounts.list()]
    return {'users': users}, status.OK, {}


@handle_account_errors
def get_user(accounts: AccountService, user_id: str) -> ResponseData:
    """Get a single user."""
    return accounts.read(user_id).public(), status.OK, {}


@handle_account_errors
def update_user(accounts: AccountService, user_id: str,
                payload: Optional[Dict[str, Any]]) -> ResponseData:
    """Update some or all fields of a user."""
    user = accounts.update(user_id, domain.UserUpdate(**_fields(payload)))
    return user.public(), status.OK, {}


@handle_account_errors
def delete_user(accounts: AccountService, user_id: str) -> ResponseData:
    """Delete a user."""
    accounts.delete(user_id)
    return {}, status.NO_CONTENT, {}


@handle_account_errors
def upload_picture(accounts: AccountService, user_id: str,
                   filename: Optional[str], stream: Optional[BinaryIO],
                   content_type: Optional[str] = None) -> ResponseData:
    """Set a user's profile picture from an uploaded file."""
    if not filename or stream is None:
        raise BadRequest('No file provided')
    user = accounts.update_profile_picture(user_id, filename, stream,
                                           content_type)
    return user.public(), status.OK, {}


@handle_account_errors
def get_picture(accounts: AccountService, user_id: str) -> bytes:
    """Get the raw bytes of a user's profile picture."""
    return accounts.get_profile_picture(user_id)
