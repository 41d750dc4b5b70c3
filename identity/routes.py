"""Provides the HTTP API of the identity service."""

import logging
from functools import wraps
from typing import Any, Callable

from flask import Blueprint, Response, current_app, jsonify, make_response, \
    request
from werkzeug.exceptions import Unauthorized

from . import controllers
from .accounts import AccountService
from .exceptions import ExpiredToken, InvalidToken
from .services import tokens

logger = logging.getLogger(__name__)

blueprint = Blueprint('identity', __name__, url_prefix='')


def get_accounts() -> AccountService:
    """Get the :class:`.AccountService` attached to the current app."""
    accounts: AccountService = current_app.extensions['identity']
    return accounts


def authenticated(func: Callable) -> Callable:
    """Require a valid bearer token; its claims go on ``request.auth``."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        auth_header = request.headers.get('Authorization', '')
        parts = auth_header.split()
        if len(parts) != 2 or parts[0].lower() != 'bearer':
            raise Unauthorized('Missing or malformed auth token')
        try:
            claims = tokens.decode(parts[1], current_app.config['JWT_SECRET'])
        except ExpiredToken as e:
            raise Unauthorized('Auth token has expired') from e
        except InvalidToken as e:
            logger.debug('Invalid auth token: %s', e)
            raise Unauthorized('Not a valid auth token') from e
        request.auth = claims
        return func(*args, **kwargs)
    return wrapper


def _respond(data: dict, code: int, headers: dict) -> Response:
    response: Response = make_response(jsonify(data), code, headers)
    return response


@blueprint.route('/users', methods=['POST'])
def create_user() -> Response:
    """Register a new user."""
    payload = request.get_json(silent=True)
    return _respond(*controllers.create_user(get_accounts(), payload))


@blueprint.route('/login', methods=['POST'])
def login() -> Response:
    """Log in with username and password."""
    payload = request.get_json(silent=True)
    return _respond(*controllers.login(get_accounts(), payload))


@blueprint.route('/users', methods=['GET'])
@authenticated
def list_users() -> Response:
    """List all users."""
    return _respond(*controllers.list_users(get_accounts()))


@blueprint.route('/users/<string:user_id>', methods=['GET'])
@authenticated
def get_user(user_id: str) -> Response:
    """Get a user."""
    return _respond(*controllers.get_user(get_accounts(), user_id))


@blueprint.route('/users/<string:user_id>', methods=['PUT'])
@authenticated
def update_user(user_id: str) -> Response:
    """Update a user."""
    payload = request.get_json(silent=True)
    return _respond(*controllers.update_user(get_accounts(), user_id,
                                             payload))


@blueprint.route('/users/<string:user_id>', methods=['DELETE'])
@authenticated
def delete_user(user_id: str) -> Response:
    """Delete a user."""
    data, code, headers = controllers.delete_user(get_accounts(), user_id)
    response: Response = make_response('', code, headers)
    return response


@blueprint.route('/users/<string:user_id>/picture', methods=['POST'])
@authenticated
def upload_picture(user_id: str) -> Response:
    """Upload a profile picture, as the multipart field ``file``."""
    upload = request.files.get('file')
    if upload is None:
        filename, stream, content_type = None, None, None
    else:
        filename, stream = upload.filename, upload.stream
        content_type = upload.mimetype
    return _respond(*controllers.upload_picture(get_accounts(), user_id,
                                                filename, stream,
                                                content_type))


@blueprint.route('/users/<string:user_id>/picture', methods=['GET'])
@authenticated
def get_picture(user_id: str) -> Response:
    """Get the raw bytes of a profile picture."""
    data = controllers.get_picture(get_accounts(), user_id)
    response: Response = make_response(data)
    response.headers['Content-Type'] = 'application/octet-stream'
    return response
