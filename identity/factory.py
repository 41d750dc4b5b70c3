"""Provides an app factory for the identity service."""

import logging
from typing import Any, Mapping, Optional

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException, InternalServerError

from . import config as default_config
from . import routes
from .accounts import AccountService
from .app_logging import setup_logger
from .exceptions import InternalError
from .services.cache import UserCache
from .services.passwords import PasswordHasher
from .services.pictures import PictureStore
from .services.users import SQLUserRepository, UserRepository

logger = logging.getLogger(__name__)


def jsonify_exception(error: HTTPException) -> Any:
    """Render an HTTP exception as JSON."""
    exc_resp = error.get_response()
    response = jsonify(reason=error.description)
    response.status_code = exc_resp.status_code
    return response


def handle_internal_error(error: InternalError) -> Any:
    """Hide the details of internal failures from the caller."""
    logger.error('Unhandled %s: %s', type(error).__name__, error)
    return jsonify_exception(InternalServerError('internal error'))


def create_app(config: Optional[Mapping[str, Any]] = None,
               users: Optional[UserRepository] = None,
               cache: Optional[UserCache] = None,
               pictures: Optional[PictureStore] = None) -> Flask:
    """
    Initialize an instance of the identity service.

    The datastore, cache, and picture store are opened here unless they are
    passed in, and are closed by :func:`close_app`.
    """
    app = Flask('identity')
    app.config.from_object(default_config)
    if config is not None:
        app.config.update(config)

    setup_logger(app.config['LOGLEVEL'], app.config['LOG_JSON'])

    if users is None:
        repository = SQLUserRepository.from_uri(
            app.config['SQLALCHEMY_DATABASE_URI']
        )
        if app.config['CREATE_DB']:
            repository.create_all()
        users = repository
    if cache is None:
        cache = UserCache(
            app.config['REDIS_HOST'],
            int(app.config['REDIS_PORT']),
            db=int(app.config['REDIS_DATABASE']),
            ttl=int(app.config['USER_CACHE_TTL']),
            cluster=app.config['REDIS_CLUSTER'] == '1',
            socket_timeout=float(app.config['REDIS_SOCKET_TIMEOUT'])
        )
    if pictures is None:
        pictures = PictureStore(app.config['UPLOAD_FOLDER'])
    if not app.config['JWT_SECRET']:
        logger.warning('JWT_SECRET is not set; logins will fail')

    app.extensions['identity'] = AccountService(
        users,
        cache,
        secret=app.config['JWT_SECRET'],
        hasher=PasswordHasher(int(app.config['PASSWORD_HASH_ITERATIONS'])),
        token_duration=int(app.config['TOKEN_DURATION']),
        pictures=pictures
    )

    app.register_blueprint(routes.blueprint)
    app.register_error_handler(HTTPException, jsonify_exception)
    app.register_error_handler(InternalError, handle_internal_error)
    return app


def close_app(app: Flask) -> None:
    """Close the datastore and cache handles held by ``app``."""
    accounts: Optional[AccountService] = app.extensions.pop('identity', None)
    if accounts is not None:
        accounts.close()
