"""Functions for issuing and verifying bearer tokens."""

import logging
from datetime import datetime, timedelta

import jwt
from pytz import UTC

from .. import domain
from ..exceptions import ExpiredToken, InvalidToken, TokenSigningFailed

logger = logging.getLogger(__name__)

ALGORITHM = 'HS256'
DEFAULT_DURATION = 86400
REQUIRED_CLAIMS = ['user_id', 'username', 'role', 'exp']


def issue(user: domain.User, secret: str,
          duration: int = DEFAULT_DURATION) -> str:
    """
    Sign a token binding the user's identity and role.

    Parameters
    ----------
    user : :class:`.domain.User`
    secret : str
        Signing secret, from configuration.
    duration : int
        Token lifetime in seconds.

    Returns
    -------
    str

    Raises
    ------
    :class:`.TokenSigningFailed`
        If no secret is configured or the token cannot be encoded.

    """
    if not secret:
        logger.error('Cannot sign token: no signing secret configured')
        raise TokenSigningFailed('Signing secret is not configured')
    now = datetime.now(tz=UTC)
    claims = {
        'user_id': user.user_id,
        'username': user.username,
        'role': user.role.value,
        'iat': now,
        'exp': now + timedelta(seconds=duration),
    }
    try:
        token: str = jwt.encode(claims, secret, algorithm=ALGORITHM)
    except (jwt.exceptions.PyJWTError, TypeError, ValueError) as e:
        logger.error('Failed to sign token for user %s: %s',
                     user.user_id, type(e).__name__)
        raise TokenSigningFailed('Failed to sign token') from e
    return token


def decode(token: str, secret: str) -> dict:
    """
    Verify a bearer token and return its claims.

    Without a secret nothing can be verified, so every token is rejected.
    """
    if not secret:
        raise InvalidToken('Signing secret is not configured')
    try:
        claims: dict = jwt.decode(token, secret, algorithms=[ALGORITHM],
                                  options={'require': REQUIRED_CLAIMS})
    except jwt.exceptions.ExpiredSignatureError as e:
        raise ExpiredToken('Token has expired') from e
    except jwt.exceptions.PyJWTError as e:
        raise InvalidToken('Not a valid token') from e
    return claims
