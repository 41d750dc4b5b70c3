"""One-way password hashing and verification."""

import logging

from werkzeug.security import check_password_hash, generate_password_hash

from ..exceptions import PasswordHashingFailed

logger = logging.getLogger(__name__)

DEFAULT_ITERATIONS = 600000
SALT_LENGTH = 16


class PasswordHasher(object):
    """
    Hashes passwords with PBKDF2-SHA256 at a fixed work factor.

    The hash string carries the method, iteration count and salt, so
    verification needs nothing but the hash itself.
    """

    def __init__(self, iterations: int = DEFAULT_ITERATIONS) -> None:
        self._method = f'pbkdf2:sha256:{int(iterations)}'

    def hash(self, password: str) -> str:
        """Generate a salted hash of ``password``."""
        try:
            return generate_password_hash(password, method=self._method,
                                          salt_length=SALT_LENGTH)
        except (TypeError, ValueError, AttributeError) as e:
            # The exception message may echo its input; don't chain it.
            logger.error('Password hashing failed: %s', type(e).__name__)
            raise PasswordHashingFailed('Could not hash password') from None

    def check(self, password: str, password_hash: str) -> bool:
        """
        Check ``password`` against ``password_hash``.

        Returns ``False`` for a malformed or unsupported hash.
        """
        if not password_hash or not isinstance(password, str):
            return False
        try:
            return bool(check_password_hash(password_hash, password))
        except (TypeError, ValueError, AttributeError):
            logger.debug('Stored password hash is malformed')
            return False
