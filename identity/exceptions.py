"""Exceptions raised by the identity service and its backends."""


class ValidationError(RuntimeError):
    """Input data violates one of the account rules."""


class UsernameTaken(ValidationError):
    """Another account already uses the requested username."""


class NoSuchUser(RuntimeError):
    """User does not exist."""


class AuthenticationFailed(RuntimeError):
    """Failed to authenticate user with provided credentials."""


class CacheError(RuntimeError):
    """The user cache could not be read or written."""


class SerializationError(RuntimeError):
    """A serialized user record is malformed."""


class InternalError(RuntimeError):
    """An internal failure; details are logged, never returned to callers."""


class Unavailable(InternalError):
    """The user datastore is unavailable or rejected the operation."""


class PasswordHashingFailed(InternalError):
    """Failed to generate a password hash."""


class TokenSigningFailed(InternalError):
    """Failed to sign an authentication token."""


class InvalidToken(RuntimeError):
    """Token is malformed, forged, or lacks required claims."""


class ExpiredToken(InvalidToken):
    """Token has expired."""
