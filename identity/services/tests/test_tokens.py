"""Tests for :mod:`identity.services.tokens`."""

import time
from unittest import TestCase, mock

import jwt

from .. import tokens
from ... import domain
from ...exceptions import AuthenticationFailed, ExpiredToken, \
    InternalError, InvalidToken, TokenSigningFailed


def _user():
    return domain.User(
        user_id='42',
        full_name='Alice Liddell',
        username='alice',
        password_hash='pbkdf2:sha256:1000$salt$hash',
        status=domain.Status.ACTIVE,
        role=domain.Role.ADMIN
    )


class TestIssue(TestCase):
    """Tokens bind the user's identity and role, with an expiry."""

    def test_claims(self):
        """The token carries ID, username, role, and expiry."""
        before = int(time.time())
        token = tokens.issue(_user(), 'foosecret', duration=3600)
        claims = jwt.decode(token, 'foosecret', algorithms=['HS256'])
        self.assertEqual(claims['user_id'], '42')
        self.assertEqual(claims['username'], 'alice')
        self.assertEqual(claims['role'], 'Admin')
        self.assertGreaterEqual(claims['exp'], before + 3600)
        self.assertNotIn('password_hash', claims)

    def test_no_secret(self):
        """Without a secret, signing fails as an internal error."""
        with self.assertRaises(TokenSigningFailed) as ctx:
            tokens.issue(_user(), '')
        self.assertIsInstance(ctx.exception, InternalError)
        self.assertNotIsInstance(ctx.exception, AuthenticationFailed)

    def test_encoding_fails(self):
        """A failure in the JWT library is reported as a signing failure."""
        with mock.patch.object(tokens.jwt, 'encode') as mock_encode:
            mock_encode.side_effect = jwt.exceptions.InvalidKeyError('nope')
            with self.assertRaises(TokenSigningFailed):
                tokens.issue(_user(), 'foosecret')


class TestDecode(TestCase):
    """Issued tokens can be verified."""

    def test_round_trip(self):
        """A freshly issued token decodes with the same secret."""
        token = tokens.issue(_user(), 'foosecret')
        claims = tokens.decode(token, 'foosecret')
        self.assertEqual(claims['user_id'], '42')

    def test_not_a_token(self):
        """Something other than a JWT is passed."""
        with self.assertRaises(InvalidToken):
            tokens.decode('notatoken', 'foosecret')

    def test_wrong_secret(self):
        """A JWT produced with a different secret is passed."""
        token = tokens.issue(_user(), 'nottherightsecret')
        with self.assertRaises(InvalidToken):
            tokens.decode(token, 'foosecret')

    def test_missing_claims(self):
        """A validly signed JWT without the required claims is passed."""
        token = jwt.encode({'user_id': '42', 'exp': int(time.time()) + 60},
                           'foosecret', algorithm='HS256')
        with self.assertRaises(InvalidToken):
            tokens.decode(token, 'foosecret')

    def test_expired(self):
        """An expired token is rejected."""
        token = tokens.issue(_user(), 'foosecret', duration=-60)
        with self.assertRaises(ExpiredToken):
            tokens.decode(token, 'foosecret')

    def test_no_secret(self):
        """Without a secret, no token is accepted."""
        token = tokens.issue(_user(), 'foosecret')
        with mock.patch.object(tokens.jwt, 'decode') as mock_decode:
            mock_decode.return_value = {'user_id': '42'}
            with self.assertRaises(InvalidToken):
                tokens.decode(token, '')
            self.assertEqual(mock_decode.call_count, 0)
