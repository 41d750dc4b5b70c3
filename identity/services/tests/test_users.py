"""Tests for :mod:`identity.services.users`."""

from unittest import TestCase

from sqlalchemy import text

from ... import domain
from ...exceptions import Unavailable, UsernameTaken, ValidationError
from ...tests.util import temporary_repository


class TestSQLUserRepository(TestCase):
    """The repository stores users in a relational database."""

    def setUp(self):
        self.users = temporary_repository()

    def tearDown(self):
        self.users.drop_all()
        self.users.close()

    def _create(self, username='alice', **kwargs):
        params = dict(
            full_name='Alice Liddell',
            username=username,
            password_hash='pbkdf2:sha256:1000$salt$hash',
            status=domain.Status.ACTIVE,
            role=domain.Role.OPERATOR
        )
        params.update(kwargs)
        return self.users.create_user(**params)

    def test_create_assigns_id(self):
        """The datastore assigns an ID to a new user."""
        user = self._create()
        self.assertTrue(user.user_id)
        self.assertEqual(user.username, 'alice')
        self.assertEqual(user.status, domain.Status.ACTIVE)
        self.assertEqual(user.role, domain.Role.OPERATOR)
        self.assertEqual(user.profile_picture, '')
        self.assertNotEqual(self._create(username='bob').user_id,
                            user.user_id)

    def test_get_user_by_id(self):
        """A stored user can be loaded by ID."""
        user = self._create()
        self.assertEqual(self.users.get_user_by_id(user.user_id), user)

    def test_get_missing_user(self):
        """Loading a user that does not exist returns ``None``."""
        self.assertIsNone(self.users.get_user_by_id('1234'))
        self.assertIsNone(self.users.get_user_by_id('notanid'))
        self.assertIsNone(self.users.get_user_by_username('nouser'))

    def test_non_canonical_id(self):
        """Only IDs in the form the datastore issues them are found."""
        for i in range(10):
            user = self._create(username='user' + 'a' * (i + 1))
        self.assertEqual(user.user_id, '10')
        for user_id in ['1_0', ' 10', '010', '+10', '\uff11\uff10']:
            self.assertIsNone(self.users.get_user_by_id(user_id))
            self.assertFalse(self.users.delete_user(user_id))

    def test_get_user_by_username(self):
        """A stored user can be loaded by username."""
        user = self._create()
        self.assertEqual(self.users.get_user_by_username('alice'), user)

    def test_get_all_users(self):
        """All users are returned in the order they were created."""
        alice = self._create()
        bob = self._create(username='bob')
        self.assertEqual(self.users.get_all_users(), [alice, bob])

    def test_username_unique_on_create(self):
        """A second user with the same username is rejected."""
        self._create()
        with self.assertRaises(UsernameTaken) as ctx:
            self._create(full_name='Another Alice')
        self.assertIsInstance(ctx.exception, ValidationError)
        self.assertEqual(len(self.users.get_all_users()), 1)

    def test_update_user(self):
        """All fields of the user are written."""
        user = self._create()
        changed = user.model_copy(update={
            'full_name': 'Alice Pleasance Liddell',
            'status': domain.Status.INACTIVE,
            'role': domain.Role.ADMIN,
            'profile_picture': 'alice.png'
        })
        self.assertEqual(self.users.update_user(changed), changed)
        self.assertEqual(self.users.get_user_by_id(user.user_id), changed)

    def test_update_missing_user(self):
        """Updating a user that no longer exists returns ``None``."""
        user = self._create()
        self.users.delete_user(user.user_id)
        self.assertIsNone(self.users.update_user(user))

    def test_username_unique_on_update(self):
        """Renaming a user onto another user's username is rejected."""
        self._create()
        bob = self._create(username='bob')
        renamed = bob.model_copy(update={'username': 'alice'})
        with self.assertRaises(UsernameTaken):
            self.users.update_user(renamed)
        self.assertEqual(self.users.get_user_by_id(bob.user_id), bob)

    def test_delete_user(self):
        """A deleted user is gone."""
        user = self._create()
        self.assertTrue(self.users.delete_user(user.user_id))
        self.assertIsNone(self.users.get_user_by_id(user.user_id))
        self.assertFalse(self.users.delete_user(user.user_id))

    def test_invalid_stored_status(self):
        """A row with an unknown status is an internal failure."""
        user = self._create()
        with self.users.transaction() as session:
            session.execute(text("UPDATE users SET status = 'Pending'"))
        with self.assertRaises(Unavailable):
            self.users.get_user_by_id(user.user_id)

    def test_datastore_unavailable(self):
        """Failures in the database are raised as :class:`.Unavailable`."""
        self.users.drop_all()
        with self.assertRaises(Unavailable):
            self.users.get_user_by_username('alice')
        with self.assertRaises(Unavailable):
            self._create()
        self.users.create_all()
