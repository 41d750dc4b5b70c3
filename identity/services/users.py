"""
Integration with the user datastore.

:class:`.UserRepository` describes what the account service needs from the
store. :class:`.SQLUserRepository` implements it on a SQLAlchemy engine; the
engine is created (or injected) once and shared across requests.
"""

import logging
from contextlib import contextmanager
from typing import Generator, List, Optional, Protocol

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session
from sqlalchemy.pool import StaticPool

from .. import domain
from ..exceptions import Unavailable, UsernameTaken
from .models import Base, DBUser

logger = logging.getLogger(__name__)


class UserRepository(Protocol):
    """Durable storage for user accounts."""

    def create_user(self, full_name: str, username: str, password_hash: str,
                    status: domain.Status, role: domain.Role,
                    profile_picture: str = '') -> domain.User:
        ...

    def get_user_by_id(self, user_id: str) -> Optional[domain.User]:
        ...

    def get_user_by_username(self, username: str) -> Optional[domain.User]:
        ...

    def get_all_users(self) -> List[domain.User]:
        ...

    def update_user(self, user: domain.User) -> Optional[domain.User]:
        ...

    def delete_user(self, user_id: str) -> bool:
        ...

    def close(self) -> None:
        ...


class SQLUserRepository(object):
    """Stores users in a relational database."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_uri(cls, uri: str) -> 'SQLUserRepository':
        """Create a repository with a new engine for ``uri``."""
        logger.debug('New database engine for %s', uri.split('://', 1)[0])
        if uri in ('sqlite://', 'sqlite:///:memory:'):
            # One shared connection, or every session sees an empty database.
            engine = create_engine(uri, poolclass=StaticPool,
                                   connect_args={'check_same_thread': False})
        else:
            engine = create_engine(uri, pool_pre_ping=True)
        return cls(engine)

    def create_all(self) -> None:
        """Create all tables in the database."""
        Base.metadata.create_all(self._engine)

    def drop_all(self) -> None:
        """Drop all tables in the database."""
        Base.metadata.drop_all(self._engine)

    def close(self) -> None:
        """Release all pooled connections."""
        self._engine.dispose()

    @contextmanager
    def transaction(self) -> Generator[Session, None, None]:
        """Context manager for database transaction."""
        session = self._sessions()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            logger.debug('Integrity error, rolling back: %s', e.orig)
            raise UsernameTaken('username already exists') from e
        except SQLAlchemyError as e:
            session.rollback()
            # str(e) includes bound parameters, i.e. password hashes.
            logger.error('Commit failed, rolling back: %s: %s',
                         type(e).__name__, getattr(e, 'orig', None))
            raise Unavailable('Database is unavailable') from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_user(self, full_name: str, username: str, password_hash: str,
                    status: domain.Status, role: domain.Role,
                    profile_picture: str = '') -> domain.User:
        """Add a new user to the database."""
        with self.transaction() as session:
            db_user = DBUser(
                full_name=full_name,
                username=username,
                password=password_hash,
                status=status.value,
                role=role.value,
                profile_picture=profile_picture
            )
            session.add(db_user)
            session.flush()
            return _to_domain(db_user)

    def get_user_by_id(self, user_id: str) -> Optional[domain.User]:
        """Load a user by ID, or ``None`` if there is no such user."""
        pk = _primary_key(user_id)
        if pk is None:
            return None
        with self.transaction() as session:
            db_user = session.get(DBUser, pk)
            if db_user is None:
                return None
            return _to_domain(db_user)

    def get_user_by_username(self, username: str) -> Optional[domain.User]:
        """Load a user by username, or ``None`` if there is no such user."""
        with self.transaction() as session:
            db_user = session.query(DBUser) \
                .filter(DBUser.username == username) \
                .first()
            if db_user is None:
                return None
            return _to_domain(db_user)

    def get_all_users(self) -> List[domain.User]:
        """Load all users, ordered by ID."""
        with self.transaction() as session:
            return [_to_domain(db_user) for db_user
                    in session.query(DBUser).order_by(DBUser.user_id)]

    def update_user(self, user: domain.User) -> Optional[domain.User]:
        """
        Write all fields of ``user`` to its row.

        Returns ``None`` if the row no longer exists.
        """
        pk = _primary_key(user.user_id)
        if pk is None:
            return None
        with self.transaction() as session:
            db_user = session.get(DBUser, pk)
            if db_user is None:
                return None
            db_user.full_name = user.full_name
            db_user.username = user.username
            db_user.password = user.password_hash
            db_user.status = user.status.value
            db_user.role = user.role.value
            db_user.profile_picture = user.profile_picture
            session.flush()
            return _to_domain(db_user)

    def delete_user(self, user_id: str) -> bool:
        """Delete a user. Returns ``False`` if there was nothing to delete."""
        pk = _primary_key(user_id)
        if pk is None:
            return False
        with self.transaction() as session:
            db_user = session.get(DBUser, pk)
            if db_user is None:
                return False
            session.delete(db_user)
            return True


def _primary_key(user_id: str) -> Optional[int]:
    """Parse an ID in its canonical form, as issued; anything else is None."""
    if not isinstance(user_id, str) or not user_id.isascii() \
            or not user_id.isdigit():
        return None
    pk = int(user_id)
    if str(pk) != user_id:
        return None
    return pk


def _to_domain(db_user: DBUser) -> domain.User:
    try:
        return domain.User(
            user_id=str(db_user.user_id),
            full_name=db_user.full_name,
            username=db_user.username,
            password_hash=db_user.password,
            status=domain.Status(db_user.status),
            role=domain.Role(db_user.role),
            profile_picture=db_user.profile_picture or ''
        )
    except ValueError as e:
        logger.error('User %s has an invalid stored record: %s',
                     db_user.user_id, type(e).__name__)
        raise Unavailable('Stored user record is invalid') from e
