"""Database models for the user datastore."""

from sqlalchemy import Column, DateTime, Integer, String, func, text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class DBUser(Base):  # type: ignore
    """
    User accounts.

    +-----------------+--------------+------+-----+
    | Field           | Type         | Null | Key |
    +-----------------+--------------+------+-----+
    | user_id         | int          | NO   | PRI |
    | full_name       | varchar(255) | NO   |     |
    | username        | varchar(64)  | NO   | UNI |
    | password        | varchar(255) | NO   |     |
    | status          | varchar(16)  | NO   |     |
    | role            | varchar(16)  | NO   |     |
    | profile_picture | varchar(255) | NO   |     |
    | created         | datetime     | NO   |     |
    | updated         | datetime     | NO   |     |
    +-----------------+--------------+------+-----+

    ``password`` holds the hash only.
    """

    __tablename__ = 'users'

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(255), nullable=False)
    username = Column(String(64), nullable=False, unique=True, index=True)
    password = Column(String(255), nullable=False)
    status = Column(String(16), nullable=False)
    role = Column(String(16), nullable=False)
    profile_picture = Column(String(255), nullable=False,
                             server_default=text("''"))
    created = Column(DateTime, nullable=False, server_default=func.now())
    updated = Column(DateTime, nullable=False, server_default=func.now(),
                     onupdate=func.now())
