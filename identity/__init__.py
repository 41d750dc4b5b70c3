"""
User identity service.

Stores user accounts, verifies credentials, issues bearer tokens, and serves
account reads through a cache in front of the datastore.

Quick start
-----------

.. code-block:: python

   from identity.factory import create_app

   app = create_app({'JWT_SECRET': 'changeme',
                     'SQLALCHEMY_DATABASE_URI': 'sqlite:///identity.db',
                     'CREATE_DB': True})

Or, without the HTTP layer:

.. code-block:: python

   from identity import AccountService, domain
   from identity.services import SQLUserRepository, UserCache

   users = SQLUserRepository.from_uri('sqlite:///identity.db')
   users.create_all()
   accounts = AccountService(users, UserCache('localhost', 6379),
                             secret='changeme')
   user = accounts.create(domain.UserInput(
       full_name='Alice Liddell', username='alice', password='correctpass',
       status='Active', role='Operator'))
   token = accounts.authenticate('alice', 'correctpass')

Reads by ID may be served from the cache. The cache is not refreshed or
invalidated when a user is updated or deleted, so such a read can return the
previous record until its entry expires (10 minutes by default).
"""

from .accounts import AccountService
from .domain import Role, Status, User, UserInput, UserUpdate
