"""Web Server Gateway Interface entry-point."""

import atexit

from identity.factory import close_app, create_app

application = create_app()
atexit.register(close_app, application)
