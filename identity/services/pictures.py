"""Storage of uploaded profile pictures on the local filesystem."""

import logging
import os
import shutil
from typing import BinaryIO, Optional

from werkzeug.utils import secure_filename

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {'jpg', 'jpeg', 'png', 'gif', 'bmp', 'webp'}


def is_image(filename: str, content_type: Optional[str] = None) -> bool:
    """Determine whether an upload looks like an image."""
    if '.' not in filename:
        return False
    extension = filename.rsplit('.', 1)[1].lower()
    if extension not in IMAGE_EXTENSIONS:
        return False
    if content_type and not content_type.startswith('image/'):
        return False
    return True


class PictureStore(object):
    """Keeps profile pictures in a single upload folder."""

    def __init__(self, folder: str) -> None:
        self._folder = folder

    def _path(self, filename: str) -> str:
        return os.path.join(self._folder, filename)

    def save(self, owner: str, filename: str, stream: BinaryIO) -> str:
        """
        Write an uploaded file, returning the name it was stored under.

        The name is sanitized and prefixed with ``owner``, so uploads by
        different users never collide. The same owner uploading the same
        name again replaces the earlier file.
        """
        name = secure_filename(filename)
        if not name:
            raise ValueError('Filename is empty after sanitizing')
        stored = secure_filename(f'{owner}_{name}')
        os.makedirs(self._folder, exist_ok=True)
        with open(self._path(stored), 'wb') as f:
            shutil.copyfileobj(stream, f)
        logger.debug('Stored picture %s', stored)
        return stored

    def load(self, filename: str) -> bytes:
        """Read a stored picture. Raises :class:`FileNotFoundError`."""
        stored = secure_filename(filename)
        if not stored:
            raise FileNotFoundError(filename)
        with open(self._path(stored), 'rb') as f:
            return f.read()

    def delete(self, filename: str) -> None:
        """Remove a stored picture, if it exists."""
        stored = secure_filename(filename)
        if not stored:
            return
        try:
            os.remove(self._path(stored))
        except FileNotFoundError:
            return
        logger.debug('Removed picture %s', stored)
