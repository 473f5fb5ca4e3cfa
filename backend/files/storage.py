'''
    ContentStore: durable, content-addressed byte storage.

    Layout under FILE_VAULT['STORAGE_ROOT']:
        <root>/<hash[0:2]>/<hash>
    The first two hex characters are the shard key (256 shard directories),
    so no single directory ends up holding every object. Shard directories are
    created on demand.

    Writes are idempotent: the destination is derived from the digest, so two
    writers with the same hash carry the same bytes. New bytes land in a temp
    file inside the shard and are renamed into place, so readers never see a
    half-written object and racing writers simply replace identical content.
'''

import logging
import os
import posixpath
import re
import tempfile

from django.conf import settings
from django.core.files.storage import FileSystemStorage

from .exceptions import ContentMissingError, InvalidInputError, StorageWriteError

logger = logging.getLogger(__name__)

SHA256_HEX_RE = re.compile(r'^[0-9a-f]{64}$')


def storage_root():
    return settings.FILE_VAULT['STORAGE_ROOT']


def validate_sha256(content_hash):
    """Return the lower-cased digest, or raise InvalidInputError if it is not 64 hex chars."""
    normalized = (content_hash or '').strip().lower()
    if not SHA256_HEX_RE.match(normalized):
        raise InvalidInputError('sha256_hash must be a 64 character hex string')
    return normalized


class ContentStore:
    def __init__(self, root=None):
        # Resolve lazily so override_settings(FILE_VAULT=...) works per test
        self._root = root

    @property
    def storage(self):
        return FileSystemStorage(location=self._root or storage_root())

    @staticmethod
    def location_for(content_hash):
        content_hash = validate_sha256(content_hash)
        return posixpath.join(content_hash[:2], content_hash)

    def exists(self, location):
        return self.storage.exists(location)

    def path(self, location):
        return self.storage.path(location)

    def write(self, content_hash, data):
        """
        Store `data` under its hash-derived location and return that location.
        Writing a hash that is already present is a no-op.
        """
        location = self.location_for(content_hash)
        storage = self.storage
        if storage.exists(location):
            return location

        full_path = storage.path(location)
        shard_dir = os.path.dirname(full_path)
        try:
            os.makedirs(shard_dir, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=shard_dir, prefix='.incoming-')
            try:
                with os.fdopen(fd, 'wb') as fh:
                    fh.write(data)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_path, full_path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as exc:
            logger.error("Failed to write content %s to %s: %s", content_hash, full_path, exc)
            raise StorageWriteError() from exc

        logger.debug("Stored %d bytes at %s", len(data), location)
        return location

    def open(self, location):
        """Open stored content for streaming; ContentMissingError if the bytes are gone."""
        try:
            return self.storage.open(location, 'rb')
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError) as exc:
            logger.error("Content missing from storage: %s", location)
            raise ContentMissingError() from exc

    def read(self, location):
        with self.open(location) as fh:
            return fh.read()
