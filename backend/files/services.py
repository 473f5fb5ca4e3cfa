'''
    DeduplicatingUploadService: the upload algorithm.

    Order of operations for one upload (user, bytes, name, mime, visibility):

        1. hash = sha256(bytes), size = len(bytes)
        2. existing = registry.find_by_hash(hash)
        3. not found (first time these bytes are seen):
             a. quota pre-check for `size`          -> QuotaExceededError, nothing written
             b. store.write(hash, bytes)            -> StorageWriteError, nothing registered
             c. registry.register(hash, size, loc)  (insert-if-absent)
             d. ledger.try_charge(user, size)
        4. found: no write, no charge (the upload is free)
        5. catalog.create(...) -> File, always

    3c, 3d and 5 share one transaction, so a failed charge or insert leaves
    no registry row and no file record. The only possible leftover is bytes
    on disk from 3b, which are content-addressed and reused by the next
    upload of the same content.

    Whether an upload is charged is decided by what *this* uploader saw in
    step 2. Two users racing to upload the same new bytes can therefore both
    be charged even though only one of them registers the content; register()
    reports that case and we log it.
'''

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from django.db import transaction

from .catalog import FileCatalog
from .exceptions import InvalidInputError
from .quota import QuotaLedger
from .registry import ContentRegistry
from .storage import ContentStore, validate_sha256

logger = logging.getLogger(__name__)


def compute_sha256(data):
    return hashlib.sha256(data).hexdigest()


@dataclass
class DuplicateCheck:
    exists: bool
    size: Optional[int] = None
    created_at: Optional[datetime] = None
    reference_count: int = 0


class DeduplicatingUploadService:
    def __init__(self, store=None, registry=None, ledger=None, catalog=None):
        self.store = store or ContentStore()
        self.registry = registry or ContentRegistry()
        self.ledger = ledger or QuotaLedger()
        self.catalog = catalog or FileCatalog()

    def upload(self, user_id, data, name, mime_type='', is_public=False):
        if not user_id:
            raise InvalidInputError('A user id is required')
        if not name or not name.strip():
            raise InvalidInputError('File name is required')
        if not data:
            raise InvalidInputError('The submitted file is empty')

        content_hash = compute_sha256(data)
        size = len(data)
        # every uploader gets an account, even when the upload turns out to be free
        self.ledger.get_account(user_id)

        existing = self.registry.find_by_hash(content_hash)
        location = None
        if existing is None:
            self.ledger.ensure_capacity(user_id, size)
            location = self.store.write(content_hash, data)

        with transaction.atomic():
            if existing is None:
                content, created = self.registry.register(content_hash, size, location)
                if not created:
                    logger.warning(
                        "Concurrent first upload of %s: %s charged although content %s was registered by another upload",
                        content_hash, user_id, content.id,
                    )
                self.ledger.try_charge(user_id, size)
            else:
                content = existing
            file = self.catalog.create(
                user_id=user_id,
                content=content,
                name=name.strip(),
                mime_type=mime_type,
                is_public=is_public,
            )

        if existing is None:
            logger.info("Upload %s by %s: new content %s (%d bytes)", file.id, user_id, content_hash, size)
        else:
            logger.info("Upload %s by %s: deduplicated to content %s", file.id, user_id, content.id)
        return file

    def check_duplicate(self, content_hash):
        content = self.registry.find_by_hash(validate_sha256(content_hash))
        if content is None:
            return DuplicateCheck(exists=False)
        return DuplicateCheck(
            exists=True,
            size=content.size,
            created_at=content.created_at,
            reference_count=self.registry.count_references(content.id),
        )

    def open_content(self, file):
        """Open the bytes behind `file` for streaming (ContentMissingError if they are gone)."""
        return self.store.open(file.content.storage_path)
