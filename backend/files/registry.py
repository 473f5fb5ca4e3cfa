'''
    ContentRegistry: the authoritative hash -> FileContent table.

    register() is insert-if-absent keyed on sha256_hash. The unique constraint
    on file_contents.sha256_hash decides who wins a race; get_or_create()
    catches the IntegrityError from the loser inside a savepoint and re-reads
    the winner's row, so every caller gets the same FileContent back.
'''

import logging

from django.core.exceptions import ValidationError

from .models import File, FileContent

logger = logging.getLogger(__name__)


class ContentRegistry:
    def find_by_hash(self, content_hash):
        return FileContent.objects.filter(sha256_hash=content_hash).first()

    def find_by_id(self, content_id):
        try:
            return FileContent.objects.filter(id=content_id).first()
        except ValidationError:
            # not a UUID, so it cannot name any content
            return None

    def register(self, content_hash, size, location):
        """
        Returns (content, created). `created` is False when another upload
        registered the same hash first; that row is returned untouched.
        """
        content, created = FileContent.objects.get_or_create(
            sha256_hash=content_hash,
            defaults={'size': size, 'storage_path': location},
        )
        if not created:
            logger.info("Content %s already registered as %s", content_hash, content.id)
        return content, created

    def count_references(self, content_id):
        # Informational only (duplicate warnings, stats); nothing is deleted based on it
        return File.objects.filter(content_id=content_id).count()
