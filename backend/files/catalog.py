'''
    FileCatalog: per-user file records plus the share and download side tables.

    Plain CRUD over File / FileShare / DownloadLog. Nothing in here touches
    content bytes or quota: deleting a file removes only the reference.
'''

import logging
import uuid

from django.core.exceptions import ValidationError
from django.utils import timezone

from .exceptions import ShareExpiredError
from .models import DownloadLog, File, FileShare

logger = logging.getLogger(__name__)


def make_share_token(file_id):
    # "<first 8 chars of the file id>-<8 random hex chars>"
    return f"{str(file_id)[:8]}-{uuid.uuid4().hex[:8]}"


class FileCatalog:
    def create(self, user_id, content, name, mime_type='', is_public=False):
        return File.objects.create(
            user_id=user_id,
            content=content,
            name=name,
            mime_type=mime_type or '',
            is_public=is_public,
        )

    def get(self, file_id):
        try:
            return File.objects.select_related('content').filter(id=file_id).first()
        except ValidationError:
            return None

    def for_owner(self, user_id):
        return File.objects.filter(user_id=user_id).select_related('content').order_by('-created_at')

    def delete(self, file):
        # content row, bytes on disk and the uploader's quota charge all stay
        logger.info("Deleting file %s (%s) owned by %s", file.id, file.name, file.user_id)
        file.delete()

    def share(self, file, is_public=False, expires_at=None):
        share = FileShare.objects.create(
            file=file,
            share_token=make_share_token(file.id),
            is_public=is_public,
            expires_at=expires_at,
        )
        logger.info("Created %s share %s for file %s",
                    'public' if is_public else 'private', share.share_token, file.id)
        return share

    def resolve_share(self, token):
        """Return the live FileShare for `token`, None if unknown, ShareExpiredError if expired."""
        share = FileShare.objects.select_related('file__content').filter(share_token=token).first()
        if share is None:
            return None
        if share.is_expired(timezone.now()):
            raise ShareExpiredError()
        return share

    def log_download(self, file, user_id=None, ip_address=None, user_agent=''):
        return DownloadLog.objects.create(
            file=file,
            user_id=user_id,
            ip_address=ip_address or None,
            user_agent=user_agent or '',
        )
