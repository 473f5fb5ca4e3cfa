'''
    Error taxonomy for the vault core.

    Every failure the upload/download path can produce on purpose is a DRF
    APIException subclass, so service code simply raises and DRF turns it into
    a response. vault_exception_handler (wired through
    REST_FRAMEWORK['EXCEPTION_HANDLER']) adds a machine-readable `code` and
    logs the server-side failures.

        QuotaExceededError   403  user's account cannot absorb new bytes
        InvalidInputError    400  empty payload / missing name / malformed hash
        StorageWriteError    500  disk full, permission denied, ...
        ContentMissingError  500  registry row exists but the bytes are gone
        ShareExpiredError    410  share link past its expiry
'''

import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class VaultError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'File vault error.'
    default_code = 'vault_error'


class QuotaExceededError(VaultError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Storage Quota Exceeded'
    default_code = 'quota_exceeded'

    def __init__(self, limit_bytes=None, used_bytes=None, requested_bytes=None, detail=None):
        super().__init__(detail=detail)
        self.limit_bytes = limit_bytes
        self.used_bytes = used_bytes
        self.requested_bytes = requested_bytes


class InvalidInputError(VaultError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'invalid_input'


class StorageWriteError(VaultError):
    default_detail = 'Failed to write file content to storage.'
    default_code = 'storage_write_failed'


class ContentMissingError(VaultError):
    # Not a 404: the file record exists, its bytes do not.
    default_detail = 'Stored content is missing.'
    default_code = 'content_missing'


class ShareExpiredError(VaultError):
    status_code = status.HTTP_410_GONE
    default_detail = 'Share link has expired'
    default_code = 'share_expired'


def vault_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is None or not isinstance(exc, VaultError):
        return response

    response.data['code'] = exc.default_code
    if isinstance(exc, QuotaExceededError) and exc.limit_bytes is not None:
        response.data['quota'] = exc.limit_bytes
        response.data['used'] = exc.used_bytes
        response.data['requested'] = exc.requested_bytes

    if response.status_code >= 500:
        view = context.get('view')
        logger.error(
            "%s in %s: %s",
            exc.default_code,
            view.__class__.__name__ if view is not None else 'unknown view',
            exc.detail,
        )
    return response
