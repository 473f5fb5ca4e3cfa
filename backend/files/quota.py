'''
    QuotaLedger: per-user storage accounting.

    Accounts are created lazily with FILE_VAULT['STORAGE_QUOTA_BYTES'] the
    first time a user is seen. try_charge() is the only mutation and is a
    single conditional UPDATE:

        UPDATE quota_accounts SET used_bytes = used_bytes + n
        WHERE id = ? AND used_bytes <= limit_bytes - n

    The database evaluates the check and the increment against the same row
    version, so two concurrent charges for one user cannot both pass against
    a stale used_bytes. Different users touch different rows and never wait
    on each other. Nothing here relies on process memory, so it holds across
    workers and hosts.
'''

import logging

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from .exceptions import InvalidInputError, QuotaExceededError
from .models import QuotaAccount

logger = logging.getLogger(__name__)


def default_quota_bytes():
    return int(settings.FILE_VAULT['STORAGE_QUOTA_BYTES'])


class QuotaLedger:
    def get_account(self, user_id):
        account, created = QuotaAccount.objects.get_or_create(
            user_id=user_id,
            defaults={'limit_bytes': default_quota_bytes()},
        )
        if created:
            logger.info("Opened quota account for %s (%d bytes)", user_id, account.limit_bytes)
        return account

    def ensure_capacity(self, user_id, additional_bytes):
        """
        Read-only pre-check used before any bytes are written. Raises
        QuotaExceededError if the account cannot absorb `additional_bytes`.
        """
        account = self.get_account(user_id)
        if account.used_bytes + additional_bytes > account.limit_bytes:
            logger.info(
                "Quota pre-check rejected %d bytes for %s (%d/%d used)",
                additional_bytes, user_id, account.used_bytes, account.limit_bytes,
            )
            raise QuotaExceededError(account.limit_bytes, account.used_bytes, additional_bytes)
        return account

    def try_charge(self, user_id, additional_bytes):
        if additional_bytes < 0:
            raise InvalidInputError('Cannot charge a negative number of bytes')

        account = self.get_account(user_id)
        if additional_bytes == 0:
            return account

        with transaction.atomic():
            charged = (
                QuotaAccount.objects
                .filter(pk=account.pk, used_bytes__lte=F('limit_bytes') - additional_bytes)
                .update(used_bytes=F('used_bytes') + additional_bytes, updated_at=timezone.now())
            )
        account.refresh_from_db()

        if not charged:
            logger.info(
                "Quota charge rejected %d bytes for %s (%d/%d used)",
                additional_bytes, user_id, account.used_bytes, account.limit_bytes,
            )
            raise QuotaExceededError(account.limit_bytes, account.used_bytes, additional_bytes)

        logger.debug("Charged %d bytes to %s (now %d/%d)",
                     additional_bytes, user_id, account.used_bytes, account.limit_bytes)
        return account
