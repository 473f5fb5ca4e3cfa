'''
    Data model for the deduplicating vault. Three tables carry the upload path:
        FileContent (file_contents): one row per distinct SHA-256 digest; owns the bytes on disk.
        File (files): one user's named pointer to a FileContent; many files may share one content.
        QuotaAccount (quota_accounts): per-user storage limit and running usage.
    Plus two side tables for sharing and auditing: FileShare and DownloadLog.

    Invariant: exactly one FileContent row per hash. This is enforced by the
    unique constraint on sha256_hash (not by application code), so concurrent
    uploads of the same bytes converge on a single row even across processes.
    FileContent rows are never deleted by the vault; deleting a File leaves
    its content (and the uploader's quota charge) in place.
'''

import uuid

from django.db import models


class FileContent(models.Model):
    """
    Content-addressed blob metadata.

    `storage_path` is relative to FILE_VAULT['STORAGE_ROOT'] and always has
    the form "<hash[:2]>/<hash>" (see files.storage.ContentStore).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # unique=True is the dedup guarantee; it also gives us the lookup index
    sha256_hash = models.CharField(max_length=64, unique=True)
    size = models.BigIntegerField()  # bytes, always > 0
    storage_path = models.CharField(max_length=200)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'file_contents'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.sha256_hash[:12]}… ({self.size} bytes)"


class File(models.Model):
    """
    A user's file: name, MIME type and visibility pointing at shared content.

    Deleting a File never touches FileContent. Deleting a FileContent (which
    the vault itself never does) cascades to every File that points at it.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # Owner, taken from the UserId header; indexed because every listing filters on it
    user_id = models.CharField(max_length=64, db_index=True)
    content = models.ForeignKey(
        FileContent,
        related_name='files',  # content.files -> every reference to these bytes
        on_delete=models.CASCADE,
    )
    name = models.CharField(max_length=255)  # user-visible display name
    mime_type = models.CharField(max_length=100, blank=True, default='')
    is_public = models.BooleanField(default=False)  # public files are readable by anyone
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'files'
        # newest uploads first, as the listings show them
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user_id', 'created_at'], name='files_user_created_idx'),
            models.Index(fields=['mime_type'], name='files_mime_type_idx'),
        ]

    @property
    def size(self):
        return self.content.size

    @property
    def sha256_hash(self):
        return self.content.sha256_hash

    @property
    def reference_count(self):
        """Number of files (any owner) that point at the same content, this one included."""
        return self.content.files.count()

    def __str__(self):
        return f"{self.name} ({self.user_id})"


class QuotaAccount(models.Model):
    """
    Storage budget for one user.

    used_bytes only grows when that user's upload registers brand new content;
    uploads that resolve to existing content are free, and deletes never
    refund. Mutations go through files.quota.QuotaLedger.
    """
    user_id = models.CharField(max_length=64, unique=True)
    limit_bytes = models.BigIntegerField()
    used_bytes = models.BigIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'quota_accounts'
        ordering = ['user_id']

    @property
    def available_bytes(self):
        return max(self.limit_bytes - self.used_bytes, 0)

    def __str__(self):
        return f"{self.user_id}: {self.used_bytes}/{self.limit_bytes} bytes"


class FileShare(models.Model):
    """
    Share link for a file. Anyone holding a public token can download the
    file until `expires_at` (if set); private tokens also require a UserId.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    file = models.ForeignKey(File, related_name='shares', on_delete=models.CASCADE)
    share_token = models.CharField(max_length=64, unique=True)
    is_public = models.BooleanField(default=False)
    expires_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'file_shares'
        ordering = ['-created_at']

    def is_expired(self, now):
        return self.expires_at is not None and self.expires_at <= now

    def __str__(self):
        return f"{self.share_token} -> {self.file_id}"


class DownloadLog(models.Model):
    """One row per served download (owner, public or share link)."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    file = models.ForeignKey(File, related_name='downloads', on_delete=models.CASCADE)
    user_id = models.CharField(max_length=64, null=True, blank=True, db_index=True)  # NULL for anonymous share downloads
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True, default='')
    downloaded_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'download_logs'
        ordering = ['-downloaded_at']

    def __str__(self):
        return f"{self.file_id} by {self.user_id or 'anonymous'}"
