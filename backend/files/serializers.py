'''
     Serializers for the vault API.
     FileSerializer flattens the owning content (size, hash) onto the file
     record and adds the system-wide reference_count. Content ids and hashes
     are output-only: which content a file points at is decided by the upload
     service, never by the client.
'''

from rest_framework import serializers

from .models import DownloadLog, File, FileShare, QuotaAccount


class FileSerializer(serializers.ModelSerializer):
    file_content_id = serializers.UUIDField(source='content_id', read_only=True)
    size = serializers.IntegerField(source='content.size', read_only=True)
    sha256_hash = serializers.CharField(source='content.sha256_hash', read_only=True)
    reference_count = serializers.SerializerMethodField()

    class Meta:
        model = File
        fields = [
            'id', 'user_id', 'file_content_id', 'name', 'mime_type', 'is_public',
            'size', 'sha256_hash', 'reference_count', 'created_at', 'updated_at',
        ]
        read_only_fields = [
            'id', 'user_id', 'file_content_id', 'mime_type', 'size', 'sha256_hash',
            'reference_count', 'created_at', 'updated_at',
        ]

    def get_reference_count(self, obj):
        """Number of files (any owner) pointing at this file's content, itself included."""
        return obj.reference_count


class FileUploadSerializer(serializers.Serializer):
    # Empty files are let through here and rejected by the upload service
    file = serializers.FileField(allow_empty_file=True)
    name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    is_public = serializers.BooleanField(required=False, default=False)


class FileUpdateSerializer(serializers.ModelSerializer):
    # Only the display name and visibility are editable
    class Meta:
        model = File
        fields = ['name', 'is_public']

    def validate_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("File name is required")
        return value.strip()


class CheckDuplicateSerializer(serializers.Serializer):
    sha256_hash = serializers.RegexField(
        r'^[0-9a-fA-F]{64}$',
        error_messages={'invalid': 'sha256_hash must be a 64 character hex string'},
    )


class ShareCreateSerializer(serializers.Serializer):
    is_public = serializers.BooleanField(required=False, default=False)
    expires_at = serializers.DateTimeField(required=False, allow_null=True, default=None)


class FileShareSerializer(serializers.ModelSerializer):
    file_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = FileShare
        fields = ['id', 'file_id', 'share_token', 'is_public', 'expires_at', 'created_at']
        read_only_fields = fields


class SharedFileSerializer(FileShareSerializer):
    # Share-link view: the share plus a trimmed file record (no owner or hash)
    file = serializers.SerializerMethodField()

    class Meta(FileShareSerializer.Meta):
        fields = FileShareSerializer.Meta.fields + ['file']
        read_only_fields = fields

    def get_file(self, obj):
        return {
            'id': str(obj.file.id),
            'name': obj.file.name,
            'mime_type': obj.file.mime_type,
            'size': obj.file.content.size,
        }


class DownloadLogSerializer(serializers.ModelSerializer):
    file_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = DownloadLog
        fields = ['id', 'file_id', 'user_id', 'ip_address', 'user_agent', 'downloaded_at']
        read_only_fields = fields


class AdminFileSerializer(FileSerializer):
    # download_count is annotated by the admin listing queryset
    download_count = serializers.IntegerField(read_only=True)

    class Meta(FileSerializer.Meta):
        fields = FileSerializer.Meta.fields + ['download_count']
        read_only_fields = fields


class AdminUserSerializer(serializers.ModelSerializer):
    storage_quota = serializers.IntegerField(source='limit_bytes', read_only=True)
    storage_used = serializers.IntegerField(source='used_bytes', read_only=True)
    storage_available = serializers.IntegerField(source='available_bytes', read_only=True)
    file_count = serializers.IntegerField(read_only=True)
    download_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = QuotaAccount
        fields = [
            'user_id', 'storage_quota', 'storage_used', 'storage_available',
            'file_count', 'download_count', 'created_at',
        ]
        read_only_fields = fields
