from django.contrib import admin

from .models import DownloadLog, File, FileContent, FileShare, QuotaAccount


@admin.register(FileContent)
class FileContentAdmin(admin.ModelAdmin):
    list_display = ('sha256_hash', 'size', 'storage_path', 'created_at')
    search_fields = ('sha256_hash',)
    # content is immutable once registered
    readonly_fields = ('id', 'sha256_hash', 'size', 'storage_path', 'created_at')


@admin.register(File)
class FileAdmin(admin.ModelAdmin):
    list_display = ('name', 'user_id', 'mime_type', 'is_public', 'created_at')
    list_filter = ('is_public', 'mime_type')
    search_fields = ('name', 'user_id')
    raw_id_fields = ('content',)


@admin.register(QuotaAccount)
class QuotaAccountAdmin(admin.ModelAdmin):
    list_display = ('user_id', 'used_bytes', 'limit_bytes', 'updated_at')
    search_fields = ('user_id',)
    # used_bytes belongs to QuotaLedger; admins only raise or lower the limit
    readonly_fields = ('used_bytes', 'created_at', 'updated_at')


@admin.register(FileShare)
class FileShareAdmin(admin.ModelAdmin):
    list_display = ('share_token', 'file', 'is_public', 'expires_at', 'created_at')
    raw_id_fields = ('file',)


@admin.register(DownloadLog)
class DownloadLogAdmin(admin.ModelAdmin):
    list_display = ('file', 'user_id', 'ip_address', 'downloaded_at')
    list_filter = ('downloaded_at',)
    raw_id_fields = ('file',)
