import ipaddress

from django.db.models import Count, IntegerField, OuterRef, Subquery, Sum
from django.db.models.functions import Coalesce
from django.http import FileResponse, Http404
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from rest_framework import generics, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from .catalog import FileCatalog
from .exceptions import InvalidInputError
from .models import DownloadLog, File, FileContent, QuotaAccount
from .pagination import FilePagination
from .permissions import (
    CanUseShareLink,
    HasUserIdHeader,
    IsOwnerOrPublicReadOnly,
    IsVaultAdmin,
    get_user_id,
)
from .quota import QuotaLedger
from .serializers import (
    AdminFileSerializer,
    AdminUserSerializer,
    CheckDuplicateSerializer,
    DownloadLogSerializer,
    FileSerializer,
    FileShareSerializer,
    FileUpdateSerializer,
    FileUploadSerializer,
    SharedFileSerializer,
    ShareCreateSerializer,
)
from .services import DeduplicatingUploadService
from .throttling import UserIdRateThrottle


def _get_user_id(request):
    uid = get_user_id(request)
    if not uid:
        # HasUserIdHeader normally rejects these requests first
        raise InvalidInputError("Missing UserId header")
    return uid


def _client_ip(request):
    # X-Forwarded-For is client-controlled, so the audit log records the peer address only
    try:
        return str(ipaddress.ip_address(request.META.get('REMOTE_ADDR') or ''))
    except ValueError:
        return None


def _parse_iso(dt_str):
    # ISO 8601 with or without tz; naive values are taken as server-local time
    if not dt_str:
        return None
    dt = parse_datetime(dt_str)
    if dt and timezone.is_naive(dt):
        dt = timezone.make_aware(dt, timezone.get_current_timezone())
    return dt


def _serve(service, catalog, request, file, user_id):
    # open before logging so a missing blob is never recorded as a download
    handle = service.open_content(file)
    try:
        catalog.log_download(
            file,
            user_id=user_id,
            ip_address=_client_ip(request),
            user_agent=request.headers.get('User-Agent', ''),
        )
    except Exception:
        handle.close()
        raise
    return FileResponse(
        handle,
        as_attachment=True,
        filename=file.name,
        content_type=file.mime_type or 'application/octet-stream',
    )


class FileViewSet(mixins.CreateModelMixin,
                  mixins.ListModelMixin,
                  mixins.RetrieveModelMixin,
                  mixins.UpdateModelMixin,
                  mixins.DestroyModelMixin,
                  viewsets.GenericViewSet):
    # /api/files/ CRUD plus download/share/check-duplicate/storage_stats actions.
    queryset = File.objects.select_related('content').order_by('-created_at')
    serializer_class = FileSerializer
    permission_classes = [HasUserIdHeader, IsOwnerOrPublicReadOnly]
    throttle_classes = [UserIdRateThrottle]
    pagination_class = FilePagination
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    upload_service = DeduplicatingUploadService()
    catalog = FileCatalog()

    # list is scoped to the caller's own files; detail routes see every file
    # and IsOwnerOrPublicReadOnly decides (public files are readable by anyone).
    # Example: GET /api/files/?search=report&mime_type=application/pdf&min_size=10000
    def get_queryset(self):
        if self.action != 'list':
            return super().get_queryset()

        qs = self.catalog.for_owner(_get_user_id(self.request))
        qp = self.request.query_params

        search = qp.get('search')
        if search:
            qs = qs.filter(name__icontains=search)

        mime_type = qp.get('mime_type')
        if mime_type:
            qs = qs.filter(mime_type=mime_type)

        is_public = qp.get('is_public')
        if is_public in ('true', 'false'):
            qs = qs.filter(is_public=(is_public == 'true'))

        try:
            min_size = int(qp.get('min_size')) if qp.get('min_size') else None
            max_size = int(qp.get('max_size')) if qp.get('max_size') else None
        except ValueError:
            min_size = max_size = None
        if min_size is not None:
            qs = qs.filter(content__size__gte=min_size)
        if max_size is not None:
            qs = qs.filter(content__size__lte=max_size)

        start_dt = _parse_iso(qp.get('start_date'))
        end_dt = _parse_iso(qp.get('end_date'))
        if start_dt:
            qs = qs.filter(created_at__gte=start_dt)
        if end_dt:
            qs = qs.filter(created_at__lte=end_dt)

        return qs

    def get_serializer_class(self):
        if self.action == 'create':
            return FileUploadSerializer
        return super().get_serializer_class()

    # ---------- Upload: hash, dedup, quota ----------
    # POST /api/files/  (multipart: file, name?, is_public?)
    def create(self, request, *args, **kwargs):
        user_id = _get_user_id(request)
        form = self.get_serializer(data=request.data)
        form.is_valid(raise_exception=True)

        upload = form.validated_data['file']
        file = self.upload_service.upload(
            user_id=user_id,
            data=upload.read(),
            name=form.validated_data.get('name') or upload.name,
            mime_type=getattr(upload, 'content_type', '') or '',
            is_public=form.validated_data['is_public'],
        )

        data = FileSerializer(file, context=self.get_serializer_context()).data
        return Response(data, status=status.HTTP_201_CREATED)

    # PATCH /api/files/<id>/  rename and/or toggle visibility (owner only)
    def update(self, request, *args, **kwargs):
        instance = self.get_object()
        form = FileUpdateSerializer(instance, data=request.data, partial=True)
        form.is_valid(raise_exception=True)
        form.save()
        return Response(FileSerializer(instance, context=self.get_serializer_context()).data)

    # DELETE /api/files/<id>/  removes the reference only; content and quota charge stay
    def perform_destroy(self, instance):
        self.catalog.delete(instance)

    # GET /api/files/<id>/download/
    @action(detail=True, methods=['get'])
    def download(self, request, pk=None):
        file = self.get_object()
        return _serve(self.upload_service, self.catalog, request, file, get_user_id(request))

    # POST /api/files/<id>/share/  {"is_public": true, "expires_at": "..."}
    @action(detail=True, methods=['post'])
    def share(self, request, pk=None):
        file = self.get_object()
        form = ShareCreateSerializer(data=request.data)
        form.is_valid(raise_exception=True)
        share = self.catalog.share(file, **form.validated_data)
        return Response(FileShareSerializer(share).data, status=status.HTTP_201_CREATED)

    # GET /api/files/<id>/downloads/  audit trail for one file (owner only)
    @action(detail=True, methods=['get'])
    def downloads(self, request, pk=None):
        file = self.get_object()
        if file.user_id != _get_user_id(request):
            self.permission_denied(request, message=IsOwnerOrPublicReadOnly.message)
        page = self.paginate_queryset(file.downloads.all())
        return self.get_paginated_response(DownloadLogSerializer(page, many=True).data)

    # ---------- Dedup pre-check ----------
    # POST /api/files/check-duplicate/  {"sha256_hash": "<64 hex>"}
    @action(detail=False, methods=['post'], url_path='check-duplicate')
    def check_duplicate(self, request):
        form = CheckDuplicateSerializer(data=request.data)
        form.is_valid(raise_exception=True)
        result = self.upload_service.check_duplicate(form.validated_data['sha256_hash'])

        response = {'is_duplicate': result.exists}
        if result.exists:
            response['duplicate_info'] = {
                'file_size': result.size,
                'uploaded_at': result.created_at,
                'reference_count': result.reference_count,
            }
        return Response(response)

    # ---------- Utility endpoint ----------
    # GET /api/files/storage_stats/
    @action(detail=False, methods=['get'], url_path='storage_stats')
    def storage_stats(self, request):
        user_id = _get_user_id(request)
        account = QuotaLedger().get_account(user_id)

        qs = File.objects.filter(user_id=user_id).select_related('content')

        # original_storage_used: every file counted at full size (what the user "sees")
        original_storage_used = sum(f.content.size for f in qs)
        # deduplicated_storage_used: each distinct content counted once
        seen = {}
        for f in qs:
            seen.setdefault(f.content_id, f.content.size)
        deduplicated_storage_used = sum(seen.values())

        savings = max(original_storage_used - deduplicated_storage_used, 0)
        pct = (savings / original_storage_used * 100.0) if original_storage_used else 0.0

        return Response({
            'user_id': user_id,
            'storage_quota': account.limit_bytes,
            'storage_used': account.used_bytes,
            'storage_available': account.available_bytes,
            'file_count': qs.count(),
            'original_storage_used': original_storage_used,
            'deduplicated_storage_used': deduplicated_storage_used,
            'storage_savings': savings,
            'savings_percentage': round(pct, 2),
        })


class ShareViewSet(viewsets.GenericViewSet):
    # /api/shares/<token>/ and /api/shares/<token>/download/
    # Public links need no UserId; private links need one (any caller).
    permission_classes = [CanUseShareLink]
    throttle_classes = [UserIdRateThrottle]
    serializer_class = SharedFileSerializer
    lookup_field = 'share_token'
    lookup_value_regex = '[^/]+'

    upload_service = DeduplicatingUploadService()
    catalog = FileCatalog()

    def get_object(self):
        share = self.catalog.resolve_share(self.kwargs['share_token'])
        if share is None:
            raise Http404("Share link not found")
        self.check_object_permissions(self.request, share)
        return share

    def retrieve(self, request, share_token=None):
        return Response(self.get_serializer(self.get_object()).data)

    @action(detail=True, methods=['get'])
    def download(self, request, share_token=None):
        share = self.get_object()
        return _serve(self.upload_service, self.catalog, request, share.file, get_user_id(request))


class AdminStatsView(APIView):
    # GET /api/admin/stats/  system-wide numbers, admins only
    permission_classes = [IsVaultAdmin]
    throttle_classes = [UserIdRateThrottle]

    def get(self, request):
        today = timezone.now().replace(hour=0, minute=0, second=0, microsecond=0)

        file_totals = File.objects.aggregate(total=Count('id'), logical=Sum('content__size'))
        content_totals = FileContent.objects.aggregate(total=Count('id'), physical=Sum('size'))
        quota_totals = QuotaAccount.objects.aggregate(
            users=Count('id'), quota=Sum('limit_bytes'), used=Sum('used_bytes'),
        )

        total_files = file_totals['total'] or 0
        logical = file_totals['logical'] or 0
        recent = File.objects.select_related('content').order_by('-created_at')[:5]

        return Response({
            'total_users': quota_totals['users'] or 0,
            'total_files': total_files,
            'unique_contents': content_totals['total'] or 0,
            'physical_storage': content_totals['physical'] or 0,
            'logical_storage': logical,
            'storage_quota': quota_totals['quota'] or 0,
            'storage_used': quota_totals['used'] or 0,
            'avg_file_size': (logical // total_files) if total_files else 0,
            'total_downloads': DownloadLog.objects.count(),
            'downloads_today': DownloadLog.objects.filter(downloaded_at__gte=today).count(),
            'uploads_today': File.objects.filter(created_at__gte=today).count(),
            'recent_uploads': [
                {
                    'id': str(f.id),
                    'name': f.name,
                    'user_id': f.user_id,
                    'size': f.content.size,
                    'uploaded_at': f.created_at,
                }
                for f in recent
            ],
        })


class AdminFileListView(generics.ListAPIView):
    # GET /api/admin/files/?search=report&page=2  every owner's files, admins only
    permission_classes = [IsVaultAdmin]
    throttle_classes = [UserIdRateThrottle]
    serializer_class = AdminFileSerializer
    pagination_class = FilePagination

    def get_queryset(self):
        qs = (File.objects.select_related('content')
              .annotate(download_count=Count('downloads'))
              .order_by('-created_at'))
        search = self.request.query_params.get('search')
        if search:
            qs = qs.filter(name__icontains=search)
        return qs


class AdminUserListView(generics.ListAPIView):
    # GET /api/admin/users/?search=u1  quota accounts with file and download counts
    permission_classes = [IsVaultAdmin]
    throttle_classes = [UserIdRateThrottle]
    serializer_class = AdminUserSerializer
    pagination_class = FilePagination

    def get_queryset(self):
        # users are keyed by a plain user_id string, so counts come from correlated subqueries
        file_counts = (File.objects.filter(user_id=OuterRef('user_id'))
                       .order_by().values('user_id')
                       .annotate(n=Count('id')).values('n'))
        download_counts = (DownloadLog.objects.filter(file__user_id=OuterRef('user_id'))
                           .order_by().values('file__user_id')
                           .annotate(n=Count('id')).values('n'))
        qs = QuotaAccount.objects.annotate(
            file_count=Coalesce(Subquery(file_counts, output_field=IntegerField()), 0),
            download_count=Coalesce(Subquery(download_counts, output_field=IntegerField()), 0),
        ).order_by('user_id')
        search = self.request.query_params.get('search')
        if search:
            qs = qs.filter(user_id__icontains=search)
        return qs
