"""
App-level URL routing for the File Vault API.

The DRF router auto-generates:
- /api/files/                      [GET=list, POST=upload]
- /api/files/{id}/                 [GET=retrieve, PATCH=rename/visibility, DELETE=destroy]
- /api/files/{id}/download/        [GET]
- /api/files/{id}/share/           [POST]
- /api/files/{id}/downloads/       [GET]  (download audit log, owner only)
- /api/files/check-duplicate/      [POST] (dedup pre-check)
- /api/files/storage_stats/        [GET]
- /api/shares/{token}/             [GET]
- /api/shares/{token}/download/    [GET]
plus /api/admin/stats/, /api/admin/files/ and /api/admin/users/ added by hand below.

Note: The '/api/' prefix is added by the project router in core/urls.py:
    path('api/', include('files.urls'))
"""
from django.urls import include, path
from rest_framework.routers import DefaultRouter

from .views import (
    AdminFileListView,
    AdminStatsView,
    AdminUserListView,
    FileViewSet,
    ShareViewSet,
)

router = DefaultRouter()
router.register(r'files', FileViewSet)
router.register(r'shares', ShareViewSet, basename='share')

urlpatterns = [
    path('admin/stats/', AdminStatsView.as_view(), name='admin-stats'),
    path('admin/files/', AdminFileListView.as_view(), name='admin-files'),
    path('admin/users/', AdminUserListView.as_view(), name='admin-users'),
    path('', include(router.urls)),
]
