"""
Project-level URL routing.

- /admin/  : Django admin (quota limits are edited here)
- /health/ : liveness check
- /api/    : All API endpoints, delegated to the `files` app.
"""
from django.contrib import admin
from django.http import JsonResponse
from django.urls import include, path


def health(request):
    return JsonResponse({'status': 'ok'})


urlpatterns = [
    path('admin/', admin.site.urls),
    path('health/', health, name='health'),
    path('api/', include('files.urls')),
]
