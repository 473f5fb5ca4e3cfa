'''
The following definitions are used as authorization for the vault API.
Identity is the UserId header: the gateway in front of this service validates
tokens and forwards the caller's id, so the views only need to check that the
header is present and compare it to the owner of the object being touched.
'''
from django.conf import settings
from rest_framework.permissions import SAFE_METHODS, BasePermission


def get_user_id(request):
    # Supports both UserId: (curl/fetch) and HTTP_USERID (how Django exposes -H 'UserId: ...' in tests).
    return request.headers.get('UserId') or request.META.get('HTTP_USERID')


# Every request must be traceable to a user via UserId.
class HasUserIdHeader(BasePermission):
    message = "Missing required UserId header."

    def has_permission(self, request, view):
        return bool(get_user_id(request))


# Owners can do anything with their files; everyone else may only read
# (metadata + download) files marked public.
class IsOwnerOrPublicReadOnly(BasePermission):
    message = "You do not have access to this file."

    def has_object_permission(self, request, view, obj):
        if obj.user_id == get_user_id(request):
            return True
        return request.method in SAFE_METHODS and obj.is_public


# System-wide statistics are limited to the ids in FILE_VAULT['ADMIN_USER_IDS'].
class IsVaultAdmin(BasePermission):
    message = "Admin access required."

    def has_permission(self, request, view):
        user_id = get_user_id(request)
        return bool(user_id) and user_id in settings.FILE_VAULT.get('ADMIN_USER_IDS', [])


# Public share links work without a UserId; private ones need a caller identity.
class CanUseShareLink(BasePermission):
    message = "This share link requires a UserId header."

    def has_object_permission(self, request, view, obj):
        return obj.is_public or bool(get_user_id(request))
