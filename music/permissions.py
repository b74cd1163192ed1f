from rest_framework.permissions import BasePermission, SAFE_METHODS


class IsMusicAdmin(BasePermission):
    message = 'Admin access required'

    def has_permission(self, request, view):
        return bool(request.user and getattr(request.user, 'is_admin', False))


class IsMusicAdminOrReadOnly(IsMusicAdmin):
    """Anyone may read the catalog; changes need an admin."""

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return super().has_permission(request, view)
