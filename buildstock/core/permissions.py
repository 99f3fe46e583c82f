from rest_framework.permissions import BasePermission, SAFE_METHODS


class IsCompanyMember(BasePermission):
    """Authenticated user that belongs to a company"""
    message = 'User is not assigned to a company.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.company_id)


class IsCompanyAdmin(IsCompanyMember):
    """Company member with the admin role"""
    message = 'Admin access required.'

    def has_permission(self, request, view):
        return super().has_permission(request, view) and request.user.is_admin


class IsAdminOrReadOnly(IsCompanyMember):
    """Members may read; only admins may write"""
    message = 'Admin access required.'

    def has_permission(self, request, view):
        if not super().has_permission(request, view):
            return False
        return request.method in SAFE_METHODS or request.user.is_admin
