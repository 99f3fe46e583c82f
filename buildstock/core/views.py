import logging

from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from django.core.exceptions import ObjectDoesNotExist
from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .filters import AuditLogFilter
from .models import AuditLog, CompanySettings
from .pagination import paginated_response
from .permissions import IsCompanyMember, IsCompanyAdmin
from .serializers import (
    UserSerializer, UserCreateSerializer,
    CompanySettingsSerializer, AuditLogSerializer
)
from .utils import company_scoped

logger = logging.getLogger(__name__)

User = get_user_model()


class CustomTokenObtainPairSerializer(TokenObtainPairSerializer):
    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        data['user'] = UserSerializer(self.user).data
        return data

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['type'] = user.type
        token['company_id'] = user.company_id
        return token


class CustomTokenObtainPairView(TokenObtainPairView):
    serializer_class = CustomTokenObtainPairSerializer


class CustomTokenRefreshSerializer(TokenRefreshSerializer):
    """Token refresh that reports deleted users as an invalid token"""
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except (InvalidToken, TokenError):
            raise InvalidToken('Token is invalid or expired.')
        except ObjectDoesNotExist:
            raise InvalidToken('Token is invalid. User no longer exists.')


class CustomTokenRefreshView(TokenRefreshView):
    serializer_class = CustomTokenRefreshSerializer


@api_view(['GET'])
@permission_classes([IsCompanyMember])
def user_me(request):
    """Get current user info"""
    return Response(UserSerializer(request.user).data)


@api_view(['GET', 'POST'])
@permission_classes([IsCompanyAdmin])
def user_list_create(request):
    """List company users or create a new one"""
    if request.method == 'GET':
        queryset = company_scoped(User.objects.all(), request)
        search = request.query_params.get('search')
        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(email__icontains=search))
        return paginated_response(request, queryset.order_by('-id'), UserSerializer)

    serializer = UserCreateSerializer(data=request.data)
    if serializer.is_valid():
        user = serializer.save(company=request.user.company)
        logger.info(f"User {user.username} created by {request.user.username}")
        return Response(UserCreateSerializer(user).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsCompanyAdmin])
def user_detail(request, pk):
    """Retrieve, update or delete a company user"""
    user = get_object_or_404(company_scoped(User.objects.all(), request), pk=pk)

    if request.method == 'GET':
        return Response(UserSerializer(user).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = UserSerializer(user, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        if user.pk == request.user.pk:
            return Response({'error': 'You cannot delete your own account.'}, status=status.HTTP_400_BAD_REQUEST)
        user.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsCompanyMember])
def company_settings(request):
    """Get or update the company's shipping and billing details"""
    settings_row = CompanySettings.for_company(request.user.company)

    if request.method == 'GET':
        return Response(CompanySettingsSerializer(settings_row).data)

    if not request.user.is_admin:
        return Response({'error': 'Admin access required.'}, status=status.HTTP_403_FORBIDDEN)
    serializer = CompanySettingsSerializer(settings_row, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsCompanyMember])
def audit_log_list(request):
    """List audit logs with filtering"""
    queryset = company_scoped(AuditLog.objects.all(), request)
    queryset = AuditLogFilter(request.query_params, queryset=queryset).qs
    return paginated_response(request, queryset.order_by('-created_at', '-id'), AuditLogSerializer)


@api_view(['GET'])
@permission_classes([IsCompanyMember])
def audit_log_detail(request, pk):
    """Retrieve an audit log"""
    audit_log = get_object_or_404(company_scoped(AuditLog.objects.all(), request), pk=pk)
    return Response(AuditLogSerializer(audit_log).data)
