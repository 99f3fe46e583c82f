import secrets

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .constants import PAYMENT_TYPE_CHOICES
from .models import Company, CompanySettings, AuditLog

User = get_user_model()


class CompanySerializer(serializers.ModelSerializer):
    class Meta:
        model = Company
        fields = ['id', 'name']


class UserSerializer(serializers.ModelSerializer):
    company_name = serializers.CharField(source='company.name', read_only=True, default=None)

    class Meta:
        model = User
        fields = [
            'id', 'username', 'name', 'email', 'type', 'phone', 'is_active',
            'company', 'company_name', 'last_login', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'username', 'company', 'last_login', 'created_at', 'updated_at']

    def validate_email(self, value):
        queryset = User.objects.filter(email__iexact=value)
        if self.instance:
            queryset = queryset.exclude(pk=self.instance.pk)
        if value and queryset.exists():
            raise serializers.ValidationError('A user with this email already exists.')
        return value


class UserCreateSerializer(UserSerializer):
    """Creates a company user; username defaults to the email"""
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, required=False, min_length=8)

    class Meta(UserSerializer.Meta):
        fields = UserSerializer.Meta.fields + ['password']

    def create(self, validated_data):
        password = validated_data.pop('password', None) or secrets.token_urlsafe(9)
        validated_data.setdefault('username', validated_data['email'].lower())
        user = User(**validated_data)
        user.set_password(password)
        user.save()
        # Returned once in the create response
        user.temporary_password = password
        return user

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if getattr(instance, 'temporary_password', None):
            data['temporary_password'] = instance.temporary_password
        return data


class CompanySettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = CompanySettings
        fields = [
            'id', 'company', 'shipping_company', 'shipping_address', 'shipping_contact_number',
            'billing_company', 'billing_address', 'billing_contact_number', 'updated_at'
        ]
        read_only_fields = ['id', 'company', 'updated_at']


class AuditLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = AuditLog
        fields = [
            'id', 'user', 'user_name', 'action', 'model_name', 'object_id', 'object_reference',
            'message', 'changes', 'ip_address', 'product_id', 'product_stock_id',
            'purchase_order_id', 'sales_order_id', 'created_at'
        ]


class CompanyPrimaryKeyRelatedField(serializers.PrimaryKeyRelatedField):
    """PK field that only resolves rows of the requesting user's company"""

    def get_queryset(self):
        queryset = super().get_queryset()
        request = self.context.get('request')
        if request is None or not getattr(request.user, 'company_id', None):
            return queryset.none()
        return queryset.filter(company_id=request.user.company_id)


class PaymentInputSerializer(serializers.Serializer):
    """Payment form shared by purchase and sales orders"""
    date = serializers.DateField()
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    type = serializers.ChoiceField(choices=PAYMENT_TYPE_CHOICES, default='Cash')
    bank = serializers.CharField(required=False, allow_blank=True, default='')
    due_date = serializers.DateField(required=False, allow_null=True)
    remarks = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError('Amount must be greater than zero.')
        return value

    def validate(self, attrs):
        if attrs.get('type') == 'PDC' and not attrs.get('due_date'):
            raise serializers.ValidationError({'due_date': 'Due date is required for post-dated cheques.'})
        return attrs
