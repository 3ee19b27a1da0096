"""
Serializers for authentication and user administration.
"""

import logging

from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from npsportal_backend.security_utils import validate_and_sanitize_text_input
from .models import User

logger = logging.getLogger(__name__)


def _validate_new_password(password, user=None):
    try:
        validate_password(password, user=user)
    except DjangoValidationError as e:
        raise serializers.ValidationError(list(e.messages))
    return password


class UserSerializer(serializers.ModelSerializer):
    """Public representation of a portal user."""

    class Meta:
        model = User
        fields = [
            'id', 'email', 'name', 'role', 'is_active',
            'require_password_change', 'date_joined', 'last_login'
        ]
        read_only_fields = ['id', 'email', 'date_joined', 'last_login', 'require_password_change']

    def validate_name(self, value):
        return validate_and_sanitize_text_input(value, 'Name', max_length=150)


class UserCreateSerializer(serializers.Serializer):
    name = serializers.CharField(min_length=3, max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8)
    role = serializers.ChoiceField(choices=User.ROLE_CHOICES, default=User.ROLE_ADMIN)

    def validate_name(self, value):
        return validate_and_sanitize_text_input(value, 'Name', min_length=3, max_length=150)

    def validate_email(self, value):
        return value.strip().lower()

    def validate_password(self, value):
        return _validate_new_password(value)

    def create(self, validated_data):
        return User.objects.create_user(
            validated_data['email'],
            validated_data['password'],
            name=validated_data['name'],
            role=validated_data['role'],
        )


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, trim_whitespace=False)


class ChangePasswordSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True, trim_whitespace=False)
    new_password = serializers.CharField(write_only=True, trim_whitespace=False)

    def validate_current_password(self, value):
        user = self.context['request'].user
        if not user.check_password(value):
            raise serializers.ValidationError("Current password is incorrect")
        return value

    def validate_new_password(self, value):
        return _validate_new_password(value, user=self.context['request'].user)

    def validate(self, attrs):
        if attrs['current_password'] == attrs['new_password']:
            raise serializers.ValidationError(
                {'new_password': "New password must differ from the current one"}
            )
        return attrs


class ResetPasswordSerializer(serializers.Serializer):
    new_password = serializers.CharField(write_only=True, trim_whitespace=False)

    def validate_new_password(self, value):
        return _validate_new_password(value)
