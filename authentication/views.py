"""
Views for session authentication and user administration.

Login is protected by a per-email lockout; user management is restricted
to super admins.
"""

import logging
from datetime import datetime, timezone as dt_timezone

from django.contrib.auth import authenticate, login, logout, update_session_auth_hash
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.views import APIView
from rest_framework.viewsets import ModelViewSet

from npsportal_backend.api_utils import uniform_response, get_client_ip
from .login_protection import check_login_rate_limit, reset_login_attempts
from .models import User
from .permissions import IsSuperAdmin
from .serializers import (
    UserSerializer, UserCreateSerializer, LoginSerializer,
    ChangePasswordSerializer, ResetPasswordSerializer
)

logger = logging.getLogger(__name__)


class LoginView(APIView):
    """
    POST /api/auth/login/ - start a session with email and password.
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return uniform_response(
                success=False,
                message="Email and password are required",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        email = serializer.validated_data['email'].strip().lower()
        password = serializer.validated_data['password']

        attempt = check_login_rate_limit(email)
        if not attempt.allowed:
            locked_until = datetime.fromtimestamp(attempt.locked_until, tz=dt_timezone.utc)
            logger.warning(f"Blocked login for {email} from {get_client_ip(request)}: account locked")
            return uniform_response(
                success=False,
                message="Too many login attempts. Account temporarily locked.",
                data={'locked_until': locked_until.isoformat()},
                status_code=status.HTTP_429_TOO_MANY_REQUESTS
            )

        # ModelBackend hashes the password even for unknown emails
        user = authenticate(request, email=email, password=password)
        if user is None:
            logger.warning(f"Failed login for {email} from {get_client_ip(request)}")
            message = "Invalid email or password."
            if attempt.remaining_attempts > 0:
                message = f"Invalid email or password. {attempt.remaining_attempts} attempts remaining."
            return uniform_response(
                success=False,
                message=message,
                status_code=status.HTTP_401_UNAUTHORIZED
            )

        reset_login_attempts(email)
        login(request, user)
        logger.info(f"User {user.id} ({user.role}) logged in")

        return uniform_response(
            success=True,
            message="Login successful",
            data=UserSerializer(user).data
        )


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        user_id = request.user.id
        logout(request)
        logger.info(f"User {user_id} logged out")
        return uniform_response(success=True, message="Logged out")


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return uniform_response(
            success=True,
            message="Current user",
            data=UserSerializer(request.user).data
        )


class ChangePasswordView(APIView):
    """
    POST /api/auth/change-password/ - change own password and keep the session.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ChangePasswordSerializer(data=request.data, context={'request': request})
        if not serializer.is_valid():
            return uniform_response(
                success=False,
                message="Invalid password data",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        user = request.user
        user.set_password(serializer.validated_data['new_password'])
        user.require_password_change = False
        user.save(update_fields=['password', 'require_password_change'])
        update_session_auth_hash(request, user)

        logger.info(f"User {user.id} changed password")
        return uniform_response(success=True, message="Password changed successfully")


class UserViewSet(ModelViewSet):
    """
    User administration for super admins.
    """
    permission_classes = [IsAuthenticated, IsSuperAdmin]
    serializer_class = UserSerializer
    queryset = User.objects.all().order_by('-date_joined')
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def list(self, request, *args, **kwargs):
        users = self.get_queryset()
        return uniform_response(
            success=True,
            message="Users retrieved successfully",
            data=UserSerializer(users, many=True).data
        )

    def retrieve(self, request, *args, **kwargs):
        return uniform_response(
            success=True,
            message="User retrieved successfully",
            data=UserSerializer(self.get_object()).data
        )

    def create(self, request, *args, **kwargs):
        serializer = UserCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return uniform_response(
                success=False,
                message="Invalid user data",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        if User.objects.email_exists(serializer.validated_data['email']):
            return uniform_response(
                success=False,
                message="A user with this email already exists",
                status_code=status.HTTP_409_CONFLICT
            )

        user = serializer.save()
        logger.info(f"User {user.id} created with role {user.role} by {request.user.id}")
        return uniform_response(
            success=True,
            message="User created successfully",
            data=UserSerializer(user).data,
            status_code=status.HTTP_201_CREATED
        )

    def partial_update(self, request, *args, **kwargs):
        user = self.get_object()
        serializer = UserSerializer(user, data=request.data, partial=True)
        if not serializer.is_valid():
            return uniform_response(
                success=False,
                message="Invalid user data",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        if user == request.user and serializer.validated_data.get('role', user.role) != user.role:
            return uniform_response(
                success=False,
                message="You cannot change your own role",
                status_code=status.HTTP_400_BAD_REQUEST
            )

        serializer.save()
        logger.info(f"User {user.id} updated by {request.user.id}")
        return uniform_response(
            success=True,
            message="User updated successfully",
            data=serializer.data
        )

    def destroy(self, request, *args, **kwargs):
        user = self.get_object()
        if user == request.user:
            return uniform_response(
                success=False,
                message="You cannot delete your own account",
                status_code=status.HTTP_400_BAD_REQUEST
            )

        user_id = user.id
        user.delete()
        logger.info(f"User {user_id} deleted by {request.user.id}")
        return uniform_response(success=True, message="User deleted successfully")

    @action(detail=True, methods=['post'], url_path='reset-password')
    def reset_password(self, request, pk=None):
        user = get_object_or_404(User, pk=pk)
        serializer = ResetPasswordSerializer(data=request.data)
        if not serializer.is_valid():
            return uniform_response(
                success=False,
                message="Invalid password",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        user.set_password(serializer.validated_data['new_password'])
        user.require_password_change = True
        user.save(update_fields=['password', 'require_password_change'])

        logger.info(f"Password for user {user.id} reset by {request.user.id}")
        return uniform_response(success=True, message="Password reset successfully")
