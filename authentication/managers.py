"""
Managers for the authentication app.

Users log in with their email address, so every lookup normalises the
address before touching the database.
"""

import logging

from django.contrib.auth.models import BaseUserManager

logger = logging.getLogger(__name__)


class UserManager(BaseUserManager):
    """
    Custom manager for email-based users with a role.
    """

    use_in_migrations = True

    def create_user(self, email, password=None, name='', role=None, **extra_fields):
        """
        Create and return a user.

        Args:
            email: Login email address
            password: Raw password (an unusable password is set when omitted)
            name: Display name
            role: One of User.ROLE_* (defaults to admin)
            **extra_fields: Additional model fields

        Returns:
            User instance
        """
        if not email:
            raise ValueError('The Email field must be set')

        email = self.normalize_email(email).lower()
        if role is None:
            role = self.model.ROLE_ADMIN

        user = self.model(email=email, name=name, role=role, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, name='', **extra_fields):
        """
        Create and return a super admin with Django admin access.
        """
        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)

        return self.create_user(
            email, password, name=name, role=self.model.ROLE_SUPER_ADMIN, **extra_fields
        )

    def get_by_email(self, email):
        """
        Get user by email (case-insensitive).

        Returns:
            User instance or None
        """
        if not email:
            return None
        return self.filter(email__iexact=email.strip()).first()

    def email_exists(self, email):
        """
        Check if a user with the given email exists.
        """
        if not email:
            return False
        return self.filter(email__iexact=email.strip()).exists()
