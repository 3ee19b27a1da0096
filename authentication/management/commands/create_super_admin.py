"""
Django management command to create (or promote) a super admin.

Usage:
    python manage.py create_super_admin --email admin@example.com --password 'S3cure!Pass'
"""

from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from authentication.models import User


class Command(BaseCommand):
    help = 'Create a super admin user, or promote an existing one'

    def add_arguments(self, parser):
        parser.add_argument('--email', required=True)
        parser.add_argument('--password', required=True)
        parser.add_argument('--name', default='Administrator')

    def handle(self, *args, **options):
        email = options['email'].strip().lower()
        password = options['password']

        try:
            validate_password(password)
        except ValidationError as e:
            raise CommandError('; '.join(e.messages))

        user = User.objects.get_by_email(email)
        if user:
            user.set_password(password)
            user.role = User.ROLE_SUPER_ADMIN
            user.is_staff = True
            user.is_superuser = True
            user.save()
            self.stdout.write(self.style.WARNING(f'User {email} already existed; promoted to super admin.'))
            return

        User.objects.create_superuser(email, password, name=options['name'])
        self.stdout.write(self.style.SUCCESS(f'Super admin {email} created.'))
