"""
Management command to mark stale in-progress responses as abandoned.

A response is stale when its form has expired or stopped accepting answers,
or when it was started more than --days days ago.

Usage:
    python manage.py mark_abandoned_responses --days 30 [--dry-run]
"""

from datetime import timedelta

from django.core.management.base import BaseCommand
from django.db.models import Q
from django.utils import timezone

from surveys.models import Form, Response
import logging

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Mark stale in-progress responses as ABANDONED'

    def add_arguments(self, parser):
        parser.add_argument('--days', type=int, default=30,
                            help='Age in days after which an unfinished response is abandoned')
        parser.add_argument('--dry-run', action='store_true',
                            help='Only report how many responses would change')

    def handle(self, *args, **options):
        now = timezone.now()
        cutoff = now - timedelta(days=options['days'])

        stale = Response.objects.filter(status=Response.STATUS_IN_PROGRESS).filter(
            Q(form__expires_at__lt=now)
            | ~Q(form__status=Form.STATUS_PUBLISHED)
            | Q(started_at__lt=cutoff)
        )
        count = stale.count()

        if options['dry_run']:
            self.stdout.write(self.style.WARNING(f'{count} responses would be marked as abandoned.'))
            return

        updated = stale.update(status=Response.STATUS_ABANDONED, updated_at=now)
        logger.info(f"Marked {updated} responses as abandoned")
        self.stdout.write(self.style.SUCCESS(f'{updated} responses marked as abandoned.'))
