"""
Custom model managers for survey queries
"""
from django.db import models
from django.db.models import Count, Q


class FormManager(models.Manager):
    """
    Query helpers for Form
    """

    def published(self):
        return self.filter(status='PUBLISHED')

    def with_counts(self):
        """
        Annotate question and response totals used by the admin listing
        """
        return self.annotate(
            question_count=Count('questions', distinct=True),
            response_count=Count('responses', distinct=True),
            completed_count=Count(
                'responses',
                filter=Q(responses__status='COMPLETED'),
                distinct=True
            ),
        )


class ResponseManager(models.Manager):
    """
    Query helpers for Response
    """

    def completed(self):
        return self.filter(status='COMPLETED')

    def completed_for_form(self, form):
        return self.completed().filter(form=form)

    def by_token(self, token):
        """
        Response bound to ``token`` with its form and respondent, or None
        """
        if not token:
            return None
        return self.select_related('form', 'respondent').filter(token=token).first()


class SurveyMomentManager(models.Manager):
    """
    Query helpers for SurveyMoment
    """

    def active(self):
        return self.filter(is_active=True)

    def with_form_counts(self):
        return self.annotate(form_count=Count('forms'))
