"""
Business logic services for surveys
"""
import logging
from django.db import IntegrityError, transaction
from django.db.models import F
from django.utils import timezone

from npsportal_backend.api_utils import mask_token
from .access import InvalidTokenError, check_write_guards, delay_invalid_token
from .answers import apply_answers
from .models import Form, Respondent, Response as SurveyResponse, SurveyMoment
from .progress import calculate_progress, count_answered
from .tokens import generate_respondent_token, generate_share_token, build_response_url

logger = logging.getLogger(__name__)


class SubmissionService:
    """
    Writes respondent submissions
    """

    @staticmethod
    def submit(token, raw_answers, completed, now=None):
        """
        Save a submission for the response bound to ``token``.

        Answers, progress and status are written in one transaction. The
        ``completed`` flag is trusted as sent.

        Args:
            token: Response token
            raw_answers: Mapping of question id to raw value
            completed: Whether the respondent is finishing the form
            now: Completion timestamp (defaults to timezone.now())

        Returns:
            Response instance after the update

        Raises:
            SurveyAccessError subclass when a write guard fails
        """
        now = now or timezone.now()
        raw_answers = raw_answers or {}

        try:
            with transaction.atomic():
                response = SurveyResponse.objects.select_for_update().filter(token=token).first()
                if response is None:
                    raise InvalidTokenError()

                check_write_guards(response, now)

                questions = list(response.form.questions.all())
                outcome = apply_answers(response, questions, raw_answers)

                response.progress = calculate_progress(count_answered(questions, raw_answers), len(questions))
                if completed:
                    response.status = SurveyResponse.STATUS_COMPLETED
                    response.completed_at = now
                else:
                    response.status = SurveyResponse.STATUS_IN_PROGRESS
                    response.completed_at = None
                response.save(update_fields=['progress', 'status', 'completed_at', 'updated_at'])
        except InvalidTokenError:
            # the transaction is closed before the delay
            logger.warning(f"Submission for unknown token {mask_token(token)}")
            delay_invalid_token()
            raise

        if outcome['skipped']:
            logger.info(f"Response {response.id}: ignored {len(outcome['skipped'])} malformed answers")
        if completed:
            logger.info(f"Response {response.id} completed for form {response.form_id}")
        return response


class DistributionService:
    """
    Creates token links for respondents
    """

    @staticmethod
    @transaction.atomic
    def distribute(form, respondent_ids):
        """
        Give each respondent a response link for ``form``.

        An existing response for the same (form, respondent) is reused.

        Returns:
            dict with 'results', 'errors', 'success_count' and 'error_count'
        """
        respondents = {str(r.id): r for r in Respondent.objects.filter(id__in=respondent_ids)}
        existing = {
            str(r.respondent_id): r
            for r in SurveyResponse.objects.filter(form=form, respondent_id__in=respondent_ids)
        }

        results = []
        errors = []
        for respondent_id in respondent_ids:
            respondent_id = str(respondent_id)
            respondent = respondents.get(respondent_id)
            if respondent is None:
                errors.append({'respondent_id': respondent_id, 'error': 'Respondent not found'})
                continue

            response = existing.get(respondent_id)
            if response is None:
                response = SurveyResponse.objects.create(
                    form=form,
                    respondent=respondent,
                    token=generate_respondent_token(),
                )
                existing[respondent_id] = response

            results.append({
                'respondent_id': respondent_id,
                'respondent_name': respondent.name,
                'respondent_email': respondent.email,
                'response_id': str(response.id),
                'token': response.token,
                'url': build_response_url(response.token),
            })

        logger.info(f"Distributed form {form.id} to {len(results)} respondents ({len(errors)} errors)")
        return {
            'results': results,
            'errors': errors,
            'success_count': len(results),
            'error_count': len(errors),
        }

    @staticmethod
    def create_share_link(form):
        """
        Anonymous response with a short token for a published form.

        Raises:
            ValueError: if the form is not published
        """
        if form.status != Form.STATUS_PUBLISHED:
            raise ValueError('Only published forms can be shared')

        response = SurveyResponse.objects.create(form=form, token=generate_share_token())
        logger.info(f"Share link {mask_token(response.token)} created for form {form.id}")
        return response


class RespondentImportService:
    """
    Bulk respondent import
    """

    @staticmethod
    def import_rows(rows, serializer_class):
        """
        Create one respondent per row, reporting each row's outcome.

        Rows are independent: a failing row does not undo the others.

        Args:
            rows: List of dicts with respondent fields
            serializer_class: Serializer used to validate a row

        Returns:
            dict with 'results' ({row, status, email, id?, error?}) and counts
        """
        results = []
        counts = {'success': 0, 'duplicate': 0, 'error': 0}

        for index, row in enumerate(rows, start=1):
            email = str(row.get('email') or '').strip().lower()

            if email and Respondent.objects.filter(email__iexact=email).exists():
                results.append({'row': index, 'email': email, 'status': 'duplicate'})
                counts['duplicate'] += 1
                continue

            serializer = serializer_class(data=row)
            if not serializer.is_valid():
                results.append({'row': index, 'email': email, 'status': 'error', 'error': serializer.errors})
                counts['error'] += 1
                continue

            try:
                with transaction.atomic():
                    respondent = serializer.save()
            except IntegrityError:
                results.append({'row': index, 'email': email, 'status': 'duplicate'})
                counts['duplicate'] += 1
                continue

            results.append({'row': index, 'email': respondent.email, 'status': 'success', 'id': str(respondent.id)})
            counts['success'] += 1

        logger.info(
            f"Respondent import: {counts['success']} created, "
            f"{counts['duplicate']} duplicates, {counts['error']} errors"
        )
        return {'results': results, **counts}


class SurveyMomentService:
    """
    Position of survey moments and the forms grouped under them
    """

    @staticmethod
    def next_order():
        last_order = SurveyMoment.objects.order_by('-order').values_list('order', flat=True).first()
        return (last_order or 0) + 1

    @staticmethod
    @transaction.atomic
    def reorder(moment, new_order):
        """
        Move ``moment`` to ``new_order``, shifting the moments in between by one.

        Returns:
            The moment with its new order
        """
        old_order = moment.order
        if new_order < old_order:
            SurveyMoment.objects.filter(
                order__gte=new_order, order__lt=old_order
            ).exclude(pk=moment.pk).update(order=F('order') + 1)
        elif new_order > old_order:
            SurveyMoment.objects.filter(
                order__gt=old_order, order__lte=new_order
            ).exclude(pk=moment.pk).update(order=F('order') - 1)

        moment.order = new_order
        moment.save(update_fields=['order', 'updated_at'])
        logger.info(f"Survey moment {moment.slug} moved from position {old_order} to {new_order}")
        return moment

    @staticmethod
    def change_form_moment(form, moment, user=None):
        """Attach ``form`` to ``moment``, or detach it when ``moment`` is None."""
        previous_moment_id = form.moment_id
        form.moment = moment
        form.save(update_fields=['moment', 'updated_at'])
        logger.info(
            f"Form {form.id} moved from moment {previous_moment_id} to "
            f"{moment.id if moment else None} by {user.email if user else 'system'}"
        )
        return form
