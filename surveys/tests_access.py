"""
Tests for token resolution and form lifecycle guards.
"""

from datetime import timedelta

from django.test import TestCase, override_settings
from django.utils import timezone

from surveys.access import (
    AlreadyCompletedError, FormCapacityError, FormExpiredError, FormUnavailableError,
    InvalidTokenError, check_write_guards, delay_invalid_token, resolve_token
)
from surveys.answers import apply_answers
from surveys.models import Form, Question, Respondent, Response
from surveys.tokens import build_response_url, generate_respondent_token, generate_share_token


class RecordingSleep:

    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@override_settings(SURVEY_INVALID_TOKEN_DELAY=(0.5, 1.5))
class ResolveTokenTests(TestCase):
    """Guard ordering when a respondent opens a link"""

    def setUp(self):
        self.sleep = RecordingSleep()
        self.form = Form.objects.create(title='Pesquisa médicos', status=Form.STATUS_PUBLISHED)
        self.q1 = Question.objects.create(form=self.form, type='NPS', text='Recomendaria?', order=1)
        self.q2 = Question.objects.create(
            form=self.form, type='COMPARISON', text='Comparado a outros?', order=2
        )
        self.respondent = Respondent.objects.create(name='Dr. Paulo', email='paulo@example.com', type='MEDICO')
        self.response = Response.objects.create(form=self.form, respondent=self.respondent, token='b' * 64)

    def resolve(self, token='b' * 64, now=None):
        return resolve_token(token, now=now, sleep=self.sleep)

    def test_valid_token_returns_form_and_progress(self):
        apply_answers(self.response, [self.q1, self.q2], {str(self.q1.id): 9})

        resolution = self.resolve()

        self.assertEqual(resolution.response, self.response)
        self.assertEqual(resolution.form, self.form)
        self.assertEqual(resolution.respondent, self.respondent)
        self.assertEqual([q.id for q in resolution.questions], [self.q1.id, self.q2.id])
        self.assertEqual(resolution.progress, {str(self.q1.id): 9})
        self.assertEqual(self.sleep.calls, [])

    def test_unknown_token_sleeps_before_failing(self):
        with self.assertRaises(InvalidTokenError) as ctx:
            self.resolve('nope')

        self.assertEqual(ctx.exception.http_status, 404)
        self.assertEqual(ctx.exception.message, 'Invalid or expired link')
        self.assertEqual(len(self.sleep.calls), 1)
        self.assertTrue(0.5 <= self.sleep.calls[0] <= 1.5)

    def test_empty_token_is_invalid(self):
        with self.assertRaises(InvalidTokenError):
            self.resolve('')

    def test_expired_form(self):
        self.form.expires_at = timezone.now() - timedelta(days=1)
        self.form.save()
        with self.assertRaises(FormExpiredError) as ctx:
            self.resolve()
        self.assertEqual(ctx.exception.http_status, 410)
        self.assertEqual(self.sleep.calls, [])

    def test_expiry_is_exclusive_of_the_deadline_itself(self):
        deadline = timezone.now() + timedelta(hours=1)
        self.form.expires_at = deadline
        self.form.save()
        self.resolve(now=deadline)
        with self.assertRaises(FormExpiredError):
            self.resolve(now=deadline + timedelta(seconds=1))

    def test_expired_wins_over_unpublished(self):
        self.form.expires_at = timezone.now() - timedelta(days=1)
        self.form.status = Form.STATUS_CLOSED
        self.form.save()
        with self.assertRaises(FormExpiredError):
            self.resolve()

    def test_unpublished_statuses(self):
        for status in (Form.STATUS_DRAFT, Form.STATUS_PAUSED, Form.STATUS_CLOSED, Form.STATUS_ARCHIVED):
            self.form.status = status
            self.form.save()
            with self.assertRaises(FormUnavailableError) as ctx:
                self.resolve()
            self.assertEqual(ctx.exception.http_status, 403)

    def test_capacity_counts_completed_responses_only(self):
        self.form.max_responses = 1
        self.form.save()
        Response.objects.create(form=self.form, token='c' * 64, status=Response.STATUS_IN_PROGRESS)
        self.resolve()

        Response.objects.create(
            form=self.form, token='d' * 64,
            status=Response.STATUS_COMPLETED, completed_at=timezone.now()
        )
        with self.assertRaises(FormCapacityError) as ctx:
            self.resolve()
        self.assertEqual(ctx.exception.http_status, 409)

    def test_capacity_wins_over_already_completed(self):
        self.form.max_responses = 1
        self.form.save()
        self.response.status = Response.STATUS_COMPLETED
        self.response.completed_at = timezone.now()
        self.response.save()
        with self.assertRaises(FormCapacityError):
            self.resolve()

    def test_already_completed(self):
        self.response.status = Response.STATUS_COMPLETED
        self.response.completed_at = timezone.now()
        self.response.save()
        with self.assertRaises(AlreadyCompletedError) as ctx:
            self.resolve()
        self.assertEqual(ctx.exception.code, 'already_completed')
        self.assertEqual(ctx.exception.message, 'This survey has already been answered')

    def test_abandoned_response_can_be_reopened(self):
        self.response.status = Response.STATUS_ABANDONED
        self.response.save()
        self.assertEqual(self.resolve().response.status, Response.STATUS_ABANDONED)

    def test_anonymous_response(self):
        anonymous = Response.objects.create(form=self.form, token='e' * 32)
        self.assertIsNone(self.resolve('e' * 32).respondent)
        self.assertEqual(self.resolve('e' * 32).response, anonymous)


class WriteGuardTests(TestCase):
    """Guards re-checked on submission"""

    def setUp(self):
        self.form = Form.objects.create(title='Pesquisa', status=Form.STATUS_PUBLISHED, max_responses=1)
        self.response = Response.objects.create(form=self.form, token='f' * 64)

    def test_open_form_passes(self):
        check_write_guards(self.response)

    def test_capacity_is_not_rechecked(self):
        Response.objects.create(
            form=self.form, token='g' * 64,
            status=Response.STATUS_COMPLETED, completed_at=timezone.now()
        )
        check_write_guards(self.response)

    def test_guard_order(self):
        self.form.status = Form.STATUS_PAUSED
        self.form.expires_at = timezone.now() - timedelta(minutes=1)
        with self.assertRaises(FormExpiredError):
            check_write_guards(self.response)

        self.form.expires_at = None
        with self.assertRaises(FormUnavailableError):
            check_write_guards(self.response)

        self.form.status = Form.STATUS_PUBLISHED
        self.response.status = Response.STATUS_COMPLETED
        with self.assertRaises(AlreadyCompletedError):
            check_write_guards(self.response)


class DelayTests(TestCase):

    @override_settings(SURVEY_INVALID_TOKEN_DELAY=(0, 0))
    def test_disabled_delay_does_not_sleep(self):
        sleep = RecordingSleep()
        delay_invalid_token(sleep)
        self.assertEqual(sleep.calls, [])

    @override_settings(SURVEY_INVALID_TOKEN_DELAY=(0.1, 0.2))
    def test_delay_within_bounds(self):
        sleep = RecordingSleep()
        for _ in range(20):
            delay_invalid_token(sleep)
        self.assertEqual(len(sleep.calls), 20)
        self.assertTrue(all(0.1 <= seconds <= 0.2 for seconds in sleep.calls))


class TokenTests(TestCase):

    def test_token_lengths(self):
        self.assertEqual(len(generate_respondent_token()), 64)
        self.assertEqual(len(generate_share_token()), 32)
        self.assertNotEqual(generate_respondent_token(), generate_respondent_token())

    @override_settings(PUBLIC_BASE_URL='https://pesquisa.example.com/')
    def test_response_url(self):
        self.assertEqual(build_response_url('abc'), 'https://pesquisa.example.com/r/abc')
