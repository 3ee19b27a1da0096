"""
Respondent token resolution and form lifecycle guards.

Reading a token runs every guard in a fixed order and stops at the first
failure:

1. unknown token (answered after a random delay)
2. form expired
3. form not published
4. completed responses reached the form's cap
5. this response is already completed

Writes re-run guards 2, 3 and 5 only.
"""

import logging
import random
import time
from collections import namedtuple

from django.conf import settings
from django.utils import timezone

from npsportal_backend.api_utils import mask_token
from .answers import answer_values
from .models import Response as SurveyResponse

logger = logging.getLogger(__name__)

_random = random.SystemRandom()

TokenResolution = namedtuple(
    'TokenResolution', ['response', 'form', 'respondent', 'questions', 'progress']
)


class SurveyAccessError(Exception):
    """Base class for every reason a respondent cannot open or answer a form."""
    code = 'access_denied'
    http_status = 403
    default_message = 'This survey cannot be accessed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidTokenError(SurveyAccessError):
    code = 'invalid_token'
    http_status = 404
    default_message = 'Invalid or expired link'


class FormExpiredError(SurveyAccessError):
    code = 'form_expired'
    http_status = 410
    default_message = 'This survey has expired'


class FormUnavailableError(SurveyAccessError):
    code = 'form_unavailable'
    http_status = 403
    default_message = 'This survey is not accepting responses'


class FormCapacityError(SurveyAccessError):
    code = 'form_capacity_reached'
    http_status = 409
    default_message = 'This survey has reached its response limit'


class AlreadyCompletedError(SurveyAccessError):
    code = 'already_completed'
    http_status = 409
    default_message = 'This survey has already been answered'


def delay_invalid_token(sleep=time.sleep):
    """Sleep a random interval from SURVEY_INVALID_TOKEN_DELAY."""
    low, high = settings.SURVEY_INVALID_TOKEN_DELAY
    if high <= 0:
        return
    sleep(_random.uniform(low, high))


def _check_form_open(form, now):
    if form.is_expired(now):
        raise FormExpiredError()
    if not form.is_published:
        raise FormUnavailableError()


def resolve_token(token, now=None, sleep=time.sleep):
    """
    Open the response bound to ``token``.

    Args:
        token: Opaque response token
        now: Reference time for the expiry check
        sleep: Callable used for the invalid-token delay

    Returns:
        TokenResolution with the form's ordered questions and the decoded
        answers saved so far

    Raises:
        SurveyAccessError subclass describing the first failed guard
    """
    response = SurveyResponse.objects.by_token(token)
    if response is None:
        logger.warning(f"Unknown survey token {mask_token(token)}")
        delay_invalid_token(sleep)
        raise InvalidTokenError()

    form = response.form
    try:
        _check_form_open(form, now or timezone.now())

        if form.has_reached_capacity():
            raise FormCapacityError()

        if response.is_completed:
            raise AlreadyCompletedError()
    except SurveyAccessError as e:
        logger.warning(f"Token {mask_token(token)} rejected for form {form.id}: {e.code}")
        raise

    questions = list(form.questions.order_by('order'))
    return TokenResolution(
        response=response,
        form=form,
        respondent=response.respondent,
        questions=questions,
        progress=answer_values(response, questions),
    )


def check_write_guards(response, now=None):
    """
    Guards a submission must pass once its response row is reached.

    Raises:
        FormExpiredError, FormUnavailableError or AlreadyCompletedError
    """
    _check_form_open(response.form, now or timezone.now())
    if response.is_completed:
        raise AlreadyCompletedError()
