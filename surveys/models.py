"""
Survey models: moments, forms, questions, respondents, token-bound responses and answers.
"""
import json
import uuid
import logging
from django.db import models
from django.conf import settings
from django.utils import timezone
from .managers import FormManager, ResponseManager, SurveyMomentManager

logger = logging.getLogger(__name__)

COMPARISON_DEFAULT_OPTIONS = ['Pior', 'Igual', 'Melhor']


class SurveyMoment(models.Model):
    """
    Stage of the customer journey that groups forms on the dashboard
    (e.g. post-sale satisfaction, cadaver lab training).

    Moments are archived by clearing ``is_active``; archived moments keep
    their forms.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default='')
    slug = models.SlugField(max_length=100, unique=True)
    color = models.CharField(max_length=7, blank=True, default='')
    icon = models.CharField(max_length=50, blank=True, default='')
    order = models.PositiveIntegerField(default=0, db_index=True)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = SurveyMomentManager()

    class Meta:
        db_table = 'surveys_survey_moment'
        ordering = ['order', 'name']

    def __str__(self):
        return self.name


class Form(models.Model):
    """
    Survey form owned by a portal user.

    Only PUBLISHED forms accept answers; the other states can be set at any time.
    """
    STATUS_DRAFT = 'DRAFT'
    STATUS_PUBLISHED = 'PUBLISHED'
    STATUS_PAUSED = 'PAUSED'
    STATUS_CLOSED = 'CLOSED'
    STATUS_ARCHIVED = 'ARCHIVED'
    STATUS_CHOICES = [
        (STATUS_DRAFT, 'Draft'),
        (STATUS_PUBLISHED, 'Published'),
        (STATUS_PAUSED, 'Paused'),
        (STATUS_CLOSED, 'Closed'),
        (STATUS_ARCHIVED, 'Archived'),
    ]

    TYPE_MEDICOS = 'MEDICOS'
    TYPE_DISTRIBUIDORES = 'DISTRIBUIDORES'
    TYPE_CUSTOM = 'CUSTOM'
    TYPE_CHOICES = [
        (TYPE_MEDICOS, 'Médicos'),
        (TYPE_DISTRIBUIDORES, 'Distribuidores'),
        (TYPE_CUSTOM, 'Custom'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default='')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_CUSTOM, db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT, db_index=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    max_responses = models.PositiveIntegerField(null=True, blank=True)
    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='forms'
    )
    moment = models.ForeignKey(
        SurveyMoment,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='forms'
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = FormManager()

    class Meta:
        db_table = 'surveys_form'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='surveys_for_status_5c0f2e_idx'),
        ]

    def __str__(self):
        return self.title

    @property
    def is_published(self):
        return self.status == self.STATUS_PUBLISHED

    def is_expired(self, now=None):
        if self.expires_at is None:
            return False
        return self.expires_at < (now or timezone.now())

    def completed_response_count(self):
        return self.responses.filter(status=Response.STATUS_COMPLETED).count()

    def has_reached_capacity(self):
        if self.max_responses is None:
            return False
        return self.completed_response_count() >= self.max_responses


class Question(models.Model):
    """
    A question inside a form.

    ``conditional_logic`` is either null or
    ``{"depends_on": "<question id>", "condition": "<", "value": 7}``.
    """
    TYPE_NPS = 'NPS'
    TYPE_RATING = 'RATING_1_5'
    TYPE_COMPARISON = 'COMPARISON'
    TYPE_TEXT_SHORT = 'TEXT_SHORT'
    TYPE_TEXT_LONG = 'TEXT_LONG'
    TYPE_MULTIPLE_CHOICE = 'MULTIPLE_CHOICE'
    TYPE_SINGLE_CHOICE = 'SINGLE_CHOICE'
    TYPE_CHOICES = [
        (TYPE_NPS, 'NPS (0-10)'),
        (TYPE_RATING, 'Rating (1-5)'),
        (TYPE_COMPARISON, 'Comparison'),
        (TYPE_TEXT_SHORT, 'Short text'),
        (TYPE_TEXT_LONG, 'Long text'),
        (TYPE_MULTIPLE_CHOICE, 'Multiple choice'),
        (TYPE_SINGLE_CHOICE, 'Single choice'),
    ]
    NUMERIC_TYPES = (TYPE_NPS, TYPE_RATING)
    TEXT_TYPES = (TYPE_TEXT_SHORT, TYPE_TEXT_LONG)
    OPTION_TYPES = (TYPE_MULTIPLE_CHOICE, TYPE_SINGLE_CHOICE, TYPE_COMPARISON)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    form = models.ForeignKey(
        Form,
        on_delete=models.CASCADE,
        related_name='questions'
    )
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, db_index=True)
    text = models.TextField()
    description = models.TextField(blank=True, default='')
    required = models.BooleanField(default=False)
    order = models.PositiveIntegerField()
    options = models.JSONField(default=list, blank=True)
    scale_min = models.IntegerField(null=True, blank=True)
    scale_max = models.IntegerField(null=True, blank=True)
    conditional_logic = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'surveys_question'
        ordering = ['order']
        unique_together = [['form', 'order']]
        indexes = [
            models.Index(fields=['form', 'order'], name='surveys_que_form_id_8a1c77_idx'),
        ]

    def __str__(self):
        return f"{self.order}. {self.text[:50]}"

    @property
    def display_options(self):
        """Declared options, with the built-in scale for comparison questions"""
        if self.options:
            return list(self.options)
        if self.type == self.TYPE_COMPARISON:
            return list(COMPARISON_DEFAULT_OPTIONS)
        return []


class Respondent(models.Model):
    """
    Person who receives survey links (doctor or distributor).
    """
    TYPE_MEDICO = 'MEDICO'
    TYPE_DISTRIBUIDOR = 'DISTRIBUIDOR'
    TYPE_CHOICES = [
        (TYPE_MEDICO, 'Médico'),
        (TYPE_DISTRIBUIDOR, 'Distribuidor'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    email = models.EmailField(unique=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, db_index=True)
    category = models.CharField(max_length=100, blank=True, default='', db_index=True)
    specialty = models.CharField(max_length=100, blank=True, default='')
    crm = models.CharField(max_length=30, blank=True, default='')
    phone = models.CharField(max_length=30, blank=True, default='')
    city = models.CharField(max_length=100, blank=True, default='')
    state = models.CharField(max_length=2, blank=True, default='')
    metadata = models.JSONField(default=dict, blank=True)
    consent = models.BooleanField(default=False)
    consent_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'surveys_respondent'
        ordering = ['name']
        indexes = [
            models.Index(fields=['type', 'category'], name='surveys_res_type_3b9d41_idx'),
        ]

    def __str__(self):
        return f"{self.name} <{self.email}>"


class Response(models.Model):
    """
    One respondent's answer sheet for one form, reached through an opaque token.

    Deleting the respondent keeps the response as anonymous.
    """
    STATUS_IN_PROGRESS = 'IN_PROGRESS'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_ABANDONED = 'ABANDONED'
    STATUS_CHOICES = [
        (STATUS_IN_PROGRESS, 'In progress'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_ABANDONED, 'Abandoned'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    form = models.ForeignKey(
        Form,
        on_delete=models.CASCADE,
        related_name='responses'
    )
    respondent = models.ForeignKey(
        Respondent,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='responses'
    )
    token = models.CharField(max_length=64, unique=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_IN_PROGRESS, db_index=True)
    progress = models.PositiveSmallIntegerField(default=0)
    started_at = models.DateTimeField(default=timezone.now)
    completed_at = models.DateTimeField(null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ResponseManager()

    class Meta:
        db_table = 'surveys_response'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['form', 'status'], name='surveys_res_form_id_41e6d2_idx'),
            models.Index(fields=['form', 'respondent'], name='surveys_res_form_id_b7305a_idx'),
        ]

    def __str__(self):
        return f"Response {self.id} ({self.status})"

    @property
    def is_completed(self):
        return self.status == self.STATUS_COMPLETED


class Answer(models.Model):
    """
    Stored answer for one (response, question) pair.

    Exactly one of numeric_value, text_value and selected_option is set,
    depending on the question type. Multiple-choice selections are stored
    as a JSON array in text_value.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    response = models.ForeignKey(
        Response,
        on_delete=models.CASCADE,
        related_name='answers'
    )
    question = models.ForeignKey(
        Question,
        on_delete=models.CASCADE,
        related_name='answers'
    )
    numeric_value = models.IntegerField(null=True, blank=True)
    text_value = models.TextField(null=True, blank=True)
    selected_option = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'surveys_answer'
        unique_together = [['response', 'question']]
        indexes = [
            models.Index(fields=['question', 'response'], name='surveys_ans_questio_9e02bb_idx'),
        ]

    def __str__(self):
        return f"Answer to {self.question_id} in {self.response_id}"

    def decoded_value(self, question_type=None):
        """
        Value in the shape clients submit it: int, str or list of str
        """
        question_type = question_type or self.question.type
        if self.numeric_value is not None:
            return self.numeric_value
        if self.selected_option is not None:
            return self.selected_option
        if self.text_value is None:
            return None
        if question_type == Question.TYPE_MULTIPLE_CHOICE:
            try:
                selected = json.loads(self.text_value)
            except ValueError:
                logger.warning(f"Answer {self.id} holds malformed multiple-choice JSON")
                return []
            return selected if isinstance(selected, list) else []
        return self.text_value
