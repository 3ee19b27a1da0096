"""
Serializers for survey moments, forms, questions, respondents and responses.

Admin serializers sanitise free text with bleach through
validate_and_sanitize_text_input; public serializers expose only what a
respondent needs to fill in a form.
"""

import uuid

from rest_framework import serializers
from django.utils import timezone
from .models import SurveyMoment, Form, Question, Respondent, Response, Answer
from .tokens import build_response_url
from .validators import (
    MIN_TEXT_LENGTH, validate_phone, validate_state, validate_moment_slug, validate_hex_color,
    validate_question_options, validate_conditional_logic, dependent_questions
)
from npsportal_backend.security_utils import validate_and_sanitize_text_input
import logging

logger = logging.getLogger(__name__)

DEFAULT_SCALES = {
    Question.TYPE_NPS: (0, 10),
    Question.TYPE_RATING: (1, 5),
}


class QuestionSerializer(serializers.ModelSerializer):
    """Question definition; the owning form comes from context or the instance"""

    class Meta:
        model = Question
        fields = [
            'id', 'form', 'type', 'text', 'description', 'required', 'order',
            'options', 'scale_min', 'scale_max', 'conditional_logic',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'form', 'created_at', 'updated_at']
        extra_kwargs = {
            'order': {'min_value': 1},
        }

    def _get_form(self):
        if self.instance is not None:
            return self.instance.form
        return self.context['form']

    def validate_text(self, value):
        """Validate and sanitize question text."""
        return validate_and_sanitize_text_input(
            value, field_name="Question text", min_length=MIN_TEXT_LENGTH, max_length=1000
        )

    def validate_description(self, value):
        if not value:
            return value
        return validate_and_sanitize_text_input(value, field_name="Description", max_length=2000)

    def validate(self, data):
        """Cross-field validation for questions"""
        instance = self.instance
        form = self._get_form()

        question_type = data.get('type', instance.type if instance else None)
        options = data.get('options', instance.options if instance else [])
        order = data.get('order', instance.order if instance else None)

        is_valid, error = validate_question_options(question_type, options)
        if not is_valid:
            raise serializers.ValidationError({'options': error})
        if 'options' in data:
            data['options'] = [option.strip() for option in data['options'] or []]

        duplicates = form.questions.filter(order=order)
        if instance is not None:
            duplicates = duplicates.exclude(pk=instance.pk)
        if duplicates.exists():
            raise serializers.ValidationError({'order': f"Order {order} is already used in this form"})

        if instance is not None and 'order' in data:
            if dependent_questions(instance).filter(order__lte=order).exists():
                raise serializers.ValidationError({
                    'order': f"Order {order} would place this question after questions that depend on it"
                })

        if 'conditional_logic' in data or 'order' in data:
            logic = data.get('conditional_logic', instance.conditional_logic if instance else None)
            is_valid, error = validate_conditional_logic(
                logic, form, order, question_id=instance.id if instance else None
            )
            if not is_valid:
                raise serializers.ValidationError({'conditional_logic': error})
            if 'conditional_logic' in data and not logic:
                data['conditional_logic'] = None
            elif 'conditional_logic' in data:
                # stored in canonical form so dependents can be looked up by id
                data['conditional_logic'] = dict(logic, depends_on=str(uuid.UUID(str(logic['depends_on']))))

        if instance is None and question_type in DEFAULT_SCALES:
            scale_min, scale_max = DEFAULT_SCALES[question_type]
            data.setdefault('scale_min', scale_min)
            data.setdefault('scale_max', scale_max)

        return data


class SurveyMomentSerializer(serializers.ModelSerializer):
    """Survey moment; the position is managed through the reorder action"""

    form_count = serializers.SerializerMethodField()

    class Meta:
        model = SurveyMoment
        fields = [
            'id', 'name', 'description', 'slug', 'color', 'icon', 'order',
            'is_active', 'form_count', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'order', 'created_at', 'updated_at']
        extra_kwargs = {
            'slug': {'validators': []},
        }

    def get_form_count(self, obj):
        count = getattr(obj, 'form_count', None)
        return count if count is not None else obj.forms.count()

    def validate_name(self, value):
        return validate_and_sanitize_text_input(
            value, field_name="Name", min_length=MIN_TEXT_LENGTH, max_length=100
        )

    def validate_description(self, value):
        if not value:
            return value
        return validate_and_sanitize_text_input(value, field_name="Description", max_length=2000)

    def validate_slug(self, value):
        if self.instance is not None and value != self.instance.slug:
            raise serializers.ValidationError("Slug cannot be changed")
        is_valid, error = validate_moment_slug(value)
        if not is_valid:
            raise serializers.ValidationError(error)
        existing = SurveyMoment.objects.filter(slug=value)
        if self.instance is not None:
            existing = existing.exclude(pk=self.instance.pk)
        if existing.exists():
            raise serializers.ValidationError("A moment with this slug already exists")
        return value

    def validate_color(self, value):
        is_valid, error = validate_hex_color(value)
        if not is_valid:
            raise serializers.ValidationError(error)
        return value


class MomentReorderSerializer(serializers.Serializer):
    moment_id = serializers.UUIDField()
    new_order = serializers.IntegerField(min_value=0)


class ChangeMomentSerializer(serializers.Serializer):
    moment_id = serializers.UUIDField(allow_null=True)


class FormSerializer(serializers.ModelSerializer):
    """Form summary with question and response totals"""

    creator_email = serializers.SerializerMethodField()
    question_count = serializers.SerializerMethodField()
    response_count = serializers.SerializerMethodField()
    completed_count = serializers.SerializerMethodField()
    moment = serializers.PrimaryKeyRelatedField(
        queryset=SurveyMoment.objects.active(),
        required=False,
        allow_null=True
    )
    moment_name = serializers.SerializerMethodField()

    class Meta:
        model = Form
        fields = [
            'id', 'title', 'description', 'type', 'status', 'expires_at',
            'max_responses', 'moment', 'moment_name', 'creator_email',
            'question_count', 'response_count', 'completed_count',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']
        extra_kwargs = {
            'max_responses': {'min_value': 1},
        }

    def get_creator_email(self, obj):
        return obj.creator.email if obj.creator else None

    def get_moment_name(self, obj):
        return obj.moment.name if obj.moment else None

    def validate_moment(self, value):
        # moving an existing form is a super admin action (change-moment)
        if self.instance is not None and value != self.instance.moment:
            raise serializers.ValidationError("Use change-moment to move a form between moments")
        return value

    def get_question_count(self, obj):
        count = getattr(obj, 'question_count', None)
        return count if count is not None else obj.questions.count()

    def get_response_count(self, obj):
        count = getattr(obj, 'response_count', None)
        return count if count is not None else obj.responses.count()

    def get_completed_count(self, obj):
        count = getattr(obj, 'completed_count', None)
        return count if count is not None else obj.completed_response_count()

    def validate_title(self, value):
        """Validate and sanitize form title."""
        return validate_and_sanitize_text_input(
            value, field_name="Form title", min_length=MIN_TEXT_LENGTH, max_length=255
        )

    def validate_description(self, value):
        if not value:
            return value
        return validate_and_sanitize_text_input(value, field_name="Description", max_length=2000)


class FormDetailSerializer(FormSerializer):
    """Form with its ordered questions"""

    questions = QuestionSerializer(many=True, read_only=True)

    class Meta(FormSerializer.Meta):
        fields = FormSerializer.Meta.fields + ['questions']


class RespondentSerializer(serializers.ModelSerializer):

    class Meta:
        model = Respondent
        fields = [
            'id', 'name', 'email', 'type', 'category', 'specialty', 'crm',
            'phone', 'city', 'state', 'metadata', 'consent', 'consent_at',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']
        extra_kwargs = {
            # uniqueness is checked case-insensitively in validate_email
            'email': {'validators': []},
        }

    def validate_name(self, value):
        return validate_and_sanitize_text_input(
            value, field_name="Name", min_length=MIN_TEXT_LENGTH, max_length=255
        )

    def validate_email(self, value):
        email = value.strip().lower()
        existing = Respondent.objects.filter(email__iexact=email)
        if self.instance is not None:
            existing = existing.exclude(pk=self.instance.pk)
        if existing.exists():
            raise serializers.ValidationError("A respondent with this email already exists")
        return email

    def validate_phone(self, value):
        is_valid, error = validate_phone(value)
        if not is_valid:
            raise serializers.ValidationError(error)
        return value.strip() if value else value

    def validate_state(self, value):
        is_valid, error = validate_state(value)
        if not is_valid:
            raise serializers.ValidationError(error)
        return value.strip().upper() if value else value

    def validate(self, data):
        if data.get('consent') and not data.get('consent_at'):
            data['consent_at'] = timezone.now()
        if data.get('consent') is False:
            data['consent_at'] = None
        return data


class RespondentSummarySerializer(serializers.ModelSerializer):

    class Meta:
        model = Respondent
        fields = ['id', 'name', 'email', 'type', 'category', 'specialty']


class ResponseSerializer(serializers.ModelSerializer):
    """Response row for admin listings"""

    form_title = serializers.CharField(source='form.title', read_only=True)
    respondent = RespondentSummarySerializer(read_only=True)
    url = serializers.SerializerMethodField()

    class Meta:
        model = Response
        fields = [
            'id', 'form', 'form_title', 'respondent', 'token', 'url', 'status',
            'progress', 'started_at', 'completed_at', 'created_at'
        ]
        read_only_fields = fields

    def get_url(self, obj):
        return build_response_url(obj.token)


class ResponseDetailSerializer(ResponseSerializer):
    """Response with its decoded answers in question order"""

    answers = serializers.SerializerMethodField()

    class Meta(ResponseSerializer.Meta):
        fields = ResponseSerializer.Meta.fields + ['answers']
        read_only_fields = fields

    def get_answers(self, obj):
        answers = (
            Answer.objects
            .filter(response=obj)
            .select_related('question')
            .order_by('question__order')
        )
        return [
            {
                'question_id': str(answer.question_id),
                'question_text': answer.question.text,
                'question_type': answer.question.type,
                'order': answer.question.order,
                'value': answer.decoded_value(),
            }
            for answer in answers
        ]


class PublicQuestionSerializer(serializers.ModelSerializer):
    """Question as shown to respondents"""

    options = serializers.ListField(source='display_options', read_only=True)

    class Meta:
        model = Question
        fields = [
            'id', 'type', 'text', 'description', 'required', 'order',
            'options', 'scale_min', 'scale_max', 'conditional_logic'
        ]
        read_only_fields = fields


class PublicFormSerializer(serializers.ModelSerializer):
    """
    Form as shown to respondents. Pass the already-loaded questions in
    ``context['questions']`` to avoid another query.
    """

    questions = serializers.SerializerMethodField()

    class Meta:
        model = Form
        fields = ['id', 'title', 'description', 'questions']
        read_only_fields = fields

    def get_questions(self, obj):
        questions = self.context.get('questions')
        if questions is None:
            questions = obj.questions.order_by('order')
        return PublicQuestionSerializer(questions, many=True).data


class SubmissionSerializer(serializers.Serializer):
    """Body of a respondent submission"""

    answers = serializers.DictField(required=False, default=dict)
    completed = serializers.BooleanField(required=False, default=False)


class DistributeSerializer(serializers.Serializer):
    respondent_ids = serializers.ListField(
        child=serializers.UUIDField(),
        allow_empty=False,
        max_length=1000
    )


class RespondentImportSerializer(serializers.Serializer):
    respondents = serializers.ListField(
        child=serializers.DictField(),
        allow_empty=False,
        max_length=5000
    )
