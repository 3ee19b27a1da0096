"""
Views for surveys with uniform responses and role-based access control.

Admin endpoints (survey moments, forms, questions, respondents, responses,
dashboards) require a session; viewers are read-only and survey moments are
managed by super admins. The respondent endpoint is public,
keyed by token and rate limited per client IP.
"""

import logging
import uuid
from datetime import datetime, timezone as dt_timezone

from django.db import transaction
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status, filters
from rest_framework.decorators import action
from rest_framework.generics import get_object_or_404
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.views import APIView
from rest_framework.viewsets import ModelViewSet, ReadOnlyModelViewSet

from authentication.permissions import IsAdminOrReadOnly, IsSuperAdmin, IsSuperAdminOrReadOnly
from npsportal_backend.api_utils import uniform_response, get_client_ip, mask_token
from .access import SurveyAccessError, AlreadyCompletedError, resolve_token
from .analytics import build_dashboard, parse_date_bound
from .conditional import required_question_ids
from .models import Form, Question, Respondent, Response as SurveyResponse, SurveyMoment
from .pagination import SurveyPagination
from .progress import calculate_progress, count_answered
from .rate_limiting import check_rate_limit, token_read_policy, submission_policy
from .serializers import (
    FormSerializer, FormDetailSerializer, QuestionSerializer,
    RespondentSerializer, ResponseSerializer, ResponseDetailSerializer,
    PublicFormSerializer, SubmissionSerializer, DistributeSerializer,
    RespondentImportSerializer, SurveyMomentSerializer, MomentReorderSerializer,
    ChangeMomentSerializer
)
from .services import (
    SubmissionService, DistributionService, RespondentImportService, SurveyMomentService
)
from .text_analysis import SENTIMENTS, build_text_feedback
from .validators import dependent_questions

logger = logging.getLogger(__name__)


def access_error_response(error):
    """Envelope for a token guard failure."""
    data = {'code': error.code}
    if isinstance(error, AlreadyCompletedError):
        data['completed'] = True
    return uniform_response(
        success=False,
        message=error.message,
        data=data,
        status_code=error.http_status
    )


def parse_uuid_param(value):
    """UUID from a query parameter, None when absent; ValueError when malformed."""
    if not value:
        return None
    return uuid.UUID(str(value))


class FormViewSet(ModelViewSet):
    """
    ViewSet for form CRUD operations with role-based access.
    """

    serializer_class = FormSerializer
    permission_classes = [IsAuthenticated, IsAdminOrReadOnly]
    pagination_class = SurveyPagination
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['status', 'type', 'moment']
    search_fields = ['title', 'description']
    ordering_fields = ['created_at', 'updated_at', 'title']
    ordering = ['-created_at']
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_queryset(self):
        return Form.objects.with_counts().select_related('creator', 'moment')

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return FormDetailSerializer
        return FormSerializer

    def _get_form(self):
        """Form for detail actions, ignoring the list filters in the query string"""
        form = get_object_or_404(Form.objects.all(), pk=self.kwargs['pk'])
        self.check_object_permissions(self.request, form)
        return form

    def list(self, request, *args, **kwargs):
        """List forms with uniform response and filtering"""
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.get_paginated_response(serializer.data)

        serializer = self.get_serializer(queryset, many=True)
        return uniform_response(
            success=True,
            message="Forms retrieved successfully",
            data=serializer.data
        )

    def retrieve(self, request, *args, **kwargs):
        form = self.get_object()
        return uniform_response(
            success=True,
            message="Form retrieved successfully",
            data=FormDetailSerializer(form).data
        )

    def create(self, request, *args, **kwargs):
        """Create form as draft unless a status is given"""
        serializer = self.get_serializer(data=request.data)
        if not serializer.is_valid():
            return uniform_response(
                success=False,
                message="Invalid form data",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        form = serializer.save(creator=request.user)
        logger.info(f"Form {form.id} created by {request.user.email} (role: {request.user.role})")
        return uniform_response(
            success=True,
            message="Form created successfully",
            data=FormSerializer(form).data,
            status_code=status.HTTP_201_CREATED
        )

    def partial_update(self, request, *args, **kwargs):
        form = self.get_object()
        previous_status = form.status

        serializer = self.get_serializer(form, data=request.data, partial=True)
        if not serializer.is_valid():
            return uniform_response(
                success=False,
                message="Invalid form data",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        form = serializer.save()
        if form.status != previous_status:
            logger.info(f"Form {form.id} moved from {previous_status} to {form.status} by {request.user.email}")

        return uniform_response(
            success=True,
            message="Form updated successfully",
            data=serializer.data
        )

    def destroy(self, request, *args, **kwargs):
        form = self.get_object()
        form_id = form.id
        form.delete()
        logger.info(f"Form {form_id} deleted by {request.user.email}")
        return uniform_response(success=True, message="Form deleted successfully")

    @action(detail=True, methods=['post'])
    def questions(self, request, pk=None):
        """
        Add a new question to the form.

        POST /api/surveys/forms/{form_id}/questions/
        """
        form = self._get_form()

        data = request.data.copy()
        # Auto-increment order if not provided
        if 'order' not in data:
            last_question = form.questions.order_by('-order').first()
            data['order'] = (last_question.order + 1) if last_question else 1

        serializer = QuestionSerializer(data=data, context={'form': form})
        if not serializer.is_valid():
            return uniform_response(
                success=False,
                message="Invalid question data",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        question = serializer.save(form=form)
        logger.info(f"Question {question.id} added to form {form.id} by {request.user.email}")
        return uniform_response(
            success=True,
            message="Question added successfully",
            data=QuestionSerializer(question).data,
            status_code=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['post'])
    def distribute(self, request, pk=None):
        """
        Create (or reuse) response links for respondents.

        POST /api/surveys/forms/{form_id}/distribute/
        """
        form = self._get_form()
        serializer = DistributeSerializer(data=request.data)
        if not serializer.is_valid():
            return uniform_response(
                success=False,
                message="Invalid distribution data",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        try:
            result = DistributionService.distribute(form, serializer.validated_data['respondent_ids'])
        except Exception as e:
            logger.error(f"Error distributing form {form.id}: {e}", exc_info=True)
            return uniform_response(
                success=False,
                message="Failed to distribute form",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return uniform_response(
            success=True,
            message=f"{result['success_count']} links generated",
            data=result
        )

    @action(detail=True, methods=['post'])
    def share(self, request, pk=None):
        """
        Create an anonymous share link for a published form.

        POST /api/surveys/forms/{form_id}/share/
        """
        form = self._get_form()
        try:
            response = DistributionService.create_share_link(form)
        except ValueError as e:
            return uniform_response(
                success=False,
                message=str(e),
                status_code=status.HTTP_400_BAD_REQUEST
            )

        return uniform_response(
            success=True,
            message="Share link created",
            data=ResponseSerializer(response).data,
            status_code=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['patch'], url_path='change-moment',
            permission_classes=[IsAuthenticated, IsSuperAdmin])
    def change_moment(self, request, pk=None):
        """
        Move the form to another survey moment, or out of any with null.

        PATCH /api/surveys/forms/{form_id}/change-moment/
        """
        form = self._get_form()
        serializer = ChangeMomentSerializer(data=request.data)
        if not serializer.is_valid():
            return uniform_response(
                success=False,
                message="Invalid moment data",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        moment = None
        moment_id = serializer.validated_data['moment_id']
        if moment_id is not None:
            moment = SurveyMoment.objects.filter(pk=moment_id).first()
            if moment is None:
                return uniform_response(
                    success=False,
                    message="Survey moment not found",
                    status_code=status.HTTP_404_NOT_FOUND
                )
            if not moment.is_active:
                return uniform_response(
                    success=False,
                    message="Archived survey moments cannot receive forms",
                    status_code=status.HTTP_400_BAD_REQUEST
                )

        form = SurveyMomentService.change_form_moment(form, moment, user=request.user)
        return uniform_response(
            success=True,
            message="Form moment updated successfully",
            data=FormSerializer(form).data
        )

    @action(detail=True, methods=['get'])
    def responses(self, request, pk=None):
        """
        Responses of a form, optionally filtered by ?status=.

        GET /api/surveys/forms/{form_id}/responses/
        """
        form = self._get_form()
        queryset = SurveyResponse.objects.filter(form=form).select_related('form', 'respondent')

        response_status = request.query_params.get('status')
        if response_status:
            if response_status not in dict(SurveyResponse.STATUS_CHOICES):
                return uniform_response(
                    success=False,
                    message=f"Unknown status: {response_status}",
                    status_code=status.HTTP_400_BAD_REQUEST
                )
            queryset = queryset.filter(status=response_status)

        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(ResponseSerializer(page, many=True).data)

        return uniform_response(
            success=True,
            message="Responses retrieved successfully",
            data=ResponseSerializer(queryset, many=True).data
        )


class SurveyMomentViewSet(ModelViewSet):
    """
    Survey moments grouping forms on the dashboard.

    Everyone signed in can read them; only super admins create, edit,
    archive and reorder.
    """

    serializer_class = SurveyMomentSerializer
    permission_classes = [IsAuthenticated, IsSuperAdminOrReadOnly]
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def get_queryset(self):
        queryset = SurveyMoment.objects.with_form_counts()
        include_inactive = self.request.query_params.get('include_inactive', '').lower() in ('1', 'true')
        if self.action == 'list' and not include_inactive:
            queryset = queryset.filter(is_active=True)
        return queryset

    def list(self, request, *args, **kwargs):
        return uniform_response(
            success=True,
            message="Survey moments retrieved successfully",
            data=SurveyMomentSerializer(self.get_queryset(), many=True).data
        )

    def retrieve(self, request, *args, **kwargs):
        moment = self.get_object()
        forms = Form.objects.with_counts().filter(moment=moment).order_by('-created_at')
        data = SurveyMomentSerializer(moment).data
        data['forms'] = [
            {
                'id': str(form.id),
                'title': form.title,
                'status': form.status,
                'response_count': form.response_count,
                'created_at': form.created_at.isoformat(),
            }
            for form in forms
        ]
        return uniform_response(success=True, message="Survey moment retrieved successfully", data=data)

    def create(self, request, *args, **kwargs):
        serializer = SurveyMomentSerializer(data=request.data)
        if not serializer.is_valid():
            return uniform_response(
                success=False,
                message="Invalid survey moment data",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        moment = serializer.save(order=SurveyMomentService.next_order())
        logger.info(f"Survey moment {moment.slug} created by {request.user.email}")
        return uniform_response(
            success=True,
            message="Survey moment created successfully",
            data=SurveyMomentSerializer(moment).data,
            status_code=status.HTTP_201_CREATED
        )

    def partial_update(self, request, *args, **kwargs):
        moment = self.get_object()
        serializer = SurveyMomentSerializer(moment, data=request.data, partial=True)
        if not serializer.is_valid():
            return uniform_response(
                success=False,
                message="Invalid survey moment data",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        serializer.save()
        logger.info(f"Survey moment {moment.slug} updated by {request.user.email}")
        return uniform_response(
            success=True,
            message="Survey moment updated successfully",
            data=serializer.data
        )

    def destroy(self, request, *args, **kwargs):
        """Archive the moment; its forms keep pointing at it."""
        moment = self.get_object()
        moment.is_active = False
        moment.save(update_fields=['is_active', 'updated_at'])
        forms_affected = moment.forms.count()
        logger.info(f"Survey moment {moment.slug} archived by {request.user.email} ({forms_affected} forms)")
        return uniform_response(
            success=True,
            message="Survey moment archived successfully",
            data={'forms_affected': forms_affected, 'moment': SurveyMomentSerializer(moment).data}
        )

    @action(detail=False, methods=['post'])
    def reorder(self, request):
        """
        Move one moment to a new position.

        POST /api/surveys/survey-moments/reorder/
        """
        serializer = MomentReorderSerializer(data=request.data)
        if not serializer.is_valid():
            return uniform_response(
                success=False,
                message="Invalid reorder data",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        moment = SurveyMoment.objects.filter(pk=serializer.validated_data['moment_id']).first()
        if moment is None:
            return uniform_response(
                success=False,
                message="Survey moment not found",
                status_code=status.HTTP_404_NOT_FOUND
            )

        SurveyMomentService.reorder(moment, serializer.validated_data['new_order'])
        moments = SurveyMoment.objects.with_form_counts().filter(is_active=True)
        return uniform_response(
            success=True,
            message="Survey moments reordered successfully",
            data=SurveyMomentSerializer(moments, many=True).data
        )


class QuestionViewSet(ModelViewSet):
    """
    Read, update and delete single questions; creation goes through the form.
    """

    queryset = Question.objects.select_related('form')
    serializer_class = QuestionSerializer
    permission_classes = [IsAuthenticated, IsAdminOrReadOnly]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['form', 'type']
    http_method_names = ['get', 'patch', 'delete', 'head', 'options']

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset()).order_by('form', 'order')
        return uniform_response(
            success=True,
            message="Questions retrieved successfully",
            data=QuestionSerializer(queryset, many=True).data
        )

    def retrieve(self, request, *args, **kwargs):
        return uniform_response(
            success=True,
            message="Question retrieved successfully",
            data=QuestionSerializer(self.get_object()).data
        )

    def partial_update(self, request, *args, **kwargs):
        question = self.get_object()
        serializer = QuestionSerializer(question, data=request.data, partial=True)
        if not serializer.is_valid():
            return uniform_response(
                success=False,
                message="Invalid question data",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        serializer.save()
        logger.info(f"Question {question.id} updated by {request.user.email}")
        return uniform_response(
            success=True,
            message="Question updated successfully",
            data=serializer.data
        )

    def destroy(self, request, *args, **kwargs):
        question = self.get_object()
        question_id = question.id

        with transaction.atomic():
            dependents = list(dependent_questions(question).select_for_update().values_list('id', flat=True))
            if dependents:
                logger.warning(
                    f"Refused to delete question {question_id}: {len(dependents)} questions depend on it"
                )
                return uniform_response(
                    success=False,
                    message="Other questions depend on this one; change their conditional logic first",
                    data={'dependent_questions': [str(pk) for pk in dependents]},
                    status_code=status.HTTP_400_BAD_REQUEST
                )
            question.delete()

        logger.info(f"Question {question_id} deleted by {request.user.email}")
        return uniform_response(success=True, message="Question deleted successfully")


class RespondentViewSet(ModelViewSet):
    """
    Respondent directory with bulk import.
    """

    queryset = Respondent.objects.all()
    serializer_class = RespondentSerializer
    permission_classes = [IsAuthenticated, IsAdminOrReadOnly]
    pagination_class = SurveyPagination
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['type', 'category']
    search_fields = ['name', 'email']
    ordering_fields = ['name', 'created_at']
    ordering = ['name']
    http_method_names = ['get', 'post', 'patch', 'delete', 'head', 'options']

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(RespondentSerializer(page, many=True).data)

        return uniform_response(
            success=True,
            message="Respondents retrieved successfully",
            data=RespondentSerializer(queryset, many=True).data
        )

    def retrieve(self, request, *args, **kwargs):
        return uniform_response(
            success=True,
            message="Respondent retrieved successfully",
            data=RespondentSerializer(self.get_object()).data
        )

    def create(self, request, *args, **kwargs):
        serializer = RespondentSerializer(data=request.data)
        if not serializer.is_valid():
            return uniform_response(
                success=False,
                message="Invalid respondent data",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        respondent = serializer.save()
        logger.info(f"Respondent {respondent.id} created by {request.user.email}")
        return uniform_response(
            success=True,
            message="Respondent created successfully",
            data=RespondentSerializer(respondent).data,
            status_code=status.HTTP_201_CREATED
        )

    def partial_update(self, request, *args, **kwargs):
        respondent = self.get_object()
        serializer = RespondentSerializer(respondent, data=request.data, partial=True)
        if not serializer.is_valid():
            return uniform_response(
                success=False,
                message="Invalid respondent data",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        serializer.save()
        return uniform_response(
            success=True,
            message="Respondent updated successfully",
            data=serializer.data
        )

    def destroy(self, request, *args, **kwargs):
        respondent = self.get_object()
        respondent_id = respondent.id
        respondent.delete()
        logger.info(f"Respondent {respondent_id} deleted by {request.user.email}; responses kept anonymously")
        return uniform_response(success=True, message="Respondent deleted successfully")

    @action(detail=False, methods=['post'], url_path='import')
    def import_respondents(self, request):
        """
        Bulk import respondents, reporting each row's outcome.

        POST /api/surveys/respondents/import/
        """
        serializer = RespondentImportSerializer(data=request.data)
        if not serializer.is_valid():
            return uniform_response(
                success=False,
                message="Invalid import data",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        result = RespondentImportService.import_rows(
            serializer.validated_data['respondents'], RespondentSerializer
        )
        return uniform_response(
            success=True,
            message=f"{result['success']} respondents imported",
            data=result
        )


class ResponseViewSet(ReadOnlyModelViewSet):
    """
    Read-only access to responses and their answers.
    """

    queryset = SurveyResponse.objects.select_related('form', 'respondent')
    serializer_class = ResponseSerializer
    permission_classes = [IsAuthenticated, IsAdminOrReadOnly]
    pagination_class = SurveyPagination
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['form', 'status']

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(ResponseSerializer(page, many=True).data)

        return uniform_response(
            success=True,
            message="Responses retrieved successfully",
            data=ResponseSerializer(queryset, many=True).data
        )

    def retrieve(self, request, *args, **kwargs):
        return uniform_response(
            success=True,
            message="Response retrieved successfully",
            data=ResponseDetailSerializer(self.get_object()).data
        )


class PublicResponseView(APIView):
    """
    Respondent endpoint reached through a token link.

    GET  /api/surveys/r/{token}/ - form definition and saved progress
    POST /api/surveys/r/{token}/ - save answers, optionally completing
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    # replaceable counter, called as rate_limit(identity, policy)
    rate_limit = staticmethod(check_rate_limit)

    def _rate_limited(self, request, policy):
        client_ip = get_client_ip(request)
        result = self.rate_limit(client_ip, policy)
        if result.allowed:
            return None

        reset_at = datetime.fromtimestamp(result.reset_at, tz=dt_timezone.utc)
        return uniform_response(
            success=False,
            message="Too many requests. Please try again later.",
            data={'reset_at': reset_at.isoformat()},
            status_code=status.HTTP_429_TOO_MANY_REQUESTS
        )

    def get(self, request, token):
        limited = self._rate_limited(request, token_read_policy())
        if limited:
            return limited

        try:
            resolution = resolve_token(token)
        except SurveyAccessError as e:
            return access_error_response(e)

        questions = resolution.questions
        progress = resolution.progress
        respondent = resolution.respondent

        return uniform_response(
            success=True,
            message="Form retrieved successfully",
            data={
                'response_id': str(resolution.response.id),
                'form': PublicFormSerializer(resolution.form, context={'questions': questions}).data,
                'respondent': {'name': respondent.name, 'email': respondent.email} if respondent else None,
                'progress': progress,
                'progress_percent': calculate_progress(count_answered(questions, progress), len(questions)),
                'required_question_ids': required_question_ids(questions, progress),
            }
        )

    def post(self, request, token):
        limited = self._rate_limited(request, submission_policy())
        if limited:
            return limited

        serializer = SubmissionSerializer(data=request.data)
        if not serializer.is_valid():
            return uniform_response(
                success=False,
                message="Invalid submission",
                data=serializer.errors,
                status_code=status.HTTP_400_BAD_REQUEST
            )

        completed = serializer.validated_data['completed']
        try:
            response = SubmissionService.submit(
                token,
                serializer.validated_data['answers'],
                completed
            )
        except SurveyAccessError as e:
            return access_error_response(e)
        except Exception as e:
            logger.error(f"Error saving response for token {mask_token(token)}: {e}", exc_info=True)
            return uniform_response(
                success=False,
                message="Failed to save response",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return uniform_response(
            success=True,
            message="Responses submitted" if completed else "Progress saved",
            data={
                'response_id': str(response.id),
                'status': response.status,
                'progress': response.progress,
                'completed_at': response.completed_at.isoformat() if response.completed_at else None,
            }
        )


class DashboardView(APIView):
    """
    GET /api/surveys/dashboard/?form=&start=&end=
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        try:
            form_id = parse_uuid_param(request.query_params.get('form'))
            start = parse_date_bound(request.query_params.get('start'))
            end = parse_date_bound(request.query_params.get('end'), end=True)
        except ValueError:
            return uniform_response(
                success=False,
                message="Invalid filter: form must be a UUID and dates ISO 8601",
                status_code=status.HTTP_400_BAD_REQUEST
            )

        if form_id and not Form.objects.filter(pk=form_id).exists():
            return uniform_response(
                success=False,
                message="Form not found",
                status_code=status.HTTP_404_NOT_FOUND
            )

        try:
            data = build_dashboard(form_id=form_id, start=start, end=end)
        except Exception as e:
            logger.error(f"Error building dashboard: {e}", exc_info=True)
            return uniform_response(
                success=False,
                message="Failed to build dashboard",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return uniform_response(success=True, message="Dashboard retrieved successfully", data=data)


class TextFeedbackView(APIView):
    """
    GET /api/surveys/dashboard/text-feedback/?form=&sentiment=&search=
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        try:
            form_id = parse_uuid_param(request.query_params.get('form'))
        except ValueError:
            return uniform_response(
                success=False,
                message="Invalid filter: form must be a UUID",
                status_code=status.HTTP_400_BAD_REQUEST
            )

        sentiment = (request.query_params.get('sentiment') or '').upper() or None
        if sentiment and sentiment not in SENTIMENTS:
            return uniform_response(
                success=False,
                message=f"Sentiment must be one of: {', '.join(SENTIMENTS)}",
                status_code=status.HTTP_400_BAD_REQUEST
            )

        try:
            data = build_text_feedback(
                form_id=form_id,
                sentiment=sentiment,
                search=request.query_params.get('search')
            )
        except Exception as e:
            logger.error(f"Error building text feedback: {e}", exc_info=True)
            return uniform_response(
                success=False,
                message="Failed to build text feedback",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return uniform_response(success=True, message="Text feedback retrieved successfully", data=data)
