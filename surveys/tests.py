"""
Tests for survey models, managers, services and management commands.
"""

from datetime import timedelta
from io import StringIO

from django.core.management import call_command
from django.db import IntegrityError
from django.test import TestCase
from django.utils import timezone

from authentication.models import User
from surveys.models import Answer, Form, Question, Respondent, Response
from surveys.serializers import RespondentSerializer
from surveys.services import DistributionService, RespondentImportService


class FormModelTests(TestCase):

    def setUp(self):
        self.user = User.objects.create_user('admin@example.com', 'Vx9#mKq2!zLp')
        self.form = Form.objects.create(title='Pesquisa', creator=self.user)

    def test_defaults(self):
        self.assertEqual(self.form.status, Form.STATUS_DRAFT)
        self.assertEqual(self.form.type, Form.TYPE_CUSTOM)
        self.assertFalse(self.form.is_published)
        self.assertFalse(self.form.is_expired())
        self.assertFalse(self.form.has_reached_capacity())

    def test_expiry(self):
        self.form.expires_at = timezone.now() - timedelta(seconds=1)
        self.assertTrue(self.form.is_expired())

    def test_capacity(self):
        self.form.max_responses = 1
        self.form.save()
        Response.objects.create(form=self.form, token='a' * 64)
        self.assertFalse(self.form.has_reached_capacity())
        Response.objects.create(
            form=self.form, token='b' * 64, status=Response.STATUS_COMPLETED, completed_at=timezone.now()
        )
        self.assertTrue(self.form.has_reached_capacity())

    def test_with_counts(self):
        Question.objects.create(form=self.form, type='NPS', text='Recomendaria?', order=1)
        Question.objects.create(form=self.form, type='TEXT_LONG', text='Por quê?', order=2)
        Response.objects.create(form=self.form, token='a' * 64)
        Response.objects.create(
            form=self.form, token='b' * 64, status=Response.STATUS_COMPLETED, completed_at=timezone.now()
        )

        form = Form.objects.with_counts().get(pk=self.form.pk)

        self.assertEqual(form.question_count, 2)
        self.assertEqual(form.response_count, 2)
        self.assertEqual(form.completed_count, 1)

    def test_creator_deletion_keeps_form(self):
        self.user.delete()
        self.form.refresh_from_db()
        self.assertIsNone(self.form.creator)

    def test_delete_cascades_to_responses(self):
        question = Question.objects.create(form=self.form, type='NPS', text='Recomendaria?', order=1)
        response = Response.objects.create(form=self.form, token='a' * 64)
        Answer.objects.create(response=response, question=question, numeric_value=9)

        self.form.delete()

        self.assertFalse(Response.objects.exists())
        self.assertFalse(Answer.objects.exists())


class QuestionModelTests(TestCase):

    def setUp(self):
        self.form = Form.objects.create(title='Pesquisa')

    def test_order_is_unique_per_form(self):
        Question.objects.create(form=self.form, type='NPS', text='Recomendaria?', order=1)
        with self.assertRaises(IntegrityError):
            Question.objects.create(form=self.form, type='TEXT_LONG', text='Por quê?', order=1)

    def test_display_options(self):
        comparison = Question(form=self.form, type='COMPARISON', text='Comparado?', order=1)
        self.assertEqual(comparison.display_options, ['Pior', 'Igual', 'Melhor'])
        comparison.options = ['Abaixo', 'Acima']
        self.assertEqual(comparison.display_options, ['Abaixo', 'Acima'])
        self.assertEqual(Question(type='NPS').display_options, [])


class ResponseModelTests(TestCase):

    def setUp(self):
        self.form = Form.objects.create(title='Pesquisa', status=Form.STATUS_PUBLISHED)
        self.respondent = Respondent.objects.create(name='Ana', email='ana@example.com', type='MEDICO')

    def test_token_is_unique(self):
        Response.objects.create(form=self.form, token='a' * 64)
        with self.assertRaises(IntegrityError):
            Response.objects.create(form=self.form, token='a' * 64)

    def test_respondent_deletion_keeps_response(self):
        response = Response.objects.create(form=self.form, respondent=self.respondent, token='a' * 64)
        self.respondent.delete()
        response.refresh_from_db()
        self.assertIsNone(response.respondent)

    def test_by_token(self):
        response = Response.objects.create(form=self.form, respondent=self.respondent, token='a' * 64)
        self.assertEqual(Response.objects.by_token('a' * 64), response)
        self.assertIsNone(Response.objects.by_token('missing'))
        self.assertIsNone(Response.objects.by_token(''))

    def test_one_answer_per_question(self):
        question = Question.objects.create(form=self.form, type='NPS', text='Recomendaria?', order=1)
        response = Response.objects.create(form=self.form, token='a' * 64)
        Answer.objects.create(response=response, question=question, numeric_value=9)
        with self.assertRaises(IntegrityError):
            Answer.objects.create(response=response, question=question, numeric_value=3)

    def test_malformed_multiple_choice_decodes_to_empty_list(self):
        question = Question.objects.create(
            form=self.form, type='MULTIPLE_CHOICE', text='Canais', order=1, options=['A']
        )
        response = Response.objects.create(form=self.form, token='a' * 64)
        answer = Answer.objects.create(response=response, question=question, text_value='not json')
        self.assertEqual(answer.decoded_value(), [])


class DistributionServiceTests(TestCase):

    def setUp(self):
        self.form = Form.objects.create(title='Pesquisa', status=Form.STATUS_PUBLISHED)
        self.ana = Respondent.objects.create(name='Ana', email='ana@example.com', type='MEDICO')
        self.bruno = Respondent.objects.create(name='Bruno', email='bruno@example.com', type='DISTRIBUIDOR')

    def test_one_response_per_respondent(self):
        first = DistributionService.distribute(self.form, [self.ana.id, self.bruno.id])
        second = DistributionService.distribute(self.form, [self.ana.id, self.ana.id])

        self.assertEqual(first['success_count'], 2)
        self.assertEqual(Response.objects.filter(form=self.form).count(), 2)
        self.assertEqual(second['results'][0]['token'], first['results'][0]['token'])
        self.assertEqual(second['results'][1]['token'], first['results'][0]['token'])

        response = Response.objects.get(form=self.form, respondent=self.ana)
        self.assertEqual(response.status, Response.STATUS_IN_PROGRESS)
        self.assertEqual(response.progress, 0)

    def test_share_link(self):
        response = DistributionService.create_share_link(self.form)
        self.assertIsNone(response.respondent)
        self.assertEqual(len(response.token), 32)

        self.form.status = Form.STATUS_CLOSED
        with self.assertRaises(ValueError):
            DistributionService.create_share_link(self.form)


class RespondentImportServiceTests(TestCase):

    def test_rows_are_independent(self):
        result = RespondentImportService.import_rows([
            {'name': 'Ana Souza', 'email': 'ana@example.com', 'type': 'MEDICO', 'crm': '12345-SP'},
            {'name': 'Ana Repetida', 'email': 'ANA@example.com', 'type': 'MEDICO'},
            {'name': 'Telefone ruim', 'email': 'tel@example.com', 'type': 'MEDICO', 'phone': 'abc'},
            {'name': 'Distribuidora', 'email': 'dist@example.com', 'type': 'DISTRIBUIDOR', 'state': 'rs'},
        ], RespondentSerializer)

        self.assertEqual((result['success'], result['duplicate'], result['error']), (2, 1, 1))
        self.assertEqual([r['row'] for r in result['results']], [1, 2, 3, 4])
        self.assertIn('phone', result['results'][2]['error'])
        self.assertEqual(Respondent.objects.get(email='dist@example.com').state, 'RS')


class MarkAbandonedResponsesCommandTests(TestCase):

    def setUp(self):
        self.form = Form.objects.create(title='Pesquisa', status=Form.STATUS_PUBLISHED)
        self.closed = Form.objects.create(title='Encerrada', status=Form.STATUS_CLOSED)
        self.fresh = Response.objects.create(form=self.form, token='a' * 64)
        self.stale = Response.objects.create(
            form=self.form, token='b' * 64, started_at=timezone.now() - timedelta(days=45)
        )
        self.on_closed = Response.objects.create(form=self.closed, token='c' * 64)
        self.done = Response.objects.create(
            form=self.closed, token='d' * 64, status=Response.STATUS_COMPLETED, completed_at=timezone.now()
        )

    def statuses(self):
        return {
            r.token[0]: r.status
            for r in Response.objects.all()
        }

    def test_dry_run_changes_nothing(self):
        out = StringIO()
        call_command('mark_abandoned_responses', '--dry-run', stdout=out)
        self.assertIn('2 responses would be marked as abandoned', out.getvalue())
        self.assertNotIn(Response.STATUS_ABANDONED, self.statuses().values())

    def test_marks_stale_and_closed(self):
        out = StringIO()
        call_command('mark_abandoned_responses', '--days', '30', stdout=out)

        self.assertIn('2 responses marked as abandoned', out.getvalue())
        self.assertEqual(self.statuses(), {
            'a': Response.STATUS_IN_PROGRESS,
            'b': Response.STATUS_ABANDONED,
            'c': Response.STATUS_ABANDONED,
            'd': Response.STATUS_COMPLETED,
        })
