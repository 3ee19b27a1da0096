"""
Tests for answer normalisation, persistence and submissions.
"""

from django.core.cache import cache
from django.db import connection
from django.test import TestCase, TransactionTestCase, override_settings

from authentication.models import User
from surveys.access import AlreadyCompletedError, FormExpiredError, FormUnavailableError, InvalidTokenError
from surveys.answers import (
    NumericValue, SelectedOption, TextValue,
    answer_values, apply_answers, format_answer_value, is_blank
)
from surveys.models import Answer, Form, Question, Respondent, Response
from surveys import services
from surveys.services import SubmissionService


class FormatAnswerValueTests(TestCase):
    """Normalisation of raw answers per question type"""

    def test_numeric_types(self):
        self.assertEqual(format_answer_value('NPS', 9), NumericValue(9))
        self.assertEqual(format_answer_value('NPS', '8'), NumericValue(8))
        self.assertEqual(format_answer_value('RATING_1_5', 3.5), NumericValue(4))
        self.assertEqual(format_answer_value('RATING_1_5', ' 2.4 '), NumericValue(2))

    def test_numeric_rejects_non_numbers(self):
        for raw in ('abc', float('inf'), float('nan'), 'Infinity', True, ['9'], {'v': 9}):
            self.assertIsNone(format_answer_value('NPS', raw), raw)

    def test_digit_group_underscores_are_not_numbers(self):
        for raw in ('1_0', ' 9_0 ', '1_000.5'):
            self.assertIsNone(format_answer_value('NPS', raw), raw)

    def test_text_types(self):
        self.assertEqual(format_answer_value('TEXT_SHORT', ' Bom '), TextValue(' Bom '))
        self.assertEqual(format_answer_value('TEXT_LONG', 'Longo'), TextValue('Longo'))
        self.assertIsNone(format_answer_value('TEXT_SHORT', 5))

    def test_multiple_choice_is_json_encoded(self):
        self.assertEqual(format_answer_value('MULTIPLE_CHOICE', ['X', 'Y']), TextValue('["X","Y"]'))
        self.assertEqual(format_answer_value('MULTIPLE_CHOICE', ['Ótimo']), TextValue('["Ótimo"]'))
        self.assertIsNone(format_answer_value('MULTIPLE_CHOICE', 'X'))

    def test_single_choice_and_comparison(self):
        self.assertEqual(format_answer_value('SINGLE_CHOICE', 'A'), SelectedOption('A'))
        self.assertEqual(format_answer_value('COMPARISON', 'Melhor'), SelectedOption('Melhor'))
        self.assertIsNone(format_answer_value('SINGLE_CHOICE', ['A']))

    def test_unknown_type(self):
        self.assertIsNone(format_answer_value('DATE', '2024-01-01'))

    def test_as_columns_nulls_other_columns(self):
        self.assertEqual(
            NumericValue(7).as_columns(),
            {'numeric_value': 7, 'text_value': None, 'selected_option': None}
        )
        self.assertEqual(
            SelectedOption('A').as_columns(),
            {'numeric_value': None, 'text_value': None, 'selected_option': 'A'}
        )

    def test_is_blank(self):
        self.assertTrue(is_blank(None))
        self.assertTrue(is_blank('  '))
        self.assertTrue(is_blank([]))
        self.assertFalse(is_blank(0))
        self.assertFalse(is_blank('x'))


class AnswerPersistenceTests(TestCase):
    """apply_answers and answer_values against the database"""

    def setUp(self):
        self.form = Form.objects.create(title='Pesquisa', status=Form.STATUS_PUBLISHED)
        self.nps = Question.objects.create(form=self.form, type='NPS', text='Recomendaria?', order=1)
        self.multi = Question.objects.create(
            form=self.form, type='MULTIPLE_CHOICE', text='Quais?', order=2, options=['X', 'Y', 'Z']
        )
        self.single = Question.objects.create(
            form=self.form, type='SINGLE_CHOICE', text='Qual?', order=3, options=['A', 'B']
        )
        self.questions = [self.nps, self.multi, self.single]
        self.response = Response.objects.create(form=self.form, token='t' * 64)

    def test_upsert_is_idempotent(self):
        apply_answers(self.response, self.questions, {str(self.nps.id): 9})
        apply_answers(self.response, self.questions, {str(self.nps.id): 10})

        answers = Answer.objects.filter(response=self.response, question=self.nps)
        self.assertEqual(answers.count(), 1)
        self.assertEqual(answers.get().numeric_value, 10)

    def test_multiple_choice_round_trip_and_clear(self):
        apply_answers(self.response, self.questions, {str(self.multi.id): ['X', 'Y']})
        answer = Answer.objects.get(response=self.response, question=self.multi)
        self.assertEqual(answer.text_value, '["X","Y"]')
        self.assertIsNone(answer.numeric_value)
        self.assertIsNone(answer.selected_option)
        self.assertEqual(answer_values(self.response)[str(self.multi.id)], ['X', 'Y'])

        apply_answers(self.response, self.questions, {str(self.multi.id): []})
        self.assertFalse(Answer.objects.filter(response=self.response, question=self.multi).exists())

    def test_clearing_missing_answer_is_a_no_op(self):
        outcome = apply_answers(self.response, self.questions, {str(self.single.id): '  '})
        self.assertIn(str(self.single.id), outcome['cleared'])
        self.assertEqual(Answer.objects.filter(response=self.response).count(), 0)

    def test_absent_questions_are_cleared(self):
        apply_answers(self.response, self.questions, {str(self.nps.id): 9, str(self.single.id): 'A'})
        apply_answers(self.response, self.questions, {str(self.nps.id): 9})
        self.assertEqual(set(answer_values(self.response)), {str(self.nps.id)})

    def test_malformed_value_is_skipped_not_deleted(self):
        apply_answers(self.response, self.questions, {str(self.nps.id): 7})
        outcome = apply_answers(self.response, self.questions, {str(self.nps.id): 'not a number'})

        self.assertEqual(outcome['skipped'], [str(self.nps.id)])
        self.assertEqual(Answer.objects.get(response=self.response, question=self.nps).numeric_value, 7)

    def test_long_single_choice_option_is_stored_whole(self):
        option = 'Outro motivo: ' + 'x' * 600
        apply_answers(self.response, self.questions, {str(self.single.id): option})

        answer = Answer.objects.get(response=self.response, question=self.single)
        self.assertEqual(answer.selected_option, option)
        self.assertIsNone(Answer._meta.get_field('selected_option').max_length)

    def test_answer_values_decodes_each_type(self):
        apply_answers(self.response, self.questions, {
            str(self.nps.id): '6',
            str(self.multi.id): ['Z'],
            str(self.single.id): 'B',
        })
        self.assertEqual(
            answer_values(self.response, self.questions),
            {str(self.nps.id): 6, str(self.multi.id): ['Z'], str(self.single.id): 'B'}
        )


@override_settings(SURVEY_INVALID_TOKEN_DELAY=(0, 0))
class SubmissionServiceTests(TestCase):
    """Whole-submission transaction: answers, progress and status"""

    def setUp(self):
        cache.clear()
        self.user = User.objects.create_user('admin@example.com', 'Vx9#mKq2!zLp')
        self.form = Form.objects.create(title='Pesquisa', status=Form.STATUS_PUBLISHED, creator=self.user)
        self.q1 = Question.objects.create(form=self.form, type='NPS', text='Recomendaria?', order=1)
        self.q2 = Question.objects.create(form=self.form, type='TEXT_LONG', text='Por quê?', order=2)
        self.q3 = Question.objects.create(form=self.form, type='COMPARISON', text='Comparado?', order=3)
        self.respondent = Respondent.objects.create(name='Dra. Ana', email='ana@example.com', type='MEDICO')
        self.response = Response.objects.create(form=self.form, respondent=self.respondent, token='a' * 64)

    def test_partial_save_updates_progress(self):
        response = SubmissionService.submit('a' * 64, {str(self.q1.id): 9}, completed=False)
        self.assertEqual(response.status, Response.STATUS_IN_PROGRESS)
        self.assertEqual(response.progress, 33)
        self.assertIsNone(response.completed_at)

    def test_completion_stamps_completed_at(self):
        response = SubmissionService.submit('a' * 64, {
            str(self.q1.id): 10,
            str(self.q2.id): 'Excelente atendimento',
            str(self.q3.id): 'Melhor',
        }, completed=True)

        self.assertEqual(response.status, Response.STATUS_COMPLETED)
        self.assertEqual(response.progress, 100)
        self.assertIsNotNone(response.completed_at)
        self.assertEqual(Answer.objects.filter(response=response).count(), 3)

    def test_completion_is_trusted_without_required_answers(self):
        self.q2.required = True
        self.q2.save()
        response = SubmissionService.submit('a' * 64, {str(self.q1.id): 3}, completed=True)
        self.assertEqual(response.status, Response.STATUS_COMPLETED)

    def test_completed_response_rejects_further_writes(self):
        SubmissionService.submit('a' * 64, {str(self.q1.id): 10}, completed=True)
        with self.assertRaises(AlreadyCompletedError):
            SubmissionService.submit('a' * 64, {str(self.q1.id): 0}, completed=False)
        self.assertEqual(Answer.objects.get(question=self.q1).numeric_value, 10)

    def test_write_guards(self):
        self.form.status = Form.STATUS_PAUSED
        self.form.save()
        with self.assertRaises(FormUnavailableError):
            SubmissionService.submit('a' * 64, {}, completed=False)

        self.form.status = Form.STATUS_PUBLISHED
        self.form.expires_at = self.form.created_at
        self.form.save()
        with self.assertRaises(FormExpiredError):
            SubmissionService.submit('a' * 64, {}, completed=False)

    def test_unknown_token(self):
        with self.assertRaises(InvalidTokenError):
            SubmissionService.submit('missing', {}, completed=False)

    def test_failure_rolls_back_everything(self):
        SubmissionService.submit('a' * 64, {str(self.q1.id): 5}, completed=False)

        original_save = Response.save

        def failing_save(instance, *args, **kwargs):
            raise RuntimeError('database unavailable')

        Response.save = failing_save
        try:
            with self.assertRaises(RuntimeError):
                SubmissionService.submit('a' * 64, {str(self.q1.id): 9, str(self.q2.id): 'Texto'}, completed=True)
        finally:
            Response.save = original_save

        self.assertEqual(Answer.objects.get(question=self.q1).numeric_value, 5)
        self.assertFalse(Answer.objects.filter(question=self.q2).exists())
        self.response.refresh_from_db()
        self.assertEqual(self.response.status, Response.STATUS_IN_PROGRESS)


@override_settings(SURVEY_INVALID_TOKEN_DELAY=(0, 0))
class UnknownTokenDelayTests(TransactionTestCase):
    """The unknown-token delay runs once the submission transaction is closed"""

    def test_delay_runs_outside_transaction(self):
        in_transaction = []

        def record_delay():
            in_transaction.append(connection.in_atomic_block)

        original_delay = services.delay_invalid_token
        services.delay_invalid_token = record_delay
        try:
            with self.assertRaises(InvalidTokenError):
                SubmissionService.submit('missing', {}, completed=False)
        finally:
            services.delay_invalid_token = original_delay

        self.assertEqual(in_transaction, [False])
