"""
Tests for NPS metrics, dashboard aggregation, text feedback and rate limiting.
"""

from datetime import datetime

from django.core.cache import cache
from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from surveys.analytics import build_dashboard, parse_date_bound
from surveys.answers import apply_answers
from surveys.metrics import calculate_nps, nps_distribution, nps_interpretation, percentage
from surveys.models import Form, Question, Respondent, Response, SurveyMoment
from surveys.rate_limiting import (
    FixedWindowRateLimiter, RateLimitPolicy, check_rate_limit, get_rate_limit_info
)
from surveys.text_analysis import (
    SENTIMENT_NEGATIVE, SENTIMENT_NEUTRAL, SENTIMENT_POSITIVE,
    build_text_feedback, classify_sentiment, group_identical, matches_sentiment, word_frequency
)


class NpsMetricsTests(SimpleTestCase):

    def test_promoters_minus_detractors(self):
        result = calculate_nps([9, 9, 9, 9, 9, 9, 10, 10, 2, 2])
        self.assertEqual(result['score'], 60)
        self.assertEqual(result['promoters'], 8)
        self.assertEqual(result['detractors'], 2)
        self.assertEqual(result['passives'], 0)
        self.assertEqual(result['promoters_pct'], 80.0)

    def test_passives_only_dilute(self):
        result = calculate_nps([10, 7, 8, 6])
        self.assertEqual(result['score'], 0)
        self.assertEqual(result['passives'], 2)
        self.assertEqual(result['total'], 4)

    def test_rounding_of_halves(self):
        # 1 promoter, 0 detractors, 7 passives: 12.5
        self.assertEqual(calculate_nps([9] + [7] * 7)['score'], 13)
        # 0 promoters, 1 detractor, 39 passives: -2.5
        self.assertEqual(calculate_nps([0] + [8] * 39)['score'], -2)

    def test_bounds(self):
        self.assertEqual(calculate_nps([10, 10])['score'], 100)
        self.assertEqual(calculate_nps([0, 6])['score'], -100)

    def test_empty_and_out_of_range(self):
        self.assertIsNone(calculate_nps([])['score'])
        result = calculate_nps([11, -1, None, 10])
        self.assertEqual(result['total'], 1)
        self.assertEqual(result['score'], 100)

    def test_distribution_covers_whole_scale(self):
        distribution = nps_distribution([1, 5, 5], 1, 5)
        self.assertEqual([d['score'] for d in distribution], [1, 2, 3, 4, 5])
        self.assertEqual(distribution[4], {'score': 5, 'count': 2, 'pct': 66.7})
        self.assertEqual(distribution[1]['pct'], 0.0)

    def test_percentage(self):
        self.assertEqual(percentage(1, 3), 33.3)
        self.assertEqual(percentage(2, 3), 66.7)
        self.assertEqual(percentage(1, 0), 0.0)

    def test_interpretation(self):
        self.assertEqual(nps_interpretation(None)['label'], 'No data')
        self.assertEqual(nps_interpretation(75)['label'], 'Excellent')
        self.assertEqual(nps_interpretation(50)['label'], 'Very good')
        self.assertEqual(nps_interpretation(0)['label'], 'Reasonable')
        self.assertEqual(nps_interpretation(-1)['label'], 'Critical')


class DateBoundTests(SimpleTestCase):

    def test_date_only_end_covers_the_day(self):
        end = parse_date_bound('2024-05-01', end=True)
        self.assertEqual((end.hour, end.minute, end.second, end.microsecond), (23, 59, 59, 999999))
        self.assertTrue(timezone.is_aware(end))

    def test_start_is_midnight(self):
        start = parse_date_bound('2024-05-01')
        self.assertEqual((start.year, start.month, start.day, start.hour), (2024, 5, 1, 0))

    def test_datetime_values_are_kept(self):
        value = parse_date_bound('2024-05-01T10:30:00+00:00', end=True)
        self.assertEqual(value.hour, 10)

    def test_empty_and_invalid(self):
        self.assertIsNone(parse_date_bound(''))
        self.assertIsNone(parse_date_bound(None))
        with self.assertRaises(ValueError):
            parse_date_bound('yesterday')


def complete(form, token, values, questions, respondent=None, completed_at=None):
    response = Response.objects.create(form=form, respondent=respondent, token=token)
    apply_answers(response, questions, values)
    response.status = Response.STATUS_COMPLETED
    response.completed_at = completed_at or timezone.now()
    response.progress = 100
    response.save()
    return response


class DashboardTests(TestCase):
    """Aggregation over completed responses"""

    def setUp(self):
        self.beta = Form.objects.create(title='beta', status=Form.STATUS_PUBLISHED)
        self.alpha = Form.objects.create(title='Alpha', status=Form.STATUS_CLOSED)
        self.empty = Form.objects.create(title='Sem respostas', status=Form.STATUS_PUBLISHED)

        self.nps = Question.objects.create(form=self.beta, type='NPS', text='Recomendaria?', order=1)
        self.comparison = Question.objects.create(form=self.beta, type='COMPARISON', text='Comparado?', order=2)
        self.multi = Question.objects.create(
            form=self.beta, type='MULTIPLE_CHOICE', text='Quais canais?', order=3, options=['Email', 'Telefone']
        )
        self.comment = Question.objects.create(form=self.beta, type='TEXT_LONG', text='Comentários', order=4)
        self.unused = Question.objects.create(form=self.beta, type='RATING_1_5', text='Nota', order=5)
        self.beta_questions = [self.nps, self.comparison, self.multi, self.comment, self.unused]

        self.rating = Question.objects.create(form=self.alpha, type='RATING_1_5', text='Atendimento', order=1)
        Question.objects.create(form=self.empty, type='NPS', text='Recomendaria?', order=1)

    def test_ten_answers_score_sixty(self):
        for index, value in enumerate([9, 9, 9, 9, 9, 9, 10, 10, 2, 2]):
            complete(self.beta, f'nps{index}', {str(self.nps.id): value}, self.beta_questions)

        dashboard = build_dashboard()

        self.assertEqual(dashboard['overview']['nps']['score'], 60)
        self.assertEqual(dashboard['overview']['interpretation']['label'], 'Very good')
        self.assertEqual(dashboard['overview']['total_responses'], 10)
        question = dashboard['forms'][0]['questions'][0]
        self.assertEqual(question['nps']['score'], 60)
        self.assertEqual(question['average'], 7.8)
        self.assertEqual(len(question['distribution']), 11)

    def test_forms_sorted_by_title_and_empty_forms_dropped(self):
        complete(self.beta, 'r1', {str(self.nps.id): 10}, self.beta_questions)
        complete(self.alpha, 'r2', {str(self.rating.id): 4}, [self.rating])

        dashboard = build_dashboard()

        self.assertEqual([f['title'] for f in dashboard['forms']], ['Alpha', 'beta'])
        self.assertEqual(dashboard['overview']['total_forms'], 3)
        self.assertEqual(dashboard['overview']['active_forms'], 2)
        alpha = dashboard['forms'][0]
        self.assertEqual(alpha['questions'][0]['distribution'][3], {'score': 4, 'count': 1, 'pct': 100.0})
        self.assertNotIn('nps', alpha['questions'][0])

    def test_unanswered_and_text_questions_are_dropped(self):
        complete(self.beta, 'r1', {
            str(self.nps.id): 7,
            str(self.comment.id): 'Muito bom',
        }, self.beta_questions)

        questions = build_dashboard()['forms'][0]['questions']
        self.assertEqual([q['id'] for q in questions], [str(self.nps.id)])

    def test_option_buckets(self):
        complete(self.beta, 'r1', {
            str(self.comparison.id): 'Melhor',
            str(self.multi.id): ['Email', 'WhatsApp'],
        }, self.beta_questions)
        complete(self.beta, 'r2', {
            str(self.comparison.id): 'Melhor',
            str(self.multi.id): ['Email'],
        }, self.beta_questions)

        questions = {q['id']: q for q in build_dashboard()['forms'][0]['questions']}

        comparison = questions[str(self.comparison.id)]['distribution']
        self.assertEqual([d['option'] for d in comparison], ['Pior', 'Igual', 'Melhor'])
        self.assertEqual(comparison[2], {'option': 'Melhor', 'count': 2, 'pct': 100.0})

        multi = questions[str(self.multi.id)]
        self.assertEqual(multi['total_responses'], 2)
        self.assertEqual(
            [(d['option'], d['count']) for d in multi['distribution']],
            [('Email', 2), ('Telefone', 0), ('WhatsApp', 1)]
        )
        self.assertEqual(multi['distribution'][0]['pct'], 100.0)

    def test_in_progress_responses_are_ignored(self):
        response = Response.objects.create(form=self.beta, token='open')
        apply_answers(response, self.beta_questions, {str(self.nps.id): 0})

        dashboard = build_dashboard()
        self.assertEqual(dashboard['forms'], [])
        self.assertIsNone(dashboard['overview']['nps']['score'])
        self.assertEqual(dashboard['overview']['interpretation']['label'], 'No data')

    def test_form_and_date_filters(self):
        old = timezone.make_aware(datetime(2024, 1, 10, 12, 0))
        recent = timezone.make_aware(datetime(2024, 3, 10, 12, 0))
        complete(self.beta, 'old', {str(self.nps.id): 0}, self.beta_questions, completed_at=old)
        complete(self.beta, 'new', {str(self.nps.id): 10}, self.beta_questions, completed_at=recent)
        complete(self.alpha, 'a', {str(self.rating.id): 5}, [self.rating], completed_at=recent)

        dashboard = build_dashboard(
            form_id=self.beta.id,
            start=parse_date_bound('2024-03-01'),
            end=parse_date_bound('2024-03-10', end=True),
        )

        self.assertEqual([f['title'] for f in dashboard['forms']], ['beta'])
        self.assertEqual(dashboard['overview']['nps']['score'], 100)
        self.assertEqual(dashboard['overview']['total_forms'], 1)
        self.assertEqual(dashboard['forms'][0]['total_responses'], 1)

    def test_forms_grouped_by_moment(self):
        training = SurveyMoment.objects.create(name='Cadaver lab', slug='treinamento-cadaver-lab', order=2)
        satisfaction = SurveyMoment.objects.create(name='Pós-mercado', slug='satisfacao-pos-mercado', order=1)
        archived = SurveyMoment.objects.create(name='Antigo', slug='antigo', order=3, is_active=False)
        self.beta.moment = satisfaction
        self.beta.save()
        self.empty.moment = satisfaction
        self.empty.save()
        self.alpha.moment = archived
        self.alpha.save()
        complete(self.beta, 'r1', {str(self.nps.id): 10}, self.beta_questions)
        complete(self.beta, 'r2', {str(self.nps.id): 9}, self.beta_questions)
        complete(self.alpha, 'r3', {str(self.rating.id): 4}, [self.rating])

        dashboard = build_dashboard()

        moments = dashboard['moments']
        self.assertEqual([m['slug'] for m in moments], ['satisfacao-pos-mercado', 'treinamento-cadaver-lab'])
        self.assertEqual(moments[0]['total_forms'], 2)
        self.assertEqual(moments[0]['total_responses'], 2)
        self.assertEqual([f['title'] for f in moments[0]['forms']], ['beta'])
        self.assertEqual(moments[0]['forms'][0]['moment_id'], str(satisfaction.id))
        self.assertEqual((moments[1]['total_forms'], moments[1]['forms']), (0, []))
        self.assertEqual([f['title'] for f in dashboard['forms_without_moment']], ['Alpha'])
        self.assertEqual([f['title'] for f in dashboard['forms']], ['Alpha', 'beta'])


class SentimentTests(SimpleTestCase):

    def test_classification(self):
        self.assertEqual(classify_sentiment('Atendimento excelente'), SENTIMENT_POSITIVE)
        self.assertEqual(classify_sentiment('Entrega com ATRASO'), SENTIMENT_NEGATIVE)
        self.assertEqual(classify_sentiment('Produto bom mas entrega ruim'), SENTIMENT_NEUTRAL)
        self.assertEqual(classify_sentiment('Sem comentários'), SENTIMENT_NEUTRAL)

    def test_mixed_text_matches_both_filters(self):
        text = 'Produto bom mas entrega ruim'
        self.assertTrue(matches_sentiment(text, SENTIMENT_POSITIVE))
        self.assertTrue(matches_sentiment(text, SENTIMENT_NEGATIVE))
        self.assertFalse(matches_sentiment(text, SENTIMENT_NEUTRAL))
        self.assertTrue(matches_sentiment('Nada a declarar', SENTIMENT_NEUTRAL))

    def test_word_frequency(self):
        words = word_frequency(['Entrega rápida, entrega boa!', 'A entrega de um produto'])
        self.assertEqual(words[0], {'word': 'entrega', 'count': 3})
        found = {w['word'] for w in words}
        self.assertNotIn('de', found)
        self.assertNotIn('um', found)
        self.assertIn('rápida', found)

    def test_group_identical(self):
        self.assertEqual(
            group_identical(['Ótimo', ' ótimo ', 'Bom']),
            [{'text': 'ótimo', 'count': 2}, {'text': 'bom', 'count': 1}]
        )


class TextFeedbackTests(TestCase):

    def setUp(self):
        self.form = Form.objects.create(title='Distribuidores', status=Form.STATUS_PUBLISHED)
        self.short = Question.objects.create(form=self.form, type='TEXT_SHORT', text='Uma palavra', order=1)
        self.long = Question.objects.create(form=self.form, type='TEXT_LONG', text='Comentários', order=2)
        self.questions = [self.short, self.long]
        self.respondent = Respondent.objects.create(
            name='Distribuidora Sul', email='sul@example.com', type='DISTRIBUIDOR', category='A'
        )
        complete(self.form, 't1', {
            str(self.short.id): 'Excelente',
            str(self.long.id): 'Entrega com atraso',
        }, self.questions, respondent=self.respondent)
        complete(self.form, 't2', {str(self.short.id): 'excelente'}, self.questions)

    def test_payload_shape(self):
        feedback = build_text_feedback()
        self.assertEqual([item['id'] for item in feedback], [str(self.short.id), str(self.long.id)])

        short = feedback[0]
        self.assertEqual(short['total_responses'], 2)
        self.assertEqual(short['grouped_responses'], [{'text': 'excelente', 'count': 2}])
        self.assertEqual(short['word_frequency'], [{'word': 'excelente', 'count': 2}])

        long = feedback[1]
        self.assertNotIn('word_frequency', long)
        self.assertEqual(long['responses'][0]['sentiment'], SENTIMENT_NEGATIVE)
        self.assertEqual(long['responses'][0]['respondent']['name'], 'Distribuidora Sul')

    def test_filters_drop_empty_questions(self):
        feedback = build_text_feedback(sentiment=SENTIMENT_NEGATIVE)
        self.assertEqual([item['id'] for item in feedback], [str(self.long.id)])

        feedback = build_text_feedback(search='EXCEL')
        self.assertEqual([item['id'] for item in feedback], [str(self.short.id)])

    def test_only_published_forms_and_completed_responses(self):
        open_response = Response.objects.create(form=self.form, token='open')
        apply_answers(open_response, self.questions, {str(self.long.id): 'Péssimo'})
        self.assertEqual(len(build_text_feedback()[1]['responses']), 1)

        self.form.status = Form.STATUS_CLOSED
        self.form.save()
        self.assertEqual(build_text_feedback(), [])


class FixedWindowRateLimiterTests(SimpleTestCase):

    def setUp(self):
        cache.clear()
        self.policy = RateLimitPolicy('test', 3, 60)

    def tearDown(self):
        cache.clear()

    def test_limit_within_window(self):
        results = [check_rate_limit('10.0.0.1', self.policy, now=1000) for _ in range(4)]

        self.assertEqual([r.allowed for r in results], [True, True, True, False])
        self.assertEqual([r.remaining for r in results], [2, 1, 0, 0])
        self.assertEqual(results[0].reset_at, 1020)

    def test_new_window_resets_count(self):
        for _ in range(4):
            check_rate_limit('10.0.0.1', self.policy, now=1000)
        self.assertTrue(check_rate_limit('10.0.0.1', self.policy, now=1020).allowed)

    def test_identities_are_independent(self):
        for _ in range(3):
            check_rate_limit('10.0.0.1', self.policy, now=1000)
        self.assertTrue(check_rate_limit('10.0.0.2', self.policy, now=1000).allowed)

    def test_info_and_reset(self):
        check_rate_limit('10.0.0.1', self.policy, now=1000)
        info = get_rate_limit_info('10.0.0.1', self.policy, now=1010)
        self.assertEqual(info['current'], 1)
        self.assertEqual(info['remaining'], 2)
        self.assertEqual(info['reset_at'], 1020)

        FixedWindowRateLimiter('10.0.0.1', self.policy, now=1010).reset()
        self.assertEqual(get_rate_limit_info('10.0.0.1', self.policy, now=1010)['current'], 0)

    def test_injected_store(self):
        from django.core.cache.backends.locmem import LocMemCache

        store = LocMemCache('rate-test', {})
        for _ in range(3):
            check_rate_limit('10.0.0.1', self.policy, now=1000, store=store)
        self.assertFalse(check_rate_limit('10.0.0.1', self.policy, now=1000, store=store).allowed)
        self.assertTrue(check_rate_limit('10.0.0.1', self.policy, now=1000).allowed)
