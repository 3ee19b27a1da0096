"""
API tests for the admin survey endpoints and the public token endpoint.
"""

from datetime import timedelta

from django.core.cache import cache
from django.test import override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from authentication.models import User
from surveys.models import Answer, Form, Question, Respondent, Response, SurveyMoment

STRONG_PASSWORD = 'Vx9#mKq2!zLp'


class SurveyApiTestCase(APITestCase):

    def setUp(self):
        cache.clear()
        self.admin = User.objects.create_user('admin@example.com', STRONG_PASSWORD, name='Admin', role='admin')
        self.viewer = User.objects.create_user('viewer@example.com', STRONG_PASSWORD, name='Viewer', role='viewer')
        self.client.force_authenticate(self.admin)

    def tearDown(self):
        cache.clear()


class FormApiTests(SurveyApiTestCase):

    def test_create_defaults_to_draft(self):
        response = self.client.post('/api/surveys/forms/', {
            'title': 'Pesquisa de satisfação',
            'type': 'MEDICOS',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'success')
        self.assertEqual(response.data['data']['status'], 'DRAFT')
        self.assertEqual(response.data['data']['creator_email'], 'admin@example.com')

    def test_create_rejects_short_title(self):
        response = self.client.post('/api/surveys/forms/', {'title': 'ab'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('title', response.data['data'])

    def test_list_is_paginated_and_filterable(self):
        Form.objects.create(title='Rascunho')
        Form.objects.create(title='Publicado', status=Form.STATUS_PUBLISHED)

        response = self.client.get('/api/surveys/forms/', {'status': 'PUBLISHED'})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['count'], 1)
        self.assertEqual(response.data['data']['results'][0]['title'], 'Publicado')

    def test_retrieve_includes_ordered_questions(self):
        form = Form.objects.create(title='Pesquisa')
        Question.objects.create(form=form, type='TEXT_LONG', text='Segunda', order=2)
        Question.objects.create(form=form, type='NPS', text='Primeira', order=1)

        response = self.client.get(f'/api/surveys/forms/{form.id}/')

        self.assertEqual([q['text'] for q in response.data['data']['questions']], ['Primeira', 'Segunda'])
        self.assertEqual(response.data['data']['question_count'], 2)

    def test_publish_and_delete(self):
        form = Form.objects.create(title='Pesquisa')

        response = self.client.patch(f'/api/surveys/forms/{form.id}/', {'status': 'PUBLISHED'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        form.refresh_from_db()
        self.assertEqual(form.status, Form.STATUS_PUBLISHED)

        response = self.client.delete(f'/api/surveys/forms/{form.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Form.objects.filter(pk=form.pk).exists())

    def test_viewer_is_read_only(self):
        form = Form.objects.create(title='Pesquisa')
        self.client.force_authenticate(self.viewer)

        self.assertEqual(self.client.get('/api/surveys/forms/').status_code, status.HTTP_200_OK)
        response = self.client.post('/api/surveys/forms/', {'title': 'Nova pesquisa'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        response = self.client.delete(f'/api/surveys/forms/{form.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_is_rejected(self):
        self.client.force_authenticate(None)
        response = self.client.get('/api/surveys/forms/')
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))


class QuestionApiTests(SurveyApiTestCase):

    def setUp(self):
        super().setUp()
        self.form = Form.objects.create(title='Pesquisa')

    def add_question(self, payload):
        return self.client.post(f'/api/surveys/forms/{self.form.id}/questions/', payload, format='json')

    def test_order_is_assigned_and_scale_defaults(self):
        first = self.add_question({'type': 'NPS', 'text': 'Recomendaria?'})
        second = self.add_question({'type': 'RATING_1_5', 'text': 'Nota do atendimento'})

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(first.data['data']['order'], 1)
        self.assertEqual((first.data['data']['scale_min'], first.data['data']['scale_max']), (0, 10))
        self.assertEqual(second.data['data']['order'], 2)
        self.assertEqual((second.data['data']['scale_min'], second.data['data']['scale_max']), (1, 5))

    def test_choice_questions_need_options(self):
        response = self.add_question({'type': 'MULTIPLE_CHOICE', 'text': 'Quais canais?'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('options', response.data['data'])

        response = self.add_question({'type': 'SINGLE_CHOICE', 'text': 'Qual canal?', 'options': ['A', 'A']})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_duplicate_order_rejected(self):
        self.add_question({'type': 'NPS', 'text': 'Recomendaria?', 'order': 1})
        response = self.add_question({'type': 'TEXT_LONG', 'text': 'Por quê?', 'order': 1})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('order', response.data['data'])

    def test_conditional_logic_must_reference_earlier_question(self):
        nps = self.add_question({'type': 'NPS', 'text': 'Recomendaria?'}).data['data']

        response = self.add_question({
            'type': 'TEXT_LONG',
            'text': 'O que podemos melhorar?',
            'conditional_logic': {'depends_on': nps['id'], 'condition': '<', 'value': 7},
        })
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['conditional_logic']['condition'], '<')

        response = self.add_question({
            'type': 'TEXT_LONG',
            'text': 'Outro comentário',
            'conditional_logic': {'depends_on': nps['id'], 'condition': '!=', 'value': 7},
        })
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('conditional_logic', response.data['data'])

    def test_update_and_delete_question(self):
        question = Question.objects.create(form=self.form, type='TEXT_SHORT', text='Uma palavra', order=1)

        response = self.client.patch(f'/api/surveys/questions/{question.id}/', {'required': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        question.refresh_from_db()
        self.assertTrue(question.required)

        response = self.client.delete(f'/api/surveys/questions/{question.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Question.objects.filter(pk=question.pk).exists())

    def add_dependent_pair(self):
        nps = Question.objects.create(form=self.form, type='NPS', text='Recomendaria?', order=1)
        follow_up = self.add_question({
            'type': 'TEXT_LONG',
            'text': 'O que podemos melhorar?',
            'order': 2,
            'conditional_logic': {'depends_on': str(nps.id).upper(), 'condition': '<', 'value': 7},
        }).data['data']
        return nps, Question.objects.get(pk=follow_up['id'])

    def test_dependency_reference_is_stored_canonically(self):
        nps, follow_up = self.add_dependent_pair()
        self.assertEqual(follow_up.conditional_logic['depends_on'], str(nps.id))

    def test_dependency_cannot_move_after_its_dependents(self):
        nps, follow_up = self.add_dependent_pair()

        for order in (5, 2):
            response = self.client.patch(f'/api/surveys/questions/{nps.id}/', {'order': order}, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, order)
            self.assertIn('order', response.data['data'])

        nps.refresh_from_db()
        self.assertEqual(nps.order, 1)

    def test_dependency_may_move_while_staying_earlier(self):
        nps, follow_up = self.add_dependent_pair()
        self.client.patch(f'/api/surveys/questions/{follow_up.id}/', {'order': 10}, format='json')

        response = self.client.patch(f'/api/surveys/questions/{nps.id}/', {'order': 5}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        nps.refresh_from_db()
        self.assertEqual(nps.order, 5)

    def test_dependency_cannot_be_deleted(self):
        nps, follow_up = self.add_dependent_pair()

        response = self.client.delete(f'/api/surveys/questions/{nps.id}/')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['data']['dependent_questions'], [str(follow_up.id)])
        self.assertTrue(Question.objects.filter(pk=nps.pk).exists())
        follow_up.refresh_from_db()
        self.assertEqual(follow_up.conditional_logic['depends_on'], str(nps.id))

        self.client.patch(f'/api/surveys/questions/{follow_up.id}/', {'conditional_logic': None}, format='json')
        response = self.client.delete(f'/api/surveys/questions/{nps.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Question.objects.filter(pk=nps.pk).exists())


class RespondentApiTests(SurveyApiTestCase):

    def test_create_normalises_email_and_state(self):
        response = self.client.post('/api/surveys/respondents/', {
            'name': 'Dra. Ana Souza',
            'email': 'Ana@Example.com',
            'type': 'MEDICO',
            'state': 'sp',
            'consent': True,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['email'], 'ana@example.com')
        self.assertEqual(response.data['data']['state'], 'SP')
        self.assertIsNotNone(response.data['data']['consent_at'])

    def test_duplicate_email_is_case_insensitive(self):
        Respondent.objects.create(name='Ana', email='ana@example.com', type='MEDICO')
        response = self.client.post('/api/surveys/respondents/', {
            'name': 'Ana Souza', 'email': 'ANA@example.com', 'type': 'MEDICO'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data['data'])

    def test_import_reports_each_row(self):
        Respondent.objects.create(name='Existente', email='old@example.com', type='MEDICO')

        response = self.client.post('/api/surveys/respondents/import/', {'respondents': [
            {'name': 'Distribuidora Norte', 'email': 'norte@example.com', 'type': 'DISTRIBUIDOR'},
            {'name': 'Existente', 'email': 'OLD@example.com', 'type': 'MEDICO'},
            {'name': 'Sem email', 'type': 'MEDICO'},
        ]}, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual((data['success'], data['duplicate'], data['error']), (1, 1, 1))
        self.assertEqual([row['status'] for row in data['results']], ['success', 'duplicate', 'error'])
        self.assertTrue(Respondent.objects.filter(email='norte@example.com').exists())


class DistributionApiTests(SurveyApiTestCase):

    def setUp(self):
        super().setUp()
        self.form = Form.objects.create(title='Pesquisa', status=Form.STATUS_PUBLISHED)
        self.ana = Respondent.objects.create(name='Ana', email='ana@example.com', type='MEDICO')

    @override_settings(PUBLIC_BASE_URL='https://pesquisa.example.com')
    def test_distribute_reuses_existing_links(self):
        url = f'/api/surveys/forms/{self.form.id}/distribute/'
        first = self.client.post(url, {'respondent_ids': [str(self.ana.id)]}, format='json')
        second = self.client.post(url, {'respondent_ids': [str(self.ana.id)]}, format='json')

        self.assertEqual(first.status_code, status.HTTP_200_OK)
        link = first.data['data']['results'][0]
        self.assertEqual(len(link['token']), 64)
        self.assertEqual(link['url'], f"https://pesquisa.example.com/r/{link['token']}")
        self.assertEqual(second.data['data']['results'][0]['token'], link['token'])
        self.assertEqual(Response.objects.filter(form=self.form).count(), 1)

    def test_unknown_respondents_are_reported(self):
        response = self.client.post(f'/api/surveys/forms/{self.form.id}/distribute/', {
            'respondent_ids': [str(self.ana.id), '00000000-0000-0000-0000-000000000000']
        }, format='json')
        self.assertEqual(response.data['data']['success_count'], 1)
        self.assertEqual(response.data['data']['error_count'], 1)

    def test_share_link_requires_published_form(self):
        response = self.client.post(f'/api/surveys/forms/{self.form.id}/share/')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['data']['token']), 32)
        self.assertIsNone(response.data['data']['respondent'])

        draft = Form.objects.create(title='Rascunho')
        response = self.client.post(f'/api/surveys/forms/{draft.id}/share/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_form_responses_filter_by_status(self):
        Response.objects.create(form=self.form, token='p' * 64)
        Response.objects.create(
            form=self.form, token='q' * 64, status=Response.STATUS_COMPLETED, completed_at=timezone.now()
        )

        response = self.client.get(f'/api/surveys/forms/{self.form.id}/responses/', {'status': 'COMPLETED'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['count'], 1)

        response = self.client.get(f'/api/surveys/forms/{self.form.id}/responses/', {'status': 'DONE'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


@override_settings(SURVEY_INVALID_TOKEN_DELAY=(0, 0))
class PublicResponseApiTests(SurveyApiTestCase):
    """Token link flow as seen by a respondent"""

    def setUp(self):
        super().setUp()
        self.client.force_authenticate(None)
        self.form = Form.objects.create(title='Pesquisa médicos', status=Form.STATUS_PUBLISHED)
        self.nps = Question.objects.create(form=self.form, type='NPS', text='Recomendaria?', order=1)
        self.why = Question.objects.create(
            form=self.form, type='TEXT_LONG', text='O que podemos melhorar?', order=2,
            conditional_logic={'depends_on': str(self.nps.id), 'condition': '<', 'value': 7}
        )
        self.channels = Question.objects.create(
            form=self.form, type='MULTIPLE_CHOICE', text='Canais', order=3, options=['Email', 'Telefone']
        )
        self.respondent = Respondent.objects.create(name='Dr. Paulo', email='paulo@example.com', type='MEDICO')
        self.token = 'a' * 64
        self.response = Response.objects.create(form=self.form, respondent=self.respondent, token=self.token)
        self.url = f'/api/surveys/r/{self.token}/'

    def test_get_returns_form_and_progress(self):
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['response_id'], str(self.response.id))
        self.assertEqual(len(data['form']['questions']), 3)
        self.assertEqual(data['respondent'], {'name': 'Dr. Paulo', 'email': 'paulo@example.com'})
        self.assertEqual(data['progress'], {})
        self.assertEqual(data['progress_percent'], 0)
        self.assertEqual(data['required_question_ids'], [])

    def test_save_then_resume(self):
        response = self.client.post(self.url, {
            'answers': {str(self.nps.id): 5, str(self.channels.id): ['Email']},
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Progress saved')
        self.assertEqual(response.data['data']['status'], 'IN_PROGRESS')
        self.assertEqual(response.data['data']['progress'], 67)

        data = self.client.get(self.url).data['data']
        self.assertEqual(data['progress'], {str(self.nps.id): 5, str(self.channels.id): ['Email']})
        self.assertEqual(data['required_question_ids'], [str(self.why.id)])

    def test_complete_then_reject_further_access(self):
        response = self.client.post(self.url, {
            'answers': {str(self.nps.id): 9},
            'completed': True,
        }, format='json')
        self.assertEqual(response.data['message'], 'Responses submitted')
        self.assertEqual(response.data['data']['status'], 'COMPLETED')
        self.assertIsNotNone(response.data['data']['completed_at'])

        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(response.data['data']['completed'])

        response = self.client.post(self.url, {'answers': {str(self.nps.id): 0}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(Answer.objects.get(question=self.nps).numeric_value, 9)

    def test_invalid_token(self):
        response = self.client.get('/api/surveys/r/unknown/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['status'], 'error')
        self.assertEqual(response.data['message'], 'Invalid or expired link')

        response = self.client.post('/api/surveys/r/unknown/', {'answers': {}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_expired_and_unpublished(self):
        self.form.status = Form.STATUS_PAUSED
        self.form.save()
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_403_FORBIDDEN)

        self.form.expires_at = timezone.now() - timedelta(hours=1)
        self.form.save()
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_410_GONE)

    def test_capacity_reached_hides_questions(self):
        self.form.max_responses = 2
        self.form.save()
        for token in ('x' * 64, 'y' * 64):
            Response.objects.create(
                form=self.form, token=token, status=Response.STATUS_COMPLETED, completed_at=timezone.now()
            )

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['data'], {'code': 'form_capacity_reached'})

    def test_malformed_body(self):
        response = self.client.post(self.url, {'answers': ['not', 'a', 'map']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @override_settings(SURVEY_TOKEN_RATE_LIMIT=2, SURVEY_TOKEN_RATE_WINDOW=60)
    def test_token_reads_are_rate_limited(self):
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_200_OK)

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)
        self.assertIn('reset_at', response.data['data'])

    @override_settings(SURVEY_SUBMIT_RATE_LIMIT=1, SURVEY_SUBMIT_RATE_WINDOW=60)
    def test_limits_are_per_client(self):
        self.client.post(self.url, {'answers': {}}, format='json', REMOTE_ADDR='10.0.0.1')
        response = self.client.post(self.url, {'answers': {}}, format='json', REMOTE_ADDR='10.0.0.1')
        self.assertEqual(response.status_code, status.HTTP_429_TOO_MANY_REQUESTS)

        response = self.client.post(self.url, {'answers': {}}, format='json', REMOTE_ADDR='10.0.0.2')
        self.assertEqual(response.status_code, status.HTTP_200_OK)


class ResponseApiTests(SurveyApiTestCase):

    def test_detail_includes_decoded_answers(self):
        form = Form.objects.create(title='Pesquisa', status=Form.STATUS_PUBLISHED)
        nps = Question.objects.create(form=form, type='NPS', text='Recomendaria?', order=1)
        multi = Question.objects.create(form=form, type='MULTIPLE_CHOICE', text='Canais', order=2, options=['A', 'B'])
        survey_response = Response.objects.create(form=form, token='z' * 64)
        Answer.objects.create(response=survey_response, question=multi, text_value='["A","B"]')
        Answer.objects.create(response=survey_response, question=nps, numeric_value=8)

        response = self.client.get(f'/api/surveys/responses/{survey_response.id}/')

        answers = response.data['data']['answers']
        self.assertEqual([a['value'] for a in answers], [8, ['A', 'B']])


class SurveyMomentApiTests(SurveyApiTestCase):

    def setUp(self):
        super().setUp()
        self.super_admin = User.objects.create_user(
            'root@example.com', STRONG_PASSWORD, name='Root', role='super_admin'
        )
        self.satisfaction = SurveyMoment.objects.create(
            name='Satisfação pós-mercado', slug='satisfacao-pos-mercado', order=1
        )
        self.training = SurveyMoment.objects.create(
            name='Treinamento cadaver lab', slug='treinamento-cadaver-lab', order=2
        )
        self.events = SurveyMoment.objects.create(name='Eventos', slug='eventos', order=3)
        self.form = Form.objects.create(title='Pesquisa')

    def test_list_is_ordered_and_hides_archived(self):
        SurveyMoment.objects.create(name='Antigo', slug='antigo', order=0, is_active=False)
        self.form.moment = self.training
        self.form.save()
        self.client.force_authenticate(self.viewer)

        response = self.client.get('/api/surveys/survey-moments/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual([m['slug'] for m in data], ['satisfacao-pos-mercado', 'treinamento-cadaver-lab', 'eventos'])
        self.assertEqual(data[1]['form_count'], 1)

        response = self.client.get('/api/surveys/survey-moments/', {'include_inactive': 'true'})
        self.assertEqual(len(response.data['data']), 4)

    def test_only_super_admins_write(self):
        payload = {'name': 'Pós-venda', 'slug': 'pos-venda', 'color': '#1D4ED8', 'icon': 'BarChart3'}

        response = self.client.post('/api/surveys/survey-moments/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.super_admin)
        response = self.client.post('/api/surveys/survey-moments/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['order'], 4)
        self.assertTrue(response.data['data']['is_active'])

    def test_slug_and_color_validation(self):
        self.client.force_authenticate(self.super_admin)

        for payload in (
            {'name': 'Pós-venda', 'slug': 'Pos Venda'},
            {'name': 'Pós-venda', 'slug': 'eventos'},
            {'name': 'Pós-venda', 'slug': 'pos-venda', 'color': 'blue'},
            {'name': 'PV', 'slug': 'pos-venda'},
        ):
            response = self.client.post('/api/surveys/survey-moments/', payload, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, payload)

        response = self.client.patch(
            f'/api/surveys/survey-moments/{self.events.id}/', {'slug': 'congressos'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('slug', response.data['data'])

    def test_delete_archives_and_keeps_forms(self):
        self.form.moment = self.events
        self.form.save()
        self.client.force_authenticate(self.super_admin)

        response = self.client.delete(f'/api/surveys/survey-moments/{self.events.id}/')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['forms_affected'], 1)
        self.events.refresh_from_db()
        self.assertFalse(self.events.is_active)
        self.form.refresh_from_db()
        self.assertEqual(self.form.moment, self.events)

    def test_reorder_shifts_moments_in_between(self):
        self.client.force_authenticate(self.super_admin)

        response = self.client.post('/api/surveys/survey-moments/reorder/', {
            'moment_id': str(self.events.id),
            'new_order': 1,
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [(m['slug'], m['order']) for m in response.data['data']],
            [('eventos', 1), ('satisfacao-pos-mercado', 2), ('treinamento-cadaver-lab', 3)]
        )

        self.client.post('/api/surveys/survey-moments/reorder/', {
            'moment_id': str(self.events.id),
            'new_order': 3,
        }, format='json')
        self.assertEqual(
            list(SurveyMoment.objects.values_list('slug', flat=True)),
            ['satisfacao-pos-mercado', 'treinamento-cadaver-lab', 'eventos']
        )

    def test_reorder_requires_super_admin_and_known_moment(self):
        payload = {'moment_id': str(self.events.id), 'new_order': 1}
        response = self.client.post('/api/surveys/survey-moments/reorder/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.super_admin)
        response = self.client.post('/api/surveys/survey-moments/reorder/', {
            'moment_id': '00000000-0000-0000-0000-000000000000',
            'new_order': 1,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_change_moment(self):
        url = f'/api/surveys/forms/{self.form.id}/change-moment/'

        response = self.client.patch(url, {'moment_id': str(self.training.id)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.super_admin)
        response = self.client.patch(url, {'moment_id': str(self.training.id)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['moment_name'], 'Treinamento cadaver lab')
        self.form.refresh_from_db()
        self.assertEqual(self.form.moment, self.training)

        response = self.client.patch(url, {'moment_id': None}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.form.refresh_from_db()
        self.assertIsNone(self.form.moment)

    def test_change_moment_rejects_unknown_and_archived(self):
        self.client.force_authenticate(self.super_admin)
        url = f'/api/surveys/forms/{self.form.id}/change-moment/'

        response = self.client.patch(url, {'moment_id': '00000000-0000-0000-0000-000000000000'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        self.events.is_active = False
        self.events.save()
        response = self.client.patch(url, {'moment_id': str(self.events.id)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.patch(url, {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_form_moment_is_set_on_create_only(self):
        response = self.client.post('/api/surveys/forms/', {
            'title': 'Pesquisa de treinamento',
            'moment': str(self.training.id),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['moment'], self.training.id)

        form_id = response.data['data']['id']
        response = self.client.patch(f'/api/surveys/forms/{form_id}/', {'moment': str(self.events.id)}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('moment', response.data['data'])


class DashboardApiTests(SurveyApiTestCase):

    def test_dashboard_overview(self):
        self.client.force_authenticate(self.viewer)
        response = self.client.get('/api/surveys/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('overview', response.data['data'])
        self.assertEqual(response.data['data']['forms'], [])
        self.assertEqual(response.data['data']['moments'], [])
        self.assertEqual(response.data['data']['forms_without_moment'], [])

    def test_invalid_filters(self):
        self.assertEqual(
            self.client.get('/api/surveys/dashboard/', {'form': 'abc'}).status_code,
            status.HTTP_400_BAD_REQUEST
        )
        self.assertEqual(
            self.client.get('/api/surveys/dashboard/', {'start': 'yesterday'}).status_code,
            status.HTTP_400_BAD_REQUEST
        )
        self.assertEqual(
            self.client.get('/api/surveys/dashboard/', {'form': '00000000-0000-0000-0000-000000000000'}).status_code,
            status.HTTP_404_NOT_FOUND
        )

    def test_text_feedback_sentiment_validation(self):
        self.assertEqual(
            self.client.get('/api/surveys/dashboard/text-feedback/', {'sentiment': 'positive'}).status_code,
            status.HTTP_200_OK
        )
        self.assertEqual(
            self.client.get('/api/surveys/dashboard/text-feedback/', {'sentiment': 'angry'}).status_code,
            status.HTTP_400_BAD_REQUEST
        )
