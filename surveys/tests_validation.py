"""
Test cases for respondent and question validation.

Covers phone and state formats, option lists per question type and
conditional logic references.
"""

from django.test import TestCase
from surveys.models import Form, Question
from surveys.validators import (
    validate_phone, validate_state,
    validate_question_options, validate_conditional_logic
)


class PhoneValidationTests(TestCase):
    """Test phone number validation"""

    def test_valid_phones(self):
        """Test valid phone numbers"""
        valid_phones = [
            '+5511987654321',
            '5511987654321',
            '(11) 98765-4321',
            '11 98765 4321',
            '3333-4444'
        ]
        for phone in valid_phones:
            is_valid, error = validate_phone(phone)
            self.assertTrue(is_valid, f"{phone} should be valid")
            self.assertIsNone(error)

    def test_invalid_phones(self):
        """Test invalid phone numbers"""
        invalid_phones = [
            'abc',
            '123',  # Too short
            '1234567890123456',  # Too long
            '11+987654321'
        ]
        for phone in invalid_phones:
            is_valid, error = validate_phone(phone)
            self.assertFalse(is_valid, f"{phone} should be invalid")
            self.assertIsNotNone(error)

    def test_empty_phone(self):
        """Phone is optional"""
        self.assertEqual(validate_phone(''), (True, None))
        self.assertEqual(validate_phone(None), (True, None))


class StateValidationTests(TestCase):

    def test_states(self):
        for state in ('SP', 'rj', ' MG ', ''):
            self.assertTrue(validate_state(state)[0], state)
        for state in ('SAO', 'S', '12'):
            self.assertFalse(validate_state(state)[0], state)


class QuestionOptionsValidationTests(TestCase):
    """Option lists per question type"""

    def test_choice_questions_require_options(self):
        for question_type in (Question.TYPE_MULTIPLE_CHOICE, Question.TYPE_SINGLE_CHOICE):
            is_valid, error = validate_question_options(question_type, [])
            self.assertFalse(is_valid)
            self.assertEqual(error, "Choice questions require at least one option")
            self.assertTrue(validate_question_options(question_type, ['A', 'B'])[0])

    def test_comparison_may_use_default_scale(self):
        self.assertTrue(validate_question_options(Question.TYPE_COMPARISON, None)[0])
        self.assertTrue(validate_question_options(Question.TYPE_COMPARISON, ['Pior', 'Melhor'])[0])

    def test_other_types_take_no_options(self):
        is_valid, error = validate_question_options(Question.TYPE_NPS, ['A'])
        self.assertFalse(is_valid)
        self.assertEqual(error, "NPS questions do not take options")
        self.assertTrue(validate_question_options(Question.TYPE_TEXT_LONG, [])[0])

    def test_malformed_options(self):
        self.assertEqual(
            validate_question_options(Question.TYPE_SINGLE_CHOICE, 'A,B'),
            (False, "Options must be a list of strings")
        )
        self.assertEqual(
            validate_question_options(Question.TYPE_SINGLE_CHOICE, ['A', ' ']),
            (False, "Options cannot be empty")
        )
        self.assertEqual(
            validate_question_options(Question.TYPE_SINGLE_CHOICE, ['A', ' A ']),
            (False, "Options must be unique")
        )


class ConditionalLogicValidationTests(TestCase):
    """References and operators of conditional rules"""

    def setUp(self):
        self.form = Form.objects.create(title='Pesquisa')
        self.other_form = Form.objects.create(title='Outra pesquisa')
        self.nps = Question.objects.create(form=self.form, type='NPS', text='Recomendaria?', order=1)
        self.later = Question.objects.create(form=self.form, type='TEXT_LONG', text='Por quê?', order=3)
        self.foreign = Question.objects.create(form=self.other_form, type='NPS', text='Recomendaria?', order=1)

    def rule(self, depends_on, condition='<', value=7):
        return {'depends_on': str(depends_on), 'condition': condition, 'value': value}

    def test_empty_logic_is_valid(self):
        self.assertEqual(validate_conditional_logic(None, self.form, 2), (True, None))
        self.assertEqual(validate_conditional_logic({}, self.form, 2), (True, None))

    def test_valid_rule(self):
        for condition in ('<', '<=', '==', '>=', '>'):
            is_valid, error = validate_conditional_logic(self.rule(self.nps.id, condition), self.form, 2)
            self.assertTrue(is_valid, error)
        self.assertTrue(validate_conditional_logic(self.rule(self.nps.id, '==', 'Pior'), self.form, 2)[0])

    def test_missing_keys(self):
        is_valid, error = validate_conditional_logic({'depends_on': str(self.nps.id)}, self.form, 2)
        self.assertFalse(is_valid)
        self.assertEqual(error, "Conditional logic is missing: condition, value")

    def test_unknown_condition(self):
        self.assertFalse(validate_conditional_logic(self.rule(self.nps.id, 'contains'), self.form, 2)[0])

    def test_value_types(self):
        self.assertFalse(validate_conditional_logic(self.rule(self.nps.id, value=True), self.form, 2)[0])
        self.assertFalse(validate_conditional_logic(self.rule(self.nps.id, value=[7]), self.form, 2)[0])

    def test_reference_must_be_earlier_question_of_same_form(self):
        self.assertFalse(validate_conditional_logic(self.rule(self.later.id), self.form, 2)[0])
        self.assertFalse(validate_conditional_logic(self.rule(self.foreign.id), self.form, 2)[0])
        self.assertFalse(validate_conditional_logic(self.rule('not-a-uuid'), self.form, 2)[0])

    def test_self_reference(self):
        is_valid, error = validate_conditional_logic(
            self.rule(self.later.id), self.form, 3, question_id=self.later.id
        )
        self.assertFalse(is_valid)
        self.assertEqual(error, "A question cannot depend on itself")
