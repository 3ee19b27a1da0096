"""
Tests for conditional requiredness and answer coverage.
"""

from types import SimpleNamespace

from django.test import SimpleTestCase

from surveys.conditional import compare, is_required, loose_equals, required_question_ids, to_number
from surveys.progress import calculate_progress, count_answered, is_answered


def make_question(qid, required=False, logic=None):
    return SimpleNamespace(id=qid, required=required, conditional_logic=logic)


class IsRequiredTests(SimpleTestCase):
    """Effective requiredness of a question"""

    def setUp(self):
        self.nps = make_question('q-a')
        self.follow_up = make_question('q-b', logic={'depends_on': 'q-a', 'condition': '<', 'value': 7})

    def test_low_score_makes_follow_up_required(self):
        self.assertTrue(is_required(self.follow_up, {'q-a': 5}))

    def test_high_score_leaves_follow_up_optional(self):
        self.assertFalse(is_required(self.follow_up, {'q-a': 8}))

    def test_static_required_short_circuits(self):
        question = make_question('q-c', required=True, logic={'depends_on': 'q-a', 'condition': '<', 'value': 7})
        self.assertTrue(is_required(question, {'q-a': 10}))
        self.assertTrue(is_required(question, {}))

    def test_no_logic_is_optional(self):
        self.assertFalse(is_required(self.nps, {'q-a': 1}))
        self.assertFalse(is_required(make_question('q-d', logic={}), {}))

    def test_missing_dependency_is_never_required(self):
        for condition in ('<', '<=', '==', '>=', '>', '!='):
            question = make_question('q-e', logic={'depends_on': 'q-a', 'condition': condition, 'value': 0})
            self.assertFalse(is_required(question, {}))
            self.assertFalse(is_required(question, {'q-a': None}))

    def test_unknown_operator_fails_closed(self):
        for condition in ('!=', 'contains', '', None):
            question = make_question('q-f', logic={'depends_on': 'q-a', 'condition': condition, 'value': 5})
            self.assertFalse(is_required(question, {'q-a': 5}))

    def test_equality_tolerates_numeric_strings(self):
        question = make_question('q-g', logic={'depends_on': 'q-a', 'condition': '==', 'value': '8'})
        self.assertTrue(is_required(question, {'q-a': 8}))
        question = make_question('q-h', logic={'depends_on': 'q-a', 'condition': '==', 'value': 8})
        self.assertTrue(is_required(question, {'q-a': '8'}))

    def test_equality_on_options(self):
        question = make_question('q-i', logic={'depends_on': 'q-a', 'condition': '==', 'value': 'Pior'})
        self.assertTrue(is_required(question, {'q-a': 'Pior'}))
        self.assertFalse(is_required(question, {'q-a': 'Melhor'}))

    def test_ordering_with_numeric_string_answer(self):
        question = make_question('q-j', logic={'depends_on': 'q-a', 'condition': '>=', 'value': 9})
        self.assertTrue(is_required(question, {'q-a': '10'}))
        self.assertFalse(is_required(question, {'q-a': 'abc'}))
        self.assertFalse(is_required(question, {'q-a': '1_0'}))

    def test_dependency_id_is_compared_as_string(self):
        question = make_question('q-k', logic={'depends_on': 42, 'condition': '>', 'value': 1})
        self.assertTrue(is_required(question, {'42': 3}))

    def test_required_question_ids(self):
        questions = [self.nps, self.follow_up, make_question('q-z', required=True)]
        self.assertEqual(required_question_ids(questions, {'q-a': 3}), ['q-b', 'q-z'])
        self.assertEqual(required_question_ids(questions, {'q-a': 9}), ['q-z'])


class CoercionTests(SimpleTestCase):

    def test_to_number(self):
        self.assertEqual(to_number(7), 7.0)
        self.assertEqual(to_number(' 7.5 '), 7.5)
        self.assertEqual(to_number(''), 0.0)
        self.assertEqual(to_number(True), 1.0)
        self.assertIsNone(to_number('seven'))
        self.assertIsNone(to_number(['7']))
        self.assertIsNone(to_number(float('nan')))
        self.assertIsNone(to_number('1_0'))

    def test_loose_equals(self):
        self.assertTrue(loose_equals(8, '8'))
        self.assertTrue(loose_equals('8.0', 8))
        self.assertFalse(loose_equals('8.0', '8'))
        self.assertTrue(loose_equals(['X'], 'X'))
        self.assertFalse(loose_equals(None, 0))

    def test_compare(self):
        self.assertTrue(compare(5, '<', 7))
        self.assertTrue(compare(7, '<=', '7'))
        self.assertFalse(compare(7, '>', 7))
        self.assertFalse(compare(7, '=>', 1))


class ProgressTests(SimpleTestCase):

    def setUp(self):
        self.questions = [make_question(f'q{i}') for i in range(4)]

    def test_is_answered(self):
        self.assertTrue(is_answered(0))
        self.assertTrue(is_answered('ok'))
        self.assertTrue(is_answered(['X']))
        self.assertFalse(is_answered('   '))
        self.assertFalse(is_answered([]))
        self.assertFalse(is_answered(None))
        self.assertFalse(is_answered(float('inf')))
        self.assertFalse(is_answered(True))

    def test_count_answered(self):
        values = {'q0': 9, 'q1': '  ', 'q2': ['A'], 'q3': None, 'other': 'x'}
        self.assertEqual(count_answered(self.questions, values), 2)

    def test_progress_rounds_half_up(self):
        self.assertEqual(calculate_progress(1, 8), 13)   # 12.5
        self.assertEqual(calculate_progress(1, 3), 33)
        self.assertEqual(calculate_progress(2, 3), 67)

    def test_progress_bounds(self):
        self.assertEqual(calculate_progress(0, 0), 0)
        self.assertEqual(calculate_progress(5, 0), 0)
        self.assertEqual(calculate_progress(0, 4), 0)
        self.assertEqual(calculate_progress(4, 4), 100)
        for answered in range(0, 11):
            self.assertTrue(0 <= calculate_progress(answered, 10) <= 100)
