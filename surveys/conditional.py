"""
Conditional requiredness of questions.

A question is effectively required when its own ``required`` flag is set, or
when its conditional rule holds against the answer already given to the
question it depends on. Rules are evaluated against the raw answer values
clients submit (numbers, strings or lists), so comparisons coerce the way a
browser form would: ``==`` lets 8 match "8", and ordering operators compare
numerically.
"""

import math
import operator

ORDERING_OPERATORS = {
    '<': operator.lt,
    '<=': operator.le,
    '>=': operator.ge,
    '>': operator.gt,
}

CONDITIONS = ('<', '<=', '==', '>=', '>')


def to_number(value):
    """
    Coerce a raw answer to float, or None when it has no numeric meaning.

    Empty and whitespace-only strings count as 0; lists are not numbers.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return 0.0
        if '_' in stripped:
            return None
        try:
            number = float(stripped)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return number


def _as_text(value):
    if isinstance(value, (list, tuple)):
        return ','.join('' if item is None else _as_text(item) for item in value)
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def loose_equals(actual, expected):
    """
    Equality that tolerates numeric strings.

    Two strings compare as text; when either side is a number (or boolean)
    both sides are compared numerically; lists are compared through their
    comma-joined text.
    """
    if actual is None or expected is None:
        return actual is None and expected is None

    if isinstance(actual, (list, tuple)):
        actual = _as_text(actual)
    if isinstance(expected, (list, tuple)):
        expected = _as_text(expected)

    if isinstance(actual, str) and isinstance(expected, str):
        return actual == expected

    left = to_number(actual)
    right = to_number(expected)
    if left is None or right is None:
        return False
    return left == right


def compare(actual, condition, expected):
    """
    Evaluate ``actual <condition> expected``; unknown conditions are False.
    """
    if condition == '==':
        return loose_equals(actual, expected)

    op = ORDERING_OPERATORS.get(condition)
    if op is None:
        return False

    left = to_number(actual)
    right = to_number(expected)
    if left is None or right is None:
        return False
    return op(left, right)


def is_required(question, answers_so_far):
    """
    Decide whether ``question`` must be answered given the answers so far.

    Args:
        question: Question (or any object with ``required`` and
            ``conditional_logic`` attributes)
        answers_so_far: Mapping of question id (str) to raw answer value

    Returns:
        bool
    """
    if question.required:
        return True

    logic = question.conditional_logic
    if not logic:
        return False

    depends_on = logic.get('depends_on')
    if depends_on is None:
        return False

    actual = answers_so_far.get(str(depends_on))
    if actual is None:
        return False

    return compare(actual, logic.get('condition'), logic.get('value'))


def required_question_ids(questions, answers_so_far):
    """Ids of the questions that are effectively required right now."""
    return [str(q.id) for q in questions if is_required(q, answers_so_far)]
