"""
Answer coverage of a response.

Progress is the share of the form's questions that carry a non-empty raw
answer, regardless of whether conditional logic made them required.
"""

import math


def round_half_up(value):
    """Round to the nearest integer with .5 going up."""
    return int(math.floor(value + 0.5))


def is_answered(value):
    if isinstance(value, bool) or value is None:
        return False
    if isinstance(value, (int, float)):
        return math.isfinite(value)
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return False


def count_answered(questions, values):
    """
    Number of ``questions`` with an answered value in ``values``.

    Args:
        questions: Iterable of questions (anything with an ``id``)
        values: Mapping of question id (str) to raw answer value
    """
    return sum(1 for question in questions if is_answered(values.get(str(question.id))))


def calculate_progress(answered, total):
    """Percentage in [0, 100]; 0 for a form without questions."""
    if total <= 0:
        return 0
    return max(0, min(100, round_half_up(answered / total * 100)))
