"""
Answer normalisation and persistence.

Clients submit answers as ``{question_id: raw_value}``. Each raw value is
normalised into exactly one storage column according to the question type:

- NPS / RATING_1_5: integer in ``numeric_value``
- TEXT_SHORT / TEXT_LONG: string in ``text_value``
- MULTIPLE_CHOICE: JSON array in ``text_value``
- SINGLE_CHOICE / COMPARISON: string in ``selected_option``

Malformed values for a type are ignored rather than rejected.
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional

from .models import Answer, Question
from .progress import round_half_up

logger = logging.getLogger(__name__)

VALUE_COLUMNS = ('numeric_value', 'text_value', 'selected_option')


@dataclass(frozen=True)
class AnswerValue:
    """Normalised answer bound to a single storage column."""
    column: ClassVar[str] = ''
    value: Any

    def as_columns(self) -> Dict[str, Any]:
        columns = dict.fromkeys(VALUE_COLUMNS)
        columns[self.column] = self.value
        return columns


@dataclass(frozen=True)
class NumericValue(AnswerValue):
    column: ClassVar[str] = 'numeric_value'
    value: int


@dataclass(frozen=True)
class TextValue(AnswerValue):
    column: ClassVar[str] = 'text_value'
    value: str


@dataclass(frozen=True)
class SelectedOption(AnswerValue):
    column: ClassVar[str] = 'selected_option'
    value: str


def _coerce_number(raw):
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        number = float(raw)
    elif isinstance(raw, str):
        # float() reads "1_000" as a digit group; browsers do not
        if '_' in raw:
            return None
        try:
            number = float(raw.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def format_answer_value(question_type, raw) -> Optional[AnswerValue]:
    """
    Normalise ``raw`` for a question of ``question_type``.

    Returns:
        NumericValue, TextValue, SelectedOption, or None when the value does
        not fit the type
    """
    if question_type in Question.NUMERIC_TYPES:
        number = _coerce_number(raw)
        if number is None:
            return None
        return NumericValue(round_half_up(number))

    if question_type in Question.TEXT_TYPES:
        return TextValue(raw) if isinstance(raw, str) else None

    if question_type == Question.TYPE_MULTIPLE_CHOICE:
        if not isinstance(raw, list):
            return None
        return TextValue(json.dumps(raw, separators=(',', ':'), ensure_ascii=False))

    if question_type in (Question.TYPE_SINGLE_CHOICE, Question.TYPE_COMPARISON):
        return SelectedOption(raw) if isinstance(raw, str) else None

    return None


def is_blank(raw):
    """Absent, null, whitespace-only string or empty list."""
    if raw is None:
        return True
    if isinstance(raw, str):
        return not raw.strip()
    if isinstance(raw, (list, tuple)):
        return len(raw) == 0
    return False


def apply_answers(response, questions, raw_answers):
    """
    Write one submission's answers for ``response``.

    Must run inside the caller's transaction. For every question of the form
    a blank value deletes the stored answer, a malformed value is skipped and
    anything else is upserted.

    Returns:
        dict with 'saved', 'cleared' and 'skipped' question id lists
    """
    outcome = {'saved': [], 'cleared': [], 'skipped': []}

    for question in questions:
        question_id = str(question.id)
        raw = raw_answers.get(question_id)

        if is_blank(raw):
            Answer.objects.filter(response=response, question=question).delete()
            outcome['cleared'].append(question_id)
            continue

        formatted = format_answer_value(question.type, raw)
        if formatted is None:
            logger.debug(f"Ignoring malformed {question.type} answer for question {question_id}")
            outcome['skipped'].append(question_id)
            continue

        Answer.objects.update_or_create(
            response=response,
            question=question,
            defaults=formatted.as_columns()
        )
        outcome['saved'].append(question_id)

    return outcome


def answer_values(response, questions=None):
    """
    Stored answers of ``response`` decoded back into submission shape.

    Returns:
        dict mapping question id (str) to int, str or list
    """
    types = None
    if questions is not None:
        types = {q.id: q.type for q in questions}

    answers = Answer.objects.filter(response=response)
    if types is None:
        answers = answers.select_related('question')

    values = {}
    for answer in answers:
        question_type = types.get(answer.question_id) if types is not None else answer.question.type
        values[str(answer.question_id)] = answer.decoded_value(question_type)
    return values
