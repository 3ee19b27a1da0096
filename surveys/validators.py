"""
Validation utilities for form definitions and respondent data.

Each function returns a ``(is_valid, error_message)`` tuple so serializers
can report the message against the right field.
"""

import re
import logging
from django.core.exceptions import ValidationError as DjangoValidationError

from .conditional import CONDITIONS
from .models import Question

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 3


def validate_phone(value):
    """
    Validate phone number format (digits, optionally with a + prefix).

    Accepts formats:
    - +5511987654321
    - 5511987654321
    - (11) 98765-4321
    - 11 98765 4321

    Args:
        value (str): Phone number to validate

    Returns:
        tuple: (is_valid, error_message)
    """
    if not value or not value.strip():
        return (True, None)  # optional field

    # Remove separators for validation
    cleaned = re.sub(r'[\s\-().]', '', value.strip())

    if re.match(r'^\+?[0-9]{8,15}$', cleaned):
        return (True, None)

    return (False, "Please enter a valid phone number")


def validate_state(value):
    """Two-letter state code (e.g. SP, RJ) or empty."""
    if not value:
        return (True, None)
    if re.match(r'^[A-Za-z]{2}$', value.strip()):
        return (True, None)
    return (False, "State must be a two-letter code")


def validate_moment_slug(value):
    """Lowercase letters, digits and hyphens (e.g. satisfacao-pos-mercado)."""
    if value and re.match(r'^[a-z0-9-]+$', value):
        return (True, None)
    return (False, "Slug may only contain lowercase letters, numbers and hyphens")


def validate_hex_color(value):
    """#RGB or #RRGGBB, or empty."""
    if not value:
        return (True, None)
    if re.match(r'^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$', value):
        return (True, None)
    return (False, "Color must be a hex value such as #1D4ED8")


def validate_question_options(question_type, options):
    """
    Validate the option list of a question.

    Choice questions need at least one option; comparison questions may
    leave it empty to use the default scale; other types take no options.

    Args:
        question_type (str): Question.TYPE_* value
        options: Submitted options (list of str or None)

    Returns:
        tuple: (is_valid, error_message)
    """
    options = options or []

    if not isinstance(options, list) or not all(isinstance(o, str) for o in options):
        return (False, "Options must be a list of strings")

    cleaned = [o.strip() for o in options]
    if any(not o for o in cleaned):
        return (False, "Options cannot be empty")

    if len(set(cleaned)) != len(cleaned):
        return (False, "Options must be unique")

    if question_type in (Question.TYPE_MULTIPLE_CHOICE, Question.TYPE_SINGLE_CHOICE) and not cleaned:
        return (False, "Choice questions require at least one option")

    if question_type not in Question.OPTION_TYPES and cleaned:
        return (False, f"{question_type} questions do not take options")

    return (True, None)


def validate_conditional_logic(logic, form, order, question_id=None):
    """
    Validate a question's conditional rule.

    The rule must point to another question of the same form that comes
    earlier in display order, and use a known comparison.

    Args:
        logic: dict with depends_on, condition and value (or None)
        form: Form the question belongs to
        order (int): Display order of the question being validated
        question_id: Id of the question being validated, when updating

    Returns:
        tuple: (is_valid, error_message)
    """
    if logic is None or logic == {}:
        return (True, None)

    if not isinstance(logic, dict):
        return (False, "Conditional logic must be an object")

    missing = [key for key in ('depends_on', 'condition', 'value') if key not in logic]
    if missing:
        return (False, f"Conditional logic is missing: {', '.join(missing)}")

    if logic['condition'] not in CONDITIONS:
        return (False, f"Condition must be one of: {' '.join(CONDITIONS)}")

    value = logic['value']
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return (False, "Condition value must be a number or a string")

    depends_on = str(logic['depends_on'])
    if question_id is not None and depends_on == str(question_id):
        return (False, "A question cannot depend on itself")

    try:
        dependency = form.questions.filter(id=depends_on).first()
    except DjangoValidationError:
        logger.debug(f"Malformed depends_on reference: {depends_on}")
        dependency = None

    if dependency is None:
        return (False, "Conditional logic must reference a question of the same form")

    if order is not None and dependency.order >= order:
        return (False, "Conditional logic must reference an earlier question")

    return (True, None)


def dependent_questions(question):
    """Questions of the same form whose conditional rule points at ``question``."""
    return question.form.questions.exclude(pk=question.pk).filter(
        conditional_logic__depends_on=str(question.id)
    )
