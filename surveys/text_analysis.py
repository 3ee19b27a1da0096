"""
Text feedback analysis for free-text questions.

Keyword-based sentiment, word frequencies and grouping of identical
answers. Keyword lists are Portuguese to match the respondents' language.
"""

import logging
import re
from collections import Counter

from .models import Answer, Form, Question, Response as SurveyResponse

logger = logging.getLogger(__name__)

SENTIMENT_POSITIVE = 'POSITIVE'
SENTIMENT_NEUTRAL = 'NEUTRAL'
SENTIMENT_NEGATIVE = 'NEGATIVE'
SENTIMENTS = (SENTIMENT_POSITIVE, SENTIMENT_NEUTRAL, SENTIMENT_NEGATIVE)

POSITIVE_WORDS = ('excelente', 'ótimo', 'bom', 'maravilhoso', 'perfeito', 'adorei', 'satisfeito')
NEGATIVE_WORDS = ('ruim', 'péssimo', 'horrível', 'insatisfeito', 'problema', 'atraso', 'demorado')

STOP_WORDS = frozenset(['a', 'o', 'e', 'de', 'da', 'do', 'em', 'um', 'uma', 'para', 'com', 'por', 'que', 'não'])

TOP_WORDS = 10
MIN_WORD_LENGTH = 3

_PUNCTUATION = re.compile(r'[^\w\s]')


def has_positive(text):
    lowered = text.lower()
    return any(word in lowered for word in POSITIVE_WORDS)


def has_negative(text):
    lowered = text.lower()
    return any(word in lowered for word in NEGATIVE_WORDS)


def classify_sentiment(text):
    """
    POSITIVE or NEGATIVE when only one kind of keyword appears, otherwise NEUTRAL.
    """
    positive = has_positive(text)
    negative = has_negative(text)
    if positive and not negative:
        return SENTIMENT_POSITIVE
    if negative and not positive:
        return SENTIMENT_NEGATIVE
    return SENTIMENT_NEUTRAL


def matches_sentiment(text, sentiment):
    """
    Sentiment filter: a text with both kinds of keywords matches both
    POSITIVE and NEGATIVE; NEUTRAL means no keyword at all.
    """
    if sentiment == SENTIMENT_POSITIVE:
        return has_positive(text)
    if sentiment == SENTIMENT_NEGATIVE:
        return has_negative(text)
    if sentiment == SENTIMENT_NEUTRAL:
        return not has_positive(text) and not has_negative(text)
    return True


def word_frequency(texts, limit=TOP_WORDS):
    """
    Most frequent words across ``texts``.

    Returns:
        list of {"word", "count"} ordered by count, ties in first-seen order
    """
    counts = Counter()
    for text in texts:
        for word in _PUNCTUATION.sub('', text.lower()).split():
            if len(word) >= MIN_WORD_LENGTH and word not in STOP_WORDS:
                counts[word] += 1
    return [{'word': word, 'count': count} for word, count in counts.most_common(limit)]


def group_identical(texts):
    """Identical answers (trimmed, case-insensitive) with their counts."""
    counts = Counter(text.strip().lower() for text in texts)
    return [{'text': text, 'count': count} for text, count in counts.most_common()]


def _respondent_summary(respondent):
    if respondent is None:
        return None
    return {
        'name': respondent.name,
        'type': respondent.type,
        'category': respondent.category,
        'specialty': respondent.specialty,
    }


def build_text_feedback(form_id=None, sentiment=None, search=None):
    """
    Free-text answers of completed responses to published forms.

    Args:
        form_id: Restrict to one form
        sentiment: One of SENTIMENTS
        search: Case-insensitive substring filter

    Returns:
        list of question dicts; questions with no matching answers are omitted
    """
    questions = (
        Question.objects
        .filter(type__in=Question.TEXT_TYPES, form__status=Form.STATUS_PUBLISHED)
        .select_related('form')
        .order_by('-form__created_at', 'order')
    )
    if form_id:
        questions = questions.filter(form_id=form_id)

    search = (search or '').strip().lower()
    payload = []
    for question in questions:
        answers = (
            Answer.objects
            .filter(
                question=question,
                text_value__isnull=False,
                response__status=SurveyResponse.STATUS_COMPLETED,
            )
            .select_related('response', 'response__respondent')
            .order_by('-created_at')
        )

        entries = []
        for answer in answers:
            text = answer.text_value
            if search and search not in text.lower():
                continue
            if sentiment and not matches_sentiment(text, sentiment):
                continue
            entries.append({
                'id': str(answer.id),
                'value': text,
                'sentiment': classify_sentiment(text),
                'respondent': _respondent_summary(answer.response.respondent),
                'completed_at': answer.response.completed_at,
            })

        if not entries:
            continue

        item = {
            'id': str(question.id),
            'text': question.text,
            'type': question.type,
            'form_id': str(question.form_id),
            'form_title': question.form.title,
            'total_responses': len(entries),
            'responses': entries,
        }
        if question.type == Question.TYPE_TEXT_SHORT:
            texts = [entry['value'] for entry in entries]
            item['word_frequency'] = word_frequency(texts)
            item['grouped_responses'] = group_identical(texts)
        payload.append(item)

    logger.debug(f"Text feedback built for {len(payload)} questions")
    return payload
