"""
Dashboard aggregation over completed responses.

Answers are bucketed per (form, question). Numeric scales report a score
distribution over their whole range, choice questions report option counts
in declared order (unknown options follow in the order they were first
seen), and NPS questions also carry their score. Questions without answers
and forms left without questions are omitted.

Forms are also grouped under the active survey moments, in moment order;
forms without an active moment are listed apart.
"""

import logging
from collections import Counter

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta
from django.utils import timezone

from .metrics import calculate_nps, nps_distribution, nps_interpretation, percentage
from .models import Answer, Form, Question, Respondent, Response as SurveyResponse, SurveyMoment

logger = logging.getLogger(__name__)

SCALE_RANGES = {
    Question.TYPE_NPS: (0, 10),
    Question.TYPE_RATING: (1, 5),
}

CHARTED_TYPES = Question.NUMERIC_TYPES + Question.OPTION_TYPES


def parse_date_bound(value, end=False):
    """
    Parse a ``start``/``end`` query value with python-dateutil.

    A bare date used as an end bound covers that whole day. Naive values are
    read in the current time zone.

    Raises:
        ValueError: for unparseable input
    """
    if not value:
        return None
    value = value.strip()
    parsed = isoparse(value)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    if end and len(value) == 10:
        parsed += relativedelta(days=1, microseconds=-1)
    return parsed


def completed_responses(form_id=None, start=None, end=None):
    responses = SurveyResponse.objects.completed()
    if form_id:
        responses = responses.filter(form_id=form_id)
    if start:
        responses = responses.filter(completed_at__gte=start)
    if end:
        responses = responses.filter(completed_at__lte=end)
    return responses


class QuestionAggregate:
    """
    Running totals for one question
    """

    def __init__(self, question):
        self.question = question
        self.total = 0
        self.values = []
        self.option_counts = Counter()

    def add(self, answer):
        question_type = self.question.type

        if question_type in Question.NUMERIC_TYPES:
            if answer.numeric_value is None:
                return
            self.values.append(answer.numeric_value)

        elif question_type == Question.TYPE_MULTIPLE_CHOICE:
            selected = answer.decoded_value(question_type)
            if not selected:
                return
            for option in selected:
                self.option_counts[str(option)] += 1

        elif question_type in Question.OPTION_TYPES:
            if answer.selected_option is None:
                return
            self.option_counts[answer.selected_option] += 1

        else:
            return

        self.total += 1

    def option_distribution(self):
        declared = self.question.display_options
        ordered = declared + [option for option in self.option_counts if option not in declared]
        return [
            {
                'option': option,
                'count': self.option_counts.get(option, 0),
                'pct': percentage(self.option_counts.get(option, 0), self.total),
            }
            for option in ordered
        ]

    def as_dict(self):
        question = self.question
        data = {
            'id': str(question.id),
            'text': question.text,
            'type': question.type,
            'order': question.order,
            'total_responses': self.total,
        }

        if question.type in SCALE_RANGES:
            low, high = SCALE_RANGES[question.type]
            data['distribution'] = nps_distribution(self.values, low, high)
            data['average'] = round(sum(self.values) / len(self.values), 1)
            if question.type == Question.TYPE_NPS:
                data['nps'] = calculate_nps(self.values)
        else:
            data['distribution'] = self.option_distribution()

        return data


def aggregate_questions(responses):
    """
    Aggregate the answers of ``responses`` per question.

    Returns:
        dict mapping question id to QuestionAggregate, in encounter order
    """
    answers = (
        Answer.objects
        .filter(response__in=responses, question__type__in=CHARTED_TYPES)
        .select_related('question', 'question__form')
        .order_by('created_at', 'id')
    )

    aggregates = {}
    for answer in answers:
        aggregate = aggregates.get(answer.question_id)
        if aggregate is None:
            aggregate = aggregates[answer.question_id] = QuestionAggregate(answer.question)
        aggregate.add(answer)
    return aggregates


def group_by_moment(form_entries, all_forms):
    """
    Split per-form entries into active survey moments, in moment order.

    Forms without a moment, or whose moment is archived, are returned
    separately.

    Args:
        form_entries: (form, payload) pairs in display order
        all_forms: Forms counted towards each moment's total_forms

    Returns:
        tuple of (moment payloads, payloads of forms without a moment)
    """
    moments = list(SurveyMoment.objects.active())
    grouped = {moment.id: [] for moment in moments}
    without_moment = []
    for form, entry in form_entries:
        if form.moment_id in grouped:
            grouped[form.moment_id].append(entry)
        else:
            without_moment.append(entry)

    form_totals = Counter(all_forms.filter(moment__isnull=False).values_list('moment_id', flat=True))
    moment_payload = [
        {
            'id': str(moment.id),
            'name': moment.name,
            'slug': moment.slug,
            'description': moment.description,
            'color': moment.color,
            'icon': moment.icon,
            'order': moment.order,
            'total_forms': form_totals.get(moment.id, 0),
            'total_responses': sum(entry['total_responses'] for entry in grouped[moment.id]),
            'forms': grouped[moment.id],
        }
        for moment in moments
    ]
    return moment_payload, without_moment


def build_dashboard(form_id=None, start=None, end=None):
    """
    Dashboard payload: an overview plus per-form question breakdowns, also
    grouped by survey moment.

    Args:
        form_id: Restrict to one form
        start: Earliest completed_at (aware datetime)
        end: Latest completed_at (aware datetime)

    Returns:
        dict with 'overview', 'forms', 'moments' and 'forms_without_moment'
    """
    responses = completed_responses(form_id, start, end)
    aggregates = aggregate_questions(responses)

    forms = {}
    nps_values = []
    for aggregate in aggregates.values():
        if aggregate.total == 0:
            continue
        form = aggregate.question.form
        forms.setdefault(form.id, (form, []))[1].append(aggregate)
        if aggregate.question.type == Question.TYPE_NPS:
            nps_values.extend(aggregate.values)

    form_entries = []
    for form, form_aggregates in sorted(forms.values(), key=lambda item: (item[0].title.lower(), item[0].title)):
        form_aggregates.sort(key=lambda a: a.question.order)
        form_entries.append((form, {
            'id': str(form.id),
            'title': form.title,
            'type': form.type,
            'status': form.status,
            'moment_id': str(form.moment_id) if form.moment_id else None,
            'total_responses': responses.filter(form=form).count(),
            'questions': [a.as_dict() for a in form_aggregates],
        }))
    form_payload = [entry for _, entry in form_entries]

    nps = calculate_nps(nps_values)
    all_forms = Form.objects.all()
    if form_id:
        all_forms = all_forms.filter(id=form_id)

    overview = {
        'nps': nps,
        'interpretation': nps_interpretation(nps['score']),
        'total_forms': all_forms.count(),
        'active_forms': all_forms.filter(status=Form.STATUS_PUBLISHED).count(),
        'total_respondents': Respondent.objects.count(),
        'total_responses': responses.count(),
    }

    moments, without_moment = group_by_moment(form_entries, all_forms)

    logger.debug(f"Dashboard built: {len(form_payload)} forms, {overview['total_responses']} responses")
    return {
        'overview': overview,
        'forms': form_payload,
        'moments': moments,
        'forms_without_moment': without_moment,
    }
