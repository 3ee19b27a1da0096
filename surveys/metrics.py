# surveys/metrics.py
"""
Metrics calculation helpers for NPS analytics.

Provides reusable functions for NPS scoring, score distributions and
percentage rounding.
"""

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List

NPS_MIN = 0
NPS_MAX = 10
PROMOTER_MIN = 9
DETRACTOR_MAX = 6


def percentage(count: int, total: int) -> float:
    """
    Share of ``count`` in ``total`` as a percentage with one decimal.

    Returns 0.0 when total is zero.
    """
    if not total:
        return 0.0
    # Use Decimal for precise percentage calculation
    return float(Decimal(100 * count / total).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP))


def _round_score(value: float) -> int:
    # halves round towards +infinity, so -2.5 becomes -2
    return int(math.floor(value + 0.5))


def calculate_nps(scores: Iterable[int]) -> Dict:
    """
    Calculate Net Promoter Score from 0-10 scores.

    Promoters score 9-10, passives 7-8 and detractors 0-6. Passives count in
    the denominator only. Values outside 0-10 are ignored.

    Args:
        scores: Numeric answers to NPS questions

    Returns:
        Dict with score (integer -100..100, or None without scores), totals
        and one-decimal percentages

    Example:
        >>> calculate_nps([9, 9, 9, 9, 9, 9, 10, 10, 2, 2])['score']
        60
    """
    promoters = passives = detractors = 0
    for value in scores:
        if value is None or not NPS_MIN <= value <= NPS_MAX:
            continue
        if value >= PROMOTER_MIN:
            promoters += 1
        elif value <= DETRACTOR_MAX:
            detractors += 1
        else:
            passives += 1

    total = promoters + passives + detractors
    score = None
    if total:
        score = _round_score((promoters - detractors) / total * 100)

    return {
        'score': score,
        'total': total,
        'promoters': promoters,
        'passives': passives,
        'detractors': detractors,
        'promoters_pct': percentage(promoters, total),
        'passives_pct': percentage(passives, total),
        'detractors_pct': percentage(detractors, total),
    }


def nps_distribution(values: List[float], min_scale: int = NPS_MIN, max_scale: int = NPS_MAX) -> List[Dict]:
    """
    Calculate distribution of scores across the entire scale range.

    Returns list of {"score": int, "count": int, "pct": float} dicts for each
    score value from min_scale to max_scale.

    Example:
        >>> nps_distribution([0, 3, 3, 4, 5, 5, 5], 0, 5)
        [
            {"score": 0, "count": 1, "pct": 14.3},
            {"score": 1, "count": 0, "pct": 0.0},
            {"score": 2, "count": 0, "pct": 0.0},
            {"score": 3, "count": 2, "pct": 28.6},
            {"score": 4, "count": 1, "pct": 14.3},
            {"score": 5, "count": 3, "pct": 42.9}
        ]
    """
    bins = {s: 0 for s in range(min_scale, max_scale + 1)}

    for v in values:
        rounded_val = _round_score(v)
        if min_scale <= rounded_val <= max_scale:
            bins[rounded_val] += 1

    total = sum(bins.values())

    return [
        {"score": score, "count": count, "pct": percentage(count, total)}
        for score, count in bins.items()
    ]


def nps_interpretation(score) -> Dict[str, str]:
    """
    Provide human-readable interpretation of NPS score.

    Ranges:
    - Excellent: 75-100
    - Very good: 50-74
    - Reasonable: 0-49
    - Critical: -100 to -1

    Args:
        score: NPS score (-100 to 100), or None when nothing was scored

    Returns:
        Dict with 'label' and 'description'
    """
    if score is None:
        return {'label': 'No data', 'description': 'No NPS answers collected yet'}
    if score >= 75:
        return {'label': 'Excellent', 'description': 'Customers are highly loyal and recommend the company'}
    elif score >= 50:
        return {'label': 'Very good', 'description': 'Most customers are promoters'}
    elif score >= 0:
        return {'label': 'Reasonable', 'description': 'There is room to turn passives into promoters'}
    else:
        return {'label': 'Critical', 'description': 'Detractors outnumber promoters; action is required'}
