# backend/csystem/scoring.py

import math
from datetime import date
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple


def _percent(score: float, maximum: float) -> int:
    if not maximum:
        return 0
    # half-up, so 12.5 -> 13
    return int(math.floor(score / maximum * 100 + 0.5))


def score_assessment(fields: Iterable[Any], values: Mapping[str, Any]) -> Tuple[Dict[str, int], int]:
    """Section percentages and total percentage over the scored fields.

    A scored field earns its full ``max_score`` when its value is truthy.
    """
    earned: Dict[str, float] = {}
    maximum: Dict[str, float] = {}

    for field in fields:
        if not field.is_scored:
            continue
        section = field.section_name
        maximum.setdefault(section, 0)
        earned.setdefault(section, 0)
        maximum[section] += field.max_score or 0
        if values.get(field.field_name):
            earned[section] += field.max_score or 0

    section_scores = {section: _percent(earned[section], maximum[section]) for section in maximum}
    total = _percent(sum(earned.values()), sum(maximum.values()))
    return section_scores, total


def field_feedback(fields: Iterable[Any], values: Mapping[str, Any]) -> Dict[str, str]:
    feedback: Dict[str, str] = {}
    for field in fields:
        if not field.is_scored:
            continue
        text = field.feedback_good if values.get(field.field_name) else field.feedback_bad
        if text:
            feedback[field.field_name] = text
    return feedback


def assessment_number(on: Optional[date] = None) -> str:
    """yymmdd of the assessment day."""
    return (on or date.today()).strftime("%y%m%d")
