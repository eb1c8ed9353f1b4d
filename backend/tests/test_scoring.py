from datetime import date
from types import SimpleNamespace

from csystem.scoring import assessment_number, field_feedback, score_assessment


def field(name, section, max_score=10, scored=True, good=None, bad=None):
    return SimpleNamespace(
        field_name=name, section_name=section, is_scored=scored, max_score=max_score,
        feedback_good=good, feedback_bad=bad,
    )


FIELDS = [
    field("stance", "Posture", 25, good="Solid stance", bad="Widen your stance"),
    field("anchor", "Posture", 15),
    field("release", "Shot", 40),
    field("notes", "Shot", scored=False),
]


def test_section_and_total_percentages():
    sections, total = score_assessment(FIELDS, {"stance": True, "release": "clean", "notes": "x"})
    assert sections == {"Posture": 63, "Shot": 100}
    assert total == 81


def test_nothing_earned():
    sections, total = score_assessment(FIELDS, {})
    assert sections == {"Posture": 0, "Shot": 0}
    assert total == 0


def test_no_scored_fields():
    sections, total = score_assessment([field("notes", "Shot", scored=False)], {"notes": "ok"})
    assert sections == {}
    assert total == 0


def test_feedback_picks_good_or_bad_text():
    assert field_feedback(FIELDS, {"stance": True}) == {"stance": "Solid stance"}
    assert field_feedback(FIELDS, {"stance": False}) == {"stance": "Widen your stance"}


def test_assessment_number_is_yymmdd():
    assert assessment_number(date(2026, 1, 7)) == "260107"
