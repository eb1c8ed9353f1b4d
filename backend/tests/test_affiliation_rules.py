from datetime import datetime
from types import SimpleNamespace

import pytest

from csystem.affiliation import active_membership, check_join, derive_status
from csystem.enums import AffiliationStatus
from csystem.exceptions import JoinRequestConflictError


def record(status, club_id="club-a", name="Garuda Archery", **times):
    values = {"requested_at": None, "decided_at": None, "left_at": None}
    values.update(times)
    return SimpleNamespace(
        id=f"{status}-{club_id}", status=status, club_id=club_id,
        club=SimpleNamespace(name=name), **values,
    )


def test_no_records_is_none():
    assert derive_status([]).status is AffiliationStatus.NONE


def test_rejected_only_reads_as_none():
    status = derive_status([record("REJECTED")])
    assert status.status is AffiliationStatus.NONE
    assert status.club_id is None


def test_membership_outranks_pending_and_left():
    status = derive_status([
        record("LEFT", "club-old", left_at=datetime(2025, 1, 1)),
        record("MEMBER", "club-a", decided_at=datetime(2025, 6, 1)),
    ])
    assert status.status is AffiliationStatus.MEMBER
    assert status.club_id == "club-a"
    assert status.club_name == "Garuda Archery"
    assert status.since == datetime(2025, 6, 1)


def test_pending_carries_target_club():
    status = derive_status([
        record("LEFT", "club-old"),
        record("PENDING", "club-new", name="Elang", requested_at=datetime(2025, 7, 1)),
    ])
    assert status.status is AffiliationStatus.PENDING
    assert status.club_name == "Elang"


def test_left_reports_most_recent_club():
    status = derive_status([
        record("LEFT", "club-1", left_at=datetime(2024, 1, 1)),
        record("LEFT", "club-2", left_at=datetime(2025, 1, 1)),
    ])
    assert status.status is AffiliationStatus.LEFT
    assert status.club_id == "club-2"


def test_join_allowed_without_active_records():
    assert check_join([record("LEFT"), record("REJECTED", "club-b")], "club-b") is None


def test_join_same_club_returns_existing_membership():
    existing = record("MEMBER", "club-a")
    assert check_join([existing], "club-a") is existing


def test_join_while_member_elsewhere_conflicts():
    with pytest.raises(JoinRequestConflictError) as exc:
        check_join([record("MEMBER", "club-a")], "club-b")
    assert exc.value.details["reason"] == "MEMBER_ELSEWHERE"
    assert exc.value.status_code == 409


def test_second_pending_request_conflicts():
    with pytest.raises(JoinRequestConflictError) as exc:
        check_join([record("PENDING", "club-a")], "club-b")
    assert exc.value.details["reason"] == "ALREADY_PENDING"


def test_active_membership():
    member = record("MEMBER")
    assert active_membership([record("LEFT"), member]) is member
    assert active_membership([record("PENDING")]) is None
