# backend/csystem/affiliation.py
"""Club affiliation state.

Stored records carry PENDING, MEMBER, LEFT or REJECTED. The status shown to
users is derived from all of an athlete's records:

    MEMBER   an active membership exists (carries that club)
    PENDING  a join request waits for a decision (carries the target club)
    LEFT     a membership ended earlier (carries the last club)
    NONE     anything else
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional

from csystem import models
from csystem.enums import AffiliationStatus
from csystem.exceptions import JoinRequestConflictError


@dataclass
class ClubStatus:
    status: AffiliationStatus
    club_id: Optional[str] = None
    club_name: Optional[str] = None
    affiliation_id: Optional[str] = None
    since: Optional[datetime] = None


def _ts(value: Optional[datetime]) -> datetime:
    # SQLite hands back naive datetimes, fresh objects may still be aware
    if value is None:
        return datetime.min
    return value.replace(tzinfo=None)


def _club_name(record: Any) -> Optional[str]:
    club = getattr(record, "club", None)
    return club.name if club is not None else None


def _with_status(records: Iterable[Any], status: AffiliationStatus) -> list:
    return [r for r in records if r.status == status.value]


def derive_status(records: Iterable[Any]) -> ClubStatus:
    records = list(records)

    members = _with_status(records, AffiliationStatus.MEMBER)
    if members:
        current = max(members, key=lambda r: _ts(r.decided_at))
        return ClubStatus(AffiliationStatus.MEMBER, current.club_id, _club_name(current),
                          current.id, current.decided_at)

    pending = _with_status(records, AffiliationStatus.PENDING)
    if pending:
        current = max(pending, key=lambda r: _ts(r.requested_at))
        return ClubStatus(AffiliationStatus.PENDING, current.club_id, _club_name(current),
                          current.id, current.requested_at)

    left = _with_status(records, AffiliationStatus.LEFT)
    if left:
        last = max(left, key=lambda r: _ts(r.left_at or r.decided_at))
        return ClubStatus(AffiliationStatus.LEFT, last.club_id, _club_name(last),
                          last.id, last.left_at)

    return ClubStatus(AffiliationStatus.NONE)


def check_join(records: Iterable[Any], club_id: str) -> Optional[Any]:
    """Validate a join request against existing records.

    Returns the existing membership when the athlete already belongs to
    ``club_id`` (nothing to do), None when a new PENDING record may be
    created, and raises JoinRequestConflictError otherwise.
    """
    records = list(records)

    for record in _with_status(records, AffiliationStatus.MEMBER):
        if record.club_id == club_id:
            return record
        raise JoinRequestConflictError(
            "Athlete is already a member of another club", reason="MEMBER_ELSEWHERE"
        )

    if _with_status(records, AffiliationStatus.PENDING):
        raise JoinRequestConflictError(
            "A join request is already pending", reason="ALREADY_PENDING"
        )

    return None


def active_membership(records: Iterable[Any]) -> Optional[Any]:
    members = _with_status(records, AffiliationStatus.MEMBER)
    return members[0] if members else None


# -------------------------------
# Persistence helpers
# -------------------------------
def records_for(db, athlete_id: str) -> list:
    return db.query(models.ClubAffiliation).filter(
        models.ClubAffiliation.athlete_id == athlete_id
    ).all()


def status_for(db, athlete: Any, is_minor: bool = False) -> dict:
    """Derived status of ``athlete`` shaped like ClubStatusOut."""
    status = derive_status(records_for(db, athlete.id))
    return {
        "athlete_id": athlete.id,
        "athlete_name": athlete.name,
        "status": status.status,
        "club_id": status.club_id,
        "club_name": status.club_name,
        "affiliation_id": status.affiliation_id,
        "since": status.since,
        "is_minor": is_minor,
    }
