# csystem/client/affiliation.py

import logging
from typing import Any, Dict, Optional

from csystem.client.api import ApiError, AuthSession, CsystemClient

logger = logging.getLogger(__name__)

GUARDIAN_REQUIRED_MESSAGE = "Athletes under 18 join a club through their parent or guardian"


class ClubMembershipController:
    """Club status card state for one athlete.

    ``athlete_id`` is None for an athlete acting on their own record and the
    child's id when a guardian acts on a linked minor.
    """

    def __init__(self, client: CsystemClient, session: AuthSession, athlete_id: Optional[str] = None):
        self.client = client
        self.session = session
        self.athlete_id = athlete_id
        self.status: Optional[Dict[str, Any]] = None
        self.is_loading = False
        self.is_submitting = False
        self.error: Optional[str] = None
        self.conflict: Optional[str] = None

    @property
    def acting_as_guardian(self) -> bool:
        return self.athlete_id is not None and self.athlete_id != self.session.person_id

    @property
    def is_minor(self) -> bool:
        return bool(self.status and self.status.get("is_minor"))

    @property
    def can_self_join(self) -> bool:
        return self.acting_as_guardian or not self.is_minor

    def _pick(self, statuses) -> Optional[Dict[str, Any]]:
        target = self.athlete_id or self.session.person_id
        for item in statuses or []:
            if item["athlete_id"] == target:
                return item
        return None

    async def refresh(self) -> bool:
        self.is_loading = True
        try:
            statuses = await self.client.profile.club_status(self.session)
        except ApiError as exc:
            self.error = exc.message
            return False
        finally:
            self.is_loading = False
        self.status = self._pick(statuses)
        self.error = None
        return True

    async def join(self, club_id: str, club_name: Optional[str] = None) -> bool:
        if self.is_submitting:
            return False
        # The minor gate needs the status; load it before deciding
        if self.status is None and not self.acting_as_guardian:
            if not await self.refresh():
                return False
        if not self.can_self_join:
            self.error = GUARDIAN_REQUIRED_MESSAGE
            return False

        previous = self.status
        self.is_submitting = True
        self.conflict = None
        try:
            await self.client.profile.join_club(self.session, club_id, athlete_id=self.athlete_id)
        except ApiError as exc:
            if exc.is_conflict:
                logger.info(f"Join request rejected: {exc.message}")
                self.conflict = exc.message
            else:
                logger.warning(f"Join request failed: {exc}")
                self.error = exc.message
            self.status = previous
            return False
        finally:
            self.is_submitting = False

        # Optimistic until the authoritative status arrives
        self.status = dict(previous or {}, status="PENDING", club_id=club_id, club_name=club_name)
        self.error = None
        await self.refresh()
        return True

    async def leave(self, reason: Optional[str] = None) -> bool:
        if self.is_submitting:
            return False
        self.is_submitting = True
        try:
            await self.client.profile.leave_club(self.session, athlete_id=self.athlete_id, reason=reason)
        except ApiError as exc:
            self.error = exc.message
            return False
        finally:
            self.is_submitting = False
        await self.refresh()
        return True
