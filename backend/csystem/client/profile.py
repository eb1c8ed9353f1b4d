# csystem/client/profile.py

import logging
from typing import Any, Dict, Optional

from csystem.client.api import ApiError, AuthSession, CsystemClient
from csystem.validation import ROOT_IDENTITY_FIELDS, ProfileForm

logger = logging.getLogger(__name__)

EDITABLE_ROOT_FIELDS = ROOT_IDENTITY_FIELDS + ("phone", "is_student", "occupation")


class ProfileEditor:
    """Loads, edits and saves the signed-in person's profile.

    Errors are always computed by the form; they are only shown once a save
    was attempted. A save never goes out while the form is invalid or while
    another save is still running.
    """

    def __init__(self, client: CsystemClient, session: AuthSession):
        self.client = client
        self.session = session
        self.form: Optional[ProfileForm] = None
        self.profile: Optional[Dict[str, Any]] = None
        self.is_loading = False
        self.is_saving = False
        self.error: Optional[str] = None

    async def load(self) -> bool:
        self.is_loading = True
        try:
            self.profile = await self.client.profile.get(self.session)
        except ApiError as exc:
            self.error = exc.message
            return False
        finally:
            self.is_loading = False

        person = self.profile["person"]
        values = {name: person.get(name) for name in EDITABLE_ROOT_FIELDS}
        self.form = ProfileForm(person["role"], values, self.profile.get("role_data") or {})
        self.error = None
        return True

    @property
    def visible_errors(self) -> Dict[str, str]:
        return self.form.visible_errors if self.form else {}

    async def save(self) -> bool:
        if self.form is None or self.is_saving:
            return False
        if not self.form.attempt_submit():
            return False

        self.is_saving = True
        try:
            self.profile = await self.client.profile.update(self.session, self.form.payload())
        except ApiError as exc:
            logger.warning(f"Profile save failed: {exc}")
            self.error = exc.message
            return False
        finally:
            self.is_saving = False

        self.error = None
        logger.info(f"Profile saved for {self.session.core_id}")
        return True
