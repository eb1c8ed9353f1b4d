# csystem/client/onboarding.py
"""Onboarding wizard: greeting -> role -> signup -> reveal.

Deep links may start the flow at ``signup`` (``role`` or ``ref_athlete_id``
in the link) or at ``reveal`` (``step=reveal``, preview only). A successful
registration leaves the flow for the dashboard; an email that already has an
account branches into password verification and then the add-role flow.
"""

import asyncio
import logging
import re
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from csystem.client.api import ApiError, AuthSession, CsystemClient
from csystem.enums import SELF_SERVICE_ROLES

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")

PREVIEW_CORE_ID = "04.1101.9999"

REVEAL_MESSAGES = (
    "AUTHENTICATING IDENTITY...",
    "CHECKING SYSTEM TIME...",
    "SYNCHRONIZING CORE DATABASE...",
    "OPENING SECURE GATEWAY...",
)

SIGNUP_FIELDS = ("name", "email", "password", "confirm_password", "province_id", "city_id", "whatsapp")

# Order in which the first problem is reported to the user
FIRST_ERROR_ORDER = ("name", "whatsapp", "email", "password", "city_id")

REQUIRED_CONSENTS = ("privacy", "data_processing")

ROLE_CARDS = [role.value for role in SELF_SERVICE_ROLES]


class Step(str, Enum):
    GREETING = "greeting"
    ROLE = "role"
    SIGNUP = "signup"
    REVEAL = "reveal"


class OnboardingFlow:
    def __init__(self, client: CsystemClient, params: Optional[Mapping[str, str]] = None):
        self.client = client
        params = params or {}

        role_param = (params.get("role") or "").upper()
        self.pending_child: Optional[str] = (
            params.get("ref_athlete_id") or params.get("childId") or params.get("link_child")
        )
        self.selected_role: Optional[str] = None
        self.preview_core_id: Optional[str] = None

        if role_param in ROLE_CARDS:
            self.step = Step.SIGNUP
            self.selected_role = role_param
        elif params.get("ref_athlete_id"):
            self.step = Step.SIGNUP
            self.selected_role = "PARENT"
        elif params.get("step") in {s.value for s in Step}:
            self.step = Step(params["step"])
            if self.step == Step.REVEAL:
                self.selected_role = "ATHLETE"
                self.preview_core_id = PREVIEW_CORE_ID
        else:
            self.step = Step.GREETING

        self.form: Dict[str, str] = {name: "" for name in SIGNUP_FIELDS}
        self.form["name"] = params.get("name") or params.get("prefill_name") or ""
        self.form["whatsapp"] = params.get("phone") or params.get("prefill_wa") or ""
        self.consents = {"privacy": False, "data_processing": False, "marketing": False}

        self.validation_triggered = False
        self.is_submitting = False
        self.register_error: Optional[str] = None
        self.existing_account: Optional[Dict[str, Any]] = None
        self.verify_error: Optional[str] = None
        self.session: Optional[AuthSession] = None
        self.redirect: Optional[str] = None
        self.requested_role: Optional[str] = None
        self.sync_message: Optional[str] = None

    # --- navigation ---
    def start(self) -> None:
        if self.step == Step.GREETING:
            self.step = Step.ROLE

    def select_role(self, role: str) -> bool:
        role = role.upper()
        if role not in ROLE_CARDS:
            return False
        self.selected_role = role
        self.step = Step.SIGNUP
        return True

    def back(self) -> None:
        if self.step == Step.SIGNUP:
            self.step = Step.ROLE
        elif self.step == Step.ROLE:
            self.step = Step.GREETING

    # --- form ---
    def set_field(self, name: str, value: str) -> None:
        if name in self.form:
            self.form[name] = value

    def set_consent(self, name: str, value: bool) -> None:
        if name in self.consents:
            self.consents[name] = value

    def validate_field(self, name: str) -> Optional[str]:
        value = self.form
        if name == "name":
            return None if value["name"].strip() else "Full name is required"
        if name == "email":
            if not value["email"]:
                return "Email is required"
            return None if EMAIL_PATTERN.search(value["email"]) else "Invalid email format"
        if name == "password":
            if not value["password"]:
                return "Password is required"
            return None if len(value["password"]) >= 8 else "Min. 8 characters required"
        if name == "confirm_password":
            if not value["confirm_password"]:
                return "Please confirm your password"
            return None if value["password"] == value["confirm_password"] else "Passwords do not match"
        if name == "province_id":
            return None if value["province_id"] else "Please select a province"
        if name == "city_id":
            return None if value["city_id"] else "Please select a city"
        if name == "whatsapp":
            if not value["whatsapp"]:
                return "WhatsApp number is required"
            return None if len(re.sub(r"\D", "", value["whatsapp"])) >= 10 else "Invalid phone number"
        return None

    @property
    def errors(self) -> Dict[str, str]:
        errors = {}
        for name in SIGNUP_FIELDS:
            message = self.validate_field(name)
            if message:
                errors[name] = message
        return errors

    @property
    def visible_errors(self) -> Dict[str, str]:
        return self.errors if self.validation_triggered else {}

    @property
    def consents_given(self) -> bool:
        return all(self.consents[name] for name in REQUIRED_CONSENTS)

    @property
    def is_valid(self) -> bool:
        return not self.errors and self.consents_given

    def _first_error(self) -> str:
        errors = self.errors
        for name in FIRST_ERROR_ORDER:
            if name in errors:
                return f"Complete the form: {errors[name]}"
        if not self.consents_given:
            return "Please accept the mandatory terms and the data processing consent."
        return "The form is incomplete or the consents are not checked."

    # --- submission ---
    async def submit(self) -> bool:
        if self.step != Step.SIGNUP or self.is_submitting:
            return False
        self.validation_triggered = True
        if not self.is_valid:
            self.register_error = self._first_error()
            return False

        try:
            check = await self.client.auth.check_email(self.form["email"])
        except ApiError as exc:
            logger.info(f"Email check skipped: {exc}")
            check = None
        if check and check.get("exists"):
            self.existing_account = {"name": check.get("name"), "current_roles": check.get("current_roles", [])}
            return False

        return await self._register()

    async def _register(self) -> bool:
        self.is_submitting = True
        self.register_error = None
        self.validation_triggered = False
        payload = {
            "name": self.form["name"].strip(),
            "email": self.form["email"].strip(),
            "password": self.form["password"],
            "role": self.selected_role,
            "province_id": self.form["province_id"],
            "city_id": self.form["city_id"],
            "whatsapp": self.form["whatsapp"],
        }
        if self.pending_child:
            payload["child_core_id"] = self.pending_child
        try:
            self.session = await self.client.auth.register(payload)
        except ApiError as exc:
            if exc.is_conflict:
                self.existing_account = {"name": None, "current_roles": []}
            self.register_error = exc.message
            logger.warning(f"Registration failed: {exc}")
            return False
        finally:
            self.is_submitting = False

        self.pending_child = None
        self.redirect = "dashboard"
        logger.info(f"Registered {self.selected_role} {self.session.core_id}")
        return True

    async def verify_existing(self, password: str) -> bool:
        if not password:
            self.verify_error = "Password is required"
            return False
        self.verify_error = None
        try:
            self.session = await self.client.auth.login(self.form["email"].strip(), password)
        except ApiError as exc:
            self.verify_error = exc.message
            return False
        self.requested_role = self.selected_role
        self.redirect = "add-role"
        return True

    def dismiss_existing(self) -> None:
        self.existing_account = None
        self.verify_error = None

    # --- reveal ---
    async def complete(self, interval: float = 1.1) -> str:
        """Play the closing messages, then leave for the profile page."""
        for message in REVEAL_MESSAGES:
            self.sync_message = message
            await asyncio.sleep(interval)
        self.redirect = "profile"
        return self.redirect
