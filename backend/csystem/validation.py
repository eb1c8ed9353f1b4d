"""
Profile Validation Engine
=========================

Pure rules that turn a person snapshot into a ``{field: message}`` error map.
An empty map means the profile is complete for its role.

Two different "minor" thresholds live here on purpose:

* the root identity treats anyone younger than 17 as a minor for the NIK rule
* the athlete section treats anyone younger than 18 as a minor for the
  parent/guardian rule

Usage:
    from csystem.validation import ProfileForm

    form = ProfileForm("ATHLETE", person_values, athlete_values)
    form.errors            # always the true error map
    form.visible_errors    # empty until attempt_submit() was called
"""

import re
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Union

ROOT_IDENTITY_MINOR_AGE_THRESHOLD = 17
ATHLETE_GUARDIAN_MINOR_AGE_THRESHOLD = 18

WHATSAPP_PATTERN = re.compile(r"(\+62|62|0)[0-9]{9,13}")
NIK_PATTERN = re.compile(r"[0-9]{16}")

ROOT_IDENTITY_FIELDS = (
    "name", "whatsapp", "nik", "province_id", "city_id", "date_of_birth", "gender",
)

DateLike = Union[date, datetime, str, None]


# ============================================
# Age
# ============================================

def to_date(value: DateLike) -> Optional[date]:
    """Parse an ISO date. Malformed strings read as unknown (None)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def calculate_age(date_of_birth: DateLike, today: Optional[date] = None) -> Optional[int]:
    """Calendar age: one less when this year's birthday has not happened yet."""
    dob = to_date(date_of_birth)
    if dob is None:
        return None
    today = today or date.today()
    age = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        age -= 1
    return age


def age_category(age: Optional[int]) -> Optional[str]:
    if age is None:
        return None
    if age < 10:
        return "U10"
    if age < 13:
        return "U13"
    if age < 15:
        return "U15"
    if age < 18:
        return "U18"
    if age < 21:
        return "U21"
    if age < 50:
        return "Senior"
    return "Master"


def is_nik_required(age: Optional[int]) -> bool:
    return age is not None and age >= ROOT_IDENTITY_MINOR_AGE_THRESHOLD


def is_guardian_required(age: Optional[int]) -> bool:
    return age is not None and age < ATHLETE_GUARDIAN_MINOR_AGE_THRESHOLD


# ============================================
# Formats
# ============================================

def is_valid_whatsapp(value: Optional[str]) -> bool:
    return bool(value) and WHATSAPP_PATTERN.fullmatch(value) is not None


def is_valid_nik(value: Optional[str]) -> bool:
    return bool(value) and NIK_PATTERN.fullmatch(value) is not None


def _blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def normalize_empty(values: Mapping[str, Any]) -> Dict[str, Any]:
    """Empty or whitespace-only strings become None."""
    return {key: (None if isinstance(value, str) and _blank(value) else value)
            for key, value in values.items()}


# ============================================
# Section rules
# ============================================

def validate_root_identity(values: Mapping[str, Any], today: Optional[date] = None) -> Dict[str, str]:
    errors: Dict[str, str] = {}

    if _blank(values.get("name")):
        errors["name"] = "Name is required"

    whatsapp = values.get("whatsapp")
    if _blank(whatsapp):
        errors["whatsapp"] = "WhatsApp number is required"
    elif not is_valid_whatsapp(whatsapp):
        errors["whatsapp"] = "Invalid WhatsApp number format"

    age = calculate_age(values.get("date_of_birth"), today)
    nik = values.get("nik")
    if _blank(nik):
        if is_nik_required(age):
            errors["nik"] = "NIK is required for age 17 and above"
    elif not is_valid_nik(nik):
        errors["nik"] = "NIK must be exactly 16 digits"

    if _blank(values.get("province_id")):
        errors["province_id"] = "Province is required"
    if _blank(values.get("city_id")):
        errors["city_id"] = "City is required"
    if _blank(values.get("date_of_birth")):
        errors["date_of_birth"] = "Date of birth is required"
    elif to_date(values.get("date_of_birth")) is None:
        errors["date_of_birth"] = "Invalid date of birth"
    if _blank(values.get("gender")):
        errors["gender"] = "Gender is required"

    return errors


def validate_athlete_section(
    values: Mapping[str, Any],
    date_of_birth: DateLike,
    is_student: bool = False,
    today: Optional[date] = None,
) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    age = calculate_age(date_of_birth, today)

    if is_guardian_required(age):
        if _blank(values.get("parent_name")):
            errors["parent_name"] = "Parent/guardian name is required for athletes under 18"
        parent_phone = values.get("parent_phone")
        if _blank(parent_phone):
            errors["parent_phone"] = "Parent/guardian phone is required for athletes under 18"
        elif not is_valid_whatsapp(parent_phone):
            errors["parent_phone"] = "Invalid parent/guardian phone format"

    if is_student and _blank(values.get("nisn")):
        errors["nisn"] = "NISN is required for students"

    return errors


def validate_club_section(values: Mapping[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if _blank(values.get("name")):
        errors["club_name"] = "Club name is required"
    hotline = values.get("whatsapp_hotline")
    if not _blank(hotline) and not is_valid_whatsapp(hotline):
        errors["club_whatsapp_hotline"] = "Invalid hotline number format"
    return errors


def validate_profile(
    role: str,
    values: Mapping[str, Any],
    role_data: Optional[Mapping[str, Any]] = None,
    today: Optional[date] = None,
) -> Dict[str, str]:
    """Full error map for a person of ``role``. Never raises on bad input."""
    role_data = role_data or {}
    errors = validate_root_identity(values, today)

    if role == "ATHLETE":
        errors.update(validate_athlete_section(
            role_data,
            values.get("date_of_birth"),
            is_student=bool(values.get("is_student")),
            today=today,
        ))
    elif role == "CLUB":
        errors.update(validate_club_section(role_data))

    return errors


# ============================================
# Form state
# ============================================

class ProfileForm:
    """Editable profile values with validity kept apart from error display.

    ``errors`` is recomputed on every access. ``validation_triggered`` only
    decides whether those errors are shown, it never changes them.
    """

    def __init__(
        self,
        role: str,
        values: Optional[Mapping[str, Any]] = None,
        role_data: Optional[Mapping[str, Any]] = None,
        today: Optional[date] = None,
    ):
        self.role = role
        self.values: Dict[str, Any] = dict(values or {})
        self.role_data: Dict[str, Any] = dict(role_data or {})
        self.today = today
        self.validation_triggered = False

    def set(self, field: str, value: Any) -> None:
        self.values[field] = value

    def set_role_field(self, field: str, value: Any) -> None:
        self.role_data[field] = value

    @property
    def age(self) -> Optional[int]:
        return calculate_age(self.values.get("date_of_birth"), self.today)

    @property
    def errors(self) -> Dict[str, str]:
        return validate_profile(self.role, self.values, self.role_data, self.today)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def visible_errors(self) -> Dict[str, str]:
        return self.errors if self.validation_triggered else {}

    def attempt_submit(self) -> bool:
        self.validation_triggered = True
        return self.is_valid

    def payload(self) -> Dict[str, Any]:
        body = normalize_empty(self.values)
        body.pop("email", None)
        if self.role_data:
            section = ROLE_DATA_KEYS.get(self.role)
            if section:
                body[section] = normalize_empty(self.role_data)
        return body


ROLE_DATA_KEYS = {
    "ATHLETE": "athlete_data",
    "CLUB": "club_data",
    "SCHOOL": "school_data",
    "JUDGE": "judge_data",
    "COACH": "coach_data",
}
