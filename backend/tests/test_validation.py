from datetime import date

import pytest

from csystem.validation import (
    ATHLETE_GUARDIAN_MINOR_AGE_THRESHOLD, ROOT_IDENTITY_MINOR_AGE_THRESHOLD, ProfileForm,
    age_category, calculate_age, is_valid_nik, is_valid_whatsapp, normalize_empty, validate_profile,
    validate_root_identity
)

TODAY = date(2026, 6, 15)


def root(**overrides):
    values = {
        "name": "Rina Ayu",
        "whatsapp": "081234567890",
        "nik": None,
        "province_id": "11",
        "city_id": "1101",
        "date_of_birth": date(2000, 1, 1),
        "gender": "FEMALE",
    }
    values.update(overrides)
    return values


@pytest.mark.parametrize("value,expected", [
    ("0812345678901", True),
    ("+6281234567890", True),
    ("6281234567890", True),
    ("12345", False),
    ("08123", False),
    ("0812-3456-7890", False),
    ("081234567890\n", False),
    (" 081234567890", False),
    ("", False),
    (None, False),
])
def test_whatsapp_pattern(value, expected):
    assert is_valid_whatsapp(value) is expected


@pytest.mark.parametrize("value,expected", [
    ("1101234567890001", True),
    ("1234567890123456\n", False),
    ("110123456789000", False),
    ("11012345678900012", False),
    ("1101 34567890001", False),
    (None, False),
])
def test_nik_pattern(value, expected):
    assert is_valid_nik(value) is expected


def test_thresholds_are_distinct():
    assert ROOT_IDENTITY_MINOR_AGE_THRESHOLD == 17
    assert ATHLETE_GUARDIAN_MINOR_AGE_THRESHOLD == 18


def test_calendar_age_counts_birthday_this_year():
    assert calculate_age(date(2010, 6, 15), TODAY) == 16
    assert calculate_age(date(2010, 6, 16), TODAY) == 15
    assert calculate_age("2010-06-14", TODAY) == 16
    assert calculate_age(None, TODAY) is None
    assert calculate_age("31/12/2010", TODAY) is None


def test_malformed_date_of_birth_is_reported_not_raised():
    errors = validate_profile("ATHLETE", root(date_of_birth="31/12/2010"), {}, TODAY)
    assert errors == {"date_of_birth": "Invalid date of birth"}

    form = ProfileForm("ATHLETE", {"name": "A", "date_of_birth": "31/12/2010"}, today=TODAY)
    assert form.age is None
    assert form.errors["date_of_birth"] == "Invalid date of birth"
    assert form.attempt_submit() is False


@pytest.mark.parametrize("age,category", [
    (9, "U10"), (10, "U13"), (12, "U13"), (14, "U15"), (17, "U18"),
    (18, "U21"), (20, "U21"), (21, "Senior"), (49, "Senior"), (50, "Master"),
])
def test_age_category(age, category):
    assert age_category(age) == category


def test_nik_required_from_seventeen():
    adult = root(date_of_birth=date(2000, 1, 1))
    assert validate_root_identity(adult, TODAY)["nik"] == "NIK is required for age 17 and above"

    sixteen = root(date_of_birth=date(2010, 1, 1))
    assert "nik" not in validate_root_identity(sixteen, TODAY)


def test_nik_boundary_exactly_seventeen_is_required():
    turning_today = root(date_of_birth=date(2009, 6, 15))
    assert "nik" in validate_root_identity(turning_today, TODAY)

    turning_tomorrow = root(date_of_birth=date(2009, 6, 16))
    assert "nik" not in validate_root_identity(turning_tomorrow, TODAY)


def test_nik_must_be_sixteen_digits_even_for_minors():
    errors = validate_root_identity(root(date_of_birth=date(2012, 1, 1), nik="12345"), TODAY)
    assert errors == {"nik": "NIK must be exactly 16 digits"}

    errors = validate_root_identity(root(nik="1101234567890001"), TODAY)
    assert errors == {}


def test_root_identity_required_fields():
    errors = validate_root_identity({}, TODAY)
    assert set(errors) == {"name", "whatsapp", "province_id", "city_id", "date_of_birth", "gender"}


def test_invalid_whatsapp_message():
    errors = validate_root_identity(root(nik="1101234567890001", whatsapp="12345"), TODAY)
    assert errors == {"whatsapp": "Invalid WhatsApp number format"}


def test_sixteen_year_old_athlete_needs_exactly_guardian_fields():
    values = root(date_of_birth=date(2010, 3, 1))
    errors = validate_profile("ATHLETE", values, {}, TODAY)
    assert set(errors) == {"parent_name", "parent_phone"}


def test_athlete_exactly_eighteen_is_not_a_minor():
    values = root(date_of_birth=date(2008, 6, 15), nik="1101234567890001")
    assert validate_profile("ATHLETE", values, {}, TODAY) == {}


def test_parent_phone_must_match_pattern():
    values = root(date_of_birth=date(2012, 3, 1))
    errors = validate_profile("ATHLETE", values, {"parent_name": "Budi", "parent_phone": "999"}, TODAY)
    assert errors == {"parent_phone": "Invalid parent/guardian phone format"}


def test_student_athlete_needs_nisn():
    values = root(nik="1101234567890001", is_student=True)
    assert validate_profile("ATHLETE", values, {}, TODAY) == {"nisn": "NISN is required for students"}


def test_club_section_rules():
    values = root(nik="1101234567890001")
    errors = validate_profile("CLUB", values, {"name": "", "whatsapp_hotline": "123"}, TODAY)
    assert set(errors) == {"club_name", "club_whatsapp_hotline"}


def test_other_roles_only_check_root_identity():
    values = root(nik="1101234567890001")
    assert validate_profile("JUDGE", values, {"anything": ""}, TODAY) == {}


def test_normalize_empty():
    assert normalize_empty({"a": "", "b": "  ", "c": "x", "d": 0}) == {"a": None, "b": None, "c": "x", "d": 0}


class TestProfileForm:
    def test_errors_hidden_until_submit_attempt(self):
        form = ProfileForm("ATHLETE", root(name=""), today=TODAY)
        assert "name" in form.errors
        assert form.visible_errors == {}
        assert form.is_valid is False

        assert form.attempt_submit() is False
        assert form.validation_triggered is True
        assert "name" in form.visible_errors

    def test_validity_is_not_gated_by_display_flag(self):
        form = ProfileForm("ATHLETE", root(date_of_birth=date(2010, 3, 1)), today=TODAY)
        assert form.validation_triggered is False
        assert not form.is_valid

        form.set_role_field("parent_name", "Budi")
        form.set_role_field("parent_phone", "081298765432")
        assert form.is_valid
        assert form.attempt_submit() is True

    def test_payload_normalizes_empty_strings(self):
        form = ProfileForm(
            "ATHLETE",
            dict(root(nik="1101234567890001"), occupation="", email="x@y.com"),
            {"division": "", "skill_level": "Beginner"},
            today=TODAY,
        )
        body = form.payload()
        assert body["occupation"] is None
        assert "email" not in body
        assert body["athlete_data"] == {"division": None, "skill_level": "Beginner"}
