import pytest

from csystem.exceptions import UnknownFieldTypeError
from csystem.field_types import (
    FIELD_CATEGORIES, FieldType, catalog, parse_field_type, requires_options
)


def test_catalog_has_seven_categories_covering_every_type():
    assert len(FIELD_CATEGORIES) == 7
    listed = [info.type for infos in FIELD_CATEGORIES.values() for info in infos]
    assert len(listed) == len(set(listed))
    assert set(listed) == set(FieldType)


def test_catalog_entries_carry_ui_guidance():
    entries = catalog()
    assert entries[0]["category"] == "Text-based Input"
    first = entries[0]["types"][0]
    assert first == {
        "type": "text",
        "label": "Text",
        "common_term": "Single-line Text",
        "function": "Short text",
        "sample": "Name",
    }


@pytest.mark.parametrize("raw,expected", [
    ("select", FieldType.SELECT),
    ("  Checkbox ", FieldType.CHECKBOX),
    ("RATING", FieldType.RATING),
])
def test_parse_known_types(raw, expected):
    assert parse_field_type(raw) is expected


def test_unknown_type_is_rejected():
    with pytest.raises(UnknownFieldTypeError) as exc:
        parse_field_type("hologram")
    assert exc.value.code == "UNKNOWN_FIELD_TYPE"
    assert exc.value.status_code == 422


def test_which_types_need_options():
    assert requires_options(FieldType.SELECT)
    assert requires_options(FieldType.MULTISELECT)
    assert requires_options(FieldType.RADIO)
    assert requires_options(FieldType.AUTOCOMPLETE)
    # a bare checkbox is a single tick box
    assert not requires_options(FieldType.CHECKBOX)
    assert not requires_options(FieldType.TEXT)
