# backend/csystem/field_types.py
"""Closed catalog of module field types.

Storage keeps ``field_type`` as a plain string; everything coming in from the
API goes through ``parse_field_type`` so unknown values never reach the table.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List

from csystem.exceptions import UnknownFieldTypeError


class FieldType(str, Enum):
    # Text-based
    TEXT = "text"
    TEXTAREA = "textarea"
    PASSWORD = "password"
    EMAIL = "email"
    SEARCH = "search"
    URL = "url"
    USERNAME = "username"
    # Numeric
    NUMBER = "number"
    INTEGER = "integer"
    DECIMAL = "decimal"
    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    RANGE = "range"
    # Selection
    SELECT = "select"
    MULTISELECT = "multiselect"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    AUTOCOMPLETE = "autocomplete"
    # Boolean
    BOOLEAN = "boolean"
    TOGGLE = "toggle"
    AGREEMENT = "agreement"
    # Date & Time
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    MONTH = "month"
    YEAR = "year"
    DURATION = "duration"
    # File & Media
    FILE = "file"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    MULTIFILE = "multifile"
    # Special / Advanced
    HIDDEN = "hidden"
    READONLY = "readonly"
    RICHTEXT = "richtext"
    JSON = "json"
    CODE = "code"
    COLOR = "color"
    RATING = "rating"
    SIGNATURE = "signature"


# A checkbox without options is a single tick box, so it is not listed here
OPTION_REQUIRED_TYPES = frozenset({
    FieldType.SELECT, FieldType.MULTISELECT, FieldType.RADIO, FieldType.AUTOCOMPLETE,
})


@dataclass(frozen=True)
class FieldTypeInfo:
    type: FieldType
    label: str
    common_term: str
    function: str
    sample: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "type": self.type.value,
            "label": self.label,
            "common_term": self.common_term,
            "function": self.function,
            "sample": self.sample,
        }


def _info(field_type, label, common_term, function, sample):
    return FieldTypeInfo(field_type, label, common_term, function, sample)


FIELD_CATEGORIES: Dict[str, List[FieldTypeInfo]] = {
    "Text-based Input": [
        _info(FieldType.TEXT, "Text", "Single-line Text", "Short text", "Name"),
        _info(FieldType.TEXTAREA, "Text Area", "Multi-line Text", "Long text", "Address"),
        _info(FieldType.PASSWORD, "Password", "Password Field", "Confidential data", "********"),
        _info(FieldType.EMAIL, "Email", "Email Field", "Email validation", "a@b.com"),
        _info(FieldType.SEARCH, "Search", "Search Field", "Searching", "keyword"),
        _info(FieldType.URL, "URL", "URL Field", "Web address", "https://"),
        _info(FieldType.USERNAME, "Username", "Username Field", "User ID", "user01"),
    ],
    "Numeric Input": [
        _info(FieldType.NUMBER, "Number", "Number Field", "General number", "10"),
        _info(FieldType.INTEGER, "Integer", "Integer Field", "Whole number", "5"),
        _info(FieldType.DECIMAL, "Decimal", "Decimal Field", "Fractional number", "3.14"),
        _info(FieldType.CURRENCY, "Currency", "Currency Field", "Monetary value", "100000"),
        _info(FieldType.PERCENTAGE, "Percentage", "Percent Field", "Percentage value", "75%"),
        _info(FieldType.RANGE, "Range", "Slider", "Value range", "1-10"),
    ],
    "Selection Input": [
        _info(FieldType.SELECT, "Select", "Dropdown", "Select one", "City"),
        _info(FieldType.MULTISELECT, "Multi-Select", "Multi Dropdown", "Select multiple", "Hobbies"),
        _info(FieldType.RADIO, "Radio", "Radio Button", "Select one", "Gender"),
        _info(FieldType.CHECKBOX, "Checkbox", "Checkbox", "Select multiple", "Facilities"),
        _info(FieldType.AUTOCOMPLETE, "Autocomplete", "Search Select", "Search and select", "Product"),
    ],
    "Boolean Input": [
        _info(FieldType.BOOLEAN, "Boolean", "Boolean Field", "Yes / No", "TRUE"),
        _info(FieldType.TOGGLE, "Toggle", "Switch", "On / Off", "Active"),
        _info(FieldType.AGREEMENT, "Agreement", "Agreement Checkbox", "Agree / Consent", "I agree"),
    ],
    "Date & Time Input": [
        _info(FieldType.DATE, "Date", "Date Picker", "Date", "1/7/2026"),
        _info(FieldType.TIME, "Time", "Time Picker", "Time", "10:30"),
        _info(FieldType.DATETIME, "DateTime", "DateTime Picker", "Date & time", "1/7/2026 10:30"),
        _info(FieldType.MONTH, "Month", "Month Picker", "Month", "January"),
        _info(FieldType.YEAR, "Year", "Year Picker", "Year", "2026"),
        _info(FieldType.DURATION, "Duration", "Duration Input", "Time duration", "2 hours"),
    ],
    "File & Media Input": [
        _info(FieldType.FILE, "File", "File Upload", "Upload document", "PDF"),
        _info(FieldType.IMAGE, "Image", "Image Upload", "Upload image", "JPG"),
        _info(FieldType.VIDEO, "Video", "Video Upload", "Upload video", "MP4"),
        _info(FieldType.AUDIO, "Audio", "Audio Upload", "Upload audio", "MP3"),
        _info(FieldType.MULTIFILE, "Multiple File", "Multi Upload", "Upload multiple", "ZIP"),
    ],
    "Special / Advanced Input": [
        _info(FieldType.HIDDEN, "Hidden", "Hidden Field", "Hidden data", "ID"),
        _info(FieldType.READONLY, "Readonly", "Read-only Field", "Not editable", "NIK"),
        _info(FieldType.RICHTEXT, "Rich Text", "WYSIWYG Editor", "Formatted text", "Article"),
        _info(FieldType.JSON, "JSON", "JSON Input", "Structured data", "{}"),
        _info(FieldType.CODE, "Code", "Code Editor", "Source code", "JS"),
        _info(FieldType.COLOR, "Color", "Color Picker", "Select color", "#FF0000"),
        _info(FieldType.RATING, "Rating", "Rating Input", "Rating / Evaluation", "4 of 5"),
        _info(FieldType.SIGNATURE, "Signature", "Signature Pad", "Digital signature", "signature.png"),
    ],
}


def parse_field_type(value: str) -> FieldType:
    """Translate a raw string into the closed enum or raise UnknownFieldTypeError."""
    try:
        return FieldType(str(value).strip().lower())
    except ValueError:
        raise UnknownFieldTypeError(str(value))


def requires_options(field_type: FieldType) -> bool:
    return field_type in OPTION_REQUIRED_TYPES


def catalog() -> List[dict]:
    return [
        {"category": name, "types": [info.to_dict() for info in infos]}
        for name, infos in FIELD_CATEGORIES.items()
    ]
