import importlib.util
import warnings
from types import SimpleNamespace

from pydantic.warnings import PydanticDeprecatedSince20

from csystem import schemas


def test_schemas_build_without_deprecated_config():
    spec = importlib.util.spec_from_file_location("schemas_fresh_copy", schemas.__file__)
    module = importlib.util.module_from_spec(spec)
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        spec.loader.exec_module(module)
    assert [w for w in caught if issubclass(w.category, PydanticDeprecatedSince20)] == []


def test_output_schemas_read_orm_attributes():
    club = schemas.ClubListItem.model_validate(SimpleNamespace(id="c1", name="Elang", city=None))
    assert club.model_dump() == {"id": "c1", "name": "Elang", "city": None}
