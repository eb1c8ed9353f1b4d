import pytest


@pytest.fixture
def admin_headers(admin, auth_headers):
    return auth_headers(admin)


@pytest.fixture
def module(client, admin_headers):
    response = client.post("/api/modules", headers=admin_headers, json={
        "name": "Posture Check",
        "description": "Basic form review",
        "allowed_roles": ["COACH", "ATHLETE"],
        "show_in_menu": True,
        "menu_category": "Training",
    })
    assert response.status_code == 201
    return response.json()


def add_field(client, headers, module_id, **overrides):
    payload = {
        "section_name": "Stance",
        "field_name": "feet_position",
        "field_type": "text",
        "label": "Feet position",
    }
    payload.update(overrides)
    return client.post(f"/api/modules/{module_id}/fields", headers=headers, json=payload)


def test_create_module(module):
    assert module["core_id"] == "CM.0001.0001"
    assert module["status"] == "DRAFT"
    assert module["version"] == 1
    assert module["sections"] == []
    assert module["allowed_roles"] == ["COACH", "ATHLETE"]


def test_module_core_ids_are_sequential(client, admin_headers, module):
    second = client.post("/api/modules", headers=admin_headers, json={"name": "Draw Cycle"}).json()
    assert second["core_id"] == "CM.0001.0002"


def test_blank_module_name_rejected(client, admin_headers):
    assert client.post("/api/modules", headers=admin_headers, json={"name": "   "}).status_code == 422


def test_only_admin_edits_modules(client, make_person, auth_headers, module):
    coach = make_person("COACH")
    response = client.post("/api/modules", headers=auth_headers(coach), json={"name": "Mine"})
    assert response.status_code == 403
    response = add_field(client, auth_headers(coach), module["id"])
    assert response.status_code == 403


def test_field_type_catalog(client, make_person, auth_headers):
    coach = make_person("COACH")
    categories = client.get("/api/modules/field-types", headers=auth_headers(coach)).json()
    assert [c["category"] for c in categories][:2] == ["Text-based Input", "Numeric Input"]
    assert sum(len(c["types"]) for c in categories) == 40


def test_add_field_creates_section(client, admin_headers, module):
    response = add_field(client, admin_headers, module["id"], is_scored=True, max_score=20)
    assert response.status_code == 201
    field = response.json()
    assert field["section_name"] == "Stance"
    assert field["max_score"] == 20
    assert field["sort_order"] == 0

    detail = client.get(f"/api/modules/{module['id']}", headers=admin_headers).json()
    assert [s["name"] for s in detail["sections"]] == ["Stance"]
    assert [f["field_name"] for f in detail["sections"][0]["fields"]] == ["feet_position"]


def test_sections_keep_creation_order(client, admin_headers, module):
    add_field(client, admin_headers, module["id"], section_name="Stance", field_name="a")
    add_field(client, admin_headers, module["id"], section_name="Release", field_name="b")
    add_field(client, admin_headers, module["id"], section_name="Stance", field_name="c")

    detail = client.get(f"/api/modules/{module['id']}", headers=admin_headers).json()
    assert [s["name"] for s in detail["sections"]] == ["Stance", "Release"]
    assert [f["field_name"] for f in detail["sections"][0]["fields"]] == ["a", "c"]
    assert [f["sort_order"] for f in detail["sections"][0]["fields"]] == [0, 1]


def test_unscored_field_has_zero_max_score(client, admin_headers, module):
    field = add_field(client, admin_headers, module["id"], is_scored=False, max_score=50).json()
    assert field["max_score"] == 0


def test_select_options_round_trip(client, admin_headers, module):
    options = [{"label": "Open", "value": "open"}, {"label": "Square", "value": "square"}]
    created = add_field(client, admin_headers, module["id"], field_name="stance_type",
                        field_type="select", options=options)
    assert created.status_code == 201

    detail = client.get(f"/api/modules/{module['id']}", headers=admin_headers).json()
    assert detail["sections"][0]["fields"][0]["options"] == options


@pytest.mark.parametrize("field_type", ["select", "multiselect", "radio", "autocomplete"])
def test_selection_types_need_options(client, admin_headers, module, field_type):
    response = add_field(client, admin_headers, module["id"], field_type=field_type)
    assert response.status_code == 422
    assert response.json()["code"] == "OPTIONS_REQUIRED"


def test_checkbox_without_options_is_accepted(client, admin_headers, module):
    response = add_field(client, admin_headers, module["id"], field_type="checkbox")
    assert response.status_code == 201
    assert response.json()["options"] is None


def test_unknown_field_type(client, admin_headers, module):
    response = add_field(client, admin_headers, module["id"], field_type="hologram")
    assert response.status_code == 422
    assert response.json()["code"] == "UNKNOWN_FIELD_TYPE"


def test_duplicate_field_name_in_module(client, admin_headers, module):
    add_field(client, admin_headers, module["id"])
    response = add_field(client, admin_headers, module["id"], section_name="Other")
    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_FIELD_NAME"


def test_update_field_moves_section_and_drops_empty_one(client, admin_headers, module):
    field = add_field(client, admin_headers, module["id"]).json()
    url = f"/api/modules/{module['id']}/fields/{field['id']}"

    moved = client.put(url, headers=admin_headers, json={"section_name": "Anchor", "label": "Where"})
    assert moved.status_code == 200
    assert moved.json()["section_name"] == "Anchor"
    assert moved.json()["label"] == "Where"

    detail = client.get(f"/api/modules/{module['id']}", headers=admin_headers).json()
    assert [s["name"] for s in detail["sections"]] == ["Anchor"]


def test_update_field_cannot_take_another_name(client, admin_headers, module):
    add_field(client, admin_headers, module["id"], field_name="one")
    two = add_field(client, admin_headers, module["id"], field_name="two").json()
    response = client.put(f"/api/modules/{module['id']}/fields/{two['id']}",
                          headers=admin_headers, json={"field_name": "one"})
    assert response.status_code == 409


def test_switching_to_select_requires_options(client, admin_headers, module):
    field = add_field(client, admin_headers, module["id"]).json()
    response = client.put(f"/api/modules/{module['id']}/fields/{field['id']}",
                          headers=admin_headers, json={"field_type": "radio"})
    assert response.json()["code"] == "OPTIONS_REQUIRED"


def test_delete_last_field_removes_section(client, admin_headers, module):
    field = add_field(client, admin_headers, module["id"]).json()
    response = client.delete(f"/api/modules/{module['id']}/fields/{field['id']}", headers=admin_headers)
    assert response.status_code == 200
    detail = client.get(f"/api/modules/{module['id']}", headers=admin_headers).json()
    assert detail["sections"] == []

    missing = client.delete(f"/api/modules/{module['id']}/fields/{field['id']}", headers=admin_headers)
    assert missing.status_code == 404


def test_visibility_follows_status_and_roles(client, make_person, auth_headers, admin_headers, module):
    coach = make_person("COACH")
    judge = make_person("JUDGE")
    url = f"/api/modules/{module['id']}"

    assert client.get("/api/modules", headers=auth_headers(coach)).json() == []
    assert client.get(url, headers=auth_headers(coach)).status_code == 404

    client.put(url, headers=admin_headers, json={"status": "ACTIVE"})
    assert [m["id"] for m in client.get("/api/modules", headers=auth_headers(coach)).json()] == [module["id"]]
    assert client.get(url, headers=auth_headers(judge)).status_code == 404


def test_archive_module(client, admin_headers, module):
    response = client.delete(f"/api/modules/{module['id']}", headers=admin_headers)
    assert response.status_code == 200
    archived = client.get("/api/modules", headers=admin_headers, params={"status": "ARCHIVED"}).json()
    assert [m["id"] for m in archived] == [module["id"]]
