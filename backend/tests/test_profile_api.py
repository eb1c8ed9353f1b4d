from conftest import birthday_today

from csystem import models
from csystem.enums import ParentLinkStatus


def test_get_profile_reports_completeness(client, make_person, auth_headers, dob):
    athlete = make_person("ATHLETE", date_of_birth=dob(16))
    body = client.get("/api/profile", headers=auth_headers(athlete)).json()

    assert body["person"]["id"] == athlete.id
    assert body["age"] == 16
    assert body["age_category"] == "U18"
    assert body["completeness"]["is_complete"] is False
    assert set(body["completeness"]["errors"]) == {"parent_name", "parent_phone"}


def test_update_profile_creates_role_data_lazily(client, make_person, auth_headers, dob):
    athlete = make_person("ATHLETE", date_of_birth=dob(16))
    response = client.put("/api/profile", headers=auth_headers(athlete), json={
        "occupation": "",
        "athlete_data": {
            "parent_name": "Budi Santoso",
            "parent_phone": "081298765432",
            "division": "Recurve",
            "bow_draw_weight": 24.5,
        },
    })
    assert response.status_code == 200
    body = response.json()
    assert body["person"]["occupation"] is None
    assert body["role_data"]["division"] == "Recurve"
    assert body["role_data"]["bow_draw_weight"] == 24.5
    assert body["completeness"] == {"is_complete": True, "errors": {}}


def test_blank_optional_values_are_stored_as_null(client, db, make_person, auth_headers):
    athlete = make_person("ATHLETE", nik="1101234567890001", phone="0211234567")
    client.put("/api/profile", headers=auth_headers(athlete), json={"phone": "  "})
    db.expire_all()
    assert db.get(models.Person, athlete.id).phone is None


def test_update_rejects_bad_formats(client, make_person, auth_headers):
    athlete = make_person("ATHLETE")
    headers = auth_headers(athlete)
    assert client.put("/api/profile", headers=headers, json={"whatsapp": "12345"}).status_code == 422
    assert client.put("/api/profile", headers=headers, json={"nik": "123"}).status_code == 422
    bad_parent = {"athlete_data": {"parent_phone": "999"}}
    assert client.put("/api/profile", headers=headers, json=bad_parent).status_code == 422


def test_trailing_newline_is_not_a_valid_format(client, db, make_person, auth_headers):
    athlete = make_person("ATHLETE")
    headers = auth_headers(athlete)
    assert client.put("/api/profile", headers=headers, json={"nik": "1234567890123456\n"}).status_code == 422
    assert client.put("/api/profile", headers=headers, json={"whatsapp": "081234567890\n"}).status_code == 422
    bad_parent = {"athlete_data": {"parent_phone": "081298765432\n"}}
    assert client.put("/api/profile", headers=headers, json=bad_parent).status_code == 422

    db.expire_all()
    stored = db.get(models.Person, athlete.id)
    assert stored.nik is None
    assert stored.whatsapp == "081234567890"


def test_name_cannot_be_cleared(client, make_person, auth_headers):
    athlete = make_person("ATHLETE")
    response = client.put("/api/profile", headers=auth_headers(athlete), json={"name": ""})
    assert response.status_code == 422
    assert response.json()["details"] == {"field": "name"}


def test_city_change_reissues_core_id(client, make_person, auth_headers):
    coach = make_person("COACH", city_id=None, core_id="06.0000.0001")
    body = client.put("/api/profile", headers=auth_headers(coach), json={"city_id": "3273"}).json()
    assert body["person"]["core_id"] == "06.3273.0001"
    assert body["person"]["city_id"] == "3273"


def test_same_city_keeps_core_id(client, make_person, auth_headers):
    coach = make_person("COACH")
    original = coach.core_id
    body = client.put("/api/profile", headers=auth_headers(coach), json={"city_id": "1101"}).json()
    assert body["person"]["core_id"] == original


def test_nik_required_at_seventeen(client, make_person, auth_headers):
    turning = make_person("JUDGE", date_of_birth=birthday_today(17))
    errors = client.get("/api/profile", headers=auth_headers(turning)).json()["completeness"]["errors"]
    assert errors == {"nik": "NIK is required for age 17 and above"}


def test_club_profile_keeps_name_when_blank(client, make_person, auth_headers):
    club = make_person("CLUB", nik="1101234567890002")
    body = client.put("/api/profile", headers=auth_headers(club), json={
        "club_data": {"name": "", "whatsapp_hotline": "081211112222", "address": "Jl. Merdeka 1"},
    }).json()
    assert body["role_data"]["name"] == f"{club.name} Archery Club"
    assert body["role_data"]["whatsapp_hotline"] == "081211112222"


def test_avatar(client, make_person, auth_headers):
    person = make_person("COACH")
    response = client.post("/api/profile/avatar", headers=auth_headers(person),
                           json={"avatar_url": "/uploads/avatars/a.png"})
    assert response.json()["avatar_url"] == "/uploads/avatars/a.png"


def test_admin_can_view_any_profile(client, admin, make_person, auth_headers):
    athlete = make_person("ATHLETE")
    response = client.get(f"/api/profile/{athlete.id}", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["person"]["core_id"] == athlete.core_id

    forbidden = client.get(f"/api/profile/{athlete.id}", headers=auth_headers(athlete))
    assert forbidden.status_code == 403
    assert client.get("/api/profile/missing", headers=auth_headers(admin)).status_code == 404


class TestGuardianLinks:
    def test_link_and_approve(self, client, db, make_person, auth_headers, dob):
        parent = make_person("PARENT")
        child = make_person("ATHLETE", date_of_birth=dob(12))

        link = client.post("/api/profile/link-child", headers=auth_headers(parent),
                           json={"child_core_id": child.core_id})
        assert link.status_code == 201
        assert link.json()["status"] == "PENDING"

        pending = client.get("/api/profile/integration-requests", headers=auth_headers(child)).json()
        assert [p["id"] for p in pending] == [link.json()["id"]]

        answered = client.post("/api/profile/respond-integration", headers=auth_headers(child),
                               json={"link_id": link.json()["id"], "approve": True})
        assert answered.json()["status"] == "APPROVED"

        db.expire_all()
        assert db.get(models.Person, child.id).athlete_data.parent_id == parent.id

        children = client.get("/api/profile/children", headers=auth_headers(parent)).json()
        assert children == [{
            "id": child.id, "core_id": child.core_id, "name": child.name,
            "date_of_birth": child.date_of_birth.isoformat(), "age": 12, "is_minor": True,
        }]

    def test_duplicate_link_conflicts(self, client, make_person, auth_headers):
        parent = make_person("PARENT")
        child = make_person("ATHLETE")
        body = {"child_core_id": child.core_id}
        client.post("/api/profile/link-child", headers=auth_headers(parent), json=body)
        again = client.post("/api/profile/link-child", headers=auth_headers(parent), json=body)
        assert again.status_code == 409
        assert again.json()["code"] == "LINK_EXISTS"

    def test_answer_twice_conflicts(self, client, make_person, auth_headers):
        parent = make_person("PARENT")
        child = make_person("ATHLETE")
        link_id = client.post("/api/profile/link-child", headers=auth_headers(parent),
                              json={"child_core_id": child.core_id}).json()["id"]
        body = {"link_id": link_id, "approve": False}
        assert client.post("/api/profile/respond-integration", headers=auth_headers(child),
                           json=body).json()["status"] == "REJECTED"
        again = client.post("/api/profile/respond-integration", headers=auth_headers(child), json=body)
        assert again.json()["code"] == "LINK_ALREADY_ANSWERED"

    def test_only_parents_link(self, client, make_person, auth_headers):
        coach = make_person("COACH")
        child = make_person("ATHLETE")
        response = client.post("/api/profile/link-child", headers=auth_headers(coach),
                               json={"child_core_id": child.core_id})
        assert response.status_code == 403


class TestGuardianEditsChild:
    def approved(self, db, parent, child):
        db.add(models.ParentLink(parent_id=parent.id, athlete_id=child.id,
                                 status=ParentLinkStatus.APPROVED.value))
        db.commit()

    def test_parent_updates_minor(self, client, db, make_person, auth_headers, dob):
        parent = make_person("PARENT")
        child = make_person("ATHLETE", date_of_birth=dob(13))
        self.approved(db, parent, child)

        response = client.put(f"/api/profile/child/{child.id}", headers=auth_headers(parent), json={
            "athlete_data": {"parent_name": parent.name, "parent_phone": "081298765432", "skill_level": "Beginner"},
        })
        assert response.status_code == 200
        assert response.json()["completeness"]["is_complete"] is True

    def test_parent_cannot_edit_adult_child(self, client, db, make_person, auth_headers, dob):
        parent = make_person("PARENT")
        child = make_person("ATHLETE", date_of_birth=dob(19))
        self.approved(db, parent, child)
        response = client.put(f"/api/profile/child/{child.id}", headers=auth_headers(parent),
                              json={"occupation": "Student"})
        assert response.status_code == 403

    def test_unlinked_parent_is_refused(self, client, make_person, auth_headers, dob):
        parent = make_person("PARENT")
        child = make_person("ATHLETE", date_of_birth=dob(10))
        response = client.put(f"/api/profile/child/{child.id}", headers=auth_headers(parent),
                              json={"occupation": "Student"})
        assert response.status_code == 403
