import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from career_advisor.db.models.activity import Activity
from career_advisor.db.models.college import College
from career_advisor.db.models.saved_college import SavedCollege
from career_advisor.services import college_service


SAVE_BODY = {
    "action": "save",
    "collegeId": "1",
    "collegeName": "Indian Institute of Technology Delhi",
    "collegeLocation": "Hauz Khas, New Delhi",
    "collegeType": "Government",
}


def test_empty_table_serves_sample_data(client):
    data = client.get("/api/colleges").json()

    assert data["source"] == "mock"
    assert data["total"] == len(college_service.SAMPLE_COLLEGES)
    assert data["colleges"][0]["shortName"] == "IIT-D"


def test_sample_data_filters(client):
    data = client.get("/api/colleges", params={"state": "Delhi", "major": "civil"}).json()
    assert [c["shortName"] for c in data["colleges"]] == ["IIT-D", "DTU"]

    data = client.get("/api/colleges", params={"search": "pilani"}).json()
    assert [c["id"] for c in data["colleges"]] == ["2"]


def test_database_colleges_are_ranked_by_rating(client, db):
    db.add_all([
        College(id="a", name="Alpha University", city="Austin", state="Texas", rating=3.9, courses=["Biology"]),
        College(id="b", name="Beta Institute", city="Boston", state="Massachusetts", rating=4.7, courses=["Physics"]),
    ])
    db.commit()

    data = client.get("/api/colleges", params={"limit": 1, "page": 2}).json()

    assert data["source"] == "database"
    assert data["total"] == 2
    assert data["colleges"][0]["id"] == "a"
    assert data["colleges"][0]["ranking"] == 2


def test_save_then_save_again(client, auth_headers, test_user, db):
    first = client.post("/api/colleges", headers=auth_headers, json=SAVE_BODY).json()
    second = client.post("/api/colleges", headers=auth_headers, json=SAVE_BODY).json()

    assert first["message"] == "College saved successfully"
    assert first["data"]["college_id"] == "1"
    assert second["alreadyExists"] is True
    assert db.query(SavedCollege).count() == 1
    assert db.query(Activity).filter(Activity.type == "college_saved").count() == 1


def test_remove_saved_and_missing(client, auth_headers):
    client.post("/api/colleges", headers=auth_headers, json=SAVE_BODY)

    removed = client.post("/api/colleges", headers=auth_headers, json={"action": "remove", "collegeId": "1"}).json()
    missing = client.post("/api/colleges", headers=auth_headers, json={"action": "remove", "collegeId": "1"}).json()

    assert removed == {"success": True, "message": "College removed successfully"}
    assert missing["notFound"] is True


def test_action_validation(client, auth_headers):
    response = client.post("/api/colleges", headers=auth_headers, json={"action": "save"})
    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields: action, collegeId"

    response = client.post("/api/colleges", headers=auth_headers, json={"action": "star", "collegeId": "1"})
    assert response.status_code == 400
    assert response.json()["error"] == 'Invalid action. Must be "save" or "remove"'


def test_store_failure_answers_local_fallback(client, auth_headers, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("INSERT", {}, Exception("database is locked"))

    monkeypatch.setattr(college_service, "save_college", broken)
    data = client.post("/api/colleges", headers=auth_headers, json=SAVE_BODY).json()

    assert data["success"] is True
    assert data["fallback"] is True


def test_save_retries_transient_failures(db, test_user, monkeypatch):
    calls = {"commits": 0}
    real_commit = db.commit

    def flaky_commit():
        calls["commits"] += 1
        if calls["commits"] == 1:
            raise OperationalError("INSERT", {}, Exception("database is locked"))
        real_commit()

    monkeypatch.setattr(db, "commit", flaky_commit)
    row, created = college_service.save_college(
        db, test_user.id, "9", "Test College", "Pune", "Private", delay=0,
    )

    assert created is True
    assert row.college_name == "Test College"
    assert calls["commits"] == 2


def test_duplicate_key_conflict_is_not_retried(db, test_user, monkeypatch):
    calls = {"commits": 0}

    def conflicting_commit():
        calls["commits"] += 1
        raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

    monkeypatch.setattr(db, "commit", conflicting_commit)
    with pytest.raises(IntegrityError):
        college_service.save_college(
            db, test_user.id, "9", "Test College", "Pune", "Private", delay=5,
        )

    assert calls["commits"] == 1


def test_saved_colleges_crud(client, auth_headers):
    body = {k: v for k, v in SAVE_BODY.items() if k != "action"}
    saved = client.post("/api/saved-colleges", headers=auth_headers, json=body).json()
    assert saved["savedCollege"]["collegeName"] == SAVE_BODY["collegeName"]

    listed = client.get("/api/saved-colleges", headers=auth_headers).json()
    assert listed["count"] == 1
    assert listed["savedColleges"][0]["collegeId"] == "1"

    removed = client.delete("/api/saved-colleges", headers=auth_headers, params={"collegeId": "1"}).json()
    assert removed["removed"] == 1
    assert client.get("/api/saved-colleges", headers=auth_headers).json()["count"] == 0


def test_saved_colleges_validation(client, auth_headers):
    response = client.post("/api/saved-colleges", headers=auth_headers, json={"collegeId": "1"})
    assert response.status_code == 400
    assert response.json()["error"] == (
        "Missing required fields: collegeId, collegeName, collegeLocation, collegeType"
    )

    response = client.delete("/api/saved-colleges", headers=auth_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "College ID is required"


def test_saving_twice_keeps_one_row(client, auth_headers):
    body = {k: v for k, v in SAVE_BODY.items() if k != "action"}
    client.post("/api/saved-colleges", headers=auth_headers, json=body)
    second = client.post("/api/saved-colleges", headers=auth_headers, json=body)

    assert second.status_code == 200
    assert client.get("/api/saved-colleges", headers=auth_headers).json()["count"] == 1
