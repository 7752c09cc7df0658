from career_advisor.db.models.activity import Activity


def test_log_and_list_activity(client, auth_headers):
    for i in range(3):
        response = client.post("/api/activity", headers=auth_headers, json={
            "type": "roadmap_generated",
            "title": f"Roadmap {i}",
            "description": "Generated a roadmap",
            "metadata": {"index": i},
        })
        assert response.status_code == 200
        assert response.json()["message"] == "Activity logged successfully"

    data = client.get("/api/activity", headers=auth_headers, params={"limit": 2}).json()

    assert data["total"] == 3
    assert data["hasMore"] is True
    assert [a["title"] for a in data["activities"]] == ["Roadmap 2", "Roadmap 1"]
    assert data["activities"][0]["metadata"] == {"index": 2}

    page_two = client.get("/api/activity", headers=auth_headers, params={"limit": 2, "offset": 2}).json()
    assert [a["title"] for a in page_two["activities"]] == ["Roadmap 0"]
    assert page_two["hasMore"] is False


def test_missing_fields_rejected(client, auth_headers):
    response = client.post("/api/activity", headers=auth_headers, json={"type": "quiz_completed"})
    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields: type, title, description"


def test_unknown_type_rejected(client, auth_headers):
    response = client.post("/api/activity", headers=auth_headers, json={
        "type": "logged_in", "title": "Hi", "description": "",
    })
    assert response.status_code == 400
    assert response.json()["error"].startswith("Invalid activity type")


def test_demo_user_activity_is_not_stored(client, db):
    response = client.post("/api/activity", json={
        "type": "quiz_completed", "title": "Quiz", "description": "Done",
    })

    assert response.json()["message"] == "Activity logged successfully (local)"
    assert db.query(Activity).count() == 0
    assert client.get("/api/activity").json()["total"] == 0
