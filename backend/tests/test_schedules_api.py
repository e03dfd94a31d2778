FAST_SETTINGS = {"population_size": 16, "generations": 20, "elite_count": 2, "random_seed": 5}


def generate(client, **overrides):
    payload = {
        "admin_id": "admin-1",
        "department": "Computer Science",
        "semester": 3,
        "settings_override": FAST_SETTINGS,
    }
    payload.update(overrides)
    return client.post("/api/schedules/generate", json=payload)


def test_generate_and_fetch_schedule(client, seed_catalog):
    seed_catalog()

    response = generate(client)
    assert response.status_code == 201
    body = response.json()
    schedule = body["schedule"]
    assert schedule["status"] == "draft"
    assert schedule["generated_by"] == "AI"
    assert body["termination"] in {
        "converged",
        "stagnant_terminated",
        "generation_limit_reached",
    }
    assert body["generations_run"] >= 1
    assert body["metrics"]["total_conflicts"] == 0
    monday = schedule["weekly_schedule"]["monday"]
    assert all(set(entry) == {"startTime", "endTime", "subject", "faculty", "classroom"} for entry in monday)

    fetched = client.get(f"/api/schedules/{schedule['id']}")
    assert fetched.status_code == 200
    assert fetched.json()["weekly_schedule"] == schedule["weekly_schedule"]

    listed = client.get("/api/schedules", params={"admin_id": "admin-1"})
    assert listed.status_code == 200
    assert [item["id"] for item in listed.json()] == [schedule["id"]]
    assert client.get("/api/schedules", params={"admin_id": "someone-else"}).json() == []


def test_generate_accepts_constraints_and_custom_grid(client, seed_catalog):
    seed_catalog()

    response = generate(
        client,
        constraints={"max_hours_per_day": 4, "max_consecutive_hours": 2, "avoid_time_slots": ["09:00-10:00"]},
        grid={
            "days": ["Mon", "Tue", "Wed"],
            "time_slots": [
                {"start_time": "09:00", "end_time": "10:00"},
                {"start_time": "10:00", "end_time": "11:00"},
                {"start_time": "11:00", "end_time": "12:00"},
            ],
        },
    )

    assert response.status_code == 201
    weekly = response.json()["schedule"]["weekly_schedule"]
    assert set(weekly) == {"monday", "tuesday", "wednesday"}
    assert response.json()["schedule"]["constraints"]["max_consecutive_hours"] == 2


def test_generate_unknown_department_returns_structured_404(client, seed_catalog):
    seed_catalog()

    response = generate(client, department="Astronomy")

    assert response.status_code == 404
    assert response.json() == {
        "message": "Department Astronomy not found",
        "details": {"admin_id": "admin-1", "department": "Astronomy"},
    }


def test_generate_empty_scope_returns_422(client, seed_catalog):
    seed_catalog()

    response = generate(client, semester=8)

    assert response.status_code == 422
    assert response.json()["details"]["missing"] == ["subjects"]


def test_generate_rejects_invalid_settings(client, seed_catalog):
    seed_catalog()

    response = generate(client, settings_override={"population_size": 5, "elite_count": 5})

    assert response.status_code == 422


def test_analysis_endpoint(client, seed_catalog):
    seed_catalog(with_lab=False)
    schedule_id = generate(client).json()["schedule"]["id"]

    response = client.get(f"/api/schedules/{schedule_id}/analysis")

    assert response.status_code == 200
    body = response.json()
    assert body["schedule_id"] == schedule_id
    assert body["conflicts"] == []
    assert any("Networks Lab" in item for item in body["suggestions"])
    assert body["metrics"]["unassigned_hours"] == 2


def test_publish_then_delete_is_refused(client, seed_catalog):
    seed_catalog()
    schedule_id = generate(client).json()["schedule"]["id"]

    published = client.patch(f"/api/schedules/{schedule_id}/status", json={"status": "published"})
    assert published.status_code == 200
    assert published.json()["status"] == "published"

    refused = client.delete(f"/api/schedules/{schedule_id}")
    assert refused.status_code == 409

    client.patch(f"/api/schedules/{schedule_id}/status", json={"status": "draft"})
    assert client.delete(f"/api/schedules/{schedule_id}").status_code == 204
    assert client.get(f"/api/schedules/{schedule_id}").status_code == 404


def test_unknown_schedule_returns_404(client):
    response = client.get("/api/schedules/does-not-exist")
    assert response.status_code == 404
    assert response.json()["message"] == "Schedule with id does-not-exist not found"

    assert client.get("/api/schedules/does-not-exist/analysis").status_code == 404
