from database.db import DataStoreError, get_store
from main import app


def grade_ids(response):
    return sorted(g["id"] for g in response.json()["data"])


# ==========================================================
# auth
# ==========================================================

def test_missing_token_is_rejected(client):
    r = client.get("/v1/grades/")
    assert r.status_code == 401


def test_malformed_header_is_rejected(client):
    r = client.get("/v1/grades/", headers={"Authorization": "Token abc"})
    assert r.status_code == 401


def test_unknown_token_is_rejected(client):
    r = client.get("/v1/grades/", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid token"


# ==========================================================
# compute
# ==========================================================

def test_compute_uses_default_weights(client, advisor):
    r = client.post("/v1/grades/compute", headers=advisor,
                    json={"written_work": 80, "performance_task": 90, "quarterly_assessment": 70})
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["final_grade"] == 82.5
    assert data["remarks"] == "Satisfactory"
    assert data["weights"] == {"written_work": 0.25, "performance_task": 0.5, "quarterly_assessment": 0.25}


def test_compute_uses_active_grading_system(client, store, advisor):
    store.tables["grading_systems"].append({
        "id": "gs-1", "name": "Science heavy", "written_work_percentage": 40,
        "performance_task_percentage": 40, "quarterly_assessment_percentage": 20, "is_active": True,
    })
    r = client.post("/v1/grades/compute", headers=advisor,
                    json={"written_work": 80, "performance_task": 90, "quarterly_assessment": 70})
    assert r.json()["data"]["final_grade"] == 82.0


def test_compute_with_explicit_weights_and_missing_component(client, advisor):
    r = client.post("/v1/grades/compute", headers=advisor, json={
        "performance_task": 90,
        "weights": {"written_work": 0.25, "performance_task": 0.5, "quarterly_assessment": 0.25},
    })
    assert r.json()["data"]["final_grade"] == 45.0
    assert r.json()["data"]["remarks"] == "Did Not Meet Expectations"


def test_compute_rejects_scores_above_100(client, advisor):
    r = client.post("/v1/grades/compute", headers=advisor, json={"written_work": 101})
    assert r.status_code == 422


# ==========================================================
# listing
# ==========================================================

def test_admin_sees_every_grade(client, admin):
    r = client.get("/v1/grades/", headers=admin)
    assert grade_ids(r) == ["g1", "g2", "g3", "g4"]


def test_advisor_sees_only_assigned_sections(client, advisor):
    r = client.get("/v1/grades/", headers=advisor)
    assert grade_ids(r) == ["g1", "g3"]
    g3 = next(g for g in r.json()["data"] if g["id"] == "g3")
    assert (g3["year_level"], g3["section"], g3["strand"]) == ("11", "Maxwell", "stem")


def test_advisor_without_assignments_sees_no_grades(client, lonely):
    r = client.get("/v1/grades/", headers=lonely)
    assert r.status_code == 200
    assert r.json()["data"] == []


def test_list_filters(client, admin):
    r = client.get("/v1/grades/", headers=admin, params={"subject": "Math", "quarter": "1st"})
    assert grade_ids(r) == ["g1", "g2"]


def test_out_of_scope_grade_is_not_found(client, advisor):
    assert client.get("/v1/grades/g2", headers=advisor).status_code == 404
    assert client.get("/v1/grades/g1", headers=advisor).status_code == 200


# ==========================================================
# create / update / delete
# ==========================================================

def test_create_derives_final_grade_and_remarks(client, store, advisor):
    r = client.post("/v1/grades/", headers=advisor, json={
        "student_id": "s1", "subject": "Science", "quarter": "2nd",
        "written_work": 95, "performance_task": 92, "quarterly_assessment": 88,
    })
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["final_grade"] == 91.75
    assert data["remarks"] == "Outstanding"
    saved = store.select("grades", {"student_id": "s1", "subject": "Science"})
    assert saved[0]["final_grade"] == 91.75


def test_create_ignores_client_supplied_final_grade(client, store, admin):
    r = client.post("/v1/grades/", headers=admin, json={
        "student_id": "s2", "subject": "Science", "quarter": "1st",
        "written_work": 80, "performance_task": 80, "quarterly_assessment": 80, "final_grade": 99,
    })
    assert r.json()["data"]["final_grade"] == 80.0


def test_create_outside_assignments_is_forbidden(client, advisor):
    r = client.post("/v1/grades/", headers=advisor, json={
        "student_id": "s2", "subject": "Math", "quarter": "2nd", "written_work": 90,
    })
    assert r.status_code == 403


def test_create_for_unassigned_subject_is_forbidden(client, advisor):
    r = client.post("/v1/grades/", headers=advisor, json={
        "student_id": "s1", "subject": "English", "quarter": "2nd", "written_work": 90,
    })
    assert r.status_code == 403


def test_create_for_unknown_student(client, admin):
    r = client.post("/v1/grades/", headers=admin, json={"student_id": "nobody", "subject": "Math", "quarter": "1st"})
    assert r.status_code == 404


def test_duplicate_grade_conflicts(client, advisor):
    r = client.post("/v1/grades/", headers=advisor, json={
        "student_id": "s1", "subject": "Math", "quarter": "1st", "written_work": 90,
    })
    assert r.status_code == 409


def test_update_recomputes_and_records_history(client, store, advisor):
    r = client.put("/v1/grades/g1", headers=advisor, json={
        "written_work": 90, "performance_task": 90, "quarterly_assessment": 90,
    })
    assert r.status_code == 200
    assert r.json()["data"]["final_grade"] == 90.0
    assert r.json()["data"]["remarks"] == "Outstanding"
    assert store.select("grades", {"id": "g1"})[0]["final_grade"] == 90.0

    history = client.get("/v1/grades/g1/history", headers=advisor).json()["data"]
    assert len(history) == 1
    assert history[0]["changed_by"] == "u-adv"
    assert history[0]["old_values"]["final_grade"] == 82.5
    assert history[0]["new_values"]["final_grade"] == 90.0


def test_delete_grade(client, store, admin, advisor):
    assert client.delete("/v1/grades/g2", headers=advisor).status_code == 404
    r = client.delete("/v1/grades/g2", headers=admin)
    assert r.status_code == 200
    assert store.select("grades", {"id": "g2"}) == []


def test_create_and_delete_are_audited(client, store, admin):
    r = client.post("/v1/grades/", headers=admin, json={
        "student_id": "s2", "subject": "Science", "quarter": "1st",
        "written_work": 80, "performance_task": 80, "quarterly_assessment": 80,
    })
    grade_id = r.json()["data"]["id"]
    assert client.delete(f"/v1/grades/{grade_id}", headers=admin).status_code == 200

    history = store.select("grade_history", {"grade_id": grade_id})
    assert [h["action_type"] for h in history] == ["INSERT", "DELETE"]
    assert history[0]["old_values"] == {}
    assert history[0]["new_values"]["final_grade"] == 80.0
    assert history[1]["old_values"]["final_grade"] == 80.0
    assert history[1]["new_values"] == {}


def _history_writes_fail(store):
    insert = store.insert

    def insert_or_fail(table, row):
        if table == "grade_history":
            raise DataStoreError("history unavailable", 503)
        return insert(table, row)

    store.insert = insert_or_fail


def test_failed_history_write_reverts_create(client, store, admin):
    _history_writes_fail(store)
    r = client.post("/v1/grades/", headers=admin, json={
        "student_id": "s2", "subject": "Science", "quarter": "1st", "written_work": 80,
    })
    assert r.status_code == 502
    assert store.select("grades", {"student_id": "s2", "subject": "Science"}) == []


def test_failed_history_write_reverts_update(client, store, advisor):
    _history_writes_fail(store)
    r = client.put("/v1/grades/g1", headers=advisor, json={
        "written_work": 90, "performance_task": 90, "quarterly_assessment": 90,
    })
    assert r.status_code == 502
    saved = store.select("grades", {"id": "g1"})[0]
    assert (saved["written_work"], saved["final_grade"], saved["remarks"]) == (80, 82.5, "Satisfactory")


def test_failed_history_write_reverts_delete(client, store, admin):
    _history_writes_fail(store)
    assert client.delete("/v1/grades/g2", headers=admin).status_code == 502
    restored = store.select("grades", {"id": "g2"})
    assert len(restored) == 1
    assert restored[0]["final_grade"] == 60.0


# ==========================================================
# errors
# ==========================================================

class BrokenStore:
    def get_user(self, token):
        return {"id": "u-admin"}

    def select(self, table, filters=None, order=None):
        raise DataStoreError("upstream unavailable", 503)


def test_data_store_failure_becomes_502(client, admin):
    app.dependency_overrides[get_store] = lambda: BrokenStore()
    r = client.get("/v1/grades/", headers=admin)
    assert r.status_code == 502
    assert r.json()["error"]["code"] == "DATA_STORE_ERROR"
    assert "X-Latency-Ms" in r.headers
