import pytest

from ems_api.services.employee_service import filter_employees, matches_search

from conftest import make_user

ROW = {
    "employee_code": "ENG-042",
    "profiles": {"first_name": "Grace", "last_name": "Hopper", "email": "grace@navy.mil"},
}


@pytest.mark.parametrize("term", ["grace", "GRACE", "hop", "NAVY.MIL", "eng-04", "  race "])
def test_search_matches_any_field_case_insensitively(term):
    assert matches_search(ROW, term)


@pytest.mark.parametrize("term", ["ada", "ENG-043", "designer"])
def test_search_misses(term):
    assert not matches_search(ROW, term)


def test_empty_term_matches_everything():
    assert filter_employees([ROW, {}], "") == [ROW, {}]
    assert filter_employees([ROW], None) == [ROW]


def test_missing_profile_does_not_break_search():
    assert not matches_search({"employee_code": None, "profiles": None}, "x")


def test_list_and_search(client, hr):
    _, headers = hr
    make_user("alan@example.com", first_name="Alan", last_name="Turing", employee_code="RES-001")
    make_user("kat@example.com", first_name="Katherine", last_name="Johnson", employee_code="NASA-7")

    r = client.get("/api/v1/employees", headers=headers)
    assert r.get_json()["meta"]["total"] == 2

    r = client.get("/api/v1/employees?q=TURING", headers=headers)
    assert [e["employee_code"] for e in r.get_json()["data"]] == ["RES-001"]

    r = client.get("/api/v1/employees?q=nasa", headers=headers)
    assert [e["profiles"]["first_name"] for e in r.get_json()["data"]] == ["Katherine"]


def test_create_and_update_employee(client, admin):
    _, headers = admin
    uid, _ = make_user("fresh@example.com")
    dep = client.post("/api/v1/departments", json={"name": "Research"}, headers=headers).get_json()["data"]

    r = client.post("/api/v1/employees", headers=headers, json={
        "profile_id": uid, "employee_code": "R-1", "department_id": dep["id"],
        "designation": "Scientist", "hire_date": "2024-01-15", "base_salary": 4200,
    })
    assert r.status_code == 201, r.get_json()
    emp = r.get_json()["data"]
    assert emp["status"] == "active"
    assert emp["hire_date"] == "2024-01-15"

    r = client.put(f"/api/v1/employees/{emp['id']}", json={"status": "inactive"}, headers=headers)
    assert r.get_json()["data"]["status"] == "inactive"

    r = client.get(f"/api/v1/employees/{emp['id']}", headers=headers)
    assert r.get_json()["data"]["departments"] == {"name": "Research"}


def test_duplicate_code_is_conflict(client, admin):
    _, headers = admin
    make_user("one@example.com", employee_code="DUP")
    uid, _ = make_user("two@example.com")
    r = client.post("/api/v1/employees", json={"profile_id": uid, "employee_code": "DUP"}, headers=headers)
    assert r.status_code == 409
    assert r.get_json()["error"]["code"] == "23505"


def test_validation(client, admin):
    _, headers = admin
    r = client.post("/api/v1/employees", json={"base_salary": -1, "status": "retired"}, headers=headers)
    assert r.status_code == 422
    errors = r.get_json()["error"]["errors"]
    assert set(errors) == {"profile_id", "employee_code", "base_salary", "status"}


def test_hr_cannot_write(client, hr):
    _, headers = hr
    r = client.post("/api/v1/employees", json={"profile_id": 1, "employee_code": "X"}, headers=headers)
    assert r.status_code == 403


def test_missing_employee(client, hr):
    _, headers = hr
    assert client.get("/api/v1/employees/404", headers=headers).status_code == 404
