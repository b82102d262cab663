import os
from decimal import Decimal

import pytest

from ems_api import create_app
from ems_api.extensions import db
from ems_api.models.employee import Employee
from ems_api.models.profile import Profile
from ems_api.models.user import User

PASSWORD = "secret123"


@pytest.fixture(scope="function")
def app():
    os.environ["DATABASE_URL"] = "sqlite:///:memory:"
    app = create_app()
    app.config["TESTING"] = True
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope="function")
def client(app):
    return app.test_client()


def make_user(email, role="employee", first_name="Test", last_name="User",
              employee_code=None, base_salary=0, status="active"):
    """User + profile, and an employee record when employee_code is given."""
    u = User(email=email, status="active")
    u.set_password(PASSWORD)
    db.session.add(u)
    db.session.flush()
    db.session.add(Profile(id=u.id, email=email, first_name=first_name, last_name=last_name, role=role))
    emp = None
    if employee_code:
        emp = Employee(profile_id=u.id, employee_code=employee_code,
                       base_salary=Decimal(str(base_salary)), status=status)
        db.session.add(emp)
    db.session.commit()
    return u.id, (emp.id if emp else None)


def sign_in(client, email, password=PASSWORD):
    r = client.post("/api/v1/auth/sign-in", json={"email": email, "password": password})
    assert r.status_code == 200, r.get_json()
    return r.get_json()["data"]


def auth_headers(client, email):
    return {"Authorization": f"Bearer {sign_in(client, email)['access_token']}"}


@pytest.fixture
def admin(app, client):
    uid, _ = make_user("admin@example.com", role="admin", first_name="Ada", last_name="Admin")
    return uid, auth_headers(client, "admin@example.com")


@pytest.fixture
def hr(app, client):
    uid, _ = make_user("hr@example.com", role="hr", first_name="Hana", last_name="Reyes")
    return uid, auth_headers(client, "hr@example.com")
