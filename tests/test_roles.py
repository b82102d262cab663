from ems_api.backend import BackendError
from ems_api.query import QueryResult, get_query_client
from ems_api.roles import Resolved, Role, Unresolved, get_user_role

from conftest import make_user


class _Rpc:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def rpc(self, fn, params=None):
        self.calls.append((fn, params))
        return self.result


def test_resolved_role():
    client = _Rpc(QueryResult(data="hr"))
    result = get_user_role(client, 7)
    assert result == Resolved(Role.HR)
    assert client.calls == [("get_user_role", {"_user_id": 7})]


def test_no_role_defaults_to_employee_only_when_asked():
    result = get_user_role(_Rpc(QueryResult(data=None)), 7)
    assert isinstance(result, Unresolved)
    assert result.role_or(Role.EMPLOYEE) is Role.EMPLOYEE


def test_lookup_error_is_logged_not_raised(caplog):
    err = BackendError("connection refused", code="XX000")
    result = get_user_role(_Rpc(QueryResult(error=err)), 7)
    assert isinstance(result, Unresolved)
    assert result.reason == "connection refused"
    assert "role lookup failed" in caplog.text


def test_unknown_role_value_is_unresolved():
    result = get_user_role(_Rpc(QueryResult(data="superuser")), 7)
    assert isinstance(result, Unresolved)
    assert result.role_or(Role.HR) is Role.HR


def test_resolved_ignores_default():
    assert Resolved(Role.ADMIN).role_or(Role.EMPLOYEE) is Role.ADMIN


def test_against_store(app):
    uid, _ = make_user("boss@example.com", role="admin")
    assert get_user_role(get_query_client(), uid) == Resolved(Role.ADMIN)
    assert isinstance(get_user_role(get_query_client(), 4242), Unresolved)
