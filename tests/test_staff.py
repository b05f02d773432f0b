"""
Staff sign-in, sessions, profile and employee management.
"""
from datetime import datetime, timedelta, timezone

import pytest

from cafedesk.core.errors import AuthenticationFailed, BusinessRuleViolation, PermissionDenied, ValidationFailed
from cafedesk.core.security import verify_password
from cafedesk.db import staff_ops
from cafedesk.models import PrincipalKind, Role, SessionStatus
from tests.conftest import ADMIN_EMAIL, ADMIN_PASSWORD, STAFF_PASSWORD


async def test_employee_id_is_normalised_on_login(db, staff):
    principal = await staff_ops.login_employee(db, " emp1234 ", STAFF_PASSWORD, device_info="Tablet", ip_address="10.0.0.7")

    assert principal.employee_id == "EMP1234"
    assert principal.kind == PrincipalKind.EMPLOYEE
    assert principal.role == Role.EMPLOYEE
    assert principal.session_id
    assert await staff_ops.is_session_active(db, principal.session_id)


async def test_employee_login_error_order(db, staff):
    with pytest.raises(AuthenticationFailed, match="Employee ID not found"):
        await staff_ops.login_employee(db, "EMP9999", STAFF_PASSWORD)
    with pytest.raises(AuthenticationFailed, match="Invalid password"):
        await staff_ops.login_employee(db, "EMP1234", "wrong")

    await staff_ops.set_employee_active(db, staff["employee"].id, False)
    with pytest.raises(AuthenticationFailed, match="Invalid password"):
        await staff_ops.login_employee(db, "EMP1234", "wrong")
    with pytest.raises(PermissionDenied, match="deactivated"):
        await staff_ops.login_employee(db, "EMP1234", STAFF_PASSWORD)


async def test_email_login_is_case_insensitive(db, staff):
    principal = await staff_ops.login_with_email(db, ADMIN_EMAIL.upper(), ADMIN_PASSWORD)
    assert principal.kind == PrincipalKind.ADMIN
    assert principal.role == Role.SUPER_ADMIN

    with pytest.raises(AuthenticationFailed, match="Invalid email or password"):
        await staff_ops.login_with_email(db, ADMIN_EMAIL, "nope")


async def test_logout_closes_session(db, staff):
    principal = await staff_ops.login_with_email(db, ADMIN_EMAIL, ADMIN_PASSWORD)
    await staff_ops.logout(db, principal.session_id)

    assert not await staff_ops.is_session_active(db, principal.session_id)
    history = await staff_ops.login_history(db)
    assert history[0].status == SessionStatus.LOGGED_OUT
    assert history[0].logout_at is not None


async def test_long_user_agent_is_truncated(db, staff):
    await staff_ops.login_employee(db, "EMP2001", STAFF_PASSWORD, device_info="x" * 400)
    history = await staff_ops.login_history(db)
    assert len(history[0].device_info) == 100
    assert history[0].principal_name == "Meera"
    assert history[0].role == "cashier"


async def test_load_principal_rechecks_account(db, staff):
    principal = await staff_ops.login_employee(db, "EMP1234", STAFF_PASSWORD)
    claims = principal.claims()
    assert (await staff_ops.load_principal(db, claims)).name == "Ravi"

    await staff_ops.set_employee_active(db, staff["employee"].id, False)
    with pytest.raises(PermissionDenied):
        await staff_ops.load_principal(db, claims)
    with pytest.raises(AuthenticationFailed):
        await staff_ops.load_principal(db, {"kind": "robot", "sub": "x"})


async def test_change_password_checks_in_order(db, staff):
    principal = await staff_ops.login_employee(db, "EMP1234", STAFF_PASSWORD)

    with pytest.raises(ValidationFailed, match="do not match"):
        await staff_ops.change_password(db, principal, "wrong", "abcdef", "abcdeg")
    with pytest.raises(ValidationFailed, match="at least 6"):
        await staff_ops.change_password(db, principal, "wrong", "abc", "abc")
    with pytest.raises(AuthenticationFailed):
        await staff_ops.change_password(db, principal, "wrong", "abcdef", "abcdef")

    await staff_ops.change_password(db, principal, STAFF_PASSWORD, "new-secret", "new-secret")
    emp = await staff_ops.get_employee(db, staff["employee"].id)
    assert verify_password("new-secret", emp.hashed_password)


async def test_update_profile(db, staff):
    principal = await staff_ops.login_with_email(db, ADMIN_EMAIL, ADMIN_PASSWORD)
    updated = await staff_ops.update_profile(db, principal, name=" Anita ", phone="98200 00000")
    assert updated.name == "Anita"
    assert updated.phone == "98200 00000"
    assert updated.session_id == principal.session_id

    with pytest.raises(ValidationFailed):
        await staff_ops.update_profile(db, principal, name="  ")


async def test_create_employee_generates_id_and_password(db, staff):
    emp, password = await staff_ops.create_employee(db, name="Kiran", role=Role.CASHIER)

    assert emp.employee_id.startswith("EMP")
    assert len(emp.employee_id) == 7
    assert len(password) == 8
    assert not set(password) & set("0O1lI")
    assert emp.hashed_password != password
    assert verify_password(password, emp.hashed_password)


async def test_create_employee_with_explicit_credentials(db, staff):
    emp, password = await staff_ops.create_employee(db, name="Asha", employee_id="emp3003", password="asha-pass")
    assert emp.employee_id == "EMP3003"
    assert password is None

    with pytest.raises(BusinessRuleViolation):
        await staff_ops.create_employee(db, name="Copy", employee_id="EMP3003")
    with pytest.raises(ValidationFailed):
        await staff_ops.create_employee(db, name="   ")
    with pytest.raises(ValidationFailed):
        await staff_ops.create_employee(db, name="Short", password="abc")


async def test_update_and_delete_employee(db, staff):
    emp = await staff_ops.update_employee(db, staff["cashier"].id, role=Role.EMPLOYEE, phone="")
    assert emp.role == "employee"
    assert emp.phone is None

    await staff_ops.delete_employee(db, staff["cashier"].id)
    assert [e.employee_id for e in await staff_ops.list_employees(db)] == ["EMP1234"]


def test_format_duration():
    login = datetime(2026, 3, 15, 9, 0, tzinfo=timezone.utc)
    assert staff_ops.format_duration(login, None) == "Currently Active"
    assert staff_ops.format_duration(login, login + timedelta(minutes=45)) == "45m"
    assert staff_ops.format_duration(login, login + timedelta(hours=2, minutes=5)) == "2h 5m"


def test_normalize_employee_id():
    assert staff_ops.normalize_employee_id("  emp0042 ") == "EMP0042"


async def test_bootstrap_admin_created_once(db, monkeypatch):
    monkeypatch.setattr(staff_ops.settings, "BOOTSTRAP_ADMIN_EMAIL", " Owner@CafeRepublic.in ")
    monkeypatch.setattr(staff_ops.settings, "BOOTSTRAP_ADMIN_PASSWORD", "first-boot")

    user = await staff_ops.ensure_bootstrap_admin(db)
    assert user.email == "owner@caferepublic.in"
    assert user.role == Role.SUPER_ADMIN
    assert await staff_ops.ensure_bootstrap_admin(db) is None

    principal = await staff_ops.login_with_email(db, "owner@caferepublic.in", "first-boot")
    assert principal.role == Role.SUPER_ADMIN


async def test_bootstrap_admin_skipped_without_credentials(db, monkeypatch):
    monkeypatch.setattr(staff_ops.settings, "BOOTSTRAP_ADMIN_EMAIL", "")
    assert await staff_ops.ensure_bootstrap_admin(db) is None
