"""
Cafe Desk - Staff sign-in, login sessions and employee management

Two credential paths share one session/audit trail:
  - admin users sign in with email + password
  - employees sign in with an employee ID (EMP1234) + password
Both store bcrypt hashes only.
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cafedesk.core.config import get_settings
from cafedesk.core.errors import (
    AuthenticationFailed,
    BusinessRuleViolation,
    NotFound,
    PermissionDenied,
    ValidationFailed,
)
from cafedesk.core.security import create_access_token, hash_password, verify_password
from cafedesk.db.database import commit_or_fail
from cafedesk.models.order import now_utc
from cafedesk.models.staff import (
    AdminSession,
    AdminUser,
    Employee,
    PrincipalKind,
    Role,
    SessionStatus,
)

settings = get_settings()
logger = logging.getLogger(__name__)

DEVICE_INFO_MAX = 100
MIN_PASSWORD_LENGTH = 6
GENERATED_PASSWORD_LENGTH = 8
# No 0/O, 1/l/I: the password is read out loud or copied from a screen.
PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnpqrstuvwxyz23456789"
EMPLOYEE_ID_PREFIX = "EMP"


@dataclass
class Principal:
    id: str
    kind: PrincipalKind
    name: str
    role: Role
    email: str | None = None
    employee_id: str | None = None
    phone: str | None = None
    session_id: str | None = None

    def claims(self) -> dict:
        return {
            "sub": self.id,
            "kind": self.kind.value,
            "role": self.role.value,
            "name": self.name,
            "sid": self.session_id,
        }


def _admin_principal(user: AdminUser, session_id: str | None = None) -> Principal:
    return Principal(
        id=user.id,
        kind=PrincipalKind.ADMIN,
        name=user.name,
        role=Role(user.role),
        email=user.email,
        phone=user.phone,
        session_id=session_id,
    )


def _employee_principal(emp: Employee, session_id: str | None = None) -> Principal:
    return Principal(
        id=emp.id,
        kind=PrincipalKind.EMPLOYEE,
        name=emp.name,
        role=Role(emp.role),
        email=emp.email,
        employee_id=emp.employee_id,
        phone=emp.phone,
        session_id=session_id,
    )


def normalize_employee_id(raw: str) -> str:
    return raw.strip().upper()


def generate_password(length: int = GENERATED_PASSWORD_LENGTH) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


async def generate_employee_id(db: AsyncSession) -> str:
    for _ in range(20):
        candidate = f"{EMPLOYEE_ID_PREFIX}{secrets.randbelow(9000) + 1000}"
        taken = await db.scalar(select(Employee.id).where(Employee.employee_id == candidate))
        if taken is None:
            return candidate
    raise BusinessRuleViolation("Could not find a free employee ID. Enter one manually.")


# ─── Sessions ─────────────────────────────────────────────────────────────────

async def _open_session(
    db: AsyncSession,
    principal: Principal,
    device_info: str | None,
    ip_address: str | None,
) -> Principal:
    session = AdminSession(
        admin_user_id=principal.id if principal.kind == PrincipalKind.ADMIN else None,
        employee_ref=principal.id if principal.kind == PrincipalKind.EMPLOYEE else None,
        principal_name=principal.name,
        principal_email=principal.email,
        role=principal.role.value,
        device_info=(device_info or "Unknown")[:DEVICE_INFO_MAX],
        ip_address=ip_address,
        status=SessionStatus.ACTIVE.value,
    )
    db.add(session)
    await db.flush()
    principal.session_id = session.id
    await commit_or_fail(db, f"recording sign-in for {principal.name}")
    logger.info("%s %s signed in (session %s)", principal.kind.value, principal.name, session.id)
    return principal


def issue_token(principal: Principal) -> str:
    return create_access_token(principal.claims())


async def login_with_email(
    db: AsyncSession,
    email: str,
    password: str,
    device_info: str | None = None,
    ip_address: str | None = None,
) -> Principal:
    result = await db.execute(select(AdminUser).where(func.lower(AdminUser.email) == email.strip().lower()))
    user: AdminUser | None = result.scalar_one_or_none()
    if user is None or not verify_password(password, user.hashed_password):
        raise AuthenticationFailed("Invalid email or password.")
    if not user.is_active:
        raise PermissionDenied("This account has been deactivated. Contact admin.")
    return await _open_session(db, _admin_principal(user), device_info, ip_address)


async def login_employee(
    db: AsyncSession,
    employee_id: str,
    password: str,
    device_info: str | None = None,
    ip_address: str | None = None,
) -> Principal:
    """Errors are reported in order: unknown ID, wrong password, deactivated."""
    normalized = normalize_employee_id(employee_id)
    result = await db.execute(select(Employee).where(Employee.employee_id == normalized))
    emp: Employee | None = result.scalar_one_or_none()
    if emp is None:
        raise AuthenticationFailed("Employee ID not found.")
    if not verify_password(password, emp.hashed_password):
        raise AuthenticationFailed("Invalid password.")
    if not emp.is_active:
        raise PermissionDenied("This account has been deactivated. Contact admin.")
    return await _open_session(db, _employee_principal(emp), device_info, ip_address)


async def is_session_active(db: AsyncSession, session_id: str | None) -> bool:
    if not session_id:
        return False
    status = await db.scalar(select(AdminSession.status).where(AdminSession.id == session_id))
    return status == SessionStatus.ACTIVE.value


async def logout(db: AsyncSession, session_id: str) -> None:
    await db.execute(
        update(AdminSession)
        .where(AdminSession.id == session_id, AdminSession.status == SessionStatus.ACTIVE.value)
        .values(status=SessionStatus.LOGGED_OUT.value, logout_at=now_utc())
        .execution_options(synchronize_session=False)
    )
    await commit_or_fail(db, "signing out")
    logger.info("Session %s closed", session_id)


async def load_principal(db: AsyncSession, claims: dict) -> Principal:
    """Rebuild the signed-in principal from token claims, re-checking the account."""
    kind = claims.get("kind")
    subject = claims.get("sub")
    if kind == PrincipalKind.ADMIN.value:
        user = await db.get(AdminUser, subject, populate_existing=True)
        if user is None:
            raise AuthenticationFailed("Account no longer exists.")
        if not user.is_active:
            raise PermissionDenied("This account has been deactivated. Contact admin.")
        return _admin_principal(user, claims.get("sid"))
    if kind == PrincipalKind.EMPLOYEE.value:
        emp = await db.get(Employee, subject, populate_existing=True)
        if emp is None:
            raise AuthenticationFailed("Account no longer exists.")
        if not emp.is_active:
            raise PermissionDenied("This account has been deactivated. Contact admin.")
        return _employee_principal(emp, claims.get("sid"))
    raise AuthenticationFailed("Unrecognised token.")


# ─── Profile ──────────────────────────────────────────────────────────────────

async def _account(db: AsyncSession, principal: Principal) -> AdminUser | Employee:
    model = AdminUser if principal.kind == PrincipalKind.ADMIN else Employee
    account = await db.get(model, principal.id)
    if account is None:
        raise NotFound("Account not found.")
    return account


async def update_profile(
    db: AsyncSession,
    principal: Principal,
    name: str | None = None,
    phone: str | None = None,
) -> Principal:
    account = await _account(db, principal)
    if name is not None:
        if not name.strip():
            raise ValidationFailed("Name cannot be empty.")
        account.name = name.strip()
    if phone is not None:
        account.phone = phone.strip() or None
    await commit_or_fail(db, "updating profile")
    if isinstance(account, AdminUser):
        return _admin_principal(account, principal.session_id)
    return _employee_principal(account, principal.session_id)


async def change_password(
    db: AsyncSession,
    principal: Principal,
    current_password: str,
    new_password: str,
    confirm_password: str,
) -> None:
    if new_password != confirm_password:
        raise ValidationFailed("New passwords do not match.")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    account = await _account(db, principal)
    if not verify_password(current_password, account.hashed_password):
        raise AuthenticationFailed("Current password is incorrect.")
    account.hashed_password = hash_password(new_password)
    await commit_or_fail(db, "changing password")
    logger.info("Password changed for %s %s", principal.kind.value, principal.id)


# ─── Employees (super admin) ──────────────────────────────────────────────────

async def list_employees(db: AsyncSession) -> list[Employee]:
    result = await db.execute(
        select(Employee).order_by(Employee.created_at.desc()).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_employee(db: AsyncSession, employee_pk: str) -> Employee:
    emp = await db.get(Employee, employee_pk, populate_existing=True)
    if emp is None:
        raise NotFound("Employee not found.")
    return emp


async def create_employee(
    db: AsyncSession,
    name: str,
    employee_id: str | None = None,
    password: str | None = None,
    role: Role = Role.EMPLOYEE,
    phone: str | None = None,
    email: str | None = None,
) -> tuple[Employee, str | None]:
    """
    Returns the employee and, when the password was generated here, the
    plaintext password so it can be shown to the owner exactly once.
    """
    if not name or not name.strip():
        raise ValidationFailed("Employee name is required.")

    if employee_id and employee_id.strip():
        employee_id = normalize_employee_id(employee_id)
        taken = await db.scalar(select(Employee.id).where(Employee.employee_id == employee_id))
        if taken is not None:
            raise BusinessRuleViolation(f"Employee ID {employee_id} is already in use.")
    else:
        employee_id = await generate_employee_id(db)

    generated = None
    if not password:
        password = generated = generate_password()
    elif len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

    emp = Employee(
        employee_id=employee_id,
        hashed_password=hash_password(password),
        name=name.strip(),
        role=Role(role).value,
        phone=phone,
        email=email,
    )
    db.add(emp)
    await commit_or_fail(db, f"creating employee {employee_id}")
    logger.info("Employee %s created with role %s", employee_id, emp.role)
    return emp, generated


async def update_employee(
    db: AsyncSession,
    employee_pk: str,
    name: str | None = None,
    role: Role | None = None,
    phone: str | None = None,
    email: str | None = None,
) -> Employee:
    emp = await get_employee(db, employee_pk)
    if name is not None:
        if not name.strip():
            raise ValidationFailed("Employee name is required.")
        emp.name = name.strip()
    if role is not None:
        emp.role = Role(role).value
    if phone is not None:
        emp.phone = phone or None
    if email is not None:
        emp.email = email or None
    await commit_or_fail(db, f"updating employee {emp.employee_id}")
    return emp


async def set_employee_active(db: AsyncSession, employee_pk: str, is_active: bool) -> Employee:
    emp = await get_employee(db, employee_pk)
    emp.is_active = is_active
    await commit_or_fail(db, f"{'activating' if is_active else 'deactivating'} employee {emp.employee_id}")
    logger.info("Employee %s %s", emp.employee_id, "activated" if is_active else "deactivated")
    return emp


async def delete_employee(db: AsyncSession, employee_pk: str) -> None:
    emp = await get_employee(db, employee_pk)
    employee_id = emp.employee_id
    await db.delete(emp)
    await commit_or_fail(db, f"deleting employee {employee_id}")
    logger.info("Employee %s deleted", employee_id)


# ─── Bootstrap ────────────────────────────────────────────────────────────────

async def ensure_bootstrap_admin(db: AsyncSession) -> AdminUser | None:
    """Create the first super admin from settings when no admin exists yet."""
    if not (settings.BOOTSTRAP_ADMIN_EMAIL and settings.BOOTSTRAP_ADMIN_PASSWORD):
        return None
    existing = await db.scalar(select(func.count()).select_from(AdminUser))
    if existing:
        return None
    user = AdminUser(
        email=settings.BOOTSTRAP_ADMIN_EMAIL.strip().lower(),
        hashed_password=hash_password(settings.BOOTSTRAP_ADMIN_PASSWORD),
        name=settings.BOOTSTRAP_ADMIN_NAME,
        role=Role.SUPER_ADMIN.value,
    )
    db.add(user)
    await commit_or_fail(db, "creating the bootstrap admin")
    logger.info("Bootstrap super admin %s created", user.email)
    return user


# ─── Login history ────────────────────────────────────────────────────────────

def format_duration(login_at: datetime | None, logout_at: datetime | None) -> str:
    if logout_at is None:
        return "Currently Active"
    if login_at is None:
        return "-"
    minutes_total = max(int((logout_at - login_at).total_seconds() // 60), 0)
    hours, minutes = divmod(minutes_total, 60)
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


async def login_history(db: AsyncSession, limit: int = 500) -> list[AdminSession]:
    result = await db.execute(
        select(AdminSession)
        .order_by(AdminSession.login_at.desc())
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())
