"""
Cafe Desk - Staff models (admin users, employees, login sessions)

[CONFIG DATA] admin_users, employees: credentials are bcrypt hashes only.
[AUDIT DATA] admin_sessions: one row per sign-in, closed on logout.
"""
import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from cafedesk.db.database import Base
from cafedesk.models.order import now_utc


class Role(str, PyEnum):
    SUPER_ADMIN = "super_admin"
    EMPLOYEE = "employee"
    CASHIER = "cashier"


ROLE_LABELS = {
    Role.SUPER_ADMIN: "Super Admin",
    Role.EMPLOYEE: "Employee",
    Role.CASHIER: "Cashier",
}


class PrincipalKind(str, PyEnum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


class SessionStatus(str, PyEnum):
    ACTIVE = "active"
    LOGGED_OUT = "logged_out"


class AdminUser(Base):
    """Email / password accounts (owners and managers)."""

    __tablename__ = "admin_users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.SUPER_ADMIN.value)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    def __repr__(self) -> str:
        return f"<AdminUser {self.email} role={self.role}>"


class Employee(Base):
    """Floor staff signing in with an employee ID such as EMP1234."""

    __tablename__ = "employees"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    employee_id: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.EMPLOYEE.value)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    def __repr__(self) -> str:
        return f"<Employee {self.employee_id} role={self.role}>"


class AdminSession(Base):
    __tablename__ = "admin_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    admin_user_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("admin_users.id", ondelete="SET NULL"), index=True, nullable=True
    )
    employee_ref: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("employees.id", ondelete="SET NULL"), index=True, nullable=True
    )
    principal_name: Mapped[str] = mapped_column(String(255), nullable=False)
    principal_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    device_info: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=SessionStatus.ACTIVE.value)
    login_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True, default=now_utc)
    logout_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
