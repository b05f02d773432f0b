"""
Cafe Desk - Auth, employee, login history and notification schemas
"""
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from cafedesk.models.staff import PrincipalKind, Role


class EmailLoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class EmployeeLoginRequest(BaseModel):
    employee_id: str = Field(..., min_length=1, max_length=32, examples=["EMP1234"])
    password: str = Field(..., min_length=1, max_length=128)


class PrincipalOut(BaseModel):
    id: str
    kind: PrincipalKind
    name: str
    role: Role
    email: str | None = None
    employee_id: str | None = None
    phone: str | None = None
    session_id: str | None = None


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    principal: PrincipalOut


class ProfileUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=32)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., max_length=128)
    confirm_password: str = Field(..., max_length=128)


class EmployeeCreateRequest(BaseModel):
    name: str = Field("", max_length=255)
    employee_id: str | None = Field(None, max_length=32)
    password: str | None = Field(None, max_length=128)
    role: Role = Role.EMPLOYEE
    phone: str | None = Field(None, max_length=32)
    email: EmailStr | None = None


class EmployeeUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    role: Role | None = None
    phone: str | None = Field(None, max_length=32)
    email: EmailStr | None = None


class EmployeeOut(BaseModel):
    id: str
    employee_id: str
    name: str
    role: Role
    phone: str | None
    email: str | None
    is_active: bool
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class EmployeeCreatedResponse(BaseModel):
    employee: EmployeeOut
    # Shown once so the owner can hand it over; never stored in clear.
    generated_password: str | None = None


class LoginSessionOut(BaseModel):
    id: str
    principal_name: str
    principal_email: str | None
    role: str
    device_info: str | None
    ip_address: str | None
    status: str
    login_at: datetime | None
    logout_at: datetime | None
    duration: str


class NotificationOut(BaseModel):
    id: str
    title: str
    message: str
    type: str
    order_id: str | None
    is_read: bool
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
