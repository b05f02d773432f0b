"""
Cafe Desk - Auth API routes

Two sign-in doors: owners/admins by email, staff by employee ID. Both open
a login session that is recorded in the login history and referenced by
the token's sid claim, so signing out invalidates the token server-side.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from cafedesk.api.deps import client_ip, current_principal
from cafedesk.core.config import get_settings
from cafedesk.db import staff_ops
from cafedesk.db.database import get_db
from cafedesk.db.staff_ops import Principal
from cafedesk.schemas.staff import (
    ChangePasswordRequest,
    EmailLoginRequest,
    EmployeeLoginRequest,
    PrincipalOut,
    ProfileUpdateRequest,
    TokenResponse,
)

settings = get_settings()
router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(principal: Principal) -> TokenResponse:
    return TokenResponse(
        access_token=staff_ops.issue_token(principal),
        expires_in=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        principal=PrincipalOut(**vars(principal)),
    )


@router.post("/login", response_model=TokenResponse)
async def login(payload: EmailLoginRequest, request: Request, db: AsyncSession = Depends(get_db)):
    """Validate admin credentials and issue a JWT bound to a new login session."""
    principal = await staff_ops.login_with_email(
        db,
        payload.email,
        payload.password,
        device_info=request.headers.get("User-Agent"),
        ip_address=client_ip(request),
    )
    return _token_response(principal)


@router.post("/employee-login", response_model=TokenResponse)
async def employee_login(payload: EmployeeLoginRequest, request: Request, db: AsyncSession = Depends(get_db)):
    principal = await staff_ops.login_employee(
        db,
        payload.employee_id,
        payload.password,
        device_info=request.headers.get("User-Agent"),
        ip_address=client_ip(request),
    )
    return _token_response(principal)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(current_principal),
):
    await staff_ops.logout(db, principal.session_id)


@router.get("/me", response_model=PrincipalOut)
async def me(principal: Principal = Depends(current_principal)):
    return PrincipalOut(**vars(principal))


@router.patch("/me", response_model=PrincipalOut)
async def update_me(
    payload: ProfileUpdateRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(current_principal),
):
    updated = await staff_ops.update_profile(db, principal, name=payload.name, phone=payload.phone)
    return PrincipalOut(**vars(updated))


@router.post("/change-password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    payload: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db),
    principal: Principal = Depends(current_principal),
):
    """Change the signed-in account's password after verifying the current one."""
    await staff_ops.change_password(
        db,
        principal,
        payload.current_password,
        payload.new_password,
        payload.confirm_password,
    )
