"""
Cafe Desk - Shared route dependencies: signed-in principal and role gate
"""
from fastapi import Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from cafedesk.core.errors import AuthenticationFailed, PermissionDenied, ValidationFailed
from cafedesk.db.database import get_db
from cafedesk.db.staff_ops import Principal, is_session_active, load_principal
from cafedesk.models.staff import ROLE_LABELS, Role

# ── Role allow-lists ─────────────────────────────────────────
ALL_STAFF = (Role.SUPER_ADMIN, Role.EMPLOYEE, Role.CASHIER)
ORDER_MANAGERS = (Role.SUPER_ADMIN, Role.EMPLOYEE)
BACK_OFFICE = (Role.SUPER_ADMIN, Role.EMPLOYEE)
OWNER_ONLY = (Role.SUPER_ADMIN,)


async def current_principal(request: Request, db: AsyncSession = Depends(get_db)) -> Principal:
    claims = getattr(request.state, "user", None)
    if not claims:
        raise AuthenticationFailed("Not signed in.")
    if not await is_session_active(db, claims.get("sid")):
        raise AuthenticationFailed("This session has been signed out. Please sign in again.")
    return await load_principal(db, claims)


def require_roles(*roles: Role):
    """Dependency factory: the caller's role must be in the allow-list."""

    async def checker(principal: Principal = Depends(current_principal)) -> Principal:
        if principal.role not in roles:
            raise PermissionDenied(
                f"{ROLE_LABELS[principal.role]} accounts are not allowed to do this."
            )
        return principal

    return checker


def require_confirmation(confirm: bool = Query(False, description="Must be true for destructive actions")) -> None:
    if not confirm:
        raise ValidationFailed("This action cannot be undone. Repeat the request with confirm=true.")


def client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
