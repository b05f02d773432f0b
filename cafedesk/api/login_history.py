"""
Cafe Desk - Login history (super admin only)
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from cafedesk.api.deps import OWNER_ONLY, require_roles
from cafedesk.db import staff_ops
from cafedesk.db.database import get_db
from cafedesk.db.staff_ops import Principal
from cafedesk.exports.csv_export import login_history_csv
from cafedesk.schemas.staff import LoginSessionOut

router = APIRouter(prefix="/login-history", tags=["login-history"])


@router.get("", response_model=list[LoginSessionOut])
async def list_login_history(
    limit: int = Query(500, ge=1, le=2000),
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*OWNER_ONLY)),
):
    sessions = await staff_ops.login_history(db, limit=limit)
    return [
        LoginSessionOut(
            id=s.id,
            principal_name=s.principal_name,
            principal_email=s.principal_email,
            role=s.role,
            device_info=s.device_info,
            ip_address=s.ip_address,
            status=s.status,
            login_at=s.login_at,
            logout_at=s.logout_at,
            duration=staff_ops.format_duration(s.login_at, s.logout_at),
        )
        for s in sessions
    ]


@router.get("/export.csv")
async def export_login_history(
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(require_roles(*OWNER_ONLY)),
):
    sessions = await staff_ops.login_history(db)
    durations = [staff_ops.format_duration(s.login_at, s.logout_at) for s in sessions]
    body = login_history_csv(sessions, durations)
    stamp = datetime.now(tz=timezone.utc).strftime("%Y-%m-%d")
    return Response(
        content=body.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="login_history_{stamp}.csv"'},
    )
