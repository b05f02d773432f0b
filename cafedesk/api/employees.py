"""
Cafe Desk - Employee management (super admin only)
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cafedesk.api.deps import OWNER_ONLY, require_confirmation, require_roles
from cafedesk.db import staff_ops
from cafedesk.db.database import get_db
from cafedesk.db.staff_ops import Principal
from cafedesk.schemas.staff import (
    EmployeeCreatedResponse,
    EmployeeCreateRequest,
    EmployeeOut,
    EmployeeUpdateRequest,
)

router = APIRouter(prefix="/employees", tags=["employees"])
owner = require_roles(*OWNER_ONLY)


@router.get("", response_model=list[EmployeeOut])
async def list_employees(db: AsyncSession = Depends(get_db), _: Principal = Depends(owner)):
    return await staff_ops.list_employees(db)


@router.post("", response_model=EmployeeCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    payload: EmployeeCreateRequest,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(owner),
):
    """
    Employee ID and password are generated when left blank; a generated
    password is returned in this response only.
    """
    emp, generated = await staff_ops.create_employee(
        db,
        name=payload.name,
        employee_id=payload.employee_id,
        password=payload.password,
        role=payload.role,
        phone=payload.phone,
        email=payload.email,
    )
    return EmployeeCreatedResponse(employee=EmployeeOut.model_validate(emp), generated_password=generated)


@router.get("/{employee_pk}", response_model=EmployeeOut)
async def get_employee(employee_pk: str, db: AsyncSession = Depends(get_db), _: Principal = Depends(owner)):
    return await staff_ops.get_employee(db, employee_pk)


@router.patch("/{employee_pk}", response_model=EmployeeOut)
async def update_employee(
    employee_pk: str,
    payload: EmployeeUpdateRequest,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(owner),
):
    return await staff_ops.update_employee(
        db,
        employee_pk,
        name=payload.name,
        role=payload.role,
        phone=payload.phone,
        email=payload.email,
    )


@router.post("/{employee_pk}/activate", response_model=EmployeeOut)
async def activate_employee(employee_pk: str, db: AsyncSession = Depends(get_db), _: Principal = Depends(owner)):
    return await staff_ops.set_employee_active(db, employee_pk, True)


@router.post("/{employee_pk}/deactivate", response_model=EmployeeOut)
async def deactivate_employee(employee_pk: str, db: AsyncSession = Depends(get_db), _: Principal = Depends(owner)):
    return await staff_ops.set_employee_active(db, employee_pk, False)


@router.delete(
    "/{employee_pk}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_confirmation)],
)
async def delete_employee(employee_pk: str, db: AsyncSession = Depends(get_db), _: Principal = Depends(owner)):
    await staff_ops.delete_employee(db, employee_pk)
