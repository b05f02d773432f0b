"""
Cafe Desk - Gallery management API
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cafedesk.api.deps import BACK_OFFICE, require_confirmation, require_roles
from cafedesk.db import catalog_ops
from cafedesk.db.database import get_db
from cafedesk.db.staff_ops import Principal
from cafedesk.schemas.catalog import (
    GalleryCategoryCreate,
    GalleryCategoryOut,
    GalleryImageCreate,
    GalleryImageOut,
)

router = APIRouter(prefix="/gallery", tags=["gallery"])
back_office = require_roles(*BACK_OFFICE)


@router.get("/categories", response_model=list[GalleryCategoryOut])
async def list_categories(db: AsyncSession = Depends(get_db), _: Principal = Depends(back_office)):
    return await catalog_ops.list_gallery_categories(db)


@router.post("/categories", response_model=GalleryCategoryOut, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: GalleryCategoryCreate,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(back_office),
):
    return await catalog_ops.create_gallery_category(db, payload.name)


@router.delete(
    "/categories/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_confirmation)],
)
async def delete_category(category_id: str, db: AsyncSession = Depends(get_db), _: Principal = Depends(back_office)):
    await catalog_ops.delete_gallery_category(db, category_id)


@router.get("/images", response_model=list[GalleryImageOut])
async def list_images(db: AsyncSession = Depends(get_db), _: Principal = Depends(back_office)):
    images = await catalog_ops.list_gallery_images(db)
    return [
        GalleryImageOut.model_validate(image).model_copy(update={"category_name": name})
        for image, name in images
    ]


@router.post("/images", response_model=GalleryImageOut, status_code=status.HTTP_201_CREATED)
async def add_image(
    payload: GalleryImageCreate,
    db: AsyncSession = Depends(get_db),
    _: Principal = Depends(back_office),
):
    return await catalog_ops.add_gallery_image(
        db, payload.image_url, alt_text=payload.alt_text, category_id=payload.category_id
    )


@router.delete("/images/{image_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_image(image_id: str, db: AsyncSession = Depends(get_db), _: Principal = Depends(back_office)):
    await catalog_ops.delete_gallery_image(db, image_id)
