"""
Catalog Module - Admin Routes
===============================
Category administration: tree with counts, create from "/" path
(reusing existing segments), edit/move, soft delete.
Each route requires the matching "categories" permission.
"""

from typing import Optional

from fastapi import APIRouter, Request, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.security import csrf_check
from modules.auth.deps import require_permission
from modules.catalog.service import category_service

router = APIRouter(prefix="/api/admin/categories", tags=["catalog-admin"])


# ==========================================
# Schemas
# ==========================================

class CategoryCreateRequest(BaseModel):
    path: str = Field(..., min_length=1, description='e.g. "Elektr/Konditsionerlar"')
    name_ru: Optional[str] = None
    parent_id: Optional[int] = None


class CategoryUpdateRequest(BaseModel):
    name_uz: str = Field(..., min_length=1)
    name_ru: Optional[str] = None
    parent_id: Optional[int] = None
    sort_order: Optional[int] = None
    icon: Optional[str] = None


# ==========================================
# 🗂️ Categories
# ==========================================

@router.get("")
async def list_categories(
    product_type: str = Query("all", alias="type"),
    db: Session = Depends(get_db),
    ctx=Depends(require_permission("categories")),
):
    return {
        "success": True,
        "tree": category_service.list_tree_with_counts(db, product_type),
        "can_create": ctx.can_create("categories"),
        "can_update": ctx.can_update("categories"),
        "can_delete": ctx.can_delete("categories"),
    }


@router.post("")
async def create_category(
    request: Request,
    body: CategoryCreateRequest,
    db: Session = Depends(get_db),
    ctx=Depends(require_permission("categories", "create")),
):
    csrf_check(request)
    category, created_ids = category_service.create_from_path(
        db, body.path, parent_id=body.parent_id, name_ru=body.name_ru,
    )
    db.commit()
    return {
        "success": True,
        "category": category.to_dict(),
        "created_ids": created_ids,
    }


@router.put("/{category_id}")
async def update_category(
    request: Request,
    category_id: int,
    body: CategoryUpdateRequest,
    db: Session = Depends(get_db),
    ctx=Depends(require_permission("categories", "update")),
):
    csrf_check(request)
    category = category_service.update(db, category_id, body.model_dump(exclude_unset=True))
    db.commit()
    return {"success": True, "category": category.to_dict()}


@router.delete("/{category_id}")
async def delete_category(
    request: Request,
    category_id: int,
    db: Session = Depends(get_db),
    ctx=Depends(require_permission("categories", "delete")),
):
    csrf_check(request)
    category = category_service.deactivate(db, category_id)
    db.commit()
    return {"success": True, "category": category.to_dict()}
