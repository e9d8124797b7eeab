"""
Shop Module - Catalog Routes
===============================
Public storefront catalog: root categories and category pages,
each category with its aggregated product count.

Endpoints:
  GET /api/catalog/categories        — Active root categories + counts
  GET /api/catalog/categories/{id}   — Category, breadcrumb, subcategories, products
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config.database import get_db
from modules.catalog.service import catalog_service

router = APIRouter(prefix="/api/catalog", tags=["shop"])


@router.get("/categories")
async def root_categories(
    product_type: str = Query("all", alias="type"),
    db: Session = Depends(get_db),
):
    return {
        "success": True,
        "categories": catalog_service.list_root_categories(db, product_type),
    }


@router.get("/categories/{category_id}")
async def category_page(
    category_id: int,
    product_type: str = Query("all", alias="type"),
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return {
        "success": True,
        **catalog_service.get_category_page(db, category_id, product_type, search),
    }
