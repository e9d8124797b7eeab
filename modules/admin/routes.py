"""
Admin Module - Settings Routes
================================
Delivery settings (free-delivery threshold, discount percent) and the
current staff member's permission map.
"""

from fastapi import APIRouter, Request, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.security import csrf_check
from modules.auth.deps import require_permission, require_staff, get_permission_context
from modules.admin.permissions import RESOURCE_LABELS
from modules.admin.service import delivery_settings_service

router = APIRouter(prefix="/api/admin", tags=["admin-settings"])


class DeliverySettingsRequest(BaseModel):
    free_delivery_threshold: int = Field(..., ge=0)
    delivery_discount_percent: int = Field(100, ge=0, le=100)


@router.get("/settings/delivery")
async def get_delivery_settings(
    db: Session = Depends(get_db),
    ctx=Depends(require_permission("orders")),
):
    return {"success": True, **delivery_settings_service.get(db)}


@router.put("/settings/delivery")
async def update_delivery_settings(
    request: Request,
    body: DeliverySettingsRequest,
    db: Session = Depends(get_db),
    ctx=Depends(require_permission("orders", "update")),
):
    csrf_check(request)
    result = delivery_settings_service.update(
        db, body.free_delivery_threshold, body.delivery_discount_percent,
    )
    db.commit()
    return {"success": True, **result}


@router.get("/me/permissions")
async def my_permissions(user=Depends(require_staff), ctx=Depends(get_permission_context)):
    return {
        "success": True,
        "user": {"id": user.id, "full_name": user.full_name, "role": user.role},
        "labels": RESOURCE_LABELS,
        **ctx.to_dict(),
    }
