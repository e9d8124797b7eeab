"""
Cart Routes
=============
Customer cart (JSON API): view with totals and delivery info,
add/update/remove items, delivery summary and checkout.

delivery_info is null when it could not be computed (empty cart or error);
clients show "delivery information unavailable", not a zero fee.
"""

from typing import Optional

from fastapi import APIRouter, Request, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.security import csrf_check
from modules.auth.deps import require_customer
from modules.cart.service import cart_service
from modules.order.delivery_service import delivery_service
from modules.order.service import order_service

router = APIRouter(prefix="/api/cart", tags=["cart"])


# ==========================================
# Schemas
# ==========================================

class AddItemRequest(BaseModel):
    product_id: int
    quantity: int = Field(1, ge=1)
    rental_duration: Optional[int] = Field(None, ge=1)
    rental_time_unit: Optional[str] = None


class UpdateQuantityRequest(BaseModel):
    quantity: int


class CheckoutRequest(BaseModel):
    customer_name: str
    customer_phone: str
    delivery_with_service: bool = False
    delivery_address: Optional[str] = None
    notes: Optional[str] = None


# ==========================================
# 🛒 View Cart
# ==========================================

@router.get("")
async def view_cart(db: Session = Depends(get_db), me=Depends(require_customer)):
    return {"success": True, **cart_service.summarize(db, me.id)}


# ==========================================
# ➕➖ Items
# ==========================================

@router.post("/items")
async def add_item(
    request: Request,
    body: AddItemRequest,
    db: Session = Depends(get_db),
    me=Depends(require_customer),
):
    csrf_check(request)
    item = cart_service.add_item(
        db, me.id, body.product_id, body.quantity,
        rental_duration=body.rental_duration,
        rental_time_unit=body.rental_time_unit,
    )
    db.commit()
    return {"success": True, "item_id": item.id, **cart_service.summarize(db, me.id)}


@router.patch("/items/{item_id}")
async def update_item(
    request: Request,
    item_id: int,
    body: UpdateQuantityRequest,
    db: Session = Depends(get_db),
    me=Depends(require_customer),
):
    csrf_check(request)
    cart_service.update_quantity(db, me.id, item_id, body.quantity)
    db.commit()
    return {"success": True, **cart_service.summarize(db, me.id)}


@router.delete("/items/{item_id}")
async def remove_item(
    request: Request,
    item_id: int,
    db: Session = Depends(get_db),
    me=Depends(require_customer),
):
    csrf_check(request)
    cart_service.remove_item(db, me.id, item_id)
    db.commit()
    return {"success": True, **cart_service.summarize(db, me.id)}


@router.delete("")
async def clear_cart(request: Request, db: Session = Depends(get_db), me=Depends(require_customer)):
    csrf_check(request)
    cart_service.clear_cart(db, me.id)
    db.commit()
    return {"success": True, **cart_service.summarize(db, me.id)}


# ==========================================
# 🚚 Delivery
# ==========================================

@router.get("/delivery")
async def delivery_info(db: Session = Depends(get_db), me=Depends(require_customer)):
    info = delivery_service.calculate_for_customer(db, me.id)
    return {"success": True, "delivery_info": info.to_dict() if info else None}


@router.get("/delivery-summary")
async def delivery_summary(db: Session = Depends(get_db), me=Depends(require_customer)):
    return {"success": True, **delivery_service.get_delivery_summary(db, me.id)}


# ==========================================
# 🧾 Checkout
# ==========================================

@router.post("/checkout")
async def checkout(
    request: Request,
    body: CheckoutRequest,
    db: Session = Depends(get_db),
    me=Depends(require_customer),
):
    csrf_check(request)
    order = order_service.checkout(db, me.id, body.model_dump())
    db.commit()
    return {"success": True, "order": order.to_dict()}
