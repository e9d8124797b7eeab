"""
Order Routes
==============
Customer's own orders (created at /api/cart/checkout).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_customer
from modules.order.service import order_service

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.get("")
async def my_orders(db: Session = Depends(get_db), me=Depends(require_customer)):
    orders = order_service.get_customer_orders(db, me.id)
    return {"success": True, "orders": [o.to_dict() for o in orders]}


@router.get("/{order_id}")
async def order_detail(order_id: int, db: Session = Depends(get_db), me=Depends(require_customer)):
    order = order_service.get_customer_order(db, me.id, order_id)
    return {"success": True, "order": order.to_dict()}
