"""
Auth Module - Dependencies
===========================
FastAPI dependencies for user authentication and authorization.
These are injected into route handlers via Depends().

Tokens are issued by the external login flows; here they are only verified.
"""

import logging

from fastapi import Request, Depends, HTTPException, status
from sqlalchemy.orm import Session

from config.database import get_db
from common.security import decode_token, token_from_request
from common.helpers import safe_int
from modules.user.models import User
from modules.admin.permissions import (
    PermissionContext, load_permission_context, RESOURCE_LABELS,
)

logger = logging.getLogger("stroymarket.auth")


def get_current_active_user(request: Request, db: Session = Depends(get_db)):
    """
    Identify the current user from the auth token (cookie or Bearer header).
    Returns User object or None.
    """
    token = token_from_request(request)
    if not token:
        return None

    payload = decode_token(token)
    if not payload:
        return None

    user_id = safe_int(payload.get("sub"))
    if not user_id:
        return None

    return db.query(User).filter(User.id == user_id, User.is_active == True).first()


def require_customer(user=Depends(get_current_active_user)):
    """Only allow customers (cart owners). Raises 401 otherwise."""
    if not user or not user.is_customer:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="login_required")
    return user


def get_permission_context(
    db: Session = Depends(get_db),
    user=Depends(get_current_active_user),
) -> PermissionContext:
    """Request-scoped permission context for the current user."""
    return load_permission_context(db, user)


def require_staff(user=Depends(get_current_active_user)):
    """Only allow admin-panel staff. Raises 401/403 otherwise."""
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="login_required")
    if not user.is_staff:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Ruxsat yo'q")
    return user


def require_permission(resource: str, action: str = "view"):
    """
    Factory: returns a dependency that checks one resource/action permission.
    role=='admin' always passes (main admin bypass).

    Usage:
      ctx=Depends(require_permission("categories"))                  # view
      ctx=Depends(require_permission("categories", "create"))
    """

    def dependency(
        user=Depends(require_staff),
        ctx: PermissionContext = Depends(get_permission_context),
    ) -> PermissionContext:
        if not ctx.has_permission(resource, action):
            label = RESOURCE_LABELS.get(resource, resource)
            logger.info(f"User {user.id} ({user.role}) denied {resource}:{action}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"«{label}» bo'limida «{action}» amaliga ruxsatingiz yo'q",
            )
        return ctx

    return dependency
