"""
StroyMarket - Application Entry Point
=======================================
FastAPI app initialization, middleware, and router registration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config import settings
from config.database import Base, engine
from common.exceptions import StroyMarketError

logger = logging.getLogger("stroymarket.app")

# ==========================================
# Import ALL models so Base can see them
# ==========================================
from modules.user.models import User  # noqa: F401
from modules.admin.models import AdminRole, AdminPermission, SystemSetting  # noqa: F401
from modules.catalog.models import Category, Product  # noqa: F401
from modules.cart.models import CartItem  # noqa: F401
from modules.order.models import Order, OrderItem  # noqa: F401

# ==========================================
# Import routers
# ==========================================
from modules.shop.routes import router as shop_router
from modules.cart.routes import router as cart_router
from modules.catalog.admin_routes import router as catalog_admin_router
from modules.admin.routes import router as admin_settings_router
from modules.order.routes import router as order_router


@asynccontextmanager
async def lifespan(app):
    # Auto-create any missing tables (safe for existing tables)
    Base.metadata.create_all(bind=engine)
    logger.info("StroyMarket started")
    yield


# ==========================================
# Create App
# ==========================================
app = FastAPI(
    title="StroyMarket",
    description="Qurilish mollari do'koni: katalog, savat, yetkazib berish",
    version="1.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
    lifespan=lifespan,
)


# ==========================================
# Exception handler: business errors → JSON
# ==========================================
@app.exception_handler(StroyMarketError)
async def business_error_handler(request: Request, exc: StroyMarketError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse({"detail": exc.message}, status_code=exc.status_code)


# ==========================================
# Middleware: No-Cache for Admin API
# ==========================================
_NO_CACHE_PREFIXES = ("/api/admin/",)

@app.middleware("http")
async def no_cache_admin(request: Request, call_next):
    """Prevent caching of admin responses so counts and settings are always fresh."""
    response = await call_next(request)
    path = request.url.path
    if any(path.startswith(p) for p in _NO_CACHE_PREFIXES):
        response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
    return response


# ==========================================
# Routers
# ==========================================
app.include_router(shop_router)
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(catalog_admin_router)
app.include_router(admin_settings_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
