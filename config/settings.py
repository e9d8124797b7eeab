"""
StroyMarket - Centralized Configuration
========================================
All environment variables and constants are loaded here.
No other module should call os.getenv() directly.
"""

import os
import sys
from dotenv import load_dotenv

load_dotenv()


# ==========================================
# 🗄️ Database
# ==========================================
DATABASE_URL = os.getenv("DATABASE_URL")

if not DATABASE_URL:
    DB_USER = os.getenv("DB_USER")
    DB_PASSWORD = os.getenv("DB_PASSWORD")
    DB_HOST = os.getenv("DB_HOST", "localhost")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME")

    if not all([DB_USER, DB_PASSWORD, DB_HOST, DB_NAME]):
        print("[ERROR] Critical: Database config missing in .env (DATABASE_URL or DB_USER, DB_PASSWORD, DB_HOST, DB_NAME)")
        sys.exit(1)

    DATABASE_URL = f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"


# ==========================================
# 🔐 Security
# ==========================================
SECRET_KEY = os.getenv("SECRET_KEY")

if not SECRET_KEY:
    print("[ERROR] Critical: SECRET_KEY missing in .env")
    sys.exit(1)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24 * 7  # 7 days

COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"
COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", "lax")
CSRF_ENABLED = os.getenv("CSRF_ENABLED", "true").lower() == "true"


# ==========================================
# 🚚 Delivery defaults (overridable in system_settings)
# ==========================================
FREE_DELIVERY_THRESHOLD = int(os.getenv("FREE_DELIVERY_THRESHOLD") or "500000")   # so'm
DELIVERY_DISCOUNT_PERCENT = int(os.getenv("DELIVERY_DISCOUNT_PERCENT") or "100")


# ==========================================
# 🧾 Checkout
# ==========================================
COMPANY_ADDRESS = os.getenv("COMPANY_ADDRESS", "Kompaniya manzili")
PHONE_PATTERN = r"^\+998 \d{2} \d{3} \d{2} \d{2}$"   # +998 XX YYY YY YY


# ==========================================
# 🗂️ Catalog
# ==========================================
CATEGORY_PATH_SEPARATOR = "/"
CATEGORY_PRODUCTS_LIMIT = 50
PRODUCT_TYPES = ("sale", "rental")


# ==========================================
# 🔧 App
# ==========================================
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
