"""
StroyMarket - Security Utilities
==================================
JWT tokens and CSRF protection.

NOTE: Login flows (Telegram, website login) live outside this service;
it only verifies the tokens they issue.
"""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import Request, HTTPException
from jose import jwt, JWTError

from config.settings import (
    SECRET_KEY, ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES, CSRF_ENABLED,
)
from common.helpers import now_utc

logger = logging.getLogger("stroymarket.security")


# ==========================================
# JWT Tokens
# ==========================================

def create_token(data: dict) -> str:
    """Create JWT token for any user type."""
    to_encode = data.copy()
    to_encode["exp"] = now_utc() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode a JWT token. Returns payload or None."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.debug(f"Rejected token: {e}")
        return None


def token_from_request(request: Request) -> Optional[str]:
    """Read the auth token from the auth_token cookie or an Authorization: Bearer header."""
    token = request.cookies.get("auth_token")
    if token:
        return token
    header = request.headers.get("Authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip() or None
    return None


# ==========================================
# CSRF
# ==========================================

def csrf_check(request: Request, form_token: Optional[str] = None):
    """
    Verify CSRF token from cookie matches the one in header or form.
    Bearer-authenticated API calls carry no cookies and are exempt.
    Raises HTTPException(403) on mismatch.
    """
    if not CSRF_ENABLED:
        return

    cookie_auth = request.cookies.get("auth_token")
    if not cookie_auth:
        return

    cookie_token = request.cookies.get("csrf_token")
    header_token = request.headers.get("X-CSRF-Token")
    token = header_token or form_token

    if not cookie_token or not token or cookie_token != token:
        raise HTTPException(403, "CSRF token missing or invalid")
