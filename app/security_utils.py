"""
Security utilities: session tokens, invitation tokens and upload filenames
"""

import logging
import re
import secrets
from datetime import datetime, timedelta
from typing import Any, Optional

from jose import JWTError
from jose import jwt as jose_jwt

from .config import JWT_ALGORITHM, SECRET_KEY

logger = logging.getLogger(__name__)

# Session lifetime used when the identity layer does not pass one
DEFAULT_TOKEN_TTL = timedelta(days=30)


# ============================================================================
# TOKENS
# ============================================================================


def generate_secure_token(length: int = 32) -> str:
    """URL-safe random token built from `length` random bytes"""
    return secrets.token_urlsafe(length)


def create_jwt_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed session token

    Args:
        data: Claims to encode ("sub", "email", "name")
        expires_delta: Token lifetime (default 30 days)
    """
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or DEFAULT_TOKEN_TTL)
    to_encode.update({"exp": expire, "iat": datetime.utcnow()})
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_jwt_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode a session token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


# ============================================================================
# INPUT SANITIZATION
# ============================================================================


def sanitize_filename(filename: str) -> str:
    """Strip path separators and unusual characters from an uploaded filename"""
    if not filename:
        return "file"
    name = filename.replace("\\", "/").split("/")[-1]
    name = re.sub(r"[^A-Za-z0-9._-]", "_", name).strip("._")
    return name[:200] or "file"

