"""
Security utilities - Token verification and hashing
"""

import hashlib
import json
from datetime import datetime, timedelta
from typing import Any, Optional
from uuid import UUID

from jose import JWTError, jwt

from launchpad.config import get_settings

settings = get_settings()


# JWT utilities
def create_access_token(
    user_id: UUID,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT access token"""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)

    expire = datetime.utcnow() + expires_delta
    to_encode = {
        "sub": str(user_id),
        "type": "access",
        "exp": expire,
        "iat": datetime.utcnow(),
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode and validate a JWT token"""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
        return payload
    except JWTError:
        return None


def verify_access_token(token: str) -> Optional[UUID]:
    """Verify an access token and return the user ID"""
    payload = decode_token(token)
    if payload is None:
        return None
    if payload.get("type") != "access":
        return None
    try:
        return UUID(payload.get("sub"))
    except (TypeError, ValueError):
        return None


# Hashing utilities
def generate_query_hash(query: Any) -> str:
    """Deterministic hash of a JSON-serializable research query"""
    content = json.dumps(query, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(content.encode()).hexdigest()


def generate_prompt_hash(system_prompt: str, prompt_text: str) -> str:
    """Generate a deterministic hash for a rendered prompt"""
    content = f"{system_prompt}|{prompt_text}"
    return hashlib.sha256(content.encode()).hexdigest()
