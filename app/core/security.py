from datetime import datetime, timezone, timedelta
from typing import Any, Dict, Optional, Union
import uuid

from jose import JWTError, jwt

# =====================================================
# Application Settings
# =====================================================
from app.core.config import settings


# =====================================================
# JWT Creation
# =====================================================
def create_access_token(
    subject: Union[str, Any],
    expires_delta: Optional[timedelta] = None,
    email: Optional[str] = None,
) -> str:
    """
    Create a JWT in the same shape the hosted auth provider issues.

    Used by local tooling (``python -m app.cli issue-token``) and tests.
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(hours=1))

    to_encode = {
        "exp": expire,
        "sub": str(subject),
        "iat": now,
        "jti": str(uuid.uuid4()),
    }
    if settings.AUTH_JWT_AUDIENCE:
        to_encode["aud"] = settings.AUTH_JWT_AUDIENCE
    if email:
        to_encode["email"] = email

    return jwt.encode(
        to_encode,
        settings.AUTH_JWT_SECRET,
        algorithm=settings.AUTH_JWT_ALGORITHM
    )


# =====================================================
# Token Verification
# =====================================================
def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verify a provider JWT and return its payload if valid.

    Signature, expiry and (when configured) audience are checked by jose.
    """
    options = {"verify_aud": bool(settings.AUTH_JWT_AUDIENCE)}
    try:
        payload = jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=[settings.AUTH_JWT_ALGORITHM],
            audience=settings.AUTH_JWT_AUDIENCE,
            options=options,
        )
    except JWTError:
        return None

    if not payload.get("sub"):
        return None
    return payload

