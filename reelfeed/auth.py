"""
Bearer token verification.

Accounts and logins belong to the identity provider. The API only checks the
provider's signed token and trusts the user identifier inside it.
"""

from datetime import datetime, timedelta
from typing import Optional
import hmac
import logging
import os

from dotenv import load_dotenv
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "your_jwt_secret_key"
JWT_SECRET = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

security = HTTPBearer(auto_error=False)


def warn_if_default_secret(secret: str = JWT_SECRET) -> bool:
    """Log a warning when tokens are verified with the publicly known default secret."""
    if secret == DEFAULT_JWT_SECRET:
        logger.warning("JWT_SECRET is not set; tokens signed with the default secret will be accepted")
        return True
    return False


warn_if_default_secret()


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None, **claims) -> str:
    """Sign a token the way the identity provider does."""
    payload = {"userId": str(user_id), **claims}
    if expires_delta is not None:
        payload["exp"] = datetime.utcnow() + expires_delta
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_user_id(token: str) -> str:
    payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    user_id = payload.get("userId") or payload.get("sub")
    if user_id is None:
        raise JWTError("token carries no user identifier")
    return str(user_id)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """Resolve the user id from the bearer token. 401 if missing, 403 if invalid."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_user_id(credentials.credentials)
    except JWTError as e:
        logger.warning(f"Rejected bearer token: {e}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token")


async def require_operator(x_admin_token: Optional[str] = Header(None)) -> None:
    """
    Guard for operator routes.

    The `X-Admin-Token` header must match `ADMIN_TOKEN`. When `ADMIN_TOKEN` is
    unset the routes are disabled.
    """
    expected = os.getenv("ADMIN_TOKEN")
    if not expected:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Operator routes are disabled")
    if not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid operator token")
