"""
Security Module

Handles password hashing, JWT token generation/validation.
Uses passlib (bcrypt) and python-jose.

SECURITY NOTES:
- bcrypt rounds come from settings so the test suite can lower them
- JWT tokens expire and carry the tenant they were issued for
- The role claim is informational; every request re-reads the
  membership row, so a demotion takes effect before the token expires
"""
from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from projectpro.config import get_settings

settings = get_settings()

pwd_context = CryptContext(
    schemes=["bcrypt"],
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
    deprecated="auto",
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash (constant time)."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    NOTE: This is intentionally slow. Don't call it in tight loops.
    """
    return pwd_context.hash(password)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Token payload includes:
    - sub: user_id
    - tenant_id: the tenant the session is for
    - role: membership role at issue time
    - exp / iat
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow()
    })

    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def create_session_token(user_id: str, tenant_id: str, role: str) -> Dict[str, Any]:
    """Build the token response body returned by signup, login, switch and accept."""
    token = create_access_token({"sub": user_id, "tenant_id": tenant_id, "role": role})
    return {
        "access_token": token,
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "tenant_id": tenant_id,
        "user_id": user_id,
        "role": role,
    }


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT token.

    Returns the payload if valid, None if invalid/expired.
    """
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None


def verify_token_tenant(token_payload: Dict[str, Any], expected_tenant_id: str) -> bool:
    """A token only works for the tenant it was issued for."""
    return token_payload.get("tenant_id") == expected_tenant_id
