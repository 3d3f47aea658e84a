"""
Identity tokens.

Learners sign in with the external auth provider, which issues HS256 tokens
signed with the shared SECRET_KEY. This service only verifies them: `sub` is
the provider's user id, `name` an optional display name. AUTH_ISSUER, when
set, must match the token's `iss` claim.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import os

from jose import jwt, JWTError

ALGORITHM = "HS256"
TOKEN_TTL_MINUTES = 60 * 24
AUTH_ISSUER = os.getenv("AUTH_ISSUER") or None


def _resolve_secret() -> str:
    secret = os.getenv("SECRET_KEY") or os.getenv("JWT_SECRET_KEY") or ""
    if secret:
        print(f"[AUTH] shared secret loaded (length={len(secret)})", flush=True)
        return secret
    if os.getenv("ENVIRONMENT", "").lower() == "production":
        raise RuntimeError("SECRET_KEY (or JWT_SECRET_KEY) must be set in production")
    print("[AUTH] WARNING: no SECRET_KEY, falling back to the local dev secret", flush=True)
    return "lernpfad-dev-secret-not-for-production"


SECRET_KEY = _resolve_secret()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign a token the way the auth provider does. Used by tests and local tooling."""
    claims = dict(data)
    claims["exp"] = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=TOKEN_TTL_MINUTES))
    if AUTH_ISSUER and "iss" not in claims:
        claims["iss"] = AUTH_ISSUER
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Verified claims, or None for an expired, forged or foreign token."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM], issuer=AUTH_ISSUER)
    except jwt.ExpiredSignatureError:
        print("[AUTH] token expired", flush=True)
    except JWTError as e:
        print(f"[AUTH] token rejected: {type(e).__name__}", flush=True)
    return None
