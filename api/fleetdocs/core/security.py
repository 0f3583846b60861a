from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from fleetdocs.core.config import settings


# ─── JWT tokens ────────────────────────────────────────
# Tokens are issued by the identity provider; this service only needs to
# read the acting user out of them. create_access_token exists for tests
# and local tooling.
def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=30))
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.api_secret_key, algorithm=settings.algorithm)


def decode_token(token: str) -> dict | None:
    try:
        return jwt.decode(token, settings.api_secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
