from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdocs.core.config import settings
from fleetdocs.core.database import get_db
from fleetdocs.core.security import decode_token
from fleetdocs.schemas.document import Actor
from fleetdocs.store.base import Store
from fleetdocs.store.sql import SqlStore

_bearer = HTTPBearer(auto_error=False)


async def get_current_actor(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Actor:
    """Reviewer identity from the bearer token, or the access_token cookie."""
    token = credentials.credentials if credentials else request.cookies.get("access_token")
    payload = decode_token(token) if token else None
    if not payload or payload.get("type") != "access" or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Actor(id=str(payload["sub"]), name=payload.get("name") or settings.default_actor_name)


async def get_store(db: AsyncSession = Depends(get_db)) -> Store:
    return SqlStore(db)
