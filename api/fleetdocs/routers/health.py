from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdocs.core.database import get_db
from fleetdocs.models.document import ComplianceDocument

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {"status": "ok", "service": "fleetdocs"}


@router.get("/health/db")
async def health_db(db: AsyncSession = Depends(get_db)):
    # Touches the documents table, not just the connection
    count = await db.scalar(select(func.count()).select_from(ComplianceDocument))
    return {"status": "ok", "database": "connected", "documents": count}
