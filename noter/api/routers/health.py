"""Health check (no auth)."""
from fastapi import APIRouter, status

from noter.api.schemas.common import HealthOut
from noter.infrastructure.db.mongo import db_ready


router = APIRouter(tags=["Health"])  # no prefix to keep paths stable


@router.get("/health", status_code=status.HTTP_200_OK, response_model=HealthOut, summary="Basic health")
def health() -> HealthOut:
    return HealthOut(ok=True, db=db_ready())
