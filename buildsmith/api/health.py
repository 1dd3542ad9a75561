"""Health check endpoint."""

from typing import Union

from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from buildsmith.db.database import get_db

router = APIRouter()


@router.get("/health")
def health_check(request: Request, db: Session = Depends(get_db)) -> dict[str, Union[str, int]]:
    """Return application, database and catalog health status."""
    service = getattr(request.app.state, "build_service", None)
    catalog_items = service.catalog_count if service is not None else 0
    try:
        db.execute(text("SELECT 1"))
        return {"status": "ok", "database": "connected", "catalog_items": catalog_items}
    except SQLAlchemyError:
        return {"status": "error", "database": "disconnected", "catalog_items": catalog_items}
