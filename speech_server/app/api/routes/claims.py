import logging
from typing import Annotated

from fastapi import APIRouter, Depends, FastAPI
from sqlalchemy.orm import Session

from speech_server.app.api.dependencies import get_config
from speech_server.app.core.config import ServerConfiguration
from speech_server.app.database.database import get_db
from speech_server.app.models.file import File

log = logging.getLogger(__name__)

router = APIRouter(tags=["api"])


@router.get("/health")
async def health_check() -> dict:
    return {"status": "ok"}


@router.get("/api/config/site")
async def site_config(
    config: Annotated[ServerConfiguration, Depends(get_config)],
) -> dict:
    """Public site details for the client-side bundle."""
    details = config.site_config.details
    return {"title": details.title, "host": details.host}


@router.get("/api/claim/availability/{name}")
def claim_availability(
    name: str,
    db: Annotated[Session, Depends(get_db)],
) -> dict:
    """Report whether a claim name is still free to publish under.

    Args:
        name (str): The claim name to check.
        db (Session): The database session.

    Returns:
        dict: ``{"success": True, "data": {"name": ..., "available": bool}}``.

    Notes:
        1. A name is available when no stored file uses it.
        2. Database access: reads the files table.

    """
    taken = db.query(File).filter(File.name == name).first() is not None
    _msg = f"Availability of {name}: {not taken}"
    log.debug(_msg)
    return {"success": True, "data": {"name": name, "available": not taken}}


def mount(app: FastAPI) -> None:
    app.include_router(router)
