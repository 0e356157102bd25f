import logging
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.responses import FileResponse, HTMLResponse
from sqlalchemy.orm import Session

from speech_server.app.api.dependencies import get_views
from speech_server.app.database.database import get_db
from speech_server.app.models.file import File
from speech_server.app.views import ViewEngine

log = logging.getLogger(__name__)

router = APIRouter(tags=["serve"])


@router.get("/media/{claim_id}/{name}", response_model=None)
def serve_file(
    request: Request,
    claim_id: str,
    name: str,
    db: Annotated[Session, Depends(get_db)],
    views: Annotated[ViewEngine, Depends(get_views)],
) -> FileResponse | HTMLResponse:
    """Stream a published file.

    Args:
        request (Request): The incoming request.
        claim_id (str): The claim id the file was published under.
        name (str): The claim name.
        db (Session): The database session.
        views (ViewEngine): Used to render the not-found page.

    Returns:
        FileResponse: The file, with its stored MIME type.
        HTMLResponse: The 404 page when the claim is unknown or its file is gone.

    Notes:
        1. Look the file up by claim id and name.
        2. Check the file still exists on disk before streaming it.
        3. Database access: reads the files table. Disk access: reads the file.

    """
    record = (
        db.query(File).filter(File.claim_id == claim_id, File.name == name).first()
    )
    if record is None or not Path(record.file_path).is_file():
        _msg = f"No file for claim {claim_id}/{name}"
        log.info(_msg)
        return views.render(
            request,
            "pages/404.html",
            status_code=status.HTTP_404_NOT_FOUND,
        )

    _msg = f"Serving {record.file_path}"
    log.debug(_msg)
    return FileResponse(record.file_path, media_type=record.file_type)


def mount(app: FastAPI) -> None:
    app.include_router(router)
