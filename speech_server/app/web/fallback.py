import logging
from typing import Annotated

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.responses import HTMLResponse

from speech_server.app.api.dependencies import get_views
from speech_server.app.views import ViewEngine

log = logging.getLogger(__name__)

router = APIRouter()


@router.api_route(
    "/{path:path}",
    methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"],
    response_class=HTMLResponse,
    include_in_schema=False,
)
async def fallback(
    request: Request,
    path: str,
    views: Annotated[ViewEngine, Depends(get_views)],
) -> HTMLResponse:
    """Answer any request no other route matched with the 404 page."""
    _msg = f"No route for {request.method} /{path}"
    log.info(_msg)
    return views.render(
        request,
        "pages/404.html",
        {"path": f"/{path}"},
        status_code=status.HTTP_404_NOT_FOUND,
    )


def mount(app: FastAPI) -> None:
    app.include_router(router)
