import logging
from typing import Annotated

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import HTMLResponse

from speech_server.app.api.dependencies import get_views
from speech_server.app.views import ViewEngine

log = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_class=HTMLResponse)
async def index(
    request: Request,
    views: Annotated[ViewEngine, Depends(get_views)],
) -> HTMLResponse:
    _msg = "Index page requested"
    log.debug(_msg)
    return views.render(request, "pages/index.html")


@router.get("/login", response_class=HTMLResponse, name="login_page")
async def login_page(
    request: Request,
    views: Annotated[ViewEngine, Depends(get_views)],
) -> HTMLResponse:
    """Serve the login and signup forms."""
    _msg = "Login page requested"
    log.debug(_msg)
    return views.render(request, "pages/login.html")


@router.get("/about", response_class=HTMLResponse)
async def about(
    request: Request,
    views: Annotated[ViewEngine, Depends(get_views)],
) -> HTMLResponse:
    """Serve the about page, which uses the full-site layout."""
    return views.render(request, "pages/about.html", layout="main")


def mount(app: FastAPI) -> None:
    app.include_router(router)
