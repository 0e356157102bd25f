import logging
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from speech_server.app.core.config import SiteDetails

log = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
DEFAULT_LAYOUT = "embed"


class ViewEngine:
    """Jinja2 rendering with a default layout.

    Page templates start with ``{% extends layout %}``; ``layout`` resolves to
    ``layouts/<name>.html``, the default layout unless the caller names another.
    Every template also sees ``user`` (the logged-in principal or None) and
    ``site`` (the site details).
    """

    def __init__(
        self,
        directory: str | Path = TEMPLATES_DIR,
        default_layout: str = DEFAULT_LAYOUT,
        site: SiteDetails | None = None,
    ):
        self.default_layout = default_layout
        self.site = site or SiteDetails()
        self.templates = Jinja2Templates(
            directory=str(directory),
            context_processors=[self._base_context],
        )

    def _base_context(self, request: Request) -> dict[str, Any]:
        user = request.scope.get("user")
        if not getattr(user, "is_authenticated", False):
            user = None
        return {"user": user, "site": self.site}

    @staticmethod
    def layout_path(layout: str) -> str:
        return f"layouts/{layout}.html"

    def render(
        self,
        request: Request,
        name: str,
        context: dict[str, Any] | None = None,
        layout: str | None = None,
        status_code: int = 200,
    ) -> HTMLResponse:
        """Render a page template inside a layout.

        Args:
            request (Request): The request being answered.
            name (str): The page template, relative to the templates directory.
            context (dict | None): Extra template variables.
            layout (str | None): Layout name; the default layout when None.
            status_code (int): HTTP status of the response.

        Returns:
            HTMLResponse: The rendered page.

        """
        _msg = f"Rendering {name}"
        log.debug(_msg)
        template_context = {
            "layout": self.layout_path(layout or self.default_layout),
            **(context or {}),
        }
        return self.templates.TemplateResponse(
            request,
            name,
            template_context,
            status_code=status_code,
        )


def register_view_engine(
    app: FastAPI,
    directory: str | Path = TEMPLATES_DIR,
    default_layout: str = DEFAULT_LAYOUT,
    site: SiteDetails | None = None,
) -> ViewEngine:
    """Attach the view engine to the application, once.

    Args:
        app (FastAPI): The application being composed.
        directory (str | Path): The templates directory.
        default_layout (str): Layout used by pages that do not pick their own.
        site (SiteDetails | None): Site details exposed to templates.

    Returns:
        ViewEngine: The engine stored on ``app.state.views``. A second call returns
            the engine registered by the first and changes nothing.

    """
    existing = getattr(app.state, "views", None)
    if existing is not None:
        _msg = "View engine already registered"
        log.debug(_msg)
        return existing

    views = ViewEngine(directory=directory, default_layout=default_layout, site=site)
    app.state.views = views
    _msg = f"View engine registered with default layout {default_layout!r}"
    log.debug(_msg)
    return views
