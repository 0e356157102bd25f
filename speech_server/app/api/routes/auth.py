import logging
from typing import Annotated

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from speech_server.app.api.dependencies import get_authenticator, get_optional_user
from speech_server.app.core.auth import (
    AuthenticatedUser,
    Authenticator,
    StrategyName,
    parse_credentials,
)
from speech_server.app.database.database import get_db

log = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _credential_route(
    name: StrategyName,
    request: Request,
    db: Session,
    authenticator: Authenticator,
    rejected_status: int,
) -> JSONResponse:
    """Run a strategy against the parsed body and start a session on success.

    Args:
        name (StrategyName): The strategy to run.
        request (Request): The request; its parsed body holds the credentials.
        db (Session): The database session.
        authenticator (Authenticator): The registered strategies.
        rejected_status (int): Status code used when the strategy rejects.

    Returns:
        JSONResponse: ``{"success": True, ...user}`` on success, or
            ``{"success": False, "message": reason}`` on rejection.

    Notes:
        1. A rejection is an ordinary response for this request only.
        2. On success the serialized user is written to the session cookie.

    """
    credentials = parse_credentials(request.state.body)
    result = authenticator.authenticate(name, db, credentials)
    if not result.ok:
        return JSONResponse(
            {"success": False, "message": result.reason},
            status_code=rejected_status,
        )

    authenticator.login(request, result.user)
    return JSONResponse({"success": True, **result.user.model_dump()})


@router.post("/signup")
def signup(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    authenticator: Annotated[Authenticator, Depends(get_authenticator)],
) -> JSONResponse:
    """Create an account and log it in."""
    _msg = "POST /signup"
    log.debug(_msg)
    return _credential_route(
        StrategyName.LOCAL_SIGNUP,
        request,
        db,
        authenticator,
        status.HTTP_400_BAD_REQUEST,
    )


@router.post("/login")
def login(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    authenticator: Annotated[Authenticator, Depends(get_authenticator)],
) -> JSONResponse:
    """Check credentials and log the user in."""
    _msg = "POST /login"
    log.debug(_msg)
    return _credential_route(
        StrategyName.LOCAL_LOGIN,
        request,
        db,
        authenticator,
        status.HTTP_401_UNAUTHORIZED,
    )


@router.get("/logout")
async def logout(
    request: Request,
    authenticator: Annotated[Authenticator, Depends(get_authenticator)],
) -> JSONResponse:
    _msg = "User logout"
    log.debug(_msg)
    authenticator.logout(request)
    return JSONResponse({"success": True, "message": "you successfully logged out"})


@router.get("/user")
async def current_user(
    user: Annotated[AuthenticatedUser | None, Depends(get_optional_user)],
) -> JSONResponse:
    if user is None:
        return JSONResponse(
            {"success": False, "message": "user is not logged in"},
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return JSONResponse({"success": True, "data": user.model_dump()})


def mount(app: FastAPI) -> None:
    app.include_router(router)
