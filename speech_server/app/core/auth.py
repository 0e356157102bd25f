import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from fastapi import Request
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from starlette.authentication import AuthCredentials, AuthenticationBackend
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import HTTPConnection
from starlette.types import ASGIApp

from speech_server.app.core.security import get_password_hash, verify_password
from speech_server.app.models.user import User

log = logging.getLogger(__name__)

SESSION_USER_KEY = "user"

MISSING_CREDENTIALS = "Username and password are required."
USERNAME_TAKEN = "That username is already taken."
INVALID_LOGIN = "Incorrect username or password."


class AuthenticatedUser(BaseModel):
    """The session principal.

    Also satisfies Starlette's user interface, so it is what ``request.user``
    returns for a logged-in request.

    Attributes:
        id (int): The user's database id.
        username (str): The user's login name.
        channel_name (str): The user's public channel name.

    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    username: str
    channel_name: str

    @property
    def is_authenticated(self) -> bool:
        return True

    @property
    def display_name(self) -> str:
        return self.channel_name

    @property
    def identity(self) -> str:
        return str(self.id)


class Credentials(BaseModel):
    """Username and password taken from a parsed request body."""

    username: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=72)

    def is_complete(self) -> bool:
        return bool(self.username.strip() and self.password)


def parse_credentials(body: Mapping[str, Any] | None) -> Credentials:
    """Build Credentials from a parsed body, treating anything invalid as empty."""
    try:
        return Credentials.model_validate(dict(body or {}))
    except ValidationError as e:
        _msg = f"Invalid credentials payload: {e.error_count()} error(s)"
        log.debug(_msg)
        return Credentials()


def serialize_user(user: AuthenticatedUser) -> dict[str, Any]:
    """Turn the principal into the value stored in the session."""
    return user.model_dump()


def deserialize_user(token: Any) -> AuthenticatedUser | None:
    """Rebuild the principal from a session value.

    Args:
        token (Any): Whatever the session holds under the user key.

    Returns:
        AuthenticatedUser | None: The principal, or None for an absent or invalid
            value, which leaves the request anonymous.

    """
    if not token:
        return None
    try:
        return AuthenticatedUser.model_validate(token)
    except ValidationError:
        _msg = "Discarding invalid session user"
        log.debug(_msg)
        return None


@dataclass(frozen=True)
class StrategyResult:
    """Outcome of a credential check: a user, or the reason it was rejected."""

    user: AuthenticatedUser | None = None
    reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.user is not None

    @classmethod
    def success(cls, user: AuthenticatedUser) -> "StrategyResult":
        return cls(user=user)

    @classmethod
    def reject(cls, reason: str) -> "StrategyResult":
        return cls(reason=reason)


class StrategyName(str, Enum):
    LOCAL_SIGNUP = "local-signup"
    LOCAL_LOGIN = "local-login"


class CredentialStrategy(Protocol):
    def authenticate(self, db: Session, credentials: Credentials) -> StrategyResult: ...


class LocalSignupStrategy:
    """Create a new user from a username and password."""

    def authenticate(self, db: Session, credentials: Credentials) -> StrategyResult:
        """Register a user.

        Args:
            db (Session): Database session used to look up and create the user.
            credentials (Credentials): The submitted username and password.

        Returns:
            StrategyResult: The new user, or a rejection if the credentials are
                incomplete or the username is taken.

        Notes:
            1. Reject incomplete credentials.
            2. Reject a username that already exists.
            3. Hash the password and insert the user.
            4. A unique-constraint violation on commit (a concurrent signup for
               the same name) is reported as a taken username.
            5. Database access: reads and writes the users table.

        """
        if not credentials.is_complete():
            return StrategyResult.reject(MISSING_CREDENTIALS)

        username = credentials.username.strip()
        if db.query(User).filter(User.username == username).first():
            _msg = f"Signup rejected, username taken: {username}"
            log.info(_msg)
            return StrategyResult.reject(USERNAME_TAKEN)

        user = User(
            username=username,
            hashed_password=get_password_hash(credentials.password),
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            _msg = f"Signup rejected on commit, username taken: {username}"
            log.info(_msg)
            return StrategyResult.reject(USERNAME_TAKEN)
        db.refresh(user)

        _msg = f"Created user {username}"
        log.info(_msg)
        return StrategyResult.success(AuthenticatedUser.model_validate(user))


class LocalLoginStrategy:
    """Check a username and password against the stored hash."""

    def authenticate(self, db: Session, credentials: Credentials) -> StrategyResult:
        if not credentials.is_complete():
            return StrategyResult.reject(MISSING_CREDENTIALS)

        username = credentials.username.strip()
        user = db.query(User).filter(User.username == username).first()
        if user is None or not verify_password(
            credentials.password,
            user.hashed_password,
        ):
            _msg = f"Login rejected for {username}"
            log.info(_msg)
            return StrategyResult.reject(INVALID_LOGIN)

        return StrategyResult.success(AuthenticatedUser.model_validate(user))


class Authenticator:
    """Strategies plus the session serialization pair.

    Strategies are registered once, when the application is composed, and
    looked up by StrategyName from then on.
    """

    def __init__(
        self,
        strategies: Mapping[StrategyName, CredentialStrategy],
        serializer: Callable[[AuthenticatedUser], Any] = serialize_user,
        deserializer: Callable[[Any], AuthenticatedUser | None] = deserialize_user,
    ):
        self._strategies = dict(strategies)
        self.serializer = serializer
        self.deserializer = deserializer

    @property
    def strategy_names(self) -> list[StrategyName]:
        return list(self._strategies)

    def strategy(self, name: StrategyName) -> CredentialStrategy:
        try:
            return self._strategies[name]
        except KeyError:
            raise LookupError(f"No authentication strategy registered as {name!r}")

    def authenticate(
        self,
        name: StrategyName,
        db: Session,
        credentials: Credentials,
    ) -> StrategyResult:
        _msg = f"Authenticating with {name.value}"
        log.debug(_msg)
        return self.strategy(name).authenticate(db, credentials)

    def login(self, request: Request, user: AuthenticatedUser) -> None:
        request.session[SESSION_USER_KEY] = self.serializer(user)

    def logout(self, request: Request) -> None:
        request.session.clear()

    def user_from_session(
        self,
        session: Mapping[str, Any],
    ) -> AuthenticatedUser | None:
        return self.deserializer(session.get(SESSION_USER_KEY))


def build_authenticator() -> Authenticator:
    """Register the local signup and login strategies."""
    return Authenticator(
        {
            StrategyName.LOCAL_SIGNUP: LocalSignupStrategy(),
            StrategyName.LOCAL_LOGIN: LocalLoginStrategy(),
        },
    )


class AuthRuntimeMiddleware(BaseHTTPMiddleware):
    """Make the Authenticator available as ``request.state.authenticator``."""

    def __init__(self, app: ASGIApp, authenticator: Authenticator) -> None:
        super().__init__(app)
        self.authenticator = authenticator

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request.state.authenticator = self.authenticator
        return await call_next(request)


class SessionAuthBackend(AuthenticationBackend):
    """Bridge the cookie session to ``request.user``."""

    def __init__(self, authenticator: Authenticator):
        self.authenticator = authenticator

    async def authenticate(self, conn: HTTPConnection):
        if "session" not in conn.scope:
            return None
        user = self.authenticator.user_from_session(conn.session)
        if user is None:
            return None
        return AuthCredentials(["authenticated"]), user
