import logging
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import validates

from speech_server.app.models import Base

log = logging.getLogger(__name__)


class User(Base):
    """
    User model for the local signup and login strategies.

    Attributes:
        id (int): Unique identifier for the user.
        username (str): Unique username chosen at signup.
        channel_name (str): Public channel name, "@" followed by the username.
        hashed_password (str): bcrypt hash of the user's password.
        created_at (datetime): When the account was created.

    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(255), unique=True, index=True, nullable=False)
    channel_name = Column(String(255), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    created_at = Column(
        DateTime,
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __init__(
        self,
        username: str,
        hashed_password: str,
        channel_name: str | None = None,
        id: int | None = None,
    ):
        """
        Initialize a User instance.

        Args:
            username (str): Unique username. Must be a non-empty string.
            hashed_password (str): Hashed password. Must be a non-empty string.
            channel_name (str | None): Channel name; derived from the username when omitted.
            id (int | None): The unique identifier of the user, for testing purposes.

        Returns:
            None

        Notes:
            1. Assign values; the validators strip and check the strings.
            2. Derive the channel name as "@<username>" when none is given.
            3. This operation does not involve network, disk, or database access.

        """
        _msg = f"Initializing User with username: {username}"
        log.debug(_msg)

        if id is not None:
            self.id = id
        self.username = username
        self.hashed_password = hashed_password
        self.channel_name = channel_name or f"@{self.username}"

    @validates("username")
    def validate_username(self, key, username):
        """
        Validate the username field.

        Returns:
            str: The username stripped of leading/trailing whitespace.

        """
        if not isinstance(username, str):
            raise ValueError("Username must be a string")
        if not username.strip():
            raise ValueError("Username cannot be empty")
        return username.strip()

    @validates("hashed_password")
    def validate_hashed_password(self, key, hashed_password):
        if not isinstance(hashed_password, str):
            raise ValueError("Hashed password must be a string")
        if not hashed_password.strip():
            raise ValueError("Hashed password cannot be empty")
        return hashed_password.strip()
