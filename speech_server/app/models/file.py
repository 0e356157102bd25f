import logging

from sqlalchemy import Column, Integer, String, UniqueConstraint

from speech_server.app.models import Base

log = logging.getLogger(__name__)


class File(Base):
    """
    A published file, addressed by its claim id and name.

    Attributes:
        id (int): Primary key.
        claim_id (str): Identifier of the claim the file was published under.
        name (str): Claim name, unique together with the claim id.
        title (str | None): Human readable title.
        file_path (str): Location of the file on local disk.
        file_type (str): MIME type served with the file.

    """

    __tablename__ = "files"
    __table_args__ = (UniqueConstraint("claim_id", "name"),)

    id = Column(Integer, primary_key=True, index=True)
    claim_id = Column(String(40), nullable=False, index=True)
    name = Column(String(255), nullable=False, index=True)
    title = Column(String(255), nullable=True)
    file_path = Column(String(1024), nullable=False)
    file_type = Column(String(255), nullable=False, default="application/octet-stream")
