import logging

import bcrypt

log = logging.getLogger(__name__)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password.

    Args:
        plain_password (str): The plain text password to verify.
        hashed_password (str): The hashed password to compare against.

    Returns:
        bool: True if the password matches, False otherwise.

    Notes:
        1. Use bcrypt to verify the password.
        2. A malformed stored hash counts as a mismatch.
        3. No database or network access in this function.

    """
    _msg = "Verifying password"
    log.debug(_msg)
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        _msg = "Stored password hash is malformed"
        log.warning(_msg)
        return False


def get_password_hash(password: str) -> str:
    """Hash a plain password.

    Args:
        password (str): The plain text password to hash.

    Returns:
        str: The hashed password.

    Notes:
        1. Use bcrypt to hash the password.
        2. No database or network access in this function.

    """
    _msg = "Hashing password"
    log.debug(_msg)
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")
