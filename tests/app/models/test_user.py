import pytest

from speech_server.app.models.user import User


def test_user_creation_strips_and_derives_channel():
    user = User(username=" alice ", hashed_password=" hash ")
    assert user.username == "alice"
    assert user.hashed_password == "hash"
    assert user.channel_name == "@alice"


def test_explicit_channel_name_is_kept():
    user = User(username="alice", hashed_password="hash", channel_name="@speech", id=3)
    assert user.channel_name == "@speech"
    assert user.id == 3


@pytest.mark.parametrize(
    "username, error_msg",
    [
        (123, "Username must be a string"),
        ("", "Username cannot be empty"),
        ("   ", "Username cannot be empty"),
    ],
)
def test_validate_username_failures(username, error_msg):
    """Test validate_username raises ValueError for invalid inputs."""
    with pytest.raises(ValueError, match=error_msg):
        User(username=username, hashed_password="hash")


@pytest.mark.parametrize(
    "hashed_password, error_msg",
    [
        (None, "Hashed password must be a string"),
        ("  ", "Hashed password cannot be empty"),
    ],
)
def test_validate_hashed_password_failures(hashed_password, error_msg):
    with pytest.raises(ValueError, match=error_msg):
        User(username="alice", hashed_password=hashed_password)
