import pytest

from speech_server.app.models.file import File


@pytest.fixture
def stored_file(database, tmp_path):
    """A published file on disk with its database record."""
    path = tmp_path / "clip.txt"
    path.write_text("hello speech")
    db = database.session()
    db.add(File(claim_id="abc123", name="clip", file_path=str(path), file_type="text/plain"))
    db.commit()
    db.close()
    return path


def test_serves_stored_file(client, stored_file):
    response = client.get("/media/abc123/clip")
    assert response.status_code == 200
    assert response.text == "hello speech"
    assert response.headers["content-type"].startswith("text/plain")


def test_unknown_claim_renders_not_found_page(client):
    response = client.get("/media/abc123/missing")
    assert response.status_code == 404
    assert "404: Not Found" in response.text


def test_file_removed_from_disk_renders_not_found_page(client, stored_file):
    stored_file.unlink()
    response = client.get("/media/abc123/clip")
    assert response.status_code == 404
    assert "404: Not Found" in response.text
