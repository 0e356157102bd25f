def test_index_uses_embed_layout(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "<h1>Test Speech</h1>" in response.text
    # The embed layout has no navigation bar
    assert "nav-bar" not in response.text


def test_login_page_has_both_forms(client):
    response = client.get("/login")
    assert response.status_code == 200
    assert 'id="login-form"' in response.text
    assert 'id="signup-form"' in response.text


def test_about_page_overrides_layout(client):
    response = client.get("/about")
    assert response.status_code == 200
    assert "About Test Speech" in response.text
    assert "nav-bar" in response.text


def test_templates_see_the_logged_in_user(client):
    client.post("/signup", json={"username": "alice", "password": "pw1"})

    assert "Publishing as @alice" in client.get("/").text
    about = client.get("/about").text
    assert '<span class="nav-user">@alice</span>' in about
    assert 'href="/logout"' in about


def test_templates_see_anonymous_user(client):
    assert 'href="/login"' in client.get("/about").text
    assert "Publishing as" not in client.get("/").text
