"""Integration tests for blog endpoints via TestClient."""


def _create_blog(client, auth, author, **overrides):
    payload = {"title": "Hello World", "content": "Body text"}
    payload.update(overrides)
    response = client.post("/blogs", json=payload, headers=auth(author))
    assert response.status_code == 201
    return response.json()["id"]


def _moderate(client, auth, actor, blog_id, action, **extra):
    return client.put(f"/blogs/{blog_id}/moderate", json={"action": action, **extra}, headers=auth(actor))


class TestBlogAPI:
    def test_create_requires_identity(self, client):
        assert client.post("/blogs", json={"title": "x", "content": "y"}).status_code == 401

    def test_published_listing(self, client, auth, user):
        live = _create_blog(client, auth, user, title="Live", status="published")
        _create_blog(client, auth, user, title="Draft")

        body = client.get("/blogs").json()
        assert [b["id"] for b in body] == [live]

    def test_my_blogs(self, client, auth, user, make_principal):
        mine = _create_blog(client, auth, user)
        _create_blog(client, auth, make_principal())

        body = client.get("/blogs/mine", headers=auth(user)).json()
        assert [b["id"] for b in body] == [mine]

    def test_unknown_status_returns_400(self, client, auth, user):
        payload = {"title": "Odd", "content": "Body", "status": "bogus"}
        response = client.post("/blogs", json=payload, headers=auth(user))
        assert response.status_code == 400
        assert client.get("/blogs/mine?status=bogus", headers=auth(user)).status_code == 400

    def test_author_updates(self, client, auth, user):
        blog_id = _create_blog(client, auth, user)
        response = client.put(f"/blogs/{blog_id}", json={"excerpt": "Teaser"}, headers=auth(user))
        assert response.status_code == 200


class TestBlogViewsAPI:
    def test_anonymous_viewer_counted_once(self, client, auth, user):
        blog_id = _create_blog(client, auth, user, status="published")
        headers = {"User-Agent": "pytest-browser"}

        first = client.get(f"/blogs/{blog_id}", headers=headers).json()
        second = client.get(f"/blogs/{blog_id}", headers=headers).json()

        assert (first["new_view"], first["total_views"]) == (True, 1)
        assert (second["new_view"], second["total_views"]) == (False, 1)

    def test_signed_in_viewers_are_distinct(self, client, auth, user, make_principal):
        blog_id = _create_blog(client, auth, user, status="published")
        client.get(f"/blogs/{blog_id}", headers=auth(make_principal()))
        body = client.get(f"/blogs/{blog_id}", headers=auth(make_principal())).json()
        assert body["total_views"] == 2
        assert body["blog"]["views"] == 2

    def test_draft_is_404_for_anonymous(self, client, auth, user):
        blog_id = _create_blog(client, auth, user)
        assert client.get(f"/blogs/{blog_id}").status_code == 404
        assert client.get(f"/blogs/{blog_id}", headers=auth(user)).status_code == 200


class TestBlogModerationAPI:
    def test_admin_publishes(self, client, auth, user, admin):
        blog_id = _create_blog(client, auth, user)
        response = _moderate(client, auth, admin, blog_id, "publish")
        assert response.status_code == 200
        body = response.json()
        assert body["changed"] is True
        assert body["state"]["status"] == "published"

    def test_user_cannot_publish(self, client, auth, user):
        blog_id = _create_blog(client, auth, user)
        assert _moderate(client, auth, user, blog_id, "publish").status_code == 403

    def test_invalid_transition_returns_409(self, client, auth, user, admin):
        blog_id = _create_blog(client, auth, user)
        response = _moderate(client, auth, admin, blog_id, "archive")
        assert response.status_code == 409
        assert "error" in response.json()

    def test_flag_with_reason(self, client, auth, user, make_principal):
        blog_id = _create_blog(client, auth, user, status="published")
        reader = make_principal()

        response = _moderate(client, auth, reader, blog_id, "flag", flag_reason="Spam", flag_details="Ads only")

        assert response.status_code == 200
        flag = client.get(f"/blogs/{blog_id}").json()["blog"]["flag"]
        assert flag["reason"] == "Spam"
        assert flag["flagged_by"] == reader.principal_id

    def test_invalid_flag_reason_returns_409(self, client, auth, user):
        blog_id = _create_blog(client, auth, user, status="published")
        assert _moderate(client, auth, user, blog_id, "flag", flag_reason="Meh").status_code == 409

    def test_permanent_delete(self, client, auth, user, admin):
        blog_id = _create_blog(client, auth, user, status="published")
        response = _moderate(client, auth, admin, blog_id, "permanentDelete")
        assert response.json()["removed"] is True
        assert client.get(f"/blogs/{blog_id}", headers=auth(admin)).status_code == 404
