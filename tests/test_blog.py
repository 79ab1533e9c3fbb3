"""Blog posts: slugs, public reads, slug moves and scheduled publishing."""
import pytest

from conftest import bearer, register, requester_for
from hackathon_api.core.exceptions import NotFound
from hackathon_api.repositories import blog_repo


@pytest.fixture
def author(client):
    return register(client)


def _create(client, token, **fields):
    body = {"title": "Hello World", "content": "Body", **fields}
    resp = client.post("/api/blog", headers=bearer(token), json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


class TestSlugify:
    @pytest.mark.parametrize(
        "title, slug",
        [
            ("Hello World", "hello-world"),
            ("  Hello,   World!  ", "hello-world"),
            ("--Already--Dashed--", "already-dashed"),
            ("snake_case stays", "snake_case-stays"),
            ("Café au lait", "caf-au-lait"),
            ("!!!", ""),
        ],
    )
    def test_cases(self, title, slug):
        assert blog_repo.slugify(title) == slug


class TestCreatePost:
    def test_fields(self, client, author):
        token, user = author
        post = _create(client, token, tags=["python", "redis"], summary="S")
        assert post["slug"] == "hello-world"
        assert post["id"].endswith("-hello-world")
        assert post["author"] == user["email"]
        assert post["authorId"] == user["id"]
        assert post["tags"] == ["python", "redis"]
        assert post["status"] == "published"

    def test_duplicate_slug_conflicts(self, client, author):
        _create(client, author[0])
        resp = client.post("/api/blog", headers=bearer(author[0]), json={"title": "hello  world!", "content": "x"})
        assert resp.status_code == 409

    def test_requires_title_and_content(self, client, author):
        resp = client.post("/api/blog", headers=bearer(author[0]), json={"title": "T"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Title and content are required"

    def test_requires_auth(self, client):
        assert client.post("/api/blog", json={"title": "T", "content": "C"}).status_code == 401


class TestReadPosts:
    def test_public_list_and_get(self, client, author):
        _create(client, author[0])
        _create(client, author[0], title="Second Post")
        listed = client.get("/api/blog").json()["data"]
        assert [p["slug"] for p in listed] == ["second-post", "hello-world"]
        got = client.get("/api/blog/hello-world").json()["data"]
        assert got["tags"] == []

    def test_unknown_slug(self, client):
        assert client.get("/api/blog/nope").status_code == 404

    def test_list_skips_dangling_slugs(self, client, store, author):
        _create(client, author[0])
        store.lpush(blog_repo.POSTS_LIST, "ghost")
        listed = client.get("/api/blog").json()["data"]
        assert [p["slug"] for p in listed] == ["hello-world"]


class TestUpdatePost:
    def test_title_change_moves_slug(self, client, store, author):
        token, _ = author
        _create(client, token)
        resp = client.put("/api/blog/hello-world", headers=bearer(token), json={"title": "Brand New Title"})
        assert resp.status_code == 200
        assert resp.json()["data"]["slug"] == "brand-new-title"
        assert client.get("/api/blog/hello-world").status_code == 404
        assert client.get("/api/blog/brand-new-title").json()["data"]["content"] == "Body"
        assert store.lrange(blog_repo.POSTS_LIST, 0, -1) == ["brand-new-title"]

    def test_title_change_onto_existing_slug(self, client, author):
        token, _ = author
        _create(client, token)
        _create(client, token, title="Other")
        resp = client.put("/api/blog/other", headers=bearer(token), json={"title": "Hello World"})
        assert resp.status_code == 409
        assert client.get("/api/blog/other").status_code == 200

    def test_merge_without_slug_change(self, client, author):
        token, _ = author
        post = _create(client, token)
        resp = client.put("/api/blog/hello-world", headers=bearer(token), json={"summary": "new summary"})
        data = resp.json()["data"]
        assert data["summary"] == "new summary"
        assert data["content"] == "Body"
        assert data["updatedDate"] > post["updatedDate"]

    @pytest.mark.parametrize("field", ["title", "content"])
    def test_blank_required_field_rejected(self, client, author, field):
        token, _ = author
        _create(client, token)
        resp = client.put("/api/blog/hello-world", headers=bearer(token), json={field: ""})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Title and content are required"
        assert client.get("/api/blog/hello-world").json()["data"]["content"] == "Body"

    def test_stranger_forbidden_admin_allowed(self, client, author):
        _create(client, author[0])
        stranger, _ = register(client, username="bob", email="bob@example.com")
        assert client.put("/api/blog/hello-world", headers=bearer(stranger), json={"content": "x"}).status_code == 403
        admin, _ = register(client, username="admin", email="admin@example.com")
        assert client.put("/api/blog/hello-world", headers=bearer(admin), json={"content": "x"}).status_code == 200


class TestDeletePost:
    def test_removes_hash_and_list_entry(self, client, store, author):
        _create(client, author[0])
        assert client.delete("/api/blog/hello-world", headers=bearer(author[0])).status_code == 200
        assert not store.exists(blog_repo.post_key("hello-world"))
        assert store.lrange(blog_repo.POSTS_LIST, 0, -1) == []

    def test_stranger_forbidden(self, client, author):
        _create(client, author[0])
        stranger, _ = register(client, username="bob", email="bob@example.com")
        assert client.delete("/api/blog/hello-world", headers=bearer(stranger)).status_code == 403


class TestPublishPost:
    def test_flips_scheduled_to_published(self, store, client, author):
        blog_repo.insert_post(store, requester_for(author[1]), {"title": "Later", "content": "c", "status": "scheduled"})
        post = blog_repo.publish_post(store, "later")
        assert post["status"] == "published"
        assert blog_repo.get_post(store, "later")["status"] == "published"

    def test_unknown_post(self, store):
        with pytest.raises(NotFound):
            blog_repo.publish_post(store, "missing")
