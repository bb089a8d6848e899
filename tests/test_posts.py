from blogapi.crud import crud_post
from blogapi.models import PostStatus
from blogapi.schemas import PostCreate, PostUpdate
from blogapi.services import post_service


def test_create_defaults_to_published(client, alice_headers, create_post):
    post = create_post(alice_headers)
    assert post["status"] == "PUBLISHED"
    assert post["published_at"] is not None
    assert post["slug"] == "my-first-post"
    assert post["excerpt"] == "Hello from the blog."
    assert post["author_username"] == "alice"

    # Anonymous read right after creation
    response = client.get(f"/api/posts/{post['id']}")
    assert response.status_code == 200
    assert response.json()["data"]["view_count"] == 1


def test_every_read_counts_a_view(client, alice_headers, create_post):
    post = create_post(alice_headers)
    for expected in range(1, 4):
        response = client.get(f"/api/posts/{post['id']}")
        assert response.json()["data"]["view_count"] == expected


def test_create_requires_authentication(client):
    response = client.post("/api/posts", json={"title": "Nope", "content": "No token"})
    assert response.status_code == 401


def test_unrecognized_status_falls_back_to_published(alice_headers, create_post):
    post = create_post(alice_headers, status="SOMETHING")
    assert post["status"] == "PUBLISHED"


def test_duplicate_titles_get_distinct_slugs(alice_headers, create_post):
    first = create_post(alice_headers, title="Same Title")
    second = create_post(alice_headers, title="Same Title")
    assert first["slug"] == "same-title"
    assert second["slug"] == "same-title-2"


def test_long_content_gets_excerpt(alice_headers, create_post):
    post = create_post(alice_headers, content="z" * 400)
    assert post["excerpt"] == "z" * 150 + "..."


def test_drafts_are_hidden(client, alice_headers, create_post):
    draft = create_post(alice_headers, title="Draft", status="DRAFT")
    assert draft["published_at"] is None

    assert client.get(f"/api/posts/{draft['id']}").status_code == 404
    listing = client.get("/api/posts").json()["data"]
    assert listing["total_elements"] == 0

    mine = client.get("/api/posts/me", headers=alice_headers).json()["data"]
    assert [p["id"] for p in mine["content"]] == [draft["id"]]


def test_update_permissions(client, alice_headers, bob_headers, admin_headers, create_post):
    post = create_post(alice_headers)
    payload = {"title": "Edited", "content": "Edited content"}

    assert client.put(f"/api/posts/{post['id']}", json=payload, headers=bob_headers).status_code == 403

    response = client.put(f"/api/posts/{post['id']}", json=payload, headers=alice_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == "Edited"
    assert data["slug"] == post["slug"]
    assert data["excerpt"] == "Edited content"

    payload["title"] = "Edited by admin"
    assert client.put(f"/api/posts/{post['id']}", json=payload, headers=admin_headers).status_code == 200


def test_publishing_a_draft_stamps_published_at(client, alice_headers, create_post):
    draft = create_post(alice_headers, status="DRAFT")
    response = client.put(f"/api/posts/{draft['id']}",
                          json={"title": "Draft", "content": "Body", "status": "PUBLISHED"},
                          headers=alice_headers)
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "PUBLISHED"
    assert response.json()["data"]["published_at"] is not None


def test_status_transitions(client, alice_headers, create_post):
    post = create_post(alice_headers)
    url = f"/api/posts/{post['id']}"
    body = {"title": "T", "content": "C"}

    response = client.put(url, json={**body, "status": "DRAFT"}, headers=alice_headers)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_OPERATION"

    response = client.put(url, json={**body, "status": "BOGUS"}, headers=alice_headers)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_FAILED"

    assert client.put(url, json={**body, "status": "ARCHIVED"}, headers=alice_headers).status_code == 200
    response = client.put(url, json={**body, "status": "PUBLISHED"}, headers=alice_headers)
    assert response.status_code == 400


def test_delete_permissions(client, alice_headers, bob_headers, create_post):
    post = create_post(alice_headers)
    assert client.delete(f"/api/posts/{post['id']}", headers=bob_headers).status_code == 403
    assert client.delete(f"/api/posts/{post['id']}", headers=alice_headers).status_code == 200
    assert client.get(f"/api/posts/{post['id']}").status_code == 404


def test_like_round_trip(client, alice_headers, bob_headers, create_post):
    post = create_post(alice_headers)
    url = f"/api/posts/{post['id']}/like"
    liked_url = f"/api/posts/{post['id']}/liked"

    first = client.post(url, headers=bob_headers).json()["data"]
    assert first == {"active": True, "count": 1}
    assert client.get(liked_url, headers=bob_headers).json()["data"] is True
    assert client.get(liked_url, headers=alice_headers).json()["data"] is False
    second = client.post(url, headers=bob_headers).json()["data"]
    assert second == {"active": False, "count": 0}
    assert client.get(liked_url, headers=bob_headers).json()["data"] is False
    assert client.get("/api/posts/999/liked", headers=bob_headers).status_code == 404


def test_save_toggle_and_saved_listing(client, alice_headers, bob_headers, create_post):
    post = create_post(alice_headers)
    assert client.post(f"/api/posts/{post['id']}/save", headers=bob_headers).json()["data"]["active"] is True

    saved = client.get("/api/posts/saved", headers=bob_headers).json()["data"]
    assert [p["id"] for p in saved["content"]] == [post["id"]]
    assert client.get(f"/api/posts/{post['id']}/saved", headers=bob_headers).json()["data"] is True

    assert client.post(f"/api/posts/{post['id']}/save", headers=bob_headers).json()["data"]["active"] is False
    assert client.get("/api/posts/saved", headers=bob_headers).json()["data"]["empty"] is True
    assert client.get(f"/api/posts/{post['id']}/saved", headers=bob_headers).json()["data"] is False


def test_tag_counts_follow_posts(client, alice_headers, create_post):
    post = create_post(alice_headers, tags=["python", "fastapi"])
    assert post["tags"] == ["fastapi", "python"]

    def count(name):
        return client.get(f"/api/tags/name/{name}").json()["data"]["post_count"]

    assert count("python") == 1
    assert count("fastapi") == 1

    response = client.put(f"/api/posts/{post['id']}",
                          json={"title": "T", "content": "C", "tags": ["python", "sql"]},
                          headers=alice_headers)
    assert response.json()["data"]["tags"] == ["python", "sql"]
    assert count("python") == 1
    assert count("fastapi") == 0
    assert count("sql") == 1

    client.delete(f"/api/posts/{post['id']}", headers=alice_headers)
    assert count("python") == 0
    assert count("sql") == 0


def test_posts_by_tag(client, alice_headers, create_post):
    tagged = create_post(alice_headers, title="Tagged", tags=["python"])
    create_post(alice_headers, title="Untagged")
    page = client.get("/api/posts/tag/python").json()["data"]
    assert [p["id"] for p in page["content"]] == [tagged["id"]]


def test_popular_orders_by_views(client, alice_headers, create_post):
    quiet = create_post(alice_headers, title="Quiet")
    busy = create_post(alice_headers, title="Busy")
    for _ in range(3):
        client.get(f"/api/posts/{busy['id']}")
    client.get(f"/api/posts/{quiet['id']}")

    page = client.get("/api/posts/popular").json()["data"]
    assert [p["id"] for p in page["content"]] == [busy["id"], quiet["id"]]


def test_pagination_contract(client, alice_headers, create_post):
    for i in range(3):
        create_post(alice_headers, title=f"Post {i}")

    page = client.get("/api/posts", params={"page": 0, "size": 2}).json()["data"]
    assert page["total_elements"] == 3
    assert page["total_pages"] == 2
    assert page["first"] is True
    assert page["last"] is False
    assert len(page["content"]) == 2

    capped = client.get("/api/posts", params={"size": 500}).json()["data"]
    assert capped["size"] == 100

    sorted_page = client.get("/api/posts", params={"sort": "title", "direction": "asc"}).json()["data"]
    assert [p["title"] for p in sorted_page["content"]] == ["Post 0", "Post 1", "Post 2"]
    assert sorted_page["sort"] == [{"property": "title", "direction": "ASC"}]

    response = client.get("/api/posts", params={"sort": "password_hash"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_FAILED"


def test_search_posts(client, alice_headers, create_post):
    match = create_post(alice_headers, title="Learning FastAPI", content="Dependency injection")
    create_post(alice_headers, title="Gardening", content="Tomatoes")

    page = client.get("/api/posts/search", params={"query": "fastapi"}).json()["data"]
    assert [p["id"] for p in page["content"]] == [match["id"]]

    everything = client.get("/api/posts/search", params={"query": ""}).json()["data"]
    assert everything["total_elements"] == 2


def test_feed_shows_followed_authors(client, alice, alice_headers, bob_headers, create_post):
    post = create_post(alice_headers)
    assert client.get("/api/posts/feed", headers=bob_headers).json()["data"]["empty"] is True

    client.post(f"/api/users/{alice['user']['id']}/follow", headers=bob_headers)
    feed = client.get("/api/posts/feed", headers=bob_headers).json()["data"]
    assert [p["id"] for p in feed["content"]] == [post["id"]]


def test_service_create_and_archive(db, make_user):
    author = make_user("writer")
    created = post_service.create_post(db, PostCreate(title="Service Post", content="Body"), author)
    assert created.status == "PUBLISHED"

    post_service.update_post(db, created.id, PostUpdate(title="Service Post", content="Body", status="archived"), author)
    assert crud_post.get_post(db, created.id).status == PostStatus.ARCHIVED
    assert crud_post.count_posts(db, PostStatus.PUBLISHED) == 0
