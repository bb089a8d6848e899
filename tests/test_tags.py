import pytest

from blogapi.crud import crud_tag
from blogapi.exceptions import ConflictError, InvalidOperationError, ValidationFailedError
from blogapi.schemas import PostCreate
from blogapi.services import post_service, tag_service


def test_merge_moves_posts_to_target(client, alice_headers, admin_headers, create_post):
    p1 = create_post(alice_headers, title="One", tags=["py"])
    p2 = create_post(alice_headers, title="Two", tags=["py"])
    p3 = create_post(alice_headers, title="Three", tags=["python"])

    source = client.get("/api/tags/name/py").json()["data"]
    target = client.get("/api/tags/name/python").json()["data"]

    response = client.post("/api/tags/merge",
                           json={"source_tag_id": source["id"], "target_tag_id": target["id"]},
                           headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["post_count"] == 3

    assert client.get(f"/api/tags/{source['id']}").status_code == 404
    for post in (p1, p2, p3):
        assert client.get(f"/api/posts/{post['id']}").json()["data"]["tags"] == ["python"]


def test_merge_overlapping_tags_sums_counts(db, make_user):
    author = make_user("author")
    post_service.create_post(db, PostCreate(title="Both", content="x", tags={"a", "b"}), author)
    post_service.create_post(db, PostCreate(title="Only A", content="x", tags={"a"}), author)
    a = crud_tag.get_tag_by_name(db, "a")
    b = crud_tag.get_tag_by_name(db, "b")

    merged = tag_service.merge_tags(db, a.id, b.id)
    assert merged.post_count == 3
    assert crud_tag.get_tag_by_name(db, "a") is None


def test_merge_into_itself(db, make_user):
    author = make_user("author")
    post_service.create_post(db, PostCreate(title="P", content="x", tags={"solo"}), author)
    tag = crud_tag.get_tag_by_name(db, "solo")
    with pytest.raises(InvalidOperationError):
        tag_service.merge_tags(db, tag.id, tag.id)


def test_delete_tag_in_use(client, alice_headers, admin_headers, create_post):
    create_post(alice_headers, tags=["busy"])
    busy = client.get("/api/tags/name/busy").json()["data"]
    response = client.delete(f"/api/tags/{busy['id']}", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "TAG_IN_USE"

    idle = client.post("/api/tags", json={"name": "Idle"}, headers=admin_headers).json()["data"]
    assert client.delete(f"/api/tags/{idle['id']}", headers=admin_headers).status_code == 200


def test_tag_management_is_admin_only(client, alice_headers, admin_headers):
    assert client.post("/api/tags", json={"name": "Rust"}, headers=alice_headers).status_code == 403
    assert client.post("/api/tags", json={"name": "Rust"}).status_code == 401

    response = client.post("/api/tags", json={"name": "Rust Lang", "description": "Systems"},
                           headers=admin_headers)
    assert response.status_code == 201
    assert response.json()["data"]["slug"] == "rust-lang"

    duplicate = client.post("/api/tags", json={"name": "Rust Lang"}, headers=admin_headers)
    assert duplicate.status_code == 409


def test_update_tag_rederives_slug(client, admin_headers):
    tag = client.post("/api/tags", json={"name": "Old Name"}, headers=admin_headers).json()["data"]
    response = client.put(f"/api/tags/{tag['id']}", json={"name": "New Name"}, headers=admin_headers)
    assert response.json()["data"]["slug"] == "new-name"
    assert client.get("/api/tags/slug/new-name").status_code == 200


def test_get_or_create_is_idempotent(db):
    first = tag_service.get_or_create_tag(db, "Python")
    db.commit()
    assert tag_service.get_or_create_tag(db, "Python").id == first.id
    # Names differing only in case share a slug
    assert tag_service.get_or_create_tag(db, "python").id == first.id
    assert crud_tag.count_tags(db) == 1


def test_unsluggable_name_is_rejected(db):
    with pytest.raises(ValidationFailedError):
        tag_service.get_or_create_tag(db, "!!!")


def test_create_tag_conflict(db):
    tag_service.create_tag(db, "Go")
    with pytest.raises(ConflictError):
        tag_service.create_tag(db, "Go")


def test_popular_and_search(client, alice_headers, create_post):
    create_post(alice_headers, title="A", tags=["common", "rare"])
    create_post(alice_headers, title="B", tags=["common"])

    popular = client.get("/api/tags/popular", params={"limit": 1}).json()["data"]
    assert [t["name"] for t in popular] == ["common"]

    found = client.get("/api/tags/search", params={"query": "RA"}).json()["data"]
    assert [t["name"] for t in found["content"]] == ["rare"]

    trending = client.get("/api/tags/trending").json()["data"]
    assert [t["name"] for t in trending] == ["common", "rare"]

    common = popular[0]
    assert client.get(f"/api/tags/{common['id']}/posts/count").json()["data"] == 2
