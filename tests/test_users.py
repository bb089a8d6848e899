import pytest

from blogapi.exceptions import ConflictError, InvalidCredentialsError, InvalidOperationError
from blogapi.schemas import UserUpdate
from blogapi.services import user_service


def test_follow_unfollow_round_trip(client, alice, bob_headers):
    alice_id = alice["user"]["id"]
    url = f"/api/users/{alice_id}"

    assert client.get(f"{url}/is-following", headers=bob_headers).json()["data"] is False
    assert client.post(f"{url}/follow", headers=bob_headers).status_code == 200
    assert client.get(f"{url}/is-following", headers=bob_headers).json()["data"] is True

    followers = client.get(f"{url}/followers").json()["data"]
    assert [u["username"] for u in followers["content"]] == ["bob"]
    assert client.get(url).json()["data"]["follower_count"] == 1

    assert client.post(f"{url}/unfollow", headers=bob_headers).status_code == 200
    assert client.get(f"{url}/is-following", headers=bob_headers).json()["data"] is False


def test_follow_is_idempotent(client, alice, bob, bob_headers):
    url = f"/api/users/{alice['user']['id']}"
    client.post(f"{url}/follow", headers=bob_headers)
    response = client.post(f"{url}/follow", headers=bob_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Already following"

    following = client.get(f"/api/users/{bob['user']['id']}/following").json()["data"]
    assert following["total_elements"] == 1

    # Unfollowing twice is harmless too
    client.post(f"{url}/unfollow", headers=bob_headers)
    assert client.post(f"{url}/unfollow", headers=bob_headers).status_code == 200


def test_cannot_follow_yourself(client, alice, alice_headers):
    response = client.post(f"/api/users/{alice['user']['id']}/follow", headers=alice_headers)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_OPERATION"


def test_follow_unknown_user(client, alice_headers):
    assert client.post("/api/users/999/follow", headers=alice_headers).status_code == 404


def test_change_password(client, alice_headers):
    wrong = client.post("/api/users/me/change-password",
                        json={"current_password": "nope", "new_password": "secret2"}, headers=alice_headers)
    assert wrong.status_code == 401

    right = client.post("/api/users/me/change-password",
                        json={"current_password": "secret1", "new_password": "secret2"}, headers=alice_headers)
    assert right.status_code == 200

    login = client.post("/api/auth/login", json={"username_or_email": "alice", "password": "secret2"})
    assert login.status_code == 200


def test_delete_me_is_soft(client, alice, alice_headers):
    assert client.delete("/api/users/me", headers=alice_headers).status_code == 200

    profile = client.get(f"/api/users/{alice['user']['id']}").json()["data"]
    assert profile["enabled"] is False
    login = client.post("/api/auth/login", json={"username_or_email": "alice", "password": "secret1"})
    assert login.status_code == 401


def test_update_profile(client, alice_headers, bob):
    response = client.put("/api/users/me", json={"first_name": "Alice", "last_name": "Liddell"},
                          headers=alice_headers)
    assert response.status_code == 200
    assert response.json()["data"]["full_name"] == "Alice Liddell"

    taken = client.put("/api/users/me", json={"email": "bob@x.com"}, headers=alice_headers)
    assert taken.status_code == 409
    assert taken.json()["error"]["code"] == "DUPLICATE_EMAIL"


def test_avatar_and_bio(client, alice_headers):
    client.post("/api/users/me/avatar", json={"avatar_url": "https://img.example/a.png"}, headers=alice_headers)
    client.put("/api/users/me/bio", json={"bio": "Down the rabbit hole"}, headers=alice_headers)
    me = client.get("/api/users/me", headers=alice_headers).json()["data"]
    assert me["avatar_url"] == "https://img.example/a.png"
    assert me["bio"] == "Down the rabbit hole"


def test_lookup_and_search(client, alice, bob):
    assert client.get("/api/users/username/alice").json()["data"]["id"] == alice["user"]["id"]
    assert client.get("/api/users/username/nobody").status_code == 404

    found = client.get("/api/users/search", params={"query": "bo"}).json()["data"]
    assert [u["username"] for u in found["content"]] == ["bob"]

    too_short = client.get("/api/users/search", params={"query": "b"}).json()["data"]
    assert too_short["empty"] is True

    active = client.get("/api/users/active").json()["data"]
    assert active["total_elements"] == 2


def test_statistics(client, alice, alice_headers, bob_headers, create_post):
    post = create_post(alice_headers)
    client.get(f"/api/posts/{post['id']}")
    client.post(f"/api/posts/{post['id']}/like", headers=bob_headers)
    client.post("/api/comments", json={"content": "Hi", "post_id": post["id"]}, headers=bob_headers)
    client.post(f"/api/users/{alice['user']['id']}/follow", headers=bob_headers)

    stats = client.get(f"/api/users/{alice['user']['id']}/statistics").json()["data"]
    assert stats["total_posts"] == 1
    assert stats["total_views"] == 1
    assert stats["total_likes_received"] == 1
    assert stats["total_comments_received"] == 1
    assert stats["followers_count"] == 1
    assert stats["account_age_days"] == 0


def test_service_follow_rules(db, make_user):
    a = make_user("a")
    b = make_user("b")
    with pytest.raises(InvalidOperationError):
        user_service.follow(db, a.id, a.id)

    assert user_service.follow(db, a.id, b.id) is True
    assert user_service.follow(db, a.id, b.id) is False
    assert user_service.is_following(db, a.id, b.id)
    assert not user_service.is_following(db, b.id, a.id)
    assert user_service.unfollow(db, a.id, b.id) is True
    assert user_service.unfollow(db, a.id, b.id) is False


def test_service_profile_rules(db, make_user):
    amy = make_user("amy")
    make_user("bob")
    with pytest.raises(ConflictError):
        user_service.update_profile(db, amy.id, UserUpdate(username="bob"))
    with pytest.raises(InvalidCredentialsError):
        user_service.change_password(db, amy.id, "wrong", "secret2")
