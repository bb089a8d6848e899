from datetime import timedelta

import pytest
from jose import jwt

from blogapi.config import settings
from blogapi.exceptions import TokenExpiredError, TokenMalformedError, ValidationFailedError
from blogapi.middleware import extract_bearer_token
from blogapi.models import RoleName, effective_authorities
from blogapi.pagination import PageRequest
from blogapi.utils import (
    create_access_token, hash_password, make_excerpt, slugify, utcnow, verify_access_token,
    verify_password,
)


def test_slugify_hello_world():
    assert slugify("Hello World!") == "hello-world"


@pytest.mark.parametrize("value", [
    "Hello World!",
    "  Spaces   everywhere  ",
    "--Leading and trailing--",
    "Python 3.12 & FastAPI",
    "already-a-slug",
])
def test_slugify_is_idempotent(value):
    assert slugify(slugify(value)) == slugify(value)


def test_slugify_collapses_separators():
    assert slugify("  a -- b   c  ") == "a-b-c"
    assert slugify("!!!") == ""
    assert slugify(None) == ""


def test_make_excerpt():
    assert make_excerpt("short") == "short"
    excerpt = make_excerpt("x" * 200)
    assert excerpt == "x" * 150 + "..."
    assert make_excerpt("y" * 150) == "y" * 150


def test_password_hashing():
    hashed = hash_password("secret1")
    assert hashed != "secret1"
    assert verify_password("secret1", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret1", "not-a-hash")


def test_token_round_trip():
    token, expires_at = create_access_token("42", roles=["USER"])
    assert verify_access_token(token) == "42"
    assert expires_at > utcnow()

    claims = jwt.get_unverified_claims(token)
    assert claims["roles"] == ["USER"]
    assert claims["type"] == "access"


def test_expired_token():
    token, _ = create_access_token("42", expires_delta=timedelta(seconds=-5))
    with pytest.raises(TokenExpiredError):
        verify_access_token(token)


def test_token_signed_with_other_key():
    token = jwt.encode({"sub": "42", "type": "access"}, "some-other-key", algorithm=settings.ALGORITHM)
    with pytest.raises(TokenMalformedError):
        verify_access_token(token)


def test_token_with_wrong_type_or_no_subject():
    refresh = jwt.encode({"sub": "42", "type": "refresh"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    with pytest.raises(TokenMalformedError):
        verify_access_token(refresh)

    anonymous = jwt.encode({"type": "access"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    with pytest.raises(TokenMalformedError):
        verify_access_token(anonymous)


def test_garbage_token():
    with pytest.raises(TokenMalformedError):
        verify_access_token("not.a.token")


def test_extract_bearer_token():
    assert extract_bearer_token(None) is None
    assert extract_bearer_token("Basic dXNlcjpwYXNz") is None
    assert extract_bearer_token("Bearer ") is None
    assert extract_bearer_token("Bearer abc.def") == "abc.def"
    assert extract_bearer_token("bearer abc") == "abc"


def test_admin_implies_moderator():
    assert effective_authorities([RoleName.ADMIN]) == {RoleName.ADMIN, RoleName.MODERATOR}
    assert effective_authorities([RoleName.USER]) == {RoleName.USER}
    assert effective_authorities([]) == frozenset()


def test_page_request_bounds():
    assert PageRequest(size=500).size == settings.MAX_PAGE_SIZE
    assert PageRequest(page=-3).page == 0
    assert PageRequest(page=2, size=10).offset == 20
    with pytest.raises(ValidationFailedError):
        PageRequest(direction="sideways")
