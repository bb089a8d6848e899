import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Tuple

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from blogapi.config import settings
from blogapi.exceptions import TokenExpiredError, TokenMalformedError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

EXCERPT_LENGTH = 150

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError) as e:
        logger.warning(f"Password verification error: {e}")
        return False


def create_access_token(subject: str, roles: Iterable[str] = (),
                        expires_delta: Optional[timedelta] = None) -> Tuple[str, datetime]:
    """
    Issue a signed bearer token for ``subject``.

    Returns the encoded token and its expiry instant (naive UTC).
    """
    issued_at = utcnow()
    expire = issued_at + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": str(subject),
        "roles": sorted(roles),
        "type": "access",
        "iat": issued_at.replace(tzinfo=timezone.utc),
        "exp": expire.replace(tzinfo=timezone.utc),
    }
    token = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return token, expire


def verify_access_token(token: str) -> str:
    """
    Decode ``token`` and return its subject.

    Raises TokenExpiredError past expiry and TokenMalformedError for anything
    the signature does not cover or the structure gets wrong.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError as e:
        raise TokenMalformedError(f"Could not validate token: {e}")

    if payload.get("type") != "access":
        raise TokenMalformedError("Unexpected token type")
    subject = payload.get("sub")
    if not subject:
        raise TokenMalformedError("Token has no subject")
    return subject


def slugify(value: Optional[str]) -> str:
    if not value:
        return ""
    slug = _NON_SLUG_CHARS.sub("", value.lower())
    slug = _WHITESPACE.sub("-", slug.strip())
    slug = _HYPHENS.sub("-", slug)
    return slug.strip("-")


def make_excerpt(content: Optional[str]) -> Optional[str]:
    if content is None:
        return None
    if len(content) > EXCERPT_LENGTH:
        return content[:EXCERPT_LENGTH] + "..."
    return content
