import logging
import uuid
from dataclasses import dataclass
from typing import FrozenSet, Optional

from fastapi import Request
from starlette.concurrency import run_in_threadpool

from blogapi.crud import crud_user
from blogapi.database import SessionLocal
from blogapi.exceptions import TokenError, TokenMalformedError
from blogapi.models import RoleName, effective_authorities
from blogapi.utils import verify_access_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Principal:
    """The authenticated caller attached to ``request.state``."""
    user_id: int
    username: str
    authorities: FrozenSet[RoleName]

    def has_authority(self, role: RoleName) -> bool:
        return role in self.authorities


def extract_bearer_token(header: Optional[str]) -> Optional[str]:
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def load_principal(subject: str) -> Optional[Principal]:
    """Reload the user behind a token; disabled or locked accounts get nothing."""
    try:
        user_id = int(subject)
    except ValueError:
        raise TokenMalformedError(f"Invalid token subject: {subject}")

    db = SessionLocal()
    try:
        user = crud_user.get_user(db, user_id)
        if user is None or not user.enabled or user.locked:
            return None
        return Principal(
            user_id=user.id,
            username=user.username,
            authorities=effective_authorities(user.role_names),
        )
    finally:
        db.close()


async def authenticate_request(request: Request, call_next):
    if getattr(request.state, "principal", None) is None:
        request.state.principal = None
        token = extract_bearer_token(request.headers.get("Authorization"))
        if token:
            try:
                subject = verify_access_token(token)
                request.state.principal = await run_in_threadpool(load_principal, subject)
            except TokenError as e:
                # Stale or bad tokens fall back to anonymous access
                logger.warning(f"Rejected bearer token on {request.url.path}: {e.message}")
    return await call_next(request)


async def add_request_id_header(request: Request, call_next):
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    logger.info(f"Request {request_id}: {request.method} {request.url.path}")
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    logger.info(f"Response {request_id}: Status {response.status_code}")
    return response
