import logging
from typing import Optional

from sqlalchemy.orm import Session

from blogapi.crud import crud_user
from blogapi.exceptions import DuplicateEmailError, DuplicateUsernameError, InvalidCredentialsError
from blogapi.models import RoleName, User
from blogapi.schemas import AuthResponse, UserCreate
from blogapi.services.user_service import user_to_response
from blogapi.utils import create_access_token, hash_password, utcnow, verify_password

logger = logging.getLogger(__name__)


def _issue(db: Session, user: User) -> AuthResponse:
    roles = [role.name.value for role in user.roles]
    token, expires_at = create_access_token(subject=str(user.id), roles=roles)
    return AuthResponse(token=token, expires_at=expires_at, user=user_to_response(db, user))


def login(db: Session, username_or_email: str, password: str) -> AuthResponse:
    user = crud_user.get_user_by_username_or_email(db, username_or_email)

    # Every failure looks the same to the caller
    if user is None or not verify_password(password, user.password_hash):
        logger.warning(f"Login failed for user: {username_or_email}")
        raise InvalidCredentialsError()
    if not user.enabled or user.locked:
        logger.warning(f"Login refused for disabled or locked user: {username_or_email}")
        raise InvalidCredentialsError()

    user.last_login_at = utcnow()
    db.commit()

    logger.info(f"User logged in: {user.username}")
    return _issue(db, user)


def register(db: Session, request: UserCreate) -> AuthResponse:
    if crud_user.exists_by_email(db, request.email):
        raise DuplicateEmailError(request.email)
    if crud_user.exists_by_username(db, request.username):
        raise DuplicateUsernameError(request.username)

    user = User(
        email=request.email,
        username=request.username,
        password_hash=hash_password(request.password),
        first_name=request.first_name,
        last_name=request.last_name,
        enabled=True,
        locked=False,
    )
    user.roles.append(crud_user.get_or_create_role(db, RoleName.USER, "Regular user"))
    crud_user.create_user(db, user)
    db.commit()

    logger.info(f"User registered: {user.username}")
    return _issue(db, user)


def current_user(db: Session, principal) -> Optional[User]:
    """User behind the request's principal, or None for anonymous requests."""
    if principal is None:
        return None
    return crud_user.get_user(db, principal.user_id)
