# blogapi/api/deps.py
from typing import Optional

from fastapi import Depends, Query, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from blogapi.config import settings
from blogapi.database import get_db
from blogapi.exceptions import ForbiddenError, UnauthorizedError
from blogapi.middleware import Principal
from blogapi.models import RoleName, User
from blogapi.pagination import PageRequest
from blogapi.services import auth_service

__all__ = [
    "get_db", "get_principal", "get_current_user_optional", "get_current_user",
    "require_roles", "admin_required", "page_params",
]


# Documents the header in OpenAPI; the middleware does the actual checking
bearer_scheme = HTTPBearer(auto_error=False)


def get_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> Optional[Principal]:
    return getattr(request.state, "principal", None)


def get_current_user_optional(
    principal: Optional[Principal] = Depends(get_principal),
    db: Session = Depends(get_db),
) -> Optional[User]:
    return auth_service.current_user(db, principal)


def get_current_user(user: Optional[User] = Depends(get_current_user_optional)) -> User:
    if user is None:
        raise UnauthorizedError("Authentication required")
    return user


def require_roles(*roles: RoleName):
    """Dependency factory: the caller must hold at least one of ``roles``."""
    def checker(
        principal: Optional[Principal] = Depends(get_principal),
        user: User = Depends(get_current_user),
    ) -> User:
        if not any(principal.has_authority(role) for role in roles):
            raise ForbiddenError("Access denied")
        return user
    return checker


admin_required = require_roles(RoleName.ADMIN)


def page_params(
    page: int = Query(0, ge=0),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1),
    sort: Optional[str] = Query(None),
    direction: str = Query("desc"),
) -> PageRequest:
    return PageRequest(page=page, size=size, sort=sort, direction=direction)
