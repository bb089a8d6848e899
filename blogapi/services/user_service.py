import logging
from typing import Optional

from sqlalchemy.orm import Session

from blogapi.crud import crud_post, crud_user
from blogapi.exceptions import (
    ConflictError, InvalidCredentialsError, InvalidOperationError, NotFoundError,
)
from blogapi.models import User
from blogapi.pagination import PageRequest, empty_result, to_page
from blogapi.schemas import Page, UserResponse, UserStatistics, UserUpdate
from blogapi.utils import hash_password, utcnow, verify_password

logger = logging.getLogger(__name__)


def user_to_response(db: Session, user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        username=user.username,
        first_name=user.first_name,
        last_name=user.last_name,
        full_name=user.full_name,
        bio=user.bio,
        avatar_url=user.avatar_url,
        enabled=user.enabled,
        locked=user.locked,
        email_verified=user.email_verified,
        created_at=user.created_at,
        updated_at=user.updated_at,
        last_login_at=user.last_login_at,
        roles=sorted(role.name.value for role in user.roles),
        post_count=crud_post.count_by_author(db, user.id),
        follower_count=crud_user.count_followers(db, user.id),
        following_count=crud_user.count_following(db, user.id),
    )


def get_user_or_404(db: Session, user_id: int) -> User:
    user = crud_user.get_user(db, user_id)
    if user is None:
        raise NotFoundError(f"User not found with id: {user_id}")
    return user


def get_user(db: Session, user_id: int) -> UserResponse:
    return user_to_response(db, get_user_or_404(db, user_id))


def get_user_by_username(db: Session, username: str) -> UserResponse:
    user = crud_user.get_user_by_username(db, username)
    if user is None:
        raise NotFoundError(f"User not found with username: {username}")
    return user_to_response(db, user)


def list_users(db: Session, page_request: PageRequest, search: Optional[str] = None) -> Page[UserResponse]:
    if search and search.strip():
        result = crud_user.search_users(db, search.strip(), page_request)
    else:
        result = crud_user.list_users(db, page_request)
    return to_page(result, lambda user: user_to_response(db, user))


def search_users(db: Session, query: Optional[str], page_request: PageRequest) -> Page[UserResponse]:
    if not query or len(query.strip()) < 2:
        return to_page(empty_result(page_request), lambda user: user)
    result = crud_user.search_users(db, query.strip(), page_request)
    return to_page(result, lambda user: user_to_response(db, user))


def list_active_users(db: Session, page_request: PageRequest) -> Page[UserResponse]:
    result = crud_user.list_active_users(db, page_request)
    return to_page(result, lambda user: user_to_response(db, user))


def update_profile(db: Session, user_id: int, request: UserUpdate) -> UserResponse:
    user = get_user_or_404(db, user_id)

    if request.email is not None and request.email != user.email:
        if crud_user.exists_by_email(db, request.email):
            raise ConflictError(f"Email already exists: {request.email}",
                                details={"field": "email"}, error_code="DUPLICATE_EMAIL")
        user.email = request.email

    if request.username is not None and request.username != user.username:
        if crud_user.exists_by_username(db, request.username):
            raise ConflictError(f"Username already exists: {request.username}",
                                details={"field": "username"}, error_code="DUPLICATE_USERNAME")
        user.username = request.username

    for field in ("first_name", "last_name", "bio", "avatar_url"):
        value = getattr(request, field)
        if value is not None:
            setattr(user, field, value)

    if request.password:
        user.password_hash = hash_password(request.password)

    db.commit()
    logger.info(f"Updated user with id: {user_id}")
    return user_to_response(db, user)


def update_avatar(db: Session, user_id: int, avatar_url: str) -> UserResponse:
    user = get_user_or_404(db, user_id)
    user.avatar_url = avatar_url
    db.commit()
    logger.info(f"Updated avatar for user: {user.username}")
    return user_to_response(db, user)


def update_bio(db: Session, user_id: int, bio: str) -> UserResponse:
    user = get_user_or_404(db, user_id)
    user.bio = bio
    db.commit()
    logger.info(f"Updated bio for user: {user.username}")
    return user_to_response(db, user)


def delete_user(db: Session, user_id: int) -> None:
    """Soft delete: the account is disabled, its data stays."""
    user = get_user_or_404(db, user_id)
    user.enabled = False
    db.commit()
    logger.info(f"Disabled user with id: {user_id}")


def change_password(db: Session, user_id: int, current_password: str, new_password: str) -> None:
    user = get_user_or_404(db, user_id)
    if not verify_password(current_password, user.password_hash):
        raise InvalidCredentialsError("Current password is incorrect")
    user.password_hash = hash_password(new_password)
    db.commit()
    logger.info(f"Changed password for user: {user.username}")


def follow(db: Session, follower_id: int, followed_id: int) -> bool:
    """Add the follow edge. Returns False when it already existed."""
    if follower_id == followed_id:
        raise InvalidOperationError("Cannot follow yourself")
    get_user_or_404(db, follower_id)
    get_user_or_404(db, followed_id)

    if crud_user.get_follow(db, follower_id, followed_id) is not None:
        return False
    crud_user.add_follow(db, follower_id, followed_id)
    db.commit()
    logger.info(f"User {follower_id} followed user {followed_id}")
    return True


def unfollow(db: Session, follower_id: int, followed_id: int) -> bool:
    get_user_or_404(db, follower_id)
    get_user_or_404(db, followed_id)

    removed = crud_user.remove_follow(db, follower_id, followed_id)
    if removed:
        db.commit()
        logger.info(f"User {follower_id} unfollowed user {followed_id}")
    return removed


def is_following(db: Session, follower_id: int, followed_id: int) -> bool:
    return crud_user.get_follow(db, follower_id, followed_id) is not None


def list_followers(db: Session, user_id: int, page_request: PageRequest) -> Page[UserResponse]:
    get_user_or_404(db, user_id)
    result = crud_user.list_followers(db, user_id, page_request)
    return to_page(result, lambda user: user_to_response(db, user))


def list_following(db: Session, user_id: int, page_request: PageRequest) -> Page[UserResponse]:
    get_user_or_404(db, user_id)
    result = crud_user.list_following(db, user_id, page_request)
    return to_page(result, lambda user: user_to_response(db, user))


def user_statistics(db: Session, user_id: int) -> UserStatistics:
    user = get_user_or_404(db, user_id)
    views, likes, _ = crud_post.author_totals(db, user_id)
    joined = user.created_at or utcnow()
    return UserStatistics(
        user_id=user.id,
        username=user.username,
        joined_date=user.created_at,
        total_posts=crud_post.count_by_author(db, user_id),
        followers_count=crud_user.count_followers(db, user_id),
        following_count=crud_user.count_following(db, user_id),
        total_likes_received=likes,
        total_comments_received=crud_post.count_comments_received(db, user_id),
        total_views=views,
        last_login=user.last_login_at,
        account_age_days=(utcnow() - joined).days,
    )
