import logging
from typing import Optional

from sqlalchemy.orm import Session

from blogapi.crud import crud_comment, crud_post, crud_tag, crud_user
from blogapi.exceptions import ConflictError, InvalidOperationError
from blogapi.models import PostStatus, RoleName
from blogapi.schemas import AdminUserUpdate, PostResponse, SystemStatistics, UserResponse
from blogapi.services import comment_service, post_service
from blogapi.services.user_service import get_user_or_404, user_to_response
from blogapi.utils import utcnow

logger = logging.getLogger(__name__)

ROLE_DESCRIPTIONS = {
    RoleName.USER: "Regular user",
    RoleName.MODERATOR: "Content moderator",
    RoleName.ADMIN: "Administrator",
}


def update_user(db: Session, user_id: int, request: AdminUserUpdate) -> UserResponse:
    user = get_user_or_404(db, user_id)
    changes = request.model_dump(exclude_unset=True)

    email = changes.pop("email", None)
    if email is not None and email != user.email:
        if crud_user.exists_by_email(db, email):
            raise ConflictError(f"Email already exists: {email}",
                                details={"field": "email"}, error_code="DUPLICATE_EMAIL")
        user.email = email

    username = changes.pop("username", None)
    if username is not None and username != user.username:
        if crud_user.exists_by_username(db, username):
            raise ConflictError(f"Username already exists: {username}",
                                details={"field": "username"}, error_code="DUPLICATE_USERNAME")
        user.username = username

    for field, value in changes.items():
        if value is None and field in ("enabled", "locked", "email_verified"):
            continue
        setattr(user, field, value)

    db.commit()
    logger.info(f"Admin updated user {user_id}: {sorted(request.model_fields_set)}")
    return user_to_response(db, user)


def _set_locked(db: Session, user_id: int, locked: bool) -> UserResponse:
    user = get_user_or_404(db, user_id)
    user.locked = locked
    db.commit()
    logger.info(f"User {user.username} {'banned' if locked else 'unbanned'}")
    return user_to_response(db, user)


def ban_user(db: Session, user_id: int, acting_user_id: Optional[int] = None) -> UserResponse:
    if acting_user_id is not None and acting_user_id == user_id:
        raise InvalidOperationError("Cannot ban yourself")
    return _set_locked(db, user_id, True)


def unban_user(db: Session, user_id: int) -> UserResponse:
    return _set_locked(db, user_id, False)


def delete_user(db: Session, user_id: int) -> None:
    user = get_user_or_404(db, user_id)
    user.enabled = False
    db.commit()
    logger.info(f"Admin disabled user with id: {user_id}")


def assign_role(db: Session, user_id: int, role_name: RoleName) -> UserResponse:
    user = get_user_or_404(db, user_id)
    if role_name not in user.role_names:
        user.roles.append(crud_user.get_or_create_role(db, role_name, ROLE_DESCRIPTIONS[role_name]))
        db.commit()
        logger.info(f"Assigned role {role_name.value} to user {user.username}")
    return user_to_response(db, user)


def remove_role(db: Session, user_id: int, role_name: RoleName) -> UserResponse:
    user = get_user_or_404(db, user_id)
    for role in list(user.roles):
        if role.name == role_name:
            user.roles.remove(role)
            db.commit()
            logger.info(f"Removed role {role_name.value} from user {user.username}")
            break
    return user_to_response(db, user)


def system_statistics(db: Session) -> SystemStatistics:
    return SystemStatistics(
        total_users=crud_user.count_users(db),
        active_users=crud_user.count_active_users(db),
        admins=crud_user.count_users_with_role(db, RoleName.ADMIN),
        moderators=crud_user.count_users_with_role(db, RoleName.MODERATOR),
        total_posts=crud_post.count_posts(db),
        published_posts=crud_post.count_posts(db, PostStatus.PUBLISHED),
        draft_posts=crud_post.count_posts(db, PostStatus.DRAFT),
        archived_posts=crud_post.count_posts(db, PostStatus.ARCHIVED),
        total_comments=crud_comment.count_comments(db),
        total_tags=crud_tag.count_tags(db),
        server_time=utcnow(),
    )


def delete_any_post(db: Session, post_id: int) -> None:
    post = post_service.get_post_or_404(db, post_id)
    post_service.remove_post(db, post)
    logger.info(f"Admin deleted post with id: {post_id}")


def delete_any_comment(db: Session, comment_id: int) -> None:
    comment = comment_service.get_comment_or_404(db, comment_id)
    comment_service.remove_comment(db, comment)
    logger.info(f"Admin deleted comment with id: {comment_id}")


def feature_post(db: Session, post_id: int) -> PostResponse:
    return post_service.set_featured(db, post_id, True)


def unfeature_post(db: Session, post_id: int) -> PostResponse:
    return post_service.set_featured(db, post_id, False)
