import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from blogapi.crud import crud_comment, crud_post
from blogapi.exceptions import ForbiddenError, InvalidOperationError, NotFoundError, ValidationFailedError
from blogapi.models import Comment, User
from blogapi.pagination import PageRequest, to_page
from blogapi.schemas import CommentCreate, CommentResponse, Page
from blogapi.utils import utcnow

logger = logging.getLogger(__name__)


def _can_moderate(comment: Comment, user: Optional[User]) -> bool:
    return user is not None and (comment.is_author(user) or user.is_moderator)


def comment_to_response(db: Session, comment: Comment, current_user: Optional[User] = None) -> CommentResponse:
    author = comment.user
    post = comment.post
    parent = comment.parent
    allowed = _can_moderate(comment, current_user) if current_user is not None else None
    return CommentResponse(
        id=comment.id,
        content=comment.content,
        is_deleted=comment.is_deleted,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        user_id=comment.user_id,
        username=author.username if author else None,
        user_avatar=author.avatar_url if author else None,
        user_bio=author.bio if author else None,
        post_id=comment.post_id,
        post_title=post.title if post else None,
        post_slug=post.slug if post else None,
        parent_id=comment.parent_id,
        parent_username=parent.user.username if parent is not None and parent.user else None,
        reply_count=crud_comment.count_replies(db, comment.id),
        can_edit=allowed,
        can_delete=allowed,
    )


def get_comment_or_404(db: Session, comment_id: int) -> Comment:
    comment = crud_comment.get_comment(db, comment_id)
    if comment is None:
        raise NotFoundError(f"Comment not found with id: {comment_id}")
    return comment


def create_comment(db: Session, request: CommentCreate, user: User, post_id: Optional[int] = None) -> CommentResponse:
    post_id = post_id if post_id is not None else request.post_id
    if post_id is None:
        raise ValidationFailedError("Post id is required", details={"field": "post_id"})
    if crud_post.get_post(db, post_id) is None:
        raise NotFoundError(f"Post not found with id: {post_id}")

    if request.parent_id is not None:
        parent = get_comment_or_404(db, request.parent_id)
        if parent.post_id != post_id:
            raise ValidationFailedError("Parent comment belongs to a different post",
                                        details={"field": "parent_id"})
        if parent.is_deleted:
            raise InvalidOperationError("Cannot reply to a deleted comment")

    comment = crud_comment.create_comment(db, Comment(
        content=request.content,
        post_id=post_id,
        user_id=user.id,
        parent_id=request.parent_id,
        is_deleted=False,
    ))
    crud_post.increment_comment_count(db, post_id)
    db.commit()

    logger.info(f"Created comment with id: {comment.id} on post: {post_id}")
    return comment_to_response(db, comment, user)


def create_reply(db: Session, parent_id: int, request: CommentCreate, user: User) -> CommentResponse:
    parent = get_comment_or_404(db, parent_id)
    reply = CommentCreate(content=request.content, post_id=parent.post_id, parent_id=parent.id)
    return create_comment(db, reply, user, post_id=parent.post_id)


def update_comment(db: Session, comment_id: int, content: str, user: User) -> CommentResponse:
    comment = get_comment_or_404(db, comment_id)
    if not _can_moderate(comment, user):
        raise ForbiddenError("You are not authorized to update this comment")
    if comment.is_deleted:
        raise InvalidOperationError("Cannot edit a deleted comment")

    comment.content = content
    db.commit()
    logger.info(f"Updated comment with id: {comment_id}")
    return comment_to_response(db, comment, user)


def delete_comment(db: Session, comment_id: int, user: User) -> None:
    comment = get_comment_or_404(db, comment_id)
    if not _can_moderate(comment, user):
        raise ForbiddenError("You are not authorized to delete this comment")
    remove_comment(db, comment)
    logger.info(f"Deleted comment with id: {comment_id} by user: {user.username}")


def remove_comment(db: Session, comment: Comment) -> int:
    """
    Soft delete ``comment`` together with every transitive reply.

    The post's comment counter goes down by one whatever the size of the
    subtree. Returns the number of rows newly flagged.
    """
    if comment.is_deleted:
        return 0

    subtree = [comment.id]
    frontier = [comment.id]
    while frontier:
        frontier = crud_comment.child_ids(db, frontier)
        subtree.extend(frontier)

    flagged = crud_comment.mark_deleted(db, subtree)
    crud_post.decrement_comment_count(db, comment.post_id)
    db.commit()
    logger.debug(f"Soft deleted {flagged} comments under comment {comment.id}")
    return flagged


def get_comment(db: Session, comment_id: int, current_user: Optional[User] = None) -> CommentResponse:
    return comment_to_response(db, get_comment_or_404(db, comment_id), current_user)


def list_for_post(db: Session, post_id: int, page_request: PageRequest,
                  current_user: Optional[User] = None) -> Page[CommentResponse]:
    if crud_post.get_post(db, post_id) is None:
        raise NotFoundError(f"Post not found with id: {post_id}")
    result = crud_comment.list_root_comments(db, post_id, page_request)
    return to_page(result, lambda c: comment_to_response(db, c, current_user))


def list_replies(db: Session, comment_id: int, page_request: PageRequest,
                 current_user: Optional[User] = None) -> Page[CommentResponse]:
    get_comment_or_404(db, comment_id)
    result = crud_comment.list_replies(db, comment_id, page_request)
    return to_page(result, lambda c: comment_to_response(db, c, current_user))


def list_by_user(db: Session, user_id: int, page_request: PageRequest,
                 current_user: Optional[User] = None) -> Page[CommentResponse]:
    result = crud_comment.list_by_user(db, user_id, page_request)
    return to_page(result, lambda c: comment_to_response(db, c, current_user))


def list_recent(db: Session, page_request: PageRequest, days: int = 7,
                current_user: Optional[User] = None) -> Page[CommentResponse]:
    since = utcnow() - timedelta(days=days)
    result = crud_comment.list_recent(db, since, page_request)
    return to_page(result, lambda c: comment_to_response(db, c, current_user))
