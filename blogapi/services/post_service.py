import logging
from datetime import timedelta
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from blogapi.crud import crud_post, crud_tag, crud_user
from blogapi.exceptions import (
    ForbiddenError, InvalidOperationError, NotFoundError, ValidationFailedError,
)
from blogapi.models import Post, PostStatus, User
from blogapi.pagination import PageRequest, empty_result, to_page
from blogapi.schemas import Page, PostCreate, PostResponse, PostUpdate, ToggleResult
from blogapi.services import tag_service
from blogapi.utils import make_excerpt, slugify, utcnow

logger = logging.getLogger(__name__)

# ARCHIVED is terminal
ALLOWED_TRANSITIONS = {
    PostStatus.DRAFT: {PostStatus.DRAFT, PostStatus.PUBLISHED, PostStatus.ARCHIVED},
    PostStatus.PUBLISHED: {PostStatus.PUBLISHED, PostStatus.ARCHIVED},
    PostStatus.ARCHIVED: {PostStatus.ARCHIVED},
}


def post_to_response(post: Post) -> PostResponse:
    author = post.author
    return PostResponse(
        id=post.id,
        title=post.title,
        slug=post.slug,
        content=post.content,
        excerpt=post.excerpt,
        status=post.status.value,
        view_count=post.view_count,
        like_count=post.like_count,
        comment_count=post.comment_count,
        featured=post.featured,
        created_at=post.created_at,
        updated_at=post.updated_at,
        published_at=post.published_at,
        author_id=post.author_id,
        author_username=author.username if author else None,
        author_avatar=author.avatar_url if author else None,
        tags=sorted(tag.name for tag in post.tags),
    )


def _page(result) -> Page[PostResponse]:
    return to_page(result, post_to_response)


def get_post_or_404(db: Session, post_id: int) -> Post:
    post = crud_post.get_post(db, post_id)
    if post is None:
        raise NotFoundError(f"Post not found with id: {post_id}")
    return post


def _can_manage(post: Post, actor: User) -> bool:
    return post.is_author(actor) or actor.is_admin


def _unique_slug(db: Session, title: str, exclude_id: Optional[int] = None) -> str:
    base = slugify(title) or "post"
    slug = base
    suffix = 2
    while crud_post.slug_exists(db, slug, exclude_id=exclude_id):
        slug = f"{base}-{suffix}"
        suffix += 1
    return slug


def _parse_status(value: Optional[str]) -> Optional[PostStatus]:
    if value is None:
        return None
    try:
        return PostStatus(value.strip().upper())
    except ValueError:
        raise ValidationFailedError(
            f"Invalid post status: {value}",
            details={"field": "status", "allowed": [s.value for s in PostStatus]},
        )


def _attach_tags(db: Session, post: Post, names: Iterable[str]) -> None:
    attached = set()
    for name in names:
        if not name or not name.strip():
            continue
        tag = tag_service.get_or_create_tag(db, name)
        if tag.id in attached:
            continue
        attached.add(tag.id)
        post.tags.append(tag)
        crud_tag.increment_post_count(db, tag.id)


def _detach_tags(db: Session, post: Post) -> None:
    for tag in list(post.tags):
        crud_tag.decrement_post_count(db, tag.id)
    post.tags.clear()


def create_post(db: Session, request: PostCreate, author: User) -> PostResponse:
    try:
        status = _parse_status(request.status) or PostStatus.PUBLISHED
    except ValidationFailedError:
        logger.warning(f"Unrecognized post status '{request.status}', defaulting to PUBLISHED")
        status = PostStatus.PUBLISHED

    post = Post(
        title=request.title,
        slug=_unique_slug(db, request.title),
        content=request.content,
        excerpt=request.excerpt or make_excerpt(request.content),
        status=status,
        featured=bool(request.featured),
        author_id=author.id,
        view_count=0,
        like_count=0,
        comment_count=0,
    )
    if status == PostStatus.PUBLISHED:
        post.published_at = utcnow()
    crud_post.create_post(db, post)

    if request.tags:
        _attach_tags(db, post, request.tags)

    db.commit()
    logger.info(f"Created post with id: {post.id} by user: {author.username}")
    return post_to_response(post)


def get_post(db: Session, post_id: int) -> PostResponse:
    """Fetch a published post. Every read counts as a view."""
    post = crud_post.get_post(db, post_id)
    if post is None or not post.is_published:
        raise NotFoundError(f"Post not found with id: {post_id}")

    crud_post.increment_view_count(db, post_id)
    db.commit()
    return post_to_response(post)


def get_post_by_slug(db: Session, slug: str) -> PostResponse:
    post = crud_post.get_post_by_slug(db, slug)
    if post is None or not post.is_published:
        raise NotFoundError(f"Post not found with slug: {slug}")

    crud_post.increment_view_count(db, post.id)
    db.commit()
    return post_to_response(post)


def update_post(db: Session, post_id: int, request: PostUpdate, actor: User) -> PostResponse:
    post = get_post_or_404(db, post_id)
    if not _can_manage(post, actor):
        raise ForbiddenError("You are not authorized to update this post")

    status = _parse_status(request.status)
    if status is not None and status not in ALLOWED_TRANSITIONS[post.status]:
        raise InvalidOperationError(
            f"Cannot change post status from {post.status.value} to {status.value}",
            details={"from": post.status.value, "to": status.value},
        )

    post.title = request.title
    post.content = request.content
    post.excerpt = request.excerpt or make_excerpt(request.content)
    if request.featured is not None:
        post.featured = request.featured

    if status == PostStatus.PUBLISHED:
        post.publish()
    elif status == PostStatus.ARCHIVED:
        post.archive()
    elif status == PostStatus.DRAFT:
        post.status = PostStatus.DRAFT

    if request.tags is not None:
        _detach_tags(db, post)
        db.flush()
        _attach_tags(db, post, request.tags)

    db.commit()
    logger.info(f"Updated post with id: {post_id}")
    return post_to_response(post)


def delete_post(db: Session, post_id: int, actor: User) -> None:
    post = get_post_or_404(db, post_id)
    if not _can_manage(post, actor):
        raise ForbiddenError("You are not authorized to delete this post")
    remove_post(db, post)
    logger.info(f"Deleted post with id: {post_id} by user: {actor.username}")


def remove_post(db: Session, post: Post) -> None:
    """Hard delete; each of the post's tags loses one from its count."""
    for tag in post.tags:
        crud_tag.decrement_post_count(db, tag.id)
    crud_post.delete_post(db, post)
    db.commit()


def toggle_like(db: Session, post_id: int, user: User) -> ToggleResult:
    get_post_or_404(db, post_id)

    # Delete first: a second like by the same user removes the first one
    if crud_post.remove_like(db, post_id, user.id):
        crud_post.decrement_like_count(db, post_id)
        liked = False
    else:
        crud_post.add_like(db, post_id, user.id)
        crud_post.increment_like_count(db, post_id)
        liked = True
    db.commit()

    post = get_post_or_404(db, post_id)
    logger.info(f"User {user.username} {'liked' if liked else 'unliked'} post {post_id}")
    return ToggleResult(active=liked, count=post.like_count)


def toggle_save(db: Session, post_id: int, user: User) -> ToggleResult:
    get_post_or_404(db, post_id)

    if crud_post.remove_save(db, post_id, user.id):
        saved = False
    else:
        crud_post.add_save(db, post_id, user.id)
        saved = True
    db.commit()

    logger.info(f"User {user.username} {'saved' if saved else 'unsaved'} post {post_id}")
    return ToggleResult(active=saved)


def is_liked(db: Session, post_id: int, user: User) -> bool:
    get_post_or_404(db, post_id)
    return crud_post.is_liked_by(db, post_id, user.id)


def is_saved(db: Session, post_id: int, user: User) -> bool:
    get_post_or_404(db, post_id)
    return crud_post.is_saved_by(db, post_id, user.id)


def list_published(db: Session, page_request: PageRequest) -> Page[PostResponse]:
    return _page(crud_post.list_published(db, page_request))


def list_popular(db: Session, page_request: PageRequest) -> Page[PostResponse]:
    return _page(crud_post.list_popular(db, page_request))


def list_featured(db: Session, page_request: PageRequest) -> Page[PostResponse]:
    return _page(crud_post.list_featured(db, page_request))


def search_posts(db: Session, query: Optional[str], page_request: PageRequest) -> Page[PostResponse]:
    if not query or not query.strip():
        return list_published(db, page_request)
    return _page(crud_post.search_by_keyword(db, query.strip(), page_request))


def list_by_tag(db: Session, tag_name: str, page_request: PageRequest) -> Page[PostResponse]:
    return _page(crud_post.list_by_tag_name(db, tag_name, page_request))


def list_by_author(db: Session, author_id: int, page_request: PageRequest) -> Page[PostResponse]:
    if crud_user.get_user(db, author_id) is None:
        raise NotFoundError(f"User not found with id: {author_id}")
    return _page(crud_post.list_by_author(db, author_id, page_request))


def list_my_posts(db: Session, user: User, page_request: PageRequest) -> Page[PostResponse]:
    return _page(crud_post.list_by_author(db, user.id, page_request, published_only=False))


def list_recent(db: Session, days: int = 7) -> List[PostResponse]:
    since = utcnow() - timedelta(days=days)
    return [post_to_response(post) for post in crud_post.list_recent(db, since)]


def list_saved(db: Session, user: User, page_request: PageRequest) -> Page[PostResponse]:
    return _page(crud_post.list_saved_by(db, user.id, page_request))


def feed(db: Session, user: User, page_request: PageRequest) -> Page[PostResponse]:
    """Published posts of the authors ``user`` follows."""
    author_ids = crud_user.following_ids(db, user.id)
    if not author_ids:
        return _page(empty_result(page_request))
    return _page(crud_post.list_by_authors(db, author_ids, page_request))


def set_featured(db: Session, post_id: int, featured: bool) -> PostResponse:
    post = get_post_or_404(db, post_id)
    post.featured = featured
    db.commit()
    logger.info(f"Post {post_id} featured={featured}")
    return post_to_response(post)
