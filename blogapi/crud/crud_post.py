# blogapi/crud/crud_post.py
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Query, Session

from blogapi.models import Comment, Like, Post, PostStatus, SavedPost, Tag, post_tags
from blogapi.pagination import PageRequest, PageResult, paginate
from blogapi.utils import utcnow

POST_SORT_COLUMNS = {
    "id": Post.id,
    "title": Post.title,
    "created_at": Post.created_at,
    "published_at": Post.published_at,
    "view_count": Post.view_count,
    "like_count": Post.like_count,
    "comment_count": Post.comment_count,
}

LATEST_FIRST = [Post.published_at.is_(None), Post.published_at.desc(), Post.id.desc()]
POPULAR_FIRST = [Post.view_count.desc(), Post.like_count.desc(), Post.published_at.desc()]


def visible_posts(db: Session, now: Optional[datetime] = None) -> Query:
    """Published posts whose publish date is unset or already reached."""
    now = now or utcnow()
    return db.query(Post).filter(
        Post.status == PostStatus.PUBLISHED,
        or_(Post.published_at.is_(None), Post.published_at <= now),
    )


def get_post(db: Session, post_id: int) -> Optional[Post]:
    return db.query(Post).filter(Post.id == post_id).first()


def get_post_by_slug(db: Session, slug: str) -> Optional[Post]:
    return db.query(Post).filter(Post.slug == slug).first()


def slug_exists(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(Post.id).filter(Post.slug == slug)
    if exclude_id is not None:
        q = q.filter(Post.id != exclude_id)
    return q.first() is not None


def create_post(db: Session, post: Post) -> Post:
    db.add(post)
    db.flush()
    return post


def delete_post(db: Session, post: Post) -> None:
    db.delete(post)
    db.flush()


def list_published(db: Session, page_request: PageRequest) -> PageResult:
    return paginate(visible_posts(db), page_request, POST_SORT_COLUMNS, LATEST_FIRST)


def list_popular(db: Session, page_request: PageRequest) -> PageResult:
    return paginate(visible_posts(db), page_request, POST_SORT_COLUMNS, POPULAR_FIRST)


def list_featured(db: Session, page_request: PageRequest) -> PageResult:
    q = visible_posts(db).filter(Post.featured.is_(True))
    return paginate(q, page_request, POST_SORT_COLUMNS, LATEST_FIRST)


def search_by_keyword(db: Session, query: str, page_request: PageRequest,
                      exclude_id: Optional[int] = None) -> PageResult:
    q = visible_posts(db).filter(keyword_filter(query))
    if exclude_id is not None:
        q = q.filter(Post.id != exclude_id)
    return paginate(q, page_request, POST_SORT_COLUMNS, LATEST_FIRST)


def keyword_filter(query: str):
    pattern = f"%{query.lower()}%"
    return or_(
        func.lower(Post.title).like(pattern),
        func.lower(Post.content).like(pattern),
        func.lower(Post.excerpt).like(pattern),
    )


def list_by_tag_name(db: Session, tag_name: str, page_request: PageRequest) -> PageResult:
    q = visible_posts(db).join(Post.tags).filter(Tag.name == tag_name)
    return paginate(q, page_request, POST_SORT_COLUMNS, LATEST_FIRST)


def list_by_tag_names(db: Session, tag_names: Iterable[str], page_request: PageRequest,
                      exclude_id: Optional[int] = None) -> PageResult:
    tagged = select(post_tags.c.post_id)\
        .join(Tag, Tag.id == post_tags.c.tag_id)\
        .where(Tag.name.in_(list(tag_names)))
    q = visible_posts(db).filter(Post.id.in_(tagged))
    if exclude_id is not None:
        q = q.filter(Post.id != exclude_id)
    return paginate(q, page_request, POST_SORT_COLUMNS, LATEST_FIRST)


def list_by_author(db: Session, author_id: int, page_request: PageRequest,
                   published_only: bool = True) -> PageResult:
    if published_only:
        q = visible_posts(db)
    else:
        q = db.query(Post)
    q = q.filter(Post.author_id == author_id)
    return paginate(q, page_request, POST_SORT_COLUMNS, [Post.created_at.desc(), Post.id.desc()])


def list_by_authors(db: Session, author_ids, page_request: PageRequest) -> PageResult:
    q = visible_posts(db).filter(Post.author_id.in_(list(author_ids)))
    return paginate(q, page_request, POST_SORT_COLUMNS, LATEST_FIRST)


def list_recent(db: Session, since: datetime):
    return visible_posts(db).filter(Post.created_at >= since).order_by(Post.created_at.desc()).all()


def list_saved_by(db: Session, user_id: int, page_request: PageRequest) -> PageResult:
    q = visible_posts(db).join(SavedPost, SavedPost.post_id == Post.id).filter(SavedPost.user_id == user_id)
    return paginate(q, page_request, POST_SORT_COLUMNS, [SavedPost.created_at.desc()])


def advanced_search(db: Session, page_request: PageRequest, query: Optional[str] = None,
                    author_id: Optional[int] = None, tag_id: Optional[int] = None,
                    start_date: Optional[datetime] = None, end_date: Optional[datetime] = None,
                    featured: Optional[bool] = None, min_views: Optional[int] = None,
                    min_likes: Optional[int] = None) -> PageResult:
    conditions = []
    if query:
        conditions.append(keyword_filter(query))
    if author_id is not None:
        conditions.append(Post.author_id == author_id)
    if tag_id is not None:
        conditions.append(Post.tags.any(Tag.id == tag_id))
    if start_date is not None:
        conditions.append(Post.published_at >= start_date)
    if end_date is not None:
        conditions.append(Post.published_at <= end_date)
    if featured is not None:
        conditions.append(Post.featured.is_(featured))
    if min_views is not None:
        conditions.append(Post.view_count >= min_views)
    if min_likes is not None:
        conditions.append(Post.like_count >= min_likes)
    q = visible_posts(db)
    if conditions:
        q = q.filter(and_(*conditions))
    return paginate(q, page_request, POST_SORT_COLUMNS, LATEST_FIRST)


def count_posts(db: Session, status: Optional[PostStatus] = None) -> int:
    q = db.query(Post)
    if status is not None:
        q = q.filter(Post.status == status)
    return q.count()


def count_by_author(db: Session, author_id: int) -> int:
    return db.query(Post).filter(Post.author_id == author_id).count()


def author_totals(db: Session, author_id: int):
    """Sum of views, likes and comments over an author's posts."""
    row = db.query(
        func.coalesce(func.sum(Post.view_count), 0),
        func.coalesce(func.sum(Post.like_count), 0),
        func.coalesce(func.sum(Post.comment_count), 0),
    ).filter(Post.author_id == author_id).one()
    return int(row[0]), int(row[1]), int(row[2])


def count_search(db: Session, query: str) -> int:
    return visible_posts(db).filter(keyword_filter(query)).count()


# Counters are changed in the store, never read-modify-written here.

def _increment(db: Session, post_id: int, column) -> None:
    db.query(Post).filter(Post.id == post_id).update(
        {column: column + 1}, synchronize_session=False
    )


def _decrement(db: Session, post_id: int, column) -> None:
    db.query(Post).filter(Post.id == post_id, column > 0).update(
        {column: column - 1}, synchronize_session=False
    )


def increment_view_count(db: Session, post_id: int) -> None:
    _increment(db, post_id, Post.view_count)


def increment_like_count(db: Session, post_id: int) -> None:
    _increment(db, post_id, Post.like_count)


def decrement_like_count(db: Session, post_id: int) -> None:
    _decrement(db, post_id, Post.like_count)


def increment_comment_count(db: Session, post_id: int) -> None:
    _increment(db, post_id, Post.comment_count)


def decrement_comment_count(db: Session, post_id: int) -> None:
    _decrement(db, post_id, Post.comment_count)


# Likes and saves

def remove_like(db: Session, post_id: int, user_id: int) -> bool:
    deleted = db.query(Like).filter(Like.post_id == post_id, Like.user_id == user_id)\
                .delete(synchronize_session=False)
    return deleted > 0


def add_like(db: Session, post_id: int, user_id: int) -> Like:
    like = Like(post_id=post_id, user_id=user_id)
    db.add(like)
    db.flush()
    return like


def is_liked_by(db: Session, post_id: int, user_id: int) -> bool:
    return db.query(Like).filter(Like.post_id == post_id, Like.user_id == user_id).first() is not None


def remove_save(db: Session, post_id: int, user_id: int) -> bool:
    deleted = db.query(SavedPost).filter(SavedPost.post_id == post_id, SavedPost.user_id == user_id)\
                .delete(synchronize_session=False)
    return deleted > 0


def add_save(db: Session, post_id: int, user_id: int) -> SavedPost:
    saved = SavedPost(post_id=post_id, user_id=user_id)
    db.add(saved)
    db.flush()
    return saved


def is_saved_by(db: Session, post_id: int, user_id: int) -> bool:
    return db.query(SavedPost).filter(SavedPost.post_id == post_id, SavedPost.user_id == user_id)\
             .first() is not None


def count_comments_received(db: Session, author_id: int) -> int:
    return db.query(Comment).join(Post, Comment.post_id == Post.id)\
             .filter(Post.author_id == author_id, Comment.is_deleted.is_(False)).count()
