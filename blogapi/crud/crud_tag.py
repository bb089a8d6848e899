# blogapi/crud/crud_tag.py
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from blogapi.models import Post, Tag, post_tags
from blogapi.pagination import PageRequest, PageResult, paginate

TAG_SORT_COLUMNS = {
    "id": Tag.id,
    "name": Tag.name,
    "post_count": Tag.post_count,
    "created_at": Tag.created_at,
}


def get_tag(db: Session, tag_id: int) -> Optional[Tag]:
    return db.query(Tag).filter(Tag.id == tag_id).first()


def get_tag_by_name(db: Session, name: str) -> Optional[Tag]:
    return db.query(Tag).filter(Tag.name == name).first()


def get_tag_by_slug(db: Session, slug: str) -> Optional[Tag]:
    return db.query(Tag).filter(Tag.slug == slug).first()


def exists_by_name(db: Session, name: str) -> bool:
    return db.query(Tag.id).filter(Tag.name == name).first() is not None


def exists_by_slug(db: Session, slug: str, exclude_id: Optional[int] = None) -> bool:
    q = db.query(Tag.id).filter(Tag.slug == slug)
    if exclude_id is not None:
        q = q.filter(Tag.id != exclude_id)
    return q.first() is not None


def create_tag(db: Session, tag: Tag) -> Tag:
    db.add(tag)
    db.flush()
    return tag


def delete_tag(db: Session, tag: Tag) -> None:
    db.delete(tag)
    db.flush()


def list_tags(db: Session, page_request: PageRequest) -> PageResult:
    return paginate(db.query(Tag), page_request, TAG_SORT_COLUMNS, [Tag.name.asc()])


def search_tags(db: Session, query: str, page_request: PageRequest) -> PageResult:
    q = db.query(Tag).filter(func.lower(Tag.name).like(f"%{query.lower()}%"))
    return paginate(q, page_request, TAG_SORT_COLUMNS, [Tag.name.asc()])


def count_search(db: Session, query: str) -> int:
    return db.query(Tag).filter(func.lower(Tag.name).like(f"%{query.lower()}%")).count()


def popular_tags(db: Session, limit: int) -> List[Tag]:
    return db.query(Tag).order_by(Tag.post_count.desc(), Tag.name.asc()).limit(limit).all()


def trending_tags(db: Session, since: datetime, limit: int) -> List[Tag]:
    recent = func.count(Post.id)
    return db.query(Tag)\
             .join(post_tags, post_tags.c.tag_id == Tag.id)\
             .join(Post, Post.id == post_tags.c.post_id)\
             .filter(Post.created_at >= since)\
             .group_by(Tag.id)\
             .order_by(recent.desc(), Tag.name.asc())\
             .limit(limit)\
             .all()


def count_attached_posts(db: Session, tag_id: int) -> int:
    return db.query(post_tags).filter(post_tags.c.tag_id == tag_id).count()


def count_tags(db: Session) -> int:
    return db.query(Tag).count()


def increment_post_count(db: Session, tag_id: int, amount: int = 1) -> None:
    db.query(Tag).filter(Tag.id == tag_id).update(
        {Tag.post_count: Tag.post_count + amount}, synchronize_session=False
    )


def decrement_post_count(db: Session, tag_id: int) -> None:
    db.query(Tag).filter(Tag.id == tag_id, Tag.post_count > 0).update(
        {Tag.post_count: Tag.post_count - 1}, synchronize_session=False
    )
