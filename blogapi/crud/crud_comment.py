# blogapi/crud/crud_comment.py
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from blogapi.models import Comment
from blogapi.pagination import PageRequest, PageResult, paginate

COMMENT_SORT_COLUMNS = {
    "id": Comment.id,
    "created_at": Comment.created_at,
    "updated_at": Comment.updated_at,
}


def get_comment(db: Session, comment_id: int) -> Optional[Comment]:
    return db.query(Comment).filter(Comment.id == comment_id).first()


def create_comment(db: Session, comment: Comment) -> Comment:
    db.add(comment)
    db.flush()
    return comment


def list_root_comments(db: Session, post_id: int, page_request: PageRequest) -> PageResult:
    q = db.query(Comment).filter(Comment.post_id == post_id, Comment.parent_id.is_(None))
    return paginate(q, page_request, COMMENT_SORT_COLUMNS, [Comment.created_at.asc(), Comment.id.asc()])


def list_replies(db: Session, parent_id: int, page_request: PageRequest) -> PageResult:
    q = db.query(Comment).filter(Comment.parent_id == parent_id)
    return paginate(q, page_request, COMMENT_SORT_COLUMNS, [Comment.created_at.asc(), Comment.id.asc()])


def child_ids(db: Session, parent_ids: List[int]) -> List[int]:
    rows = db.query(Comment.id).filter(Comment.parent_id.in_(parent_ids)).all()
    return [row[0] for row in rows]


def mark_deleted(db: Session, comment_ids: List[int]) -> int:
    return db.query(Comment).filter(Comment.id.in_(comment_ids), Comment.is_deleted.is_(False))\
             .update({Comment.is_deleted: True}, synchronize_session=False)


def count_replies(db: Session, comment_id: int) -> int:
    return db.query(Comment).filter(Comment.parent_id == comment_id).count()


def list_by_user(db: Session, user_id: int, page_request: PageRequest) -> PageResult:
    q = db.query(Comment).filter(Comment.user_id == user_id)
    return paginate(q, page_request, COMMENT_SORT_COLUMNS, [Comment.created_at.desc(), Comment.id.desc()])


def list_recent(db: Session, since: datetime, page_request: PageRequest) -> PageResult:
    q = db.query(Comment).filter(Comment.created_at >= since, Comment.is_deleted.is_(False))
    return paginate(q, page_request, COMMENT_SORT_COLUMNS, [Comment.created_at.desc(), Comment.id.desc()])


def count_comments(db: Session, include_deleted: bool = False) -> int:
    q = db.query(Comment)
    if not include_deleted:
        q = q.filter(Comment.is_deleted.is_(False))
    return q.count()
