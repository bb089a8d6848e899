# blogapi/api/endpoints/comments.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from blogapi.api import deps
from blogapi.models import User
from blogapi.pagination import PageRequest
from blogapi.schemas import ApiResponse, CommentCreate, CommentUpdate
from blogapi.services import comment_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/post/{post_id}")
def comments_for_post(post_id: int,
                      page_request: PageRequest = Depends(deps.page_params),
                      current_user: Optional[User] = Depends(deps.get_current_user_optional),
                      db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(comment_service.list_for_post(db, post_id, page_request, current_user))


@router.get("/recent")
def recent_comments(days: int = Query(7, ge=1, le=365),
                    page_request: PageRequest = Depends(deps.page_params),
                    current_user: Optional[User] = Depends(deps.get_current_user_optional),
                    db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(comment_service.list_recent(db, page_request, days, current_user))


@router.get("/user/{user_id}")
def comments_by_user(user_id: int,
                     page_request: PageRequest = Depends(deps.page_params),
                     current_user: Optional[User] = Depends(deps.get_current_user_optional),
                     db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(comment_service.list_by_user(db, user_id, page_request, current_user))


@router.get("/{comment_id}")
def get_comment(comment_id: int,
                current_user: Optional[User] = Depends(deps.get_current_user_optional),
                db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(comment_service.get_comment(db, comment_id, current_user))


@router.get("/{comment_id}/replies")
def comment_replies(comment_id: int,
                    page_request: PageRequest = Depends(deps.page_params),
                    current_user: Optional[User] = Depends(deps.get_current_user_optional),
                    db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(comment_service.list_replies(db, comment_id, page_request, current_user))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_comment(request: CommentCreate,
                   current_user: User = Depends(deps.get_current_user),
                   db: Session = Depends(deps.get_db)):
    comment = comment_service.create_comment(db, request, current_user)
    return ApiResponse.ok(comment, "Comment created successfully")


@router.post("/{parent_id}/reply", status_code=status.HTTP_201_CREATED)
def reply_to_comment(parent_id: int, request: CommentCreate,
                     current_user: User = Depends(deps.get_current_user),
                     db: Session = Depends(deps.get_db)):
    reply = comment_service.create_reply(db, parent_id, request, current_user)
    return ApiResponse.ok(reply, "Reply created successfully")


@router.put("/{comment_id}")
def update_comment(comment_id: int, request: CommentUpdate,
                   current_user: User = Depends(deps.get_current_user),
                   db: Session = Depends(deps.get_db)):
    comment = comment_service.update_comment(db, comment_id, request.content, current_user)
    return ApiResponse.ok(comment, "Comment updated successfully")


@router.delete("/{comment_id}")
def delete_comment(comment_id: int,
                   current_user: User = Depends(deps.get_current_user),
                   db: Session = Depends(deps.get_db)):
    comment_service.delete_comment(db, comment_id, current_user)
    return ApiResponse.ok(None, "Comment deleted successfully")
