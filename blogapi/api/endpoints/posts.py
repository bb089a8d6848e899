# blogapi/api/endpoints/posts.py
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from blogapi.api import deps
from blogapi.models import User
from blogapi.pagination import PageRequest
from blogapi.schemas import ApiResponse, CommentCreate, PostCreate, PostUpdate
from blogapi.services import comment_service, post_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
def list_posts(page_request: PageRequest = Depends(deps.page_params),
               db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(post_service.list_published(db, page_request))


@router.get("/search")
def search_posts(query: str = "",
                 page_request: PageRequest = Depends(deps.page_params),
                 db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(post_service.search_posts(db, query, page_request))


@router.get("/popular")
def popular_posts(page_request: PageRequest = Depends(deps.page_params),
                  db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(post_service.list_popular(db, page_request))


@router.get("/featured")
def featured_posts(page_request: PageRequest = Depends(deps.page_params),
                   db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(post_service.list_featured(db, page_request))


@router.get("/recent")
def recent_posts(days: int = Query(7, ge=1, le=365), db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(post_service.list_recent(db, days))


@router.get("/feed")
def feed(page_request: PageRequest = Depends(deps.page_params),
         current_user: User = Depends(deps.get_current_user),
         db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(post_service.feed(db, current_user, page_request))


@router.get("/me")
def my_posts(page_request: PageRequest = Depends(deps.page_params),
             current_user: User = Depends(deps.get_current_user),
             db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(post_service.list_my_posts(db, current_user, page_request))


@router.get("/saved")
def saved_posts(page_request: PageRequest = Depends(deps.page_params),
                current_user: User = Depends(deps.get_current_user),
                db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(post_service.list_saved(db, current_user, page_request))


@router.get("/tag/{tag_name}")
def posts_by_tag(tag_name: str,
                 page_request: PageRequest = Depends(deps.page_params),
                 db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(post_service.list_by_tag(db, tag_name, page_request))


@router.get("/author/{author_id}")
def posts_by_author(author_id: int,
                    page_request: PageRequest = Depends(deps.page_params),
                    db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(post_service.list_by_author(db, author_id, page_request))


@router.get("/slug/{slug}")
def get_post_by_slug(slug: str, db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(post_service.get_post_by_slug(db, slug))


@router.get("/{post_id}")
def get_post(post_id: int, db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(post_service.get_post(db, post_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_post(request: PostCreate,
                current_user: User = Depends(deps.get_current_user),
                db: Session = Depends(deps.get_db)):
    post = post_service.create_post(db, request, current_user)
    return ApiResponse.ok(post, "Post created successfully")


@router.put("/{post_id}")
def update_post(post_id: int, request: PostUpdate,
                current_user: User = Depends(deps.get_current_user),
                db: Session = Depends(deps.get_db)):
    post = post_service.update_post(db, post_id, request, current_user)
    return ApiResponse.ok(post, "Post updated successfully")


@router.delete("/{post_id}")
def delete_post(post_id: int,
                current_user: User = Depends(deps.get_current_user),
                db: Session = Depends(deps.get_db)):
    post_service.delete_post(db, post_id, current_user)
    return ApiResponse.ok(None, "Post deleted successfully")


@router.post("/{post_id}/like")
def like_post(post_id: int,
              current_user: User = Depends(deps.get_current_user),
              db: Session = Depends(deps.get_db)):
    result = post_service.toggle_like(db, post_id, current_user)
    return ApiResponse.ok(result, "Post liked" if result.active else "Post unliked")


@router.get("/{post_id}/liked")
def post_liked(post_id: int,
               current_user: User = Depends(deps.get_current_user),
               db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(post_service.is_liked(db, post_id, current_user))


@router.post("/{post_id}/save")
def save_post(post_id: int,
              current_user: User = Depends(deps.get_current_user),
              db: Session = Depends(deps.get_db)):
    result = post_service.toggle_save(db, post_id, current_user)
    return ApiResponse.ok(result, "Post saved" if result.active else "Post removed from saved")


@router.get("/{post_id}/saved")
def post_saved(post_id: int,
               current_user: User = Depends(deps.get_current_user),
               db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(post_service.is_saved(db, post_id, current_user))


@router.post("/{post_id}/comments", status_code=status.HTTP_201_CREATED)
def comment_on_post(post_id: int, request: CommentCreate,
                    current_user: User = Depends(deps.get_current_user),
                    db: Session = Depends(deps.get_db)):
    comment = comment_service.create_comment(db, request, current_user, post_id=post_id)
    return ApiResponse.ok(comment, "Comment created successfully")
