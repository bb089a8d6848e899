# blogapi/api/endpoints/tags.py
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from blogapi.api import deps
from blogapi.models import User
from blogapi.pagination import PageRequest
from blogapi.schemas import ApiResponse, TagCreate, TagMerge, TagUpdate
from blogapi.services import tag_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
def list_tags(page_request: PageRequest = Depends(deps.page_params),
              db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(tag_service.list_tags(db, page_request))


@router.get("/popular")
def popular_tags(limit: int = Query(10, ge=1, le=100), db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(tag_service.popular_tags(db, limit))


@router.get("/trending")
def trending_tags(days: int = Query(7, ge=1, le=365),
                  limit: int = Query(10, ge=1, le=100),
                  db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(tag_service.trending_tags(db, days, limit))


@router.get("/search")
def search_tags(query: str = "",
                page_request: PageRequest = Depends(deps.page_params),
                db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(tag_service.search_tags(db, query, page_request))


@router.get("/name/{name}")
def get_tag_by_name(name: str, db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(tag_service.get_tag_by_name(db, name))


@router.get("/slug/{slug}")
def get_tag_by_slug(slug: str, db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(tag_service.get_tag_by_slug(db, slug))


@router.get("/{tag_id}")
def get_tag(tag_id: int, db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(tag_service.get_tag(db, tag_id))


@router.get("/{tag_id}/posts/count")
def count_tag_posts(tag_id: int, db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(tag_service.count_posts(db, tag_id))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_tag(request: TagCreate,
               admin: User = Depends(deps.admin_required),
               db: Session = Depends(deps.get_db)):
    tag = tag_service.create_tag(db, request.name, request.description)
    return ApiResponse.ok(tag, "Tag created successfully")


@router.put("/{tag_id}")
def update_tag(tag_id: int, request: TagUpdate,
               admin: User = Depends(deps.admin_required),
               db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(tag_service.update_tag(db, tag_id, request), "Tag updated successfully")


@router.delete("/{tag_id}")
def delete_tag(tag_id: int,
               admin: User = Depends(deps.admin_required),
               db: Session = Depends(deps.get_db)):
    tag_service.delete_tag(db, tag_id)
    return ApiResponse.ok(None, "Tag deleted successfully")


@router.post("/merge")
def merge_tags(request: TagMerge,
               admin: User = Depends(deps.admin_required),
               db: Session = Depends(deps.get_db)):
    tag = tag_service.merge_tags(db, request.source_tag_id, request.target_tag_id)
    return ApiResponse.ok(tag, "Tags merged successfully")
