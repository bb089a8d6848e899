# blogapi/api/endpoints/search.py
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from blogapi.api import deps
from blogapi.pagination import PageRequest
from blogapi.schemas import ApiResponse
from blogapi.services import search_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("")
def global_search(query: str = "",
                  page_request: PageRequest = Depends(deps.page_params),
                  db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(search_service.global_search(db, query, page_request))


@router.get("/posts")
def search_posts(query: str = "",
                 page_request: PageRequest = Depends(deps.page_params),
                 db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(search_service.search_posts(db, query, page_request))


@router.get("/posts/advanced")
def advanced_post_search(query: Optional[str] = None,
                         author_id: Optional[int] = None,
                         tag_id: Optional[int] = None,
                         start_date: Optional[datetime] = None,
                         end_date: Optional[datetime] = None,
                         featured: Optional[bool] = None,
                         min_views: Optional[int] = Query(None, ge=0),
                         min_likes: Optional[int] = Query(None, ge=0),
                         page_request: PageRequest = Depends(deps.page_params),
                         db: Session = Depends(deps.get_db)):
    page = search_service.advanced_post_search(
        db, page_request,
        query=query,
        author_id=author_id,
        tag_id=tag_id,
        start_date=start_date,
        end_date=end_date,
        featured=featured,
        min_views=min_views,
        min_likes=min_likes,
    )
    return ApiResponse.ok(page)


@router.get("/posts/{post_id}/similar")
def similar_posts(post_id: int,
                  page_request: PageRequest = Depends(deps.page_params),
                  db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(search_service.similar_posts(db, post_id, page_request))


@router.get("/users")
def search_users(query: str = "",
                 page_request: PageRequest = Depends(deps.page_params),
                 db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(search_service.search_users(db, query, page_request))


@router.get("/tags")
def search_by_tags(tags: List[str] = Query([]),
                   page_request: PageRequest = Depends(deps.page_params),
                   db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(search_service.search_by_tags(db, tags, page_request))


@router.get("/statistics")
def search_statistics(query: str = "", db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(search_service.search_statistics(db, query))
