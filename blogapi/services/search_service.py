import logging
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from blogapi.crud import crud_post, crud_tag, crud_user
from blogapi.pagination import PageRequest, empty_result, to_page
from blogapi.schemas import GlobalSearchResult, Page, PostResponse, SearchStatistics, UserResponse
from blogapi.services import post_service, user_service
from blogapi.services.post_service import post_to_response

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
SNIPPET_LENGTH = 50


def _too_short(query: Optional[str]) -> bool:
    return not query or len(query.strip()) < MIN_QUERY_LENGTH


def global_search(db: Session, query: Optional[str], page_request: PageRequest) -> GlobalSearchResult:
    if _too_short(query):
        posts = to_page(empty_result(page_request), post_to_response)
        users = to_page(empty_result(page_request), lambda user: user)
        return GlobalSearchResult(query=query or "", posts=posts, users=users, total_results=0)

    query = query.strip()
    posts = search_posts(db, query, page_request)
    users = search_users(db, query, page_request)
    logger.info(f"Global search for '{query}' matched {posts.total_elements} posts and {users.total_elements} users")
    return GlobalSearchResult(
        query=query,
        posts=posts,
        users=users,
        total_results=posts.total_elements + users.total_elements,
    )


def search_posts(db: Session, query: Optional[str], page_request: PageRequest) -> Page[PostResponse]:
    if _too_short(query):
        return to_page(empty_result(page_request), post_to_response)
    return to_page(crud_post.search_by_keyword(db, query.strip(), page_request), post_to_response)


def search_users(db: Session, query: Optional[str], page_request: PageRequest) -> Page[UserResponse]:
    return user_service.search_users(db, query, page_request)


def advanced_post_search(db: Session, page_request: PageRequest, query: Optional[str] = None,
                         author_id: Optional[int] = None, tag_id: Optional[int] = None,
                         start_date: Optional[datetime] = None, end_date: Optional[datetime] = None,
                         featured: Optional[bool] = None, min_views: Optional[int] = None,
                         min_likes: Optional[int] = None) -> Page[PostResponse]:
    result = crud_post.advanced_search(
        db, page_request,
        query=query.strip() if query and query.strip() else None,
        author_id=author_id,
        tag_id=tag_id,
        start_date=start_date,
        end_date=end_date,
        featured=featured,
        min_views=min_views,
        min_likes=min_likes,
    )
    return to_page(result, post_to_response)


def search_by_tags(db: Session, tag_names: Iterable[str], page_request: PageRequest) -> Page[PostResponse]:
    names = [name.strip() for name in tag_names if name and name.strip()]
    if not names:
        return to_page(empty_result(page_request), post_to_response)
    return to_page(crud_post.list_by_tag_names(db, names, page_request), post_to_response)


def similar_posts(db: Session, post_id: int, page_request: PageRequest) -> Page[PostResponse]:
    """Posts sharing a tag with ``post_id``, else posts echoing its opening words."""
    post = post_service.get_post_or_404(db, post_id)
    tag_names = [tag.name for tag in post.tags]
    if tag_names:
        result = crud_post.list_by_tag_names(db, tag_names, page_request, exclude_id=post.id)
        return to_page(result, post_to_response)

    snippet = (post.content or "")[:SNIPPET_LENGTH].strip()
    if not snippet:
        return to_page(empty_result(page_request), post_to_response)
    result = crud_post.search_by_keyword(db, snippet, page_request, exclude_id=post.id)
    return to_page(result, post_to_response)


def search_statistics(db: Session, query: Optional[str]) -> SearchStatistics:
    if _too_short(query):
        return SearchStatistics()
    query = query.strip()
    return SearchStatistics(
        posts=crud_post.count_search(db, query),
        users=crud_user.count_search(db, query),
        tags=crud_tag.count_search(db, query),
    )
