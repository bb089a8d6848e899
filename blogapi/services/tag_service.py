import logging
from datetime import timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from blogapi.crud import crud_tag
from blogapi.exceptions import ConflictError, InvalidOperationError, NotFoundError, ValidationFailedError
from blogapi.models import Tag
from blogapi.pagination import PageRequest, to_page
from blogapi.schemas import Page, TagResponse, TagUpdate
from blogapi.utils import slugify, utcnow

logger = logging.getLogger(__name__)


def tag_to_response(tag: Tag) -> TagResponse:
    return TagResponse.model_validate(tag)


def _get_tag_or_404(db: Session, tag_id: int, label: str = "Tag") -> Tag:
    tag = crud_tag.get_tag(db, tag_id)
    if tag is None:
        raise NotFoundError(f"{label} not found with id: {tag_id}")
    return tag


def _slug_for(name: str) -> str:
    slug = slugify(name)
    if not slug:
        raise ValidationFailedError(
            f"Tag name '{name}' has no URL-safe characters", details={"field": "name"}
        )
    return slug


def get_or_create_tag(db: Session, name: str) -> Tag:
    """Look a tag up by name, creating it on first use."""
    name = name.strip()
    tag = crud_tag.get_tag_by_name(db, name)
    if tag is not None:
        return tag
    slug = _slug_for(name)
    # "Python" and "python" share a slug and therefore a tag
    tag = crud_tag.get_tag_by_slug(db, slug)
    if tag is not None:
        return tag
    tag = crud_tag.create_tag(db, Tag(name=name, slug=slug))
    logger.info(f"Created tag '{name}' on first use")
    return tag


def create_tag(db: Session, name: str, description: Optional[str] = None) -> TagResponse:
    name = name.strip()
    if crud_tag.exists_by_name(db, name):
        raise ConflictError(f"Tag with name '{name}' already exists", details={"field": "name"})
    slug = _slug_for(name)
    if crud_tag.exists_by_slug(db, slug):
        raise ConflictError(f"Tag with slug '{slug}' already exists", details={"field": "name"})

    tag = crud_tag.create_tag(db, Tag(name=name, slug=slug, description=description))
    db.commit()
    logger.info(f"Created tag with id: {tag.id} and name: {name}")
    return tag_to_response(tag)


def update_tag(db: Session, tag_id: int, request: TagUpdate) -> TagResponse:
    tag = _get_tag_or_404(db, tag_id)

    if request.name is not None and request.name.strip() != tag.name:
        name = request.name.strip()
        if crud_tag.exists_by_name(db, name):
            raise ConflictError(f"Tag with name '{name}' already exists", details={"field": "name"})
        slug = _slug_for(name)
        if crud_tag.exists_by_slug(db, slug, exclude_id=tag.id):
            raise ConflictError(f"Tag with slug '{slug}' already exists", details={"field": "name"})
        tag.name = name
        tag.slug = slug

    if request.description is not None:
        tag.description = request.description

    db.commit()
    logger.info(f"Updated tag with id: {tag_id}")
    return tag_to_response(tag)


def delete_tag(db: Session, tag_id: int) -> None:
    tag = _get_tag_or_404(db, tag_id)
    if crud_tag.count_attached_posts(db, tag_id) > 0:
        raise ConflictError("Cannot delete tag that has associated posts",
                            details={"tag_id": tag_id}, error_code="TAG_IN_USE")
    crud_tag.delete_tag(db, tag)
    db.commit()
    logger.info(f"Deleted tag with id: {tag_id}")


def merge_tags(db: Session, source_tag_id: int, target_tag_id: int) -> TagResponse:
    """Move every post of the source tag onto the target and drop the source."""
    if source_tag_id == target_tag_id:
        raise InvalidOperationError("Cannot merge a tag into itself")
    source = _get_tag_or_404(db, source_tag_id, "Source tag")
    target = _get_tag_or_404(db, target_tag_id, "Target tag")
    merged_count = (source.post_count or 0) + (target.post_count or 0)

    for post in list(source.posts):
        post.tags.remove(source)
        if target not in post.tags:
            post.tags.append(target)
    db.flush()

    crud_tag.delete_tag(db, source)
    target.post_count = merged_count
    db.commit()

    logger.info(f"Merged tag {source_tag_id} into tag {target_tag_id}")
    return tag_to_response(target)


def get_tag(db: Session, tag_id: int) -> TagResponse:
    return tag_to_response(_get_tag_or_404(db, tag_id))


def get_tag_by_name(db: Session, name: str) -> TagResponse:
    tag = crud_tag.get_tag_by_name(db, name)
    if tag is None:
        raise NotFoundError(f"Tag not found with name: {name}")
    return tag_to_response(tag)


def get_tag_by_slug(db: Session, slug: str) -> TagResponse:
    tag = crud_tag.get_tag_by_slug(db, slug)
    if tag is None:
        raise NotFoundError(f"Tag not found with slug: {slug}")
    return tag_to_response(tag)


def list_tags(db: Session, page_request: PageRequest) -> Page[TagResponse]:
    return to_page(crud_tag.list_tags(db, page_request), tag_to_response)


def search_tags(db: Session, query: str, page_request: PageRequest) -> Page[TagResponse]:
    return to_page(crud_tag.search_tags(db, query.strip(), page_request), tag_to_response)


def popular_tags(db: Session, limit: int = 10) -> List[TagResponse]:
    return [tag_to_response(tag) for tag in crud_tag.popular_tags(db, limit)]


def trending_tags(db: Session, days: int = 7, limit: int = 10) -> List[TagResponse]:
    since = utcnow() - timedelta(days=days)
    return [tag_to_response(tag) for tag in crud_tag.trending_tags(db, since, limit)]


def count_posts(db: Session, tag_id: int) -> int:
    _get_tag_or_404(db, tag_id)
    return crud_tag.count_attached_posts(db, tag_id)
