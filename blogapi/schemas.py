from datetime import datetime
from typing import Any, Generic, List, Optional, Set, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from blogapi.utils import utcnow

T = TypeVar("T")


# Envelope and pagination

class ErrorDetail(BaseModel):
    code: str
    details: Optional[Any] = None


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    message: str = "Operation successful"
    data: Optional[T] = None
    error: Optional[ErrorDetail] = None
    timestamp: datetime = Field(default_factory=utcnow)

    @classmethod
    def ok(cls, data=None, message: str = "Operation successful"):
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str, code: str, details: Any = None):
        return cls(success=False, message=message, error=ErrorDetail(code=code, details=details))


class SortInfo(BaseModel):
    property: str
    direction: str


class Page(BaseModel, Generic[T]):
    content: List[T]
    page: int
    size: int
    total_elements: int
    total_pages: int
    first: bool
    last: bool
    empty: bool
    sort: List[SortInfo] = []


# Auth

class UserCreate(BaseModel):
    username: str = Field(min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)


class LoginRequest(BaseModel):
    username_or_email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    enabled: bool = True
    locked: bool = False
    email_verified: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None
    roles: List[str] = []
    post_count: int = 0
    follower_count: int = 0
    following_count: int = 0


class AuthResponse(BaseModel):
    token: str
    type: str = "Bearer"
    expires_at: datetime
    user: UserResponse


# Users

class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    password: Optional[str] = Field(default=None, min_length=6, max_length=72)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=500)
    avatar_url: Optional[str] = Field(default=None, max_length=512)


class AdminUserUpdate(BaseModel):
    """Fields an administrator may patch; anything else is rejected."""
    model_config = ConfigDict(extra="forbid")

    email: Optional[EmailStr] = None
    username: Optional[str] = Field(default=None, min_length=3, max_length=50)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    bio: Optional[str] = Field(default=None, max_length=500)
    avatar_url: Optional[str] = Field(default=None, max_length=512)
    enabled: Optional[bool] = None
    locked: Optional[bool] = None
    email_verified: Optional[bool] = None


class PasswordChange(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6, max_length=72)


class AvatarUpdate(BaseModel):
    avatar_url: str = Field(min_length=1, max_length=512)


class BioUpdate(BaseModel):
    bio: str = Field(max_length=500)


class UserStatistics(BaseModel):
    user_id: int
    username: str
    joined_date: Optional[datetime] = None
    total_posts: int
    followers_count: int
    following_count: int
    total_likes_received: int
    total_comments_received: int
    total_views: int
    last_login: Optional[datetime] = None
    account_age_days: int


# Posts

class PostCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    excerpt: Optional[str] = None
    status: Optional[str] = None
    tags: Optional[Set[str]] = None
    featured: Optional[bool] = False


class PostUpdate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    excerpt: Optional[str] = None
    status: Optional[str] = None
    tags: Optional[Set[str]] = None
    featured: Optional[bool] = None


class PostResponse(BaseModel):
    id: int
    title: str
    slug: str
    content: Optional[str] = None
    excerpt: Optional[str] = None
    status: str
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    featured: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    published_at: Optional[datetime] = None
    author_id: Optional[int] = None
    author_username: Optional[str] = None
    author_avatar: Optional[str] = None
    tags: List[str] = []


class ToggleResult(BaseModel):
    active: bool
    count: Optional[int] = None


# Comments

class CommentCreate(BaseModel):
    content: str = Field(min_length=1, max_length=1000)
    post_id: Optional[int] = None
    parent_id: Optional[int] = None


class CommentUpdate(BaseModel):
    content: str = Field(min_length=1, max_length=1000)


class CommentResponse(BaseModel):
    id: int
    content: str
    is_deleted: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user_id: Optional[int] = None
    username: Optional[str] = None
    user_avatar: Optional[str] = None
    user_bio: Optional[str] = None
    post_id: Optional[int] = None
    post_title: Optional[str] = None
    post_slug: Optional[str] = None
    parent_id: Optional[int] = None
    parent_username: Optional[str] = None
    reply_count: int = 0
    can_edit: Optional[bool] = None
    can_delete: Optional[bool] = None


# Tags

class TagCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    description: Optional[str] = None


class TagUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = None


class TagMerge(BaseModel):
    source_tag_id: int
    target_tag_id: int


class TagResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str
    description: Optional[str] = None
    post_count: int = 0
    created_at: Optional[datetime] = None


# Search and statistics

class GlobalSearchResult(BaseModel):
    query: str
    posts: Page
    users: Page
    total_results: int


class SearchStatistics(BaseModel):
    posts: int = 0
    users: int = 0
    tags: int = 0


class SystemStatistics(BaseModel):
    total_users: int
    active_users: int
    admins: int
    moderators: int
    total_posts: int
    published_posts: int
    draft_posts: int
    archived_posts: int
    total_comments: int
    total_tags: int
    server_time: datetime
