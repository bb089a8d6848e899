import enum

from sqlalchemy import (
    Boolean, Column, DateTime, Enum, ForeignKey, Integer, String, Table, Text, event,
)
from sqlalchemy.orm import relationship

from blogapi.database import Base
from blogapi.utils import make_excerpt, slugify, utcnow


class RoleName(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"
    MODERATOR = "MODERATOR"


# Authorities granted by each stored role
ROLE_IMPLICATIONS = {
    RoleName.USER: frozenset({RoleName.USER}),
    RoleName.MODERATOR: frozenset({RoleName.MODERATOR}),
    RoleName.ADMIN: frozenset({RoleName.ADMIN, RoleName.MODERATOR}),
}


def effective_authorities(role_names):
    granted = set()
    for name in role_names:
        granted |= ROLE_IMPLICATIONS[RoleName(name)]
    return frozenset(granted)


class PostStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)

post_tags = Table(
    "post_tags",
    Base.metadata,
    Column("post_id", Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(Enum(RoleName, native_enum=False, length=50), unique=True, nullable=False)
    description = Column(Text)
    created_at = Column(DateTime, default=utcnow)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(50), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(100))
    last_name = Column(String(100))
    bio = Column(Text)
    avatar_url = Column(String(512))
    enabled = Column(Boolean, nullable=False, default=True)
    locked = Column(Boolean, nullable=False, default=False)
    email_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    last_login_at = Column(DateTime)

    roles = relationship("Role", secondary=user_roles, lazy="selectin")
    posts = relationship("Post", back_populates="author")
    comments = relationship("Comment", back_populates="user")

    @property
    def role_names(self):
        return {role.name for role in self.roles}

    @property
    def full_name(self):
        if not self.first_name and not self.last_name:
            return self.username
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def has_authority(self, role_name: RoleName) -> bool:
        return role_name in effective_authorities(self.role_names)

    @property
    def is_admin(self):
        return self.has_authority(RoleName.ADMIN)

    @property
    def is_moderator(self):
        return self.has_authority(RoleName.MODERATOR)


class Follower(Base):
    """Directed follow edge: ``follower`` subscribes to ``followed``."""
    __tablename__ = "subscriptions"

    follower_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    followed_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    follower = relationship("User", foreign_keys=[follower_id])
    followed = relationship("User", foreign_keys=[followed_id])


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False, index=True)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    content = Column(Text, nullable=False)
    excerpt = Column(Text)
    status = Column(Enum(PostStatus, native_enum=False, length=20), nullable=False, default=PostStatus.DRAFT)
    view_count = Column(Integer, nullable=False, default=0)
    like_count = Column(Integer, nullable=False, default=0)
    comment_count = Column(Integer, nullable=False, default=0)
    featured = Column(Boolean, nullable=False, default=False, index=True)
    published_at = Column(DateTime, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    author = relationship("User", back_populates="posts")
    tags = relationship("Tag", secondary=post_tags, back_populates="posts", lazy="selectin")
    comments = relationship("Comment", back_populates="post", cascade="all, delete-orphan")
    likes = relationship("Like", back_populates="post", cascade="all, delete-orphan")
    saves = relationship("SavedPost", back_populates="post", cascade="all, delete-orphan")

    @property
    def is_published(self):
        return self.status == PostStatus.PUBLISHED

    def is_author(self, user) -> bool:
        return user is not None and self.author_id == user.id

    def publish(self):
        if self.status == PostStatus.DRAFT:
            self.status = PostStatus.PUBLISHED
            self.published_at = utcnow()

    def archive(self):
        self.status = PostStatus.ARCHIVED


@event.listens_for(Post, "before_insert")
@event.listens_for(Post, "before_update")
def fill_post_defaults(mapper, connection, target):
    if not target.slug or not target.slug.strip():
        target.slug = slugify(target.title)
    if (not target.excerpt or not target.excerpt.strip()) and target.content is not None:
        target.excerpt = make_excerpt(target.content)
    if target.status == PostStatus.PUBLISHED and target.published_at is None:
        target.published_at = utcnow()


class Like(Base):
    __tablename__ = "post_likes"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    post = relationship("Post", back_populates="likes")
    user = relationship("User")


class SavedPost(Base):
    __tablename__ = "saved_posts"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    post = relationship("Post", back_populates="saves")
    user = relationship("User")


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    parent_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), index=True)
    content = Column(Text, nullable=False)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    post = relationship("Post", back_populates="comments")
    user = relationship("User", back_populates="comments")
    parent = relationship("Comment", remote_side=[id], back_populates="replies")
    replies = relationship("Comment", back_populates="parent")

    def is_author(self, user) -> bool:
        return user is not None and self.user_id == user.id


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False, index=True)
    slug = Column(String(60), unique=True, nullable=False, index=True)
    description = Column(Text)
    post_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    posts = relationship("Post", secondary=post_tags, back_populates="tags")


@event.listens_for(Tag, "before_insert")
@event.listens_for(Tag, "before_update")
def fill_tag_slug(mapper, connection, target):
    if not target.slug or not target.slug.strip():
        target.slug = slugify(target.name)
