# blogapi/crud/crud_user.py
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from blogapi.models import Follower, Role, RoleName, User, user_roles
from blogapi.pagination import PageRequest, PageResult, paginate

USER_SORT_COLUMNS = {
    "id": User.id,
    "username": User.username,
    "email": User.email,
    "created_at": User.created_at,
    "last_login_at": User.last_login_at,
}


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def get_user_by_username(db: Session, username: str) -> Optional[User]:
    return db.query(User).filter(User.username == username).first()


def get_user_by_username_or_email(db: Session, value: str) -> Optional[User]:
    return get_user_by_username(db, value) or get_user_by_email(db, value)


def exists_by_email(db: Session, email: str) -> bool:
    return db.query(User.id).filter(User.email == email).first() is not None


def exists_by_username(db: Session, username: str) -> bool:
    return db.query(User.id).filter(User.username == username).first() is not None


def create_user(db: Session, user: User) -> User:
    db.add(user)
    db.flush()
    return user


def list_users(db: Session, page_request: PageRequest) -> PageResult:
    return paginate(db.query(User), page_request, USER_SORT_COLUMNS, [User.id.asc()])


def _search_filter(query: str):
    pattern = f"%{query.lower()}%"
    return or_(
        func.lower(User.username).like(pattern),
        func.lower(User.email).like(pattern),
        func.lower(User.first_name).like(pattern),
        func.lower(User.last_name).like(pattern),
    )


def search_users(db: Session, query: str, page_request: PageRequest) -> PageResult:
    q = db.query(User).filter(_search_filter(query))
    return paginate(q, page_request, USER_SORT_COLUMNS, [User.username.asc()])


def count_search(db: Session, query: str) -> int:
    return db.query(User).filter(_search_filter(query)).count()


def list_active_users(db: Session, page_request: PageRequest) -> PageResult:
    q = db.query(User).filter(User.enabled.is_(True), User.locked.is_(False))
    return paginate(q, page_request, USER_SORT_COLUMNS, [User.username.asc()])


def count_users(db: Session) -> int:
    return db.query(User).count()


def count_active_users(db: Session) -> int:
    return db.query(User).filter(User.enabled.is_(True), User.locked.is_(False)).count()


def count_users_with_role(db: Session, role_name: RoleName) -> int:
    return db.query(User).join(user_roles).join(Role).filter(Role.name == role_name).count()


# Roles

def get_role_by_name(db: Session, name: RoleName) -> Optional[Role]:
    return db.query(Role).filter(Role.name == name).first()


def get_or_create_role(db: Session, name: RoleName, description: Optional[str] = None) -> Role:
    role = get_role_by_name(db, name)
    if role is None:
        role = Role(name=name, description=description)
        db.add(role)
        db.flush()
    return role


# Follow edges

def get_follow(db: Session, follower_id: int, followed_id: int) -> Optional[Follower]:
    return db.query(Follower).filter(
        Follower.follower_id == follower_id,
        Follower.followed_id == followed_id,
    ).first()


def add_follow(db: Session, follower_id: int, followed_id: int) -> Follower:
    edge = Follower(follower_id=follower_id, followed_id=followed_id)
    db.add(edge)
    db.flush()
    return edge


def remove_follow(db: Session, follower_id: int, followed_id: int) -> bool:
    deleted = db.query(Follower).filter(
        Follower.follower_id == follower_id,
        Follower.followed_id == followed_id,
    ).delete(synchronize_session=False)
    return deleted > 0


def list_followers(db: Session, user_id: int, page_request: PageRequest) -> PageResult:
    q = db.query(User).join(Follower, Follower.follower_id == User.id).filter(Follower.followed_id == user_id)
    return paginate(q, page_request, USER_SORT_COLUMNS, [Follower.created_at.desc()])


def list_following(db: Session, user_id: int, page_request: PageRequest) -> PageResult:
    q = db.query(User).join(Follower, Follower.followed_id == User.id).filter(Follower.follower_id == user_id)
    return paginate(q, page_request, USER_SORT_COLUMNS, [Follower.created_at.desc()])


def following_ids(db: Session, user_id: int) -> List[int]:
    rows = db.query(Follower.followed_id).filter(Follower.follower_id == user_id).all()
    return [row[0] for row in rows]


def count_followers(db: Session, user_id: int) -> int:
    return db.query(Follower).filter(Follower.followed_id == user_id).count()


def count_following(db: Session, user_id: int) -> int:
    return db.query(Follower).filter(Follower.follower_id == user_id).count()
