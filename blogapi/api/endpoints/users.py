# blogapi/api/endpoints/users.py
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from blogapi.api import deps
from blogapi.models import User
from blogapi.pagination import PageRequest
from blogapi.schemas import ApiResponse, AvatarUpdate, BioUpdate, PasswordChange, UserUpdate
from blogapi.services import user_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/me")
def read_me(current_user: User = Depends(deps.get_current_user),
            db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(user_service.user_to_response(db, current_user))


@router.put("/me")
def update_me(request: UserUpdate,
              current_user: User = Depends(deps.get_current_user),
              db: Session = Depends(deps.get_db)):
    user = user_service.update_profile(db, current_user.id, request)
    return ApiResponse.ok(user, "Profile updated successfully")


@router.delete("/me")
def delete_me(current_user: User = Depends(deps.get_current_user),
              db: Session = Depends(deps.get_db)):
    user_service.delete_user(db, current_user.id)
    return ApiResponse.ok(None, "Account deleted successfully")


@router.post("/me/change-password")
def change_password(request: PasswordChange,
                    current_user: User = Depends(deps.get_current_user),
                    db: Session = Depends(deps.get_db)):
    user_service.change_password(db, current_user.id, request.current_password, request.new_password)
    return ApiResponse.ok(None, "Password changed successfully")


@router.post("/me/avatar")
def update_avatar(request: AvatarUpdate,
                  current_user: User = Depends(deps.get_current_user),
                  db: Session = Depends(deps.get_db)):
    user = user_service.update_avatar(db, current_user.id, request.avatar_url)
    return ApiResponse.ok(user, "Avatar updated successfully")


@router.put("/me/bio")
def update_bio(request: BioUpdate,
               current_user: User = Depends(deps.get_current_user),
               db: Session = Depends(deps.get_db)):
    user = user_service.update_bio(db, current_user.id, request.bio)
    return ApiResponse.ok(user, "Bio updated successfully")


@router.get("")
def list_users(search: str = "",
               page_request: PageRequest = Depends(deps.page_params),
               db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(user_service.list_users(db, page_request, search))


@router.get("/search")
def search_users(query: str = "",
                 page_request: PageRequest = Depends(deps.page_params),
                 db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(user_service.search_users(db, query, page_request))


@router.get("/active")
def active_users(page_request: PageRequest = Depends(deps.page_params),
                 db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(user_service.list_active_users(db, page_request))


@router.get("/username/{username}")
def get_user_by_username(username: str, db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(user_service.get_user_by_username(db, username))


@router.get("/{user_id}")
def get_user(user_id: int, db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(user_service.get_user(db, user_id))


@router.get("/{user_id}/followers")
def followers(user_id: int,
              page_request: PageRequest = Depends(deps.page_params),
              db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(user_service.list_followers(db, user_id, page_request))


@router.get("/{user_id}/following")
def following(user_id: int,
              page_request: PageRequest = Depends(deps.page_params),
              db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(user_service.list_following(db, user_id, page_request))


@router.post("/{user_id}/follow")
def follow(user_id: int,
           current_user: User = Depends(deps.get_current_user),
           db: Session = Depends(deps.get_db)):
    created = user_service.follow(db, current_user.id, user_id)
    return ApiResponse.ok(True, "User followed" if created else "Already following")


@router.post("/{user_id}/unfollow")
def unfollow(user_id: int,
             current_user: User = Depends(deps.get_current_user),
             db: Session = Depends(deps.get_db)):
    removed = user_service.unfollow(db, current_user.id, user_id)
    return ApiResponse.ok(False, "User unfollowed" if removed else "Not following")


@router.get("/{user_id}/is-following")
def is_following(user_id: int,
                 current_user: User = Depends(deps.get_current_user),
                 db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(user_service.is_following(db, current_user.id, user_id))


@router.get("/{user_id}/statistics")
def statistics(user_id: int, db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(user_service.user_statistics(db, user_id))
