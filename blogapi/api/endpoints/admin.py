# blogapi/api/endpoints/admin.py
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from blogapi.api import deps
from blogapi.models import RoleName, User
from blogapi.pagination import PageRequest
from blogapi.schemas import AdminUserUpdate, ApiResponse
from blogapi.services import admin_service, user_service

logger = logging.getLogger(__name__)

# Every route below requires the ADMIN authority
router = APIRouter(dependencies=[Depends(deps.admin_required)])


@router.get("/users")
def list_users(search: str = "",
               page_request: PageRequest = Depends(deps.page_params),
               db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(user_service.list_users(db, page_request, search))


@router.get("/users/{user_id}")
def get_user(user_id: int, db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(user_service.get_user(db, user_id))


@router.put("/users/{user_id}")
def update_user(user_id: int, request: AdminUserUpdate, db: Session = Depends(deps.get_db)):
    user = admin_service.update_user(db, user_id, request)
    return ApiResponse.ok(user, "User updated successfully")


@router.delete("/users/{user_id}")
def delete_user(user_id: int, db: Session = Depends(deps.get_db)):
    admin_service.delete_user(db, user_id)
    return ApiResponse.ok(None, "User deleted successfully")


@router.post("/users/{user_id}/ban")
def ban_user(user_id: int,
             admin: User = Depends(deps.admin_required),
             db: Session = Depends(deps.get_db)):
    user = admin_service.ban_user(db, user_id, acting_user_id=admin.id)
    return ApiResponse.ok(user, "User banned successfully")


@router.post("/users/{user_id}/unban")
def unban_user(user_id: int, db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(admin_service.unban_user(db, user_id), "User unbanned successfully")


@router.post("/users/{user_id}/roles/{role_name}")
def assign_role(user_id: int, role_name: RoleName, db: Session = Depends(deps.get_db)):
    user = admin_service.assign_role(db, user_id, role_name)
    return ApiResponse.ok(user, f"Role {role_name.value} assigned")


@router.delete("/users/{user_id}/roles/{role_name}")
def remove_role(user_id: int, role_name: RoleName, db: Session = Depends(deps.get_db)):
    user = admin_service.remove_role(db, user_id, role_name)
    return ApiResponse.ok(user, f"Role {role_name.value} removed")


@router.post("/users/{user_id}/assign-admin")
def assign_admin(user_id: int, db: Session = Depends(deps.get_db)):
    user = admin_service.assign_role(db, user_id, RoleName.ADMIN)
    return ApiResponse.ok(user, "Admin role assigned")


@router.post("/users/{user_id}/remove-admin")
def remove_admin(user_id: int, db: Session = Depends(deps.get_db)):
    user = admin_service.remove_role(db, user_id, RoleName.ADMIN)
    return ApiResponse.ok(user, "Admin role removed")


@router.get("/statistics")
def statistics(db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(admin_service.system_statistics(db))


@router.post("/posts/{post_id}/feature")
def feature_post(post_id: int, db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(admin_service.feature_post(db, post_id), "Post featured")


@router.post("/posts/{post_id}/unfeature")
def unfeature_post(post_id: int, db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(admin_service.unfeature_post(db, post_id), "Post unfeatured")


@router.delete("/posts/{post_id}")
def delete_post(post_id: int, db: Session = Depends(deps.get_db)):
    admin_service.delete_any_post(db, post_id)
    return ApiResponse.ok(None, "Post deleted successfully")


@router.delete("/comments/{comment_id}")
def delete_comment(comment_id: int, db: Session = Depends(deps.get_db)):
    admin_service.delete_any_comment(db, comment_id)
    return ApiResponse.ok(None, "Comment deleted successfully")
