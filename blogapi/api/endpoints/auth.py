# blogapi/api/endpoints/auth.py
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from blogapi.api import deps
from blogapi.models import User
from blogapi.schemas import ApiResponse, LoginRequest, UserCreate
from blogapi.services import auth_service
from blogapi.services.user_service import user_to_response

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/login")
def login(request: LoginRequest, db: Session = Depends(deps.get_db)):
    auth = auth_service.login(db, request.username_or_email, request.password)
    return ApiResponse.ok(auth, "Login successful")


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(request: UserCreate, db: Session = Depends(deps.get_db)):
    auth = auth_service.register(db, request)
    return ApiResponse.ok(auth, "User registered successfully")


@router.get("/me")
def read_current_user(current_user: User = Depends(deps.get_current_user),
                      db: Session = Depends(deps.get_db)):
    return ApiResponse.ok(user_to_response(db, current_user))
