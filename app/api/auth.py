from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db
from app.config import settings
from app.schemas.auth import (
    ApiKeyData,
    ProfileUpdateRequest,
    RegisterRequest,
    RegisterResponse,
)
from app.schemas.common import ApiResponse
from app.schemas.user import UserRead
from app.services import response
from app.services.auth import auth_service
from app.services.auth_dependencies import Principal

router = APIRouter(prefix="/auth", tags=["auth"])
limiter = Limiter(key_func=get_remote_address)


@router.post("/register", response_model=ApiResponse[RegisterResponse])
@limiter.limit(settings.register_rate_limit)
def register(request: Request, payload: RegisterRequest, db: Session = Depends(get_db)):
    result = auth_service.register(db, payload.email, payload.password, payload.name)
    return response.ok(result, "Registration successful")


@router.get("/profile", response_model=ApiResponse[UserRead])
def get_profile(
    db: Session = Depends(get_db),
    current_user: Principal = Depends(get_current_user),
):
    return response.ok(auth_service.get_profile(db, current_user.user_id), "Profile retrieved")


@router.put("/profile", response_model=ApiResponse[UserRead])
def update_profile(
    payload: ProfileUpdateRequest,
    db: Session = Depends(get_db),
    current_user: Principal = Depends(get_current_user),
):
    user = auth_service.update_profile(db, current_user.user_id, payload.name)
    return response.ok(user, "Profile updated")


@router.get("/api-key", response_model=ApiResponse[ApiKeyData])
def get_api_key(
    db: Session = Depends(get_db),
    current_user: Principal = Depends(get_current_user),
):
    return response.ok(auth_service.get_api_key(db, current_user.user_id), "API key retrieved")


@router.post("/api-key/regenerate", response_model=ApiResponse[ApiKeyData])
def regenerate_api_key(
    db: Session = Depends(get_db),
    current_user: Principal = Depends(get_current_user),
):
    result = auth_service.regenerate_api_key(db, current_user.user_id)
    return response.ok(result, "API key regenerated")
