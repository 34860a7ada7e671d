from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, require_admin
from app.schemas.common import ApiResponse, MessageData
from app.schemas.user import (
    UserListData,
    UserRead,
    UserSearchData,
    UsersByRoleData,
    UserStatistics,
    UserUpdate,
)
from app.services import response
from app.services import users as user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "",
    response_model=ApiResponse[UserListData],
    dependencies=[Depends(require_admin)],
)
def list_users(db: Session = Depends(get_db)):
    return response.ok(user_service.users.list_with_counts(db), "Users retrieved")


@router.get(
    "/statistics",
    response_model=ApiResponse[UserStatistics],
    dependencies=[Depends(require_admin)],
)
def user_statistics(db: Session = Depends(get_db)):
    return response.ok(user_service.users.statistics(db), "Statistics retrieved")


@router.get(
    "/search",
    response_model=ApiResponse[UserSearchData],
    dependencies=[Depends(get_current_user)],
)
def search_users(q: str | None = Query(default=None), db: Session = Depends(get_db)):
    return response.ok(user_service.users.search(db, q), "Search completed")


@router.get(
    "/role/{role}",
    response_model=ApiResponse[UsersByRoleData],
    dependencies=[Depends(require_admin)],
)
def users_by_role(role: str, db: Session = Depends(get_db)):
    return response.ok(user_service.users.by_role(db, role), "Users retrieved")


@router.get(
    "/{user_id}",
    response_model=ApiResponse[UserRead],
    dependencies=[Depends(get_current_user)],
)
def get_user(user_id: str, db: Session = Depends(get_db)):
    return response.ok(user_service.users.get(db, user_id), "User retrieved")


@router.put(
    "/{user_id}",
    response_model=ApiResponse[UserRead],
    dependencies=[Depends(require_admin)],
)
def update_user(user_id: str, payload: UserUpdate, db: Session = Depends(get_db)):
    return response.ok(user_service.users.update(db, user_id, payload), "User updated")


@router.put(
    "/{user_id}/activate",
    response_model=ApiResponse[UserRead],
    dependencies=[Depends(require_admin)],
)
def activate_user(user_id: str, db: Session = Depends(get_db)):
    return response.ok(user_service.users.activate(db, user_id), "User activated")


@router.put(
    "/{user_id}/deactivate",
    response_model=ApiResponse[MessageData],
    dependencies=[Depends(require_admin)],
)
def deactivate_user(user_id: str, db: Session = Depends(get_db)):
    return response.ok(user_service.users.deactivate(db, user_id), "User deactivated")


@router.delete(
    "/{user_id}",
    response_model=ApiResponse[MessageData],
    dependencies=[Depends(require_admin)],
)
def delete_user(user_id: str, db: Session = Depends(get_db)):
    return response.ok(user_service.users.delete(db, user_id), "User deleted")
