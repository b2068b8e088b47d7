from typing import List

from fastapi import APIRouter, Depends, status

from posapi.core.session_context import SessionContext
from posapi.deps import get_auth_service, get_session_context, require_admin
from posapi.schemas.auth import LoginRequest, Token, UserCreate, UserResponse
from posapi.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=Token)
def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> Token:
    """Email + password login. Returns a bearer token bound to a new session."""
    return auth_service.login(request)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    context: SessionContext = Depends(get_session_context),
    auth_service: AuthService = Depends(get_auth_service),
) -> None:
    auth_service.logout(context)


@router.get("/me")
def me(context: SessionContext = Depends(get_session_context)) -> dict:
    return {
        "user_id": context.user_id,
        "name": context.name,
        "email": context.email,
        "role": context.role,
    }


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    request: UserCreate,
    _: SessionContext = Depends(require_admin),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Create a cashier or admin account (admin only)."""
    return auth_service.create_user(request)


@router.get("/users", response_model=List[UserResponse])
def list_users(
    _: SessionContext = Depends(require_admin),
    auth_service: AuthService = Depends(get_auth_service),
) -> List[UserResponse]:
    return auth_service.list_users()
