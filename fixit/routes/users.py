"""
Resident profile endpoints.

Accounts are created by Firebase Authentication; this router stores the
profile that goes with an account.
"""

from fastapi import APIRouter, Depends, status

from fixit.core.auth import Principal, get_current_principal
from fixit.models.user import UserCreate, UserResponse
from fixit.services.user_service import UserService, get_user_service


router = APIRouter(prefix="/users", tags=["Users"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register_user(
    payload: UserCreate,
    principal: Principal = Depends(get_current_principal),
    users: UserService = Depends(get_user_service),
):
    """Create the caller's profile with a fresh reputation."""
    user = users.register(principal.user_id, payload)
    return users.format_user(user)


@router.get("/me", response_model=UserResponse)
async def get_me(
    principal: Principal = Depends(get_current_principal),
    users: UserService = Depends(get_user_service),
):
    return users.get_user_details(principal.user_id)
