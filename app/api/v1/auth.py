from fastapi import APIRouter, Depends

from app.api.schemas import LoginRequest, Token, UserCreate, UserResponse
from app.application.services import AuthService
from app.core.dependencies import get_auth_service
from app.core.observability import trace_async_operation

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(
    request: UserCreate,
    auth_service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Create a user account."""
    async with trace_async_operation("api_register"):
        user = await auth_service.register(request)
        return UserResponse.model_validate(user, from_attributes=True)


@router.post("/login", response_model=Token)
async def login(
    request: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> Token:
    """Exchange email and password for a bearer token."""
    async with trace_async_operation("api_login"):
        return await auth_service.login(request)
