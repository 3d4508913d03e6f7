from datetime import timedelta

import structlog

from app.api.schemas import LoginRequest, Token, UserCreate
from app.core.config import settings
from app.core.security import SecurityService
from app.domain.entities import User
from app.domain.exceptions import UnauthorizedAccessException, ValidationException
from app.domain.repositories import UserRepository

logger = structlog.get_logger(__name__)


class AuthService:
    def __init__(self, user_repo: UserRepository, security: SecurityService) -> None:
        self.user_repo = user_repo
        self.security = security

    async def register(self, request: UserCreate) -> User:
        email = request.email.lower()
        if await self.user_repo.get_by_email(email):
            raise ValidationException(
                "Email already registered", details={"email": email}
            )

        user = User(
            email=email,
            full_name=request.full_name,
            hashed_password=self.security.hash_password(request.password),
        )
        await self.user_repo.create(user)
        logger.info("User registered", user_id=str(user.id))
        return user

    async def login(self, request: LoginRequest) -> Token:
        user = await self.user_repo.get_by_email(request.email.lower())
        if (
            not user
            or not user.is_active
            or not self.security.verify_password(request.password, user.hashed_password)
        ):
            logger.warning("Login failed", email=request.email)
            raise UnauthorizedAccessException("login", reason="Invalid email or password")

        expires = timedelta(minutes=settings.jwt_expiration_minutes)
        token = self.security.create_access_token(
            str(user.id), email=user.email, expires_delta=expires
        )
        logger.info("User logged in", user_id=str(user.id))
        return Token(access_token=token, expires_in=int(expires.total_seconds()))
