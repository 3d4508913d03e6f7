"""Credentials for portfolio users and cleaning of stored document bodies."""

from datetime import datetime, timedelta, UTC
from typing import Any, Dict, Optional

import bleach
from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings
from app.domain.exceptions import UnauthorizedAccessException


class SecurityService:
    """Bearer tokens for logged-in users plus bcrypt password hashes.

    Tokens carry the user id as ``sub`` and, when known, the login email.
    """

    def __init__(self) -> None:
        self.pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

    def create_access_token(
        self,
        subject: str,
        email: Optional[str] = None,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        issued_at = datetime.now(UTC)
        lifetime = expires_delta or timedelta(minutes=settings.jwt_expiration_minutes)

        claims: Dict[str, Any] = {
            "sub": subject,
            "iat": issued_at,
            "exp": issued_at + lifetime,
        }
        if email:
            claims["email"] = email

        return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    def verify_token(self, token: str) -> Dict[str, Any]:
        """Decode a token, rejecting bad signatures and expired ones."""
        try:
            return jwt.decode(
                token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
            )
        except JWTError as e:
            raise UnauthorizedAccessException("token", reason=str(e))

    def hash_password(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        return self.pwd_context.verify(plain_password, hashed_password)

    def user_id_from_token(self, token: str) -> str:
        user_id = self.verify_token(token).get("sub")
        if not user_id:
            raise UnauthorizedAccessException("token", reason="No user ID found")
        return user_id


class HTMLSanitizer:
    """Strips project document bodies down to the editor's formatting tags.

    Scripts, event handlers and comments are dropped before a document is
    stored, so the content can be rendered back as-is.
    """

    def __init__(
        self,
        allowed_tags: Optional[list[str]] = None,
        allowed_attributes: Optional[dict[str, list[str]]] = None,
    ) -> None:
        self.allowed_tags = allowed_tags or settings.html_sanitizer_tags
        self.allowed_attributes = allowed_attributes or settings.html_sanitizer_attributes

    def sanitize(self, html_content: Optional[str]) -> Optional[str]:
        if html_content is None:
            return None
        return bleach.clean(
            html_content,
            tags=self.allowed_tags,
            attributes=self.allowed_attributes,
            strip=True,
            strip_comments=True,
        )


security_service = SecurityService()
html_sanitizer = HTMLSanitizer()
