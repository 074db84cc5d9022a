"""
JWT Service Implementation
Decodes bearer tokens into the caller's identity and role
"""
from datetime import datetime, timedelta, timezone
from typing import Dict
from uuid import UUID

from jose import jwt, JWTError
from loguru import logger

from core.config import settings
from core.exceptions import AuthenticationException
from domain.enums import UserRole


class JwtService:
    """JWT service; RS256 when a public key is configured, otherwise the shared secret"""

    def __init__(self):
        self.algorithm = settings.JWT_ALGORITHM
        if settings.JWT_PUBLIC_KEY:
            self.algorithm = "RS256"
            self.verify_key = settings.JWT_PUBLIC_KEY
        else:
            self.verify_key = settings.JWT_SECRET_KEY

    def create_access_token(self, user_id: UUID, role: UserRole, expires_minutes: int = 60) -> str:
        """Create a symmetric access token (development and tests)"""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "role": role.value,
            "iat": now,
            "exp": now + timedelta(minutes=expires_minutes),
            "type": "access",
        }
        return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    def verify_token(self, token: str) -> Dict:
        """Verify and decode token"""
        try:
            return jwt.decode(token, self.verify_key, algorithms=[self.algorithm])
        except JWTError as e:
            logger.warning(f"JWT verification failed: {str(e)}")
            raise AuthenticationException("Invalid or expired token")
