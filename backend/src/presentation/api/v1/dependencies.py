"""
FastAPI Dependencies
Current caller identity and role checks
"""
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status, Header

from core.exceptions import AuthenticationException, AuthorizationException
from application.repositories.interfaces import IApplicationRepository, IJobOfferRepository
from domain.entities import Application
from domain.enums import UserRole
from infrastructure.security.jwt_service import JwtService
from .container import get_application_repository, get_job_offer_repository, get_jwt_service


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated caller"""
    id: UUID
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


async def get_current_user(
    authorization: Optional[str] = Header(None),
    jwt_service: JwtService = Depends(get_jwt_service)
) -> CurrentUser:
    """
    Get current authenticated user from JWT token

    Usage:
        @router.get("/protected")
        async def protected_route(user: CurrentUser = Depends(get_current_user)):
            ...
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Extract token from "Bearer <token>"
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    claims = jwt_service.verify_token(parts[1])
    try:
        return CurrentUser(id=UUID(claims["sub"]), role=UserRole(claims.get("role", UserRole.USER.value)))
    except (KeyError, ValueError):
        raise AuthenticationException("Invalid token claims")


async def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Allow administrators only"""
    if not current_user.is_admin:
        raise AuthorizationException("Administrator role required")
    return current_user


async def require_employer(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Allow employers and administrators"""
    if current_user.role not in (UserRole.EMPLOYER, UserRole.ADMIN):
        raise AuthorizationException("Employer role required")
    return current_user


async def authorize_application_review(
    application_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    application_repo: IApplicationRepository = Depends(get_application_repository),
    job_offer_repo: IJobOfferRepository = Depends(get_job_offer_repository),
) -> Optional[Application]:
    """
    Admins, or the employer owning the application's job offer, may review it

    Returns the application when it was loaded for the ownership check; a
    missing application is left for the handler to report.
    """
    if current_user.is_admin:
        return None

    if current_user.role != UserRole.EMPLOYER:
        raise AuthorizationException("Only employers can review applications")

    application = await application_repo.get_by_id(application_id)
    if application is None:
        return None

    job_offer = await job_offer_repo.get_by_id(application.job_offer_id)
    if job_offer is None or job_offer.employer_id != current_user.id:
        raise AuthorizationException("Unauthorized access to update")
    return application
