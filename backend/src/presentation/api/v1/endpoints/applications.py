"""
Application Endpoints
Submission intake, cached reads and employer review
"""
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from application.repositories.interfaces import IEventBus
from application.services.application_queries import ApplicationQueryService
from application.services.events import (
    TOPIC_APPLICATION_SUBMIT,
    ApplicationRecord,
    SubmitApplicationEvent,
)
from application.services.status_transition import StatusTransitionHandler
from core.exceptions import AuthorizationException
from domain.entities import Application
from domain.enums import UserRole
from domain.value_objects import ApplicationStatus
from presentation.api.v1.container import get_event_bus, get_query_service, get_status_transition_handler
from presentation.api.v1.dependencies import (
    CurrentUser,
    authorize_application_review,
    get_current_user,
    require_admin,
)
from presentation.api.v1.schemas.applications import (
    ApplicationPage,
    SubmitApplicationRequest,
    SubmitApplicationResponse,
    UpdateApplicationStatusRequest,
)


router = APIRouter()


@router.post("/applications/submit", response_model=SubmitApplicationResponse, status_code=status.HTTP_202_ACCEPTED)
async def submit_application(
    request: SubmitApplicationRequest,
    current_user: CurrentUser = Depends(get_current_user),
    event_bus: IEventBus = Depends(get_event_bus),
):
    """
    Queue an application for the submission pipeline

    The result is only observable through the job.application.created and
    job.application.notcreated events.
    """
    event = SubmitApplicationEvent(
        job_offer_id=request.job_offer_id,
        user_id=current_user.id,
        employer_email=str(request.employer_email),
        user_snap=request.user_snap,
    )
    message_id = await event_bus.publish(TOPIC_APPLICATION_SUBMIT, event.to_message())
    logger.info(f"Submission queued for user {current_user.id} on job offer {request.job_offer_id}")

    return SubmitApplicationResponse(
        message_id=message_id,
        job_offer_id=str(request.job_offer_id),
        user_id=str(current_user.id),
        message="Application submitted for processing",
    )


@router.get("/applications/job/{job_offer_id}", response_model=ApplicationPage)
async def list_job_offer_applications(
    job_offer_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    queries: ApplicationQueryService = Depends(get_query_service),
):
    """Applications received by a job offer"""
    if current_user.role == UserRole.USER:
        raise AuthorizationException("Only employers can list job offer applications")
    return await queries.list_by_job(job_offer_id, page=page, limit=limit)


@router.get("/applications/user/{user_id}", response_model=ApplicationPage)
async def list_user_applications(
    user_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: CurrentUser = Depends(get_current_user),
    queries: ApplicationQueryService = Depends(get_query_service),
):
    """Applications submitted by a user"""
    if not current_user.is_admin and current_user.id != user_id:
        raise AuthorizationException("Cannot list another user's applications")
    return await queries.list_by_user(user_id, page=page, limit=limit)


@router.get("/applications/{application_id}")
async def get_application(
    application_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    queries: ApplicationQueryService = Depends(get_query_service),
) -> Dict[str, Any]:
    """Application detail"""
    return await queries.get_application(application_id)


@router.patch("/applications/{application_id}/status")
async def update_application_status(
    application_id: UUID,
    request: UpdateApplicationStatusRequest,
    _authorized: Optional[Application] = Depends(authorize_application_review),
    handler: StatusTransitionHandler = Depends(get_status_transition_handler),
) -> Dict[str, Any]:
    """Set the review status of an application"""
    new_status = ApplicationStatus.parse(request.status)
    updated = await handler.transition(application_id, new_status, request.employer_note)
    return ApplicationRecord.from_entity(updated).to_message()


@router.delete("/applications/{application_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_application(
    application_id: UUID,
    _admin: CurrentUser = Depends(require_admin),
    handler: StatusTransitionHandler = Depends(get_status_transition_handler),
):
    """Remove an application"""
    await handler.remove(application_id)
