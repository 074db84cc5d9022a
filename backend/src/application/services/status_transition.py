"""
Application Status Transition Handler
Applies employer review decisions to an existing application
"""
from typing import Optional
from uuid import UUID

from loguru import logger

from core.exceptions import ResourceNotFoundException
from application.repositories.interfaces import IApplicationRepository, ICacheStore, IEventBus
from application.services.cache import APPLICATIONS_NAMESPACE, ApplicationCacheKeys, CacheInvalidator
from application.services.events import TOPIC_APPLICATION_STATUS_CHANGE, ApplicationStatusChangedEvent
from domain.entities import Application
from domain.value_objects import ApplicationStatus


class StatusTransitionHandler:
    """Mutates application status, invalidates its cache entry and announces the change

    Authorization and status parsing happen in the caller before this
    handler runs.
    """

    def __init__(
        self,
        application_repo: IApplicationRepository,
        cache: ICacheStore,
        event_bus: IEventBus,
    ):
        self.application_repo = application_repo
        self.invalidator = CacheInvalidator(cache)
        self.event_bus = event_bus

    async def transition(
        self,
        application_id: UUID,
        status: ApplicationStatus,
        employer_note: Optional[str] = None,
    ) -> Application:
        """
        Set status and employer note of an application

        Args:
            application_id: Application to update
            status: Target status
            employer_note: Optional note for the candidate

        Returns:
            The post-mutation application

        Raises:
            ResourceNotFoundException: application does not exist
        """
        application = await self.application_repo.get_by_id(application_id)
        if application is None:
            raise ResourceNotFoundException("Application", str(application_id))

        updated = await self.application_repo.update(
            application_id,
            status=status,
            employer_note=employer_note,
        )
        await self.invalidator.invalidate_keys([ApplicationCacheKeys.detail(application_id)])

        record = ApplicationStatusChangedEvent.from_entity(updated)
        await self.event_bus.publish(TOPIC_APPLICATION_STATUS_CHANGE, record.to_message())

        logger.info(f"Application {application_id}: {application.status.value} -> {updated.status.value}")
        return updated

    async def remove(self, application_id: UUID) -> None:
        """Delete an application and every cached page that may list it"""
        deleted = await self.application_repo.delete(application_id)
        if not deleted:
            raise ResourceNotFoundException("Application", str(application_id))

        await self.invalidator.invalidate(
            APPLICATIONS_NAMESPACE,
            extra_keys=[ApplicationCacheKeys.detail(application_id)],
        )
        logger.info(f"Application {application_id} deleted")
