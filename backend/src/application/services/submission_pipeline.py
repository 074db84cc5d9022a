"""
Application Submission Pipeline
Turns an inbound submit event into a stored application, an incremented
job offer counter, invalidated cache entries and exactly one outbound event
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from core.exceptions import (
    ConflictException,
    DuplicateResourceException,
    ResourceNotFoundException,
    UpstreamException,
)
from application.repositories.interfaces import (
    IApplicationRepository,
    ICacheStore,
    IEventBus,
    IJobOfferRepository,
)
from application.services.cache import (
    APPLICATIONS_NAMESPACE,
    CacheInvalidator,
    JobOfferCacheKeys,
)
from application.services.events import (
    TOPIC_APPLICATION_CREATED,
    TOPIC_APPLICATION_NOT_CREATED,
    ApplicationCreatedEvent,
    ApplicationNotCreatedEvent,
    SubmitApplicationEvent,
)
from domain.entities import Application, JobOffer
from domain.enums import ReasonCode
from domain.value_objects import ApplicationStatus


class SubmissionState(str, Enum):
    """Progress of a single submission"""
    RECEIVED = "received"
    VALIDATED = "validated"
    DEDUPLICATED = "deduplicated"
    PERSISTED = "persisted"
    COUNTED = "counted"
    NOTIFIED = "notified"


REASON_MESSAGES = {
    ReasonCode.ALREADY_SUBMITTED: "You have already applied to this job offer",
    ReasonCode.JOB_OFFER_NOT_FOUND: "Job offer not found",
    ReasonCode.CREATE_FAILED: "Failed to create application",
}


class SubmissionRejected(Exception):
    """Aborts the pipeline into the failure branch"""

    def __init__(self, reason_code: ReasonCode, reason: Optional[str] = None, state: SubmissionState = SubmissionState.RECEIVED):
        self.reason_code = reason_code
        self.reason = reason or REASON_MESSAGES[reason_code]
        self.state = state
        super().__init__(self.reason)


@dataclass
class SubmissionOutcome:
    """Result of processing one submit event"""
    created: bool
    state: SubmissionState
    application: Optional[Application] = None
    reason_code: Optional[ReasonCode] = None
    reason: Optional[str] = None
    message_id: Optional[str] = None


class SubmissionPipeline:
    """
    Orchestrates one application submission.

    Steps run strictly in order: validate, deduplicate, persist, invalidate,
    count, notify. Every processed event ends with exactly one outbound
    event, `created` or `notcreated`, published only once the terminal
    state is reached. Errors while publishing that event propagate so the
    message handler can leave the inbound message for redelivery.
    """

    def __init__(
        self,
        job_offer_repo: IJobOfferRepository,
        application_repo: IApplicationRepository,
        cache: ICacheStore,
        event_bus: IEventBus,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.job_offer_repo = job_offer_repo
        self.application_repo = application_repo
        self.invalidator = CacheInvalidator(cache)
        self.event_bus = event_bus
        self.clock = clock

    async def process(self, event: SubmitApplicationEvent) -> SubmissionOutcome:
        """Run the pipeline for one inbound event"""
        logger.info(f"📥 Processing submission: user={event.user_id} job_offer={event.job_offer_id}")

        try:
            job_offer = await self._validate(event)
            await self._deduplicate(event)
            application = await self._persist(event, job_offer)
            await self.invalidator.invalidate(APPLICATIONS_NAMESPACE)
            job_offer = await self._count(application, job_offer)
        except SubmissionRejected as rejection:
            return await self._notify_failure(event, rejection)

        return await self._notify_success(event, job_offer, application)

    async def _validate(self, event: SubmitApplicationEvent) -> JobOffer:
        try:
            job_offer = await self.job_offer_repo.get_by_id(event.job_offer_id)
        except Exception as e:
            raise self._create_failed(e, SubmissionState.RECEIVED)

        if job_offer is None:
            raise SubmissionRejected(ReasonCode.JOB_OFFER_NOT_FOUND)

        logger.debug(f"Submission {event.user_id}/{event.job_offer_id}: {SubmissionState.VALIDATED.value}")
        return job_offer

    async def _deduplicate(self, event: SubmitApplicationEvent) -> None:
        # Race reduction only; the unique constraint on insert is authoritative
        try:
            existing = await self.application_repo.get_by_job_and_user(event.job_offer_id, event.user_id)
        except Exception as e:
            raise self._create_failed(e, SubmissionState.VALIDATED)

        if existing is not None:
            raise SubmissionRejected(ReasonCode.ALREADY_SUBMITTED, state=SubmissionState.VALIDATED)

        logger.debug(f"Submission {event.user_id}/{event.job_offer_id}: {SubmissionState.DEDUPLICATED.value}")

    async def _persist(self, event: SubmitApplicationEvent, job_offer: JobOffer) -> Application:
        application = Application(
            id=None,
            job_offer_id=job_offer.id,
            user_id=event.user_id,
            company_name=job_offer.company_name,
            job_title=job_offer.title,
            user_snap=event.user_snap,
            status=ApplicationStatus.PENDING,
            posted_at=self.clock(),
        )

        try:
            created = await self.application_repo.create(application)
        except DuplicateResourceException:
            raise SubmissionRejected(ReasonCode.ALREADY_SUBMITTED, state=SubmissionState.DEDUPLICATED)
        except Exception as e:
            raise self._create_failed(e, SubmissionState.DEDUPLICATED)

        logger.info(f"💾 Application {created.id} stored")
        return created

    async def _count(self, application: Application, job_offer: JobOffer) -> JobOffer:
        try:
            counted = await self.job_offer_repo.increment_applications_count(job_offer.id)
        except Exception as e:
            await self._compensate(application)
            raise self._create_failed(e, SubmissionState.PERSISTED)

        await self.invalidator.invalidate_keys(
            [JobOfferCacheKeys.detail(job_offer.id), JobOfferCacheKeys.stats(job_offer.employer_id)]
        )
        logger.debug(f"Job offer {job_offer.id} applications_count={counted.applications_count}")
        return counted

    async def _compensate(self, application: Application) -> None:
        """Remove an application whose job offer counter could not be incremented"""
        try:
            await self.application_repo.delete(application.id)
            logger.warning(f"Rolled back application {application.id} after counter failure")
        except Exception as e:
            logger.error(f"Failed to roll back application {application.id}: {e}")
        await self.invalidator.invalidate(APPLICATIONS_NAMESPACE)

    def _create_failed(self, error: Exception, state: SubmissionState) -> SubmissionRejected:
        if isinstance(error, (ConflictException, ResourceNotFoundException, UpstreamException)):
            logger.error(f"Submission failed at {state.value}: {error}")
        else:
            logger.exception(f"Unexpected error at {state.value}: {error}")
        message = f"{REASON_MESSAGES[ReasonCode.CREATE_FAILED]}: {error}"
        return SubmissionRejected(ReasonCode.CREATE_FAILED, message, state)

    async def _notify_success(
        self,
        event: SubmitApplicationEvent,
        job_offer: JobOffer,
        application: Application,
    ) -> SubmissionOutcome:
        payload = ApplicationCreatedEvent(
            job_offer_id=job_offer.id,
            user_id=event.user_id,
            employer_email=event.employer_email,
            employer_id=job_offer.employer_id,
            company_name=job_offer.company_name,
            job_title=job_offer.title,
            user_snap=application.user_snap.to_document(),
        )
        message_id = await self.event_bus.publish(TOPIC_APPLICATION_CREATED, payload.to_message())

        logger.info(f"✅ Application {application.id} created for user {event.user_id}")
        return SubmissionOutcome(
            created=True,
            state=SubmissionState.NOTIFIED,
            application=application,
            message_id=message_id,
        )

    async def _notify_failure(
        self,
        event: SubmitApplicationEvent,
        rejection: SubmissionRejected,
    ) -> SubmissionOutcome:
        payload = ApplicationNotCreatedEvent(
            user_id=event.user_id,
            job_offer_id=event.job_offer_id,
            reason=rejection.reason,
            reason_code=rejection.reason_code,
        )
        message_id = await self.event_bus.publish(TOPIC_APPLICATION_NOT_CREATED, payload.to_message())

        logger.warning(
            f"⚠️ Application not created for user {event.user_id} "
            f"(job_offer={event.job_offer_id}, reason={rejection.reason_code.value})"
        )
        return SubmissionOutcome(
            created=False,
            state=rejection.state,
            reason_code=rejection.reason_code,
            reason=rejection.reason,
            message_id=message_id,
        )
