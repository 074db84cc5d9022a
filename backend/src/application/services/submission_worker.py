"""
Submission Worker
Consumes job.application.submit messages and runs the submission pipeline
"""
import asyncio
from typing import Any, AsyncContextManager, Callable, Dict, Optional

from loguru import logger
from pydantic import ValidationError

from application.repositories.interfaces import IEventBus
from application.services.events import (
    TOPIC_APPLICATION_NOT_CREATED,
    TOPIC_APPLICATION_SUBMIT,
    ApplicationNotCreatedEvent,
    SubmissionIds,
    SubmitApplicationEvent,
)
from application.services.submission_pipeline import REASON_MESSAGES, SubmissionOutcome, SubmissionPipeline
from domain.enums import ReasonCode


PipelineScope = Callable[[], AsyncContextManager[SubmissionPipeline]]


class SubmissionWorker:
    """Message handler for inbound submissions

    The event bus runs each delivered message in its own task and only
    acknowledges it when `handle` returns. Exceptions raised here leave the
    message pending for redelivery.
    """

    def __init__(self, event_bus: IEventBus, pipeline_scope: PipelineScope, max_concurrent_tasks: int = 10):
        """
        Args:
            event_bus: Bus delivering inbound submissions
            pipeline_scope: Async context manager factory yielding a pipeline bound
                to fresh per-message resources (database session, repositories)
            max_concurrent_tasks: Maximum number of submissions processed at once
        """
        self.event_bus = event_bus
        self.pipeline_scope = pipeline_scope
        self.max_concurrent_tasks = max_concurrent_tasks
        self._semaphore = asyncio.Semaphore(max_concurrent_tasks)
        self.processed = 0

    def register(self) -> None:
        """Subscribe to inbound submissions"""
        self.event_bus.subscribe(TOPIC_APPLICATION_SUBMIT, self.handle)
        logger.info(f"Submission worker subscribed to {TOPIC_APPLICATION_SUBMIT} (max_concurrent={self.max_concurrent_tasks})")

    async def handle(self, message: Dict[str, Any]) -> Optional[SubmissionOutcome]:
        """Process one inbound message"""
        try:
            event = SubmitApplicationEvent.model_validate(message)
        except ValidationError as e:
            await self._reject_malformed(message, e)
            return None

        async with self._semaphore:
            async with self.pipeline_scope() as pipeline:
                outcome = await pipeline.process(event)

        self.processed += 1
        return outcome

    async def _reject_malformed(self, message: Any, error: ValidationError) -> None:
        """Report a malformed submission as not created, or drop it when it has no usable ids"""
        try:
            ids = SubmissionIds.model_validate(message)
        except ValidationError:
            logger.error(f"Dropping malformed submission message: {error}")
            return

        logger.warning(f"⚠️ Rejecting malformed submission of user {ids.user_id} to {ids.job_offer_id}: {error}")
        payload = ApplicationNotCreatedEvent(
            user_id=ids.user_id,
            job_offer_id=ids.job_offer_id,
            reason=f"{REASON_MESSAGES[ReasonCode.CREATE_FAILED]}: {error}",
            reason_code=ReasonCode.CREATE_FAILED,
        )
        await self.event_bus.publish(TOPIC_APPLICATION_NOT_CREATED, payload.to_message())
