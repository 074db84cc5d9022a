"""
Tests for employer review transitions
"""
import uuid

import pytest

from core.exceptions import ResourceNotFoundException
from application.services.cache import ApplicationCacheKeys
from application.services.events import TOPIC_APPLICATION_STATUS_CHANGE
from application.services.status_transition import StatusTransitionHandler
from domain.value_objects import ApplicationStatus
from fakes import make_application


@pytest.fixture
def application(job_offer, application_repo):
    application = make_application(job_offer)
    application_repo.applications[application.id] = application
    return application


@pytest.fixture
def handler(application_repo, cache, event_bus):
    return StatusTransitionHandler(application_repo, cache, event_bus)


class TestTransition:
    """Status changes"""

    @pytest.mark.asyncio
    async def test_accept_with_note(self, handler, application, application_repo):
        updated = await handler.transition(application.id, ApplicationStatus.ACCEPTED, "See you Monday")

        assert updated.status == ApplicationStatus.ACCEPTED
        assert updated.employer_note == "See you Monday"
        assert application_repo.applications[application.id].status == ApplicationStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_only_detail_key_is_invalidated(self, handler, application, cache):
        detail = ApplicationCacheKeys.detail(application.id)
        listing = ApplicationCacheKeys.by_user(application.user_id, {"page": 1, "limit": 10})
        cache.data = {detail: "{}", listing: "{}"}

        await handler.transition(application.id, ApplicationStatus.REVIEWED)

        assert list(cache.data) == [listing]
        assert cache.called("list_keys") == []
        assert cache.called("delete_all") == []

    @pytest.mark.asyncio
    async def test_publishes_full_record(self, handler, application, event_bus):
        await handler.transition(application.id, ApplicationStatus.REJECTED, "Position filled")

        assert event_bus.topics() == [TOPIC_APPLICATION_STATUS_CHANGE]
        payload = event_bus.published[0][1]
        assert payload["id"] == str(application.id)
        assert payload["jobOfferId"] == str(application.job_offer_id)
        assert payload["userId"] == str(application.user_id)
        assert payload["status"] == "rejected"
        assert payload["employerNote"] == "Position filled"
        assert payload["userSnap"]["name"] == "Sara Ali"

    @pytest.mark.asyncio
    async def test_missing_application(self, handler, event_bus):
        with pytest.raises(ResourceNotFoundException):
            await handler.transition(uuid.uuid4(), ApplicationStatus.ACCEPTED)

        assert event_bus.published == []


class TestRemove:
    """Deletion"""

    @pytest.mark.asyncio
    async def test_remove_invalidates_namespace(self, handler, application, application_repo, cache, event_bus):
        listing = ApplicationCacheKeys.by_job(application.job_offer_id, {"page": 1, "limit": 10})
        cache.data = {listing: "{}", "job-offers:detail:x": "{}"}

        await handler.remove(application.id)

        assert application.id not in application_repo.applications
        assert list(cache.data) == ["job-offers:detail:x"]
        assert event_bus.published == []

    @pytest.mark.asyncio
    async def test_remove_missing_application(self, handler):
        with pytest.raises(ResourceNotFoundException):
            await handler.remove(uuid.uuid4())
