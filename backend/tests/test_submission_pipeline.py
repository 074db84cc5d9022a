"""
Tests for the application submission pipeline
"""
import pytest

from core.exceptions import EventBusException, RepositoryException
from application.services.cache import APPLICATIONS_NAMESPACE, ApplicationCacheKeys, JobOfferCacheKeys
from application.services.events import TOPIC_APPLICATION_CREATED, TOPIC_APPLICATION_NOT_CREATED
from application.services.submission_pipeline import SubmissionPipeline, SubmissionState
from domain.enums import ReasonCode
from domain.value_objects import ApplicationStatus, JobOfferStatus
from fakes import FakeJobOfferRepository, NOW, make_application, make_job_offer


@pytest.fixture
def pipeline(job_offer_repo, application_repo, cache, event_bus):
    return SubmissionPipeline(job_offer_repo, application_repo, cache, event_bus, clock=lambda: NOW)


class TestSuccessfulSubmission:
    """validate -> deduplicate -> persist -> invalidate -> count -> notify"""

    @pytest.mark.asyncio
    async def test_creates_application_and_counts(self, pipeline, submit_event, job_offer, application_repo, job_offer_repo):
        outcome = await pipeline.process(submit_event)

        assert outcome.created is True
        assert outcome.state == SubmissionState.NOTIFIED
        assert outcome.message_id == "1-0"

        stored = await application_repo.get_by_job_and_user(job_offer.id, submit_event.user_id)
        assert stored.status == ApplicationStatus.PENDING
        assert stored.company_name == "Acme"
        assert stored.job_title == "Backend Engineer"
        assert stored.posted_at == NOW
        assert stored.user_snap == submit_event.user_snap

        assert job_offer_repo.offers[job_offer.id].applications_count == 1

    @pytest.mark.asyncio
    async def test_publishes_exactly_one_created_event(self, pipeline, submit_event, job_offer, event_bus):
        await pipeline.process(submit_event)

        assert event_bus.topics() == [TOPIC_APPLICATION_CREATED]
        payload = event_bus.published[0][1]
        assert payload["jobOfferId"] == str(job_offer.id)
        assert payload["userId"] == str(submit_event.user_id)
        assert payload["employerEmail"] == "hr@acme.example"
        assert payload["employerId"] == str(job_offer.employer_id)
        assert payload["companyName"] == "Acme"
        assert payload["jobTitle"] == "Backend Engineer"
        assert payload["userSnap"]["name"] == "Sara Ali"
        assert payload["userSnap"]["education"][0]["GPA"] == 3.6

    @pytest.mark.asyncio
    async def test_invalidates_applications_then_job_offer_detail_and_stats(self, pipeline, submit_event, job_offer, cache):
        stale_list = ApplicationCacheKeys.by_job(job_offer.id, {"page": 1, "limit": 10})
        detail = JobOfferCacheKeys.detail(job_offer.id)
        stats = JobOfferCacheKeys.stats(job_offer.employer_id)
        unrelated = JobOfferCacheKeys.stats("someone")
        cache.data = {stale_list: "{}", detail: "{}", stats: "{}", unrelated: "{}"}

        await pipeline.process(submit_event)

        assert list(cache.data) == [unrelated]
        assert cache.called("list_keys") == [APPLICATIONS_NAMESPACE]
        assert cache.called("delete_many") == [[stale_list], [detail, stats]]
        assert cache.called("delete_all") == []


class TestRejectedSubmission:
    """Every failure ends in one notcreated event"""

    @pytest.mark.asyncio
    async def test_duplicate_found_by_lookup(self, pipeline, submit_event, job_offer, application_repo, job_offer_repo, event_bus):
        existing = make_application(job_offer, user_id=submit_event.user_id)
        application_repo.applications[existing.id] = existing

        outcome = await pipeline.process(submit_event)

        assert outcome.created is False
        assert outcome.reason_code == ReasonCode.ALREADY_SUBMITTED
        assert outcome.reason == "You have already applied to this job offer"
        assert len(application_repo.applications) == 1
        assert job_offer_repo.offers[job_offer.id].applications_count == 0

        assert event_bus.topics() == [TOPIC_APPLICATION_NOT_CREATED]
        payload = event_bus.published[0][1]
        assert payload == {
            "userId": str(submit_event.user_id),
            "jobOfferId": str(job_offer.id),
            "reason": "You have already applied to this job offer",
            "reasonCode": "already_submitted",
        }

    @pytest.mark.asyncio
    async def test_duplicate_caught_by_unique_constraint(self, pipeline, submit_event, job_offer, application_repo, job_offer_repo, event_bus):
        existing = make_application(job_offer, user_id=submit_event.user_id)
        application_repo.applications[existing.id] = existing
        application_repo.skip_lookup = True

        outcome = await pipeline.process(submit_event)

        assert outcome.reason_code == ReasonCode.ALREADY_SUBMITTED
        assert job_offer_repo.offers[job_offer.id].applications_count == 0
        assert event_bus.topics() == [TOPIC_APPLICATION_NOT_CREATED]

    @pytest.mark.asyncio
    async def test_missing_job_offer(self, application_repo, cache, event_bus, submit_event):
        pipeline = SubmissionPipeline(FakeJobOfferRepository(), application_repo, cache, event_bus)

        outcome = await pipeline.process(submit_event)

        assert outcome.reason_code == ReasonCode.JOB_OFFER_NOT_FOUND
        assert outcome.reason == "Job offer not found"
        assert outcome.state == SubmissionState.RECEIVED
        assert application_repo.applications == {}
        assert event_bus.published[0][1]["reasonCode"] == "job_offer_not_found"

    @pytest.mark.asyncio
    async def test_closed_job_offer_rolls_back_application(self, application_repo, cache, event_bus, submit_event):
        closed = make_job_offer(id=submit_event.job_offer_id, status=JobOfferStatus.CLOSED)
        job_offer_repo = FakeJobOfferRepository(closed)
        pipeline = SubmissionPipeline(job_offer_repo, application_repo, cache, event_bus)

        outcome = await pipeline.process(submit_event)

        assert outcome.reason_code == ReasonCode.CREATE_FAILED
        assert outcome.state == SubmissionState.PERSISTED
        assert outcome.reason.startswith("Failed to create application: ")
        assert "not open" in outcome.reason
        assert application_repo.applications == {}
        assert len(application_repo.deleted) == 1
        assert job_offer_repo.offers[closed.id].applications_count == 0
        assert event_bus.topics() == [TOPIC_APPLICATION_NOT_CREATED]

    @pytest.mark.asyncio
    async def test_insert_failure(self, pipeline, submit_event, application_repo, event_bus):
        application_repo.fail_create = RepositoryException("connection reset")

        outcome = await pipeline.process(submit_event)

        assert outcome.reason_code == ReasonCode.CREATE_FAILED
        assert outcome.reason == "Failed to create application: connection reset"
        assert event_bus.published[0][1]["reasonCode"] == "create_failed"

    @pytest.mark.asyncio
    async def test_lookup_failure(self, pipeline, submit_event, job_offer_repo, event_bus):
        job_offer_repo.fail_get = RepositoryException("timeout")

        outcome = await pipeline.process(submit_event)

        assert outcome.reason_code == ReasonCode.CREATE_FAILED
        assert event_bus.topics() == [TOPIC_APPLICATION_NOT_CREATED]

    @pytest.mark.asyncio
    async def test_publish_failure_propagates(self, pipeline, submit_event, event_bus):
        event_bus.fail_publish = EventBusException("redis down")

        with pytest.raises(EventBusException):
            await pipeline.process(submit_event)
