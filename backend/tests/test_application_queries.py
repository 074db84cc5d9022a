"""
Tests for cached application and job offer reads
"""
import json
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from core.exceptions import ResourceNotFoundException
from application.services.application_queries import ApplicationQueryService
from application.services.cache import ApplicationCacheKeys, CacheInvalidator, JOB_OFFERS_NAMESPACE, JobOfferCacheKeys
from domain.value_objects import JobOfferStatus
from fakes import FailingCache, make_application, make_job_offer


@pytest.fixture
def queries(application_repo, job_offer_repo, cache):
    return ApplicationQueryService(application_repo, job_offer_repo, cache)


class TestApplicationQueries:
    """Read-through reads"""

    @pytest.mark.asyncio
    async def test_detail_is_cached(self, queries, job_offer, application_repo, cache):
        application = make_application(job_offer)
        application_repo.applications[application.id] = application

        record = await queries.get_application(application.id)

        assert record["id"] == str(application.id)
        assert record["status"] == "pending"
        assert json.loads(cache.data[ApplicationCacheKeys.detail(application.id)]) == record

    @pytest.mark.asyncio
    async def test_missing_detail_raises(self, queries):
        with pytest.raises(ResourceNotFoundException):
            await queries.get_application(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_list_by_job_pages(self, queries, job_offer, application_repo):
        for _ in range(3):
            application = make_application(job_offer)
            application_repo.applications[application.id] = application

        page = await queries.list_by_job(job_offer.id, page=2, limit=2)

        assert page["total"] == 3
        assert page["page"] == 2
        assert page["totalPages"] == 2
        assert len(page["data"]) == 1

    @pytest.mark.asyncio
    async def test_list_by_user(self, queries, job_offer, application_repo):
        application = make_application(job_offer)
        application_repo.applications[application.id] = application

        page = await queries.list_by_user(application.user_id)

        assert [item["id"] for item in page["data"]] == [str(application.id)]
        assert page["totalPages"] == 1

    @pytest.mark.asyncio
    async def test_job_offer_detail(self, queries, job_offer, cache):
        offer = await queries.get_job_offer(job_offer.id)

        assert offer["id"] == str(job_offer.id)
        assert offer["status"] == "active"
        assert offer["applicationsCount"] == 0
        assert JobOfferCacheKeys.detail(job_offer.id) in cache.data

    @pytest.mark.asyncio
    async def test_reads_survive_cache_outage(self, application_repo, job_offer_repo, job_offer):
        queries = ApplicationQueryService(application_repo, job_offer_repo, FailingCache())

        offer = await queries.get_job_offer(job_offer.id)

        assert offer["title"] == "Backend Engineer"


class TestEmployerReads:
    """Employer statistics and expiring-soon"""

    @pytest.mark.asyncio
    async def test_statistics_count_statuses_and_applications(self, queries, job_offer_repo, cache):
        employer_id = uuid.uuid4()
        offers = [
            make_job_offer(employer_id=employer_id, applications_count=3),
            make_job_offer(employer_id=employer_id, status=JobOfferStatus.CLOSED, applications_count=2),
            make_job_offer(employer_id=employer_id, status=JobOfferStatus.DRAFT),
            make_job_offer(applications_count=9),
        ]
        for offer in offers:
            job_offer_repo.offers[offer.id] = offer

        stats = await queries.employer_statistics(employer_id)

        assert stats == {"total": 3, "active": 1, "closed": 1, "expired": 0, "draft": 1, "totalApplications": 5}
        assert json.loads(cache.data[JobOfferCacheKeys.stats(employer_id)]) == stats

    @pytest.mark.asyncio
    async def test_statistics_of_employer_without_offers(self, queries):
        stats = await queries.employer_statistics(uuid.uuid4())

        assert set(stats.values()) == {0}

    @pytest.mark.asyncio
    async def test_cached_statistics_are_served_until_invalidated(self, queries, job_offer, job_offer_repo, cache):
        first = await queries.employer_statistics(job_offer.employer_id)
        await job_offer_repo.increment_applications_count(job_offer.id)

        assert await queries.employer_statistics(job_offer.employer_id) == first

        await CacheInvalidator(cache).invalidate(JOB_OFFERS_NAMESPACE)

        assert (await queries.employer_statistics(job_offer.employer_id))["totalApplications"] == 1

    @pytest.mark.asyncio
    async def test_expiring_soon_is_sorted_and_bounded(self, queries, job_offer_repo, cache):
        employer_id = uuid.uuid4()
        now = datetime.now(timezone.utc)
        later = make_job_offer(employer_id=employer_id, deadline=now + timedelta(days=5))
        sooner = make_job_offer(employer_id=employer_id, deadline=now + timedelta(days=1))
        beyond = make_job_offer(employer_id=employer_id, deadline=now + timedelta(days=20))
        closed = make_job_offer(employer_id=employer_id, status=JobOfferStatus.CLOSED, deadline=now + timedelta(days=2))
        for offer in (later, sooner, beyond, closed):
            job_offer_repo.offers[offer.id] = offer

        offers = await queries.expiring_soon(employer_id, days=7)

        assert [o["id"] for o in offers] == [str(sooner.id), str(later.id)]
        assert JobOfferCacheKeys.expiring(employer_id, 7) in cache.data
