"""
Application Query Service
Read-through cached reads of applications and job offers
"""
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List
from uuid import UUID

from core.exceptions import ResourceNotFoundException
from application.repositories.interfaces import IApplicationRepository, ICacheStore, IJobOfferRepository
from application.services.cache import ApplicationCacheKeys, JobOfferCacheKeys, ReadThroughCache
from application.services.events import ApplicationRecord
from domain.entities import JobOffer


def job_offer_to_dict(job_offer: JobOffer) -> Dict[str, Any]:
    """JSON-safe projection of a job offer"""
    return {
        "id": str(job_offer.id),
        "employerId": str(job_offer.employer_id),
        "title": job_offer.title,
        "companyName": job_offer.company_name,
        "description": job_offer.description,
        "jobLocation": job_offer.job_location,
        "status": job_offer.status.value,
        "deadline": job_offer.deadline.isoformat() if job_offer.deadline else None,
        "applicationsCount": job_offer.applications_count,
        "isActive": job_offer.is_active,
        "daysRemaining": job_offer.days_remaining(),
        "postedAt": job_offer.posted_at.isoformat() if job_offer.posted_at else None,
    }


class ApplicationQueryService:
    """Reads that may be served from cache; a cache failure is always a miss"""

    def __init__(
        self,
        application_repo: IApplicationRepository,
        job_offer_repo: IJobOfferRepository,
        cache: ICacheStore,
    ):
        self.application_repo = application_repo
        self.job_offer_repo = job_offer_repo
        self.read_through = ReadThroughCache(cache)

    async def get_application(self, application_id: UUID) -> Dict[str, Any]:
        """Application detail"""
        async def load():
            application = await self.application_repo.get_by_id(application_id)
            if application is None:
                raise ResourceNotFoundException("Application", str(application_id))
            return ApplicationRecord.from_entity(application).to_message()

        return await self.read_through.get_or_load(ApplicationCacheKeys.detail(application_id), load)

    async def list_by_job(self, job_offer_id: UUID, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        """Page of applications for a job offer"""
        pagination = {"page": page, "limit": limit}

        async def load():
            offset = (page - 1) * limit
            applications = await self.application_repo.list_by_job(job_offer_id, limit=limit, offset=offset)
            total = await self.application_repo.count_by_job(job_offer_id)
            return self._page(applications, total, page, limit)

        return await self.read_through.get_or_load(ApplicationCacheKeys.by_job(job_offer_id, pagination), load)

    async def list_by_user(self, user_id: UUID, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        """Page of applications submitted by a user"""
        pagination = {"page": page, "limit": limit}

        async def load():
            offset = (page - 1) * limit
            applications = await self.application_repo.list_by_user(user_id, limit=limit, offset=offset)
            total = await self.application_repo.count_by_user(user_id)
            return self._page(applications, total, page, limit)

        return await self.read_through.get_or_load(ApplicationCacheKeys.by_user(user_id, pagination), load)

    async def get_job_offer(self, job_offer_id: UUID) -> Dict[str, Any]:
        """Job offer detail"""
        async def load():
            job_offer = await self.job_offer_repo.get_by_id(job_offer_id)
            if job_offer is None:
                raise ResourceNotFoundException("JobOffer", str(job_offer_id))
            return job_offer_to_dict(job_offer)

        return await self.read_through.get_or_load(JobOfferCacheKeys.detail(job_offer_id), load)

    async def employer_statistics(self, employer_id: UUID) -> Dict[str, int]:
        """Offer counts per status and total applications for an employer"""
        async def load():
            return await self.job_offer_repo.employer_statistics(employer_id)

        return await self.read_through.get_or_load(JobOfferCacheKeys.stats(employer_id), load)

    async def expiring_soon(self, employer_id: UUID, days: int = 7) -> List[Dict[str, Any]]:
        """Open offers of an employer closing within `days`, soonest first"""
        async def load():
            now = datetime.now(timezone.utc)
            offers = await self.job_offer_repo.list_expiring(employer_id, now, now + timedelta(days=days))
            return [job_offer_to_dict(o) for o in offers]

        return await self.read_through.get_or_load(JobOfferCacheKeys.expiring(employer_id, days), load)

    @staticmethod
    def _page(applications, total: int, page: int, limit: int) -> Dict[str, Any]:
        return {
            "data": [ApplicationRecord.from_entity(a).to_message() for a in applications],
            "total": total,
            "page": page,
            "totalPages": math.ceil(total / limit) if limit else 0,
        }
