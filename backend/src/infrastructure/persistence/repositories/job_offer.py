"""
Job Offer Repository Implementation
SQLAlchemy-based job offer repository with atomic counter and bulk expiry
"""
from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import select, update, exists, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from core.exceptions import InactiveJobOfferException, RepositoryException, ResourceNotFoundException
from application.repositories.interfaces import IJobOfferRepository
from domain.entities import JobOffer
from domain.value_objects import JobOfferStatus, OPEN_STATUS_VALUES
from infrastructure.persistence.models.job_offer import JobOfferModel


class SQLAlchemyJobOfferRepository(IJobOfferRepository):
    """SQLAlchemy implementation of job offer repository

    Every write commits on its own; callers get no transaction spanning
    several calls.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, job_offer_id: UUID) -> Optional[JobOffer]:
        """Get job offer by ID"""
        try:
            result = await self.session.execute(
                select(JobOfferModel).where(JobOfferModel.id == job_offer_id)
            )
            model = result.scalar_one_or_none()
            return self._to_entity(model) if model else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to get job offer {job_offer_id}: {str(e)}")
            raise RepositoryException(f"Failed to get job offer: {str(e)}")

    async def exists(self, job_offer_id: UUID) -> bool:
        """Check if job offer exists"""
        try:
            result = await self.session.execute(
                select(exists().where(JobOfferModel.id == job_offer_id))
            )
            return bool(result.scalar())
        except SQLAlchemyError as e:
            logger.error(f"Failed to check job offer {job_offer_id}: {str(e)}")
            raise RepositoryException(f"Failed to check job offer: {str(e)}")

    async def save(self, job_offer: JobOffer) -> JobOffer:
        """Insert or update a job offer; an open offer past its deadline is saved as expired"""
        job_offer = job_offer.with_deadline_enforced()
        try:
            model = await self.session.get(JobOfferModel, job_offer.id)
            if model is None:
                model = JobOfferModel(id=job_offer.id, employer_id=job_offer.employer_id)
                if job_offer.posted_at is not None:
                    model.posted_at = job_offer.posted_at
                self.session.add(model)

            model.title = job_offer.title
            model.company_name = job_offer.company_name
            model.description = job_offer.description
            model.job_location = job_offer.job_location
            model.status = job_offer.status.value
            model.deadline = job_offer.deadline
            model.applications_count = job_offer.applications_count
            model.is_active = job_offer.is_active

            await self.session.commit()
            await self.session.refresh(model)
            return self._to_entity(model)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to save job offer {job_offer.id}: {str(e)}")
            raise RepositoryException(f"Failed to save job offer: {str(e)}")

    async def increment_applications_count(self, job_offer_id: UUID) -> JobOffer:
        """Atomically add one to applications_count while the offer is open"""
        stmt = (
            update(JobOfferModel)
            .where(
                JobOfferModel.id == job_offer_id,
                JobOfferModel.status.in_(OPEN_STATUS_VALUES),
            )
            .values(applications_count=JobOfferModel.applications_count + 1)
            .returning(JobOfferModel)
            .execution_options(populate_existing=True)
        )
        try:
            result = await self.session.execute(stmt)
            model = result.scalar_one_or_none()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to increment applications count of {job_offer_id}: {str(e)}")
            raise RepositoryException(f"Failed to increment applications count: {str(e)}")

        if model is not None:
            return self._to_entity(model)

        # Nothing matched: tell a missing offer apart from a non-open one
        current = await self.get_by_id(job_offer_id)
        if current is None:
            raise ResourceNotFoundException("JobOffer", str(job_offer_id))
        raise InactiveJobOfferException(str(job_offer_id), current.status.value)

    async def bulk_expire(self, now: datetime) -> int:
        """Expire every open job offer whose deadline is before `now`"""
        stmt = (
            update(JobOfferModel)
            .where(
                JobOfferModel.status.in_(OPEN_STATUS_VALUES),
                JobOfferModel.deadline < now,
            )
            .values(status=JobOfferStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
            await self.session.commit()
            return result.rowcount or 0
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to expire job offers: {str(e)}")
            raise RepositoryException(f"Failed to expire job offers: {str(e)}")

    async def employer_statistics(self, employer_id: UUID) -> Dict[str, int]:
        """Per-status offer counts and total applications of one employer"""
        stmt = (
            select(
                JobOfferModel.status,
                func.count(JobOfferModel.id),
                func.coalesce(func.sum(JobOfferModel.applications_count), 0),
            )
            .where(JobOfferModel.employer_id == employer_id)
            .group_by(JobOfferModel.status)
        )
        try:
            result = await self.session.execute(stmt)
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to compute statistics of employer {employer_id}: {str(e)}")
            raise RepositoryException(f"Failed to compute employer statistics: {str(e)}")

        stats = {"total": 0, "active": 0, "closed": 0, "expired": 0, "draft": 0, "totalApplications": 0}
        for status, count, applications in rows:
            try:
                key = JobOfferStatus(status).value
            except ValueError:
                logger.warning(f"Unknown job offer status {status!r} for employer {employer_id}")
                key = None
            if key is not None:
                stats[key] += count
            stats["total"] += count
            stats["totalApplications"] += int(applications)
        return stats

    async def list_expiring(self, employer_id: UUID, now: datetime, until: datetime) -> List[JobOffer]:
        """Open offers of an employer whose deadline falls in [now, until], soonest first"""
        stmt = (
            select(JobOfferModel)
            .where(
                JobOfferModel.employer_id == employer_id,
                JobOfferModel.status.in_(OPEN_STATUS_VALUES),
                JobOfferModel.deadline >= now,
                JobOfferModel.deadline <= until,
            )
            .order_by(JobOfferModel.deadline.asc())
        )
        try:
            result = await self.session.execute(stmt)
            return [self._to_entity(model) for model in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list expiring job offers of {employer_id}: {str(e)}")
            raise RepositoryException(f"Failed to list expiring job offers: {str(e)}")

    def _to_entity(self, model: JobOfferModel) -> JobOffer:
        return JobOffer(
            id=model.id,
            employer_id=model.employer_id,
            title=model.title,
            company_name=model.company_name,
            description=model.description or "",
            job_location=model.job_location or "",
            status=JobOfferStatus(model.status),
            deadline=model.deadline,
            applications_count=model.applications_count or 0,
            is_active=model.is_active,
            posted_at=model.posted_at,
            updated_at=model.updated_at,
        )
