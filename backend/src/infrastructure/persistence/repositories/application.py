"""
Application Repository Implementation
SQLAlchemy-based application repository
"""
from enum import Enum
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from core.exceptions import (
    DuplicateResourceException,
    RepositoryException,
    ResourceNotFoundException,
    ValidationException,
)
from application.repositories.interfaces import IApplicationRepository
from domain.entities import ApplicantProfile, Application
from domain.value_objects import ApplicationStatus
from infrastructure.persistence.models.application import ApplicationModel, UNIQUE_JOB_OFFER_USER


UPDATABLE_FIELDS = {"status", "employer_note"}


class SQLAlchemyApplicationRepository(IApplicationRepository):
    """SQLAlchemy implementation of application repository"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, application_id: UUID) -> Optional[Application]:
        """Get application by ID"""
        try:
            model = await self.session.get(ApplicationModel, application_id)
            return self._to_entity(model) if model else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to get application {application_id}: {str(e)}")
            raise RepositoryException(f"Failed to get application: {str(e)}")

    async def get_by_job_and_user(self, job_offer_id: UUID, user_id: UUID) -> Optional[Application]:
        """Get the application a user submitted to a job offer"""
        try:
            result = await self.session.execute(
                select(ApplicationModel).where(
                    ApplicationModel.job_offer_id == job_offer_id,
                    ApplicationModel.user_id == user_id,
                )
            )
            model = result.scalars().first()
            return self._to_entity(model) if model else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to look up application for job offer {job_offer_id}, user {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to look up application: {str(e)}")

    async def create(self, application: Application) -> Application:
        """Insert an application; the unique constraint rejects a second one per (job offer, user)"""
        model = self._to_model(application)
        self.session.add(model)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if UNIQUE_JOB_OFFER_USER in str(e.orig):
                logger.debug(f"Application already exists for user={application.user_id}, job_offer={application.job_offer_id} (caught duplicate)")
                raise DuplicateResourceException(
                    "Application",
                    "job_offer_id,user_id",
                    f"{application.job_offer_id},{application.user_id}",
                )
            logger.error(f"Integrity error creating application: {e}")
            raise RepositoryException(f"Failed to create application: {str(e.orig)}")
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to create application: {str(e)}")
            raise RepositoryException(f"Failed to create application: {str(e)}")

        await self.session.refresh(model)
        return self._to_entity(model)

    async def update(self, application_id: UUID, **fields: Any) -> Application:
        """Update status and/or employer note"""
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationException(", ".join(sorted(unknown)), "field cannot be updated")

        try:
            model = await self.session.get(ApplicationModel, application_id)
            if model is None:
                raise ResourceNotFoundException("Application", str(application_id))

            for name, value in fields.items():
                setattr(model, name, value.value if isinstance(value, Enum) else value)

            await self.session.commit()
            await self.session.refresh(model)
            return self._to_entity(model)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to update application {application_id}: {str(e)}")
            raise RepositoryException(f"Failed to update application: {str(e)}")

    async def delete(self, application_id: UUID) -> bool:
        """Delete application"""
        try:
            model = await self.session.get(ApplicationModel, application_id)
            if model is None:
                return False

            await self.session.delete(model)
            await self.session.commit()
            return True
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to delete application {application_id}: {str(e)}")
            raise RepositoryException(f"Failed to delete application: {str(e)}")

    async def list_by_job(self, job_offer_id: UUID, limit: int = 10, offset: int = 0) -> List[Application]:
        return await self._list(ApplicationModel.job_offer_id == job_offer_id, limit, offset)

    async def count_by_job(self, job_offer_id: UUID) -> int:
        return await self._count(ApplicationModel.job_offer_id == job_offer_id)

    async def list_by_user(self, user_id: UUID, limit: int = 10, offset: int = 0) -> List[Application]:
        return await self._list(ApplicationModel.user_id == user_id, limit, offset)

    async def count_by_user(self, user_id: UUID) -> int:
        return await self._count(ApplicationModel.user_id == user_id)

    async def _list(self, criterion, limit: int, offset: int) -> List[Application]:
        try:
            result = await self.session.execute(
                select(ApplicationModel)
                .where(criterion)
                .order_by(ApplicationModel.posted_at.desc())
                .limit(limit)
                .offset(offset)
            )
            return [self._to_entity(m) for m in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error(f"Failed to list applications: {str(e)}")
            raise RepositoryException(f"Failed to list applications: {str(e)}")

    async def _count(self, criterion) -> int:
        try:
            result = await self.session.execute(
                select(func.count()).select_from(ApplicationModel).where(criterion)
            )
            return result.scalar_one()
        except SQLAlchemyError as e:
            logger.error(f"Failed to count applications: {str(e)}")
            raise RepositoryException(f"Failed to count applications: {str(e)}")

    def _to_model(self, entity: Application) -> ApplicationModel:
        model = ApplicationModel(
            job_offer_id=entity.job_offer_id,
            user_id=entity.user_id,
            company_name=entity.company_name,
            job_title=entity.job_title,
            user_snap=entity.user_snap.to_document(),
            status=entity.status.value,
            employer_note=entity.employer_note,
        )
        if entity.id is not None:
            model.id = entity.id
        if entity.posted_at is not None:
            model.posted_at = entity.posted_at
        return model

    def _to_entity(self, model: ApplicationModel) -> Application:
        return Application(
            id=model.id,
            job_offer_id=model.job_offer_id,
            user_id=model.user_id,
            company_name=model.company_name,
            job_title=model.job_title,
            user_snap=ApplicantProfile.model_validate(model.user_snap),
            status=ApplicationStatus(model.status),
            employer_note=model.employer_note,
            posted_at=model.posted_at,
            updated_at=model.updated_at,
        )
