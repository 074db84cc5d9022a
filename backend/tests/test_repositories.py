"""
Tests for SQLAlchemy repositories against a mocked session
"""
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import AsyncMock, Mock
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError, OperationalError

from core.exceptions import (
    DuplicateResourceException,
    InactiveJobOfferException,
    RepositoryException,
    ResourceNotFoundException,
    ValidationException,
)
from domain.value_objects import ApplicationStatus, JobOfferStatus, OPEN_STATUS_VALUES
from infrastructure.persistence.models import JobOfferModel, UNIQUE_JOB_OFFER_USER
from infrastructure.persistence.repositories.application import SQLAlchemyApplicationRepository
from infrastructure.persistence.repositories.job_offer import SQLAlchemyJobOfferRepository
from fakes import make_application, make_job_offer


@pytest.fixture
def session():
    session = AsyncMock()
    session.add = Mock()
    return session


def result_of(value):
    result = Mock()
    result.scalar_one_or_none.return_value = value
    return result


def job_offer_model(**overrides):
    fields = dict(
        id=uuid.uuid4(),
        employer_id=uuid.uuid4(),
        title="Data Engineer",
        company_name="Acme",
        status=JobOfferStatus.OPEN.value,
        applications_count=0,
        is_active=True,
        posted_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )
    fields.update(overrides)
    return JobOfferModel(**fields)


def status_lists(stmt):
    """Bound list parameters of a statement compiled for PostgreSQL"""
    params = stmt.compile(dialect=postgresql.dialect()).params
    return [tuple(v) for v in params.values() if isinstance(v, (list, tuple))]


class TestApplicationRepository:
    """Unique constraint mapping and field updates"""

    @pytest.mark.asyncio
    async def test_create_returns_entity(self, session):
        repo = SQLAlchemyApplicationRepository(session)
        application = make_application(make_job_offer(), id=None)

        created = await repo.create(application)

        session.add.assert_called_once()
        session.commit.assert_awaited_once()
        assert created.company_name == "Acme"
        assert created.status == ApplicationStatus.PENDING
        assert created.user_snap.name == "Sara Ali"

    @pytest.mark.asyncio
    async def test_unique_violation_is_duplicate(self, session):
        session.commit.side_effect = IntegrityError(
            "INSERT INTO applications",
            {},
            Exception(f'duplicate key value violates unique constraint "{UNIQUE_JOB_OFFER_USER}"'),
        )
        repo = SQLAlchemyApplicationRepository(session)

        with pytest.raises(DuplicateResourceException):
            await repo.create(make_application(make_job_offer(), id=None))
        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_other_integrity_error_is_repository_error(self, session):
        session.commit.side_effect = IntegrityError(
            "INSERT INTO applications", {}, Exception("violates foreign key constraint")
        )
        repo = SQLAlchemyApplicationRepository(session)

        with pytest.raises(RepositoryException):
            await repo.create(make_application(make_job_offer(), id=None))

    @pytest.mark.asyncio
    async def test_update_rejects_snapshot_fields(self, session):
        repo = SQLAlchemyApplicationRepository(session)

        with pytest.raises(ValidationException):
            await repo.update(uuid.uuid4(), company_name="Other")
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_delete_missing_returns_false(self, session):
        session.get.return_value = None
        repo = SQLAlchemyApplicationRepository(session)

        assert await repo.delete(uuid.uuid4()) is False


class TestJobOfferRepository:
    """Atomic counter and bulk expiry"""

    @pytest.mark.asyncio
    async def test_increment_returns_updated_offer(self, session):
        model = job_offer_model(applications_count=4)
        session.execute.return_value = result_of(model)

        offer = await SQLAlchemyJobOfferRepository(session).increment_applications_count(model.id)

        assert offer.applications_count == 4
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_increment_on_closed_offer(self, session):
        model = job_offer_model(status=JobOfferStatus.CLOSED.value)
        session.execute.side_effect = [result_of(None), result_of(model)]

        with pytest.raises(InactiveJobOfferException) as exc_info:
            await SQLAlchemyJobOfferRepository(session).increment_applications_count(model.id)
        assert exc_info.value.status == "closed"

    @pytest.mark.asyncio
    async def test_increment_on_missing_offer(self, session):
        session.execute.side_effect = [result_of(None), result_of(None)]

        with pytest.raises(ResourceNotFoundException):
            await SQLAlchemyJobOfferRepository(session).increment_applications_count(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_increment_database_error(self, session):
        session.execute.side_effect = OperationalError("UPDATE job_offers", {}, Exception("gone"))

        with pytest.raises(RepositoryException):
            await SQLAlchemyJobOfferRepository(session).increment_applications_count(uuid.uuid4())
        session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_bulk_expire_returns_rowcount(self, session):
        session.execute.return_value = Mock(rowcount=2)

        assert await SQLAlchemyJobOfferRepository(session).bulk_expire(datetime.now(timezone.utc)) == 2
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_legacy_open_token_is_read_as_open(self, session):
        model = job_offer_model(status="open")
        session.execute.return_value = result_of(model)

        offer = await SQLAlchemyJobOfferRepository(session).get_by_id(model.id)

        assert offer.is_open()

    @pytest.mark.asyncio
    async def test_save_expires_open_offer_past_deadline(self, session):
        session.get.return_value = None
        offer = make_job_offer(deadline=datetime.now(timezone.utc) - timedelta(hours=1))

        saved = await SQLAlchemyJobOfferRepository(session).save(offer)

        added = session.add.call_args.args[0]
        assert added.status == JobOfferStatus.EXPIRED.value
        assert saved.status == JobOfferStatus.EXPIRED
        session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_exists(self, session):
        result = Mock()
        result.scalar.return_value = True
        session.execute.return_value = result

        assert await SQLAlchemyJobOfferRepository(session).exists(uuid.uuid4()) is True

    @pytest.mark.asyncio
    async def test_increment_matches_every_open_token(self, session):
        model = job_offer_model(status="open")
        session.execute.return_value = result_of(model)

        await SQLAlchemyJobOfferRepository(session).increment_applications_count(model.id)

        assert status_lists(session.execute.await_args.args[0]) == [OPEN_STATUS_VALUES]

    @pytest.mark.asyncio
    async def test_bulk_expire_matches_every_open_token(self, session):
        session.execute.return_value = Mock(rowcount=1)

        await SQLAlchemyJobOfferRepository(session).bulk_expire(datetime.now(timezone.utc))

        assert status_lists(session.execute.await_args.args[0]) == [OPEN_STATUS_VALUES]


class TestEmployerQueries:
    """Per-employer statistics and expiring offers"""

    @pytest.mark.asyncio
    async def test_statistics_fold_open_tokens_into_active(self, session):
        result = Mock()
        result.all.return_value = [("active", 2, 5), ("open", 1, 1), ("closed", 1, 0), ("archived", 1, 0)]
        session.execute.return_value = result

        stats = await SQLAlchemyJobOfferRepository(session).employer_statistics(uuid.uuid4())

        assert stats == {"total": 5, "active": 3, "closed": 1, "expired": 0, "draft": 0, "totalApplications": 6}

    @pytest.mark.asyncio
    async def test_statistics_without_offers(self, session):
        result = Mock()
        result.all.return_value = []
        session.execute.return_value = result

        stats = await SQLAlchemyJobOfferRepository(session).employer_statistics(uuid.uuid4())

        assert set(stats.values()) == {0}

    @pytest.mark.asyncio
    async def test_list_expiring_maps_rows_and_filters_open_tokens(self, session):
        model = job_offer_model(status="مفتوح", deadline=datetime.now(timezone.utc) + timedelta(days=2))
        result = Mock()
        result.scalars.return_value.all.return_value = [model]
        session.execute.return_value = result
        now = datetime.now(timezone.utc)

        offers = await SQLAlchemyJobOfferRepository(session).list_expiring(model.employer_id, now, now + timedelta(days=7))

        assert [o.id for o in offers] == [model.id]
        assert offers[0].is_open()
        stmt = session.execute.await_args.args[0]
        assert status_lists(stmt) == [OPEN_STATUS_VALUES]
        assert "ORDER BY job_offers.deadline ASC" in str(stmt.compile(dialect=postgresql.dialect()))

    @pytest.mark.asyncio
    async def test_statistics_database_error(self, session):
        session.execute.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        with pytest.raises(RepositoryException):
            await SQLAlchemyJobOfferRepository(session).employer_statistics(uuid.uuid4())
