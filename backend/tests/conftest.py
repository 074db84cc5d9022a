"""
Shared fixtures
"""
import uuid

import pytest

from application.services.events import SubmitApplicationEvent
from fakes import (
    FakeApplicationRepository,
    FakeCache,
    FakeJobOfferRepository,
    RecordingEventBus,
    make_job_offer,
    make_profile,
)


@pytest.fixture
def job_offer():
    return make_job_offer()


@pytest.fixture
def job_offer_repo(job_offer):
    return FakeJobOfferRepository(job_offer)


@pytest.fixture
def application_repo():
    return FakeApplicationRepository()


@pytest.fixture
def cache():
    return FakeCache()


@pytest.fixture
def event_bus():
    return RecordingEventBus()


@pytest.fixture
def submit_event(job_offer):
    return SubmitApplicationEvent(
        job_offer_id=job_offer.id,
        user_id=uuid.uuid4(),
        employer_email="hr@acme.example",
        user_snap=make_profile(),
    )
