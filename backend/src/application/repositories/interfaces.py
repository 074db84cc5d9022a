"""
Repository Interfaces (Abstract Base Classes)
Define contracts for data access, caching and messaging without implementation details
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence
from uuid import UUID

from domain.entities import Application, JobOffer


class IJobOfferRepository(ABC):
    """Job offer repository interface"""

    @abstractmethod
    async def get_by_id(self, job_offer_id: UUID) -> Optional[JobOffer]:
        """Get job offer by ID"""
        pass

    @abstractmethod
    async def exists(self, job_offer_id: UUID) -> bool:
        """Check if job offer exists"""
        pass

    @abstractmethod
    async def save(self, job_offer: JobOffer) -> JobOffer:
        """Insert or update a job offer, expiring it if its deadline has passed"""
        pass

    @abstractmethod
    async def increment_applications_count(self, job_offer_id: UUID) -> JobOffer:
        """
        Atomically add one to applications_count of an open job offer

        Raises:
            ResourceNotFoundException: job offer does not exist
            InactiveJobOfferException: job offer is not open
        """
        pass

    @abstractmethod
    async def bulk_expire(self, now: datetime) -> int:
        """Mark every open job offer whose deadline is before `now` as expired"""
        pass

    @abstractmethod
    async def employer_statistics(self, employer_id: UUID) -> Dict[str, int]:
        """
        Count an employer's job offers per status

        Returns total, active, closed, expired, draft and totalApplications;
        all zero when the employer has no offers.
        """
        pass

    @abstractmethod
    async def list_expiring(self, employer_id: UUID, now: datetime, until: datetime) -> List[JobOffer]:
        """Open job offers of an employer with deadline in [now, until], soonest first"""
        pass


class IApplicationRepository(ABC):
    """Application repository interface"""

    @abstractmethod
    async def get_by_id(self, application_id: UUID) -> Optional[Application]:
        """Get application by ID"""
        pass

    @abstractmethod
    async def get_by_job_and_user(self, job_offer_id: UUID, user_id: UUID) -> Optional[Application]:
        """Get the application a user submitted to a job offer"""
        pass

    @abstractmethod
    async def create(self, application: Application) -> Application:
        """
        Create new application

        Raises:
            DuplicateResourceException: (job_offer_id, user_id) already applied
        """
        pass

    @abstractmethod
    async def update(self, application_id: UUID, **fields: Any) -> Application:
        """Update fields of an existing application"""
        pass

    @abstractmethod
    async def delete(self, application_id: UUID) -> bool:
        """Delete application, False if it did not exist"""
        pass

    @abstractmethod
    async def list_by_job(self, job_offer_id: UUID, limit: int = 10, offset: int = 0) -> List[Application]:
        """Applications for a job offer, newest first"""
        pass

    @abstractmethod
    async def count_by_job(self, job_offer_id: UUID) -> int:
        """Number of applications for a job offer"""
        pass

    @abstractmethod
    async def list_by_user(self, user_id: UUID, limit: int = 10, offset: int = 0) -> List[Application]:
        """Applications submitted by a user, newest first"""
        pass

    @abstractmethod
    async def count_by_user(self, user_id: UUID) -> int:
        """Number of applications submitted by a user"""
        pass


class ICacheStore(ABC):
    """Key/value cache with per-entry TTL"""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Get value, None on miss"""
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int) -> None:
        """Set value with TTL in seconds"""
        pass

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a single key"""
        pass

    @abstractmethod
    async def delete_many(self, keys: Sequence[str]) -> None:
        """Delete several keys"""
        pass

    @abstractmethod
    async def delete_all(self) -> None:
        """Drop every entry"""
        pass

    @abstractmethod
    async def list_keys(self, prefix: str = "") -> Optional[List[str]]:
        """Enumerate keys starting with prefix, None when enumeration is unsupported"""
        pass


EventHandler = Callable[[Dict[str, Any]], Awaitable[None]]


class IEventBus(ABC):
    """At-least-once publish/subscribe channel"""

    @abstractmethod
    async def publish(self, topic: str, payload: Dict[str, Any]) -> str:
        """Publish a JSON-serializable payload, returning the message id"""
        pass

    @abstractmethod
    def subscribe(self, topic: str, handler: EventHandler) -> None:
        """Register a handler; a message is acknowledged only if the handler returns"""
        pass
