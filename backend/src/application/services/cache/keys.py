"""
Cache Key Builder
Deterministic, order-independent cache keys from a namespace and a payload
"""
import json
import re
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional
from uuid import UUID

from pydantic import BaseModel


KEY_SEPARATOR = ":"

JOB_OFFERS_NAMESPACE = "job-offers:"
APPLICATIONS_NAMESPACE = "applications:"

_REGEX_FLAGS = (
    (re.IGNORECASE, "i"),
    (re.MULTILINE, "m"),
    (re.DOTALL, "s"),
    (re.VERBOSE, "x"),
)


def _pattern_to_str(pattern: re.Pattern) -> str:
    flags = "".join(letter for flag, letter in _REGEX_FLAGS if pattern.flags & flag)
    return f"/{pattern.pattern}/{flags}"


def _datetime_to_str(value: datetime) -> str:
    # Naive datetimes are taken as UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def normalize_for_key(value: Any) -> Any:
    """
    Recursively normalize a payload so equal payloads serialize identically

    Mappings are rebuilt with sorted keys, sequences keep their order,
    sets are sorted, and dates, ids, patterns and enums become canonical
    strings.
    """
    if isinstance(value, re.Pattern):
        return _pattern_to_str(value)

    if isinstance(value, datetime):
        return _datetime_to_str(value)

    if isinstance(value, date):
        return value.isoformat()

    if isinstance(value, UUID):
        return str(value)

    if isinstance(value, Enum):
        return normalize_for_key(value.value)

    if isinstance(value, BaseModel):
        return normalize_for_key(value.model_dump(mode="json", exclude_none=True))

    if isinstance(value, Mapping):
        return {str(k): normalize_for_key(value[k]) for k in sorted(value, key=str)}

    if isinstance(value, (list, tuple)):
        return [normalize_for_key(item) for item in value]

    if isinstance(value, (set, frozenset)):
        items = [normalize_for_key(item) for item in value]
        return sorted(items, key=lambda item: json.dumps(item, sort_keys=True, default=str))

    return value


def serialize(value: Any) -> str:
    """Canonical JSON of the normalized payload"""
    return json.dumps(
        normalize_for_key(value),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def build_cache_key(namespace: str, payload: Any = None) -> str:
    """Build `<namespace>:<canonical json>`, or just the namespace without a payload"""
    if payload is None:
        return namespace
    return f"{namespace}{KEY_SEPARATOR}{serialize(payload)}"


class JobOfferCacheKeys:
    """Keys under the job-offers: namespace"""

    @staticmethod
    def detail(job_offer_id: Any) -> str:
        return build_cache_key("job-offers:detail", {"id": job_offer_id})

    @staticmethod
    def stats(employer_id: Any) -> str:
        return build_cache_key("job-offers:stats", {"employerId": employer_id})

    @staticmethod
    def expiring(employer_id: Any, days: Optional[int] = None) -> str:
        return build_cache_key(
            "job-offers:expiring",
            {"employerId": employer_id, "days": days if days is not None else 7},
        )


class ApplicationCacheKeys:
    """Keys under the applications: namespace"""

    @staticmethod
    def by_job(job_offer_id: Any, pagination: Any) -> str:
        return build_cache_key("applications:job", {"jobOfferId": job_offer_id, "pagination": pagination})

    @staticmethod
    def by_user(user_id: Any, pagination: Any) -> str:
        return build_cache_key("applications:user", {"userId": user_id, "pagination": pagination})

    @staticmethod
    def detail(application_id: Any) -> str:
        return build_cache_key("applications:detail", {"id": application_id})
