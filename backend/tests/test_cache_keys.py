"""
Tests for cache key building
"""
import re
import uuid
from datetime import datetime, timedelta, timezone

from application.services.cache import (
    APPLICATIONS_NAMESPACE,
    JOB_OFFERS_NAMESPACE,
    ApplicationCacheKeys,
    JobOfferCacheKeys,
    build_cache_key,
    normalize_for_key,
)


class TestBuildCacheKey:
    """Key determinism"""

    def test_key_order_does_not_matter(self):
        a = build_cache_key("job-offers:list", {"status": "active", "page": 1, "nested": {"b": 2, "a": 1}})
        b = build_cache_key("job-offers:list", {"nested": {"a": 1, "b": 2}, "page": 1, "status": "active"})
        assert a == b

    def test_list_order_is_preserved(self):
        assert build_cache_key("ns", {"tags": [1, 2]}) != build_cache_key("ns", {"tags": [2, 1]})

    def test_namespace_only(self):
        assert build_cache_key("applications:") == "applications:"

    def test_canonical_json_suffix(self):
        assert build_cache_key("applications:detail", {"id": "x"}) == 'applications:detail:{"id":"x"}'

    def test_sets_are_sorted(self):
        assert build_cache_key("ns", {"s": {"b", "a"}}) == build_cache_key("ns", {"s": {"a", "b"}})


class TestNormalizeForKey:
    """Canonical forms of non-JSON values"""

    def test_datetime_is_utc_iso_with_milliseconds(self):
        value = datetime(2026, 1, 2, 5, 4, 5, 123456, tzinfo=timezone(timedelta(hours=2)))
        assert normalize_for_key(value) == "2026-01-02T03:04:05.123Z"

    def test_equal_instants_in_different_zones_match(self):
        utc = datetime(2026, 1, 2, 3, 0, tzinfo=timezone.utc)
        cairo = utc.astimezone(timezone(timedelta(hours=2)))
        assert normalize_for_key(utc) == normalize_for_key(cairo)

    def test_uuid_is_string(self):
        value = uuid.uuid4()
        assert normalize_for_key({"id": value}) == {"id": str(value)}

    def test_regex_with_flags(self):
        assert normalize_for_key(re.compile("eng.*", re.IGNORECASE)) == "/eng.*/i"

    def test_uuid_and_string_ids_share_a_key(self):
        value = uuid.uuid4()
        assert ApplicationCacheKeys.detail(value) == ApplicationCacheKeys.detail(str(value))


class TestNamespaces:
    """Every typed key lives under its namespace prefix"""

    def test_job_offer_keys(self):
        keys = [
            JobOfferCacheKeys.detail("1"),
            JobOfferCacheKeys.stats("e1"),
            JobOfferCacheKeys.expiring("e1"),
        ]
        assert all(key.startswith(JOB_OFFERS_NAMESPACE) for key in keys)

    def test_application_keys(self):
        keys = [
            ApplicationCacheKeys.by_job("j1", {"page": 1, "limit": 10}),
            ApplicationCacheKeys.by_user("u1", {"page": 1, "limit": 10}),
            ApplicationCacheKeys.detail("a1"),
        ]
        assert all(key.startswith(APPLICATIONS_NAMESPACE) for key in keys)

    def test_expiring_defaults_to_seven_days(self):
        assert JobOfferCacheKeys.expiring("e1") == JobOfferCacheKeys.expiring("e1", 7)
