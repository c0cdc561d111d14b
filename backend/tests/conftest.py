"""
Shared fixtures for analytics tests.

Every test runs against a fixed clock so "upcoming", pace and forecast
dates are deterministic.
"""
from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from insights.schemas.records import (
    ApplicationRecord,
    ChecklistRecord,
    InterviewRecord,
    PredictionRecord,
    ResearchRecord,
    TimeEntry,
)

# A Friday
FIXED_NOW = datetime(2024, 6, 14, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return FIXED_NOW


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings and the classifier are cached; tests that patch env need a fresh copy."""
    from insights.config import get_settings
    from insights.services.normalizer import get_default_classifier

    get_settings.cache_clear()
    get_default_classifier.cache_clear()
    yield
    get_settings.cache_clear()
    get_default_classifier.cache_clear()


@pytest.fixture
def make_application():
    ids = count(1)

    def _make(days_ago=10, status="applied", updated_days_ago=None, **fields):
        created = FIXED_NOW - timedelta(days=days_ago)
        updated = FIXED_NOW - timedelta(days=updated_days_ago) if updated_days_ago is not None else None
        fields.setdefault("id", f"app-{next(ids)}")
        fields.setdefault("company_name", "Acme")
        fields.setdefault("job_title", "Engineer")
        return ApplicationRecord(
            created_at=created, updated_at=updated, status=status, **fields
        )

    return _make


@pytest.fixture
def make_interview():
    ids = count(1)

    def _make(when, outcome=None, status="completed", **fields):
        fields.setdefault("id", f"int-{next(ids)}")
        return InterviewRecord(interview_date=when, outcome=outcome, status=status, **fields)

    return _make


@pytest.fixture
def make_time_entry():
    ids = count(1)

    def _make(start, hours=1.0, activity_type="interview_prep", **fields):
        fields.setdefault("id", f"time-{next(ids)}")
        end = start + timedelta(hours=hours) if hours is not None else None
        return TimeEntry(started_at=start, ended_at=end, activity_type=activity_type, **fields)

    return _make


@pytest.fixture
def make_prediction():
    ids = count(1)

    def _make(probability, outcome=None, days_ago=1, **fields):
        fields.setdefault("id", f"pred-{next(ids)}")
        return PredictionRecord(
            created_at=FIXED_NOW - timedelta(days=days_ago),
            overall_probability=probability,
            actual_outcome=outcome,
            **fields,
        )

    return _make


@pytest.fixture
def make_research():
    ids = count(1)

    def _make(job_id):
        return ResearchRecord(id=f"res-{next(ids)}", job_id=job_id)

    return _make


@pytest.fixture
def make_checklist():
    ids = count(1)

    def _make(job_id, completion):
        return ChecklistRecord(id=f"chk-{next(ids)}", job_id=job_id, completion_percentage=completion)

    return _make
