"""
Metric Aggregator - Funnel counts, rates and descriptive statistics

Computes the numbers the analytics dashboard leads with:

    Applications → Responses → Interviews → Offers

Funnel Rules:
    - active: applications without archived_at
    - responded: canonical status other than "applied"
    - response_rate: responded / total
    - interview_conversion: interviews / applications
    - offer_conversion: offers / applications
    - interview_success_rate: offers / interviews

All rates are percentages (0-100) and are 0 when the denominator is 0.
Average-time metrics are in days; an empty subset yields 0.

Complexity Analysis:
    - compute_funnel: O(a + i)
    - compute_average_times: O(a + i) (one id index over applications)
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Sequence

from insights.config import get_settings
from insights.schemas.records import (
    ApplicationRecord,
    InterviewRecord,
    PredictionRecord,
    TimeEntry,
)
from insights.services.normalizer import (
    OFFER_STATUSES,
    CanonicalStatus,
    classify_outcome,
    classify_status,
    is_offer,
)
from insights.services.rates import days_between, safe_mean, safe_rate

logger = logging.getLogger(__name__)


@dataclass
class FunnelMetrics:
    """
    Conversion funnel over a set of applications.

    Attributes:
        total: Number of applications
        active: Applications not archived
        responded: Applications whose status moved past "applied"
        response_rate: responded / total (0-100)
        total_interviews: Number of interview records
        upcoming_interviews: Interviews dated after `now`
        interview_conversion: total_interviews / total (0-100)
        total_offers: Applications with an offer or accepted status
        offer_conversion: total_offers / total (0-100)
        interview_success_rate: total_offers / total_interviews (0-100)
    """
    total: int = 0
    active: int = 0
    responded: int = 0
    response_rate: float = 0.0
    total_interviews: int = 0
    upcoming_interviews: int = 0
    interview_conversion: float = 0.0
    total_offers: int = 0
    offer_conversion: float = 0.0
    interview_success_rate: float = 0.0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "active": self.active,
            "responded": self.responded,
            "response_rate": round(self.response_rate, 1),
            "total_interviews": self.total_interviews,
            "upcoming_interviews": self.upcoming_interviews,
            "interview_conversion": round(self.interview_conversion, 1),
            "total_offers": self.total_offers,
            "offer_conversion": round(self.offer_conversion, 1),
            "interview_success_rate": round(self.interview_success_rate, 1),
        }


@dataclass
class AverageTimes:
    """Mean days between pipeline events; 0 when nothing qualifies."""
    avg_time_to_response: float = 0.0
    avg_time_to_interview: float = 0.0
    avg_time_to_offer: float = 0.0
    response_samples: int = 0
    interview_samples: int = 0
    offer_samples: int = 0

    def to_dict(self) -> dict:
        return {
            "avg_time_to_response": round(self.avg_time_to_response, 1),
            "avg_time_to_interview": round(self.avg_time_to_interview, 1),
            "avg_time_to_offer": round(self.avg_time_to_offer, 1),
            "response_samples": self.response_samples,
            "interview_samples": self.interview_samples,
            "offer_samples": self.offer_samples,
        }


@dataclass
class TimeInvestment:
    """How tracked hours relate to application output."""
    total_hours: float = 0.0
    hours_by_activity: Dict[str, float] = field(default_factory=dict)
    hours_per_application: float = 0.0
    applications_per_hour: float = 0.0
    open_entries: int = 0

    def to_dict(self) -> dict:
        return {
            "total_hours": round(self.total_hours, 1),
            "hours_by_activity": {k: round(v, 1) for k, v in self.hours_by_activity.items()},
            "hours_per_application": round(self.hours_per_application, 2),
            "applications_per_hour": round(self.applications_per_hour, 2),
            "open_entries": self.open_entries,
        }


@dataclass
class PredictionAccuracy:
    """Agreement between self-predictions and what actually happened."""
    evaluated: int = 0
    accurate: int = 0
    accuracy: float = 0.0
    average_probability: float = 0.0

    def to_dict(self) -> dict:
        return {
            "evaluated": self.evaluated,
            "accurate": self.accurate,
            "accuracy": round(self.accuracy, 1),
            "average_probability": round(self.average_probability, 1),
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def index_by_id(applications: Iterable[ApplicationRecord]) -> Dict[str, ApplicationRecord]:
    """id -> application, for resolving weak job_id references."""
    return {app.id: app for app in applications}


def compute_funnel(
    applications: Sequence[ApplicationRecord],
    interviews: Sequence[InterviewRecord],
    now: Optional[datetime] = None,
) -> FunnelMetrics:
    """
    Compute funnel counts and conversion rates.

    Args:
        applications: Application records
        interviews: Interview records (not required to reference an application)
        now: Reference time for "upcoming"; defaults to current UTC time

    Returns:
        FunnelMetrics; all zeros for empty input
    """
    now = now or _utcnow()

    total = len(applications)
    active = sum(1 for app in applications if app.archived_at is None)
    statuses = [classify_status(app.status) for app in applications]
    responded = sum(1 for s in statuses if s != CanonicalStatus.APPLIED)
    total_offers = sum(1 for s in statuses if s in OFFER_STATUSES)

    total_interviews = len(interviews)
    upcoming = sum(1 for i in interviews if i.interview_date > now)

    return FunnelMetrics(
        total=total,
        active=active,
        responded=responded,
        response_rate=safe_rate(responded, total),
        total_interviews=total_interviews,
        upcoming_interviews=upcoming,
        interview_conversion=safe_rate(total_interviews, total),
        total_offers=total_offers,
        offer_conversion=safe_rate(total_offers, total),
        interview_success_rate=safe_rate(total_offers, total_interviews),
    )


def compute_breakdown(
    records: Iterable[Any], key_fn: Callable[[Any], Optional[Hashable]]
) -> Dict[Hashable, int]:
    """
    Count records per key.

    Keys keep the order in which they were first seen. Falsy keys (None,
    empty string) are omitted rather than collected under a placeholder.
    """
    counts: Dict[Hashable, int] = {}
    for record in records:
        key = key_fn(record)
        if not key:
            continue
        counts[key] = counts.get(key, 0) + 1
    return counts


def sort_breakdown(breakdown: Dict[Hashable, int], limit: Optional[int] = None) -> Dict[Hashable, int]:
    """Re-order a breakdown by count descending; ties keep first-seen order."""
    items = sorted(breakdown.items(), key=lambda kv: -kv[1])
    if limit is not None:
        items = items[:limit]
    return dict(items)


def status_breakdown(applications: Iterable[ApplicationRecord]) -> Dict[str, int]:
    """Applications per canonical status; missing status counts as applied."""
    return compute_breakdown(applications, lambda app: classify_status(app.status).value)


def company_breakdown(applications: Iterable[ApplicationRecord]) -> Dict[str, int]:
    return compute_breakdown(applications, lambda app: (app.company_name or "").strip())


def industry_breakdown(applications: Iterable[ApplicationRecord]) -> Dict[str, int]:
    return compute_breakdown(applications, lambda app: (app.industry or "").strip())


def role_breakdown(applications: Iterable[ApplicationRecord]) -> Dict[str, int]:
    return compute_breakdown(applications, lambda app: (app.job_title or "").strip())


def stage_breakdown(interviews: Iterable[InterviewRecord]) -> Dict[str, int]:
    """Interviews per interview type (phone, technical, onsite...)."""
    return compute_breakdown(interviews, lambda i: (i.interview_type or "").strip().lower())


def monthly_breakdown(applications: Iterable[ApplicationRecord]) -> Dict[str, int]:
    """Applications per creation month, keyed YYYY-MM in chronological order."""
    counts = compute_breakdown(applications, lambda app: app.created_at.strftime("%Y-%m"))
    return dict(sorted(counts.items()))


def compute_average_times(
    applications: Sequence[ApplicationRecord],
    interviews: Sequence[InterviewRecord],
) -> AverageTimes:
    """
    Average days to first response, to interview and to offer.

    Subsets:
        response: status moved past "applied" and updated_at is set
        interview: interviews whose job_id resolves to an application
        offer: offered/accepted applications with updated_at set

    Negative spans (an update stamped before creation) are treated as
    malformed and left out.
    """
    by_id = index_by_id(applications)

    response_days: List[float] = []
    offer_days: List[float] = []
    for app in applications:
        status = classify_status(app.status)
        elapsed = days_between(app.created_at, app.updated_at)
        if elapsed is None or elapsed < 0:
            continue
        if status != CanonicalStatus.APPLIED:
            response_days.append(elapsed)
        if status in OFFER_STATUSES:
            offer_days.append(elapsed)

    interview_days: List[float] = []
    for interview in interviews:
        app = by_id.get(interview.job_id) if interview.job_id else None
        if app is None:
            continue
        elapsed = days_between(app.created_at, interview.interview_date)
        if elapsed is not None and elapsed >= 0:
            interview_days.append(elapsed)

    return AverageTimes(
        avg_time_to_response=safe_mean(response_days),
        avg_time_to_interview=safe_mean(interview_days),
        avg_time_to_offer=safe_mean(offer_days),
        response_samples=len(response_days),
        interview_samples=len(interview_days),
        offer_samples=len(offer_days),
    )


def time_investment(
    time_entries: Sequence[TimeEntry],
    applications: Sequence[ApplicationRecord],
) -> TimeInvestment:
    """
    Summarise tracked time against application output.

    Entries without an end time contribute zero hours and are counted in
    `open_entries` so the caller can nudge the user to stop the timer.
    """
    hours_by_activity: Dict[str, float] = defaultdict(float)
    open_entries = 0

    for entry in time_entries:
        if entry.ended_at is None:
            open_entries += 1
        activity = (entry.activity_type or "other").strip().lower() or "other"
        hours_by_activity[activity] += entry.duration_hours

    total_hours = sum(hours_by_activity.values())
    application_count = len(applications)

    return TimeInvestment(
        total_hours=total_hours,
        hours_by_activity=dict(sorted(hours_by_activity.items(), key=lambda kv: -kv[1])),
        hours_per_application=safe_rate(total_hours, application_count, scale=1),
        applications_per_hour=safe_rate(application_count, total_hours, scale=1),
        open_entries=open_entries,
    )


def prediction_accuracy(
    predictions: Sequence[PredictionRecord],
    interviews: Sequence[InterviewRecord] = (),
    threshold: Optional[float] = None,
    recent: int = 10,
) -> PredictionAccuracy:
    """
    Compare predicted success with the recorded outcome.

    A prediction is accurate when (probability >= threshold) agrees with the
    outcome being an offer. The outcome is the prediction's own
    `actual_outcome`, falling back to the linked interview's outcome.
    Predictions with no probability or no known outcome are not evaluated.

    Args:
        predictions: Prediction records (probabilities already in percent)
        interviews: Interviews used to resolve missing outcomes
        threshold: Percent cut-off; defaults to settings
        recent: How many of the newest predictions feed average_probability
    """
    if threshold is None:
        threshold = get_settings().prediction_positive_threshold

    outcomes_by_interview = {i.id: i.outcome for i in interviews if i.outcome}

    evaluated = 0
    accurate = 0
    for prediction in predictions:
        if prediction.overall_probability is None:
            continue
        outcome = prediction.actual_outcome or outcomes_by_interview.get(prediction.interview_id or "")
        if not outcome:
            continue
        evaluated += 1
        predicted_positive = prediction.overall_probability >= threshold
        actual_positive = classify_outcome(outcome) in OFFER_STATUSES
        if predicted_positive == actual_positive:
            accurate += 1

    newest = sorted(
        (p for p in predictions if p.overall_probability is not None),
        key=lambda p: (p.created_at, p.id),
        reverse=True,
    )[:recent]

    return PredictionAccuracy(
        evaluated=evaluated,
        accurate=accurate,
        accuracy=safe_rate(accurate, evaluated),
        average_probability=safe_mean(p.overall_probability for p in newest),
    )


def offers_by_dimension(
    applications: Iterable[ApplicationRecord],
    key_fn: Callable[[ApplicationRecord], Optional[str]],
    limit: int = 3,
) -> Dict[Hashable, int]:
    """Offer counts per key (e.g. industry), highest first."""
    offers = [app for app in applications if is_offer(app.status)]
    return sort_breakdown(compute_breakdown(offers, key_fn), limit=limit)
