"""
Correlation Analyzer - Does preparation precede good outcomes?

Joins preparatory activity to interview results and compares success
rates "with" vs "without" it.

Windowed join (time entries → interviews):
    An interview "has prep" when at least one qualifying time entry
    *starts* inside [interview_date - lookback_days, interview_date].
    The same function serves general preparation (7 days, interview_prep /
    research) and rehearsal (14 days, mock_interview); callers pass the
    window and activity set.

Id join (research/checklists → applications):
    Weak job_id references are matched by equality; dangling references
    simply never match.

Complexity Analysis:
    prep_correlation sorts qualifying start times once, then bisects per
    interview: O(m log m + n log m) for n interviews and m entries.
"""

import logging
from bisect import bisect_left
from dataclasses import dataclass
from datetime import timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Set

from insights.config import get_settings
from insights.schemas.records import (
    ApplicationRecord,
    ChecklistRecord,
    InterviewRecord,
    ResearchRecord,
    TimeEntry,
)
from insights.services.normalizer import (
    CanonicalStatus,
    classify_outcome,
    is_offer,
    positive_outcomes,
)
from insights.services.rates import safe_mean, safe_rate

logger = logging.getLogger(__name__)


@dataclass
class PrepCorrelation:
    """
    Success rates of completed interviews split by preparation.

    Attributes:
        success_rate_with_prep: % of prepared interviews with a positive outcome
        success_rate_without_prep: % of unprepared interviews with a positive outcome
        with_prep_count: Completed interviews that had prep in the window
        without_prep_count: Completed interviews that did not
        lookback_days: Window length used
    """
    success_rate_with_prep: float = 0.0
    success_rate_without_prep: float = 0.0
    with_prep_count: int = 0
    without_prep_count: int = 0
    successes_with_prep: int = 0
    successes_without_prep: int = 0
    lookback_days: int = 0

    @property
    def delta(self) -> float:
        return self.success_rate_with_prep - self.success_rate_without_prep

    def to_dict(self) -> dict:
        return {
            "success_rate_with_prep": round(self.success_rate_with_prep, 1),
            "success_rate_without_prep": round(self.success_rate_without_prep, 1),
            "delta": round(self.delta, 1),
            "with_prep_count": self.with_prep_count,
            "without_prep_count": self.without_prep_count,
            "successes_with_prep": self.successes_with_prep,
            "successes_without_prep": self.successes_without_prep,
            "lookback_days": self.lookback_days,
        }


@dataclass
class ResearchCorrelation:
    success_rate_with_research: float = 0.0
    researched_count: int = 0
    successes: int = 0

    def to_dict(self) -> dict:
        return {
            "success_rate_with_research": round(self.success_rate_with_research, 1),
            "researched_count": self.researched_count,
            "successes": self.successes,
        }


@dataclass
class ChecklistCorrelation:
    success_rate: float = 0.0
    high_completion_count: int = 0
    successes: int = 0
    average_completion: float = 0.0
    completion_threshold: float = 0.0

    def to_dict(self) -> dict:
        return {
            "success_rate": round(self.success_rate, 1),
            "high_completion_count": self.high_completion_count,
            "successes": self.successes,
            "average_completion": round(self.average_completion, 1),
            "completion_threshold": self.completion_threshold,
        }


def _activity_key(activity_type: Optional[str]) -> str:
    """'Interview Prep', 'interview-prep' and 'interview_prep' compare equal."""
    return (activity_type or "").strip().lower().replace("-", "_").replace(" ", "_")


def completed_status_set(statuses: Optional[Iterable[str]] = None) -> frozenset:
    """Lower-cased completed statuses, from settings when not given."""
    if statuses is None:
        statuses = get_settings().correlation.completed_interview_statuses
    return frozenset(s.strip().lower() for s in statuses)


def is_completed(interview: InterviewRecord, completed_statuses: Optional[Iterable[str]] = None) -> bool:
    """
    Completed interviews are the ones with a result worth counting.

    An explicit completed status qualifies; so does a missing status when an
    outcome has already been recorded.
    A frozenset from completed_status_set is used as-is.
    """
    if not isinstance(completed_statuses, frozenset):
        completed_statuses = completed_status_set(completed_statuses)
    status = (interview.status or "").strip().lower()
    if status:
        return status in completed_statuses
    return classify_outcome(interview.outcome) != CanonicalStatus.OTHER


def prep_correlation(
    interviews: Sequence[InterviewRecord],
    time_entries: Sequence[TimeEntry],
    lookback_days: Optional[int] = None,
    qualifying_activity_types: Optional[Iterable[str]] = None,
    positive: Optional[frozenset] = None,
) -> PrepCorrelation:
    """
    Compare interview success with and without preparation in a look-back window.

    Args:
        interviews: Interview records; only completed ones are considered
        time_entries: Time-tracking entries
        lookback_days: Window length before each interview (default: prep window)
        qualifying_activity_types: Activity types that count as preparation
        positive: Canonical outcomes counted as success (default: settings)

    Returns:
        PrepCorrelation; each subset's rate is 0 when that subset is empty

    Example:
        >>> result = prep_correlation(interviews, entries, 7, ["interview_prep"])
        >>> result.success_rate_with_prep
        50.0
    """
    settings = get_settings().correlation
    if lookback_days is None:
        lookback_days = settings.prep_lookback_days
    if qualifying_activity_types is None:
        qualifying_activity_types = settings.prep_activity_types
    if positive is None:
        positive = positive_outcomes()

    lookback_days = max(0, int(lookback_days))
    qualifying: Set[str] = {_activity_key(a) for a in qualifying_activity_types}
    window = timedelta(days=lookback_days)
    completed = completed_status_set(settings.completed_interview_statuses)

    starts = sorted(
        entry.started_at for entry in time_entries
        if _activity_key(entry.activity_type) in qualifying
    )

    with_prep = without_prep = 0
    wins_with = wins_without = 0

    for interview in interviews:
        if not is_completed(interview, completed):
            continue

        window_start = interview.interview_date - window
        idx = bisect_left(starts, window_start)
        has_prep = idx < len(starts) and starts[idx] <= interview.interview_date
        success = classify_outcome(interview.outcome) in positive

        if has_prep:
            with_prep += 1
            wins_with += int(success)
        else:
            without_prep += 1
            wins_without += int(success)

    logger.debug(
        f"Prep correlation ({lookback_days}d): {with_prep} prepared, {without_prep} unprepared"
    )

    return PrepCorrelation(
        success_rate_with_prep=safe_rate(wins_with, with_prep),
        success_rate_without_prep=safe_rate(wins_without, without_prep),
        with_prep_count=with_prep,
        without_prep_count=without_prep,
        successes_with_prep=wins_with,
        successes_without_prep=wins_without,
        lookback_days=lookback_days,
    )


def mock_correlation(
    interviews: Sequence[InterviewRecord],
    time_entries: Sequence[TimeEntry],
) -> PrepCorrelation:
    """Rehearsal preset: mock interviews in the two weeks before."""
    settings = get_settings().correlation
    return prep_correlation(
        interviews,
        time_entries,
        lookback_days=settings.mock_lookback_days,
        qualifying_activity_types=settings.mock_activity_types,
    )


def research_correlation(
    applications: Sequence[ApplicationRecord],
    research_records: Sequence[ResearchRecord],
) -> ResearchCorrelation:
    """
    Share of researched applications that reached an offer.

    An application is "researched" when any research record's job_id equals
    its id.
    """
    researched_ids = {r.job_id for r in research_records if r.job_id}
    researched = [app for app in applications if app.id in researched_ids]
    successes = sum(1 for app in researched if is_offer(app.status))

    return ResearchCorrelation(
        success_rate_with_research=safe_rate(successes, len(researched)),
        researched_count=len(researched),
        successes=successes,
    )


def checklist_correlation(
    applications: Sequence[ApplicationRecord],
    checklists: Sequence[ChecklistRecord],
    completion_threshold: Optional[float] = None,
) -> ChecklistCorrelation:
    """
    Offer rate of applications whose checklist was mostly completed.

    The first checklist recorded for a job is the one that counts. Missing
    completion percentages read as 0.
    """
    if completion_threshold is None:
        completion_threshold = get_settings().correlation.checklist_completion_threshold

    first_by_job: Dict[str, ChecklistRecord] = {}
    for checklist in checklists:
        if checklist.job_id and checklist.job_id not in first_by_job:
            first_by_job[checklist.job_id] = checklist

    thorough: List[ApplicationRecord] = []
    for app in applications:
        checklist = first_by_job.get(app.id)
        if checklist and (checklist.completion_percentage or 0) >= completion_threshold:
            thorough.append(app)

    successes = sum(1 for app in thorough if is_offer(app.status))

    return ChecklistCorrelation(
        success_rate=safe_rate(successes, len(thorough)),
        high_completion_count=len(thorough),
        successes=successes,
        average_completion=safe_mean(c.completion_percentage or 0 for c in checklists),
        completion_threshold=completion_threshold,
    )
