"""
Recommendation Generator - Turn metrics into prioritized suggestions

Each rule is a small function that looks at the aggregated numbers and
returns one Recommendation or None. Rules never see each other's output,
so they can be added, removed or reordered freely.

Output Ordering:
    high → medium → low, stable within a priority (rule order).
    An empty result is replaced by a single low-priority "keep tracking"
    suggestion so callers never render an empty panel.

Rate-based rules ("low response rate"...) only fire once enough
applications exist for the rate to mean something.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from insights.config import RecommendationThresholds, get_settings
from insights.services.aggregator import FunnelMetrics
from insights.services.correlation import (
    ChecklistCorrelation,
    PrepCorrelation,
    ResearchCorrelation,
)
from insights.services.patterns import Bucket, ranked

logger = logging.getLogger(__name__)

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}


@dataclass
class Recommendation:
    priority: str
    category: str
    title: str
    description: str
    metric: str = ""

    def to_dict(self) -> dict:
        return {
            "priority": self.priority,
            "category": self.category,
            "title": self.title,
            "description": self.description,
            "metric": self.metric,
        }


@dataclass
class MetricSummary:
    funnel: FunnelMetrics = field(default_factory=FunnelMetrics)
    applications_per_week: float = 0.0


@dataclass
class CorrelationSummary:
    prep: PrepCorrelation = field(default_factory=PrepCorrelation)
    mock: PrepCorrelation = field(default_factory=PrepCorrelation)
    research: ResearchCorrelation = field(default_factory=ResearchCorrelation)
    checklist: ChecklistCorrelation = field(default_factory=ChecklistCorrelation)


@dataclass
class PatternSummary:
    best_days: List[Bucket] = field(default_factory=list)
    best_industries: List[Bucket] = field(default_factory=list)
    # industry -> offer count, highest first
    industry_offers: Dict[str, int] = field(default_factory=dict)


Rule = Callable[
    [MetricSummary, CorrelationSummary, PatternSummary, RecommendationThresholds],
    Optional[Recommendation],
]


def _enough_applications(metrics: MetricSummary, t: RecommendationThresholds) -> bool:
    return metrics.funnel.total >= t.min_applications_for_rate_rules


def preparation_impact(metrics, correlations, patterns, t) -> Optional[Recommendation]:
    prep = correlations.prep
    if prep.with_prep_count == 0 or prep.delta <= t.prep_delta:
        return None
    return Recommendation(
        priority="high",
        category="preparation",
        title="Preparation Shows Strong Impact",
        description=(
            f"Your success rate is {prep.delta:.1f}% higher when you prepare. "
            "Continue dedicating time to interview prep."
        ),
        metric=(
            f"{prep.success_rate_with_prep:.0f}% with prep vs "
            f"{prep.success_rate_without_prep:.0f}% without"
        ),
    )


def mock_interview_impact(metrics, correlations, patterns, t) -> Optional[Recommendation]:
    mock = correlations.mock
    if mock.success_rate_with_prep <= t.mock_success_rate or mock.with_prep_count < t.mock_min_interviews:
        return None
    return Recommendation(
        priority="high",
        category="practice",
        title="Mock Interviews Drive Success",
        description=(
            f"You achieve {mock.success_rate_with_prep:.0f}% success rate when practicing "
            "with mock interviews. Keep this as part of your routine."
        ),
        metric=f"{mock.success_rate_with_prep:.0f}% success with mocks",
    )


def research_pays_off(metrics, correlations, patterns, t) -> Optional[Recommendation]:
    research = correlations.research
    if (
        research.success_rate_with_research <= t.research_success_rate
        or research.researched_count < t.research_min_jobs
    ):
        return None
    return Recommendation(
        priority="medium",
        category="research",
        title="Company Research Pays Off",
        description=(
            f"{research.success_rate_with_research:.0f}% of researched companies lead to offers. "
            "Continue thorough company research."
        ),
        metric=f"{research.success_rate_with_research:.0f}% success with research",
    )


def checklist_thoroughness(metrics, correlations, patterns, t) -> Optional[Recommendation]:
    checklist = correlations.checklist
    if checklist.success_rate <= t.checklist_success_rate or checklist.high_completion_count < t.checklist_min_jobs:
        return None
    return Recommendation(
        priority="medium",
        category="checklist",
        title="Thorough Applications Win",
        description=(
            f"Completing {checklist.completion_threshold:.0f}%+ of application checklists "
            f"correlates with {checklist.success_rate:.0f}% success rate."
        ),
        metric=f"{checklist.success_rate:.0f}% success rate",
    )


def best_application_day(metrics, correlations, patterns, t) -> Optional[Recommendation]:
    days = ranked(patterns.best_days)
    if not days or days[0].count < t.best_day_min_count:
        return None
    best = days[0]
    return Recommendation(
        priority="low",
        category="timing",
        title=f"{best.label}s Are Your Best Day",
        description=(
            f"Your {best.label} applications have {best.success_rate:.0f}% success rate. "
            "Consider focusing applications on this day."
        ),
        metric=f"{best.success_rate:.0f}% on {best.label}s",
    )


def strongest_industry(metrics, correlations, patterns, t) -> Optional[Recommendation]:
    if not patterns.industry_offers:
        return None
    name, offers = next(iter(patterns.industry_offers.items()))
    if offers < t.industry_min_offers:
        return None
    return Recommendation(
        priority="medium",
        category="industry",
        title=f"Strong Performance in {name}",
        description=(
            f"You've secured {offers} offer(s) in {name}. "
            "Consider focusing more on this industry."
        ),
        metric=f"{offers} successful offer(s)",
    )


def low_interview_rate(metrics, correlations, patterns, t) -> Optional[Recommendation]:
    rate = metrics.funnel.interview_conversion
    if not _enough_applications(metrics, t) or rate >= t.low_interview_rate:
        return None
    return Recommendation(
        priority="high",
        category="targeting",
        title="Boost Your Interview Rate",
        description=(
            f"Your interview rate of {rate:.1f}% is below average. Focus on tailoring your "
            "resume to each job's keywords and requirements."
        ),
        metric=f"{rate:.1f}% of applications reach an interview",
    )


def low_response_rate(metrics, correlations, patterns, t) -> Optional[Recommendation]:
    rate = metrics.funnel.response_rate
    if not _enough_applications(metrics, t) or rate >= t.low_response_rate:
        return None
    return Recommendation(
        priority="medium",
        category="quality",
        title="Improve Application Quality",
        description=(
            f"Only {rate:.1f}% of your applications get a response. Research each company "
            "and tailor your materials before applying."
        ),
        metric=f"{rate:.1f}% response rate",
    )


def low_offer_conversion(metrics, correlations, patterns, t) -> Optional[Recommendation]:
    funnel = metrics.funnel
    if funnel.total_interviews == 0 or funnel.interview_success_rate >= t.low_offer_rate:
        return None
    return Recommendation(
        priority="medium",
        category="interviewing",
        title="Enhance Interview Preparation",
        description=(
            f"{funnel.interview_success_rate:.1f}% of your interviews turn into offers. "
            "Practice with mock interviews and prepare stories for common questions."
        ),
        metric=f"{funnel.interview_success_rate:.1f}% interview to offer",
    )


def low_application_volume(metrics, correlations, patterns, t) -> Optional[Recommendation]:
    pace = metrics.applications_per_week
    if metrics.funnel.total == 0 or pace >= t.low_volume_per_week:
        return None
    return Recommendation(
        priority="low",
        category="volume",
        title="Increase Application Volume",
        description=(
            f"You're sending {pace:.1f} applications per week. "
            "Aim for 5-10+ per week to accelerate your timeline."
        ),
        metric=f"{pace:.1f} applications/week",
    )


RULES: List[Rule] = [
    preparation_impact,
    mock_interview_impact,
    research_pays_off,
    checklist_thoroughness,
    best_application_day,
    strongest_industry,
    low_interview_rate,
    low_response_rate,
    low_offer_conversion,
    low_application_volume,
]


def fallback_recommendation() -> Recommendation:
    return Recommendation(
        priority="low",
        category="general",
        title="Keep Building Your Data",
        description=(
            "As you add more applications and track outcomes, patterns will emerge "
            "and recommendations will become more specific."
        ),
        metric="",
    )


def generate(
    metrics: MetricSummary,
    correlations: CorrelationSummary,
    patterns: PatternSummary,
    thresholds: Optional[RecommendationThresholds] = None,
    limit: Optional[int] = None,
    rules: Optional[List[Rule]] = None,
) -> List[Recommendation]:
    """
    Evaluate every rule and return the suggestions, most important first.

    Args:
        metrics: Funnel and pace
        correlations: Prep, mock, research and checklist correlations
        patterns: Ranked day/industry buckets and offers per industry
        thresholds: Rule thresholds; defaults to settings
        limit: Keep only the first N after sorting (None or 0 = all)
        rules: Rule functions to evaluate (default: RULES)

    Returns:
        Non-empty list of Recommendation
    """
    thresholds = thresholds or get_settings().recommendations
    rules = rules if rules is not None else RULES

    recommendations = []
    for rule in rules:
        recommendation = rule(metrics, correlations, patterns, thresholds)
        if recommendation is not None:
            logger.debug(f"Rule {rule.__name__} fired: {recommendation.title}")
            recommendations.append(recommendation)

    if not recommendations:
        recommendations = [fallback_recommendation()]

    recommendations.sort(key=lambda r: PRIORITY_ORDER.get(r.priority, len(PRIORITY_ORDER)))

    if limit:
        recommendations = recommendations[:limit]
    return recommendations
