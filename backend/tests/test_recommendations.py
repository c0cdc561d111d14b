"""
Tests for rule-based recommendations.

Run with: cd backend && pytest tests/test_recommendations.py -v
"""
import pytest

from insights.config import RecommendationThresholds
from insights.services.aggregator import FunnelMetrics
from insights.services.correlation import (
    ChecklistCorrelation,
    PrepCorrelation,
    ResearchCorrelation,
)
from insights.services.patterns import Bucket
from insights.services.recommendations import (
    RULES,
    CorrelationSummary,
    MetricSummary,
    PatternSummary,
    Recommendation,
    best_application_day,
    generate,
    low_application_volume,
    low_interview_rate,
    preparation_impact,
    strongest_industry,
)


def healthy_metrics(**overrides):
    funnel = FunnelMetrics(
        total=20, responded=8, response_rate=40.0, total_interviews=6,
        interview_conversion=30.0, total_offers=2, offer_conversion=10.0,
        interview_success_rate=33.3,
    )
    for key, value in overrides.items():
        setattr(funnel, key, value)
    return MetricSummary(funnel=funnel, applications_per_week=8.0)


@pytest.fixture
def thresholds():
    return RecommendationThresholds()


class TestGenerate:

    def test_empty_data_gives_single_fallback(self):
        result = generate(MetricSummary(), CorrelationSummary(), PatternSummary())

        assert len(result) == 1
        assert result[0].priority == "low"
        assert result[0].category == "general"

    def test_healthy_metrics_give_fallback(self):
        result = generate(healthy_metrics(), CorrelationSummary(), PatternSummary())
        assert [r.category for r in result] == ["general"]

    def test_sorted_by_priority(self):
        correlations = CorrelationSummary(
            prep=PrepCorrelation(success_rate_with_prep=70, success_rate_without_prep=20, with_prep_count=4),
            research=ResearchCorrelation(success_rate_with_research=60, researched_count=5, successes=3),
        )
        patterns = PatternSummary(
            best_days=[Bucket(key=1, label="Tuesday", count=8, successes=3, success_rate=37.5, eligible=True)],
        )
        metrics = healthy_metrics(interview_conversion=5.0, response_rate=10.0)

        result = generate(metrics, correlations, patterns)
        priorities = [r.priority for r in result]

        assert priorities == sorted(priorities, key={"high": 0, "medium": 1, "low": 2}.get)
        assert [r.category for r in result] == [
            "preparation", "targeting", "research", "quality", "timing",
        ]

    def test_limit(self):
        metrics = healthy_metrics(interview_conversion=5.0, response_rate=10.0, interview_success_rate=5.0)
        metrics.applications_per_week = 1.0

        result = generate(metrics, CorrelationSummary(), PatternSummary(), limit=2)
        assert len(result) == 2
        assert all(r.priority == "high" or r.priority == "medium" for r in result)

    def test_idempotent(self):
        args = (healthy_metrics(response_rate=5.0), CorrelationSummary(), PatternSummary())
        first = [r.to_dict() for r in generate(*args)]
        second = [r.to_dict() for r in generate(*args)]
        assert first == second

    def test_custom_rules(self):
        def always(metrics, correlations, patterns, t):
            return Recommendation("medium", "custom", "Custom", "Always fires")

        result = generate(MetricSummary(), CorrelationSummary(), PatternSummary(), rules=[always])
        assert [r.title for r in result] == ["Custom"]

    def test_every_default_rule_handles_empty_input(self, thresholds):
        for rule in RULES:
            assert rule(MetricSummary(), CorrelationSummary(), PatternSummary(), thresholds) is None


class TestRules:

    def test_preparation_needs_more_than_ten_points(self, thresholds):
        summary = CorrelationSummary(
            prep=PrepCorrelation(success_rate_with_prep=30, success_rate_without_prep=20, with_prep_count=3)
        )
        assert preparation_impact(healthy_metrics(), summary, PatternSummary(), thresholds) is None

        summary.prep.success_rate_with_prep = 30.5
        rec = preparation_impact(healthy_metrics(), summary, PatternSummary(), thresholds)
        assert rec.priority == "high"
        assert rec.metric == "30% with prep vs 20% without"

    def test_best_day_needs_five_applications(self, thresholds):
        small = Bucket(key=0, label="Monday", count=4, successes=4, success_rate=100, eligible=True)
        patterns = PatternSummary(best_days=[small])
        assert best_application_day(healthy_metrics(), CorrelationSummary(), patterns, thresholds) is None

        big = Bucket(key=0, label="Monday", count=5, successes=2, success_rate=40, eligible=True)
        rec = best_application_day(healthy_metrics(), CorrelationSummary(), PatternSummary(best_days=[big]), thresholds)
        assert rec.title == "Mondays Are Your Best Day"

    def test_best_day_skips_ineligible(self, thresholds):
        bucket = Bucket(key=0, label="Monday", count=9, successes=2, success_rate=22, eligible=False)
        patterns = PatternSummary(best_days=[bucket])
        assert best_application_day(healthy_metrics(), CorrelationSummary(), patterns, thresholds) is None

    def test_strongest_industry(self, thresholds):
        patterns = PatternSummary(industry_offers={"Fintech": 2, "Retail": 1})
        rec = strongest_industry(healthy_metrics(), CorrelationSummary(), patterns, thresholds)

        assert rec.title == "Strong Performance in Fintech"
        assert rec.priority == "medium"

        one_offer = PatternSummary(industry_offers={"Fintech": 1})
        assert strongest_industry(healthy_metrics(), CorrelationSummary(), one_offer, thresholds) is None

    def test_rate_rules_wait_for_data(self, thresholds):
        metrics = healthy_metrics(total=3, interview_conversion=0.0)
        assert low_interview_rate(metrics, CorrelationSummary(), PatternSummary(), thresholds) is None

        metrics = healthy_metrics(interview_conversion=10.0)
        assert low_interview_rate(metrics, CorrelationSummary(), PatternSummary(), thresholds).priority == "high"

    def test_low_volume(self, thresholds):
        metrics = healthy_metrics()
        metrics.applications_per_week = 2.0
        rec = low_application_volume(metrics, CorrelationSummary(), PatternSummary(), thresholds)
        assert rec.category == "volume"

    def test_checklist_and_mock_thresholds(self):
        correlations = CorrelationSummary(
            mock=PrepCorrelation(success_rate_with_prep=75, with_prep_count=3),
            checklist=ChecklistCorrelation(success_rate=60, high_completion_count=2, completion_threshold=80),
        )
        result = generate(healthy_metrics(), correlations, PatternSummary())
        assert [r.category for r in result] == ["practice"]
