"""
Tests for funnel metrics, breakdowns and descriptive statistics.

Run with: cd backend && pytest tests/test_aggregator.py -v
"""
import math
from datetime import timedelta

import pytest

from insights.services.aggregator import (
    compute_average_times,
    compute_breakdown,
    compute_funnel,
    monthly_breakdown,
    offers_by_dimension,
    prediction_accuracy,
    sort_breakdown,
    stage_breakdown,
    status_breakdown,
    time_investment,
)


class TestComputeFunnel:

    def test_empty_input_is_all_zero(self, now):
        funnel = compute_funnel([], [], now=now)

        for value in funnel.to_dict().values():
            assert value == 0
            assert math.isfinite(value)

    def test_counts_and_rates(self, now, make_application, make_interview):
        apps = [
            make_application(status="applied"),
            make_application(status="applied"),
            make_application(status="interviewing"),
            make_application(status="Offer Received"),
            make_application(status="rejected", archived_at=now - timedelta(days=1)),
        ]
        interviews = [
            make_interview(now - timedelta(days=2), job_id=apps[2].id),
            make_interview(now + timedelta(days=3), job_id=apps[3].id, status="scheduled"),
        ]

        funnel = compute_funnel(apps, interviews, now=now)

        assert funnel.total == 5
        assert funnel.active == 4
        assert funnel.responded == 3
        assert funnel.response_rate == pytest.approx(60.0)
        assert funnel.total_interviews == 2
        assert funnel.upcoming_interviews == 1
        assert funnel.interview_conversion == pytest.approx(40.0)
        assert funnel.total_offers == 1
        assert funnel.offer_conversion == pytest.approx(20.0)
        assert funnel.interview_success_rate == pytest.approx(50.0)

    def test_interviews_without_applications(self, now, make_interview):
        """Orphan interviews still count but cannot divide by zero applications."""
        funnel = compute_funnel([], [make_interview(now)], now=now)

        assert funnel.total_interviews == 1
        assert funnel.interview_conversion == 0.0
        assert funnel.interview_success_rate == 0.0

    def test_accepted_counts_as_offer(self, now, make_application):
        funnel = compute_funnel([make_application(status="accepted")], [], now=now)
        assert funnel.total_offers == 1

    def test_idempotent(self, now, make_application, make_interview):
        apps = [make_application(status="offered"), make_application()]
        interviews = [make_interview(now - timedelta(days=1))]

        first = compute_funnel(apps, interviews, now=now).to_dict()
        second = compute_funnel(apps, interviews, now=now).to_dict()
        assert first == second


class TestBreakdowns:

    def test_falsy_keys_omitted(self, make_application):
        apps = [
            make_application(industry="Tech"),
            make_application(industry=""),
            make_application(industry=None),
            make_application(industry="Tech"),
        ]
        assert compute_breakdown(apps, lambda a: a.industry) == {"Tech": 2}

    def test_status_breakdown_uses_canonical_names(self, make_application):
        apps = [
            make_application(status="Phone Screen"),
            make_application(status="interviewing"),
            make_application(status=None),
        ]
        assert status_breakdown(apps) == {"interviewing": 2, "applied": 1}

    def test_sort_breakdown_descending_with_limit(self):
        assert sort_breakdown({"a": 1, "b": 3, "c": 2, "d": 3}, limit=2) == {"b": 3, "d": 3}

    def test_monthly_breakdown_chronological(self, make_application):
        apps = [
            make_application(days_ago=3),
            make_application(days_ago=40),
            make_application(days_ago=5),
        ]
        assert monthly_breakdown(apps) == {"2024-05": 1, "2024-06": 2}

    def test_stage_breakdown(self, now, make_interview):
        interviews = [
            make_interview(now, interview_type="Technical"),
            make_interview(now, interview_type="technical"),
            make_interview(now, interview_type=None),
        ]
        assert stage_breakdown(interviews) == {"technical": 2}

    def test_offers_by_dimension(self, make_application):
        apps = [
            make_application(status="offered", industry="Finance"),
            make_application(status="offered", industry="Tech"),
            make_application(status="accepted", industry="Tech"),
            make_application(status="rejected", industry="Retail"),
        ]
        assert offers_by_dimension(apps, lambda a: a.industry) == {"Tech": 2, "Finance": 1}


class TestAverageTimes:

    def test_empty_is_zero(self):
        times = compute_average_times([], [])
        assert times.avg_time_to_response == 0.0
        assert times.avg_time_to_interview == 0.0
        assert times.avg_time_to_offer == 0.0

    def test_averages(self, now, make_application, make_interview):
        responded = make_application(days_ago=20, updated_days_ago=16, status="interviewing")
        offered = make_application(days_ago=30, updated_days_ago=10, status="offered")
        untouched = make_application(days_ago=5, updated_days_ago=1, status="applied")
        interviews = [
            make_interview(now - timedelta(days=14), job_id=responded.id),
            make_interview(now - timedelta(days=1), job_id="missing-job"),
        ]

        times = compute_average_times([responded, offered, untouched], interviews)

        assert times.avg_time_to_response == pytest.approx(12.0)   # (4 + 20) / 2
        assert times.avg_time_to_offer == pytest.approx(20.0)
        assert times.avg_time_to_interview == pytest.approx(6.0)
        assert times.interview_samples == 1

    def test_negative_spans_dropped(self, make_application):
        app = make_application(days_ago=5, updated_days_ago=8, status="responded")
        times = compute_average_times([app], [])
        assert times.response_samples == 0
        assert times.avg_time_to_response == 0.0


class TestTimeInvestment:

    def test_hours_by_activity(self, now, make_application, make_time_entry):
        entries = [
            make_time_entry(now - timedelta(days=1), hours=2, activity_type="Research"),
            make_time_entry(now - timedelta(days=2), hours=1, activity_type="research"),
            make_time_entry(now - timedelta(days=3), hours=1, activity_type="applications"),
            make_time_entry(now - timedelta(hours=1), hours=None, activity_type="networking"),
        ]
        apps = [make_application(), make_application()]

        result = time_investment(entries, apps)

        assert result.total_hours == pytest.approx(4.0)
        assert result.hours_by_activity["research"] == pytest.approx(3.0)
        assert list(result.hours_by_activity)[0] == "research"
        assert result.hours_per_application == pytest.approx(2.0)
        assert result.applications_per_hour == pytest.approx(0.5)
        assert result.open_entries == 1

    def test_no_hours_no_division(self, make_application):
        result = time_investment([], [make_application()])
        assert result.applications_per_hour == 0.0
        assert result.hours_per_application == 0.0


class TestPredictionAccuracy:

    def test_accuracy_against_outcomes(self, now, make_prediction, make_interview):
        interview = make_interview(now, outcome="offered", id="int-x")
        predictions = [
            make_prediction(80, outcome="offer"),          # predicted yes, got offer
            make_prediction(0.9, outcome="rejected"),      # predicted yes, rejected
            make_prediction(30, outcome="rejected"),       # predicted no, rejected
            make_prediction(70, interview_id="int-x"),     # outcome via interview
            make_prediction(50),                           # no outcome yet
            make_prediction(None, outcome="offer"),        # no probability
        ]

        result = prediction_accuracy(predictions, [interview])

        assert result.evaluated == 4
        assert result.accurate == 3
        assert result.accuracy == pytest.approx(75.0)

    def test_average_probability_uses_recent(self, make_prediction):
        predictions = [make_prediction(10, days_ago=100)] + [
            make_prediction(50, days_ago=i) for i in range(1, 11)
        ]
        result = prediction_accuracy(predictions)
        assert result.average_probability == pytest.approx(50.0)

    def test_empty(self):
        result = prediction_accuracy([])
        assert result.evaluated == 0
        assert result.accuracy == 0.0


class TestNegatedStatuses:

    def test_no_response_is_not_a_response(self, now, make_application):
        apps = [make_application(status="no_response"), make_application(status="Awaiting response")]
        funnel = compute_funnel(apps, [], now=now)

        assert funnel.responded == 0
        assert funnel.response_rate == 0.0
        assert status_breakdown(apps) == {"applied": 2}
