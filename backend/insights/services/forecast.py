"""
Forecast Engine - When will the next milestone happen?

Projects elapsed time to three ordered milestones:

    First Response → First Interview → Job Offer

Algorithm:
    1. activity_multiplier from current pace (applications per week):
       >= 10 → 0.8 (parallel pipelines move faster), < 5 → 1.3, else 1.0
    2. estimated_days = round(historical_average * multiplier); a missing
       or non-positive average falls back to 7 / 14 / 30 days
    3. confidence per stage is a step function of that stage's rate:
       response  >30% → 85, >15% → 70, else 60
       interview >20% → 80, >10% → 65, else 55
       offer     >30% → 75, >15% → 60, else 50
    4. overall_confidence = round(mean of the three)

The thresholds are behavioural heuristics, not fitted parameters. They
live in ForecastSettings so they can be tuned without code changes.

A user with no history still gets three stages built from the defaults.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from insights.config import ForecastSettings, get_settings
from insights.schemas.records import ApplicationRecord, InterviewRecord
from insights.services.aggregator import compute_average_times, compute_funnel
from insights.services.rates import round_half_up

logger = logging.getLogger(__name__)

STAGE_NAMES = ("First Response", "First Interview", "Job Offer")


@dataclass
class HistoricalAverages:
    """Observed mean days per stage; None means no history."""
    to_response: Optional[float] = None
    to_interview: Optional[float] = None
    to_offer: Optional[float] = None


@dataclass
class ConversionRates:
    """Stage conversion rates in percent."""
    response: float = 0.0
    interview: float = 0.0
    offer: float = 0.0


@dataclass
class Stage:
    stage: str
    estimated_days: int
    confidence: int
    completion_date: datetime
    factors: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "stage": self.stage,
            "estimated_days": self.estimated_days,
            "confidence": self.confidence,
            "completion_date": self.completion_date.isoformat(),
            "factors": self.factors,
        }


@dataclass
class Forecast:
    stages: List[Stage]
    overall_confidence: int
    activity_level: str
    activity_multiplier: float
    applications_per_week: float
    notes: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "stages": [s.to_dict() for s in self.stages],
            "overall_confidence": self.overall_confidence,
            "activity_level": self.activity_level,
            "activity_multiplier": self.activity_multiplier,
            "applications_per_week": round(self.applications_per_week, 1),
            "notes": self.notes,
        }


@dataclass
class ForecastInputs:
    """Everything forecast_milestones needs, derived from records."""
    historical_averages: HistoricalAverages
    applications_per_week: float
    conversion_rates: ConversionRates


def activity_multiplier(applications_per_week: float, config: Optional[ForecastSettings] = None) -> float:
    config = config or get_settings().forecast
    if applications_per_week >= config.high_activity_per_week:
        return config.high_activity_multiplier
    if applications_per_week < config.low_activity_per_week:
        return config.low_activity_multiplier
    return 1.0


def activity_level(applications_per_week: float, config: Optional[ForecastSettings] = None) -> str:
    config = config or get_settings().forecast
    if applications_per_week >= config.high_activity_per_week:
        return "high"
    if applications_per_week >= config.low_activity_per_week:
        return "moderate"
    return "low"


def stage_confidence(rate: float, tiers: Sequence[Sequence[float]]) -> int:
    """
    Step function: first tier whose threshold the rate strictly exceeds.

    The last tier is the floor and applies when nothing else matched.
    """
    for threshold, confidence in tiers[:-1]:
        if rate > threshold:
            return int(confidence)
    return int(tiers[-1][1])


def _resolve_average(value: Optional[float], default: float) -> float:
    if value is None or value <= 0:
        return default
    return value


def forecast_milestones(
    historical_averages: HistoricalAverages,
    applications_per_week: float,
    conversion_rates: ConversionRates,
    now: Optional[datetime] = None,
    config: Optional[ForecastSettings] = None,
) -> Forecast:
    """
    Project days to each milestone from history and current pace.

    Args:
        historical_averages: Mean days per stage (None = no history)
        applications_per_week: Current application pace
        conversion_rates: Response / interview / offer rates in percent
        now: Base for completion dates; defaults to current UTC time
        config: Threshold overrides; defaults to settings

    Returns:
        Forecast with exactly three stages

    Example:
        >>> f = forecast_milestones(HistoricalAverages(), 0, ConversionRates())
        >>> [s.estimated_days for s in f.stages]
        [9, 18, 39]
    """
    config = config or get_settings().forecast
    now = now or datetime.now(timezone.utc)
    pace = max(0.0, applications_per_week or 0.0)
    multiplier = activity_multiplier(pace, config)

    averages = [
        _resolve_average(historical_averages.to_response, config.default_days_to_response),
        _resolve_average(historical_averages.to_interview, config.default_days_to_interview),
        _resolve_average(historical_averages.to_offer, config.default_days_to_offer),
    ]
    rates = [conversion_rates.response, conversion_rates.interview, conversion_rates.offer]
    tiers = [config.response_confidence, config.interview_confidence, config.offer_confidence]
    rate_labels = ["Response rate", "Interview rate", "Offer rate"]

    stages = []
    for name, average, rate, stage_tiers, rate_label in zip(STAGE_NAMES, averages, rates, tiers, rate_labels):
        days = round_half_up(average * multiplier)
        stages.append(Stage(
            stage=name,
            estimated_days=days,
            confidence=stage_confidence(rate, stage_tiers),
            completion_date=now + timedelta(days=days),
            factors=[
                f"{rate_label}: {rate:.1f}%",
                f"Applications per week: {pace:.1f}",
                f"Historical avg: {average:.0f} days",
            ],
        ))

    overall = round_half_up(sum(s.confidence for s in stages) / len(stages))

    return Forecast(
        stages=stages,
        overall_confidence=overall,
        activity_level=activity_level(pace, config),
        activity_multiplier=multiplier,
        applications_per_week=pace,
        notes=forecast_notes(pace, conversion_rates),
    )


def forecast_notes(applications_per_week: float, rates: ConversionRates) -> List[str]:
    """Pacing advice shown next to the timeline."""
    thresholds = get_settings().recommendations
    notes = []
    if applications_per_week < thresholds.low_volume_per_week:
        notes.append("Increase application volume to 5-10+ per week to accelerate timeline")
    if rates.response < thresholds.low_response_rate:
        notes.append("Improve application quality - current response rate is below average")
    if rates.interview < thresholds.low_interview_rate:
        notes.append("Focus on better role targeting and resume optimization")
    if rates.offer < thresholds.low_offer_rate:
        notes.append("Enhance interview preparation to improve offer conversion")
    return notes


def applications_per_week(
    applications: Sequence[ApplicationRecord],
    now: Optional[datetime] = None,
    window_days: Optional[int] = None,
) -> float:
    """Recent pace: applications created in the window, scaled to a week."""
    now = now or datetime.now(timezone.utc)
    if window_days is None:
        window_days = get_settings().forecast.pace_window_days
    if window_days <= 0:
        return 0.0
    cutoff = now - timedelta(days=window_days)
    recent = sum(1 for app in applications if cutoff <= app.created_at <= now)
    return recent / window_days * 7


def forecast_inputs(
    applications: Sequence[ApplicationRecord],
    interviews: Sequence[InterviewRecord],
    now: Optional[datetime] = None,
    window_days: Optional[int] = None,
) -> ForecastInputs:
    """
    Derive pace, conversion rates and stage averages from records.

    With no applications the configured default rates (20 / 15 / 25%) stand
    in, and with no interviews the offer rate does too, so a new user is
    not told their odds are zero.
    """
    config = get_settings().forecast
    funnel = compute_funnel(applications, interviews, now=now)
    times = compute_average_times(applications, interviews)

    if funnel.total:
        response = funnel.response_rate
        interview = funnel.interview_conversion
    else:
        response = config.default_response_rate
        interview = config.default_interview_rate
    offer = funnel.interview_success_rate if funnel.total_interviews else config.default_offer_rate

    return ForecastInputs(
        historical_averages=HistoricalAverages(
            to_response=times.avg_time_to_response if times.response_samples else None,
            to_interview=times.avg_time_to_interview if times.interview_samples else None,
            to_offer=times.avg_time_to_offer if times.offer_samples else None,
        ),
        applications_per_week=applications_per_week(applications, now=now, window_days=window_days),
        conversion_rates=ConversionRates(
            response=response,
            interview=interview,
            offer=offer,
        ),
    )


def forecast_from_records(
    applications: Sequence[ApplicationRecord],
    interviews: Sequence[InterviewRecord],
    now: Optional[datetime] = None,
) -> Forecast:
    inputs = forecast_inputs(applications, interviews, now=now)
    logger.debug(
        f"Forecast inputs: pace={inputs.applications_per_week:.1f}/wk, "
        f"rates={inputs.conversion_rates}"
    )
    return forecast_milestones(
        inputs.historical_averages,
        inputs.applications_per_week,
        inputs.conversion_rates,
        now=now,
    )
