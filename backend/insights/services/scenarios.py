"""
Scenario Simulator - Side-by-side "what if" strategies

Given baseline funnel rates and an application cadence, projects
time-to-offer and offers over a fixed horizon for alternative strategies.
A strategy is a volume multiplier plus one multiplier per funnel rate.

Scenario Math:
    rate'      = min(100, base_rate * multiplier)         per stage
    overall    = response' * interview' * offer' / 100^3
    apps       = 1 / overall        (1000 when overall == 0)
    days       = round(min(apps / per_week * 7, 365))
    offers     = max(0, round(per_week * 90/7 * overall))
    confidence = 50 + 15 per rate inside its realistic band
                    + 5 when per_week is inside its band, capped at 95

Rounding is half-up throughout (187.5 → 188), matching the planner UI.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from insights.config import ScenarioSettings, get_settings
from insights.services.rates import round_half_up

logger = logging.getLogger(__name__)


@dataclass
class FunnelRates:
    """Response, interview and offer rates in percent (or their multipliers)."""
    response: float
    interview: float
    offer: float


@dataclass
class Strategy:
    name: str
    volume_multiplier: float
    multipliers: FunnelRates


@dataclass
class Scenario:
    """
    Projected outcome of one strategy.

    Attributes:
        name: Strategy name
        applications_per_week: Cadence used (rounded to 0.1)
        response_rate: Adjusted response rate, capped at 100 (rounded to 0.1)
        interview_conversion: Adjusted interview rate (rounded to 0.1)
        offer_conversion: Adjusted offer rate (rounded to 0.1)
        estimated_days: Days to first offer, at most 365
        estimated_offers: Offers expected within the horizon
        confidence: Plausibility of the inputs (50-95)
        overall_conversion_rate: Applications → offer probability (0-1)
    """
    name: str
    applications_per_week: float
    response_rate: float
    interview_conversion: float
    offer_conversion: float
    estimated_days: int
    estimated_offers: int
    confidence: int
    overall_conversion_rate: float

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "applications_per_week": self.applications_per_week,
            "response_rate": self.response_rate,
            "interview_conversion": self.interview_conversion,
            "offer_conversion": self.offer_conversion,
            "estimated_days": self.estimated_days,
            "estimated_offers": self.estimated_offers,
            "confidence": self.confidence,
            "overall_conversion_rate": round(self.overall_conversion_rate, 6),
        }


# (name, volume multiplier, response / interview / offer multipliers)
DEFAULT_STRATEGIES = [
    Strategy("Current Pace", 1.0, FunnelRates(1.0, 1.0, 1.0)),
    Strategy("Quality Focus", 0.5, FunnelRates(1.6, 1.4, 1.3)),
    Strategy("High Volume", 2.5, FunnelRates(0.8, 0.85, 0.95)),
    Strategy("Optimized", 1.5, FunnelRates(1.25, 1.15, 1.1)),
    Strategy("Aggressive", 3.0, FunnelRates(0.7, 0.75, 0.9)),
]


def _in_band(value: float, band: Sequence[float]) -> bool:
    low, high = band
    return low <= value <= high


def _round1(value: float) -> float:
    return round_half_up(value * 10) / 10


def simulate(
    name: str,
    applications_per_week: float,
    base_rates: FunnelRates,
    multipliers: Optional[FunnelRates] = None,
    config: Optional[ScenarioSettings] = None,
) -> Scenario:
    """
    Project one strategy.

    Args:
        name: Label echoed back in the result
        applications_per_week: Cadence for this strategy
        base_rates: Baseline response / interview / offer rates (percent)
        multipliers: Per-rate multipliers (default: all 1.0)
        config: Horizon, caps and bands; defaults to settings

    Returns:
        Scenario; never NaN/inf, days capped at config.max_days

    Example:
        >>> s = simulate("Current Pace", 5, FunnelRates(20, 15, 25))
        >>> (s.estimated_days, s.estimated_offers)
        (187, 0)
    """
    config = config or get_settings().scenarios
    multipliers = multipliers or FunnelRates(1.0, 1.0, 1.0)
    per_week = max(0.0, applications_per_week or 0.0)

    response = min(100.0, max(0.0, base_rates.response * multipliers.response))
    interview = min(100.0, max(0.0, base_rates.interview * multipliers.interview))
    offer = min(100.0, max(0.0, base_rates.offer * multipliers.offer))

    overall = (response / 100) * (interview / 100) * (offer / 100)

    apps_needed = 1 / overall if overall > 0 else config.fallback_applications_needed
    if per_week > 0:
        days = min(apps_needed / per_week * 7, config.max_days)
    else:
        # No applications going out: no realistic forecast
        days = config.max_days
    estimated_days = round_half_up(days)

    horizon_apps = per_week * (config.horizon_days / 7)
    estimated_offers = max(0, round_half_up(horizon_apps * overall))

    confidence = config.base_confidence
    if _in_band(response, config.response_band):
        confidence += config.rate_band_bonus
    if _in_band(interview, config.interview_band):
        confidence += config.rate_band_bonus
    if _in_band(offer, config.offer_band):
        confidence += config.rate_band_bonus
    if _in_band(per_week, config.volume_band):
        confidence += config.volume_band_bonus

    return Scenario(
        name=name,
        applications_per_week=_round1(per_week),
        response_rate=_round1(response),
        interview_conversion=_round1(interview),
        offer_conversion=_round1(offer),
        estimated_days=estimated_days,
        estimated_offers=estimated_offers,
        confidence=min(config.max_confidence, confidence),
        overall_conversion_rate=overall,
    )


def compare_strategies(
    applications_per_week: float,
    base_rates: FunnelRates,
    strategies: Optional[Sequence[Strategy]] = None,
) -> List[Scenario]:
    """Run every strategy against the same baseline, in the given order."""
    strategies = strategies if strategies is not None else DEFAULT_STRATEGIES
    scenarios = [
        simulate(
            strategy.name,
            applications_per_week * strategy.volume_multiplier,
            base_rates,
            strategy.multipliers,
        )
        for strategy in strategies
    ]
    logger.debug(f"Compared {len(scenarios)} strategies at {applications_per_week:.1f} apps/week")
    return scenarios
