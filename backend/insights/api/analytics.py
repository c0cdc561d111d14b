import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from insights.middleware.metrics import (
    record_computation_latency,
    record_report,
    record_skipped,
)
from insights.schemas.analytics import ForecastRequest, RecordsPayload, ScenarioRequest
from insights.schemas.records import RecordBundle
from insights.services import aggregator
from insights.services.forecast import (
    ConversionRates,
    HistoricalAverages,
    forecast_inputs,
    forecast_milestones,
)
from insights.services.ingest import load_bundle
from insights.services.report import build_report
from insights.services.scenarios import FunnelRates, Strategy, compare_strategies

logger = logging.getLogger(__name__)

router = APIRouter()


def _ingest(payload: RecordsPayload) -> RecordBundle:
    bundle = load_bundle(payload.model_dump(exclude={"now"}))
    for kind, count in bundle.skipped_by_kind.items():
        record_skipped(kind, count)
    return bundle


def _now(payload: RecordsPayload) -> datetime:
    return payload.now or datetime.now(timezone.utc)


@router.post("/report")
async def analytics_report(
    payload: RecordsPayload,
    recommendation_limit: Optional[int] = Query(None),
):
    if recommendation_limit is not None and recommendation_limit < 0:
        raise HTTPException(status_code=400, detail="recommendation_limit must be >= 0")

    bundle = _ingest(payload)
    report = build_report(bundle, now=_now(payload), recommendation_limit=recommendation_limit)

    for component, duration in report.timings.items():
        record_computation_latency(component, duration)
    record_report(empty=report.is_empty)

    return report.to_dict()


@router.post("/funnel")
async def analytics_funnel(payload: RecordsPayload):
    bundle = _ingest(payload)
    funnel = aggregator.compute_funnel(bundle.applications, bundle.interviews, now=_now(payload))
    return {
        "funnel": funnel.to_dict(),
        "status_breakdown": aggregator.status_breakdown(bundle.applications),
        "average_times": aggregator.compute_average_times(
            bundle.applications, bundle.interviews
        ).to_dict(),
        "skipped_records": bundle.skipped,
    }


@router.post("/forecast")
async def analytics_forecast(
    payload: ForecastRequest,
    pace_window_days: Optional[int] = Query(None),
):
    if pace_window_days is not None and pace_window_days <= 0:
        raise HTTPException(status_code=400, detail="pace_window_days must be > 0")

    now = _now(payload)
    if payload.applications_per_week is not None and payload.conversion_rates is not None:
        if payload.applications_per_week < 0:
            raise HTTPException(status_code=400, detail="applications_per_week must be >= 0")
        averages = payload.historical_averages
        forecast = forecast_milestones(
            HistoricalAverages(
                to_response=averages.to_response,
                to_interview=averages.to_interview,
                to_offer=averages.to_offer,
            ),
            payload.applications_per_week,
            ConversionRates(**payload.conversion_rates.model_dump()),
            now=now,
        )
    else:
        bundle = _ingest(payload)
        inputs = forecast_inputs(
            bundle.applications, bundle.interviews, now=now, window_days=pace_window_days
        )
        forecast = forecast_milestones(
            inputs.historical_averages,
            inputs.applications_per_week,
            inputs.conversion_rates,
            now=now,
        )

    return forecast.to_dict()


@router.post("/scenarios")
async def analytics_scenarios(payload: ScenarioRequest):
    if payload.applications_per_week is not None and payload.applications_per_week < 0:
        raise HTTPException(status_code=400, detail="applications_per_week must be >= 0")

    if payload.applications_per_week is not None and payload.base_rates is not None:
        per_week = payload.applications_per_week
        base_rates = FunnelRates(**payload.base_rates.model_dump())
    else:
        bundle = _ingest(payload)
        inputs = forecast_inputs(bundle.applications, bundle.interviews, now=_now(payload))
        rates = inputs.conversion_rates
        per_week = (
            payload.applications_per_week
            if payload.applications_per_week is not None
            else inputs.applications_per_week
        )
        base_rates = FunnelRates(rates.response, rates.interview, rates.offer)

    strategies = None
    if payload.strategies is not None:
        strategies = [
            Strategy(
                name=s.name,
                volume_multiplier=s.volume_multiplier,
                multipliers=FunnelRates(**s.multipliers.model_dump()),
            )
            for s in payload.strategies
        ]

    scenarios = compare_strategies(per_week, base_rates, strategies)
    return {"scenarios": [s.to_dict() for s in scenarios]}
