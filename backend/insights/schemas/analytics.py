from pydantic import BaseModel, Field
from typing import Any, Optional

from insights.schemas.records import UtcDatetime


class RecordsPayload(BaseModel):
    """Raw record rows; each row is validated individually at ingestion."""
    applications: list[Any] = []
    interviews: list[Any] = []
    time_entries: list[Any] = []
    predictions: list[Any] = []
    research: list[Any] = []
    checklists: list[Any] = []
    now: Optional[UtcDatetime] = None


class FunnelRatesPayload(BaseModel):
    response: float = 0.0
    interview: float = 0.0
    offer: float = 0.0


class HistoricalAveragesPayload(BaseModel):
    to_response: Optional[float] = None
    to_interview: Optional[float] = None
    to_offer: Optional[float] = None


class ForecastRequest(RecordsPayload):
    """
    Either records, or explicit inputs.

    When applications_per_week and conversion_rates are both given the
    forecast is computed from them directly and the records are ignored.
    """
    applications_per_week: Optional[float] = None
    conversion_rates: Optional[FunnelRatesPayload] = None
    historical_averages: HistoricalAveragesPayload = Field(
        default_factory=HistoricalAveragesPayload
    )


class StrategyPayload(BaseModel):
    name: str
    volume_multiplier: float = 1.0
    multipliers: FunnelRatesPayload = Field(
        default_factory=lambda: FunnelRatesPayload(response=1.0, interview=1.0, offer=1.0)
    )


class ScenarioRequest(RecordsPayload):
    """Baseline from explicit rates when given, otherwise derived from records."""
    applications_per_week: Optional[float] = None
    base_rates: Optional[FunnelRatesPayload] = None
    strategies: Optional[list[StrategyPayload]] = None
