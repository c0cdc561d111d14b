from insights.schemas.records import (
    ApplicationRecord,
    InterviewRecord,
    TimeEntry,
    PredictionRecord,
    ResearchRecord,
    ChecklistRecord,
    RecordBundle,
)
from insights.schemas.analytics import (
    RecordsPayload,
    ForecastRequest,
    ScenarioRequest,
    StrategyPayload,
    FunnelRatesPayload,
)

__all__ = [
    "ApplicationRecord",
    "InterviewRecord",
    "TimeEntry",
    "PredictionRecord",
    "ResearchRecord",
    "ChecklistRecord",
    "RecordBundle",
    "RecordsPayload",
    "ForecastRequest",
    "ScenarioRequest",
    "StrategyPayload",
    "FunnelRatesPayload",
]
