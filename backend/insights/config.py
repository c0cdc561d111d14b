from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Dict, List


class StatusSynonyms(BaseModel):
    """
    Synonym table for free-text statuses and outcomes.

    Order matters: substring matching walks the buckets top to bottom, so
    "no offer" lands in declined before "offer" can claim it. A job that
    never heard back is still applied: "no response" and "awaiting response"
    are exact phrases of applied, and exact matches are checked before
    substrings.
    """
    declined: List[str] = [
        "declined", "rejected", "rejection", "not selected", "no offer",
        "withdrawn", "withdrew", "ghosted", "failed", "not moving forward",
        "position filled", "closed", "not interested",
    ]
    accepted: List[str] = ["accepted", "offer accepted", "hired"]
    offered: List[str] = ["offer", "offered", "offer received", "offer extended"]
    interviewing: List[str] = [
        "interview", "interviewing", "interview scheduled", "phone screen",
        "screening", "technical", "onsite", "on-site", "final round",
        "advanced", "passed", "next round",
    ]
    responded: List[str] = [
        "responded", "response", "response received", "under review",
        "in review", "reviewing", "contacted", "in progress", "assessment",
    ]
    applied: List[str] = [
        "applied", "submitted", "interested", "saved", "new", "pending",
        "bookmarked", "no response", "no reply", "awaiting response",
        "awaiting reply",
    ]


class CorrelationSettings(BaseModel):
    prep_lookback_days: int = 7
    prep_activity_types: List[str] = ["interview_prep", "research"]
    mock_lookback_days: int = 14
    mock_activity_types: List[str] = ["mock_interview"]
    checklist_completion_threshold: float = 80.0
    completed_interview_statuses: List[str] = ["completed", "done", "attended"]


class PatternSettings(BaseModel):
    min_sample_size: int = 5


class ForecastSettings(BaseModel):
    high_activity_per_week: float = 10.0
    low_activity_per_week: float = 5.0
    high_activity_multiplier: float = 0.8
    low_activity_multiplier: float = 1.3
    default_days_to_response: float = 7.0
    default_days_to_interview: float = 14.0
    default_days_to_offer: float = 30.0
    # Fallback rates (percent) when there is no history at all
    default_response_rate: float = 20.0
    default_interview_rate: float = 15.0
    default_offer_rate: float = 25.0
    pace_window_days: int = 30
    # stage -> [[rate threshold, confidence], ...]; the last entry is the floor
    response_confidence: List[List[float]] = [[30, 85], [15, 70], [0, 60]]
    interview_confidence: List[List[float]] = [[20, 80], [10, 65], [0, 55]]
    offer_confidence: List[List[float]] = [[30, 75], [15, 60], [0, 50]]


class ScenarioSettings(BaseModel):
    horizon_days: int = 90
    max_days: int = 365
    fallback_applications_needed: float = 1000.0
    base_confidence: int = 50
    max_confidence: int = 95
    rate_band_bonus: int = 15
    volume_band_bonus: int = 5
    response_band: List[float] = [15, 40]
    interview_band: List[float] = [10, 30]
    offer_band: List[float] = [20, 50]
    volume_band: List[float] = [3, 15]


class RecommendationThresholds(BaseModel):
    prep_delta: float = 10.0
    mock_success_rate: float = 60.0
    mock_min_interviews: int = 3
    research_success_rate: float = 50.0
    research_min_jobs: int = 3
    checklist_success_rate: float = 50.0
    checklist_min_jobs: int = 3
    best_day_min_count: int = 5
    industry_min_offers: int = 2
    low_interview_rate: float = 15.0
    low_response_rate: float = 20.0
    low_offer_rate: float = 20.0
    low_volume_per_week: float = 5.0
    min_applications_for_rate_rules: int = 5


class Settings(BaseSettings):
    log_level: str = "INFO"
    app_name: str = "insights"

    # Percent; predictions at or above this count as "predicted positive"
    prediction_positive_threshold: float = 60.0
    positive_outcomes: List[str] = ["offered", "accepted", "interviewing"]

    synonyms: StatusSynonyms = Field(default_factory=StatusSynonyms)
    correlation: CorrelationSettings = Field(default_factory=CorrelationSettings)
    patterns: PatternSettings = Field(default_factory=PatternSettings)
    forecast: ForecastSettings = Field(default_factory=ForecastSettings)
    scenarios: ScenarioSettings = Field(default_factory=ScenarioSettings)
    recommendations: RecommendationThresholds = Field(
        default_factory=RecommendationThresholds
    )

    # Caps the number of recommendations returned by the report endpoint
    report_recommendation_limit: int = 0

    class Config:
        env_file = ".env"
        env_prefix = "INSIGHTS_"
        env_nested_delimiter = "__"


@lru_cache
def get_settings() -> Settings:
    return Settings()


def synonym_table(synonyms: StatusSynonyms) -> Dict[str, List[str]]:
    """Ordered bucket -> phrases mapping, in matching priority order."""
    return {name: list(getattr(synonyms, name)) for name in StatusSynonyms.model_fields}
