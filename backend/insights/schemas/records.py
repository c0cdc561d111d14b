"""
Activity records supplied by the data-access layer.

All records are frozen pydantic models. Timestamps are normalised to
timezone-aware UTC so records from different sources compare cleanly;
naive timestamps are assumed to already be UTC.

Status/outcome fields stay as free text here. Classification into the
canonical vocabulary happens in `insights.services.normalizer`.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, field_validator


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _as_id(value: Any) -> Any:
    # Upstream ids are often integers or UUIDs
    return str(value) if value is not None else None


UtcDatetime = Annotated[datetime, AfterValidator(_as_utc)]
RecordId = Annotated[str, BeforeValidator(_as_id)]
RecordRef = Annotated[Optional[str], BeforeValidator(_as_id)]
# Display text; the data layer writes NULL for empty columns
Text = Annotated[str, BeforeValidator(lambda v: "" if v is None else v)]


class Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: RecordId


class ApplicationRecord(Record):
    """A logged job application (a row of the "jobs" table upstream)."""
    created_at: UtcDatetime
    updated_at: Optional[UtcDatetime] = None
    company_name: Text = ""
    job_title: Text = ""
    industry: Optional[str] = None
    company_size: Optional[str] = None
    status: Optional[str] = None
    archived_at: Optional[UtcDatetime] = None
    referral_source: Optional[str] = None
    salary_max: Optional[float] = None
    job_type: Optional[str] = None
    job_url: Optional[str] = None


class InterviewRecord(Record):
    job_id: RecordRef = None
    interview_date: UtcDatetime
    interview_type: Optional[str] = None
    status: Optional[str] = None
    outcome: Optional[str] = None


class TimeEntry(Record):
    started_at: UtcDatetime
    ended_at: Optional[UtcDatetime] = None
    activity_type: Optional[str] = None

    @property
    def duration_hours(self) -> float:
        """Elapsed hours; open or inverted entries count as zero."""
        if self.ended_at is None:
            return 0.0
        seconds = (self.ended_at - self.started_at).total_seconds()
        return max(0.0, seconds / 3600)


class PredictionRecord(Record):
    """
    A self-assessed interview success prediction.

    `overall_probability` is stored in percent (0-100). Upstream writes it
    both as a fraction and as a percentage, so values within [0, 1] are
    scaled up here. Out-of-range values are clamped.
    """
    created_at: UtcDatetime
    overall_probability: Optional[float] = None
    actual_outcome: Optional[str] = None
    interview_id: RecordRef = None

    @field_validator("overall_probability")
    @classmethod
    def _to_percent(cls, value: Optional[float]) -> Optional[float]:
        if value is None:
            return None
        if 0 <= value <= 1:
            value = value * 100
        return min(100.0, max(0.0, value))


class ResearchRecord(Record):
    job_id: RecordRef = None


class ChecklistRecord(Record):
    job_id: RecordRef = None
    completion_percentage: Optional[float] = None


class RecordBundle(BaseModel):
    """Every collection the analytics core reads, already validated."""
    model_config = ConfigDict(frozen=True)

    applications: List[ApplicationRecord] = []
    interviews: List[InterviewRecord] = []
    time_entries: List[TimeEntry] = []
    predictions: List[PredictionRecord] = []
    research: List[ResearchRecord] = []
    checklists: List[ChecklistRecord] = []
    # Raw records dropped at ingestion because they failed validation
    skipped: int = 0
    skipped_by_kind: Dict[str, int] = {}

    @property
    def is_empty(self) -> bool:
        return not (
            self.applications or self.interviews or self.time_entries
            or self.predictions or self.research or self.checklists
        )
