"""
Record ingestion - raw rows to validated, typed records.

The data-access layer hands over plain dicts (JSON rows). One malformed row
(unparsable date, missing id) must not sink a whole report, so each row is
validated on its own and failures are counted rather than raised.

Usage:
    bundle = load_bundle({"applications": rows, "interviews": rows})
    bundle.skipped  # rows dropped for failing validation
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from insights.schemas.records import (
    ApplicationRecord,
    ChecklistRecord,
    InterviewRecord,
    PredictionRecord,
    RecordBundle,
    ResearchRecord,
    TimeEntry,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

# bundle field -> record model
COLLECTIONS = {
    "applications": ApplicationRecord,
    "interviews": InterviewRecord,
    "time_entries": TimeEntry,
    "predictions": PredictionRecord,
    "research": ResearchRecord,
    "checklists": ChecklistRecord,
}


def load_records(
    rows: Optional[Iterable[Any]], model: Type[M], kind: str = ""
) -> Tuple[List[M], int]:
    """
    Validate rows one by one.

    Args:
        rows: Raw dicts (or already-built models); None means "no data"
        model: Record model to validate against
        kind: Collection name, used in log messages

    Returns:
        Tuple of (valid records in input order, number of rows skipped)
    """
    records: List[M] = []
    skipped = 0

    for row in rows or []:
        if isinstance(row, model):
            records.append(row)
            continue
        try:
            records.append(model.model_validate(row))
        except ValidationError as e:
            skipped += 1
            logger.debug(f"Skipping malformed {kind or model.__name__} row: {e.error_count()} error(s)")

    if skipped:
        logger.info(f"Skipped {skipped} malformed {kind or model.__name__} record(s)")

    return records, skipped


def load_bundle(raw: Optional[Mapping[str, Any]]) -> RecordBundle:
    """
    Build a RecordBundle from a mapping of collection name -> rows.

    Unknown keys are ignored; missing collections are empty. A None mapping
    (upstream fetch failed) yields an empty bundle.
    """
    raw = raw or {}
    collections = {}
    skipped_by_kind: Dict[str, int] = {}

    for name, model in COLLECTIONS.items():
        records, skipped = load_records(raw.get(name), model, kind=name)
        collections[name] = records
        if skipped:
            skipped_by_kind[name] = skipped

    return RecordBundle(
        **collections,
        skipped=sum(skipped_by_kind.values()),
        skipped_by_kind=skipped_by_kind,
    )
