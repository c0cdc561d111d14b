"""
Temporal Pattern Detector - Which days, industries and company sizes work best

Buckets applications along one dimension and ranks the buckets by offer
rate. Small buckets are noisy, so a bucket needs `min_sample_size`
applications before it is ranked; smaller buckets are still returned
(after the ranked ones, flagged `eligible=False`) so the caller can say
"not enough data yet" instead of showing nothing.

Ranking order:
    1. success_rate descending
    2. count descending
    3. the dimension's natural order (weekday index, then name)

Usage:
    buckets = best_dimension_buckets(apps, day_of_week, min_sample_size=5)
    buckets[0].label  # "Tuesday"
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence

from insights.config import get_settings
from insights.schemas.records import ApplicationRecord
from insights.services.normalizer import is_offer
from insights.services.rates import safe_rate

logger = logging.getLogger(__name__)

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


@dataclass
class Bucket:
    """
    One value of a dimension with its offer statistics.

    Attributes:
        key: Raw bucket key (weekday index, industry name...)
        label: Human-readable key
        count: Applications in the bucket
        successes: Applications that reached an offer
        success_rate: successes / count (0-100)
        eligible: count >= minimum sample size
    """
    key: Hashable
    label: str
    count: int
    successes: int
    success_rate: float
    eligible: bool

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "label": self.label,
            "count": self.count,
            "successes": self.successes,
            "success_rate": round(self.success_rate, 1),
            "eligible": self.eligible,
        }


def day_of_week(app: ApplicationRecord) -> int:
    """Weekday of creation (UTC), Monday=0 ... Sunday=6."""
    return app.created_at.weekday()


def industry(app: ApplicationRecord) -> Optional[str]:
    return (app.industry or "").strip() or None


def company_size(app: ApplicationRecord) -> Optional[str]:
    return (app.company_size or "").strip() or None


def weekday_label(key: Any) -> str:
    if isinstance(key, int) and 0 <= key < len(WEEKDAYS):
        return WEEKDAYS[key]
    return str(key)


def _natural_order(key: Hashable) -> tuple:
    # Numbers before strings, strings case-insensitively
    if isinstance(key, (int, float)):
        return (0, key, "")
    return (1, 0, str(key).lower())


def best_dimension_buckets(
    applications: Sequence[ApplicationRecord],
    dimension_fn: Callable[[ApplicationRecord], Optional[Hashable]],
    min_sample_size: Optional[int] = None,
    label_fn: Optional[Callable[[Hashable], str]] = None,
    order_fn: Optional[Callable[[Hashable], Any]] = None,
) -> List[Bucket]:
    """
    Group applications by dimension and rank groups by offer rate.

    Args:
        applications: Application records
        dimension_fn: Maps an application to its bucket key; None/"" skips it
        min_sample_size: Floor for ranking (default: settings)
        label_fn: Key -> display label (default: weekday names for ints, str())
        order_fn: Key -> natural sort key used as the last tie-breaker

    Returns:
        Eligible buckets ranked best-first, followed by ineligible buckets
        in the same order
    """
    if min_sample_size is None:
        min_sample_size = get_settings().patterns.min_sample_size
    label_fn = label_fn or weekday_label
    order_fn = order_fn or _natural_order

    counts: Dict[Hashable, int] = {}
    successes: Dict[Hashable, int] = {}
    for app in applications:
        key = dimension_fn(app)
        if key is None or key == "":
            continue
        counts[key] = counts.get(key, 0) + 1
        if is_offer(app.status):
            successes[key] = successes.get(key, 0) + 1

    buckets = [
        Bucket(
            key=key,
            label=label_fn(key),
            count=count,
            successes=successes.get(key, 0),
            success_rate=safe_rate(successes.get(key, 0), count),
            eligible=count >= min_sample_size,
        )
        for key, count in counts.items()
    ]

    buckets.sort(key=lambda b: (not b.eligible, -b.success_rate, -b.count, order_fn(b.key)))
    return buckets


def ranked(buckets: Sequence[Bucket]) -> List[Bucket]:
    """Only the buckets with enough data to rank."""
    return [b for b in buckets if b.eligible]


def best_days(applications: Sequence[ApplicationRecord], min_sample_size: Optional[int] = None) -> List[Bucket]:
    return best_dimension_buckets(applications, day_of_week, min_sample_size)


def best_industries(applications: Sequence[ApplicationRecord], min_sample_size: Optional[int] = None) -> List[Bucket]:
    return best_dimension_buckets(applications, industry, min_sample_size, label_fn=str)


def best_company_sizes(applications: Sequence[ApplicationRecord], min_sample_size: Optional[int] = None) -> List[Bucket]:
    return best_dimension_buckets(applications, company_size, min_sample_size, label_fn=str)
