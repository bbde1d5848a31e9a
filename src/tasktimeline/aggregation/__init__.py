"""Timeline aggregations over task collections."""

from tasktimeline.aggregation.bounds import compute_date_bounds
from tasktimeline.aggregation.minimap import MAX_BUCKETS, MinimapBucket, aggregate

__all__ = [
    "aggregate",
    "MinimapBucket",
    "MAX_BUCKETS",
    "compute_date_bounds",
]
