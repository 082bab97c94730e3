"""Index rebasing and statistics."""

from kbindex.indexing.rebase import find_nearest_point, rebase, scale_to_base
from kbindex.indexing.statistics import change_rate, compute_statistics

__all__ = [
    "rebase",
    "find_nearest_point",
    "scale_to_base",
    "change_rate",
    "compute_statistics",
]
