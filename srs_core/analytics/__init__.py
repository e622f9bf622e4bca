"""
Analytics package exports.
"""

from srs_core.analytics.constants import TIMEFRAME_DAYS
from srs_core.analytics.service import AnalyticsAggregator
from srs_core.analytics.types import CardStats, Heatmap, HeatmapBucket, Timeframe

__all__ = [
    "TIMEFRAME_DAYS",
    "AnalyticsAggregator",
    "CardStats",
    "Heatmap",
    "HeatmapBucket",
    "Timeframe",
]
