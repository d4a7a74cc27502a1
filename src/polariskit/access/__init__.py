"""
Read side of the authorization graph: aggregation, caching, statistics
and cascade policy.
"""

from .results import QueryStatus, QueryResult, GrantPath, EffectiveGrant
from .cache import QueryCache
from .cascade import cascade_targets, is_cascade_descendant
from .statistics import AccessUniverse, AccessStatistics, SampledCount, reduce_statistics
from .aggregator import AccessGraphAggregator
from .access_map import AccessMap, AccessMapRow

__all__ = [
    'QueryStatus',
    'QueryResult',
    'GrantPath',
    'EffectiveGrant',
    'QueryCache',
    'cascade_targets',
    'is_cascade_descendant',
    'AccessUniverse',
    'AccessStatistics',
    'SampledCount',
    'reduce_statistics',
    'AccessGraphAggregator',
    'AccessMap',
    'AccessMapRow',
]
