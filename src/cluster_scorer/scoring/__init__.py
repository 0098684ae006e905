"""Scoring package.

Contains the pure aggregation and normalization steps of a scoring pass.
Each module operates on immutable snapshots and can be composed with the
ClusterScorer class.
"""

from .allocatable import sum_allocatable
from .config import PLACEMENT_PRESET, SCHEDULER_PRESET, ScoringConfig, get_preset
from .normalizer import DEFAULT_SCORE_PROFILES, ScoreProfile, normalize
from .requests import effective_request, sum_requests, workload_request

__all__ = [
    "DEFAULT_SCORE_PROFILES",
    "PLACEMENT_PRESET",
    "SCHEDULER_PRESET",
    "ScoreProfile",
    "ScoringConfig",
    "effective_request",
    "get_preset",
    "normalize",
    "sum_allocatable",
    "sum_requests",
    "workload_request",
]
