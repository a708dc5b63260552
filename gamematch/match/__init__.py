"""Matching package exposing the similarity library and scoring engine.

``similarity`` holds the three string metrics, ``scoring`` turns them into a
per-candidate result and ``engine`` ranks candidates for one or many queries.
``ranking`` post-processes engine results (quality, duplicates, re-rank).
"""

from .similarity import (
    tokenize,
    levenshtein_similarity,
    cosine_similarity,
    jaccard_similarity,
)
from .scoring import (
    MatchConfidence,
    GameCandidate,
    AlgorithmScores,
    MatchResult,
    evaluate_candidate,
)
from .engine import match_games, batch_match_games
from .ranking import (
    QualityAssessment,
    RankedResult,
    RankingStats,
    assess_quality,
    apply_threshold,
    sort_and_filter,
    batch_sort_and_filter,
)
from ..config import ConfigurationError, get_default_config, validate_config

__all__ = [
    "tokenize",
    "levenshtein_similarity",
    "cosine_similarity",
    "jaccard_similarity",
    "MatchConfidence",
    "GameCandidate",
    "AlgorithmScores",
    "MatchResult",
    "evaluate_candidate",
    "match_games",
    "batch_match_games",
    "QualityAssessment",
    "RankedResult",
    "RankingStats",
    "assess_quality",
    "apply_threshold",
    "sort_and_filter",
    "batch_sort_and_filter",
    "ConfigurationError",
    "get_default_config",
    "validate_config",
]
