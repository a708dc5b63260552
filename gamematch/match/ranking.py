"""Post-processing for match results: record quality, duplicates and re-ranking.

Everything here is a pure function over ``MatchResult`` lists produced by the
engine. Nothing is cached and the input results are never mutated.

Ranking model:
- Quality = weighted blend of field completeness, tag richness and
  description quality of the matched record
- Duplicate removal groups results by a key (title, title + description
  prefix, title + similarity band, normalized name or id) and keeps the
  most similar result of each group
- Final score = dimension-weighted mean of similarity, quality and
  completeness; results sort by final score, then similarity, then quality
"""

from __future__ import annotations
import math
import time
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from ..config import ConfigurationError, merge_ranking_config
from ..config_types import QualityWeights, RankingConfig
from ..utils.normalization import normalize_game_name
from .scoring import GameCandidate, MatchConfidence, MatchResult, as_candidate

logger = logging.getLogger(__name__)

MIN_TITLE_LENGTH = 2
HIGH_DIMENSION_SCORE = 0.8
_DESCRIPTION_KEYWORDS = ("game", "play", "player", "level", "score", "challenge", "fun", "adventure")

# Presence weights: a description only counts past 20 characters
_COMPLETENESS_WEIGHTS = {"title": 0.3, "description": 0.25, "tags": 0.15}
_MIN_DESCRIPTION_CHARS = 20

# --- Record quality ---------------------------------------------------------

@dataclass(frozen=True)
class QualityAssessment:
    overall: float
    dimension_scores: Dict[str, float]  # completeness, tag_richness, description_quality
    level: MatchConfidence
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall,
            "dimension_scores": dict(self.dimension_scores),
            "level": self.level.value,
            "suggestions": list(self.suggestions),
        }


def _completeness(game: GameCandidate) -> float:
    present = _COMPLETENESS_WEIGHTS["title"] if game.title.strip() else 0.0
    if game.description and len(game.description.strip()) > _MIN_DESCRIPTION_CHARS:
        present += _COMPLETENESS_WEIGHTS["description"]
    if game.tags:
        present += _COMPLETENESS_WEIGHTS["tags"]
    return present / sum(_COMPLETENESS_WEIGHTS.values())


def _tag_richness(game: GameCandidate) -> float:
    return min(len(game.tags) / 5, 1.0)


def _band(value: float, low: float, high: float, floor: float, slope: float) -> float:
    """1.0 inside [low, high], linear ramp below, slow decay (not below floor) above."""
    if low <= value <= high:
        return 1.0
    if value < low:
        return value / low
    return max(floor, 1 - (value - high) / slope)


def _description_quality(game: GameCandidate) -> float:
    if not game.description or not game.description.strip():
        return 0.0
    text = game.description.strip()
    length_score = _band(len(text), 50, 200, floor=0.5, slope=300)
    word_score = _band(len(text.split()), 8, 30, floor=0.5, slope=20)
    lowered = text.lower()
    keyword_score = 1.0 if any(k in lowered for k in _DESCRIPTION_KEYWORDS) else 0.7
    return (length_score + word_score + keyword_score) / 3


def _suggestions(scores: Mapping[str, float]) -> List[str]:
    suggestions = []
    if scores["completeness"] < 0.7:
        suggestions.append("Add the missing fields (description, tags)")
    if scores["tag_richness"] < 0.5:
        suggestions.append("Add more relevant tags")
    if scores["description_quality"] < 0.6:
        suggestions.append("Write a longer, more specific description")
    return suggestions


def _assess(game: GameCandidate, weights: QualityWeights) -> QualityAssessment:
    scores = {
        "completeness": _completeness(game),
        "tag_richness": _tag_richness(game),
        "description_quality": _description_quality(game),
    }
    total = weights.total()
    blended = sum(getattr(weights, name) * value for name, value in scores.items())
    overall = blended / total if total > 0 else 0.0
    return QualityAssessment(
        overall=overall,
        dimension_scores=scores,
        level=MatchConfidence.from_similarity(overall),
        suggestions=_suggestions(scores),
    )


def assess_quality(game: Any, config_override: Optional[Any] = None) -> QualityAssessment:
    """Score how complete and informative a game record is.

    Args:
        game: GameCandidate, plain mapping or MatchResult (its game is used)
        config_override: Partial ranking override (only quality_weights matter)

    Returns:
        QualityAssessment with an overall score in [0, 1], the per-dimension
        scores, a level and improvement suggestions
    """
    cfg = merge_ranking_config(config_override)
    if isinstance(game, MatchResult):
        game = game.game
    return _assess(as_candidate(game), cfg.quality_weights)


def apply_threshold(
    results: Sequence[MatchResult],
    threshold: float,
    config_override: Optional[Any] = None,
) -> List[MatchResult]:
    """Keep results at or above ``threshold`` whose record quality reaches ``min_quality``.

    Order is preserved.

    Raises:
        ConfigurationError: If threshold is outside [0, 1] or the override is invalid
    """
    if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) or not 0.0 <= threshold <= 1.0:
        raise ConfigurationError([f"threshold must be within [0, 1] (got {threshold!r})"], section="ranking")
    cfg = merge_ranking_config(config_override)
    kept = [
        r for r in results
        if r.similarity >= threshold
        and _assess(as_candidate(r.game), cfg.quality_weights).overall >= cfg.min_quality
    ]
    logger.debug(f"apply_threshold kept {len(kept)}/{len(results)} (threshold={threshold}, min_quality={cfg.min_quality})")
    return kept

# --- Duplicate removal ------------------------------------------------------

def _squash(text: str) -> str:
    return "".join(text.lower().split())


def dedup_key(result: MatchResult, strategy: str) -> str:
    """Grouping key for ``strategy`` (title, content, similarity, normalized, id)."""
    game = as_candidate(result.game)
    if strategy == "title":
        return _squash(game.title)
    if strategy == "content":
        return f"{_squash(game.title)}|{(game.description or '')[:50].lower()}"
    if strategy == "similarity":
        band = math.floor(result.similarity * 10) / 10
        return f"{game.title.lower()}_{band:.1f}"
    if strategy == "normalized":
        return _squash(normalize_game_name(game.title).normalized)
    if strategy == "id":
        return repr(game.id)
    raise ConfigurationError([f"unknown dedup_strategy: {strategy!r}"], section="ranking")


def _deduplicate(results: Sequence[MatchResult], strategy: str) -> Tuple[List[MatchResult], Dict[int, int], int]:
    """Best result per key, in first-seen order.

    Returns kept results, group size per kept result (by position) and the
    number of groups that had more than one member.
    """
    groups: Dict[str, List[MatchResult]] = {}
    for result in results:
        groups.setdefault(dedup_key(result, strategy), []).append(result)

    kept: List[MatchResult] = []
    sizes: Dict[int, int] = {}
    for members in groups.values():
        # max() returns the first of equal maxima
        best = max(members, key=lambda r: r.similarity)
        sizes[len(kept)] = len(members)
        kept.append(best)
    merged_groups = sum(1 for members in groups.values() if len(members) > 1)
    return kept, sizes, merged_groups

# --- Re-ranking -------------------------------------------------------------

@dataclass
class RankedResult:
    result: MatchResult
    final_score: float
    quality_score: float
    dimension_scores: Dict[str, float]  # similarity, quality, completeness
    dedup_key: Optional[str] = None
    reasons: List[str] = field(default_factory=list)

    @property
    def similarity(self) -> float:
        return self.result.similarity

    def to_dict(self) -> Dict[str, Any]:
        data = self.result.to_dict()
        data.update({
            "final_score": self.final_score,
            "quality_score": self.quality_score,
            "dimension_scores": dict(self.dimension_scores),
            "reasons": list(self.reasons),
        })
        return data


@dataclass
class RankingStats:
    original_count: int = 0
    after_dedup_count: int = 0
    final_count: int = 0
    duplicates_removed: int = 0
    duplicate_groups: int = 0
    avg_similarity: float = 0.0
    avg_quality: float = 0.0
    dimension_weights: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_count": self.original_count,
            "after_dedup_count": self.after_dedup_count,
            "final_count": self.final_count,
            "duplicates_removed": self.duplicates_removed,
            "duplicate_groups": self.duplicate_groups,
            "avg_similarity": self.avg_similarity,
            "avg_quality": self.avg_quality,
            "dimension_weights": dict(self.dimension_weights),
        }


def _score(result: MatchResult, cfg: RankingConfig, key: Optional[str], group_size: int) -> RankedResult:
    game = as_candidate(result.game)
    assessment = _assess(game, cfg.quality_weights)
    dimensions = {
        "similarity": result.similarity,
        "quality": assessment.overall,
        "completeness": _completeness(game),
    }
    weights = cfg.dimension_weights.to_dict()
    total = sum(weights.values())
    final = sum(weights[name] * value for name, value in dimensions.items()) / total if total > 0 else 0.0

    reasons = []
    if group_size > 1:
        reasons.append(f"best of {group_size} similar results")
    reasons.extend(
        f"high {name} score ({value:.2f})" for name, value in dimensions.items() if value > HIGH_DIMENSION_SCORE
    )
    return RankedResult(
        result=result,
        final_score=final,
        quality_score=assessment.overall,
        dimension_scores=dimensions,
        dedup_key=key,
        reasons=reasons,
    )


def _sort_and_filter(results: Sequence[MatchResult], cfg: RankingConfig) -> Tuple[List[RankedResult], RankingStats]:
    start = time.time()
    stats = RankingStats(original_count=len(results), dimension_weights=cfg.dimension_weights.to_dict())

    eligible = [
        r for r in results
        if r.similarity >= cfg.min_similarity and len(as_candidate(r.game).title.strip()) >= MIN_TITLE_LENGTH
    ]
    if cfg.deduplicate:
        kept, sizes, stats.duplicate_groups = _deduplicate(eligible, cfg.dedup_strategy)
        stats.duplicates_removed = len(eligible) - len(kept)
    else:
        kept, sizes = list(eligible), {}
    stats.after_dedup_count = len(kept)

    scored = [
        _score(r, cfg, dedup_key(r, cfg.dedup_strategy) if cfg.deduplicate else None, sizes.get(i, 1))
        for i, r in enumerate(kept)
    ]
    # Stable: full ties keep engine order
    ranked = sorted(scored, key=lambda r: (r.final_score, r.similarity, r.quality_score), reverse=True)[: cfg.top_n]
    for position, item in enumerate(ranked, start=1):
        item.reasons.append(f"rank {position}, final score {item.final_score:.3f}")

    stats.final_count = len(ranked)
    if ranked:
        stats.avg_similarity = sum(r.similarity for r in ranked) / len(ranked)
        stats.avg_quality = sum(r.quality_score for r in ranked) / len(ranked)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            f"rerank in={stats.original_count} eligible={len(eligible)} "
            f"deduped={stats.after_dedup_count} returned={stats.final_count} in {time.time() - start:.3f}s"
        )
    return ranked, stats


def sort_and_filter(
    results: Sequence[MatchResult],
    config_override: Optional[Any] = None,
) -> Tuple[List[RankedResult], RankingStats]:
    """Drop weak and duplicate results, then re-rank the rest.

    Args:
        results: Output of ``match_games`` (any order)
        config_override: Partial ranking override (mapping or RankingConfig)

    Returns:
        (ranked results, best first, at most ``top_n``; summary stats)

    Raises:
        ConfigurationError: If the merged ranking config is invalid
    """
    cfg = merge_ranking_config(config_override)
    return _sort_and_filter(results, cfg)


def batch_sort_and_filter(
    grouped: Mapping[str, Sequence[MatchResult]],
    config_override: Optional[Any] = None,
) -> Dict[str, Tuple[List[RankedResult], RankingStats]]:
    """``sort_and_filter`` for every query of a ``batch_match_games`` result.

    The config is merged once, so an invalid override fails before any
    group is processed. Keys keep their input order.
    """
    cfg = merge_ranking_config(config_override)
    return {query: _sort_and_filter(results, cfg) for query, results in grouped.items()}


__all__ = [
    "QualityAssessment",
    "RankedResult",
    "RankingStats",
    "assess_quality",
    "apply_threshold",
    "dedup_key",
    "sort_and_filter",
    "batch_sort_and_filter",
]
