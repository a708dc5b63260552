from __future__ import annotations
"""Scoring primitives for query-to-game matching.

This module defines the candidate/result dataclasses and the per-candidate
scoring function. It does NOT rank or filter; ``engine.py`` does that. All
functions are pure: the candidate passed in is never mutated and nothing is
cached between calls.

Scoring model:
- Field composite = algorithm-weighted blend of Levenshtein, cosine and
  Jaccard similarity between the query and one field (title, description,
  tags joined by spaces)
- Aggregate similarity = field-weighted mean over the fields the candidate
  actually has; missing fields drop out of both numerator and denominator
- Confidence tier derived from the aggregate for display purposes
"""

import logging
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from ..config_types import AlgorithmWeights, MatchingConfig
from ..utils.normalization import fold_text, normalize_game_name
from .similarity import cosine_similarity, jaccard_similarity, levenshtein_similarity

logger = logging.getLogger(__name__)

FIELDS = ("title", "description", "tags")

# --- Confidence Enum -------------------------------------------------------

class MatchConfidence(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"

    @classmethod
    def from_similarity(cls, similarity: float) -> MatchConfidence:
        if similarity >= 0.8:
            return cls.EXCELLENT
        if similarity >= 0.6:
            return cls.GOOD
        if similarity >= 0.4:
            return cls.FAIR
        return cls.POOR

# --- Dataclasses -----------------------------------------------------------

@dataclass(frozen=True)
class GameCandidate:
    """A game record to be scored. ``title`` is required and non-blank."""
    id: Any
    title: str
    description: Optional[str] = None
    tags: Tuple[str, ...] = ()
    extra: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        if not isinstance(self.title, str) or not self.title.strip():
            raise ValueError(f"Game {self.id!r} has no title")
        if self.description is not None and not isinstance(self.description, str):
            # Scored on its other fields, like a record without a description
            logger.debug(f"Game {self.id!r}: ignoring non-text description {self.description!r}")
            object.__setattr__(self, "description", None)
        if isinstance(self.tags, str):
            raise ValueError(f"Game {self.id!r}: tags must be a sequence of strings, not a string")
        tags = tuple(self.tags or ())
        if not all(isinstance(t, str) for t in tags):
            raise ValueError(f"Game {self.id!r}: tags must be strings")
        object.__setattr__(self, "tags", tags)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GameCandidate:
        """Build a candidate from a plain record; unknown keys go to ``extra``."""
        known = {"id", "title", "description", "tags"}
        return cls(
            id=data.get("id"),
            title=data.get("title"),  # type: ignore[arg-type]
            description=data.get("description"),
            tags=data.get("tags") or (),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {"id": self.id, "title": self.title, "description": self.description, "tags": list(self.tags)}
        data.update(self.extra)
        return data


CandidateLike = Union[GameCandidate, Mapping[str, Any]]


@dataclass(frozen=True)
class AlgorithmScores:
    levenshtein: float
    cosine: float
    jaccard: float
    normalized: float  # unweighted mean of the three

    def composite(self, weights: AlgorithmWeights) -> float:
        """Weighted mean of the three metrics.

        Divides by the weight total, so weights that sum to 1.0 only within
        tolerance still give 1.0 for an exact match.
        """
        if self.levenshtein == self.cosine == self.jaccard:
            return self.levenshtein
        blended = (
            weights.levenshtein * self.levenshtein
            + weights.cosine * self.cosine
            + weights.jaccard * self.jaccard
        )
        total = weights.total()
        return blended / total if total > 0 else 0.0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass
class MatchResult:
    game: CandidateLike  # the caller's object, untouched
    similarity: float
    scores: AlgorithmScores  # title field detail
    matched_fields: Dict[str, float]  # only fields with content
    confidence: MatchConfidence

    def to_dict(self) -> Dict[str, Any]:
        game = self.game.to_dict() if isinstance(self.game, GameCandidate) else dict(self.game)
        return {
            "game": game,
            "similarity": self.similarity,
            "scores": self.scores.to_dict(),
            "matched_fields": dict(self.matched_fields),
            "confidence": self.confidence.value,
        }

# --- Text preparation ------------------------------------------------------

def as_candidate(game: CandidateLike) -> GameCandidate:
    if isinstance(game, GameCandidate):
        return game
    return GameCandidate.from_dict(game)


def prepare_text(text: Optional[str], cfg: MatchingConfig) -> str:
    """Fold (and optionally name-normalize) text the same way for query and fields.

    With ``normalize_names`` the result is always lower-case, regardless of
    ``case_sensitive``, because the abbreviation stage folds case.
    """
    folded = fold_text(text, cfg.case_sensitive)
    if folded and cfg.normalize_names:
        return normalize_game_name(folded).normalized
    return folded


def _field_texts(game: GameCandidate, cfg: MatchingConfig) -> Dict[str, Any]:
    """Prepared text per present field. Tags map to their prepared list."""
    texts: Dict[str, Any] = {"title": prepare_text(game.title, cfg)}
    description = prepare_text(game.description, cfg)
    if description:
        texts["description"] = description
    tags = [t for t in (prepare_text(tag, cfg) for tag in game.tags) if t]
    if tags:
        texts["tags"] = tags
    return texts

# --- Core Scoring Logic ----------------------------------------------------

def score_text(query: str, text: str, fuzzy: bool = True) -> AlgorithmScores:
    """Run all three algorithms on prepared query/field text.

    With ``fuzzy=False`` every algorithm collapses to exact comparison
    (1.0 when equal, else 0.0).
    """
    if fuzzy:
        lev = levenshtein_similarity(query, text)
        cos = cosine_similarity(query, text)
        jac = jaccard_similarity(query, text)
    else:
        lev = cos = jac = 1.0 if query == text else 0.0
    return AlgorithmScores(
        levenshtein=lev,
        cosine=cos,
        jaccard=jac,
        normalized=(lev + cos + jac) / 3,
    )


def _score_tags(query: str, tags: Sequence[str], cfg: MatchingConfig) -> AlgorithmScores:
    if cfg.fuzzy_match:
        return score_text(query, " ".join(tags))
    # Exact mode: any single tag equal to the query counts as a hit
    hit = 1.0 if query in tags else 0.0
    return AlgorithmScores(hit, hit, hit, hit)


def evaluate_candidate(query: str, game: CandidateLike, cfg: MatchingConfig) -> MatchResult:
    """Score one candidate against an already prepared query.

    Args:
        query: Query text passed through ``prepare_text`` with the same cfg
        game: GameCandidate or plain mapping with id/title/description/tags
        cfg: Fully merged, validated MatchingConfig

    Returns:
        MatchResult (not filtered by threshold)

    Raises:
        ValueError: If the record has no title
    """
    record = as_candidate(game)
    texts = _field_texts(record, cfg)

    field_scores: Dict[str, AlgorithmScores] = {}
    for name, text in texts.items():
        if name == "tags":
            field_scores[name] = _score_tags(query, text, cfg)
        else:
            field_scores[name] = score_text(query, text, cfg.fuzzy_match)

    aw = cfg.algorithm_weights
    matched_fields = {name: scores.composite(aw) for name, scores in field_scores.items()}

    # Renormalize field weights over the fields this candidate has
    weights = cfg.weights.to_dict()
    weight_sum = sum(weights[name] for name in matched_fields)
    if weight_sum > 0:
        similarity = sum(weights[name] * value for name, value in matched_fields.items()) / weight_sum
    else:
        similarity = matched_fields["title"]
    similarity = min(1.0, max(0.0, similarity))

    return MatchResult(
        game=game,
        similarity=similarity,
        scores=field_scores["title"],
        matched_fields=matched_fields,
        confidence=MatchConfidence.from_similarity(similarity),
    )


__all__ = [
    "FIELDS",
    "MatchConfidence",
    "GameCandidate",
    "AlgorithmScores",
    "MatchResult",
    "as_candidate",
    "prepare_text",
    "score_text",
    "evaluate_candidate",
]
