"""Typed configuration dataclasses for gamematch.

Provides strongly-typed configuration objects used by the matching engine
and the CLI. The dict form (``to_dict``) mirrors ``config._DEFAULTS`` so the
two representations can be converted back and forth.
"""
from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class FieldWeights:
    """Per-field contribution to the aggregate similarity (sums to 1.0)."""
    title: float = 0.6
    description: float = 0.3
    tags: float = 0.1

    def total(self) -> float:
        return self.title + self.description + self.tags

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class AlgorithmWeights:
    """Per-algorithm contribution to a single field's composite score (sums to 1.0)."""
    levenshtein: float = 0.4
    cosine: float = 0.4
    jaccard: float = 0.2

    def total(self) -> float:
        return self.levenshtein + self.cosine + self.jaccard

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class MatchingConfig:
    """Matching engine configuration (aligned with _DEFAULTS['matching'])."""
    threshold: float = 0.6  # 0.0-1.0 scale
    max_results: int = 10  # 1-100
    weights: FieldWeights = field(default_factory=FieldWeights)
    algorithm_weights: AlgorithmWeights = field(default_factory=AlgorithmWeights)
    case_sensitive: bool = False
    fuzzy_match: bool = True  # False = exact comparison only
    normalize_names: bool = False  # run normalize_game_name on query and fields

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a nested plain dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MatchingConfig:
        """Create typed config from a (complete or partial) dictionary.

        Missing keys fall back to the dataclass defaults. No range checks are
        done here; use ``config.validate_config`` / ``merge_matching_config``.
        """
        values = dict(data)
        weights = values.pop("weights", None)
        algorithm_weights = values.pop("algorithm_weights", None)
        return cls(
            weights=_coerce(FieldWeights, weights),
            algorithm_weights=_coerce(AlgorithmWeights, algorithm_weights),
            **values,
        )


@dataclass(frozen=True)
class RankingWeights:
    """Contribution of each factor to a re-ranked result's final score (sums to 1.0)."""
    similarity: float = 0.5
    quality: float = 0.3
    completeness: float = 0.2

    def total(self) -> float:
        return self.similarity + self.quality + self.completeness

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class QualityWeights:
    """Blend of the record quality dimensions (sums to 1.0)."""
    completeness: float = 0.5
    tag_richness: float = 0.25
    description_quality: float = 0.25

    def total(self) -> float:
        return self.completeness + self.tag_richness + self.description_quality

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class RankingConfig:
    """Result post-processing (aligned with _DEFAULTS['ranking'])."""
    dimension_weights: RankingWeights = field(default_factory=RankingWeights)
    quality_weights: QualityWeights = field(default_factory=QualityWeights)
    deduplicate: bool = True
    dedup_strategy: str = "content"  # title | content | similarity | normalized | id
    top_n: int = 10
    min_similarity: float = 0.3
    min_quality: float = 0.5  # used by apply_threshold only

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RankingConfig:
        values = dict(data)
        dimension_weights = values.pop("dimension_weights", None)
        quality_weights = values.pop("quality_weights", None)
        return cls(
            dimension_weights=_coerce(RankingWeights, dimension_weights),
            quality_weights=_coerce(QualityWeights, quality_weights),
            **values,
        )


@dataclass(frozen=True)
class BatchConfig:
    """Batch matching configuration."""
    workers: int = 1  # >1 fans queries out over a thread pool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AppConfig:
    """Root application configuration with all subsections."""
    log_level: str = "INFO"
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    ranking: RankingConfig = field(default_factory=RankingConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to nested dictionary matching the config format."""
        return {
            "log_level": self.log_level,
            "matching": self.matching.to_dict(),
            "batch": self.batch.to_dict(),
            "ranking": self.ranking.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AppConfig:
        """Create typed config from dictionary (as returned by load_config)."""
        return cls(
            log_level=data.get("log_level", "INFO"),
            matching=MatchingConfig.from_dict(data.get("matching", {})),
            batch=BatchConfig(**data.get("batch", {})),
            ranking=RankingConfig.from_dict(data.get("ranking", {})),
        )


def _coerce(kind, value):
    if value is None:
        return kind()
    if isinstance(value, kind):
        return value
    return kind(**value)


__all__ = [
    "FieldWeights",
    "AlgorithmWeights",
    "MatchingConfig",
    "RankingWeights",
    "QualityWeights",
    "RankingConfig",
    "BatchConfig",
    "AppConfig",
]
