"""Matching engine: rank candidate games for one or many free-text queries.

The engine is a set of pure functions. Each call merges the caller's partial
override onto the defaults, validates the merged config, scores every
candidate with ``scoring.evaluate_candidate`` and returns fresh results.
Nothing is cached and no state survives a call, so concurrent use from
several threads needs no locking.

Example usage:
    results = match_games("mario", games, {"threshold": 0.3, "max_results": 5})
    by_query = batch_match_games(["mario", "tetris"], games, workers=4)
"""

from __future__ import annotations
import time
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence

from ..config import merge_matching_config
from ..config_types import MatchingConfig
from ..utils.logging_helpers import log_progress
from .scoring import CandidateLike, MatchResult, evaluate_candidate, prepare_text

logger = logging.getLogger(__name__)


def _rank(query: str, candidates: Sequence[CandidateLike], cfg: MatchingConfig) -> List[MatchResult]:
    """Score, filter, sort and truncate against an already merged config."""
    start = time.time()
    prepared_query = prepare_text(query, cfg)

    kept: List[MatchResult] = []
    for game in candidates:
        result = evaluate_candidate(prepared_query, game, cfg)
        if result.similarity >= cfg.threshold:
            kept.append(result)

    # sorted() is stable: equal similarities keep candidate order
    ranked = sorted(kept, key=lambda r: r.similarity, reverse=True)[: cfg.max_results]

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            f"match query={query!r} candidates={len(candidates)} "
            f"above_threshold={len(kept)} returned={len(ranked)} in {time.time() - start:.3f}s"
        )
    return ranked


def match_games(
    query: str,
    candidates: Sequence[CandidateLike],
    config_override: Optional[Any] = None,
) -> List[MatchResult]:
    """Rank candidates by similarity to a free-text query.

    Args:
        query: Free-text game name
        candidates: GameCandidate objects or plain mappings (id, title,
                    description, tags); never mutated
        config_override: Partial override (mapping or MatchingConfig) merged
                         onto ``get_default_config()``

    Returns:
        Results with ``similarity >= threshold``, best first, at most
        ``max_results``. Empty when the query is blank or there are no
        candidates.

    Raises:
        ConfigurationError: If the merged config is invalid
    """
    if not query or not query.strip() or not candidates:
        return []
    cfg = merge_matching_config(config_override)
    return _rank(query.strip(), candidates, cfg)


def batch_match_games(
    queries: Sequence[str],
    candidates: Sequence[CandidateLike],
    config_override: Optional[Any] = None,
    workers: int = 1,
    progress_interval: Optional[int] = None,
) -> Dict[str, List[MatchResult]]:
    """Run ``match_games`` for every query against the full candidate set.

    The config is merged and validated once up front, so an invalid override
    fails before any query is scored.

    Args:
        queries: Query strings; output keys follow this order (duplicates
                 collapse onto one key)
        candidates: Shared, read-only candidate list
        config_override: Partial override applied to every query
        workers: Thread count; 1 runs sequentially
        progress_interval: Log progress every N queries (sequential mode)

    Returns:
        Dict query -> ranked results (possibly empty list)

    Raises:
        ConfigurationError: If the merged config is invalid
    """
    if not queries:
        return {}
    cfg = merge_matching_config(config_override)
    start = time.time()

    def run(query: str) -> List[MatchResult]:
        if not query or not query.strip() or not candidates:
            return []
        return _rank(query.strip(), candidates, cfg)

    results: Dict[str, List[MatchResult]] = {}
    if workers > 1 and len(queries) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            # map() yields in submission order
            for query, matches in zip(queries, pool.map(run, queries)):
                results[query] = matches
    else:
        last_progress_log = 0
        for processed, query in enumerate(queries, start=1):
            results[query] = run(query)
            if progress_interval and processed - last_progress_log >= progress_interval:
                matched = sum(1 for m in results.values() if m)
                log_progress(
                    processed=processed,
                    total=len(queries),
                    matched=matched,
                    unmatched=len(results) - matched,
                    elapsed_seconds=time.time() - start,
                    item_name="queries",
                )
                last_progress_log = processed

    matched = sum(1 for m in results.values() if m)
    logger.debug(
        f"batch matched {matched}/{len(results)} queries against "
        f"{len(candidates)} candidates in {time.time() - start:.2f}s (workers={workers})"
    )
    return results


__all__ = ["match_games", "batch_match_games"]
