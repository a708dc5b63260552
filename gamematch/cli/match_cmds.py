"""Matching commands: match, batch and normalize."""

from __future__ import annotations
import json
import time
import logging
from pathlib import Path
from typing import List

import click

from .helpers import cli, load_candidates, matching_override
from ..config import ConfigurationError
from ..match.engine import batch_match_games, match_games
from ..match.ranking import RankedResult, sort_and_filter
from ..match.scoring import FIELDS, MatchResult
from ..utils.logging_helpers import format_summary
from ..utils.normalization import batch_normalize
from ..utils import output

logger = logging.getLogger(__name__)


def _echo_results(results: List[MatchResult]) -> None:
    if not results:
        click.echo(output.warning("No matches above threshold"))
        return
    for rank, result in enumerate(results, start=1):
        game = result.to_dict()["game"]
        click.echo(output.result_line(rank, game['title'], result.similarity, result.confidence.value))
        fields = ", ".join(
            f"{name}={result.matched_fields[name]:.3f}" for name in FIELDS if name in result.matched_fields
        )
        click.echo(output.detail(f"id={game['id']} {fields}"))


def _echo_ranked(ranked: List[RankedResult]) -> None:
    if not ranked:
        click.echo(output.warning("No matches left after re-ranking"))
        return
    for rank, item in enumerate(ranked, start=1):
        game = item.result.to_dict()["game"]
        click.echo(output.result_line(rank, game['title'], item.similarity, item.result.confidence.value))
        click.echo(output.detail(f"id={game['id']} final={item.final_score:.3f} quality={item.quality_score:.3f}"))


def _config_failure(ctx: click.Context, exc: ConfigurationError) -> None:
    for line in exc.errors:
        click.echo(output.error(line), err=True)
    ctx.exit(2)


@cli.command()
@click.argument('query')
@click.option('--candidates', '-c', 'candidates_file', required=True,
              type=click.Path(exists=True, dir_okay=False), help='JSON array of games to match against')
@click.option('--threshold', type=float, default=None, help='Minimum similarity (0-1)')
@click.option('--max-results', type=int, default=None, help='Maximum number of results (1-100)')
@click.option('--case-sensitive/--ignore-case', default=None, help='Compare text case-sensitively')
@click.option('--exact', is_flag=True, help='Disable fuzzy matching (exact text comparison only)')
@click.option('--normalize-names', is_flag=True, help='Normalize game names before scoring')
@click.option('--rerank', is_flag=True, help='Deduplicate and re-rank by similarity, record quality and completeness')
@click.option('--json', 'as_json', is_flag=True, help='Print results as JSON')
@click.pass_context
def match(ctx: click.Context, query: str, candidates_file: str, threshold: float | None,
          max_results: int | None, case_sensitive: bool | None, exact: bool,
          normalize_names: bool | None, rerank: bool, as_json: bool):
    """Rank games in a candidate file by similarity to QUERY."""
    cfg = ctx.obj
    candidates = load_candidates(candidates_file)
    logger.debug(f"Loaded {len(candidates)} candidates from {candidates_file}")
    override = matching_override(
        cfg,
        threshold=threshold,
        max_results=max_results,
        case_sensitive=case_sensitive,
        fuzzy_match=False if exact else None,
        normalize_names=normalize_names or None,
    )
    try:
        results = match_games(query, candidates, override)
        ranked, stats = sort_and_filter(results, cfg.get('ranking')) if rerank else (None, None)
    except ConfigurationError as e:
        _config_failure(ctx, e)
        return

    if ranked is not None:
        if as_json:
            payload = {"results": [r.to_dict() for r in ranked], "stats": stats.to_dict()}
            click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
            return
        click.echo(output.section_header(f"Re-ranked matches for '{query}' ({len(candidates)} candidates)"))
        _echo_ranked(ranked)
        click.echo(output.detail(
            f"{stats.duplicates_removed} duplicates removed, "
            f"avg similarity {stats.avg_similarity:.3f}, avg quality {stats.avg_quality:.3f}"
        ))
        return

    if as_json:
        click.echo(json.dumps([r.to_dict() for r in results], indent=2, ensure_ascii=False))
        return

    click.echo(output.section_header(f"Matches for '{query}' ({len(candidates)} candidates)"))
    _echo_results(results)


@cli.command()
@click.argument('queries', nargs=-1)
@click.option('--candidates', '-c', 'candidates_file', required=True,
              type=click.Path(exists=True, dir_okay=False), help='JSON array of games to match against')
@click.option('--queries', '-q', 'queries_file', type=click.Path(exists=True, dir_okay=False),
              help='Text file with one query per line (added after QUERIES)')
@click.option('--threshold', type=float, default=None, help='Minimum similarity (0-1)')
@click.option('--max-results', type=int, default=None, help='Maximum number of results per query (1-100)')
@click.option('--workers', type=int, default=None, help='Worker threads (overrides config batch.workers)')
@click.option('--json', 'as_json', is_flag=True, help='Print results as JSON object keyed by query')
@click.pass_context
def batch(ctx: click.Context, queries: tuple, candidates_file: str, queries_file: str | None,
          threshold: float | None, max_results: int | None, workers: int | None, as_json: bool):
    """Match several queries against the same candidate file."""
    cfg = ctx.obj
    all_queries = list(queries)
    if queries_file:
        lines = Path(queries_file).read_text(encoding='utf-8').splitlines()
        all_queries.extend(line.strip() for line in lines if line.strip())
    if not all_queries:
        raise click.UsageError("Provide QUERIES arguments or --queries FILE")

    candidates = load_candidates(candidates_file)
    logger.debug(f"Loaded {len(candidates)} candidates and {len(all_queries)} queries")
    override = matching_override(cfg, threshold=threshold, max_results=max_results)
    worker_count = workers if workers is not None else cfg.get('batch', {}).get('workers', 1)

    start = time.time()
    try:
        results = batch_match_games(all_queries, candidates, override, workers=worker_count)
    except ConfigurationError as e:
        _config_failure(ctx, e)
        return
    duration = time.time() - start

    if as_json:
        payload = {q: [r.to_dict() for r in matches] for q, matches in results.items()}
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    for query, matches in results.items():
        click.echo(output.section_header(query))
        _echo_results(matches)

    matched = sum(1 for m in results.values() if m)
    click.echo(output.divider())
    click.echo(format_summary(
        matched=matched,
        unmatched=len(results) - matched,
        results=sum(len(m) for m in results.values()),
        duration_seconds=duration,
    ))


@cli.command()
@click.argument('names', nargs=-1, required=True)
@click.option('--json', 'as_json', is_flag=True, help='Print normalization results as JSON')
def normalize(names: tuple, as_json: bool):
    """Show the normalized form of one or more game NAMES."""
    results = batch_normalize(names)
    if as_json:
        payload = [
            {
                "original": r.original,
                "normalized": r.normalized,
                "applied_rules": r.applied_rules,
            }
            for r in results
        ]
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    for r in results:
        click.echo(f"{r.original} → {click.style(r.normalized, fg='green', bold=True)}")
        for step in r.steps:
            click.echo(output.detail(f"{step.rule}: '{step.before}' → '{step.after}'"))


__all__ = ["match", "batch", "normalize"]
