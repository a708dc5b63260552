"""Progress and summary lines for batch matching runs."""

import logging
import click

logger = logging.getLogger(__name__)


def _counts(matched: int, unmatched: int) -> list:
    parts = []
    if matched:
        parts.append(click.style(f'{matched} matched', fg='green'))
    if unmatched:
        parts.append(click.style(f'{unmatched} unmatched', fg='yellow'))
    return parts


def log_progress(
    processed: int,
    total: int | None,
    matched: int = 0,
    unmatched: int = 0,
    elapsed_seconds: float = 0.0,
    item_name: str = "queries"
) -> None:
    """Log one INFO progress line, e.g. ``50/200 queries (25%) | 40 matched | 25.0 queries/s``.

    Args:
        processed: Items done so far
        total: Items overall, or None when unknown
        matched: Items with at least one result
        unmatched: Items without results
        elapsed_seconds: Wall time since the run started
        item_name: Plural noun for the items
    """
    if total:
        head = f"{click.style(f'{processed}/{total}', fg='cyan')} {item_name} ({processed / total:.0%})"
    else:
        head = f"{click.style(str(processed), fg='cyan')} {item_name} processed"
    parts = [head, *_counts(matched, unmatched)]
    if elapsed_seconds > 0:
        parts.append(f"{processed / elapsed_seconds:.1f} {item_name}/s")
    logger.info(" | ".join(parts))


def format_summary(
    matched: int,
    unmatched: int,
    results: int = 0,
    duration_seconds: float = 0.0,
    item_name: str = "Queries"
) -> str:
    """Final one-line summary: ``✓ Queries: 3 matched 1 unmatched 12 results in 0.50s``.

    Zero counts are still shown for matched/unmatched; results and duration
    only when non-zero.
    """
    parts = [
        click.style('✓', fg='green'),
        f"{item_name}:",
        click.style(f'{matched} matched', fg='green'),
        click.style(f'{unmatched} unmatched', fg='yellow'),
    ]
    if results:
        parts.append(click.style(f'{results} results', fg='blue'))
    if duration_seconds > 0:
        parts.append(f"in {duration_seconds:.2f}s")
    return " ".join(parts)


__all__ = ["log_progress", "format_summary"]
