"""Styled fragments for CLI output (ranked matches, status lines)."""

import click

_CONFIDENCE_COLORS = {'excellent': 'green', 'good': 'cyan', 'fair': 'yellow', 'poor': 'red'}
_MARKERS = {
    'success': ('✓', 'green'),
    'error': ('✗', 'red'),
    'warning': ('⚠', 'yellow'),
}


def _marked(kind: str, text: str) -> str:
    symbol, color = _MARKERS[kind]
    return f"{click.style(symbol, fg=color)} {text}"


def success(text: str) -> str:
    return _marked('success', text)


def error(text: str) -> str:
    return _marked('error', text)


def warning(text: str) -> str:
    return _marked('warning', text)


def section_header(text: str) -> str:
    return click.style(f"▶ {text}", fg='cyan', bold=True)


def detail(text: str) -> str:
    """Indented secondary line under a result."""
    return f"     {click.style('·', fg='bright_black')} {text}"


def similarity_badge(similarity: float, confidence: str) -> str:
    """Score colored by confidence tier, e.g. ``0.912 [excellent]``."""
    color = _CONFIDENCE_COLORS.get(confidence, 'white')
    return f"{click.style(f'{similarity:.3f}', fg=color, bold=True)} [{confidence}]"


def result_line(rank: int, title: str, similarity: float, confidence: str) -> str:
    """One ranked match: ``  1. Super Mario Bros 0.677 [good]``."""
    return f"{rank:>3}. {title} {similarity_badge(similarity, confidence)}"


def divider(width: int = 60) -> str:
    return click.style("─" * width, fg='bright_black')


__all__ = [
    "success",
    "error",
    "warning",
    "section_header",
    "detail",
    "similarity_badge",
    "result_line",
    "divider",
]
