from __future__ import annotations
import json
import click
from pathlib import Path
from typing import Any, Dict, List

from ..config import load_config
from ..version import __version__
from ..match.scoring import GameCandidate


@click.group()
@click.version_option(version=__version__, prog_name="gamematch")
@click.pass_context
def cli(ctx: click.Context):
    """Fuzzy game-title matching against a local candidate catalogue.

    \b
    TYPICAL WORKFLOWS:

    \b
    Single lookup:
      gamematch match "super mario" -c games.json

    \b
    Many lookups at once:
      gamematch batch -c games.json --queries queries.txt --workers 4

    \b
    Inspect:
      gamematch normalize "Final Fantasy VII - Remake (HD)"
      gamematch config --check

    \b
    Configuration comes from GAMEMATCH__* environment variables (or .env),
    e.g. GAMEMATCH__MATCHING__THRESHOLD=0.5. Command options win.
    """
    if not isinstance(ctx.obj, dict):
        ctx.obj = load_config()


def load_candidates(path: str | Path) -> List[GameCandidate]:
    """Read a JSON array of game records.

    Args:
        path: File containing ``[{"id": ..., "title": ..., "description": ..., "tags": [...]}, ...]``

    Returns:
        GameCandidate list in file order

    Raises:
        click.ClickException: If the file is not a JSON array of valid records
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding='utf-8'))
    except ValueError as e:
        raise click.ClickException(f"{path}: not valid JSON ({e})")
    if not isinstance(data, list):
        raise click.ClickException(f"{path}: expected a JSON array of games")

    candidates: List[GameCandidate] = []
    for index, record in enumerate(data):
        if not isinstance(record, dict):
            raise click.ClickException(f"{path}: entry {index} is not an object")
        if record.get("id") is None:
            record = {**record, "id": index}
        try:
            candidates.append(GameCandidate.from_dict(record))
        except ValueError as e:
            raise click.ClickException(f"{path}: entry {index}: {e}")
    return candidates


def matching_override(cfg: Dict[str, Any], **options: Any) -> Dict[str, Any]:
    """Combine the loaded matching section with command-line options.

    Options left as None are not applied.
    """
    override = dict(cfg.get('matching', {}))
    override.update({k: v for k, v in options.items() if v is not None})
    return override


__all__ = ["cli", "load_candidates", "matching_override"]
