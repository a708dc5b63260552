from __future__ import annotations
import json
import click

from .helpers import cli
from ..config import config_errors, ranking_config_errors
from ..utils import output


@cli.command(name='config')
@click.option('--section', type=click.Choice(['matching', 'ranking', 'batch', 'log_level']), default=None,
              help='Only show one section')
@click.option('--check', is_flag=True, help='Validate the matching and ranking sections and exit non-zero if invalid')
@click.pass_context
def config_cmd(ctx: click.Context, section: str | None, check: bool):
    """Show the effective configuration (defaults + .env + environment)."""
    cfg = ctx.obj
    if check:
        errors = config_errors(cfg.get('matching', {}))
        errors += [f"ranking: {line}" for line in ranking_config_errors(cfg.get('ranking', {}))]
        if errors:
            for line in errors:
                click.echo(output.error(line), err=True)
            ctx.exit(1)
        click.echo(output.success("Matching configuration is valid"))
        return

    data = cfg if section is None else {section: cfg.get(section)}
    click.echo(json.dumps(data, indent=2, sort_keys=True))


__all__ = ["config_cmd"]
