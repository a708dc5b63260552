"""Module entry point for `python -m gamematch.cli`."""

if __name__ == "__main__":  # pragma: no cover (invocation driven)
    from gamematch.cli import cli

    cli()
