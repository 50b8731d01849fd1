"""
Repo Mirror — CLI Entry Point

Usage:
    python -m repo_mirror run [--skip-bootstrap] [--concurrency N]
    python -m repo_mirror plan
"""

from __future__ import annotations

# Load .env before anything reads MIRROR_* variables
from pathlib import Path
from dotenv import load_dotenv

_env_file = Path.cwd() / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

from typing import Optional

import click

from .logging_config import setup_logging
from .mirror.config import MirrorSettings
from .mirror.errors import BootstrapError
from .mirror.manager import MirrorManager
from .mirror.spec import parse_specs


@click.group()
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR")
@click.option("--log-format", default=None, type=click.Choice(["text", "json"]))
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str], log_format: Optional[str]) -> None:
    """Repo Mirror — force-mirror repositories into a destination organization."""
    setup_logging(log_level, log_format)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = MirrorSettings.from_env()


@cli.command()
@click.option("--repositories", default=None, help="Newline-separated owner/name[@branch][->target]")
@click.option("--org", default=None, help="Destination organization")
@click.option("--concurrency", default=None, type=click.IntRange(min=1), help="Max mirrors in flight")
@click.option("--skip-bootstrap", is_flag=True, help="Assume ssh-agent and known_hosts are ready")
@click.pass_context
def run(
    ctx: click.Context,
    repositories: Optional[str],
    org: Optional[str],
    concurrency: Optional[int],
    skip_bootstrap: bool,
) -> None:
    """Mirror every configured repository."""
    settings: MirrorSettings = ctx.obj["settings"].with_overrides(
        repositories=repositories,
        org=org,
        concurrency=concurrency,
    )

    missing = settings.missing_inputs(include_key=not skip_bootstrap)
    if missing:
        raise click.ClickException(f"Input required and not supplied: {', '.join(missing)}")

    manager = MirrorManager(settings)
    try:
        result = manager.run(bootstrap=not skip_bootstrap)
    except BootstrapError as e:
        raise click.ClickException(str(e))
    finally:
        manager.close()

    if result.any_failed:
        raise click.ClickException(result.summary())

    click.secho(f"✓ {result.summary()}", fg="green")


@cli.command()
@click.option("--repositories", default=None, help="Newline-separated owner/name[@branch][->target]")
@click.pass_context
def plan(ctx: click.Context, repositories: Optional[str]) -> None:
    """Show what would be mirrored, without touching git or the API."""
    settings: MirrorSettings = ctx.obj["settings"].with_overrides(repositories=repositories)
    specs = parse_specs(settings.repositories)
    org = settings.org or "<org>"

    if not specs:
        click.echo("No repositories configured.")
        return

    for spec in specs:
        click.echo(spec.indicator(org))
    click.echo(f"\n{len(specs)} repositories, concurrency {settings.concurrency}")


if __name__ == "__main__":
    cli()
