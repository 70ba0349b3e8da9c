"""
helmwrap — CLI entrypoint.

Usage:
    python -m helmwrap.main --help
    python -m helmwrap.main helm repo list
    python -m helmwrap.main helm status --json
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from helmwrap import __version__
from helmwrap.core.observability.logging_config import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="helmwrap")
@click.option("--verbose", "-v", is_flag=True, help="Echo helm output and enable info logging.")
@click.option("--quiet", "-q", is_flag=True, help="Discard helm output and log errors only.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to helmwrap.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """helmwrap — drive the helm CLI and read its output as data."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(level=resolve_level(debug=debug, verbose=verbose, quiet=quiet))


@cli.group()
def config() -> None:
    """helmwrap configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate helmwrap.yml and show the effective settings."""
    from helmwrap.core.config.loader import ConfigError, find_config_file, load_settings

    config_path = ctx.obj.get("config_path")
    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        if as_json:
            click.echo(json.dumps({"valid": False, "error": str(e)}, indent=2))
        else:
            click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    source = config_path or find_config_file()
    if as_json:
        click.echo(json.dumps({
            "valid": True,
            "path": str(source) if source else None,
            "settings": settings.model_dump(),
        }, indent=2))
        return

    click.secho("✅ Configuration is valid", fg="green", bold=True)
    click.echo(f"   File: {source or '(defaults)'}")
    click.echo(f"   Helm: {settings.helm.binary}")
    click.echo(f"   Working dir: {settings.helm.cwd or '.'}")
    click.echo(f"   Retry budget: {settings.retry.timeout:g}s")
    click.echo()


# ── Register sub-command groups from helmwrap/ui/cli/ ─────────────

from helmwrap.ui.cli.helm import helm

cli.add_command(helm)


if __name__ == "__main__":
    cli()