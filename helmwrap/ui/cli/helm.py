"""
CLI commands for helm.

Thin wrappers over ``helmwrap.core.services.helm_cli``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click

from helmwrap.adapters.shell.command import CommandError
from helmwrap.core.config.loader import ConfigError, load_settings
from helmwrap.core.models.settings import Settings
from helmwrap.core.services.helm_cli import HelmCLI, HelmError


def _settings(ctx: click.Context) -> Settings:
    """Load settings and apply the global/group overrides."""
    config_path: Path | None = ctx.obj.get("config_path")
    try:
        settings = load_settings(config_path)
    except ConfigError as e:
        _fail(e)

    helm_settings = settings.helm
    if ctx.obj.get("binary"):
        helm_settings.binary = ctx.obj["binary"]
    if ctx.obj.get("cwd"):
        helm_settings.cwd = ctx.obj["cwd"]
    if ctx.obj.get("verbose"):
        helm_settings.verbose = True
    if ctx.obj.get("quiet"):
        helm_settings.quiet = True
    return settings


def _client(ctx: click.Context) -> HelmCLI:
    return _settings(ctx).helm.client()


def _fail(error: Exception, as_json: bool = False) -> None:
    """Report an error and exit 1."""
    if as_json:
        click.echo(json.dumps({"error": str(error)}, indent=2))
    else:
        click.secho(f"❌ {error}", fg="red")
    sys.exit(1)


def _call(fn, *args: Any, as_json: bool = False, **kwargs: Any) -> Any:
    """Invoke a client method, turning helm failures into a clean exit."""
    try:
        return fn(*args, **kwargs)
    except (HelmError, CommandError) as e:
        _fail(e, as_json)


def _echo_output(output: str) -> None:
    if output:
        click.echo(output)


@click.group("helm")
@click.option("--binary", default=None, help="Helm executable (default: from config or 'helm').")
@click.option("--cwd", default=None, type=click.Path(file_okay=False), help="Working directory.")
@click.pass_context
def helm(ctx: click.Context, binary: str | None, cwd: str | None) -> None:
    """Helm — repositories, charts, releases."""
    ctx.ensure_object(dict)
    ctx.obj["binary"] = binary
    ctx.obj["cwd"] = cwd


# ── Setup ───────────────────────────────────────────────────────


@helm.command("init")
@click.option("--client-only", is_flag=True, help="Don't install Tiller.")
@click.option("--service-account", default="", help="Service account for Tiller.")
@click.option("--tiller-namespace", default="", help="Namespace of Tiller.")
@click.option("--upgrade", is_flag=True, help="Upgrade Tiller if already installed.")
@click.pass_context
def init(
    ctx: click.Context,
    client_only: bool,
    service_account: str,
    tiller_namespace: str,
    upgrade: bool,
) -> None:
    """Initialize helm."""
    client = _client(ctx)
    _call(client.init, client_only, service_account, tiller_namespace, upgrade)
    click.secho("✅ helm initialized", fg="green")


# ── Repositories ────────────────────────────────────────────────


@helm.group("repo")
def repo() -> None:
    """Chart repositories."""


@repo.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def repo_list(ctx: click.Context, as_json: bool) -> None:
    """List configured repositories."""
    repos = _call(_client(ctx).list_repos, as_json=as_json)

    if as_json:
        click.echo(json.dumps(repos, indent=2))
        return

    if not repos:
        click.secho("⚠️  No repositories configured", fg="yellow")
        return

    click.secho(f"📦 Repositories ({len(repos)}):", fg="cyan", bold=True)
    for name, url in repos.items():
        click.echo(f"   • {name}  → {url or '?'}")


@repo.command("add")
@click.argument("name")
@click.argument("url")
@click.pass_context
def repo_add(ctx: click.Context, name: str, url: str) -> None:
    """Add a repository."""
    _call(_client(ctx).add_repo, name, url)
    click.secho(f"✅ Added {name}", fg="green")


@repo.command("remove")
@click.argument("name")
@click.pass_context
def repo_remove(ctx: click.Context, name: str) -> None:
    """Remove a repository."""
    _call(_client(ctx).remove_repo, name)
    click.secho(f"✅ Removed {name}", fg="green")


@repo.command("update")
@click.pass_context
def repo_update(ctx: click.Context) -> None:
    """Refresh the repository indexes."""
    _call(_client(ctx).update_repo)
    click.secho("✅ Repositories updated", fg="green")


@repo.command("missing")
@click.argument("url")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def repo_missing(ctx: click.Context, url: str, as_json: bool) -> None:
    """Check whether a repository for URL's host is configured (exit 1 if missing)."""
    missing = _call(_client(ctx).is_repo_missing, url, as_json=as_json)

    if as_json:
        click.echo(json.dumps({"url": url, "missing": missing}, indent=2))
    elif missing:
        click.secho(f"⚠️  No repository for {url}", fg="yellow")
    else:
        click.secho(f"✅ Repository for {url} is configured", fg="green")
    if missing:
        sys.exit(1)


# ── Dependencies ────────────────────────────────────────────────


@helm.group("dep")
def dep() -> None:
    """Chart dependencies."""


@dep.command("build")
@click.option("--clean-lock", is_flag=True, help="Remove requirements.lock first.")
@click.pass_context
def dep_build(ctx: click.Context, clean_lock: bool) -> None:
    """Build chart dependencies."""
    client = _client(ctx)
    if clean_lock:
        _call(client.remove_requirements_lock)
    _call(client.build_dependency)
    click.secho("✅ Dependencies built", fg="green")


@dep.command("clean-lock")
@click.pass_context
def dep_clean_lock(ctx: click.Context) -> None:
    """Remove requirements.lock from the working directory."""
    _call(_client(ctx).remove_requirements_lock)
    click.secho("✅ requirements.lock removed", fg="green")


# ── Releases ────────────────────────────────────────────────────


@helm.command("install")
@click.argument("chart")
@click.option("--name", "release_name", required=True, help="Release name.")
@click.option("--namespace", "-n", required=True, help="Target namespace.")
@click.option("--version", "chart_version", default=None, help="Chart version.")
@click.option("--timeout", type=int, default=None, help="Timeout in seconds.")
@click.option("--set", "values", multiple=True, help="key=value (repeatable).")
@click.option("--values", "-f", "value_files", multiple=True, help="Values file (repeatable).")
@click.pass_context
def install(
    ctx: click.Context,
    chart: str,
    release_name: str,
    namespace: str,
    chart_version: str | None,
    timeout: int | None,
    values: tuple[str, ...],
    value_files: tuple[str, ...],
) -> None:
    """Install CHART as a new release."""
    _call(
        _client(ctx).install_chart,
        chart, release_name, namespace,
        version=chart_version, timeout=timeout,
        values=values, value_files=value_files,
    )
    click.secho(f"✅ Installed {release_name}", fg="green")


@helm.command("upgrade")
@click.argument("release_name")
@click.argument("chart")
@click.option("--namespace", "-n", required=True, help="Target namespace.")
@click.option("--version", "chart_version", default=None, help="Chart version.")
@click.option("--install", "install_missing", is_flag=True, help="Install if not present.")
@click.option("--timeout", type=int, default=None, help="Timeout in seconds.")
@click.option("--force", is_flag=True, help="Force resource updates.")
@click.option("--wait", is_flag=True, help="Wait until resources are ready.")
@click.option("--set", "values", multiple=True, help="key=value (repeatable).")
@click.option("--values", "-f", "value_files", multiple=True, help="Values file (repeatable).")
@click.pass_context
def upgrade(
    ctx: click.Context,
    release_name: str,
    chart: str,
    namespace: str,
    chart_version: str | None,
    install_missing: bool,
    timeout: int | None,
    force: bool,
    wait: bool,
    values: tuple[str, ...],
    value_files: tuple[str, ...],
) -> None:
    """Upgrade RELEASE_NAME to CHART."""
    _call(
        _client(ctx).upgrade_chart,
        chart, release_name, namespace,
        version=chart_version, install=install_missing, timeout=timeout,
        force=force, wait=wait, values=values, value_files=value_files,
    )
    click.secho(f"✅ Upgraded {release_name}", fg="green")


@helm.command("delete")
@click.argument("release_name")
@click.option("--purge", is_flag=True, help="Remove the release from the store.")
@click.pass_context
def delete(ctx: click.Context, release_name: str, purge: bool) -> None:
    """Delete a release."""
    _call(_client(ctx).delete_release, release_name, purge)
    click.secho(f"✅ Deleted {release_name}", fg="green")


@helm.command("list")
@click.pass_context
def list_releases(ctx: click.Context) -> None:
    """Show raw `helm list` output."""
    _echo_output(_call(_client(ctx).list_charts))


@helm.command("status")
@click.argument("release_name", required=False)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, release_name: str | None, as_json: bool) -> None:
    """Show release statuses (or one release's details)."""
    client = _client(ctx)
    if release_name:
        _echo_output(_call(client.status_release, release_name))
        return

    statuses = _call(client.status_releases, as_json=as_json)

    if as_json:
        click.echo(json.dumps(statuses, indent=2))
        return

    if not statuses:
        click.secho("⚠️  No releases found", fg="yellow")
        return

    click.secho(f"⎈ Releases ({len(statuses)}):", fg="cyan", bold=True)
    for name, state in statuses.items():
        icon = "✅" if state.upper() == "DEPLOYED" else "⚠️"
        click.echo(f"   {icon} {name} — {state}")


# ── Charts ──────────────────────────────────────────────────────


@helm.command("search")
@click.argument("chart")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def search(ctx: click.Context, chart: str, as_json: bool) -> None:
    """List every available version of CHART."""
    versions = _call(_client(ctx).search_chart_versions, chart, as_json=as_json)

    if as_json:
        click.echo(json.dumps({"chart": chart, "versions": versions}, indent=2))
        return

    if not versions:
        click.secho(f"⚠️  No versions found for {chart}", fg="yellow")
        return

    click.secho(f"🔍 {chart} ({len(versions)} versions):", fg="cyan", bold=True)
    for v in versions:
        click.echo(f"   {v}")


@helm.command("find-chart")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def find_chart(ctx: click.Context, as_json: bool) -> None:
    """Locate the Chart.yaml helmwrap would use."""
    path = _call(_client(ctx).find_chart, as_json=as_json)

    if as_json:
        click.echo(json.dumps({"chart": path}, indent=2))
        return
    click.echo(path)


@helm.command("lint")
@click.pass_context
def lint(ctx: click.Context) -> None:
    """Lint the chart in the working directory."""
    _echo_output(_call(_client(ctx).lint))


@helm.command("version")
@click.option("--tls", is_flag=True, help="Use TLS to reach Tiller.")
@click.pass_context
def version(ctx: click.Context, tls: bool) -> None:
    """Show the helm version."""
    _echo_output(_call(_client(ctx).version, tls))


@helm.command("package")
@click.pass_context
def package(ctx: click.Context) -> None:
    """Package the chart in the working directory."""
    _call(_client(ctx).package_chart)
    click.secho("✅ Chart packaged", fg="green")


# ── Passthrough ─────────────────────────────────────────────────


@helm.command("exec", context_settings={"ignore_unknown_options": True})
@click.argument("args", nargs=-1, type=click.UNPROCESSED, required=True)
@click.option("--retry/--no-retry", default=True, help="Retry with backoff until the timeout.")
@click.pass_context
def exec_helm(ctx: click.Context, args: tuple[str, ...], retry: bool) -> None:
    """Run any helm command, retrying on failure.

    Example: helmwrap helm exec -- repo update
    """
    settings = _settings(ctx)
    cmd = settings.helm.client().command(*args)
    cmd.timeout = settings.retry.timeout
    cmd.backoff = settings.retry.policy()

    try:
        output = cmd.run() if retry else cmd.run_without_retry()
    except CommandError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        click.echo(f"   attempts: {cmd.attempts}", err=True)
        sys.exit(1)
    _echo_output(output)
