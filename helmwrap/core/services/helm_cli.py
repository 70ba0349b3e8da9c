"""
Helm CLI client — one method per helm subcommand.

Builds correctly ordered argument vectors, runs them through
``helmwrap.adapters.shell.command.Command`` and parses the text that comes
back (see ``helm_parsers``).

Every call gets a fresh ``Command``, so attempt/error history never
leaks from one operation into the next.  None of the subcommands retry;
use ``Command.run()`` directly for that.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable
from pathlib import Path
from urllib.parse import urlsplit

from helmwrap.adapters.shell.command import Command, CommandError
from helmwrap.adapters.shell.filesystem import file_exists, glob_files, remove_file
from helmwrap.core.services.helm_parsers import (
    parse_release_statuses,
    parse_repo_list,
    parse_search_versions,
)

logger = logging.getLogger(__name__)

DEFAULT_BINARY = "helm"
CHART_FILE = "Chart.yaml"
REQUIREMENTS_LOCK = "requirements.lock"
PREVIEW_CHART_SUFFIX = "/preview/Chart.yaml"

_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
# reg-name or bracketed IP literal, optional port
_HOST = re.compile(r"^(\[[0-9A-Za-z:.%_-]*\]|[A-Za-z0-9._~!$&'()*+,;=%-]*)(:[0-9]*)?$")


class HelmError(Exception):
    """Raised when a helm operation fails."""


class ChartNotFoundError(HelmError):
    """Raised when no Chart.yaml can be located."""


class HelmCLI:
    """Drive the helm command-line tool.

    Args:
        binary: Helm executable name or path.
        cwd: Working directory for every helm call (empty = current dir).
        *args: Global arguments placed before every subcommand; each is
            split on spaces (e.g. ``"--kube-context prod"``).
        verbose: Log helm output at INFO.
        quiet: Discard helm output of subcommands whose output is not
            returned (output that is parsed or returned is always captured).
        extra_paths: Directories appended to PATH for helm and its plugins.
    """

    def __init__(
        self,
        binary: str = DEFAULT_BINARY,
        cwd: str = "",
        *args: str,
        verbose: bool = False,
        quiet: bool = False,
        extra_paths: Iterable[str] = (),
    ):
        self._binary = binary
        self._cwd = cwd
        self.default_args = [part for arg in args for part in arg.split(" ")]
        self.verbose = verbose
        self.quiet = quiet
        self.extra_paths = list(extra_paths)
        self.last_command: Command | None = None

    def __repr__(self) -> str:
        return f"<HelmCLI binary={self._binary!r} cwd={self._cwd!r}>"

    # ── Configuration ────────────────────────────────────────────

    @property
    def binary(self) -> str:
        return self._binary

    def set_binary(self, binary: str) -> None:
        self._binary = binary

    @property
    def cwd(self) -> str:
        return self._cwd

    def set_cwd(self, cwd: str) -> None:
        self._cwd = cwd

    def command(self, *args: str) -> Command:
        """A fresh ``Command`` for ``helm <args>`` in the configured directory."""
        return Command(
            name=self._binary,
            args=[*self.default_args, *args],
            dir=self._cwd,
            verbose=self.verbose,
            quiet=self.quiet,
            extra_paths=list(self.extra_paths),
        )

    def _run_helm(self, *args: str) -> None:
        cmd = self.command(*args)
        self.last_command = cmd
        cmd.run_without_retry()

    def _run_helm_with_output(self, *args: str) -> str:
        cmd = self.command(*args)
        cmd.quiet = False  # the output is the result
        self.last_command = cmd
        return cmd.run_without_retry()

    # ── Tiller / repositories ────────────────────────────────────

    def init(
        self,
        client_only: bool = False,
        service_account: str = "",
        tiller_namespace: str = "",
        upgrade: bool = False,
    ) -> None:
        """Run ``helm init`` with the given flags."""
        args = ["init"]
        if client_only:
            args.append("--client-only")
        if service_account:
            args.extend(["--service-account", service_account])
        if tiller_namespace:
            args.extend(["--tiller-namespace", tiller_namespace])
        if upgrade:
            args.append("--upgrade")
        self._run_helm(*args)

    def add_repo(self, repo: str, url: str) -> None:
        self._run_helm("repo", "add", repo, url)

    def remove_repo(self, repo: str) -> None:
        self._run_helm("repo", "remove", repo)

    def list_repos(self) -> dict[str, str]:
        """Installed helm repositories as ``{name: url}``."""
        try:
            output = self._run_helm_with_output("repo", "list")
        except CommandError as e:
            raise HelmError(f"failed to list repositories: {e}") from e
        return parse_repo_list(output)

    def is_repo_missing(self, url: str) -> bool:
        """Whether no configured repository points at the host of ``url``.

        Raises:
            HelmError: Listing failed, or ``url`` or a stored repo URL is malformed.
        """
        try:
            repos = self.list_repos()
        except HelmError as e:
            raise HelmError(f"failed to list the repositories: {e}") from e

        try:
            searched_host = _url_host(url)
        except ValueError as e:
            raise HelmError(f"provided repo URL is invalid: {e}") from e

        for repo_url in repos.values():
            if not repo_url:
                continue
            try:
                host = _url_host(repo_url)
            except ValueError as e:
                raise HelmError(f"failed to parse the repo URL: {e}") from e
            if host == searched_host:
                return False
        return True

    def update_repo(self) -> None:
        self._run_helm("repo", "update")

    # ── Dependencies ─────────────────────────────────────────────

    def remove_requirements_lock(self) -> None:
        """Delete ``requirements.lock`` from the working directory, if present."""
        path = os.path.join(self._cwd, REQUIREMENTS_LOCK)
        try:
            removed = remove_file(path)
        except OSError as e:
            raise HelmError(
                f"failed to remove the {REQUIREMENTS_LOCK} file in directory '{self._cwd}': {e}"
            ) from e
        if removed:
            logger.debug("Removed %s", path)

    def build_dependency(self) -> None:
        self._run_helm("dependency", "build")

    # ── Releases ─────────────────────────────────────────────────

    def install_chart(
        self,
        chart: str,
        release_name: str,
        namespace: str,
        version: str | None = None,
        timeout: int | None = None,
        values: Iterable[str] = (),
        value_files: Iterable[str] = (),
    ) -> None:
        """Run ``helm install`` for ``chart`` as ``release_name``."""
        args = ["install", "--name", release_name, "--namespace", namespace, chart]
        if timeout is not None:
            args.extend(["--timeout", str(timeout)])
        if version is not None:
            args.extend(["--version", version])
        for value in values:
            args.extend(["--set", value])
        for value_file in value_files:
            args.extend(["--values", value_file])
        self._run_helm(*args)

    def upgrade_chart(
        self,
        chart: str,
        release_name: str,
        namespace: str,
        version: str | None = None,
        install: bool = False,
        timeout: int | None = None,
        force: bool = False,
        wait: bool = False,
        values: Iterable[str] = (),
        value_files: Iterable[str] = (),
    ) -> None:
        """Run ``helm upgrade``; release and chart go last."""
        args = ["upgrade", "--namespace", namespace]
        if install:
            args.append("--install")
        if wait:
            args.append("--wait")
        if force:
            args.append("--force")
        if timeout is not None:
            args.extend(["--timeout", str(timeout)])
        if version is not None:
            args.extend(["--version", version])
        for value in values:
            args.extend(["--set", value])
        for value_file in value_files:
            args.extend(["--values", value_file])
        args.extend([release_name, chart])
        self._run_helm(*args)

    def delete_release(self, release_name: str, purge: bool = False) -> None:
        args = ["delete"]
        if purge:
            args.append("--purge")
        args.append(release_name)
        self._run_helm(*args)

    def list_charts(self) -> str:
        """Raw ``helm list`` output."""
        return self._run_helm_with_output("list")

    def status_release(self, release_name: str) -> str:
        """Raw `helm status` output for one release."""
        return self._run_helm_with_output("status", release_name)

    def status_releases(self) -> dict[str, str]:
        """Status of every installed release as ``{release: status}``."""
        try:
            output = self.list_charts()
        except CommandError as e:
            raise HelmError(f"failed to list the installed chart releases: {e}") from e
        return parse_release_statuses(output)

    # ── Charts ───────────────────────────────────────────────────

    def search_chart_versions(self, chart: str) -> list[str]:
        """All versions of ``chart`` known to the configured repositories."""
        try:
            output = self._run_helm_with_output("search", chart, "--versions")
        except CommandError as e:
            raise HelmError(f"failed to search chart '{chart}': {e}") from e
        return parse_search_versions(output)

    def find_chart(self) -> str:
        """Locate the chart to work on.

        Looks for ``Chart.yaml`` in the working directory, then one level
        down, then two levels down (skipping ``*/preview/Chart.yaml``).
        Both globs are evaluated under the client working directory (the
        process cwd only when none is set) and the match is joined onto it,
        so a chart below the process cwd is never picked for another
        working directory.

        Raises:
            HelmError: The existence check itself failed.
            ChartNotFoundError: No chart file was found.
        """
        root = self._cwd or "."
        chart_file = os.path.join(self._cwd, CHART_FILE)
        try:
            exists = file_exists(chart_file)
        except OSError as e:
            raise HelmError(f"no {CHART_FILE} file found in directory '{self._cwd}': {e}") from e
        if exists:
            return chart_file

        files = glob_files(root, f"*/{CHART_FILE}")
        if files:
            return os.path.join(self._cwd, files[0])

        for candidate in glob_files(root, f"*/*/{CHART_FILE}"):
            if not f"/{candidate}".endswith(PREVIEW_CHART_SUFFIX):
                return os.path.join(self._cwd, candidate)

        raise ChartNotFoundError(f"no {CHART_FILE} file found in directory '{Path(root).resolve()}'")

    def lint(self) -> str:
        """Lint the chart in the working directory; returns helm's report."""
        return self._run_helm_with_output("lint")

    def version(self, tls: bool = False) -> str:
        args = ["version", "--short"]
        if tls:
            args.append("--tls")
        return self._run_helm_with_output(*args)

    def package_chart(self) -> None:
        self._run_helm("package", self._cwd or ".")


def _url_host(url: str) -> str:
    """Host (with port) of ``url``.

    Raises:
        ValueError: ``url`` is malformed.
    """
    if any(ord(c) < 0x20 or ord(c) == 0x7F for c in url):
        raise ValueError(f"invalid control character in URL {url!r}")
    if url.startswith(":"):
        raise ValueError(f"missing protocol scheme in URL {url!r}")
    if _BAD_ESCAPE.search(url):
        raise ValueError(f"invalid URL escape in {url!r}")
    parts = urlsplit(url)
    _ = parts.port  # raises ValueError on a bad port
    host = parts.netloc.rpartition("@")[2]
    if not _HOST.match(host):
        raise ValueError(f"invalid character in host name {host!r}")
    return host
