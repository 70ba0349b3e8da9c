"""
Shell command runner — execute an external program and capture its output.

A ``Command`` is one configured, repeatable call: program, arguments and
working directory, plus the history of every attempt made with it.  It
can run once (``run_without_retry``) or keep retrying with exponential
backoff until a total timeout (``run``).

Each attempt gets its own environment with an augmented PATH (see
``helmwrap.adapters.shell.path``).  Nothing process-wide is mutated, so
separate ``Command`` instances are safe to use from different threads.
A single instance keeps mutable history and is not.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field

from helmwrap.adapters.shell.path import command_env
from helmwrap.core.reliability.backoff import ExponentialBackOff, retry

logger = logging.getLogger(__name__)

# Total retry budget used by run() when no timeout is configured
DEFAULT_TIMEOUT = 3 * 60.0


class CommandError(Exception):
    """Raised when an external command cannot be launched or exits non-zero."""

    def __init__(
        self,
        name: str,
        args: list[str],
        dir: str,
        output: str,
        returncode: int | None = None,
        reason: str = "",
    ):
        self.name = name
        self.command_args = list(args)
        self.dir = dir
        self.output = output
        self.returncode = returncode
        message = (
            f"failed to run '{name} {' '.join(args)}' command in directory "
            f"'{dir}', output: '{output}'"
        )
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


@dataclass
class Command:
    """An external command and the record of its attempts.

    Attributes:
        name: Program to execute (looked up on the augmented PATH).
        args: Ordered argument list.
        dir: Working directory; empty means the current directory.
        timeout: Total retry budget in seconds for ``run()`` (0 = 3 minutes).
        backoff: Retry policy for ``run()``; created on demand.
        verbose: Log successful output at INFO.
        quiet: Discard output entirely (ignored when ``verbose``).
        extra_paths: Directories appended to PATH after the working directory.
        process_timeout: Per-attempt limit in seconds (None = unlimited).
    """

    name: str = ""
    args: list[str] = field(default_factory=list)
    dir: str = ""
    timeout: float = 0.0
    backoff: ExponentialBackOff | None = None
    verbose: bool = False
    quiet: bool = False
    extra_paths: list[str] = field(default_factory=list)
    process_timeout: float | None = None

    errors: list[CommandError] = field(default_factory=list)
    _attempts: int = field(default=0, init=False, repr=False)

    # ── Attempt history ──────────────────────────────────────────

    @property
    def attempts(self) -> int:
        """Number of times the command has been executed."""
        return self._attempts

    @property
    def did_error(self) -> bool:
        """Whether any execution of the command failed."""
        return len(self.errors) > 0

    @property
    def did_fail(self) -> bool:
        """Whether the command errored on every attempt so far."""
        return len(self.errors) == self._attempts

    @property
    def error(self) -> CommandError | None:
        """The last error, if any."""
        return self.errors[-1] if self.errors else None

    @property
    def is_verbose(self) -> bool:
        return self.verbose

    @property
    def is_quiet(self) -> bool:
        return self.quiet and not self.verbose

    def reset(self) -> None:
        """Forget all previous attempts before reusing this instance."""
        self.errors.clear()
        self._attempts = 0

    # ── Execution ────────────────────────────────────────────────

    def run(self) -> str:
        """Execute with exponential backoff until success or timeout.

        Returns:
            The trimmed combined output of the successful attempt.

        Raises:
            CommandError: The error of the last attempt once the retry
                budget is spent.
        """
        if not self.timeout:
            self.timeout = DEFAULT_TIMEOUT
        if self.backoff is None:
            self.backoff = ExponentialBackOff()
        self.backoff.max_elapsed_time = self.timeout

        return retry(self.run_without_retry, self.backoff)

    def run_without_retry(self) -> str:
        """Execute once and return the trimmed combined output.

        Raises:
            CommandError: The program could not be started or exited non-zero.
        """
        try:
            output = self._run()
        except CommandError as e:
            self._attempts += 1
            self.errors.append(e)
            raise
        self._attempts += 1
        return output

    def _run(self) -> str:
        cwd = self.dir or None
        env = command_env(self.dir, *self.extra_paths)
        if self.is_quiet:
            stdout, stderr = subprocess.DEVNULL, subprocess.DEVNULL
        else:
            stdout, stderr = subprocess.PIPE, subprocess.STDOUT

        logger.debug("Executing: %s %s (cwd=%s)", self.name, " ".join(self.args), self.dir)

        try:
            result = subprocess.run(
                [self.name, *self.args],
                cwd=cwd,
                env=env,
                stdout=stdout,
                stderr=stderr,
                timeout=self.process_timeout,
            )
        except subprocess.TimeoutExpired as e:
            text = _decode(e.output).strip()
            raise CommandError(
                self.name, self.args, self.dir, text,
                reason=f"timed out after {self.process_timeout}s",
            ) from e
        except OSError as e:
            raise CommandError(self.name, self.args, self.dir, "", reason=str(e)) from e

        raw = _decode(result.stdout)
        text = raw.strip()
        if result.returncode != 0:
            raise CommandError(
                self.name, self.args, self.dir, text,
                returncode=result.returncode,
                reason=f"exit status {result.returncode}",
            )

        if self.is_verbose:
            logger.info("%s", raw)
        return text


def _decode(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, str):
        return data
    return data.decode("utf-8", errors="replace")
