"""
Settings model — how helmwrap finds and drives helm.

Loaded from helmwrap.yml.  Every field has a default, so an empty file
(or no file at all) gives a working configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from helmwrap.core.reliability.backoff import (
    DEFAULT_INITIAL_INTERVAL,
    DEFAULT_MAX_INTERVAL,
    DEFAULT_MULTIPLIER,
    DEFAULT_RANDOMIZATION_FACTOR,
    ExponentialBackOff,
)
from helmwrap.core.services.helm_cli import HelmCLI


class HelmSettings(BaseModel):
    """The helm binary and the directory it runs in."""

    binary: str = "helm"
    cwd: str = ""
    args: list[str] = Field(default_factory=list)   # global flags for every call
    verbose: bool = False
    quiet: bool = False
    extra_paths: list[str] = Field(default_factory=list)

    @field_validator("binary")
    @classmethod
    def _binary_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("helm binary must not be empty")
        return v

    def client(self) -> HelmCLI:
        """Build a ``HelmCLI`` from these settings."""
        return HelmCLI(
            self.binary,
            self.cwd,
            *self.args,
            verbose=self.verbose,
            quiet=self.quiet,
            extra_paths=self.extra_paths,
        )


class RetrySettings(BaseModel):
    """Backoff policy for retried commands."""

    timeout: float = Field(default=180.0, ge=0)     # total budget, seconds
    initial_interval: float = Field(default=DEFAULT_INITIAL_INTERVAL, gt=0)
    multiplier: float = Field(default=DEFAULT_MULTIPLIER, ge=1)
    max_interval: float = Field(default=DEFAULT_MAX_INTERVAL, gt=0)
    randomization_factor: float = Field(default=DEFAULT_RANDOMIZATION_FACTOR, ge=0, le=1)

    def policy(self) -> ExponentialBackOff:
        return ExponentialBackOff(
            initial_interval=self.initial_interval,
            randomization_factor=self.randomization_factor,
            multiplier=self.multiplier,
            max_interval=self.max_interval,
            max_elapsed_time=self.timeout,
        )


class Settings(BaseModel):
    """Root configuration — contents of helmwrap.yml."""

    version: int = 1
    helm: HelmSettings = Field(default_factory=HelmSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
