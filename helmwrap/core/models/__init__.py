"""
Settings models — Pydantic types for helmwrap.yml.

    from helmwrap.core.models import Settings, HelmSettings, RetrySettings
"""

from helmwrap.core.models.settings import HelmSettings, RetrySettings, Settings

__all__ = [
    "HelmSettings",
    "RetrySettings",
    "Settings",
]
