"""
Builds the run configuration from the process environment.
This is the only place that reads environment variables.
"""

import logging
import os
from typing import Mapping, Optional

from core.config import ExportConfig
from core.errors import ConfigurationError

logger = logging.getLogger(__name__)

TOKEN_VARIABLES = ("GITHUB_AUTH_TOKEN", "GITHUB_TOKEN")

# Travis CI, CircleCI, Cirrus CI, Gitlab CI, Appveyor, CodeShip, dsari,
# Jenkins, TeamCity and TaskCluster set at least one of these
CI_VARIABLES = ("CI", "CONTINUOUS_INTEGRATION", "BUILD_NUMBER", "RUN_ID")


def is_running_on_ci(environ: Mapping[str, str]) -> bool:
    """Check whether any well-known CI variable is defined."""
    return any(name in environ for name in CI_VARIABLES)


def load_config(environ: Optional[Mapping[str, str]] = None, **overrides) -> ExportConfig:
    """
    Build an ExportConfig from environment variables.

    Args:
        environ: Environment mapping (defaults to os.environ)
        **overrides: ExportConfig fields taking precedence over the environment

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: If no token is available or a value is invalid
    """
    if environ is None:
        environ = os.environ

    token = overrides.pop("token", None)
    if not token:
        token = next(
            (environ[name] for name in TOKEN_VARIABLES if environ.get(name)),
            None,
        )
    if not token:
        raise ConfigurationError(
            "GitHub token required. Set GITHUB_AUTH_TOKEN or GITHUB_TOKEN "
            "environment variable."
        )

    config = ExportConfig(
        token=token,
        is_ci=is_running_on_ci(environ),
        **{key: value for key, value in overrides.items() if value is not None},
    )

    if config.is_ci:
        logger.info("CI environment detected; per-batch progress logged at DEBUG")
    return config
