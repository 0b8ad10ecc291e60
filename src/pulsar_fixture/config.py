"""Fixture settings loaded from environment variables.

Every field can be overridden with a ``PULSAR_FIXTURE_``-prefixed variable
(e.g. ``PULSAR_FIXTURE_IMAGE=apachepulsar/pulsar:3.3.0``) or an entry in a
local ``.env`` file, so CI can pin images and timeouts without code changes.
"""

import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PULSAR_IMAGE = "apachepulsar/pulsar:3.0.6"


class FixtureSettings(BaseSettings):
    """Defaults for building and starting Pulsar fixtures."""

    image: str = DEFAULT_PULSAR_IMAGE

    # Docker Engine endpoint. None lets aiodocker resolve DOCKER_HOST or the
    # local unix socket.
    docker_url: str | None = None

    # Hostname clients use to reach mapped ports. Needed when Docker runs on
    # another machine or inside a VM that does not forward to localhost.
    host_override: str | None = None

    # Seconds to wait for `pulsar-admin clusters list` to report standalone.
    startup_timeout_seconds: float = 120.0
    readiness_poll_interval_seconds: float = 1.0

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="PULSAR_FIXTURE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def configure_logging(settings: FixtureSettings | None = None) -> None:
    """Apply the configured log level to the root logger."""
    settings = settings or FixtureSettings()
    logging.basicConfig(level=settings.log_level)
