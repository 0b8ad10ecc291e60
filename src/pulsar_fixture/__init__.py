"""Apache Pulsar standalone fixture for async integration tests."""

from pulsar_fixture.builder import PulsarBuilder
from pulsar_fixture.config import FixtureSettings, configure_logging
from pulsar_fixture.configuration import PulsarConfiguration
from pulsar_fixture.container import (
    PULSAR_BROKER_DATA_PORT,
    PULSAR_WEB_SERVICE_PORT,
    PulsarContainer,
)
from pulsar_fixture.docker_engine import DockerEngine
from pulsar_fixture.engine import ContainerEngine, ContainerSpec, ExecResult
from pulsar_fixture.errors import (
    AuthenticationDisabledError,
    CommandError,
    ConfigurationError,
    ContainerNotStartedError,
    ContainerStartupError,
    PulsarFixtureError,
)

__all__ = [
    "PULSAR_BROKER_DATA_PORT",
    "PULSAR_WEB_SERVICE_PORT",
    "AuthenticationDisabledError",
    "CommandError",
    "ConfigurationError",
    "ContainerEngine",
    "ContainerNotStartedError",
    "ContainerSpec",
    "ContainerStartupError",
    "DockerEngine",
    "ExecResult",
    "FixtureSettings",
    "PulsarBuilder",
    "PulsarConfiguration",
    "PulsarContainer",
    "PulsarFixtureError",
    "configure_logging",
]
