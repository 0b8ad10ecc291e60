"""Pulsar standalone container fixture.

Wraps a running container engine with the Pulsar-specific pieces tests need:
client-facing addresses for the broker and web service ports, token creation
for authenticated brokers, and the startup script that configures auth and
the functions worker before `bin/pulsar standalone` launches.
"""

import logging
from collections.abc import Sequence
from datetime import timedelta

from pulsar_fixture.config import FixtureSettings
from pulsar_fixture.configuration import PulsarConfiguration
from pulsar_fixture.engine import ContainerEngine, ContainerSpec, ExecResult
from pulsar_fixture.errors import AuthenticationDisabledError, CommandError
from pulsar_fixture.wait import wait_until_ready

logger = logging.getLogger(__name__)

PULSAR_BROKER_DATA_PORT = 6650
PULSAR_WEB_SERVICE_PORT = 8080

SECRET_KEY_FILE_PATH = "/pulsar/secret.key"
STARTUP_SCRIPT_FILE_PATH = "/testcontainers.sh"
STARTUP_SCRIPT_FILE_MODE = 0o755

# Subject of the superuser token; also configured as superUserRoles.
USERNAME = "test-user"

MANAGED_LABEL = "org.testcontainers.managed"

# Image tags affected by https://github.com/apache/pulsar/issues/22811, where
# `tokens create --expiry-time` reads seconds as milliseconds.
_EXPIRY_REGRESSION_TAG_PREFIXES = ("3.2", "latest")


def build_container_spec(configuration: PulsarConfiguration) -> ContainerSpec:
    """Describe the container the engine should create for a configuration."""
    # The entry command blocks until the startup script has been copied
    # in, which happens right after the container starts.
    wait_for_script = (
        f"while [ ! -f {STARTUP_SCRIPT_FILE_PATH} ]; do sleep 0.1; done; "
        f"{STARTUP_SCRIPT_FILE_PATH}"
    )
    return ContainerSpec(
        image=configuration.image,
        entrypoint=["/bin/sh", "-c"],
        command=[wait_for_script],
        exposed_ports=[PULSAR_BROKER_DATA_PORT, PULSAR_WEB_SERVICE_PORT],
        environment=dict(configuration.environment),
        labels={MANAGED_LABEL: "true", **configuration.labels},
    )


def _format_seconds(seconds: float) -> str:
    if float(seconds).is_integer():
        return str(int(seconds))
    return str(seconds)


class PulsarContainer:
    """A Pulsar standalone broker running in a container.

    ``spec`` overrides the container definition derived from
    ``configuration``; leave it unset to get the standard Pulsar setup.
    """

    def __init__(
        self,
        configuration: PulsarConfiguration,
        engine: ContainerEngine,
        spec: ContainerSpec | None = None,
        settings: FixtureSettings | None = None,
    ):
        self._configuration = configuration
        self._engine = engine
        self._spec = spec or build_container_spec(configuration)
        self._settings = settings or FixtureSettings()

    @property
    def configuration(self) -> PulsarConfiguration:
        return self._configuration

    @property
    def engine(self) -> ContainerEngine:
        return self._engine

    # -- Addresses -----------------------------------------------------------

    def _address(self, scheme: str, port: int) -> str:
        mapped_port = self._engine.get_mapped_public_port(port)
        return f"{scheme}://{self._engine.hostname}:{mapped_port}"

    def get_broker_address(self) -> str:
        """Return the pulsar:// URL clients use to produce and consume."""
        return self._address("pulsar", PULSAR_BROKER_DATA_PORT)

    def get_service_address(self) -> str:
        """Return the http:// URL of the admin and REST API."""
        return self._address("http", PULSAR_WEB_SERVICE_PORT)

    # -- Authentication ------------------------------------------------------

    def token_command(self, expire: timedelta) -> list[str]:
        """Build the in-container command that creates a token for USERNAME."""
        if self._configuration.image_tag.startswith(_EXPIRY_REGRESSION_TAG_PREFIXES):
            logger.warning(
                "The 'apachepulsar/pulsar:3.2.?' image contains a regression. The expiry "
                "time is converted to the wrong unit of time: "
                "https://github.com/apache/pulsar/issues/22811."
            )
            seconds_to_milliseconds = 1000
        else:
            seconds_to_milliseconds = 1

        expiry_seconds = seconds_to_milliseconds * expire.total_seconds()
        return [
            "bin/pulsar",
            "tokens",
            "create",
            "--secret-key",
            SECRET_KEY_FILE_PATH,
            "--subject",
            USERNAME,
            "--expiry-time",
            f"{_format_seconds(expiry_seconds)}s",
        ]

    async def create_authentication_token(self, expire: timedelta = timedelta(0)) -> str:
        """Create a token for the superuser, valid for ``expire``.

        Raises:
            AuthenticationDisabledError: the fixture was built with
                authentication explicitly disabled.
            CommandError: `bin/pulsar tokens create` exited non-zero.
        """
        if self._configuration.authentication_enabled is False:
            raise AuthenticationDisabledError()

        command = self.token_command(expire)
        result = await self._engine.exec_in_container(command)
        if result.exit_code != 0:
            raise CommandError(command, result.exit_code, result.stderr)

        return result.stdout

    # -- Startup script ------------------------------------------------------

    def build_startup_script(self) -> bytes:
        """Render the script the container entry command waits for and runs."""
        lines = ["#!/bin/bash"]

        if self._configuration.authentication_enabled is True:
            lines += [
                f"bin/pulsar tokens create-secret-key --output {SECRET_KEY_FILE_PATH}",
                "export brokerClientAuthenticationParameters=token:$(bin/pulsar tokens create "
                "--secret-key $PULSAR_PREFIX_tokenSecretKey --subject $superUserRoles)",
                "export CLIENT_PREFIX_authParams=$brokerClientAuthenticationParameters",
                "bin/apply-config-from-env.py conf/standalone.conf",
                "bin/apply-config-from-env-with-prefix.py CLIENT_PREFIX_ conf/client.conf",
            ]

        standalone = "bin/pulsar standalone"
        if self._configuration.functions_worker_enabled is False:
            standalone += " --no-functions-worker --no-stream-storage"
        lines.append(standalone)

        return "\n".join(lines).encode("utf-8")

    async def copy_startup_script(self) -> None:
        await self._engine.copy_into_container(
            self.build_startup_script(), STARTUP_SCRIPT_FILE_PATH, STARTUP_SCRIPT_FILE_MODE
        )

    # -- Lifecycle -----------------------------------------------------------

    async def start(self) -> "PulsarContainer":
        """Start the container and wait until the broker serves admin calls."""
        logger.info("Starting Pulsar fixture from %s", self._configuration.image)
        await self._engine.start(self._spec)
        await self.copy_startup_script()
        await wait_until_ready(
            self._engine,
            timeout=self._settings.startup_timeout_seconds,
            interval=self._settings.readiness_poll_interval_seconds,
        )
        return self

    async def stop(self) -> None:
        logger.info("Stopping Pulsar fixture")
        await self._engine.stop()

    async def exec(self, argv: Sequence[str]) -> ExecResult:
        """Run an arbitrary command inside the container."""
        return await self._engine.exec_in_container(argv)

    async def __aenter__(self) -> "PulsarContainer":
        try:
            return await self.start()
        except BaseException:
            await self.stop()
            raise

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
