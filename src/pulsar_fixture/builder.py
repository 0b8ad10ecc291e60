"""Fluent builder for Pulsar fixtures.

Each ``with_*`` call returns a new builder, so a partially configured
builder can be shared between tests and specialised without side effects:

    base = PulsarBuilder()
    secured = base.with_authentication()
    async with secured.build() as pulsar:
        token = await pulsar.create_authentication_token(timedelta(hours=1))
"""

from pulsar_fixture.config import FixtureSettings
from pulsar_fixture.configuration import PulsarConfiguration
from pulsar_fixture.container import (
    SECRET_KEY_FILE_PATH,
    USERNAME,
    PulsarContainer,
    build_container_spec,
)
from pulsar_fixture.docker_engine import DockerEngine
from pulsar_fixture.engine import ContainerEngine, ContainerSpec
from pulsar_fixture.errors import ConfigurationError

_AUTHENTICATION_PLUGIN = "org.apache.pulsar.client.impl.auth.AuthenticationToken"

# Broker and client settings that switch standalone Pulsar to token auth.
# The startup script creates the secret key and the superuser token these
# values refer to.
AUTHENTICATION_ENVIRONMENT = {
    "authenticateOriginalAuthData": "false",
    "authenticationEnabled": "true",
    "authorizationEnabled": "true",
    "authenticationProviders": "org.apache.pulsar.broker.authentication.AuthenticationProviderToken",
    "brokerClientAuthenticationPlugin": _AUTHENTICATION_PLUGIN,
    "CLIENT_PREFIX_authPlugin": _AUTHENTICATION_PLUGIN,
    "PULSAR_PREFIX_authenticationRefreshCheckSeconds": "5",
    "PULSAR_PREFIX_tokenSecretKey": f"file://{SECRET_KEY_FILE_PATH}",
    "superUserRoles": USERNAME,
}


class PulsarBuilder:
    """Collects fixture options and produces a PulsarContainer."""

    def __init__(
        self,
        configuration: PulsarConfiguration | None = None,
        settings: FixtureSettings | None = None,
    ):
        self._settings = settings or FixtureSettings()
        self._configuration = configuration or PulsarConfiguration(image=self._settings.image)

    @property
    def configuration(self) -> PulsarConfiguration:
        return self._configuration

    def _merge(self, **changes) -> "PulsarBuilder":
        configuration = self._configuration.model_copy(update=changes)
        return PulsarBuilder(configuration, self._settings)

    def with_image(self, image: str) -> "PulsarBuilder":
        return self._merge(image=image)

    def with_authentication(self) -> "PulsarBuilder":
        """Enable token authentication for the broker and bundled clients."""
        environment = {**self._configuration.environment, **AUTHENTICATION_ENVIRONMENT}
        return self._merge(authentication_enabled=True, environment=environment)

    def with_functions_worker(self, enabled: bool = True) -> "PulsarBuilder":
        return self._merge(functions_worker_enabled=enabled)

    def with_env(self, key: str, value: str) -> "PulsarBuilder":
        return self._merge(environment={**self._configuration.environment, key: value})

    def with_label(self, key: str, value: str) -> "PulsarBuilder":
        return self._merge(labels={**self._configuration.labels, key: value})

    def container_spec(self) -> ContainerSpec:
        """Describe the container the engine should create."""
        return build_container_spec(self._configuration)

    def build(self, engine: ContainerEngine | None = None) -> PulsarContainer:
        """Validate the options and return an unstarted fixture."""
        if not self._configuration.image.strip():
            raise ConfigurationError("Image must not be empty.")

        if engine is None:
            engine = DockerEngine(self._settings)

        return PulsarContainer(
            configuration=self._configuration,
            engine=engine,
            spec=self.container_spec(),
            settings=self._settings,
        )
