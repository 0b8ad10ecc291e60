"""Exceptions raised by the Pulsar fixture."""

from collections.abc import Sequence


class PulsarFixtureError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(PulsarFixtureError):
    """The builder was given a value it cannot turn into a container."""


class AuthenticationDisabledError(PulsarFixtureError):
    """A token was requested from a container built without authentication."""

    def __init__(self, message: str = "Failed to create token. Authentication is not enabled."):
        super().__init__(message)


class CommandError(PulsarFixtureError):
    """A command run inside the container exited with a non-zero code."""

    def __init__(self, argv: Sequence[str], exit_code: int, stderr: str):
        self.argv = list(argv)
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(
            f"Command '{' '.join(self.argv)}' returned a non-zero exit code "
            f"({exit_code}): {stderr}"
        )


class ContainerNotStartedError(PulsarFixtureError):
    """Runtime state (ports, exec) was requested before the container started."""


class ContainerStartupError(PulsarFixtureError):
    """The broker did not become ready within the startup timeout."""
