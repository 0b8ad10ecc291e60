"""Shared fixtures for pulsar_fixture tests.

FakeEngine stands in for Docker: it records every call the fixture makes
and answers exec calls from a queue of canned results, so the fixture logic
can be tested without a daemon.
"""

import os
from collections.abc import Sequence

import pytest

from pulsar_fixture.configuration import PulsarConfiguration
from pulsar_fixture.container import PulsarContainer
from pulsar_fixture.engine import ContainerSpec, ExecResult
from pulsar_fixture.errors import ContainerNotStartedError

# Keep developer overrides out of the unit tests.
for _key in list(os.environ):
    if _key.startswith("PULSAR_FIXTURE_"):
        del os.environ[_key]


class FakeEngine:
    """In-memory ContainerEngine with scripted exec results."""

    def __init__(
        self,
        hostname: str = "localhost",
        ports: dict[int, int] | None = None,
        exec_results: list[ExecResult] | None = None,
    ):
        self._hostname = hostname
        self.ports = ports if ports is not None else {6650: 49153, 8080: 49154}
        self.exec_results = list(exec_results or [])
        self.exec_calls: list[list[str]] = []
        self.copies: list[tuple[bytes, str, int]] = []
        self.started_with: ContainerSpec | None = None
        self.stopped = False

    @property
    def hostname(self) -> str:
        return self._hostname

    def get_mapped_public_port(self, port: int) -> int:
        if port not in self.ports:
            raise ContainerNotStartedError(f"Port {port} is not mapped to a host port.")
        return self.ports[port]

    async def start(self, spec: ContainerSpec) -> None:
        self.started_with = spec

    async def stop(self) -> None:
        self.stopped = True

    async def exec_in_container(self, argv: Sequence[str]) -> ExecResult:
        self.exec_calls.append(list(argv))
        if self.exec_results:
            return self.exec_results.pop(0)
        return ExecResult(exit_code=0, stdout="", stderr="")

    async def copy_into_container(
        self, content: bytes, destination_path: str, mode: int
    ) -> None:
        self.copies.append((content, destination_path, mode))


def make_container(
    engine: FakeEngine,
    image: str = "apachepulsar/pulsar:3.0.6",
    authentication_enabled: bool | None = None,
    functions_worker_enabled: bool | None = None,
) -> PulsarContainer:
    configuration = PulsarConfiguration(
        image=image,
        authentication_enabled=authentication_enabled,
        functions_worker_enabled=functions_worker_enabled,
    )
    return PulsarContainer(configuration=configuration, engine=engine)


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()
