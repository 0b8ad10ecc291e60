"""Contract between the Pulsar fixture and the container engine below it.

The fixture never talks to Docker directly. It depends on this protocol so
tests can drive it with an in-memory fake and so another engine can be
dropped in without touching the fixture.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol


@dataclass
class ExecResult:
    """Outcome of a command run inside the container."""

    exit_code: int
    stdout: str
    stderr: str


@dataclass
class ContainerSpec:
    """Engine-neutral definition of the container to create."""

    image: str
    entrypoint: list[str] = field(default_factory=list)
    command: list[str] = field(default_factory=list)
    exposed_ports: list[int] = field(default_factory=list)
    environment: dict[str, str] = field(default_factory=dict)
    labels: dict[str, str] = field(default_factory=dict)


class ContainerEngine(Protocol):
    """Operations the fixture needs from a running container."""

    @property
    def hostname(self) -> str: ...

    def get_mapped_public_port(self, port: int) -> int: ...

    async def start(self, spec: ContainerSpec) -> None: ...

    async def stop(self) -> None: ...

    async def exec_in_container(self, argv: Sequence[str]) -> ExecResult: ...

    async def copy_into_container(
        self, content: bytes, destination_path: str, mode: int
    ) -> None: ...
