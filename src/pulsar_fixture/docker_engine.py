"""Container engine backed by the Docker Engine API via aiodocker.

Encapsulates every Docker call the fixture makes so the fixture itself only
sees the small ContainerEngine contract, and tests can replace the aiodocker
client with a mock.
"""

import io
import logging
import os
import posixpath
import tarfile
import time
from collections.abc import Sequence
from urllib.parse import urlsplit

import aiodocker
from aiodocker.containers import DockerContainer

from pulsar_fixture.config import FixtureSettings
from pulsar_fixture.configuration import parse_image_repository, parse_image_tag
from pulsar_fixture.engine import ContainerSpec, ExecResult
from pulsar_fixture.errors import ContainerNotStartedError

logger = logging.getLogger(__name__)

# Docker exec multiplexes both streams over one connection.
_STDOUT = 1
_STDERR = 2

_STOP_TIMEOUT_SECONDS = 10


def _is_not_found(exc: Exception) -> bool:
    """Check if an aiodocker exception is a 404 Not Found."""
    return getattr(exc, "status", None) == 404


def _resolve_hostname(settings: FixtureSettings) -> str:
    """Pick the host clients should dial to reach published ports."""
    if settings.host_override:
        return settings.host_override
    docker_url = settings.docker_url or os.environ.get("DOCKER_HOST", "")
    parts = urlsplit(docker_url)
    if parts.scheme in ("tcp", "http", "https") and parts.hostname:
        return parts.hostname
    return "localhost"


def _build_archive(content: bytes, file_name: str, mode: int) -> bytes:
    """Pack a single file into an in-memory tar, as put_archive expects."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w") as archive:
        info = tarfile.TarInfo(name=file_name)
        info.size = len(content)
        info.mode = mode
        info.mtime = int(time.time())
        archive.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


class DockerEngine:
    """Runs one container through aiodocker and exposes its runtime state."""

    def __init__(self, settings: FixtureSettings | None = None):
        self._settings = settings or FixtureSettings()
        self._docker: aiodocker.Docker | None = None
        self._container: DockerContainer | None = None
        self._ports: dict[str, list[dict[str, str]]] = {}

    @property
    def hostname(self) -> str:
        return _resolve_hostname(self._settings)

    @property
    def container_id(self) -> str | None:
        return self._container.id if self._container is not None else None

    def _container_or_raise(self) -> DockerContainer:
        if self._container is None:
            raise ContainerNotStartedError("Container not started. Call start() first.")
        return self._container

    def get_mapped_public_port(self, port: int) -> int:
        """Return the host port Docker published for a container port."""
        self._container_or_raise()
        bindings = self._ports.get(f"{port}/tcp") or []
        for binding in bindings:
            if binding.get("HostPort"):
                return int(binding["HostPort"])
        raise ContainerNotStartedError(f"Port {port} is not mapped to a host port.")

    async def _ensure_image(self, image: str) -> None:
        """Pull the image unless the daemon already has it."""
        try:
            await self._docker.images.inspect(image)
            return
        except aiodocker.DockerError as exc:
            if not _is_not_found(exc):
                raise
        logger.info("Pulling image %s", image)
        if "@" in image:
            await self._docker.images.pull(image)
        else:
            # An explicit tag keeps the daemon from pulling every tag of the
            # repository when the reference has none.
            await self._docker.images.pull(
                parse_image_repository(image), tag=parse_image_tag(image)
            )

    async def start(self, spec: ContainerSpec) -> None:
        """Create and start the container, then record its port bindings."""
        self._docker = aiodocker.Docker(url=self._settings.docker_url)
        await self._ensure_image(spec.image)

        port_keys = [f"{port}/tcp" for port in spec.exposed_ports]
        container_config = {
            "Image": spec.image,
            "Entrypoint": spec.entrypoint,
            "Cmd": spec.command,
            "Env": [f"{key}={value}" for key, value in spec.environment.items()],
            "Labels": spec.labels,
            "ExposedPorts": {key: {} for key in port_keys},
            "HostConfig": {
                # An empty HostPort asks Docker for a random free port.
                "PortBindings": {key: [{"HostPort": ""}] for key in port_keys},
            },
        }

        self._container = await self._docker.containers.create(config=container_config)
        await self._container.start()

        info = await self._container.show()
        self._ports = info["NetworkSettings"]["Ports"] or {}
        logger.info("Started container %s from %s", self._container.id, spec.image)

    async def stop(self) -> None:
        """Stop and remove the container, then close the Docker connection."""
        try:
            if self._container is not None:
                await self._remove_container()
        finally:
            if self._docker is not None:
                await self._docker.close()
                self._docker = None

    async def _remove_container(self) -> None:
        container_id = self._container.id
        try:
            await self._container.stop(t=_STOP_TIMEOUT_SECONDS)
            await self._container.delete(v=True, force=True)
        except aiodocker.DockerError as exc:
            if not _is_not_found(exc):
                raise
            logger.warning("Container %s already removed, skipping.", container_id)
        else:
            logger.info("Removed container %s", container_id)
        finally:
            self._container = None
            self._ports = {}

    async def exec_in_container(self, argv: Sequence[str]) -> ExecResult:
        """Run a command in the container and collect its output and exit code."""
        container = self._container_or_raise()

        exec_instance = await container.exec(
            cmd=list(argv),
            stdout=True,
            stderr=True,
            stdin=False,
            tty=False,
        )
        stdout = bytearray()
        stderr = bytearray()
        async with exec_instance.start(detach=False) as stream:
            while True:
                message = await stream.read_out()
                if message is None:
                    break
                if message.stream == _STDERR:
                    stderr.extend(message.data)
                elif message.stream == _STDOUT:
                    stdout.extend(message.data)

        info = await exec_instance.inspect()
        return ExecResult(
            exit_code=info["ExitCode"],
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )

    async def copy_into_container(
        self, content: bytes, destination_path: str, mode: int
    ) -> None:
        """Write bytes to a path inside the container with the given file mode."""
        container = self._container_or_raise()
        directory, file_name = posixpath.split(destination_path)
        archive = _build_archive(content, file_name, mode)
        await container.put_archive(directory or "/", archive)
        logger.debug("Copied %d bytes to %s", len(content), destination_path)
