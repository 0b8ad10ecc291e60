"""Readiness check that blocks until the standalone broker serves requests.

Pulsar logs "messaging service is ready" before the admin API accepts calls,
so instead of matching log lines we ask the broker itself: once
`pulsar-admin clusters list` prints the standalone cluster, producers and
consumers can connect.
"""

import asyncio
import logging

from pulsar_fixture.engine import ContainerEngine
from pulsar_fixture.errors import ContainerStartupError

logger = logging.getLogger(__name__)

CLUSTERS_LIST_COMMAND = ["bin/pulsar-admin", "clusters", "list"]
_EXPECTED_CLUSTER = '"standalone"'


async def is_ready(engine: ContainerEngine) -> bool:
    """Run one readiness check."""
    result = await engine.exec_in_container(CLUSTERS_LIST_COMMAND)
    if result.exit_code != 0:
        logger.debug(
            "Readiness check exited with %s: %s", result.exit_code, result.stderr.strip()
        )
        return False
    return result.stdout.strip() == _EXPECTED_CLUSTER


async def wait_until_ready(
    engine: ContainerEngine, timeout: float, interval: float = 1.0
) -> None:
    """Poll the broker until it is ready or the timeout elapses.

    The timeout covers the checks themselves, so an exec that never returns
    still ends in ContainerStartupError.
    """
    try:
        async with asyncio.timeout(timeout) as deadline:
            while not await is_ready(engine):
                await asyncio.sleep(interval)
    except TimeoutError as exc:
        if not deadline.expired():
            raise
        raise ContainerStartupError(
            f"Pulsar did not become ready within {timeout:g} seconds."
        ) from exc

    logger.info("Pulsar standalone is ready")
