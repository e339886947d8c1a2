from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from tenacity import AsyncRetrying, RetryCallState, RetryError, retry_if_result, stop_after_attempt, wait_fixed

from tomdeploy.services.config import RetryConfig
from tomdeploy.services.setup.existence_guard import ProvisioningError


logger = logging.getLogger(__name__)


class ResourceNotVisibleError(ProvisioningError):
    pass


Probe = Callable[[], Awaitable[bool]]
Sleep = Callable[[float], Awaitable[None]]


async def wait_until_visible(
    probe: Probe,
    *,
    description: str,
    config: RetryConfig,
    sleep: Sleep = asyncio.sleep,
) -> None:
    """Poll ``probe`` until it reports the resource as found.

    Makes at most ``config.attempts`` probes with a fixed
    ``config.interval_seconds`` between them. Only a "not found" answer is
    retried; an exception raised by the probe propagates immediately.

    Raises:
        ResourceNotVisibleError: when every attempt reported "not found".
    """

    def _log_retry(retry_state: RetryCallState) -> None:
        logger.warning(
            "%s not visible yet (attempt %d/%d); retrying in %.0f seconds",
            description,
            retry_state.attempt_number,
            config.attempts,
            config.interval_seconds,
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(config.attempts),
        wait=wait_fixed(config.interval_seconds),
        retry=retry_if_result(lambda found: not found),
        before_sleep=_log_retry,
        sleep=sleep,
    )

    logger.info("Waiting for %s to become visible", description)
    try:
        await retrying(probe)
    except RetryError as exc:
        raise ResourceNotVisibleError(
            f"{description} still not visible after {config.attempts} attempts "
            f"({config.interval_seconds:.0f}s apart)"
        ) from exc
