from __future__ import annotations

import logging
from pathlib import Path

from tomdeploy.services.docker_service import DockerService


logger = logging.getLogger(__name__)


class ImagePublishGate:
    """Build and push an image only when its tag is not yet in the registry.

    The tag is the unit of idempotency: a changed build context under an
    unchanged tag is *not* rebuilt. Bump the tag to publish new code.
    """

    def __init__(self, docker: DockerService) -> None:
        self._docker = docker

    async def publish(self, image: str, *, context: Path) -> bool:
        """Returns True if the image was built and pushed, False if it was already published."""

        if await self._docker.manifest_exists(image):
            logger.info("OK. image exists: %s", image)
            return False

        logger.info("Building docker image %s from %s", image, context)
        await self._docker.build(image, context=context)
        await self._docker.push(image)
        return True
