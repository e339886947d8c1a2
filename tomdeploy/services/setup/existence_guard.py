from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import ClassVar


logger = logging.getLogger(__name__)


class ProvisioningError(RuntimeError):
    pass


class GuardedResource(ABC):
    """A resource kind that can be probed for existence and created.

    ``exists`` returns True (found) or False (not found) and raises for any
    other failure; it must never report absence because a probe broke.
    """

    kind: ClassVar[str] = "resource"

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    async def exists(self) -> bool:
        ...

    @abstractmethod
    async def create(self) -> None:
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


async def ensure_exists(resource: GuardedResource) -> bool:
    """Create ``resource`` if its probe reports it absent.

    Returns:
        True if a creation call was made, False if the resource already existed.

    Probe failures propagate unchanged, so absence is never assumed.
    """

    if await resource.exists():
        logger.info("OK. %s exists: %s", resource.kind, resource.name)
        return False

    logger.info("Creating %s %s", resource.kind, resource.name)
    await resource.create()
    return True
