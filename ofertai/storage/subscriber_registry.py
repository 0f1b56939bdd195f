# ofertai/storage/subscriber_registry.py

"""In-memory set of destinations that opted in to automatic offers."""

import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from ofertai.models.listing import Destination

logger = logging.getLogger("ofertai.subscribers")


class SubscriberStore(Protocol):
    """Storage interface for subscribed destinations."""

    def add(self, destination: Destination) -> None: ...

    def remove(self, destination: Destination) -> None: ...

    def snapshot(self) -> list[Destination]: ...

    async def for_each(
        self, fn: Callable[[Destination], Awaitable[object]]
    ) -> None: ...

    def __contains__(self, destination: object) -> bool: ...

    def __len__(self) -> int: ...


class InMemorySubscriberRegistry:
    """Insertion-ordered set of subscribed destinations."""

    def __init__(self) -> None:
        self._members: dict[Destination, None] = {}

    def __contains__(self, destination: object) -> bool:
        return destination in self._members

    def __len__(self) -> int:
        return len(self._members)

    def add(self, destination: Destination) -> None:
        if destination not in self._members:
            self._members[destination] = None
            logger.info(
                "Subscribed %s (%d total)", destination, len(self._members)
            )

    def remove(self, destination: Destination) -> None:
        if destination not in self._members:
            logger.debug("Unsubscribe of non-member %s ignored", destination)
            return
        del self._members[destination]
        logger.info(
            "Unsubscribed %s (%d total)", destination, len(self._members)
        )

    def snapshot(self) -> list[Destination]:
        """Current members in subscription order."""
        return list(self._members)

    async def for_each(
        self, fn: Callable[[Destination], Awaitable[object]]
    ) -> None:
        """Await *fn* for each member, one after another.

        Iterates a snapshot, so members added or removed while *fn*
        runs do not affect the current pass.
        """
        for destination in self.snapshot():
            await fn(destination)
