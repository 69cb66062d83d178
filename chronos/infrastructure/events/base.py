"""Abstract base class for pipeline event publishing."""

from abc import ABC, abstractmethod

from chronos.domain.pipeline import PipelineEvent


class EventDispatchError(Exception):
    """Raised when the queue does not acknowledge an event."""

    def __init__(self, event_name: str, reason: str) -> None:
        self.event_name = event_name
        self.reason = reason
        super().__init__(f"Failed to dispatch {event_name}: {reason}")


class EventDispatcherBase(ABC):
    """Fire-and-acknowledge publisher to the durable event queue.

    Delivery is at-least-once with no ordering across videos; consumers must
    tolerate duplicates.
    """

    @abstractmethod
    async def send(self, event: PipelineEvent) -> list[str]:
        """Publish one event.

        Args:
            event: Event to publish.

        Returns:
            Queue-assigned event IDs.

        Raises:
            EventDispatchError: If the queue rejects the event or is unreachable.
        """

    async def send_many(self, events: list[PipelineEvent]) -> list[str]:
        """Publish several events, returning all assigned IDs."""
        ids: list[str] = []
        for event in events:
            ids.extend(await self.send(event))
        return ids

    async def close(self) -> None:  # noqa: B027
        """Release client resources."""
