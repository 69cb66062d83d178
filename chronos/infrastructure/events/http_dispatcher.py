"""HTTP event dispatcher for an Inngest-compatible event API."""

import uuid

import httpx

from chronos.commons.telemetry import get_correlation_id, get_logger
from chronos.domain.pipeline import PipelineEvent
from chronos.infrastructure.events.base import EventDispatchError, EventDispatcherBase


class HttpEventDispatcher(EventDispatcherBase):
    """Publishes events with ``POST {base_url}/e/{event_key}``.

    The request body is a JSON array of ``{"name", "data", "id"}`` objects and
    the API answers ``{"ids": [...], "status": 200}``. The ``id`` doubles as an
    idempotency key on the queue side.
    """

    def __init__(
        self,
        base_url: str,
        event_key: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            base_url: Event API root, e.g. ``http://localhost:8288``.
            event_key: Ingest key appended to the path.
            timeout: Request timeout in seconds.
            client: Optional preconfigured client (tests use a mock transport).
        """
        self._url = f"{base_url.rstrip('/')}/e/{event_key}"
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self._logger = get_logger(__name__)

    async def send(self, event: PipelineEvent) -> list[str]:
        return await self._post([event])

    async def send_many(self, events: list[PipelineEvent]) -> list[str]:
        if not events:
            return []
        return await self._post(events)

    async def _post(self, events: list[PipelineEvent]) -> list[str]:
        body = [
            {"name": e.name.value, "data": e.data, "id": uuid.uuid4().hex}
            for e in events
        ]
        names = ",".join(e.name.value for e in events)
        headers = {}
        cid = get_correlation_id()
        if cid:
            headers["X-Correlation-ID"] = cid

        try:
            response = await self._client.post(self._url, json=body, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise EventDispatchError(names, str(e)) from e

        ids = [str(i) for i in response.json().get("ids", [])]
        self._logger.info(
            "Events dispatched",
            extra={"events": names, "event_ids": ids},
        )
        return ids

    async def close(self) -> None:
        await self._client.aclose()
