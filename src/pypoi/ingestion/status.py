"""Trail preparation status polling.

This module owns the periodic fetch of the external preparation-status
feed and turns active records into ``date_last_prepared`` updates.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from pydantic import ValidationError

from pypoi._transport import Transport
from pypoi.exceptions import MalformedFeedError, NotFoundError, SourceUnavailableError
from pypoi.ingestion.normalize import parse_rfc3339
from pypoi.models.status import FACILITY_STATUS_ADAPTER, StatusFeed
from pypoi.state.store import EntityStore

_logger = logging.getLogger(__name__)


class StatusPoller:
    """Poll the preparation-status feed at a fixed interval.

    The interval always elapses between two attempts, also after a failed
    one, so a broken endpoint or a misconfigured URL never turns into a
    busy loop.  :meth:`stop` is observed between iterations; an in-flight
    request runs to completion (it is bounded by the transport timeout).
    """

    def __init__(
        self,
        *,
        transport: Transport,
        store: EntityStore,
        url: str,
        trail_id_prefix: str,
        interval: float = 60.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._store = store
        self._url = url
        self._trail_id_prefix = trail_id_prefix
        self._interval = interval
        self._logger = logger or _logger
        self._stop = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self.iterations = 0
        self.failures = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> int:
        """Fetch the status feed once and apply it. Returns the number of updated trails.

        Raises
        ------
        SourceUnavailableError
            The endpoint could not be reached or answered non-200.
        MalformedFeedError
            The response is not a status document.
        """
        body = await self._transport.get(self._url)
        try:
            status = StatusFeed.model_validate_json(body)
        except ValidationError as exc:
            raise MalformedFeedError(f"Failed to decode status feed from {self._url}: {exc}") from exc

        applied = 0
        for name, raw_record in status.ski.items():
            try:
                record = FACILITY_STATUS_ADAPTER.validate_python(raw_record)
            except ValidationError as exc:
                self._logger.warning("Invalid status record for %s; skipping: %s", name, exc)
                continue

            if not record.is_active or not record.external_id:
                continue

            prepared_at = parse_rfc3339(record.last_preparation)
            if prepared_at is None:
                self._logger.warning(
                    "Invalid lastPreparation %r for %s; skipping", record.last_preparation, name
                )
                continue

            trail_id = f"{self._trail_id_prefix}{record.external_id}"
            try:
                self._store.update_trail_last_groomed(trail_id, prepared_at)
            except NotFoundError as exc:
                self._logger.warning("Failed to update trail status for %s: %s", name, exc)
                continue
            applied += 1

        self._logger.debug("Applied %d trail status updates", applied)
        return applied

    async def run(self) -> None:
        """Poll until :meth:`stop` is called."""
        self._logger.info("Polling trail status from %s every %.0fs", self._url, self._interval)
        while not self._stop.is_set():
            self.iterations += 1
            try:
                await self.poll_once()
            except (SourceUnavailableError, MalformedFeedError) as exc:
                self.failures += 1
                self._logger.error("Failed to request trail status update: %s", exc)
            except Exception:
                self.failures += 1
                self._logger.exception("Unexpected error while polling trail status")

            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stop.wait(), self._interval)
        self._logger.info("Trail status polling stopped")

    def start(self) -> asyncio.Task[None]:
        """Launch :meth:`run` as a background task on the running loop."""
        if self._task is None or self._task.done():
            self._stop.clear()
            self._task = asyncio.create_task(self.run(), name="pypoi-status-poller")
        return self._task

    async def stop(self) -> None:
        """Signal the loop to stop and wait for the current iteration to finish."""
        self._stop.set()
        task = self._task
        self._task = None
        if task is not None:
            await task
