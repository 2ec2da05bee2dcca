"""Service wiring: initial ingestion plus the two live-update channels."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp

from pypoi._mqtt import TelemetryMessage, TelemetryMqttRuntime
from pypoi._transport import HttpTransport, Transport
from pypoi.config import PoiConfig
from pypoi.exceptions import PoiError
from pypoi.facade import QueryFacade
from pypoi.ingestion.features import FeatureIngester, fetch_source_feed
from pypoi.ingestion.status import StatusPoller
from pypoi.ingestion.telemetry import TelemetryReconciler
from pypoi.reference import ReferenceTable
from pypoi.state.store import EntityStore

_logger = logging.getLogger(__name__)


class PoiService:
    """Owns the store and everything that feeds it.

    Usage::

        async with PoiService(config) as service:
            beach = service.facade.get_by_id("se:sundsvall:anlaggning:1545")

    Entering the context loads the feature feed; a fetch or parse failure
    propagates and nothing is started.  Telemetry and status polling then
    run until the context exits.
    """

    def __init__(
        self,
        config: PoiConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        reference_table: ReferenceTable | None = None,
    ) -> None:
        self._config = config.validate()
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._reference_table = reference_table
        self._store: EntityStore | None = None
        self._reconciler: TelemetryReconciler | None = None
        self._poller: StatusPoller | None = None
        self._mqtt_runtime: TelemetryMqttRuntime | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> PoiService:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._http_session, timeout=self._config.request_timeout)
        try:
            await self.start()
        except BaseException:
            await self._close_session()
            raise
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()
        await self._close_session()

    async def _close_session(self) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def store(self) -> EntityStore:
        if self._store is None:
            raise PoiError("Service not started. Use 'async with PoiService(...) as service:'")
        return self._store

    @property
    def facade(self) -> QueryFacade:
        return QueryFacade(self.store)

    @property
    def reconciler(self) -> TelemetryReconciler | None:
        return self._reconciler

    @property
    def poller(self) -> StatusPoller | None:
        return self._poller

    # ------------------------------------------------------------------
    # Startup / shutdown
    # ------------------------------------------------------------------

    def _load_reference_table(self) -> ReferenceTable:
        if self._reference_table is not None:
            return self._reference_table
        if self._config.reference_table_path:
            return ReferenceTable.load(self._config.reference_table_path)
        return ReferenceTable.default()

    async def load(self) -> EntityStore:
        """Fetch and ingest the feature feed into a fresh store."""
        if self._transport is None:
            raise PoiError("No transport available")
        ingester = FeatureIngester.from_config(self._config, self._load_reference_table())
        raw = await fetch_source_feed(self._transport, self._config)
        return EntityStore(ingester.ingest(raw))

    async def start(self) -> None:
        self._store = await self.load()
        _logger.info("Registry ready with %d entities", len(self._store))

        self._reconciler = TelemetryReconciler(self._store)
        self._start_mqtt()

        status_url = self._config.status_url
        if status_url and self._transport is not None:
            self._poller = StatusPoller(
                transport=self._transport,
                store=self._store,
                url=status_url,
                trail_id_prefix=self._config.trail_id_prefix,
                interval=self._config.status_poll_interval,
            )
            self._poller.start()
        else:
            _logger.info("No preparation status URL configured; trail status polling disabled")

    async def stop(self) -> None:
        runtime = self._mqtt_runtime
        self._mqtt_runtime = None
        if runtime is not None:
            await asyncio.get_running_loop().run_in_executor(None, runtime.stop)

        poller = self._poller
        self._poller = None
        if poller is not None:
            await poller.stop()

    def _start_mqtt(self) -> None:
        """Best-effort telemetry subscription (failures must not stop the service)."""
        if not self._config.mqtt.enabled:
            return
        try:
            runtime = TelemetryMqttRuntime(
                loop=asyncio.get_running_loop(),
                on_message=self._on_telemetry,
                settings=self._config.mqtt,
                logger=_logger,
            )
            runtime.start()
            self._mqtt_runtime = runtime
        except Exception:
            _logger.warning("MQTT startup failed; telemetry updates disabled", exc_info=True)

    def _on_telemetry(self, message: TelemetryMessage) -> None:
        if self._reconciler is not None:
            self._reconciler.handle_message(message.payload)
