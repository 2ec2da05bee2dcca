"""Internal MQTT runtime for the telemetry message bus."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, cast

import paho.mqtt.client as mqtt

from pypoi.config import MqttSettings

_RECONNECT_MIN_DELAY_S = 1
_RECONNECT_MAX_DELAY_S = 60


@dataclass(frozen=True)
class TelemetryMessage:
    """Raw message envelope as delivered by the broker."""

    topic: str
    payload: bytes


class TelemetryMqttRuntime:
    """Threaded paho-mqtt subscriber that hands payloads to an asyncio loop.

    paho runs its own network thread.  That thread only copies the payload
    and schedules *on_message* on *loop*, so every store update happens on
    the loop and a slow handler never stalls the broker connection.

    The initial connect is asynchronous: an unreachable broker is retried
    in the background with backoff instead of failing :meth:`start`.
    """

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        on_message: Callable[[TelemetryMessage], Any],
        settings: MqttSettings,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._on_message = on_message
        self._settings = settings
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self.received = 0

    @property
    def is_running(self) -> bool:
        return self._client is not None

    def start(self) -> None:
        """Connect in the background and subscribe to the telemetry topic."""
        self.stop()
        settings = self._settings
        self._logger.info(
            "Connecting to MQTT broker %s:%s (topic %s)",
            settings.host,
            settings.port,
            settings.topic,
        )

        client = self._build_client()
        client.connect_async(settings.host, settings.port, keepalive=settings.keepalive)
        client.loop_start()
        self._client = client

    def stop(self) -> None:
        """Disconnect and join the network thread. Safe to call repeatedly."""
        client, self._client = self._client, None
        if client is None:
            return
        try:
            client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped after %d messages", self.received)

    # ------------------------------------------------------------------
    # paho callbacks (network thread)
    # ------------------------------------------------------------------

    def _build_client(self) -> mqtt.Client:
        settings = self._settings
        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=settings.client_id,
        )
        client.enable_logger(self._logger)
        client.reconnect_delay_set(_RECONNECT_MIN_DELAY_S, _RECONNECT_MAX_DELAY_S)
        if settings.username:
            client.username_pw_set(settings.username, settings.password)
        if settings.tls:
            client.tls_set()

        client.on_connect = self._handle_connect
        client.on_message = self._handle_message
        client.on_disconnect = self._handle_disconnect
        return client

    def _handle_connect(
        self, client: mqtt.Client, _userdata: Any, _flags: Any, reason_code: Any, _props: Any
    ) -> None:
        if reason_code.is_failure:
            self._logger.warning("MQTT broker refused connection: %s", reason_code)
            return
        # Subscribing on every connect restores the subscription after a reconnect.
        client.subscribe(self._settings.topic, qos=1)
        self._logger.info("Subscribed to %s", self._settings.topic)

    def _handle_disconnect(
        self, _client: mqtt.Client, _userdata: Any, _flags: Any, reason_code: Any, _props: Any
    ) -> None:
        if self._client is not None:
            self._logger.warning("Lost MQTT connection (%s); reconnecting", reason_code)

    def _handle_message(self, _client: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
        self.received += 1
        message = TelemetryMessage(topic=msg.topic, payload=bytes(msg.payload))
        try:
            self._loop.call_soon_threadsafe(self._deliver, message)
        except RuntimeError:
            self._logger.debug("Event loop closed; dropping message on %s", msg.topic)

    # ------------------------------------------------------------------
    # Event loop side
    # ------------------------------------------------------------------

    def _deliver(self, message: TelemetryMessage) -> None:
        try:
            self._on_message(message)
        except Exception:
            self._logger.exception("Telemetry handler failed for message on %s", message.topic)
