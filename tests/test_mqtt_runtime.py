from __future__ import annotations

import asyncio

import paho.mqtt.client as mqtt
import pytest

from pypoi._mqtt import TelemetryMessage, TelemetryMqttRuntime
from pypoi.config import MqttSettings


def _message(topic: str, payload: bytes) -> mqtt.MQTTMessage:
    msg = mqtt.MQTTMessage(topic=topic.encode())
    msg.payload = payload
    return msg


@pytest.mark.asyncio
async def test_messages_are_delivered_on_the_event_loop() -> None:
    received: list[TelemetryMessage] = []
    runtime = TelemetryMqttRuntime(
        loop=asyncio.get_running_loop(),
        on_message=received.append,
        settings=MqttSettings(),
    )

    runtime._handle_message(None, None, _message("telemetry/temperature/water", b'{"temp": 4.2}'))  # noqa: SLF001
    assert received == []

    await asyncio.sleep(0)

    assert received == [TelemetryMessage(topic="telemetry/temperature/water", payload=b'{"temp": 4.2}')]
    assert runtime.received == 1


@pytest.mark.asyncio
async def test_handler_errors_are_contained() -> None:
    calls: list[bytes] = []

    def _handler(message: TelemetryMessage) -> None:
        calls.append(message.payload)
        raise RuntimeError("boom")

    runtime = TelemetryMqttRuntime(loop=asyncio.get_running_loop(), on_message=_handler, settings=MqttSettings())

    runtime._handle_message(None, None, _message("t", b"1"))  # noqa: SLF001
    runtime._handle_message(None, None, _message("t", b"2"))  # noqa: SLF001
    await asyncio.sleep(0)

    assert calls == [b"1", b"2"]


def test_stop_without_start_is_a_no_op() -> None:
    loop = asyncio.new_event_loop()
    try:
        runtime = TelemetryMqttRuntime(loop=loop, on_message=lambda _message: None, settings=MqttSettings())
        runtime.stop()
    finally:
        loop.close()

    assert not runtime.is_running
