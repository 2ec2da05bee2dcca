"""Service configuration for pypoi."""

from __future__ import annotations

import dataclasses
import os
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pypoi._constants import (
    BEACH_CATEGORY,
    FACILITY_ID_PREFIX,
    FEED_TIME_ZONE,
    REQUEST_TIMEOUT_S,
    STATUS_POLL_INTERVAL_S,
    TELEMETRY_TOPIC,
    TRAIL_CATEGORY,
)
from pypoi.exceptions import PoiConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class MqttSettings:
    """Connection settings for the telemetry message bus."""

    enabled: bool = True
    host: str = "localhost"
    port: int = 1883
    topic: str = TELEMETRY_TOPIC
    username: str | None = None
    password: str | None = None
    tls: bool = False
    keepalive: int = 60
    client_id: str = "pypoi"


@dataclasses.dataclass(frozen=True)
class PoiConfig:
    """Service configuration.

    Parameters
    ----------
    source_url : str
        URL of the municipal feature feed. Required.
    source_apikey : str or None
        Optional API key sent in the ``apikey`` header of the feed request.
    status_url : str or None
        URL of the trail preparation status feed. The status poller is
        not started when this is empty.
    time_zone : str
        IANA time zone that the feed's naive ``created``/``updated``
        timestamps are local to.
    status_poll_interval : float
        Seconds between two status poll attempts.
    request_timeout : float
        Total timeout in seconds for every outbound HTTP request.
    beach_id_prefix : str
        Namespace prefix for beach identifiers.
    trail_id_prefix : str
        Namespace prefix for exercise trail identifiers. Also applied to
        the status feed's ``externalId``.
    beach_category : str
        Feed ``type`` value that marks a beach.
    trail_category : str
        Feed ``type`` value that marks an exercise trail.
    trail_source : str or None
        Source attribution stored on every exercise trail. Defaults to
        ``source_url``.
    reference_table_path : str or None
        Path to a JSON reference augmentation table. The packaged table
        is used when unset.
    mqtt : MqttSettings
        Telemetry bus connection settings.
    """

    source_url: str
    source_apikey: str | None = None
    status_url: str | None = None
    time_zone: str = FEED_TIME_ZONE
    status_poll_interval: float = STATUS_POLL_INTERVAL_S
    request_timeout: float = REQUEST_TIMEOUT_S
    beach_id_prefix: str = FACILITY_ID_PREFIX
    trail_id_prefix: str = FACILITY_ID_PREFIX
    beach_category: str = BEACH_CATEGORY
    trail_category: str = TRAIL_CATEGORY
    trail_source: str | None = None
    reference_table_path: str | None = None
    mqtt: MqttSettings = dataclasses.field(default_factory=MqttSettings)

    def validate(self) -> PoiConfig:
        """Raise :class:`PoiConfigError` if the configuration cannot be used."""
        if not self.source_url.strip():
            raise PoiConfigError("source_url must be set (SOURCE_DATA_URL)")
        if self.status_poll_interval <= 0:
            raise PoiConfigError("status_poll_interval must be positive")
        if self.request_timeout <= 0:
            raise PoiConfigError("request_timeout must be positive")
        if self.beach_category == self.trail_category:
            raise PoiConfigError("beach_category and trail_category must differ")
        try:
            ZoneInfo(self.time_zone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise PoiConfigError(f"Unknown time zone {self.time_zone!r}") from exc
        return self

    @classmethod
    def from_env(cls, **overrides: Any) -> PoiConfig:
        """Create configuration from environment variables.

        Reads ``SOURCE_DATA_URL``, ``SOURCE_DATA_APIKEY`` and
        ``PREPARATION_STATUS_URL`` plus optional ``POI_*`` and
        ``POI_MQTT_*`` variables. Explicit keyword arguments override
        environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        PoiConfig
            Populated configuration.
        """
        env = os.environ

        mqtt_kwargs: dict[str, Any] = {}
        _ENV_MQTT_MAP = {
            "POI_MQTT_HOST": "host",
            "POI_MQTT_TOPIC": "topic",
            "POI_MQTT_USERNAME": "username",
            "POI_MQTT_PASSWORD": "password",
            "POI_MQTT_CLIENT_ID": "client_id",
        }
        for env_key, field_name in _ENV_MQTT_MAP.items():
            val = env.get(env_key)
            if val is not None:
                mqtt_kwargs[field_name] = val

        port_env = env.get("POI_MQTT_PORT")
        if port_env is not None:
            mqtt_kwargs["port"] = int(port_env)
        keepalive_env = env.get("POI_MQTT_KEEPALIVE")
        if keepalive_env is not None:
            mqtt_kwargs["keepalive"] = int(keepalive_env)
        mqtt_kwargs["enabled"] = _env_bool(env.get("POI_MQTT_ENABLED"), True)
        mqtt_kwargs["tls"] = _env_bool(env.get("POI_MQTT_TLS"), False)

        # Allow overriding MQTT fields via a nested dict
        mqtt_overrides = overrides.pop("mqtt", None)
        if isinstance(mqtt_overrides, dict):
            mqtt_kwargs.update(mqtt_overrides)
        elif isinstance(mqtt_overrides, MqttSettings):
            mqtt_kwargs = dataclasses.asdict(mqtt_overrides)

        _ENV_CONFIG_MAP = {
            "SOURCE_DATA_URL": "source_url",
            "SOURCE_DATA_APIKEY": "source_apikey",
            "PREPARATION_STATUS_URL": "status_url",
            "POI_TIME_ZONE": "time_zone",
            "POI_BEACH_ID_PREFIX": "beach_id_prefix",
            "POI_TRAIL_ID_PREFIX": "trail_id_prefix",
            "POI_BEACH_CATEGORY": "beach_category",
            "POI_TRAIL_CATEGORY": "trail_category",
            "POI_TRAIL_SOURCE": "trail_source",
            "POI_REFERENCE_TABLE": "reference_table_path",
        }
        config_kwargs: dict[str, Any] = {"mqtt": MqttSettings(**mqtt_kwargs), "source_url": ""}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val:
                config_kwargs[field_name] = val

        # numeric settings, handle separately
        interval_env = env.get("POI_STATUS_POLL_INTERVAL")
        if interval_env is not None and "status_poll_interval" not in overrides:
            config_kwargs["status_poll_interval"] = float(interval_env)

        timeout_env = env.get("POI_REQUEST_TIMEOUT")
        if timeout_env is not None and "request_timeout" not in overrides:
            config_kwargs["request_timeout"] = float(timeout_env)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
