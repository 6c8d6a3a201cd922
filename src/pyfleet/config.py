"""Configuration for pyfleet."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyfleet._constants import DEFAULT_EVENTS_TABLE, DEFAULT_VEHICLES_TABLE
from pyfleet.exceptions import FleetConfigError


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
class FleetConfig:
    """Monitor configuration.

    Parameters
    ----------
    base_url : str
        Base URL of the hosted store (e.g. ``"https://xyz.supabase.co"``).
        The REST endpoint is ``{base_url}/rest/v1``.
    api_key : str
        API key sent as ``apikey`` and bearer token.
    schema : str
        Database schema exposed by the REST API.
    events_table : str
        Append-only location event log table.
    vehicles_table : str
        Current-location mirror table, updated after each report.
    mirror_current_location : bool
        Whether :meth:`RestEventLogStore.append` also updates
        ``vehicles_table``.
    request_timeout : float
        Total HTTP timeout in seconds.
    mqtt_enabled : bool
        Listen for insert notifications on an MQTT topic.
    mqtt_host : str
        Broker host.
    mqtt_port : int
        Broker port.
    mqtt_topic : str
        Topic the database publishes insert notifications to.
    mqtt_username : str or None
        Broker username.
    mqtt_password : str or None
        Broker password.
    mqtt_tls : bool
        Use TLS for the broker connection.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    reconcile_history : bool
        Derive arrival time from the contiguous run of same-location
        events. When ``False`` arrival is the latest event's timestamp.
    """

    base_url: str = ""
    api_key: str = ""
    schema: str = "public"
    events_table: str = DEFAULT_EVENTS_TABLE
    vehicles_table: str = DEFAULT_VEHICLES_TABLE
    mirror_current_location: bool = True
    request_timeout: float = 10.0
    mqtt_enabled: bool = False
    mqtt_host: str = ""
    mqtt_port: int = 1883
    mqtt_topic: str = "fleet/inserts"
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_tls: bool = False
    mqtt_keepalive: int = 60
    reconcile_history: bool = True

    @property
    def rest_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/rest/v1"

    def validate_for_rest(self) -> None:
        """Raise :class:`FleetConfigError` if the REST store cannot be built."""
        if not self.base_url.strip():
            raise FleetConfigError("base_url is required for the REST event log store")
        if not self.events_table.strip():
            raise FleetConfigError("events_table must be non-empty")
        if self.mirror_current_location and not self.vehicles_table.strip():
            raise FleetConfigError("vehicles_table must be non-empty when mirroring is enabled")

    @classmethod
    def from_env(cls, **overrides: Any) -> FleetConfig:
        """Create configuration from ``FLEET_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "FLEET_BASE_URL": "base_url",
            "FLEET_API_KEY": "api_key",
            "FLEET_SCHEMA": "schema",
            "FLEET_EVENTS_TABLE": "events_table",
            "FLEET_VEHICLES_TABLE": "vehicles_table",
            "FLEET_MQTT_HOST": "mqtt_host",
            "FLEET_MQTT_TOPIC": "mqtt_topic",
            "FLEET_MQTT_USERNAME": "mqtt_username",
            "FLEET_MQTT_PASSWORD": "mqtt_password",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_BOOL_MAP = {
            "FLEET_MIRROR_CURRENT_LOCATION": ("mirror_current_location", True),
            "FLEET_MQTT_ENABLED": ("mqtt_enabled", False),
            "FLEET_MQTT_TLS": ("mqtt_tls", False),
            "FLEET_RECONCILE_HISTORY": ("reconcile_history", True),
        }
        for env_key, (field_name, default) in _ENV_BOOL_MAP.items():
            if field_name not in overrides:
                config_kwargs[field_name] = _env_bool(env.get(env_key), default)

        try:
            timeout_env = env.get("FLEET_REQUEST_TIMEOUT")
            if timeout_env is not None and "request_timeout" not in overrides:
                config_kwargs["request_timeout"] = float(timeout_env)

            port_env = env.get("FLEET_MQTT_PORT")
            if port_env is not None and "mqtt_port" not in overrides:
                config_kwargs["mqtt_port"] = int(port_env)

            keepalive_env = env.get("FLEET_MQTT_KEEPALIVE")
            if keepalive_env is not None and "mqtt_keepalive" not in overrides:
                config_kwargs["mqtt_keepalive"] = int(keepalive_env)
        except ValueError as exc:
            raise FleetConfigError(f"Invalid numeric environment value: {exc}") from exc

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
