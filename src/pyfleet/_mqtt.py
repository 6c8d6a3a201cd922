"""Internal MQTT insert-notification runtime.

The hosted database publishes a message to a topic whenever a row is
inserted into the event log. The message is only a signal: the monitor
re-reads the full log rather than trusting the payload.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, cast

import paho.mqtt.client as mqtt

from pyfleet._redact import redact_for_log
from pyfleet.config import FleetConfig
from pyfleet.exceptions import FleetConfigError


@dataclass(frozen=True)
class MqttBootstrap:
    """Broker details required to listen for insert notifications."""

    broker_host: str
    broker_port: int
    topic: str
    username: str | None = None
    password: str | None = None
    tls: bool = False


@dataclass(frozen=True)
class InsertNotification:
    """A parsed insert signal."""

    table: str | None
    topic: str
    payload: dict[str, Any] = field(default_factory=dict)


def bootstrap_from_config(config: FleetConfig) -> MqttBootstrap:
    if not config.mqtt_host.strip():
        raise FleetConfigError("mqtt_host is required when mqtt_enabled is set")
    if not config.mqtt_topic.strip():
        raise FleetConfigError("mqtt_topic must be non-empty")
    return MqttBootstrap(
        broker_host=config.mqtt_host.strip(),
        broker_port=config.mqtt_port,
        topic=config.mqtt_topic,
        username=config.mqtt_username,
        password=config.mqtt_password,
        tls=config.mqtt_tls,
    )


def parse_insert_notification(topic: str, payload: bytes) -> InsertNotification:
    """Parse a notification payload.

    JSON objects may name the table (``table`` key). Anything else,
    including an empty payload, is a bare signal with no table.
    """
    text = payload.decode("utf-8", errors="replace").strip()
    parsed: Any = None
    if text:
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            parsed = None
    if not isinstance(parsed, dict):
        return InsertNotification(table=None, topic=topic)

    table_value = parsed.get("table")
    table = table_value if isinstance(table_value, str) and table_value else None
    return InsertNotification(table=table, topic=topic, payload=parsed)


class FleetMqttRuntime:
    """Threaded paho-mqtt runtime that emits insert signals onto an asyncio loop."""

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        on_insert: Callable[[InsertNotification], None],
        table: str | None = None,
        keepalive: int = 60,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._on_insert = on_insert
        self._table = table
        self._keepalive = keepalive
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._topic: str | None = None

    @property
    def is_running(self) -> bool:
        """Whether the MQTT runtime is actively running."""
        return self._running

    def handle_message(self, topic: str, payload: bytes) -> None:
        """Parse a raw message and hand it to the loop if it concerns our table.

        Called from the paho network thread.
        """
        notification = parse_insert_notification(topic, payload)
        if self._table is not None and notification.table is not None and notification.table != self._table:
            self._logger.debug("Ignoring insert signal for table=%s", notification.table)
            return
        self._logger.debug("Insert signal topic=%s table=%s", topic, notification.table)
        self._loop.call_soon_threadsafe(self._on_insert, notification)

    def start(self, bootstrap: MqttBootstrap) -> None:
        """Connect and subscribe with provided broker details."""
        self.stop()
        self._logger.debug("MQTT runtime start requested %s", redact_for_log(bootstrap.__dict__))

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)
        if bootstrap.username:
            client.username_pw_set(bootstrap.username, bootstrap.password)
        if bootstrap.tls:
            client.tls_set()

        self._topic = bootstrap.topic

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.debug("MQTT connected reason=%s", reason_code)
            if self._topic:
                c.subscribe(self._topic, qos=1)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            try:
                self.handle_message(msg.topic, msg.payload)
            except Exception:
                self._logger.debug("MQTT insert signal handling failed", exc_info=True)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect(bootstrap.broker_host, bootstrap.broker_port, keepalive=self._keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Stop and disconnect current MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        self._topic = None

        if client is None:
            return
        try:
            if was_running:
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")
