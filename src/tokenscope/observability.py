"""Structured request events and StatsD metrics for the tokenscope API.

Events are written through the ``tokenscope.events`` logger, as one JSON
document per line when ``observability.structured_logging`` is on. Metrics go
to a StatsD agent over UDP when ``observability.statsd_host`` is configured,
and are dropped otherwise.
"""

from __future__ import annotations

import json
import logging
import socket
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, Iterator, Mapping, Protocol

from tokenscope.settings import Settings, get_settings

EVENT_LOGGER = logging.getLogger("tokenscope.events")
LOGGER = logging.getLogger(__name__)

Tags = Mapping[str, Any]


class MetricsSink(Protocol):
    def send(self, metric: str, value: float, *, metric_type: str, tags: Dict[str, str] | None) -> None: ...


class StatsdSink:
    """Fire-and-forget StatsD datagrams with DogStatsD-style ``|#k:v`` tags."""

    def __init__(self, host: str, port: int, prefix: str = "") -> None:
        self.target = (host, port)
        self.prefix = prefix
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)

    def packet(self, metric: str, value: float, metric_type: str, tags: Dict[str, str] | None = None) -> bytes:
        name = ".".join(part for part in (self.prefix, metric) if part)
        line = f"{name}:{format_metric_value(value)}|{metric_type}"
        if tags:
            line += "|#" + ",".join(f"{key}:{tags[key]}" for key in sorted(tags))
        return line.encode("utf-8")

    def send(self, metric: str, value: float, *, metric_type: str, tags: Dict[str, str] | None) -> None:
        try:
            self._socket.sendto(self.packet(metric, value, metric_type, tags), self.target)
        except OSError:  # pragma: no cover - depends on the local network stack
            LOGGER.debug("Dropped StatsD datagram for %s", metric, exc_info=True)


class Observability:
    """Emit events and metrics on behalf of one ``component`` of the service."""

    def __init__(
        self,
        *,
        settings: Settings,
        component: str | None = None,
        metrics_backend: MetricsSink | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.settings = settings
        self.component = component or "api"
        self.structured = settings.observability.structured_logging
        self._sink = metrics_backend
        self._logger = logger or EVENT_LOGGER

    def emit_event(self, event: str, **fields: Any) -> None:
        record = {
            "event": event,
            "service": self.settings.observability.service_name,
            "component": self.component,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        record.update((str(key), value) for key, value in fields.items())
        if self.structured:
            self._logger.info(json.dumps(record, default=str))
        else:
            self._logger.info("%s %s", event, " ".join(f"{key}={value}" for key, value in fields.items()))

    def increment(self, metric: str, *, value: float = 1.0, tags: Tags | None = None) -> None:
        if self._sink is not None:
            self._sink.send(metric, value, metric_type="c", tags=clean_tags(tags))

    def record_timing(self, metric: str, value_ms: float, *, tags: Tags | None = None) -> None:
        if self._sink is not None:
            self._sink.send(metric, value_ms, metric_type="ms", tags=clean_tags(tags))

    @contextmanager
    def timed(self, metric: str, **tags: Any) -> Iterator[Dict[str, float]]:
        """Time the block and record it as ``metric``.

        The yielded dict receives ``elapsed_ms`` once the block finishes, so
        callers can reuse the measurement in an event.
        """

        timing: Dict[str, float] = {}
        started = time.perf_counter()
        try:
            yield timing
        finally:
            timing["elapsed_ms"] = (time.perf_counter() - started) * 1000
            self.record_timing(metric, timing["elapsed_ms"], tags=tags)


@lru_cache(maxsize=4)
def _statsd_sink(host: str, port: int, prefix: str) -> StatsdSink:
    return StatsdSink(host, port, prefix)


def get_observability(*, component: str | None = None, settings: Settings | None = None) -> Observability:
    """Return an :class:`Observability` wired to the configured StatsD agent, if any."""

    resolved = settings or get_settings()
    config = resolved.observability
    sink = _statsd_sink(config.statsd_host, config.statsd_port, config.statsd_prefix) if config.statsd_host else None
    return Observability(settings=resolved, component=component, metrics_backend=sink)


def reset_observability_cache() -> None:
    _statsd_sink.cache_clear()


def clean_tags(tags: Tags | None) -> Dict[str, str] | None:
    """Stringify tag values and drop the ``None`` ones."""

    cleaned = {str(key): str(value) for key, value in (tags or {}).items() if value is not None}
    return cleaned or None


def format_metric_value(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.6f}".rstrip("0")


__all__ = [
    "EVENT_LOGGER",
    "MetricsSink",
    "Observability",
    "StatsdSink",
    "clean_tags",
    "format_metric_value",
    "get_observability",
    "reset_observability_cache",
]
