# src/quotecache_api/infrastructure/observability/metrics.py
# Copyright (c) Quotecache.
# SPDX-License-Identifier: MIT
"""Quote cache observability helpers and Prometheus metrics.

Exports
-------
Core collectors (names are part of the public contract and must remain stable):

* ``quotecache_cache_hits_total`` (Counter, label ``source``)
* ``quotecache_cache_misses_total`` (Counter, label ``source``)
* ``quotecache_cache_corrupt_entries_total`` (Counter, label ``source``)
* ``quotecache_aggregate_skipped_total`` (Counter, label ``reason``)
* ``quotecache_upstream_latency_seconds`` (Histogram)
* ``quotecache_upstream_errors_total`` (Counter)
* ``quotecache_readyz_redis_latency_seconds`` (Histogram)

Helpers:

* :func:`observe_upstream_request` - context manager for one provider call.

Design
------
Collectors are created against the *current* default registry
(:data:`prometheus_client.REGISTRY`). If a collector with the same name is
already registered (module re-import, hot reload), the existing instance is
reused instead of registering a duplicate.
"""

from __future__ import annotations

from collections.abc import Generator, Sequence
from contextlib import contextmanager, suppress
from dataclasses import dataclass, field
from time import perf_counter
from typing import Final

import prometheus_client as prom
from prometheus_client import Counter, Histogram
from prometheus_client.registry import CollectorRegistry

_BUCKETS: Final[tuple[float, ...]] = (
    0.005,
    0.010,
    0.025,
    0.050,
    0.100,
    0.250,
    0.500,
    1.000,
    2.500,
    5.000,
    10.000,
)


def _get_or_create_histogram(
    name: str,
    doc: str,
    labelnames: Sequence[str] | None = None,
) -> Histogram:
    """Return a histogram bound to the current default registry.

    Args:
        name: Metric name.
        doc: Human-readable metric description.
        labelnames: Optional iterable of label names.

    Returns:
        A :class:`Histogram` bound to the current :data:`prom.REGISTRY`.
    """
    registry: CollectorRegistry = prom.REGISTRY
    mapping = getattr(registry, "_names_to_collectors", {})  # internal but stable
    existing = mapping.get(name)
    if isinstance(existing, Histogram):
        return existing

    labels = tuple(labelnames) if labelnames is not None else ()
    try:
        return Histogram(name, doc, labels, registry=registry, buckets=_BUCKETS)
    except ValueError as exc:
        if "Duplicated timeseries" in str(exc):
            again = getattr(registry, "_names_to_collectors", {}).get(name)
            if isinstance(again, Histogram):
                return again
        raise


def _get_or_create_counter(
    name: str,
    doc: str,
    labelnames: Sequence[str] | None = None,
) -> Counter:
    """Return a counter bound to the current default registry.

    Mirrors :func:`_get_or_create_histogram`. Counters are registered under
    their base name and looked up under both the base and ``_total`` names.
    """
    registry: CollectorRegistry = prom.REGISTRY
    base = name.removesuffix("_total")
    mapping = getattr(registry, "_names_to_collectors", {})
    existing = mapping.get(name) or mapping.get(base)
    if isinstance(existing, Counter):
        return existing

    labels = tuple(labelnames) if labelnames is not None else ()
    try:
        return Counter(base, doc, labels, registry=registry)
    except ValueError as exc:
        if "Duplicated timeseries" in str(exc):
            mapping = getattr(registry, "_names_to_collectors", {})
            again = mapping.get(name) or mapping.get(base)
            if isinstance(again, Counter):
                return again
        raise


# ---------------------------------------------------------------------------
# Cache collectors
# ---------------------------------------------------------------------------

cache_hits_total: Counter = _get_or_create_counter(
    "quotecache_cache_hits_total",
    "Cache hits for quote lookups.",
    labelnames=("source",),
)

cache_misses_total: Counter = _get_or_create_counter(
    "quotecache_cache_misses_total",
    "Cache misses for quote lookups (absent or corrupt entries).",
    labelnames=("source",),
)

cache_corrupt_entries_total: Counter = _get_or_create_counter(
    "quotecache_cache_corrupt_entries_total",
    "Cached values that failed to decode and were treated as misses.",
    labelnames=("source",),
)

aggregate_skipped_total: Counter = _get_or_create_counter(
    "quotecache_aggregate_skipped_total",
    "Keys skipped while aggregating cached day series.",
    labelnames=("reason",),
)

# ---------------------------------------------------------------------------
# Upstream collectors
# ---------------------------------------------------------------------------

upstream_latency_seconds: Histogram = _get_or_create_histogram(
    "quotecache_upstream_latency_seconds",
    "Latency of upstream market data provider calls (seconds).",
    labelnames=("provider", "endpoint", "interval", "outcome"),
)

upstream_errors_total: Counter = _get_or_create_counter(
    "quotecache_upstream_errors_total",
    "Errors encountered when calling upstream market data providers.",
    labelnames=("provider", "endpoint", "interval", "reason"),
)

readyz_redis_latency_seconds: Histogram = _get_or_create_histogram(
    "quotecache_readyz_redis_latency_seconds",
    "Latency of the Redis readiness probe (seconds).",
)


def source_label(key: str) -> str:
    """Collapse a cache key into a low-cardinality label value."""
    if key.endswith("_day"):
        return "day_aggregate"
    if "_" in key:
        return "day_by_date"
    return "current"


@dataclass
class UpstreamObservation:
    """State captured while observing an upstream call.

    Attributes:
        provider: Upstream provider identifier (for labelling).
        endpoint: Logical endpoint name (for labelling).
        interval: Interval label (e.g. ``"1d"`` or ``"1m"``), if applicable.
        start: Monotonic start time in seconds.
        outcome: Outcome of the call (``"success"`` or ``"error"``).
        error_reason: Short, machine-readable error reason if any.
    """

    provider: str
    endpoint: str
    interval: str | None = None
    start: float = field(default_factory=perf_counter)
    outcome: str = "success"
    error_reason: str | None = None

    def mark_error(self, reason: str) -> None:
        """Mark the upstream call as failed with a given reason."""
        self.outcome = "error"
        self.error_reason = reason


@contextmanager
def observe_upstream_request(
    *,
    provider: str,
    endpoint: str,
    interval: str | None = None,
) -> Generator[UpstreamObservation, None, None]:
    """Observe an upstream market data request.

    Records a latency sample and, when the call failed, an error increment.
    Exceptions escaping the block are marked with reason ``"exception"``
    unless the caller already set a more specific reason.

    Args:
        provider: Upstream provider identifier (e.g. ``"yahoo"``).
        endpoint: Logical endpoint name (e.g. ``"chart"``).
        interval: Optional interval label (e.g. ``"1d"`` or ``"1m"``).

    Yields:
        A mutable :class:`UpstreamObservation`.
    """
    obs = UpstreamObservation(provider=provider, endpoint=endpoint, interval=interval)
    try:
        yield obs
    except Exception:
        if obs.error_reason is None:
            obs.mark_error("exception")
        raise
    finally:
        elapsed = perf_counter() - obs.start

        with suppress(Exception):
            upstream_latency_seconds.labels(
                provider=obs.provider,
                endpoint=obs.endpoint,
                interval=obs.interval or "n/a",
                outcome=obs.outcome,
            ).observe(elapsed)

            if obs.error_reason is not None:
                upstream_errors_total.labels(
                    provider=obs.provider,
                    endpoint=obs.endpoint,
                    interval=obs.interval or "n/a",
                    reason=obs.error_reason,
                ).inc()
