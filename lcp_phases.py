# lcp_phases.py
"""
LCP phase breakdown: TTFB, Load Delay, Load Time, Render Delay.

All arithmetic happens on one absolute millisecond timeline. Simulated node
timings are seconds relative to the time origin and get normalized onto it;
observed network timestamps are already there.

Render Delay is the residual against the reported LCP value, so the four
phases always sum to it. Negative phases are reported as-is and logged.
"""
from __future__ import annotations

import logging
import math
from typing import Optional

from lcp_types import (
    NODE_KIND_NETWORK,
    PHASE_LOAD_DELAY,
    PHASE_LOAD_TIME,
    PHASE_RENDER_DELAY,
    PHASE_TTFB,
    MetricResult,
    NavigationTimestamps,
    NetworkRecord,
    ObservedTimings,
    PhaseEntry,
    SimulatedTimings,
    timing_source_for,
)

logger = logging.getLogger(__name__)


def select_load_timestamps(
    metric_result: MetricResult,
    lcp_record: NetworkRecord,
    time_origin: float,
) -> Optional[tuple[float, float]]:
    """
    (lcp_load_start_ts, lcp_load_end_ts) in absolute ms, from exactly one source.

    Returns None when the metric was simulated but no network node of the
    simulation belongs to the LCP request.
    """
    source = timing_source_for(metric_result)

    if isinstance(source, SimulatedTimings):
        for node, timing in source.node_timings:
            if node.kind != NODE_KIND_NETWORK or node.record is None:
                continue
            if node.record.request_id == lcp_record.request_id:
                return (
                    timing.start_time * 1000 + time_origin,
                    timing.end_time * 1000 + time_origin,
                )
        logger.debug(f"No simulated network node for LCP request {lcp_record.request_id}")
        return None

    if isinstance(source, ObservedTimings):
        return lcp_record.network_request_time, lcp_record.network_end_time

    raise TypeError(f"Unknown timing source: {source!r}")


def first_byte_ts(main_resource: NetworkRecord, time_origin: float) -> Optional[float]:
    if main_resource.response_headers_end_time is None:
        return None
    return main_resource.response_headers_end_time * 1000 + time_origin


def decompose_phases(
    metric_timing: float,
    time_origin: float,
    first_byte: float,
    lcp_load_start_ts: float,
    lcp_load_end_ts: float,
) -> Optional[tuple[PhaseEntry, ...]]:
    # Zero counts as "not available", same as missing.
    if not lcp_load_start_ts or not lcp_load_end_ts:
        return None

    # TTFB is measured from the navigation time origin rather than the document
    # request start so that the phases add up to LCP.
    ttfb = first_byte - time_origin
    load_delay = lcp_load_start_ts - first_byte
    load_time = lcp_load_end_ts - lcp_load_start_ts
    if not all(math.isfinite(v) for v in (ttfb, load_delay, load_time)):
        logger.warning("LCP phases skipped: non-finite timing input")
        return None

    render_delay = metric_timing - load_time - load_delay - ttfb

    breakdown = (
        PhaseEntry(PHASE_TTFB, ttfb),
        PhaseEntry(PHASE_LOAD_DELAY, load_delay),
        PhaseEntry(PHASE_LOAD_TIME, load_time),
        PhaseEntry(PHASE_RENDER_DELAY, render_delay),
    )

    negative = [f"{entry.phase}={entry.timing:.1f}ms" for entry in breakdown if entry.timing < 0]
    if negative:
        logger.warning(
            f"Inconsistent LCP timing (LCP={metric_timing:.1f}ms): negative phase(s) {', '.join(negative)}"
        )
    return breakdown


def make_phase_breakdown(
    metric_result: MetricResult,
    lcp_record: NetworkRecord,
    main_resource: NetworkRecord,
    navigation: NavigationTimestamps,
) -> Optional[tuple[PhaseEntry, ...]]:
    time_origin = navigation.time_origin
    first_byte = first_byte_ts(main_resource, time_origin)
    if first_byte is None:
        logger.warning(f"LCP phases skipped: main document {main_resource.request_id} has no response headers time")
        return None

    load_ts = select_load_timestamps(metric_result, lcp_record, time_origin)
    if load_ts is None:
        return None

    lcp_load_start_ts, lcp_load_end_ts = load_ts
    return decompose_phases(
        metric_result.timing,
        time_origin,
        first_byte,
        lcp_load_start_ts,
        lcp_load_end_ts,
    )
