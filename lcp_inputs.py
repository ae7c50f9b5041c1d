# lcp_inputs.py
"""
Upstream artifacts consumed by the LCP element audit.

These are deliberately thin: network records and the simulated LCP estimate
arrive pre-computed in the artifacts bundle, the navigation anchors and the
observed LCP value are read straight from the trace events.
"""
from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import urldefrag

import config
from computed_cache import ComputedArtifact
from lcp_types import (
    LcpInputError,
    MetricResult,
    NavigationTimestamps,
    NetworkRecord,
    NodeTiming,
    PessimisticEstimate,
    SimulationNode,
)

logger = logging.getLogger(__name__)

NAVIGATION_START = "navigationStart"
LCP_CANDIDATE = "largestContentfulPaint::Candidate"
LCP_INVALIDATE = "largestContentfulPaint::Invalidate"


def _require(obj: dict[str, Any], key: str, reason: str) -> Any:
    if not isinstance(obj, dict) or obj.get(key) is None:
        raise LcpInputError(reason)
    return obj[key]


def _as_float(value: Any, reason: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise LcpInputError(reason)


def parse_network_record(raw: dict[str, Any]) -> NetworkRecord:
    request_id = _require(raw, "requestId", "network_record_missing_request_id")
    return NetworkRecord(
        request_id=str(request_id),
        url=str(raw.get("url") or ""),
        network_request_time=_as_float(raw.get("networkRequestTime", 0), "network_record_bad_timing"),
        network_end_time=_as_float(raw.get("networkEndTime", 0), "network_record_bad_timing"),
        response_headers_end_time=(
            _as_float(raw["responseHeadersEndTime"], "network_record_bad_timing")
            if raw.get("responseHeadersEndTime") is not None
            else None
        ),
        resource_type=str(raw.get("resourceType") or "Other"),
        frame_id=raw.get("frameId"),
        finished=bool(raw.get("finished", True)),
    )


def _trace_events(trace: Any) -> list[dict[str, Any]]:
    events = _require(trace, "traceEvents", "trace_missing_events")
    if not isinstance(events, list):
        raise LcpInputError("trace_events_not_a_list")
    return [e for e in events if isinstance(e, dict)]


def _event_frame(event: dict[str, Any]) -> Optional[str]:
    args = event.get("args") or {}
    return args.get("frame")


class NetworkRecords(ComputedArtifact):
    name = "NetworkRecords"

    @classmethod
    def compute(cls, devtools_log: Any, context: dict[str, Any]) -> list[NetworkRecord]:
        if not isinstance(devtools_log, list):
            raise LcpInputError("devtools_log_not_a_list")
        records = [parse_network_record(raw) for raw in devtools_log]
        logger.debug(f"NetworkRecords: {len(records)} record(s)")
        return records


class ProcessedNavigation(ComputedArtifact):
    """Time origin (last main-frame navigation start) and the final LCP candidate event."""

    name = "ProcessedNavigation"

    @classmethod
    def compute(cls, trace: Any, context: dict[str, Any]) -> NavigationTimestamps:
        events = sorted(_trace_events(trace), key=lambda e: e.get("ts") or 0)

        nav_start = None
        for event in events:
            if event.get("name") != NAVIGATION_START:
                continue
            data = (event.get("args") or {}).get("data") or {}
            if data.get("isLoadingMainFrame", True) is False:
                continue
            nav_start = event
        if nav_start is None:
            raise LcpInputError("no_navigation_start")

        main_frame_id = _event_frame(nav_start)
        nav_ts = _as_float(nav_start.get("ts"), "navigation_start_bad_ts")

        lcp_event = None
        for event in events:
            if (event.get("ts") or 0) < nav_ts or _event_frame(event) != main_frame_id:
                continue
            if event.get("name") == LCP_CANDIDATE:
                lcp_event = event
            elif event.get("name") == LCP_INVALIDATE:
                lcp_event = None

        # Trace timestamps are microseconds.
        return NavigationTimestamps(
            time_origin=nav_ts / 1000,
            lcp_event=lcp_event,
            main_frame_id=main_frame_id,
        )


def _parse_simulated_lcp(raw: Any) -> MetricResult:
    timing = _as_float(_require(raw, "timing", "simulated_lcp_missing_timing"), "simulated_lcp_bad_timing")
    node_timings = []
    for entry in raw.get("nodeTimings") or []:
        node = _require(entry, "node", "simulated_node_missing")
        record = node.get("record")
        node_timings.append((
            SimulationNode(
                node_id=str(node.get("id") or ""),
                kind=str(_require(node, "type", "simulated_node_missing_type")),
                record=parse_network_record(record) if isinstance(record, dict) else None,
            ),
            NodeTiming(
                start_time=_as_float(entry.get("startTime"), "simulated_node_bad_timing"),
                end_time=_as_float(entry.get("endTime"), "simulated_node_bad_timing"),
            ),
        ))
    return MetricResult(timing=timing, pessimistic_estimate=PessimisticEstimate(tuple(node_timings)))


class LcpMetric(ComputedArtifact):
    """
    LCP value in ms relative to navigation start.

    Under simulated throttling the value and per-node timings come from the
    simulation's pessimistic estimate; otherwise the value is observed from the trace.
    """

    name = "LargestContentfulPaint"

    @classmethod
    def compute(cls, metric_data: dict[str, Any], context: dict[str, Any]) -> MetricResult:
        settings = metric_data.get("settings") or {}
        method = settings.get("throttlingMethod") or config.THROTTLING_METHOD

        if method == "simulate":
            simulated = metric_data.get("simulatedLcp")
            if not isinstance(simulated, dict):
                raise LcpInputError("missing_simulated_lcp")
            return _parse_simulated_lcp(simulated)

        navigation = ProcessedNavigation.request(metric_data.get("trace"), context)
        if navigation.lcp_event is None:
            raise LcpInputError("no_lcp_event")
        lcp_ts = _as_float(navigation.lcp_event.get("ts"), "lcp_event_bad_ts")
        return MetricResult(timing=lcp_ts / 1000 - navigation.time_origin)


class MainResource(ComputedArtifact):
    """Network record of the main document, or None when it was not recorded."""

    name = "MainResource"

    @classmethod
    def compute(cls, metric_data: dict[str, Any], context: dict[str, Any]) -> Optional[NetworkRecord]:
        url_artifact = metric_data.get("URL") or {}
        main_url = url_artifact.get("mainDocumentUrl")
        if not main_url:
            raise LcpInputError("missing_main_document_url")

        records = NetworkRecords.request(metric_data.get("devtoolsLog"), context)
        target = urldefrag(main_url).url
        for record in records:
            if urldefrag(record.url).url == target:
                return record

        logger.warning(f"MainResource: no network record for {main_url}")
        return None
