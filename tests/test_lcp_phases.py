import logging
import math

import pytest

from lcp_phases import decompose_phases, make_phase_breakdown, select_load_timestamps
from lcp_types import (
    PHASE_ORDER,
    MetricResult,
    NavigationTimestamps,
    NetworkRecord,
    NodeTiming,
    PessimisticEstimate,
    SimulationNode,
)

NAV = NavigationTimestamps(time_origin=1000.0)
MAIN = NetworkRecord(request_id="doc", response_headers_end_time=0.2)
LCP_RECORD = NetworkRecord(request_id="lcp-img", network_request_time=1300.0, network_end_time=1450.0)


def _simulated(timing, request_id="lcp-img", start=0.3, end=0.5):
    nodes = (
        (SimulationNode("doc", "network", MAIN), NodeTiming(0.0, 0.25)),
        (SimulationNode("task", "cpu"), NodeTiming(0.25, 0.3)),
        (SimulationNode(request_id, "network", NetworkRecord(request_id=request_id)), NodeTiming(start, end)),
    )
    return MetricResult(timing=timing, pessimistic_estimate=PessimisticEstimate(nodes))


def _as_pairs(breakdown):
    return [(entry.phase, entry.timing) for entry in breakdown]


def test_simulated_breakdown():
    breakdown = make_phase_breakdown(_simulated(700.0), LCP_RECORD, MAIN, NAV)
    assert _as_pairs(breakdown) == [
        ("TTFB", pytest.approx(200.0)),
        ("Load Delay", pytest.approx(100.0)),
        ("Load Time", pytest.approx(200.0)),
        ("Render Delay", pytest.approx(200.0)),
    ]


def test_observed_breakdown():
    breakdown = make_phase_breakdown(MetricResult(timing=650.0), LCP_RECORD, MAIN, NAV)
    assert _as_pairs(breakdown) == [
        ("TTFB", pytest.approx(200.0)),
        ("Load Delay", pytest.approx(100.0)),
        ("Load Time", pytest.approx(150.0)),
        ("Render Delay", pytest.approx(200.0)),
    ]


def test_simulated_without_matching_node_has_no_breakdown():
    metric = _simulated(700.0, request_id="other-request")
    assert select_load_timestamps(metric, LCP_RECORD, NAV.time_origin) is None
    assert make_phase_breakdown(metric, LCP_RECORD, MAIN, NAV) is None


def test_cpu_node_with_same_id_is_ignored():
    nodes = ((SimulationNode("lcp-img", "cpu", LCP_RECORD), NodeTiming(0.3, 0.5)),)
    metric = MetricResult(timing=700.0, pessimistic_estimate=PessimisticEstimate(nodes))
    assert select_load_timestamps(metric, LCP_RECORD, NAV.time_origin) is None


def test_simulated_source_ignores_observed_record_fields():
    start, end = select_load_timestamps(_simulated(700.0), LCP_RECORD, NAV.time_origin)
    assert (start, end) == (pytest.approx(1300.0), pytest.approx(1500.0))
    assert end != LCP_RECORD.network_end_time


def test_observed_source_uses_record_fields_without_origin_shift():
    start, end = select_load_timestamps(MetricResult(timing=650.0), LCP_RECORD, NAV.time_origin)
    assert (start, end) == (1300.0, 1450.0)


def test_zero_timestamp_is_treated_as_unavailable():
    record = NetworkRecord(request_id="lcp-img", network_request_time=0.0, network_end_time=1450.0)
    assert make_phase_breakdown(MetricResult(timing=650.0), record, MAIN, NAV) is None
    assert decompose_phases(650.0, 1000.0, 1200.0, 1300.0, 0.0) is None


def test_non_finite_inputs_skip_breakdown():
    assert decompose_phases(650.0, 1000.0, math.nan, 1300.0, 1450.0) is None


def test_phase_order_is_fixed():
    breakdown = decompose_phases(650.0, 1000.0, 1200.0, 1300.0, 1450.0)
    assert tuple(entry.phase for entry in breakdown) == PHASE_ORDER


@pytest.mark.parametrize("timing, start, end", [
    (650.0, 1300.0, 1450.0),
    (1234.567, 1210.125, 1999.875),
    (100.0, 1500.0, 1700.0),
])
def test_phases_sum_to_lcp(timing, start, end):
    breakdown = decompose_phases(timing, 1000.0, 1200.0, start, end)
    assert sum(entry.timing for entry in breakdown) == pytest.approx(timing)


def test_recomputation_is_identical():
    metric = _simulated(700.0)
    first = make_phase_breakdown(metric, LCP_RECORD, MAIN, NAV)
    second = make_phase_breakdown(metric, LCP_RECORD, MAIN, NAV)
    assert first == second


def test_negative_render_delay_is_passed_through_and_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="lcp_phases"):
        breakdown = decompose_phases(300.0, 1000.0, 1200.0, 1300.0, 1450.0)
    render_delay = breakdown[-1]
    assert render_delay.phase == "Render Delay"
    assert render_delay.timing == pytest.approx(-150.0)
    assert "Inconsistent LCP timing" in caplog.text
    assert "Render Delay" in caplog.text


def test_consistent_timing_logs_nothing(caplog):
    with caplog.at_level(logging.WARNING, logger="lcp_phases"):
        decompose_phases(650.0, 1000.0, 1200.0, 1300.0, 1450.0)
    assert caplog.text == ""


def test_main_document_without_headers_time_has_no_breakdown(caplog):
    main = NetworkRecord(request_id="doc")
    with caplog.at_level(logging.WARNING, logger="lcp_phases"):
        assert make_phase_breakdown(MetricResult(timing=650.0), LCP_RECORD, main, NAV) is None
        assert make_phase_breakdown(_simulated(700.0), LCP_RECORD, main, NAV) is None
    assert "no response headers time" in caplog.text
