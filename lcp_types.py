# lcp_types.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

PHASE_TTFB = "TTFB"
PHASE_LOAD_DELAY = "Load Delay"
PHASE_LOAD_TIME = "Load Time"
PHASE_RENDER_DELAY = "Render Delay"
PHASE_ORDER = (PHASE_TTFB, PHASE_LOAD_DELAY, PHASE_LOAD_TIME, PHASE_RENDER_DELAY)

NODE_KIND_NETWORK = "network"
NODE_KIND_CPU = "cpu"


class LcpInputError(ValueError):
    """Raised when an upstream artifact does not have the expected shape."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


@dataclass(frozen=True)
class NavigationTimestamps:
    time_origin: float                          # absolute ms
    lcp_event: Optional[dict[str, Any]] = field(default=None, compare=False, hash=False)
    main_frame_id: Optional[str] = None


@dataclass(frozen=True)
class NetworkRecord:
    request_id: str
    url: str = ""
    network_request_time: float = 0.0           # absolute ms
    network_end_time: float = 0.0               # absolute ms
    response_headers_end_time: Optional[float] = None  # seconds, relative to the time origin
    resource_type: str = "Other"
    frame_id: Optional[str] = None
    finished: bool = True


@dataclass(frozen=True)
class SimulationNode:
    node_id: str
    kind: str                                   # "network" | "cpu"
    record: Optional[NetworkRecord] = None


@dataclass(frozen=True)
class NodeTiming:
    start_time: float                           # seconds, relative to the time origin
    end_time: float


@dataclass(frozen=True)
class PessimisticEstimate:
    node_timings: tuple[tuple[SimulationNode, NodeTiming], ...] = ()


@dataclass(frozen=True)
class MetricResult:
    timing: float                               # ms, relative to navigation start
    pessimistic_estimate: Optional[PessimisticEstimate] = None


@dataclass(frozen=True)
class SimulatedTimings:
    node_timings: tuple[tuple[SimulationNode, NodeTiming], ...]


@dataclass(frozen=True)
class ObservedTimings:
    pass


TimingSource = SimulatedTimings | ObservedTimings


def timing_source_for(metric_result: MetricResult) -> TimingSource:
    """Tag a metric result with the timing source its LCP value came from."""
    if metric_result.pessimistic_estimate is not None:
        return SimulatedTimings(metric_result.pessimistic_estimate.node_timings)
    return ObservedTimings()


@dataclass(frozen=True)
class PhaseEntry:
    phase: str
    timing: float                               # ms

    def to_dict(self) -> dict[str, Any]:
        return {"phase": self.phase, "timing": self.timing}


@dataclass(frozen=True)
class LcpElementResult:
    lcp_element_found: bool
    element: Optional[dict[str, Any]] = None
    phase_breakdown: Optional[tuple[PhaseEntry, ...]] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "lcpElementFound": self.lcp_element_found,
            "element": self.element,
            "phaseBreakdown": (
                [entry.to_dict() for entry in self.phase_breakdown]
                if self.phase_breakdown is not None
                else None
            ),
        }
