# lcp_element_audit.py
"""
Largest Contentful Paint element audit.

Reports the element the trace marked as the LCP candidate and, when the
candidate was painted from a network resource, the TTFB / Load Delay /
Load Time / Render Delay breakdown of the LCP value.

Usage:
    context = new_context()
    product = audit(artifacts, context)
"""
from __future__ import annotations

import logging
import re
from typing import Any, Optional

from bs4 import BeautifulSoup

import config
from computed_cache import new_context
from lcp_inputs import LcpMetric, MainResource, NetworkRecords, ProcessedNavigation
from lcp_phases import make_phase_breakdown
from lcp_record import get_lcp_record
from lcp_types import LcpElementResult, LcpInputError, PhaseEntry

logger = logging.getLogger(__name__)

DEFAULT_PASS = "defaultPass"
LCP_TRACE_EVENT_TYPE = "largest-contentful-paint"
# Upstream data that may legitimately be absent from a well-formed trace
MISSING_DATA_REASONS = {"no_navigation_start", "no_lcp_event"}
NODE_LABEL_MAX = 80

AUDIT_META = {
    "id": "largest-contentful-paint-element",
    "title_en": "Largest Contentful Paint element",
    "title_ro": "Elementul Largest Contentful Paint",
    "description_en": (
        "This is the largest contentful element painted within the viewport. "
        "[Learn more about the Largest Contentful Paint element]"
        "(https://developer.chrome.com/docs/lighthouse/performance/lighthouse-largest-contentful-paint/)"
    ),
    "description_ro": (
        "Acesta este cel mai mare element de conținut afișat în viewport. "
        "[Aflați mai multe despre elementul Largest Contentful Paint]"
        "(https://developer.chrome.com/docs/lighthouse/performance/lighthouse-largest-contentful-paint/)"
    ),
    "scoreDisplayMode": "informative",
    "supportedModes": ["navigation"],
    "requiredArtifacts": ["traces", "TraceElements", "devtoolsLogs", "GatherContext", "settings", "URL"],
}

COLUMN_LABELS = {
    "en": {"element": "Element", "phase": "Phase", "timing": "Timing"},
    "ro": {"element": "Element", "phase": "Fază", "timing": "Durată"},
}


def _lang(lang: Optional[str]) -> str:
    lang = (lang or config.DEFAULT_LANG or "en").lower()
    return lang if lang in config.SUPPORTED_LANGS else "en"


def display_value(node_count: int, lang: str) -> str:
    if lang == "ro":
        return "1 element găsit" if node_count == 1 else f"{node_count} elemente găsite"
    return "1 element found" if node_count == 1 else f"{node_count} elements found"


def make_table_details(headings: list[dict[str, Any]], items: list[dict[str, Any]]) -> dict[str, Any]:
    return {"type": "table", "headings": headings, "items": items}


def make_list_details(items: list[dict[str, Any]]) -> dict[str, Any]:
    return {"type": "list", "items": items}


def node_label_from_snippet(snippet: str) -> str:
    """Human label for a node: image alt text, else its text, else the tag name."""
    if not snippet:
        return ""
    soup = BeautifulSoup(snippet, "html.parser")
    el = soup.find(True)
    if el is None:
        return re.sub(r"\s+", " ", soup.get_text(" ", strip=True))[:NODE_LABEL_MAX]

    alt = el.get("alt")
    if isinstance(alt, str) and alt.strip():
        return alt.strip()[:NODE_LABEL_MAX]
    text = re.sub(r"\s+", " ", el.get_text(" ", strip=True))
    if text:
        return text[:NODE_LABEL_MAX]
    return el.name


def make_node_item(node: dict[str, Any]) -> dict[str, Any]:
    if not isinstance(node, dict):
        raise LcpInputError("trace_element_missing_node")
    snippet = node.get("snippet") or ""
    return {
        "type": "node",
        "lhId": node.get("lhId"),
        "path": node.get("devtoolsNodePath") or node.get("path"),
        "selector": node.get("selector"),
        "boundingRect": node.get("boundingRect"),
        "snippet": snippet,
        "nodeLabel": node.get("nodeLabel") or node_label_from_snippet(snippet),
    }


def find_lcp_element(trace_elements: list[dict[str, Any]] | None) -> Optional[dict[str, Any]]:
    for element in trace_elements or []:
        if isinstance(element, dict) and element.get("traceEventType") == LCP_TRACE_EVENT_TYPE:
            return element
    return None


def _pass_artifact(artifacts: dict[str, Any], key: str) -> Any:
    by_pass = artifacts.get(key)
    if not isinstance(by_pass, dict) or DEFAULT_PASS not in by_pass:
        raise LcpInputError(f"missing_{key}")
    return by_pass[DEFAULT_PASS]


def make_phase_breakdown_for(artifacts: dict[str, Any], context: dict[str, Any]) -> Optional[tuple[PhaseEntry, ...]]:
    trace = _pass_artifact(artifacts, "traces")
    devtools_log = _pass_artifact(artifacts, "devtoolsLogs")
    metric_data = {
        "trace": trace,
        "devtoolsLog": devtools_log,
        "settings": context.setdefault("settings", {}),
        "URL": artifacts.get("URL"),
        "simulatedLcp": artifacts.get("simulatedLcp"),
    }

    network_records = NetworkRecords.request(devtools_log, context)
    navigation = ProcessedNavigation.request(trace, context)

    lcp_record = get_lcp_record(trace, navigation, network_records)
    if lcp_record is None:
        return None

    metric_result = LcpMetric.request(metric_data, context)
    main_resource = MainResource.request(metric_data, context)
    if main_resource is None:
        return None

    return make_phase_breakdown(metric_result, lcp_record, main_resource, navigation)


def assemble_result(
    lcp_element: Optional[dict[str, Any]],
    phase_breakdown: Optional[tuple[PhaseEntry, ...]],
) -> LcpElementResult:
    if lcp_element is None:
        return LcpElementResult(lcp_element_found=False)
    return LcpElementResult(
        lcp_element_found=True,
        element=make_node_item(lcp_element.get("node")),
        phase_breakdown=phase_breakdown,
    )


def to_audit_product(result: LcpElementResult, lang: str | None = None) -> dict[str, Any]:
    lang = _lang(lang)
    labels = COLUMN_LABELS[lang]

    element_items = [{"node": result.element}] if result.lcp_element_found else []
    items = [
        make_table_details(
            [{"key": "node", "valueType": "node", "label": labels["element"]}],
            element_items,
        )
    ]
    if result.phase_breakdown is not None:
        items.append(make_table_details(
            [
                {"key": "phase", "valueType": "text", "label": labels["phase"]},
                {"key": "timing", "valueType": "ms", "label": labels["timing"]},
            ],
            [entry.to_dict() for entry in result.phase_breakdown],
        ))

    return {
        "id": AUDIT_META["id"],
        "title": AUDIT_META[f"title_{lang}"],
        "description": AUDIT_META[f"description_{lang}"],
        "scoreDisplayMode": AUDIT_META["scoreDisplayMode"],
        "score": 1,
        "notApplicable": len(element_items) == 0,
        "displayValue": display_value(len(element_items), lang),
        "details": make_list_details(items),
        "result": result.to_dict(),
    }


def audit(
    artifacts: dict[str, Any],
    context: dict[str, Any] | None = None,
    lang: str | None = None,
) -> dict[str, Any]:
    if not isinstance(artifacts, dict):
        raise LcpInputError("artifacts_not_a_dict")
    if context is None:
        context = new_context(artifacts.get("settings"))

    lcp_element = find_lcp_element(artifacts.get("TraceElements"))
    phase_breakdown = None
    if lcp_element is None:
        logger.info("No LCP element in trace; audit not applicable")
    else:
        try:
            phase_breakdown = make_phase_breakdown_for(artifacts, context)
        except LcpInputError as e:
            if e.reason not in MISSING_DATA_REASONS:
                raise
            logger.warning(f"LCP phase breakdown skipped: {e.reason}")
        if phase_breakdown is None:
            logger.info("LCP phase breakdown unavailable; reporting element only")

    return to_audit_product(assemble_result(lcp_element, phase_breakdown), lang)
