# lcp_record.py
from __future__ import annotations

import logging
from typing import Any, Optional

from lcp_types import NavigationTimestamps, NetworkRecord

logger = logging.getLogger(__name__)

LCP_IMAGE_CANDIDATE = "LargestImagePaint::Candidate"


def _find_lcp_image_event(trace: dict[str, Any], lcp_event: dict[str, Any]) -> Optional[dict[str, Any]]:
    lcp_args = lcp_event.get("args") or {}
    lcp_data = lcp_args.get("data") or {}
    for event in trace.get("traceEvents") or []:
        if not isinstance(event, dict) or event.get("name") != LCP_IMAGE_CANDIDATE:
            continue
        args = event.get("args") or {}
        data = args.get("data") or {}
        if (
            args.get("frame") == lcp_args.get("frame")
            and data.get("DOMNodeId") == lcp_data.get("nodeId")
            and data.get("size") == lcp_data.get("size")
        ):
            return event
    return None


def get_lcp_record(
    trace: dict[str, Any],
    navigation: NavigationTimestamps,
    network_records: list[NetworkRecord],
) -> Optional[NetworkRecord]:
    """
    Network record that delivered the LCP element's image, or None.

    None is the normal answer for text paints and for loads without network
    records; it is not an error.
    """
    lcp_event = navigation.lcp_event
    if not lcp_event or not network_records:
        return None

    image_event = _find_lcp_image_event(trace, lcp_event)
    image_data = ((image_event or {}).get("args") or {}).get("data") or {}
    image_url = image_data.get("imageUrl")
    if not image_url:
        logger.debug("LCP candidate is not backed by an image resource")
        return None

    frame_id = (lcp_event.get("args") or {}).get("frame")
    candidates = [
        record for record in network_records
        if record.url == image_url
        and record.finished
        and record.resource_type == "Image"
        and (record.frame_id is None or record.frame_id == frame_id)
    ]
    if not candidates:
        logger.debug(f"No finished image request matches LCP url {image_url}")
        return None

    return min(candidates, key=lambda r: r.network_request_time)
