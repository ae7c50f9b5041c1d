#!/usr/bin/env python3
# run_lcp_audit.py
import argparse
import json
import logging
import sys

import config
from computed_cache import new_context
from lcp_element_audit import audit
from lcp_types import LcpInputError

# Setup logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Largest Contentful Paint element audit")
    p.add_argument("artifacts", help="Artifacts bundle (JSON)")
    p.add_argument("--out", default=None, help="Write the audit result here (default: stdout)")
    p.add_argument("--lang", choices=list(config.SUPPORTED_LANGS), default=config.DEFAULT_LANG,
                   help="Language of titles and labels")
    p.add_argument("--throttling-method", choices=["simulate", "devtools", "provided"], default=None,
                   help="Override settings.throttlingMethod from the bundle")
    return p.parse_args(argv)


def load_artifacts(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise LcpInputError("artifacts_not_a_dict")
    return data


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        artifacts = load_artifacts(args.artifacts)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Cannot read artifacts {args.artifacts}: {e}")
        return 2
    except LcpInputError as e:
        logger.error(f"Malformed artifacts: {e.reason}")
        return 2

    settings = dict(artifacts.get("settings") or {})
    if args.throttling_method:
        settings["throttlingMethod"] = args.throttling_method

    try:
        product = audit(artifacts, new_context(settings), lang=args.lang)
    except LcpInputError as e:
        logger.error(f"Malformed artifacts: {e.reason}")
        return 2

    payload = json.dumps(product, ensure_ascii=False, indent=2)
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(payload + "\n")
        logger.info(f"Saved JSON: {args.out}")
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
