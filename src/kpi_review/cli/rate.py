from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from kpi_review import config
from kpi_review.domain.constants import AUDIENCES, AUDIENCE_EMPLOYEE, RATER_MANAGER, RATER_TYPES
from kpi_review.services.lifecycle import derive_kpi_stage
from kpi_review.services.rating_engine import (
    breakdown_frame,
    calculation_method_name,
    compute_final_rating,
    summarize_result,
    validate_weights,
)
from kpi_review.services.records import kpi_from_record

LOGGER = logging.getLogger(__name__)


def _load_payload(path: str) -> dict[str, Any]:
    if path == "-":
        text = sys.stdin.read()
    else:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise ValueError(f"Cannot read payload {path}: {exc}") from exc
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Payload must be a JSON object.")
    return payload


def _features(payload: dict[str, Any], period: str) -> Any:
    if "features" in payload and payload["features"] is not None:
        return payload["features"]
    return config.fallback_features(period)


def _run_rate(payload: dict[str, Any], args: argparse.Namespace) -> dict[str, Any]:
    period = args.period or payload.get("period_type") or config.period_type()
    features = _features(payload, period)
    scale = payload.get("rating_scale") or config.rating_scale()
    items = payload.get("items") or []

    result = compute_final_rating(items, scale, features, period, args.rater)
    output = result.to_dict()
    output["method_name"] = calculation_method_name(features, period)
    output["summary"] = summarize_result(result)
    output["warnings"] = validate_weights(items) if result.method != "normal" else []

    if not args.json:
        print(output["method_name"])
        frame = breakdown_frame(result)
        if not frame.empty:
            print(frame.to_string(index=False))
        print(output["summary"])
        for warning in output["warnings"]:
            print(f"! {warning}")
    return output


def _run_stage(payload: dict[str, Any], args: argparse.Namespace) -> dict[str, Any]:
    kpi_row = payload.get("kpi")
    if not isinstance(kpi_row, dict):
        raise ValueError("Stage payload needs a 'kpi' object.")
    kpi = kpi_from_record(kpi_row)
    features = _features(payload, kpi.period_type)
    info = derive_kpi_stage(kpi, payload.get("review"), features, args.audience)
    output = info.to_dict()

    if not args.json:
        print(f"Stage: {info.stage}")
        print(f"Bucket: {info.bucket or '-'} | Progress: {info.progress}%")
        for actor, actions in info.permitted_actions.items():
            print(f"{actor}: {', '.join(actions) or '-'}")
        if not info.is_consistent:
            print("! Inconsistent KPI/review state, check the source data.")
    return output


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=config.log_level(), format="%(levelname)s %(message)s")
    parser = argparse.ArgumentParser(description="Compute KPI ratings and review stages.")
    subparsers = parser.add_subparsers(dest="mode", required=True)

    rate_parser = subparsers.add_parser("rate", help="Compute the final rating of a KPI payload.")
    rate_parser.add_argument("payload", help="JSON file with items, rating_scale, features ('-' for stdin).")
    rate_parser.add_argument("--rater", choices=list(RATER_TYPES), default=RATER_MANAGER)
    rate_parser.add_argument("--period", help="Override period type (quarterly/yearly).")
    rate_parser.add_argument("--json", action="store_true", help="Print the result as JSON.")

    stage_parser = subparsers.add_parser("stage", help="Derive the review stage of a KPI payload.")
    stage_parser.add_argument("payload", help="JSON file with kpi, review, features ('-' for stdin).")
    stage_parser.add_argument("--audience", choices=list(AUDIENCES), default=AUDIENCE_EMPLOYEE)
    stage_parser.add_argument("--json", action="store_true", help="Print the result as JSON.")

    args = parser.parse_args(argv)

    try:
        payload = _load_payload(args.payload)
        if args.mode == "rate":
            output = _run_rate(payload, args)
        else:
            output = _run_stage(payload, args)
    except ValueError as exc:
        LOGGER.error("%s", exc)
        return 2

    if args.json:
        print(json.dumps(output, ensure_ascii=False, indent=2, default=str))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
