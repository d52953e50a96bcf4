from __future__ import annotations

# Final KPI rating calculation shared by dashboards and reports.

import logging
import math
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

import pandas as pd

from kpi_review.domain.constants import (
    METHOD_ACTUAL_VALUE,
    METHOD_ERROR,
    METHOD_GOAL_WEIGHT,
    METHOD_LABELS,
    METHOD_NONE,
    METHOD_NORMAL,
    PERIOD_YEARLY,
    RATER_EMPLOYEE,
    RATER_MANAGER,
    RATER_TYPES,
)
from kpi_review.domain.models import (
    CalculationResult,
    FeatureSnapshot,
    ItemCalculation,
    KPIItem,
)
from kpi_review.services.features import features_for_period, normalize_period_type
from kpi_review.services.records import items_from_records
from kpi_review.services.rounding import parse_rating_scale, round_to_scale
from kpi_review.services.weights import format_weight, resolve_weight

LOGGER = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 0.01


def select_method(features: FeatureSnapshot) -> str:
    if features.use_actual_values:
        return METHOD_ACTUAL_VALUE
    if features.use_goal_weight:
        return METHOD_GOAL_WEIGHT
    return METHOD_NORMAL


def calculation_method_name(features: Any, period_type: Any = PERIOD_YEARLY) -> str:
    snapshot = features_for_period(features, period_type)
    label = METHOD_LABELS[select_method(snapshot)]
    return f"{label} ({snapshot.period_type.capitalize()})"


def goal_weights_required(features: Any, period_type: Any = PERIOD_YEARLY) -> bool:
    snapshot = features_for_period(features, period_type)
    return snapshot.use_goal_weight or snapshot.use_actual_values


def actual_values_required(features: Any, period_type: Any = PERIOD_YEARLY) -> bool:
    return features_for_period(features, period_type).use_actual_values


def weights_total(items: Iterable[Mapping[str, Any] | KPIItem] | None) -> float:
    return sum(resolve_weight(item.goal_weight) for item in items_from_records(items))


def validate_weights(items: Iterable[Mapping[str, Any] | KPIItem] | None) -> list[str]:
    """Advisory checks for goal weights; weights are never enforced."""
    parsed = items_from_records(items)
    warnings: list[str] = []
    for item in parsed:
        if resolve_weight(item.goal_weight) == 0:
            label = item.title or item.id
            warnings.append(f"Item {label} has no usable goal weight.")
    total = sum(resolve_weight(item.goal_weight) for item in parsed)
    if parsed and abs(total - 1) > WEIGHT_TOLERANCE:
        warnings.append(f"Goal weights add up to {format_weight(total)}, expected 100%.")
    return warnings


def _rating(item: KPIItem, rater_type: str) -> float:
    value = item.rating_for(rater_type)
    return value if value is not None else 0.0


def _normal(items: tuple[KPIItem, ...], scale: tuple[float, ...], rater_type: str) -> dict[str, Any]:
    max_rating = max(scale)
    total_rating = 0.0
    total_possible = 0.0
    rows = []
    for item in items:
        rating = _rating(item, rater_type)
        total_rating += rating
        total_possible += max_rating
        rows.append(
            ItemCalculation(
                item_id=item.id,
                title=item.title,
                contribution=rating,
                details={"rating": rating, "possible_rating": max_rating},
            )
        )
    percentage = total_rating / total_possible * 100 if total_possible > 0 else 0.0
    return {
        "method": METHOD_NORMAL,
        "percentage": percentage,
        "raw_rating": percentage / 100 * max_rating,
        "items": tuple(rows),
    }


def _goal_weight(items: tuple[KPIItem, ...], scale: tuple[float, ...], rater_type: str) -> dict[str, Any]:
    weighted_sum = 0.0
    total_weight = 0.0
    rows = []
    for item in items:
        rating = _rating(item, rater_type)
        weight = resolve_weight(item.goal_weight)
        contribution = rating * weight
        weighted_sum += contribution
        total_weight += weight
        rows.append(
            ItemCalculation(
                item_id=item.id,
                title=item.title,
                contribution=contribution,
                details={
                    "rating": rating,
                    "goal_weight": weight,
                    "goal_weight_display": format_weight(weight),
                },
            )
        )
    # Weighted rating relative to the best achievable weighted rating.
    best = total_weight * max(scale)
    percentage = weighted_sum / best * 100 if best > 0 else 0.0
    return {
        "method": METHOD_GOAL_WEIGHT,
        "percentage": percentage,
        "raw_rating": weighted_sum,
        "items": tuple(rows),
    }


def _actual_value(items: tuple[KPIItem, ...]) -> dict[str, Any]:
    total_percentage = 0.0
    rows = []
    for item in items:
        actual = item.actual_value or 0.0
        target = item.target_value or 0.0
        weight = resolve_weight(item.goal_weight)
        achieved = actual / target * 100 if target > 0 else 0.0
        item_percentage = achieved * weight
        total_percentage += item_percentage
        rows.append(
            ItemCalculation(
                item_id=item.id,
                title=item.title,
                contribution=item_percentage,
                details={
                    "actual_value": actual,
                    "target_value": target,
                    "percentage_achieved": achieved,
                    "goal_weight": weight,
                    "goal_weight_display": format_weight(weight),
                },
            )
        )
    # raw_rating is the achieved share as a decimal.
    return {
        "method": METHOD_ACTUAL_VALUE,
        "percentage": total_percentage,
        "raw_rating": total_percentage / 100,
        "items": tuple(rows),
    }


def _empty_result(method: str, error: str, scale: tuple[float, ...] = ()) -> CalculationResult:
    return CalculationResult(method=method, rating_scale=scale, error=error)


def compute_final_rating(
    items: Iterable[Mapping[str, Any] | KPIItem] | None,
    rating_scale: Iterable[Any] | None,
    features: Any = None,
    period_type: Any = PERIOD_YEARLY,
    rater_type: str = RATER_MANAGER,
) -> CalculationResult:
    """
    Compute the final rating of a KPI under the active calculation policy.

    The policy comes from ``features`` for ``period_type``: actual values
    win over goal weight, goal weight over the normal calculation. The raw
    rating is snapped to ``rating_scale`` for ``final_rating``; the raw value
    and percentage are kept for the breakdown.

    Never raises. Empty items or an empty scale give a ``none`` result and
    unexpected failures an ``error`` result, both zeroed.
    """
    try:
        parsed = items_from_records(items)
        scale = parse_rating_scale(rating_scale)
        if not parsed:
            LOGGER.warning("Rating calculation skipped: no items provided.")
            return _empty_result(METHOD_NONE, "No items provided", scale)
        if not scale:
            LOGGER.warning("Rating calculation skipped: no rating options provided.")
            return _empty_result(METHOD_NONE, "No rating options provided")

        if rater_type not in RATER_TYPES:
            LOGGER.warning("Unknown rater type %r, using %s ratings.", rater_type, RATER_MANAGER)
            rater_type = RATER_MANAGER

        snapshot = features_for_period(features, normalize_period_type(period_type))
        method = select_method(snapshot)
        if method == METHOD_ACTUAL_VALUE:
            payload = _actual_value(parsed)
        elif method == METHOD_GOAL_WEIGHT:
            payload = _goal_weight(parsed, scale, rater_type)
        else:
            payload = _normal(parsed, scale, rater_type)

        raw_rating = payload["raw_rating"]
        if math.isnan(raw_rating) or math.isinf(raw_rating):
            raise ValueError(f"non-finite rating {raw_rating!r}")

        return CalculationResult(
            method=payload["method"],
            percentage=payload["percentage"],
            raw_rating=raw_rating,
            final_rating=round_to_scale(raw_rating, scale),
            items=payload["items"],
            rating_scale=scale,
        )
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Rating calculation failed")
        return _empty_result(METHOD_ERROR, str(exc) or exc.__class__.__name__)


def compute_employee_and_manager_ratings(
    items: Iterable[Mapping[str, Any] | KPIItem] | None,
    rating_scale: Iterable[Any] | None,
    features: Any = None,
    period_type: Any = PERIOD_YEARLY,
) -> dict[str, CalculationResult]:
    if isinstance(items, Iterator):
        items = list(items)
    return {
        rater: compute_final_rating(items, rating_scale, features, period_type, rater)
        for rater in (RATER_EMPLOYEE, RATER_MANAGER)
    }


def summarize_result(result: CalculationResult) -> str:
    if not result.ok:
        return f"Not calculated: {result.error}"
    return f"{result.percentage:.1f}% -> rounded to {result.final_rating:.2f}"


def breakdown_frame(result: CalculationResult) -> pd.DataFrame:
    rows = []
    for item in result.items:
        rows.append(
            {
                "item_id": item.item_id,
                "title": item.title,
                "contribution": item.contribution,
                **item.details,
            }
        )
    if not rows:
        return pd.DataFrame(columns=["item_id", "title", "contribution"])
    return pd.DataFrame(rows)
