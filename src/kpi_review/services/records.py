from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

from kpi_review.domain.constants import KPI_PENDING, PERIOD_YEARLY, REVIEW_PENDING
from kpi_review.domain.models import KPI, KPIItem, Review
from kpi_review.services.features import normalize_period_type


def _to_float(value: Any) -> float | None:
    if value in (None, "") or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _first(row: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = row.get(key)
        if value not in (None, ""):
            return value
    return None


def _status(value: Any, default: str) -> str:
    text = str(value or "").strip().lower()
    return text or default


def item_from_record(row: Mapping[str, Any] | KPIItem) -> KPIItem:
    if isinstance(row, KPIItem):
        return row
    item_id = _first(row, "item_id", "id")
    return KPIItem(
        id=item_id,
        title=str(row.get("title") or ""),
        manager_rating=_to_float(row.get("manager_rating")),
        employee_rating=_to_float(row.get("employee_rating")),
        goal_weight=row.get("goal_weight"),
        actual_value=_to_float(row.get("actual_value")),
        target_value=_to_float(row.get("target_value")),
    )


def items_from_records(rows: Iterable[Mapping[str, Any] | KPIItem] | None) -> tuple[KPIItem, ...]:
    if not rows:
        return ()
    return tuple(item_from_record(row) for row in rows)


def kpi_from_record(row: Mapping[str, Any] | KPI) -> KPI:
    if isinstance(row, KPI):
        return row
    return KPI(
        id=row.get("id"),
        status=_status(row.get("status"), KPI_PENDING),
        period_type=normalize_period_type(_first(row, "period", "period_type") or PERIOD_YEARLY),
        items=items_from_records(row.get("items")),
        department_id=row.get("department_id"),
        department=row.get("employee_department") or row.get("department"),
    )


def review_from_record(row: Mapping[str, Any] | Review | None) -> Review | None:
    """Backend rows send the status as either ``review_status`` or ``status``."""
    if row is None or isinstance(row, Review):
        return row
    status = _first(row, "review_status", "status")
    confirmation_required = row.get("confirmation_required")
    return Review(
        kpi_id=row.get("kpi_id"),
        review_status=_status(status, REVIEW_PENDING),
        employee_rating=_to_float(_first(row, "employee_final_rating", "employee_rating")),
        manager_rating=_to_float(_first(row, "manager_final_rating", "manager_rating")),
        confirmation_required=True if confirmation_required is None else bool(confirmation_required),
    )


def index_reviews(reviews: Iterable[Mapping[str, Any] | Review] | None) -> dict[Any, Review]:
    indexed: dict[Any, Review] = {}
    for row in reviews or []:
        review = review_from_record(row)
        if review is not None and review.kpi_id not in indexed:
            indexed[review.kpi_id] = review
    return indexed
