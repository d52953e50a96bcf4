from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from kpi_review.domain.constants import PERIOD_QUARTERLY, PERIOD_TYPES, PERIOD_YEARLY
from kpi_review.domain.models import FeatureSnapshot

LOGGER = logging.getLogger(__name__)

_QUARTER_RE = re.compile(r"^q[1-4]\b", re.IGNORECASE)
_TRUTHY = {"1", "true", "yes", "y", "on", "t"}


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return bool(value)


def normalize_period_type(value: Any) -> str:
    text = str(value or "").strip().lower()
    if text in PERIOD_TYPES:
        return text
    if text in ("quarter", "q") or _QUARTER_RE.match(text):
        return PERIOD_QUARTERLY
    if text in ("year", "annual", "annually"):
        return PERIOD_YEARLY
    LOGGER.warning("Unknown period type %r, using %s.", value, PERIOD_YEARLY)
    return PERIOD_YEARLY


def default_features(period_type: str = PERIOD_YEARLY) -> FeatureSnapshot:
    """Fallback when no feature snapshot is available: normal calculation, self-rating on."""
    return FeatureSnapshot(
        period_type=period_type,
        use_goal_weight=False,
        use_actual_values=False,
        self_rating_enabled=True,
        is_default=True,
    )


def features_for_period(record: Any, period_type: Any) -> FeatureSnapshot:
    """
    Pick one period's flags from a company or department features row.

    The row carries ``use_goal_weight_<period>``, ``use_actual_values_<period>``
    and ``enable_employee_self_rating_<period>`` columns. A missing row
    degrades to :func:`default_features` instead of blocking the calculation.
    """
    period = normalize_period_type(period_type)
    if isinstance(record, FeatureSnapshot):
        if record.period_type != period:
            LOGGER.warning(
                "Feature snapshot for %s used for a %s KPI.", record.period_type, period
            )
        return record
    if not isinstance(record, Mapping):
        if record is not None:
            LOGGER.warning("Unsupported features payload %r, using defaults.", type(record).__name__)
        else:
            LOGGER.warning("No features snapshot for %s KPI, using defaults.", period)
        return default_features(period)

    self_rating_key = f"enable_employee_self_rating_{period}"
    self_rating = record.get(self_rating_key)
    if self_rating is None:
        self_rating = record.get("self_rating_enabled", True)

    return FeatureSnapshot(
        period_type=period,
        use_goal_weight=_flag(
            record.get(f"use_goal_weight_{period}", record.get("use_goal_weight"))
        ),
        use_actual_values=_flag(
            record.get(f"use_actual_values_{period}", record.get("use_actual_values"))
        ),
        self_rating_enabled=_flag(self_rating),
        is_default=_flag(record.get("is_default", False)),
    )
