from __future__ import annotations

import logging
import os

from kpi_review.domain.constants import PERIOD_YEARLY
from kpi_review.domain.models import FeatureSnapshot
from kpi_review.services.features import default_features, normalize_period_type
from kpi_review.services.rounding import parse_rating_scale

DEFAULT_RATING_SCALE = (1.0, 2.0, 3.0, 4.0, 5.0)


def _parse_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def rating_scale() -> tuple[float, ...]:
    raw = os.getenv("KPI_REVIEW_RATING_SCALE")
    if not raw:
        return DEFAULT_RATING_SCALE
    return parse_rating_scale(raw.replace(";", ",").split(",")) or DEFAULT_RATING_SCALE


def period_type() -> str:
    return normalize_period_type(os.getenv("KPI_REVIEW_PERIOD_TYPE", PERIOD_YEARLY))


def fallback_features(period: str | None = None) -> FeatureSnapshot:
    snapshot = default_features(normalize_period_type(period) if period else period_type())
    self_rating = _parse_bool(os.getenv("KPI_REVIEW_DEFAULT_SELF_RATING"), default=True)
    if self_rating == snapshot.self_rating_enabled:
        return snapshot
    return FeatureSnapshot(
        period_type=snapshot.period_type,
        self_rating_enabled=self_rating,
        is_default=True,
    )


def log_level() -> int:
    name = (os.getenv("KPI_REVIEW_LOG_LEVEL") or "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO
