from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import pandas as pd

from kpi_review.domain.constants import AUDIENCE_HR, BUCKETS
from kpi_review.domain.models import KPI, Review
from kpi_review.services.lifecycle import derive_kpi_stage
from kpi_review.services.records import index_reviews, kpi_from_record

STAGE_COLUMNS = ["kpi_id", "department", "period_type", "stage", "bucket", "progress", "is_consistent"]


def stage_frame(
    kpis: Iterable[Mapping[str, Any] | KPI],
    reviews: Iterable[Mapping[str, Any] | Review] | None = None,
    features_by_kpi: Mapping[Any, Any] | None = None,
    default_features: Any = None,
    audience: str = AUDIENCE_HR,
) -> pd.DataFrame:
    """One row per KPI with its derived stage and bucket."""
    reviews_by_kpi = index_reviews(reviews)
    features_by_kpi = features_by_kpi or {}
    rows = []
    for row in kpis:
        kpi = kpi_from_record(row)
        features = features_by_kpi.get(kpi.id, default_features)
        info = derive_kpi_stage(kpi, reviews_by_kpi.get(kpi.id), features, audience)
        rows.append(
            {
                "kpi_id": kpi.id,
                "department": kpi.department,
                "period_type": kpi.period_type,
                "stage": info.stage,
                "bucket": info.bucket,
                "progress": info.progress,
                "is_consistent": info.is_consistent,
            }
        )
    return pd.DataFrame(rows, columns=STAGE_COLUMNS)


def count_buckets(frame: pd.DataFrame) -> dict[str, int]:
    """Zero-filled bucket counts; KPIs without a bucket are not counted."""
    counts = {bucket: 0 for bucket in BUCKETS}
    if frame.empty:
        return counts
    for bucket, count in frame["bucket"].dropna().value_counts().items():
        counts[str(bucket)] = int(count)
    return counts


def department_statistics(frame: pd.DataFrame) -> pd.DataFrame:
    """Department x bucket counts with a ``total`` column, as on the HR dashboard."""
    if frame.empty:
        return pd.DataFrame(columns=["department", *BUCKETS, "total"])
    data = frame.assign(department=frame["department"].fillna("Unassigned"))
    data = data.dropna(subset=["bucket"])
    pivot = pd.crosstab(data["department"], data["bucket"])
    pivot = pivot.reindex(columns=list(BUCKETS), fill_value=0)
    pivot["total"] = pivot.sum(axis=1)
    pivot.columns.name = None
    return pivot.reset_index()
