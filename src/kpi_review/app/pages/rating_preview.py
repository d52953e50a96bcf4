from __future__ import annotations

import json
from typing import Any

import pandas as pd
import streamlit as st

from kpi_review import config
from kpi_review.domain.constants import AUDIENCES, RATER_TYPES, REVIEW_STATUSES
from kpi_review.services.lifecycle import category_label, derive_kpi_stage
from kpi_review.services.rating_engine import (
    breakdown_frame,
    calculation_method_name,
    compute_final_rating,
    summarize_result,
    validate_weights,
)
from kpi_review.services.records import kpi_from_record

SAMPLE_PAYLOAD = {
    "kpi": {"id": 1, "status": "acknowledged", "period": "yearly"},
    "review": {"kpi_id": 1, "review_status": "employee_submitted"},
    "features": {"use_goal_weight_yearly": True, "enable_employee_self_rating_yearly": True},
    "rating_scale": [1, 2, 3, 4, 5],
    "items": [
        {"id": 1, "title": "Sales growth", "manager_rating": 4, "employee_rating": 4, "goal_weight": "50%"},
        {"id": 2, "title": "Customer NPS", "manager_rating": 2, "employee_rating": 3, "goal_weight": "50%"},
    ],
}


def _safe_json_loads(value: str | None) -> Any:
    if not value:
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return None


def render() -> None:
    st.header("KPI rating preview")
    st.caption("Paste a KPI payload (JSON) to see the final rating and the review stage.")

    raw = st.text_area(
        "Payload",
        value=json.dumps(SAMPLE_PAYLOAD, indent=2, ensure_ascii=False),
        height=320,
    )
    payload = _safe_json_loads(raw)
    if not isinstance(payload, dict):
        st.warning("Invalid JSON: expected an object.")
        return

    kpi = kpi_from_record(payload.get("kpi") or {})
    features = payload.get("features") or config.fallback_features(kpi.period_type)
    scale = payload.get("rating_scale") or config.rating_scale()
    items = payload.get("items") or []

    col_rater, col_audience = st.columns(2)
    rater = col_rater.radio("Rater", list(RATER_TYPES), index=1, horizontal=True)
    audience = col_audience.radio("Audience", list(AUDIENCES), horizontal=True)

    # =========================
    # RATING
    # =========================
    st.subheader("Final rating")
    result = compute_final_rating(items, scale, features, kpi.period_type, rater)
    st.caption(calculation_method_name(features, kpi.period_type))
    if not result.ok:
        st.info(summarize_result(result))
    else:
        col_pct, col_raw, col_final = st.columns(3)
        col_pct.metric("Percentage", f"{result.percentage:.1f}%")
        col_raw.metric("Raw rating", f"{result.raw_rating:.2f}")
        col_final.metric("Final rating", f"{result.final_rating:.2f}")
        st.dataframe(breakdown_frame(result), use_container_width=True, hide_index=True)
        for warning in validate_weights(items) if result.method != "normal" else []:
            st.warning(warning)

    # =========================
    # STAGE
    # =========================
    st.subheader("Review stage")
    review = payload.get("review")
    if isinstance(review, dict) and review.get("review_status") not in (None, *REVIEW_STATUSES):
        st.warning(f"Unknown review status: {review.get('review_status')}")
    info = derive_kpi_stage(kpi, review, features, audience)
    st.markdown(f"**{info.stage}** · {category_label(info.bucket)}")
    st.progress(info.progress / 100)
    if not info.is_consistent:
        st.error("Inconsistent KPI / review state. Check the source data.")
    actions_df = pd.DataFrame(
        [
            {"Role": actor, "Permitted actions": ", ".join(actions) or "-"}
            for actor, actions in info.permitted_actions.items()
        ]
    )
    st.dataframe(actions_df, use_container_width=True, hide_index=True)
