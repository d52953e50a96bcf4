from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any

from kpi_review.domain.constants import (
    ACTION_ACKNOWLEDGE,
    ACTION_CONFIRM,
    ACTION_INITIATE_REVIEW,
    ACTION_REJECT,
    ACTION_RESUBMIT,
    ACTION_SUBMIT_MANAGER_RATING,
    ACTION_SUBMIT_SELF_RATING,
    ACTOR_EMPLOYEE,
    ACTOR_MANAGER,
    ACTORS,
    AUDIENCE_EMPLOYEE,
    BUCKET_ACKNOWLEDGED_REVIEW_PENDING,
    BUCKET_AWAITING_CONFIRMATION,
    BUCKET_LABELS,
    BUCKET_PENDING,
    BUCKET_REVIEW_COMPLETED,
    BUCKET_REVIEW_PENDING,
    BUCKET_REVIEW_REJECTED,
    BUCKET_SELF_RATING_SUBMITTED,
    DEFAULT_PROGRESS,
    KPI_ACKNOWLEDGED,
    KPI_PENDING,
    KPI_STATUSES,
    REVIEW_AWAITING_CONFIRMATION,
    REVIEW_COMPLETED,
    REVIEW_EMPLOYEE_SUBMITTED,
    REVIEW_MANAGER_INITIATED,
    REVIEW_MANAGER_SUBMITTED,
    REVIEW_PENDING,
    REVIEW_REJECTED,
    STAGE_AWAITING_ACKNOWLEDGEMENT,
    STAGE_AWAITING_CONFIRMATION,
    STAGE_IN_PROGRESS,
    STAGE_MANAGER_RATING_SUBMITTED,
    STAGE_MANAGER_REVIEW_IN_PROGRESS,
    STAGE_MANAGER_WILL_INITIATE,
    STAGE_PROGRESS,
    STAGE_REVIEW_COMPLETED,
    STAGE_REVIEW_PENDING_ACTION,
    STAGE_REVIEW_REJECTED,
    STAGE_SELF_RATING_REQUIRED,
    STAGE_SELF_RATING_SUBMITTED,
)
from kpi_review.domain.models import KPI, CalculationResult, Review, StageInfo
from kpi_review.services.features import features_for_period
from kpi_review.services.records import kpi_from_record, review_from_record

LOGGER = logging.getLogger(__name__)


class TransitionError(ValueError):
    """Raised when an action is not permitted in the current review state."""


@dataclass(frozen=True)
class Transition:
    actor: str
    action: str
    kpi_status: str
    review_status: str | None
    target_kpi_status: str
    target_review_status: str | None
    # None: allowed regardless of the self-rating flag.
    self_rating: bool | None = None


TRANSITIONS: tuple[Transition, ...] = (
    Transition(ACTOR_EMPLOYEE, ACTION_ACKNOWLEDGE, KPI_PENDING, None, KPI_ACKNOWLEDGED, None),
    Transition(
        ACTOR_EMPLOYEE, ACTION_SUBMIT_SELF_RATING, KPI_ACKNOWLEDGED, None,
        KPI_ACKNOWLEDGED, REVIEW_EMPLOYEE_SUBMITTED, self_rating=True,
    ),
    Transition(
        ACTOR_EMPLOYEE, ACTION_SUBMIT_SELF_RATING, KPI_ACKNOWLEDGED, REVIEW_PENDING,
        KPI_ACKNOWLEDGED, REVIEW_EMPLOYEE_SUBMITTED, self_rating=True,
    ),
    Transition(
        ACTOR_MANAGER, ACTION_INITIATE_REVIEW, KPI_ACKNOWLEDGED, None,
        KPI_ACKNOWLEDGED, REVIEW_MANAGER_INITIATED, self_rating=False,
    ),
    Transition(
        ACTOR_MANAGER, ACTION_INITIATE_REVIEW, KPI_ACKNOWLEDGED, REVIEW_PENDING,
        KPI_ACKNOWLEDGED, REVIEW_MANAGER_INITIATED, self_rating=False,
    ),
    Transition(
        ACTOR_MANAGER, ACTION_SUBMIT_MANAGER_RATING, KPI_ACKNOWLEDGED, REVIEW_EMPLOYEE_SUBMITTED,
        KPI_ACKNOWLEDGED, REVIEW_AWAITING_CONFIRMATION,
    ),
    Transition(
        ACTOR_MANAGER, ACTION_SUBMIT_MANAGER_RATING, KPI_ACKNOWLEDGED, REVIEW_MANAGER_INITIATED,
        KPI_ACKNOWLEDGED, REVIEW_AWAITING_CONFIRMATION,
    ),
    Transition(
        ACTOR_MANAGER, ACTION_SUBMIT_MANAGER_RATING, KPI_ACKNOWLEDGED, REVIEW_REJECTED,
        KPI_ACKNOWLEDGED, REVIEW_AWAITING_CONFIRMATION,
    ),
    Transition(
        ACTOR_EMPLOYEE, ACTION_CONFIRM, KPI_ACKNOWLEDGED, REVIEW_MANAGER_SUBMITTED,
        KPI_ACKNOWLEDGED, REVIEW_COMPLETED,
    ),
    Transition(
        ACTOR_EMPLOYEE, ACTION_CONFIRM, KPI_ACKNOWLEDGED, REVIEW_AWAITING_CONFIRMATION,
        KPI_ACKNOWLEDGED, REVIEW_COMPLETED,
    ),
    Transition(
        ACTOR_EMPLOYEE, ACTION_REJECT, KPI_ACKNOWLEDGED, REVIEW_MANAGER_SUBMITTED,
        KPI_ACKNOWLEDGED, REVIEW_REJECTED,
    ),
    Transition(
        ACTOR_EMPLOYEE, ACTION_REJECT, KPI_ACKNOWLEDGED, REVIEW_AWAITING_CONFIRMATION,
        KPI_ACKNOWLEDGED, REVIEW_REJECTED,
    ),
    Transition(
        ACTOR_EMPLOYEE, ACTION_RESUBMIT, KPI_ACKNOWLEDGED, REVIEW_REJECTED,
        KPI_ACKNOWLEDGED, REVIEW_PENDING, self_rating=True,
    ),
)


def _review_status(review: Any) -> str | None:
    if review is None:
        return None
    if isinstance(review, Mapping):
        review = review_from_record(review)
    return review.review_status


def _matching_transitions(
    kpi_status: str,
    review_status: str | None,
    self_rating_enabled: bool,
    actor: str | None = None,
) -> list[Transition]:
    # A pending KPI ignores any stale review data.
    if kpi_status == KPI_PENDING:
        review_status = None
    matches = []
    for transition in TRANSITIONS:
        if actor is not None and transition.actor != actor:
            continue
        if transition.kpi_status != kpi_status or transition.review_status != review_status:
            continue
        if transition.self_rating is not None and transition.self_rating != self_rating_enabled:
            continue
        matches.append(transition)
    return matches


def allowed_actions(
    kpi_status: str,
    review_status: str | None,
    self_rating_enabled: bool,
    actor: str,
) -> tuple[str, ...]:
    transitions = _matching_transitions(kpi_status, review_status, self_rating_enabled, actor)
    return tuple(dict.fromkeys(transition.action for transition in transitions))


def permitted_actions(
    kpi_status: str,
    review_status: str | None,
    self_rating_enabled: bool,
) -> dict[str, tuple[str, ...]]:
    return {
        actor: allowed_actions(kpi_status, review_status, self_rating_enabled, actor)
        for actor in ACTORS
    }


def _stage_and_bucket(
    kpi_status: str,
    review_status: str | None,
    self_rating_enabled: bool,
    audience: str,
) -> tuple[str, str | None]:
    if kpi_status == KPI_PENDING:
        return STAGE_AWAITING_ACKNOWLEDGEMENT, BUCKET_PENDING

    if review_status is None:
        if kpi_status != KPI_ACKNOWLEDGED:
            return STAGE_IN_PROGRESS, None
        if not self_rating_enabled:
            return STAGE_MANAGER_WILL_INITIATE, BUCKET_ACKNOWLEDGED_REVIEW_PENDING
        return STAGE_REVIEW_PENDING_ACTION, BUCKET_ACKNOWLEDGED_REVIEW_PENDING

    if review_status == REVIEW_PENDING:
        # Some dashboards counted this as self_rating_submitted; review_pending is canonical.
        return STAGE_SELF_RATING_REQUIRED, BUCKET_REVIEW_PENDING
    if review_status == REVIEW_EMPLOYEE_SUBMITTED:
        return STAGE_SELF_RATING_SUBMITTED, BUCKET_SELF_RATING_SUBMITTED
    if review_status == REVIEW_MANAGER_INITIATED:
        return STAGE_MANAGER_REVIEW_IN_PROGRESS, BUCKET_ACKNOWLEDGED_REVIEW_PENDING
    if review_status in (REVIEW_MANAGER_SUBMITTED, REVIEW_AWAITING_CONFIRMATION):
        if audience == AUDIENCE_EMPLOYEE:
            return STAGE_AWAITING_CONFIRMATION, BUCKET_AWAITING_CONFIRMATION
        return STAGE_MANAGER_RATING_SUBMITTED, BUCKET_AWAITING_CONFIRMATION
    if review_status == REVIEW_COMPLETED:
        return STAGE_REVIEW_COMPLETED, BUCKET_REVIEW_COMPLETED
    if review_status == REVIEW_REJECTED:
        return STAGE_REVIEW_REJECTED, BUCKET_REVIEW_REJECTED
    return STAGE_IN_PROGRESS, None


def derive_review_stage(
    kpi_status: str,
    review: Review | Mapping[str, Any] | None,
    self_rating_enabled: bool = True,
    audience: str = AUDIENCE_EMPLOYEE,
) -> StageInfo:
    """
    Derive the workflow stage, statistics bucket and permitted actions.

    First matching rule wins: a pending KPI is always awaiting
    acknowledgement, then an acknowledged KPI without a review, then the
    review status. Combinations that cannot happen in a healthy data set are
    still answered (with the "In Progress" fallback where no rule matches)
    but come back with ``is_consistent=False`` and are logged.
    """
    kpi_status = str(kpi_status or "").strip().lower()
    review_status = _review_status(review)

    consistent = True
    if kpi_status not in KPI_STATUSES:
        LOGGER.warning("Unknown KPI status %r (review status %r).", kpi_status, review_status)
        consistent = False
    elif kpi_status == KPI_PENDING and review_status is not None:
        LOGGER.warning("Review in status %r attached to a pending KPI.", review_status)
        consistent = False

    stage, bucket = _stage_and_bucket(kpi_status, review_status, self_rating_enabled, audience)
    if stage == STAGE_IN_PROGRESS and consistent:
        LOGGER.warning(
            "No lifecycle rule for KPI status %r and review status %r.", kpi_status, review_status
        )
        consistent = False

    actions = permitted_actions(kpi_status, review_status, self_rating_enabled)
    return StageInfo(
        stage=stage,
        bucket=bucket,
        permitted_actions=actions,
        progress=STAGE_PROGRESS.get(stage, DEFAULT_PROGRESS),
        is_terminal=review_status == REVIEW_COMPLETED and kpi_status == KPI_ACKNOWLEDGED,
        is_consistent=consistent,
    )


def derive_kpi_stage(
    kpi: KPI | Mapping[str, Any],
    review: Review | Mapping[str, Any] | None,
    features: Any = None,
    audience: str = AUDIENCE_EMPLOYEE,
) -> StageInfo:
    """Stage for a KPI record, with self-rating taken from its period's features."""
    kpi = kpi_from_record(kpi)
    review = review_from_record(review)
    snapshot = features_for_period(features, kpi.period_type)
    info = derive_review_stage(kpi.status, review, snapshot.self_rating_enabled, audience)
    if review is not None and review.kpi_id is not None and review.kpi_id != kpi.id:
        LOGGER.warning("Review for KPI %r passed with KPI %r.", review.kpi_id, kpi.id)
        info = replace(info, is_consistent=False)
    return info


def _rating_value(rating: float | CalculationResult | None) -> float | None:
    if isinstance(rating, CalculationResult):
        return rating.final_rating if rating.ok else None
    return rating


def apply_action(
    kpi: KPI | Mapping[str, Any],
    review: Review | Mapping[str, Any] | None,
    action: str,
    actor: str,
    *,
    self_rating_enabled: bool = True,
    rating: float | CalculationResult | None = None,
    confirmation_required: bool = True,
) -> tuple[KPI, Review | None]:
    """
    Apply one workflow action and return the new KPI and review.

    Inputs are never mutated. ``rating`` is attached as the employee rating
    on a self-rating and as the manager rating on a manager submission.
    """
    kpi = kpi_from_record(kpi)
    review = review_from_record(review)
    review_status = review.review_status if review is not None else None

    matches = [
        transition
        for transition in _matching_transitions(kpi.status, review_status, self_rating_enabled, actor)
        if transition.action == action
    ]
    if not matches:
        raise TransitionError(
            f"{actor} cannot {action} when KPI is {kpi.status!r} "
            f"and review is {review_status or 'missing'!r}."
        )
    transition = matches[0]

    new_kpi = replace(kpi, status=transition.target_kpi_status)
    target = transition.target_review_status
    if target is None:
        return new_kpi, None if kpi.status == KPI_PENDING else review

    if review is None or kpi.status == KPI_PENDING:
        review = Review(kpi_id=kpi.id, confirmation_required=confirmation_required)

    value = _rating_value(rating)
    if action == ACTION_SUBMIT_SELF_RATING:
        review = replace(review, employee_rating=value)
    elif action == ACTION_SUBMIT_MANAGER_RATING:
        review = replace(review, manager_rating=value, confirmation_required=confirmation_required)
        if not confirmation_required:
            target = REVIEW_MANAGER_SUBMITTED
    elif action == ACTION_RESUBMIT:
        review = replace(review, employee_rating=None)

    LOGGER.info(
        "KPI %r: %s %s (%s -> %s).", kpi.id, actor, action, review_status or "no review", target
    )
    return new_kpi, replace(review, review_status=target)


def category_label(bucket: str | None) -> str:
    if bucket is None:
        return STAGE_IN_PROGRESS
    return BUCKET_LABELS.get(bucket, bucket)
