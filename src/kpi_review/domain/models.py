from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Union

from kpi_review.domain.constants import (
    KPI_PENDING,
    PERIOD_YEARLY,
    REVIEW_PENDING,
)

RawWeight = Union[str, float, int, None]


@dataclass(frozen=True)
class KPIItem:
    id: Any
    title: str = ""
    manager_rating: float | None = None
    employee_rating: float | None = None
    goal_weight: RawWeight = None
    actual_value: float | None = None
    target_value: float | None = None

    def rating_for(self, rater_type: str) -> float | None:
        if rater_type == "employee":
            return self.employee_rating
        return self.manager_rating


@dataclass(frozen=True)
class FeatureSnapshot:
    """Calculation flags for one period type of a company or department."""

    period_type: str = PERIOD_YEARLY
    use_goal_weight: bool = False
    use_actual_values: bool = False
    self_rating_enabled: bool = True
    is_default: bool = False

    @property
    def use_normal_calculation(self) -> bool:
        return not (self.use_goal_weight or self.use_actual_values)


@dataclass(frozen=True)
class KPI:
    id: Any
    status: str = KPI_PENDING
    period_type: str = PERIOD_YEARLY
    items: tuple[KPIItem, ...] = ()
    department_id: Any = None
    department: str | None = None


@dataclass(frozen=True)
class Review:
    kpi_id: Any
    review_status: str = REVIEW_PENDING
    employee_rating: float | None = None
    manager_rating: float | None = None
    confirmation_required: bool = True


@dataclass(frozen=True)
class ItemCalculation:
    item_id: Any
    title: str
    contribution: float
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CalculationResult:
    method: str
    percentage: float = 0.0
    raw_rating: float = 0.0
    final_rating: float = 0.0
    items: tuple[ItemCalculation, ...] = ()
    rating_scale: tuple[float, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["items"] = [asdict(item) for item in self.items]
        payload["rating_scale"] = list(self.rating_scale)
        return payload


@dataclass(frozen=True)
class StageInfo:
    stage: str
    bucket: str | None
    permitted_actions: dict[str, tuple[str, ...]] = field(default_factory=dict)
    progress: int = 0
    is_terminal: bool = False
    is_consistent: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "bucket": self.bucket,
            "permitted_actions": {
                actor: list(actions) for actor, actions in self.permitted_actions.items()
            },
            "progress": self.progress,
            "is_terminal": self.is_terminal,
            "is_consistent": self.is_consistent,
        }
