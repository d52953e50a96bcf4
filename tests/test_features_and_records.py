import os
import sys
import unittest
from pathlib import Path
from unittest import mock

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from kpi_review import config
from kpi_review.domain.models import FeatureSnapshot
from kpi_review.services import features as ft
from kpi_review.services import records


class FeaturesTests(unittest.TestCase):
    def test_period_columns_are_selected(self) -> None:
        row = {
            "use_goal_weight_yearly": 1,
            "use_actual_values_quarterly": "true",
            "enable_employee_self_rating_quarterly": False,
            "enable_employee_self_rating_yearly": True,
        }
        yearly = ft.features_for_period(row, "yearly")
        quarterly = ft.features_for_period(row, "Quarterly")
        self.assertEqual(
            yearly,
            FeatureSnapshot("yearly", use_goal_weight=True, use_actual_values=False, self_rating_enabled=True),
        )
        self.assertTrue(quarterly.use_actual_values)
        self.assertFalse(quarterly.self_rating_enabled)
        self.assertFalse(quarterly.is_default)

    def test_missing_snapshot_degrades_to_default(self) -> None:
        with self.assertLogs("kpi_review.services.features", level="WARNING"):
            snapshot = ft.features_for_period(None, "quarterly")
        self.assertEqual(snapshot, ft.default_features("quarterly"))
        self.assertTrue(snapshot.use_normal_calculation)
        self.assertTrue(snapshot.self_rating_enabled)
        self.assertTrue(snapshot.is_default)

    def test_self_rating_defaults_to_enabled_when_column_missing(self) -> None:
        self.assertTrue(ft.features_for_period({"use_goal_weight_yearly": True}, "yearly").self_rating_enabled)

    def test_normalize_period_type(self) -> None:
        self.assertEqual(ft.normalize_period_type("YEARLY"), "yearly")
        self.assertEqual(ft.normalize_period_type("Q3"), "quarterly")
        self.assertEqual(ft.normalize_period_type("q1 2025"), "quarterly")
        with self.assertLogs("kpi_review.services.features", level="WARNING"):
            self.assertEqual(ft.normalize_period_type("monthly"), "yearly")

    def test_snapshot_passes_through(self) -> None:
        snapshot = FeatureSnapshot("yearly", use_goal_weight=True)
        self.assertIs(ft.features_for_period(snapshot, "yearly"), snapshot)


class RecordsTests(unittest.TestCase):
    def test_item_from_backend_row(self) -> None:
        item = records.item_from_record(
            {"item_id": 7, "id": 99, "title": "Sales", "manager_rating": "4.00",
             "employee_rating": "", "goal_weight": "40%", "actual_value": "n/a"}
        )
        self.assertEqual(item.id, 7)
        self.assertEqual(item.manager_rating, 4.0)
        self.assertIsNone(item.employee_rating)
        self.assertEqual(item.goal_weight, "40%")
        self.assertIsNone(item.actual_value)

    def test_review_status_alias(self) -> None:
        review = records.review_from_record({"kpi_id": 3, "status": "Employee_Submitted"})
        self.assertEqual(review.review_status, "employee_submitted")
        self.assertIsNone(records.review_from_record(None))

    def test_review_prefers_final_ratings(self) -> None:
        review = records.review_from_record(
            {"kpi_id": 1, "review_status": "completed", "manager_rating": 3, "manager_final_rating": "4"}
        )
        self.assertEqual(review.manager_rating, 4.0)

    def test_kpi_from_record(self) -> None:
        kpi = records.kpi_from_record(
            {"id": 5, "status": "acknowledged", "period": "quarterly",
             "employee_department": "Sales", "items": [{"id": 1, "title": "A"}]}
        )
        self.assertEqual(kpi.period_type, "quarterly")
        self.assertEqual(kpi.department, "Sales")
        self.assertEqual(len(kpi.items), 1)

    def test_index_reviews_keeps_first_per_kpi(self) -> None:
        indexed = records.index_reviews(
            [{"kpi_id": 1, "review_status": "pending"}, {"kpi_id": 1, "review_status": "completed"}]
        )
        self.assertEqual(indexed[1].review_status, "pending")


class ConfigTests(unittest.TestCase):
    def test_rating_scale_from_env(self) -> None:
        with mock.patch.dict(os.environ, {"KPI_REVIEW_RATING_SCALE": "1.0;1.4, 1.8,bad"}):
            self.assertEqual(config.rating_scale(), (1.0, 1.4, 1.8))
        with mock.patch.dict(os.environ, {"KPI_REVIEW_RATING_SCALE": ""}):
            self.assertEqual(config.rating_scale(), config.DEFAULT_RATING_SCALE)

    def test_fallback_features_self_rating_flag(self) -> None:
        with mock.patch.dict(os.environ, {"KPI_REVIEW_DEFAULT_SELF_RATING": "no"}):
            snapshot = config.fallback_features("quarterly")
        self.assertFalse(snapshot.self_rating_enabled)
        self.assertTrue(snapshot.is_default)
        self.assertEqual(snapshot.period_type, "quarterly")

    def test_log_level(self) -> None:
        with mock.patch.dict(os.environ, {"KPI_REVIEW_LOG_LEVEL": "debug"}):
            self.assertEqual(config.log_level(), 10)
        with mock.patch.dict(os.environ, {"KPI_REVIEW_LOG_LEVEL": "loud"}):
            self.assertEqual(config.log_level(), 20)


if __name__ == "__main__":
    unittest.main()
