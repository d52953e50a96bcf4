import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from kpi_review.services import statistics as stats

KPIS = [
    {"id": 1, "status": "pending", "period": "yearly", "employee_department": "Sales"},
    {"id": 2, "status": "acknowledged", "period": "yearly", "employee_department": "Sales"},
    {"id": 3, "status": "acknowledged", "period": "quarterly", "employee_department": "IT"},
    {"id": 4, "status": "acknowledged", "period": "yearly", "employee_department": "IT"},
    {"id": 5, "status": "acknowledged", "period": "yearly", "employee_department": "IT"},
    {"id": 6, "status": "acknowledged", "period": "yearly"},
]
REVIEWS = [
    {"kpi_id": 3, "review_status": "pending"},
    {"kpi_id": 4, "status": "completed"},
    {"kpi_id": 5, "review_status": "archived"},
    {"kpi_id": 6, "review_status": "rejected"},
]
FEATURES = {"enable_employee_self_rating_yearly": True, "enable_employee_self_rating_quarterly": True}


class StatisticsTests(unittest.TestCase):
    def setUp(self) -> None:
        with self.assertLogs("kpi_review.services.lifecycle", level="WARNING"):
            self.frame = stats.stage_frame(KPIS, REVIEWS, default_features=FEATURES)

    def test_stage_frame(self) -> None:
        self.assertEqual(list(self.frame.columns), stats.STAGE_COLUMNS)
        self.assertEqual(len(self.frame), 6)
        by_id = self.frame.set_index("kpi_id")
        self.assertEqual(by_id.loc[3, "bucket"], "review_pending")
        self.assertEqual(by_id.loc[4, "stage"], "Review Completed")
        self.assertFalse(bool(by_id.loc[5, "is_consistent"]))

    def test_count_buckets_zero_filled(self) -> None:
        counts = stats.count_buckets(self.frame)
        self.assertEqual(counts["pending"], 1)
        self.assertEqual(counts["acknowledged_review_pending"], 1)
        self.assertEqual(counts["review_pending"], 1)
        self.assertEqual(counts["review_completed"], 1)
        self.assertEqual(counts["review_rejected"], 1)
        self.assertEqual(counts["self_rating_submitted"], 0)
        self.assertEqual(sum(counts.values()), 5)

    def test_department_statistics(self) -> None:
        table = stats.department_statistics(self.frame).set_index("department")
        self.assertEqual(int(table.loc["Sales", "total"]), 2)
        self.assertEqual(int(table.loc["IT", "total"]), 2)
        self.assertEqual(int(table.loc["Unassigned", "review_rejected"]), 1)
        self.assertEqual(int(table.loc["IT", "self_rating_submitted"]), 0)

    def test_empty_inputs(self) -> None:
        frame = stats.stage_frame([], [])
        self.assertTrue(frame.empty)
        self.assertEqual(sum(stats.count_buckets(frame).values()), 0)
        self.assertIn("total", stats.department_statistics(frame).columns)


if __name__ == "__main__":
    unittest.main()
