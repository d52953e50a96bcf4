import io
import json
import sys
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from kpi_review.cli import rate


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_dir = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write(self, payload: object) -> str:
        path = self.tmp_dir / "payload.json"
        path.write_text(json.dumps(payload), encoding="utf-8")
        return str(path)

    def _run(self, argv: list[str]) -> tuple[int, str]:
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            code = rate.main(argv)
        return code, buffer.getvalue()

    def test_rate_json(self) -> None:
        path = self._write(
            {
                "period_type": "yearly",
                "rating_scale": [1, 2, 3, 4, 5],
                "features": {"use_goal_weight_yearly": True},
                "items": [
                    {"id": 1, "title": "A", "manager_rating": 4, "goal_weight": "50%"},
                    {"id": 2, "title": "B", "manager_rating": 2, "goal_weight": "50%"},
                ],
            }
        )
        code, out = self._run(["rate", path, "--json"])
        self.assertEqual(code, 0)
        payload = json.loads(out)
        self.assertEqual(payload["method"], "goal_weight")
        self.assertEqual(payload["final_rating"], 3.0)
        self.assertEqual(payload["method_name"], "Goal Weight (Yearly)")
        self.assertEqual(len(payload["items"]), 2)
        self.assertEqual(payload["warnings"], [])

    def test_rate_table_output(self) -> None:
        path = self._write({"items": [{"id": 1, "title": "Quality", "manager_rating": 5}]})
        code, out = self._run(["rate", path])
        self.assertEqual(code, 0)
        self.assertIn("Quality", out)
        self.assertIn("100.0% -> rounded to 5.00", out)

    def test_stage(self) -> None:
        path = self._write(
            {
                "kpi": {"id": 1, "status": "acknowledged", "period": "yearly"},
                "review": None,
                "features": {"enable_employee_self_rating_yearly": False},
            }
        )
        code, out = self._run(["stage", path, "--json"])
        self.assertEqual(code, 0)
        payload = json.loads(out)
        self.assertEqual(payload["stage"], "Manager Will Initiate Review")
        self.assertEqual(payload["permitted_actions"]["manager"], ["initiate_review"])

    def test_bad_payload(self) -> None:
        path = self.tmp_dir / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with self.assertLogs("kpi_review.cli.rate", level="ERROR"):
            code, _ = self._run(["rate", str(path)])
        self.assertEqual(code, 2)

        with self.assertLogs("kpi_review.cli.rate", level="ERROR"):
            code, _ = self._run(["stage", self._write({"review": None})])
        self.assertEqual(code, 2)


if __name__ == "__main__":
    unittest.main()
