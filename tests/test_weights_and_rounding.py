import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from kpi_review.services.rounding import parse_rating_scale, round_to_scale
from kpi_review.services.weights import format_weight, resolve_weight


class ResolveWeightTests(unittest.TestCase):
    def test_percent_fraction_and_whole_number_agree(self) -> None:
        for raw in ("40%", 0.4, 40, "40", "0.4", " 40 % "):
            self.assertAlmostEqual(resolve_weight(raw), 0.4, msg=repr(raw))

    def test_bare_number_above_one_is_percentage(self) -> None:
        self.assertAlmostEqual(resolve_weight("50"), 0.5)
        self.assertAlmostEqual(resolve_weight(1.5), 0.015)

    def test_one_is_full_weight(self) -> None:
        self.assertEqual(resolve_weight(1), 1.0)
        self.assertEqual(resolve_weight("100%"), 1.0)

    def test_missing_or_invalid_is_zero(self) -> None:
        for raw in (None, "", "   ", "abc", "%", "n/a%", float("nan"), True):
            self.assertEqual(resolve_weight(raw), 0.0, msg=repr(raw))

    def test_only_plain_decimals_parse(self) -> None:
        for raw in ("1_0", "1e2", "0x10", "1_0%", "inf"):
            self.assertEqual(resolve_weight(raw), 0.0, msg=repr(raw))
        self.assertAlmostEqual(resolve_weight(".5"), 0.5)
        self.assertAlmostEqual(resolve_weight(0.00001), 0.00001)

    def test_result_is_clamped(self) -> None:
        self.assertEqual(resolve_weight("150%"), 1.0)
        self.assertEqual(resolve_weight(-0.2), 0.0)

    def test_format_weight(self) -> None:
        self.assertEqual(format_weight(0.4), "40%")
        self.assertEqual(format_weight(1.0), "100%")


class RoundToScaleTests(unittest.TestCase):
    def test_nearest_option(self) -> None:
        scale = [1, 2, 3, 4, 5]
        self.assertEqual(round_to_scale(3.4, scale), 3)
        self.assertEqual(round_to_scale(3.6, scale), 4)
        self.assertEqual(round_to_scale(9, scale), 5)

    def test_tie_goes_to_lower_option(self) -> None:
        self.assertEqual(round_to_scale(2.5, [1, 2, 3, 4, 5]), 2)
        self.assertEqual(round_to_scale(1.25, [1.5, 1.0, 2.0]), 1.0)

    def test_unsorted_custom_scale(self) -> None:
        self.assertEqual(round_to_scale(1.3, ["1.40", "1.00", "1.80"]), 1.4)

    def test_degenerate_inputs(self) -> None:
        self.assertEqual(round_to_scale(float("nan"), [1, 2, 3]), 0.0)
        self.assertEqual(round_to_scale(None, [1, 2, 3]), 0.0)
        self.assertEqual(round_to_scale(3, []), 0.0)
        self.assertEqual(round_to_scale(3, None), 0.0)

    def test_result_always_in_scale(self) -> None:
        scales = [[1, 2, 3, 4, 5], [0.5, 1.0, 1.4, 1.8], [3]]
        values = [-10, 0, 0.3, 0.8, 1.2, 2.5, 3.7, 4.49, 100]
        for scale in scales:
            for value in values:
                self.assertIn(round_to_scale(value, scale), scale)

    def test_parse_rating_scale_from_option_rows(self) -> None:
        rows = [
            {"rating_value": "3.00", "is_active": True},
            {"rating_value": "1.00", "is_active": True},
            {"rating_value": "2.00", "is_active": False},
            {"rating_value": None, "is_active": True},
            {"rating_value": "1.00"},
        ]
        self.assertEqual(parse_rating_scale(rows), (1.0, 3.0))


if __name__ == "__main__":
    unittest.main()
