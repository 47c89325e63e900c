import unittest
from datetime import date

from fridgesmart_backend.services.status import (
    ItemStatus,
    classify_manual_status,
    classify_status,
    expiration_date_for,
    status_from_label,
)


class ClassifyStatusTests(unittest.TestCase):
    def test_day_thresholds(self):
        cases = {
            -3: ItemStatus.EXPIRING,
            0: ItemStatus.EXPIRING,
            2: ItemStatus.EXPIRING,
            3: ItemStatus.USE_SOON,
            5: ItemStatus.USE_SOON,
            6: ItemStatus.GOOD,
            14: ItemStatus.GOOD,
            15: ItemStatus.FRESH,
            90: ItemStatus.FRESH,
        }
        for days, expected in cases.items():
            with self.subTest(days=days):
                self.assertEqual(classify_status(days), expected)

    def test_label_overrides_day_count(self):
        self.assertEqual(classify_status(30, "Critical"), ItemStatus.EXPIRING)
        self.assertEqual(classify_status(0, "Fresh"), ItemStatus.FRESH)
        self.assertEqual(classify_status(1, "good condition"), ItemStatus.GOOD)

    def test_label_matching_order(self):
        self.assertEqual(status_from_label("critical - use soon"), ItemStatus.EXPIRING)
        self.assertEqual(status_from_label("Use soon, still good"), ItemStatus.USE_SOON)
        self.assertEqual(status_from_label("good and fresh"), ItemStatus.GOOD)

    def test_unrecognized_label_falls_back_to_days(self):
        self.assertIsNone(status_from_label("Ripe"))
        self.assertIsNone(status_from_label(""))
        self.assertIsNone(status_from_label(None))
        self.assertEqual(classify_status(4, "Ripe"), ItemStatus.USE_SOON)

    def test_spoiled_is_never_produced(self):
        results = {classify_status(days) for days in range(-30, 60)}
        results |= {classify_manual_status(days) for days in range(-30, 60)}
        self.assertNotIn(ItemStatus.SPOILED, results)


class ClassifyManualStatusTests(unittest.TestCase):
    def test_manual_thresholds(self):
        cases = {
            -1: ItemStatus.EXPIRING,
            3: ItemStatus.EXPIRING,
            4: ItemStatus.USE_SOON,
            7: ItemStatus.USE_SOON,
            8: ItemStatus.GOOD,
            60: ItemStatus.GOOD,
        }
        for days, expected in cases.items():
            with self.subTest(days=days):
                self.assertEqual(classify_manual_status(days), expected)

    def test_expiration_date_counts_from_today(self):
        today = date(2024, 12, 30)
        self.assertEqual(expiration_date_for(3, today), date(2025, 1, 2))
        self.assertEqual(expiration_date_for(-1, today), date(2024, 12, 29))


if __name__ == "__main__":
    unittest.main()
