import unittest

from timetabler.evaluation import evaluate
from tests.helpers import course, empty_timetable, put


class EvaluationTests(unittest.TestCase):
    def test_counts_rule_breaks(self):
        tt = empty_timetable()
        t1 = course("T1")
        lab = course("L1", category="Lab", credits=2)
        for slot in range(6):
            put(tt, "Monday", slot, "N", t1, "Dr. A")
        for day in ("Tuesday", "Wednesday", "Thursday", "Friday"):
            put(tt, day, 0, "N", t1, "Dr. A")
        put(tt, "Tuesday", 0, "P", t1, "Dr. A")
        put(tt, "Monday", 3, "Q", lab, "Dr. L", is_lab=True)
        put(tt, "Monday", 4, "Q", lab, "Dr. L", is_lab=True)

        res = evaluate(tt)
        self.assertFalse(res.ok)
        self.assertEqual(res.double_bookings, 1)
        self.assertEqual(res.max_consecutive, 6)
        self.assertEqual(res.faculty_without_free_day, ["Dr. A"])
        self.assertEqual(res.lunch_spanning_blocks, 1)
        self.assertEqual(res.faculty_hours, {"Dr. A": 11, "Dr. L": 2})
        self.assertIn("P:Monday", res.empty_batch_days)
        self.assertNotIn("N:Monday", res.empty_batch_days)
        self.assertEqual(res.batch_load.shape, (3, 5, 8))
        self.assertEqual(res.faculty_load.shape, (2, 5, 8))
        self.assertIn("Dr. A has 6 consecutive classes on Monday", res.violations)

    def test_clean_week(self):
        tt = empty_timetable("1", "PG")
        t1 = course("M1", semester="1", student_type="PG")
        for day in ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday"):
            put(tt, day, 2, "PG", t1, "Dr. A" if day != "Friday" else "Dr. B")
        res = evaluate(tt)
        self.assertTrue(res.ok, res.violations)
        self.assertEqual(res.max_consecutive, 1)
        self.assertEqual(res.empty_batch_days, [])

    def test_empty_timetable(self):
        res = evaluate(empty_timetable())
        self.assertEqual(res.double_bookings, 0)
        self.assertEqual(res.faculty_hours, {})
        self.assertEqual(len(res.empty_batch_days), 15)


if __name__ == "__main__":
    unittest.main()
