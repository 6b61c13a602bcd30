import unittest

from timetabler.model import (
    Category, Course, FacultyAssignment, Role, Session, StudentType, TimetableFrozenError,
    canonical_batch, canonical_name, canonical_semester,
)
from tests.helpers import course, empty_timetable, put


class CanonicalisationTests(unittest.TestCase):
    def test_batch_spellings(self):
        for raw in ("Batch N", "batch  n", "N", " n "):
            self.assertEqual(canonical_batch(raw), "N")
        self.assertEqual(canonical_batch("PG Batch"), "PG")
        self.assertEqual(canonical_batch("PG"), "PG")

    def test_semester_spellings(self):
        for raw in ("SEM-3", "Sem 3", " 3 ", 3, "semester 3"):
            self.assertEqual(canonical_semester(raw), "3")

    def test_names_ignore_case_and_spacing(self):
        self.assertEqual(canonical_name("  Dr.  Anitha "), canonical_name("dr. anitha"))

    def test_enum_parsing(self):
        self.assertIs(Category.parse("lab integrated theory"), Category.LAB_INTEGRATED_THEORY)
        self.assertIs(Category.parse("LAB_INTEGRATED_THEORY"), Category.LAB_INTEGRATED_THEORY)
        self.assertIs(Role.parse("lab-incharge"), Role.LAB_INCHARGE)
        self.assertIs(StudentType.parse("pg"), StudentType.PG)
        with self.assertRaises(ValueError):
            Category.parse("Seminar")


class CourseTests(unittest.TestCase):
    def test_from_record(self):
        c = Course.from_record(
            {"code": " CS301 ", "name": "Data  Structures", "semester": "SEM-3",
             "student_type": "UG", "category": "Theory", "credits": "3"}
        )
        self.assertEqual(c.code, "CS301")
        self.assertEqual(c.name, "Data Structures")
        self.assertEqual(c.semester, "3")
        self.assertIs(c.category, Category.THEORY)
        self.assertEqual(c.credits, 3)

    def test_invalid_courses(self):
        with self.assertRaises(ValueError):
            course("C1", credits=0)
        with self.assertRaises(ValueError):
            course("C1", semester="9")
        with self.assertRaises(ValueError):
            course("C1", semester="5", student_type="PG")
        with self.assertRaises(ValueError):
            course("C1", category="Workshop")

    def test_assignment_is_canonicalised(self):
        fa = FacultyAssignment("Dr. A", "Batch P", "SEM-3", "theory teacher", course_code="C1")
        self.assertEqual(fa.batch, "P")
        self.assertEqual(fa.semester, "3")
        self.assertIs(fa.role, Role.THEORY_TEACHER)


class TimetableTests(unittest.TestCase):
    def setUp(self):
        self.tt = empty_timetable()
        self.c1 = course("C1")

    def test_place_and_clear_keep_faculty_index(self):
        put(self.tt, "Monday", 0, "Batch N", self.c1, "Dr. A")
        put(self.tt, "Monday", 0, "P", self.c1, "dr. a")
        self.assertEqual(self.tt.faculty_batches_at("DR. A", "Monday", 0), ["N", "P"])
        self.assertEqual(self.tt.faculty_days("Dr. A"), {"Monday"})
        self.assertEqual(self.tt.faculty_free_days("Dr. A"), 4)

        session = self.tt.clear("Monday", 0, "N")
        self.assertEqual(session.faculty, "Dr. A")
        self.assertEqual(self.tt.faculty_batches_at("Dr. A", "Monday", 0), ["P"])
        self.assertIsNone(self.tt.clear("Monday", 0, "N"))

    def test_place_replaces_existing_cell(self):
        put(self.tt, "Monday", 1, "N", self.c1, "Dr. A")
        put(self.tt, "Monday", 1, "N", course("C2"), "Dr. B")
        self.assertEqual(self.tt.get("Monday", 1, "N").faculty, "Dr. B")
        self.assertFalse(self.tt.faculty_busy("Dr. A", "Monday", 1))
        self.assertEqual(len(self.tt), 1)

    def test_bad_keys(self):
        with self.assertRaises(ValueError):
            self.tt.get("Saturday", 0, "N")
        with self.assertRaises(ValueError):
            self.tt.get("Monday", 8, "N")
        with self.assertRaises(ValueError):
            self.tt.get("Monday", 0, "PG")

    def test_frozen_timetable_rejects_edits(self):
        put(self.tt, "Monday", 0, "N", self.c1, "Dr. A")
        self.tt.freeze()
        with self.assertRaises(TimetableFrozenError):
            self.tt.place("Tuesday", 0, "N", Session(self.c1, "Dr. A", False))
        with self.assertRaises(TimetableFrozenError):
            self.tt.clear("Monday", 0, "N")

        clone = self.tt.copy()
        self.assertFalse(clone.frozen)
        self.assertEqual(clone, self.tt)
        clone.clear("Monday", 0, "N")
        self.assertNotEqual(clone, self.tt)

    def test_cells_order_and_sessions(self):
        put(self.tt, "Tuesday", 2, "Q", self.c1, "Dr. A")
        put(self.tt, "Monday", 5, "P", self.c1, "Dr. B")
        cells = list(self.tt.sessions())
        self.assertEqual([(c.day, c.slot, c.batch) for c in cells], [("Monday", 5, "P"), ("Tuesday", 2, "Q")])
        self.assertEqual(len(list(self.tt.cells())), 5 * 8 * 3)


if __name__ == "__main__":
    unittest.main()
