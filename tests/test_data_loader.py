import contextlib
import io
import os
import tempfile
import unittest
from pathlib import Path

import run
from timetabler.data_loader import load_data
from timetabler.model import Category, Role

ROOT = Path(__file__).resolve().parent.parent


def write(path, text):
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(text)


class DataLoaderTests(unittest.TestCase):
    def test_loads_camel_case_headers(self):
        with tempfile.TemporaryDirectory() as tmp:
            write(os.path.join(tmp, "courses.csv"),
                  "code,name,semester,studentType,category,credits\n"
                  "C1,Compilers,SEM-3,UG,Lab Integrated Theory,4\n")
            write(os.path.join(tmp, "faculty_assignments.csv"),
                  "Faculty Name,courseCode,courseName,batch,semester,role\n"
                  "Dr. A,,Compilers,Batch N,3,Lab Incharge\n")
            bundle = load_data(tmp)
        self.assertEqual(len(bundle.courses), 1)
        self.assertIs(bundle.courses[0].category, Category.LAB_INTEGRATED_THEORY)
        self.assertEqual(bundle.courses[0].semester, "3")
        fa = bundle.assignments[0]
        self.assertEqual((fa.faculty_name, fa.course_code, fa.course_name), ("Dr. A", "", "Compilers"))
        self.assertEqual((fa.batch, fa.role), ("N", Role.LAB_INCHARGE))

    def test_bad_row_names_file_and_row(self):
        with tempfile.TemporaryDirectory() as tmp:
            write(os.path.join(tmp, "courses.csv"),
                  "code,name,semester,student_type,category,credits\n"
                  "C1,A,3,UG,Theory,3\n"
                  "C2,B,3,UG,Seminar,3\n")
            write(os.path.join(tmp, "faculty_assignments.csv"), "faculty_name,course_code,batch,semester,role\n")
            with self.assertRaises(ValueError) as ctx:
                load_data(tmp)
        self.assertIn("courses.csv row 3", str(ctx.exception))

    def test_missing_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(FileNotFoundError):
                load_data(tmp)

    def test_sample_data(self):
        bundle = load_data(str(ROOT / "data"))
        self.assertTrue(bundle.courses)
        self.assertTrue(bundle.assignments)


class RunnerTests(unittest.TestCase):
    def test_end_to_end(self):
        with tempfile.TemporaryDirectory() as tmp:
            out = io.StringIO()
            with contextlib.redirect_stdout(out):
                code = run.main([
                    "--config", str(ROOT / "config.yaml"),
                    "--data_dir", str(ROOT / "data"),
                    "--semester", "3",
                    "--out_dir", tmp,
                    "--roster",
                ])
            self.assertEqual(code, 0)
            for name in ("timetable.csv", "lab_schedule.csv", "unscheduled.csv"):
                self.assertTrue(os.path.exists(os.path.join(tmp, name)), name)
        self.assertIn("AUDIT", out.getvalue())

    def test_missing_inputs_exit_code(self):
        with tempfile.TemporaryDirectory() as tmp:
            with contextlib.redirect_stdout(io.StringIO()), contextlib.redirect_stderr(io.StringIO()):
                code = run.main(["--data_dir", tmp, "--semester", "3", "--config", os.path.join(tmp, "none.yaml")])
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
