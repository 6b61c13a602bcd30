import threading
import unittest

from timetabler.config import SchedulerConfig
from timetabler.lab_floors import LabSchedule, schedule_labs
from timetabler.model import LabAssignment
from tests.helpers import course, empty_timetable, put


def lab_timetable(semester, slots, batch="N", code="L1", cfg=None):
    crs = course(code, category="Lab", credits=len(slots), semester=semester)
    tt = empty_timetable(semester, cfg=cfg)
    for slot in slots:
        put(tt, "Monday", slot, batch, crs, "Dr. L", is_lab=True)
    return tt.freeze()


class ScheduleLabsTests(unittest.TestCase):
    def test_two_semesters_same_floor_cell(self):
        labs = LabSchedule()
        sem3 = lab_timetable("3", [0, 1])
        sem5 = lab_timetable("5", [1, 2], code="L5")

        _, entries3 = schedule_labs(sem3, "3", labs)
        _, entries5 = schedule_labs(sem5, "5", labs)

        self.assertEqual(entries3, [])
        self.assertEqual(len(entries5), 1)
        self.assertEqual(entries5[0].reason, "Collision with Batch N (Sem 3) on Ground Floor")
        self.assertEqual((entries5[0].course, entries5[0].day, entries5[0].slot), ("L5", "Monday", 1))
        self.assertEqual(labs.get("Ground", "Monday", 1).semester, "3")
        self.assertEqual(len(labs.for_semester("3", "UG")), 2)
        self.assertEqual(len(labs.for_semester("SEM-5", "UG")), 1)
        self.assertEqual(len(labs.all_semesters()), 3)

    def test_rerun_replaces_instead_of_colliding(self):
        labs = LabSchedule()
        schedule_labs(lab_timetable("3", [0, 1]), "3", labs)
        _, entries = schedule_labs(lab_timetable("3", [4, 5]), "3", labs)
        self.assertEqual(entries, [])
        self.assertEqual(sorted(k[2] for k in labs.for_semester("3", "UG")), [4, 5])

    def test_rerun_keeps_other_student_type(self):
        labs = LabSchedule()
        pg = course("M1", category="Lab", credits=1, semester="3", student_type="PG")
        pg_tt = empty_timetable("3", "PG")
        put(pg_tt, "Monday", 0, "PG", pg, "Dr. P", is_lab=True)
        schedule_labs(pg_tt, "3", labs)
        schedule_labs(lab_timetable("3", [0]), "3", labs)
        self.assertEqual(labs.get("First", "Monday", 0).batch, "PG")
        self.assertEqual(labs.get("Ground", "Monday", 0).batch, "N")

    def test_semester_lens_and_clear_keep_student_types_apart(self):
        labs = LabSchedule()
        pg = course("M1", category="Lab", credits=1, semester="3", student_type="PG")
        pg_tt = empty_timetable("3", "PG")
        put(pg_tt, "Tuesday", 2, "PG", pg, "Dr. P", is_lab=True)
        schedule_labs(pg_tt, "3", labs)
        schedule_labs(lab_timetable("3", [0, 1]), "3", labs)

        self.assertEqual(sorted(a.batch for a in labs.for_semester("3", "UG").values()), ["N", "N"])
        self.assertEqual([a.batch for a in labs.for_semester("3", "PG").values()], ["PG"])
        self.assertNotIn(("First", "Tuesday", 2), labs.for_semester("3", "UG"))

        self.assertEqual(labs.clear_semester("3", "UG"), 2)
        self.assertEqual(len(labs), 1)
        self.assertEqual(labs.get("First", "Tuesday", 2).batch, "PG")

    def test_batches_sharing_a_floor(self):
        cfg = SchedulerConfig(batch_floor={"N": "Ground", "P": "Ground", "Q": "Ground", "PG": "First"})
        crs = course("L1", category="Lab", credits=1)
        tt = empty_timetable(cfg=cfg)
        put(tt, "Monday", 0, "N", crs, "Dr. L", is_lab=True)
        put(tt, "Monday", 0, "P", crs, "Dr. M", is_lab=True)
        labs, entries = schedule_labs(tt, cfg=cfg)
        self.assertEqual([e.reason for e in entries], ["Collision with Batch N (Sem 3) on Ground Floor"])
        self.assertEqual(len(labs), 1)

    def test_theory_cells_are_ignored(self):
        tt = empty_timetable()
        put(tt, "Monday", 0, "N", course("T1"), "Dr. A")
        labs, entries = schedule_labs(tt)
        self.assertEqual((len(labs), entries), (0, []))


class LabScheduleTests(unittest.TestCase):
    def setUp(self):
        self.labs = LabSchedule()
        self.crs = course("L1", category="Lab", credits=2)

    def test_same_batch_and_semester_is_an_update(self):
        first = LabAssignment("Ground", "Monday", 0, "N", "3", self.crs)
        self.assertIsNone(self.labs.assign(first))
        self.assertIsNone(self.labs.assign(first))
        blocker = self.labs.assign(LabAssignment("Ground", "Monday", 0, "N", "5", self.crs))
        self.assertEqual(blocker, first)

    def test_views_are_live_and_read_only(self):
        view = self.labs.for_semester("3", "UG")
        everything = self.labs.all_semesters()
        self.labs.assign(LabAssignment("Ground", "Monday", 0, "N", "3", self.crs))
        self.assertEqual(len(view), 1)
        self.assertIn(("Ground", "Monday", 0), everything)
        with self.assertRaises(TypeError):
            everything[("Ground", "Monday", 1)] = None
        self.assertEqual(self.labs.clear_semester("3", "UG"), 1)
        self.assertEqual(len(view), 0)

    def test_release_only_frees_own_cell(self):
        self.labs.assign(LabAssignment("Ground", "Monday", 0, "N", "3", self.crs))
        self.assertIsNone(self.labs.release("Monday", 0, "N", "5"))
        self.assertIsNotNone(self.labs.get("Ground", "Monday", 0))
        self.assertIsNotNone(self.labs.release("Monday", 0, "Batch N", "3"))
        self.assertEqual(len(self.labs), 0)

    def test_clear_floor_cell_ignores_ownership(self):
        held = LabAssignment("Ground", "Monday", 0, "N", "5", self.crs)
        self.labs.assign(held)
        self.assertEqual(self.labs.clear_floor_cell("Ground", "Monday", 0), held)
        self.assertIsNone(self.labs.clear_floor_cell("Ground", "Monday", 0))
        self.assertEqual(len(self.labs), 0)

    def test_floor_grid(self):
        self.labs.assign(LabAssignment("Second", "Tuesday", 6, "P", "3", self.crs))
        grid = self.labs.floor_grid("Second")
        self.assertEqual(grid["Tuesday"][6].batch, "P")
        self.assertEqual(sum(1 for row in grid.values() for a in row if a is not None), 1)

    def test_concurrent_runs_get_exactly_one_success(self):
        timetables = [lab_timetable(str(sem), [3]) for sem in (3, 5)]
        results = []

        def run(tt):
            _, entries = schedule_labs(tt, tt.semester, self.labs)
            results.append(entries)

        threads = [threading.Thread(target=run, args=(tt,)) for tt in timetables]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(sorted(len(r) for r in results), [0, 1])
        self.assertEqual(len(self.labs), 1)
        blocked = [r for r in results if r][0][0]
        winner = self.labs.get("Ground", "Monday", 3)
        self.assertEqual(blocked.reason, f"Collision with Batch N (Sem {winner.semester}) on Ground Floor")


if __name__ == "__main__":
    unittest.main()
