from timetabler.model import Course, FacultyAssignment, Session, Timetable
from timetabler.config import SchedulerConfig


def course(code, category="Theory", credits=3, semester="3", student_type="UG", name=None):
    return Course(code, name or f"Course {code}", semester, student_type, category, credits)


def assign(faculty, code, batch, role="Theory Teacher", semester="3", name=""):
    return FacultyAssignment(faculty, batch, semester, role, course_code=code, course_name=name)


def empty_timetable(semester="3", student_type="UG", cfg=None):
    cfg = cfg or SchedulerConfig()
    return Timetable(semester, student_type, cfg.days, cfg.n_slots, cfg.batches_for(student_type))


def put(tt, day, slot, batch, crs, faculty, is_lab=False):
    tt.place(day, slot, batch, Session(crs, faculty, is_lab))
