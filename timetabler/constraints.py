# timetabler/constraints.py
"""
Hard rules for a single manual placement.

Each rule looks at a trial copy of the timetable where the target cell has
already been emptied (a manual placement replaces whatever was there) and
returns a CheckResult. Violations are ordinary results, never exceptions;
the caller shows the first failing reason and drops that one placement.
"""
from typing import Iterable, NamedTuple, Optional, Tuple

from .config import SchedulerConfig
from .model import Candidate, Course, Session, Timetable, canonical_batch, canonical_name
from .requirements import session_is_lab, session_role
from .resolver import FacultyResolver


class CheckResult(NamedTuple):
    valid: bool
    reason: str = ""


OK = CheckResult(True)


def check_first_hour(tt: Timetable, cand: Candidate, cfg: SchedulerConfig) -> CheckResult:
    """
    Every faculty needs a first-period session somewhere in the week. Taking a
    batch's first period can remove the last such opening for another faculty
    who teaches that batch and has none yet.
    """
    if cand.slot != 0:
        return OK
    me = canonical_name(cand.session.faculty)
    for faculty in _faculty_teaching(tt, cand.batch):
        if canonical_name(faculty) == me or _has_first_hour(tt, faculty):
            continue
        openings = _first_hour_openings(tt, faculty)
        if openings and openings <= {(cand.day, cand.batch)}:
            return CheckResult(False, f"Faculty {faculty} must have at least one first-hour session per week")
    return OK


def check_consecutive(tt: Timetable, cand: Candidate, cfg: SchedulerConfig) -> CheckResult:
    faculty = cand.session.faculty
    run = 1
    slot = cand.slot - 1
    while slot >= 0 and tt.faculty_busy(faculty, cand.day, slot):
        run += 1
        slot -= 1
    slot = cand.slot + 1
    while slot < tt.n_slots and tt.faculty_busy(faculty, cand.day, slot):
        run += 1
        slot += 1
    if run > cfg.max_consecutive:
        return CheckResult(
            False, f"A faculty member cannot have more than {cfg.max_consecutive} consecutive classes in a day."
        )
    return OK


def check_lab_periods(tt: Timetable, cand: Candidate, cfg: SchedulerConfig) -> CheckResult:
    if not cand.session.is_lab:
        return OK
    labs = sum(
        1 for s in tt.batch_day(cand.batch, cand.day)
        if s is not None and s.is_lab and s.code == cand.session.code
    )
    if labs >= cfg.max_lab_periods_per_day:
        return CheckResult(
            False, f"A subject cannot have more than {cfg.max_lab_periods_per_day} lab periods in a day."
        )
    return OK


def check_free_day(tt: Timetable, cand: Candidate, cfg: SchedulerConfig) -> CheckResult:
    days = tt.faculty_days(cand.session.faculty)
    if cand.day not in days and len(tt.days) - len(days) <= cfg.min_free_days:
        return CheckResult(False, "Faculty must have one free day per week")
    return OK


def check_lab_day_theory(
    tt: Timetable, cand: Candidate, cfg: SchedulerConfig, lab_days: Iterable[str] = ()
) -> CheckResult:
    if cand.session.is_lab:
        return OK
    is_lab_day = cand.day in set(lab_days) or any(
        s is not None and s.is_lab for s in tt.batch_day(cand.batch, cand.day)
    )
    if not is_lab_day:
        return OK
    theory = sum(
        1 for cell in tt.faculty_day_sessions(cand.session.faculty, cand.day) if not cell.session.is_lab
    )
    if theory >= cfg.max_theory_on_lab_day:
        return CheckResult(False, f"Only {cfg.max_theory_on_lab_day} theory session allowed on lab days")
    return OK


class ConstraintChecker:
    def __init__(
        self,
        resolver: FacultyResolver,
        cfg: Optional[SchedulerConfig] = None,
        lab_days: Iterable[str] = (),
    ):
        self.resolver = resolver
        self.cfg = cfg or SchedulerConfig()
        self.lab_days = frozenset(lab_days)

    def candidate(
        self, tt: Timetable, day: str, slot: int, course: Course, batch: str, is_lab: bool = False
    ) -> Tuple[Optional[Candidate], CheckResult]:
        """Resolve the faculty for the placement; fails when nobody is mapped."""
        is_lab = session_is_lab(course, is_lab)
        role = session_role(course, is_lab)
        batch = canonical_batch(batch)
        faculty = self.resolver.resolve(course, batch, tt.semester, role)
        if not faculty:
            return None, CheckResult(
                False, f"No faculty mapped for {course.code} ({role.value}) in batch {batch}"
            )
        return Candidate(day, slot, batch, Session(course, faculty, is_lab)), OK

    def check(self, tt: Timetable, cand: Candidate) -> CheckResult:
        trial = tt.copy()
        trial.clear(cand.day, cand.slot, cand.batch)
        for rule in (check_first_hour, check_consecutive, check_lab_periods, check_free_day):
            result = rule(trial, cand, self.cfg)
            if not result.valid:
                return result
        return check_lab_day_theory(trial, cand, self.cfg, self.lab_days)

    def validate(
        self, tt: Timetable, day: str, slot: int, course: Course, batch: str, is_lab: bool = False
    ) -> CheckResult:
        cand, result = self.candidate(tt, day, slot, course, batch, is_lab)
        if cand is None:
            return result
        return self.check(tt, cand)


def validate_placement(
    timetable: Timetable,
    day: str,
    slot: int,
    course: Course,
    batch: str,
    resolver: FacultyResolver,
    is_lab: bool = False,
    cfg: Optional[SchedulerConfig] = None,
    lab_days: Iterable[str] = (),
) -> Tuple[bool, str]:
    valid, reason = ConstraintChecker(resolver, cfg, lab_days).validate(timetable, day, slot, course, batch, is_lab)
    return valid, reason


def _faculty_teaching(tt: Timetable, batch: str):
    seen = {}
    for cell in tt.sessions():
        if cell.batch == batch:
            seen.setdefault(canonical_name(cell.session.faculty), cell.session.faculty)
    return list(seen.values())


def _has_first_hour(tt: Timetable, faculty: str) -> bool:
    return any(tt.faculty_busy(faculty, day, 0) for day in tt.days)


def _first_hour_openings(tt: Timetable, faculty: str):
    """(day, batch) pairs where the faculty could still take a first period."""
    key = canonical_name(faculty)
    batches = {c.batch for c in tt.sessions() if canonical_name(c.session.faculty) == key}
    return {
        (day, batch)
        for day in tt.days
        for batch in batches
        if tt.is_free(day, 0, batch) and not tt.faculty_busy(faculty, day, 0)
    }
