# timetabler/allocator.py
"""
Greedy slot allocator.

Courses are taken in catalog order and, for each batch, their theory hours
and lab blocks are put into the first cell that is free for the batch and
for the resolved faculty. Nothing is random: the same catalog, roster and
config always produce the same grid and the same diagnostics. Failures are
recorded and the run continues, so the result may be partial.
"""
import logging
from typing import Iterable, List, Optional, Tuple, Union

from .config import SchedulerConfig
from .diagnostics import DiagnosticsReport
from .model import (
    Course, FacultyAssignment, Role, Session, StudentType, Timetable, UnscheduledEntry,
    canonical_semester,
)
from .requirements import HourPlan, plan_hours
from .resolver import FacultyResolver

logger = logging.getLogger(__name__)

Placement = Tuple[str, int]


class SlotAllocator:
    def __init__(
        self,
        courses: Iterable[Course],
        resolver: FacultyResolver,
        semester,
        student_type,
        cfg: SchedulerConfig,
    ):
        self.cfg = cfg
        self.resolver = resolver
        self.semester = canonical_semester(semester)
        self.student_type = StudentType.parse(student_type)
        self.courses: List[Course] = [
            c for c in courses
            if c.semester == self.semester and c.student_type is self.student_type
        ]
        self.batches = cfg.batches_for(self.student_type.value)
        self.timetable = Timetable(self.semester, self.student_type, cfg.days, cfg.n_slots, self.batches)
        self.report = DiagnosticsReport()

    def run(self) -> Tuple[Timetable, List[UnscheduledEntry]]:
        for course in self.courses:
            try:
                plan = plan_hours(course)
            except ValueError:
                for batch in self.batches:
                    self.report.record(
                        course.code, batch, self.semester, None,
                        "Unsupported credits for Lab Integrated Theory",
                    )
                continue
            for batch in self.batches:
                if plan.theory_hours:
                    self._place_theory(course, batch, plan.theory_hours)
                if plan.lab_hours:
                    self._place_labs(course, batch, plan)

        self._fill_free_days()
        self._check_faculty_free_days()

        logger.info(
            "Semester %s %s: %d courses, %d sessions placed, %d unscheduled entries",
            self.semester, self.student_type.value, len(self.courses),
            len(self.timetable), len(self.report),
        )
        return self.timetable.freeze(), list(self.report.entries)

    # --- day ordering ---
    def _day_order(self, batch: str, spread: bool) -> List[str]:
        """Fixed day order, or least-loaded days first (stable, so ties keep day order)."""
        days = list(self.cfg.days)
        if spread:
            days.sort(key=lambda d: self.timetable.day_load(batch, d))
        return days

    # --- theory ---
    def _place_theory(self, course: Course, batch: str, hours: int) -> None:
        faculty = self.resolver.resolve(course, batch, self.semester, Role.THEORY_TEACHER)
        if not faculty:
            self.report.record(course.code, batch, self.semester, None, "No faculty mapped")
            return
        session = Session(course, faculty, is_lab=False)
        assigned = 0
        for _ in range(hours):
            spot = self._find_theory_slot(course, batch, faculty)
            if spot is None:
                break
            day, slot = spot
            self.timetable.place(day, slot, batch, session)
            assigned += 1
        if assigned < hours:
            self.report.record(
                course.code, batch, self.semester, faculty,
                f"Could not assign all theory hours (assigned {assigned}/{hours})",
            )

    def _find_theory_slot(self, course: Course, batch: str, faculty: str) -> Optional[Placement]:
        for day in self._day_order(batch, spread=False):
            if self._course_periods(course, batch, day, is_lab=False) >= self.cfg.max_theory_per_day:
                continue
            if not self._theory_day_allows(faculty, day) or self._takes_last_free_day(faculty, day):
                continue
            for slot in range(self.cfg.n_slots):
                if not self.timetable.is_free(day, slot, batch):
                    continue
                if self.timetable.faculty_busy(faculty, day, slot):
                    logger.debug("[SKIP] %s busy at %s %d", faculty, day, slot)
                    continue
                if self._run_length(faculty, day, slot, slot + 1) > self.cfg.max_consecutive:
                    continue
                return day, slot
        return None

    # --- labs ---
    def _place_labs(self, course: Course, batch: str, plan: HourPlan) -> None:
        faculty = self.resolver.resolve(course, batch, self.semester, Role.LAB_INCHARGE)
        if not faculty:
            self.report.record(course.code, batch, self.semester, None, "No faculty mapped")
            return
        session = Session(course, faculty, is_lab=True)
        block_size = plan.lab_block_size
        retrying = False
        assigned = 0
        while assigned < plan.lab_hours:
            block = min(block_size, plan.lab_hours - assigned)
            # halved blocks are retried in fixed day order
            start = self._find_lab_block(course, batch, faculty, block, spread=not retrying)
            if start is None:
                if plan.must_be_consecutive_lab or block == 1:
                    break
                block_size = (block + 1) // 2
                retrying = True
                logger.debug("Retrying %s for batch %s in blocks of %d", course.code, batch, block_size)
                continue
            day, first = start
            for slot in range(first, first + block):
                self.timetable.place(day, slot, batch, session)
            assigned += block
        if assigned < plan.lab_hours:
            self.report.record(
                course.code, batch, self.semester, faculty,
                f"Could not assign all lab hours (assigned {assigned}/{plan.lab_hours})",
            )

    def _find_lab_block(
        self, course: Course, batch: str, faculty: str, length: int, spread: bool
    ) -> Optional[Placement]:
        for day in self._day_order(batch, spread):
            # one block of a course per day per batch
            if self._course_periods(course, batch, day, is_lab=True):
                continue
            if self._takes_last_free_day(faculty, day):
                continue
            if not self._lab_day_allows(faculty, day):
                continue
            start = self._find_window(batch, faculty, day, length)
            if start is not None:
                return day, start
        return None

    def _find_window(self, batch: str, faculty: str, day: str, length: int) -> Optional[int]:
        for start in range(self.cfg.n_slots - length + 1):
            if self.cfg.crosses_lunch(start, length):
                continue
            if all(
                self.timetable.is_free(day, s, batch) and not self.timetable.faculty_busy(faculty, day, s)
                for s in range(start, start + length)
            ) and self._run_length(faculty, day, start, start + length) <= self.cfg.max_consecutive:
                return start
        return None

    # --- shared rules ---
    def _course_periods(self, course: Course, batch: str, day: str, is_lab: bool) -> int:
        return sum(
            1 for s in self.timetable.batch_day(batch, day)
            if s is not None and s.course == course and s.is_lab == is_lab
        )

    def _run_length(self, faculty: str, day: str, start: int, end: int) -> int:
        """Length of the faculty's run on the day if it also took slots [start, end)."""
        first, last = start, end - 1
        while first > 0 and self.timetable.faculty_busy(faculty, day, first - 1):
            first -= 1
        while last + 1 < self.cfg.n_slots and self.timetable.faculty_busy(faculty, day, last + 1):
            last += 1
        return last - first + 1

    def _takes_last_free_day(self, faculty: str, day: str) -> bool:
        if day in self.timetable.faculty_days(faculty):
            return False
        return self.timetable.faculty_free_days(faculty) <= self.cfg.min_free_days

    def _lab_day_allows(self, faculty: str, day: str) -> bool:
        """A faculty's lab day carries no other lab and at most one theory period."""
        labs = theory = 0
        for cell in self.timetable.faculty_day_sessions(faculty, day):
            if cell.session.is_lab:
                labs += 1
            else:
                theory += 1
        return labs == 0 and theory <= self.cfg.max_theory_on_lab_day

    def _theory_day_allows(self, faculty: str, day: str) -> bool:
        """Theory may join a faculty's lab day only while it has fewer than the cap."""
        sessions = self.timetable.faculty_day_sessions(faculty, day)
        if not any(c.session.is_lab for c in sessions):
            return True
        theory = sum(1 for c in sessions if not c.session.is_lab)
        return theory < self.cfg.max_theory_on_lab_day

    def _free_days_after_move(self, faculty: str, source_day: str, target_day: str, moved: int) -> bool:
        days = set(self.timetable.faculty_days(faculty))
        free_before = self.cfg.n_days - len(days)
        if len(self.timetable.faculty_day_sessions(faculty, source_day)) <= moved:
            days.discard(source_day)
        days.add(target_day)
        free_after = self.cfg.n_days - len(days)
        return free_after >= min(self.cfg.min_free_days, free_before)

    # --- batch free-day correction ---
    def _fill_free_days(self) -> None:
        for batch in self.batches:
            for day in self.cfg.days:
                if self.timetable.day_load(batch, day):
                    continue
                if self._relocate_theory_into(batch, day) or self._relocate_lab_block_into(batch, day):
                    continue
                self.report.record("-", batch, self.semester, "-", f"Batch {batch} has a free day ({day})", day=day)

    def _relocate_theory_into(self, batch: str, day: str) -> bool:
        for other in self.cfg.days:
            if other == day or self.timetable.day_load(batch, other) <= 1:
                continue
            for slot in range(self.cfg.n_slots):
                session = self.timetable.get(other, slot, batch)
                if session is None or session.is_lab:
                    continue
                if not self._theory_day_allows(session.faculty, day):
                    continue
                if not self._free_days_after_move(session.faculty, other, day, 1):
                    continue
                target = next(
                    (
                        s for s in range(self.cfg.n_slots)
                        if not self.timetable.faculty_busy(session.faculty, day, s)
                        and self._run_length(session.faculty, day, s, s + 1) <= self.cfg.max_consecutive
                    ),
                    None,
                )
                if target is None:
                    continue
                self.timetable.clear(other, slot, batch)
                self.timetable.place(day, target, batch, session)
                logger.info("Moved %s for batch %s from %s to free day %s", session.code, batch, other, day)
                return True
        return False

    def _relocate_lab_block_into(self, batch: str, day: str) -> bool:
        for other in self.cfg.days:
            if other == day:
                continue
            load = self.timetable.day_load(batch, other)
            for first, length, session in lab_blocks(self.timetable, batch, other):
                if load - length < 1:
                    continue
                if not self._lab_day_allows(session.faculty, day):
                    continue
                if not self._free_days_after_move(session.faculty, other, day, length):
                    continue
                target = self._find_window(batch, session.faculty, day, length)
                if target is None:
                    continue
                for slot in range(first, first + length):
                    self.timetable.clear(other, slot, batch)
                for slot in range(target, target + length):
                    self.timetable.place(day, slot, batch, session)
                logger.info("Moved %s lab block for batch %s from %s to free day %s", session.code, batch, other, day)
                return True
        return False

    # --- faculty free-day check ---
    def _check_faculty_free_days(self) -> None:
        for faculty in self.timetable.faculties():
            if self.timetable.faculty_free_days(faculty) < self.cfg.min_free_days:
                self.report.record("-", "-", self.semester, faculty, "No free day")


def lab_blocks(timetable: Timetable, batch: str, day: str) -> List[Tuple[int, int, Session]]:
    """Runs of consecutive identical lab sessions for one batch/day as (first slot, length, session)."""
    blocks: List[Tuple[int, int, Session]] = []
    row = timetable.batch_day(batch, day)
    slot = 0
    while slot < len(row):
        session = row[slot]
        if session is None or not session.is_lab:
            slot += 1
            continue
        end = slot
        while end + 1 < len(row) and row[end + 1] == session:
            end += 1
        blocks.append((slot, end - slot + 1, session))
        slot = end + 1
    return blocks


def schedule_semester(
    courses: Iterable[Course],
    assignments: Union[FacultyResolver, Iterable[FacultyAssignment]],
    semester,
    student_type,
    cfg: Optional[SchedulerConfig] = None,
) -> Tuple[Timetable, List[UnscheduledEntry]]:
    """Build the timetable of every batch of one semester. The result is frozen."""
    cfg = cfg or SchedulerConfig()
    resolver = assignments if isinstance(assignments, FacultyResolver) else FacultyResolver(assignments)
    return SlotAllocator(courses, resolver, semester, student_type, cfg).run()
