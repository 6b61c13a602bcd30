# timetabler/session.py
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from .allocator import schedule_semester
from .collisions import DecideFn, PlacementOutcome, clear_session, place_session
from .config import SchedulerConfig
from .lab_floors import LabSchedule, schedule_labs
from .model import (
    Course, FacultyAssignment, LabAssignment, StudentType, Timetable, UnscheduledEntry, canonical_semester,
)
from .resolver import FacultyResolver

logger = logging.getLogger(__name__)


class SchedulingSession:
    """
    Owns the state shared by every semester of one scheduling session: the
    roster, the cross-semester LabSchedule and the latest timetable of each
    semester. Runs and edits are serialised by a single lock, so the floor
    plan always reflects whole runs.
    """

    def __init__(self, assignments: Iterable[FacultyAssignment], cfg: Optional[SchedulerConfig] = None):
        self.cfg = cfg or SchedulerConfig()
        self.resolver = FacultyResolver(assignments)
        self.lab_schedule = LabSchedule(self.cfg)
        self.timetables: Dict[Tuple[str, str], Timetable] = {}
        self._lock = self.lab_schedule.lock

    def schedule_semester(
        self, courses: Iterable[Course], semester, student_type
    ) -> Tuple[Timetable, List[UnscheduledEntry]]:
        with self._lock:
            timetable, entries = schedule_semester(courses, self.resolver, semester, student_type, self.cfg)
            _, lab_entries = schedule_labs(timetable, timetable.semester, self.lab_schedule, self.cfg)
            self.timetables[(timetable.semester, timetable.student_type.value)] = timetable
        logger.info("Session now holds %d timetables, %d lab floor cells", len(self.timetables), len(self.lab_schedule))
        return timetable, entries + lab_entries

    def timetable(self, semester, student_type) -> Optional[Timetable]:
        return self.timetables.get((canonical_semester(semester), StudentType.parse(student_type).value))

    def place(
        self,
        timetable: Timetable,
        day: str,
        slot: int,
        batch: str,
        course: Course,
        decide: DecideFn,
        is_lab: bool = False,
        lab_days: Iterable[str] = (),
    ) -> PlacementOutcome:
        with self._lock:
            outcome = place_session(
                timetable, day, slot, batch, course, self.resolver, decide,
                is_lab=is_lab, cfg=self.cfg, lab_schedule=self.lab_schedule, lab_days=lab_days,
            )
            if outcome.placed:
                self._store(outcome.timetable)
        return outcome

    def clear(self, timetable: Timetable, day: str, slot: int, batch: str) -> Tuple[Timetable, Optional[LabAssignment]]:
        with self._lock:
            updated, released = clear_session(timetable, day, slot, batch, self.lab_schedule)
            self._store(updated)
        return updated, released

    def clear_floor_cell(self, floor: str, day: str, slot: int) -> Tuple[Optional[LabAssignment], Optional[Timetable]]:
        """
        Clear a lab from the floor plan and the matching lab cell of the
        stored timetable in one step. Returns the released assignment and the
        updated timetable (None when the session holds no timetable with that
        lab cell).
        """
        with self._lock:
            released = self.lab_schedule.clear_floor_cell(floor, day, slot)
            if released is None:
                return None, None
            owner = self._owner(released)
            if owner is None:
                logger.info("Released %s floor cell %s %d; no stored timetable for it", floor, day, slot)
                return released, None
            session = owner.get(day, slot, released.batch)
            if session is None or not session.is_lab:
                return released, None
            updated = owner.copy()
            updated.clear(day, slot, released.batch)
            self._store(updated)
        logger.info("Cleared %s lab of batch %s at %s %d from floor and timetable", released.course.code,
                    released.batch, day, slot)
        return released, updated

    def _owner(self, assignment: LabAssignment) -> Optional[Timetable]:
        for (semester, _type), timetable in self.timetables.items():
            if semester == assignment.semester and assignment.batch in timetable.batches:
                return timetable
        return None

    def _store(self, timetable: Timetable) -> None:
        self.timetables[(timetable.semester, timetable.student_type.value)] = timetable.freeze()
