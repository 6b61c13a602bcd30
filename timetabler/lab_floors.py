# timetabler/lab_floors.py
"""
Lab floor allocation across semesters.

A LabSchedule is one store of LabAssignment records keyed by
(floor, day, slot). It is shared by every semester's run in a session, so
every read-modify-write goes through its lock. `for_semester` and
`all_semesters` are two read-only lenses over the same records.
"""
import logging
import threading
from collections.abc import Mapping
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .config import SchedulerConfig
from .diagnostics import DiagnosticsReport
from .model import (
    LabAssignment, StudentType, Timetable, UnscheduledEntry, canonical_batch, canonical_semester,
)

logger = logging.getLogger(__name__)

LabKey = Tuple[str, str, int]


class SemesterLabView(Mapping):
    """
    Live, read-only view of one semester's lab assignments. UG and PG
    semesters share numbers, so the view is also limited to the batches of
    one student type.
    """

    def __init__(self, cells: Dict[LabKey, LabAssignment], semester: str, batches: Iterable[str]):
        self._cells = cells
        self.semester = canonical_semester(semester)
        self.batches = frozenset(canonical_batch(b) for b in batches)

    def _owns(self, assignment: LabAssignment) -> bool:
        return assignment.semester == self.semester and assignment.batch in self.batches

    def __getitem__(self, key: LabKey) -> LabAssignment:
        assignment = self._cells[key]
        if not self._owns(assignment):
            raise KeyError(key)
        return assignment

    def __iter__(self) -> Iterator[LabKey]:
        return (k for k, a in list(self._cells.items()) if self._owns(a))

    def __len__(self) -> int:
        return sum(1 for _ in self)


class LabSchedule:
    def __init__(self, cfg: Optional[SchedulerConfig] = None):
        self.cfg = cfg or SchedulerConfig()
        self.lock = threading.RLock()
        self._cells: Dict[LabKey, LabAssignment] = {}

    # --- lenses ---
    def all_semesters(self) -> Mapping:
        return MappingProxyType(self._cells)

    def for_semester(self, semester, student_type) -> Mapping:
        return SemesterLabView(self._cells, semester, self._batches(student_type))

    def _batches(self, student_type) -> List[str]:
        return self.cfg.batches_for(StudentType.parse(student_type).value)

    def floor_grid(self, floor: str) -> Dict[str, List[Optional[LabAssignment]]]:
        """day -> per-slot assignment list for one floor."""
        return {
            day: [self._cells.get((floor, day, slot)) for slot in range(self.cfg.n_slots)]
            for day in self.cfg.days
        }

    def get(self, floor: str, day: str, slot: int) -> Optional[LabAssignment]:
        return self._cells.get((floor, day, slot))

    # --- collisions ---
    def collision(self, floor: str, day: str, slot: int, batch: str, semester) -> Optional[LabAssignment]:
        """The assignment blocking (batch, semester) at this floor cell, if any."""
        existing = self._cells.get((floor, day, slot))
        if existing is None:
            return None
        if (existing.batch, existing.semester) == (canonical_batch(batch), canonical_semester(semester)):
            return None
        return existing

    # --- mutation ---
    def assign(self, assignment: LabAssignment) -> Optional[LabAssignment]:
        """Store the assignment unless another batch/semester holds the cell; returns the blocker."""
        with self.lock:
            blocker = self.collision(
                assignment.floor, assignment.day, assignment.slot, assignment.batch, assignment.semester
            )
            if blocker is not None:
                return blocker
            self._cells[(assignment.floor, assignment.day, assignment.slot)] = assignment
            return None

    def release(self, day: str, slot: int, batch: str, semester) -> Optional[LabAssignment]:
        """Free the batch's floor cell at (day, slot) if it holds this batch/semester."""
        floor = self.cfg.floor_for(canonical_batch(batch))
        with self.lock:
            if self.collision(floor, day, slot, batch, semester) is not None:
                return None
            return self._cells.pop((floor, day, slot), None)

    def clear_semester(self, semester, student_type) -> int:
        """Drop one semester's assignments for the batches of one student type."""
        with self.lock:
            stale = list(self.for_semester(semester, student_type))
            for key in stale:
                del self._cells[key]
        return len(stale)

    def clear_floor_cell(self, floor: str, day: str, slot: int) -> Optional[LabAssignment]:
        """Remove whatever assignment holds the floor cell; returns it."""
        with self.lock:
            return self._cells.pop((floor, day, slot), None)

    def __len__(self) -> int:
        return len(self._cells)


def lab_collision_reason(blocker: LabAssignment, cfg: SchedulerConfig) -> str:
    return f"Collision with {cfg.batch_label(blocker.batch)} (Sem {blocker.semester}) on {blocker.floor} Floor"


def schedule_labs(
    timetable: Timetable,
    semester=None,
    lab_schedule: Optional[LabSchedule] = None,
    cfg: Optional[SchedulerConfig] = None,
) -> Tuple[LabSchedule, List[UnscheduledEntry]]:
    """
    Put every lab period of the timetable on its batch's preferred floor.

    Earlier floor assignments of this semester's batches are replaced. A
    period whose floor cell is held by another batch/semester is reported,
    naming the blocker, and left off the floor plan. The new state is built
    aside and swapped in under the lock, so readers never see half a run.
    """
    lab_schedule = lab_schedule if lab_schedule is not None else LabSchedule(cfg)
    cfg = cfg or lab_schedule.cfg
    semester = canonical_semester(semester if semester is not None else timetable.semester)
    report = DiagnosticsReport()
    placed = 0

    with lab_schedule.lock:
        own = set(timetable.batches)
        staged = {
            k: a for k, a in lab_schedule._cells.items()
            if not (a.semester == semester and a.batch in own)
        }
        for cell in timetable.sessions():
            if not cell.session.is_lab:
                continue
            floor = cfg.floor_for(cell.batch)
            key = (floor, cell.day, cell.slot)
            existing = staged.get(key)
            if existing is not None and (existing.batch, existing.semester) != (cell.batch, semester):
                report.record(
                    cell.session.code, cell.batch, semester, cell.session.faculty,
                    lab_collision_reason(existing, cfg), day=cell.day, slot=cell.slot,
                )
                continue
            staged[key] = LabAssignment(floor, cell.day, cell.slot, cell.batch, semester, cell.session.course)
            placed += 1
        lab_schedule._cells.clear()
        lab_schedule._cells.update(staged)

    logger.info("Semester %s: %d lab periods on floors, %d collisions", semester, placed, len(report))
    return lab_schedule, list(report.entries)
