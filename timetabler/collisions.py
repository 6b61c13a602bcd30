# timetabler/collisions.py
"""
Faculty collision handling and the manual edit flow.

A collision is a faculty already teaching another batch in the same
(day, slot). It is never resolved silently: the request stays PENDING until
an explicit allow or deny arrives. Allow keeps both sessions (combined
sections are legitimate); deny drops the candidate and leaves the timetable
as it was.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterable, List, Optional, Tuple

from .config import SchedulerConfig
from .constraints import ConstraintChecker
from .lab_floors import LabSchedule, lab_collision_reason
from .model import (
    Candidate, CollisionEntry, Course, LabAssignment, Timetable, UnscheduledEntry, canonical_batch,
)
from .resolver import FacultyResolver

logger = logging.getLogger(__name__)


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class CollisionState(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"


DecideFn = Callable[[Candidate, List[CollisionEntry]], Decision]


def always_allow(candidate: Candidate, existing: List[CollisionEntry]) -> Decision:
    return Decision.ALLOW


def always_deny(candidate: Candidate, existing: List[CollisionEntry]) -> Decision:
    return Decision.DENY


def check_faculty_collision(
    timetable: Timetable, day: str, slot: int, faculty: str, exclude_batch: Optional[str] = None
) -> List[CollisionEntry]:
    """Sessions the faculty already has at (day, slot) in batches other than exclude_batch."""
    exclude = canonical_batch(exclude_batch) if exclude_batch is not None else None
    out = []
    for batch in timetable.faculty_batches_at(faculty, day, slot):
        if batch == exclude:
            continue
        session = timetable.get(day, slot, batch)
        out.append(CollisionEntry(session.faculty, batch, session.code, session.course.name, day, slot))
    return out


@dataclass
class CollisionRequest:
    candidate: Candidate
    existing: List[CollisionEntry]
    state: CollisionState = CollisionState.PENDING
    decision: Optional[Decision] = None

    def resolve(self, decision: Decision) -> "CollisionRequest":
        if self.state is CollisionState.RESOLVED:
            raise RuntimeError(f"Collision for {self.candidate.session.faculty} already resolved ({self.decision.value})")
        self.decision = Decision(decision)
        self.state = CollisionState.RESOLVED
        return self

    def allow(self) -> "CollisionRequest":
        return self.resolve(Decision.ALLOW)

    def deny(self) -> "CollisionRequest":
        return self.resolve(Decision.DENY)

    @property
    def allowed(self) -> bool:
        return self.decision is Decision.ALLOW


class CollisionNegotiator:
    def __init__(self, decide: DecideFn):
        self.decide = decide

    def open(self, timetable: Timetable, candidate: Candidate) -> Optional[CollisionRequest]:
        """A PENDING request when the candidate collides, else None."""
        existing = check_faculty_collision(
            timetable, candidate.day, candidate.slot, candidate.session.faculty, candidate.batch
        )
        if not existing:
            return None
        return CollisionRequest(candidate, existing)

    def negotiate(self, timetable: Timetable, candidate: Candidate) -> Optional[CollisionRequest]:
        request = self.open(timetable, candidate)
        if request is None:
            return None
        decision = self.decide(candidate, list(request.existing))
        if decision not in (Decision.ALLOW, Decision.DENY):
            raise ValueError(f"Collision decision must be allow or deny, got {decision!r}")
        request.resolve(decision)
        logger.info(
            "Collision for %s at %s %d (%s): %s",
            candidate.session.faculty, candidate.day, candidate.slot,
            ", ".join(f"{c.batch}/{c.course_code}" for c in request.existing), request.decision.value,
        )
        return request


@dataclass
class PlacementOutcome:
    placed: bool
    timetable: Timetable
    reason: str = ""
    collision: Optional[CollisionRequest] = None
    unscheduled: List[UnscheduledEntry] = field(default_factory=list)


def place_session(
    timetable: Timetable,
    day: str,
    slot: int,
    batch: str,
    course: Course,
    resolver: FacultyResolver,
    decide: DecideFn,
    is_lab: bool = False,
    cfg: Optional[SchedulerConfig] = None,
    lab_schedule: Optional[LabSchedule] = None,
    lab_days: Iterable[str] = (),
) -> PlacementOutcome:
    """
    Manual single-cell placement: constraints, then collision decision, then
    commit. The input timetable is never modified; a committed placement
    comes back as a new Timetable in the outcome.
    """
    cfg = cfg or (lab_schedule.cfg if lab_schedule is not None else SchedulerConfig())
    checker = ConstraintChecker(resolver, cfg, lab_days)
    candidate, result = checker.candidate(timetable, day, slot, course, batch, is_lab)
    if candidate is not None:
        result = checker.check(timetable, candidate)
    if not result.valid:
        return PlacementOutcome(False, timetable, result.reason)

    request = CollisionNegotiator(decide).negotiate(timetable, candidate)
    if request is not None and not request.allowed:
        return PlacementOutcome(False, timetable, "Faculty collision denied", request)

    if lab_schedule is None:
        updated = timetable.copy()
        updated.place(candidate.day, candidate.slot, candidate.batch, candidate.session)
        return PlacementOutcome(True, updated, collision=request)

    unscheduled: List[UnscheduledEntry] = []
    with lab_schedule.lock:
        updated = timetable.copy()
        previous = updated.get(candidate.day, candidate.slot, candidate.batch)
        if previous is not None and previous.is_lab:
            lab_schedule.release(candidate.day, candidate.slot, candidate.batch, timetable.semester)
        updated.place(candidate.day, candidate.slot, candidate.batch, candidate.session)
        if candidate.session.is_lab:
            floor = cfg.floor_for(candidate.batch)
            blocker = lab_schedule.assign(
                LabAssignment(floor, candidate.day, candidate.slot, candidate.batch,
                              timetable.semester, candidate.session.course)
            )
            if blocker is not None:
                unscheduled.append(UnscheduledEntry(
                    candidate.session.code, candidate.batch, timetable.semester,
                    candidate.session.faculty, lab_collision_reason(blocker, cfg),
                    candidate.day, candidate.slot,
                ))
                logger.warning("Lab floor collision: %s", unscheduled[-1].reason)
    return PlacementOutcome(True, updated, collision=request, unscheduled=unscheduled)


def clear_session(
    timetable: Timetable,
    day: str,
    slot: int,
    batch: str,
    lab_schedule: Optional[LabSchedule] = None,
) -> Tuple[Timetable, Optional[LabAssignment]]:
    """New timetable without the cell; its lab floor cell is released in the same step."""
    if lab_schedule is None:
        updated = timetable.copy()
        updated.clear(day, slot, batch)
        return updated, None
    with lab_schedule.lock:
        updated = timetable.copy()
        session = updated.clear(day, slot, batch)
        released = None
        if session is not None and session.is_lab:
            released = lab_schedule.release(day, slot, batch, timetable.semester)
    return updated, released
