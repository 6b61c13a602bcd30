from .allocator import schedule_semester
from .collisions import (
    CollisionNegotiator, CollisionRequest, Decision, always_allow, always_deny,
    check_faculty_collision, clear_session, place_session,
)
from .config import SchedulerConfig, load_config
from .constraints import ConstraintChecker, validate_placement
from .lab_floors import LabSchedule, schedule_labs
from .model import (
    Category, Course, FacultyAssignment, Role, StudentType, Timetable, TimetableFrozenError,
    UnscheduledEntry, canonical_batch,
)
from .resolver import FacultyResolver, diagnose_roster
from .session import SchedulingSession

__all__ = [
    "schedule_semester",
    "schedule_labs",
    "validate_placement",
    "check_faculty_collision",
    "place_session",
    "clear_session",
    "CollisionNegotiator",
    "CollisionRequest",
    "Decision",
    "always_allow",
    "always_deny",
    "SchedulerConfig",
    "load_config",
    "ConstraintChecker",
    "LabSchedule",
    "Category",
    "Course",
    "FacultyAssignment",
    "Role",
    "StudentType",
    "Timetable",
    "TimetableFrozenError",
    "UnscheduledEntry",
    "canonical_batch",
    "FacultyResolver",
    "diagnose_roster",
    "SchedulingSession",
]
