# timetabler/resolver.py
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .model import (
    Category, Course, FacultyAssignment, Role,
    canonical_batch, canonical_name, canonical_semester,
)
from .requirements import plan_hours

logger = logging.getLogger(__name__)

UNASSIGNED = "Unassigned"

_Key = Tuple[str, str, str, Role]


@dataclass(frozen=True)
class RosterCheck:
    course: str
    batch: str
    semester: str
    role: Role
    status: str
    faculty: str = ""


class FacultyResolver:
    """
    Finds the faculty member assigned to teach (course, batch, semester, role).

    Only exact matches count: the batch and semester must be the requested
    ones (after canonicalisation), never a neighbour. The roster is read-only;
    when several rows match, the first one in roster order wins.
    """

    def __init__(self, assignments: Iterable[FacultyAssignment]):
        self.assignments: Tuple[FacultyAssignment, ...] = tuple(assignments)
        self._by_code: Dict[_Key, str] = {}
        self._by_name: Dict[_Key, str] = {}
        for fa in self.assignments:
            if fa.course_code:
                key = (canonical_name(fa.course_code), fa.batch, fa.semester, fa.role)
                self._by_code.setdefault(key, fa.faculty_name)
            elif fa.course_name:
                key = (canonical_name(fa.course_name), fa.batch, fa.semester, fa.role)
                self._by_name.setdefault(key, fa.faculty_name)

    def resolve(self, course: Course, batch: str, semester, role: Role) -> Optional[str]:
        """Faculty name, or None when the combination is unassigned."""
        faculty, _match = self._match(course, batch, semester, role)
        return faculty

    def _match(self, course: Course, batch: str, semester, role: Role) -> Tuple[Optional[str], str]:
        role = Role.parse(role)
        if course.category is Category.LAB_INTEGRATED_THEORY and role is Role.LAB_ASSISTANT:
            return None, "Lab Assistant not allowed for Lab Integrated Theory"
        batch = canonical_batch(batch)
        semester = canonical_semester(semester)
        if course.code:
            faculty = self._by_code.get((canonical_name(course.code), batch, semester, role))
            if faculty:
                return faculty, "code"
        if course.name:
            faculty = self._by_name.get((canonical_name(course.name), batch, semester, role))
            if faculty:
                return faculty, "name"
        logger.debug(
            "No %s for %s batch %s semester %s", role.value, course.key, batch, semester
        )
        return None, "missing"

    def _partial_exists(self, course: Course) -> bool:
        code = canonical_name(course.code)
        name = canonical_name(course.name)
        return any(
            (fa.course_code and canonical_name(fa.course_code) == code)
            or (fa.course_name and canonical_name(fa.course_name) == name)
            for fa in self.assignments
        )


def required_roles(course: Course) -> List[Role]:
    plan = plan_hours(course)
    roles = []
    if plan.theory_hours:
        roles.append(Role.THEORY_TEACHER)
    if plan.lab_hours:
        roles.append(Role.LAB_INCHARGE)
    return roles


def diagnose_roster(
    courses: Iterable[Course],
    assignments: Iterable[FacultyAssignment],
    semester,
    batches: Iterable[str],
) -> List[RosterCheck]:
    """
    Pre-flight check of the roster for one semester: one row per
    course x batch x required role, saying whether a faculty resolves and how.
    Courses with an unsupported credit value are reported rather than skipped.
    """
    resolver = assignments if isinstance(assignments, FacultyResolver) else FacultyResolver(assignments)
    semester = canonical_semester(semester)
    batches = [canonical_batch(b) for b in batches]
    rows: List[RosterCheck] = []
    for course in courses:
        if course.semester != semester:
            continue
        try:
            roles = required_roles(course)
        except ValueError as exc:
            for batch in batches:
                rows.append(RosterCheck(course.label(), batch, semester, Role.THEORY_TEACHER, f"INVALID ({exc})"))
            continue
        for batch in batches:
            for role in roles:
                faculty, match = resolver._match(course, batch, semester, role)
                if faculty:
                    status = f"OK ({match} match)"
                else:
                    status = "MISSING"
                    if resolver._partial_exists(course):
                        status += " (partial match exists, check batch/semester/role)"
                rows.append(RosterCheck(course.label(), batch, semester, role, status, faculty or ""))
    return rows
