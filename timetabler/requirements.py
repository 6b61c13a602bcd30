# timetabler/requirements.py
from dataclasses import dataclass
from typing import Dict, Tuple

from .model import Category, Course, Role


@dataclass(frozen=True)
class HourPlan:
    theory_hours: int
    lab_hours: int
    lab_block_size: int
    must_be_consecutive_lab: bool

    @property
    def total_hours(self) -> int:
        return self.theory_hours + self.lab_hours


# Lab Integrated Theory: credits -> (theory, lab, block, consecutive)
LAB_INTEGRATED_PLANS: Dict[int, Tuple[int, int, int, bool]] = {
    2: (0, 3, 3, True),
    3: (2, 2, 2, False),
    4: (3, 2, 2, False),
    5: (3, 4, 4, False),
    6: (3, 4, 4, False),
}


def plan_hours(course: Course) -> HourPlan:
    """
    Weekly theory/lab hours for a course, from its category and credits.
    Theory: N credits -> N theory hours. Lab: N credits -> one N-period block.
    Lab Integrated Theory follows LAB_INTEGRATED_PLANS; other credit values
    raise ValueError.
    """
    if course.category is Category.THEORY:
        return HourPlan(course.credits, 0, 0, False)
    if course.category is Category.LAB:
        return HourPlan(0, course.credits, course.credits, True)
    try:
        theory, lab, block, consecutive = LAB_INTEGRATED_PLANS[course.credits]
    except KeyError:
        raise ValueError(
            f"Unsupported credits for Lab Integrated Theory: {course.code} has {course.credits}"
        ) from None
    return HourPlan(theory, lab, block, consecutive)


def session_role(course: Course, is_lab: bool) -> Role:
    """Role that must teach one session of the course (theory and lab are mutually exclusive)."""
    if course.category is Category.THEORY:
        return Role.THEORY_TEACHER
    if course.category is Category.LAB:
        return Role.LAB_INCHARGE
    return Role.LAB_INCHARGE if is_lab else Role.THEORY_TEACHER


def session_is_lab(course: Course, is_lab: bool = False) -> bool:
    """Lab courses are always lab periods, theory courses never; LIT uses the caller's choice."""
    if course.category is Category.LAB:
        return True
    if course.category is Category.THEORY:
        return False
    return bool(is_lab)
