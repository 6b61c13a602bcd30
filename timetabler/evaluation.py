# timetabler/evaluation.py
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from .config import SchedulerConfig
from .model import Timetable, canonical_name


@dataclass
class EvaluationResult:
    double_bookings: int
    max_consecutive: int
    faculty_without_free_day: List[str]
    empty_batch_days: List[str]
    lunch_spanning_blocks: int
    faculty_hours: Dict[str, int]
    batch_load: np.ndarray
    faculty_load: np.ndarray
    violations: List[str]

    @property
    def ok(self) -> bool:
        return not self.violations


def _longest_run(row: np.ndarray) -> int:
    best = run = 0
    for busy in row:
        run = run + 1 if busy else 0
        best = max(best, run)
    return best


def evaluate(timetable: Timetable, cfg: Optional[SchedulerConfig] = None) -> EvaluationResult:
    """
    Audit a finished timetable against the weekly rules.

    Counts are computed on occupancy matrices [entity][day][slot]; a faculty
    cell above 1 is a double booking (allowed only through an accepted
    collision, so it is reported, not treated as an error here).
    """
    cfg = cfg or SchedulerConfig()
    days = timetable.days
    n_days, n_slots = len(days), timetable.n_slots
    faculties = timetable.faculties()
    fac_idx = {canonical_name(f): i for i, f in enumerate(faculties)}
    day_idx = {d: i for i, d in enumerate(days)}

    batch_load = np.zeros((len(timetable.batches), n_days, n_slots), dtype=int)
    faculty_load = np.zeros((len(faculties), n_days, n_slots), dtype=int)
    violations: List[str] = []

    for cell in timetable.sessions():
        d = day_idx[cell.day]
        batch_load[timetable.batches.index(cell.batch), d, cell.slot] += 1
        faculty_load[fac_idx[canonical_name(cell.session.faculty)], d, cell.slot] += 1

    double_bookings = int(np.clip(faculty_load - 1, 0, None).sum())
    if double_bookings:
        violations.append(f"{double_bookings} faculty double bookings")

    max_run = 0
    for f, name in enumerate(faculties):
        for d, day in enumerate(days):
            run = _longest_run(faculty_load[f, d] > 0)
            max_run = max(max_run, run)
            if run > cfg.max_consecutive:
                violations.append(f"{name} has {run} consecutive classes on {day}")

    busy_days = (faculty_load.sum(axis=2) > 0).sum(axis=1) if len(faculties) else np.zeros(0, dtype=int)
    no_free = [name for f, name in enumerate(faculties) if n_days - int(busy_days[f]) < cfg.min_free_days]
    for name in no_free:
        violations.append(f"{name} has no free day")

    empty_days = []
    for b, batch in enumerate(timetable.batches):
        for d, day in enumerate(days):
            if not batch_load[b, d].any():
                empty_days.append(f"{batch}:{day}")
    if empty_days:
        violations.append(f"Empty batch days: {', '.join(empty_days)}")

    spanning = 0
    for batch in timetable.batches:
        for day in days:
            before = timetable.get(day, cfg.lunch_after - 1, batch)
            after = timetable.get(day, cfg.lunch_after, batch)
            if before is not None and before.is_lab and before == after:
                spanning += 1
    if spanning:
        violations.append(f"{spanning} lab blocks span the lunch break")

    faculty_hours = {name: int(faculty_load[f].sum()) for f, name in enumerate(faculties)}

    return EvaluationResult(
        double_bookings=double_bookings,
        max_consecutive=max_run,
        faculty_without_free_day=no_free,
        empty_batch_days=empty_days,
        lunch_spanning_blocks=spanning,
        faculty_hours=faculty_hours,
        batch_load=batch_load,
        faculty_load=faculty_load,
        violations=violations,
    )
