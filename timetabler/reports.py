# timetabler/reports.py
"""DataFrame views of timetables and lab schedules for display and CSV export."""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd

from .config import SchedulerConfig
from .lab_floors import LabSchedule
from .model import Timetable, TimetableCell, canonical_name
from .resolver import RosterCheck


def _slot_label(cfg: SchedulerConfig, slot: int) -> str:
    return cfg.slots[slot] if slot < len(cfg.slots) else str(slot)


def timetable_frame(timetable: Timetable, cfg: Optional[SchedulerConfig] = None) -> pd.DataFrame:
    """One row per filled cell, in day -> slot -> batch order."""
    cfg = cfg or SchedulerConfig()
    rows = []
    for cell in timetable.sessions():
        s = cell.session
        rows.append(
            {
                "Semester": timetable.semester,
                "Type": timetable.student_type.value,
                "Batch": cfg.batch_label(cell.batch),
                "Day": cell.day,
                "Slot": cell.slot,
                "Time": _slot_label(cfg, cell.slot),
                "Course": s.code,
                "Name": s.course.name,
                "Faculty": s.faculty,
                "Lab": s.is_lab,
            }
        )
    return pd.DataFrame(
        rows,
        columns=["Semester", "Type", "Batch", "Day", "Slot", "Time", "Course", "Name", "Faculty", "Lab"],
    )


def timetable_grid(timetable: Timetable, batch: str, cfg: Optional[SchedulerConfig] = None) -> pd.DataFrame:
    """Day x slot grid of one batch; cells hold "CODE (Faculty)" or an empty string."""
    cfg = cfg or SchedulerConfig()
    data = {}
    for day in timetable.days:
        row = []
        for s in timetable.batch_day(batch, day):
            if s is None:
                row.append("")
            else:
                row.append(f"{s.code}{' [Lab]' if s.is_lab else ''} ({s.faculty})")
        data[day] = row
    grid = pd.DataFrame(data, index=[_slot_label(cfg, i) for i in range(timetable.n_slots)]).T
    grid.index.name = "Day"
    return grid


def faculty_timetable(
    timetables: Union[Timetable, Iterable[Timetable]], faculty: str
) -> Dict[str, List[Optional[TimetableCell]]]:
    """
    Staff timetable: day -> per-slot cells for one faculty across the given
    timetables. Names match case-insensitively. When a faculty teaches
    several batches at once (an accepted collision) the first batch is shown.
    """
    if isinstance(timetables, Timetable):
        timetables = [timetables]
    timetables = list(timetables)
    grid: Dict[str, List[Optional[TimetableCell]]] = {}
    for tt in timetables:
        for day in tt.days:
            row = grid.setdefault(day, [None] * tt.n_slots)
            for cell in tt.faculty_day_sessions(faculty, day):
                if row[cell.slot] is None:
                    row[cell.slot] = cell
    return grid


@dataclass(frozen=True)
class TeachingOverview:
    faculty: str
    total_hours: int
    classes_handled: int


def teaching_overview(timetables: Union[Timetable, Iterable[Timetable]], faculty: str) -> TeachingOverview:
    if isinstance(timetables, Timetable):
        timetables = [timetables]
    key = canonical_name(faculty)
    hours = 0
    codes = set()
    for tt in timetables:
        for cell in tt.sessions():
            if canonical_name(cell.session.faculty) == key:
                hours += 1
                codes.add(cell.session.code)
    return TeachingOverview(faculty, hours, len(codes))


def lab_schedule_frame(lab_schedule: LabSchedule, semester=None, student_type="UG") -> pd.DataFrame:
    cfg = lab_schedule.cfg
    if semester is None:
        view = lab_schedule.all_semesters()
    else:
        view = lab_schedule.for_semester(semester, student_type)
    rows = [
        {
            "Floor": a.floor,
            "Day": a.day,
            "Slot": a.slot,
            "Time": _slot_label(cfg, a.slot),
            "Batch": cfg.batch_label(a.batch),
            "Semester": a.semester,
            "Course": a.course.code,
            "Name": a.course.name,
        }
        for a in view.values()
    ]
    df = pd.DataFrame(rows, columns=["Floor", "Day", "Slot", "Time", "Batch", "Semester", "Course", "Name"])
    if df.empty:
        return df
    floor_order = {f: i for i, f in enumerate(cfg.lab_floors)}
    day_order = {d: i for i, d in enumerate(cfg.days)}
    df = df.sort_values(
        by=["Floor", "Day", "Slot"],
        key=lambda col: col.map(floor_order) if col.name == "Floor" else (col.map(day_order) if col.name == "Day" else col),
    )
    return df.reset_index(drop=True)


def roster_frame(checks: Iterable[RosterCheck]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "Course": c.course,
                "Batch": c.batch,
                "Semester": c.semester,
                "Role": c.role.value,
                "Status": c.status,
                "Faculty": c.faculty,
            }
            for c in checks
        ],
        columns=["Course", "Batch", "Semester", "Role", "Status", "Faculty"],
    )
