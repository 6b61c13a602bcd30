# timetabler/diagnostics.py
import logging
from typing import Iterable, Iterator, List, Optional, Tuple

import pandas as pd

from .model import UnscheduledEntry
from .resolver import UNASSIGNED

logger = logging.getLogger(__name__)

COLUMNS = ["course", "batch", "semester", "faculty", "reason", "day", "slot"]


class DiagnosticsReport:
    """
    Append-only list of UnscheduledEntry records collected during a run.
    Entries are never removed or rewritten; an empty report means every
    requirement was satisfied.
    """

    def __init__(self, entries: Iterable[UnscheduledEntry] = ()):
        self._entries: List[UnscheduledEntry] = list(entries)

    def record(
        self,
        course: str,
        batch: str,
        semester: str,
        faculty: Optional[str],
        reason: str,
        day: Optional[str] = None,
        slot: Optional[int] = None,
    ) -> UnscheduledEntry:
        entry = UnscheduledEntry(
            course=course,
            batch=batch,
            semester=semester,
            faculty=faculty or UNASSIGNED,
            reason=reason,
            day=day,
            slot=slot,
        )
        self._entries.append(entry)
        logger.warning(
            "[UNSCHEDULED] %s batch %s sem %s (%s): %s", course, batch, semester, entry.faculty, reason
        )
        return entry

    @property
    def entries(self) -> Tuple[UnscheduledEntry, ...]:
        return tuple(self._entries)

    def to_frame(self) -> pd.DataFrame:
        return entries_frame(self._entries)

    def __iter__(self) -> Iterator[UnscheduledEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)


def entries_frame(entries: Iterable[UnscheduledEntry]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "course": e.course,
                "batch": e.batch,
                "semester": e.semester,
                "faculty": e.faculty,
                "reason": e.reason,
                "day": e.day,
                "slot": e.slot,
            }
            for e in entries
        ],
        columns=COLUMNS,
    )
