# timetabler/model.py
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Set, Tuple

DayName = str
SlotIdx = int
BatchKey = str

MAX_SEMESTER: Dict[str, int] = {"UG": 8, "PG": 4}


def collapse(text) -> str:
    """Trim and collapse internal whitespace."""
    return " ".join(str(text if text is not None else "").split())


def _lookup_key(text) -> str:
    return re.sub(r"[\s_\-]+", "", collapse(text)).casefold()


class _ParsedEnum(str, Enum):
    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        key = _lookup_key(value)
        for member in cls:
            if key in (_lookup_key(member.value), _lookup_key(member.name)):
                return member
        raise ValueError(f"Unknown {cls.__name__} {value!r}")


class Category(_ParsedEnum):
    THEORY = "Theory"
    LAB = "Lab"
    LAB_INTEGRATED_THEORY = "Lab Integrated Theory"


class Role(_ParsedEnum):
    THEORY_TEACHER = "Theory Teacher"
    LAB_INCHARGE = "Lab Incharge"
    LAB_ASSISTANT = "Lab Assistant"


class StudentType(_ParsedEnum):
    UG = "UG"
    PG = "PG"


def canonical_batch(batch) -> BatchKey:
    """
    Single canonical form for batch names used at every lookup boundary:
    "Batch N", "batch  n" and "N" all become "N"; "PG Batch" becomes "PG".
    """
    words = [w for w in collapse(batch).split(" ") if w.casefold() != "batch"]
    return "".join(words).upper()


def canonical_name(name) -> str:
    """Case- and whitespace-insensitive key for faculty, course code and course name matching."""
    return collapse(name).casefold()


def canonical_semester(semester) -> str:
    """"SEM-3", "Sem 3", " 3 " and 3 all become "3"."""
    text = collapse(semester)
    match = re.fullmatch(r"(?i)(?:sem(?:ester)?[\s\-]*)?(\d+)", text)
    return str(int(match.group(1))) if match else text


@dataclass(frozen=True)
class Course:
    code: str
    name: str
    semester: str
    student_type: StudentType
    category: Category
    credits: int

    def __post_init__(self):
        # Accept plain strings for the enum fields
        object.__setattr__(self, "student_type", StudentType.parse(self.student_type))
        object.__setattr__(self, "category", Category.parse(self.category))
        object.__setattr__(self, "semester", canonical_semester(self.semester))
        if self.credits <= 0:
            raise ValueError(f"Course {self.code}: credits must be positive, got {self.credits}")
        sem = self.semester
        if not sem.isdigit() or not 1 <= int(sem) <= MAX_SEMESTER[self.student_type.value]:
            raise ValueError(
                f"Course {self.code}: semester {self.semester!r} out of range for {self.student_type.value}"
            )

    @classmethod
    def from_record(cls, rec: Dict) -> "Course":
        return cls(
            code=collapse(rec.get("code", "")),
            name=collapse(rec.get("name", "")),
            semester=canonical_semester(rec["semester"]),
            student_type=StudentType.parse(rec.get("student_type", rec.get("type", "UG"))),
            category=Category.parse(rec["category"]),
            credits=int(rec["credits"]),
        )

    @property
    def key(self) -> str:
        return self.code or self.name

    def label(self) -> str:
        return f"{self.code} ({self.name})" if self.name else self.code


@dataclass(frozen=True)
class FacultyAssignment:
    faculty_name: str
    batch: BatchKey
    semester: str
    role: Role
    course_code: str = ""
    course_name: str = ""

    def __post_init__(self):
        object.__setattr__(self, "batch", canonical_batch(self.batch))
        object.__setattr__(self, "semester", canonical_semester(self.semester))
        object.__setattr__(self, "role", Role.parse(self.role))

    @classmethod
    def from_record(cls, rec: Dict) -> "FacultyAssignment":
        return cls(
            faculty_name=collapse(rec["faculty_name"]),
            batch=canonical_batch(rec["batch"]),
            semester=canonical_semester(rec["semester"]),
            role=Role.parse(rec["role"]),
            course_code=collapse(rec.get("course_code", "")),
            course_name=collapse(rec.get("course_name", "")),
        )


@dataclass(frozen=True)
class Session:
    # Contents of one filled (day, slot, batch) cell
    course: Course
    faculty: str
    is_lab: bool

    @property
    def code(self) -> str:
        return self.course.code


@dataclass(frozen=True)
class TimetableCell:
    day: DayName
    slot: SlotIdx
    batch: BatchKey
    session: Optional[Session] = None


@dataclass(frozen=True)
class Candidate:
    # A requested single-cell placement, not yet committed
    day: DayName
    slot: SlotIdx
    batch: BatchKey
    session: Session


@dataclass(frozen=True)
class LabAssignment:
    floor: str
    day: DayName
    slot: SlotIdx
    batch: BatchKey
    semester: str
    course: Course


@dataclass(frozen=True)
class UnscheduledEntry:
    course: str
    batch: str
    semester: str
    faculty: str
    reason: str
    day: Optional[DayName] = None
    slot: Optional[SlotIdx] = None


@dataclass(frozen=True)
class CollisionEntry:
    faculty: str
    batch: BatchKey
    course_code: str
    course_name: str
    day: DayName
    slot: SlotIdx


class TimetableFrozenError(RuntimeError):
    pass


class Timetable:
    """
    Weekly grid of one semester: (day, slot, batch) -> Session or empty.

    The allocator owns a Timetable while it runs and hands it back frozen;
    manual edits work on copies. A per-faculty index keeps "is this faculty
    busy anywhere at (day, slot)" cheap, since every placement asks it.
    """

    def __init__(self, semester: str, student_type: StudentType, days: List[DayName],
                 n_slots: int, batches: List[BatchKey]):
        self.semester = canonical_semester(semester)
        self.student_type = StudentType.parse(student_type)
        self.days = list(days)
        self.n_slots = n_slots
        self.batches = [canonical_batch(b) for b in batches]
        self._cells: Dict[Tuple[DayName, SlotIdx, BatchKey], Session] = {}
        self._faculty_index: Dict[str, Dict[Tuple[DayName, SlotIdx], Set[BatchKey]]] = {}
        self._faculty_names: Dict[str, str] = {}
        self._frozen = False

    # --- mutation ---
    def place(self, day: DayName, slot: SlotIdx, batch: BatchKey, session: Session) -> None:
        self._check_mutable()
        key = self._key(day, slot, batch)
        if key in self._cells:
            self.clear(day, slot, batch)
        self._cells[key] = session
        fac = canonical_name(session.faculty)
        self._faculty_names.setdefault(fac, session.faculty)
        self._faculty_index.setdefault(fac, {}).setdefault((key[0], key[1]), set()).add(key[2])

    def clear(self, day: DayName, slot: SlotIdx, batch: BatchKey) -> Optional[Session]:
        self._check_mutable()
        key = self._key(day, slot, batch)
        session = self._cells.pop(key, None)
        if session is not None:
            occupied = self._faculty_index[canonical_name(session.faculty)]
            occupied[(key[0], key[1])].discard(key[2])
            if not occupied[(key[0], key[1])]:
                del occupied[(key[0], key[1])]
        return session

    def freeze(self) -> "Timetable":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def copy(self) -> "Timetable":
        clone = Timetable(self.semester, self.student_type, self.days, self.n_slots, self.batches)
        for (day, slot, batch), session in self._cells.items():
            clone.place(day, slot, batch, session)
        return clone

    # --- lookups ---
    def get(self, day: DayName, slot: SlotIdx, batch: BatchKey) -> Optional[Session]:
        return self._cells.get(self._key(day, slot, batch))

    def is_free(self, day: DayName, slot: SlotIdx, batch: BatchKey) -> bool:
        return self._key(day, slot, batch) not in self._cells

    def cells(self) -> Iterator[TimetableCell]:
        """Every cell in day -> slot -> batch order, empty ones included."""
        for day in self.days:
            for slot in range(self.n_slots):
                for batch in self.batches:
                    yield TimetableCell(day, slot, batch, self._cells.get((day, slot, batch)))

    def sessions(self) -> Iterator[TimetableCell]:
        return (cell for cell in self.cells() if cell.session is not None)

    def batch_day(self, batch: BatchKey, day: DayName) -> List[Optional[Session]]:
        batch = canonical_batch(batch)
        return [self._cells.get((day, s, batch)) for s in range(self.n_slots)]

    def day_load(self, batch: BatchKey, day: DayName) -> int:
        return sum(1 for s in self.batch_day(batch, day) if s is not None)

    def faculties(self) -> List[str]:
        return [self._faculty_names[f] for f, occ in self._faculty_index.items() if occ]

    def faculty_batches_at(self, faculty: str, day: DayName, slot: SlotIdx) -> List[BatchKey]:
        occupied = self._faculty_index.get(canonical_name(faculty), {})
        found = occupied.get((day, slot), set())
        return [b for b in self.batches if b in found]

    def faculty_busy(self, faculty: str, day: DayName, slot: SlotIdx) -> bool:
        return bool(self.faculty_batches_at(faculty, day, slot))

    def faculty_day_sessions(self, faculty: str, day: DayName) -> List[TimetableCell]:
        occupied = self._faculty_index.get(canonical_name(faculty), {})
        out = []
        for slot in range(self.n_slots):
            for batch in self.batches:
                if batch in occupied.get((day, slot), ()):
                    out.append(TimetableCell(day, slot, batch, self._cells[(day, slot, batch)]))
        return out

    def faculty_days(self, faculty: str) -> Set[DayName]:
        occupied = self._faculty_index.get(canonical_name(faculty), {})
        return {day for (day, _slot) in occupied}

    def faculty_free_days(self, faculty: str) -> int:
        return len(self.days) - len(self.faculty_days(faculty))

    def _key(self, day: DayName, slot: SlotIdx, batch: BatchKey) -> Tuple[DayName, SlotIdx, BatchKey]:
        batch = canonical_batch(batch)
        if day not in self.days:
            raise ValueError(f"Unknown day {day!r}")
        if not 0 <= slot < self.n_slots:
            raise ValueError(f"Slot index {slot} outside 0..{self.n_slots - 1}")
        if batch not in self.batches:
            raise ValueError(f"Batch {batch!r} is not part of this timetable ({', '.join(self.batches)})")
        return day, slot, batch

    def _check_mutable(self) -> None:
        if self._frozen:
            raise TimetableFrozenError(
                f"Timetable for semester {self.semester} is a finished result; edit a copy()"
            )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Timetable):
            return NotImplemented
        return (
            self.semester == other.semester
            and self.student_type == other.student_type
            and self.days == other.days
            and self.n_slots == other.n_slots
            and self.batches == other.batches
            and self._cells == other._cells
        )

    def __len__(self) -> int:
        return len(self._cells)

    def __repr__(self) -> str:
        return (
            f"Timetable(semester={self.semester!r}, student_type={self.student_type.value!r}, "
            f"batches={self.batches!r}, sessions={len(self._cells)})"
        )
