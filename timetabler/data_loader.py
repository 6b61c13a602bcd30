# timetabler/data_loader.py
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

import pandas as pd

from .model import Course, FacultyAssignment

COURSES_FILE = "courses.csv"
ASSIGNMENTS_FILE = "faculty_assignments.csv"


@dataclass(frozen=True)
class DataBundle:
    courses: Tuple[Course, ...]
    assignments: Tuple[FacultyAssignment, ...]


def _snake(column: str) -> str:
    # "facultyName", "Faculty Name" -> "faculty_name"
    column = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", str(column).strip())
    return re.sub(r"[\s\-]+", "_", column).lower()


def _read(path: Path) -> pd.DataFrame:
    if not path.exists():
        raise FileNotFoundError(f"Missing input file: {path}")
    df = pd.read_csv(path, dtype=str).fillna("")
    df.columns = [_snake(c) for c in df.columns]
    return df


def _records(df: pd.DataFrame, factory, source: Path) -> List:
    out = []
    for i, rec in enumerate(df.to_dict(orient="records"), start=2):
        try:
            out.append(factory(rec))
        except (KeyError, ValueError) as exc:
            # row numbers count the header line
            raise ValueError(f"{source.name} row {i}: {exc}") from exc
    return out


def load_data(data_dir: str) -> DataBundle:
    base = Path(data_dir)
    courses_path = base / COURSES_FILE
    assignments_path = base / ASSIGNMENTS_FILE
    courses = _records(_read(courses_path), Course.from_record, courses_path)
    assignments = _records(_read(assignments_path), FacultyAssignment.from_record, assignments_path)
    return DataBundle(courses=tuple(courses), assignments=tuple(assignments))
