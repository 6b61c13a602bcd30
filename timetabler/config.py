"""
Scheduler configuration.

Defaults mirror the department's weekly grid (5 days x 8 periods, lunch after
the fourth period) and its lab floors. Everything can be overridden from a
YAML file so a run is reproducible from its config alone.
"""
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, List, Any

import yaml


DEFAULT_DAYS: List[str] = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]

DEFAULT_SLOTS: List[str] = [
    "08:30-09:20",
    "09:25-10:15",
    "10:30-11:20",
    "11:25-12:15",
    # lunch
    "01:10-02:00",
    "02:05-02:55",
    "03:00-03:50",
    "03:55-04:45",
]

DEFAULT_BATCHES: Dict[str, List[str]] = {
    "UG": ["N", "P", "Q"],
    "PG": ["PG"],
}

DEFAULT_BATCH_LABELS: Dict[str, str] = {
    "N": "Batch N",
    "P": "Batch P",
    "Q": "Batch Q",
    "PG": "PG Batch",
}

DEFAULT_LAB_FLOORS: List[str] = ["Ground", "First", "Second", "Third"]

DEFAULT_BATCH_FLOOR: Dict[str, str] = {
    "N": "Ground",
    "P": "Second",
    "Q": "Third",
    "PG": "First",
}


@dataclass
class SchedulerConfig:
    # Grid
    days: List[str] = field(default_factory=lambda: list(DEFAULT_DAYS))
    slots: List[str] = field(default_factory=lambda: list(DEFAULT_SLOTS))
    lunch_after: int = 4

    # Batches and floors
    batches: Dict[str, List[str]] = field(default_factory=lambda: {k: list(v) for k, v in DEFAULT_BATCHES.items()})
    batch_labels: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_BATCH_LABELS))
    lab_floors: List[str] = field(default_factory=lambda: list(DEFAULT_LAB_FLOORS))
    batch_floor: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_BATCH_FLOOR))

    # Caps
    max_theory_per_day: int = 2
    max_consecutive: int = 5
    max_lab_periods_per_day: int = 4
    min_free_days: int = 1
    max_theory_on_lab_day: int = 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SchedulerConfig":
        merged = asdict(cls())
        for k, v in data.items():
            if k in merged:
                merged[k] = v
        return cls(**merged)

    def __post_init__(self):
        if not 0 < self.lunch_after < len(self.slots):
            raise ValueError(
                f"lunch_after={self.lunch_after} must fall strictly inside the {len(self.slots)} slots"
            )
        for batch, floor in self.batch_floor.items():
            if floor not in self.lab_floors:
                raise ValueError(f"Batch {batch} prefers unknown lab floor {floor!r}")

    @property
    def n_days(self) -> int:
        return len(self.days)

    @property
    def n_slots(self) -> int:
        return len(self.slots)

    def batches_for(self, student_type: str) -> List[str]:
        try:
            return list(self.batches[student_type])
        except KeyError:
            raise ValueError(f"No batches configured for student type {student_type!r}") from None

    def floor_for(self, batch: str) -> str:
        return self.batch_floor.get(batch, self.lab_floors[0])

    def batch_label(self, batch: str) -> str:
        return self.batch_labels.get(batch, batch)

    def crosses_lunch(self, start: int, length: int) -> bool:
        """True when slots [start, start+length) straddle the lunch break."""
        return start < self.lunch_after <= start + length - 1


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def load_config(path: str = "config.yaml") -> SchedulerConfig:
    cfg_path = Path(path)
    data = _load_yaml(cfg_path)
    if not isinstance(data, dict):
        raise ValueError(f"{cfg_path} must contain a mapping")
    return SchedulerConfig.from_dict(data)
