# models.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple, Union

UNAVAILABLE = "unavailable"


class AttendanceStatus(Enum):
    PRESENT = "Present"
    ABSENT = "Absent"
    OTHER = "Other"

    @classmethod
    def classify(cls, text: str) -> "AttendanceStatus":
        value = text.strip()
        if value == cls.PRESENT.value:
            return cls.PRESENT
        if value == cls.ABSENT.value:
            return cls.ABSENT
        return cls.OTHER


@dataclass(frozen=True)
class SubjectRecord:
    """One row of the portal's subject-wise attendance list."""

    subject: str
    time_slot: str
    faculty: str
    status: str

    @property
    def status_kind(self) -> AttendanceStatus:
        return AttendanceStatus.classify(self.status)

    def to_dict(self) -> Dict[str, str]:
        return {
            "subject": self.subject,
            "time_slot": self.time_slot,
            "faculty": self.faculty,
            "status": self.status,
        }


@dataclass(frozen=True)
class AttendanceReport:
    total_percentage: str = UNAVAILABLE
    subjects: Tuple[SubjectRecord, ...] = field(default_factory=tuple)

    @property
    def has_total(self) -> bool:
        return bool(self.total_percentage) and self.total_percentage != UNAVAILABLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_percentage": self.total_percentage,
            "subjects": [subject.to_dict() for subject in self.subjects],
        }


@dataclass(frozen=True)
class ScrapeSuccess:
    report: AttendanceReport


@dataclass(frozen=True)
class ScrapeFailure:
    reason: str


ScrapeOutcome = Union[ScrapeSuccess, ScrapeFailure]
