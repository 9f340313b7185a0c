"""
Record, cache, source, and sync result schemas.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Union

from vehicle_lookup.config import (
    PLATE_FIELDS, STICKER_FIELDS, MODEL_FIELDS, STUDENT_FIELDS, GRADE_FIELDS,
    GRADE_FALLBACK_FIELDS, FATHER_FIELD, MOTHER_FIELD, ID_FIELD, MOBILE_FIELD,
    HOME_PHONE_FIELD, FATHER_EMAIL_FIELD, MOTHER_EMAIL_FIELD, YEAR_FIELD,
)

# A household row: field name -> normalized text
Record = dict[str, str]


class Provenance(str, Enum):
    FAST_FEED = "fast-feed"
    SPREADSHEET = "spreadsheet"
    CACHE = "cache"


class SearchMode(str, Enum):
    ALL = "all"
    STICKERS = "stickers"


# ---------------------------------------------------------------------------
# Result sentinels for best-effort storage operations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Ok:
    value: Any = None


@dataclass(frozen=True)
class Failed:
    reason: str


class _Absent:
    """Singleton marker: nothing stored (or nothing usable)."""
    _instance: Optional["_Absent"] = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT = _Absent()

Result = Union[Ok, Failed, _Absent]


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

@dataclass
class CacheEntry:
    records: list[Record]
    version: str
    captured_at: int  # epoch milliseconds

    @property
    def captured_datetime(self) -> dt.datetime:
        return dt.datetime.fromtimestamp(self.captured_at / 1000)


@dataclass
class CacheInfo:
    exists: bool
    count: int = 0
    size_bytes: int = 0
    captured_at: Optional[int] = None
    version: Optional[str] = None

    @property
    def last_update(self) -> str | None:
        """Human-readable capture time (dd/mm/yyyy, as staff read it)."""
        if self.captured_at is None:
            return None
        return f"{dt.datetime.fromtimestamp(self.captured_at / 1000):%d/%m/%Y %H:%M:%S}"


# ---------------------------------------------------------------------------
# Sources & sync
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ResolvedSources:
    fast_feed_url: Optional[str] = None
    spreadsheet_url: Optional[str] = None


@dataclass
class FetchResult:
    rows: list[dict]
    source: Provenance
    url: str


@dataclass
class SyncResult:
    records: list[Record] = field(default_factory=list)
    source: Optional[Provenance] = None
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Household view: slot arrays over one record
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VehicleSlot:
    plate: str
    sticker: str
    model: str


@dataclass(frozen=True)
class StudentSlot:
    name: str
    grade: str


def _text(record: Mapping[str, Any], key: str) -> str:
    value = record.get(key)
    return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class Household:
    """Grouped view of a record: fixed-size vehicle and student slot arrays.

    A slot is None when the family left it blank. Vehicles count as present
    when either the plate or the sticker is filled in.
    """
    vehicles: tuple[Optional[VehicleSlot], ...]
    students: tuple[Optional[StudentSlot], ...]
    father: str = ""
    mother: str = ""
    identification: str = ""
    mobile: str = ""
    home_phone: str = ""
    father_email: str = ""
    mother_email: str = ""
    registration_year: str = ""

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Household":
        vehicles = []
        for plate_f, sticker_f, model_f in zip(PLATE_FIELDS, STICKER_FIELDS, MODEL_FIELDS):
            plate, sticker = _text(record, plate_f), _text(record, sticker_f)
            if plate or sticker:
                vehicles.append(VehicleSlot(plate, sticker, _text(record, model_f)))
            else:
                vehicles.append(None)

        students = []
        for name_f, grade_f, alt_f in zip(STUDENT_FIELDS, GRADE_FIELDS, GRADE_FALLBACK_FIELDS):
            name = _text(record, name_f)
            if name:
                students.append(StudentSlot(name, _text(record, grade_f) or _text(record, alt_f)))
            else:
                students.append(None)

        return cls(
            vehicles=tuple(vehicles),
            students=tuple(students),
            father=_text(record, FATHER_FIELD),
            mother=_text(record, MOTHER_FIELD),
            identification=_text(record, ID_FIELD),
            mobile=_text(record, MOBILE_FIELD),
            home_phone=_text(record, HOME_PHONE_FIELD),
            father_email=_text(record, FATHER_EMAIL_FIELD),
            mother_email=_text(record, MOTHER_EMAIL_FIELD),
            registration_year=_text(record, YEAR_FIELD),
        )

    def present_vehicles(self) -> list[VehicleSlot]:
        return [v for v in self.vehicles if v is not None]

    def present_students(self) -> list[StudentSlot]:
        return [s for s in self.students if s is not None]
