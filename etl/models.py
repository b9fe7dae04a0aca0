"""
Typed Records

Caregiver and Carelog records produced by the transform stage. Field order
matches the insert column order of the target tables.
"""

from dataclasses import dataclass, fields
from datetime import date, datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class Caregiver:
    """A care worker profile, keyed by profile_id."""
    franchisor_id: str
    agency_id: str
    subdomain: Optional[str]
    profile_id: str
    caregiver_id: str
    external_id: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str]
    email: Optional[str]
    phone_number: Optional[str]
    gender: Optional[str]
    applicant: Optional[bool]
    birthday_date: Optional[date]
    onboarding_date: Optional[datetime]
    location_name: Optional[str]
    locations_id: Optional[int]
    applicant_status: Optional[str]
    status: Optional[str]

    def to_row(self, columns: Tuple[str, ...]) -> tuple:
        return tuple(getattr(self, column) for column in columns)


@dataclass(frozen=True)
class Carelog:
    """One scheduled or worked visit, keyed by carelog_id."""
    franchisor_id: str
    agency_id: str
    carelog_id: str
    caregiver_id: str
    parent_id: Optional[str]
    start_datetime: datetime
    end_datetime: datetime
    clock_in_actual_datetime: Optional[datetime]
    clock_out_actual_datetime: Optional[datetime]
    clock_in_method: Optional[int]
    clock_out_method: Optional[int]
    status: Optional[int]
    split: Optional[bool]
    documentation: Optional[str]
    general_comment_char_count: Optional[int]

    def to_row(self, columns: Tuple[str, ...]) -> tuple:
        return tuple(getattr(self, column) for column in columns)


def field_names(record_type) -> Tuple[str, ...]:
    """Column names of a record type, in declaration order."""
    return tuple(f.name for f in fields(record_type))


# Raw CSV headers carry the same names as the record fields.
CAREGIVER_CSV_COLUMNS = field_names(Caregiver)
CARELOG_CSV_COLUMNS = field_names(Carelog)
