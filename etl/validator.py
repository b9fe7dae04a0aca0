"""
Row-Level Validation Rules

Turns one raw CSV row into a typed record, or into a reason for skipping it.
Validators never raise for bad data: every coercion failure is caught at the
row boundary and reported as a SkipReason.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, Mapping, Optional, Tuple, TypeVar

from etl.coercion import (
    FieldCoercionError,
    to_date,
    to_datetime,
    to_nullable_id,
    to_nullable_int,
    to_nullable_string,
    to_required_string,
    to_tri_state_bool,
)
from etl.models import Caregiver, Carelog

RawRow = Mapping[str, Optional[str]]
RecordT = TypeVar("RecordT")


@dataclass(frozen=True)
class SkipReason:
    """Why a row was left out of the transform output."""
    field: Optional[str]
    message: str

    def __str__(self) -> str:
        if self.field:
            return f"{self.field}: {self.message}"
        return self.message


class RowValidator(ABC, Generic[RecordT]):
    """Abstract base class for per-dataset row validators."""

    dataset: str = "rows"

    @abstractmethod
    def build_record(self, row: RawRow) -> RecordT:
        """
        Coerce every field of a raw row into a typed record.

        Raises:
            FieldCoercionError: If a field cannot be represented
        """

    def check_record(self, record: RecordT) -> Optional[SkipReason]:
        """Record-level rules applied after coercion. Returns a reason to skip, if any."""
        return None

    def validate(self, row: RawRow) -> Tuple[Optional[RecordT], Optional[SkipReason]]:
        """
        Validate a raw row.

        Args:
            row: Mapping of column name to raw string value (or None)

        Returns:
            Tuple of (record, skip_reason); exactly one of them is None
        """
        try:
            record = self.build_record(row)
        except FieldCoercionError as e:
            return None, SkipReason(field=e.field, message=str(e))
        except (ValueError, TypeError, AttributeError) as e:
            return None, SkipReason(field=None, message=f"Malformed row: {e}")

        reason = self.check_record(record)
        if reason is not None:
            return None, reason
        return record, None


class CaregiverRowValidator(RowValidator[Caregiver]):
    """Validates caregiver profile rows."""

    dataset = "caregivers"

    def build_record(self, row: RawRow) -> Caregiver:
        get = row.get
        return Caregiver(
            franchisor_id=to_required_string(get("franchisor_id"), "franchisor_id"),
            agency_id=to_required_string(get("agency_id"), "agency_id"),
            subdomain=to_nullable_string(get("subdomain")),
            profile_id=to_required_string(get("profile_id"), "profile_id"),
            caregiver_id=to_required_string(get("caregiver_id"), "caregiver_id"),
            external_id=to_nullable_string(get("external_id")),
            first_name=to_nullable_string(get("first_name")),
            last_name=to_nullable_string(get("last_name")),
            email=to_nullable_string(get("email")),
            phone_number=to_nullable_string(get("phone_number")),
            gender=to_nullable_string(get("gender")),
            applicant=to_tri_state_bool(get("applicant")),
            birthday_date=to_date(get("birthday_date"), field="birthday_date"),
            onboarding_date=to_datetime(get("onboarding_date"), field="onboarding_date"),
            location_name=to_nullable_string(get("location_name")),
            locations_id=to_nullable_id(get("locations_id"), field="locations_id"),
            applicant_status=to_nullable_string(get("applicant_status")),
            # Passed through as-is
            status=get("status"),
        )


class CarelogRowValidator(RowValidator[Carelog]):
    """Validates care visit rows. Both scheduled timestamps are required."""

    dataset = "carelogs"

    REQUIRED_DATETIMES = ("start_datetime", "end_datetime")

    def build_record(self, row: RawRow) -> Carelog:
        get = row.get
        return Carelog(
            franchisor_id=to_required_string(get("franchisor_id"), "franchisor_id"),
            agency_id=to_required_string(get("agency_id"), "agency_id"),
            carelog_id=to_required_string(get("carelog_id"), "carelog_id"),
            caregiver_id=to_required_string(get("caregiver_id"), "caregiver_id"),
            parent_id=to_nullable_string(get("parent_id")),
            start_datetime=to_datetime(get("start_datetime"), field="start_datetime"),
            end_datetime=to_datetime(get("end_datetime"), field="end_datetime"),
            clock_in_actual_datetime=to_datetime(
                get("clock_in_actual_datetime"), field="clock_in_actual_datetime"
            ),
            clock_out_actual_datetime=to_datetime(
                get("clock_out_actual_datetime"), field="clock_out_actual_datetime"
            ),
            clock_in_method=to_nullable_int(get("clock_in_method"), field="clock_in_method"),
            clock_out_method=to_nullable_int(get("clock_out_method"), field="clock_out_method"),
            status=to_nullable_int(get("status"), field="status"),
            split=to_tri_state_bool(get("split")),
            documentation=to_nullable_string(get("documentation")),
            general_comment_char_count=to_nullable_int(
                get("general_comment_char_count"), field="general_comment_char_count"
            ),
        )

    def check_record(self, record: Carelog) -> Optional[SkipReason]:
        for field in self.REQUIRED_DATETIMES:
            if getattr(record, field) is None:
                return SkipReason(field=field, message="Missing required datetime field")
        return None

