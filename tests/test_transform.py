"""Tests for row validation and the record transformer."""

import logging
from datetime import date, datetime

import pytest

from etl.models import Caregiver, Carelog
from etl.transform import DataTransformer, transform_caregivers, transform_carelogs
from etl.validator import CaregiverRowValidator, CarelogRowValidator, SkipReason


class TestCaregiverRowValidator:
    def test_full_row(self, caregiver_row):
        record, reason = CaregiverRowValidator().validate(caregiver_row())

        assert reason is None
        assert isinstance(record, Caregiver)
        assert record.profile_id == "p-1"
        assert record.caregiver_id == "cg-1"
        assert record.applicant is False
        assert record.birthday_date == date(1990, 4, 12)
        assert record.onboarding_date == datetime(2023, 1, 5, 9, 30)
        assert record.locations_id == 7
        assert record.status == "active"

    @pytest.mark.parametrize(
        "raw, expected",
        [("True", True), ("False", False), ("", None), ("TRUE", None), ("maybe", None)],
    )
    def test_applicant_tri_state(self, caregiver_row, raw, expected):
        record, _ = CaregiverRowValidator().validate(caregiver_row(applicant=raw))
        assert record.applicant is expected

    @pytest.mark.parametrize("raw, expected", [("0", None), ("7", 7), ("", None)])
    def test_locations_id_sentinel(self, caregiver_row, raw, expected):
        record, _ = CaregiverRowValidator().validate(caregiver_row(locations_id=raw))
        assert record.locations_id == expected

    def test_none_token_and_empty_optional_fields(self, caregiver_row):
        record, reason = CaregiverRowValidator().validate(
            caregiver_row(location_name="None", email="", birthday_date="None", onboarding_date="")
        )

        assert reason is None
        assert record.location_name is None
        assert record.email is None
        assert record.birthday_date is None
        assert record.onboarding_date is None

    @pytest.mark.parametrize("column", ["profile_id", "caregiver_id", "franchisor_id", "agency_id"])
    def test_missing_identity_rejects_row(self, caregiver_row, column):
        record, reason = CaregiverRowValidator().validate(caregiver_row(**{column: ""}))

        assert record is None
        assert reason.field == column

    def test_unparsable_optional_date_rejects_row(self, caregiver_row):
        record, reason = CaregiverRowValidator().validate(caregiver_row(birthday_date="someday"))

        assert record is None
        assert reason.field == "birthday_date"

    def test_absent_columns_are_null(self):
        row = {"franchisor_id": "fr-1", "agency_id": "ag-1", "profile_id": "p-9", "caregiver_id": "cg-9"}
        record, reason = CaregiverRowValidator().validate(row)

        assert reason is None
        assert record.first_name is None
        assert record.applicant is None
        assert record.status is None


class TestCarelogRowValidator:
    def test_full_row(self, carelog_row):
        record, reason = CarelogRowValidator().validate(carelog_row())

        assert reason is None
        assert isinstance(record, Carelog)
        assert record.start_datetime == datetime(2024, 3, 1, 8, 0)
        assert record.end_datetime == datetime(2024, 3, 1, 12, 0)
        assert record.parent_id is None
        assert record.clock_in_method == 1
        assert record.status == 3
        assert record.split is False
        assert record.general_comment_char_count == 36

    @pytest.mark.parametrize("column", ["start_datetime", "end_datetime"])
    @pytest.mark.parametrize("raw", ["", "None", "   ", "garbage", "now", "today"])
    def test_scheduled_times_are_required(self, carelog_row, column, raw):
        record, reason = CarelogRowValidator().validate(carelog_row(**{column: raw}))

        assert record is None
        assert reason.field == column

    def test_missing_actual_times_are_allowed(self, carelog_row):
        record, reason = CarelogRowValidator().validate(
            carelog_row(clock_in_actual_datetime="None", clock_out_actual_datetime="")
        )

        assert reason is None
        assert record.clock_in_actual_datetime is None
        assert record.clock_out_actual_datetime is None

    def test_non_numeric_status_rejects_row(self, carelog_row):
        record, reason = CarelogRowValidator().validate(carelog_row(status="done"))

        assert record is None
        assert reason.field == "status"

    def test_zero_status_is_kept(self, carelog_row):
        record, _ = CarelogRowValidator().validate(carelog_row(status="0"))
        assert record.status == 0

    def test_oversized_integer_rejects_row(self, carelog_row):
        record, reason = CarelogRowValidator().validate(
            carelog_row(general_comment_char_count="99999999999")
        )

        assert record is None
        assert reason.field == "general_comment_char_count"

    def test_missing_caregiver_reference_rejects_row(self, carelog_row):
        record, reason = CarelogRowValidator().validate(carelog_row(caregiver_id=""))

        assert record is None
        assert reason.field == "caregiver_id"


class TestSkipReason:
    def test_str_with_field(self):
        assert str(SkipReason(field="end_datetime", message="Invalid date: x")) == "end_datetime: Invalid date: x"

    def test_str_without_field(self):
        assert str(SkipReason(field=None, message="Malformed row")) == "Malformed row"


class TestDataTransformer:
    def test_caregiver_with_empty_profile_id_is_rejected(self, caregiver_row):
        rows = [
            caregiver_row(profile_id="p-1", caregiver_id="cg-1"),
            caregiver_row(profile_id="", caregiver_id="cg-2"),
            caregiver_row(profile_id="p-3", caregiver_id="cg-3"),
        ]

        result = transform_caregivers(rows)

        assert [r.profile_id for r in result.records] == ["p-1", "p-3"]
        assert result.total_rows == 3
        assert result.skipped == 1
        assert result.skip_reasons == {"profile_id": 1}

    def test_carelog_end_to_end(self, carelog_row):
        rows = [
            carelog_row(carelog_id="cl-1"),
            carelog_row(carelog_id="cl-2", end_datetime=""),
            carelog_row(carelog_id="cl-3", clock_in_actual_datetime="None"),
            carelog_row(carelog_id="cl-4"),
            carelog_row(carelog_id="cl-5"),
        ]

        result = transform_carelogs(rows)

        assert result.kept == 4
        assert result.skipped == 1
        assert [r.carelog_id for r in result.records] == ["cl-1", "cl-3", "cl-4", "cl-5"]
        affected = next(r for r in result.records if r.carelog_id == "cl-3")
        assert affected.clock_in_actual_datetime is None

    def test_each_bad_row_counts_once(self, carelog_row):
        rows = [
            carelog_row(carelog_id="a", start_datetime=""),
            carelog_row(carelog_id="b", end_datetime="None"),
            carelog_row(carelog_id="c", start_datetime="yesterday-ish"),
            carelog_row(carelog_id="d"),
        ]

        result = transform_carelogs(rows)

        assert result.skipped == 3
        assert sum(result.skip_reasons.values()) == 3
        assert result.skip_reasons == {"start_datetime": 2, "end_datetime": 1}

    def test_oversized_integer_is_skipped_not_loaded(self, carelog_row, caregiver_row):
        carelogs = transform_carelogs(
            [carelog_row(carelog_id="ok"), carelog_row(carelog_id="big", general_comment_char_count="99999999999")]
        )
        caregivers = transform_caregivers([caregiver_row(locations_id="2147483648")])

        assert [r.carelog_id for r in carelogs.records] == ["ok"]
        assert carelogs.skip_reasons == {"general_comment_char_count": 1}
        assert caregivers.records == []
        assert caregivers.skip_reasons == {"locations_id": 1}

    def test_output_preserves_input_order(self, carelog_row):
        ids = [f"cl-{n:02d}" for n in range(20)]
        rows = [
            carelog_row(carelog_id=carelog_id, start_datetime="" if n % 3 == 0 else "2024-03-01 08:00:00")
            for n, carelog_id in enumerate(ids)
        ]

        result = transform_carelogs(rows)

        kept_ids = [r.carelog_id for r in result.records]
        assert kept_ids == [carelog_id for n, carelog_id in enumerate(ids) if n % 3 != 0]

    def test_non_string_cells_do_not_abort(self, caregiver_row):
        rows = [caregiver_row(locations_id=12.5), caregiver_row(profile_id="p-2", caregiver_id="cg-2")]

        result = DataTransformer(CaregiverRowValidator()).transform(rows)

        assert [r.profile_id for r in result.records] == ["p-2"]
        assert result.skip_reasons == {"row": 1}

    def test_empty_input(self):
        result = transform_caregivers([])

        assert result.records == []
        assert result.total_rows == 0
        assert result.skipped == 0

    def test_logs_summary(self, carelog_row, caplog):
        with caplog.at_level(logging.INFO, logger="etl.transform"):
            transform_carelogs([carelog_row(), carelog_row(carelog_id="x", end_datetime="")])

        assert "Transformed 1 carelogs out of 2 rows" in caplog.text
