"""
Data Transformation Pipeline

Cleans and type-coerces raw CSV rows into typed records.
Malformed rows are skipped and counted; they never abort the run.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Generic, Iterable, List, TypeVar

from etl.models import Caregiver, Carelog
from etl.validator import (
    CaregiverRowValidator,
    CarelogRowValidator,
    RawRow,
    RowValidator,
)

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")


@dataclass
class TransformResult(Generic[RecordT]):
    """Outcome of transforming one dataset."""
    records: List[RecordT]
    total_rows: int
    skip_reasons: Dict[str, int] = field(default_factory=dict)

    @property
    def kept(self) -> int:
        return len(self.records)

    @property
    def skipped(self) -> int:
        return self.total_rows - len(self.records)


class DataTransformer(Generic[RecordT]):
    """
    Transforms raw rows of one dataset into validated records.

    Operations:
    - Field coercion (strings, tri-state booleans, integers, timestamps)
    - Required-field checks
    - Error isolation per row

    Survivors keep their input order.
    """

    def __init__(self, validator: RowValidator[RecordT]):
        self.validator = validator

    def transform(self, rows: Iterable[RawRow]) -> TransformResult[RecordT]:
        """
        Transform raw rows into validated records.

        Args:
            rows: Raw rows as produced by the CSV reader

        Returns:
            TransformResult with the kept records and skip counts
        """
        records: List[RecordT] = []
        reasons: Counter = Counter()
        total = 0

        for row_number, row in enumerate(rows, 1):
            total += 1
            record, reason = self.validator.validate(row)
            if reason is not None:
                reasons[reason.field or "row"] += 1
                logger.debug(f"Skipping {self.validator.dataset} row {row_number}: {reason}")
                continue
            records.append(record)

        logger.info(f"Transformed {len(records)} {self.validator.dataset} out of {total} rows")
        if reasons:
            breakdown = ", ".join(f"{name}={count}" for name, count in reasons.most_common())
            logger.info(f"Skipped {total - len(records)} {self.validator.dataset} rows ({breakdown})")

        return TransformResult(records=records, total_rows=total, skip_reasons=dict(reasons))


def transform_caregivers(rows: Iterable[RawRow]) -> TransformResult[Caregiver]:
    """
    Convenience function to transform caregiver rows.

    Args:
        rows: Raw caregiver rows

    Returns:
        TransformResult of Caregiver records
    """
    return DataTransformer(CaregiverRowValidator()).transform(rows)


def transform_carelogs(rows: Iterable[RawRow]) -> TransformResult[Carelog]:
    """
    Convenience function to transform carelog rows.

    Args:
        rows: Raw carelog rows

    Returns:
        TransformResult of Carelog records
    """
    return DataTransformer(CarelogRowValidator()).transform(rows)
