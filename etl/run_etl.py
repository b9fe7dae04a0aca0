"""
ETL Pipeline Orchestrator

Coordinates the complete ETL workflow:
- Ensure the target schema exists
- Extract, transform and load caregivers
- Extract, transform and load carelogs (after caregivers, for the foreign key)
- Report counts and timings
"""

import logging
import os
import sys
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from config.settings import Settings
from db.connection import DatabaseConnection
from db.schema import initialize_schema
from etl.extract import read_csv_rows
from etl.load import LoadResult, load_caregivers, load_carelogs
from etl.metrics import CareAnalyticsProvider
from etl.models import CAREGIVER_CSV_COLUMNS, CARELOG_CSV_COLUMNS
from etl.transform import TransformResult, transform_caregivers, transform_carelogs

logger = logging.getLogger(__name__)


@dataclass
class DatasetRun:
    """Counts and timings for one dataset."""
    name: str
    rows_read: int = 0
    rows_kept: int = 0
    rows_inserted: int = 0
    rows_existing: int = 0
    extract_seconds: float = 0.0
    transform_seconds: float = 0.0
    load_seconds: float = 0.0

    @property
    def rows_skipped(self) -> int:
        return self.rows_read - self.rows_kept


@dataclass
class DatasetPipeline:
    """How to extract, transform and load one dataset."""
    name: str
    csv_path: str
    columns: Sequence[str]
    transform: Callable[..., TransformResult]
    load: Callable[..., LoadResult]


class ETLOrchestrator:
    """
    Orchestrates the complete ETL pipeline.

    Workflow:
    1. Initialize database connection pool
    2. Create target tables if needed
    3. Caregivers: extract, transform, load
    4. Carelogs: extract, transform, load
    5. Optionally log care analytics
    6. Log summary and release the pool
    """

    def __init__(self, settings: Settings, db: Optional[DatabaseConnection] = None):
        """
        Initialize ETL orchestrator.

        Args:
            settings: Configuration object with database and file settings
            db: Database connection to use; built from settings when omitted
        """
        self.settings = settings
        self.db = db or DatabaseConnection.from_settings(settings)
        self.runs: List[DatasetRun] = []
        self.start_time: float = 0.0
        self.duration: float = 0.0

    def pipelines(self) -> List[DatasetPipeline]:
        """Datasets in load order; carelogs reference caregivers."""
        return [
            DatasetPipeline(
                name="caregivers",
                csv_path=self.settings.CAREGIVERS_CSV,
                columns=CAREGIVER_CSV_COLUMNS,
                transform=transform_caregivers,
                load=load_caregivers,
            ),
            DatasetPipeline(
                name="carelogs",
                csv_path=self.settings.CARELOGS_CSV,
                columns=CARELOG_CSV_COLUMNS,
                transform=transform_carelogs,
                load=load_carelogs,
            ),
        ]

    def run(self) -> bool:
        """
        Execute the complete ETL pipeline.

        Returns:
            True if successful, False otherwise
        """
        self.start_time = time.perf_counter()
        self.runs = []

        try:
            logger.info("=" * 60)
            logger.info("Starting ETL Pipeline")
            logger.info("=" * 60)

            self._initialize_database()
            self._execute_pipeline()

            if self.settings.RUN_ANALYTICS:
                CareAnalyticsProvider(self.db).log_report()

            self.duration = time.perf_counter() - self.start_time
            logger.info("=" * 60)
            logger.info("ETL Pipeline Completed Successfully")
            logger.info("=" * 60)
            self._log_summary()

            return True

        except Exception as e:
            logger.error(f"ETL Pipeline failed: {e}", exc_info=True)
            return False

        finally:
            self.db.close_all()

    def _initialize_database(self) -> None:
        """Initialize database connection pool and target tables."""
        logger.info("Initializing database connection...")
        self.db.initialize()

        started = time.perf_counter()
        initialize_schema(self.db)
        logger.info(f"Database Init: {time.perf_counter() - started:.2f}s")

    def _execute_pipeline(self) -> None:
        """Run each dataset to completion before starting the next."""
        for pipeline in self.pipelines():
            self.runs.append(self._run_dataset(pipeline))
        logger.info("Pipeline execution completed")

    def _run_dataset(self, pipeline: DatasetPipeline) -> DatasetRun:
        """
        Extract, transform and load one dataset.

        Args:
            pipeline: Dataset definition

        Returns:
            DatasetRun with counts and timings
        """
        run = DatasetRun(name=pipeline.name)

        # EXTRACT
        started = time.perf_counter()
        rows = read_csv_rows(pipeline.csv_path, pipeline.columns)
        run.extract_seconds = time.perf_counter() - started
        run.rows_read = len(rows)
        logger.info(f"Extract {pipeline.name}: {run.rows_read:,} rows in {run.extract_seconds:.2f}s")

        # TRANSFORM
        started = time.perf_counter()
        transformed = pipeline.transform(rows)
        run.transform_seconds = time.perf_counter() - started
        run.rows_kept = transformed.kept
        logger.info(
            f"Transform {pipeline.name}: {run.rows_kept:,} records in {run.transform_seconds:.2f}s "
            f"({run.rows_skipped:,} skipped)"
        )

        # LOAD
        started = time.perf_counter()
        loaded = pipeline.load(self.db, transformed.records, batch_size=self.settings.BATCH_SIZE)
        run.load_seconds = time.perf_counter() - started
        run.rows_inserted = loaded.inserted
        run.rows_existing = loaded.skipped
        logger.info(
            f"Insert {pipeline.name}: {run.rows_inserted:,} new of {run.rows_kept:,} records "
            f"in {run.load_seconds:.2f}s"
        )

        return run

    def _log_summary(self) -> None:
        """Log per-dataset counts and overall throughput."""
        logger.info(f"Duration: {self.duration:.2f} seconds")
        for run in self.runs:
            logger.info(
                f"{run.name}: read={run.rows_read}, kept={run.rows_kept}, "
                f"skipped={run.rows_skipped}, inserted={run.rows_inserted}, "
                f"already present={run.rows_existing}"
            )

        total_records = sum(run.rows_kept for run in self.runs)
        logger.info(f"ETL Completed: {total_records:,} total records in {self.duration:.2f}s")
        if self.duration > 0:
            logger.info(f"Performance: {round(total_records / self.duration):,} records/second")


def setup_logging(log_file: str = os.path.join("logs", "etl.log"), log_level: str = "INFO") -> None:
    """
    Configure logging for ETL pipeline.

    Args:
        log_file: Path to log file
        log_level: Console level name
    """
    log_level = log_level.upper()

    log_dir = os.path.dirname(log_file)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # File handler
    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, log_level, logging.INFO))
    console_handler.setFormatter(formatter)

    # Root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)


def main() -> None:
    """Main entry point for ETL pipeline."""
    try:
        settings = Settings()
    except ValueError as e:
        setup_logging()
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    setup_logging(settings.LOG_FILE, settings.LOG_LEVEL)

    try:
        logger.info(f"Loaded {settings!r}")
        orchestrator = ETLOrchestrator(settings)
        success = orchestrator.run()
        sys.exit(0 if success else 1)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
