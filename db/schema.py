"""
Target Schema

Table definitions for the caregivers and carelogs tables and the
initializer that creates them before any load starts.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

from db.connection import DatabaseConnection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TableDefinition:
    """Name, insert column order, conflict key and DDL of one target table."""
    name: str
    columns: Tuple[str, ...]
    conflict_target: str
    ddl: str


CAREGIVERS_DDL = """
    CREATE TABLE IF NOT EXISTS caregivers (
        franchisor_id VARCHAR(255) NOT NULL,
        agency_id VARCHAR(255) NOT NULL,
        subdomain VARCHAR(255),
        profile_id VARCHAR(255) PRIMARY KEY,
        caregiver_id VARCHAR(255) NOT NULL UNIQUE,
        external_id VARCHAR(255),
        first_name VARCHAR(255),
        last_name VARCHAR(255),
        email VARCHAR(255),
        phone_number VARCHAR(255),
        gender VARCHAR(50),
        applicant BOOLEAN,
        birthday_date DATE,
        onboarding_date TIMESTAMP,
        location_name VARCHAR(255),
        locations_id INT,
        applicant_status VARCHAR(255),
        status VARCHAR(50)
    );
"""

CARELOGS_DDL = """
    CREATE TABLE IF NOT EXISTS carelogs (
        franchisor_id VARCHAR(255) NOT NULL,
        agency_id VARCHAR(255) NOT NULL,
        carelog_id VARCHAR(255) PRIMARY KEY,
        caregiver_id VARCHAR(255) NOT NULL,
        parent_id VARCHAR(255),
        start_datetime TIMESTAMP NOT NULL,
        end_datetime TIMESTAMP NOT NULL,
        clock_in_actual_datetime TIMESTAMP,
        clock_out_actual_datetime TIMESTAMP,
        clock_in_method INT,
        clock_out_method INT,
        status INT,
        split BOOLEAN,
        documentation TEXT,
        general_comment_char_count INT,
        FOREIGN KEY (caregiver_id) REFERENCES caregivers(caregiver_id)
    );
"""

CAREGIVERS = TableDefinition(
    name="caregivers",
    columns=(
        "franchisor_id",
        "agency_id",
        "subdomain",
        "profile_id",
        "caregiver_id",
        "external_id",
        "first_name",
        "last_name",
        "email",
        "phone_number",
        "gender",
        "applicant",
        "birthday_date",
        "onboarding_date",
        "location_name",
        "locations_id",
        "applicant_status",
        "status",
    ),
    conflict_target="profile_id",
    ddl=CAREGIVERS_DDL,
)

CARELOGS = TableDefinition(
    name="carelogs",
    columns=(
        "franchisor_id",
        "agency_id",
        "carelog_id",
        "caregiver_id",
        "parent_id",
        "start_datetime",
        "end_datetime",
        "clock_in_actual_datetime",
        "clock_out_actual_datetime",
        "clock_in_method",
        "clock_out_method",
        "status",
        "split",
        "documentation",
        "general_comment_char_count",
    ),
    conflict_target="carelog_id",
    ddl=CARELOGS_DDL,
)

# Creation order; carelogs references caregivers.
TABLES: Tuple[TableDefinition, ...] = (CAREGIVERS, CARELOGS)


def initialize_schema(db: DatabaseConnection) -> None:
    """
    Create the target tables if they do not exist yet.

    Runs in a single transaction and never drops or alters existing
    tables, so it is safe to call on every run.

    Args:
        db: Initialized database connection

    Raises:
        psycopg2.Error: If any DDL statement fails (the run must stop)
    """
    logger.info("Ensuring target tables exist")
    try:
        with db.get_cursor() as cursor:
            for table in TABLES:
                cursor.execute(table.ddl)
                logger.debug(f"Table ensured: {table.name}")
    except Exception as e:
        logger.error(f"Error initializing database schema: {e}")
        raise
    logger.info(f"Schema ready: {', '.join(t.name for t in TABLES)}")
