"""Pytest configuration and shared fixtures."""

from typing import Dict
from unittest.mock import MagicMock

import pytest

from db.connection import DatabaseConnection


def make_caregiver_row(**overrides: str) -> Dict[str, str]:
    """Raw caregiver CSV row with every column populated."""
    row = {
        "franchisor_id": "fr-1",
        "agency_id": "ag-1",
        "subdomain": "sunrise",
        "profile_id": "p-1",
        "caregiver_id": "cg-1",
        "external_id": "ext-1",
        "first_name": "Ada",
        "last_name": "Moss",
        "email": "ada@example.com",
        "phone_number": "555-0100",
        "gender": "female",
        "applicant": "False",
        "birthday_date": "1990-04-12",
        "onboarding_date": "2023-01-05 09:30:00",
        "location_name": "Downtown",
        "locations_id": "7",
        "applicant_status": "Hired",
        "status": "active",
    }
    row.update(overrides)
    return row


def make_carelog_row(**overrides: str) -> Dict[str, str]:
    """Raw carelog CSV row with every column populated."""
    row = {
        "franchisor_id": "fr-1",
        "agency_id": "ag-1",
        "carelog_id": "cl-1",
        "caregiver_id": "cg-1",
        "parent_id": "",
        "start_datetime": "2024-03-01 08:00:00",
        "end_datetime": "2024-03-01 12:00:00",
        "clock_in_actual_datetime": "2024-03-01 08:05:00",
        "clock_out_actual_datetime": "2024-03-01 12:02:00",
        "clock_in_method": "1",
        "clock_out_method": "2",
        "status": "3",
        "split": "False",
        "documentation": "Assisted with meals and medication.",
        "general_comment_char_count": "36",
    }
    row.update(overrides)
    return row


@pytest.fixture
def caregiver_row():
    """Factory for raw caregiver rows."""
    return make_caregiver_row


@pytest.fixture
def carelog_row():
    """Factory for raw carelog rows."""
    return make_carelog_row


@pytest.fixture
def mock_pool():
    """A psycopg2 pool double handing out one mock connection."""
    pool = MagicMock()
    connection = MagicMock(name="connection")
    cursor = MagicMock(name="cursor")
    cursor.rowcount = 0
    connection.cursor.return_value = cursor
    pool.getconn.return_value = connection
    pool.connection = connection
    pool.cursor = cursor
    return pool


@pytest.fixture
def db(mock_pool):
    """DatabaseConnection whose pool is replaced by a mock."""
    connection = DatabaseConnection(
        host="localhost",
        port=5432,
        database="carelogs_test",
        user="etl",
        password="secret",
    )
    connection._pool = mock_pool
    return connection
