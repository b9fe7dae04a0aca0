"""Test suite for the care ETL pipeline."""
