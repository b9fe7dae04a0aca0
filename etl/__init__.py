"""
ETL Pipeline Package

Batch ETL for caregiver profiles and care-visit logs, from CSV into PostgreSQL.

Modules:
- extract: CSV reading into raw string rows
- coercion: Field-level type coercion
- models: Typed Caregiver and Carelog records
- validator: Row-level validation rules
- transform: Row cleaning and skip accounting
- load: Batched, idempotent database inserts
- metrics: Post-load care analytics
- run_etl: Pipeline orchestration
"""

__version__ = "1.0.0"
__author__ = "Data Engineering Team"
