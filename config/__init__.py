"""Environment-driven configuration for the care ETL pipeline."""
