"""
Database Package

- connection: pooled PostgreSQL connections with per-checkout transactions
- schema: target table definitions and the schema initializer
"""
