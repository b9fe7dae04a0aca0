"""
PostgreSQL Connection Helper

Provides connection pooling and context management for database operations.
Handles connection lifecycle and error handling.

The pool is owned by an explicitly constructed DatabaseConnection object that
the orchestrator opens at start-up and closes on exit; nothing is process-global.
"""

from psycopg2 import pool, OperationalError
from contextlib import contextmanager
from typing import Optional, Generator, Any
import logging

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """
    Manages PostgreSQL connections with connection pooling.

    Each checkout from the pool is one transaction: committed when the
    block exits cleanly, rolled back when it raises.

    Example:
        with DatabaseConnection(host, port, database, user, password) as db:
            with db.get_cursor() as cursor:
                cursor.execute("SELECT 1")
    """

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        min_connections: int = 1,
        max_connections: int = 10,
    ):
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.min_connections = min_connections
        self.max_connections = max_connections
        self._pool: Optional[pool.SimpleConnectionPool] = None

    @classmethod
    def from_settings(cls, settings) -> "DatabaseConnection":
        """Build an (uninitialized) connection from a Settings object."""
        return cls(
            host=settings.DB_HOST,
            port=settings.DB_PORT,
            database=settings.DB_NAME,
            user=settings.DB_USER,
            password=settings.DB_PASSWORD,
            min_connections=settings.DB_POOL_MIN,
            max_connections=settings.DB_POOL_MAX,
        )

    def __enter__(self) -> "DatabaseConnection":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close_all()

    @property
    def is_initialized(self) -> bool:
        return self._pool is not None

    def initialize(self) -> None:
        """
        Initialize the connection pool.

        Raises:
            OperationalError: If connection fails
        """
        try:
            self._pool = pool.SimpleConnectionPool(
                self.min_connections,
                self.max_connections,
                host=self.host,
                port=self.port,
                database=self.database,
                user=self.user,
                password=self.password,
                connect_timeout=10,
            )
            logger.info(
                f"Database pool initialized with {self.min_connections}-{self.max_connections} connections"
            )
        except OperationalError as e:
            logger.error(f"Failed to initialize database pool: {e}")
            raise

    def close_all(self) -> None:
        """Close all connections in the pool."""
        if self._pool:
            self._pool.closeall()
            self._pool = None
            logger.info("PostgreSQL connection pool closed")

    @contextmanager
    def get_connection(self) -> Generator[Any, None, None]:
        """
        Context manager to get a connection from the pool.

        Yields:
            psycopg2 connection object

        Raises:
            OperationalError: If pool is not initialized or connection fails
        """
        if self._pool is None:
            raise OperationalError("Database pool not initialized. Call initialize() first.")

        conn = self._pool.getconn()
        try:
            yield conn
            conn.commit()
            logger.debug("Transaction committed successfully")
        except Exception as e:
            conn.rollback()
            logger.error(f"Database error, transaction rolled back: {e}")
            raise
        finally:
            self._pool.putconn(conn)

    @contextmanager
    def get_cursor(self, commit: bool = True) -> Generator[Any, None, None]:
        """
        Context manager to get a cursor for direct SQL execution.

        Args:
            commit: Whether to commit on success; read-only callers pass False
                and the transaction is rolled back when the block exits

        Yields:
            psycopg2 cursor object

        Example:
            with db.get_cursor() as cursor:
                cursor.execute("SELECT * FROM caregivers")
                results = cursor.fetchall()
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            try:
                yield cursor
                if not commit:
                    conn.rollback()
            finally:
                cursor.close()

    def execute_query(self, query: str, params: Optional[tuple] = None) -> list:
        """
        Execute a SELECT query and return results.

        Args:
            query: SQL query string
            params: Query parameters (optional)

        Returns:
            List of result rows
        """
        with self.get_cursor(commit=False) as cursor:
            cursor.execute(query, params or ())
            return cursor.fetchall()

    def execute_update(self, query: str, params: Optional[tuple] = None) -> int:
        """
        Execute an INSERT/UPDATE/DELETE/DDL statement.

        Args:
            query: SQL query string
            params: Query parameters (optional)

        Returns:
            Number of rows affected
        """
        with self.get_cursor(commit=True) as cursor:
            cursor.execute(query, params or ())
            return cursor.rowcount
