"""
PostgreSQL client with connection pooling.

Uses psycopg2 with ThreadedConnectionPool. The pool is created lazily on
first use so the API can start (and report 503 from /db/healthz) while the
database is unreachable.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, List, Tuple
from uuid import UUID

import psycopg2
import psycopg2.extras
import psycopg2.pool

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_SECONDS = 10


class PostgresClient:
    """
    PostgreSQL client returning rows as dicts.

    Usage:
        db = PostgresClient(database_url, database_name="adventure")
        row = db.execute_single("SELECT id, email FROM users WHERE email = %s", (email,))
    """

    # Class-level connection pools shared across instances
    _connection_pools: Dict[Tuple[str, str | None], psycopg2.pool.ThreadedConnectionPool] = {}
    _pools_lock = threading.RLock()

    def __init__(self, database_url: str, database_name: str | None = None):
        self._database_url = database_url
        self._database_name = database_name
        self._pool_key = (database_url, database_name)

    def _ensure_connection_pool(self) -> psycopg2.pool.ThreadedConnectionPool:
        """Create connection pool if it doesn't exist."""
        with self._pools_lock:
            pool = self._connection_pools.get(self._pool_key)
            if pool is None:
                kwargs = {"connect_timeout": CONNECT_TIMEOUT_SECONDS}
                if self._database_name:
                    # Keyword arguments override the dbname in the DSN
                    kwargs["dbname"] = self._database_name
                pool = psycopg2.pool.ThreadedConnectionPool(
                    minconn=1,
                    maxconn=20,
                    dsn=self._database_url,
                    **kwargs,
                )
                self._connection_pools[self._pool_key] = pool
                logger.info("Connection pool created")
            return pool

    @contextmanager
    def get_connection(self):
        """Borrow a pooled connection. Rolls back on error."""
        pool = self._ensure_connection_pool()
        conn = pool.getconn()
        if conn is None:
            raise RuntimeError("Could not get connection from pool")

        try:
            yield conn
        except Exception:
            conn.rollback()
            raise
        finally:
            pool.putconn(conn)

    def _convert_params(self, params: Tuple | Dict | None) -> Tuple | Dict | None:
        """Convert UUID objects to strings."""
        if params is None:
            return None

        def convert(value: Any) -> Any:
            if isinstance(value, UUID):
                return str(value)
            if isinstance(value, list):
                return [convert(v) for v in value]
            if isinstance(value, tuple):
                return tuple(convert(v) for v in value)
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            return value

        return convert(params)

    def execute(self, query: str, params: Tuple | Dict | None = None) -> List[Dict[str, Any]]:
        """Execute query, return list of row dicts. Empty list if no results."""
        params = self._convert_params(params)
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(query, params)
                rows = [dict(row) for row in cur.fetchall()] if cur.description else []
                conn.commit()
                return rows

    def execute_single(self, query: str, params: Tuple | Dict | None = None) -> Dict[str, Any] | None:
        """Execute query, return first row or None."""
        results = self.execute(query, params)
        return results[0] if results else None

    def execute_returning(self, query: str, params: Tuple | Dict | None = None) -> List[Dict[str, Any]]:
        """Execute INSERT/UPDATE/DELETE with RETURNING, return results."""
        params = self._convert_params(params)
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
                cur.execute(query, params)
                rows = [dict(row) for row in cur.fetchall()]
                conn.commit()
                return rows

    def ping(self) -> bool:
        """
        Health check.

        Returns True if the database answers SELECT 1.
        Raises psycopg2.Error if unreachable.
        """
        with self.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
                cur.fetchone()
            conn.rollback()
        return True

    def close(self) -> None:
        """Close connection pool. The next query creates a fresh one."""
        with self._pools_lock:
            pool = self._connection_pools.pop(self._pool_key, None)
            if pool is not None:
                pool.closeall()
                logger.info("Connection pool closed")

    @classmethod
    def close_all_pools(cls) -> None:
        """Close all connection pools."""
        with cls._pools_lock:
            for pool in cls._connection_pools.values():
                pool.closeall()
            cls._connection_pools.clear()
