"""
Database utilities for netcontrol.

This module provides a thin SQLite layer with thread-local connections,
nested transactions through savepoints and JSON column helpers, plus a
registry of named databases.
"""

import os
import json
import sqlite3
import threading
from contextlib import contextmanager
from typing import Dict, List, Any, Optional, Union, Tuple, Iterator

from netcontrol.utils.errors import StorageError
from netcontrol.utils.logging import logger


class Database:
    """
    SQLite database connection manager.

    Connections are cached per thread. Transactions nest: the outermost one
    issues ``BEGIN``/``COMMIT`` and inner ones use savepoints.
    """

    def __init__(self, db_path: str, timeout: float = 30.0):
        """
        Initialize a database.

        Args:
            db_path: Path to the database file
            timeout: Connection timeout in seconds
        """
        self.db_path = db_path
        self.timeout = timeout
        self._lock = threading.RLock()
        self._local = threading.local()
        self._connections: List[sqlite3.Connection] = []

        if db_path != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """
        Get a SQLite connection (thread-local).

        Returns:
            SQLite connection
        """
        connection = getattr(self._local, "connection", None)
        if connection is None or connection not in self._connections:
            try:
                connection = sqlite3.connect(
                    self.db_path,
                    timeout=self.timeout,
                    isolation_level=None,  # transactions are managed manually
                    check_same_thread=False,
                )
            except sqlite3.Error as e:
                raise StorageError(
                    f"Cannot open database {self.db_path}: {e}",
                    details={"db_path": self.db_path},
                ) from e
            connection.row_factory = sqlite3.Row
            connection.execute("PRAGMA foreign_keys = ON")
            self._local.connection = connection
            self._local.transaction_depth = 0
            with self._lock:
                self._connections.append(connection)

        return connection

    def close(self) -> None:
        """Close the connections of every thread; later calls reconnect."""
        with self._lock:
            for connection in self._connections:
                connection.close()
            self._connections.clear()
            self._local.connection = None
            self._local.transaction_depth = 0

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Context manager for database transactions.

        Nested use creates savepoints; an exception rolls back the innermost
        level and propagates.

        Yields:
            None
        """
        conn = self._get_connection()
        depth = self._local.transaction_depth

        if depth == 0:
            conn.execute("BEGIN IMMEDIATE")
        else:
            conn.execute(f"SAVEPOINT savepoint_{depth}")
        self._local.transaction_depth = depth + 1

        try:
            yield
        except BaseException:
            self._local.transaction_depth = depth
            if depth == 0:
                conn.execute("ROLLBACK")
            else:
                conn.execute(f"ROLLBACK TO savepoint_{depth}")
                conn.execute(f"RELEASE savepoint_{depth}")
            raise
        else:
            self._local.transaction_depth = depth
            if depth == 0:
                conn.execute("COMMIT")
            else:
                conn.execute(f"RELEASE savepoint_{depth}")

    def execute(self, query: str, params: Optional[Union[Tuple, Dict, List]] = None) -> sqlite3.Cursor:
        """
        Execute a SQL query.

        Args:
            query: SQL query
            params: Query parameters

        Returns:
            SQLite cursor

        Raises:
            StorageError: If SQLite reports an error
        """
        conn = self._get_connection()
        try:
            return conn.execute(query, params or ())
        except sqlite3.Error as e:
            raise StorageError(f"Database error: {e}", details={"query": query}) from e

    def query(self, query: str, params: Optional[Union[Tuple, Dict, List]] = None) -> List[Dict[str, Any]]:
        """
        Execute a query and return results as a list of dictionaries.

        Args:
            query: SQL query
            params: Query parameters

        Returns:
            List of result rows as dictionaries
        """
        cursor = self.execute(query, params)
        return [dict(row) for row in cursor.fetchall()]

    def query_one(self, query: str, params: Optional[Union[Tuple, Dict, List]] = None) -> Optional[Dict[str, Any]]:
        """
        Execute a query and return the first result as a dictionary.

        Returns:
            First result row as dictionary or None if no results
        """
        cursor = self.execute(query, params)
        row = cursor.fetchone()
        return dict(row) if row else None

    def insert(self, table: str, data: Dict[str, Any]) -> int:
        """
        Insert data into a table.

        Args:
            table: Table name
            data: Data to insert (column -> value)

        Returns:
            ROWID of the inserted row
        """
        columns = list(data.keys())
        placeholders = ", ".join(["?"] * len(columns))
        query = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"

        with self.transaction():
            cursor = self.execute(query, list(data.values()))
            return cursor.lastrowid

    def update(self, table: str, data: Dict[str, Any], where: str, params: Union[Tuple, List]) -> int:
        """
        Update data in a table.

        Args:
            table: Table name
            data: Data to update (column -> value)
            where: WHERE clause with ``?`` placeholders
            params: Parameters for the WHERE clause

        Returns:
            Number of rows affected
        """
        set_clause = ", ".join([f"{column} = ?" for column in data.keys()])
        query = f"UPDATE {table} SET {set_clause} WHERE {where}"

        with self.transaction():
            cursor = self.execute(query, list(data.values()) + list(params))
            return cursor.rowcount

    def delete(self, table: str, where: str, params: Union[Tuple, List]) -> int:
        """
        Delete data from a table.

        Returns:
            Number of rows affected
        """
        query = f"DELETE FROM {table} WHERE {where}"

        with self.transaction():
            cursor = self.execute(query, params)
            return cursor.rowcount

    def table_exists(self, table: str) -> bool:
        query = "SELECT name FROM sqlite_master WHERE type='table' AND name=?"
        return self.execute(query, (table,)).fetchone() is not None

    def create_table(
        self,
        table: str,
        columns: Dict[str, str],
        primary_key: Optional[Union[str, List[str]]] = None,
        if_not_exists: bool = True,
    ) -> None:
        """
        Create a table.

        Args:
            table: Table name
            columns: Column definitions (name -> type definition)
            primary_key: Primary key column(s)
            if_not_exists: Whether to add IF NOT EXISTS clause
        """
        col_defs = []
        for column, definition in columns.items():
            if isinstance(primary_key, str) and column == primary_key:
                col_defs.append(f"{column} {definition} PRIMARY KEY")
            else:
                col_defs.append(f"{column} {definition}")

        if isinstance(primary_key, list) and primary_key:
            col_defs.append(f"PRIMARY KEY ({', '.join(primary_key)})")

        exists_clause = "IF NOT EXISTS " if if_not_exists else ""
        with self.transaction():
            self.execute(f"CREATE TABLE {exists_clause}{table} ({', '.join(col_defs)})")

    def create_index(
        self,
        index: str,
        table: str,
        columns: Union[str, List[str]],
        unique: bool = False,
        if_not_exists: bool = True,
    ) -> None:
        """Create an index on one or more columns."""
        columns_clause = ", ".join(columns) if isinstance(columns, list) else columns
        exists_clause = "IF NOT EXISTS " if if_not_exists else ""
        unique_clause = "UNIQUE " if unique else ""

        with self.transaction():
            self.execute(f"CREATE {unique_clause}INDEX {exists_clause}{index} ON {table} ({columns_clause})")

    def json_serialize(self, value: Any) -> Optional[str]:
        if value is None:
            return None
        return json.dumps(value)

    def json_deserialize(self, value: Optional[str]) -> Any:
        if value is None:
            return None
        return json.loads(value)


class DatabaseRegistry:
    """Registry of named databases shared by the process."""

    def __init__(self):
        self._databases: Dict[str, Database] = {}
        self._lock = threading.RLock()

    def create(self, name: str, db_path: str, timeout: float = 30.0) -> Database:
        """
        Create a database, or return the registered one if the path matches.

        Args:
            name: Registry name
            db_path: Path to the database file
            timeout: Connection timeout in seconds

        Returns:
            Database instance
        """
        with self._lock:
            existing = self._databases.get(name)
            if existing is not None and existing.db_path == db_path:
                return existing
            if existing is not None:
                existing.close()

            database = Database(db_path, timeout)
            self._databases[name] = database
            logger.debug(
                f"Registered database '{name}' at {db_path}",
                component="storage",
                operation="create_database",
            )
            return database

    def close_all(self) -> None:
        with self._lock:
            for database in self._databases.values():
                database.close()
            self._databases.clear()


_registry = DatabaseRegistry()


def create_database(name: str, db_path: str, timeout: float = 30.0) -> Database:
    return _registry.create(name, db_path, timeout)


def close_all_databases() -> None:
    _registry.close_all()
