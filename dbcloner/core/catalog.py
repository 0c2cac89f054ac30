"""Catalog metadata access through information_schema."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple
from sqlalchemy.exc import SQLAlchemyError

from .database import DatabaseConnection


logger = logging.getLogger(__name__)


class CatalogSource(ABC):
    """Metadata queries the schema reader depends on.

    Rows are plain dicts keyed by lower-case information_schema column names,
    so tests can supply an in-memory catalog.
    """

    @abstractmethod
    def ping(self) -> bool:
        """Return True when the catalog can be queried."""

    @abstractmethod
    def list_tables(self, schema: str) -> List[str]:
        """Base table names of a schema, alphabetical."""

    @abstractmethod
    def get_ddl(self, table: str) -> str:
        """CREATE TABLE statement without a trailing semicolon."""

    @abstractmethod
    def get_columns(self, table: str) -> List[Dict[str, Any]]:
        """Column metadata ordered by ordinal position."""

    @abstractmethod
    def get_primary_key(self, table: str) -> List[str]:
        """Primary-key column names ordered by key position."""

    @abstractmethod
    def get_foreign_keys(self, table: str) -> List[Dict[str, Any]]:
        """Foreign-key column usages leaving the table."""

    @abstractmethod
    def get_indexes(self, table: str) -> List[Dict[str, Any]]:
        """Non-primary indexes of the table."""

    @abstractmethod
    def get_sample_rows(self, table: str, limit: int) -> Tuple[List[str], List[Sequence[Any]]]:
        """Column names and up to `limit` rows of live data."""


class MySQLCatalog(CatalogSource):
    """CatalogSource backed by a MySQL information_schema."""

    COLUMNS_QUERY = """
        SELECT
            column_name,
            data_type,
            column_type,
            is_nullable,
            column_default,
            character_maximum_length,
            numeric_precision,
            numeric_scale,
            column_key,
            extra
        FROM information_schema.columns
        WHERE table_schema = :schema AND table_name = :table
        ORDER BY ordinal_position
    """

    COLUMN_FIELDS = (
        "column_name", "data_type", "column_type", "is_nullable", "column_default",
        "character_maximum_length", "numeric_precision", "numeric_scale",
        "column_key", "extra",
    )

    def __init__(self, db_connection: DatabaseConnection, schema: Optional[str] = None):
        self.db_connection = db_connection
        self.schema = schema or db_connection.config.database

    def _query(self, query: str, params: Optional[Dict[str, Any]] = None) -> List[Sequence[Any]]:
        try:
            return self.db_connection.execute_query(query, params) or []
        except SQLAlchemyError as e:
            logger.error(f"Metadata query failed: {e}")
            raise ConnectionError(f"Metadata query failed: {e}") from e

    def ping(self) -> bool:
        return self.db_connection.test_connection()

    def list_tables(self, schema: str) -> List[str]:
        self.schema = schema
        rows = self._query(
            """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = :schema
            AND table_type = 'BASE TABLE'
            ORDER BY table_name
            """,
            {"schema": schema},
        )
        return [row[0] for row in rows]

    def get_ddl(self, table: str) -> str:
        quoted_table = self.db_connection.quote_identifier(table)
        rows = self._query(f"SHOW CREATE TABLE {quoted_table}")
        if not rows:
            raise ConnectionError(f"SHOW CREATE TABLE returned nothing for {table}")
        return rows[0][1]

    def get_columns(self, table: str) -> List[Dict[str, Any]]:
        rows = self._query(self.COLUMNS_QUERY, {"schema": self.schema, "table": table})
        return [dict(zip(self.COLUMN_FIELDS, row)) for row in rows]

    def get_primary_key(self, table: str) -> List[str]:
        rows = self._query(
            """
            SELECT column_name
            FROM information_schema.key_column_usage
            WHERE table_schema = :schema AND table_name = :table
            AND constraint_name = 'PRIMARY'
            ORDER BY ordinal_position
            """,
            {"schema": self.schema, "table": table},
        )
        return [row[0] for row in rows]

    def get_foreign_keys(self, table: str) -> List[Dict[str, Any]]:
        rows = self._query(
            """
            SELECT
                column_name,
                referenced_table_name,
                referenced_column_name,
                constraint_name
            FROM information_schema.key_column_usage
            WHERE table_schema = :schema
            AND table_name = :table
            AND referenced_table_name IS NOT NULL
            ORDER BY constraint_name, ordinal_position
            """,
            {"schema": self.schema, "table": table},
        )
        fields = ("column_name", "referenced_table_name", "referenced_column_name", "constraint_name")
        return [dict(zip(fields, row)) for row in rows]

    def get_indexes(self, table: str) -> List[Dict[str, Any]]:
        rows = self._query(
            """
            SELECT index_name, non_unique,
                   GROUP_CONCAT(column_name ORDER BY seq_in_index SEPARATOR ',')
            FROM information_schema.statistics
            WHERE table_schema = :schema AND table_name = :table
            AND index_name != 'PRIMARY'
            GROUP BY index_name, non_unique
            ORDER BY index_name
            """,
            {"schema": self.schema, "table": table},
        )
        return [
            {"index_name": row[0], "non_unique": row[1], "columns": row[2] or ""}
            for row in rows
        ]

    def get_sample_rows(self, table: str, limit: int) -> Tuple[List[str], List[Sequence[Any]]]:
        names = [column["column_name"] for column in self.get_columns(table)]
        quoted_table = self.db_connection.quote_identifier(table)
        rows = self._query(f"SELECT * FROM {quoted_table} LIMIT {int(limit)}")
        return names, [tuple(row) for row in rows]
