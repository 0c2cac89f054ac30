"""Test configuration and fixtures for DBCloner tests."""

import pytest
from typing import Any, Dict, List, Optional
from unittest.mock import Mock

from dbcloner.core.catalog import CatalogSource
from dbcloner.core.classifier import classify
from dbcloner.core.database import DatabaseConnection, DatabaseConfig
from dbcloner.core.models import ColumnDescriptor, ForeignKeyEdge, TableDescriptor
from dbcloner.core.reader import SchemaReader


class FakeCatalog(CatalogSource):
    """In-memory catalog that records every call it receives."""

    def __init__(self, tables: Dict[str, Dict[str, Any]], reachable: bool = True):
        self.tables = tables
        self.reachable = reachable
        self.calls: List[tuple] = []
        self.failing_samples = set()

    def ping(self) -> bool:
        self.calls.append(("ping",))
        return self.reachable

    def list_tables(self, schema: str) -> List[str]:
        self.calls.append(("list_tables", schema))
        return sorted(self.tables)

    def get_ddl(self, table: str) -> str:
        self.calls.append(("get_ddl", table))
        return self.tables[table].get("ddl", f"CREATE TABLE `{table}` (\n  `id` int NOT NULL\n)")

    def get_columns(self, table: str) -> List[Dict[str, Any]]:
        self.calls.append(("get_columns", table))
        return list(self.tables[table]["columns"])

    def get_primary_key(self, table: str) -> List[str]:
        self.calls.append(("get_primary_key", table))
        return list(self.tables[table].get("primary_key", []))

    def get_foreign_keys(self, table: str) -> List[Dict[str, Any]]:
        self.calls.append(("get_foreign_keys", table))
        return list(self.tables[table].get("foreign_keys", []))

    def get_indexes(self, table: str) -> List[Dict[str, Any]]:
        self.calls.append(("get_indexes", table))
        return list(self.tables[table].get("indexes", []))

    def get_sample_rows(self, table: str, limit: int):
        self.calls.append(("get_sample_rows", table, limit))
        if table in self.failing_samples:
            raise RuntimeError(f"permission denied for {table}")
        names = [row["column_name"] for row in self.tables[table]["columns"]]
        return names, list(self.tables[table].get("rows", []))[:limit]


def column_row(name: str, data_type: str, column_type: Optional[str] = None,
               nullable: bool = True, default: Optional[str] = None,
               max_length: Optional[int] = None, precision: Optional[int] = None,
               scale: Optional[int] = None, key: str = "", extra: str = "") -> Dict[str, Any]:
    """A row shaped like information_schema.columns."""
    return {
        "column_name": name,
        "data_type": data_type,
        "column_type": column_type or data_type,
        "is_nullable": "YES" if nullable else "NO",
        "column_default": default,
        "character_maximum_length": max_length,
        "numeric_precision": precision,
        "numeric_scale": scale,
        "column_key": key,
        "extra": extra,
    }


def fk_row(column: str, ref_table: str, ref_column: str = "id", name: Optional[str] = None) -> Dict[str, Any]:
    return {
        "column_name": column,
        "referenced_table_name": ref_table,
        "referenced_column_name": ref_column,
        "constraint_name": name or f"fk_{column}",
    }


def id_row() -> Dict[str, Any]:
    return column_row("id", "int", "int unsigned", nullable=False, key="PRI", extra="auto_increment")


def shop_definition() -> Dict[str, Dict[str, Any]]:
    return {
        "customers": {
            "ddl": "CREATE TABLE `customers` (\n  `id` int unsigned NOT NULL AUTO_INCREMENT,\n  PRIMARY KEY (`id`)\n)",
            "columns": [
                id_row(),
                column_row("first_name", "varchar", "varchar(50)", nullable=False, max_length=50),
                column_row("email", "varchar", "varchar(100)", nullable=False, max_length=100, key="UNI"),
                column_row("created_at", "timestamp", nullable=True, default="CURRENT_TIMESTAMP",
                           extra="DEFAULT_GENERATED"),
            ],
            "primary_key": ["id"],
            "indexes": [{"index_name": "uq_email", "non_unique": 0, "columns": "email"}],
            "rows": [(1, "Ada", "ada@example.com", "2024-01-01 00:00:00")],
        },
        "orders": {
            "ddl": "CREATE TABLE `orders` (\n  `id` int unsigned NOT NULL AUTO_INCREMENT,\n  PRIMARY KEY (`id`)\n)",
            "columns": [
                id_row(),
                column_row("customer_id", "int", "int unsigned", nullable=False, key="MUL"),
                column_row("total", "decimal", "decimal(10,2)", nullable=False, precision=10, scale=2),
                column_row("status", "enum", "enum('pending','shipped','it''s done')", nullable=False),
                column_row("notes", "text", "text", max_length=65535),
            ],
            "primary_key": ["id"],
            "foreign_keys": [fk_row("customer_id", "customers")],
            "indexes": [{"index_name": "idx_customer", "non_unique": 1, "columns": "customer_id"}],
        },
    }


@pytest.fixture
def shop_catalog():
    """Catalog with customers and orders (orders.customer_id -> customers.id)."""
    return FakeCatalog(shop_definition())


@pytest.fixture
def shop_tables(shop_catalog):
    """TableDescriptors read from the shop catalog."""
    return SchemaReader(shop_catalog).read_schema("shop")


@pytest.fixture
def cyclic_catalog():
    """Two tables referencing each other plus a self-referencing one."""
    return FakeCatalog({
        "authors": {
            "columns": [id_row(), column_row("favourite_book_id", "int", nullable=True)],
            "primary_key": ["id"],
            "foreign_keys": [fk_row("favourite_book_id", "books")],
        },
        "books": {
            "columns": [id_row(), column_row("author_id", "int", nullable=False)],
            "primary_key": ["id"],
            "foreign_keys": [fk_row("author_id", "authors")],
        },
        "categories": {
            "columns": [id_row(), column_row("parent_id", "int", nullable=True),
                        column_row("title", "varchar", "varchar(80)", max_length=80)],
            "primary_key": ["id"],
            "foreign_keys": [fk_row("parent_id", "categories")],
        },
    })


@pytest.fixture
def make_column():
    """Factory for ColumnDescriptors classified like the reader does."""
    def _make(name: str, data_type: str, column_type: Optional[str] = None, **kwargs) -> ColumnDescriptor:
        column_type = column_type or data_type
        return ColumnDescriptor(
            name=name,
            data_type=data_type,
            column_type=column_type,
            semantic_kind=kwargs.pop("semantic_kind", classify(name, data_type, column_type)),
            **kwargs
        )
    return _make


@pytest.fixture
def make_table():
    """Factory for TableDescriptors with foreign keys given as (column, ref_table)."""
    def _make(name: str, columns, primary_key=("id",), references=()) -> TableDescriptor:
        return TableDescriptor(
            name=name,
            columns=tuple(columns),
            primary_key=tuple(primary_key),
            foreign_keys=tuple(
                ForeignKeyEdge(table=name, column=column, referenced_table=ref, referenced_column="id")
                for column, ref in references
            ),
            create_statement=f"CREATE TABLE `{name}` (`id` int)",
        )
    return _make


def split_values(values: str) -> List[str]:
    """Split the inside of VALUES (...) on commas outside string literals."""
    parts, current, in_quote, i = [], [], False, 0
    while i < len(values):
        char = values[i]
        if char == "'":
            if in_quote and i + 1 < len(values) and values[i + 1] == "'":
                current.append("''")
                i += 2
                continue
            in_quote = not in_quote
        if char == "," and not in_quote:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1
    if current or parts:
        parts.append("".join(current).strip())
    return parts


@pytest.fixture
def parse_inserts():
    """Parse INSERT statements of a script into {table: [ {column: literal} ]}."""
    def _parse(script: str) -> Dict[str, List[Dict[str, str]]]:
        rows: Dict[str, List[Dict[str, str]]] = {}
        for line in script.splitlines():
            if not line.startswith("INSERT INTO "):
                continue
            head, _, tail = line.partition(") VALUES (")
            table = head[len("INSERT INTO `"):head.index("` (")]
            column_part = head[head.index("(") + 1:]
            columns = [c.strip().strip("`") for c in column_part.split(",") if c.strip()]
            values = split_values(tail[:-len(");")])
            rows.setdefault(table, []).append(dict(zip(columns, values)))
        return rows
    return _parse


@pytest.fixture
def mock_db_config():
    """Create a database configuration for testing."""
    return DatabaseConfig(
        host="localhost",
        port=3306,
        database="test_db",
        username="test_user",
        password="test_pass",
    )


@pytest.fixture
def mock_db_connection(mock_db_config):
    """Create a mock database connection for testing."""
    connection = Mock(spec=DatabaseConnection)
    connection.config = mock_db_config
    connection.test_connection.return_value = True
    connection.quote_identifier.side_effect = DatabaseConnection.quote_identifier
    return connection
