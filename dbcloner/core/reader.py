"""Database schema introspection into table descriptors."""

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from .catalog import CatalogSource
from .classifier import classify
from .exceptions import SchemaEmptyError
from .models import (
    CloneConfig, ColumnDescriptor, ForeignKeyEdge, IndexDescriptor, TableDescriptor
)


logger = logging.getLogger(__name__)


def _to_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class SchemaReader:
    """Reads tables, columns, keys and indexes from a catalog.

    All reads are point-in-time; no transaction spans the whole read, so
    schema changes made while the reader runs give undefined results.
    """

    def __init__(self, catalog: CatalogSource, config: Optional[CloneConfig] = None):
        self.catalog = catalog
        self.config = config or CloneConfig()

    def read_schema(self, database_name: str) -> List[TableDescriptor]:
        """Read every base table of a database.

        Raises ConnectionError when the catalog is unreachable and
        SchemaEmptyError when the database has no base tables.
        """
        logger.info(f"Starting schema analysis of database: {database_name}")

        if not self.catalog.ping():
            raise ConnectionError("Database connection is not available")

        table_names = self.catalog.list_tables(database_name)
        if not table_names:
            logger.warning(f"No tables found in database {database_name}")
            raise SchemaEmptyError(database_name)

        original_count = len(table_names)
        table_names = self.config.filter_tables(table_names)
        if len(table_names) != original_count:
            logger.info(f"Filtered tables: {len(table_names)}/{original_count}")

        tables = []
        for table_name in table_names:
            logger.info(f"Analyzing table: {table_name}")
            tables.append(self._read_table(table_name))

        tables = self._drop_dangling_foreign_keys(tables)
        logger.info(f"Schema analysis complete. Analyzed {len(tables)} tables.")
        return tables

    def _read_table(self, table_name: str) -> TableDescriptor:
        create_statement = self.catalog.get_ddl(table_name)
        columns = [self._build_column(row) for row in self.catalog.get_columns(table_name)]
        primary_key = self.catalog.get_primary_key(table_name)
        foreign_keys = [
            ForeignKeyEdge(
                table=table_name,
                column=row["column_name"],
                referenced_table=row["referenced_table_name"],
                referenced_column=row["referenced_column_name"],
                constraint_name=row.get("constraint_name"),
            )
            for row in self.catalog.get_foreign_keys(table_name)
        ]
        indexes = [self._build_index(row) for row in self.catalog.get_indexes(table_name)]

        logger.debug(
            f"Table {table_name}: {len(columns)} columns, PK={primary_key}, "
            f"{len(foreign_keys)} FKs, {len(indexes)} indexes"
        )

        return TableDescriptor(
            name=table_name,
            columns=tuple(columns),
            primary_key=tuple(primary_key),
            foreign_keys=tuple(foreign_keys),
            indexes=tuple(indexes),
            create_statement=create_statement,
        )

    @staticmethod
    def _build_column(row: Dict[str, Any]) -> ColumnDescriptor:
        name = row["column_name"]
        data_type = (row.get("data_type") or "").lower()
        column_type = row.get("column_type") or data_type
        extra = row.get("extra") or ""
        default = row.get("column_default")

        return ColumnDescriptor(
            name=name,
            data_type=data_type,
            column_type=column_type,
            is_nullable=str(row.get("is_nullable", "YES")).upper() == "YES",
            default_value=None if default is None else str(default),
            max_length=_to_int(row.get("character_maximum_length")),
            precision=_to_int(row.get("numeric_precision")),
            scale=_to_int(row.get("numeric_scale")),
            is_auto_increment="auto_increment" in extra.lower(),
            column_key=row.get("column_key") or "",
            extra=extra,
            semantic_kind=classify(name, data_type, column_type),
        )

    @staticmethod
    def _build_index(row: Dict[str, Any]) -> IndexDescriptor:
        columns = row.get("columns") or ""
        if isinstance(columns, str):
            columns = [c for c in columns.split(",") if c]
        return IndexDescriptor(
            name=row["index_name"],
            is_unique=not bool(int(row.get("non_unique") or 0)),
            columns=tuple(columns),
        )

    @staticmethod
    def _drop_dangling_foreign_keys(tables: List[TableDescriptor]) -> List[TableDescriptor]:
        """Keep only foreign keys whose referenced table was read."""
        known = {table.name for table in tables}
        result = []
        for table in tables:
            kept = tuple(fk for fk in table.foreign_keys if fk.referenced_table in known)
            if len(kept) != len(table.foreign_keys):
                dropped = [fk.referenced_table for fk in table.foreign_keys if fk.referenced_table not in known]
                logger.warning(f"Ignoring foreign keys of {table.name} to unread tables: {dropped}")
                table = replace(table, foreign_keys=kept)
            result.append(table)
        return result
