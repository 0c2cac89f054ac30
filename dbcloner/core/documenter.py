"""Markdown structure documentation for a read schema."""

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from .catalog import CatalogSource
from .dependency_resolver import DependencyResolver
from .models import TableDescriptor


logger = logging.getLogger(__name__)

MAX_CELL_LENGTH = 50


def _anchor(name: str) -> str:
    return "table-" + re.sub(r"[^a-z0-9_-]+", "-", name.lower()).strip("-")


def _cell(value: Any) -> str:
    if value is None:
        return "NULL"
    text = str(value).replace("\n", " ").replace("|", "\\|")
    if len(text) > MAX_CELL_LENGTH:
        text = text[:MAX_CELL_LENGTH - 3] + "..."
    return text


class SchemaDocumenter:
    """Renders tables, columns, keys and optional sample rows as Markdown.

    Whether live sample rows may be shown is decided by the caller and passed
    in as ``include_samples``; fetching samples for one table may fail without
    aborting the document.
    """

    def __init__(self, database_name: str, catalog: Optional[CatalogSource] = None,
                 sample_rows: int = 3):
        self.database_name = database_name
        self.catalog = catalog
        self.sample_rows = sample_rows

    def document(self, tables: Sequence[TableDescriptor], include_samples: bool = False,
                 generated_at: Optional[datetime] = None) -> str:
        generated_at = generated_at or datetime.now()
        resolver = DependencyResolver(tables)
        plan = resolver.create_creation_plan()

        lines = self._header(tables, generated_at, include_samples)
        lines.extend(self._table_of_contents(tables))

        lines.append("## Creation Order")
        lines.append("")
        if plan.creation_order:
            lines.append(" -> ".join(f"`{name}`" for name in plan.creation_order))
        else:
            lines.append("_No tables._")
        if plan.cyclic_tables:
            lines.append("")
            lines.append(f"Tables in a dependency cycle: {', '.join(plan.cyclic_tables)}")
        lines.append("")

        for table in tables:
            lines.extend(self._table_section(table, resolver.get_dependent_tables(table.name)))
            if include_samples:
                lines.extend(self._sample_section(table))
            lines.append("---")
            lines.append("")

        logger.info(f"Documented {len(tables)} tables (samples {'on' if include_samples else 'off'})")
        return "\n".join(lines)

    def _header(self, tables: Sequence[TableDescriptor], generated_at: datetime,
                include_samples: bool) -> List[str]:
        column_count = sum(len(table.columns) for table in tables)
        fk_count = sum(len(table.foreign_keys) for table in tables)
        return [
            f"# Database Structure: {self.database_name}",
            "",
            f"- **Generated:** {generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
            f"- **Tables:** {len(tables)}",
            f"- **Columns:** {column_count}",
            f"- **Foreign keys:** {fk_count}",
            f"- **Sample data:** {'included' if include_samples else 'not included'}",
            "",
        ]

    @staticmethod
    def _table_of_contents(tables: Sequence[TableDescriptor]) -> List[str]:
        lines = ["## Table of Contents", ""]
        for table in tables:
            lines.append(f"- [{table.name}](#{_anchor(table.name)}) ({len(table.columns)} columns)")
        lines.append("")
        return lines

    @staticmethod
    def _table_section(table: TableDescriptor, referenced_by: List[str]) -> List[str]:
        lines = [
            f'<a id="{_anchor(table.name)}"></a>',
            f"## {table.name}",
            "",
            "| # | Column | Type | Nullable | Default | Key | Extra | Semantic kind |",
            "|---|--------|------|----------|---------|-----|-------|---------------|",
        ]
        for position, column in enumerate(table.columns, 1):
            lines.append(
                f"| {position} | {_cell(column.name)} | {_cell(column.column_type)} | "
                f"{'YES' if column.is_nullable else 'NO'} | {_cell(column.default_value)} | "
                f"{_cell(column.column_key)} | {_cell(column.extra)} | {column.semantic_kind.value} |"
            )
        lines.append("")

        primary_key = ", ".join(table.primary_key) if table.primary_key else "_none_"
        lines.append(f"**Primary key:** {primary_key}")
        lines.append("")

        if table.foreign_keys:
            lines.append("**Foreign keys:**")
            for fk in table.foreign_keys:
                name = f" ({fk.constraint_name})" if fk.constraint_name else ""
                lines.append(f"- `{fk.column}` -> `{fk.referenced_table}.{fk.referenced_column}`{name}")
            lines.append("")

        if referenced_by:
            lines.append(f"**Referenced by:** {', '.join(referenced_by)}")
            lines.append("")

        if table.indexes:
            lines.append("**Indexes:**")
            for index in table.indexes:
                kind = "UNIQUE" if index.is_unique else "INDEX"
                lines.append(f"- {kind} `{index.name}` ({', '.join(index.columns)})")
            lines.append("")

        return lines

    def _sample_section(self, table: TableDescriptor) -> List[str]:
        lines = [f"**Sample data** (up to {self.sample_rows} rows):", ""]
        rows: List[Sequence[Any]] = []
        names: List[str] = []

        if self.catalog is not None and self.sample_rows > 0:
            try:
                names, rows = self.catalog.get_sample_rows(table.name, self.sample_rows)
            except Exception as e:
                logger.warning(f"Could not fetch sample data for {table.name}: {e}")
                rows = []

        if not rows:
            lines.append("_No sample data available._")
            lines.append("")
            return lines

        lines.append("| " + " | ".join(_cell(name) for name in names) + " |")
        lines.append("|" + "|".join("---" for _ in names) + "|")
        for row in rows[:self.sample_rows]:
            lines.append("| " + " | ".join(_cell(value) for value in row) + " |")
        lines.append("")
        return lines

    def to_dict(self, tables: Sequence[TableDescriptor]) -> Dict[str, Any]:
        """Structure summary suitable for JSON or YAML export."""
        return {
            "database_name": self.database_name,
            "creation_order": DependencyResolver(tables).create_creation_plan().creation_order,
            "tables": [
                {
                    "name": table.name,
                    "primary_key": list(table.primary_key),
                    "columns": [
                        {
                            "name": column.name,
                            "column_type": column.column_type,
                            "is_nullable": column.is_nullable,
                            "default": column.default_value,
                            "max_length": column.max_length,
                            "auto_increment": column.is_auto_increment,
                            "semantic_kind": column.semantic_kind.value,
                        }
                        for column in table.columns
                    ],
                    "foreign_keys": [
                        {
                            "column": fk.column,
                            "referenced_table": fk.referenced_table,
                            "referenced_column": fk.referenced_column,
                        }
                        for fk in table.foreign_keys
                    ],
                    "indexes": [
                        {"name": index.name, "unique": index.is_unique, "columns": list(index.columns)}
                        for index in table.indexes
                    ],
                }
                for table in tables
            ],
        }
