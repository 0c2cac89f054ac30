"""SQL clone-script assembly in dependency order."""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence
from tqdm import tqdm

from .generator import KeyPoolRegistry, ValueGenerator, quote_identifier
from .models import CloneConfig, TableDescriptor


logger = logging.getLogger(__name__)


class ScriptAssembler:
    """Builds a script that recreates tables and fills them with synthetic rows."""

    def __init__(self, database_name: str, config: Optional[CloneConfig] = None,
                 generator: Optional[ValueGenerator] = None, show_progress: bool = False):
        self.database_name = database_name
        self.config = config or CloneConfig()
        self.generator = generator
        self.show_progress = show_progress

    @property
    def clone_database_name(self) -> str:
        return f"{self.database_name}{self.config.clone_suffix}"

    def assemble(self, order: Sequence[str], tables: Sequence[TableDescriptor],
                 records_per_table: Optional[int] = None) -> str:
        """Return the complete clone script for tables in creation order."""
        records = self._clamp_records(records_per_table)
        table_map: Dict[str, TableDescriptor] = {table.name: table for table in tables}
        generator = self.generator or ValueGenerator(
            records_per_table=records,
            seed=self.config.seed,
            default_probability=self.config.default_probability,
        )
        generator.records_per_table = records
        key_pools = KeyPoolRegistry(records)

        logger.info(f"Assembling clone script for {len(order)} tables, {records} records each")

        sql = self._header(records, generator.now)
        for table_name in tqdm(order, desc="Generating tables", disable=not self.show_progress):
            table = table_map.get(table_name)
            if table is None:
                logger.warning(f"Table {table_name} is in the creation order but was not read, skipping")
                continue
            sql.extend(self._structure_block(table))
            sql.append(f"-- Dummy data for table {quote_identifier(table.name)}")
            sql.extend(self.insert_statements(table, records, generator, key_pools))
            sql.append("")

        sql.extend(self._footer(len(order), records))
        return "\n".join(sql)

    def _clamp_records(self, records_per_table: Optional[int]) -> int:
        records = self.config.records_per_table if records_per_table is None else records_per_table
        if records < 1:
            raise ValueError("records_per_table must be a positive integer")
        if records > self.config.max_records_per_table:
            logger.warning(
                f"records_per_table={records} exceeds the maximum of "
                f"{self.config.max_records_per_table}, clamping"
            )
            records = self.config.max_records_per_table
        return records

    def _header(self, records: int, generated_at: datetime) -> List[str]:
        clone_db = quote_identifier(self.clone_database_name)
        return [
            "-- Database Clone Script with Dummy Data",
            f"-- Generated: {generated_at.strftime('%Y-%m-%d %H:%M:%S')}",
            f"-- Original Database: {self.database_name}",
            f"-- Records per table: {records}",
            "",
            "SET FOREIGN_KEY_CHECKS = 0;",
            "SET SQL_MODE = 'NO_AUTO_VALUE_ON_ZERO';",
            "SET time_zone = '+00:00';",
            "",
            "-- Create database",
            f"CREATE DATABASE IF NOT EXISTS {clone_db} "
            "DEFAULT CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;",
            f"USE {clone_db};",
            "",
        ]

    @staticmethod
    def _structure_block(table: TableDescriptor) -> List[str]:
        quoted = quote_identifier(table.name)
        return [
            f"-- Table structure for table {quoted}",
            f"DROP TABLE IF EXISTS {quoted};",
            table.create_statement.rstrip().rstrip(";") + ";",
            "",
        ]

    def _footer(self, tables_count: int, records: int) -> List[str]:
        return [
            "SET FOREIGN_KEY_CHECKS = 1;",
            "",
            "-- Clone complete!",
            f"-- Database: {self.clone_database_name}",
            f"-- Total tables: {tables_count}",
            f"-- Total records: {tables_count * records}",
        ]

    @staticmethod
    def insert_statements(table: TableDescriptor, records: int, generator: ValueGenerator,
                          key_pools: KeyPoolRegistry) -> List[str]:
        """INSERT statements for one table; row indexes are 1-based."""
        quoted_table = quote_identifier(table.name)
        columns = table.insertable_columns
        column_list = ", ".join(quote_identifier(column.name) for column in columns)

        statements = []
        for row_index in range(1, records + 1):
            values = generator.generate_row(table, row_index, key_pools)
            statements.append(
                f"INSERT INTO {quoted_table} ({column_list}) VALUES ({', '.join(values)});"
            )

        logger.debug(f"Generated {len(statements)} INSERT statements for {table.name}")
        return statements
