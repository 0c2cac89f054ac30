"""End-to-end pipeline: read schema, order tables, emit script or documentation."""

import logging
from typing import List, Optional

from .assembler import ScriptAssembler
from .catalog import CatalogSource
from .dependency_resolver import DependencyResolver
from .documenter import SchemaDocumenter
from .exceptions import SchemaEmptyError
from .generator import ValueGenerator
from .models import CloneConfig, CloneResult, CreationPlan, TableDescriptor
from .reader import SchemaReader


logger = logging.getLogger(__name__)


class DatabaseCloner:
    """Runs one clone or documentation pass over a database.

    The schema is read once and held for the lifetime of the object. File
    writing is left to the caller.
    """

    def __init__(self, catalog: CatalogSource, database_name: str,
                 config: Optional[CloneConfig] = None,
                 generator: Optional[ValueGenerator] = None,
                 show_progress: bool = False):
        self.catalog = catalog
        self.database_name = database_name
        self.config = config or CloneConfig()
        self.generator = generator
        self.show_progress = show_progress
        self._tables: Optional[List[TableDescriptor]] = None

    def analyze(self) -> List[TableDescriptor]:
        """Read the schema; an empty database yields an empty list."""
        if self._tables is None:
            reader = SchemaReader(self.catalog, self.config)
            try:
                self._tables = reader.read_schema(self.database_name)
            except SchemaEmptyError as e:
                logger.warning(f"{e}; producing empty output")
                self._tables = []
        return self._tables

    def plan(self) -> CreationPlan:
        return DependencyResolver(self.analyze()).create_creation_plan()

    def generate_clone_script(self) -> CloneResult:
        """Step through analysis, ordering and generation; return the script."""
        logger.info("Step 1: Analyzing database structure")
        tables = self.analyze()

        logger.info("Step 2: Determining table creation order")
        edges = [edge for table in tables for edge in table.foreign_keys]
        creation_order = DependencyResolver.order([table.name for table in tables], edges)
        logger.info(f"Table creation order: {', '.join(creation_order) or '(none)'}")

        logger.info("Step 3: Generating SQL script with dummy data")
        assembler = ScriptAssembler(
            self.database_name, self.config,
            generator=self.generator, show_progress=self.show_progress,
        )
        script = assembler.assemble(creation_order, tables, self.config.records_per_table)

        return CloneResult(
            script=script,
            database_name=self.database_name,
            clone_database_name=assembler.clone_database_name,
            tables_count=len(tables),
            total_records=len(tables) * self.config.records_per_table,
            creation_order=creation_order,
        )

    def generate_documentation(self, include_samples: Optional[bool] = None) -> str:
        """Markdown structure documentation; samples only when the caller allows them."""
        if include_samples is None:
            include_samples = self.config.include_sample_data
        documenter = SchemaDocumenter(self.database_name, self.catalog, self.config.sample_rows)
        return documenter.document(self.analyze(), include_samples=include_samples)
