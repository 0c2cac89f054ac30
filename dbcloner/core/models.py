"""Data models for schema representation and configuration."""

import logging
from typing import List, Dict, Any, Optional, Tuple
from enum import Enum
from dataclasses import dataclass, field
from pydantic import BaseModel, Field, validator


logger = logging.getLogger(__name__)


class SemanticKind(Enum):
    """Real-world meaning inferred for a column, used to pick a value generator."""
    EMAIL = "email"
    FIRST_NAME = "first_name"
    LAST_NAME = "last_name"
    FULL_NAME = "full_name"
    GENERIC_NAME = "name"
    PHONE = "phone"
    ADDRESS = "address"
    CITY = "city"
    STATE = "state"
    ZIPCODE = "zipcode"
    COMPANY = "company"
    URL = "url"
    BIRTH_DATE = "birthdate"
    LOREM_PARAGRAPH = "lorem_paragraph"
    LOREM_TITLE = "lorem_title"
    PASSWORD_HASH = "password_hash"
    ENUM = "enum"
    LOREM_TEXT = "lorem_text"
    INTEGER = "integer"
    DECIMAL = "decimal"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"


@dataclass(frozen=True)
class ColumnDescriptor:
    """Information about a database column as reported by the catalog."""
    name: str
    data_type: str
    column_type: str
    is_nullable: bool = True
    default_value: Optional[str] = None
    max_length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    is_auto_increment: bool = False
    column_key: str = ""
    extra: str = ""
    semantic_kind: SemanticKind = SemanticKind.LOREM_TEXT

    @property
    def is_unsigned(self) -> bool:
        return "unsigned" in self.column_type.lower()


@dataclass(frozen=True)
class ForeignKeyEdge:
    """A single-column foreign key: (table, column) -> (referenced table, column)."""
    table: str
    column: str
    referenced_table: str
    referenced_column: str
    constraint_name: Optional[str] = None

    @property
    def is_self_reference(self) -> bool:
        return self.table == self.referenced_table


@dataclass(frozen=True)
class IndexDescriptor:
    """Information about a non-primary index."""
    name: str
    is_unique: bool = False
    columns: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TableDescriptor:
    """Complete information about a database table."""
    name: str
    columns: Tuple[ColumnDescriptor, ...] = ()
    primary_key: Tuple[str, ...] = ()
    foreign_keys: Tuple[ForeignKeyEdge, ...] = ()
    indexes: Tuple[IndexDescriptor, ...] = ()
    create_statement: str = ""

    def get_column(self, name: str) -> Optional[ColumnDescriptor]:
        """Get column by name."""
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def foreign_key_for(self, column_name: str) -> Optional[ForeignKeyEdge]:
        """Get the first foreign key edge leaving this table through a column."""
        for edge in self.foreign_keys:
            if edge.column == column_name:
                return edge
        return None

    @property
    def insertable_columns(self) -> List[ColumnDescriptor]:
        """Columns that appear in INSERT statements (auto-increment ones are skipped)."""
        return [column for column in self.columns if not column.is_auto_increment]

    @property
    def single_key_column(self) -> Optional[ColumnDescriptor]:
        """The primary key column when the key has exactly one column."""
        if len(self.primary_key) != 1:
            return None
        return self.get_column(self.primary_key[0])

    def has_single_auto_increment_key(self) -> bool:
        key_column = self.single_key_column
        return key_column is not None and key_column.is_auto_increment


@dataclass
class CreationPlan:
    """Plan for creating and filling tables in dependency order."""
    creation_order: List[str]
    rounds: List[List[str]]
    dependency_graph: Dict[str, List[str]]
    cyclic_tables: List[str] = field(default_factory=list)
    self_referencing_tables: List[str] = field(default_factory=list)

    @property
    def has_cycles(self) -> bool:
        return bool(self.cyclic_tables)


@dataclass
class CloneResult:
    """Outcome of one clone-script generation run."""
    script: str
    database_name: str
    clone_database_name: str = ""
    tables_count: int = 0
    total_records: int = 0
    creation_order: List[str] = field(default_factory=list)

    @property
    def file_size(self) -> int:
        return len(self.script.encode("utf-8"))


class CloneConfig(BaseModel):
    """Configuration for clone-script and documentation generation."""

    max_records_per_table: int = Field(
        default=10000, description="Upper bound applied to records_per_table"
    )
    records_per_table: int = Field(default=25, description="Rows generated for every table")
    seed: Optional[int] = Field(default=None, description="Random seed for reproducible data")
    clone_suffix: str = Field(default="_clone", description="Suffix of the clone database name")
    default_probability: float = Field(
        default=0.3, description="Probability of emitting a column's static default"
    )

    include_tables: Optional[List[str]] = Field(
        default=None, description="Tables to include (None = all)"
    )
    exclude_tables: List[str] = Field(
        default_factory=list, description="Tables to exclude"
    )

    include_sample_data: bool = Field(
        default=False, description="Show sample rows in the structure documentation"
    )
    sample_rows: int = Field(default=3, description="Sample rows shown per table")

    @validator("max_records_per_table")
    def validate_max_records(cls, v):
        if v < 1:
            raise ValueError("max_records_per_table must be a positive integer")
        return v

    @validator("records_per_table")
    def validate_records_per_table(cls, v, values):
        if v < 1:
            raise ValueError("records_per_table must be a positive integer")
        limit = values.get("max_records_per_table", 10000)
        if v > limit:
            logger.warning(f"records_per_table={v} exceeds the maximum of {limit}, clamping")
            return limit
        return v

    @validator("default_probability")
    def validate_probability(cls, v):
        if not 0.0 <= v <= 1.0:
            raise ValueError("default_probability must be between 0.0 and 1.0")
        return v

    @validator("sample_rows")
    def validate_sample_rows(cls, v):
        if v < 0:
            raise ValueError("sample_rows cannot be negative")
        return v

    def filter_tables(self, table_names: List[str]) -> List[str]:
        """Apply include/exclude lists, keeping the input order."""
        if self.include_tables:
            table_names = [t for t in table_names if t in self.include_tables]
        if self.exclude_tables:
            table_names = [t for t in table_names if t not in self.exclude_tables]
        return table_names

    def merged(self, overrides: Dict[str, Any]) -> "CloneConfig":
        """Return a new config with non-None overrides applied and re-validated."""
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return CloneConfig(**data)
