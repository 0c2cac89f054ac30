"""
JaySoft-DBCloner - Clone a MySQL database's structure with synthetic data.

This package provides tools to:
- Read a database schema from information_schema
- Document tables, columns, keys and indexes as Markdown
- Order tables by their foreign-key dependencies
- Generate a SQL script that recreates the schema with realistic dummy data
"""

__version__ = "1.0.0"
__author__ = "JaySoft Development"
__email__ = "info@jaysoft.dev"

from dbcloner.core.database import DatabaseConnection
from dbcloner.core.catalog import MySQLCatalog
from dbcloner.core.reader import SchemaReader
from dbcloner.core.cloner import DatabaseCloner

__all__ = [
    "DatabaseConnection",
    "MySQLCatalog",
    "SchemaReader",
    "DatabaseCloner",
]
