"""Database connection and management utilities."""

import logging
import os
from typing import Dict, Any, Optional
from sqlalchemy import create_engine, Engine, text
from sqlalchemy.exc import SQLAlchemyError
from pydantic import BaseModel, Field, validator


logger = logging.getLogger(__name__)


class DatabaseConfig(BaseModel):
    """Configuration model for database connections."""

    driver: str = Field(default="mysql", description="Database driver")
    host: str = Field(..., description="Database host")
    port: int = Field(default=3306, description="Database port")
    database: str = Field(..., description="Database name")
    username: str = Field(..., description="Database username")
    password: str = Field(default="", description="Database password")
    ssl_mode: Optional[str] = Field(default=None, description="SSL mode")
    charset: str = Field(default="utf8mb4", description="Character set")

    @validator("driver")
    def validate_driver(cls, v):
        supported_drivers = ["mysql"]
        if v not in supported_drivers:
            raise ValueError(f"Unsupported driver: {v}. Supported: {supported_drivers}")
        return v

    @validator("port")
    def validate_port(cls, v):
        if not 1 <= v <= 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "DatabaseConfig":
        """Build a configuration from DB_HOST, DB_PORT, DB_NAME, DB_USER and DB_PASS."""
        env = os.environ if environ is None else environ
        missing = [name for name in ("DB_HOST", "DB_NAME", "DB_USER") if not env.get(name)]
        if missing:
            raise ValueError(f"Missing environment variables: {', '.join(missing)}")

        return cls(
            host=env["DB_HOST"],
            port=int(env.get("DB_PORT") or 3306),
            database=env["DB_NAME"],
            username=env["DB_USER"],
            password=env.get("DB_PASS", ""),
        )


class DatabaseConnection:
    """Manages database connections and provides utilities for database operations."""

    def __init__(self, config: DatabaseConfig):
        """Initialize database connection with configuration."""
        self.config = config
        self._engine: Optional[Engine] = None

    def connect(self) -> None:
        """Establish connection to the database."""
        try:
            connection_url = self._build_connection_url()
            logger.info(f"Connecting to {self.config.driver} database at {self.config.host}:{self.config.port}")

            self._engine = create_engine(
                connection_url,
                echo=False,
                pool_pre_ping=True,
                pool_recycle=3600,
                connect_args=self._get_connect_args(),
            )

            # Test connection
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
                logger.info("Database connection established successfully")

        except SQLAlchemyError as e:
            logger.error(f"Failed to connect to database: {e}")
            raise ConnectionError(f"Database connection failed: {e}")

    def _build_connection_url(self) -> str:
        """Build SQLAlchemy connection URL from config."""
        if self.config.driver != "mysql":
            raise ValueError(f"Unsupported driver: {self.config.driver}")

        base_url = (
            f"mysql+pymysql://{self.config.username}:{self.config.password}"
            f"@{self.config.host}:{self.config.port}"
        )
        return f"{base_url}/{self.config.database}"

    def _get_connect_args(self) -> Dict[str, Any]:
        """Get driver-specific connection arguments."""
        args = {"charset": self.config.charset}
        if self.config.ssl_mode:
            args["ssl_mode"] = self.config.ssl_mode
        return args

    @property
    def engine(self) -> Engine:
        """Get the SQLAlchemy engine."""
        if self._engine is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._engine

    def execute_query(self, query: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Execute a raw SQL query and return results."""
        try:
            with self.engine.connect() as conn:
                result = conn.execute(text(query), params or {})
                return result.fetchall()
        except SQLAlchemyError as e:
            logger.error(f"Query execution failed: {e}")
            raise

    def test_connection(self) -> bool:
        """Test if the database connection is alive."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, RuntimeError):
            return False

    def close(self) -> None:
        """Close database connection and cleanup resources."""
        if self._engine:
            self._engine.dispose()
            self._engine = None
            logger.info("Database connection closed")

    @staticmethod
    def quote_identifier(identifier: str) -> str:
        """Quote a table or column name for MySQL."""
        return "`" + identifier.replace("`", "``") + "`"

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()


def create_database_connection(
    host: str,
    port: int,
    database: str,
    username: str,
    password: str,
    **kwargs
) -> DatabaseConnection:
    """Factory function to create a database connection."""
    config = DatabaseConfig(
        host=host,
        port=port,
        database=database,
        username=username,
        password=password,
        **kwargs
    )
    return DatabaseConnection(config)
