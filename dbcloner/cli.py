"""Command-line interface for DBCloner."""

import click
import logging
import sys
import time
import json
import yaml
from pathlib import Path
from typing import Dict, Any, Optional

from dbcloner.core.database import DatabaseConnection, DatabaseConfig
from dbcloner.core.catalog import MySQLCatalog
from dbcloner.core.cloner import DatabaseCloner
from dbcloner.core.dependency_resolver import DependencyResolver, print_creation_plan
from dbcloner.core.documenter import SchemaDocumenter
from dbcloner.core.models import CloneConfig


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def connection_options(func):
    """Attach the database connection options shared by every command."""
    options = [
        click.option('--host', '-h', required=True, envvar='DB_HOST', help='Database host [env DB_HOST]'),
        click.option('--port', '-p', type=int, default=3306, envvar='DB_PORT', show_default=True,
                     help='Database port [env DB_PORT]'),
        click.option('--database', '-d', required=True, envvar='DB_NAME', help='Database name [env DB_NAME]'),
        click.option('--username', '-u', required=True, envvar='DB_USER', help='Database username [env DB_USER]'),
        click.option('--password', default='', envvar='DB_PASS', help='Database password [env DB_PASS]'),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def load_config_file(config_path: str) -> Dict[str, Any]:
    """Load configuration from JSON or YAML file."""
    path = Path(config_path)

    with open(path, 'r') as f:
        if path.suffix.lower() == '.json':
            data = json.load(f)
        else:
            data = yaml.safe_load(f)

    data = data or {}
    # Accept both a bare mapping and one nested under "clone"
    return data.get('clone', data)


def build_clone_config(config: Optional[str], **overrides) -> CloneConfig:
    """Combine an optional config file with command-line overrides."""
    base = CloneConfig(**load_config_file(config)) if config else CloneConfig()
    return base.merged(overrides)


def _split(value: Optional[str]):
    return [item.strip() for item in value.split(',') if item.strip()] if value else None


def _connect(host: str, port: int, database: str, username: str, password: str) -> DatabaseConnection:
    db_config = DatabaseConfig(
        host=host,
        port=port,
        database=database,
        username=username,
        password=password,
    )
    return DatabaseConnection(db_config)


@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
def cli(verbose: bool, quiet: bool):
    """JaySoft-DBCloner - Clone a MySQL schema with realistic dummy data."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif quiet:
        logging.getLogger().setLevel(logging.ERROR)


@cli.command()
@connection_options
@click.option('--config', '-c', type=click.Path(exists=True), help='Configuration file (JSON/YAML)')
@click.option('--records', '-r', type=int, help='Number of records to generate per table (default: 25)')
@click.option('--seed', type=int, help='Random seed for reproducible data')
@click.option('--include-tables', help='Comma-separated list of tables to include')
@click.option('--exclude-tables', help='Comma-separated list of tables to exclude')
@click.option('--output', '-o', type=click.Path(), default='database_clone.sql', show_default=True,
              help='Output SQL script')
def clone(host: str, port: int, database: str, username: str, password: str,
          config: Optional[str], records: Optional[int], seed: Optional[int],
          include_tables: Optional[str], exclude_tables: Optional[str], output: str):
    """Generate a SQL script recreating the database with dummy data."""
    try:
        clone_config = build_clone_config(
            config,
            records_per_table=records,
            seed=seed,
            include_tables=_split(include_tables),
            exclude_tables=_split(exclude_tables),
        )

        click.echo("Database Cloner with Dummy Data Generator")
        click.echo("=" * 60)
        click.echo(f"  Source Database: {database}")
        click.echo(f"  Records per table: {clone_config.records_per_table}")
        click.echo(f"  Output: {output}")

        start_time = time.time()
        with _connect(host, port, database, username, password) as db_conn:
            cloner = DatabaseCloner(MySQLCatalog(db_conn, database), database, clone_config,
                                    show_progress=True)
            result = cloner.generate_clone_script()

        output_path = Path(output)
        output_path.write_text(result.script, encoding='utf-8')

        click.echo(f"\n✅ SUCCESS in {time.time() - start_time:.2f}s")
        click.echo(f"  Output file: {output_path}")
        click.echo(f"  Tables cloned: {result.tables_count}")
        click.echo(f"  Total dummy records: {result.total_records:,}")
        click.echo(f"  File size: {result.file_size:,} bytes")
        click.echo(f"  Table creation order: {', '.join(result.creation_order)}")
        click.echo("\nNext steps:")
        click.echo("  1. Review the generated SQL file")
        click.echo(f"  2. Import: mysql -u root -p < {output_path}")
        click.echo(f"  3. Your cloned database will be: {result.clone_database_name}")

    except Exception as e:
        click.echo(f"\n❌ Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@connection_options
@click.option('--config', '-c', type=click.Path(exists=True), help='Configuration file (JSON/YAML)')
@click.option('--include-samples/--no-include-samples', default=None,
              help='Include live sample rows in the documentation')
@click.option('--sample-rows', type=int, help='Sample rows shown per table (default: 3)')
@click.option('--include-tables', help='Comma-separated list of tables to include')
@click.option('--exclude-tables', help='Comma-separated list of tables to exclude')
@click.option('--output', '-o', type=click.Path(), default='database_structure.md', show_default=True,
              help='Output file (.md, or .json/.yaml for a structure export)')
def document(host: str, port: int, database: str, username: str, password: str,
             config: Optional[str], include_samples: Optional[bool], sample_rows: Optional[int],
             include_tables: Optional[str], exclude_tables: Optional[str], output: str):
    """Write structure documentation for the database."""
    try:
        clone_config = build_clone_config(
            config,
            include_sample_data=include_samples,
            sample_rows=sample_rows,
            include_tables=_split(include_tables),
            exclude_tables=_split(exclude_tables),
        )

        click.echo("🔍 Analyzing database schema...")
        output_path = Path(output)
        with _connect(host, port, database, username, password) as db_conn:
            cloner = DatabaseCloner(MySQLCatalog(db_conn, database), database, clone_config)
            tables = cloner.analyze()

            suffix = output_path.suffix.lower()
            if suffix in ('.json', '.yaml', '.yml'):
                structure = SchemaDocumenter(database).to_dict(tables)
                with open(output_path, 'w') as f:
                    if suffix == '.json':
                        json.dump(structure, f, indent=2, default=str)
                    else:
                        yaml.dump(structure, f, default_flow_style=False, sort_keys=False)
            else:
                output_path.write_text(cloner.generate_documentation(), encoding='utf-8')

        click.echo(f"\n📊 Documented {len(tables)} tables")
        click.echo(f"💾 Saved to: {output_path}")

    except Exception as e:
        click.echo(f"\n❌ Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@connection_options
@click.option('--include-tables', help='Comma-separated list of tables to include')
@click.option('--exclude-tables', help='Comma-separated list of tables to exclude')
def plan(host: str, port: int, database: str, username: str, password: str,
         include_tables: Optional[str], exclude_tables: Optional[str]):
    """Show the dependency-ordered table creation plan."""
    try:
        clone_config = CloneConfig(
            include_tables=_split(include_tables),
            exclude_tables=_split(exclude_tables) or [],
        )
        with _connect(host, port, database, username, password) as db_conn:
            cloner = DatabaseCloner(MySQLCatalog(db_conn, database), database, clone_config)
            tables = cloner.analyze()

        resolver = DependencyResolver(tables)
        print_creation_plan(resolver.create_creation_plan(), resolver.detect_circular_dependencies())

    except Exception as e:
        click.echo(f"\n❌ Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--output', '-o', type=click.Path(), default='dbcloner_config.yaml',
              help='Output configuration file path')
def init_config(output: str):
    """Create a sample configuration file."""
    config_template = {
        'clone': {
            'records_per_table': 25,
            'max_records_per_table': 10000,
            'seed': 42,
            'clone_suffix': '_clone',
            'default_probability': 0.3,
            'include_tables': None,
            'exclude_tables': ['audit_log'],
            'include_sample_data': False,
            'sample_rows': 3,
        }
    }

    output_path = Path(output)
    with open(output_path, 'w') as f:
        yaml.dump(config_template, f, default_flow_style=False, indent=2, sort_keys=False)

    click.echo(f"✅ Configuration template created: {output_path}")
    click.echo("Edit this file to customize clone generation settings.")


def main():
    """Main entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
