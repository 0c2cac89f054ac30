"""Tests for clone-script assembly."""

import pytest
from datetime import datetime

from dbcloner.core.assembler import ScriptAssembler
from dbcloner.core.dependency_resolver import DependencyResolver
from dbcloner.core.generator import KeyPoolRegistry, ValueGenerator
from dbcloner.core.models import CloneConfig
from dbcloner.core.reader import SchemaReader


NOW = datetime(2026, 10, 19, 12, 0, 0)


def order_of(tables):
    edges = [edge for table in tables for edge in table.foreign_keys]
    return DependencyResolver.order([t.name for t in tables], edges)


@pytest.fixture
def assembler():
    generator = ValueGenerator(seed=5, now=NOW)
    return ScriptAssembler("shop", CloneConfig(records_per_table=10), generator=generator)


class TestScriptLayout:
    """Header, per-table blocks and footer."""

    def test_foreign_key_checks_wrap_script(self, assembler, shop_tables):
        script = assembler.assemble(order_of(shop_tables), shop_tables)
        lines = script.splitlines()
        disable = lines.index("SET FOREIGN_KEY_CHECKS = 0;")
        enable = lines.index("SET FOREIGN_KEY_CHECKS = 1;")
        statements = [i for i, line in enumerate(lines)
                      if line.startswith(("DROP TABLE", "CREATE TABLE", "INSERT INTO"))]
        assert disable < min(statements)
        assert enable > max(statements)

    def test_header(self, assembler, shop_tables):
        script = assembler.assemble(order_of(shop_tables), shop_tables)
        assert "-- Generated: 2026-10-19 12:00:00" in script
        assert "SET SQL_MODE = 'NO_AUTO_VALUE_ON_ZERO';" in script
        assert "CREATE DATABASE IF NOT EXISTS `shop_clone`" in script
        assert "USE `shop_clone`;" in script

    def test_table_blocks_follow_creation_order(self, assembler, shop_tables):
        script = assembler.assemble(["customers", "orders"], shop_tables)
        customers_drop = script.index("DROP TABLE IF EXISTS `customers`;")
        customers_insert = script.index("INSERT INTO `customers`")
        orders_drop = script.index("DROP TABLE IF EXISTS `orders`;")
        orders_insert = script.index("INSERT INTO `orders`")
        assert customers_drop < customers_insert < orders_drop < orders_insert

    def test_ddl_verbatim_with_semicolon(self, assembler, shop_tables):
        script = assembler.assemble(order_of(shop_tables), shop_tables)
        assert shop_tables[0].create_statement + ";" in script

    def test_footer_summary(self, assembler, shop_tables):
        script = assembler.assemble(order_of(shop_tables), shop_tables)
        assert script.rstrip().endswith("-- Total records: 20")
        assert "-- Total tables: 2" in script

    def test_empty_order_is_still_valid(self, assembler):
        script = assembler.assemble([], [])
        assert "SET FOREIGN_KEY_CHECKS = 0;" in script
        assert "SET FOREIGN_KEY_CHECKS = 1;" in script
        assert "INSERT INTO" not in script

    def test_unknown_table_in_order_is_skipped(self, assembler, shop_tables):
        script = assembler.assemble(["customers", "ghost", "orders"], shop_tables)
        assert "`ghost`" not in script


class TestInserts:
    """Row counts and referential consistency of generated rows."""

    def test_row_counts_and_auto_increment_omitted(self, assembler, shop_tables, parse_inserts):
        rows = parse_inserts(assembler.assemble(order_of(shop_tables), shop_tables))
        assert len(rows["customers"]) == 10
        assert len(rows["orders"]) == 10
        assert all("id" not in row for row in rows["customers"] + rows["orders"])

    def test_foreign_keys_point_at_generated_rows(self, shop_tables, parse_inserts):
        for seed in range(5):
            generator = ValueGenerator(seed=seed, now=NOW)
            assembler = ScriptAssembler("shop", CloneConfig(records_per_table=10), generator=generator)
            rows = parse_inserts(assembler.assemble(order_of(shop_tables), shop_tables))
            assert {int(r["customer_id"]) for r in rows["orders"]} <= set(range(1, 11))

    def test_enum_and_defaults(self, shop_tables, parse_inserts):
        generator = ValueGenerator(seed=11, now=NOW, default_probability=1.0)
        assembler = ScriptAssembler("shop", CloneConfig(records_per_table=5), generator=generator)
        rows = parse_inserts(assembler.assemble(order_of(shop_tables), shop_tables))
        assert {r["created_at"] for r in rows["customers"]} == {"NOW()"}
        assert {r["status"] for r in rows["orders"]} <= {"'pending'", "'shipped'", "'it''s done'"}

    def test_same_seed_same_script(self, shop_tables):
        scripts = {
            ScriptAssembler("shop", CloneConfig(records_per_table=8),
                            generator=ValueGenerator(seed=123, now=NOW)).assemble(order_of(shop_tables), shop_tables)
            for _ in range(2)
        }
        assert len(scripts) == 1

    def test_cycle_uses_placeholder_keys(self, cyclic_catalog, parse_inserts):
        tables = SchemaReader(cyclic_catalog).read_schema("library")
        assembler = ScriptAssembler("library", CloneConfig(records_per_table=4),
                                    generator=ValueGenerator(seed=2, now=NOW))
        rows = parse_inserts(assembler.assemble(order_of(tables), tables))

        # authors is filled before books exists, so its references are placeholders
        assert {int(r["favourite_book_id"]) for r in rows["authors"]} <= {1, 2, 3, 4}
        assert {int(r["author_id"]) for r in rows["books"]} <= {1, 2, 3, 4}
        assert {int(r["parent_id"]) for r in rows["categories"]} <= {1, 2, 3, 4}

    def test_auto_increment_only_table(self, make_table, make_column):
        table = make_table("tokens", [make_column("id", "int", is_auto_increment=True)])
        statements = ScriptAssembler.insert_statements(
            table, 3, ValueGenerator(seed=1, now=NOW), KeyPoolRegistry(3)
        )
        assert statements == ["INSERT INTO `tokens` () VALUES ();"] * 3


class TestRecordCount:
    """Clamping of records per table."""

    def test_clamped_to_maximum(self, shop_tables, parse_inserts):
        config = CloneConfig(max_records_per_table=3)
        assembler = ScriptAssembler("shop", config, generator=ValueGenerator(seed=1, now=NOW))
        rows = parse_inserts(assembler.assemble(order_of(shop_tables), shop_tables, records_per_table=50))
        assert len(rows["customers"]) == 3

    @pytest.mark.parametrize("records", [0, -5])
    def test_non_positive_rejected(self, assembler, shop_tables, records):
        with pytest.raises(ValueError):
            assembler.assemble(order_of(shop_tables), shop_tables, records_per_table=records)

    def test_custom_suffix(self, shop_tables):
        assembler = ScriptAssembler("shop", CloneConfig(clone_suffix="_copy"),
                                    generator=ValueGenerator(seed=1, now=NOW))
        assert assembler.clone_database_name == "shop_copy"
        assert "USE `shop_copy`;" in assembler.assemble(order_of(shop_tables), shop_tables, 1)
