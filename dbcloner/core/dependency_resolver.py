"""Dependency resolution for table creation ordering."""

import logging
from typing import Dict, List, Sequence
from collections import defaultdict

import click

from .models import CreationPlan, ForeignKeyEdge, TableDescriptor

logger = logging.getLogger(__name__)


class DependencyResolver:
    """Resolves foreign-key dependencies between tables into a creation order."""

    def __init__(self, tables: Sequence[TableDescriptor]):
        self.tables = list(tables)
        self.table_names = [table.name for table in self.tables]
        self.edges = [edge for table in self.tables for edge in table.foreign_keys]
        self.dependencies = self._build_dependency_graph(self.table_names, self.edges)
        self.reverse_dependencies: Dict[str, List[str]] = defaultdict(list)
        for table, deps in self.dependencies.items():
            for dep in deps:
                self.reverse_dependencies[dep].append(table)

    @staticmethod
    def _build_dependency_graph(table_names: Sequence[str],
                                edges: Sequence[ForeignKeyEdge]) -> Dict[str, List[str]]:
        """table -> referenced tables, excluding self references, in edge order."""
        graph: Dict[str, List[str]] = {name: [] for name in table_names}
        for edge in edges:
            if edge.is_self_reference or edge.table not in graph:
                continue
            if edge.referenced_table not in graph:
                logger.debug(f"Skipping edge {edge.table}.{edge.column} to unknown table {edge.referenced_table}")
                continue
            if edge.referenced_table not in graph[edge.table]:
                graph[edge.table].append(edge.referenced_table)
        return graph

    @classmethod
    def order(cls, table_names: Sequence[str], edges: Sequence[ForeignKeyEdge]) -> List[str]:
        """Creation order: referenced tables before the tables that depend on them.

        Tables left over when a pass admits nothing (a cycle) are appended in
        their current relative order.
        """
        ordered, _, _ = cls._layered_sort(table_names, edges)
        return ordered

    @classmethod
    def _layered_sort(cls, table_names: Sequence[str], edges: Sequence[ForeignKeyEdge]):
        graph = cls._build_dependency_graph(table_names, edges)
        ordered: List[str] = []
        placed = set()
        rounds: List[List[str]] = []
        remaining = list(table_names)

        while remaining:
            admitted = []
            for table in remaining:
                if all(dep in placed for dep in graph[table]):
                    ordered.append(table)
                    placed.add(table)
                    admitted.append(table)

            if not admitted:
                logger.warning(f"Circular dependencies detected in tables: {remaining}")
                ordered.extend(remaining)
                return ordered, rounds, list(remaining)

            rounds.append(admitted)
            remaining = [table for table in remaining if table not in placed]

        return ordered, rounds, []

    def get_dependency_graph(self) -> Dict[str, List[str]]:
        """Get simplified dependency graph (table -> [dependencies])."""
        return {table: list(deps) for table, deps in self.dependencies.items()}

    def detect_circular_dependencies(self) -> List[List[str]]:
        """Detect dependency cycles using DFS, reporting each cycle once."""
        visited = set()
        on_stack: List[str] = []
        cycles: List[List[str]] = []
        seen_cycles = set()

        def dfs(table: str) -> None:
            visited.add(table)
            on_stack.append(table)

            for dep in self.dependencies.get(table, []):
                if dep in on_stack:
                    cycle = on_stack[on_stack.index(dep):]
                    key = frozenset(cycle)
                    if key not in seen_cycles:
                        seen_cycles.add(key)
                        cycles.append(list(cycle))
                elif dep not in visited:
                    dfs(dep)

            on_stack.pop()

        for table in self.table_names:
            if table not in visited:
                dfs(table)

        return cycles

    def create_creation_plan(self) -> CreationPlan:
        """Create a complete creation plan."""
        creation_order, rounds, cyclic = self._layered_sort(self.table_names, self.edges)
        self_referencing = sorted({edge.table for edge in self.edges if edge.is_self_reference})

        return CreationPlan(
            creation_order=creation_order,
            rounds=rounds,
            dependency_graph=self.get_dependency_graph(),
            cyclic_tables=cyclic,
            self_referencing_tables=self_referencing,
        )

    def get_dependent_tables(self, table_name: str) -> List[str]:
        """Get tables that depend on the given table."""
        return list(self.reverse_dependencies.get(table_name, []))


def print_creation_plan(plan: CreationPlan, cycles: Sequence[Sequence[str]] = (),
                        title: str = "Table Creation Plan") -> None:
    """Pretty print a creation plan."""
    click.echo(title.upper())
    click.echo("=" * 70)
    click.echo()

    click.echo("CREATION ORDER:")
    for i, batch in enumerate(plan.rounds, 1):
        if len(batch) == 1:
            click.echo(f"   {i:2d}. {batch[0]}")
        else:
            click.echo(f"   {i:2d}. Same round: {', '.join(batch)}")
    if plan.cyclic_tables:
        click.echo(f"   --. Unordered (cycle): {', '.join(plan.cyclic_tables)}")

    click.echo()
    click.echo("DEPENDENCY SUMMARY:")
    for table, deps in sorted(plan.dependency_graph.items()):
        if deps:
            click.echo(f"   {table:<25} -> {', '.join(deps)}")

    if cycles:
        click.echo()
        click.echo("CIRCULAR DEPENDENCIES DETECTED:")
        for i, cycle in enumerate(cycles, 1):
            cycle_str = " -> ".join(list(cycle) + [cycle[0]])
            click.echo(f"   {i}. {cycle_str}")

    if plan.self_referencing_tables:
        click.echo()
        click.echo("SELF-REFERENCING TABLES:")
        click.echo(f"   {', '.join(plan.self_referencing_tables)}")

    independent = [table for table, deps in plan.dependency_graph.items() if not deps]
    if independent:
        click.echo()
        click.echo("INDEPENDENT TABLES (no dependencies):")
        click.echo(f"   {', '.join(independent)}")
