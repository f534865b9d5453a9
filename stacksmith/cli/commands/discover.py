"""
CLI commands that inspect a construct tree without building it.

- discover: every construct found, where it lives and its route path
- graph: declared dependencies as Graphviz DOT
"""

import asyncio
import os
from typing import List

import click

from stacksmith.builder import ConstructBuilder, DiscoveredConstruct
from stacksmith.graph import DependencyGraph
from ..utils.colors import banner, dim, kv, table, success, warning, _CHECK


def discover_constructs(builder: ConstructBuilder) -> List[DiscoveredConstruct]:
    discovered = asyncio.run(builder.discover())
    return sorted(discovered, key=lambda item: (item.directory.abs_path, item.factory.id))


def print_discovery(builder: ConstructBuilder, discovered: List[DiscoveredConstruct], verbose: bool = False) -> None:
    """Print a summary table of discovered constructs."""
    root = os.path.abspath(builder.root_path)

    banner("Construct Discovery")
    kv("Root", root)
    kv("Constructs", str(len(discovered)))
    click.echo()

    if not discovered:
        warning(f"  No construct factories found under {root}")
        return

    table(
        headers=["Construct", "Factory", "Directory", "Route"],
        rows=[
            (
                item.factory.id,
                type(item.factory).__name__,
                os.path.relpath(item.directory.abs_path, root),
                item.directory.get_route_path(root),
            )
            for item in discovered
        ],
    )
    click.echo()

    if verbose:
        for item in discovered:
            if item.factory.depends_on:
                deps = ", ".join(dep.id for dep in item.factory.depends_on)
                dim(f"  {item.factory.id} depends on {deps}")
        click.echo()

    success(f"  {_CHECK} Discovery complete")


def render_graph(discovered: List[DiscoveredConstruct]) -> str:
    """DOT source for the declared dependencies; raises on cycles."""
    graph = DependencyGraph(item.factory for item in discovered)
    graph.check()
    return graph.export_dot()
