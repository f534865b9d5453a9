"""
CLI command that runs a full build for one scope.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import click

from stacksmith.builder import ConstructBuilder
from stacksmith.config import ConfigLoader
from stacksmith.factory import ResolutionState
from stacksmith.faults import ConfigInvalidFault
from stacksmith.scope import Scope
from ..utils.colors import banner, error, kv, table, success, _CHECK, _CROSS


def parse_assignments(assignments: Tuple[str, ...]) -> Dict[str, str]:
    """Turn ``("key=value", ...)`` into a dict."""
    props = {}
    for item in assignments:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ConfigInvalidFault(item, "expected key=value")
        props[key.strip()] = value
    return props


def load_build_config(
    root: str,
    config_files: Tuple[str, ...],
    env_file: Optional[str],
    assignments: Tuple[str, ...],
) -> Tuple[ConstructBuilder, Dict[str, Any]]:
    """Builder and configuration bag from config files, env and --set."""
    overrides = {}
    if assignments:
        overrides["props"] = parse_assignments(assignments)

    loader = ConfigLoader.load(
        paths=list(config_files),
        env_file=env_file,
        overrides=overrides,
    )
    builder = ConstructBuilder.from_config(loader.builder_config(root_path=root))
    return builder, loader.props()


async def run_build(
    builder: ConstructBuilder,
    scope: Scope,
    props: Dict[str, Any],
    timeout: Optional[float] = None,
) -> List[Any]:
    """
    Build, optionally under a watchdog.

    Constructs awaiting a dependency that is never initialized pend
    forever; ``timeout`` turns that into an ``asyncio.TimeoutError``.
    """
    if timeout is None:
        return await builder.build(scope, props)
    return await asyncio.wait_for(builder.build(scope, props), timeout)


def unresolved_constructs(builder: ConstructBuilder, scope: Scope) -> List[Tuple[str, str]]:
    """(id, state) for every discovered construct that has not resolved."""
    pending = []
    for item in builder.constructs or []:
        state = item.factory.state(scope)
        if state is not ResolutionState.RESOLVED:
            pending.append((item.factory.id, state.value if state else "not requested"))
    return pending


def print_build(scope: Scope, builder: ConstructBuilder) -> None:
    banner("Construct Build", subtitle=f"scope: {scope.name}")
    kv("Root", builder.root_path)
    kv("Constructs", str(len(builder.constructs or [])))
    click.echo()
    success(f"  {_CHECK} Build complete")


def print_timeout(scope: Scope, builder: ConstructBuilder, timeout: float) -> None:
    error(f"  {_CROSS} Build timed out after {timeout:g}s")
    rows = unresolved_constructs(builder, scope)
    if rows:
        click.echo()
        table(headers=["Construct", "State"], rows=rows)
