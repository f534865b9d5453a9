"""Stacksmith CLI - Main Entry Point.

Commands:
    discover - List the construct factories found under a root
    graph    - Print declared construct dependencies as DOT
    build    - Initialize every construct for one scope
"""

import asyncio
import logging
import sys
from typing import Optional

import click

from stacksmith.faults import Fault
from . import __version__, __cli_name__
from .utils.colors import error, _CROSS


def _fail(exc: BaseException) -> None:
    if isinstance(exc, Fault):
        error(f"  {_CROSS} {exc}")
    else:
        error(f"  {_CROSS} {type(exc).__name__}: {exc}")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name=__cli_name__)
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.pass_context
def cli(ctx, verbose: bool):
    """Discover construct definitions and build them for a scope.

    \b
    Quick start:
      smith discover infra
      smith build infra --scope staging --set region=eu-west-1
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


_root_argument = click.argument(
    'root', type=click.Path(exists=True, file_okay=False, dir_okay=True),
)


@cli.command('discover')
@_root_argument
@click.option('--pattern', default='*.py', show_default=True, help='Definition file pattern')
@click.option('--export', 'export_name', default='construct', show_default=True,
              help='Module attribute holding the factory')
@click.pass_context
def discover(ctx, root: str, pattern: str, export_name: str):
    """
    List construct factories found under ROOT.

    Examples:
      smith discover infra
      smith discover infra --pattern "*_construct.py"
    """
    from stacksmith.builder import ConstructBuilder
    from .commands.discover import discover_constructs, print_discovery

    try:
        builder = ConstructBuilder(root, file_pattern=pattern, export_name=export_name)
        discovered = discover_constructs(builder)
    except Exception as e:
        _fail(e)

    print_discovery(builder, discovered, verbose=ctx.obj['verbose'])


@cli.command('graph')
@_root_argument
def graph(root: str):
    """
    Print declared construct dependencies under ROOT as Graphviz DOT.

    Examples:
      smith graph infra | dot -Tsvg > constructs.svg
    """
    from stacksmith.builder import ConstructBuilder
    from .commands.discover import discover_constructs, render_graph

    try:
        dot = render_graph(discover_constructs(ConstructBuilder(root)))
    except Exception as e:
        _fail(e)

    click.echo(dot)


@cli.command('build')
@_root_argument
@click.option('--scope', 'scope_name', required=True, help='Scope (build target) name')
@click.option('--set', 'assignments', multiple=True, metavar='KEY=VALUE',
              help='Configuration value passed to every construct')
@click.option('--config', 'config_files', multiple=True,
              type=click.Path(exists=True, dir_okay=False), help='YAML or JSON config file')
@click.option('--env-file', type=click.Path(exists=True, dir_okay=False), help='.env file')
@click.option('--timeout', type=float, help='Fail if the build has not finished after SECONDS')
def build(
    root: str,
    scope_name: str,
    assignments: tuple,
    config_files: tuple,
    env_file: Optional[str],
    timeout: Optional[float],
):
    """
    Initialize every construct under ROOT for one scope.

    Examples:
      smith build infra --scope staging
      smith build infra --scope prod --config prod.yaml --timeout 60
    """
    from stacksmith.scope import Scope
    from .commands.build import load_build_config, print_build, print_timeout, run_build

    try:
        scope = Scope(scope_name)
        builder, props = load_build_config(root, config_files, env_file, assignments)
    except Exception as e:
        _fail(e)

    try:
        asyncio.run(run_build(builder, scope, props, timeout))
    except asyncio.TimeoutError:
        print_timeout(scope, builder, timeout)
        sys.exit(1)
    except Exception as e:
        _fail(e)

    print_build(scope, builder)


def main():
    """Entry point for `smith` command."""
    cli(obj={})


if __name__ == '__main__':
    main()
