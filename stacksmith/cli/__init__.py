"""
Stacksmith CLI.

Usage:
    smith discover <root>
    smith graph <root>
    smith build <root> --scope <name>
"""

from stacksmith import __version__

__cli_name__ = "smith"


def main():
    """Wrapper to avoid eager import of __main__ which causes warnings with -m."""
    from .__main__ import main as _main
    return _main()
