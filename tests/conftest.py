"""
Shared test fixtures for the stacksmith test suite.
"""

import textwrap
from pathlib import Path
from typing import Callable

import pytest


@pytest.fixture
def construct_tree(tmp_path) -> Callable[..., Path]:
    """
    Write files below ``tmp_path / "infra"``.

    Usage:
        root = construct_tree({"api/users/get.py": "construct = ..."})
    """
    root = tmp_path / "infra"
    root.mkdir()

    def write(files: dict, *, dirs: tuple = ()) -> Path:
        for rel in dirs:
            (root / rel).mkdir(parents=True, exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content))
        return root

    return write
