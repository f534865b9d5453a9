"""
Tests for the smith CLI.
"""

import pytest
from click.testing import CliRunner

from stacksmith.cli.__main__ import cli


TABLE = """
from stacksmith import ConstructFactory

class Table(ConstructFactory):
    async def _init(self, scope, id, dir_info, props):
        return {"id": id, "scope": str(scope), "props": props}

construct = Table("orders-table")
"""

API = """
from stacksmith import ConstructFactory

class Api(ConstructFactory):
    async def _init(self, scope, id, dir_info, props):
        return {"id": id}

construct = Api("orders-api")
"""

BROKEN = """
from stacksmith import ConstructFactory

class Broken(ConstructFactory):
    async def _init(self, scope, id, dir_info, props):
        raise RuntimeError("quota exceeded")

construct = Broken("broken")
"""

WAITING = """
from stacksmith import ConstructFactory

class Never(ConstructFactory):
    async def _init(self, scope, id, dir_info, props):
        return id

never = Never("never-built")

class Waiting(ConstructFactory):
    async def _init(self, scope, id, dir_info, props):
        return await never.get_construct(scope)

construct = Waiting("waiting-api")
"""

CYCLE = """
from stacksmith import ConstructFactory

class Node(ConstructFactory):
    async def _init(self, scope, id, dir_info, props):
        return id

construct = Node("loop")
construct._depends_on = (construct,)
"""

DEPENDENT = """
from stacksmith import ConstructFactory

class Node(ConstructFactory):
    async def _init(self, scope, id, dir_info, props):
        return id

table = Node("table")
construct = Node("api", depends_on=[table])
"""


@pytest.fixture
def runner():
    return CliRunner()


class TestDiscoverCommand:

    def test_lists_constructs(self, runner, construct_tree):
        root = construct_tree({"data/orders.py": TABLE, "api/orders/get.py": API})

        result = runner.invoke(cli, ["discover", str(root)])

        assert result.exit_code == 0, result.output
        assert "orders-table" in result.output
        assert "orders-api" in result.output
        assert "/api/orders" in result.output
        assert "Discovery complete" in result.output

    def test_empty_tree(self, runner, construct_tree):
        root = construct_tree({})
        result = runner.invoke(cli, ["discover", str(root)])
        assert result.exit_code == 0
        assert "No construct factories found" in result.output

    def test_load_failure(self, runner, construct_tree):
        root = construct_tree({"bad.py": "import does_not_exist_anywhere\n"})

        result = runner.invoke(cli, ["discover", str(root)])

        assert result.exit_code == 1
        assert "DISCOVERY_LOAD_FAILED" in result.output

    def test_missing_root(self, runner, tmp_path):
        result = runner.invoke(cli, ["discover", str(tmp_path / "missing")])
        assert result.exit_code != 0


class TestGraphCommand:

    def test_prints_dot(self, runner, construct_tree):
        root = construct_tree({"api.py": DEPENDENT})

        result = runner.invoke(cli, ["graph", str(root)])

        assert result.exit_code == 0, result.output
        assert result.output.startswith("digraph Constructs {")
        assert '"api"' in result.output

    def test_cycle(self, runner, construct_tree):
        root = construct_tree({"loop.py": CYCLE})

        result = runner.invoke(cli, ["graph", str(root)])

        assert result.exit_code == 1
        assert "DEPENDENCY_CYCLE" in result.output


class TestBuildCommand:

    def test_successful_build(self, runner, construct_tree):
        root = construct_tree({"data/orders.py": TABLE, "api/orders/get.py": API})

        result = runner.invoke(cli, ["build", str(root), "--scope", "staging", "--set", "region=eu-west-1"])

        assert result.exit_code == 0, result.output
        assert "scope: staging" in result.output
        assert "Build complete" in result.output

    def test_with_config_file(self, runner, construct_tree, tmp_path):
        root = construct_tree({"orders_construct.py": TABLE, "other.py": BROKEN})
        config = tmp_path / "smith.yaml"
        config.write_text("builder:\n  file_pattern: '*_construct.py'\nprops:\n  region: eu-west-1\n")

        result = runner.invoke(cli, ["build", str(root), "--scope", "dev", "--config", str(config)])

        assert result.exit_code == 0, result.output

    def test_failing_build(self, runner, construct_tree):
        root = construct_tree({"broken.py": BROKEN, "orders.py": TABLE})

        result = runner.invoke(cli, ["build", str(root), "--scope", "dev"])

        assert result.exit_code == 1
        assert "quota exceeded" in result.output

    def test_requires_scope(self, runner, construct_tree):
        root = construct_tree({"orders.py": TABLE})
        result = runner.invoke(cli, ["build", str(root)])
        assert result.exit_code != 0

    def test_bad_assignment(self, runner, construct_tree):
        root = construct_tree({"orders.py": TABLE})

        result = runner.invoke(cli, ["build", str(root), "--scope", "dev", "--set", "region"])

        assert result.exit_code == 1
        assert "CONFIG_INVALID" in result.output

    def test_timeout_lists_unresolved(self, runner, construct_tree):
        root = construct_tree({"api.py": WAITING, "orders.py": TABLE})

        result = runner.invoke(cli, ["build", str(root), "--scope", "dev", "--timeout", "1"])

        assert result.exit_code == 1
        assert "timed out" in result.output
        assert "waiting-api" in result.output
        assert "in_flight" in result.output
        assert "orders-table" not in result.output
