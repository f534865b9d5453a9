"""
Graph analysis and cycle detection for declared construct dependencies.

Factories resolve each other lazily, so an undeclared cycle only shows up
as initializers that never finish. Factories that declare ``depends_on``
are checked here before a build starts.
"""

import logging
from collections import defaultdict, deque
from typing import Dict, Iterable, List, Set

from .faults import CyclicDependencyFault
from .factory import ConstructFactory

logger = logging.getLogger("stacksmith.graph")


class DependencyGraph:
    """
    Build and analyze the declared dependency graph of a set of factories.

    Uses Tarjan's algorithm for cycle detection. Nodes are factory
    instances; dependencies on factories outside the set are ignored.
    """

    def __init__(self, factories: Iterable[ConstructFactory] = ()):
        self.adj_list: Dict[ConstructFactory, List[ConstructFactory]] = defaultdict(list)
        self.factories: List[ConstructFactory] = []
        self._members: Set[ConstructFactory] = set()
        for factory in factories:
            self.add_factory(factory)

    def add_factory(self, factory: ConstructFactory) -> None:
        if factory in self._members:
            return
        self._members.add(factory)
        self.factories.append(factory)
        self.adj_list[factory] = list(factory.depends_on)

    def missing_dependencies(self) -> Dict[str, List[str]]:
        """Declared dependencies that are not part of the graph, by factory id."""
        missing = {}
        for factory in self.factories:
            absent = [dep.id for dep in self.adj_list[factory] if dep not in self._members]
            if absent:
                missing[factory.id] = absent
        return missing

    def detect_cycles(self) -> List[List[ConstructFactory]]:
        """
        Detect cycles using Tarjan's algorithm.

        Returns:
            Strongly connected components that form cycles
        """
        self._index_counter = 0
        self._stack: List[ConstructFactory] = []
        self._lowlinks: Dict[ConstructFactory, int] = {}
        self._index: Dict[ConstructFactory, int] = {}
        self._on_stack: Set[ConstructFactory] = set()
        self._sccs: List[List[ConstructFactory]] = []

        for factory in self.factories:
            if factory not in self._index:
                self._strongconnect(factory)

        # Single nodes only count when they depend on themselves
        return [
            scc for scc in self._sccs
            if len(scc) > 1 or scc[0] in self.adj_list[scc[0]]
        ]

    def _strongconnect(self, factory: ConstructFactory) -> None:
        """Tarjan's algorithm recursive helper."""
        self._index[factory] = self._index_counter
        self._lowlinks[factory] = self._index_counter
        self._index_counter += 1
        self._stack.append(factory)
        self._on_stack.add(factory)

        for dep in self.adj_list.get(factory, []):
            if dep not in self._members:
                continue

            if dep not in self._index:
                self._strongconnect(dep)
                self._lowlinks[factory] = min(self._lowlinks[factory], self._lowlinks[dep])
            elif dep in self._on_stack:
                self._lowlinks[factory] = min(self._lowlinks[factory], self._index[dep])

        if self._lowlinks[factory] == self._index[factory]:
            scc = []
            while True:
                w = self._stack.pop()
                self._on_stack.remove(w)
                scc.append(w)
                if w is factory:
                    break
            self._sccs.append(scc)

    def check(self) -> None:
        """
        Raise if the declared dependencies contain a cycle.

        Raises:
            CyclicDependencyFault: listing the ids of the first cycle found
        """
        cycles = self.detect_cycles()
        if cycles:
            cycle = [factory.id for factory in reversed(cycles[0])]
            logger.error(f"Construct dependency cycle: {' -> '.join(cycle)}")
            raise CyclicDependencyFault(cycle)

    def resolution_order(self) -> List[ConstructFactory]:
        """
        Topological order: every factory comes after its dependencies.

        Raises:
            CyclicDependencyFault: If a cycle is detected
        """
        # Kahn's algorithm over reversed edges
        in_degree: Dict[ConstructFactory, int] = {f: 0 for f in self.factories}
        dependents: Dict[ConstructFactory, List[ConstructFactory]] = defaultdict(list)

        for factory in self.factories:
            for dep in self.adj_list[factory]:
                if dep in self._members:
                    in_degree[factory] += 1
                    dependents[dep].append(factory)

        queue = deque(f for f in self.factories if in_degree[f] == 0)
        result = []

        while queue:
            factory = queue.popleft()
            result.append(factory)
            for dependent in dependents[factory]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    queue.append(dependent)

        if len(result) != len(self.factories):
            self.check()

        return result

    def export_dot(self) -> str:
        """
        Export graph as Graphviz DOT format.

        Returns:
            DOT string
        """
        lines = ["digraph Constructs {"]
        lines.append("  rankdir=LR;")
        lines.append("  node [shape=box];")

        for factory in self.factories:
            lines.append(f'  "{factory.id}" [label="{factory.id}\\n({type(factory).__name__})"];')

        for factory in self.factories:
            for dep in self.adj_list[factory]:
                if dep in self._members:
                    lines.append(f'  "{factory.id}" -> "{dep.id}";')

        lines.append("}")
        return "\n".join(lines)
