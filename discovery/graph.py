"""
Dependency graph over discovered resources.

Edges run from a resource to every discovered resource it names in its
dependency list. Names that match nothing discovered are dropped, so the
over-approximating dependency walk in the scanner never breaks ordering.
"""

import heapq
import logging
from typing import Dict, Iterable, List, Set, Tuple

from core.errors import CycleError
from discovery.models import DiscoveredResource

logger = logging.getLogger(__name__)

Key = Tuple[str, str]


class DependencyGraph:
    """Immutable dependency graph built from one scan result.

    Resources are keyed by ``(kind, name)``. A dependency name resolves to
    every discovered resource carrying that name, whatever its kind.

    Example:
        >>> graph = DependencyGraph(resources)
        >>> [r.name for r in graph.topological_sort()]
        ['Company', 'Person', 'WORKS_FOR']
    """

    def __init__(self, resources: Iterable[DiscoveredResource]):
        self._nodes: Dict[Key, DiscoveredResource] = {}
        for resource in resources:
            self._nodes[resource.key] = resource

        self._by_name: Dict[str, List[Key]] = {}
        for key in self._nodes:
            self._by_name.setdefault(key[1], []).append(key)

        self._edges: Dict[Key, List[Key]] = {}
        dropped = 0
        for key, resource in self._nodes.items():
            targets: List[Key] = []
            for dep in resource.dependencies:
                matches = self._by_name.get(dep)
                if not matches:
                    dropped += 1
                    continue
                for target in matches:
                    if target != key and target not in targets:
                        targets.append(target)
            self._edges[key] = targets

        if dropped:
            logger.debug("Dropped %d dependency references to undiscovered names", dropped)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    @property
    def resources(self) -> List[DiscoveredResource]:
        return list(self._nodes.values())

    def edges(self) -> List[Tuple[DiscoveredResource, DiscoveredResource]]:
        """``(dependent, dependency)`` pairs in deterministic order."""
        pairs = []
        for key in sorted(self._edges, key=lambda k: (k[1], k[0])):
            for target in sorted(self._edges[key], key=lambda k: (k[1], k[0])):
                pairs.append((self._nodes[key], self._nodes[target]))
        return pairs

    def dependencies_of(self, name: str) -> List[str]:
        """Direct dependencies of ``name`` that were discovered, sorted."""
        found: Set[str] = set()
        for key in self._by_name.get(name, []):
            found.update(target[1] for target in self._edges[key])
        found.discard(name)
        return sorted(found)

    def topological_sort(self) -> List[DiscoveredResource]:
        """Order resources so every dependency precedes its dependents.

        Kahn's algorithm; among ready resources the lexicographically
        smallest ``(name, kind)`` goes first.

        Raises:
            CycleError: If the dependency edges contain a cycle.
        """
        in_degree: Dict[Key, int] = {key: len(targets) for key, targets in self._edges.items()}
        dependents: Dict[Key, List[Key]] = {key: [] for key in self._nodes}
        for key, targets in self._edges.items():
            for target in targets:
                dependents[target].append(key)

        ready = [(key[1], key[0]) for key, degree in in_degree.items() if degree == 0]
        heapq.heapify(ready)

        ordered: List[DiscoveredResource] = []
        while ready:
            name, kind = heapq.heappop(ready)
            key = (kind, name)
            ordered.append(self._nodes[key])
            for dependent in dependents[key]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, (dependent[1], dependent[0]))

        if len(ordered) != len(self._nodes):
            remaining = [key[1] for key, degree in in_degree.items() if degree > 0]
            raise CycleError(remaining=remaining)
        return ordered

    def has_cycle(self) -> bool:
        try:
            self.topological_sort()
        except CycleError:
            return True
        return False

    def transitive_dependencies(self, name: str) -> List[str]:
        """Every discovered resource ``name`` depends on, directly or not.

        Returns a sorted, de-duplicated list; an unknown name yields ``[]``.
        """
        seen: Set[Key] = set()
        stack: List[Key] = list(self._by_name.get(name, []))
        start = set(stack)
        while stack:
            key = stack.pop()
            for target in self._edges[key]:
                if target not in seen:
                    seen.add(target)
                    stack.append(target)
        names = {key[1] for key in seen if key not in start}
        names.discard(name)
        return sorted(names)


def build_graph(resources: Iterable[DiscoveredResource]) -> DependencyGraph:
    return DependencyGraph(resources)
