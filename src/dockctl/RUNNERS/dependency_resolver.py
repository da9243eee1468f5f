"""
Dependency resolution for containers to determine provisioning order.
"""
import logging
from collections import deque
from dataclasses import dataclass
from typing import Iterator, List, Tuple

from ..errors import CycleError
from ..MODELS.container_spec import ContainerSpec
from ..MODELS.orchestration_config import OrchestrationConfig
from .dependency_graph import DependencyGraph, build_graph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderedPlan:
    """
    Container specs together with an order in which every container comes
    after everything it depends on.
    """

    specs: Tuple[ContainerSpec, ...]
    order: Tuple[int, ...]

    def __iter__(self) -> Iterator[ContainerSpec]:
        return (self.specs[i] for i in self.order)

    def __len__(self) -> int:
        return len(self.order)

    @property
    def names(self) -> List[str]:
        return [spec.name for spec in self]


def topo_sort(graph: DependencyGraph) -> List[int]:
    """
    Sorts the graph with Kahn's algorithm.

    Ready nodes are processed first-in first-out, seeded in index order, so
    the result is deterministic for a given graph.

    :param graph: The dependency graph.
    :return: Indices in dependency order.
    :raises CycleError: If some nodes can never become ready.
    """
    degree = list(graph.in_degree)
    ready = deque(i for i, d in enumerate(degree) if d == 0)
    order: List[int] = []

    while ready:
        n = ready.popleft()
        order.append(n)
        for m in graph.dependents[n]:
            degree[m] -= 1
            if degree[m] == 0:
                ready.append(m)

    if len(order) < len(graph):
        participants = _cycle_members(graph, degree)
        raise CycleError([graph.names[i] for i in participants], participants)
    return order


def _cycle_members(graph: DependencyGraph, degree: List[int]) -> List[int]:
    """
    Narrows the unsorted nodes down to those on a cycle.

    Nodes that are merely blocked behind a cycle have no unsorted dependents
    once their own dependents are discarded, so they are peeled off from the
    leaves inward. What remains lies on a cycle (or on a path between two).
    """
    residual = [i for i, d in enumerate(degree) if d > 0]
    live = set(residual)
    out_degree = {i: sum(1 for m in graph.dependents[i] if m in live) for i in residual}

    # Reverse edges restricted to the residual subgraph
    dependencies = {i: [] for i in residual}
    for i in residual:
        for m in graph.dependents[i]:
            if m in live:
                dependencies[m].append(i)

    leaves = deque(i for i in residual if out_degree[i] == 0)
    while leaves:
        n = leaves.popleft()
        live.discard(n)
        for p in dependencies[n]:
            out_degree[p] -= 1
            if out_degree[p] == 0:
                leaves.append(p)

    return sorted(live)


class DependencyResolver:
    """
    Resolves the provisioning order of containers based on their dependencies.
    """
    def resolve(self, config: OrchestrationConfig) -> OrderedPlan:
        """
        Determines the order in which to create and start containers.

        :param config: The orchestration configuration.
        :return: The provisioning plan.
        :raises ConfigurationError: On duplicate names, unknown or self
            references, or a dependency cycle.
        """
        specs = tuple(config.containers)
        graph = build_graph(specs)
        order = topo_sort(graph)
        plan = OrderedPlan(specs=specs, order=tuple(order))
        logger.debug("Provisioning order: %s", ", ".join(plan.names))
        return plan
