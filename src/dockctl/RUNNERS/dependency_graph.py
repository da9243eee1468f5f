"""
Index-based dependency graph over a list of container specs.
"""
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from ..errors import DuplicateName, SelfDependency, UnknownDependency
from ..MODELS.container_spec import ContainerSpec


@dataclass(frozen=True)
class DependencyGraph:
    """
    ``dependents[i]`` lists the indices that depend on ``i`` (so ``i`` must
    be provisioned first). ``in_degree[i]`` is the number of distinct
    containers ``i`` depends on.
    """

    names: Tuple[str, ...]
    dependents: Tuple[Tuple[int, ...], ...]
    in_degree: Tuple[int, ...]

    def __len__(self) -> int:
        return len(self.names)

    @property
    def edge_count(self) -> int:
        return sum(self.in_degree)


def build_graph(specs: Sequence[ContainerSpec]) -> DependencyGraph:
    """
    Builds the dependency graph for ``specs``.

    Both ``dependencies`` and ``mount_from`` produce edges; repeated
    references to the same container count once.

    :param specs: Container specs in configuration order.
    :return: The graph, indexed like ``specs``.
    :raises DuplicateName: If two specs share a name.
    :raises SelfDependency: If a spec references itself.
    :raises UnknownDependency: If a reference names no spec.
    """
    indexes: Dict[str, int] = {}
    for i, spec in enumerate(specs):
        if spec.name in indexes:
            raise DuplicateName(spec.name)
        indexes[spec.name] = i

    dependents: List[List[int]] = [[] for _ in specs]
    in_degree = [0] * len(specs)

    for i, spec in enumerate(specs):
        seen = set()
        for target in spec.references():
            if target == spec.name:
                raise SelfDependency(spec.name)
            if target not in indexes:
                raise UnknownDependency(spec.name, target)
            source = indexes[target]
            if source in seen:
                continue
            seen.add(source)
            dependents[source].append(i)
            in_degree[i] += 1

    return DependencyGraph(
        names=tuple(spec.name for spec in specs),
        dependents=tuple(tuple(d) for d in dependents),
        in_degree=tuple(in_degree),
    )
