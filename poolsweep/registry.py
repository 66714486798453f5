"""Named sweepers, discoverable before any of them runs."""
import logging
from typing import Dict, Iterable, List, Optional, Set, Type

from poolsweep.resources.base import ResourceSweeper
from poolsweep.resources.cognito_user_pool import CognitoUserPoolSweeper


class SweeperRegistry:
    def __init__(self):
        self._sweepers: Dict[str, Type[ResourceSweeper]] = {}

    def register(self, sweeper_cls: Type[ResourceSweeper]) -> None:
        name = sweeper_cls.name
        if not name:
            raise ValueError(f"{sweeper_cls.__name__} has no name")
        if name in self._sweepers:
            raise ValueError(f"Sweeper {name} already registered")
        self._sweepers[name] = sweeper_cls

    def get(self, name: str) -> Type[ResourceSweeper]:
        try:
            return self._sweepers[name]
        except KeyError:
            raise KeyError(f"Unknown sweeper: {name}") from None

    def names(self) -> List[str]:
        return list(self._sweepers)

    def __contains__(self, name):
        return name in self._sweepers

    def __len__(self):
        return len(self._sweepers)

    def execution_order(self, selected: Optional[Iterable[str]] = None) -> List[str]:
        """Order sweepers so that every dependency runs before its dependents.

        Selected sweepers pull in their dependencies transitively. Ready
        sweepers are taken alphabetically so the order is deterministic. On a
        dependency cycle the remaining sweepers are appended sorted.
        """
        wanted = self._expand(self.names() if selected is None else selected)

        # Edge U -> V means U must run before V
        adj: Dict[str, List[str]] = {n: [] for n in wanted}
        in_degree: Dict[str, int] = {n: 0 for n in wanted}
        for name in wanted:
            for dep in self._sweepers[name].dependencies:
                adj[dep].append(name)
                in_degree[name] += 1

        queue = sorted(n for n in wanted if in_degree[n] == 0)
        order = []
        while queue:
            u = queue.pop(0)
            order.append(u)
            for v in adj[u]:
                in_degree[v] -= 1
                if in_degree[v] == 0:
                    queue.append(v)
            queue.sort()

        if len(order) != len(wanted):
            remaining = sorted(wanted - set(order))
            logging.error(f"Cycle detected between sweepers {remaining}; running them last")
            order.extend(remaining)
        return order

    def _expand(self, names: Iterable[str]) -> Set[str]:
        wanted: Set[str] = set()
        stack = list(names)
        while stack:
            name = stack.pop()
            if name in wanted:
                continue
            wanted.add(name)
            stack.extend(self.get(name).dependencies)
        return wanted


def init_sweepers(registry: Optional[SweeperRegistry] = None) -> SweeperRegistry:
    """Register every known sweeper. Called once by the CLI entry point."""
    registry = registry if registry is not None else SweeperRegistry()
    registry.register(CognitoUserPoolSweeper)
    return registry
