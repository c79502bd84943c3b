"""Dependency graph over contract indices."""

import heapq
from collections.abc import Iterable


class DependencyGraph:
    """Directed graph with an edge ``dependency -> dependent`` per peer import.

    Nodes are stable indices so orderings only depend on insertion order.
    """

    def __init__(self, nodes: Iterable[int] = ()) -> None:
        self._edges: dict[int, set[int]] = {}
        for node in nodes:
            self.add_node(node)

    def add_node(self, node: int) -> None:
        self._edges.setdefault(node, set())

    def add_edge(self, source: int, target: int) -> None:
        self.add_node(source)
        self.add_node(target)
        self._edges[source].add(target)

    @property
    def nodes(self) -> list[int]:
        return sorted(self._edges)

    def successors(self, node: int) -> list[int]:
        return sorted(self._edges[node])

    def topological_order(self) -> list[int] | None:
        """Kahn's algorithm, always emitting the smallest ready index first.

        Returns:
            The ordering, or None if the graph has a cycle
        """
        in_degree = {node: 0 for node in self._edges}
        for targets in self._edges.values():
            for target in targets:
                in_degree[target] += 1

        ready = [node for node, degree in in_degree.items() if degree == 0]
        heapq.heapify(ready)

        order = []
        while ready:
            node = heapq.heappop(ready)
            order.append(node)
            for target in self._edges[node]:
                in_degree[target] -= 1
                if in_degree[target] == 0:
                    heapq.heappush(ready, target)

        if len(order) != len(self._edges):
            return None
        return order

    def cycles(self) -> list[list[int]]:
        """Strongly connected components with more than one node, or a self import.

        Each component is sorted, and components are ordered by their
        smallest index.
        """
        index_of: dict[int, int] = {}
        low_link: dict[int, int] = {}
        on_stack: set[int] = set()
        stack: list[int] = []
        components: list[list[int]] = []
        counter = 0

        # Iterative Tarjan to avoid recursion limits on long import chains
        for root in self.nodes:
            if root in index_of:
                continue
            work = [(root, iter(self.successors(root)))]
            index_of[root] = low_link[root] = counter
            counter += 1
            stack.append(root)
            on_stack.add(root)

            while work:
                node, successors = work[-1]
                advanced = False
                for successor in successors:
                    if successor not in index_of:
                        index_of[successor] = low_link[successor] = counter
                        counter += 1
                        stack.append(successor)
                        on_stack.add(successor)
                        work.append((successor, iter(self.successors(successor))))
                        advanced = True
                        break
                    if successor in on_stack:
                        low_link[node] = min(low_link[node], index_of[successor])
                if advanced:
                    continue

                work.pop()
                if work:
                    parent = work[-1][0]
                    low_link[parent] = min(low_link[parent], low_link[node])

                if low_link[node] == index_of[node]:
                    component = []
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        component.append(member)
                        if member == node:
                            break
                    if len(component) > 1 or node in self._edges[node]:
                        components.append(sorted(component))

        return sorted(components, key=lambda component: component[0])
