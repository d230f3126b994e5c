"""Foreign-key aware ordering of tables."""
import logging
from typing import Dict, Iterable, List, Sequence, Set

from pgshift.models.schema import TableDependency, TableRef

logger = logging.getLogger(__name__)

_IN_PROGRESS = 1
_DONE = 2


def _restricted_graph(
    selected: Set[TableRef],
    dependencies: Iterable[TableDependency]
) -> Dict[TableRef, List[TableRef]]:
    """Keep only edges whose both endpoints are selected."""
    graph: Dict[TableRef, Set[TableRef]] = {table: set() for table in selected}
    for dep in dependencies:
        child = dep.ref
        if child not in selected:
            continue
        for parent in dep.depends_on:
            if parent in selected and parent != child:
                graph[child].add(parent)
    return {
        table: sorted(parents, key=TableRef.sort_key)
        for table, parents in graph.items()
    }


def sort_tables_by_dependency(
    tables: Sequence[TableRef],
    dependencies: Iterable[TableDependency]
) -> List[TableRef]:
    """Order tables so every table follows the selected tables it references.

    Depth-first post-order over the foreign-key graph restricted to the
    selection. Tables are visited sorted by (schema, name), so independent
    tables always come out in the same order. An edge closing a cycle is
    dropped and traversal continues; the order is then only best-effort for
    the tables on that cycle.

    Args:
        tables: Selected tables (duplicates collapse)
        dependencies: Foreign-key edges for the whole database

    Returns:
        Every selected table exactly once, parents first.
    """
    selected = set(tables)
    graph = _restricted_graph(selected, dependencies)

    state: Dict[TableRef, int] = {}
    order: List[TableRef] = []

    for root in sorted(selected, key=TableRef.sort_key):
        if root in state:
            continue

        state[root] = _IN_PROGRESS
        stack = [(root, iter(graph[root]))]
        while stack:
            node, parents = stack[-1]
            advanced = False
            for parent in parents:
                mark = state.get(parent)
                if mark == _DONE:
                    continue
                if mark == _IN_PROGRESS:
                    logger.debug("Dependency cycle: ignoring edge %s -> %s", node, parent)
                    continue
                state[parent] = _IN_PROGRESS
                stack.append((parent, iter(graph[parent])))
                advanced = True
                break

            if not advanced:
                stack.pop()
                state[node] = _DONE
                order.append(node)

    return order
