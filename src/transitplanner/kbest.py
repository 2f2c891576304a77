"""K best alternative routes by spur-path generation (Yen's algorithm)."""

import heapq
import itertools
import logging
from datetime import time
from typing import AbstractSet, List, Optional, Set, Tuple

from .graph import TransportGraph
from .models import Node, PathResult, UNREACHABLE
from .schedule import minutes_to_index, score_path, shift_time
from .search import EdgeRef, RouteSearch

logger = logging.getLogger(__name__)


def _spur_ready_at(
    search: RouteSearch,
    graph: TransportGraph,
    path: Tuple[Node, ...],
    index: int,
    ready_at: Optional[time],
    wrap_to_next_day: bool,
) -> Tuple[bool, Optional[time]]:
    """Replay the root path to find when the traveller is ready at path[index]."""
    if ready_at is None:
        return True, None
    minutes = minutes_to_index(
        graph, path, index, ready_at, wrap_to_next_day, search.connector_minutes
    )
    if minutes >= UNREACHABLE:
        return False, None
    return True, shift_time(ready_at, minutes)


def find_k_best(
    search: RouteSearch,
    graph: TransportGraph,
    start: Node,
    goals: AbstractSet[Node],
    ready_at: Optional[time] = None,
    wrap_to_next_day: bool = False,
    k: int = 1,
) -> List[PathResult]:
    """
    Enumerate up to k distinct routes from start to any goal.

    The best route seeds the accepted list. For each further rank, every
    node of the previously accepted route is tried as a spur node: the
    next hops already used by accepted routes sharing the same root prefix
    are banned, the root prefix (minus the spur node) is banned, and a new
    spur route is searched from the spur node at the time the traveller
    would stand there. Root + spur candidates are scored by schedule replay
    and the best one under search.rank_key is accepted.

    Args:
        search: Strategy supplying the single-route search and ranking.
        graph: Transport graph.
        start: Origin node.
        goals: Acceptable destination nodes.
        ready_at: Time of day the traveller is ready at start.
        wrap_to_next_day: Allow missed departures to be taken 24h later.
        k: Maximum number of routes.

    Returns:
        Up to k routes with distinct node sequences, ordered by
        search.rank_key. Empty if k <= 0 or no route exists.
    """
    if k <= 0:
        return []

    first = search.find_route(graph, start, goals, ready_at, wrap_to_next_day)
    if first.is_empty:
        return []

    accepted: List[PathResult] = [first]
    seen: Set[Tuple[Node, ...]] = {first.nodes}
    candidates: list = []
    counter = itertools.count()

    while len(accepted) < k:
        previous = accepted[-1].nodes

        for i in range(len(previous) - 1):
            spur_node = previous[i]
            root = previous[: i + 1]

            excluded_edges: Set[EdgeRef] = {
                (route.nodes[i], route.nodes[i + 1])
                for route in accepted
                if len(route.nodes) > i + 1 and route.nodes[: i + 1] == root
            }
            excluded_nodes = set(root[:-1])

            reachable, spur_ready = _spur_ready_at(
                search, graph, previous, i, ready_at, wrap_to_next_day
            )
            if not reachable:
                continue

            spur = search.find_route(
                graph,
                spur_node,
                goals,
                spur_ready,
                wrap_to_next_day,
                excluded_edges,
                excluded_nodes,
            )
            if spur.is_empty:
                continue

            candidate = score_path(graph, root + spur.nodes[1:])
            if candidate.is_empty or candidate.nodes in seen:
                continue

            seen.add(candidate.nodes)
            heapq.heappush(
                candidates,
                (search.rank_key(graph, candidate), next(counter), candidate),
            )

        if not candidates:
            break
        _, _, best = heapq.heappop(candidates)
        accepted.append(best)

    logger.debug(
        f"{search.criteria.value}: {len(accepted)} of {k} routes from {start.id}"
    )
    accepted.sort(key=lambda route: search.rank_key(graph, route))
    return accepted
