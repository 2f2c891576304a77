"""Single-route searches over the time-dependent transport graph."""

import heapq
import itertools
import logging
from datetime import datetime, time
from typing import AbstractSet, Dict, FrozenSet, List, Optional, Tuple
from zoneinfo import ZoneInfo

from .graph import TransportGraph
from .models import Connection, Criteria, Node, PathResult
from .schedule import (
    ConnectorWeight,
    buffer_connector_minutes,
    count_rides,
    count_transfers,
    departure_wait,
    fixed_connector_minutes,
    minute_of_day,
    saturating_add,
    score_path,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Europe/Sarajevo"

EdgeRef = Tuple[Node, Node]
Label = Tuple[int, ...]

NO_EDGES: FrozenSet[EdgeRef] = frozenset()
NO_NODES: FrozenSet[Node] = frozenset()


def now_in(timezone: str = DEFAULT_TIMEZONE) -> time:
    """Current wall-clock time of day, truncated to the minute."""
    return datetime.now(ZoneInfo(timezone)).time().replace(second=0, microsecond=0)


class RouteSearch:
    """
    Label-correcting search from a start node to the first reachable goal.

    Each node keeps its best known label, a tuple compared lexicographically.
    A node is re-queued every time a strictly better label reaches it, and
    the search stops as soon as a goal node leaves the queue. Subclasses
    choose the label layout and how a connection extends it.

    The graph is only read. All working state lives in the call, so one
    instance can serve concurrent queries.
    """

    criteria: Criteria
    connector_minutes: ConnectorWeight = staticmethod(buffer_connector_minutes)

    def find_route(
        self,
        graph: TransportGraph,
        start: Node,
        goals: AbstractSet[Node],
        ready_at: Optional[time] = None,
        wrap_to_next_day: bool = False,
        excluded_edges: AbstractSet[EdgeRef] = NO_EDGES,
        excluded_nodes: AbstractSet[Node] = NO_NODES,
    ) -> PathResult:
        """
        Find the best route from start to any goal.

        Args:
            graph: Transport graph to search.
            start: Origin node. Never treated as excluded.
            goals: Acceptable destination nodes.
            ready_at: Time of day the traveller is ready at start. None
                behaves like midnight.
            wrap_to_next_day: Allow missed departures to be taken 24h later.
            excluded_edges: (source, target) pairs that may not be used.
            excluded_nodes: Nodes that may not be entered.

        Returns:
            PathResult whose totals come from schedule replay, or
            PathResult.empty() when no goal is reachable.
        """
        offset = minute_of_day(ready_at)
        initial = self._initial_label()
        best: Dict[Node, Label] = {start: initial}
        parent: Dict[Node, Node] = {}
        counter = itertools.count()
        queue = [(initial, next(counter), start)]
        reached = None

        while queue:
            label, _, node = heapq.heappop(queue)
            if best.get(node) != label:
                continue  # stale
            if node in goals:
                reached = node
                break
            if node in excluded_nodes and node != start:
                continue

            elapsed = self._elapsed(label)
            for connection in graph.neighbors(node):
                target = connection.target
                if (node, target) in excluded_edges or target in excluded_nodes:
                    continue

                if connection.is_connector:
                    wait = 0
                else:
                    wait = departure_wait(connection, offset + elapsed, wrap_to_next_day)
                    if wait is None:
                        continue

                candidate = self._extend(label, connection, wait)
                current = best.get(target)
                if current is None or candidate < current:
                    best[target] = candidate
                    parent[target] = node
                    heapq.heappush(queue, (candidate, next(counter), target))

        if reached is None:
            logger.debug(f"{self.criteria.value}: no route from {start.id}")
            return PathResult.empty()

        path = self._reconstruct(parent, start, reached)
        return score_path(graph, path)

    def find_route_from_now(
        self,
        graph: TransportGraph,
        start: Node,
        goals: AbstractSet[Node],
        timezone: str = DEFAULT_TIMEZONE,
    ) -> PathResult:
        """Best route leaving now, with next-day wrap allowed."""
        return self.find_route(graph, start, goals, now_in(timezone), True)

    def find_k_best(
        self,
        graph: TransportGraph,
        start: Node,
        goals: AbstractSet[Node],
        ready_at: Optional[time] = None,
        wrap_to_next_day: bool = False,
        k: int = 1,
    ) -> List[PathResult]:
        """Up to k distinct routes, best first."""
        from .kbest import find_k_best

        return find_k_best(self, graph, start, goals, ready_at, wrap_to_next_day, k)

    def find_k_best_from_now(
        self,
        graph: TransportGraph,
        start: Node,
        goals: AbstractSet[Node],
        k: int,
        timezone: str = DEFAULT_TIMEZONE,
    ) -> List[PathResult]:
        return self.find_k_best(graph, start, goals, now_in(timezone), True, k)

    def rank_key(self, graph: TransportGraph, result: PathResult) -> Tuple[int, ...]:
        """Sort key ordering complete routes under this objective."""
        raise NotImplementedError

    def _initial_label(self) -> Label:
        raise NotImplementedError

    def _elapsed(self, label: Label) -> int:
        raise NotImplementedError

    def _extend(self, label: Label, connection: Connection, wait: int) -> Label:
        raise NotImplementedError

    def _travel_minutes(self, connection: Connection, wait: int) -> int:
        if connection.is_connector:
            return self.connector_minutes(connection)
        return wait + max(0, connection.duration_minutes)

    @staticmethod
    def _reconstruct(parent: Dict[Node, Node], start: Node, goal: Node) -> List[Node]:
        path = []
        node = goal
        while node is not None and node != start:
            path.append(node)
            node = parent.get(node)
        if node is not None:
            path.append(start)
        path.reverse()
        return path

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class FewestTransfersSearch(RouteSearch):
    """
    Minimizes transfers, then elapsed minutes, then price, then rides.

    A ride is one timetabled leg; connectors are not rides. Transfers are
    rides - 1, floored at zero. Label: (transfers, elapsed, price, rides).
    """

    criteria = Criteria.TRANSFERS

    def _initial_label(self) -> Label:
        return (0, 0, 0, 0)

    def _elapsed(self, label: Label) -> int:
        return label[1]

    def _extend(self, label: Label, connection: Connection, wait: int) -> Label:
        _, elapsed, price, rides = label
        if not connection.is_connector:
            rides += 1
        return (
            max(0, rides - 1),
            saturating_add(elapsed, self._travel_minutes(connection, wait)),
            saturating_add(price, max(0, connection.price)),
            rides,
        )

    def rank_key(self, graph: TransportGraph, result: PathResult) -> Tuple[int, ...]:
        return (
            count_transfers(graph, result.nodes),
            result.total_minutes,
            result.total_price,
            count_rides(graph, result.nodes),
        )


class LowestPriceSearch(RouteSearch):
    """Minimizes price, breaking ties by elapsed minutes. Label: (price, elapsed)."""

    criteria = Criteria.PRICE

    def _initial_label(self) -> Label:
        return (0, 0)

    def _elapsed(self, label: Label) -> int:
        return label[1]

    def _extend(self, label: Label, connection: Connection, wait: int) -> Label:
        price, elapsed = label
        return (
            saturating_add(price, max(0, connection.price)),
            saturating_add(elapsed, self._travel_minutes(connection, wait)),
        )

    def rank_key(self, graph: TransportGraph, result: PathResult) -> Tuple[int, ...]:
        return (
            result.total_price,
            result.total_minutes,
            count_transfers(graph, result.nodes),
        )


class ShortestTimeSearch(RouteSearch):
    """Earliest arrival. Label: (elapsed,). Connectors always weigh 5 minutes."""

    criteria = Criteria.TIME
    connector_minutes = staticmethod(fixed_connector_minutes)

    def _initial_label(self) -> Label:
        return (0,)

    def _elapsed(self, label: Label) -> int:
        return label[0]

    def _extend(self, label: Label, connection: Connection, wait: int) -> Label:
        return (saturating_add(label[0], self._travel_minutes(connection, wait)),)

    def rank_key(self, graph: TransportGraph, result: PathResult) -> Tuple[int, ...]:
        return (
            result.total_minutes,
            result.total_price,
            count_transfers(graph, result.nodes),
        )


_SEARCHES = {
    Criteria.TRANSFERS: FewestTransfersSearch(),
    Criteria.PRICE: LowestPriceSearch(),
    Criteria.TIME: ShortestTimeSearch(),
}


def search_for(criteria: Criteria) -> RouteSearch:
    """Search strategy for an objective."""
    return _SEARCHES[criteria]
