"""
Schedule replay for concrete routes.

Every total reported to callers (price, elapsed minutes, transfers) is
derived here from the node sequence alone, by replaying the timetable in
order. Where several parallel connections join two consecutive nodes, the
first one in adjacency order is used.
"""

import logging
from datetime import datetime, time, timedelta
from typing import Callable, List, Optional, Sequence, Tuple

from .graph import TRANSFER_CONNECTOR_MINUTES, TransportGraph
from .models import (
    MINUTES_PER_DAY,
    UNREACHABLE,
    Connection,
    Node,
    PathResult,
    RouteSegment,
    StationType,
)

logger = logging.getLogger(__name__)

ConnectorWeight = Callable[[Connection], int]


def saturating_add(a: int, b: int) -> int:
    """Add two costs, collapsing anything at or past UNREACHABLE to UNREACHABLE."""
    if a >= UNREACHABLE or b >= UNREACHABLE:
        return UNREACHABLE
    total = a + b
    return UNREACHABLE if total >= UNREACHABLE else total


def minute_of_day(value: Optional[time]) -> int:
    return 0 if value is None else value.hour * 60 + value.minute


def shift_time(value: time, minutes: int) -> time:
    """Move a time of day forward, wrapping past midnight."""
    shifted = datetime.combine(datetime.min.date(), value) + timedelta(
        minutes=minutes % MINUTES_PER_DAY
    )
    return shifted.time()


def format_clock(absolute_minutes: int) -> str:
    """Format absolute minutes as HH:MM of the day."""
    minutes = absolute_minutes % MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def buffer_connector_minutes(connection: Connection) -> int:
    """Connector weight used by the price and transfer searches."""
    return max(1, connection.min_transfer_minutes)


def fixed_connector_minutes(connection: Connection) -> int:
    """Connector weight used by the time search."""
    return TRANSFER_CONNECTOR_MINUTES


def _connections(graph: TransportGraph, path: Sequence[Node]) -> Optional[List[Connection]]:
    """First-match connection for each consecutive pair, or None if a pair is not joined."""
    connections = []
    for source, target in zip(path, path[1:]):
        connection = graph.find_connection(source, target)
        if connection is None:
            return None
        connections.append(connection)
    return connections


def sum_price(graph: TransportGraph, path: Sequence[Node]) -> int:
    """Total price along the path, or UNREACHABLE if it is not a valid route."""
    if len(path) < 2:
        return 0
    connections = _connections(graph, path)
    if connections is None:
        return UNREACHABLE
    total = 0
    for connection in connections:
        total = saturating_add(total, max(0, connection.price))
    return total


def schedule_minutes(graph: TransportGraph, path: Sequence[Node]) -> int:
    """
    Minutes from the first departure to the final arrival.

    The path is replayed against an absolute clock that never runs
    backwards: each timetabled departure is pushed forward by whole days
    until it is not earlier than the clock. Connectors advance the clock by
    their buffer (5 minutes when none is set).

    Returns:
        Total minutes, 0 for paths shorter than two nodes, or UNREACHABLE if
        a consecutive pair is not connected or a leg has no departure time.
    """
    if len(path) < 2:
        return 0
    connections = _connections(graph, path)
    if connections is None:
        return UNREACHABLE

    first_departure = None
    clock = 0
    for connection in connections:
        if connection.is_connector:
            departs = clock
            walk = connection.min_transfer_minutes
            clock = departs + (walk if walk > 0 else TRANSFER_CONNECTOR_MINUTES)
        else:
            if connection.departure is None:
                return UNREACHABLE
            departs = connection.departure_minute
            while departs < clock:
                departs += MINUTES_PER_DAY
            clock = departs + max(0, connection.duration_minutes)
        if first_departure is None:
            first_departure = departs

    return max(0, clock - first_departure)


def evaluate(graph: TransportGraph, path: Sequence[Node]) -> Tuple[int, int]:
    """Authoritative (price, minutes) for a concrete node sequence."""
    return sum_price(graph, path), schedule_minutes(graph, path)


def score_path(graph: TransportGraph, path: Sequence[Node]) -> PathResult:
    price, minutes = evaluate(graph, path)
    return PathResult(nodes=tuple(path), total_price=price, total_minutes=minutes)


def departure_wait(
    connection: Connection, ready_minute: int, wrap_to_next_day: bool
) -> Optional[int]:
    """
    Minutes to wait at a station before a timetabled connection leaves.

    Args:
        connection: Timetabled (non-connector) connection.
        ready_minute: Absolute minute at which the traveller reaches the
            station; the connection's transfer buffer is added to it.
        wrap_to_next_day: Allow catching tomorrow's departure when today's
            has already left.

    Returns:
        Wait in minutes, or None if the connection cannot be taken.
    """
    departs = connection.departure_minute
    if departs is None:
        return None
    ready = (ready_minute + max(0, connection.min_transfer_minutes)) % MINUTES_PER_DAY
    wait = departs - ready
    if wait < 0:
        if not wrap_to_next_day:
            return None
        wait += MINUTES_PER_DAY
    return wait


def simulate_travel_minutes(
    graph: TransportGraph,
    path: Sequence[Node],
    ready_at: Optional[time],
    wrap_to_next_day: bool,
    connector_minutes: ConnectorWeight = buffer_connector_minutes,
) -> int:
    """Minutes from ready_at until the end of the path, waits included."""
    if len(path) < 2:
        return 0
    connections = _connections(graph, path)
    if connections is None:
        return UNREACHABLE

    start = minute_of_day(ready_at)
    elapsed = 0
    for connection in connections:
        if connection.is_connector:
            elapsed = saturating_add(elapsed, connector_minutes(connection))
            continue
        wait = departure_wait(connection, start + elapsed, wrap_to_next_day)
        if wait is None:
            return UNREACHABLE
        elapsed = saturating_add(elapsed, wait + max(0, connection.duration_minutes))
    return elapsed


def minutes_to_index(
    graph: TransportGraph,
    path: Sequence[Node],
    index: int,
    ready_at: Optional[time],
    wrap_to_next_day: bool,
    connector_minutes: ConnectorWeight = buffer_connector_minutes,
) -> int:
    """Simulated minutes until the traveller stands at path[index]."""
    prefix = path[: max(1, index + 1)]
    return simulate_travel_minutes(
        graph, prefix, ready_at, wrap_to_next_day, connector_minutes
    )


def count_rides(graph: TransportGraph, path: Sequence[Node]) -> int:
    """Number of timetabled legs on the path (connectors excluded)."""
    if len(path) < 2:
        return 0
    connections = _connections(graph, path)
    if connections is None:
        return UNREACHABLE
    return sum(1 for connection in connections if not connection.is_connector)


def count_transfers(graph: TransportGraph, path: Sequence[Node]) -> int:
    """Transfers on the path: rides - 1, floored at zero."""
    rides = count_rides(graph, path)
    if rides >= UNREACHABLE:
        return UNREACHABLE
    return max(0, rides - 1)


def _mode_label(connection: Connection, source: Node) -> str:
    if connection.is_connector:
        return "Transfer"
    return "Train" if source.station_type == StationType.TRAIN else "Bus"


def build_itinerary(graph: TransportGraph, path: Sequence[Node]) -> List[RouteSegment]:
    """
    Break a route into display legs with clock times.

    Uses the same absolute-clock replay as schedule_minutes, so the legs'
    prices sum to sum_price and the span from the first departure to the
    last arrival equals schedule_minutes. Legs without a usable connection
    are left out.
    """
    segments: List[RouteSegment] = []
    if len(path) < 2:
        return segments

    clock = 0
    for source, target in zip(path, path[1:]):
        connection = graph.find_connection(source, target)
        if connection is None:
            logger.debug(f"No connection {source.id} -> {target.id}, leg omitted")
            continue

        if connection.is_connector:
            departs = clock
            walk = connection.min_transfer_minutes
            arrives = departs + (walk if walk > 0 else TRANSFER_CONNECTOR_MINUTES)
        elif connection.departure is not None:
            departs = connection.departure_minute
            while departs < clock:
                departs += MINUTES_PER_DAY
            arrives = departs + max(0, connection.duration_minutes)
        else:
            continue

        clock = arrives
        segments.append(
            RouteSegment(
                start=source.id,
                end=target.id,
                mode=_mode_label(connection, source),
                price=max(0, connection.price),
                departure=format_clock(departs),
                arrival=format_clock(arrives),
            )
        )

    return segments
