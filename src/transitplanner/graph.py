"""Time-annotated transport graph of stations and connections."""

import logging
from datetime import time
from typing import Dict, List, Optional

from .models import City, Connection, MIDNIGHT, Node, StationType

logger = logging.getLogger(__name__)

# Walking time between a city's bus and train stations
TRANSFER_CONNECTOR_MINUTES = 5


class TransportGraph:
    """
    Directed graph of stations (nodes) and timetabled connections (edges).

    Connections are kept in an adjacency list keyed by source node. Parallel
    connections between the same pair of nodes are all kept, in insertion
    order. The graph holds no search logic and must not be mutated while a
    query is running.
    """

    def __init__(self):
        """Initialize an empty graph."""
        self._nodes: Dict[str, Node] = {}
        self._adjacency: Dict[Node, List[Connection]] = {}
        self._cities: Dict[str, City] = {}

    def get_or_create_node(
        self, node_id: str, station_type: StationType, city: Optional[City] = None
    ) -> Node:
        """Return the node with this id, creating it on first reference."""
        node = self._nodes.get(node_id)
        if node is None:
            node = Node(id=node_id, station_type=station_type, city=city)
            self._nodes[node_id] = node
            self._adjacency[node] = []
        return node

    def find_node(self, node_id: str) -> Optional[Node]:
        """Get node by id, or None if unknown."""
        return self._nodes.get(node_id)

    def nodes(self) -> List[Node]:
        """All nodes, in creation order."""
        return list(self._nodes.values())

    def add_connection(
        self,
        source: Node,
        target: Node,
        departure: Optional[time],
        duration_minutes: int,
        price: int,
        min_transfer_minutes: int,
        is_connector: bool = False,
    ) -> Connection:
        """Add a directed connection from source to target."""
        for node in (source, target):
            if node.id not in self._nodes:
                self._nodes[node.id] = node
            self._adjacency.setdefault(node, [])

        connection = Connection(
            target=target,
            departure=departure,
            duration_minutes=duration_minutes,
            price=price,
            min_transfer_minutes=min_transfer_minutes,
            is_connector=is_connector,
        )
        self._adjacency[source].append(connection)
        return connection

    def add_transfer_connector(
        self, source: Node, target: Node, minutes: int = TRANSFER_CONNECTOR_MINUTES
    ) -> Connection:
        """Add a free, non-timetabled walk between two stations of one city."""
        return self.add_connection(
            source, target, MIDNIGHT, minutes, 0, 0, is_connector=True
        )

    def add_city(self, name: str, bus_station: str, train_station: str) -> City:
        """
        Register a city and its two stations, linked by transfer connectors.

        Calling this again for a known city returns the existing city.
        """
        if name in self._cities:
            return self._cities[name]

        city = City(name=name, bus_station=bus_station, train_station=train_station)
        self._cities[name] = city

        bus_node = self.get_or_create_node(bus_station, StationType.BUS, city)
        train_node = self.get_or_create_node(train_station, StationType.TRAIN, city)
        self.add_transfer_connector(bus_node, train_node)
        self.add_transfer_connector(train_node, bus_node)
        return city

    def find_city(self, name: str) -> Optional[City]:
        return self._cities.get(name)

    def cities(self) -> List[City]:
        return list(self._cities.values())

    def neighbors(self, node: Node) -> List[Connection]:
        """Outgoing connections of a node (empty list if none)."""
        return self._adjacency.get(node, [])

    def find_connection(self, source: Node, target: Node) -> Optional[Connection]:
        """First connection from source to target in adjacency order."""
        for connection in self.neighbors(source):
            if connection.target == target:
                return connection
        return None

    def connection_count(self) -> int:
        return sum(len(connections) for connections in self._adjacency.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node: Node) -> bool:
        return node in self._adjacency
