"""Main route planner class."""

import logging
from datetime import time
from typing import List, Optional

from .graph import TransportGraph
from .models import City, Criteria, PathResult, RouteSegment
from .schedule import build_itinerary, count_transfers
from .search import DEFAULT_TIMEZONE, now_in, search_for
from .timetable_loader import TimetableLoader

logger = logging.getLogger(__name__)

DEFAULT_ROUTE_COUNT = 5


class RoutePlanner:
    """
    Plans journeys between cities of a timetabled bus and train network.

    This class provides methods to:
    - Load a timetable into a graph
    - Find the k best routes between two cities under one objective
    - Turn a route into displayable itinerary legs
    """

    def __init__(
        self,
        graph: Optional[TransportGraph] = None,
        route_count: int = DEFAULT_ROUTE_COUNT,
        timezone: str = DEFAULT_TIMEZONE,
    ):
        """
        Initialize the planner.

        Args:
            graph: Transport graph to plan on. An empty graph is used if omitted;
                   fill it with one of the load_timetable_* methods.
            route_count: Default number of alternatives returned per query.
            timezone: IANA zone used by the "from now" queries.
        """
        self.loader = TimetableLoader(graph)
        self.route_count = route_count
        self.timezone = timezone

    @property
    def graph(self) -> TransportGraph:
        return self.loader.graph

    def load_timetable_from_json(self, path: str) -> None:
        """
        Load a JSON timetable file.

        Args:
            path: Path to a file with "stations" and "departures" arrays.
        """
        self.loader.load_from_json(path)

    def load_timetable_from_files(self, stations_path: str, departures_path: str) -> None:
        """
        Load the timetable from local CSV files.

        Args:
            stations_path: CSV with city, busStation, trainStation columns.
            departures_path: CSV with one row per departure.
        """
        self.loader.load_from_files(stations_path, departures_path)

    def load_timetable_from_payload(self, payload: dict) -> None:
        self.loader.load_from_payload(payload)

    def get_city(self, name: str) -> City:
        """
        Get a city by name.

        Raises:
            ValueError: If the city is not in the network.
        """
        city = self.graph.find_city(name)
        if city is None:
            raise ValueError(f"City {name} not found")
        return city

    def find_routes(
        self,
        origin: str,
        destination: str,
        criteria: Criteria,
        k: Optional[int] = None,
        ready_at: Optional[time] = None,
        wrap_to_next_day: bool = True,
    ) -> List[PathResult]:
        """
        Find the best routes between two cities.

        Routes are searched from both the bus and the train station of the
        origin to either station of the destination, merged, ranked under
        the chosen objective and cut to k.

        Args:
            origin: Origin city name.
            destination: Destination city name.
            criteria: Objective to rank by.
            k: Number of routes (defaults to route_count).
            ready_at: Time of day the traveller is ready to leave.
            wrap_to_next_day: Allow missed departures to be taken 24h later.

        Returns:
            Up to k routes, best first. Empty if no route exists.

        Raises:
            ValueError: If either city is unknown.
        """
        k = self.route_count if k is None else k
        origin_city = self.get_city(origin)
        destination_city = self.get_city(destination)
        if k <= 0:
            return []

        search = search_for(criteria)
        goals = {
            node
            for node in (
                self.graph.find_node(destination_city.bus_station),
                self.graph.find_node(destination_city.train_station),
            )
            if node is not None
        }

        results: List[PathResult] = []
        for station_id in (origin_city.bus_station, origin_city.train_station):
            start = self.graph.find_node(station_id)
            if start is None:
                continue
            results.extend(
                search.find_k_best(self.graph, start, goals, ready_at, wrap_to_next_day, k)
            )

        results.sort(key=lambda route: search.rank_key(self.graph, route))
        results = results[:k]

        if not results:
            logger.info(f"No route from {origin} to {destination}")
        else:
            logger.info(
                f"Found {len(results)} {criteria.value} routes from {origin} to {destination}"
            )
        return results

    def find_routes_from_now(
        self,
        origin: str,
        destination: str,
        criteria: Criteria,
        k: Optional[int] = None,
    ) -> List[PathResult]:
        """Best routes for a traveller leaving now; next-day departures allowed."""
        return self.find_routes(
            origin, destination, criteria, k, now_in(self.timezone), True
        )

    def itinerary(self, route: PathResult) -> List[RouteSegment]:
        """Display legs of a route (empty for routes shorter than one leg)."""
        return build_itinerary(self.graph, route.nodes)

    def transfers(self, route: PathResult) -> int:
        return count_transfers(self.graph, route.nodes)
