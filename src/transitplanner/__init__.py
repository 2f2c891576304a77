"""TransitPlanner - k best timetable routes over a bus and train network."""

__version__ = "0.1.0"

from .models import (
    City,
    Connection,
    Criteria,
    Node,
    PathResult,
    RouteSegment,
    StationType,
    UNREACHABLE,
)
from .graph import TransportGraph
from .search import (
    FewestTransfersSearch,
    LowestPriceSearch,
    RouteSearch,
    ShortestTimeSearch,
    search_for,
)
from .kbest import find_k_best
from .planner import RoutePlanner
from .timetable_loader import TimetableLoader
from .generator import NetworkGenerator

__all__ = [
    "RoutePlanner",
    "TransportGraph",
    "TimetableLoader",
    "NetworkGenerator",
    "RouteSearch",
    "FewestTransfersSearch",
    "LowestPriceSearch",
    "ShortestTimeSearch",
    "search_for",
    "find_k_best",
    "City",
    "Connection",
    "Criteria",
    "Node",
    "PathResult",
    "RouteSegment",
    "StationType",
    "UNREACHABLE",
]
