"""Data models for the transit route planner."""

from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from typing import List, Optional, Tuple

MINUTES_PER_DAY = 24 * 60

# Stands in for "no finite cost known" in every price/time/transfer accumulator
UNREACHABLE = 2**31 - 1

# Departure marker carried by transfer connectors (display only)
MIDNIGHT = time(0, 0)


class StationType(Enum):
    """Kind of station a node represents."""
    BUS = "bus"
    TRAIN = "train"


class Criteria(Enum):
    """Objective used to rank alternative routes."""
    TIME = "time"
    PRICE = "price"
    TRANSFERS = "transfers"


@dataclass(frozen=True)
class City:
    """A city with one bus station and one train station."""
    name: str
    bus_station: str  # Node id of the bus station
    train_station: str  # Node id of the train station


@dataclass(frozen=True)
class Node:
    """A station in the transport graph. Compared and hashed by id only."""
    id: str
    station_type: StationType = field(compare=False)
    city: Optional[City] = field(default=None, compare=False, repr=False)

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True)
class Connection:
    """A directed, timetabled connection (or transfer connector) to a node."""
    target: Node
    departure: Optional[time]  # Time of day; None means no usable timetable entry
    duration_minutes: int
    price: int
    min_transfer_minutes: int
    is_connector: bool = False  # Intra-city walk between bus and train stations

    @property
    def departure_minute(self) -> Optional[int]:
        """Minute of day of the departure, or None if not timetabled."""
        if self.departure is None:
            return None
        return self.departure.hour * 60 + self.departure.minute


@dataclass(frozen=True)
class PathResult:
    """A concrete route with its aggregate price and elapsed minutes."""
    nodes: Tuple[Node, ...]
    total_price: int
    total_minutes: int

    @classmethod
    def empty(cls) -> "PathResult":
        """Result used when no route exists."""
        return cls(nodes=(), total_price=UNREACHABLE, total_minutes=UNREACHABLE)

    @property
    def node_ids(self) -> List[str]:
        return [node.id for node in self.nodes]

    @property
    def is_empty(self) -> bool:
        return (
            not self.nodes
            or self.total_price >= UNREACHABLE
            or self.total_minutes >= UNREACHABLE
        )


@dataclass(frozen=True)
class RouteSegment:
    """One leg of an itinerary, ready for display."""
    start: str
    end: str
    mode: str  # "Bus", "Train" or "Transfer"
    price: int
    departure: str  # HH:MM
    arrival: str  # HH:MM
