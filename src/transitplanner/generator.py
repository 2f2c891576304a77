"""Synthetic grid-shaped timetable generator."""

import json
import logging
import random
from typing import List, Optional

logger = logging.getLogger(__name__)

DEPARTURES_PER_STATION = 5


class NetworkGenerator:
    """
    Generates a rows x cols grid of cities with random departures.

    City (x, y) is named G_x_y and owns bus station A_x_y and train station
    Z_x_y. Every station gets a number of departures of its own mode towards
    a random neighbouring city (up, down, left or right).
    """

    def __init__(
        self,
        rows: int,
        cols: int,
        departures_per_station: int = DEPARTURES_PER_STATION,
        seed: Optional[int] = None,
    ):
        if rows <= 0 or cols <= 0:
            raise ValueError(f"Grid must be at least 1x1, got {rows}x{cols}")
        self.rows = rows
        self.cols = cols
        self.departures_per_station = departures_per_station
        self._random = random.Random(seed)

    def generate(self) -> dict:
        """Build a timetable payload accepted by TimetableLoader.load_from_payload()."""
        country_map = [
            [f"G_{x}_{y}" for y in range(self.cols)] for x in range(self.rows)
        ]
        stations = [
            {"city": f"G_{x}_{y}", "busStation": f"A_{x}_{y}", "trainStation": f"Z_{x}_{y}"}
            for x in range(self.rows)
            for y in range(self.cols)
        ]

        departures = []
        for station in stations:
            _, x, y = station["city"].split("_")
            for _ in range(self.departures_per_station):
                departures.append(self._departure("autobus", station["busStation"], int(x), int(y)))
            for _ in range(self.departures_per_station):
                departures.append(self._departure("voz", station["trainStation"], int(x), int(y)))

        logger.info(
            f"Generated {len(stations)} cities with {len(departures)} departures"
        )
        return {"countryMap": country_map, "stations": stations, "departures": departures}

    def save_to_json(self, path: str) -> dict:
        """Generate a payload and write it to path."""
        payload = self.generate()
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        logger.info(f"Saved generated timetable to {path}")
        return payload

    def _departure(self, mode: str, station: str, x: int, y: int) -> dict:
        neighbors = self._neighbors(x, y)
        # A 1x1 grid has nowhere to go; the departure loops back to its own city
        to = self._random.choice(neighbors) if neighbors else f"G_{x}_{y}"
        hour = self._random.randrange(24)
        minute = self._random.randrange(4) * 15
        return {
            "type": mode,
            "from": station,
            "to": to,
            "departureTime": f"{hour:02d}:{minute:02d}",
            "duration": 30 + self._random.randrange(151),
            "price": 100 + self._random.randrange(901),
            "minTransferTime": 5 + self._random.randrange(26),
        }

    def _neighbors(self, x: int, y: int) -> List[str]:
        neighbors = []
        for dx, dy in ((-1, 0), (1, 0), (0, -1), (0, 1)):
            nx, ny = x + dx, y + dy
            if 0 <= nx < self.rows and 0 <= ny < self.cols:
                neighbors.append(f"G_{nx}_{ny}")
        return neighbors
