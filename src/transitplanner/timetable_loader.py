"""Timetable loader that builds a TransportGraph from station/departure tables."""

import json
import logging
from datetime import datetime, time
from typing import Dict, Optional

import pandas as pd
import requests

from .graph import TransportGraph
from .models import City, StationType

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30  # seconds

STATION_COLUMNS = ["city", "busStation", "trainStation"]
DEPARTURE_COLUMNS = [
    "type",
    "from",
    "to",
    "departureTime",
    "duration",
    "price",
    "minTransferTime",
]

# Mode names accepted in the "type" column
STATION_TYPES = {
    "autobus": StationType.BUS,
    "bus": StationType.BUS,
    "voz": StationType.TRAIN,
    "train": StationType.TRAIN,
}


class TimetableLoader:
    """Loads cities, stations and departures into a TransportGraph."""

    def __init__(self, graph: Optional[TransportGraph] = None):
        """
        Initialize the loader.

        Args:
            graph: Graph to populate. A new one is created if omitted.
        """
        self.graph = graph if graph is not None else TransportGraph()
        self.station_to_city: Dict[str, City] = {}  # station id -> city

    def load_from_url(self, url: str) -> TransportGraph:
        """Download a JSON timetable payload and load it."""
        logger.info(f"Downloading timetable from {url}")
        try:
            response = requests.get(url, timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            logger.error(f"Failed to download timetable: {e}")
            raise
        return self.load_from_payload(payload)

    def load_from_json(self, path: str) -> TransportGraph:
        """Load a JSON timetable file (stations + departures)."""
        logger.info(f"Loading timetable from {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read timetable {path}: {e}")
            raise
        return self.load_from_payload(payload)

    def load_from_files(self, stations_path: str, departures_path: str) -> TransportGraph:
        """Load stations and departures from local CSV files."""
        logger.info("Loading timetable from local files")
        stations = pd.read_csv(stations_path, dtype=str)
        departures = pd.read_csv(departures_path, dtype={"departureTime": str})
        return self.load_frames(stations, departures)

    def load_from_payload(self, payload: dict) -> TransportGraph:
        """Load an already parsed JSON payload."""
        stations = pd.DataFrame(payload.get("stations", []), columns=STATION_COLUMNS)
        departures = pd.DataFrame(payload.get("departures", []), columns=DEPARTURE_COLUMNS)
        return self.load_frames(stations, departures)

    def load_frames(self, stations: pd.DataFrame, departures: pd.DataFrame) -> TransportGraph:
        """Load station and departure tables into the graph."""
        self._require_columns(stations, STATION_COLUMNS, "stations")
        self._require_columns(departures, DEPARTURE_COLUMNS, "departures")
        self._load_stations(stations)
        self._load_departures(departures)
        logger.info(
            f"Loaded {len(self.graph.cities())} cities, {len(self.graph)} stations "
            f"and {self.graph.connection_count()} connections"
        )
        return self.graph

    @staticmethod
    def _require_columns(frame: pd.DataFrame, columns: list, table: str) -> None:
        missing = [column for column in columns if column not in frame.columns]
        if missing:
            raise ValueError(f"Table '{table}' is missing columns: {', '.join(missing)}")

    def _load_stations(self, stations: pd.DataFrame) -> None:
        """Register each city with its bus and train stations."""
        for _, row in stations.iterrows():
            if row[STATION_COLUMNS].isna().any():
                logger.warning(f"Skipping incomplete station row: {row.to_dict()}")
                continue
            city = self.graph.add_city(
                str(row["city"]), str(row["busStation"]), str(row["trainStation"])
            )
            self.station_to_city[city.bus_station] = city
            self.station_to_city[city.train_station] = city

    def _load_departures(self, departures: pd.DataFrame) -> None:
        """Add one timetabled connection per departure row."""
        skipped = 0
        for _, row in departures.iterrows():
            station_type = STATION_TYPES.get(str(row["type"]).strip().lower())
            from_city = self.station_to_city.get(str(row["from"]))
            to_city = self.graph.find_city(str(row["to"]))
            departure = self._parse_time(row["departureTime"])

            if station_type is None or from_city is None or to_city is None or departure is None:
                skipped += 1
                logger.warning(f"Skipping departure row: {row.to_dict()}")
                continue

            try:
                duration = int(row["duration"])
                price = int(row["price"])
                min_transfer = int(row["minTransferTime"])
            except (TypeError, ValueError):
                skipped += 1
                logger.warning(f"Skipping departure row with bad numbers: {row.to_dict()}")
                continue

            source = self.graph.get_or_create_node(str(row["from"]), station_type, from_city)
            target_id = (
                to_city.train_station
                if station_type == StationType.TRAIN
                else to_city.bus_station
            )
            target = self.graph.get_or_create_node(target_id, station_type, to_city)
            self.graph.add_connection(source, target, departure, duration, price, min_transfer)

        if skipped:
            logger.info(f"Skipped {skipped} malformed departures")

    @staticmethod
    def _parse_time(value) -> Optional[time]:
        """Parse an HH:MM string."""
        if not isinstance(value, str):
            return None
        try:
            return datetime.strptime(value.strip(), "%H:%M").time()
        except ValueError:
            return None

    def clear(self) -> None:
        """Drop the loaded network and start over with an empty graph."""
        self.graph = TransportGraph()
        self.station_to_city.clear()
        logger.info("Cleared timetable data from memory")
