"""Tests for RoutePlanner."""

import unittest
from unittest.mock import patch, MagicMock
from datetime import time
import json
import os
import tempfile
import sys
from pathlib import Path

import pandas as pd
import requests

# Add src to path so we can import transitplanner
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from transitplanner.models import Criteria, StationType
from transitplanner.planner import RoutePlanner
from transitplanner.timetable_loader import TimetableLoader
from transitplanner.generator import NetworkGenerator


def sample_payload():
    """Three cities; cheap buses via G_1, one direct train to G_2."""
    return {
        "stations": [
            {"city": "G_0", "busStation": "A_0", "trainStation": "Z_0"},
            {"city": "G_1", "busStation": "A_1", "trainStation": "Z_1"},
            {"city": "G_2", "busStation": "A_2", "trainStation": "Z_2"},
        ],
        "departures": [
            {"type": "autobus", "from": "A_0", "to": "G_1", "departureTime": "08:00",
             "duration": 30, "price": 10, "minTransferTime": 0},
            {"type": "autobus", "from": "A_1", "to": "G_2", "departureTime": "09:00",
             "duration": 30, "price": 10, "minTransferTime": 0},
            {"type": "voz", "from": "Z_0", "to": "G_2", "departureTime": "12:00",
             "duration": 120, "price": 50, "minTransferTime": 0},
        ],
    }


class TestTimetableLoader(unittest.TestCase):
    """Test timetable loading."""

    def test_load_payload(self):
        """Test that cities, stations and departures reach the graph."""
        graph = TimetableLoader().load_from_payload(sample_payload())

        self.assertEqual(len(graph.cities()), 3)
        self.assertEqual(len(graph), 6)
        self.assertEqual(graph.connection_count(), 6 + 3)

        bus = graph.find_node("A_0")
        self.assertEqual(bus.station_type, StationType.BUS)
        self.assertEqual(bus.city.name, "G_0")

        ride = [c for c in graph.neighbors(bus) if not c.is_connector][0]
        self.assertEqual(ride.target.id, "A_1")
        self.assertEqual(ride.departure, time(8, 0))
        self.assertEqual((ride.duration_minutes, ride.price, ride.min_transfer_minutes), (30, 10, 0))

    def test_train_departure_targets_train_station(self):
        """Test that a train to a city arrives at that city's train station."""
        graph = TimetableLoader().load_from_payload(sample_payload())
        rides = [c for c in graph.neighbors(graph.find_node("Z_0")) if not c.is_connector]
        self.assertEqual([c.target.id for c in rides], ["Z_2"])

    def test_malformed_departures_are_skipped(self):
        """Test that bad rows are dropped without failing the load."""
        payload = sample_payload()
        payload["departures"] += [
            {"type": "ship", "from": "A_0", "to": "G_1", "departureTime": "08:00",
             "duration": 30, "price": 10, "minTransferTime": 0},
            {"type": "bus", "from": "A_0", "to": "G_9", "departureTime": "08:00",
             "duration": 30, "price": 10, "minTransferTime": 0},
            {"type": "bus", "from": "A_0", "to": "G_1", "departureTime": "25:99",
             "duration": 30, "price": 10, "minTransferTime": 0},
            {"type": "train", "from": "Z_9", "to": "G_1", "departureTime": "08:00",
             "duration": 30, "price": 10, "minTransferTime": 0},
        ]

        with self.assertLogs("transitplanner.timetable_loader", level="WARNING"):
            graph = TimetableLoader().load_from_payload(payload)
        self.assertEqual(graph.connection_count(), 9)

    def test_missing_columns(self):
        """Test error handling for a departures table without required columns."""
        payload = {"stations": sample_payload()["stations"], "departures": []}
        loader = TimetableLoader()
        loader.load_from_payload(payload)  # empty tables are fine

        with self.assertRaises(ValueError):
            loader.load_frames(pd.DataFrame({"city": ["G_0"]}), pd.DataFrame())

    def test_load_from_files(self):
        """Test loading CSV files."""
        payload = sample_payload()
        with tempfile.TemporaryDirectory() as tmp:
            stations_path = os.path.join(tmp, "stations.csv")
            departures_path = os.path.join(tmp, "departures.csv")
            with open(stations_path, "w") as f:
                f.write("city,busStation,trainStation\n")
                for s in payload["stations"]:
                    f.write(f"{s['city']},{s['busStation']},{s['trainStation']}\n")
            with open(departures_path, "w") as f:
                f.write("type,from,to,departureTime,duration,price,minTransferTime\n")
                for d in payload["departures"]:
                    f.write(
                        f"{d['type']},{d['from']},{d['to']},{d['departureTime']},"
                        f"{d['duration']},{d['price']},{d['minTransferTime']}\n"
                    )

            graph = TimetableLoader().load_from_files(stations_path, departures_path)

        self.assertEqual(len(graph), 6)
        self.assertEqual(graph.connection_count(), 9)

    def test_load_from_json(self):
        """Test loading a JSON file."""
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "transport_data.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump(sample_payload(), f)
            graph = TimetableLoader().load_from_json(path)

        self.assertEqual(graph.connection_count(), 9)

    @patch("transitplanner.timetable_loader.requests.get")
    def test_load_from_url(self, mock_get):
        """Test that a downloaded payload is loaded."""
        mock_response = MagicMock()
        mock_response.json.return_value = sample_payload()
        mock_get.return_value = mock_response

        graph = TimetableLoader().load_from_url("http://test/timetable.json")

        mock_get.assert_called_once_with("http://test/timetable.json", timeout=30)
        mock_response.raise_for_status.assert_called_once()
        self.assertEqual(graph.connection_count(), 9)

    @patch("transitplanner.timetable_loader.requests.get")
    def test_load_from_url_failure(self, mock_get):
        """Test that download errors are raised to the caller."""
        mock_get.side_effect = requests.ConnectionError("unreachable")
        with self.assertRaises(requests.RequestException):
            TimetableLoader().load_from_url("http://test/timetable.json")

    def test_clear(self):
        """Test that clear starts from an empty graph."""
        loader = TimetableLoader()
        loader.load_from_payload(sample_payload())
        loader.clear()
        self.assertEqual(len(loader.graph), 0)
        self.assertEqual(loader.station_to_city, {})


class TestNetworkGenerator(unittest.TestCase):
    """Test synthetic network generation."""

    def test_generated_payload_shape(self):
        """Test names, counts and value ranges."""
        payload = NetworkGenerator(2, 3, seed=42).generate()

        self.assertEqual(len(payload["countryMap"]), 2)
        self.assertEqual(payload["countryMap"][1][2], "G_1_2")
        self.assertEqual(len(payload["stations"]), 6)
        self.assertEqual(len(payload["departures"]), 6 * 2 * 5)

        for departure in payload["departures"]:
            self.assertIn(departure["type"], ("autobus", "voz"))
            self.assertTrue(30 <= departure["duration"] <= 180)
            self.assertTrue(100 <= departure["price"] <= 1000)
            self.assertTrue(5 <= departure["minTransferTime"] <= 30)
            self.assertIn(departure["departureTime"][3:], ("00", "15", "30", "45"))
            self.assertNotEqual(departure["to"], "G_" + departure["from"][2:])

    def test_seed_is_deterministic(self):
        """Test that the same seed gives the same network."""
        self.assertEqual(
            NetworkGenerator(3, 3, seed=1).generate(),
            NetworkGenerator(3, 3, seed=1).generate(),
        )

    def test_invalid_grid(self):
        """Test error handling for an empty grid."""
        with self.assertRaises(ValueError):
            NetworkGenerator(0, 3)

    def test_generated_network_loads(self):
        """Test that generated payloads load without skipped rows."""
        graph = TimetableLoader().load_from_payload(NetworkGenerator(3, 3, seed=3).generate())
        self.assertEqual(len(graph), 18)
        self.assertEqual(graph.connection_count(), 18 + 90)

    def test_save_to_json(self):
        """Test that the saved file matches the returned payload."""
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "transport_data.json")
            payload = NetworkGenerator(2, 2, seed=5).save_to_json(path)
            with open(path, encoding="utf-8") as f:
                self.assertEqual(json.load(f), payload)


class TestRoutePlanner(unittest.TestCase):
    """Test the main RoutePlanner class."""

    def setUp(self):
        """Set up test fixtures."""
        self.planner = RoutePlanner()
        self.planner.load_timetable_from_payload(sample_payload())

    def test_get_city(self):
        """Test retrieving a city by name."""
        city = self.planner.get_city("G_1")
        self.assertEqual((city.bus_station, city.train_station), ("A_1", "Z_1"))

    def test_get_city_not_found(self):
        """Test error handling for non-existent city."""
        with self.assertRaises(ValueError):
            self.planner.get_city("NONEXISTENT")
        with self.assertRaises(ValueError):
            self.planner.find_routes("G_0", "NONEXISTENT", Criteria.PRICE)

    def test_cheapest_routes_merge_both_origins(self):
        """Test that routes from the bus and the train station are merged and ranked."""
        routes = self.planner.find_routes("G_0", "G_2", Criteria.PRICE, 3, time(7, 0), False)

        self.assertEqual(
            [r.node_ids for r in routes],
            [["A_0", "A_1", "A_2"], ["Z_0", "A_0", "A_1", "A_2"], ["Z_0", "Z_2"]],
        )
        self.assertEqual([r.total_price for r in routes], [20, 20, 50])

    def test_fastest_route(self):
        """Test the time objective."""
        routes = self.planner.find_routes("G_0", "G_2", Criteria.TIME, 1, time(7, 0), False)
        self.assertEqual(routes[0].node_ids, ["A_0", "A_1", "A_2"])
        self.assertEqual(routes[0].total_minutes, 90)

    def test_fewest_transfers_route(self):
        """Test the transfers objective."""
        routes = self.planner.find_routes("G_0", "G_2", Criteria.TRANSFERS, 1, time(7, 0), False)
        self.assertEqual(routes[0].node_ids, ["Z_0", "Z_2"])
        self.assertEqual(self.planner.transfers(routes[0]), 0)

    def test_route_count_defaults(self):
        """Test that k defaults to the planner's route count."""
        planner = RoutePlanner(self.planner.graph, route_count=2)
        routes = planner.find_routes("G_0", "G_2", Criteria.PRICE, ready_at=time(7, 0))
        self.assertEqual(len(routes), 2)
        self.assertEqual(planner.find_routes("G_0", "G_2", Criteria.PRICE, k=0), [])

    def test_no_route(self):
        """Test that an unreachable city gives an empty list."""
        routes = self.planner.find_routes("G_2", "G_0", Criteria.PRICE, 5, time(7, 0))
        self.assertEqual(routes, [])

    def test_itinerary(self):
        """Test the display legs of a route."""
        route = self.planner.find_routes("G_0", "G_2", Criteria.PRICE, 1, time(7, 0), False)[0]
        legs = self.planner.itinerary(route)

        self.assertEqual(len(legs), 2)
        self.assertEqual((legs[0].start, legs[0].end, legs[0].mode), ("A_0", "A_1", "Bus"))
        self.assertEqual((legs[0].departure, legs[0].arrival), ("08:00", "08:30"))
        self.assertEqual((legs[1].departure, legs[1].arrival), ("09:00", "09:30"))
        self.assertEqual(sum(leg.price for leg in legs), route.total_price)

    @patch("transitplanner.planner.now_in")
    def test_find_routes_from_now(self, mock_now):
        """Test that the from-now query reads the planner's time zone."""
        mock_now.return_value = time(7, 0)
        planner = RoutePlanner(self.planner.graph, timezone="Europe/Berlin")

        routes = planner.find_routes_from_now("G_0", "G_2", Criteria.PRICE, 1)

        mock_now.assert_called_once_with("Europe/Berlin")
        self.assertEqual(routes[0].node_ids, ["A_0", "A_1", "A_2"])


if __name__ == "__main__":
    unittest.main()
