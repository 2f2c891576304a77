"""Example usage of RoutePlanner."""

import logging
import sys
from pathlib import Path

# Add src to path so we can import transitplanner
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from transitplanner.generator import NetworkGenerator
from transitplanner.models import Criteria
from transitplanner.planner import RoutePlanner

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def print_routes(planner: RoutePlanner, origin: str, destination: str, criteria: Criteria):
    """
    Find and display the best routes between two cities.

    Args:
        planner: Planner with a loaded timetable.
        origin: Origin city name (e.g., "G_0_0").
        destination: Destination city name (e.g., "G_3_3").
        criteria: Objective to rank routes by.
    """
    print(f"\n{'='*70}")
    print(f"{origin} -> {destination}, ranked by {criteria.value}")
    print(f"{'='*70}\n")

    routes = planner.find_routes_from_now(origin, destination, criteria)
    if not routes:
        print("  No route found")
        return

    for rank, route in enumerate(routes, start=1):
        print(
            f"#{rank}: {route.total_price} units, {route.total_minutes} min, "
            f"{planner.transfers(route)} transfers"
        )
        for leg in planner.itinerary(route):
            print(
                f"  {leg.departure}-{leg.arrival}  {leg.mode:<8} "
                f"{leg.start} → {leg.end}  ({leg.price})"
            )
        print()


def main():
    """Main entry point."""
    rows, cols = 4, 4
    if len(sys.argv) == 3:
        rows, cols = int(sys.argv[1]), int(sys.argv[2])

    try:
        planner = RoutePlanner()
        planner.load_timetable_from_payload(NetworkGenerator(rows, cols, seed=2024).generate())

        destination = f"G_{rows - 1}_{cols - 1}"
        for criteria in Criteria:
            print_routes(planner, "G_0_0", destination, criteria)
    except Exception as e:
        logger.error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
