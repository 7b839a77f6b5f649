"""Trip Amend: reconcile free-text itinerary amendments into a waypoint list."""

__version__ = "0.1.0"
