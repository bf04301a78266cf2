from __future__ import annotations


class InvalidItineraryInput(ValueError):
    """Raised when a trip request cannot be turned into any itinerary."""
