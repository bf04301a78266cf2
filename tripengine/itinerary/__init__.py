"""
Itinerary scheduling engine.

Responsibilities:
- Evaluate whether a place is open, and how well it fits, in a time slot.
- Build a single day's timed schedule with route ordering and meal breaks.
- Generate multi-day, multi-city itineraries with travel days and trip-wide
  place deduplication.
- Suggest ranked alternatives for any slot.
"""
