"""
Travel and distance primitives.

Responsibilities:
- Great-circle distance and quick walking / per-mode duration estimates.
- Traffic classification by weekday and hour of day.
- Travel segments with road-inefficiency, traffic and duration ranges,
  memoized in an injectable TTL cache.
- Departure suggestions, multi-waypoint routes and mode recommendations.
"""
