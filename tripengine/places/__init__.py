"""
Place catalogue layer.

Responsibilities:
- Define the immutable Place record consumed by every engine component.
- Map provider place types onto the engine's user-facing categories.
- Compute hidden-gem scores from rating and review counts.
- Fetch, enrich, dedupe and cache a city's candidate places through the
  Places Search interface.
"""
