"""
Walkable-area grouping of user-picked places.

Responsibilities:
- Represent a city's plan as named clusters of plan items plus an
  unclustered tray.
- Decide which cluster a newly added item belongs to, preferring clusters
  that already hold activities for restaurants, bars and cafes.
- Keep each cluster's centroid and stats in step with its members.
- Order a cluster's items into a natural flow through the day.
"""
