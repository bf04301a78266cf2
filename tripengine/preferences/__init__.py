"""
Preference scoring engine.

Responsibilities:
- Hold the read-only UserPreferences snapshot and scoring weights.
- Load the avoidance / specific-interest keyword rules once at import.
- Score a single place against preferences into a ScoreBreakdown.
- Rank, filter and pace-limit candidate places by their combined score.
"""
